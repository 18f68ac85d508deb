"""Request/response bodies for the HTTP API."""

from typing import List, Optional

from pydantic import BaseModel, Field

from atelier.engines.submissions.navigation import Direction
from atelier.kernel.models.profile import Track
from atelier.orchestration.review_state_machine import ReviewOutcome
from atelier.pedagogy.curriculum import ClassType, Step


class TrackReferencesUpdate(BaseModel):
    """Onboarding: set one or both reference images."""

    interior_ref_url: Optional[str] = None
    exterior_ref_url: Optional[str] = None


class TrackReferenceUpdate(BaseModel):
    """Replace the reference image of one track."""

    image: str = Field(..., min_length=1)


class SubmissionCreate(BaseModel):
    """Submit one or more renders (already-uploaded image URLs)."""

    student_id: str
    track: Track
    files: List[str]
    message: str = Field("", max_length=5000)
    step: Optional[Step] = None


class ReviewCreate(BaseModel):
    """Reviewer decision on one submission version."""

    outcome: ReviewOutcome
    message: Optional[str] = Field(None, max_length=5000)


class NavigateRequest(BaseModel):
    """Current chain (by its key) and the direction to move."""

    student_id: str
    step: Step
    reference_image: str
    direction: Direction


class AvatarUpdate(BaseModel):
    """New avatar image (already-uploaded URL)."""

    avatar_url: str = Field(..., min_length=1)


class NextStepResponse(BaseModel):
    """Step the next submission on a track goes to."""

    track: Track
    step: Optional[Step] = None
    is_resubmission: bool = False


class OpenChainRequest(BaseModel):
    """Chain to open (by its key), optionally at an older version."""

    student_id: str
    step: Step
    reference_image: str
    version_index: Optional[int] = None


class StepInfo(BaseModel):
    step: Step
    name: str


class ClassInfo(BaseModel):
    """Display info and ordered steps of a class."""

    class_type: ClassType
    title: str
    subtitle: str
    steps: List[StepInfo]


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str
