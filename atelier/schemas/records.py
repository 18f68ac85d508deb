"""
Record schemas crossing the store boundary.

JSON aliases match the persisted record shapes:
profile  {id, name, email, role, avatarUrl, classType, interiorRefUrl,
          exteriorRefUrl, progress: {INTERIOR: [...], EXTERIOR: [...]}}
submission {id, studentId, message, week, category, referenceImage,
            renderImage, status, submissionDate, feedback: [...]}
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from atelier.kernel.models.profile import Track, UserRole
from atelier.kernel.models.submission import FeedbackType, SubmissionStatus
from atelier.pedagogy.curriculum import ClassType


class RecordModel(BaseModel):
    """Immutable record with camelCase JSON aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class FeedbackRecord(RecordModel):
    """One feedback entry."""

    id: str
    teacher_id: str
    message: str
    type: FeedbackType
    date: datetime


class SubmissionRecord(RecordModel):
    """One submission version with its feedback history."""

    id: str
    student_id: str
    message: str = ""
    week: int
    category: str
    reference_image: str
    render_image: str
    status: SubmissionStatus
    submission_date: datetime
    feedback: List[FeedbackRecord] = Field(default_factory=list)
    track: Optional[Track] = None


class ProfileRecord(RecordModel):
    """Profile with track references and per-track unlocked steps."""

    id: str
    name: str
    email: str
    role: UserRole
    avatar_url: str = ""
    class_type: Optional[ClassType] = None
    interior_ref_url: Optional[str] = None
    exterior_ref_url: Optional[str] = None
    progress: Dict[Track, List[str]] = Field(
        default_factory=lambda: {Track.INTERIOR: [], Track.EXTERIOR: []}
    )

    def reference_for(self, track: Track) -> Optional[str]:
        """Stored reference image identity for a track."""
        if Track(track) == Track.INTERIOR:
            return self.interior_ref_url
        return self.exterior_ref_url

    @property
    def onboarded(self) -> bool:
        """Both track references are set."""
        return bool(self.interior_ref_url and self.exterior_ref_url)


class Snapshot(BaseModel):
    """In-memory copy of both collections; pure computations run over this."""

    model_config = ConfigDict(frozen=True)

    profiles: Dict[str, ProfileRecord] = Field(default_factory=dict)
    submissions: List[SubmissionRecord] = Field(default_factory=list)

    def profile(self, profile_id: str) -> Optional[ProfileRecord]:
        return self.profiles.get(profile_id)
