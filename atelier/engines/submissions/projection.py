"""
Step status projection - per-step view of one student's track.

Pure over a snapshot: nothing here is stored, every call re-derives the
view from the profile's progress and the submission history.
"""

from enum import Enum
from typing import Iterable, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from atelier.engines.progression.progress_set import StudentProgress
from atelier.engines.submissions.ordering import sort_versions
from atelier.kernel.models.profile import Track
from atelier.pedagogy.curriculum import Curriculum, Step
from atelier.schemas.records import ProfileRecord, SubmissionRecord


class StepStatus(str, Enum):
    """Displayed status of a curriculum step."""

    LOCKED = "LOCKED"
    AVAILABLE = "AVAILABLE"
    PENDING = "PENDING"
    SUBMITTED = "SUBMITTED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class StepProjection(BaseModel):
    """One row of the projection."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    step: Step
    status: StepStatus
    submissions: List[SubmissionRecord]
    latest: Optional[SubmissionRecord] = None


def resolve_track(submission: SubmissionRecord, profile: ProfileRecord) -> Optional[Track]:
    """
    Track a submission belongs to.

    The tag recorded at submit time wins. Older rows without one fall back to
    comparing the reference image against the student's stored references;
    None when neither matches (e.g. the reference was edited since).
    """
    if submission.track is not None:
        return submission.track
    if profile.interior_ref_url and submission.reference_image == profile.interior_ref_url:
        return Track.INTERIOR
    if profile.exterior_ref_url and submission.reference_image == profile.exterior_ref_url:
        return Track.EXTERIOR
    return None


def derive_step_status(unlocked: bool, latest: Optional[SubmissionRecord]) -> StepStatus:
    """Precedence: locked, then no submissions, then the latest version's status."""
    if not unlocked:
        return StepStatus.LOCKED
    if latest is None:
        return StepStatus.AVAILABLE
    return StepStatus(latest.status.value)


def track_submissions(
    profile: ProfileRecord,
    track: Track,
    submissions: Iterable[SubmissionRecord],
) -> List[SubmissionRecord]:
    """The student's submissions that resolve to `track`."""
    return [
        s for s in submissions
        if s.student_id == profile.id and resolve_track(s, profile) == track
    ]


def project_steps(
    profile: ProfileRecord,
    track: Track,
    submissions: Iterable[SubmissionRecord],
) -> List[StepProjection]:
    """Per-step status in curriculum order; empty for profiles without a class."""
    if profile.class_type is None:
        return []

    track = Track(track)
    unlocked = StudentProgress.from_json(profile.progress).track(track)
    mine = track_submissions(profile, track, submissions)

    rows: List[StepProjection] = []
    for step in Curriculum.steps(profile.class_type):
        chain = sort_versions(s for s in mine if s.category == step.value)
        latest = chain[-1] if chain else None
        rows.append(
            StepProjection(
                step=step,
                status=derive_step_status(step in unlocked, latest),
                submissions=chain,
                latest=latest,
            )
        )
    return rows


def detect_submit_step(projection: List[StepProjection]) -> Optional[Step]:
    """Last step in curriculum order that is not locked."""
    for row in reversed(projection):
        if row.status != StepStatus.LOCKED:
            return row.step
    return None
