"""
Review state machine for submission versions.

A version starts PENDING (legacy rows may read SUBMITTED) and is decided
exactly once: APPROVED or REJECTED are terminal. A resubmission is a new
version, not a new state of the old one.

Approving also unlocks the next curriculum step on the submission's track.
The three writes (feedback, status, unlock) are independent; a later
failure leaves the earlier writes in place.
"""

from enum import Enum
from typing import Dict, List, Optional, Set, Tuple

from pydantic import BaseModel

from atelier.engines.progression.progression_store import ProgressionStore
from atelier.engines.submissions.projection import resolve_track
from atelier.engines.submissions.repository import SubmissionRepository
from atelier.kernel.errors import InvalidTransitionError, NotFoundError, PersistenceError
from atelier.kernel.models.profile import Track
from atelier.kernel.models.submission import FeedbackType, SubmissionStatus
from atelier.kernel.store import RecordStore
from atelier.logging_config import get_logger
from atelier.pedagogy.curriculum import Curriculum, Step
from atelier.schemas.records import FeedbackRecord

logger = get_logger(__name__)


class ReviewOutcome(str, Enum):
    """Reviewer decision."""

    APPROVE = "APPROVE"
    REJECT = "REJECT"


DEFAULT_MESSAGES: Dict[ReviewOutcome, str] = {
    ReviewOutcome.APPROVE: "Great work!",
    ReviewOutcome.REJECT: "Please revise.",
}

_OUTCOME_STATUS: Dict[ReviewOutcome, SubmissionStatus] = {
    ReviewOutcome.APPROVE: SubmissionStatus.APPROVED,
    ReviewOutcome.REJECT: SubmissionStatus.REJECTED,
}

# Valid transitions: (from_status, to_status)
_TRANSITIONS: Set[Tuple[SubmissionStatus, SubmissionStatus]] = {
    (SubmissionStatus.PENDING, SubmissionStatus.APPROVED),
    (SubmissionStatus.PENDING, SubmissionStatus.REJECTED),
    (SubmissionStatus.SUBMITTED, SubmissionStatus.APPROVED),
    (SubmissionStatus.SUBMITTED, SubmissionStatus.REJECTED),
}


def valid_transitions(from_status: SubmissionStatus) -> List[SubmissionStatus]:
    """Target statuses reachable from `from_status`."""
    return sorted(
        (t for f, t in _TRANSITIONS if f == SubmissionStatus(from_status)),
        key=lambda s: s.value,
    )


def can_transition(from_status: SubmissionStatus, to_status: SubmissionStatus) -> bool:
    return (SubmissionStatus(from_status), SubmissionStatus(to_status)) in _TRANSITIONS


class ReviewResult(BaseModel):
    """What a review changed."""

    submission_id: str
    status: SubmissionStatus
    feedback: FeedbackRecord
    unlocked_step: Optional[Step] = None
    track: Optional[Track] = None


class ReviewStateMachine:
    """
    Applies reviewer decisions.

    Usage:
        machine = ReviewStateMachine(store)
        result = await machine.review(sub_id, reviewer_id, ReviewOutcome.APPROVE)
    """

    def __init__(
        self,
        store: RecordStore,
        repository: Optional[SubmissionRepository] = None,
        progression: Optional[ProgressionStore] = None,
    ):
        self.store = store
        self.repository = repository or SubmissionRepository(store)
        self.progression = progression or ProgressionStore(store)

    async def review(
        self,
        submission_id: str,
        reviewer_id: str,
        outcome: ReviewOutcome,
        message: Optional[str] = None,
    ) -> ReviewResult:
        """Record feedback, decide the version, and unlock the next step on approval."""
        outcome = ReviewOutcome(outcome)
        to_status = _OUTCOME_STATUS[outcome]

        submission = await self.store.get_submission(submission_id)
        if not can_transition(submission.status, to_status):
            raise InvalidTransitionError(
                f"Invalid transition: {submission.status.value} -> {to_status.value}"
            )

        try:
            feedback = await self.repository.append_feedback(
                submission_id,
                reviewer_id,
                FeedbackType(outcome.value),
                message or DEFAULT_MESSAGES[outcome],
            )
            await self.repository.set_status(submission_id, to_status)
        except PersistenceError:
            logger.exception(
                "Error giving feedback",
                extra={"submission_id": submission_id, "outcome": outcome.value},
            )
            raise

        result = ReviewResult(submission_id=submission_id, status=to_status, feedback=feedback)
        if outcome == ReviewOutcome.APPROVE:
            result.track, result.unlocked_step = await self._unlock_next(submission_id)

        logger.info(
            "Submission reviewed",
            extra={
                "submission_id": submission_id,
                "reviewer_id": reviewer_id,
                "status": to_status.value,
                "unlocked_step": result.unlocked_step.value if result.unlocked_step else None,
            },
        )
        return result

    async def _unlock_next(self, submission_id: str) -> Tuple[Optional[Track], Optional[Step]]:
        """
        Best-effort unlock of the successor step. Failures are logged only.

        Returns (track, step) when a step was newly unlocked.
        """
        try:
            submission = await self.store.get_submission(submission_id)
            student = await self.store.get_profile(submission.student_id)
        except (PersistenceError, NotFoundError):
            logger.exception("Auto-unlock lookup failed", extra={"submission_id": submission_id})
            return None, None

        if student.class_type is None:
            return None, None

        track = resolve_track(submission, student)
        if track is None:
            logger.warning(
                "Cannot resolve track for approved submission",
                extra={"submission_id": submission_id, "student_id": student.id},
            )
            return None, None

        next_step = Curriculum.successor(student.class_type, submission.category)
        if next_step is None:
            return track, None

        try:
            if await self.progression.is_unlocked(student.id, track, next_step):
                return track, None
            await self.progression.unlock(student.id, track, next_step)
        except PersistenceError:
            logger.exception(
                "Auto-unlock error",
                extra={"student_id": student.id, "track": track.value, "step": next_step.value},
            )
            return track, None
        return track, next_step
