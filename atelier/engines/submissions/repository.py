"""
Submission repository - versioned inserts and the review write paths.
"""

from datetime import timedelta
from typing import Iterable, List, Optional, Sequence

from atelier.engines.submissions.ordering import chain_key
from atelier.kernel.errors import PersistenceError, ValidationError
from atelier.kernel.models.profile import Track
from atelier.kernel.models.submission import FeedbackType, SubmissionStatus
from atelier.kernel.store import RecordStore, utcnow
from atelier.logging_config import get_logger
from atelier.pedagogy.curriculum import Step
from atelier.schemas.records import FeedbackRecord, SubmissionRecord

logger = get_logger(__name__)


class SubmissionRepository:
    """
    Creates submission versions and applies review writes.

    `append_feedback` and `set_status` are meant for the review state
    machine only; submitting never touches existing rows.
    """

    def __init__(self, store: RecordStore):
        self.store = store

    async def count_versions(
        self,
        student_id: str,
        step: Step,
        reference_image: str,
        existing: Optional[Iterable[SubmissionRecord]] = None,
    ) -> int:
        """Number of versions already in the chain."""
        if existing is None:
            existing = await self.store.load_submissions()
        key = (student_id, Step(step).value, reference_image)
        return sum(1 for s in existing if chain_key(s) == key)

    async def insert(
        self,
        student_id: str,
        step: Step,
        track: Track,
        reference_image: Optional[str],
        render_images: Sequence[str],
        message: str = "",
        existing: Optional[Iterable[SubmissionRecord]] = None,
    ) -> List[SubmissionRecord]:
        """
        Insert one version per render image, in input order.

        Weeks continue the chain: with n existing versions the batch gets
        n+1 .. n+len(render_images). Each insert is its own write; a failure
        stops the batch and keeps what was already written.
        """
        if not reference_image:
            raise ValidationError("No reference image set for this track")
        if not render_images:
            raise ValidationError("At least one render image is required")

        week = await self.count_versions(student_id, step, reference_image, existing) + 1
        # One microsecond apart so batch order is also chronological order
        base_time = utcnow()

        created: List[SubmissionRecord] = []
        for offset, render_image in enumerate(render_images):
            try:
                record = await self.store.insert_submission(
                    student_id=student_id,
                    category=Step(step).value,
                    reference_image=reference_image,
                    render_image=render_image,
                    week=week + offset,
                    message=message,
                    track=track,
                    submission_date=base_time + timedelta(microseconds=offset),
                )
            except PersistenceError:
                logger.error(
                    "Submission batch aborted",
                    extra={
                        "student_id": student_id,
                        "step": Step(step).value,
                        "written": len(created),
                        "requested": len(render_images),
                    },
                )
                raise
            created.append(record)

        logger.info(
            "Submissions stored",
            extra={
                "student_id": student_id,
                "step": Step(step).value,
                "track": Track(track).value,
                "weeks": [s.week for s in created],
            },
        )
        return created

    async def append_feedback(
        self,
        submission_id: str,
        author_id: str,
        feedback_type: FeedbackType,
        message: str,
    ) -> FeedbackRecord:
        return await self.store.insert_feedback(
            submission_id=submission_id,
            teacher_id=author_id,
            feedback_type=feedback_type,
            message=message,
        )

    async def set_status(self, submission_id: str, status: SubmissionStatus) -> None:
        await self.store.update_submission_status(submission_id, status)
