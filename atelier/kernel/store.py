"""
Record store - the persistence boundary for profiles and submissions.

Every call opens its own session and commits on success, so each write is
independent: a failure in one call never undoes an earlier one. Any
SQLAlchemy failure is re-raised as PersistenceError.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from atelier.kernel.errors import NotFoundError, PersistenceError
from atelier.kernel.models.profile import Profile, Track, UserRole
from atelier.kernel.models.submission import Feedback, FeedbackType, Submission, SubmissionStatus
from atelier.schemas.records import FeedbackRecord, ProfileRecord, Snapshot, SubmissionRecord


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _profile_record(row: Profile) -> ProfileRecord:
    progress = row.progress or {}
    return ProfileRecord(
        id=row.id,
        name=row.full_name,
        email=row.email,
        role=UserRole(row.role),
        avatar_url=row.avatar_url or "",
        class_type=row.class_type,
        interior_ref_url=row.interior_ref_url,
        exterior_ref_url=row.exterior_ref_url,
        progress={
            Track.INTERIOR: list(progress.get(Track.INTERIOR.value) or []),
            Track.EXTERIOR: list(progress.get(Track.EXTERIOR.value) or []),
        },
    )


def _feedback_record(row: Feedback) -> FeedbackRecord:
    return FeedbackRecord(
        id=row.id,
        teacher_id=row.teacher_id,
        message=row.message,
        type=FeedbackType(row.type),
        date=_as_utc(row.created_at),
    )


def _submission_record(row: Submission, feedback: Optional[List[Feedback]] = None) -> SubmissionRecord:
    return SubmissionRecord(
        id=row.id,
        student_id=row.student_id,
        message=row.student_message,
        week=row.week,
        category=row.category,
        reference_image=row.reference_image,
        render_image=row.render_image,
        status=SubmissionStatus(row.status),
        submission_date=_as_utc(row.submission_date),
        feedback=[_feedback_record(f) for f in (feedback if feedback is not None else row.feedback)],
        track=Track(row.track) if row.track else None,
    )


class RecordStore:
    """
    Async record store over two collections.

    Usage:
        store = RecordStore(async_session_maker)
        snapshot = await store.load_snapshot()
        await store.update_submission_status(sub_id, SubmissionStatus.APPROVED)
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    @asynccontextmanager
    async def _transaction(self, operation: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_maker() as session:
                async with session.begin():
                    yield session
        except SQLAlchemyError as exc:
            raise PersistenceError(f"{operation} failed: {exc}") from exc

    # Reads

    async def load_profiles(self) -> List[ProfileRecord]:
        async with self._transaction("load profiles") as session:
            result = await session.execute(select(Profile).order_by(Profile.id))
            return [_profile_record(row) for row in result.scalars().all()]

    async def load_submissions(self) -> List[SubmissionRecord]:
        """All submissions with their nested feedback."""
        async with self._transaction("load submissions") as session:
            q = (
                select(Submission)
                .options(selectinload(Submission.feedback))
                .order_by(Submission.submission_date, Submission.id)
            )
            result = await session.execute(q)
            return [_submission_record(row) for row in result.scalars().all()]

    async def load_snapshot(self) -> Snapshot:
        """Full re-fetch of both collections."""
        profiles = await self.load_profiles()
        submissions = await self.load_submissions()
        return Snapshot(
            profiles={p.id: p for p in profiles},
            submissions=submissions,
        )

    async def get_profile(self, profile_id: str) -> ProfileRecord:
        async with self._transaction("load profile") as session:
            row = await session.get(Profile, profile_id)
            if row is None:
                raise NotFoundError(f"Profile {profile_id} not found")
            return _profile_record(row)

    async def get_submission(self, submission_id: str) -> SubmissionRecord:
        async with self._transaction("load submission") as session:
            q = (
                select(Submission)
                .options(selectinload(Submission.feedback))
                .where(Submission.id == submission_id)
            )
            row = (await session.execute(q)).scalar_one_or_none()
            if row is None:
                raise NotFoundError(f"Submission {submission_id} not found")
            return _submission_record(row)

    # Writes

    async def create_profile(
        self,
        *,
        name: str,
        email: str,
        role: UserRole = UserRole.STUDENT,
        class_type: Optional[str] = None,
        avatar_url: str = "",
        interior_ref_url: Optional[str] = None,
        exterior_ref_url: Optional[str] = None,
        progress: Optional[Dict[str, List[str]]] = None,
        profile_id: Optional[str] = None,
    ) -> ProfileRecord:
        async with self._transaction("create profile") as session:
            row = Profile(
                full_name=name,
                email=email,
                role=UserRole(role).value,
                class_type=class_type.value if hasattr(class_type, "value") else class_type,
                avatar_url=avatar_url,
                interior_ref_url=interior_ref_url,
                exterior_ref_url=exterior_ref_url,
                progress=progress if progress is not None else {t.value: [] for t in Track},
            )
            if profile_id:
                row.id = profile_id
            session.add(row)
            await session.flush()
            return _profile_record(row)

    async def update_profile(
        self,
        profile_id: str,
        *,
        progress: Optional[Dict[str, List[str]]] = None,
        interior_ref_url: Optional[str] = None,
        exterior_ref_url: Optional[str] = None,
        avatar_url: Optional[str] = None,
    ) -> ProfileRecord:
        """Upsert progress and/or references; omitted fields are left alone."""
        async with self._transaction("update profile") as session:
            row = await session.get(Profile, profile_id)
            if row is None:
                raise NotFoundError(f"Profile {profile_id} not found")
            if progress is not None:
                row.progress = {t.value: list(progress.get(t.value, [])) for t in Track}
            if interior_ref_url is not None:
                row.interior_ref_url = interior_ref_url
            if exterior_ref_url is not None:
                row.exterior_ref_url = exterior_ref_url
            if avatar_url is not None:
                row.avatar_url = avatar_url
            await session.flush()
            return _profile_record(row)

    async def insert_submission(
        self,
        *,
        student_id: str,
        category: str,
        reference_image: str,
        render_image: str,
        week: int,
        message: str = "",
        track: Optional[Track] = None,
        submission_date: Optional[datetime] = None,
        status: SubmissionStatus = SubmissionStatus.PENDING,
    ) -> SubmissionRecord:
        async with self._transaction("insert submission") as session:
            row = Submission(
                student_id=student_id,
                student_message=message,
                week=week,
                category=getattr(category, "value", category),
                reference_image=reference_image,
                render_image=render_image,
                track=Track(track).value if track else None,
                status=SubmissionStatus(status).value,
                submission_date=submission_date or utcnow(),
            )
            session.add(row)
            await session.flush()
            return _submission_record(row, feedback=[])

    async def insert_feedback(
        self,
        *,
        submission_id: str,
        teacher_id: str,
        feedback_type: FeedbackType,
        message: str,
    ) -> FeedbackRecord:
        async with self._transaction("insert feedback") as session:
            if await session.get(Submission, submission_id) is None:
                raise NotFoundError(f"Submission {submission_id} not found")
            row = Feedback(
                submission_id=submission_id,
                teacher_id=teacher_id,
                type=FeedbackType(feedback_type).value,
                message=message,
                created_at=utcnow(),
            )
            session.add(row)
            await session.flush()
            return _feedback_record(row)

    async def update_submission_status(self, submission_id: str, status: SubmissionStatus) -> None:
        async with self._transaction("update submission status") as session:
            row = await session.get(Submission, submission_id)
            if row is None:
                raise NotFoundError(f"Submission {submission_id} not found")
            row.status = SubmissionStatus(status).value
