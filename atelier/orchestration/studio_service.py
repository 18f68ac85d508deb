"""
Studio service - the operations the presentation layer calls.

Each operation reads a fresh snapshot, computes, then writes. Nothing is
cached between calls; callers re-fetch after a successful write.
"""

from typing import Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel

from atelier.engines.progression.progress_set import StudentProgress
from atelier.engines.progression.progression_store import (
    ProgressionStore,
    heal_first_step,
    needs_onboarding,
)
from atelier.engines.submissions import navigation
from atelier.engines.submissions.feed import Cohort, cohort_filter
from atelier.engines.submissions.navigation import Direction, FeedCursor
from atelier.engines.submissions.ordering import SubmissionFilter, grouped_feed, version_chain
from atelier.engines.submissions.projection import (
    StepProjection,
    detect_submit_step,
    project_steps,
)
from atelier.engines.submissions.repository import SubmissionRepository
from atelier.kernel.errors import NotFoundError, PersistenceError, ValidationError
from atelier.kernel.models.profile import Track, UserRole
from atelier.kernel.store import RecordStore
from atelier.logging_config import get_logger
from atelier.orchestration.review_state_machine import ReviewOutcome, ReviewResult, ReviewStateMachine
from atelier.pedagogy.curriculum import ClassType, Curriculum, Step
from atelier.schemas.records import ProfileRecord, Snapshot, SubmissionRecord

logger = get_logger(__name__)


class FeedPosition(BaseModel):
    """Where a cursor sits in a cohort feed, with the chain it shows."""

    filter_key: str
    index: int
    version_index: int
    total: int
    chain: List[SubmissionRecord]
    current: Optional[SubmissionRecord] = None


class RosterEntry(BaseModel):
    """One student row on the reviewer dashboard."""

    profile: ProfileRecord
    unlocked: Dict[Track, int]
    needs_onboarding: bool


class StudioService:
    """
    Core operations over the record store.

    Usage:
        service = StudioService(store)
        rows = await service.get_step_projection(student_id, Track.INTERIOR)
        await service.submit(student_id, Track.INTERIOR, [render_url], "First pass")
    """

    def __init__(self, store: RecordStore):
        self.store = store
        self.progression = ProgressionStore(store)
        self.repository = SubmissionRepository(store)
        self.reviews = ReviewStateMachine(store, self.repository, self.progression)

    async def _snapshot_with(self, profile_id: str) -> Tuple[Snapshot, ProfileRecord]:
        snapshot = await self.store.load_snapshot()
        profile = snapshot.profile(profile_id)
        if profile is None:
            raise NotFoundError(f"Profile {profile_id} not found")
        return snapshot, profile

    # Profiles

    async def load_profile(self, profile_id: str) -> ProfileRecord:
        """Load a profile and run the first-step reconciliation on it."""
        profile = await self.store.get_profile(profile_id)
        return await self.progression.reconcile(profile)

    async def save_track_references(
        self,
        student_id: str,
        interior_ref_url: Optional[str] = None,
        exterior_ref_url: Optional[str] = None,
    ) -> ProfileRecord:
        """
        Onboarding / reference edit. References and the healed progress
        are written together in one profile update.
        """
        if not interior_ref_url and not exterior_ref_url:
            raise ValidationError("No reference image given")

        profile = await self.store.get_profile(student_id)
        candidate = profile.model_copy(
            update={
                "interior_ref_url": interior_ref_url or profile.interior_ref_url,
                "exterior_ref_url": exterior_ref_url or profile.exterior_ref_url,
            }
        )
        progress = StudentProgress.from_json(profile.progress)
        healed = heal_first_step(progress, candidate)

        try:
            updated = await self.store.update_profile(
                student_id,
                interior_ref_url=interior_ref_url,
                exterior_ref_url=exterior_ref_url,
                progress=progress.to_json() if healed else None,
            )
        except PersistenceError:
            logger.exception("Error updating profile refs", extra={"student_id": student_id})
            raise
        logger.info("Track references saved", extra={"student_id": student_id, "healed": healed})
        return updated

    async def edit_track_reference(self, student_id: str, track: Track, new_image: str) -> ProfileRecord:
        if Track(track) == Track.INTERIOR:
            return await self.save_track_references(student_id, interior_ref_url=new_image)
        return await self.save_track_references(student_id, exterior_ref_url=new_image)

    async def update_avatar(self, profile_id: str, avatar_url: str) -> ProfileRecord:
        if not avatar_url:
            raise ValidationError("No avatar image given")
        try:
            updated = await self.store.update_profile(profile_id, avatar_url=avatar_url)
        except PersistenceError:
            logger.exception("Error updating avatar", extra={"profile_id": profile_id})
            raise
        logger.info("Avatar updated", extra={"profile_id": profile_id})
        return updated

    async def toggle_lock(self, student_id: str, track: Track, step: Step) -> ProfileRecord:
        await self.progression.toggle(student_id, track, step)
        return await self.store.get_profile(student_id)

    async def roster(self, class_type: ClassType) -> List[RosterEntry]:
        profiles = await self.store.load_profiles()
        entries = []
        for profile in profiles:
            if profile.role != UserRole.STUDENT or profile.class_type != ClassType(class_type):
                continue
            progress = StudentProgress.from_json(profile.progress)
            entries.append(
                RosterEntry(
                    profile=profile,
                    unlocked={track: len(progress.track(track)) for track in Track},
                    needs_onboarding=needs_onboarding(profile),
                )
            )
        return sorted(entries, key=lambda e: e.profile.name)

    # Projection

    async def get_step_projection(self, student_id: str, track: Track) -> List[StepProjection]:
        snapshot, profile = await self._snapshot_with(student_id)
        return project_steps(profile, track, snapshot.submissions)

    async def detect_submit_step(self, student_id: str, track: Track) -> Optional[Step]:
        return detect_submit_step(await self.get_step_projection(student_id, track))

    async def is_resubmission(self, student_id: str, track: Track, step: Step) -> bool:
        """Whether the chain for this step and track already has a version."""
        snapshot, profile = await self._snapshot_with(student_id)
        reference = profile.reference_for(track)
        if not reference:
            return False
        return bool(version_chain(snapshot.submissions, student_id, Step(step), reference))

    # Submissions

    async def submit(
        self,
        student_id: str,
        track: Track,
        files: Sequence[str],
        message: str = "",
        step: Optional[Step] = None,
    ) -> List[SubmissionRecord]:
        """
        Create one version per uploaded render. Without an explicit step the
        latest unlocked step of the track is used.
        """
        snapshot, profile = await self._snapshot_with(student_id)
        reference = profile.reference_for(track)
        if not reference:
            raise ValidationError(f"No {Track(track).value.lower()} reference image set")
        if not files:
            raise ValidationError("At least one render image is required")

        if step is None:
            step = detect_submit_step(project_steps(profile, track, snapshot.submissions))
            if step is None:
                raise ValidationError("No unlocked step to submit to")
        elif profile.class_type is None or not Curriculum.contains(profile.class_type, step):
            # Lock state is not checked: reviewers may open steps out of order
            raise ValidationError(f"{Step(step).value} is not part of this student's class")

        return await self.repository.insert(
            student_id,
            step,
            track,
            reference,
            list(files),
            message,
            existing=snapshot.submissions,
        )

    async def review(
        self,
        submission_id: str,
        reviewer_id: str,
        outcome: ReviewOutcome,
        message: Optional[str] = None,
    ) -> ReviewResult:
        return await self.reviews.review(submission_id, reviewer_id, outcome, message)

    async def version_chain(self, student_id: str, step: Step, reference_image: str) -> List[SubmissionRecord]:
        submissions = await self.store.load_submissions()
        return version_chain(submissions, student_id, step, reference_image)

    # Feed

    async def grouped_feed(self, predicate: Optional[SubmissionFilter] = None) -> List[List[SubmissionRecord]]:
        submissions = await self.store.load_submissions()
        return grouped_feed(submissions, predicate)

    async def cohort_feed(self, cohort: Cohort) -> List[List[SubmissionRecord]]:
        snapshot = await self.store.load_snapshot()
        return grouped_feed(snapshot.submissions, cohort_filter(snapshot.profiles, cohort))

    async def _open_cursor(
        self,
        cohort: Cohort,
        student_id: str,
        step: Step,
        reference_image: str,
    ) -> Tuple[FeedCursor, List[List[SubmissionRecord]]]:
        # Rebuilt against a fresh feed each call, so a changed filter or new
        # activity never leaves the cursor on the wrong chain
        cohort = Cohort(cohort)
        feed = await self.cohort_feed(cohort)
        chain = version_chain(
            (s for group in feed for s in group),
            student_id,
            step,
            reference_image,
        )
        cursor = navigation.open_group(feed, chain, cohort.value)
        if cursor is None:
            raise NotFoundError("Submission chain is not in this feed")
        return cursor, feed

    async def open_chain(
        self,
        cohort: Cohort,
        student_id: str,
        step: Step,
        reference_image: str,
        version_index: Optional[int] = None,
    ) -> FeedPosition:
        """
        Open a chain in the cohort feed. Shows its latest version unless
        `version_index` picks another one (clamped to the chain).
        """
        cursor, feed = await self._open_cursor(cohort, student_id, step, reference_image)
        if version_index is not None:
            cursor = navigation.select_version(cursor, feed, version_index)
        return _position(cursor, feed)

    async def navigate(
        self,
        cohort: Cohort,
        student_id: str,
        step: Step,
        reference_image: str,
        direction: Direction,
    ) -> FeedPosition:
        """Step from the given chain to its neighbour in the cohort feed."""
        cursor, feed = await self._open_cursor(cohort, student_id, step, reference_image)
        return _position(navigation.step(cursor, feed, direction), feed)


def _position(cursor: FeedCursor, feed: List[List[SubmissionRecord]]) -> FeedPosition:
    return FeedPosition(
        filter_key=cursor.filter_key,
        index=cursor.index,
        version_index=cursor.version_index,
        total=len(feed),
        chain=feed[cursor.index],
        current=navigation.current(cursor, feed),
    )
