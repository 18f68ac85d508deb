"""
Progression store - per-student, per-track unlocked steps (store-backed).

Every mutation reads the current profile, changes one track's set and
persists the full progress object for that student.
"""

from atelier.engines.progression.progress_set import StudentProgress
from atelier.kernel.errors import PersistenceError
from atelier.kernel.models.profile import Track, UserRole
from atelier.kernel.store import RecordStore
from atelier.logging_config import get_logger
from atelier.pedagogy.curriculum import Curriculum, Step
from atelier.schemas.records import ProfileRecord

logger = get_logger(__name__)


def heal_first_step(progress: StudentProgress, profile: ProfileRecord) -> bool:
    """
    Ensure the curriculum's first step is unlocked on both tracks.

    Only applies to onboarded students with a class. Returns True if
    anything was added.
    """
    if profile.role != UserRole.STUDENT or profile.class_type is None or not profile.onboarded:
        return False
    first = Curriculum.first_step(profile.class_type)
    changed = False
    for track in Track:
        changed = progress.track(track).add(first) or changed
    return changed


def needs_onboarding(profile: ProfileRecord) -> bool:
    """Students stay in onboarding until both track references are set."""
    return profile.role == UserRole.STUDENT and not profile.onboarded


def with_progress(profile: ProfileRecord, progress: StudentProgress) -> ProfileRecord:
    """Copy of the profile carrying `progress`."""
    return ProfileRecord.model_validate({**profile.model_dump(), "progress": progress.to_json()})


class ProgressionStore:
    """
    Unlock state for students' tracks.

    Usage:
        progression = ProgressionStore(store)
        await progression.unlock(student_id, Track.INTERIOR, Step.SCENE_SETUP)
    """

    def __init__(self, store: RecordStore):
        self.store = store

    async def get_progress(self, student_id: str) -> StudentProgress:
        profile = await self.store.get_profile(student_id)
        return StudentProgress.from_json(profile.progress)

    async def is_unlocked(self, student_id: str, track: Track, step: Step) -> bool:
        progress = await self.get_progress(student_id)
        return step in progress.track(track)

    async def unlock(self, student_id: str, track: Track, step: Step) -> StudentProgress:
        """Add a step; no write when it is already unlocked."""
        progress = await self.get_progress(student_id)
        if not progress.track(track).add(step):
            return progress
        await self.store.update_profile(student_id, progress=progress.to_json())
        logger.info(
            "Step unlocked",
            extra={"student_id": student_id, "track": Track(track).value, "step": Step(step).value},
        )
        return progress

    async def toggle(self, student_id: str, track: Track, step: Step) -> StudentProgress:
        """Reviewer override: lock if unlocked, unlock otherwise."""
        progress = await self.get_progress(student_id)
        now_unlocked = progress.track(track).toggle(step)
        await self.store.update_profile(student_id, progress=progress.to_json())
        logger.info(
            "Step lock toggled",
            extra={
                "student_id": student_id,
                "track": Track(track).value,
                "step": Step(step).value,
                "unlocked": now_unlocked,
            },
        )
        return progress

    async def reconcile(self, profile: ProfileRecord) -> ProfileRecord:
        """
        Self-heal on load: unlock the first step on both tracks if missing.

        The healed record is returned even when the write fails; the failure
        is logged and not retried.
        """
        progress = StudentProgress.from_json(profile.progress)
        if not heal_first_step(progress, profile):
            return profile

        healed = with_progress(profile, progress)
        try:
            await self.store.update_profile(profile.id, progress=progress.to_json())
        except PersistenceError:
            logger.exception("Auto-unlock error", extra={"student_id": profile.id})
        return healed
