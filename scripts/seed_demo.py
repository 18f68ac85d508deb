"""Seed a demo cohort: one teacher, master and viz students, a few submissions."""

import asyncio
from datetime import datetime, timezone

from atelier.config import get_settings
from atelier.database import async_session_maker, close_db, init_db
from atelier.kernel.errors import PersistenceError
from atelier.kernel.models import FeedbackType, SubmissionStatus, Track, UserRole
from atelier.kernel.store import RecordStore
from atelier.logging_config import configure_logging, get_logger
from atelier.pedagogy.curriculum import ClassType, Step

logger = get_logger("seed_demo")

AVATAR = "https://api.dicebear.com/7.x/avataaars/svg?seed={}"
INTERIOR_REF = "https://images.unsplash.com/photo-1616486338812-3dadae4b4f9d?q=80&w=2000"
EXTERIOR_REF = "https://images.unsplash.com/photo-1564013799919-ab600027ffc6?q=80&w=2000"

STUDENTS = [
    ("m1", "Liam Kyaw", "liam.m@rta.edu", ClassType.MASTER_CLASS, [Step.BOX_MODELING, Step.SCENE_SETUP]),
    ("m2", "Sophia Chen", "sophia.m@rta.edu", ClassType.MASTER_CLASS, [Step.BOX_MODELING]),
    ("m3", "Noah Kim", "noah.m@rta.edu", ClassType.MASTER_CLASS, [Step.BOX_MODELING]),
    ("v1", "Thandar Htun", "thandar.v@rta.edu", ClassType.VIZ_CLASS, [Step.COLOR_RENDERING]),
    ("v2", "Oliver Brown", "oliver.v@rta.edu", ClassType.VIZ_CLASS, [Step.COLOR_RENDERING]),
]


def _date(day: int) -> datetime:
    return datetime(2023, 10, day, 12, 0, tzinfo=timezone.utc)


async def seed(store: RecordStore) -> None:
    teacher = await store.create_profile(
        profile_id="t1",
        name="Master Instructor",
        email="instructor@rta.edu",
        role=UserRole.TEACHER,
        avatar_url=AVATAR.format("Instructor"),
    )

    for profile_id, name, email, class_type, interior_steps in STUDENTS:
        onboarded = profile_id != "v1"
        await store.create_profile(
            profile_id=profile_id,
            name=name,
            email=email,
            class_type=class_type,
            avatar_url=AVATAR.format(name.split()[0]),
            interior_ref_url=f"{INTERIOR_REF}&u={profile_id}" if onboarded else None,
            exterior_ref_url=f"{EXTERIOR_REF}&u={profile_id}" if onboarded else None,
            progress={
                Track.INTERIOR.value: [s.value for s in interior_steps],
                Track.EXTERIOR.value: [interior_steps[0].value],
            },
        )

    rejected = await store.insert_submission(
        student_id="m2",
        category=Step.BOX_MODELING,
        reference_image=f"{INTERIOR_REF}&u=m2",
        render_image="https://images.unsplash.com/photo-1600607687939-ce8a6c25118c?q=80&w=2666",
        week=1,
        message="Initial blockout of the scene.",
        track=Track.INTERIOR,
        submission_date=_date(25),
        status=SubmissionStatus.REJECTED,
    )
    await store.insert_feedback(
        submission_id=rejected.id,
        teacher_id=teacher.id,
        feedback_type=FeedbackType.REJECT,
        message="Proportions on the main massing are off. Check the height relative to the human scale.",
    )
    await store.insert_submission(
        student_id="m2",
        category=Step.BOX_MODELING,
        reference_image=f"{INTERIOR_REF}&u=m2",
        render_image="https://images.unsplash.com/photo-1600566753190-17f0baa2a6c3?q=80&w=2000",
        week=2,
        message="Fixed proportions.",
        track=Track.INTERIOR,
        submission_date=_date(27),
    )
    await store.insert_submission(
        student_id="m1",
        category=Step.SCENE_SETUP,
        reference_image=f"{INTERIOR_REF}&u=m1",
        render_image="https://images.unsplash.com/photo-1600566753190-17f0baa2a6c3?q=80&w=2000",
        week=1,
        message="Cameras and basic lighting rig.",
        track=Track.INTERIOR,
        submission_date=_date(27),
    )
    approved = await store.insert_submission(
        student_id="v2",
        category=Step.COLOR_RENDERING,
        reference_image=f"{INTERIOR_REF}&u=v2",
        render_image="https://images.unsplash.com/photo-1600210492486-724fe5c67fb0?q=80&w=2574",
        week=1,
        message="Testing color palettes.",
        track=Track.INTERIOR,
        submission_date=_date(28),
        status=SubmissionStatus.APPROVED,
    )
    await store.insert_feedback(
        submission_id=approved.id,
        teacher_id=teacher.id,
        feedback_type=FeedbackType.APPROVE,
        message="Excellent warmth in the highlights.",
    )


async def main() -> None:
    settings = get_settings()
    configure_logging(log_level=settings.log_level, environment=settings.environment)
    await init_db()
    try:
        await seed(RecordStore(async_session_maker))
        logger.info("Demo data seeded")
    except PersistenceError as exc:
        logger.error("Seeding failed (already seeded?): %s", exc)
    finally:
        await close_db()


if __name__ == "__main__":
    asyncio.run(main())
