"""
Pytest fixtures for Atelier tests.

Each test gets its own SQLite file so every store call (one session per
call) sees the same database.
"""

import os
import tempfile
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Optional

# Point the application at SQLite before anything imports atelier.database
_tmp = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
_tmp.close()
TEST_DB_PATH = _tmp.name
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{TEST_DB_PATH}")

import pytest
import pytest_asyncio

from atelier.database import create_engine, create_session_maker, init_db
from atelier.kernel.models import SubmissionStatus, Track, UserRole
from atelier.kernel.store import RecordStore
from atelier.pedagogy.curriculum import ClassType, Step
from atelier.schemas.records import ProfileRecord, SubmissionRecord

INTERIOR_REF = "https://img.example.com/interior-ref.jpg"
EXTERIOR_REF = "https://img.example.com/exterior-ref.jpg"
BASE_TIME = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


def make_profile(
    profile_id: str = "s1",
    class_type: Optional[ClassType] = ClassType.MASTER_CLASS,
    role: UserRole = UserRole.STUDENT,
    interior: Optional[str] = INTERIOR_REF,
    exterior: Optional[str] = EXTERIOR_REF,
    interior_steps=(),
    exterior_steps=(),
) -> ProfileRecord:
    """In-memory profile for pure computations."""
    return ProfileRecord(
        id=profile_id,
        name=f"Student {profile_id}",
        email=f"{profile_id}@example.com",
        role=role,
        class_type=class_type,
        interior_ref_url=interior,
        exterior_ref_url=exterior,
        progress={
            Track.INTERIOR: [Step(s).value for s in interior_steps],
            Track.EXTERIOR: [Step(s).value for s in exterior_steps],
        },
    )


def make_submission(
    submission_id: str,
    student_id: str = "s1",
    category: Step = Step.BOX_MODELING,
    reference_image: str = INTERIOR_REF,
    minutes: int = 0,
    week: int = 1,
    status: SubmissionStatus = SubmissionStatus.PENDING,
    track: Optional[Track] = None,
) -> SubmissionRecord:
    """In-memory submission `minutes` after BASE_TIME."""
    return SubmissionRecord(
        id=submission_id,
        student_id=student_id,
        week=week,
        category=Step(category).value,
        reference_image=reference_image,
        render_image=f"https://img.example.com/render-{submission_id}.jpg",
        status=status,
        submission_date=BASE_TIME + timedelta(minutes=minutes),
        track=track,
    )


@pytest_asyncio.fixture(scope="function")
async def store(tmp_path) -> AsyncGenerator[RecordStore, None]:
    """Record store over a fresh SQLite file."""
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_db(engine)

    yield RecordStore(create_session_maker(engine))

    await engine.dispose()


@pytest_asyncio.fixture
async def teacher(store: RecordStore) -> ProfileRecord:
    return await store.create_profile(
        profile_id="t1",
        name="Master Instructor",
        email="instructor@example.com",
        role=UserRole.TEACHER,
    )


@pytest_asyncio.fixture
async def master_student(store: RecordStore) -> ProfileRecord:
    """Onboarded MASTER_CLASS student with BOX_MODELING unlocked on both tracks."""
    return await store.create_profile(
        profile_id="m1",
        name="Liam Kyaw",
        email="liam@example.com",
        class_type=ClassType.MASTER_CLASS,
        interior_ref_url=INTERIOR_REF,
        exterior_ref_url=EXTERIOR_REF,
        progress={
            Track.INTERIOR.value: [Step.BOX_MODELING.value],
            Track.EXTERIOR.value: [Step.BOX_MODELING.value],
        },
    )


@pytest_asyncio.fixture
async def viz_student(store: RecordStore) -> ProfileRecord:
    """Onboarded VIZ_CLASS student with COLOR_RENDERING unlocked on both tracks."""
    return await store.create_profile(
        profile_id="v1",
        name="Thandar Htun",
        email="thandar@example.com",
        class_type=ClassType.VIZ_CLASS,
        interior_ref_url=INTERIOR_REF + "?v1",
        exterior_ref_url=EXTERIOR_REF + "?v1",
        progress={
            Track.INTERIOR.value: [Step.COLOR_RENDERING.value],
            Track.EXTERIOR.value: [Step.COLOR_RENDERING.value],
        },
    )


def pytest_sessionfinish(session, exitstatus):
    """Clean up temp DB file after test run."""
    try:
        if os.path.exists(TEST_DB_PATH):
            os.unlink(TEST_DB_PATH)
    except OSError:
        pass
