"""
System smoke test: full API flow in-process with SQLite.
Verifies health, onboarding, submission, review, the cohort feed and the
failure notices returned when the store is down.
Uses a temp file DB per test so all connections share the same database.
"""

from typing import AsyncGenerator, Callable
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from atelier.api.deps import get_session_maker, get_store
from atelier.database import create_engine, create_session_maker, init_db
from atelier.kernel.errors import PersistenceError
from atelier.kernel.models import Track, UserRole
from atelier.kernel.store import RecordStore
from atelier.main import app
from atelier.pedagogy.curriculum import ClassType

INTERIOR_REF = "https://img.example.com/house-interior.jpg"
EXTERIOR_REF = "https://img.example.com/house-exterior.jpg"
TEACHER = {"X-User-ID": "t1"}
STUDENT = {"X-User-ID": "m1"}


@pytest_asyncio.fixture
async def session_maker(tmp_path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Seeded SQLite file: one teacher, two master students."""
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'smoke.db'}")
    await init_db(engine)
    maker = create_session_maker(engine)

    store = RecordStore(maker)
    await store.create_profile(
        profile_id="t1", name="Master Instructor", email="t1@example.com", role=UserRole.TEACHER
    )
    await store.create_profile(
        profile_id="m1", name="Liam Kyaw", email="m1@example.com", class_type=ClassType.MASTER_CLASS
    )
    await store.create_profile(
        profile_id="m2", name="Sophia Chen", email="m2@example.com", class_type=ClassType.MASTER_CLASS
    )

    yield maker

    await engine.dispose()


@pytest_asyncio.fixture
async def client(session_maker) -> AsyncGenerator[AsyncClient, None]:
    """Async client with the test DB."""
    app.dependency_overrides[get_session_maker] = lambda: session_maker
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as ac:
            yield ac
    finally:
        app.dependency_overrides.pop(get_session_maker, None)
        app.dependency_overrides.pop(get_store, None)


@pytest.fixture
def fail_store_writes(session_maker) -> Callable[..., RecordStore]:
    """Make the named store operations raise PersistenceError for later requests."""

    def install(*operations: str) -> RecordStore:
        store = RecordStore(session_maker)
        for operation in operations:
            setattr(store, operation, AsyncMock(side_effect=PersistenceError(f"{operation} failed")))
        app.dependency_overrides[get_store] = lambda: store
        return store

    return install


async def _onboard(client: AsyncClient, student: str = "m1") -> None:
    r = await client.put(
        f"/api/v1/profiles/{student}/references",
        json={"interior_ref_url": f"{INTERIOR_REF}?{student}", "exterior_ref_url": f"{EXTERIOR_REF}?{student}"},
        headers={"X-User-ID": student},
    )
    assert r.status_code == 200, r.text


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    """Health endpoint responds."""
    r = await client.get("/health")
    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "ok"
    assert "version" in data


@pytest.mark.asyncio
async def test_request_id_header(client: AsyncClient):
    r = await client.get("/health", headers={"X-Request-ID": "abc-123"})
    assert r.headers["X-Request-ID"] == "abc-123"


@pytest.mark.asyncio
async def test_actor_required(client: AsyncClient):
    r = await client.get("/api/v1/profiles/m1")
    assert r.status_code == 401
    r = await client.get("/api/v1/profiles/m1", headers={"X-User-ID": "ghost"})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_students_cannot_read_each_other(client: AsyncClient):
    r = await client.get("/api/v1/profiles/m2", headers=STUDENT)
    assert r.status_code == 403
    r = await client.get("/api/v1/profiles/m2", headers=TEACHER)
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_class_info(client: AsyncClient):
    r = await client.get("/api/v1/classes/VIZ_CLASS", headers=STUDENT)
    assert r.status_code == 200
    data = r.json()
    assert data["title"] == "VIZ CLASS"
    assert [s["step"] for s in data["steps"]] == ["COLOR_RENDERING", "SHADERS", "POSTPRODUCTION"]
    assert data["steps"][0]["name"] == "Color Rendering"


@pytest.mark.asyncio
async def test_full_flow(client: AsyncClient):
    """Onboard -> submit -> reject -> resubmit -> approve -> next step unlocked."""
    # Submitting before onboarding is blocked
    r = await client.post(
        "/api/v1/submissions",
        json={"student_id": "m1", "track": "INTERIOR", "files": ["r0.jpg"]},
        headers=STUDENT,
    )
    assert r.status_code == 400, r.text

    # Onboarding
    r = await client.put(
        "/api/v1/profiles/m1/references",
        json={"interior_ref_url": INTERIOR_REF, "exterior_ref_url": EXTERIOR_REF},
        headers=STUDENT,
    )
    assert r.status_code == 200, r.text
    profile = r.json()
    assert profile["interiorRefUrl"] == INTERIOR_REF
    assert profile["progress"]["INTERIOR"] == ["BOX_MODELING"]

    r = await client.get("/api/v1/profiles/m1/tracks/INTERIOR/next-step", headers=STUDENT)
    assert r.json() == {"track": "INTERIOR", "step": "BOX_MODELING", "is_resubmission": False}

    # First version
    r = await client.post(
        "/api/v1/submissions",
        json={"student_id": "m1", "track": "INTERIOR", "files": ["r1.jpg"], "message": "Blockout"},
        headers=STUDENT,
    )
    assert r.status_code == 201, r.text
    first = r.json()[0]
    assert first["week"] == 1
    assert first["status"] == "PENDING"

    # Students cannot review
    r = await client.post(
        f"/api/v1/submissions/{first['id']}/review",
        json={"outcome": "APPROVE"},
        headers=STUDENT,
    )
    assert r.status_code == 403

    r = await client.post(
        f"/api/v1/submissions/{first['id']}/review",
        json={"outcome": "REJECT", "message": "Check the scale."},
        headers=TEACHER,
    )
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "REJECTED"

    # Decided versions are terminal
    r = await client.post(
        f"/api/v1/submissions/{first['id']}/review",
        json={"outcome": "APPROVE"},
        headers=TEACHER,
    )
    assert r.status_code == 409

    r = await client.get("/api/v1/profiles/m1/tracks/INTERIOR/next-step", headers=STUDENT)
    assert r.json()["is_resubmission"] is True

    # Second version
    r = await client.post(
        "/api/v1/submissions",
        json={"student_id": "m1", "track": "INTERIOR", "files": ["r2.jpg"]},
        headers=STUDENT,
    )
    second = r.json()[0]
    assert second["week"] == 2

    r = await client.post(
        f"/api/v1/submissions/{second['id']}/review",
        json={"outcome": "APPROVE"},
        headers=TEACHER,
    )
    assert r.status_code == 200, r.text
    review = r.json()
    assert review["unlocked_step"] == "SCENE_SETUP"
    assert review["track"] == Track.INTERIOR.value
    assert review["feedback"]["message"] == "Great work!"

    r = await client.get("/api/v1/profiles/m1/tracks/INTERIOR/steps", headers=STUDENT)
    assert [(row["step"], row["status"]) for row in r.json()] == [
        ("BOX_MODELING", "APPROVED"),
        ("SCENE_SETUP", "AVAILABLE"),
    ]

    # Version chain
    r = await client.get(
        "/api/v1/submissions/chain",
        params={"student_id": "m1", "step": "BOX_MODELING", "reference_image": INTERIOR_REF},
        headers=STUDENT,
    )
    assert [s["renderImage"] for s in r.json()] == ["r1.jpg", "r2.jpg"]

    # Cohort feed
    r = await client.get("/api/v1/feed/MASTER", headers=STUDENT)
    assert r.status_code == 200
    feed = r.json()
    assert len(feed) == 1
    assert [s["week"] for s in feed[0]] == [1, 2]

    r = await client.get("/api/v1/feed/VIZ", headers=STUDENT)
    assert r.json() == []


@pytest.mark.asyncio
async def test_submit_for_someone_else(client: AsyncClient):
    r = await client.post(
        "/api/v1/submissions",
        json={"student_id": "m2", "track": "INTERIOR", "files": ["x.jpg"]},
        headers=STUDENT,
    )
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_toggle_and_roster_are_teacher_only(client: AsyncClient):
    r = await client.post("/api/v1/profiles/m1/tracks/EXTERIOR/steps/SCENE_SETUP/toggle", headers=STUDENT)
    assert r.status_code == 403

    r = await client.post("/api/v1/profiles/m1/tracks/EXTERIOR/steps/SCENE_SETUP/toggle", headers=TEACHER)
    assert r.status_code == 200, r.text
    assert "SCENE_SETUP" in r.json()["progress"]["EXTERIOR"]

    r = await client.get("/api/v1/classes/MASTER_CLASS/roster", headers=TEACHER)
    assert r.status_code == 200
    assert [e["profile"]["id"] for e in r.json()] == ["m1", "m2"]
    assert r.json()[0]["unlocked"] == {"INTERIOR": 0, "EXTERIOR": 1}


@pytest.mark.asyncio
async def test_navigate_feed(client: AsyncClient):
    for student, headers in (("m1", STUDENT), ("m2", {"X-User-ID": "m2"})):
        await client.put(
            f"/api/v1/profiles/{student}/references",
            json={"interior_ref_url": f"{INTERIOR_REF}?{student}", "exterior_ref_url": f"{EXTERIOR_REF}?{student}"},
            headers=headers,
        )
        r = await client.post(
            "/api/v1/submissions",
            json={"student_id": student, "track": "INTERIOR", "files": [f"{student}.jpg"]},
            headers=headers,
        )
        assert r.status_code == 201, r.text

    # m2 submitted last, so its chain leads the feed
    r = await client.post(
        "/api/v1/feed/MASTER/navigate",
        json={
            "student_id": "m2",
            "step": "BOX_MODELING",
            "reference_image": f"{INTERIOR_REF}?m2",
            "direction": "next",
        },
        headers=TEACHER,
    )
    assert r.status_code == 200, r.text
    position = r.json()
    assert position["index"] == 1
    assert position["total"] == 2
    assert position["chain"][0]["studentId"] == "m1"

    r = await client.post(
        "/api/v1/feed/MASTER/navigate",
        json={
            "student_id": "m2",
            "step": "SCENE_SETUP",
            "reference_image": f"{INTERIOR_REF}?m2",
            "direction": "next",
        },
        headers=TEACHER,
    )
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_default_feed_follows_class(client: AsyncClient):
    r = await client.get("/api/v1/feed", headers=STUDENT)
    assert r.status_code == 200
    assert r.json() == []


@pytest.mark.asyncio
async def test_update_avatar(client: AsyncClient):
    r = await client.put("/api/v1/profiles/m1/avatar", json={"avatar_url": "https://img.example.com/me.png"}, headers=STUDENT)
    assert r.status_code == 200, r.text
    assert r.json()["avatarUrl"] == "https://img.example.com/me.png"

    r = await client.put("/api/v1/profiles/m2/avatar", json={"avatar_url": "https://img.example.com/x.png"}, headers=STUDENT)
    assert r.status_code == 403

    r = await client.put("/api/v1/profiles/m2/avatar", json={"avatar_url": "https://img.example.com/x.png"}, headers=TEACHER)
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_submit_to_step_outside_class(client: AsyncClient):
    await _onboard(client)
    r = await client.post(
        "/api/v1/submissions",
        json={"student_id": "m1", "track": "INTERIOR", "files": ["x.jpg"], "step": "SHADERS"},
        headers=STUDENT,
    )
    assert r.status_code == 400
    r = await client.get("/api/v1/feed/MASTER", headers=STUDENT)
    assert r.json() == []


@pytest.mark.asyncio
async def test_open_chain_at_older_version(client: AsyncClient):
    await _onboard(client)
    r = await client.post(
        "/api/v1/submissions",
        json={"student_id": "m1", "track": "INTERIOR", "files": ["v1.jpg", "v2.jpg", "v3.jpg"]},
        headers=STUDENT,
    )
    assert r.status_code == 201, r.text
    chain_key = {"student_id": "m1", "step": "BOX_MODELING", "reference_image": f"{INTERIOR_REF}?m1"}

    r = await client.post("/api/v1/feed/MASTER/open", json=chain_key, headers=TEACHER)
    assert r.status_code == 200, r.text
    assert r.json()["version_index"] == 2
    assert r.json()["current"]["renderImage"] == "v3.jpg"

    r = await client.post("/api/v1/feed/MASTER/open", json={**chain_key, "version_index": 0}, headers=TEACHER)
    assert r.json()["version_index"] == 0
    assert r.json()["current"]["renderImage"] == "v1.jpg"

    r = await client.post("/api/v1/feed/MASTER/open", json={**chain_key, "version_index": 9}, headers=TEACHER)
    assert r.json()["current"]["renderImage"] == "v3.jpg"


@pytest.mark.asyncio
async def test_submit_failure_notice(client: AsyncClient, fail_store_writes):
    await _onboard(client)
    fail_store_writes("insert_submission")

    r = await client.post(
        "/api/v1/submissions",
        json={"student_id": "m1", "track": "INTERIOR", "files": ["r1.jpg"]},
        headers=STUDENT,
    )
    assert r.status_code == 503
    assert r.json()["detail"] == "Failed to submit assignment."


@pytest.mark.asyncio
async def test_profile_update_failure_notice(client: AsyncClient, fail_store_writes):
    fail_store_writes("update_profile")

    r = await client.put(
        "/api/v1/profiles/m1/references",
        json={"interior_ref_url": INTERIOR_REF, "exterior_ref_url": EXTERIOR_REF},
        headers=STUDENT,
    )
    assert r.status_code == 503
    assert r.json()["detail"] == "Failed to update profile."

    r = await client.put("/api/v1/profiles/m1/avatar", json={"avatar_url": "https://img.example.com/me.png"}, headers=STUDENT)
    assert r.status_code == 503
    assert r.json()["detail"] == "Failed to update profile."


@pytest.mark.asyncio
async def test_review_failure_notice(client: AsyncClient, fail_store_writes):
    await _onboard(client)
    r = await client.post(
        "/api/v1/submissions",
        json={"student_id": "m1", "track": "INTERIOR", "files": ["r1.jpg"]},
        headers=STUDENT,
    )
    submission_id = r.json()[0]["id"]
    fail_store_writes("insert_feedback")

    r = await client.post(
        f"/api/v1/submissions/{submission_id}/review",
        json={"outcome": "APPROVE"},
        headers=TEACHER,
    )
    assert r.status_code == 503
    assert r.json()["detail"] == "Failed to record review."

    app.dependency_overrides.pop(get_store, None)
    r = await client.get(
        "/api/v1/submissions/chain",
        params={"student_id": "m1", "step": "BOX_MODELING", "reference_image": f"{INTERIOR_REF}?m1"},
        headers=STUDENT,
    )
    assert r.json()[0]["status"] == "PENDING"
    assert r.json()[0]["feedback"] == []
