"""
FastAPI dependencies for the record store, the studio service and the
acting profile.

Authentication happens upstream; the gateway forwards the authenticated
profile id in the configured actor header.
"""

from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from atelier.config import get_settings
from atelier.kernel.errors import NotFoundError
from atelier.kernel.models.profile import UserRole
from atelier.kernel.store import RecordStore
from atelier.orchestration.studio_service import StudioService
from atelier.schemas.records import ProfileRecord


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """Session factory for the configured database (overridden in tests)."""
    from atelier.database import async_session_maker

    return async_session_maker


def get_store(
    session_maker: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_maker)],
) -> RecordStore:
    return RecordStore(session_maker)


Store = Annotated[RecordStore, Depends(get_store)]


def get_service(store: Store) -> StudioService:
    return StudioService(store)


Service = Annotated[StudioService, Depends(get_service)]


async def get_current_actor(request: Request, store: Store) -> ProfileRecord:
    """Profile of the caller, or 401."""
    header = get_settings().actor_header
    actor_id: Optional[str] = request.headers.get(header)
    if not actor_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    try:
        return await store.get_profile(actor_id)
    except NotFoundError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Profile not found",
        )


CurrentActor = Annotated[ProfileRecord, Depends(get_current_actor)]


async def require_teacher(actor: CurrentActor) -> ProfileRecord:
    """Require the caller to be a reviewer."""
    if actor.role != UserRole.TEACHER:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Teacher access required",
        )
    return actor


TeacherActor = Annotated[ProfileRecord, Depends(require_teacher)]


def require_self_or_teacher(actor: ProfileRecord, student_id: str) -> None:
    """Students may only act on their own record."""
    if actor.role != UserRole.TEACHER and actor.id != student_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not allowed to act for another student",
        )
