"""Profile, onboarding and progression endpoints."""

from typing import List

from fastapi import APIRouter, HTTPException, status

from atelier.api.deps import CurrentActor, Service, TeacherActor, require_self_or_teacher
from atelier.engines.submissions.projection import StepProjection
from atelier.kernel.errors import PersistenceError
from atelier.kernel.models.profile import Track
from atelier.logging_config import get_logger
from atelier.pedagogy.curriculum import Step
from atelier.schemas.api import AvatarUpdate, NextStepResponse, TrackReferencesUpdate, TrackReferenceUpdate
from atelier.schemas.records import ProfileRecord

router = APIRouter()
logger = get_logger(__name__)

PROFILE_UPDATE_FAILED = "Failed to update profile."


@router.get("/profiles/{profile_id}", response_model=ProfileRecord)
async def get_profile(profile_id: str, actor: CurrentActor, service: Service):
    """Load a profile (unlocks the first step if onboarding left it locked)."""
    require_self_or_teacher(actor, profile_id)
    return await service.load_profile(profile_id)


@router.put("/profiles/{profile_id}/references", response_model=ProfileRecord)
async def save_references(
    profile_id: str,
    data: TrackReferencesUpdate,
    actor: CurrentActor,
    service: Service,
):
    """Onboarding: store the reference image of one or both tracks."""
    require_self_or_teacher(actor, profile_id)
    try:
        return await service.save_track_references(
            profile_id,
            interior_ref_url=data.interior_ref_url,
            exterior_ref_url=data.exterior_ref_url,
        )
    except PersistenceError:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=PROFILE_UPDATE_FAILED)


@router.put("/profiles/{profile_id}/references/{track}", response_model=ProfileRecord)
async def edit_reference(
    profile_id: str,
    track: Track,
    data: TrackReferenceUpdate,
    actor: CurrentActor,
    service: Service,
):
    """Replace one track's reference image."""
    require_self_or_teacher(actor, profile_id)
    try:
        return await service.edit_track_reference(profile_id, track, data.image)
    except PersistenceError:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=PROFILE_UPDATE_FAILED)


@router.put("/profiles/{profile_id}/avatar", response_model=ProfileRecord)
async def update_avatar(
    profile_id: str,
    data: AvatarUpdate,
    actor: CurrentActor,
    service: Service,
):
    """Replace the profile picture."""
    require_self_or_teacher(actor, profile_id)
    try:
        return await service.update_avatar(profile_id, data.avatar_url)
    except PersistenceError:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=PROFILE_UPDATE_FAILED)


@router.get("/profiles/{profile_id}/tracks/{track}/steps", response_model=List[StepProjection])
async def get_step_projection(profile_id: str, track: Track, actor: CurrentActor, service: Service):
    """Per-step status of one track, in curriculum order."""
    require_self_or_teacher(actor, profile_id)
    return await service.get_step_projection(profile_id, track)


@router.get("/profiles/{profile_id}/tracks/{track}/next-step", response_model=NextStepResponse)
async def get_next_step(profile_id: str, track: Track, actor: CurrentActor, service: Service):
    """Step the next submission on this track goes to."""
    require_self_or_teacher(actor, profile_id)
    step = await service.detect_submit_step(profile_id, track)
    resubmission = step is not None and await service.is_resubmission(profile_id, track, step)
    return NextStepResponse(track=track, step=step, is_resubmission=resubmission)


@router.post("/profiles/{profile_id}/tracks/{track}/steps/{step}/toggle", response_model=ProfileRecord)
async def toggle_step_lock(
    profile_id: str,
    track: Track,
    step: Step,
    actor: TeacherActor,
    service: Service,
):
    """Reviewer override: lock an unlocked step or unlock a locked one."""
    try:
        return await service.toggle_lock(profile_id, track, step)
    except PersistenceError:
        logger.exception("Toggle lock failed", extra={"student_id": profile_id, "step": step.value})
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=PROFILE_UPDATE_FAILED)
