"""Submission and review endpoints."""

from typing import List

from fastapi import APIRouter, HTTPException, status

from atelier.api.deps import CurrentActor, Service, TeacherActor, require_self_or_teacher
from atelier.kernel.errors import PersistenceError
from atelier.orchestration.review_state_machine import ReviewResult
from atelier.pedagogy.curriculum import Step
from atelier.schemas.api import ReviewCreate, SubmissionCreate
from atelier.schemas.records import SubmissionRecord

router = APIRouter()


@router.post("/submissions", response_model=List[SubmissionRecord], status_code=status.HTTP_201_CREATED)
async def submit(data: SubmissionCreate, actor: CurrentActor, service: Service):
    """Submit renders; each file becomes the next version of the chain."""
    if actor.id != data.student_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Students submit their own work only",
        )
    try:
        return await service.submit(
            data.student_id,
            data.track,
            data.files,
            data.message,
            step=data.step,
        )
    except PersistenceError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Failed to submit assignment.",
        )


@router.get("/submissions/chain", response_model=List[SubmissionRecord])
async def get_chain(
    student_id: str,
    step: Step,
    reference_image: str,
    actor: CurrentActor,
    service: Service,
):
    """All versions of one (student, step, reference image) chain, oldest first."""
    return await service.version_chain(student_id, step, reference_image)


@router.post("/submissions/{submission_id}/review", response_model=ReviewResult)
async def review_submission(
    submission_id: str,
    data: ReviewCreate,
    actor: TeacherActor,
    service: Service,
):
    """Approve or reject one version."""
    try:
        return await service.review(submission_id, actor.id, data.outcome, data.message)
    except PersistenceError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Failed to record review.",
        )
