"""Community feed endpoints."""

from typing import List

from fastapi import APIRouter

from atelier.api.deps import CurrentActor, Service
from atelier.engines.submissions.feed import Cohort, default_cohort
from atelier.orchestration.studio_service import FeedPosition
from atelier.schemas.api import NavigateRequest, OpenChainRequest
from atelier.schemas.records import SubmissionRecord

router = APIRouter()


@router.get("/feed", response_model=List[List[SubmissionRecord]])
async def get_default_feed(actor: CurrentActor, service: Service):
    """Feed of the caller's own class cohort."""
    return await service.cohort_feed(default_cohort(actor))


@router.get("/feed/{cohort}", response_model=List[List[SubmissionRecord]])
async def get_feed(cohort: Cohort, actor: CurrentActor, service: Service):
    """Version chains of a cohort, most recent activity first."""
    return await service.cohort_feed(cohort)


@router.post("/feed/{cohort}/navigate", response_model=FeedPosition)
async def navigate_feed(cohort: Cohort, data: NavigateRequest, actor: CurrentActor, service: Service):
    """Move from the given chain to the previous or next one in the feed."""
    return await service.navigate(
        cohort,
        data.student_id,
        data.step,
        data.reference_image,
        data.direction,
    )


@router.post("/feed/{cohort}/open", response_model=FeedPosition)
async def open_chain(cohort: Cohort, data: OpenChainRequest, actor: CurrentActor, service: Service):
    """Show one chain of the feed, at its latest or a chosen version."""
    return await service.open_chain(
        cohort,
        data.student_id,
        data.step,
        data.reference_image,
        data.version_index,
    )
