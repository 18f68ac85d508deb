"""Class curriculum and roster endpoints."""

from typing import List

from fastapi import APIRouter

from atelier.api.deps import CurrentActor, Service, TeacherActor
from atelier.orchestration.studio_service import RosterEntry
from atelier.pedagogy.curriculum import ClassType, Curriculum, class_display_info, step_display_name
from atelier.schemas.api import ClassInfo, StepInfo

router = APIRouter()


@router.get("/classes/{class_type}", response_model=ClassInfo)
async def get_class(class_type: ClassType, actor: CurrentActor):
    """Display info and ordered steps of a class."""
    return ClassInfo(
        class_type=class_type,
        **class_display_info(class_type),
        steps=[
            StepInfo(step=step, name=step_display_name(step))
            for step in Curriculum.steps(class_type)
        ],
    )


@router.get("/classes/{class_type}/roster", response_model=List[RosterEntry])
async def get_roster(class_type: ClassType, actor: TeacherActor, service: Service):
    """Students of a class with unlocked step counts per track."""
    return await service.roster(class_type)
