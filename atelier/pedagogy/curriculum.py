"""
Curriculum definitions - ordered assignment steps per class type.

Each class follows one fixed, totally ordered list of steps. All gating and
"next step" logic is expressed relative to this order.
"""

from enum import Enum
from typing import Dict, List, Optional


class ClassType(str, Enum):
    """Class cohorts a student can be enrolled in."""

    MASTER_CLASS = "MASTER_CLASS"
    VIZ_CLASS = "VIZ_CLASS"


class Step(str, Enum):
    """Assignment step (stored as the submission category)."""

    BOX_MODELING = "BOX_MODELING"
    SCENE_SETUP = "SCENE_SETUP"
    COLOR_RENDERING = "COLOR_RENDERING"
    SHADERS = "SHADERS"
    POSTPRODUCTION = "POSTPRODUCTION"
    # Legacy categories from before per-step tracking; in no curriculum
    INTERIOR = "INTERIOR"
    EXTERIOR = "EXTERIOR"


_DISPLAY_NAMES: Dict[Step, str] = {
    Step.BOX_MODELING: "Box Modeling",
    Step.SCENE_SETUP: "Scene Setup",
    Step.COLOR_RENDERING: "Color Rendering",
    Step.SHADERS: "Shaders",
    Step.POSTPRODUCTION: "Postproduction",
}

_CLASS_DISPLAY: Dict[ClassType, Dict[str, str]] = {
    ClassType.MASTER_CLASS: {"title": "MASTER CLASS", "subtitle": "Architecture Modeling"},
    ClassType.VIZ_CLASS: {"title": "VIZ CLASS", "subtitle": "Architectural Visualization"},
}
_DEFAULT_CLASS_DISPLAY = {"title": "RTA ACADEMY", "subtitle": "Student Portal"}


class Curriculum:
    """Static lookup of ordered steps per class type."""

    _steps: Dict[ClassType, List[Step]] = {
        ClassType.MASTER_CLASS: [Step.BOX_MODELING, Step.SCENE_SETUP],
        ClassType.VIZ_CLASS: [Step.COLOR_RENDERING, Step.SHADERS, Step.POSTPRODUCTION],
    }

    @classmethod
    def steps(cls, class_type: ClassType) -> List[Step]:
        """Return the ordered steps for a class type (a copy)."""
        return list(cls._steps[ClassType(class_type)])

    @classmethod
    def first_step(cls, class_type: ClassType) -> Step:
        return cls._steps[ClassType(class_type)][0]

    @classmethod
    def last_step(cls, class_type: ClassType) -> Step:
        return cls._steps[ClassType(class_type)][-1]

    @classmethod
    def index_of(cls, class_type: ClassType, step: Step) -> int:
        """Position of step in the curriculum, -1 if the class has no such step."""
        try:
            return cls._steps[ClassType(class_type)].index(Step(step))
        except ValueError:
            return -1

    @classmethod
    def successor(cls, class_type: ClassType, step: Step) -> Optional[Step]:
        """Step following `step`, or None for the last step and unknown steps."""
        steps = cls._steps[ClassType(class_type)]
        idx = cls.index_of(class_type, step)
        if idx == -1 or idx == len(steps) - 1:
            return None
        return steps[idx + 1]

    @classmethod
    def contains(cls, class_type: ClassType, step: Step) -> bool:
        return cls.index_of(class_type, step) != -1


def step_display_name(step: str) -> str:
    """Human-readable step name; unknown and legacy ids are returned as-is."""
    try:
        known = Step(step)
    except ValueError:
        return str(step)
    return _DISPLAY_NAMES.get(known, known.value)


def class_display_info(class_type: Optional[str]) -> Dict[str, str]:
    """Title/subtitle pair shown for a class (generic portal info as fallback)."""
    try:
        return dict(_CLASS_DISPLAY[ClassType(class_type)])
    except (ValueError, KeyError):
        return dict(_DEFAULT_CLASS_DISPLAY)
