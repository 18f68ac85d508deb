"""Pedagogy layer - class curricula and their display metadata."""

from atelier.pedagogy.curriculum import (
    ClassType,
    Curriculum,
    Step,
    class_display_info,
    step_display_name,
)

__all__ = [
    "ClassType",
    "Curriculum",
    "Step",
    "class_display_info",
    "step_display_name",
]
