"""
Progression engine - which curriculum steps each student has unlocked.

Steps are unlocked at onboarding (first step, both tracks), by approval of
the previous step, or by a reviewer's manual override. Overrides may leave
non-sequential states (a later step open while an earlier one is locked);
that is allowed.
"""

from atelier.engines.progression.progress_set import ProgressSet, StudentProgress
from atelier.engines.progression.progression_store import (
    ProgressionStore,
    heal_first_step,
    needs_onboarding,
    with_progress,
)

__all__ = [
    "ProgressSet",
    "StudentProgress",
    "ProgressionStore",
    "heal_first_step",
    "needs_onboarding",
    "with_progress",
]
