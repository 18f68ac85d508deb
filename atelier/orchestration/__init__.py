"""Orchestration layer - review state machine and the studio service."""

from atelier.orchestration.review_state_machine import (
    DEFAULT_MESSAGES,
    ReviewOutcome,
    ReviewResult,
    ReviewStateMachine,
    can_transition,
    valid_transitions,
)
from atelier.orchestration.studio_service import FeedPosition, RosterEntry, StudioService

__all__ = [
    "DEFAULT_MESSAGES",
    "ReviewOutcome",
    "ReviewResult",
    "ReviewStateMachine",
    "can_transition",
    "valid_transitions",
    "FeedPosition",
    "RosterEntry",
    "StudioService",
]
