"""
Kernel layer

Persistence models, the record store adapter, and the shared error taxonomy.
Everything above this layer talks to storage only through RecordStore.
"""

from atelier.kernel.errors import (
    InvalidTransitionError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from atelier.kernel.models import (
    FeedbackType,
    SubmissionStatus,
    Track,
    UserRole,
)
from atelier.kernel.store import RecordStore

__all__ = [
    "RecordStore",
    "InvalidTransitionError",
    "NotFoundError",
    "PersistenceError",
    "ValidationError",
    "FeedbackType",
    "SubmissionStatus",
    "Track",
    "UserRole",
]
