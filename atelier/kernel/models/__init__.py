"""
Kernel Data Models

SQLAlchemy models backing the two record collections:
profiles, and submissions with their feedback.
"""

from atelier.kernel.models.base import Base, TimestampMixin, generate_id
from atelier.kernel.models.profile import Profile, Track, UserRole
from atelier.kernel.models.submission import (
    Feedback,
    FeedbackType,
    Submission,
    SubmissionStatus,
)

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "generate_id",
    # Profile
    "Profile",
    "Track",
    "UserRole",
    # Submissions
    "Submission",
    "SubmissionStatus",
    "Feedback",
    "FeedbackType",
]
