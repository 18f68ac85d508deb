"""
Pydantic schemas for records and API request/response validation.
"""

from atelier.schemas.records import FeedbackRecord, ProfileRecord, Snapshot, SubmissionRecord

__all__ = [
    "FeedbackRecord",
    "ProfileRecord",
    "Snapshot",
    "SubmissionRecord",
]
