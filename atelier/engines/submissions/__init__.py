"""
Submission engine - version chains, feed ordering, step projection and
feed navigation (pure over a snapshot), plus the store-backed repository.
"""

from atelier.engines.submissions.feed import Cohort, cohort_filter, default_cohort
from atelier.engines.submissions.navigation import Direction, FeedCursor
from atelier.engines.submissions.ordering import (
    chain_key,
    group_submissions,
    grouped_feed,
    sort_versions,
    version_chain,
    version_label,
)
from atelier.engines.submissions.projection import (
    StepProjection,
    StepStatus,
    derive_step_status,
    detect_submit_step,
    project_steps,
    resolve_track,
)
from atelier.engines.submissions.repository import SubmissionRepository

__all__ = [
    "Cohort",
    "cohort_filter",
    "default_cohort",
    "Direction",
    "FeedCursor",
    "chain_key",
    "group_submissions",
    "grouped_feed",
    "sort_versions",
    "version_chain",
    "version_label",
    "StepProjection",
    "StepStatus",
    "derive_step_status",
    "detect_submit_step",
    "project_steps",
    "resolve_track",
    "SubmissionRepository",
]
