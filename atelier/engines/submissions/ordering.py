"""
Grouping & ordering of submissions into version chains.

Within a chain versions run oldest first (timestamp, then id); across
chains the feed runs newest activity first, keyed on each chain's latest
version. Both orders are total, so equal timestamps never reorder
between evaluations.
"""

from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from atelier.schemas.records import SubmissionRecord

ChainKey = Tuple[str, str, str]
SubmissionFilter = Callable[[SubmissionRecord], bool]


def chain_key(submission: SubmissionRecord) -> ChainKey:
    """(student, step, reference image) - exact equality on all three."""
    return (submission.student_id, submission.category, submission.reference_image)


def chronological_key(submission: SubmissionRecord) -> Tuple[datetime, str]:
    return (submission.submission_date, submission.id)


def sort_versions(submissions: Iterable[SubmissionRecord]) -> List[SubmissionRecord]:
    """Ascending canonical order; list position + 1 is the version number."""
    return sorted(submissions, key=chronological_key)


def group_submissions(submissions: Iterable[SubmissionRecord]) -> Dict[ChainKey, List[SubmissionRecord]]:
    """Cluster into chains, each sorted oldest first."""
    groups: Dict[ChainKey, List[SubmissionRecord]] = {}
    for sub in submissions:
        groups.setdefault(chain_key(sub), []).append(sub)
    return {key: sort_versions(group) for key, group in groups.items()}


def order_groups(groups: Iterable[List[SubmissionRecord]]) -> List[List[SubmissionRecord]]:
    """Newest latest-version first; equal timestamps fall back to chain key order."""
    non_empty = [g for g in groups if g]
    by_key = sorted(non_empty, key=lambda g: chain_key(g[0]))
    # reverse=True keeps the key order among equal timestamps
    return sorted(by_key, key=lambda g: g[-1].submission_date, reverse=True)


def grouped_feed(
    submissions: Iterable[SubmissionRecord],
    predicate: Optional[SubmissionFilter] = None,
) -> List[List[SubmissionRecord]]:
    """Filter, group and order submissions for feed browsing."""
    selected = [s for s in submissions if predicate is None or predicate(s)]
    return order_groups(group_submissions(selected).values())


def version_chain(
    submissions: Iterable[SubmissionRecord],
    student_id: str,
    category: str,
    reference_image: str,
) -> List[SubmissionRecord]:
    """One chain in canonical ascending order (empty if it has no versions)."""
    key = (student_id, getattr(category, "value", category), reference_image)
    return sort_versions(s for s in submissions if chain_key(s) == key)


def version_label(week: int) -> str:
    """Display label for a version's sequence number."""
    return f"Assignment {week:02d}"
