"""
Navigation cursor over an ordered feed of version chains.

The cursor is a value: every move returns a new one, checked against the
feed it is applied to, so a changed filter can never leave a stale index.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional, Sequence

from atelier.engines.submissions.ordering import chain_key
from atelier.schemas.records import SubmissionRecord

Feed = Sequence[List[SubmissionRecord]]


class Direction(str, Enum):
    PREV = "prev"
    NEXT = "next"


@dataclass(frozen=True)
class FeedCursor:
    """Position in a filtered feed plus the version shown inside the chain."""

    filter_key: str
    index: int
    version_index: int = 0


def locate(feed: Feed, group: Sequence[SubmissionRecord]) -> int:
    """Index of the chain whose first version has the same key, -1 if absent."""
    if not group:
        return -1
    target = chain_key(group[0])
    for idx, candidate in enumerate(feed):
        if candidate and chain_key(candidate[0]) == target:
            return idx
    return -1


def open_group(feed: Feed, group: Sequence[SubmissionRecord], filter_key: str) -> Optional[FeedCursor]:
    """Cursor on `group`, showing its most recent version."""
    idx = locate(feed, group)
    if idx == -1:
        return None
    return FeedCursor(filter_key=filter_key, index=idx, version_index=len(feed[idx]) - 1)


def step(cursor: FeedCursor, feed: Feed, direction: Direction) -> FeedCursor:
    """
    Move one chain back or forward.

    No wraparound: moving past either end returns the cursor unchanged.
    Arriving at a chain resets the version pointer to its latest version.
    """
    delta = -1 if Direction(direction) == Direction.PREV else 1
    new_index = cursor.index + delta
    if not 0 <= new_index < len(feed):
        return cursor
    return replace(cursor, index=new_index, version_index=len(feed[new_index]) - 1)


def select_version(cursor: FeedCursor, feed: Feed, version_index: int) -> FeedCursor:
    """Point at another version of the current chain, clamped to its bounds."""
    chain = feed[cursor.index]
    clamped = max(0, min(version_index, len(chain) - 1))
    return replace(cursor, version_index=clamped)


def current(cursor: FeedCursor, feed: Feed) -> Optional[SubmissionRecord]:
    """The version the cursor shows, None if the cursor no longer fits the feed."""
    if not 0 <= cursor.index < len(feed):
        return None
    chain = feed[cursor.index]
    if not 0 <= cursor.version_index < len(chain):
        return None
    return chain[cursor.version_index]
