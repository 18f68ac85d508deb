"""
Progress sets - unlocked steps per student and track.

Membership is what matters; insertion order is kept only so the persisted
lists stay stable across rewrites.
"""

from typing import Dict, Iterable, Iterator, List, Mapping, Optional

from atelier.kernel.models.profile import Track
from atelier.logging_config import get_logger

logger = get_logger(__name__)


class ProgressSet:
    """
    Insertion-ordered set of unlocked step ids for one track.

    `add` is idempotent: adding a present step changes nothing and reports
    False. `remove` and `toggle` exist for manual reviewer overrides.
    """

    __slots__ = ("_steps",)

    def __init__(self, steps: Iterable[str] = ()):
        self._steps: Dict[str, None] = dict.fromkeys(_step_id(s) for s in steps)

    def __contains__(self, step: object) -> bool:
        return _step_id(step) in self._steps

    def __iter__(self) -> Iterator[str]:
        return iter(self._steps)

    def __len__(self) -> int:
        return len(self._steps)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ProgressSet):
            return set(self._steps) == set(other._steps)
        return NotImplemented

    def __repr__(self) -> str:
        return f"ProgressSet({list(self._steps)!r})"

    def copy(self) -> "ProgressSet":
        return ProgressSet(self._steps)

    def add(self, step: str) -> bool:
        """Add a step; returns True only if membership changed."""
        key = _step_id(step)
        if key in self._steps:
            return False
        self._steps[key] = None
        return True

    def remove(self, step: str) -> bool:
        """Remove a step; returns True only if membership changed."""
        key = _step_id(step)
        if key not in self._steps:
            return False
        del self._steps[key]
        return True

    def toggle(self, step: str) -> bool:
        """Flip membership of a step; returns the new membership."""
        if self.remove(step):
            return False
        self.add(step)
        return True

    def to_list(self) -> List[str]:
        return list(self._steps)


class StudentProgress:
    """Progress sets for both tracks of one student."""

    def __init__(self, tracks: Optional[Mapping[Track, ProgressSet]] = None):
        tracks = tracks or {}
        self._tracks: Dict[Track, ProgressSet] = {
            track: tracks.get(track, ProgressSet()).copy() for track in Track
        }

    @classmethod
    def from_json(cls, data: Optional[Mapping]) -> "StudentProgress":
        """Build from the persisted {"INTERIOR": [...], "EXTERIOR": [...]} shape."""
        tracks: Dict[Track, ProgressSet] = {}
        for key, steps in (data or {}).items():
            try:
                track = Track(key)
            except ValueError:
                logger.warning("Ignoring progress for unknown track", extra={"track": str(key)})
                continue
            tracks[track] = ProgressSet(steps or [])
        return cls(tracks)

    def to_json(self) -> Dict[str, List[str]]:
        return {track.value: self._tracks[track].to_list() for track in Track}

    def track(self, track: Track) -> ProgressSet:
        return self._tracks[Track(track)]

    def copy(self) -> "StudentProgress":
        return StudentProgress(self._tracks)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, StudentProgress):
            return all(self._tracks[t] == other._tracks[t] for t in Track)
        return NotImplemented

    def __repr__(self) -> str:
        return f"StudentProgress({self.to_json()!r})"


def _step_id(step: object) -> str:
    value = getattr(step, "value", step)
    return str(value)
