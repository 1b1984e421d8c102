# studyplanner/pattern.py
"""
Recurring weekly base pattern and per-week exclusions.

The pattern is a set of (weekday, hour) pairs with no week affinity. An
exclusion suppresses one pattern slot in one specific week and is identified
by that slot's key. Exclusions for slots no longer in the pattern stay in the
set but have no effect.
"""
import logging
from typing import AbstractSet, Any, Dict, Iterable, Iterator, List, Optional

import pandas as pd

from .clock import check_slot, slot_key, slot_start
from .models import PatternSlot, TimeRange

logger = logging.getLogger(__name__)

NO_EXCLUSIONS: frozenset = frozenset()


class BasePattern:
    """Ordered, duplicate-free collection of pattern slots."""

    def __init__(self, slots: Optional[Iterable[PatternSlot]] = None):
        self._slots: List[PatternSlot] = []
        for s in slots or []:
            self.add(s.weekday, s.hour)

    @classmethod
    def from_records(cls, records: Optional[Iterable[Dict[str, Any]]]) -> "BasePattern":
        pattern = cls()
        for rec in records or []:
            weekday = (rec or {}).get("weekday")
            hour = (rec or {}).get("hour")
            if weekday is None or hour is None:
                logger.warning("skipping incomplete pattern entry %r", rec)
                continue
            pattern.add(weekday, hour)
        return pattern

    def to_records(self) -> List[Dict[str, int]]:
        return [{"weekday": s.weekday, "hour": s.hour} for s in self._slots]

    def add(self, weekday: int, hour: int) -> None:
        slot = PatternSlot(*check_slot(weekday, hour))
        if slot not in self._slots:
            self._slots.append(slot)

    def remove(self, weekday: int, hour: int) -> None:
        slot = PatternSlot(*check_slot(weekday, hour))
        if slot in self._slots:
            self._slots.remove(slot)

    def toggle(self, weekday: int, hour: int) -> bool:
        """Flip membership of (weekday, hour); returns the new membership."""
        if (weekday, hour) in self:
            self.remove(weekday, hour)
            return False
        self.add(weekday, hour)
        return True

    def clear(self) -> None:
        self._slots = []

    def copy(self) -> "BasePattern":
        return BasePattern(self._slots)

    def __contains__(self, item) -> bool:
        if isinstance(item, PatternSlot):
            return item in self._slots
        weekday, hour = item
        return PatternSlot(*check_slot(weekday, hour)) in self._slots

    def __iter__(self) -> Iterator[PatternSlot]:
        return iter(list(self._slots))

    def __len__(self) -> int:
        return len(self._slots)

    def __eq__(self, other) -> bool:
        if not isinstance(other, BasePattern):
            return NotImplemented
        return set(self._slots) == set(other._slots)

    def __repr__(self) -> str:
        return f"BasePattern({self._slots!r})"


def add_or_remove(pattern: BasePattern, weekday: int, hour: int) -> bool:
    return pattern.toggle(weekday, hour)


def is_patterned(pattern: Iterable[PatternSlot], weekday: int, hour: int) -> bool:
    target = PatternSlot(*check_slot(weekday, hour))
    return any(s == target for s in pattern)


def is_excluded(exclusions: Optional[AbstractSet[int]], key: int) -> bool:
    return bool(exclusions) and int(key) in exclusions


def set_excluded(exclusions: Optional[AbstractSet[int]], key: int, exclude: bool) -> frozenset:
    """Return the week's exclusion set with ``key`` added or removed. Idempotent."""
    current = frozenset(exclusions or ())
    if exclude:
        return current | {int(key)}
    return current - {int(key)}


def expand(pattern: Iterable[PatternSlot],
           exclusions: Optional[AbstractSet[int]],
           week_start: pd.Timestamp) -> List[TimeRange]:
    """One-hour ranges for every pattern slot not excluded in this week."""
    out: List[TimeRange] = []
    for s in pattern:
        key = slot_key(week_start, s.weekday, s.hour)
        if is_excluded(exclusions, key):
            continue
        start = slot_start(key)
        out.append(TimeRange(start, start + pd.Timedelta(hours=1)))
    return out
