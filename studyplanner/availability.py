# studyplanner/availability.py
import logging
from dataclasses import dataclass, field
from typing import AbstractSet, Dict, Iterable, List, Mapping, Optional, Protocol, Tuple

import pandas as pd

from .clock import (
    instant_ms,
    slot_key,
    slot_start_for,
    start_of_week,
    to_instant,
    week_id,
)
from .intervals import clip, merge, overlaps, total_minutes
from .models import BlockKind, CalendarBlock, PatternSlot, StudyBlock, TimeRange
from .pattern import BasePattern, expand, is_excluded

logger = logging.getLogger(__name__)

ONE_HOUR = pd.Timedelta(hours=1)


class AvailabilitySource(Protocol):
    def minutes_until(self, deadline, now) -> float:
        ...


def _block_bounds(block) -> Optional[Tuple[pd.Timestamp, pd.Timestamp]]:
    start, end = to_instant(block.start), to_instant(block.end)
    if start is None or end is None or end <= start:
        logger.warning("dropping study block %r with invalid bounds", getattr(block, "id", None))
        return None
    return start, end


def visible_week_blocks(persisted_all: Iterable[StudyBlock],
                        pattern: Iterable[PatternSlot],
                        exclusions: Optional[AbstractSet[int]],
                        week_start,
                        week_end) -> List[CalendarBlock]:
    """
    Persisted blocks overlapping [week_start, week_end) plus base-pattern blocks
    for that week. A base block overlapping any persisted block is dropped.
    Sorted by start, persisted first on ties.
    """
    ws, we = to_instant(week_start), to_instant(week_end)

    persisted: List[CalendarBlock] = []
    for b in persisted_all or []:
        bounds = _block_bounds(b)
        if bounds is None or not overlaps(bounds[0], bounds[1], ws, we):
            continue
        persisted.append(CalendarBlock(
            start=bounds[0], end=bounds[1], kind=BlockKind.PERSISTED,
            block_id=b.id, title=getattr(b, "title", "Study"),
        ))

    base: List[CalendarBlock] = []
    for r in expand(pattern or [], exclusions, ws):
        if not overlaps(r.start, r.end, ws, we):
            continue
        if any(overlaps(p.start, p.end, r.start, r.end) for p in persisted):
            continue
        base.append(CalendarBlock(
            start=r.start, end=r.end, kind=BlockKind.BASE, slot_key=instant_ms(r.start),
        ))

    blocks = persisted + base
    blocks.sort(key=lambda b: (b.start, b.kind is BlockKind.BASE))
    return blocks


def availability_until(deadline,
                       now,
                       persisted_all: Iterable[StudyBlock],
                       pattern: Iterable[PatternSlot],
                       exclusions_by_week: Optional[Mapping[str, AbstractSet[int]]]) -> float:
    """
    Free study minutes in [now, deadline], counting persisted blocks and the
    base pattern minus each week's exclusions, with overlaps counted once.
    Returns 0 when the deadline is invalid or not after ``now``. Other tasks
    do not reserve any of this time.
    """
    due, n = to_instant(deadline), to_instant(now)
    if due is None or n is None or due <= n:
        return 0.0
    exclusions_by_week = exclusions_by_week or {}
    pattern = list(pattern or [])

    clipped: List[TimeRange] = []
    for b in persisted_all or []:
        bounds = _block_bounds(b)
        if bounds is None:
            continue
        seg = clip(TimeRange(*bounds), n, due)
        if seg is not None:
            clipped.append(seg)

    for day in pd.date_range(n.normalize(), due.normalize(), freq="D"):
        weekday = day.weekday()
        excl = exclusions_by_week.get(week_id(day))
        monday = start_of_week(day)
        for s in pattern:
            if s.weekday != weekday:
                continue
            if is_excluded(excl, slot_key(monday, s.weekday, s.hour)):
                continue
            start = day + pd.Timedelta(hours=s.hour)
            seg = clip(TimeRange(start, start + ONE_HOUR), n, due)
            if seg is not None:
                clipped.append(seg)

    return total_minutes(merge(clipped))


def classify_slot(blocks: Iterable[CalendarBlock], week_start, weekday: int, hour: int) -> Optional[str]:
    """Kind of the first block covering the hour, as "persisted"/"base", or None."""
    start = slot_start_for(week_start, weekday, hour)
    end = start + ONE_HOUR
    for b in blocks:
        if b.start < end and b.end > start:
            return b.kind.value
    return None


@dataclass
class AvailabilitySnapshot:
    """Materialized inputs for availability queries at one point in time."""
    study_blocks: List[StudyBlock] = field(default_factory=list)
    pattern: BasePattern = field(default_factory=BasePattern)
    exclusions_by_week: Dict[str, frozenset] = field(default_factory=dict)

    def minutes_until(self, deadline, now) -> float:
        return availability_until(deadline, now, self.study_blocks, self.pattern,
                                  self.exclusions_by_week)

    def week_blocks(self, week_start, week_end=None) -> List[CalendarBlock]:
        ws = start_of_week(week_start)
        we = to_instant(week_end) if week_end is not None else ws + pd.Timedelta(days=7)
        return visible_week_blocks(self.study_blocks, self.pattern,
                                   self.exclusions_by_week.get(week_id(ws)), ws, we)
