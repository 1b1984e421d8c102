# studyplanner/intervals.py
from typing import Iterable, List, Optional

import pandas as pd

from .clock import to_instant
from .models import TimeRange


def overlaps(a_start, a_end, b_start, b_end) -> bool:
    return not (a_end <= b_start or a_start >= b_end)


def clip(rng, lo: pd.Timestamp, hi: pd.Timestamp) -> Optional[TimeRange]:
    """Intersection of ``rng`` with [lo, hi], or None if it is empty."""
    start = max(rng.start, lo)
    end = min(rng.end, hi)
    if end <= start:
        return None
    return TimeRange(start, end)


def merge(intervals: Iterable) -> List[TimeRange]:
    """
    Merge ranges into a sorted list of disjoint, non-touching ranges.

    Anything with ``start``/``end`` attributes is accepted. Ranges with invalid
    bounds or ``end <= start`` are dropped. Ranges that overlap or abut
    (``a.end == b.start``) collapse into one.
    """
    ranges = []
    for iv in intervals:
        start, end = to_instant(iv.start), to_instant(iv.end)
        if start is None or end is None or end <= start:
            continue
        ranges.append(TimeRange(start, end))
    ranges.sort(key=lambda r: r.start)

    merged: List[TimeRange] = []
    for r in ranges:
        if merged and r.start <= merged[-1].end:
            last = merged[-1]
            merged[-1] = TimeRange(last.start, max(last.end, r.end))
        else:
            merged.append(r)
    return merged


def total_minutes(ranges: Iterable[TimeRange]) -> float:
    return sum(r.minutes for r in ranges)


def intervals_frame(ranges: Iterable) -> pd.DataFrame:
    rows = [{"start": r.start, "end": r.end} for r in ranges]
    df = pd.DataFrame(rows, columns=["start", "end"])
    df["minutes"] = (df["end"] - df["start"]).dt.total_seconds() / 60.0 if len(df) else []
    return df
