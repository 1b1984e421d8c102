import pandas as pd
import pytest

from studyplanner.intervals import clip, intervals_frame, merge, overlaps, total_minutes
from studyplanner.models import TimeRange


def r(start, end):
    return TimeRange(pd.Timestamp(start), pd.Timestamp(end))


def test_merge_empty():
    assert merge([]) == []


def test_merge_drops_degenerate_intervals():
    assert merge([r("2025-11-17 10:00", "2025-11-17 10:00"),
                  r("2025-11-17 12:00", "2025-11-17 11:00")]) == []


def test_merge_drops_invalid_bounds():
    bad = TimeRange(pd.NaT, pd.Timestamp("2025-11-17 10:00"))
    assert merge([bad, r("2025-11-17 08:00", "2025-11-17 09:00")]) == [r("2025-11-17 08:00", "2025-11-17 09:00")]


def test_merge_joins_touching_intervals():
    merged = merge([r("2025-11-17 09:00", "2025-11-17 10:00"),
                    r("2025-11-17 10:00", "2025-11-17 11:00")])
    assert merged == [r("2025-11-17 09:00", "2025-11-17 11:00")]


def test_merge_sorts_and_folds_overlaps():
    merged = merge([
        r("2025-11-17 14:00", "2025-11-17 15:00"),
        r("2025-11-17 09:00", "2025-11-17 11:00"),
        r("2025-11-17 10:30", "2025-11-17 10:45"),  # contained
        r("2025-11-17 10:50", "2025-11-17 12:00"),
    ])
    assert merged == [r("2025-11-17 09:00", "2025-11-17 12:00"),
                      r("2025-11-17 14:00", "2025-11-17 15:00")]


def test_merge_is_idempotent():
    data = [
        r("2025-11-18 09:00", "2025-11-18 10:00"),
        r("2025-11-17 23:00", "2025-11-18 01:00"),
        r("2025-11-18 00:30", "2025-11-18 00:45"),
        r("2025-11-18 10:00", "2025-11-18 10:30"),
        r("2025-11-19 08:00", "2025-11-19 07:00"),
    ]
    once = merge(data)
    assert merge(once) == once


def test_merge_preserves_covered_time():
    data = [
        r("2025-11-17 09:00", "2025-11-17 10:30"),
        r("2025-11-17 10:00", "2025-11-17 11:00"),
        r("2025-11-17 13:00", "2025-11-17 13:20"),
        r("2025-11-17 13:10", "2025-11-17 13:15"),
    ]
    covered = set()
    for iv in data:
        covered.update(pd.date_range(iv.start, iv.end, freq="min", inclusive="left"))
    assert total_minutes(merge(data)) == pytest.approx(len(covered))


def test_overlaps_excludes_touching():
    a0, a1 = pd.Timestamp("2025-11-17 09:00"), pd.Timestamp("2025-11-17 10:00")
    assert not overlaps(a0, a1, a1, a1 + pd.Timedelta(hours=1))
    assert overlaps(a0, a1, a0 + pd.Timedelta(minutes=59), a1)


def test_clip_to_window():
    lo, hi = pd.Timestamp("2025-11-17 09:30"), pd.Timestamp("2025-11-17 12:00")
    assert clip(r("2025-11-17 09:00", "2025-11-17 10:00"), lo, hi) == r("2025-11-17 09:30", "2025-11-17 10:00")
    assert clip(r("2025-11-17 12:00", "2025-11-17 13:00"), lo, hi) is None


def test_intervals_frame():
    df = intervals_frame([r("2025-11-17 09:00", "2025-11-17 10:30")])
    assert list(df.columns) == ["start", "end", "minutes"]
    assert df.loc[0, "minutes"] == 90
    assert intervals_frame([]).empty
