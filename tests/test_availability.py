import pandas as pd
import pytest

from studyplanner.availability import (
    AvailabilitySnapshot,
    availability_until,
    classify_slot,
    visible_week_blocks,
)
from studyplanner.clock import slot_key
from studyplanner.models import BlockKind
from studyplanner.pattern import BasePattern

from .conftest import MONDAY, NOW, block

SUNDAY_NEXT = pd.Timestamp("2025-11-24")


def pattern(*pairs):
    return BasePattern.from_records([{"weekday": d, "hour": h} for d, h in pairs])


def test_persisted_block_suppresses_overlapping_base_block():
    persisted = [block("b1", "2025-11-17 09:30", "2025-11-17 10:30")]
    blocks = visible_week_blocks(persisted, pattern((0, 9), (0, 11)), None, MONDAY, SUNDAY_NEXT)

    assert [(b.kind, b.start.hour) for b in blocks] == [
        (BlockKind.PERSISTED, 9),
        (BlockKind.BASE, 11),
    ]
    assert blocks[0].block_id == "b1"
    assert blocks[1].slot_key == slot_key(MONDAY, 0, 11)


def test_excluded_pattern_slot_yields_no_base_block():
    excl = frozenset({slot_key(MONDAY, 0, 9)})
    assert visible_week_blocks([], pattern((0, 9)), excl, MONDAY, SUNDAY_NEXT) == []


def test_blocks_outside_week_are_dropped_and_result_sorted():
    persisted = [
        block("late", "2025-11-21 15:00", "2025-11-21 16:00"),
        block("other-week", "2025-11-25 09:00", "2025-11-25 10:00"),
        block("broken", "2025-11-18 10:00", "2025-11-18 09:00"),
    ]
    blocks = visible_week_blocks(persisted, pattern((1, 8), (4, 7)), None, MONDAY, SUNDAY_NEXT)
    assert [b.start for b in blocks] == [
        pd.Timestamp("2025-11-18 08:00"),
        pd.Timestamp("2025-11-21 07:00"),
        pd.Timestamp("2025-11-21 15:00"),
    ]
    assert all(b.block_id != "other-week" for b in blocks)


def test_availability_counts_persisted_block_from_now():
    persisted = [block("b1", "2025-11-19 10:00", "2025-11-19 13:00")]
    deadline = pd.Timestamp("2025-11-19 23:59:59")
    assert availability_until(deadline, NOW, persisted, [], {}) == pytest.approx(180)


def test_availability_clips_to_now_and_deadline():
    deadline = pd.Timestamp("2025-11-19 20:30")
    now = pd.Timestamp("2025-11-19 10:30")
    minutes = availability_until(deadline, now, [], pattern((2, 10), (2, 20)), {})
    assert minutes == pytest.approx(30 + 30)


def test_availability_counts_overlap_once():
    persisted = [block("b1", "2025-11-19 10:00", "2025-11-19 13:00")]
    deadline = pd.Timestamp("2025-11-19 23:59:59")
    minutes = availability_until(deadline, NOW, persisted, pattern((2, 11), (2, 12)), {})
    assert minutes == pytest.approx(180)


def test_availability_uses_each_days_week_exclusions():
    now = pd.Timestamp("2025-11-21 20:00")  # Friday
    deadline = pd.Timestamp("2025-11-25 23:59:59")  # next Tuesday
    next_monday = pd.Timestamp("2025-11-24")
    exclusions = {"2025-11-24": frozenset({slot_key(next_monday, 0, 9)})}
    minutes = availability_until(deadline, now, [], pattern((0, 9), (1, 9), (5, 10)), exclusions)
    # Saturday 10:00 and Tuesday 09:00 remain
    assert minutes == pytest.approx(120)


def test_availability_is_zero_for_past_or_invalid_deadline():
    persisted = [block("b1", "2025-11-19 10:00", "2025-11-19 13:00")]
    assert availability_until(pd.Timestamp("2025-11-18 23:59:59"), NOW, persisted, [], {}) == 0
    assert availability_until(NOW, NOW, persisted, [], {}) == 0
    assert availability_until(None, NOW, persisted, [], {}) == 0
    assert availability_until("garbage", NOW, persisted, [], {}) == 0


def test_classify_slot():
    persisted = [block("b1", "2025-11-17 09:00", "2025-11-17 10:00")]
    blocks = visible_week_blocks(persisted, pattern((0, 9), (0, 10)), None, MONDAY, SUNDAY_NEXT)
    assert classify_slot(blocks, MONDAY, 0, 9) == "persisted"
    assert classify_slot(blocks, MONDAY, 0, 10) == "base"
    assert classify_slot(blocks, MONDAY, 0, 11) is None


def test_snapshot_implements_availability_source():
    snap = AvailabilitySnapshot(
        study_blocks=[block("b1", "2025-11-19 10:00", "2025-11-19 12:00")],
        pattern=pattern((2, 15)),
        exclusions_by_week={"2025-11-17": frozenset({slot_key(MONDAY, 2, 15)})},
    )
    assert snap.minutes_until(pd.Timestamp("2025-11-19 23:59:59"), NOW) == pytest.approx(120)
    assert [b.kind for b in snap.week_blocks(NOW)] == [BlockKind.PERSISTED]
