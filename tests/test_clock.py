import numpy as np
import pandas as pd
import pytest

from studyplanner import clock
from studyplanner.exceptions import InvalidSlotError

from .conftest import MONDAY, NOW


@pytest.mark.parametrize("instant", [
    "2025-11-17 00:00",
    "2025-11-19 10:00",
    "2025-11-23 23:59:59",  # Sunday belongs to the preceding Monday
])
def test_start_of_week_is_monday_midnight(instant):
    assert clock.start_of_week(instant) == MONDAY


def test_start_of_week_does_not_mutate_input():
    ts = pd.Timestamp("2025-11-20 15:45")
    clock.start_of_week(ts)
    assert ts == pd.Timestamp("2025-11-20 15:45")


def test_week_range_is_half_open_and_offsettable():
    assert clock.week_range(0, NOW) == (MONDAY, pd.Timestamp("2025-11-24"))
    assert clock.week_range(1, NOW) == (pd.Timestamp("2025-11-24"), pd.Timestamp("2025-12-01"))
    assert clock.week_range(-1, NOW) == (pd.Timestamp("2025-11-10"), MONDAY)


def test_week_id_uses_monday_date():
    assert clock.week_id("2025-11-23 18:00") == "2025-11-17"
    assert clock.week_id("2025-11-24 00:00") == "2025-11-24"


def test_slot_key_is_deterministic_and_matches_slot_start():
    key = clock.slot_key(MONDAY, 2, 9)
    assert key == clock.slot_key(pd.Timestamp("2025-11-17"), 2, 9)
    assert clock.slot_start(key) == pd.Timestamp("2025-11-19 09:00")
    assert clock.slot_key(MONDAY, 0, 0) == clock.instant_ms(MONDAY)


def test_slot_key_differs_between_weeks():
    assert clock.slot_key(MONDAY, 0, 9) != clock.slot_key(pd.Timestamp("2025-11-24"), 0, 9)


@pytest.mark.parametrize("weekday,hour", [(-1, 9), (7, 9), (0, 24), (0, -1), (1.5, 3), ("x", 3)])
def test_slot_key_rejects_out_of_range(weekday, hour):
    with pytest.raises(InvalidSlotError):
        clock.slot_key(MONDAY, weekday, hour)


def test_invalid_slot_error_is_value_error():
    with pytest.raises(ValueError):
        clock.check_slot(0, 99)


def test_deadline_is_end_of_due_day():
    assert clock.deadline_for("2025-11-20") == pd.Timestamp("2025-11-20 23:59:59")


@pytest.mark.parametrize("due", ["not a date", "", None, "2025-13-45", 12345])
def test_deadline_for_bad_input_is_none(due):
    assert clock.deadline_for(due) is None


def test_to_instant_keeps_wall_clock_of_aware_values():
    aware = pd.Timestamp("2025-11-19 10:00", tz="America/New_York")
    assert clock.to_instant(aware) == pd.Timestamp("2025-11-19 10:00")


def test_to_instant_invalid_values():
    assert clock.to_instant(pd.NaT) is None
    assert clock.to_instant("garbage") is None
    assert clock.to_instant(True) is None


def test_to_instant_reads_numpy_integers_as_epoch_ms():
    key = clock.slot_key(MONDAY, 0, 9)
    assert clock.to_instant(np.int64(key)) == pd.Timestamp("2025-11-17 09:00")
    assert clock.to_instant(np.float64(key)) == clock.to_instant(key)


def test_clock_offset_shifts_now():
    clock.set_clock_offset(24 * 60 * 60 * 1000)
    drift = clock.now() - pd.Timestamp.now()
    assert abs(drift - pd.Timedelta(days=1)) < pd.Timedelta(seconds=5)
    clock.set_clock_offset(None)
    assert clock.get_clock_offset() == 0


def test_week_title_and_hour_labels():
    assert clock.week_title(0, NOW) == "Nov 17 - Nov 23"
    assert clock.fmt_hour(0) == "12 AM"
    assert clock.fmt_hour(7) == "7 AM"
    assert clock.fmt_hour(12) == "12 PM"
    assert clock.fmt_hour(23) == "11 PM"
