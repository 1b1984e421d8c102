# studyplanner/clock.py
"""
Time and week primitives.

All instants are naive ``pd.Timestamp`` values holding local wall-clock time.
Weeks start on Monday 00:00. A slot key is the millisecond offset of a slot's
wall-clock start from the epoch, so equal (week, weekday, hour) inputs always
produce the same integer.
"""
import numbers
from datetime import date, datetime
from typing import Optional, Tuple

import pandas as pd

from .exceptions import InvalidSlotError

DAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
HOUR_MS = 60 * 60 * 1000
EPOCH = pd.Timestamp(0)

_clock_offset_ms = 0


def set_clock_offset(ms: Optional[int]) -> None:
    """Shift ``now()`` by ``ms`` milliseconds. Falsy values reset it to 0."""
    global _clock_offset_ms
    _clock_offset_ms = int(ms or 0)


def get_clock_offset() -> int:
    return _clock_offset_ms


def now(tz: Optional[str] = None) -> pd.Timestamp:
    real = pd.Timestamp.now(tz=tz).tz_localize(None) if tz else pd.Timestamp.now()
    return real + pd.Timedelta(milliseconds=_clock_offset_ms)


def to_instant(value) -> Optional[pd.Timestamp]:
    """
    Coerce a Timestamp, datetime, date, ISO string or epoch-ms number into a
    naive wall-clock Timestamp. Returns None for anything that is not a valid
    instant. Tz-aware values keep their wall-clock reading.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        if isinstance(value, numbers.Real):
            ts = pd.Timestamp(int(value), unit="ms")
        else:
            ts = pd.Timestamp(value)
    except (ValueError, TypeError, OverflowError):
        return None
    if pd.isna(ts):
        return None
    if ts.tzinfo is not None:
        ts = ts.tz_localize(None)
    return ts


def _require_instant(value) -> pd.Timestamp:
    ts = to_instant(value)
    if ts is None:
        raise ValueError(f"invalid instant: {value!r}")
    return ts


def instant_ms(instant) -> int:
    ts = _require_instant(instant)
    return int((ts - EPOCH) // pd.Timedelta(milliseconds=1))


def start_of_week(instant=None) -> pd.Timestamp:
    """Monday 00:00 of the week containing ``instant`` (Sunday is the last day)."""
    ts = now() if instant is None else _require_instant(instant)
    return ts.normalize() - pd.Timedelta(days=ts.weekday())


def add_days(instant, n: int) -> pd.Timestamp:
    return _require_instant(instant) + pd.Timedelta(days=n)


def add_weeks(instant, n: int) -> pd.Timestamp:
    return add_days(instant, n * 7)


def week_range(week_offset: int = 0,
               at: Optional[pd.Timestamp] = None) -> Tuple[pd.Timestamp, pd.Timestamp]:
    """Half-open [start, end) of the week ``week_offset`` weeks from now."""
    start = add_weeks(start_of_week(at), week_offset)
    return start, add_days(start, 7)


def week_id(instant) -> str:
    return start_of_week(instant).strftime("%Y-%m-%d")


def check_slot(weekday, hour) -> Tuple[int, int]:
    """Validate a (weekday, hour) pair, raising InvalidSlotError when out of range."""
    try:
        ok = (int(weekday) == weekday and int(hour) == hour
              and 0 <= int(weekday) <= 6 and 0 <= int(hour) <= 23)
    except (TypeError, ValueError):
        ok = False
    if not ok:
        raise InvalidSlotError(weekday, hour)
    return int(weekday), int(hour)


def slot_start_for(week_start, weekday: int, hour: int) -> pd.Timestamp:
    weekday, hour = check_slot(weekday, hour)
    day = (_require_instant(week_start) + pd.Timedelta(days=weekday)).normalize()
    return day + pd.Timedelta(hours=hour)


def slot_key(week_start, weekday: int, hour: int) -> int:
    return instant_ms(slot_start_for(week_start, weekday, hour))


def slot_start(key: int) -> pd.Timestamp:
    return EPOCH + pd.Timedelta(milliseconds=int(key))


def deadline_for(due_date) -> Optional[pd.Timestamp]:
    """23:59:59 local on ``due_date``, or None when it cannot be parsed."""
    if isinstance(due_date, str):
        due_date = due_date.strip()
        if not due_date:
            return None
    elif not isinstance(due_date, (date, datetime, pd.Timestamp)):
        return None
    day = to_instant(due_date)
    if day is None:
        return None
    return day.normalize() + pd.Timedelta(hours=23, minutes=59, seconds=59)


def week_title(week_offset: int = 0, at: Optional[pd.Timestamp] = None) -> str:
    start, end = week_range(week_offset, at)
    last = add_days(end, -1)
    return f"{start:%b} {start.day} - {last:%b} {last.day}"


def fmt_hour(hour: int) -> str:
    return f"{12 if hour % 12 == 0 else hour % 12} {'AM' if hour < 12 else 'PM'}"
