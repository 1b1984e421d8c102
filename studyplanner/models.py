# studyplanner/models.py
import logging
import math
import os
from dataclasses import dataclass, field, fields
from datetime import date
from enum import Enum
from typing import Any, Dict, Optional, Union

import pandas as pd

logger = logging.getLogger(__name__)

SORT_MODES = ("priority", "due_date", "alpha", "time")


@dataclass
class UserPrefs:
    tz: Optional[str] = None        # None = system local wall clock
    first_hour: int = 7             # first hour row painted on the grid
    last_hour: int = 23             # last hour row painted on the grid
    default_importance: int = 3
    sort_mode: str = "priority"
    clock_offset_ms: int = 0
    metrics_port: int = 8000

    @classmethod
    def from_env(cls, prefix: str = "STUDYPLANNER_") -> "UserPrefs":
        """Build prefs from defaults, overridden by ``STUDYPLANNER_*`` variables."""
        prefs = cls()
        for f in fields(cls):
            raw = os.getenv(prefix + f.name.upper())
            if not raw:
                continue
            caster = str if f.name in ("tz", "sort_mode") else int
            try:
                setattr(prefs, f.name, caster(raw))
            except ValueError:
                logger.warning("ignoring invalid env %s%s=%r", prefix, f.name.upper(), raw)
        if prefs.sort_mode not in SORT_MODES:
            logger.warning("unknown sort mode %r, using 'priority'", prefs.sort_mode)
            prefs.sort_mode = "priority"
        if not (0 <= prefs.first_hour <= prefs.last_hour <= 23):
            logger.warning("invalid grid hours %s..%s, using 7..23", prefs.first_hour, prefs.last_hour)
            prefs.first_hour, prefs.last_hour = 7, 23
        return prefs


@dataclass(frozen=True)
class PatternSlot:
    weekday: int  # 0 = Monday
    hour: int     # 0..23


@dataclass(frozen=True)
class TimeRange:
    start: pd.Timestamp
    end: pd.Timestamp

    @property
    def minutes(self) -> float:
        return (self.end - self.start).total_seconds() / 60.0


@dataclass(frozen=True)
class StudyBlock:
    """A persisted study interval, created and deleted individually."""
    id: str
    start: pd.Timestamp
    end: pd.Timestamp
    title: str = "Study"


class BlockKind(Enum):
    PERSISTED = "persisted"
    BASE = "base"


@dataclass(frozen=True)
class CalendarBlock:
    start: pd.Timestamp
    end: pd.Timestamp
    kind: BlockKind
    block_id: Optional[str] = None  # persisted only
    slot_key: Optional[int] = None  # base only
    title: str = "Study"


@dataclass
class Task:
    id: str
    name: str
    due_date: Union[str, date, None]  # deadline is 23:59:59 of this day
    time_needed: float                # hours
    importance: int = 3               # 1..5
    completed: bool = False

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Task":
        """
        Accepts store records in either camelCase or snake_case.
        Raises ValueError when the time estimate or importance is missing or out of range.
        """
        importance = record.get("importance")
        time_needed = record.get("time_needed", record.get("timeNeeded"))
        if time_needed is None:
            raise ValueError(f"task record {record.get('id')!r} has no time estimate")
        task = cls(
            id=str(record.get("id") or ""),
            name=str(record.get("name") or ""),
            due_date=record.get("due_date", record.get("dueDate")),
            time_needed=float(time_needed),
            importance=3 if importance is None else int(importance),
            completed=bool(record.get("completed", False)),
        )
        task.validate()
        return task

    def validate(self) -> None:
        if not (math.isfinite(self.time_needed) and self.time_needed > 0):
            raise ValueError(f"time needed must be a positive number of hours, got {self.time_needed!r}")
        if not 1 <= self.importance <= 5:
            raise ValueError(f"importance must be between 1 and 5, got {self.importance!r}")


@dataclass(frozen=True)
class PriorityResult:
    time_available_hours: float
    slack_margin: float
    urgency_level: int
    score: float


@dataclass
class RankedTask:
    task: Task
    priority: PriorityResult = field(compare=False)
