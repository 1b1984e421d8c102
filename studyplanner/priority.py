# studyplanner/priority.py
from typing import Iterable, List, Optional

import pandas as pd

from .availability import AvailabilitySource
from .clock import deadline_for, now as clock_now
from .models import PriorityResult, RankedTask, SORT_MODES, Task

URGENCY_MULTIPLIER = 1.2
MIN_AVAILABLE_HOURS = 0.001
URGENCY_THRESHOLDS = (0.15, 0.30, 0.45, 0.60)


def calculate_priority(urgency: int, importance: int) -> float:
    # urgency outweighs importance at the same level
    return urgency * URGENCY_MULTIPLIER + importance


def calculate_urgency(margin: float) -> int:
    for level, threshold in enumerate(URGENCY_THRESHOLDS, start=1):
        if margin < threshold:
            return level
    return len(URGENCY_THRESHOLDS) + 1


def calculate_slack_margin(time_needed: float, time_available: float) -> float:
    return time_needed / max(time_available, MIN_AVAILABLE_HOURS)


def priority_for_task(task: Task,
                      now: Optional[pd.Timestamp],
                      source: AvailabilitySource) -> PriorityResult:
    """
    Score one task against the study time left before its deadline.

    An unparsable or past due date counts as zero available hours, which
    yields the maximum urgency rather than an error.
    """
    now = clock_now() if now is None else now
    deadline = deadline_for(task.due_date)
    minutes = 0.0 if deadline is None else source.minutes_until(deadline, now)
    hours = minutes / 60.0
    margin = calculate_slack_margin(task.time_needed, hours)
    urgency = calculate_urgency(margin)
    importance = 3 if task.importance is None else task.importance
    return PriorityResult(
        time_available_hours=hours,
        slack_margin=margin,
        urgency_level=urgency,
        score=calculate_priority(urgency, importance),
    )


def _due_sort_key(ranked: RankedTask):
    deadline = deadline_for(ranked.task.due_date)
    return (deadline is None, deadline if deadline is not None else pd.Timestamp.min)


_SORT_KEYS = {
    "priority": (lambda r: r.priority.score, True),
    "due_date": (_due_sort_key, False),
    "alpha": (lambda r: (r.task.name or "").casefold(), False),
    "time": (lambda r: r.task.time_needed or 0.0, False),
}


def rank_tasks(tasks: Iterable[Task],
               now: Optional[pd.Timestamp],
               source: AvailabilitySource,
               sort_mode: str = "priority") -> List[RankedTask]:
    if sort_mode not in SORT_MODES:
        raise ValueError(f"unknown sort mode {sort_mode!r}; expected one of {SORT_MODES}")
    now = clock_now() if now is None else now
    ranked = [RankedTask(t, priority_for_task(t, now, source)) for t in tasks]
    key, reverse = _SORT_KEYS[sort_mode]
    ranked.sort(key=key, reverse=reverse)
    return ranked


def ranking_frame(ranked: Iterable[RankedTask]) -> pd.DataFrame:
    columns = ["id", "name", "due_date", "time_needed", "importance", "completed",
               "time_available_hours", "slack_margin", "urgency_level", "score"]
    rows = [{
        "id": r.task.id,
        "name": r.task.name,
        "due_date": r.task.due_date,
        "time_needed": r.task.time_needed,
        "importance": r.task.importance,
        "completed": r.task.completed,
        "time_available_hours": r.priority.time_available_hours,
        "slack_margin": r.priority.slack_margin,
        "urgency_level": r.priority.urgency_level,
        "score": r.priority.score,
    } for r in ranked]
    return pd.DataFrame(rows, columns=columns)
