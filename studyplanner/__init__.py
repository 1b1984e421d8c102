from .availability import AvailabilitySnapshot, availability_until, classify_slot, visible_week_blocks
from .intervals import merge
from .models import (
    BlockKind,
    CalendarBlock,
    PatternSlot,
    PriorityResult,
    StudyBlock,
    Task,
    TimeRange,
    UserPrefs,
)
from .pattern import BasePattern
from .priority import (
    calculate_priority,
    calculate_slack_margin,
    calculate_urgency,
    priority_for_task,
    rank_tasks,
)
from .scheduler import generate_week_view
from .session import PlannerSession

__all__ = [
    "AvailabilitySnapshot",
    "BasePattern",
    "BlockKind",
    "CalendarBlock",
    "PatternSlot",
    "PlannerSession",
    "PriorityResult",
    "StudyBlock",
    "Task",
    "TimeRange",
    "UserPrefs",
    "availability_until",
    "calculate_priority",
    "calculate_slack_margin",
    "calculate_urgency",
    "classify_slot",
    "generate_week_view",
    "merge",
    "priority_for_task",
    "rank_tasks",
    "visible_week_blocks",
]
