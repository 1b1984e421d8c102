# studyplanner/scheduler.py
from typing import Dict, Iterable, List, Optional, Tuple

import pandas as pd

from .availability import AvailabilitySnapshot
from .clock import now as clock_now, start_of_week
from .grid import build_slots, paint_slots
from .models import StudyBlock, Task, UserPrefs
from .pattern import BasePattern
from .priority import rank_tasks, ranking_frame


def generate_week_view(week_start,
                       prefs: UserPrefs,
                       study_blocks: List[StudyBlock],
                       pattern: BasePattern,
                       exclusions_by_week: Dict[str, frozenset],
                       tasks: Iterable[Task],
                       now: Optional[pd.Timestamp] = None) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Build everything the week screen shows.

    Returns:
        ranked_df: one row per task with its computed priority fields, in
                   ``prefs.sort_mode`` order
        slots_df: hourly grid cells for the week with 'kind' and 'block_id'
    """
    now = clock_now(prefs.tz) if now is None else now
    week_start = start_of_week(week_start)

    source = AvailabilitySnapshot(
        study_blocks=list(study_blocks),
        pattern=pattern,
        exclusions_by_week=dict(exclusions_by_week or {}),
    )

    # 1) Materialize visible blocks and paint the grid
    blocks = source.week_blocks(week_start)
    slots = paint_slots(build_slots(week_start, prefs), blocks)

    # 2) Rank tasks against the remaining study time
    ranked_df = ranking_frame(rank_tasks(tasks, now, source, prefs.sort_mode))

    return ranked_df, slots
