# studyplanner/grid.py
from datetime import timedelta
from typing import List

import numpy as np
import pandas as pd

from .clock import EPOCH, start_of_week
from .intervals import clip
from .models import BlockKind, CalendarBlock, UserPrefs


def build_slots(week_start,
                prefs: UserPrefs,
                days: int = 7) -> pd.DataFrame:
    """Create the grid of hourly calendar cells for the week."""
    week_start = start_of_week(week_start)
    week_end = week_start + timedelta(days=days)
    slots = pd.DataFrame({
        "ds": pd.date_range(week_start, week_end, freq="60min", inclusive="left")
    })
    hours = slots["ds"].dt.hour
    slots = slots[(hours >= prefs.first_hour) & (hours <= prefs.last_hour)].reset_index(drop=True)
    slots["hour"] = slots["ds"].dt.hour
    slots["weekday"] = slots["ds"].dt.weekday
    slots["slot_key"] = ((slots["ds"] - EPOCH) // pd.Timedelta(milliseconds=1)).astype("int64")
    return slots


def paint_slots(slots: pd.DataFrame, blocks: List[CalendarBlock]) -> pd.DataFrame:
    """
    Mark each cell with the kind and id of the first block covering it.

    ``blocks`` is expected in visible-week order (start, persisted first), so a
    cell shared by a persisted and a base block shows the persisted one.
    """
    out = slots.copy()
    kind = np.full(len(out), None, dtype=object)
    block_id = np.full(len(out), None, dtype=object)

    starts = out["ds"].values
    ends = (out["ds"] + pd.Timedelta(hours=1)).values
    for b in blocks:
        mask = (starts < b.end.to_datetime64()) & (ends > b.start.to_datetime64())
        mask &= pd.isnull(kind)
        kind[mask] = b.kind.value
        if b.block_id is not None:
            block_id[mask] = b.block_id

    out["kind"] = kind
    out["block_id"] = block_id
    out["available"] = pd.notnull(kind)
    return out


def daily_available_hours(blocks: List[CalendarBlock],
                          week_start,
                          days: int = 7) -> pd.DataFrame:
    """Hours of persisted and base study time on each day of the week."""
    week_start = start_of_week(week_start)
    rows = []
    for day in pd.date_range(week_start, periods=days, freq="D"):
        day_end = day + pd.Timedelta(days=1)
        hours = {k.value: 0.0 for k in BlockKind}
        for b in blocks:
            seg = clip(b, day, day_end)
            if seg is not None:
                hours[b.kind.value] += seg.minutes / 60.0
        rows.append({"date": day, **hours})
    df = pd.DataFrame(rows, columns=["date", "persisted", "base"])
    df["total"] = df["persisted"] + df["base"]
    return df
