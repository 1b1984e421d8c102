# studyplanner/session.py
"""
Planner session: the state one signed-in user works against.

Store subscriptions push full snapshots into the session. Every snapshot
replaces what the session held for that key (tasks, blocks, pattern, or one
week's exclusions) and the visible week is recomputed from scratch.
Updates are applied in arrival order, so the last writer wins.
"""
import logging
import math
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

import pandas as pd

from . import clock
from .availability import AvailabilitySnapshot, classify_slot, visible_week_blocks
from .metrics import RANKING_TIME, SNAPSHOT_UPDATES
from .models import BlockKind, CalendarBlock, RankedTask, StudyBlock, Task, UserPrefs
from .pattern import BasePattern, is_excluded, is_patterned
from .priority import rank_tasks, ranking_frame
from .stores import (
    InMemoryBlockStore,
    InMemoryExclusionStore,
    InMemoryPatternStore,
    InMemoryTaskStore,
    Subscription,
)

logger = logging.getLogger(__name__)


class PlannerSession:
    def __init__(self,
                 prefs: Optional[UserPrefs] = None,
                 *,
                 task_store=None,
                 block_store=None,
                 pattern_store=None,
                 exclusion_store=None,
                 on_change: Optional[Callable[["PlannerSession"], None]] = None,
                 now_fn: Optional[Callable[[], pd.Timestamp]] = None):
        self.prefs = prefs or UserPrefs()
        self.task_store = task_store or InMemoryTaskStore()
        self.block_store = block_store or InMemoryBlockStore()
        self.pattern_store = pattern_store or InMemoryPatternStore()
        self.exclusion_store = exclusion_store or InMemoryExclusionStore()
        self.on_change = on_change
        self._now_fn = now_fn

        self.tasks: List[Task] = []
        self.study_all: List[StudyBlock] = []
        self.base_pattern = BasePattern()
        self.exclusions_by_week: Dict[str, frozenset] = {}
        self.week_offset = 0
        self.visible: List[CalendarBlock] = []

        self._subs: List[Subscription] = []
        self._exclusion_sub: Optional[Subscription] = None

    # ---------- clock / week ----------
    def now(self) -> pd.Timestamp:
        if self._now_fn is not None:
            return self._now_fn()
        return clock.now(self.prefs.tz)

    def week_range(self, week_offset: Optional[int] = None) -> Tuple[pd.Timestamp, pd.Timestamp]:
        offset = self.week_offset if week_offset is None else week_offset
        return clock.week_range(offset, self.now())

    def week_id(self, week_offset: Optional[int] = None) -> str:
        return clock.week_id(self.week_range(week_offset)[0])

    def set_week_offset(self, week_offset: int) -> None:
        self.week_offset = int(week_offset)
        if self.attached:
            self.resubscribe(self.week_id())
        self._changed()

    def next_week(self) -> None:
        self.set_week_offset(self.week_offset + 1)

    def prev_week(self) -> None:
        self.set_week_offset(self.week_offset - 1)

    # ---------- subscriptions ----------
    @property
    def attached(self) -> bool:
        return bool(self._subs)

    def attach(self) -> None:
        """Subscribe to every store; each store replays its snapshot immediately."""
        self.detach()
        self._subs = [
            self.task_store.subscribe(self.apply_tasks),
            self.block_store.subscribe(self.apply_study_blocks),
            self.pattern_store.subscribe(self.apply_pattern),
        ]
        self.resubscribe(self.week_id())

    def detach(self) -> None:
        for sub in self._subs:
            sub.cancel()
        self._subs = []
        if self._exclusion_sub is not None:
            self._exclusion_sub.cancel()
            self._exclusion_sub = None

    def resubscribe(self, week_id: str) -> Subscription:
        """Replace the exclusion subscription with one for ``week_id``."""
        if self._exclusion_sub is not None:
            self._exclusion_sub.cancel()
        self._exclusion_sub = self.exclusion_store.subscribe(
            week_id, lambda keys: self.apply_exclusions(week_id, keys))
        return self._exclusion_sub

    # ---------- snapshot application ----------
    def apply_tasks(self, tasks: Iterable[Union[Task, Dict[str, Any]]]) -> None:
        self.tasks = []
        for t in tasks:
            if not isinstance(t, Task):
                try:
                    t = Task.from_record(t)
                except (TypeError, ValueError) as e:
                    logger.warning("skipping invalid task record %r: %s", t, e)
                    continue
            self.tasks.append(t)
        SNAPSHOT_UPDATES.labels(kind="tasks").inc()
        self._changed()

    def apply_study_blocks(self, blocks: Iterable[StudyBlock]) -> None:
        self.study_all = list(blocks)
        SNAPSHOT_UPDATES.labels(kind="blocks").inc()
        self._changed()

    def apply_pattern(self, pattern: Union[BasePattern, Iterable[Dict[str, int]]]) -> None:
        if isinstance(pattern, BasePattern):
            self.base_pattern = pattern.copy()
        else:
            self.base_pattern = BasePattern.from_records(pattern)
        SNAPSHOT_UPDATES.labels(kind="pattern").inc()
        self._changed()

    def apply_exclusions(self, week_id: str, keys: Iterable[int]) -> None:
        # replace, never union: stale keys must not come back
        self.exclusions_by_week[week_id] = frozenset(int(k) for k in keys)
        SNAPSHOT_UPDATES.labels(kind="exclusions").inc()
        self._changed()

    def _changed(self) -> None:
        self.visible = self.visible_blocks()
        logger.debug("recomputed week %s: %d visible blocks", self.week_offset, len(self.visible))
        if self.on_change is not None:
            self.on_change(self)

    # ---------- queries ----------
    def snapshot(self) -> AvailabilitySnapshot:
        return AvailabilitySnapshot(
            study_blocks=list(self.study_all),
            pattern=self.base_pattern.copy(),
            exclusions_by_week=dict(self.exclusions_by_week),
        )

    def visible_blocks(self, week_offset: Optional[int] = None) -> List[CalendarBlock]:
        start, end = self.week_range(week_offset)
        return visible_week_blocks(self.study_all, self.base_pattern,
                                   self.exclusions_by_week.get(clock.week_id(start)), start, end)

    def classify_slot(self, weekday: int, hour: int, week_offset: Optional[int] = None) -> Optional[str]:
        start, _ = self.week_range(week_offset)
        return classify_slot(self.visible_blocks(week_offset), start, weekday, hour)

    def ranked_tasks(self, now: Optional[pd.Timestamp] = None,
                     sort_mode: Optional[str] = None) -> List[RankedTask]:
        with RANKING_TIME.time():
            return rank_tasks(self.tasks, now if now is not None else self.now(),
                              self.snapshot(), sort_mode or self.prefs.sort_mode)

    def ranking_frame(self, now: Optional[pd.Timestamp] = None,
                      sort_mode: Optional[str] = None) -> pd.DataFrame:
        return ranking_frame(self.ranked_tasks(now, sort_mode))

    # ---------- calendar actions ----------
    def _block_at(self, weekday: int, hour: int) -> Optional[CalendarBlock]:
        start, _ = self.week_range()
        slot_start = clock.slot_start_for(start, weekday, hour)
        slot_end = slot_start + pd.Timedelta(hours=1)
        for b in self.visible_blocks():
            if b.start < slot_end and b.end > slot_start:
                return b
        return None

    def toggle_slot(self, weekday: int, hour: int) -> str:
        """
        Click on a calendar hour in the visible week.

        A persisted block is deleted, a base slot is excluded for this week,
        an excluded pattern slot is restored, and an empty slot gets a new
        one-hour persisted block. Returns what happened.
        """
        week_start, _ = self.week_range()
        wid = clock.week_id(week_start)
        key = clock.slot_key(week_start, weekday, hour)
        block = self._block_at(weekday, hour)

        if block is not None and block.kind is BlockKind.PERSISTED:
            self.block_store.delete(block.block_id)
            return "deleted"
        if block is not None and block.kind is BlockKind.BASE:
            self.exclusion_store.toggle(wid, key, True)
            return "excluded"
        if is_patterned(self.base_pattern, weekday, hour) and \
                is_excluded(self.exclusions_by_week.get(wid), key):
            self.exclusion_store.toggle(wid, key, False)
            return "restored"
        start = clock.slot_start(key)
        self.block_store.add(start, start + pd.Timedelta(hours=1))
        return "added"

    def set_slot_excluded(self, weekday: int, hour: int, exclude: bool) -> frozenset:
        week_start, _ = self.week_range()
        return self.exclusion_store.toggle(clock.week_id(week_start),
                                           clock.slot_key(week_start, weekday, hour), exclude)

    def convert_to_override(self, weekday: int, hour: int) -> StudyBlock:
        """Turn this week's base slot into a fixed persisted block."""
        block = self._block_at(weekday, hour)
        if block is None or block.kind is not BlockKind.BASE:
            raise ValueError(f"no base slot at weekday={weekday} hour={hour}")
        self.set_slot_excluded(weekday, hour, True)
        return self.block_store.add(block.start, block.end)

    # ---------- base pattern editing ----------
    def toggle_pattern(self, weekday: int, hour: int) -> bool:
        """Local edit; call save_pattern() to persist it."""
        return self.base_pattern.toggle(weekday, hour)

    def clear_pattern(self) -> None:
        self.base_pattern.clear()

    def save_pattern(self) -> None:
        self.pattern_store.save(self.base_pattern)
        if not self.attached:
            self._changed()

    # ---------- tasks ----------
    def add_task(self, name: str, due_date, time_needed, importance: Optional[int] = None) -> Task:
        name = (name or "").strip()
        try:
            hours = float(time_needed)
        except (TypeError, ValueError):
            hours = float("nan")
        if not name or not due_date or math.isnan(hours):
            raise ValueError("task needs a name, a due date and a numeric time estimate")
        task = Task(
            id="",
            name=name,
            due_date=due_date,
            time_needed=hours,
            importance=self.prefs.default_importance if importance is None else int(importance),
        )
        task.validate()
        return self.task_store.add(task)

    def set_completed(self, task_id: str, completed: bool) -> None:
        self.task_store.set_completed(task_id, completed)

    def delete_task(self, task_id: str) -> None:
        self.task_store.delete(task_id)

    def delete_all_data(self) -> None:
        """Wipe tasks, blocks, pattern and exclusions from every store."""
        for store in (self.task_store, self.block_store, self.pattern_store, self.exclusion_store):
            store.clear()
        self.exclusions_by_week = {}
        logger.info("deleted all planner data")
        self._changed()
