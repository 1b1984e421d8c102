# studyplanner/stores.py
"""
In-memory stores behind the narrow data contracts the planner consumes.

Each store pushes the full current snapshot to its subscribers on every change
(replacement, never deltas), and once immediately on subscribe. They stand in
for a live document store and are what the app and tests run against.
"""
import logging
import uuid
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional, Union

from .clock import to_instant
from .exceptions import UnknownRecordError
from .models import StudyBlock, Task
from .pattern import BasePattern, set_excluded

logger = logging.getLogger(__name__)


class Subscription:
    """Cancellation handle returned by ``subscribe``. Cancelling twice is a no-op."""

    def __init__(self, cancel_fn: Optional[Callable[[], None]] = None):
        self._cancel_fn = cancel_fn

    @property
    def active(self) -> bool:
        return self._cancel_fn is not None

    def cancel(self) -> None:
        fn, self._cancel_fn = self._cancel_fn, None
        if fn is not None:
            fn()

    __call__ = cancel


class _Listeners:
    def __init__(self):
        self._callbacks: List[Callable] = []

    def add(self, cb: Callable) -> Subscription:
        self._callbacks.append(cb)

        def _remove():
            if cb in self._callbacks:
                self._callbacks.remove(cb)
        return Subscription(_remove)

    def notify(self, snapshot) -> None:
        for cb in list(self._callbacks):
            cb(snapshot)

    def __len__(self) -> int:
        return len(self._callbacks)


class InMemoryBlockStore:
    def __init__(self):
        self._blocks: Dict[str, StudyBlock] = {}
        self._listeners = _Listeners()

    def list(self) -> List[StudyBlock]:
        return sorted(self._blocks.values(), key=lambda b: b.start)

    def add(self, start, end, title: str = "Study") -> StudyBlock:
        s, e = to_instant(start), to_instant(end)
        if s is None or e is None or e <= s:
            raise ValueError(f"invalid study block bounds {start!r}..{end!r}")
        block = StudyBlock(id=uuid.uuid4().hex, start=s, end=e, title=title or "Study")
        self._blocks[block.id] = block
        logger.debug("added study block %s %s..%s", block.id, s, e)
        self._listeners.notify(self.list())
        return block

    def delete(self, block_id: str) -> None:
        if block_id not in self._blocks:
            raise UnknownRecordError(block_id)
        del self._blocks[block_id]
        self._listeners.notify(self.list())

    def subscribe(self, cb: Callable[[List[StudyBlock]], None]) -> Subscription:
        sub = self._listeners.add(cb)
        cb(self.list())
        return sub

    def clear(self) -> None:
        self._blocks = {}
        self._listeners.notify(self.list())


class InMemoryPatternStore:
    def __init__(self):
        self._pattern = BasePattern()
        self._listeners = _Listeners()

    def get(self) -> BasePattern:
        return self._pattern.copy()

    def save(self, pattern: BasePattern) -> None:
        self._pattern = BasePattern(pattern)
        logger.debug("saved base pattern with %d slots", len(self._pattern))
        self._listeners.notify(self.get())

    def subscribe(self, cb: Callable[[BasePattern], None]) -> Subscription:
        sub = self._listeners.add(cb)
        cb(self.get())
        return sub

    def clear(self) -> None:
        self.save(BasePattern())


class InMemoryExclusionStore:
    def __init__(self):
        self._weeks: Dict[str, frozenset] = {}
        self._listeners: Dict[str, _Listeners] = {}

    def get(self, week_id: str) -> frozenset:
        return self._weeks.get(week_id, frozenset())

    def toggle(self, week_id: str, key: int, exclude: bool) -> frozenset:
        updated = set_excluded(self.get(week_id), key, exclude)
        self._weeks[week_id] = updated
        self._notify(week_id)
        return updated

    def subscribe(self, week_id: str, cb: Callable[[frozenset], None]) -> Subscription:
        listeners = self._listeners.setdefault(week_id, _Listeners())
        inner = listeners.add(cb)

        def _cancel():
            inner.cancel()
            # forget weeks nobody watches any more
            if not listeners and self._listeners.get(week_id) is listeners:
                del self._listeners[week_id]

        sub = Subscription(_cancel)
        cb(self.get(week_id))
        return sub

    def clear(self) -> None:
        weeks = list(self._weeks)
        self._weeks = {}
        for week_id in weeks:
            self._notify(week_id)

    def _notify(self, week_id: str) -> None:
        listeners = self._listeners.get(week_id)
        if listeners:
            listeners.notify(self.get(week_id))


class InMemoryTaskStore:
    def __init__(self):
        self._tasks: Dict[str, Task] = {}
        self._listeners = _Listeners()

    def list(self) -> List[Task]:
        return [replace(t) for t in self._tasks.values()]

    def add(self, task: Union[Task, Dict[str, Any]]) -> Task:
        if not isinstance(task, Task):
            task = Task.from_record(task)
        task.validate()
        task = replace(task, id=task.id or uuid.uuid4().hex, completed=False)
        self._tasks[task.id] = task
        self._listeners.notify(self.list())
        return replace(task)

    def set_completed(self, task_id: str, completed: bool) -> None:
        if task_id not in self._tasks:
            raise UnknownRecordError(task_id)
        self._tasks[task_id] = replace(self._tasks[task_id], completed=bool(completed))
        self._listeners.notify(self.list())

    def delete(self, task_id: str) -> None:
        if task_id not in self._tasks:
            raise UnknownRecordError(task_id)
        del self._tasks[task_id]
        self._listeners.notify(self.list())

    def subscribe(self, cb: Callable[[List[Task]], None]) -> Subscription:
        sub = self._listeners.add(cb)
        cb(self.list())
        return sub

    def clear(self) -> None:
        self._tasks = {}
        self._listeners.notify(self.list())
