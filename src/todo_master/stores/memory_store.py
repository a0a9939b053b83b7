# src/todo_master/stores/memory_store.py

from __future__ import annotations

import contextlib
import logging
import time
from collections.abc import Callable, Iterable, Iterator
from dataclasses import replace

from ..core.errors import ValidationFailed
from ..core.models import Task, TaskId, normalize_text
from ..core.ports import LoadErrorCallback, Snapshot, SnapshotCallback

logger = logging.getLogger(__name__)

IdFactory = Callable[[], TaskId]
Clock = Callable[[], float]


def monotonic_ids() -> IdFactory:
    """
    Default id generator: millisecond timestamps, bumped so consecutive ids never repeat.
    """
    last = 0

    def _next() -> TaskId:
        nonlocal last
        last = max(last + 1, time.time_ns() // 1_000_000)
        return str(last)

    return _next


class _Listener:
    __slots__ = ("_store", "callback")

    def __init__(self, store: InMemoryTaskStore, callback: SnapshotCallback) -> None:
        self._store = store
        self.callback = callback

    def unsubscribe(self) -> None:
        self._store._drop_listener(self)


class InMemoryTaskStore:
    """
    Authoritative task list held in process memory.

    - all mutations complete without suspending: the change is visible once the await returns
    - ids come from a single injectable factory (swap for a deterministic one in tests)
    - listeners get the full snapshot on subscribe and after every effective mutation
    """

    def __init__(
            self,
            initial: Iterable[tuple[str, bool]] = (),
            *,
            id_factory: IdFactory | None = None,
            clock: Clock = time.time,
    ) -> None:
        self._new_id = id_factory or monotonic_ids()
        self._clock = clock
        self._tasks: list[Task] = []
        self._listeners: list[_Listener] = []

        for text, completed in initial:
            with contextlib.suppress(ValidationFailed):
                self._append(normalize_text(text), completed=bool(completed))

        logger.info("InMemoryTaskStore ready total=%s", len(self._tasks))

    # ---- reads ----

    def snapshot(self) -> Snapshot:
        return tuple(self._tasks)

    def get(self, task_id: TaskId) -> Task | None:
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    def __len__(self) -> int:
        return len(self._tasks)

    def __iter__(self) -> Iterator[Task]:
        return iter(self.snapshot())

    # ---- mutations ----

    async def add(self, text: str) -> None:
        try:
            cleaned = normalize_text(text)
        except ValidationFailed:
            logger.debug("add rejected: empty text")
            return
        task = self._append(cleaned, completed=False)
        logger.debug("Task added id=%s", task.id)
        self._publish()

    async def remove(self, task_id: TaskId) -> None:
        kept = [t for t in self._tasks if t.id != task_id]
        if len(kept) == len(self._tasks):
            return
        self._tasks = kept
        logger.debug("Task removed id=%s", task_id)
        self._publish()

    async def set_completed(self, task_id: TaskId, completed: bool) -> None:
        self._replace(task_id, completed=bool(completed))

    async def set_text(self, task_id: TaskId, text: str) -> None:
        try:
            cleaned = normalize_text(text)
        except ValidationFailed:
            logger.debug("set_text rejected: empty text id=%s", task_id)
            return
        self._replace(task_id, text=cleaned)

    # ---- subscription ----

    def subscribe(
            self,
            on_snapshot: SnapshotCallback,
            on_error: LoadErrorCallback,
    ) -> _Listener:
        # Local state cannot fail to load; on_error is accepted for interface parity.
        listener = _Listener(self, on_snapshot)
        self._listeners.append(listener)
        on_snapshot(self.snapshot())
        return listener

    # ---- helpers ----

    def _append(self, text: str, *, completed: bool) -> Task:
        created_at = self._clock()
        if self._tasks:
            # Keep created_at ascending even if the clock steps backwards.
            created_at = max(created_at, self._tasks[-1].created_at)
        task = Task(id=self._new_id(), text=text, completed=completed, created_at=created_at)
        if self.get(task.id) is not None:
            raise RuntimeError(f"id factory produced a duplicate id: {task.id}")
        self._tasks.append(task)
        return task

    def _replace(self, task_id: TaskId, **changes: object) -> None:
        for i, task in enumerate(self._tasks):
            if task.id == task_id:
                self._tasks[i] = replace(task, **changes)  # type: ignore[arg-type]
                logger.debug("Task updated id=%s fields=%s", task_id, sorted(changes))
                self._publish()
                return

    def _drop_listener(self, listener: _Listener) -> None:
        with contextlib.suppress(ValueError):
            self._listeners.remove(listener)

    def _publish(self) -> None:
        snap = self.snapshot()
        for listener in list(self._listeners):
            listener.callback(snap)
