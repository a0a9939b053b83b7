# src/todo_master/core/controller.py

from __future__ import annotations

"""
TaskListController: the contract a presentation layer talks to.

Reads (never cached, recomputed from the last delivered snapshot):
- tasks, completed_count, total_count, is_loading, last_error, load_failed
- edit_session / input_text (controller-local drafts)

Intents:
- add, toggle_completed, remove, commit_edit  (coroutines: they reach the store)
- begin_edit, update_draft, cancel_edit, set_input  (local only)

Lifecycle:
- start() subscribes to the store, close() releases the subscription
- `async with controller:` does both, releasing even if the body raises
- after close(), snapshot deliveries and late write completions are ignored
"""

import logging
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from types import TracebackType
from typing import Any

from .errors import LoadFailed, WriteFailed
from .models import EditSession, Task, TaskId
from .ports import Snapshot, Subscription, TaskStore

logger = logging.getLogger(__name__)

WRITE_FAILED_MESSAGE = "Could not save your change. Please try again."
LOAD_FAILED_MESSAGE = "Could not load tasks."


@dataclass(frozen=True, slots=True)
class TaskListView:
    """Everything a renderer needs, captured at one instant."""

    tasks: Snapshot
    completed_count: int
    total_count: int
    is_loading: bool
    last_error: str | None
    load_failed: bool
    edit_session: EditSession | None
    input_text: str


ViewListener = Callable[[TaskListView], None]


class TaskListController:
    def __init__(self, store: TaskStore, *, on_change: ViewListener | None = None) -> None:
        self._store = store
        self._on_change = on_change
        self._tasks: Snapshot = ()
        self._subscription: Subscription | None = None
        self._started = False
        self._closed = False
        self._loading = False
        self._load_failed = False
        self._last_error: str | None = None
        self._edit: EditSession | None = None
        self._input = ""

    # ---- lifecycle ----

    async def start(self) -> None:
        if self._closed:
            raise RuntimeError("controller is closed")
        if self._started:
            return
        self._started = True
        self._loading = True
        try:
            self._subscription = self._store.subscribe(self._on_snapshot, self._on_load_error)
        except Exception as exc:
            # Failing to even register the listener is the same terminal condition.
            logger.exception("Task subscription could not be established")
            err = LoadFailed("subscribe failed")
            err.__cause__ = exc
            self._on_load_error(err)
        logger.info("TaskListController started store=%s", type(self._store).__name__)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        sub, self._subscription = self._subscription, None
        if sub is not None:
            try:
                sub.unsubscribe()
            except Exception:
                logger.exception("unsubscribe failed")
        logger.info("TaskListController closed")

    async def __aenter__(self) -> TaskListController:
        await self.start()
        return self

    async def __aexit__(
            self,
            exc_type: type[BaseException] | None,
            exc: BaseException | None,
            tb: TracebackType | None,
    ) -> None:
        await self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    # ---- derived reads ----

    @property
    def tasks(self) -> Snapshot:
        return self._tasks

    @property
    def completed_count(self) -> int:
        return sum(1 for t in self._tasks if t.completed)

    @property
    def total_count(self) -> int:
        return len(self._tasks)

    @property
    def is_loading(self) -> bool:
        return self._loading

    @property
    def load_failed(self) -> bool:
        return self._load_failed

    @property
    def last_error(self) -> str | None:
        return self._last_error

    @property
    def edit_session(self) -> EditSession | None:
        return self._edit

    @property
    def input_text(self) -> str:
        return self._input

    def get(self, task_id: TaskId) -> Task | None:
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    def is_editing(self, task_id: TaskId) -> bool:
        return self._edit is not None and self._edit.task_id == task_id

    # "Disabled control" rules.

    @property
    def can_submit(self) -> bool:
        return bool(self._input.strip())

    @property
    def can_save_edit(self) -> bool:
        return self._edit is not None and bool(self._edit.draft.strip())

    def can_edit(self, task_id: TaskId) -> bool:
        task = self.get(task_id)
        return task is not None and not task.completed

    def can_toggle(self, task_id: TaskId) -> bool:
        return self.get(task_id) is not None and not self.is_editing(task_id)

    def view(self) -> TaskListView:
        return TaskListView(
            tasks=self._tasks,
            completed_count=self.completed_count,
            total_count=self.total_count,
            is_loading=self._loading,
            last_error=self._last_error,
            load_failed=self._load_failed,
            edit_session=self._edit,
            input_text=self._input,
        )

    # ---- intents ----

    def set_input(self, text: str) -> None:
        self._input = text

    async def add(self, text: str | None = None) -> bool:
        """
        Submit `text` (or the current input draft).

        The input draft is cleared only once the store accepted the write, and only
        if it still holds the submitted text; on WriteFailed it is kept so the user can retry.
        """
        if text is None:
            text = self._input
        ok = await self._write("add", self._store.add(text))
        if ok and not self._closed and self._input == text:
            self._input = ""
        return ok

    def begin_edit(self, task_id: TaskId) -> bool:
        """Enter edit mode; any other session is discarded. Completed tasks cannot be edited."""
        task = self.get(task_id)
        if task is None or task.completed:
            return False
        self._edit = EditSession(task_id=task.id, draft=task.text)
        return True

    def update_draft(self, text: str) -> bool:
        if self._edit is None:
            return False
        self._edit = EditSession(task_id=self._edit.task_id, draft=text)
        return True

    async def commit_edit(self) -> bool:
        session = self._edit
        if session is None or not session.draft.strip():
            return False
        ok = await self._write("set_text", self._store.set_text(session.task_id, session.draft))
        if ok and self._edit == session:
            self._edit = None
        return ok

    def cancel_edit(self) -> None:
        self._edit = None

    async def toggle_completed(self, task_id: TaskId) -> bool:
        task = self.get(task_id)
        if task is None or self.is_editing(task_id):
            return False
        return await self._write("set_completed", self._store.set_completed(task_id, not task.completed))

    async def remove(self, task_id: TaskId) -> bool:
        ok = await self._write("remove", self._store.remove(task_id))
        if ok and self.is_editing(task_id):
            self._edit = None
        return ok

    # ---- internals ----

    async def _write(self, op: str, pending: Coroutine[Any, Any, None]) -> bool:
        """Await one store write; convert WriteFailed into last_error."""
        if self._closed:
            pending.close()
            logger.debug("Ignoring %s on a closed controller", op)
            return False
        try:
            await pending
        except WriteFailed:
            if not self._closed and not self._load_failed:
                self._last_error = WRITE_FAILED_MESSAGE
            logger.info("Write failed op=%s", op)
            return False
        if not self._closed and not self._load_failed:
            self._last_error = None
        return True

    def _on_snapshot(self, snapshot: Snapshot) -> None:
        if self._closed:
            return
        self._tasks = tuple(snapshot)
        self._loading = False
        if self._edit is not None and self.get(self._edit.task_id) is None:
            logger.debug("Edited task disappeared id=%s; leaving edit mode", self._edit.task_id)
            self._edit = None
        self._emit()

    def _on_load_error(self, err: LoadFailed) -> None:
        if self._closed:
            return
        logger.warning("Task list unavailable: %s", err)
        self._loading = False
        self._load_failed = True
        self._last_error = LOAD_FAILED_MESSAGE
        sub, self._subscription = self._subscription, None
        if sub is not None:
            try:
                sub.unsubscribe()
            except Exception:
                logger.debug("unsubscribe after load failure failed", exc_info=True)
        self._emit()

    def _emit(self) -> None:
        if self._on_change is None:
            return
        try:
            self._on_change(self.view())
        except Exception:
            logger.exception("on_change listener crashed")
