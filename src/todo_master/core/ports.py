# src/todo_master/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The controller depends on Protocols instead of concrete stores.
This keeps the local and remote-synced variants swappable and makes testing easier.
"""

from collections.abc import Callable, Sequence
from typing import Any, Protocol

from .errors import LoadFailed
from .models import Task, TaskId

Snapshot = tuple[Task, ...]
SnapshotCallback = Callable[[Snapshot], None]
LoadErrorCallback = Callable[[LoadFailed], None]

Document = tuple[str, dict[str, Any]]
# (store-assigned id, fields) as delivered by a live query.

DocumentsCallback = Callable[[Sequence[Document]], None]
WatchErrorCallback = Callable[[Exception], None]


class Subscription(Protocol):
    """Handle for a live listener. unsubscribe() must be idempotent."""

    def unsubscribe(self) -> None: ...


class TaskStore(Protocol):
    """
    Where tasks live and how mutations are applied.

    Mutations:
    - empty/whitespace text is a silent no-op (add, set_text)
    - unknown ids are a silent no-op (remove, set_completed, set_text)
    - remote implementations raise WriteFailed when the write is rejected

    The visible sequence is only ever what subscribe() delivers.
    """

    async def add(self, text: str) -> None: ...
    async def remove(self, task_id: TaskId) -> None: ...
    async def set_completed(self, task_id: TaskId, completed: bool) -> None: ...
    async def set_text(self, task_id: TaskId, text: str) -> None: ...

    def subscribe(
            self,
            on_snapshot: SnapshotCallback,
            on_error: LoadErrorCallback,
    ) -> Subscription: ...


class DocumentCollection(Protocol):
    """
    Storage-side port: a hosted document collection.

    Records are keyed by a store-assigned id and hold plain fields
    ({"text": str, "completed": bool, "createdAt": float} for tasks).
    """

    async def create(self, fields: dict[str, Any]) -> str: ...
    async def update(self, doc_id: str, fields: dict[str, Any]) -> None: ...
    async def delete(self, doc_id: str) -> None: ...

    def watch(
            self,
            *,
            order_by: str,
            on_snapshot: DocumentsCallback,
            on_error: WatchErrorCallback,
    ) -> Subscription: ...
