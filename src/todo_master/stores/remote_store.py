# src/todo_master/stores/remote_store.py

from __future__ import annotations

"""
Remote-synchronized task store.

Every mutation is a single write request against a DocumentCollection. Nothing is applied
locally: the visible list only changes when the collection's live query pushes the next
ordered snapshot.
"""

import logging
import time
from collections.abc import Sequence

from ..core.errors import LoadFailed, ValidationFailed, WriteFailed
from ..core.models import Task, TaskId, normalize_text
from ..core.ports import (
    Document,
    DocumentCollection,
    LoadErrorCallback,
    SnapshotCallback,
    Subscription,
)
from .memory_store import Clock

logger = logging.getLogger(__name__)

ORDER_FIELD = "createdAt"


class RemoteTaskStore:
    def __init__(self, collection: DocumentCollection, *, clock: Clock = time.time) -> None:
        self._collection = collection
        self._clock = clock

    async def add(self, text: str) -> None:
        try:
            cleaned = normalize_text(text)
        except ValidationFailed:
            logger.debug("add rejected: empty text")
            return
        fields = {"text": cleaned, "completed": False, ORDER_FIELD: self._clock()}
        try:
            doc_id = await self._collection.create(fields)
        except Exception as exc:
            logger.warning("Remote add failed: %r", exc)
            raise WriteFailed("add failed") from exc
        logger.debug("Remote add requested id=%s", doc_id)

    async def remove(self, task_id: TaskId) -> None:
        try:
            await self._collection.delete(task_id)
        except Exception as exc:
            logger.warning("Remote remove failed id=%s: %r", task_id, exc)
            raise WriteFailed("remove failed") from exc

    async def set_completed(self, task_id: TaskId, completed: bool) -> None:
        await self._update(task_id, {"completed": bool(completed)})

    async def set_text(self, task_id: TaskId, text: str) -> None:
        try:
            cleaned = normalize_text(text)
        except ValidationFailed:
            logger.debug("set_text rejected: empty text id=%s", task_id)
            return
        await self._update(task_id, {"text": cleaned})

    def subscribe(
            self,
            on_snapshot: SnapshotCallback,
            on_error: LoadErrorCallback,
    ) -> Subscription:
        def _deliver(docs: Sequence[Document]) -> None:
            tasks: list[Task] = []
            for doc_id, fields in docs:
                task = Task.from_document(doc_id, fields)
                if task is None:
                    logger.warning("Skipping malformed task document id=%s", doc_id)
                    continue
                tasks.append(task)
            on_snapshot(tuple(tasks))

        def _fail(exc: Exception) -> None:
            logger.error("Task subscription failed: %r", exc)
            err = LoadFailed("could not load tasks")
            err.__cause__ = exc
            on_error(err)

        return self._collection.watch(order_by=ORDER_FIELD, on_snapshot=_deliver, on_error=_fail)

    async def _update(self, task_id: TaskId, fields: dict[str, object]) -> None:
        try:
            await self._collection.update(task_id, fields)
        except Exception as exc:
            logger.warning("Remote update failed id=%s fields=%s: %r", task_id, sorted(fields), exc)
            raise WriteFailed("update failed") from exc
