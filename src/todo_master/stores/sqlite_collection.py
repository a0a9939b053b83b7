# src/todo_master/stores/sqlite_collection.py

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import sqlite3
import time
import uuid
from pathlib import Path
from typing import Any

from ..core.ports import Document, DocumentsCallback, WatchErrorCallback

logger = logging.getLogger(__name__)


class SqliteDocumentCollection:
    """
    SQLite-backed document collection with an ordered live query.

    Storage:
    - one row per document, fields kept as a JSON object
    - a per-collection revision counter bumped on every effective write

    Live query:
    - watch() starts an asyncio task that delivers the full ordered snapshot,
      then polls the revision and re-delivers whenever it changed
    - writes through this instance wake watchers immediately; writes from other
      processes sharing the file are picked up on the next poll

    Thread-safety:
    - each call opens its own SQLite connection; blocking work runs in a worker thread
    """

    def __init__(
            self,
            db_path: str | Path = "todos.sqlite3",
            *,
            name: str = "todos",
            poll_interval: float = 0.5,
    ) -> None:
        if not name or not name.strip():
            raise ValueError("collection name is required")
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._name = name.strip()
        self._poll_interval = max(0.01, float(poll_interval))
        self._watches: set[_Watch] = set()
        self._ensure_schema()
        logger.info("SqliteDocumentCollection ready db=%s collection=%s", self._db_path, self._name)

    @property
    def name(self) -> str:
        return self._name

    @property
    def poll_interval(self) -> float:
        return self._poll_interval

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(Exception):
            conn.execute("PRAGMA journal_mode=WAL")

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS documents (
                    id TEXT PRIMARY KEY,
                    collection TEXT NOT NULL,
                    data TEXT NOT NULL DEFAULT '{}',
                    created_at REAL NOT NULL,
                    updated_at REAL NOT NULL
                )
                """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS revisions (
                    collection TEXT PRIMARY KEY,
                    revision INTEGER NOT NULL DEFAULT 0
                )
                """
            )
            cur.execute("CREATE INDEX IF NOT EXISTS idx_documents_collection ON documents(collection)")
            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _fields_to_str(fields: dict[str, Any]) -> str:
        return json.dumps(fields, ensure_ascii=False)

    @staticmethod
    def _str_to_fields(s: str | None) -> dict[str, Any]:
        if not s:
            return {}
        try:
            val = json.loads(s)
            return val if isinstance(val, dict) else {}
        except Exception:
            logger.warning("Corrupt document JSON ignored")
            return {}

    def _bump_revision(self, cur: sqlite3.Cursor) -> None:
        cur.execute(
            """
            INSERT INTO revisions(collection, revision) VALUES (?, 1)
            ON CONFLICT(collection) DO UPDATE SET revision = revision + 1
            """,
            (self._name,),
        )

    # ---- blocking operations ----

    def _create_sync(self, fields: dict[str, Any]) -> str:
        doc_id = uuid.uuid4().hex
        now = time.time()
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                "INSERT INTO documents(id, collection, data, created_at, updated_at) VALUES (?, ?, ?, ?, ?)",
                (doc_id, self._name, self._fields_to_str(fields), now, now),
            )
            self._bump_revision(cur)
            conn.commit()
            return doc_id
        finally:
            conn.close()

    def _update_sync(self, doc_id: str, fields: dict[str, Any]) -> bool:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                "SELECT data FROM documents WHERE id = ? AND collection = ?",
                (doc_id, self._name),
            )
            row = cur.fetchone()
            if row is None:
                return False
            merged = {**self._str_to_fields(row["data"]), **fields}
            cur.execute(
                "UPDATE documents SET data = ?, updated_at = ? WHERE id = ?",
                (self._fields_to_str(merged), time.time(), doc_id),
            )
            self._bump_revision(cur)
            conn.commit()
            return True
        finally:
            conn.close()

    def _delete_sync(self, doc_id: str) -> bool:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("DELETE FROM documents WHERE id = ? AND collection = ?", (doc_id, self._name))
            if cur.rowcount != 1:
                return False
            self._bump_revision(cur)
            conn.commit()
            return True
        finally:
            conn.close()

    def _read_if_changed(self, last_revision: int | None, order_by: str) -> tuple[int, list[Document] | None]:
        """Return (revision, documents) or (revision, None) when nothing changed since last_revision."""
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT revision FROM revisions WHERE collection = ?", (self._name,))
            row = cur.fetchone()
            revision = int(row["revision"]) if row else 0
            if revision == last_revision:
                return revision, None

            cur.execute(
                "SELECT id, data FROM documents WHERE collection = ? ORDER BY rowid ASC",
                (self._name,),
            )
            docs = [(str(r["id"]), self._str_to_fields(r["data"])) for r in cur.fetchall()]
            # Stable sort: ties keep insertion order.
            docs.sort(key=lambda d: _order_key(d[1].get(order_by)))
            return revision, docs
        finally:
            conn.close()

    def count_documents(self) -> int:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT COUNT(*) FROM documents WHERE collection = ?", (self._name,))
            (n,) = cur.fetchone()
            return int(n)
        finally:
            conn.close()

    # ---- public API ----

    async def create(self, fields: dict[str, Any]) -> str:
        doc_id = await asyncio.to_thread(self._create_sync, dict(fields))
        logger.debug("Document created collection=%s id=%s", self._name, doc_id)
        self._notify()
        return doc_id

    async def update(self, doc_id: str, fields: dict[str, Any]) -> None:
        changed = await asyncio.to_thread(self._update_sync, str(doc_id), dict(fields))
        if changed:
            logger.debug("Document updated collection=%s id=%s", self._name, doc_id)
            self._notify()

    async def delete(self, doc_id: str) -> None:
        changed = await asyncio.to_thread(self._delete_sync, str(doc_id))
        if changed:
            logger.debug("Document deleted collection=%s id=%s", self._name, doc_id)
            self._notify()

    def watch(
            self,
            *,
            order_by: str,
            on_snapshot: DocumentsCallback,
            on_error: WatchErrorCallback,
    ) -> _Watch:
        """Start a live query. Must be called from a running event loop."""
        w = _Watch(self, order_by, on_snapshot, on_error)
        self._watches.add(w)
        return w

    def _notify(self) -> None:
        for w in list(self._watches):
            w.wake()

    def _forget(self, w: _Watch) -> None:
        self._watches.discard(w)


def _order_key(value: Any) -> tuple[int, Any]:
    # Missing/non-numeric order values sort first, like an unset timestamp.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return (0, 0.0)
    return (1, float(value))


class _Watch:
    def __init__(
            self,
            collection: SqliteDocumentCollection,
            order_by: str,
            on_snapshot: DocumentsCallback,
            on_error: WatchErrorCallback,
    ) -> None:
        self._collection = collection
        self._order_by = order_by
        self._on_snapshot = on_snapshot
        self._on_error = on_error
        self._wake = asyncio.Event()
        self._task = asyncio.get_running_loop().create_task(self._run())

    @property
    def active(self) -> bool:
        return not self._task.done()

    def wake(self) -> None:
        self._wake.set()

    def unsubscribe(self) -> None:
        self._task.cancel()
        self._collection._forget(self)

    async def _run(self) -> None:
        last_revision: int | None = None
        try:
            while True:
                self._wake.clear()
                try:
                    revision, docs = await asyncio.to_thread(
                        self._collection._read_if_changed, last_revision, self._order_by
                    )
                except Exception as exc:
                    logger.exception("Live query failed collection=%s", self._collection.name)
                    self._on_error(exc)
                    return

                if docs is not None:
                    last_revision = revision
                    try:
                        self._on_snapshot(docs)
                    except Exception:
                        logger.exception("Snapshot callback crashed collection=%s", self._collection.name)

                with contextlib.suppress(asyncio.TimeoutError):
                    await asyncio.wait_for(self._wake.wait(), timeout=self._collection.poll_interval)
        finally:
            self._collection._forget(self)
