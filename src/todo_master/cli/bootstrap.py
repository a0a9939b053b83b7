# src/todo_master/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- ensures local (gitignored) directories exist,
- picks the TaskStore variant from settings,
- wires it into a TaskListController.
"""

from __future__ import annotations

import logging

from ..config import DEMO_TASKS, STORE_SQLITE, Settings, get_settings
from ..core.controller import TaskListController, ViewListener
from ..core.ports import TaskStore
from ..stores.memory_store import InMemoryTaskStore
from ..stores.remote_store import RemoteTaskStore
from ..stores.sqlite_collection import SqliteDocumentCollection

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings: Settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.db_path.parent.mkdir(parents=True, exist_ok=True)


def create_store(settings: Settings) -> TaskStore:
    if settings.store_backend == STORE_SQLITE:
        _ensure_local_dirs(settings)
        collection = SqliteDocumentCollection(
            settings.db_path,
            name=settings.collection,
            poll_interval=settings.poll_interval_seconds,
        )
        logger.info("Using remote-synced store (%s:%s)", settings.db_path, settings.collection)
        return RemoteTaskStore(collection)

    logger.info("Using in-memory store (seed_demo=%s)", settings.seed_demo)
    return InMemoryTaskStore(DEMO_TASKS if settings.seed_demo else ())


def create_controller(
        *,
        settings: Settings | None = None,
        on_change: ViewListener | None = None,
) -> TaskListController:
    """
    Build a controller for the configured store.

    Settings are injectable for tests; falls back to get_settings().
    The controller is not started: use `async with` or start()/close().
    """
    if settings is None:
        settings = get_settings()
    return TaskListController(create_store(settings), on_change=on_change)
