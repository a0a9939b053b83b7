# tests/conftest.py

from __future__ import annotations

from pathlib import Path

import pytest

from todo_master.config import Settings
from todo_master.core.controller import TaskListController
from todo_master.stores.memory_store import InMemoryTaskStore
from todo_master.stores.remote_store import RemoteTaskStore

from .fakes import FakeClock, FakeCollection, SequentialIds


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    """
    Settings pointing at a per-test data dir.

    Built directly rather than from the environment to keep tests deterministic.
    """
    return Settings(
        app_name="Todo Master",
        log_level="DEBUG",
        store_backend="memory",
        seed_demo=False,
        data_dir=tmp_path / "data",
        db_path=tmp_path / "data" / "todos.sqlite3",
        collection="todos",
        poll_interval_seconds=0.05,
    )


@pytest.fixture()
def ids() -> SequentialIds:
    return SequentialIds()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def store(ids: SequentialIds, clock: FakeClock) -> InMemoryTaskStore:
    return InMemoryTaskStore(id_factory=ids, clock=clock)


@pytest.fixture()
def controller(store: InMemoryTaskStore) -> TaskListController:
    return TaskListController(store)


@pytest.fixture()
def collection() -> FakeCollection:
    return FakeCollection()


@pytest.fixture()
def remote_store(collection: FakeCollection, clock: FakeClock) -> RemoteTaskStore:
    return RemoteTaskStore(collection, clock=clock)
