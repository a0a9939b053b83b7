# tests/test_remote_store.py

from __future__ import annotations

import asyncio

import pytest

from todo_master.cli.commands import render_tasks
from todo_master.core.controller import (
    LOAD_FAILED_MESSAGE,
    WRITE_FAILED_MESSAGE,
    TaskListController,
)
from todo_master.core.errors import LoadFailed, WriteFailed
from todo_master.core.models import Task
from todo_master.stores.remote_store import RemoteTaskStore

from .fakes import FakeClock, FakeCollection


@pytest.mark.asyncio
async def test_add_writes_one_document(remote_store: RemoteTaskStore, collection: FakeCollection) -> None:
    await remote_store.add("  Learn  ")
    await remote_store.add("   ")

    assert collection.writes == [
        ("create", "doc-1", {"text": "Learn", "completed": False, "createdAt": 1000.0}),
    ]


@pytest.mark.asyncio
async def test_write_errors_are_typed(remote_store: RemoteTaskStore, collection: FakeCollection) -> None:
    boom = ConnectionError("offline")
    collection.fail_writes = boom

    with pytest.raises(WriteFailed) as info:
        await remote_store.add("Learn")
    assert info.value.__cause__ is boom

    with pytest.raises(WriteFailed):
        await remote_store.remove("doc-1")
    with pytest.raises(WriteFailed):
        await remote_store.set_completed("doc-1", True)
    with pytest.raises(WriteFailed):
        await remote_store.set_text("doc-1", "x")


@pytest.mark.asyncio
async def test_set_text_with_empty_text_sends_nothing(
        remote_store: RemoteTaskStore, collection: FakeCollection
) -> None:
    await remote_store.set_text("doc-1", "  ")
    assert collection.writes == []


@pytest.mark.asyncio
async def test_visible_list_only_changes_on_delivery(remote_store: RemoteTaskStore, collection: FakeCollection) -> None:
    collection.auto_push = False
    async with TaskListController(remote_store) as c:
        assert await c.add("Learn")
        assert c.tasks == ()

        collection.push()
        assert [t.text for t in c.tasks] == ["Learn"]
        task = c.tasks[0]
        assert task.id == "doc-1"

        await c.toggle_completed(task.id)
        assert c.get(task.id).completed is False
        collection.push()
        assert c.get(task.id).completed is True


@pytest.mark.asyncio
async def test_failed_write_keeps_list_and_reports_error(
        remote_store: RemoteTaskStore, collection: FakeCollection
) -> None:
    async with TaskListController(remote_store) as c:
        await c.add("Learn")
        before = c.tasks

        collection.fail_writes = ConnectionError("offline")
        c.set_input("Build")
        assert await c.add() is False

        assert c.tasks == before
        assert c.last_error == WRITE_FAILED_MESSAGE
        assert c.input_text == "Build"

        collection.fail_writes = None
        assert await c.add()
        assert c.last_error is None
        assert c.input_text == ""
        assert [t.text for t in c.tasks] == ["Learn", "Build"]


@pytest.mark.asyncio
async def test_failed_edit_keeps_session(remote_store: RemoteTaskStore, collection: FakeCollection) -> None:
    async with TaskListController(remote_store) as c:
        await c.add("Learn")
        task = c.tasks[0]
        c.begin_edit(task.id)
        c.update_draft("Learn deeply")

        collection.fail_writes = ConnectionError("offline")
        assert await c.commit_edit() is False
        assert c.is_editing(task.id)
        assert c.get(task.id).text == "Learn"
        assert c.last_error


@pytest.mark.asyncio
async def test_deliveries_replace_the_whole_sequence(
        remote_store: RemoteTaskStore, collection: FakeCollection
) -> None:
    async with TaskListController(remote_store) as c:
        await c.add("a")
        await c.add("b")
        # Another client deletes "a" and adds "c".
        collection.docs.pop("doc-1")
        collection.docs["doc-9"] = {"text": "c", "completed": True, "createdAt": 5000.0}
        collection.push()

        assert [t.text for t in c.tasks] == ["b", "c"]
        assert c.completed_count == 1


@pytest.mark.asyncio
async def test_session_ends_when_task_disappears_remotely(
        remote_store: RemoteTaskStore, collection: FakeCollection
) -> None:
    async with TaskListController(remote_store) as c:
        await c.add("a")
        c.begin_edit("doc-1")
        collection.docs.clear()
        collection.push()
        assert c.edit_session is None


@pytest.mark.asyncio
async def test_loading_until_first_delivery(clock: FakeClock) -> None:
    collection = FakeCollection(deliver_on_watch=False)
    c = TaskListController(RemoteTaskStore(collection, clock=clock))
    await c.start()
    assert c.is_loading
    assert c.view().is_loading

    collection.push()
    assert not c.is_loading
    await c.close()


@pytest.mark.asyncio
async def test_broken_subscription_is_terminal(remote_store: RemoteTaskStore, collection: FakeCollection) -> None:
    errors: list[LoadFailed] = []
    sub = remote_store.subscribe(lambda snap: None, errors.append)
    collection.break_watches(OSError("disk gone"))
    assert len(errors) == 1
    assert isinstance(errors[0].__cause__, OSError)
    sub.unsubscribe()

    async with TaskListController(remote_store) as c:
        collection.break_watches(OSError("disk gone"))
        assert c.load_failed
        assert not c.is_loading
        assert c.last_error == LOAD_FAILED_MESSAGE
        assert collection.active_watches() == 0

        # A later successful write does not hide the load failure.
        await c.add("Learn")
        assert c.last_error == LOAD_FAILED_MESSAGE
        assert c.tasks == ()


@pytest.mark.asyncio
async def test_failed_write_after_load_failure_keeps_load_message(
        remote_store: RemoteTaskStore, collection: FakeCollection
) -> None:
    async with TaskListController(remote_store) as c:
        collection.break_watches(OSError("disk gone"))
        collection.fail_writes = ConnectionError("offline")

        assert await c.add("x") is False
        assert c.load_failed
        assert c.last_error == LOAD_FAILED_MESSAGE
        assert render_tasks(c.view()) == LOAD_FAILED_MESSAGE


@pytest.mark.asyncio
async def test_new_draft_typed_during_add_survives(
        remote_store: RemoteTaskStore, collection: FakeCollection
) -> None:
    gate = asyncio.Event()
    collection.gate = gate
    async with TaskListController(remote_store) as c:
        c.set_input("Learn")
        pending = asyncio.create_task(c.add())
        await asyncio.sleep(0)

        c.set_input("Build")
        gate.set()
        assert await pending
        assert c.input_text == "Build"
        assert [t.text for t in c.tasks] == ["Learn"]

        assert await c.add()
        assert c.input_text == ""


def test_malformed_documents_are_skipped(remote_store: RemoteTaskStore, collection: FakeCollection) -> None:
    seen: list[tuple[Task, ...]] = []
    collection.docs.update({
        "doc-a": {"text": "ok", "completed": True, "createdAt": 5.0},
        "doc-b": {"text": "   ", "completed": False, "createdAt": 1.0},
        "doc-c": {"completed": False, "createdAt": 2.0},
        "doc-d": {"text": 42, "createdAt": 3.0},
    })
    remote_store.subscribe(seen.append, lambda err: None)
    assert [t.id for t in seen[-1]] == ["doc-a"]


@pytest.mark.asyncio
async def test_subscribe_failure_is_load_failure(clock: FakeClock) -> None:
    collection = FakeCollection(fail_watch=RuntimeError("no route"))
    async with TaskListController(RemoteTaskStore(collection, clock=clock)) as c:
        assert c.load_failed
        assert c.last_error == LOAD_FAILED_MESSAGE


@pytest.mark.asyncio
async def test_teardown_releases_subscription(remote_store: RemoteTaskStore, collection: FakeCollection) -> None:
    with pytest.raises(KeyError):
        async with TaskListController(remote_store):
            assert collection.active_watches() == 1
            raise KeyError("boom")

    assert collection.active_watches() == 0
    assert collection.watches[0].unsubscribe_calls == 1


@pytest.mark.asyncio
async def test_late_write_completion_after_close_is_ignored(
        remote_store: RemoteTaskStore, collection: FakeCollection
) -> None:
    gate = asyncio.Event()
    collection.gate = gate
    collection.fail_writes = ConnectionError("offline")

    c = TaskListController(remote_store)
    await c.start()
    c.set_input("Learn")
    pending = asyncio.create_task(c.add())
    await asyncio.sleep(0)

    await c.close()
    gate.set()

    assert await pending is False
    assert c.last_error is None
    assert c.tasks == ()
