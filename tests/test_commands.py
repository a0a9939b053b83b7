# tests/test_commands.py

from __future__ import annotations

import pytest

from todo_master.cli.commands import CommandRegistry, render_tasks
from todo_master.connectors.console_connector import handle_line, make_view_printer
from todo_master.core.controller import TaskListController
from todo_master.stores.memory_store import InMemoryTaskStore

from .fakes import FakeClock, SequentialIds


def _seeded() -> TaskListController:
    store = InMemoryTaskStore(
        [("Learn React", False), ("Build a todo app", True), ("Deploy to production", False)],
        id_factory=SequentialIds(),
        clock=FakeClock(),
    )
    return TaskListController(store)


@pytest.mark.asyncio
async def test_command_registry_routes_and_aliases(controller: TaskListController) -> None:
    reg = CommandRegistry()
    called: list[list[str]] = []

    async def h(c, args):
        called.append(args)
        return "ok"

    reg.register("go", h, "go somewhere", aliases=["g"])

    assert await reg.handle(controller, "/go far away") == "ok"
    assert await reg.handle(controller, "/G") == "ok"
    assert called == [["far", "away"], []]
    assert "/go - go somewhere" in reg.build_help()


@pytest.mark.asyncio
async def test_command_registry_unknown_and_non_command(controller: TaskListController) -> None:
    reg = CommandRegistry()
    assert await reg.handle(controller, "hello") is None
    assert "Unknown command" in (await reg.handle(controller, "/nope") or "")
    assert "Empty command" in (await reg.handle(controller, "/") or "")


@pytest.mark.asyncio
async def test_plain_text_adds_and_commands_mutate() -> None:
    async with _seeded() as c:
        assert await handle_line(c, "Write docs") == "Task added."
        assert c.total_count == 4

        reply = await handle_line(c, "/done 1")
        assert reply == "Marked as completed: Learn React"
        assert c.completed_count == 2

        assert await handle_line(c, "/rm 2") == "Deleted: Build a todo app"
        assert [t.text for t in c.tasks] == ["Learn React", "Deploy to production", "Write docs"]

        assert "Usage" in await handle_line(c, "/rm 99")
        assert "Usage" in await handle_line(c, "/done x")


@pytest.mark.asyncio
async def test_edit_flow_through_console() -> None:
    async with _seeded() as c:
        assert "cannot be edited" in await handle_line(c, "/edit 2")

        reply = await handle_line(c, "/edit 3")
        assert reply.startswith("Editing: Deploy to production")
        assert "Finish or cancel" in await handle_line(c, "/done 3")

        assert await handle_line(c, "   ") == "Task text cannot be empty."
        assert await handle_line(c, "Deploy on Friday") == "Task updated."
        assert c.tasks[2].text == "Deploy on Friday"
        assert c.edit_session is None

        await handle_line(c, "/edit 1")
        assert await handle_line(c, "/save Learn React hooks") == "Task updated."
        assert c.tasks[0].text == "Learn React hooks"

        await handle_line(c, "/edit 1")
        assert await handle_line(c, "/cancel") == "Edit cancelled."
        assert await handle_line(c, "/cancel") == "Nothing is being edited."
        assert c.tasks[0].text == "Learn React hooks"


@pytest.mark.asyncio
async def test_render_counter_and_empty_state(controller: TaskListController) -> None:
    async with controller as c:
        text = render_tasks(c.view())
        assert "0 of 0 completed" in text
        assert "No tasks yet!" in text

        await c.add("Learn")
        await c.toggle_completed(c.tasks[0].id)
        await c.add("Build")
        c.begin_edit(c.tasks[1].id)
        c.update_draft("Build it")

        text = render_tasks(c.view())
        assert "1 of 2 completed" in text
        assert "1. [x] Learn" in text
        assert "2. [ ] (editing) Build it" in text


@pytest.mark.asyncio
async def test_view_printer_skips_repeats(store: InMemoryTaskStore) -> None:
    printed: list[str] = []
    c = TaskListController(store, on_change=make_view_printer(printed.append))
    async with c:
        await c.add("Learn")
        c._emit()

    assert len(printed) == 2
    assert "0 of 1 completed" in printed[-1]
