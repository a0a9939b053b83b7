# src/todo_master/cli/commands.py

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from ..core.controller import TaskListController, TaskListView
from ..core.models import Task

CommandHandler = Callable[[TaskListController, list[str]], Awaitable[str]]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(self, controller: TaskListController, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        return await handler(controller, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def render_tasks(view: TaskListView, *, title: str = "Your Tasks") -> str:
    """Plain-text rendering of one controller view."""
    if view.load_failed:
        return view.last_error or "Could not load tasks."
    if view.is_loading:
        return "Loading tasks..."

    lines = [f"{title} ({view.completed_count} of {view.total_count} completed)"]
    if not view.tasks:
        lines.append("  No tasks yet! Add your first task above to get started.")
    for pos, task in enumerate(view.tasks, start=1):
        mark = "x" if task.completed else " "
        if view.edit_session is not None and view.edit_session.task_id == task.id:
            lines.append(f"  {pos}. [{mark}] (editing) {view.edit_session.draft}")
        else:
            lines.append(f"  {pos}. [{mark}] {task.text}")
    if view.last_error:
        lines.append(f"  ! {view.last_error}")
    return "\n".join(lines)


def _resolve(controller: TaskListController, args: list[str]) -> Task | None:
    """Tasks are addressed by their 1-based position in the current view."""
    if not args:
        return None
    try:
        pos = int(args[0])
    except ValueError:
        return None
    if pos < 1 or pos > controller.total_count:
        return None
    return controller.tasks[pos - 1]


def _outcome(controller: TaskListController, ok: bool, done: str) -> str:
    if ok:
        return done
    return controller.last_error or "Nothing changed."


async def cmd_help(controller: TaskListController, args: list[str]) -> str:
    return registry.build_help()


async def cmd_list(controller: TaskListController, args: list[str]) -> str:
    return render_tasks(controller.view())


async def cmd_add(controller: TaskListController, args: list[str]) -> str:
    text = " ".join(args)
    if not text.strip():
        return "Usage: /add <text>"
    ok = await controller.add(text)
    return _outcome(controller, ok, "Task added.")


async def cmd_done(controller: TaskListController, args: list[str]) -> str:
    """
    /done <n>  -> toggle completion of task n
    """
    task = _resolve(controller, args)
    if task is None:
        return "Usage: /done <n> (see /list for numbers)."
    if not controller.can_toggle(task.id):
        return "Finish or cancel the edit first."
    ok = await controller.toggle_completed(task.id)
    state = "not completed" if task.completed else "completed"
    return _outcome(controller, ok, f"Marked as {state}: {task.text}")


async def cmd_edit(controller: TaskListController, args: list[str]) -> str:
    task = _resolve(controller, args)
    if task is None:
        return "Usage: /edit <n> (see /list for numbers)."
    logger.debug("Edit requested id=%s", task.id)
    if not controller.begin_edit(task.id):
        return "Completed tasks cannot be edited."
    return f"Editing: {task.text}\nType the new text and press Enter (/save to keep, /cancel to abort)."


async def cmd_save(controller: TaskListController, args: list[str]) -> str:
    if controller.edit_session is None:
        return "Nothing is being edited."
    if args:
        controller.update_draft(" ".join(args))
    if not controller.can_save_edit:
        return "Task text cannot be empty."
    ok = await controller.commit_edit()
    return _outcome(controller, ok, "Task updated.")


async def cmd_cancel(controller: TaskListController, args: list[str]) -> str:
    if controller.edit_session is None:
        return "Nothing is being edited."
    controller.cancel_edit()
    return "Edit cancelled."


async def cmd_rm(controller: TaskListController, args: list[str]) -> str:
    task = _resolve(controller, args)
    if task is None:
        return "Usage: /rm <n> (see /list for numbers)."
    ok = await controller.remove(task.id)
    return _outcome(controller, ok, f"Deleted: {task.text}")


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("list", cmd_list, help_text="Show tasks and the completed counter.", aliases=["ls"])
registry.register("add", cmd_add, help_text="Add a task: /add <text> (plain text works too).")
registry.register("done", cmd_done, help_text="Toggle completion: /done <n>.", aliases=["toggle"])
registry.register("edit", cmd_edit, help_text="Start editing a task: /edit <n>.")
registry.register("save", cmd_save, help_text="Save the edit: /save [new text].")
registry.register("cancel", cmd_cancel, help_text="Discard the edit (Escape).", aliases=["esc"])
registry.register("rm", cmd_rm, help_text="Delete a task: /rm <n>.", aliases=["del", "delete"])
