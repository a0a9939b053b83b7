# src/todo_master/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..cli.commands import render_tasks
from ..core.controller import TaskListController, TaskListView

logger = logging.getLogger(__name__)

EXIT_COMMANDS = ("/exit", "/quit")


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


def make_view_printer(write: Callable[[str], None] = _print_ts) -> Callable[[TaskListView], None]:
    """
    on_change listener for the controller: re-render whenever a snapshot lands.

    Identical consecutive views are printed once.
    """
    last: list[TaskListView] = []

    def _on_change(view: TaskListView) -> None:
        if last and last[0] == view:
            return
        last[:] = [view]
        write(render_tasks(view))

    return _on_change


async def handle_line(controller: TaskListController, line: str) -> str | None:
    """
    Route one console line.

    - "/cmd ..." -> command registry
    - plain text while editing -> replace the draft and save (Enter)
    - plain text otherwise -> add a task (Enter)
    """
    reply = await command_registry.handle(controller, line)
    if reply is not None:
        return reply

    if controller.edit_session is not None:
        controller.update_draft(line)
        if not controller.can_save_edit:
            return "Task text cannot be empty."
        if await controller.commit_edit():
            return "Task updated."
        return controller.last_error or "Nothing changed."

    controller.set_input(line)
    if not controller.can_submit:
        return None
    if await controller.add():
        return "Task added."
    return controller.last_error or "Nothing changed."


async def run_console_loop(
        controller: TaskListController,
        *,
        app_name: str = "Todo Master",
        read_line: Callable[[str], str] = input,
) -> None:
    """
    Interactive REPL. Blocking input() runs in a worker thread so the live query
    keeps delivering snapshots while the prompt waits.
    """
    logger.info("Console connector started.")
    _print_ts(f"[{app_name}] Stay organized and get things done.")
    _print_ts("Type a task and press Enter to add it. Use /help for commands, /exit to quit.\n")

    while True:
        prompt = "edit> " if controller.edit_session is not None else "todo> "
        try:
            line = (await asyncio.to_thread(read_line, prompt)).strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not line:
            continue

        if line.lower() in EXIT_COMMANDS:
            logger.info("Console exit command received.")
            break

        try:
            reply = await handle_line(controller, line)
        except Exception:
            logger.exception("Command handler crashed.")
            reply = "Internal error while handling a command."

        if reply is not None:
            _print_ts(reply)

    logger.info("Console connector finished.")
