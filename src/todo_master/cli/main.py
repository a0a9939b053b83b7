# src/todo_master/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds the controller for the configured store, then runs
the console REPL inside a single event loop. The store subscription is released
on the way out no matter how the loop ends.
"""

from __future__ import annotations

import asyncio
import logging

from ..cli.bootstrap import create_controller
from ..config import Settings, get_settings
from ..connectors.console_connector import make_view_printer, run_console_loop
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


async def _run(settings: Settings) -> None:
    controller = create_controller(settings=settings, on_change=make_view_printer())
    async with controller:
        await run_console_loop(controller, app_name=settings.app_name)


def main() -> None:
    settings = get_settings()

    level_name = str(settings.log_level).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s (store=%s)...", settings.app_name, settings.store_backend)
    try:
        asyncio.run(_run(settings))
    except KeyboardInterrupt:
        logger.info("Interrupted.")
    logger.info("Bye.")


if __name__ == "__main__":
    main()
