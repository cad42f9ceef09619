# src/cfo_workspace/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds the Workspace, loads state, then runs the console
front-end until exit. The background poll runs on the same event loop.
"""

from __future__ import annotations

import asyncio
import logging

from ..config import get_settings
from ..logging_setup import setup_logging
from .bootstrap import create_workspace
from .console import confirm_on_console, run_console_loop

logger = logging.getLogger(__name__)


async def _run() -> None:
    settings = get_settings()
    ws = create_workspace(settings=settings, confirm=confirm_on_console)
    await ws.initialize()
    try:
        await run_console_loop(ws)
    finally:
        await ws.close()


def main() -> None:
    settings = get_settings()

    log_file = setup_logging(log_dir=settings.data_dir, level=settings.log_level)

    logger.info("Starting %s (log file: %s)...", settings.app_name, log_file)
    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        logger.info("Interrupted.")
    logger.info("Bye.")


if __name__ == "__main__":
    main()
