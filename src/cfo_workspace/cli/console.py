# src/cfo_workspace/cli/console.py

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from ..core.engine import Workspace
from .commands import registry as command_registry

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


def confirm_on_console(prompt: str) -> bool:
    """Blocking yes/no prompt used before destructive deletes."""
    try:
        answer = input(f"{prompt} [y/N] ").strip().lower()
    except EOFError:
        return False
    return answer in ("y", "yes", "д", "да")


async def run_console_loop(ws: Workspace) -> None:
    """
    Read commands until /exit or EOF.

    input() runs in a worker thread so the background poll keeps going while we wait.
    """
    logger.info("Console started.")
    _print_ts("[CONSOLE] Use /help for commands, /login to sign in, /exit to quit.\n")
    last_toast: str | None = None

    while True:
        prompt = f"{ws.state.current_user.name} > " if ws.state.current_user else "> "
        try:
            line = (await asyncio.to_thread(input, prompt)).strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not line:
            continue

        if line.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        try:
            reply = await command_registry.handle(ws, line)
        except Exception:
            logger.exception("Command failed: %s", line)
            reply = "Command failed, see log for details."

        if reply is None:
            reply = "Commands start with '/'. Use /help."
        print(reply)

        toast = ws.state.notification
        if toast and toast != last_toast and toast not in reply:
            _print_ts(f"[i] {toast}")
        last_toast = toast
