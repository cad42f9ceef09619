# src/cfo_workspace/notify/dispatcher.py

from __future__ import annotations

"""
Fire-and-forget notification dispatch.

send() schedules delivery on the running loop and returns immediately. There is
no queue, no retry and no backpressure; failures are logged and dropped.
"""

import asyncio
import logging

from ..core.ports import Notifier

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    def __init__(self, notifier: Notifier | None) -> None:
        self._notifier = notifier
        # Strong refs so pending sends are not garbage-collected mid-flight.
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def enabled(self) -> bool:
        return self._notifier is not None

    def send(self, text: str) -> None:
        if self._notifier is None or not text:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running loop; notification dropped")
            return
        task = loop.create_task(self._deliver(self._notifier, text))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _deliver(self, notifier: Notifier, text: str) -> None:
        try:
            await notifier.send_text(text=text)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning("Notification delivery failed: %r", e)

    async def drain(self) -> None:
        """Wait for in-flight sends (shutdown and tests)."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def close(self) -> None:
        """Drain, then release the notifier's connection if it holds one."""
        await self.drain()
        close = getattr(self._notifier, "close", None)
        if close is not None:
            await close()
