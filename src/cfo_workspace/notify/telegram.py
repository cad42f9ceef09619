# src/cfo_workspace/notify/telegram.py

from __future__ import annotations

import logging

import httpx

logger = logging.getLogger(__name__)


class TelegramNotifier:
    """
    Sends messages to one Telegram chat through the Bot API.

    Raises on HTTP/transport errors; the dispatcher decides what to do with failures.
    """

    def __init__(
        self,
        *,
        bot_token: str,
        chat_id: str,
        api_base: str = "https://api.telegram.org",
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not bot_token or not chat_id:
            raise ValueError("Telegram bot token and chat id are required")
        self._url = f"{api_base.rstrip('/')}/bot{bot_token}/sendMessage"
        self._chat_id = chat_id
        self._timeout = httpx.Timeout(timeout_seconds, connect=5.0)
        self._transport = transport

    async def send_text(self, *, text: str) -> None:
        payload = {
            "chat_id": self._chat_id,
            "text": text,
            "parse_mode": "HTML",
            "disable_web_page_preview": True,
        }
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            resp = await client.post(self._url, json=payload)
            resp.raise_for_status()
        logger.debug("Telegram message sent chat=%s", self._chat_id)
