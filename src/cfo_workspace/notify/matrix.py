# src/cfo_workspace/notify/matrix.py

from __future__ import annotations

import logging
import re
from html import unescape
from pathlib import Path

from nio import AsyncClient, LoginResponse, RoomSendResponse

from ..session import atomic_write_json, load_json_object

logger = logging.getLogger(__name__)

_TAG_RE = re.compile(r"<[^>]+>")


def strip_html(text: str) -> str:
    """Plain-text fallback body for clients that ignore formatted_body."""
    return unescape(_TAG_RE.sub("", text))


def _session_path(store_dir: Path) -> Path:
    return store_dir / "session.json"


class MatrixNotifier:
    """
    Posts notifications into a single Matrix room (unencrypted).

    The access token is persisted in <store_dir>/session.json after the first password
    login, so the password is only needed once.
    """

    def __init__(
        self,
        *,
        homeserver: str,
        user_id: str,
        room_id: str,
        password: str = "",
        store_dir: str | Path = ".local/cfo/matrix_store",
        device_name: str = "cfo-workspace",
    ) -> None:
        if not homeserver or not user_id or not room_id:
            raise ValueError("Matrix homeserver, user id and room id are required")
        self._homeserver = homeserver
        self._user_id = user_id
        self._room_id = room_id
        self._password = password
        self._store_dir = Path(store_dir)
        self._device_name = device_name
        self._client: AsyncClient | None = None

    async def _ensure_client(self) -> AsyncClient:
        if self._client is not None:
            return self._client

        client = AsyncClient(self._homeserver, self._user_id)
        session_file = _session_path(self._store_dir)

        if session_file.exists():
            try:
                data = load_json_object(session_file)
                if not data.get("access_token") or not data.get("device_id"):
                    raise ValueError("session.json is missing required fields")
                client.access_token = str(data["access_token"])
                client.user_id = str(data.get("user_id") or self._user_id)
                client.device_id = str(data["device_id"])
                logger.info("Matrix session restored for %s", client.user_id)
                self._client = client
                return client
            except (OSError, ValueError) as e:
                logger.warning("Failed to restore Matrix session.json, will try password login: %r", e)

        if not self._password:
            await client.close()
            raise RuntimeError("Matrix session.json not found and password is not set")

        resp = await client.login(password=self._password, device_name=self._device_name)
        if not isinstance(resp, LoginResponse):
            await client.close()
            raise RuntimeError(f"Matrix login failed: {resp!r}")

        self._store_dir.mkdir(parents=True, exist_ok=True)
        atomic_write_json(
            session_file,
            {"access_token": resp.access_token, "user_id": resp.user_id, "device_id": resp.device_id},
        )
        logger.info("Matrix session saved to %s (user=%s)", session_file, resp.user_id)
        self._client = client
        return client

    async def send_text(self, *, text: str) -> None:
        client = await self._ensure_client()
        resp = await client.room_send(
            room_id=self._room_id,
            message_type="m.room.message",
            content={
                "msgtype": "m.text",
                "body": strip_html(text),
                "format": "org.matrix.custom.html",
                "formatted_body": text.replace("\n", "<br>"),
            },
        )
        if not isinstance(resp, RoomSendResponse):
            raise RuntimeError(f"Matrix room_send failed: {resp!r}")

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
