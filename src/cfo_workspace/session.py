# src/cfo_workspace/session.py

from __future__ import annotations

import contextlib
import json
import logging
import os
from pathlib import Path
from typing import Final

logger = logging.getLogger(__name__)

SESSION_UID_KEY: Final = "cfo_session_uid"
THEME_KEY: Final = "cfo_theme"


def load_json_object(path: Path) -> dict[str, str]:
    raw = path.read_text("utf-8")
    val = json.loads(raw)
    if isinstance(val, dict):
        return {str(k): str(v) for k, v in val.items() if v is not None}
    raise ValueError("Expected JSON object")


def atomic_write_json(path: Path, data: dict[str, str]) -> None:
    tmp = path.with_suffix(".tmp")
    tmp.write_text(json.dumps(data, ensure_ascii=False), "utf-8")
    os.replace(tmp, path)
    with contextlib.suppress(OSError):
        # The session marker identifies the logged-in user; keep it private.
        os.chmod(path, 0o600)


class SessionStore:
    """
    Durable key/value markers kept in a small JSON file.

    The session marker is trusted on presence: there is no expiry and no signature.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._data: dict[str, str] = {}
        if self._path.exists():
            try:
                self._data = load_json_object(self._path)
            except (OSError, ValueError) as e:
                logger.warning("Ignoring unreadable session file %s: %r", self._path, e)

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value
        self._flush()

    def remove(self, key: str) -> None:
        if self._data.pop(key, None) is not None:
            self._flush()

    def _flush(self) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            atomic_write_json(self._path, self._data)
        except OSError:
            logger.exception("Failed to write session file %s", self._path)


class MemorySessionStore:
    """Non-durable markers (tests, throwaway sessions)."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def remove(self, key: str) -> None:
        self.data.pop(key, None)
