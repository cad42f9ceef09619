# src/cfo_workspace/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time (notification channels are optional).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "CFO"

NOTIFY_CHANNELS = ("none", "telegram", "matrix")

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Sync ----
    poll_interval_seconds: float
    seed_defaults: bool

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    storage_db_path: Path
    session_path: Path

    # ---- Notifications ----
    notify_channel: str
    telegram_bot_token: str
    telegram_chat_id: str
    telegram_api_base: str

    matrix_homeserver: str
    matrix_user_id: str
    matrix_password: str
    matrix_room_id: str
    matrix_store_path: Path

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "CFO Workspace")
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        poll_interval_seconds = max(0.5, _env_float(_k("POLL_INTERVAL_SECONDS"), 4.0))
        seed_defaults = _env_bool(_k("SEED_DEFAULTS"), True)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/cfo"))
        storage_db_path = _env_path(_k("STORAGE_DB_PATH"), data_dir / "workspace.sqlite3")
        session_path = _env_path(_k("SESSION_PATH"), data_dir / "session.json")

        notify_channel = _env(_k("NOTIFY_CHANNEL"), "none").strip().lower()
        if notify_channel not in NOTIFY_CHANNELS:
            notify_channel = "none"

        telegram_bot_token = (_first_env(_k("TELEGRAM_BOT_TOKEN"), "TELEGRAM_BOT_TOKEN", default="") or "").strip()
        telegram_chat_id = (_first_env(_k("TELEGRAM_CHAT_ID"), "TELEGRAM_CHAT_ID", default="") or "").strip()
        telegram_api_base = _env(_k("TELEGRAM_API_BASE"), "https://api.telegram.org")

        matrix_homeserver = (_first_env(_k("MATRIX_HOMESERVER"), "MATRIX_HOMESERVER", default="") or "").strip()
        matrix_user_id = (_first_env(_k("MATRIX_USER_ID"), "MATRIX_USER_ID", default="") or "").strip()
        matrix_password = (_first_env(_k("MATRIX_PASSWORD"), "MATRIX_PASSWORD", default="") or "").strip()
        matrix_room_id = _env(_k("MATRIX_ROOM_ID"), "").strip()
        matrix_store_path = _env_path(_k("MATRIX_STORE_PATH"), data_dir / "matrix_store")

        return Settings(
            app_name=app_name,
            log_level=log_level,
            poll_interval_seconds=poll_interval_seconds,
            seed_defaults=seed_defaults,
            data_dir=data_dir,
            storage_db_path=storage_db_path,
            session_path=session_path,
            notify_channel=notify_channel,
            telegram_bot_token=telegram_bot_token,
            telegram_chat_id=telegram_chat_id,
            telegram_api_base=telegram_api_base,
            matrix_homeserver=matrix_homeserver,
            matrix_user_id=matrix_user_id,
            matrix_password=matrix_password,
            matrix_room_id=matrix_room_id,
            matrix_store_path=matrix_store_path,
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_env()
    return _SETTINGS
