# src/cfo_workspace/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete storage / session / notifier implementations into a Workspace.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from ..config import Settings, get_settings
from ..core.engine import Workspace
from ..core.ports import Notifier
from ..notify.matrix import MatrixNotifier
from ..notify.telegram import TelegramNotifier
from ..session import SessionStore
from ..storage.store import WorkspaceStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings: Settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.storage_db_path.parent.mkdir(parents=True, exist_ok=True)
    settings.session_path.parent.mkdir(parents=True, exist_ok=True)


def build_notifier(settings: Settings) -> Notifier | None:
    """Pick the outbound channel. Misconfiguration disables notifications instead of failing startup."""
    channel = settings.notify_channel
    try:
        if channel == "telegram":
            return TelegramNotifier(
                bot_token=settings.telegram_bot_token,
                chat_id=settings.telegram_chat_id,
                api_base=settings.telegram_api_base,
            )
        if channel == "matrix":
            return MatrixNotifier(
                homeserver=settings.matrix_homeserver,
                user_id=settings.matrix_user_id,
                room_id=settings.matrix_room_id,
                password=settings.matrix_password,
                store_dir=settings.matrix_store_path,
                device_name=settings.app_name,
            )
    except ValueError as e:
        logger.error("Notification channel %r is not configured (%s); notifications disabled", channel, e)
        return None
    return None


def create_workspace(
    *,
    settings: Settings | None = None,
    confirm: Callable[[str], bool] | None = None,
) -> Workspace:
    """
    Build a Workspace from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    return Workspace(
        WorkspaceStore(settings.storage_db_path, seed_defaults=settings.seed_defaults),
        SessionStore(settings.session_path),
        notifier=build_notifier(settings),
        poll_interval=settings.poll_interval_seconds,
        confirm=confirm,
    )
