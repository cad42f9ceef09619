# tests/test_config.py

from __future__ import annotations

from pathlib import Path

import pytest

from cfo_workspace.cli.bootstrap import build_notifier, create_workspace
from cfo_workspace.config import Settings
from cfo_workspace.notify.telegram import TelegramNotifier


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in (
        "CFO_DATA_DIR",
        "CFO_STORAGE_DB_PATH",
        "CFO_SESSION_PATH",
        "CFO_NOTIFY_CHANNEL",
        "CFO_POLL_INTERVAL_SECONDS",
        "CFO_TELEGRAM_BOT_TOKEN",
        "CFO_TELEGRAM_CHAT_ID",
        "TELEGRAM_BOT_TOKEN",
        "TELEGRAM_CHAT_ID",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_settings_defaults(clean_env) -> None:
    s = Settings.from_env()
    assert s.poll_interval_seconds == 4.0
    assert s.notify_channel == "none"
    assert s.storage_db_path == Path(".local/cfo") / "workspace.sqlite3"


def test_settings_from_env(clean_env, tmp_path: Path) -> None:
    clean_env.setenv("CFO_DATA_DIR", str(tmp_path))
    clean_env.setenv("CFO_POLL_INTERVAL_SECONDS", "0.1")
    clean_env.setenv("CFO_NOTIFY_CHANNEL", "Telegram")
    clean_env.setenv("TELEGRAM_BOT_TOKEN", "legacy-token")

    s = Settings.from_env()
    assert s.poll_interval_seconds == 0.5
    assert s.notify_channel == "telegram"
    assert s.telegram_bot_token == "legacy-token"
    assert s.session_path == tmp_path / "session.json"


def test_unknown_channel_falls_back_to_none(clean_env) -> None:
    clean_env.setenv("CFO_NOTIFY_CHANNEL", "pigeon")
    assert Settings.from_env().notify_channel == "none"


def test_build_notifier(clean_env) -> None:
    clean_env.setenv("CFO_NOTIFY_CHANNEL", "telegram")
    assert build_notifier(Settings.from_env()) is None

    clean_env.setenv("CFO_TELEGRAM_BOT_TOKEN", "t")
    clean_env.setenv("CFO_TELEGRAM_CHAT_ID", "c")
    assert isinstance(build_notifier(Settings.from_env()), TelegramNotifier)


@pytest.mark.asyncio
async def test_create_workspace_against_sqlite(clean_env, tmp_path: Path) -> None:
    clean_env.setenv("CFO_DATA_DIR", str(tmp_path))
    ws = create_workspace(settings=Settings.from_env())
    await ws.initialize()
    try:
        assert ws.state.current_user is None
        assert ws.state.active_table_id == "t-tasks"
        assert ws.login("admin", "admin").value == "change_password"
        assert ws.change_password("s3cret", "s3cret") is True

        task = await ws.create_task(title="Persisted")
    finally:
        await ws.close()

    again = create_workspace(settings=Settings.from_env())
    await again.initialize()
    try:
        assert again.state.current_user is not None
        assert [t.id for t in again.state.tasks] == [task.id]
    finally:
        await again.close()
