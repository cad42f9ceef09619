# tests/test_auth.py

from __future__ import annotations

import pytest

from cfo_workspace.core import auth
from cfo_workspace.core.auth import LoginOutcome
from cfo_workspace.core.engine import Workspace
from cfo_workspace.core.models import User
from cfo_workspace.core.state import AppState
from cfo_workspace.session import SESSION_UID_KEY, MemorySessionStore, SessionStore


@pytest.fixture()
def state(users) -> AppState:
    return AppState(users=list(users), loading=False)


def test_login_is_case_insensitive_on_login_only(state, markers) -> None:
    assert auth.login(state, markers, "ANNA", "secret") == LoginOutcome.OK
    assert state.current_user is not None and state.current_user.id == "u1"
    assert markers.get(SESSION_UID_KEY) == "u1"


def test_login_wrong_password(state, markers) -> None:
    assert auth.login(state, markers, "anna", "SECRET") == LoginOutcome.FAILED
    assert state.current_user is None
    assert state.auth.error == "Неверный логин или пароль"
    assert markers.get(SESSION_UID_KEY) is None


def test_user_without_login_is_unreachable(state, markers) -> None:
    state.users.append(User.from_dict({"id": "u9", "name": "No creds"}))

    assert auth.login(state, markers, "", "") == LoginOutcome.FAILED
    assert state.current_user is None
    assert state.auth.error == "Неверный логин или пароль"
    assert markers.get(SESSION_UID_KEY) is None
    assert auth.find_user_by_login(state.users, "") is None


def test_must_change_password_never_establishes_session(state, markers, storage) -> None:
    assert auth.login(state, markers, "vera", "tmp") == LoginOutcome.CHANGE_PASSWORD
    assert state.auth.change_password_mode is True
    assert state.current_user is None
    assert markers.get(SESSION_UID_KEY) is None

    assert auth.change_password(state, storage, markers, "new", "other") is False
    assert state.auth.error == "Пароли не совпадают"
    assert state.current_user is None

    assert auth.change_password(state, storage, markers, "new", "new") is True
    assert state.current_user is not None and state.current_user.id == "u3"
    assert state.current_user.must_change_password is False
    assert state.auth.change_password_mode is False
    assert markers.get(SESSION_UID_KEY) == "u3"

    stored = next(u for u in storage.remote_items("users") if u.id == "u3")
    assert (stored.password, stored.must_change_password) == ("new", False)


def test_logout_clears_marker(state, markers) -> None:
    auth.login(state, markers, "boris", "pw")
    auth.logout(state, markers)
    assert state.current_user is None
    assert markers.get(SESSION_UID_KEY) is None


def test_restore_session(state) -> None:
    markers = MemorySessionStore({SESSION_UID_KEY: "u2"})
    assert auth.restore_session(state, markers) is not None
    assert state.current_user is not None and state.current_user.name == "Борис"

    stale = MemorySessionStore({SESSION_UID_KEY: "deleted-user"})
    fresh = AppState(users=state.users)
    assert auth.restore_session(fresh, stale) is None
    assert fresh.current_user is None


def test_session_store_persists_between_instances(tmp_path) -> None:
    path = tmp_path / "session.json"
    first = SessionStore(path)
    first.set(SESSION_UID_KEY, "u1")
    first.set("cfo_theme", "dark")

    second = SessionStore(path)
    assert second.get(SESSION_UID_KEY) == "u1"
    assert second.get("cfo_theme") == "dark"

    second.remove(SESSION_UID_KEY)
    assert SessionStore(path).get(SESSION_UID_KEY) is None


def test_session_store_ignores_garbage(tmp_path) -> None:
    path = tmp_path / "session.json"
    path.write_text("[not json", "utf-8")
    assert SessionStore(path).get(SESSION_UID_KEY) is None


@pytest.mark.asyncio
async def test_workspace_login_starts_polling(storage, markers) -> None:
    ws = Workspace(storage, markers, poll_interval=3600)
    await ws.initialize()
    try:
        assert ws.state.current_user is None
        assert ws._poll_task is None

        assert ws.login("anna", "secret") == LoginOutcome.OK
        assert ws._poll_task is not None
    finally:
        await ws.close()
