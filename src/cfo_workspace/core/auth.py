# src/cfo_workspace/core/auth.py

from __future__ import annotations

"""
Login / forced password change / logout against the in-memory user mirror.

Credentials are compared in plain text and the session marker is just the user id:
whoever holds the marker is logged in.
"""

import dataclasses
import logging
from collections.abc import Iterable
from enum import StrEnum

from ..session import SESSION_UID_KEY
from .models import User
from .ports import SessionMarkers, StorageAdapter
from .state import AppState

logger = logging.getLogger(__name__)

ERR_BAD_CREDENTIALS = "Неверный логин или пароль"
ERR_PASSWORD_MISMATCH = "Пароли не совпадают"


class LoginOutcome(StrEnum):
    FAILED = "failed"
    CHANGE_PASSWORD = "change_password"
    OK = "ok"


def find_user_by_login(users: Iterable[User], login: str) -> User | None:
    """Case-insensitive login match. Users without a login are never matched."""
    wanted = (login or "").lower()
    if not wanted:
        return None
    return next((u for u in users if u.login and u.login.lower() == wanted), None)


def find_user_by_credentials(users: Iterable[User], login: str, password: str) -> User | None:
    wanted = (login or "").lower()
    if not wanted:
        return None
    for u in users:
        if u.login and u.login.lower() == wanted and u.password == password:
            return u
    return None


def _establish(state: AppState, markers: SessionMarkers, user: User) -> None:
    state.current_user = user
    markers.set(SESSION_UID_KEY, user.id)
    state.auth.error = ""


def login(state: AppState, markers: SessionMarkers, login: str, password: str) -> LoginOutcome:
    state.auth.login = login
    state.auth.password = password

    user = find_user_by_credentials(state.users, login, password)
    if user is None:
        state.auth.error = ERR_BAD_CREDENTIALS
        logger.info("Login failed for %r", login)
        return LoginOutcome.FAILED

    if user.must_change_password:
        state.auth.change_password_mode = True
        logger.info("User %s must change password before first login", user.id)
        return LoginOutcome.CHANGE_PASSWORD

    _establish(state, markers, user)
    logger.info("User %s logged in", user.id)
    return LoginOutcome.OK


def change_password(
    state: AppState,
    storage: StorageAdapter,
    markers: SessionMarkers,
    new_password: str,
    confirm_password: str,
) -> bool:
    state.auth.new_password = new_password
    state.auth.confirm_password = confirm_password

    if new_password != confirm_password:
        state.auth.error = ERR_PASSWORD_MISMATCH
        return False

    user = find_user_by_login(state.users, state.auth.login)
    if user is None:
        return False

    updated = dataclasses.replace(user, password=new_password, must_change_password=False)
    users = [updated if u.id == user.id else u for u in state.users]
    state.users = users
    storage.set_users(users)

    _establish(state, markers, updated)
    state.auth.change_password_mode = False
    logger.info("User %s changed password", user.id)
    return True


def logout(state: AppState, markers: SessionMarkers) -> None:
    if state.current_user is not None:
        logger.info("User %s logged out", state.current_user.id)
    state.current_user = None
    markers.remove(SESSION_UID_KEY)
    state.auth.change_password_mode = False


def restore_session(state: AppState, markers: SessionMarkers) -> User | None:
    uid = markers.get(SESSION_UID_KEY)
    if not uid:
        return None
    user = next((u for u in state.users if u.id == uid), None)
    if user is not None:
        state.current_user = user
        logger.info("Session restored for %s", user.id)
    return user
