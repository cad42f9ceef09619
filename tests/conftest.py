# tests/conftest.py

from __future__ import annotations

import pytest
import pytest_asyncio

from cfo_workspace.core.defaults import DEFAULT_PRIORITIES, DEFAULT_STATUSES
from cfo_workspace.core.engine import Workspace
from cfo_workspace.core.models import (
    Role,
    TableCollection,
    TableType,
    Task,
    User,
    ViewConfig,
)
from cfo_workspace.session import MemorySessionStore

from .fakes import FakeStorage, RecordingNotifier


def make_task(task_id: str, table_id: str = "t1", **kw) -> Task:
    kw.setdefault("title", f"Task {task_id}")
    kw.setdefault("status", "not_started")
    kw.setdefault("priority", "low")
    return Task(id=task_id, table_id=table_id, **kw)


@pytest.fixture()
def users() -> list[User]:
    return [
        User(id="u1", name="Анна", role=Role.ADMIN, login="Anna", password="secret"),
        User(id="u2", name="Борис", login="boris", password="pw"),
        User(id="u3", name="Вера", login="vera", password="tmp", must_change_password=True),
    ]


@pytest.fixture()
def tables() -> list[TableCollection]:
    return [
        TableCollection(id="t1", name="Операции", type=TableType.TASKS, view_config=ViewConfig()),
        TableCollection(id="t2", name="Проекты", type=TableType.TASKS, view_config=ViewConfig()),
        TableCollection(id="bl", name="Бэклог", type=TableType.BACKLOG, is_system=True),
        TableCollection(id="docs", name="Документы", type=TableType.DOCS),
    ]


@pytest.fixture()
def storage(users, tables) -> FakeStorage:
    """
    FakeStorage seeded with users, tables, default statuses/priorities and two tasks.

    Notification settings start empty (system on, telegram off).
    """
    s = FakeStorage()
    s.seed("users", users)
    s.seed("tables", tables)
    s.seed("statuses", list(DEFAULT_STATUSES))
    s.seed("priorities", list(DEFAULT_PRIORITIES))
    s.seed("tasks", [make_task("task-1"), make_task("task-2", table_id="t2", status="in_progress")])
    return s


@pytest.fixture()
def markers() -> MemorySessionStore:
    return MemorySessionStore()


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest_asyncio.fixture()
async def ws(storage, markers, notifier):
    """Initialized Workspace with u1 logged in. The poll interval is long enough to never fire."""
    markers.set("cfo_session_uid", "u1")
    workspace = Workspace(storage, markers, notifier=notifier, poll_interval=3600)
    await workspace.initialize()
    try:
        yield workspace
    finally:
        await workspace.close()
