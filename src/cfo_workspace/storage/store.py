# src/cfo_workspace/storage/store.py

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import sqlite3
import time
from pathlib import Path
from typing import Any

from ..core.defaults import (
    DEFAULT_NOTIFICATION_SETTINGS,
    DEFAULT_PRIORITIES,
    DEFAULT_STATUSES,
    DEFAULT_TABLES,
    DEFAULT_USERS,
)
from ..core.models import (
    ActivityLog,
    Doc,
    Folder,
    Meeting,
    NotificationSetting,
    NotificationSettings,
    PriorityOption,
    Project,
    Record,
    StatusOption,
    TableCollection,
    Task,
    User,
)

logger = logging.getLogger(__name__)

COLLECTIONS: dict[str, type[Record]] = {
    "users": User,
    "tasks": Task,
    "projects": Project,
    "tables": TableCollection,
    "docs": Doc,
    "folders": Folder,
    "meetings": Meeting,
    "activities": ActivityLog,
    "statuses": StatusOption,
    "priorities": PriorityOption,
}

_SETTINGS_KEY = "notification_settings"


class WorkspaceStore:
    """
    SQLite-backed storage adapter with an in-memory cache.

    Every collection is stored as one JSON array row and is always replaced whole
    (last writer wins). Several processes may share the same database file; load()
    pulls whatever the others wrote last.

    Thread-safety:
    - each method opens its own SQLite connection
    - load() reads in a worker thread, the cache itself is only touched from the caller's loop
    """

    def __init__(self, db_path: str | Path = "workspace.sqlite3", *, seed_defaults: bool = True) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._cache: dict[str, Any] = {name: [] for name in COLLECTIONS}
        self._cache[_SETTINGS_KEY] = {}
        self._ensure_schema()
        if seed_defaults:
            self._seed_defaults()
        try:
            self._cache.update(self._read_all())
        except (sqlite3.Error, ValueError):
            logger.exception("Initial cache read failed db=%s", self._db_path)
        logger.info("WorkspaceStore ready db=%s", self._db_path)

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS collections (
                    name TEXT PRIMARY KEY,
                    payload TEXT NOT NULL DEFAULT '[]',
                    updated_at REAL NOT NULL
                )
                """
            )
            conn.commit()
        finally:
            conn.close()

    def _seed_defaults(self) -> None:
        seeds: dict[str, Any] = {
            "users": [u.to_dict() for u in DEFAULT_USERS],
            "tables": [t.to_dict() for t in DEFAULT_TABLES],
            "statuses": [s.to_dict() for s in DEFAULT_STATUSES],
            "priorities": [p.to_dict() for p in DEFAULT_PRIORITIES],
            _SETTINGS_KEY: {k: v.to_dict() for k, v in DEFAULT_NOTIFICATION_SETTINGS.items()},
        }
        conn = self._get_conn()
        try:
            now = time.time()
            for name, payload in seeds.items():
                cur = conn.execute(
                    "INSERT OR IGNORE INTO collections(name, payload, updated_at) VALUES (?, ?, ?)",
                    (name, json.dumps(payload, ensure_ascii=False), now),
                )
                if cur.rowcount:
                    logger.info("WorkspaceStore seeded collection %s", name)
            conn.commit()
        finally:
            conn.close()

    def _read_all(self) -> dict[str, Any]:
        conn = self._get_conn()
        try:
            rows = conn.execute("SELECT name, payload FROM collections").fetchall()
        finally:
            conn.close()

        out: dict[str, Any] = {}
        for row in rows:
            name = row["name"]
            if name not in COLLECTIONS and name != _SETTINGS_KEY:
                continue
            out[name] = json.loads(row["payload"] or "null")
        return out

    def _write(self, name: str, payload: Any) -> None:
        self._cache[name] = payload
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO collections(name, payload, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(name) DO UPDATE SET payload = excluded.payload, updated_at = excluded.updated_at
                """,
                (name, json.dumps(payload, ensure_ascii=False), time.time()),
            )
            conn.commit()
            logger.debug("Persisted collection %s", name)
        except sqlite3.Error:
            # The cache keeps the write; the next successful set_* persists it.
            logger.exception("Failed to persist collection %s", name)
        finally:
            conn.close()

    def _get(self, name: str) -> list[Any]:
        model = COLLECTIONS[name]
        items = self._cache.get(name) or []
        return [model.from_dict(d) for d in items if isinstance(d, dict)]

    def _set(self, name: str, items: list[Any]) -> None:
        self._write(name, [i.to_dict() for i in items])

    # ---- public API ----

    async def load(self) -> bool:
        """Pull every collection from the database into the cache."""
        try:
            data = await asyncio.to_thread(self._read_all)
        except (sqlite3.Error, OSError, ValueError) as e:
            logger.warning("Storage pull failed, keeping cached data: %r", e)
            return False
        self._cache.update(data)
        return True

    def get_users(self) -> list[User]:
        return self._get("users")

    def set_users(self, items: list[User]) -> None:
        self._set("users", items)

    def get_tasks(self) -> list[Task]:
        return self._get("tasks")

    def set_tasks(self, items: list[Task]) -> None:
        self._set("tasks", items)

    def get_projects(self) -> list[Project]:
        return self._get("projects")

    def set_projects(self, items: list[Project]) -> None:
        self._set("projects", items)

    def get_tables(self) -> list[TableCollection]:
        return self._get("tables")

    def set_tables(self, items: list[TableCollection]) -> None:
        self._set("tables", items)

    def get_docs(self) -> list[Doc]:
        return self._get("docs")

    def set_docs(self, items: list[Doc]) -> None:
        self._set("docs", items)

    def get_folders(self) -> list[Folder]:
        return self._get("folders")

    def set_folders(self, items: list[Folder]) -> None:
        self._set("folders", items)

    def get_meetings(self) -> list[Meeting]:
        return self._get("meetings")

    def set_meetings(self, items: list[Meeting]) -> None:
        self._set("meetings", items)

    def get_activities(self) -> list[ActivityLog]:
        return self._get("activities")

    def set_activities(self, items: list[ActivityLog]) -> None:
        self._set("activities", items)

    def add_activity(self, entry: ActivityLog) -> list[ActivityLog]:
        items = self.get_activities()
        items.append(entry)
        self.set_activities(items)
        return items

    def get_statuses(self) -> list[StatusOption]:
        return self._get("statuses")

    def set_statuses(self, items: list[StatusOption]) -> None:
        self._set("statuses", items)

    def get_priorities(self) -> list[PriorityOption]:
        return self._get("priorities")

    def set_priorities(self, items: list[PriorityOption]) -> None:
        self._set("priorities", items)

    def get_notification_settings(self) -> NotificationSettings:
        raw = self._cache.get(_SETTINGS_KEY) or {}
        if not isinstance(raw, dict):
            return {}
        return {str(k): NotificationSetting.from_dict(v) for k, v in raw.items() if isinstance(v, dict)}

    def set_notification_settings(self, settings: NotificationSettings) -> None:
        self._write(_SETTINGS_KEY, {k: v.to_dict() for k, v in settings.items()})
