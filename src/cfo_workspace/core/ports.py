# src/cfo_workspace/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The workspace engine depends on Protocols instead of concrete implementations.
This keeps storage backends and notification channels swappable and makes testing easier.
"""

from typing import Awaitable, Protocol

from .models import (
    ActivityLog,
    Doc,
    Folder,
    Meeting,
    NotificationSettings,
    PriorityOption,
    Project,
    StatusOption,
    TableCollection,
    Task,
    User,
)


class StorageAdapter(Protocol):
    """
    Local cache of the remote collections.

    - load() refreshes the cache from the backing store; it never raises and
      reports failure through its return value only.
    - get_*() read the current cache.
    - set_*() replace a whole collection in the cache and in the backing store.
    """

    def load(self) -> Awaitable[bool]: ...

    def get_users(self) -> list[User]: ...
    def set_users(self, items: list[User]) -> None: ...

    def get_tasks(self) -> list[Task]: ...
    def set_tasks(self, items: list[Task]) -> None: ...

    def get_projects(self) -> list[Project]: ...
    def set_projects(self, items: list[Project]) -> None: ...

    def get_tables(self) -> list[TableCollection]: ...
    def set_tables(self, items: list[TableCollection]) -> None: ...

    def get_docs(self) -> list[Doc]: ...
    def set_docs(self, items: list[Doc]) -> None: ...

    def get_folders(self) -> list[Folder]: ...
    def set_folders(self, items: list[Folder]) -> None: ...

    def get_meetings(self) -> list[Meeting]: ...
    def set_meetings(self, items: list[Meeting]) -> None: ...

    def get_activities(self) -> list[ActivityLog]: ...
    def set_activities(self, items: list[ActivityLog]) -> None: ...
    def add_activity(self, entry: ActivityLog) -> list[ActivityLog]: ...

    def get_statuses(self) -> list[StatusOption]: ...
    def set_statuses(self, items: list[StatusOption]) -> None: ...

    def get_priorities(self) -> list[PriorityOption]: ...
    def set_priorities(self, items: list[PriorityOption]) -> None: ...

    def get_notification_settings(self) -> NotificationSettings: ...
    def set_notification_settings(self, settings: NotificationSettings) -> None: ...


class Notifier(Protocol):
    """Outbound channel (Telegram chat, Matrix room, ...). Delivery is best-effort."""

    def send_text(self, *, text: str) -> Awaitable[None]: ...


class SessionMarkers(Protocol):
    """Durable client-side key/value markers (session user id, theme)."""

    def get(self, key: str) -> str | None: ...
    def set(self, key: str, value: str) -> None: ...
    def remove(self, key: str) -> None: ...
