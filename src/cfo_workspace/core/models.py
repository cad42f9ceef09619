# src/cfo_workspace/core/models.py

from __future__ import annotations

"""
Workspace entities.

Every record is a plain dataclass with a string id. Storage keeps them as JSON
objects with camelCase keys (tableId, isArchived, ...); `from_dict` is forgiving:
unknown keys are ignored and missing keys fall back to field defaults.
"""

import dataclasses
import re
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, TypeVar

R = TypeVar("R", bound="Record")

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


def _to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(p.title() for p in rest)


def _to_snake(name: str) -> str:
    return _CAMEL_RE.sub("_", name).lower()


class Role(StrEnum):
    ADMIN = "ADMIN"
    EMPLOYEE = "EMPLOYEE"


class TableType(StrEnum):
    TASKS = "tasks"
    DOCS = "docs"
    MEETINGS = "meetings"
    BACKLOG = "backlog"


class ViewMode(StrEnum):
    TABLE = "table"
    KANBAN = "kanban"
    GANTT = "gantt"


class NotificationCategory(StrEnum):
    NEW_TASK = "NEW_TASK"
    STATUS_CHANGE = "STATUS_CHANGE"
    NEW_COMMENT = "NEW_COMMENT"
    NEW_DOC = "NEW_DOC"


class Record:
    """Mixin: camelCase dict (de)serialization for flat dataclasses."""

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for f in dataclasses.fields(self):  # type: ignore[arg-type]
            out[_to_camel(f.name)] = _dump(getattr(self, f.name))
        return out

    @classmethod
    def from_dict(cls: type[R], data: dict[str, Any]) -> R:
        fields = dataclasses.fields(cls)  # type: ignore[arg-type]
        names = {f.name for f in fields}
        kwargs: dict[str, Any] = {}
        for key, value in (data or {}).items():
            name = _to_snake(key)
            if name in names:
                kwargs[name] = value
        # Required string fields missing from stored data become "".
        for f in fields:
            if f.name in kwargs:
                continue
            if f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING:
                kwargs[f.name] = ""
        return cls(**kwargs)


def _dump(value: Any) -> Any:
    if isinstance(value, Record):
        return value.to_dict()
    if isinstance(value, list):
        return [_dump(v) for v in value]
    if isinstance(value, StrEnum):
        return value.value
    return value


@dataclass(slots=True)
class Comment(Record):
    id: str
    user_id: str
    text: str
    user_name: str = ""
    user_avatar: str = ""
    created_at: str = ""


@dataclass(slots=True)
class Attachment(Record):
    id: str
    name: str
    type: str = "file"  # "file" | "link"
    url: str = ""
    created_at: str = ""


@dataclass(slots=True)
class Task(Record):
    id: str
    table_id: str
    title: str
    status: str
    priority: str = ""
    assignee_id: str | None = None
    project_id: str | None = None
    start_date: str = ""
    end_date: str = ""
    description: str = ""
    is_archived: bool = False
    comments: list[Comment] = field(default_factory=list)
    attachments: list[Attachment] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Task:
        data = dict(data or {})
        comments = [Comment.from_dict(c) for c in data.pop("comments", None) or []]
        attachments = [Attachment.from_dict(a) for a in data.pop("attachments", None) or []]
        task = super(Task, cls).from_dict(data)
        task.is_archived = bool(task.is_archived)
        task.comments = comments
        task.attachments = attachments
        return task


@dataclass(slots=True)
class ViewConfig(Record):
    show_table: bool = True
    show_kanban: bool = True
    show_gantt: bool = True


@dataclass(slots=True)
class TableCollection(Record):
    id: str
    name: str
    type: TableType = TableType.TASKS
    icon: str = "CheckSquare"
    color: str = "text-gray-500"
    view_config: ViewConfig | None = None
    is_system: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TableCollection:
        data = dict(data or {})
        raw_cfg = data.pop("viewConfig", None)
        table = super(TableCollection, cls).from_dict(data)
        table.type = TableType(table.type)
        table.view_config = ViewConfig.from_dict(raw_cfg) if isinstance(raw_cfg, dict) else None
        table.is_system = bool(table.is_system)
        return table


@dataclass(slots=True)
class Doc(Record):
    id: str
    table_id: str
    title: str
    type: str = "internal"  # "internal" | "link"
    url: str = ""
    content: str = ""
    tags: list[str] = field(default_factory=list)
    folder_id: str | None = None


@dataclass(slots=True)
class Folder(Record):
    id: str
    name: str
    table_id: str


@dataclass(slots=True)
class Meeting(Record):
    id: str
    table_id: str
    title: str
    date: str = ""
    summary: str = ""
    participant_ids: list[str] = field(default_factory=list)


@dataclass(slots=True)
class Project(Record):
    id: str
    name: str
    color: str = ""


@dataclass(slots=True)
class ActivityLog(Record):
    id: str
    user_id: str
    action: str
    details: str
    timestamp: str
    user_name: str = ""
    user_avatar: str = ""
    read: bool = False


@dataclass(slots=True)
class User(Record):
    id: str
    name: str
    role: Role = Role.EMPLOYEE
    avatar: str = ""
    login: str = ""
    password: str = ""
    email: str = ""
    telegram: str = ""
    must_change_password: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> User:
        user = super(User, cls).from_dict(data)
        user.role = Role(user.role)
        user.must_change_password = bool(user.must_change_password)
        return user


@dataclass(slots=True)
class StatusOption(Record):
    id: str
    name: str
    color: str = ""


@dataclass(slots=True)
class PriorityOption(Record):
    id: str
    name: str
    color: str = ""


@dataclass(slots=True, frozen=True)
class NotificationSetting:
    system: bool = True
    telegram: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> NotificationSetting:
        data = data or {}
        return cls(system=bool(data.get("system", True)), telegram=bool(data.get("telegram", False)))

    def to_dict(self) -> dict[str, bool]:
        return {"system": self.system, "telegram": self.telegram}


NotificationSettings = dict[str, NotificationSetting]
