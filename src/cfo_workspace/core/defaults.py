# src/cfo_workspace/core/defaults.py

from __future__ import annotations

from typing import Final

from .models import (
    NotificationCategory,
    NotificationSetting,
    PriorityOption,
    Role,
    StatusOption,
    TableCollection,
    TableType,
    User,
    ViewConfig,
)

# Status ids with special meaning in the engine and filters.
STATUS_NOT_STARTED: Final = "not_started"
STATUS_IN_PROGRESS: Final = "in_progress"
STATUS_DONE: Final = "done"

PRIORITY_LOW: Final = "low"

DEFAULT_TASK_TITLE: Final = "Новая задача"
FROM_TASKS_TAG: Final = "Из задач"

DEFAULT_STATUSES: Final = (
    StatusOption(id=STATUS_NOT_STARTED, name="Не начато", color="gray"),
    StatusOption(id=STATUS_IN_PROGRESS, name="В работе", color="blue"),
    StatusOption(id="review", name="На проверке", color="orange"),
    StatusOption(id=STATUS_DONE, name="Выполнено", color="green"),
)

DEFAULT_PRIORITIES: Final = (
    PriorityOption(id=PRIORITY_LOW, name="Низкий", color="gray"),
    PriorityOption(id="medium", name="Средний", color="orange"),
    PriorityOption(id="high", name="Высокий", color="red"),
)

DEFAULT_TABLES: Final = (
    TableCollection(
        id="t-tasks",
        name="Задачи",
        type=TableType.TASKS,
        icon="CheckSquare",
        color="text-blue-500",
        view_config=ViewConfig(),
        is_system=False,
    ),
    TableCollection(
        id="t-backlog",
        name="Бэклог",
        type=TableType.BACKLOG,
        icon="Layout",
        color="text-gray-500",
        is_system=True,
    ),
    TableCollection(id="t-docs", name="Документы", type=TableType.DOCS, icon="FileText"),
    TableCollection(id="t-meetings", name="Встречи", type=TableType.MEETINGS, icon="Users"),
)

DEFAULT_USERS: Final = (
    User(
        id="u1",
        name="Администратор",
        role=Role.ADMIN,
        login="admin",
        password="admin",
        must_change_password=True,
    ),
)

DEFAULT_NOTIFICATION_SETTINGS: Final = {
    NotificationCategory.NEW_TASK.value: NotificationSetting(system=True, telegram=True),
    NotificationCategory.STATUS_CHANGE.value: NotificationSetting(system=True, telegram=True),
    NotificationCategory.NEW_COMMENT.value: NotificationSetting(system=True, telegram=False),
    NotificationCategory.NEW_DOC.value: NotificationSetting(system=True, telegram=False),
}


def default_backlog_table() -> TableCollection | None:
    for t in DEFAULT_TABLES:
        if t.type == TableType.BACKLOG:
            return TableCollection.from_dict(t.to_dict())
    return None
