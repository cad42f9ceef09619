# src/cfo_workspace/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from .filters import TaskFilter
from .models import (
    ActivityLog,
    Doc,
    Folder,
    Meeting,
    PriorityOption,
    Project,
    StatusOption,
    TableCollection,
    Task,
    User,
    ViewMode,
)

View = Literal["home", "inbox", "search", "table", "doc-editor"]


@dataclass
class AuthForm:
    login: str = ""
    password: str = ""
    error: str = ""
    change_password_mode: bool = False
    new_password: str = ""
    confirm_password: str = ""


@dataclass
class AppState:
    """
    Everything the presentation layer renders.

    Collections are in-memory mirrors of the storage adapter. They are replaced
    wholesale by the Workspace and should be treated as read-only snapshots.
    """

    loading: bool = True
    current_user: User | None = None
    dark_mode: bool = False

    # ---- collections ----
    users: list[User] = field(default_factory=list)
    tasks: list[Task] = field(default_factory=list)
    projects: list[Project] = field(default_factory=list)
    tables: list[TableCollection] = field(default_factory=list)
    docs: list[Doc] = field(default_factory=list)
    folders: list[Folder] = field(default_factory=list)
    meetings: list[Meeting] = field(default_factory=list)
    activities: list[ActivityLog] = field(default_factory=list)
    statuses: list[StatusOption] = field(default_factory=list)
    priorities: list[PriorityOption] = field(default_factory=list)

    # ---- navigation / view ----
    current_view: View = "home"
    active_table_id: str = ""
    active_doc_id: str = ""
    view_mode: ViewMode = ViewMode.TABLE

    # ---- filters ----
    search_query: str = ""
    status_filter: str = ""
    user_filter: str = ""
    project_filter: str = ""
    hide_done: bool = False

    # ---- modals / toast ----
    notification: str | None = None
    editing_task: Task | None = None
    is_task_modal_open: bool = False
    is_settings_open: bool = False
    is_profile_open: bool = False
    is_doc_modal_open: bool = False
    is_folder_modal_open: bool = False
    is_create_table_modal_open: bool = False
    editing_table_id: str | None = None

    auth: AuthForm = field(default_factory=AuthForm)

    def task_filter(self) -> TaskFilter:
        return TaskFilter(
            active_table_id=self.active_table_id,
            hide_done=self.hide_done,
            search_query=self.search_query,
            status=self.status_filter,
            assignee_id=self.user_filter,
            project_id=self.project_filter,
        )

    def active_table(self) -> TableCollection | None:
        return next((t for t in self.tables if t.id == self.active_table_id), None)

    def unread_count(self) -> int:
        return sum(1 for a in self.activities if not a.read)
