# src/cfo_workspace/core/engine.py

from __future__ import annotations

"""
Workspace: the application-state owner.

Every task mutation follows the same read-modify-write cycle:
- pull the remote state (a failed pull falls back to the cached collection),
- re-read the fresh collection from storage, not from self.state,
- apply the change and write the whole collection back,
- mirror it into self.state and patch the open task if it is the one affected.

Consistency is last-writer-wins per field set: a concurrent writer that lands
between our pull and our write is overwritten. There is no locking or versioning.

A background poll (one asyncio.Task) pulls every `poll_interval` seconds while a
user is logged in and overwrites tasks, activities and docs. Re-arming the poll
cancels only its timer; a pull that has already started still completes and applies.
"""

import asyncio
import dataclasses
import logging
import time
import uuid
from collections.abc import Callable
from datetime import UTC, date, datetime
from typing import Any

from ..notify.dispatcher import NotificationDispatcher
from ..notify.messages import (
    format_new_comment_message,
    format_new_doc_message,
    format_new_task_message,
    format_status_change_message,
)
from ..session import THEME_KEY
from . import auth
from .defaults import (
    DEFAULT_TASK_TITLE,
    FROM_TASKS_TAG,
    PRIORITY_LOW,
    STATUS_IN_PROGRESS,
    STATUS_NOT_STARTED,
    default_backlog_table,
)
from .filters import apply_view_config, get_filtered_tasks
from .models import (
    ActivityLog,
    Attachment,
    Comment,
    Doc,
    Folder,
    Meeting,
    NotificationCategory,
    PriorityOption,
    Project,
    StatusOption,
    TableCollection,
    TableType,
    Task,
    User,
    ViewConfig,
    ViewMode,
)
from .ports import Notifier, SessionMarkers, StorageAdapter
from .registry import OptionRegistry, normalize_task_refs
from .state import AppState, View
from .tables import bootstrap_tables

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 4.0
TOAST_SECONDS = 3.0

_TASK_FIELDS = frozenset(f.name for f in dataclasses.fields(Task)) - {"id"}


def _new_id(prefix: str) -> str:
    return f"{prefix}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}"


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


def _always_confirm(_prompt: str) -> bool:
    return True


class Workspace:
    def __init__(
        self,
        storage: StorageAdapter,
        markers: SessionMarkers,
        *,
        notifier: Notifier | None = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        confirm: Callable[[str], bool] | None = None,
        toast_seconds: float = TOAST_SECONDS,
    ) -> None:
        self.state = AppState()
        self._storage = storage
        self._markers = markers
        self._dispatcher = NotificationDispatcher(notifier)
        self._poll_interval = max(0.01, float(poll_interval))
        self._confirm = confirm or _always_confirm
        self._toast_seconds = toast_seconds

        self._poll_task: asyncio.Task[None] | None = None
        # Pulls already started; a re-arm cancels the timer, never these.
        self._inflight_polls: set[asyncio.Task[None]] = set()
        self._poll_key: tuple[Any, ...] | None = None
        self._view_key: tuple[Any, ...] | None = None
        self._toast_handle: asyncio.TimerHandle | None = None

    # ---- lifecycle ----

    async def initialize(self) -> None:
        s = self.state
        s.loading = True
        if not await self._storage.load():
            logger.warning("Initial pull failed; starting from cached data")

        s.users = self._storage.get_users()
        s.statuses = self._storage.get_statuses()
        s.priorities = self._storage.get_priorities()
        s.tasks = self._fresh_tasks()
        s.projects = self._storage.get_projects()
        s.tables = bootstrap_tables(self._storage.get_tables(), default_backlog_table())
        s.docs = self._storage.get_docs()
        s.folders = self._storage.get_folders()
        s.meetings = self._storage.get_meetings()
        s.activities = self._storage.get_activities()

        auth.restore_session(s, self._markers)
        s.dark_mode = self._markers.get(THEME_KEY) == "dark"

        s.loading = False
        logger.info(
            "Workspace loaded: %d tasks, %d tables, %d users (session=%s)",
            len(s.tasks),
            len(s.tables),
            len(s.users),
            s.current_user.id if s.current_user else None,
        )
        self._auto_select_table()
        self._sync_effects()

    async def close(self) -> None:
        """Stop the poll timer, let started pulls finish, then flush and close the notifier."""
        self._cancel_poll()
        if self._inflight_polls:
            await asyncio.gather(*list(self._inflight_polls), return_exceptions=True)
        if self._toast_handle is not None:
            self._toast_handle.cancel()
            self._toast_handle = None
        await self._dispatcher.close()

    # ---- effects ----

    def _auto_select_table(self) -> None:
        s = self.state
        if s.loading or not s.tables or s.active_table_id:
            return
        first = next((t for t in s.tables if t.type == TableType.TASKS), s.tables[0])
        s.active_table_id = first.id

    def _sync_effects(self) -> None:
        """Re-apply view config and re-arm the poll when their inputs changed."""
        s = self.state
        table_ids = tuple(t.id for t in s.tables)

        active = s.active_table()
        view_key = (
            s.active_table_id,
            table_ids,
            active.type if active else None,
            active.view_config if active else None,
        )
        if view_key != self._view_key:
            self._view_key = view_key
            s.hide_done, s.view_mode = apply_view_config(active, s.view_mode, s.hide_done)

        poll_key = (
            s.active_table_id,
            table_ids,
            s.current_user.id if s.current_user else None,
            s.editing_task.id if s.editing_task else None,
        )
        if poll_key != self._poll_key:
            self._poll_key = poll_key
            self._rearm_poll()

    def _cancel_poll(self) -> None:
        if self._poll_task is not None:
            self._poll_task.cancel()
            self._poll_task = None

    def _rearm_poll(self) -> None:
        self._cancel_poll()
        if self.state.current_user is None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running loop; background poll not started")
            return
        self._poll_task = loop.create_task(self._poll_loop())

    async def _poll_loop(self) -> None:
        while True:
            await asyncio.sleep(self._poll_interval)
            poll = asyncio.get_running_loop().create_task(self._poll_guarded())
            self._inflight_polls.add(poll)
            poll.add_done_callback(self._inflight_polls.discard)
            # Cancelling the loop here stops the timer only; the started pull runs to completion.
            await asyncio.shield(poll)

    async def _poll_guarded(self) -> None:
        try:
            await self.poll_once()
        except Exception:
            logger.exception("Background poll failed")

    async def poll_once(self) -> bool:
        """Pull and overwrite tasks, activities and docs. Returns False if the pull failed."""
        if not await self._storage.load():
            return False

        s = self.state
        tasks = self._fresh_tasks()
        s.tasks = tasks
        s.activities = self._storage.get_activities()
        s.docs = self._storage.get_docs()

        if s.editing_task is not None:
            remote = next((t for t in tasks if t.id == s.editing_task.id), None)
            if remote is not None:
                s.editing_task = dataclasses.replace(
                    s.editing_task,
                    comments=remote.comments,
                    attachments=remote.attachments,
                    status=remote.status,
                )
        return True

    # ---- helpers ----

    def _statuses(self) -> OptionRegistry:
        return OptionRegistry(self.state.statuses)

    def _priorities(self) -> OptionRegistry:
        return OptionRegistry(self.state.priorities)

    def _fresh_tasks(self) -> list[Task]:
        return normalize_task_refs(self._storage.get_tasks(), self._statuses(), self._priorities())

    async def _pull(self) -> bool:
        ok = await self._storage.load()
        if not ok:
            logger.warning("Pull before write failed; merging into cached data")
        return ok

    def _commit_tasks(self, tasks: list[Task]) -> None:
        self.state.tasks = tasks
        self._storage.set_tasks(tasks)

    async def _reconcile_task(
        self,
        task_id: str,
        changes_for: Callable[[Task], dict[str, Any]],
    ) -> tuple[Task, Task] | None:
        await self._pull()
        fresh = self._fresh_tasks()
        old = next((t for t in fresh if t.id == task_id), None)
        if old is None:
            logger.info("Task %s not found after pull; change dropped", task_id)
            return None

        changes = changes_for(old)
        updated = dataclasses.replace(old, **changes)
        self._commit_tasks([updated if t.id == task_id else t for t in fresh])

        s = self.state
        if s.editing_task is not None and s.editing_task.id == task_id:
            s.editing_task = dataclasses.replace(s.editing_task, **changes)
        return old, updated

    def _user_name(self) -> str:
        return self.state.current_user.name if self.state.current_user else "User"

    def show_notification(self, message: str) -> None:
        self.state.notification = message
        if self._toast_handle is not None:
            self._toast_handle.cancel()
            self._toast_handle = None
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._toast_handle = loop.call_later(self._toast_seconds, self._clear_toast)

    def _clear_toast(self) -> None:
        self.state.notification = None
        self._toast_handle = None

    def notify(self, category: NotificationCategory, action: str, details: str) -> None:
        """Record an activity entry unless the category's system flag is off."""
        setting = self._storage.get_notification_settings().get(category.value)
        if setting is not None and not setting.system:
            return
        user = self.state.current_user
        if user is None:
            return
        entry = ActivityLog(
            id=_new_id("act"),
            user_id=user.id,
            user_name=user.name,
            user_avatar=user.avatar or "",
            action=action,
            details=details,
            timestamp=_now_iso(),
            read=False,
        )
        self.state.activities = self._storage.add_activity(entry)

    def dispatch(self, category: NotificationCategory, text: str) -> None:
        """Send externally if the category's telegram flag is on. Never blocks, never raises."""
        setting = self._storage.get_notification_settings().get(category.value)
        if setting is None or not setting.telegram:
            return
        self._dispatcher.send(text)

    # ---- navigation / view ----

    def navigate(self, view: View) -> None:
        self.state.current_view = view

    def select_table(self, table_id: str) -> None:
        self.state.active_table_id = table_id
        self.state.current_view = "table"
        self._sync_effects()

    def set_view_mode(self, mode: ViewMode) -> None:
        self.state.view_mode = mode

    def set_dark_mode(self, enabled: bool) -> None:
        self.state.dark_mode = enabled
        self._markers.set(THEME_KEY, "dark" if enabled else "light")

    def open_task(self, task: Task | None) -> None:
        """Open the task modal on `task` (None opens an empty creation form)."""
        self.state.editing_task = task
        self.state.is_task_modal_open = True
        self._sync_effects()

    def set_editing_task(self, task: Task | None) -> None:
        self.state.editing_task = task
        self._sync_effects()

    def close_task_modal(self) -> None:
        self.state.is_task_modal_open = False
        self.state.editing_task = None
        self._sync_effects()

    def filtered_tasks(self) -> list[Task]:
        return get_filtered_tasks(self.state.tasks, self.state.task_filter())

    # ---- auth ----

    def login(self, login: str, password: str) -> auth.LoginOutcome:
        outcome = auth.login(self.state, self._markers, login, password)
        self._sync_effects()
        return outcome

    def change_password(self, new_password: str, confirm_password: str) -> bool:
        ok = auth.change_password(self.state, self._storage, self._markers, new_password, confirm_password)
        self._sync_effects()
        return ok

    def logout(self) -> None:
        auth.logout(self.state, self._markers)
        self._sync_effects()

    # ---- settings collections ----

    def update_users(self, users: list[User]) -> None:
        self.state.users = users
        self._storage.set_users(users)

    def update_projects(self, projects: list[Project]) -> None:
        self.state.projects = projects
        self._storage.set_projects(projects)

    def update_statuses(self, statuses: list[StatusOption]) -> None:
        self.state.statuses = statuses
        self._storage.set_statuses(statuses)

    def update_priorities(self, priorities: list[PriorityOption]) -> None:
        self.state.priorities = priorities
        self._storage.set_priorities(priorities)

    def mark_all_read(self) -> None:
        activities = [dataclasses.replace(a, read=True) for a in self.state.activities]
        self.state.activities = activities
        self._storage.set_activities(activities)

    # ---- tasks ----

    async def create_task(
        self,
        *,
        title: str = "",
        status: str = "",
        priority: str = "",
        assignee_id: str | None = None,
        project_id: str | None = None,
        start_date: str = "",
        end_date: str = "",
        description: str = "",
    ) -> Task:
        s = self.state
        today = date.today().isoformat()
        statuses = self._statuses()
        priorities = self._priorities()

        task = Task(
            id=_new_id("task"),
            table_id=s.active_table_id,
            title=title or DEFAULT_TASK_TITLE,
            status=statuses.resolve(status) or statuses.first_id(STATUS_NOT_STARTED),
            priority=priorities.resolve(priority) or priorities.first_id(PRIORITY_LOW),
            assignee_id=assignee_id or None,
            project_id=project_id or None,
            start_date=start_date or today,
            end_date=end_date or today,
            description=description or "",
            is_archived=False,
            comments=[],
            attachments=[],
        )

        # Optimistic: visible before the pull completes.
        s.tasks = [*s.tasks, task]
        await self._pull()
        self._commit_tasks([*self._fresh_tasks(), task])
        logger.info("Task created id=%s table=%s", task.id, task.table_id)

        self.notify(NotificationCategory.NEW_TASK, "создал задачу", task.title)
        s.is_task_modal_open = False
        self.show_notification("Задача создана")

        assignee = next((u for u in s.users if u.id == task.assignee_id), None)
        if assignee is not None and (s.current_user is None or assignee.id != s.current_user.id):
            project = next((p.name for p in s.projects if p.id == task.project_id), None)
            self.dispatch(
                NotificationCategory.NEW_TASK,
                format_new_task_message(
                    task.title,
                    priorities.name_of(task.priority),
                    task.end_date,
                    assignee.name,
                    project,
                ),
            )
        return task

    async def update_task(self, task_id: str, **updates: Any) -> Task | None:
        unknown = set(updates) - _TASK_FIELDS
        if unknown:
            raise TypeError(f"Unknown task fields: {sorted(unknown)}")

        statuses = self._statuses()
        if "status" in updates:
            updates["status"] = statuses.resolve(updates["status"])
        if "priority" in updates:
            updates["priority"] = self._priorities().resolve(updates["priority"])

        result = await self._reconcile_task(task_id, lambda _old: dict(updates))
        if result is None:
            return None
        old, updated = result

        new_status = updates.get("status")
        if new_status and new_status != old.status:
            old_name = statuses.name_of(old.status)
            new_name = statuses.name_of(new_status)
            self.notify(
                NotificationCategory.STATUS_CHANGE,
                "обновил статус",
                f"{old.title}: {old_name} -> {new_name}",
            )
            self.dispatch(
                NotificationCategory.STATUS_CHANGE,
                format_status_change_message(old.title, old_name, new_name, self._user_name()),
            )

        if updates.get("is_archived"):
            self.show_notification("Задача в архиве")
            self.state.is_task_modal_open = False
        return updated

    async def delete_task(self, task_id: str) -> Task | None:
        return await self.update_task(task_id, is_archived=True)

    async def restore_task(self, task_id: str) -> Task | None:
        restored = await self.update_task(task_id, is_archived=False)
        self.show_notification("Восстановлено")
        return restored

    def permanent_delete(self, task_id: str) -> None:
        # Erasure is not merged: filter what we have and persist.
        self._commit_tasks([t for t in self.state.tasks if t.id != task_id])
        logger.info("Task %s permanently deleted", task_id)

    async def add_comment(self, task_id: str, text: str) -> Comment | None:
        user = self.state.current_user
        if user is None:
            return None

        comment = Comment(
            id=_new_id("c"),
            user_id=user.id,
            user_name=user.name,
            user_avatar=user.avatar or "",
            text=text,
            created_at=_now_iso(),
        )
        result = await self._reconcile_task(task_id, lambda t: {"comments": [*t.comments, comment]})
        if result is None:
            return None
        _old, task = result

        self.notify(NotificationCategory.NEW_COMMENT, "комментарий", f'"{text[:20]}..." к задаче {task.title}')
        self.dispatch(NotificationCategory.NEW_COMMENT, format_new_comment_message(task.title, text, user.name))
        return comment

    async def add_attachment(self, task_id: str, attachment: Attachment) -> Task | None:
        result = await self._reconcile_task(task_id, lambda t: {"attachments": [*t.attachments, attachment]})
        if result is None:
            return None
        _old, task = result

        if attachment.type == "link" and attachment.url:
            docs_table = next((t for t in self.state.tables if t.type == TableType.DOCS), None)
            if docs_table is not None:
                doc = Doc(
                    id=_new_id("doc"),
                    table_id=docs_table.id,
                    title=attachment.name,
                    type="link",
                    url=attachment.url,
                    tags=[FROM_TASKS_TAG],
                    content="",
                )
                docs = [*self._storage.get_docs(), doc]
                self.state.docs = docs
                self._storage.set_docs(docs)
                self.notify(NotificationCategory.NEW_DOC, "создал документ", attachment.name)
                self.dispatch(NotificationCategory.NEW_DOC, format_new_doc_message(attachment.name, self._user_name()))
        return task

    async def delete_attachment(self, task_id: str, attachment_id: str) -> Task | None:
        result = await self._reconcile_task(
            task_id,
            lambda t: {"attachments": [a for a in t.attachments if a.id != attachment_id]},
        )
        return result[1] if result else None

    async def take_to_work(self, task: Task) -> Task | None:
        """Move `task` to another tasks table, assign it to the current user and start it."""
        s = self.state
        if s.current_user is None:
            return None

        target = next((t for t in s.tables if t.type == TableType.TASKS and t.id != task.table_id), None)
        if target is None:
            target = next((t for t in s.tables if t.type == TableType.TASKS), None)
        if target is None:
            logger.info("take_to_work: no tasks table available for %s", task.id)
            return None

        status = self._statuses().first_id_except(STATUS_NOT_STARTED, STATUS_IN_PROGRESS)
        updated = await self.update_task(
            task.id,
            table_id=target.id,
            assignee_id=s.current_user.id,
            status=status,
        )
        if updated is not None:
            self.show_notification(f"Задача перенесена в {target.name}")
        return updated

    # ---- docs & folders ----

    def create_folder(self, name: str) -> Folder | None:
        if not name.strip():
            return None
        folder = Folder(id=_new_id("f"), name=name, table_id=self.state.active_table_id)
        folders = [*self.state.folders, folder]
        self.state.folders = folders
        self._storage.set_folders(folders)
        self.state.is_folder_modal_open = False
        self.show_notification("Папка создана")
        return folder

    def delete_folder(self, folder_id: str) -> bool:
        if not self._confirm("Удалить папку?"):
            return False
        folders = [f for f in self.state.folders if f.id != folder_id]
        self.state.folders = folders
        self._storage.set_folders(folders)
        return True

    def create_doc(
        self,
        *,
        title: str,
        type: str = "internal",
        url: str = "",
        content: str = "",
        tags: list[str] | None = None,
        folder_id: str | None = None,
    ) -> Doc:
        s = self.state
        doc = Doc(
            id=_new_id("d"),
            table_id=s.active_table_id,
            title=title,
            type=type,
            url=url,
            content=content,
            tags=list(tags or []),
            folder_id=folder_id,
        )
        docs = [*s.docs, doc]
        s.docs = docs
        self._storage.set_docs(docs)
        s.is_doc_modal_open = False
        self.show_notification("Документ создан")
        self.notify(NotificationCategory.NEW_DOC, "создал документ", doc.title)
        self.dispatch(NotificationCategory.NEW_DOC, format_new_doc_message(doc.title, self._user_name()))
        if type == "internal":
            s.active_doc_id = doc.id
            s.current_view = "doc-editor"
        return doc

    def save_doc_content(self, doc_id: str, content: str, title: str) -> None:
        docs = [dataclasses.replace(d, content=content, title=title) if d.id == doc_id else d for d in self.state.docs]
        self.state.docs = docs
        self._storage.set_docs(docs)
        self.show_notification("Сохранено")

    def delete_doc(self, doc_id: str) -> bool:
        if not self._confirm("Удалить?"):
            return False
        docs = [d for d in self.state.docs if d.id != doc_id]
        self.state.docs = docs
        self._storage.set_docs(docs)
        return True

    # ---- meetings ----

    def save_meeting(self, meeting: Meeting) -> None:
        meetings = [*self.state.meetings, meeting]
        self.state.meetings = meetings
        self._storage.set_meetings(meetings)
        self.show_notification("Встреча создана")

    def update_meeting_summary(self, meeting_id: str, summary: str) -> None:
        meetings = [dataclasses.replace(m, summary=summary) if m.id == meeting_id else m for m in self.state.meetings]
        self.state.meetings = meetings
        self._storage.set_meetings(meetings)

    # ---- tables ----

    def open_create_table(self) -> None:
        self.state.editing_table_id = None
        self.state.is_create_table_modal_open = True

    def open_edit_table(self, table: TableCollection) -> None:
        self.state.editing_table_id = table.id
        self.state.is_create_table_modal_open = True

    def submit_table(
        self,
        *,
        name: str,
        type: TableType = TableType.TASKS,
        icon: str = "CheckSquare",
        color: str = "text-gray-500",
        view_config: ViewConfig | None = None,
    ) -> TableCollection | None:
        """Create a table, or edit the one opened with open_edit_table()."""
        if not name.strip():
            return None
        s = self.state
        type = TableType(type)
        cfg = (view_config or ViewConfig()) if type == TableType.TASKS else None
        fields = {"name": name, "type": type, "icon": icon, "color": color, "view_config": cfg}

        if s.editing_table_id:
            tables = [dataclasses.replace(t, **fields) if t.id == s.editing_table_id else t for t in s.tables]
            result = next((t for t in tables if t.id == s.editing_table_id), None)
        else:
            result = TableCollection(id=_new_id("t"), is_system=False, **fields)
            tables = [*s.tables, result]
            s.active_table_id = result.id
            s.current_view = "table"

        s.tables = tables
        self._storage.set_tables(tables)
        s.is_create_table_modal_open = False
        self._sync_effects()
        return result

    def delete_table(self, table_id: str) -> bool:
        if not self._confirm("Удалить?"):
            return False
        s = self.state
        tables = [t for t in s.tables if t.id != table_id]
        s.tables = tables
        self._storage.set_tables(tables)
        if s.active_table_id == table_id:
            self.navigate("home")
        self._sync_effects()
        return True

