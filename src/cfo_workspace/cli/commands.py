# src/cfo_workspace/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable

from ..core.auth import LoginOutcome
from ..core.engine import Workspace
from ..core.models import TableType, Task, ViewMode
from ..core.registry import OptionRegistry

CommandResult = str | Awaitable[str]
CommandHandler = Callable[[Workspace, list[str]], CommandResult]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /tasks, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}
        self._public: set[str] = set()

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
        *,
        public: bool = False,
    ) -> None:
        """Register a command. Non-public commands require a logged-in user."""
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in [key, *(a.lower() for a in aliases)]:
            self._handlers[alias] = handler
            if public:
                self._public.add(alias)

    async def handle(self, ws: Workspace, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        if name not in self._public and ws.state.current_user is None:
            return "Not logged in. Use /login <login> <password>."

        result = handler(ws, args)
        if inspect.isawaitable(result):
            result = await result
        return result

    def help_text(self) -> str:
        lines = ["Available commands:"]
        for name in sorted(self._help):
            lines.append(f"/{name} - {self._help[name]}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- formatting ----


def _format_task(ws: Workspace, t: Task) -> str:
    statuses = OptionRegistry(ws.state.statuses)
    assignee = next((u.name for u in ws.state.users if u.id == t.assignee_id), "-")
    flags = " [archived]" if t.is_archived else ""
    return f"{t.id}  {t.title}  ({statuses.name_of(t.status)}, {assignee}, до {t.end_date}){flags}"


def _find_task(ws: Workspace, task_id: str) -> Task | None:
    return next((t for t in ws.state.tasks if t.id == task_id), None)


# ---- commands ----


def cmd_help(ws: Workspace, args: list[str]) -> str:
    return registry.help_text()


def cmd_login(ws: Workspace, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /login <login> <password>"
    outcome = ws.login(args[0], args[1])
    if outcome == LoginOutcome.OK:
        return f"Logged in as {ws.state.current_user.name}."  # type: ignore[union-attr]
    if outcome == LoginOutcome.CHANGE_PASSWORD:
        return "Password change required: /passwd <new> <confirm>"
    return ws.state.auth.error


def cmd_passwd(ws: Workspace, args: list[str]) -> str:
    if not ws.state.auth.change_password_mode:
        return "No password change pending."
    if len(args) < 2:
        return "Usage: /passwd <new> <confirm>"
    if ws.change_password(args[0], args[1]):
        return "Password changed."
    return ws.state.auth.error or "Password change failed."


def cmd_logout(ws: Workspace, args: list[str]) -> str:
    ws.logout()
    return "Logged out."


def cmd_tables(ws: Workspace, args: list[str]) -> str:
    lines = []
    for t in ws.state.tables:
        marker = "*" if t.id == ws.state.active_table_id else " "
        lines.append(f"{marker} {t.id}  {t.name} [{t.type.value}]")
    return "\n".join(lines) or "No tables."


def cmd_table(ws: Workspace, args: list[str]) -> str:
    if not args:
        return "Usage: /table <table_id>"
    if not any(t.id == args[0] for t in ws.state.tables):
        return f"Unknown table: {args[0]}"
    ws.select_table(args[0])
    return f"Active table: {args[0]} (view={ws.state.view_mode.value}, hide_done={ws.state.hide_done})"


def cmd_view(ws: Workspace, args: list[str]) -> str:
    if not args:
        return f"View mode: {ws.state.view_mode.value}"
    try:
        ws.set_view_mode(ViewMode(args[0].lower()))
    except ValueError:
        return "Usage: /view table|kanban|gantt"
    return f"View mode: {ws.state.view_mode.value}"


def cmd_tasks(ws: Workspace, args: list[str]) -> str:
    tasks = ws.filtered_tasks()
    if not tasks:
        return "No tasks."
    return "\n".join(_format_task(ws, t) for t in tasks)


async def cmd_new(ws: Workspace, args: list[str]) -> str:
    table = ws.state.active_table()
    if table is None or table.type not in (TableType.TASKS, TableType.BACKLOG):
        return "Select a tasks table first (/table <id>)."
    task = await ws.create_task(title=" ".join(args))
    return f"Created {task.id}."


async def cmd_status(ws: Workspace, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /status <task_id> <status>"
    status = " ".join(args[1:])
    if status not in OptionRegistry(ws.state.statuses).ids() and not any(
        s.name == status for s in ws.state.statuses
    ):
        return f"Unknown status: {status}"
    task = await ws.update_task(args[0], status=status)
    return f"{task.id}: status updated." if task else f"Task not found: {args[0]}"


async def cmd_comment(ws: Workspace, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /comment <task_id> <text>"
    comment = await ws.add_comment(args[0], " ".join(args[1:]))
    return "Comment added." if comment else f"Task not found: {args[0]}"


async def cmd_archive(ws: Workspace, args: list[str]) -> str:
    if not args:
        return "Usage: /archive <task_id>"
    task = await ws.delete_task(args[0])
    return f"{args[0]} archived." if task else f"Task not found: {args[0]}"


async def cmd_restore(ws: Workspace, args: list[str]) -> str:
    if not args:
        return "Usage: /restore <task_id>"
    task = await ws.restore_task(args[0])
    return f"{args[0]} restored." if task else f"Task not found: {args[0]}"


def cmd_purge(ws: Workspace, args: list[str]) -> str:
    if not args:
        return "Usage: /purge <task_id>"
    ws.permanent_delete(args[0])
    return f"{args[0]} deleted."


async def cmd_take(ws: Workspace, args: list[str]) -> str:
    if not args:
        return "Usage: /take <task_id>"
    task = _find_task(ws, args[0])
    if task is None:
        return f"Task not found: {args[0]}"
    if not any(t.type == TableType.TASKS for t in ws.state.tables):
        return "No tasks table to move into."
    updated = await ws.take_to_work(task)
    if updated is None:
        return f"Task not found: {task.id}"
    table = next((t.name for t in ws.state.tables if t.id == updated.table_id), updated.table_id)
    return f"{task.id} taken to work in {table}."


def cmd_docs(ws: Workspace, args: list[str]) -> str:
    s = ws.state
    folders = [f for f in s.folders if f.table_id == s.active_table_id]
    docs = [d for d in s.docs if d.table_id == s.active_table_id]
    lines = [f"[{f.id}] {f.name}/" for f in folders]
    lines += [f"{d.id}  {d.title} ({d.type}){' ' + d.url if d.url else ''}" for d in docs]
    return "\n".join(lines) or "No documents."


def cmd_mkfolder(ws: Workspace, args: list[str]) -> str:
    folder = ws.create_folder(" ".join(args))
    return f"Folder {folder.id} created." if folder else "Usage: /mkfolder <name>"


def cmd_rmfolder(ws: Workspace, args: list[str]) -> str:
    if not args:
        return "Usage: /rmfolder <folder_id>"
    if not any(f.id == args[0] for f in ws.state.folders):
        return f"Unknown folder: {args[0]}"
    return f"Folder {args[0]} deleted." if ws.delete_folder(args[0]) else "Cancelled."


def cmd_rmdoc(ws: Workspace, args: list[str]) -> str:
    if not args:
        return "Usage: /rmdoc <doc_id>"
    if not any(d.id == args[0] for d in ws.state.docs):
        return f"Unknown document: {args[0]}"
    return f"Document {args[0]} deleted." if ws.delete_doc(args[0]) else "Cancelled."


def cmd_rmtable(ws: Workspace, args: list[str]) -> str:
    if not args:
        return "Usage: /rmtable <table_id>"
    table = next((t for t in ws.state.tables if t.id == args[0]), None)
    if table is None:
        return f"Unknown table: {args[0]}"
    if table.is_system:
        return f"{table.name} is a system table and cannot be deleted."
    return f"Table {args[0]} deleted." if ws.delete_table(args[0]) else "Cancelled."


def cmd_search(ws: Workspace, args: list[str]) -> str:
    ws.state.search_query = " ".join(args)
    return f"Search: {ws.state.search_query!r}" if args else "Search cleared."


def cmd_filter(ws: Workspace, args: list[str]) -> str:
    if len(args) < 1 or args[0] not in ("status", "user", "project", "clear"):
        return "Usage: /filter status|user|project <value> | /filter clear"
    s = ws.state
    if args[0] == "clear":
        s.status_filter = s.user_filter = s.project_filter = ""
        return "Filters cleared."
    value = " ".join(args[1:])
    if args[0] == "status":
        s.status_filter = OptionRegistry(s.statuses).resolve(value) or ""
    elif args[0] == "user":
        s.user_filter = value
    else:
        s.project_filter = value
    return f"Filter {args[0]} = {value!r}"


def cmd_hidedone(ws: Workspace, args: list[str]) -> str:
    if args:
        ws.state.hide_done = args[0].lower() in ("on", "1", "true", "yes")
    else:
        ws.state.hide_done = not ws.state.hide_done
    return f"hide_done={ws.state.hide_done}"


def cmd_inbox(ws: Workspace, args: list[str]) -> str:
    ws.navigate("inbox")
    if not ws.state.activities:
        return "Inbox is empty."
    lines = []
    for a in reversed(ws.state.activities[-20:]):
        marker = " " if a.read else "•"
        lines.append(f"{marker} {a.timestamp[:16]} {a.user_name} {a.action}: {a.details}")
    return "\n".join(lines)


def cmd_readall(ws: Workspace, args: list[str]) -> str:
    ws.mark_all_read()
    return "All activity marked as read."


def cmd_theme(ws: Workspace, args: list[str]) -> str:
    if args:
        ws.set_dark_mode(args[0].lower() == "dark")
    else:
        ws.set_dark_mode(not ws.state.dark_mode)
    return f"Theme: {'dark' if ws.state.dark_mode else 'light'}"


registry.register("help", cmd_help, "Show this help", aliases=["h", "?"], public=True)
registry.register("login", cmd_login, "Log in: /login <login> <password>", public=True)
registry.register("passwd", cmd_passwd, "Set a new password when required: /passwd <new> <confirm>", public=True)
registry.register("logout", cmd_logout, "Log out")
registry.register("tables", cmd_tables, "List tables")
registry.register("table", cmd_table, "Switch active table: /table <id>")
registry.register("view", cmd_view, "Show or set the view mode: /view table|kanban|gantt")
registry.register("tasks", cmd_tasks, "List visible tasks of the active table", aliases=["ls"])
registry.register("new", cmd_new, "Create a task in the active table: /new <title>")
registry.register("status", cmd_status, "Change task status: /status <task_id> <status>")
registry.register("comment", cmd_comment, "Comment a task: /comment <task_id> <text>")
registry.register("archive", cmd_archive, "Archive a task: /archive <task_id>")
registry.register("restore", cmd_restore, "Restore an archived task: /restore <task_id>")
registry.register("purge", cmd_purge, "Delete a task permanently: /purge <task_id>")
registry.register("take", cmd_take, "Take a task to work: /take <task_id>")
registry.register("docs", cmd_docs, "List folders and documents of the active table")
registry.register("mkfolder", cmd_mkfolder, "Create a folder in the active table: /mkfolder <name>")
registry.register("rmfolder", cmd_rmfolder, "Delete a folder (asks for confirmation): /rmfolder <id>")
registry.register("rmdoc", cmd_rmdoc, "Delete a document (asks for confirmation): /rmdoc <id>")
registry.register("rmtable", cmd_rmtable, "Delete a table (asks for confirmation): /rmtable <id>")
registry.register("search", cmd_search, "Filter tasks by title: /search <text>")
registry.register("filter", cmd_filter, "Exact filters: /filter status|user|project <value>")
registry.register("hidedone", cmd_hidedone, "Toggle hiding done tasks: /hidedone [on|off]")
registry.register("inbox", cmd_inbox, "Show recent activity")
registry.register("readall", cmd_readall, "Mark all activity as read")
registry.register("theme", cmd_theme, "Switch theme: /theme [dark|light]")
