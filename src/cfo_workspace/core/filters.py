# src/cfo_workspace/core/filters.py

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from .defaults import STATUS_DONE
from .models import TableCollection, TableType, Task, ViewConfig, ViewMode


@dataclass(slots=True, frozen=True)
class TaskFilter:
    active_table_id: str = ""
    hide_done: bool = False
    search_query: str = ""
    status: str = ""
    assignee_id: str = ""
    project_id: str = ""


def get_filtered_tasks(tasks: Iterable[Task], criteria: TaskFilter) -> list[Task]:
    """
    Visible subset of `tasks`, in their original order.

    Archived tasks are always hidden. Every other criterion applies only when set,
    and all of them must hold.
    """
    query = criteria.search_query.lower()
    out: list[Task] = []
    for t in tasks:
        if t.is_archived:
            continue
        if criteria.active_table_id and t.table_id != criteria.active_table_id:
            continue
        if criteria.hide_done and t.status == STATUS_DONE:
            continue
        if query and query not in (t.title or "").lower():
            continue
        if criteria.status and t.status != criteria.status:
            continue
        if criteria.assignee_id and t.assignee_id != criteria.assignee_id:
            continue
        if criteria.project_id and t.project_id != criteria.project_id:
            continue
        out.append(t)
    return out


def enabled_view_modes(config: ViewConfig | None) -> list[ViewMode]:
    config = config or ViewConfig()
    modes: list[ViewMode] = []
    if config.show_table:
        modes.append(ViewMode.TABLE)
    if config.show_kanban:
        modes.append(ViewMode.KANBAN)
    if config.show_gantt:
        modes.append(ViewMode.GANTT)
    return modes


def apply_view_config(table: TableCollection | None, view_mode: ViewMode, hide_done: bool) -> tuple[bool, ViewMode]:
    """
    Correct (hide_done, view_mode) for a newly active table.

    Tasks tables hide done tasks by default; every other table type shows them.
    A view mode the table disables falls back to the first enabled one
    (table, then kanban, then gantt). With no table the inputs are returned as is.
    """
    if table is None:
        return hide_done, view_mode

    if table.type != TableType.TASKS:
        return False, view_mode

    enabled = enabled_view_modes(table.view_config)
    if enabled and view_mode not in enabled:
        view_mode = enabled[0]
    return True, view_mode
