# tests/test_filters.py

from __future__ import annotations

from cfo_workspace.core.filters import (
    TaskFilter,
    apply_view_config,
    enabled_view_modes,
    get_filtered_tasks,
)
from cfo_workspace.core.models import TableCollection, TableType, ViewConfig, ViewMode

from .conftest import make_task


def _tasks():
    return [
        make_task("a", title="Quarterly budget", assignee_id="u1", project_id="p1"),
        make_task("b", title="Budget review", status="done", assignee_id="u2"),
        make_task("c", title="Archived budget", is_archived=True),
        make_task("d", table_id="t2", title="Other table budget"),
    ]


def test_archived_always_hidden() -> None:
    ids = [t.id for t in get_filtered_tasks(_tasks(), TaskFilter())]
    assert ids == ["a", "b", "d"]


def test_table_and_hide_done() -> None:
    crit = TaskFilter(active_table_id="t1", hide_done=True)
    assert [t.id for t in get_filtered_tasks(_tasks(), crit)] == ["a"]


def test_search_is_case_insensitive_substring() -> None:
    crit = TaskFilter(active_table_id="t1", search_query="BUDGET")
    assert [t.id for t in get_filtered_tasks(_tasks(), crit)] == ["a", "b"]


def test_exact_filters_combine() -> None:
    tasks = _tasks()
    assert [t.id for t in get_filtered_tasks(tasks, TaskFilter(status="done"))] == ["b"]
    assert [t.id for t in get_filtered_tasks(tasks, TaskFilter(assignee_id="u1"))] == ["a"]
    assert [t.id for t in get_filtered_tasks(tasks, TaskFilter(project_id="p1", assignee_id="u2"))] == []


def test_enabled_view_modes_order() -> None:
    assert enabled_view_modes(None) == [ViewMode.TABLE, ViewMode.KANBAN, ViewMode.GANTT]
    cfg = ViewConfig(show_table=False, show_kanban=False, show_gantt=True)
    assert enabled_view_modes(cfg) == [ViewMode.GANTT]


def test_apply_view_config() -> None:
    tasks_table = TableCollection(
        id="t1",
        name="T",
        type=TableType.TASKS,
        view_config=ViewConfig(show_table=False, show_kanban=True, show_gantt=False),
    )
    assert apply_view_config(tasks_table, ViewMode.TABLE, False) == (True, ViewMode.KANBAN)
    assert apply_view_config(tasks_table, ViewMode.KANBAN, False) == (True, ViewMode.KANBAN)

    docs = TableCollection(id="d", name="D", type=TableType.DOCS)
    assert apply_view_config(docs, ViewMode.GANTT, True) == (False, ViewMode.GANTT)

    assert apply_view_config(None, ViewMode.GANTT, True) == (True, ViewMode.GANTT)
