# tests/test_commands.py

from __future__ import annotations

import pytest

from cfo_workspace.cli.commands import CommandRegistry, registry
from cfo_workspace.core.engine import Workspace


@pytest.mark.asyncio
async def test_command_registry_routes_sync_and_async(ws) -> None:
    reg = CommandRegistry()
    called = {"sync": 0, "async": 0}

    def h_sync(ws, args):
        called["sync"] += 1
        return "sync:" + ",".join(args)

    async def h_async(ws, args):
        called["async"] += 1
        return "async"

    reg.register("a", h_sync, "a", aliases=["aa"])
    reg.register("b", h_async, "b")

    assert await reg.handle(ws, "/a x y") == "sync:x,y"
    assert await reg.handle(ws, "/AA") == "sync:"
    assert await reg.handle(ws, "/b") == "async"
    assert called == {"sync": 2, "async": 1}


@pytest.mark.asyncio
async def test_command_registry_unknown_and_non_command(ws) -> None:
    reg = CommandRegistry()
    assert await reg.handle(ws, "hello") is None
    assert "Unknown command" in (await reg.handle(ws, "/nope") or "")
    assert "Empty command" in (await reg.handle(ws, "/") or "")


@pytest.mark.asyncio
async def test_login_required_except_public(ws) -> None:
    ws.logout()
    assert "Not logged in" in (await registry.handle(ws, "/tasks") or "")
    assert "Available commands" in (await registry.handle(ws, "/help") or "")

    assert await registry.handle(ws, "/login boris pw") == "Logged in as Борис."
    assert "task-1" in (await registry.handle(ws, "/tasks") or "")


@pytest.mark.asyncio
async def test_new_status_and_take(ws, storage) -> None:
    reply = await registry.handle(ws, "/new Закрыть квартал")
    assert reply is not None and reply.startswith("Created task-")
    assert ws.state.tasks[-1].title == "Закрыть квартал"

    assert await registry.handle(ws, "/status task-1 Выполнено") == "task-1: status updated."
    assert (await registry.handle(ws, "/status task-1 bogus")) == "Unknown status: bogus"

    assert await registry.handle(ws, "/take task-1") == "task-1 taken to work in Проекты."
    assert ws.state.notification == "Задача перенесена в Проекты"
    assert await registry.handle(ws, "/take nope") == "Task not found: nope"


@pytest.mark.asyncio
async def test_table_switch_and_filters(ws) -> None:
    assert "Unknown table" in (await registry.handle(ws, "/table zzz") or "")
    reply = await registry.handle(ws, "/table t2")
    assert reply == "Active table: t2 (view=table, hide_done=True)"

    await registry.handle(ws, "/filter status Выполнено")
    assert ws.state.status_filter == "done"
    assert await registry.handle(ws, "/tasks") == "No tasks."

    await registry.handle(ws, "/filter clear")
    assert "task-2" in (await registry.handle(ws, "/ls") or "")


@pytest.mark.asyncio
async def test_take_reports_task_gone_after_pull(ws, storage) -> None:
    def delete_remotely(s) -> None:
        s.remote["tasks"] = [d for d in s.remote["tasks"] if d["id"] != "task-1"]

    storage.before_load = delete_remotely
    assert await registry.handle(ws, "/take task-1") == "Task not found: task-1"
    assert ws.state.notification is None


@pytest.mark.asyncio
async def test_folder_and_doc_commands(ws, storage) -> None:
    await registry.handle(ws, "/table docs")
    reply = await registry.handle(ws, "/mkfolder Отчёты")
    assert reply is not None and reply.startswith("Folder f-")
    folder_id = ws.state.folders[0].id

    doc = ws.create_doc(title="Ссылка", type="link", url="https://example.com")
    listing = await registry.handle(ws, "/docs") or ""
    assert f"[{folder_id}] Отчёты/" in listing
    assert "https://example.com" in listing

    assert await registry.handle(ws, f"/rmdoc {doc.id}") == f"Document {doc.id} deleted."
    assert await registry.handle(ws, f"/rmfolder {folder_id}") == f"Folder {folder_id} deleted."
    assert await registry.handle(ws, "/rmfolder nope") == "Unknown folder: nope"
    assert storage.remote_items("docs") == []
    assert storage.remote_items("folders") == []


@pytest.mark.asyncio
async def test_rmtable_asks_for_confirmation(storage, markers) -> None:
    prompts: list[str] = []
    answer = {"value": False}

    def confirm(prompt: str) -> bool:
        prompts.append(prompt)
        return answer["value"]

    markers.set("cfo_session_uid", "u1")
    ws = Workspace(storage, markers, confirm=confirm, poll_interval=3600)
    await ws.initialize()
    try:
        assert await registry.handle(ws, "/rmtable t2") == "Cancelled."
        assert "t2" in [t.id for t in storage.remote_items("tables")]

        assert "system table" in (await registry.handle(ws, "/rmtable bl") or "")

        answer["value"] = True
        assert await registry.handle(ws, "/rmtable t2") == "Table t2 deleted."
        assert "t2" not in [t.id for t in storage.remote_items("tables")]
        assert prompts == ["Удалить?", "Удалить?"]
    finally:
        await ws.close()
