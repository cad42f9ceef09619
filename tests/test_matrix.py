# tests/test_matrix.py

from __future__ import annotations

import json
import os
import stat
from pathlib import Path

import pytest
from nio import LoginResponse, RoomSendResponse

from cfo_workspace.notify import matrix
from cfo_workspace.notify.matrix import MatrixNotifier

from .fakes import FakeMatrixClient


@pytest.fixture()
def fake_client(monkeypatch: pytest.MonkeyPatch) -> type[FakeMatrixClient]:
    FakeMatrixClient.instances = []
    FakeMatrixClient.login_response = LoginResponse(user_id="@bot:example.org", device_id="DEV1", access_token="tok-1")
    FakeMatrixClient.send_response = RoomSendResponse(event_id="$event", room_id="!room:example.org")
    monkeypatch.setattr(matrix, "AsyncClient", FakeMatrixClient)
    return FakeMatrixClient


def _notifier(store_dir: Path, password: str = "pw") -> MatrixNotifier:
    return MatrixNotifier(
        homeserver="https://matrix.example.org",
        user_id="@bot:example.org",
        room_id="!room:example.org",
        password=password,
        store_dir=store_dir,
        device_name="cfo-test",
    )


@pytest.mark.asyncio
async def test_password_login_saves_session_and_sends_html(fake_client, tmp_path: Path) -> None:
    n = _notifier(tmp_path)
    await n.send_text(text="<b>A &amp; B</b>\nline")

    client = fake_client.instances[0]
    assert client.logins == [{"password": "pw", "device_name": "cfo-test"}]

    session_file = tmp_path / "session.json"
    saved = json.loads(session_file.read_text("utf-8"))
    assert saved == {"access_token": "tok-1", "user_id": "@bot:example.org", "device_id": "DEV1"}
    if os.name == "posix":
        assert stat.S_IMODE(session_file.stat().st_mode) == 0o600

    assert client.sent == [
        {
            "room_id": "!room:example.org",
            "message_type": "m.room.message",
            "content": {
                "msgtype": "m.text",
                "body": "A & B\nline",
                "format": "org.matrix.custom.html",
                "formatted_body": "<b>A &amp; B</b><br>line",
            },
        }
    ]

    # The client is reused for later sends.
    await n.send_text(text="again")
    assert len(fake_client.instances) == 1
    assert len(client.sent) == 2


@pytest.mark.asyncio
async def test_session_restored_without_login(fake_client, tmp_path: Path) -> None:
    (tmp_path / "session.json").write_text(
        json.dumps({"access_token": "stored", "user_id": "@bot:example.org", "device_id": "DEV9"}),
        "utf-8",
    )
    n = _notifier(tmp_path, password="")
    await n.send_text(text="hi")

    client = fake_client.instances[0]
    assert client.logins == []
    assert (client.access_token, client.device_id) == ("stored", "DEV9")


@pytest.mark.asyncio
async def test_broken_session_falls_back_to_password(fake_client, tmp_path: Path) -> None:
    (tmp_path / "session.json").write_text(json.dumps({"user_id": "@bot:example.org"}), "utf-8")
    n = _notifier(tmp_path)
    await n.send_text(text="hi")
    assert len(fake_client.instances[0].logins) == 1


@pytest.mark.asyncio
async def test_missing_password_and_session_raises(fake_client, tmp_path: Path) -> None:
    n = _notifier(tmp_path, password="")
    with pytest.raises(RuntimeError, match="password is not set"):
        await n.send_text(text="hi")
    assert fake_client.instances[0].closed is True


@pytest.mark.asyncio
async def test_login_failure_raises(fake_client, tmp_path: Path) -> None:
    fake_client.login_response = object()
    n = _notifier(tmp_path)
    with pytest.raises(RuntimeError, match="login failed"):
        await n.send_text(text="hi")
    assert fake_client.instances[0].closed is True
    assert not (tmp_path / "session.json").exists()


@pytest.mark.asyncio
async def test_room_send_failure_raises_and_close_releases_client(fake_client, tmp_path: Path) -> None:
    fake_client.send_response = object()
    n = _notifier(tmp_path)
    with pytest.raises(RuntimeError, match="room_send failed"):
        await n.send_text(text="hi")

    client = fake_client.instances[0]
    await n.close()
    assert client.closed is True

    # A closed notifier builds a fresh client on the next send.
    fake_client.send_response = RoomSendResponse(event_id="$e2", room_id="!room:example.org")
    await n.send_text(text="after close")
    assert len(fake_client.instances) == 2


def test_matrix_requires_room() -> None:
    with pytest.raises(ValueError):
        MatrixNotifier(homeserver="https://m", user_id="@a:m", room_id="")
