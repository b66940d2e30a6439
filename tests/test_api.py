"""Tests for the FastAPI server endpoints."""

from __future__ import annotations

import time

import pytest
from asgi_lifespan import LifespanManager
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient
from starlette.websockets import WebSocketState

from dawdle.api.server import create_app
from dawdle.api.websocket import WebSocketHandler, parse_message
from dawdle.config import Settings
from dawdle.models import DawdleSignal, HistoryEntry, ZoneVerdict

_VERDICT = ZoneVerdict(distance_ratio=1.4, velocity_ratio=1.0, distance_in_zone=True, velocity_in_zone=False)


@pytest.fixture
def app():
    return create_app(Settings(_env_file=None))


@pytest.fixture
def history_app(tmp_path):
    return create_app(
        Settings(
            _env_file=None,
            history_enabled=True,
            database_url=f"sqlite+aiosqlite:///{tmp_path / 'api.db'}",
        )
    )


@pytest.fixture
async def client(app):
    """Async test client with lifespan (startup / shutdown) fully executed."""
    async with LifespanManager(app) as manager:
        transport = ASGITransport(app=manager.app)
        async with AsyncClient(transport=transport, base_url="http://test") as c:
            yield c


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    resp = await client.get("/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["active_sessions"] == 0


@pytest.mark.asyncio
async def test_config(client: AsyncClient):
    resp = await client.get("/config")
    assert resp.status_code == 200
    body = resp.json()
    assert body["emotional_distance"] == 1.30
    assert body["emotional_velocity"] == 0.83
    assert body["action_delay_ms"] == 200
    assert body["debounce_window_ms"] == 1000


@pytest.mark.asyncio
async def test_history_disabled(client: AsyncClient):
    resp = await client.get("/history")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_history_lists_entries(history_app):
    async with LifespanManager(history_app) as manager:
        transport = ASGITransport(app=manager.app)
        async with AsyncClient(transport=transport, base_url="http://test") as c:
            resp = await c.get("/history")
            assert resp.status_code == 200
            assert resp.json() == []

            history = history_app.state.history
            await history.append(HistoryEntry(session_id="S1", action_count=2, verdict=_VERDICT))
            await history.append(HistoryEntry(session_id="S2", action_count=5, verdict=_VERDICT))

            resp = await c.get("/history")
            assert [e["session_id"] for e in resp.json()] == ["S1", "S2"]

            resp = await c.get("/history", params={"session_id": "S2"})
            assert [e["action_count"] for e in resp.json()] == [5]


def test_ws_pointer_session_lifecycle(app):
    with TestClient(app) as client:
        with client.websocket_connect("/ws/pointer") as ws:
            ws.send_text("not json")
            ws.send_json({"x": "bad", "y": 1})
            ws.send_json({"x": 10, "y": 20})
            ws.send_json({"x": 12, "y": 24})

            snapshot = client.get("/sessions").json()
            deadline = time.monotonic() + 2.0
            while time.monotonic() < deadline:
                sessions = list(snapshot["sessions"].values())
                if sessions and sessions[0]["samples"] == 2:
                    break
                time.sleep(0.02)
                snapshot = client.get("/sessions").json()

            assert snapshot["active"] == 1
            assert list(snapshot["sessions"].values())[0]["samples"] == 2

        deadline = time.monotonic() + 2.0
        while client.get("/health").json()["active_sessions"] and time.monotonic() < deadline:
            time.sleep(0.02)
        assert client.get("/health").json()["active_sessions"] == 0


def test_parse_message():
    assert parse_message('{"x": 1, "y": 2}') == {"x": 1, "y": 2}
    assert parse_message("nope") is None


class _FakeSocket:
    def __init__(self, state: WebSocketState = WebSocketState.CONNECTED) -> None:
        self.client_state = state
        self.sent: list[dict] = []

    async def send_json(self, data: dict) -> None:
        self.sent.append(data)


@pytest.mark.asyncio
async def test_websocket_handler_pushes_signal():
    ws = _FakeSocket()
    signal = DawdleSignal(session_id="S1", action_count=2, verdict=_VERDICT)

    assert await WebSocketHandler(ws).send(signal) is True
    assert ws.sent[0]["type"] == "dawdle"
    assert ws.sent[0]["verdict"]["distance_in_zone"] is True


@pytest.mark.asyncio
async def test_websocket_handler_skips_closed_socket():
    ws = _FakeSocket(WebSocketState.DISCONNECTED)
    signal = DawdleSignal(session_id="S1", action_count=2, verdict=_VERDICT)

    assert await WebSocketHandler(ws).send(signal) is False
    assert ws.sent == []
