"""Tests for the incident WebSocket feed."""

import asyncio
import json

import pytest
from starlette.testclient import TestClient

from vigil.api.websockets.events import ConnectionManager
from vigil.dependencies import get_event_bus, reset_singletons
from vigil.main import app


class FakeWebSocket:
    def __init__(self):
        self.accepted = False
        self.closed_with = None
        self.sent: list[str] = []

    async def accept(self):
        self.accepted = True

    async def close(self, code: int = 1000):
        self.closed_with = code

    async def send_text(self, text: str):
        self.sent.append(text)


class TestWebSocketEndpoint:

    def test_connect_and_request_history(self):
        client = TestClient(app)
        with client.websocket_connect("/ws/incidents") as ws:
            assert ws.receive_json()["type"] == "connected"
            ws.send_text("history")
            message = ws.receive_json()
            assert message["type"] == "history"
            assert isinstance(message["data"], list)

    def test_history_for_one_incident(self):
        reset_singletons()
        bus = get_event_bus()
        bus.publish({"event": "incident_created", "incident_id": "inc_a"})
        bus.publish({"event": "incident_created", "incident_id": "inc_b"})
        try:
            with TestClient(app).websocket_connect("/ws/incidents") as ws:
                ws.receive_json()
                ws.send_text("history inc_b")
                message = ws.receive_json()
        finally:
            reset_singletons()

        assert [e["incident_id"] for e in message["data"]] == ["inc_b"]


class TestConnectionManager:

    @pytest.mark.asyncio
    async def test_rejects_over_limit(self):
        manager = ConnectionManager(max_connections=1)
        first, second = FakeWebSocket(), FakeWebSocket()

        assert await manager.connect(first) is True
        assert await manager.connect(second) is False
        assert second.closed_with == 1013

        await manager.close_all()
        assert manager.connection_count == 0

    @pytest.mark.asyncio
    async def test_store_events_reach_clients(self):
        manager = ConnectionManager()
        ws = FakeWebSocket()
        await manager.connect(ws)

        await manager.on_store_event({"event": "incident_created", "incident_id": "inc_1"})
        for _ in range(10):
            if ws.sent:
                break
            await asyncio.sleep(0.01)

        message = json.loads(ws.sent[0])
        assert message["type"] == "incident_update"
        assert message["data"]["incident_id"] == "inc_1"
        await manager.close_all()

    @pytest.mark.asyncio
    async def test_lagging_client_is_dropped(self):
        manager = ConnectionManager(queue_size=1)
        ws = FakeWebSocket()
        await manager.connect(ws)
        # Writer task never gets a turn, so the queue overflows
        await manager.broadcast({"n": 1})
        await manager.broadcast({"n": 2})

        assert manager.connection_count == 0
