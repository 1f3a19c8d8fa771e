"""WebSocket integration tests for real-time play."""

from __future__ import annotations

import json

import pytest
from starlette.testclient import TestClient

from snake_survival.config import GameConfig
from snake_survival.server.app import create_app
from snake_survival.storage import GameStorage, MemoryStore


@pytest.fixture()
def tc():
    """Starlette sync TestClient; entering it runs the lifespan so REST
    calls, WebSocket connections, and session timers share one loop."""
    config = GameConfig(
        board_width=20,
        board_height=20,
        min_obstacle_count=0,
        max_obstacle_count=0,
        initial_tick_interval_ms=20,
        min_tick_interval_ms=10,
    )
    application = create_app(config, GameStorage(MemoryStore()), seed=0)
    with TestClient(application) as client:
        yield client


class TestPlayWebSocket:
    def test_connect_and_receive_initial_state(self, tc):
        with tc.websocket_connect("/game/play") as ws:
            state = json.loads(ws.receive_text())
            assert state["phase"] == "idle"
            assert "snake" in state
            assert "grid" in state

    def test_receives_ticks_after_start(self, tc):
        with tc.websocket_connect("/game/play") as ws:
            ws.receive_text()
            assert tc.post("/game/start").status_code == 200
            started = json.loads(ws.receive_text())
            assert started["phase"] == "playing"
            ticked = json.loads(ws.receive_text())
            assert ticked["tick"] >= 1

    def test_send_direction(self, tc):
        with tc.websocket_connect("/game/play") as ws:
            ws.receive_text()
            tc.post("/game/start")
            ws.send_text(json.dumps({"direction": "up"}))
            for _ in range(50):
                state = json.loads(ws.receive_text())
                if state["snake"]["direction"] == "UP":
                    break
            assert state["snake"]["direction"] == "UP"

    def test_garbage_messages_ignored(self, tc):
        with tc.websocket_connect("/game/play") as ws:
            ws.receive_text()
            ws.send_text("not json")
            ws.send_text(json.dumps([1, 2]))
            ws.send_text(json.dumps({"direction": 3}))
            ws.send_text(json.dumps({"direction": "sideways"}))
            tc.post("/game/start")
            state = json.loads(ws.receive_text())
            assert state["phase"] == "playing"
            assert state["snake"]["direction"] == "RIGHT"

    def test_listener_removed_on_disconnect(self, tc):
        with tc.websocket_connect("/game/play") as ws:
            ws.receive_text()
            assert len(tc.app.state.session.listeners) == 1
        tc.get("/game")
        assert tc.app.state.session.listeners == []
