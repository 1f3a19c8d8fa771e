"""WebSocket handler for real-time play."""

from __future__ import annotations

import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from snake_survival.session import GameSession
from snake_survival.snake import Direction

logger = logging.getLogger(__name__)

ws_router = APIRouter()

_DIRECTION_MAP: dict[str, Direction] = {
    "up": Direction.UP,
    "down": Direction.DOWN,
    "left": Direction.LEFT,
    "right": Direction.RIGHT,
}


def _get_session(ws: WebSocket) -> GameSession:
    return ws.app.state.session


@ws_router.websocket("/game/play")
async def play(websocket: WebSocket) -> None:
    """Send directions, receive the board state after every change."""
    session = _get_session(websocket)
    await websocket.accept()

    async def push(state: dict) -> None:
        if websocket.client_state == WebSocketState.CONNECTED:
            await websocket.send_text(json.dumps(state, separators=(",", ":")))

    session.listeners.append(push)
    logger.info("Player connected.")

    # Send initial state snapshot so the client gets immediate feedback.
    await push(session.get_state())

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                msg = json.loads(raw)
            except json.JSONDecodeError:
                continue
            if not isinstance(msg, dict):
                continue

            direction_str = msg.get("direction")
            if not isinstance(direction_str, str):
                continue

            direction = _DIRECTION_MAP.get(direction_str.lower())
            if direction is None:
                continue
            session.change_direction(direction)
    except WebSocketDisconnect:
        logger.info("Player disconnected.")
    finally:
        if push in session.listeners:
            session.listeners.remove(push)
