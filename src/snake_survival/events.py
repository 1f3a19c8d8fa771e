"""Domain events emitted by the engine and session end reasons."""

from __future__ import annotations

import enum
from collections.abc import Callable
from typing import Any

Cell = tuple[int, int]


class EventType(str, enum.Enum):
    """Kinds of in-game events recorded against a session."""

    FOOD_EATEN = "food-eaten"
    TRAP_HIT = "trap-hit"
    SPEED_INCREASE = "speed-increase"
    WALL_PASSTHROUGH = "wall-passthrough"


class EndReason(str, enum.Enum):
    """Why a session record was finalized."""

    SELF_COLLISION = "self-collision"
    OBSTACLE_COLLISION = "obstacle-collision"
    USER_QUIT = "user-quit"


# Receives (event type, position, optional payload).
EventSink = Callable[[EventType, Cell, "dict[str, Any] | None"], None]


def discard_event(
    event_type: EventType, position: Cell, data: dict[str, Any] | None = None,
) -> None:
    """Event sink that drops everything (headless simulation)."""
