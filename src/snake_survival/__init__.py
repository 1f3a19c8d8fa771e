"""Snake Survival: toroidal snake game core with traps and reshaping obstacles."""

from snake_survival.config import GameConfig
from snake_survival.engine import GameEngine, GamePhase, TickOutcome
from snake_survival.entities import Obstacle, Trap
from snake_survival.events import EndReason, EventType
from snake_survival.grid import Grid
from snake_survival.session import GameSession
from snake_survival.snake import Direction, Snake
from snake_survival.storage import GameStorage

__all__ = [
    "Direction",
    "EndReason",
    "EventType",
    "GameConfig",
    "GameEngine",
    "GamePhase",
    "GameSession",
    "GameStorage",
    "Grid",
    "Obstacle",
    "Snake",
    "TickOutcome",
    "Trap",
]
