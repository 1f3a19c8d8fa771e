"""Game configuration: board, spawn timers, speed and safety parameters."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

_INITIAL_LENGTH = 3


@dataclass(frozen=True)
class GameConfig:
    """Injected configuration for a single-player survival game.

    Durations are milliseconds. Supports JSON serialization so a tuned
    configuration can be shared between runs.
    """

    # Board
    board_width: int = 40
    board_height: int = 40
    # ``None`` centres a three-cell snake facing right.
    initial_snake: tuple[tuple[int, int], ...] | None = None
    initial_direction: str = "RIGHT"

    # Obstacles
    min_obstacle_count: int = 15
    max_obstacle_count: int = 15
    min_obstacle_size: int = 1
    max_obstacle_size: int = 3
    obstacle_reshape_min_ms: int = 30_000
    obstacle_reshape_max_ms: int = 45_000
    safety_margin: int = 3

    # Traps
    trap_spawn_min_interval_ms: int = 10_000
    trap_spawn_max_interval_ms: int = 15_000
    max_traps: int = 8
    trap_warning_duration_ms: int = 500

    # Speed
    initial_tick_interval_ms: int = 150
    speed_increase_step_ms: int = 5
    min_tick_interval_ms: int = 50
    speed_increase_every: int = 10

    # Timers
    countdown_period_ms: int = 1_000
    autosave_interval_ms: int = 5_000

    # Placement budgets
    placement_attempts: int = 100
    safe_placement_attempts: int = 200

    def __post_init__(self) -> None:
        if self.board_width < 4 or self.board_height < 4:
            raise ValueError("board_width and board_height must be at least 4.")
        start = self.start_body
        if not start:
            raise ValueError("initial_snake must contain at least one cell.")
        for x, y in start:
            if not (0 <= x < self.board_width and 0 <= y < self.board_height):
                raise ValueError(
                    f"initial_snake cell ({x}, {y}) lies outside the board."
                )
        if len(set(start)) != len(start):
            raise ValueError("initial_snake must not contain duplicate cells.")
        if self.initial_direction.upper() not in ("UP", "DOWN", "LEFT", "RIGHT"):
            raise ValueError(
                f"initial_direction must be a cardinal direction, "
                f"got {self.initial_direction!r}."
            )

        _check_range("obstacle_count", self.min_obstacle_count,
                     self.max_obstacle_count, lower=0)
        _check_range("obstacle_size", self.min_obstacle_size,
                     self.max_obstacle_size, lower=1)
        if self.max_obstacle_size > min(self.board_width, self.board_height):
            raise ValueError("max_obstacle_size must fit on the board.")
        _check_range("obstacle_reshape", self.obstacle_reshape_min_ms,
                     self.obstacle_reshape_max_ms, lower=1_000)
        _check_range("trap_spawn_interval", self.trap_spawn_min_interval_ms,
                     self.trap_spawn_max_interval_ms, lower=1)
        _check_range("tick_interval", self.min_tick_interval_ms,
                     self.initial_tick_interval_ms, lower=1)

        if self.safety_margin < 0:
            raise ValueError("safety_margin must be >= 0.")
        if self.max_traps < 0:
            raise ValueError("max_traps must be >= 0.")
        if self.trap_warning_duration_ms < 0:
            raise ValueError("trap_warning_duration_ms must be >= 0.")
        if self.speed_increase_step_ms < 0:
            raise ValueError("speed_increase_step_ms must be >= 0.")
        if self.speed_increase_every < 1:
            raise ValueError("speed_increase_every must be at least 1.")
        if self.countdown_period_ms < 1 or self.autosave_interval_ms < 1:
            raise ValueError("countdown and autosave periods must be positive.")
        if self.placement_attempts < 1 or self.safe_placement_attempts < 1:
            raise ValueError("placement attempt budgets must be at least 1.")

    @property
    def start_body(self) -> tuple[tuple[int, int], ...]:
        """Head-first cells of the snake at the start of a game."""
        if self.initial_snake is not None:
            return tuple(tuple(cell) for cell in self.initial_snake)
        x, y = self.board_width // 2, self.board_height // 2
        return tuple((x - i, y) for i in range(_INITIAL_LENGTH))

    def to_dict(self) -> dict:
        """Serialize to a plain dict (tuples become lists)."""
        return asdict(self)

    def save(self, path: str | Path) -> None:
        """Write config to a JSON file."""
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(json.dumps(self.to_dict(), indent=2))
        logger.info("Config saved to %s", p)

    @classmethod
    def from_dict(cls, raw: dict) -> GameConfig:
        """Build a config from a plain dict, restoring tuple fields."""
        data = dict(raw)
        if data.get("initial_snake") is not None:
            data["initial_snake"] = tuple(
                tuple(cell) for cell in data["initial_snake"]
            )
        return cls(**data)

    @classmethod
    def load(cls, path: str | Path) -> GameConfig:
        """Load config from a JSON file."""
        return cls.from_dict(json.loads(Path(path).read_text()))


def _check_range(name: str, low: int, high: int, lower: int) -> None:
    if low < lower:
        raise ValueError(f"min {name} must be at least {lower}.")
    if high < low:
        raise ValueError(f"max {name} must be >= min {name}.")
