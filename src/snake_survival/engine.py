"""Step-based game engine composing grid, snake, traps, and obstacles."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

import numpy as np

from snake_survival.collision import CollisionKind, resolve
from snake_survival.config import GameConfig
from snake_survival.entities import Obstacle, Trap
from snake_survival.events import EndReason, EventSink, EventType, discard_event
from snake_survival.grid import Cell, Grid, expand_cells
from snake_survival.placement import (
    place_food,
    place_obstacles,
    place_safe_obstacles,
    place_trap,
)
from snake_survival.snake import Direction, Snake

logger = logging.getLogger(__name__)


class GamePhase(str, enum.Enum):
    """Lifecycle states of a game board."""

    IDLE = "idle"
    PLAYING = "playing"
    PAUSED = "paused"
    GAME_OVER = "game_over"


@dataclass(frozen=True)
class TickOutcome:
    """What a single :meth:`GameEngine.step` did."""

    collision: CollisionKind
    moved: bool = True
    wrapped: bool = False
    end_reason: EndReason | None = None
    triggered_trap_id: str | None = None
    speed_increased: bool = False


_IDLE_OUTCOME = TickOutcome(CollisionKind.NONE, moved=False)


class GameEngine:
    """Single-snake, step-based survival engine on a toroidal board.

    The engine owns the snake, food, traps, and obstacles. Each public
    mutator is a synchronous, self-contained state transition: :meth:`step`
    for movement and :meth:`spawn_trap`, :meth:`countdown_second` and
    :meth:`remove_trap` for the background schedulers. Domain events are
    pushed to ``event_sink`` as they happen.
    """

    def __init__(
        self,
        config: GameConfig | None = None,
        seed: int | None = None,
        rng: np.random.Generator | None = None,
        event_sink: EventSink = discard_event,
    ) -> None:
        self.config = config or GameConfig()
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.grid = Grid(self.config.board_width, self.config.board_height)
        self.event_sink = event_sink
        self._new_board()

    def _new_board(self) -> None:
        cfg = self.config
        self.snake = Snake(cfg.start_body, Direction.parse(cfg.initial_direction))
        count = int(
            self.rng.integers(cfg.min_obstacle_count, cfg.max_obstacle_count + 1)
        )
        self.obstacles: list[Obstacle] = place_obstacles(
            count,
            cfg.min_obstacle_size,
            cfg.max_obstacle_size,
            expand_cells(
                self.snake.body, cfg.safety_margin,
                self.grid.width, self.grid.height,
            ),
            self.grid.width,
            self.grid.height,
            self.rng,
            max_attempts=cfg.placement_attempts,
        )
        self.traps: list[Trap] = []
        self.food: Cell = self._place_food()
        self.score = 0
        self.tick = 0
        self.phase = GamePhase.IDLE
        self.tick_interval_ms = cfg.initial_tick_interval_ms
        self.obstacle_reshape_countdown = self._draw_reshape_countdown()
        self.trap_warning: Cell | None = None

    # ------------------------------------------------------------------
    # Phase transitions
    # ------------------------------------------------------------------

    @property
    def is_playing(self) -> bool:
        return self.phase is GamePhase.PLAYING

    @property
    def is_game_over(self) -> bool:
        return self.phase is GamePhase.GAME_OVER

    def start(self) -> bool:
        """Move from idle to playing."""
        return self._transition(GamePhase.IDLE, GamePhase.PLAYING)

    def pause(self) -> bool:
        return self._transition(GamePhase.PLAYING, GamePhase.PAUSED)

    def resume(self) -> bool:
        return self._transition(GamePhase.PAUSED, GamePhase.PLAYING)

    def reset(self) -> None:
        """Discard the board and build a fresh idle one."""
        self._new_board()
        logger.info("Board reset.")

    def _transition(self, expected: GamePhase, target: GamePhase) -> bool:
        if self.phase is not expected:
            return False
        self.phase = target
        logger.info("Game phase %s -> %s.", expected.value, target.value)
        return True

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def set_direction(self, direction: Direction) -> bool:
        """Apply a direction change immediately, ignoring 180° reversals.

        Returns ``True`` if the change was accepted.
        """
        if self.phase is GamePhase.GAME_OVER:
            return False
        return self.snake.set_direction(direction)

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def step(self) -> TickOutcome:
        """Advance the snake by one cell and resolve collisions."""
        if self.phase is not GamePhase.PLAYING:
            return _IDLE_OUTCOME

        raw_head = self.snake.next_head()
        new_head = self.grid.wrap(raw_head)
        wrapped = new_head != raw_head
        if wrapped:
            self._emit(EventType.WALL_PASSTHROUGH, new_head)

        body = self.snake.body
        collision = resolve(new_head, body, self.obstacles, self.traps, self.food)
        self.tick += 1

        if collision.is_terminal:
            reason = (
                EndReason.SELF_COLLISION
                if collision.kind is CollisionKind.SELF
                else EndReason.OBSTACLE_COLLISION
            )
            self.phase = GamePhase.GAME_OVER
            logger.info(
                "Game over at tick %d (%s) with score %d.",
                self.tick, reason.value, self.score,
            )
            return TickOutcome(
                collision.kind, moved=False, wrapped=wrapped, end_reason=reason,
            )

        previous_length = len(body)
        body.appendleft(new_head)

        triggered_id = None
        if collision.kind is CollisionKind.TRAP:
            trap = collision.trap
            self._emit(
                EventType.TRAP_HIT,
                trap.position,
                {"previous_snake_length": previous_length},
            )
            self.snake.truncate(previous_length // 2)
            trap.is_triggered = True
            self.trap_warning = trap.position
            triggered_id = trap.id

        speed_increased = False
        if collision.eats_food:
            speed_increased = self._eat_food(new_head)
        elif collision.kind is CollisionKind.NONE:
            body.pop()

        return TickOutcome(
            collision.kind,
            wrapped=wrapped,
            triggered_trap_id=triggered_id,
            speed_increased=speed_increased,
        )

    def _eat_food(self, head: Cell) -> bool:
        """Score the food at *head*, respawn it, and maybe speed up."""
        cfg = self.config
        self.score += 1
        self._emit(
            EventType.FOOD_EATEN,
            head,
            {"score": self.score, "snake_length": len(self.snake)},
        )
        self.food = self._place_food()

        if self.score % cfg.speed_increase_every != 0:
            return False
        self.tick_interval_ms = max(
            cfg.min_tick_interval_ms,
            self.tick_interval_ms - cfg.speed_increase_step_ms,
        )
        self._emit(
            EventType.SPEED_INCREASE,
            head,
            {"new_speed": self.tick_interval_ms, "score": self.score},
        )
        logger.debug(
            "Tick interval now %d ms at score %d.",
            self.tick_interval_ms, self.score,
        )
        return True

    # ------------------------------------------------------------------
    # Scheduler reducers
    # ------------------------------------------------------------------

    def spawn_trap(self, now: float | None = None) -> Trap | None:
        """Try to add one trap; ``None`` means this spawn was skipped."""
        if self.phase is not GamePhase.PLAYING:
            return None
        if len(self.traps) >= self.config.max_traps:
            return None
        trap = place_trap(
            self.snake.body,
            self.food,
            self.traps,
            self.obstacles,
            self.grid.width,
            self.grid.height,
            self.rng,
            max_attempts=self.config.placement_attempts,
            now=now,
        )
        if trap is not None:
            self.traps.append(trap)
            logger.debug("Trap %s spawned at %s.", trap.id, trap.position)
        return trap

    def remove_trap(self, trap_id: str) -> bool:
        """Remove a trap (normally a triggered one whose warning expired)."""
        for i, trap in enumerate(self.traps):
            if trap.id == trap_id:
                del self.traps[i]
                if self.trap_warning == trap.position:
                    self.trap_warning = None
                return True
        return False

    def countdown_second(self) -> bool:
        """Decrement the reshape countdown; reshape when it reaches zero.

        Returns ``True`` if the obstacles were reshaped.
        """
        if self.phase is not GamePhase.PLAYING:
            return False
        self.obstacle_reshape_countdown -= 1
        if self.obstacle_reshape_countdown > 0:
            return False
        self.reshape_obstacles()
        return True

    def reshape_obstacles(self) -> None:
        """Replace every obstacle, keeping clear of the live snake and traps."""
        cfg = self.config
        count = int(
            self.rng.integers(cfg.min_obstacle_count, cfg.max_obstacle_count + 1)
        )
        live_traps = [t.position for t in self.traps if not t.is_triggered]
        self.obstacles = place_safe_obstacles(
            list(self.snake.body),
            cfg.safety_margin,
            count,
            cfg.min_obstacle_size,
            cfg.max_obstacle_size,
            self.grid.width,
            self.grid.height,
            self.rng,
            max_attempts=cfg.safe_placement_attempts,
            extra_exclusion=live_traps,
        )
        self.food = self._place_food()
        self.obstacle_reshape_countdown = self._draw_reshape_countdown()
        logger.debug(
            "Obstacles reshaped (%d placed); next reshape in %d s.",
            len(self.obstacles), self.obstacle_reshape_countdown,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _place_food(self) -> Cell:
        return place_food(
            self.snake.body,
            self.traps,
            self.obstacles,
            self.grid.width,
            self.grid.height,
            self.rng,
            max_attempts=self.config.placement_attempts,
        )

    def _draw_reshape_countdown(self) -> int:
        cfg = self.config
        millis = self.rng.uniform(cfg.obstacle_reshape_min_ms, cfg.obstacle_reshape_max_ms)
        return max(1, int(millis // 1000))

    def _emit(
        self, event_type: EventType, position: Cell, data: dict | None = None,
    ) -> None:
        self.event_sink(event_type, position, data)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def get_state(self) -> dict:
        """Return the full, serializable game state."""
        return {
            "tick": self.tick,
            "phase": self.phase.value,
            "is_playing": self.is_playing,
            "is_game_over": self.is_game_over,
            "score": self.score,
            "grid": self.grid.to_dict(),
            "snake": self.snake.to_dict(),
            "food": list(self.food),
            "traps": [t.to_dict() for t in self.traps],
            "obstacles": [o.to_dict() for o in self.obstacles],
            "tick_interval_ms": self.tick_interval_ms,
            "obstacle_reshape_countdown": self.obstacle_reshape_countdown,
            "trap_warning": (
                list(self.trap_warning) if self.trap_warning is not None else None
            ),
        }

    @classmethod
    def from_state(
        cls,
        state: dict,
        config: GameConfig | None = None,
        seed: int | None = None,
        rng: np.random.Generator | None = None,
        event_sink: EventSink = discard_event,
    ) -> GameEngine:
        """Rebuild an engine from :meth:`get_state` output."""
        engine = cls(config, seed=seed, rng=rng, event_sink=event_sink)
        engine.snake = Snake.from_dict(state["snake"])
        engine.food = tuple(state["food"])
        engine.traps = [Trap.from_dict(t) for t in state.get("traps", [])]
        engine.obstacles = [Obstacle.from_dict(o) for o in state.get("obstacles", [])]
        engine.score = state.get("score", 0)
        engine.tick = state.get("tick", 0)
        engine.phase = GamePhase(state.get("phase", GamePhase.IDLE.value))
        engine.tick_interval_ms = state.get(
            "tick_interval_ms", engine.config.initial_tick_interval_ms,
        )
        engine.obstacle_reshape_countdown = state.get(
            "obstacle_reshape_countdown", engine.obstacle_reshape_countdown,
        )
        warning = state.get("trap_warning")
        engine.trap_warning = tuple(warning) if warning is not None else None
        return engine
