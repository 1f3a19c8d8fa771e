"""Session lifecycle: start, pause, reset, autosave, and resume.

A :class:`GameSession` is the only component that talks to persistence. It
wires the engine's event sink into :class:`~snake_survival.storage.GameStorage`
and runs every timer callback under a single :class:`asyncio.Lock`, so each
firing is one read-modify-write transition of the engine state.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

import numpy as np

from snake_survival.config import GameConfig
from snake_survival.engine import GameEngine, GamePhase
from snake_survival.events import EndReason
from snake_survival.scheduler import (
    DelayedCalls,
    ObstacleReshapeScheduler,
    PeriodicLoop,
    TrapScheduler,
)
from snake_survival.snake import Direction
from snake_survival.storage import GameStorage

logger = logging.getLogger(__name__)

# Receives the full state dict after every change (render collaborator).
Listener = Callable[[dict], Awaitable[None]]


class GameSession:
    """Single-player game session around a :class:`GameEngine`."""

    def __init__(
        self,
        config: GameConfig | None = None,
        storage: GameStorage | None = None,
        seed: int | None = None,
    ) -> None:
        self.config = config or GameConfig()
        self.storage = storage if storage is not None else GameStorage()
        self.rng = np.random.default_rng(seed)
        self.engine = GameEngine(
            self.config, rng=self.rng, event_sink=self.storage.record_event,
        )
        self.lock = asyncio.Lock()
        self.listeners: list[Listener] = []

        self._tick_loop = PeriodicLoop(
            "tick", lambda: self.engine.tick_interval_ms / 1000, self._on_tick,
        )
        self._trap_scheduler = TrapScheduler(
            self.config, self.rng, self._on_trap_spawn,
        )
        self._reshape_scheduler = ObstacleReshapeScheduler(
            self.config, self._on_countdown,
        )
        self._autosave_loop = PeriodicLoop(
            "autosave",
            lambda: self.config.autosave_interval_ms / 1000,
            self._on_autosave,
        )
        self._trap_expiry = DelayedCalls("trap-expiry")

    @classmethod
    async def open(
        cls,
        config: GameConfig | None = None,
        storage: GameStorage | None = None,
        seed: int | None = None,
    ) -> GameSession:
        """Create a session, resuming a saved game that was mid-play."""
        session = cls(config, storage, seed)
        saved = session.storage.load_saved_state()
        if saved is not None and saved.game_state.get("phase") == GamePhase.PLAYING.value:
            await session.resume_saved()
        return session

    @property
    def phase(self) -> GamePhase:
        return self.engine.phase

    @property
    def timers_active(self) -> bool:
        """Whether any scheduler or trap expiry still has a pending firing."""
        loops = (
            self._tick_loop,
            self._trap_scheduler,
            self._reshape_scheduler,
            self._autosave_loop,
        )
        return any(loop.active for loop in loops) or self._trap_expiry.pending > 0

    def get_state(self) -> dict:
        return self.engine.get_state()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> bool:
        """Begin play from an idle board and open a session record."""
        async with self.lock:
            if not self.engine.start():
                return False
            self.storage.start_session()
            self._start_timers()
        await self._notify()
        return True

    async def toggle_pause(self) -> bool:
        """Pause a running game or resume a paused one."""
        async with self.lock:
            if self.engine.pause():
                await self._stop_timers()
            elif self.engine.resume():
                self._start_timers()
            else:
                return False
        await self._notify()
        return True

    async def reset(self) -> None:
        """Abandon the current game and return to a fresh idle board."""
        async with self.lock:
            await self._stop_timers()
            if self.storage.has_active_session:
                self.storage.end_session(
                    self.engine.score, len(self.engine.snake), EndReason.USER_QUIT,
                )
            self.storage.clear_saved_state()
            self.engine.reset()
        await self._notify()

    def change_direction(self, direction: Direction) -> bool:
        """Apply a direction change now; reversals are ignored."""
        return self.engine.set_direction(direction)

    def save(self) -> bool:
        """Persist the running game; only saves while playing."""
        if not (self.storage.has_active_session and self.engine.is_playing):
            return False
        return self.storage.save_state(
            self.engine.get_state(), self.engine.tick_interval_ms,
        )

    async def resume_saved(self) -> bool:
        """Replace the board with the saved game and continue it."""
        async with self.lock:
            saved = self.storage.load_saved_state()
            if saved is None or not self.storage.resume_saved_session():
                return False
            await self._stop_timers()
            self.engine = GameEngine.from_state(
                saved.game_state,
                self.config,
                rng=self.rng,
                event_sink=self.storage.record_event,
            )
            self.engine.tick_interval_ms = saved.tick_interval_ms
            if self.engine.is_playing:
                self._start_timers()
            logger.info(
                "Resumed saved game at tick %d with score %d.",
                self.engine.tick, self.engine.score,
            )
        await self._notify()
        return True

    async def close(self) -> None:
        """Cancel every pending timer (application shutdown)."""
        async with self.lock:
            await self._stop_timers()

    # ------------------------------------------------------------------
    # Timer callbacks
    # ------------------------------------------------------------------

    def _start_timers(self) -> None:
        self._tick_loop.start()
        self._trap_scheduler.start()
        self._reshape_scheduler.start()
        self._autosave_loop.start()
        # Triggered traps get a full warning period again after a pause.
        for trap in self.engine.traps:
            if trap.is_triggered:
                self._schedule_trap_expiry(trap.id)

    async def _stop_timers(self) -> None:
        await self._tick_loop.cancel()
        await self._trap_scheduler.cancel()
        await self._reshape_scheduler.cancel()
        await self._autosave_loop.cancel()
        await self._trap_expiry.cancel_all()

    async def _on_tick(self) -> bool:
        async with self.lock:
            outcome = self.engine.step()
            if outcome.triggered_trap_id is not None:
                self._schedule_trap_expiry(outcome.triggered_trap_id)
            if outcome.end_reason is not None:
                self.storage.end_session(
                    self.engine.score, len(self.engine.snake), outcome.end_reason,
                )
                await self._stop_timers()
        await self._notify()
        return outcome.end_reason is None

    async def _on_trap_spawn(self) -> None:
        async with self.lock:
            trap = self.engine.spawn_trap()
        if trap is not None:
            await self._notify()

    async def _on_countdown(self) -> None:
        async with self.lock:
            self.engine.countdown_second()
        await self._notify()

    async def _on_autosave(self) -> None:
        async with self.lock:
            self.save()

    def _schedule_trap_expiry(self, trap_id: str) -> None:
        async def expire() -> None:
            async with self.lock:
                removed = self.engine.remove_trap(trap_id)
            if removed:
                await self._notify()

        self._trap_expiry.schedule(
            self.config.trap_warning_duration_ms / 1000, expire,
        )

    async def _notify(self) -> None:
        if not self.listeners:
            return
        state = self.engine.get_state()
        for listener in list(self.listeners):
            try:
                await listener(state)
            except Exception:
                logger.warning("Dropping failed state listener.")
                if listener in self.listeners:
                    self.listeners.remove(listener)
