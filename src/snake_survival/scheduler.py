"""Asyncio timers driving the tick, trap spawns, obstacle reshapes, and saves.

Each scheduler holds nothing but its task handle. The work itself is an
async callback supplied by the session, which takes the session lock and
runs one synchronous engine transition per firing.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

import numpy as np

from snake_survival.config import GameConfig

logger = logging.getLogger(__name__)

# Returning ``False`` stops the loop; anything else reschedules it.
Action = Callable[[], Awaitable["bool | None"]]


class PeriodicLoop:
    """Repeatedly sleep for ``delay()`` seconds, then run ``action``.

    The delay is re-evaluated before every firing, so variable intervals
    (a speeding-up tick, randomized spawn gaps) take effect immediately.
    """

    def __init__(
        self, name: str, delay: Callable[[], float], action: Action,
    ) -> None:
        self.name = name
        self._delay = delay
        self._action = action
        self._task: asyncio.Task | None = None

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the loop on the running event loop (no-op if active)."""
        if self.active:
            return
        self._task = asyncio.create_task(self._run(), name=self.name)

    async def cancel(self) -> None:
        """Stop the loop, dropping any pending delay."""
        task, self._task = self._task, None
        if task is None or task.done():
            return
        if task is asyncio.current_task():
            # The loop is stopping itself from inside its action; it exits
            # once the action returns ``False``.
            return
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)

    async def _run(self) -> None:
        try:
            while True:
                await asyncio.sleep(self._delay())
                if await self._action() is False:
                    break
        except asyncio.CancelledError:
            logger.debug("%s loop cancelled.", self.name)
        except Exception:
            logger.exception("%s loop failed.", self.name)


class TrapScheduler(PeriodicLoop):
    """Fires trap spawns after uniformly random gaps.

    Every (re)start draws a fresh delay; there is no carry-over of a delay
    interrupted by a pause.
    """

    def __init__(
        self, config: GameConfig, rng: np.random.Generator, action: Action,
    ) -> None:
        self.min_ms = config.trap_spawn_min_interval_ms
        self.max_ms = config.trap_spawn_max_interval_ms
        self.rng = rng
        super().__init__("trap-spawn", self.next_delay, action)

    def next_delay(self) -> float:
        """Seconds until the next spawn attempt."""
        return float(self.rng.uniform(self.min_ms, self.max_ms)) / 1000


class ObstacleReshapeScheduler(PeriodicLoop):
    """Ticks the reshape countdown once per ``countdown_period_ms``.

    The countdown value lives in the engine state, so cancelling this loop
    halts it without resetting it.
    """

    def __init__(self, config: GameConfig, action: Action) -> None:
        period = config.countdown_period_ms / 1000
        super().__init__("obstacle-reshape", lambda: period, action)


class DelayedCalls:
    """A set of one-shot delayed callbacks that can be cancelled together."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return sum(1 for t in self._tasks if not t.done())

    def schedule(
        self, delay: float, action: Callable[[], Awaitable[object]],
    ) -> asyncio.Task:
        task = asyncio.create_task(self._run(delay, action), name=self.name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def cancel_all(self) -> None:
        current = asyncio.current_task()
        tasks = [t for t in self._tasks if not t.done() and t is not current]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _run(
        self, delay: float, action: Callable[[], Awaitable[object]],
    ) -> None:
        try:
            await asyncio.sleep(delay)
            await action()
        except asyncio.CancelledError:
            logger.debug("%s call cancelled.", self.name)
        except Exception:
            logger.exception("%s call failed.", self.name)
