"""Rejection-sampling placement of food, traps, and obstacles.

Every generator draws from an injected NumPy ``Generator`` so placement is
reproducible under a seed. Placement is best-effort: exhausting the attempt
budget degrades softly (see each function) and never raises.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Iterable, Sequence

import numpy as np

from snake_survival.entities import Obstacle, Trap
from snake_survival.grid import Cell, Grid, expand_cells, rects_overlap

logger = logging.getLogger(__name__)

DEFAULT_ATTEMPTS = 100
SAFE_ATTEMPTS = 200


def _random_cell(rng: np.random.Generator, width: int, height: int) -> Cell:
    return int(rng.integers(width)), int(rng.integers(height))


def place_food(
    snake: Iterable[Cell],
    traps: Iterable[Trap],
    obstacles: Iterable[Obstacle],
    width: int,
    height: int,
    rng: np.random.Generator,
    max_attempts: int = DEFAULT_ATTEMPTS,
) -> Cell:
    """Pick a food cell free of the snake, live traps, and obstacles.

    If no free cell turns up within *max_attempts*, the last candidate is
    returned even though it overlaps something.
    """
    blocked = Grid(width, height).occupancy(snake, traps, obstacles)
    for _ in range(max_attempts):
        x, y = _random_cell(rng, width, height)
        if not blocked[y, x]:
            return x, y

    logger.warning(
        "Food placement exhausted %d attempts; using occupied cell %s.",
        max_attempts, (x, y),
    )
    return x, y


def place_trap(
    snake: Iterable[Cell],
    food: Cell | None,
    existing_traps: Iterable[Trap],
    obstacles: Iterable[Obstacle],
    width: int,
    height: int,
    rng: np.random.Generator,
    max_attempts: int = DEFAULT_ATTEMPTS,
    now: float | None = None,
) -> Trap | None:
    """Place one trap on a free cell, or return ``None`` to skip this spawn.

    Triggered traps still occupy their cell until removed, so two traps never
    share a position.
    """
    existing = list(existing_traps)
    blocked = Grid(width, height).occupancy(snake, (), obstacles, food)
    for trap in existing:
        tx, ty = trap.position
        blocked[ty, tx] = True

    for _ in range(max_attempts):
        x, y = _random_cell(rng, width, height)
        if not blocked[y, x]:
            return Trap(
                id=f"trap_{uuid.uuid4().hex[:12]}",
                position=(x, y),
                spawn_time=time.time() if now is None else now,
            )

    logger.debug("Trap placement exhausted %d attempts.", max_attempts)
    return None


def place_obstacles(
    count: int,
    min_size: int,
    max_size: int,
    exclusion: Iterable[Cell],
    width: int,
    height: int,
    rng: np.random.Generator,
    max_attempts: int = DEFAULT_ATTEMPTS,
    id_prefix: str = "obstacle",
) -> list[Obstacle]:
    """Place up to *count* non-overlapping rectangles avoiding *exclusion*.

    An obstacle that cannot be placed within *max_attempts* is skipped, so
    the result may hold fewer than *count* obstacles.
    """
    excluded = np.zeros((height, width), dtype=bool)
    for x, y in exclusion:
        if 0 <= x < width and 0 <= y < height:
            excluded[y, x] = True

    placed: list[Obstacle] = []
    for i in range(count):
        for _ in range(max_attempts):
            w = int(rng.integers(min_size, max_size + 1))
            h = int(rng.integers(min_size, max_size + 1))
            ox = int(rng.integers(0, width - w + 1))
            oy = int(rng.integers(0, height - h + 1))
            candidate = Obstacle(f"{id_prefix}_{i}", (ox, oy), w, h)

            if excluded[oy:oy + h, ox:ox + w].any():
                continue
            if any(rects_overlap(candidate, other) for other in placed):
                continue
            placed.append(candidate)
            break
        else:
            logger.debug(
                "Skipping obstacle %d after %d placement attempts.",
                i, max_attempts,
            )

    if len(placed) < count:
        logger.info("Placed %d of %d requested obstacles.", len(placed), count)
    return placed


def place_safe_obstacles(
    snake: Sequence[Cell],
    safety_margin: int,
    count: int,
    min_size: int,
    max_size: int,
    width: int,
    height: int,
    rng: np.random.Generator,
    max_attempts: int = SAFE_ATTEMPTS,
    id_prefix: str = "obstacle_reshape",
    extra_exclusion: Iterable[Cell] = (),
) -> list[Obstacle]:
    """Place obstacles keeping *safety_margin* cells clear around the snake.

    *extra_exclusion* adds cells that must stay free as well, such as live
    traps.
    """
    zone = expand_cells(snake, safety_margin, width, height)
    zone.update(extra_exclusion)
    return place_obstacles(
        count, min_size, max_size, zone, width, height, rng,
        max_attempts=max_attempts, id_prefix=id_prefix,
    )
