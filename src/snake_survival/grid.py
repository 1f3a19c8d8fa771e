"""Toroidal grid geometry and occupancy masks."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from snake_survival.entities import Obstacle, Trap

Cell = tuple[int, int]


def wrap(cell: Cell, width: int, height: int) -> Cell:
    """Wrap an ``(x, y)`` coordinate onto a ``width`` × ``height`` torus.

    Python's ``%`` already returns a non-negative result for a positive
    modulus, so negative coordinates land on the opposite edge.
    """
    x, y = cell
    return x % width, y % height


def rect_contains(point: Cell, obstacle: Obstacle) -> bool:
    """Check whether *point* lies inside an obstacle footprint.

    Lower bounds are inclusive, upper bounds exclusive.
    """
    x, y = point
    ox, oy = obstacle.origin
    return ox <= x < ox + obstacle.width and oy <= y < oy + obstacle.height


def rects_overlap(a: Obstacle, b: Obstacle) -> bool:
    """Check whether two obstacle footprints share at least one cell."""
    ax, ay = a.origin
    bx, by = b.origin
    return (
        ax < bx + b.width
        and bx < ax + a.width
        and ay < by + b.height
        and by < ay + a.height
    )


def expand_cells(
    cells: Iterable[Cell], margin: int, width: int, height: int,
) -> set[Cell]:
    """Return every in-board cell within *margin* steps of any input cell.

    Distance is Chebyshev (a square around each cell). The zone is clipped at
    the board edges rather than wrapped.
    """
    zone: set[Cell] = set()
    for x, y in cells:
        for dx in range(-margin, margin + 1):
            for dy in range(-margin, margin + 1):
                nx, ny = x + dx, y + dy
                if 0 <= nx < width and 0 <= ny < height:
                    zone.add((nx, ny))
    return zone


class Grid:
    """Board dimensions plus a NumPy occupancy view.

    Coordinates are ``(x, y)``; the occupancy mask is indexed ``[y, x]`` so
    its shape is ``(height, width)``, consistent with NumPy row ordering.
    """

    def __init__(self, width: int = 40, height: int = 40) -> None:
        if width < 4 or height < 4:
            raise ValueError("Grid dimensions must be at least 4×4.")
        self.width = width
        self.height = height

    def wrap(self, cell: Cell) -> Cell:
        """Wrap a coordinate around the grid edges."""
        return wrap(cell, self.width, self.height)

    def occupancy(
        self,
        snake: Iterable[Cell] = (),
        traps: Iterable[Trap] = (),
        obstacles: Iterable[Obstacle] = (),
        food: Cell | None = None,
    ) -> np.ndarray:
        """Return a boolean mask of blocked cells.

        Triggered traps are warning markers about to disappear and do not
        block.
        """
        mask = np.zeros((self.height, self.width), dtype=bool)
        for x, y in snake:
            mask[y, x] = True
        for trap in traps:
            if not trap.is_triggered:
                tx, ty = trap.position
                mask[ty, tx] = True
        for obstacle in obstacles:
            ox, oy = obstacle.origin
            mask[oy:oy + obstacle.height, ox:ox + obstacle.width] = True
        if food is not None:
            mask[food[1], food[0]] = True
        return mask

    def to_dict(self) -> dict:
        """Serialize grid dimensions to a dictionary."""
        return {"width": self.width, "height": self.height}
