"""Classification of a proposed head position."""

from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass

from snake_survival.entities import Obstacle, Trap
from snake_survival.grid import Cell, rect_contains


class CollisionKind(enum.Enum):
    """Collision classes in resolution precedence order."""

    SELF = "self"
    OBSTACLE = "obstacle"
    TRAP = "trap"
    FOOD = "food"
    NONE = "none"


@dataclass(frozen=True)
class Collision:
    """Result of resolving a head move."""

    kind: CollisionKind
    trap: Trap | None = None
    # Food on the same cell as a hit trap is still eaten.
    eats_food: bool = False

    @property
    def is_terminal(self) -> bool:
        return self.kind in (CollisionKind.SELF, CollisionKind.OBSTACLE)


def resolve(
    new_head: Cell,
    body: Iterable[Cell],
    obstacles: Iterable[Obstacle],
    traps: Iterable[Trap],
    food: Cell | None,
) -> Collision:
    """Classify *new_head* against the board; the first match wins.

    *body* must be the snake before the new head is prepended.
    """
    if new_head in set(body):
        return Collision(CollisionKind.SELF)

    if any(rect_contains(new_head, obstacle) for obstacle in obstacles):
        return Collision(CollisionKind.OBSTACLE)

    eats_food = food is not None and new_head == food
    for trap in traps:
        if not trap.is_triggered and trap.position == new_head:
            return Collision(CollisionKind.TRAP, trap=trap, eats_food=eats_food)

    if eats_food:
        return Collision(CollisionKind.FOOD, eats_food=True)
    return Collision(CollisionKind.NONE)
