"""Snake representation and direction rules."""

from __future__ import annotations

import enum
from collections import deque
from collections.abc import Iterable

Cell = tuple[int, int]


class Direction(enum.Enum):
    """Cardinal movement directions with (dx, dy) values."""

    UP = (0, -1)
    DOWN = (0, 1)
    LEFT = (-1, 0)
    RIGHT = (1, 0)

    @classmethod
    def parse(cls, name: str) -> Direction:
        """Look up a direction by case-insensitive name."""
        try:
            return cls[name.upper()]
        except KeyError:
            raise ValueError(f"Unknown direction: {name!r}.") from None


# Pairs that would cause an instant 180° reversal.
_OPPOSITES: dict[Direction, Direction] = {
    Direction.UP: Direction.DOWN,
    Direction.DOWN: Direction.UP,
    Direction.LEFT: Direction.RIGHT,
    Direction.RIGHT: Direction.LEFT,
}


def is_reverse(current: Direction, requested: Direction) -> bool:
    """Check whether *requested* is the exact opposite of *current*."""
    return _OPPOSITES[current] is requested


class Snake:
    """A snake represented as an ordered deque of (x, y) body segments.

    The head is ``body[0]``; the tail is ``body[-1]``.
    """

    def __init__(
        self,
        body: Iterable[Cell],
        direction: Direction = Direction.RIGHT,
    ) -> None:
        self.body: deque[Cell] = deque(tuple(seg) for seg in body)
        if not self.body:
            raise ValueError("Snake length must be at least 1.")
        self.direction = direction

    def __len__(self) -> int:
        return len(self.body)

    @property
    def head(self) -> Cell:
        """Return the head coordinate."""
        return self.body[0]

    def set_direction(self, new_direction: Direction) -> bool:
        """Change direction, ignoring 180° reversals.

        Returns ``True`` if the change was accepted.
        """
        if is_reverse(self.direction, new_direction):
            return False
        self.direction = new_direction
        return True

    def next_head(self) -> Cell:
        """Compute the raw (unwrapped) next head position without moving."""
        dx, dy = self.direction.value
        x, y = self.head
        return x + dx, y + dy

    def truncate(self, length: int) -> None:
        """Drop tail segments until at most *length* remain (minimum 1)."""
        keep = max(1, length)
        while len(self.body) > keep:
            self.body.pop()

    def occupies(self, cell: Cell) -> bool:
        """Check whether the snake occupies a given cell."""
        return cell in self.body

    def to_dict(self) -> dict:
        """Serialize snake state to a dictionary."""
        return {
            "body": [list(seg) for seg in self.body],
            "direction": self.direction.name,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Snake:
        """Rebuild a snake from :meth:`to_dict` output."""
        return cls(
            (tuple(seg) for seg in data["body"]),
            Direction.parse(data["direction"]),
        )
