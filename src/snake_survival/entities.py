"""Board entities: traps and obstacles."""

from __future__ import annotations

from dataclasses import dataclass

Cell = tuple[int, int]


@dataclass
class Trap:
    """A transient hazard that halves the snake on contact."""

    id: str
    position: Cell
    spawn_time: float
    is_triggered: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "position": list(self.position),
            "spawn_time": self.spawn_time,
            "is_triggered": self.is_triggered,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Trap:
        return cls(
            id=data["id"],
            position=tuple(data["position"]),
            spawn_time=data["spawn_time"],
            is_triggered=data.get("is_triggered", False),
        )


@dataclass(frozen=True)
class Obstacle:
    """An axis-aligned rectangular footprint anchored at ``origin``."""

    id: str
    origin: Cell
    width: int
    height: int

    def __post_init__(self) -> None:
        if self.width < 1 or self.height < 1:
            raise ValueError("Obstacle dimensions must be at least 1.")

    def cells(self) -> list[Cell]:
        """Return every cell covered by the footprint."""
        ox, oy = self.origin
        return [
            (ox + dx, oy + dy)
            for dx in range(self.width)
            for dy in range(self.height)
        ]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "origin": list(self.origin),
            "width": self.width,
            "height": self.height,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Obstacle:
        return cls(
            id=data["id"],
            origin=tuple(data["origin"]),
            width=data["width"],
            height=data["height"],
        )
