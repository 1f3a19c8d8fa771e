"""Tests for food, trap, and obstacle placement."""

import logging

import numpy as np

from snake_survival.entities import Obstacle, Trap
from snake_survival.grid import rect_contains, rects_overlap
from snake_survival.placement import (
    place_food,
    place_obstacles,
    place_safe_obstacles,
    place_trap,
)


def _rng(seed: int = 0) -> np.random.Generator:
    return np.random.default_rng(seed)


class TestPlaceFood:
    def test_avoids_everything(self):
        snake = [(x, 0) for x in range(10)]
        traps = [Trap(f"t{i}", (i, 1), 0.0) for i in range(10)]
        obstacles = [Obstacle("o", (0, 2), 10, 6)]
        for seed in range(30):
            x, y = place_food(snake, traps, obstacles, 10, 10, _rng(seed))
            assert (x, y) not in snake
            assert all(t.position != (x, y) for t in traps)
            assert not rect_contains((x, y), obstacles[0])
            assert y >= 8

    def test_may_land_on_triggered_trap(self):
        # Only the triggered trap's cell is free.
        snake = [(0, 0)]
        trap = Trap("t", (3, 3), 0.0, is_triggered=True)
        blocked = [Obstacle("a", (0, 0), 4, 3), Obstacle("b", (0, 3), 3, 1)]
        cell = place_food(snake, [trap], blocked, 4, 4, _rng(1), max_attempts=500)
        assert cell == (3, 3)

    def test_exhaustion_returns_best_effort(self, caplog):
        full = [Obstacle("o", (0, 0), 4, 4)]
        with caplog.at_level(logging.WARNING):
            x, y = place_food([], [], full, 4, 4, _rng(), max_attempts=5)
        assert 0 <= x < 4 and 0 <= y < 4
        assert "exhausted" in caplog.text

    def test_deterministic(self):
        a = place_food([(1, 1)], [], [], 20, 20, _rng(42))
        b = place_food([(1, 1)], [], [], 20, 20, _rng(42))
        assert a == b


class TestPlaceTrap:
    def test_avoids_snake_food_traps_obstacles(self):
        snake = [(0, 0), (1, 0)]
        food = (2, 0)
        existing = [Trap("t0", (3, 0), 0.0)]
        obstacles = [Obstacle("o", (0, 1), 4, 3)]
        for seed in range(20):
            trap = place_trap(snake, food, existing, obstacles, 4, 4, _rng(seed))
            # Only row 0 is outside the obstacle, and it is fully occupied.
            assert trap is None

    def test_places_on_free_cell(self):
        trap = place_trap([(0, 0)], (1, 1), [], [], 10, 10, _rng(3), now=12.5)
        assert trap is not None
        assert trap.position not in ((0, 0), (1, 1))
        assert trap.spawn_time == 12.5
        assert not trap.is_triggered
        assert trap.id.startswith("trap_")

    def test_triggered_traps_still_occupy(self):
        snake = [(x, y) for x in range(4) for y in range(4) if (x, y) != (3, 3)]
        existing = [Trap("old", (3, 3), 0.0, is_triggered=True)]
        assert place_trap(snake, None, existing, [], 4, 4, _rng(), max_attempts=200) is None

    def test_unique_ids(self):
        rng = _rng(5)
        ids = {place_trap([], None, [], [], 10, 10, rng).id for _ in range(20)}
        assert len(ids) == 20


class TestPlaceObstacles:
    def test_no_overlap_and_within_bounds(self):
        obstacles = place_obstacles(15, 1, 3, [], 40, 40, _rng(7))
        assert len(obstacles) == 15
        for i, a in enumerate(obstacles):
            ox, oy = a.origin
            assert 1 <= a.width <= 3 and 1 <= a.height <= 3
            assert 0 <= ox and ox + a.width <= 40
            assert 0 <= oy and oy + a.height <= 40
            for b in obstacles[i + 1:]:
                assert not rects_overlap(a, b)

    def test_respects_exclusion(self):
        exclusion = {(x, y) for x in range(10) for y in range(10) if x < 8}
        obstacles = place_obstacles(5, 1, 2, exclusion, 10, 10, _rng(2))
        for obstacle in obstacles:
            assert not set(obstacle.cells()) & exclusion

    def test_skips_unplaceable(self):
        exclusion = {(x, y) for x in range(5) for y in range(5)}
        assert place_obstacles(3, 1, 1, exclusion, 5, 5, _rng(), max_attempts=10) == []

    def test_best_effort_count(self):
        # A 4x4 board holds at most four 2x2 obstacles.
        obstacles = place_obstacles(10, 2, 2, [], 4, 4, _rng(0), max_attempts=50)
        assert 1 <= len(obstacles) <= 4

    def test_id_prefix(self):
        obstacles = place_obstacles(2, 1, 1, [], 10, 10, _rng(), id_prefix="wall")
        assert [o.id for o in obstacles] == ["wall_0", "wall_1"]


class TestPlaceSafeObstacles:
    def test_keeps_margin_around_snake(self):
        snake = [(10, 10), (9, 10), (8, 10)]
        for seed in range(10):
            obstacles = place_safe_obstacles(snake, 3, 15, 1, 3, 40, 40, _rng(seed))
            for obstacle in obstacles:
                for x, y in obstacle.cells():
                    nearest = min(max(abs(x - sx), abs(y - sy)) for sx, sy in snake)
                    assert nearest > 3

    def test_extra_exclusion(self):
        keep_free = {(x, y) for x in range(20) for y in range(10)}
        obstacles = place_safe_obstacles(
            [(0, 19)], 1, 10, 1, 2, 20, 20, _rng(4), extra_exclusion=keep_free,
        )
        for obstacle in obstacles:
            assert not set(obstacle.cells()) & keep_free
