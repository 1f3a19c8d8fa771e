"""Tests for the collision resolver."""

from snake_survival.collision import CollisionKind, resolve
from snake_survival.entities import Obstacle, Trap

BODY = [(5, 5), (4, 5), (3, 5)]


class TestResolve:
    def test_no_collision(self):
        result = resolve((6, 5), BODY, [], [], (0, 0))
        assert result.kind is CollisionKind.NONE
        assert not result.is_terminal

    def test_self(self):
        result = resolve((4, 5), BODY, [], [], None)
        assert result.kind is CollisionKind.SELF
        assert result.is_terminal

    def test_tail_cell_counts_as_self(self):
        assert resolve((3, 5), BODY, [], [], None).kind is CollisionKind.SELF

    def test_obstacle(self):
        result = resolve((6, 5), BODY, [Obstacle("o", (6, 4), 1, 3)], [], None)
        assert result.kind is CollisionKind.OBSTACLE
        assert result.is_terminal

    def test_trap(self):
        trap = Trap("t", (6, 5), 0.0)
        result = resolve((6, 5), BODY, [], [trap], (0, 0))
        assert result.kind is CollisionKind.TRAP
        assert result.trap is trap
        assert not result.eats_food
        assert not result.is_terminal

    def test_triggered_trap_ignored(self):
        trap = Trap("t", (6, 5), 0.0, is_triggered=True)
        assert resolve((6, 5), BODY, [], [trap], None).kind is CollisionKind.NONE

    def test_food(self):
        result = resolve((6, 5), BODY, [], [], (6, 5))
        assert result.kind is CollisionKind.FOOD
        assert result.eats_food


class TestPrecedence:
    def test_self_beats_obstacle(self):
        obstacle = Obstacle("o", (4, 5), 1, 1)
        assert resolve((4, 5), BODY, [obstacle], [], None).kind is CollisionKind.SELF

    def test_obstacle_beats_trap_and_food(self):
        obstacle = Obstacle("o", (6, 5), 1, 1)
        trap = Trap("t", (6, 5), 0.0)
        result = resolve((6, 5), BODY, [obstacle], [trap], (6, 5))
        assert result.kind is CollisionKind.OBSTACLE

    def test_trap_beats_food_but_food_still_eaten(self):
        trap = Trap("t", (6, 5), 0.0)
        result = resolve((6, 5), BODY, [], [trap], (6, 5))
        assert result.kind is CollisionKind.TRAP
        assert result.eats_food
