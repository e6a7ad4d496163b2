"""
Tests for the duel physics / game state machine.

Tests cover:
1. Toroidal geometry (wrap, toroidal_diff)
2. Ship integration (drag, speed cap, wrapping)
3. Firing (nose spawn, cooldown, threshold, per-ship projectile cap)
4. Ship–ship bumps, including across an arena seam
5. Projectile hits and match termination (win, double kill, timeout)
"""

import math
import pytest
import numpy as np

from game import GameState, Ship, Projectile, wrap, toroidal_diff, toroidal_delta
from config import (
    ARENA_WIDTH, ARENA_HEIGHT, MAX_SHIP_SPEED, SHIP_RADIUS, SHIP_DRAG,
    PROJECTILE_SPEED, FIRE_COOLDOWN, MAX_PROJECTILES_PER_SHIP,
    SPAWN_X, SPAWN_Y_RANGE, SPAWN_JITTER,
)

DT = 1.0 / 60.0
IDLE = [0.0, 0.0, 0.0, 0.0]
FIRE = [0.0, 0.0, 0.0, 1.0]


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def head_on():
    return GameState.new()


@pytest.fixture
def offset_ships():
    """Ship 0 on the centre line, ship 1 well out of its line of fire."""
    return GameState((Ship(200.0, 300.0, 0.0), Ship(200.0, 100.0, 0.0)))


# =============================================================================
# TOROIDAL GEOMETRY
# =============================================================================

class TestWrap:

    @pytest.mark.parametrize("val,expected", [
        (0.0, 0.0),
        (799.5, 799.5),
        (800.0, 0.0),
        (801.0, 1.0),
        (-1.0, 799.0),
        (-800.0, 0.0),
        (2450.0, 50.0),
    ])
    def test_known_values(self, val, expected):
        assert wrap(val, ARENA_WIDTH) == pytest.approx(expected)

    def test_range_and_idempotence(self):
        rng = np.random.default_rng(0)
        for v in rng.uniform(-1e5, 1e5, size=500):
            w = wrap(float(v), ARENA_HEIGHT)
            assert 0.0 <= w < ARENA_HEIGHT
            assert wrap(w, ARENA_HEIGHT) == w

    def test_tiny_negative_stays_in_range(self):
        assert 0.0 <= wrap(-1e-20, ARENA_WIDTH) < ARENA_WIDTH


class TestToroidalDiff:

    def test_short_way_round(self):
        assert toroidal_diff(790.0, 10.0, ARENA_WIDTH) == pytest.approx(-20.0)
        assert toroidal_diff(10.0, 790.0, ARENA_WIDTH) == pytest.approx(20.0)
        assert toroidal_diff(300.0, 100.0, ARENA_WIDTH) == pytest.approx(200.0)

    def test_range_and_antisymmetry(self):
        rng = np.random.default_rng(1)
        pts = rng.uniform(0.0, ARENA_WIDTH, size=(400, 2))
        for a, b in pts:
            d = toroidal_diff(a, b, ARENA_WIDTH)
            assert -ARENA_WIDTH / 2 <= d <= ARENA_WIDTH / 2
            assert d == -toroidal_diff(b, a, ARENA_WIDTH)

    def test_exact_half_keeps_sign(self):
        # Both ends of the closed range are reachable so the difference
        # stays antisymmetric at exactly half the arena
        half = ARENA_WIDTH / 2
        assert toroidal_diff(500.0, 100.0, ARENA_WIDTH) == half
        assert toroidal_diff(100.0, 500.0, ARENA_WIDTH) == -half

    def test_delta_uses_both_axes(self):
        dx, dy = toroidal_delta(5.0, 595.0, 795.0, 5.0)
        assert dx == pytest.approx(10.0)
        assert dy == pytest.approx(-10.0)


# =============================================================================
# CONSTRUCTION
# =============================================================================

class TestConstruction:

    def test_head_on_layout(self, head_on):
        a, b = head_on.ships
        assert (a.x, a.y, a.rotation) == (200.0, 300.0, 0.0)
        assert (b.x, b.y) == (600.0, 300.0)
        assert b.rotation == pytest.approx(math.pi)
        assert not head_on.match_over and head_on.winner is None

    def test_random_spawn_ranges(self):
        rng = np.random.default_rng(7)
        for _ in range(50):
            s = GameState.new_random(rng)
            for i, ship in enumerate(s.ships):
                assert ship.x == SPAWN_X[i]
                assert SPAWN_Y_RANGE[0] <= ship.y < SPAWN_Y_RANGE[1]
            assert abs(s.ships[0].rotation) <= SPAWN_JITTER
            assert abs(s.ships[1].rotation - math.pi) <= SPAWN_JITTER

    def test_random_spawn_is_seeded(self):
        s1 = GameState.new_random(np.random.default_rng(3))
        s2 = GameState.new_random(np.random.default_rng(3))
        assert s1.snapshot() == s2.snapshot()

    def test_exactly_two_ships(self):
        with pytest.raises(ValueError):
            GameState((Ship(0, 0, 0),))

    def test_actions_for_two_ships_required(self, head_on):
        with pytest.raises(ValueError):
            head_on.update(DT, [IDLE])
        with pytest.raises(ValueError):
            head_on.update(DT, [IDLE, [0.0, 0.0]])


# =============================================================================
# SHIP MOTION
# =============================================================================

class TestShipMotion:

    def test_turning(self, head_on):
        head_on.update(DT, [[0.0, 0.0, 1.0, 0.0], [0.0, 1.0, 0.0, 0.0]])
        assert head_on.ships[0].rotation == pytest.approx(5.0 * DT)
        assert head_on.ships[1].rotation == pytest.approx(math.pi - 5.0 * DT)

    def test_signals_are_clamped(self, head_on):
        head_on.update(DT, [[5.0, -3.0, 0.0, 0.0], IDLE])
        ref = GameState.new()
        ref.update(DT, [[1.0, 0.0, 0.0, 0.0], IDLE])
        assert head_on.ships[0].vx == ref.ships[0].vx
        assert head_on.ships[0].rotation == ref.ships[0].rotation

    def test_drag_is_frame_rate_independent(self):
        s1 = GameState((Ship(100.0, 100.0, 0.0), Ship(500.0, 500.0, 0.0)))
        s2 = GameState((Ship(100.0, 100.0, 0.0), Ship(500.0, 500.0, 0.0)))
        for s in (s1, s2):
            s.ships[0].vx = 100.0
        s1.update(DT, [IDLE, IDLE])
        s2.update(DT / 2, [IDLE, IDLE])
        s2.update(DT / 2, [IDLE, IDLE])
        assert s1.ships[0].vx == pytest.approx(100.0 * SHIP_DRAG)
        assert s2.ships[0].vx == pytest.approx(s1.ships[0].vx)

    def test_speed_cap(self):
        s = GameState((Ship(100.0, 100.0, 0.0), Ship(500.0, 500.0, 0.0)))
        s.ships[0].vx, s.ships[0].vy = 900.0, -400.0
        s.update(DT, [[1.0, 0.0, 0.0, 0.0], IDLE])
        assert s.ships[0].speed == pytest.approx(MAX_SHIP_SPEED)

    def test_speed_stays_capped_under_full_thrust(self, head_on):
        for _ in range(600):
            head_on.update(DT, [[1.0, 0.3, 0.0, 0.0], [1.0, 0.0, 0.0, 0.0]])
            for ship in head_on.ships:
                assert ship.speed <= MAX_SHIP_SPEED + 1e-9
            if head_on.match_over:
                break

    def test_position_wraps(self):
        s = GameState((Ship(799.0, 1.0, 0.0), Ship(400.0, 300.0, 0.0)))
        s.ships[0].vx, s.ships[0].vy = 120.0, -120.0
        s.update(DT, [IDLE, IDLE])
        assert 0.0 <= s.ships[0].x < 5.0
        assert ARENA_HEIGHT - 5.0 < s.ships[0].y < ARENA_HEIGHT


# =============================================================================
# FIRING
# =============================================================================

class TestFiring:

    def test_fire_spawns_projectile_at_nose(self, head_on):
        head_on.update(DT, [FIRE, IDLE])
        assert len(head_on.projectiles) == 1
        p = head_on.projectiles[0]
        assert p.owner == 0
        assert p.vx == pytest.approx(PROJECTILE_SPEED)
        assert p.vy == pytest.approx(0.0)
        # Spawned at the nose, then moved one tick
        assert p.x == pytest.approx(200.0 + SHIP_RADIUS + PROJECTILE_SPEED * DT)
        assert head_on.ships[0].shots_fired == 1
        assert head_on.ships[0].fire_cooldown == FIRE_COOLDOWN

    def test_projectile_inherits_ship_momentum(self):
        s = GameState((Ship(200.0, 300.0, 0.0), Ship(200.0, 100.0, 0.0)))
        s.ships[0].vy = 100.0
        s.update(DT, [FIRE, IDLE])
        assert s.projectiles[0].vy == pytest.approx(0.3 * 100.0 * SHIP_DRAG)

    def test_cooldown_blocks_next_shot(self, head_on):
        head_on.update(DT, [FIRE, IDLE])
        head_on.update(DT, [FIRE, IDLE])
        assert head_on.ships[0].shots_fired == 1

    def test_threshold_is_exclusive(self, head_on):
        head_on.update(DT, [[0.0, 0.0, 0.0, 0.5], IDLE])
        assert head_on.projectiles == []
        assert head_on.ships[0].shots_fired == 0

    def test_projectile_cap(self, offset_ships):
        peak = 0
        for _ in range(300):
            offset_ships.update(DT, [FIRE, IDLE])
            live = offset_ships.live_projectiles(0)
            assert live <= MAX_PROJECTILES_PER_SHIP
            peak = max(peak, live)
        assert peak == MAX_PROJECTILES_PER_SHIP
        assert not offset_ships.match_over

    def test_projectiles_expire(self, offset_ships):
        offset_ships.update(DT, [FIRE, IDLE])
        for _ in range(130):
            offset_ships.update(DT, [IDLE, IDLE])
        assert offset_ships.projectiles == []


# =============================================================================
# SHIP–SHIP COLLISIONS
# =============================================================================

class TestShipCollision:

    def test_head_on_bounce_swaps_velocities(self):
        s = GameState((Ship(100.0, 100.0, 0.0), Ship(110.0, 100.0, 0.0)))
        s.ships[0].vx, s.ships[1].vx = 50.0, -50.0
        s.update(DT, [IDLE, IDLE])
        a, b = s.ships
        assert a.vx == pytest.approx(-50.0 * SHIP_DRAG)
        assert b.vx == pytest.approx(50.0 * SHIP_DRAG)
        dx, dy = toroidal_delta(a.x, a.y, b.x, b.y)
        assert math.hypot(dx, dy) == pytest.approx(2 * SHIP_RADIUS)
        assert a.alive and b.alive

    def test_separation_across_seam(self):
        s = GameState((Ship(795.0, 300.0, 0.0), Ship(5.0, 300.0, 0.0)))
        s.update(DT, [IDLE, IDLE])
        a, b = s.ships
        assert a.x == pytest.approx(788.0)
        assert b.x == pytest.approx(12.0)
        assert a.vx == 0.0 and b.vx == 0.0

    def test_separating_ships_keep_velocity(self):
        s = GameState((Ship(100.0, 100.0, 0.0), Ship(110.0, 100.0, 0.0)))
        s.ships[0].vx, s.ships[1].vx = -30.0, 30.0
        s.update(DT, [IDLE, IDLE])
        assert s.ships[0].vx == pytest.approx(-30.0 * SHIP_DRAG)
        assert s.ships[1].vx == pytest.approx(30.0 * SHIP_DRAG)


# =============================================================================
# HITS AND MATCH END
# =============================================================================

class TestHitsAndTermination:

    def test_hit_kills_target_and_credits_shooter(self, head_on):
        head_on.projectiles.append(Projectile(600.0, 300.0, 0.0, 0.0, 1.0, 0))
        head_on.update(DT, [IDLE, IDLE])
        assert not head_on.ships[1].alive
        assert head_on.ships[0].hits_scored == 1
        assert head_on.projectiles == []
        assert head_on.match_over
        assert head_on.winner == 0

    def test_own_projectiles_are_harmless(self, head_on):
        head_on.projectiles.append(Projectile(200.0, 300.0, 0.0, 0.0, 1.0, 0))
        head_on.update(DT, [IDLE, IDLE])
        assert head_on.ships[0].alive
        assert len(head_on.projectiles) == 1

    def test_two_projectiles_one_target(self, head_on):
        head_on.projectiles.append(Projectile(600.0, 300.0, 0.0, 0.0, 1.0, 0))
        head_on.projectiles.append(Projectile(601.0, 300.0, 0.0, 0.0, 1.0, 0))
        head_on.update(DT, [IDLE, IDLE])
        assert head_on.ships[0].hits_scored == 1
        assert len(head_on.projectiles) == 1

    def test_double_kill_is_a_draw(self, head_on):
        head_on.projectiles.append(Projectile(600.0, 300.0, 0.0, 0.0, 1.0, 0))
        head_on.projectiles.append(Projectile(200.0, 300.0, 0.0, 0.0, 1.0, 1))
        head_on.update(DT, [IDLE, IDLE])
        assert head_on.match_over
        assert head_on.winner is None
        assert head_on.ships[0].hits_scored == 1
        assert head_on.ships[1].hits_scored == 1

    def test_timeout_is_a_draw(self):
        s = GameState.new(match_duration=0.05)
        for _ in range(4):
            s.update(DT, [IDLE, IDLE])
        assert s.match_over
        assert s.winner is None

    def test_over_is_terminal(self, head_on):
        head_on.projectiles.append(Projectile(600.0, 300.0, 0.0, 0.0, 1.0, 0))
        head_on.update(DT, [IDLE, IDLE])
        before = head_on.ships[0].x, head_on.ships[0].vx
        t = head_on.time
        head_on.update(DT, [[1.0, 0.0, 0.0, 1.0], IDLE])
        assert (head_on.ships[0].x, head_on.ships[0].vx) == before
        assert head_on.time == pytest.approx(t + DT)
        assert head_on.projectiles == []
        assert head_on.match_over and head_on.winner == 0

    def test_copy_is_independent(self, head_on):
        clone = head_on.copy()
        head_on.update(DT, [[1.0, 0.0, 0.0, 1.0], IDLE])
        assert clone.time == 0.0
        assert clone.projectiles == []
        assert clone.ships[0].vx == 0.0
