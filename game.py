"""
Game state for SpaceDuel.

Two ships share a toroidal arena: leaving one edge re-enters from the
opposite one. Every call to GameState.update advances the match by one
fixed timestep:

  1. Integrate each alive ship (turn, thrust, drag, speed cap, wrap)
  2. Spawn projectiles for ships that fire
  3. Resolve ship–ship bumps
  4. Integrate projectiles and expire old ones
  5. Resolve projectile hits
  6. Decide whether the match is over
"""

import math

from config import (
    ARENA_WIDTH, ARENA_HEIGHT,
    SHIP_ROTATION_SPEED, SHIP_THRUST, SHIP_DRAG, MAX_SHIP_SPEED, SHIP_RADIUS,
    PROJECTILE_SPEED, PROJECTILE_LIFETIME, PROJECTILE_RADIUS,
    PROJECTILE_INHERIT, FIRE_COOLDOWN, FIRE_THRESHOLD,
    MAX_PROJECTILES_PER_SHIP, MATCH_DURATION,
    SPAWN_X, SPAWN_Y_RANGE, SPAWN_HEADING, SPAWN_JITTER,
)

TIME_EPS = 1e-9


# ──────────────────────────────────────────────────────────────────────────────
# Toroidal geometry
# ──────────────────────────────────────────────────────────────────────────────

def wrap(val: float, max_val: float) -> float:
    """Wrap a coordinate into [0, max_val)."""
    # Python's % already takes the sign of the divisor
    w = val % max_val
    # -1e-20 % 800 rounds up to exactly 800.0
    return 0.0 if w >= max_val else w


def toroidal_diff(a: float, b: float, max_val: float) -> float:
    """Shortest signed offset a − b on a ring of circumference max_val."""
    d = a - b
    half = max_val / 2.0
    if d > half:
        return d - max_val
    if d < -half:
        return d + max_val
    return d


def toroidal_delta(x1: float, y1: float, x2: float, y2: float) -> tuple:
    """(dx, dy) from point 2 to point 1 across the arena seams."""
    return (toroidal_diff(x1, x2, ARENA_WIDTH),
            toroidal_diff(y1, y2, ARENA_HEIGHT))


def _cap_speed(ship):
    speed = ship.speed
    if speed > MAX_SHIP_SPEED:
        scale = MAX_SHIP_SPEED / speed
        ship.vx *= scale
        ship.vy *= scale


# ──────────────────────────────────────────────────────────────────────────────
# Entities
# ──────────────────────────────────────────────────────────────────────────────

class Ship:
    """
    A single duelling ship. Counters only ever increase within a match.
    """
    __slots__ = (
        "x", "y", "vx", "vy", "rotation", "alive",
        "fire_cooldown", "shots_fired", "hits_scored",
    )

    def __init__(self, x: float, y: float, rotation: float):
        self.x = x
        self.y = y
        self.vx = 0.0
        self.vy = 0.0
        self.rotation      = rotation      # heading, radians
        self.alive         = True
        self.fire_cooldown = 0.0
        self.shots_fired   = 0
        self.hits_scored   = 0

    @property
    def speed(self) -> float:
        return math.sqrt(self.vx * self.vx + self.vy * self.vy)

    def copy(self) -> "Ship":
        other = Ship(self.x, self.y, self.rotation)
        other.vx, other.vy  = self.vx, self.vy
        other.alive         = self.alive
        other.fire_cooldown = self.fire_cooldown
        other.shots_fired   = self.shots_fired
        other.hits_scored   = self.hits_scored
        return other

    def __repr__(self):
        return (f"Ship(x={self.x:.1f}, y={self.y:.1f}, rot={self.rotation:.2f}, "
                f"alive={self.alive})")


class Projectile:
    __slots__ = ("x", "y", "vx", "vy", "lifetime", "owner")

    def __init__(self, x: float, y: float, vx: float, vy: float,
                 lifetime: float, owner: int):
        self.x = x
        self.y = y
        self.vx = vx
        self.vy = vy
        self.lifetime = lifetime
        self.owner    = owner     # 0 or 1

    def copy(self) -> "Projectile":
        return Projectile(self.x, self.y, self.vx, self.vy,
                          self.lifetime, self.owner)


# ──────────────────────────────────────────────────────────────────────────────
# Game state
# ──────────────────────────────────────────────────────────────────────────────

class GameState:
    """
    Full state of one duel. `update` is the only mutator; everything else
    is for reading (sensors, rendering, scoring).

    Once `match_over` is set the match never resumes: further updates only
    advance `time`.
    """

    def __init__(self, ships: tuple, match_duration: float = MATCH_DURATION):
        if len(ships) != 2:
            raise ValueError(f"a duel needs exactly 2 ships, got {len(ships)}")
        self.ships          = (ships[0], ships[1])
        self.projectiles    = []
        self.time           = 0.0
        self.match_over     = False
        self.winner         = None      # 0, 1 or None (draw / still running)
        self.match_duration = match_duration

    # ──────────────────────────────────────────────────────────────────────────

    @classmethod
    def new(cls, match_duration: float = MATCH_DURATION) -> "GameState":
        """Fixed head-on layout: both ships on the centre line facing each other."""
        mid_y = ARENA_HEIGHT / 2.0
        return cls((Ship(SPAWN_X[0], mid_y, SPAWN_HEADING[0]),
                    Ship(SPAWN_X[1], mid_y, SPAWN_HEADING[1])),
                   match_duration)

    @classmethod
    def new_random(cls, rng, match_duration: float = MATCH_DURATION) -> "GameState":
        """Spawn on opposite sides with random heights and jittered headings."""
        lo, hi = SPAWN_Y_RANGE
        y1 = float(rng.uniform(lo, hi))
        y2 = float(rng.uniform(lo, hi))
        r1 = SPAWN_HEADING[0] + float(rng.uniform(-SPAWN_JITTER, SPAWN_JITTER))
        r2 = SPAWN_HEADING[1] + float(rng.uniform(-SPAWN_JITTER, SPAWN_JITTER))
        return cls((Ship(SPAWN_X[0], y1, r1), Ship(SPAWN_X[1], y2, r2)),
                   match_duration)

    # ──────────────────────────────────────────────────────────────────────────
    # Stepping
    # ──────────────────────────────────────────────────────────────────────────

    def update(self, dt: float, actions):
        """
        Advance the match by `dt` seconds.

        Args:
            dt:      timestep in seconds
            actions: two sequences [thrust, turn_left, turn_right, fire],
                     one per ship, indexed like `ships`
        """
        if len(actions) != 2:
            raise ValueError(f"expected actions for 2 ships, got {len(actions)}")

        self.time += dt
        if self.match_over:
            return

        for i in range(2):
            if self.ships[i].alive:
                self._step_ship(i, dt, actions[i])

        self._collide_ships()
        self._step_projectiles(dt)
        self._resolve_hits()
        self._check_end()

    def _step_ship(self, i: int, dt: float, action):
        if len(action) != 4:
            raise ValueError(f"ship {i}: expected 4 control signals, got {len(action)}")
        ship = self.ships[i]
        thrust     = min(1.0, max(0.0, float(action[0])))
        turn_left  = min(1.0, max(0.0, float(action[1])))
        turn_right = min(1.0, max(0.0, float(action[2])))
        fire       = float(action[3]) > FIRE_THRESHOLD

        ship.rotation += (turn_right - turn_left) * SHIP_ROTATION_SPEED * dt

        cos = math.cos(ship.rotation)
        sin = math.sin(ship.rotation)
        ship.vx += cos * thrust * SHIP_THRUST * dt
        ship.vy += sin * thrust * SHIP_THRUST * dt

        # Drag is defined per 1/60 s tick
        drag = SHIP_DRAG ** (dt * 60.0)
        ship.vx *= drag
        ship.vy *= drag

        _cap_speed(ship)

        ship.x = wrap(ship.x + ship.vx * dt, ARENA_WIDTH)
        ship.y = wrap(ship.y + ship.vy * dt, ARENA_HEIGHT)

        ship.fire_cooldown = max(0.0, ship.fire_cooldown - dt)

        if fire and ship.fire_cooldown <= 0.0 \
                and self.live_projectiles(i) < MAX_PROJECTILES_PER_SHIP:
            self.projectiles.append(Projectile(
                wrap(ship.x + cos * SHIP_RADIUS, ARENA_WIDTH),
                wrap(ship.y + sin * SHIP_RADIUS, ARENA_HEIGHT),
                cos * PROJECTILE_SPEED + ship.vx * PROJECTILE_INHERIT,
                sin * PROJECTILE_SPEED + ship.vy * PROJECTILE_INHERIT,
                PROJECTILE_LIFETIME,
                i,
            ))
            ship.fire_cooldown = FIRE_COOLDOWN
            ship.shots_fired  += 1

    def _collide_ships(self):
        """Equal-mass frictionless bounce between overlapping ships."""
        a, b = self.ships
        if not (a.alive and b.alive):
            return
        dx, dy = toroidal_delta(a.x, a.y, b.x, b.y)
        dist_sq  = dx * dx + dy * dy
        min_dist = SHIP_RADIUS * 2.0
        if dist_sq >= min_dist * min_dist or dist_sq <= 1e-3:
            return

        dist = math.sqrt(dist_sq)
        nx, ny = dx / dist, dy / dist

        half_overlap = (min_dist - dist) * 0.5
        a.x = wrap(a.x + nx * half_overlap, ARENA_WIDTH)
        a.y = wrap(a.y + ny * half_overlap, ARENA_HEIGHT)
        b.x = wrap(b.x - nx * half_overlap, ARENA_WIDTH)
        b.y = wrap(b.y - ny * half_overlap, ARENA_HEIGHT)

        rel_vn = (a.vx - b.vx) * nx + (a.vy - b.vy) * ny
        if rel_vn < 0.0:    # closing
            a.vx -= rel_vn * nx
            a.vy -= rel_vn * ny
            b.vx += rel_vn * nx
            b.vy += rel_vn * ny
            _cap_speed(a)
            _cap_speed(b)

    def _step_projectiles(self, dt: float):
        for p in self.projectiles:
            p.x = wrap(p.x + p.vx * dt, ARENA_WIDTH)
            p.y = wrap(p.y + p.vy * dt, ARENA_HEIGHT)
            p.lifetime -= dt
        self.projectiles = [p for p in self.projectiles if p.lifetime > 0.0]

    def _resolve_hits(self):
        """Kill ships struck by an enemy projectile; spent projectiles vanish."""
        hit_radius_sq = (SHIP_RADIUS + PROJECTILE_RADIUS) ** 2
        survivors = []
        for p in self.projectiles:
            target = self.ships[1 - p.owner]
            if target.alive:
                dx, dy = toroidal_delta(p.x, p.y, target.x, target.y)
                if dx * dx + dy * dy < hit_radius_sq:
                    target.alive = False
                    self.ships[p.owner].hits_scored += 1
                    continue
            survivors.append(p)
        self.projectiles = survivors

    def _check_end(self):
        alive = [s.alive for s in self.ships]
        # Summed 1/60 steps can land a hair short of the duration
        if sum(alive) <= 1 or self.time >= self.match_duration - TIME_EPS:
            self.match_over = True
            if alive[0] and not alive[1]:
                self.winner = 0
            elif alive[1] and not alive[0]:
                self.winner = 1

    # ──────────────────────────────────────────────────────────────────────────
    # Read-only helpers
    # ──────────────────────────────────────────────────────────────────────────

    def live_projectiles(self, owner: int) -> int:
        """Number of in-flight projectiles fired by `owner`."""
        return sum(1 for p in self.projectiles if p.owner == owner)

    def copy(self) -> "GameState":
        other = GameState((self.ships[0].copy(), self.ships[1].copy()),
                          self.match_duration)
        other.projectiles = [p.copy() for p in self.projectiles]
        other.time        = self.time
        other.match_over  = self.match_over
        other.winner      = self.winner
        return other

    def snapshot(self) -> dict:
        """Plain-data view of the state, for drawing or streaming."""
        return {
            "time":  self.time,
            "over":  self.match_over,
            "winner": self.winner,
            "ships": [
                {"x": s.x, "y": s.y, "vx": s.vx, "vy": s.vy,
                 "rotation": s.rotation, "alive": s.alive,
                 "shots": s.shots_fired, "hits": s.hits_scored}
                for s in self.ships
            ],
            "projectiles": [
                {"x": p.x, "y": p.y, "owner": p.owner}
                for p in self.projectiles
            ],
        }
