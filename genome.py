"""
Genome and sensor encoding for SpaceDuel.

A genome is the flat weight vector of a ship's NeuralNetwork plus the
fitness it earned in the current evaluation round. Heredity is
positional: crossover and mutation act on weight indices, and the
network reads the same indices (see neural_network.py for the layout).

Sensors are built from the GameState as seen by one ship. Every angle is
given to the network as a (sin, cos) pair so that headings either side
of ±π look alike.
"""

import math
import numpy as np

from game import toroidal_delta
from neural_network import NeuralNetwork
from config import (
    GENOME_SIZE, NUM_INPUTS, INIT_WEIGHT_RANGE, WEIGHT_CLAMP,
    SENSOR_DIST_SCALE, SENSOR_SPEED_SCALE,
    FIRE_COOLDOWN, MAX_PROJECTILES_PER_SHIP,
)

# ──────────────────────────────────────────────────────────────────────────────
# Sensors
# ──────────────────────────────────────────────────────────────────────────────

def nearest_enemy_projectile(state, ship_idx: int) -> tuple:
    """
    (normalised distance, relative bearing) of the closest projectile not
    fired by `ship_idx`. Returns (1.0, 0.0) when there is none.
    """
    ship = state.ships[ship_idx]
    min_dist = math.inf
    bearing  = 0.0
    for p in state.projectiles:
        if p.owner == ship_idx:
            continue
        dx, dy = toroidal_delta(p.x, p.y, ship.x, ship.y)
        dist = math.sqrt(dx * dx + dy * dy)
        if dist < min_dist:
            min_dist = dist
            bearing  = math.atan2(dy, dx) - ship.rotation
    if min_dist == math.inf:
        return 1.0, 0.0
    return min(1.0, min_dist / SENSOR_DIST_SCALE), bearing


def get_inputs(state, ship_idx: int) -> np.ndarray:
    """Compute all sensor values for ship `ship_idx` (see SENSOR_LABELS)."""
    if ship_idx not in (0, 1):
        raise ValueError(f"ship index must be 0 or 1, got {ship_idx}")
    ship = state.ships[ship_idx]
    opp  = state.ships[1 - ship_idx]

    dx, dy = toroidal_delta(opp.x, opp.y, ship.x, ship.y)
    dist = max(1.0, math.sqrt(dx * dx + dy * dy))

    # Bearing to the opponent, relative to our nose
    to_opp = math.atan2(dy, dx) - ship.rotation
    # Opponent's heading relative to the line from them back to us:
    # 0 means they are pointing straight at us
    opp_facing = opp.rotation - math.atan2(-dy, -dx)

    own_speed = ship.speed
    opp_speed = opp.speed

    bullet_dist, bullet_bearing = nearest_enemy_projectile(state, ship_idx)

    # Direction of travel relative to heading (0 when stationary)
    drift = math.atan2(ship.vy, ship.vx) - ship.rotation if own_speed > 1e-6 else 0.0

    inputs = np.empty(NUM_INPUTS, dtype=np.float64)
    inputs[0]  = min(1.0, dist / SENSOR_DIST_SCALE)
    inputs[1]  = math.sin(to_opp)
    inputs[2]  = math.cos(to_opp)
    inputs[3]  = math.sin(opp_facing)
    inputs[4]  = math.cos(opp_facing)
    inputs[5]  = min(1.0, own_speed / SENSOR_SPEED_SCALE)
    inputs[6]  = min(1.0, opp_speed / SENSOR_SPEED_SCALE)
    inputs[7]  = bullet_dist
    inputs[8]  = math.sin(bullet_bearing)
    inputs[9]  = math.cos(bullet_bearing)
    inputs[10] = math.sin(drift)
    inputs[11] = math.cos(drift)
    inputs[12] = min(1.0, ship.fire_cooldown / FIRE_COOLDOWN)
    inputs[13] = state.live_projectiles(ship_idx) / MAX_PROJECTILES_PER_SHIP
    return inputs


# ──────────────────────────────────────────────────────────────────────────────
# Genome
# ──────────────────────────────────────────────────────────────────────────────

class Genome:
    """
    Evolvable controller: a fixed-length weight vector and a fitness score.
    The weight vector is never resized after creation.
    """
    __slots__ = ("weights", "fitness", "_brain")

    def __init__(self, weights, fitness: float = 0.0):
        weights = np.array(weights, dtype=np.float64)
        if weights.shape != (GENOME_SIZE,):
            raise ValueError(
                f"genome must have {GENOME_SIZE} weights, got shape {weights.shape}")
        self.weights = weights
        self.fitness = fitness
        self._brain  = None

    @classmethod
    def random(cls, rng) -> "Genome":
        return cls(rng.uniform(-INIT_WEIGHT_RANGE, INIT_WEIGHT_RANGE, size=GENOME_SIZE))

    def clone(self) -> "Genome":
        return Genome(self.weights, self.fitness)

    @property
    def brain(self) -> NeuralNetwork:
        if self._brain is None:
            self._brain = NeuralNetwork(self.weights)
        return self._brain

    # ──────────────────────────────────────────────────────────────────────────

    def evaluate(self, inputs) -> np.ndarray:
        """Forward pass → [thrust, turn_left, turn_right, fire], each 0..1."""
        return self.brain.forward(inputs)

    get_inputs = staticmethod(get_inputs)

    # ──────────────────────────────────────────────────────────────────────────
    # Variation operators
    # ──────────────────────────────────────────────────────────────────────────

    @staticmethod
    def crossover(a: "Genome", b: "Genome", rng) -> "Genome":
        """
        Single-point crossover: pick a cut in [0, GENOME_SIZE), take
        weights [0:cut] from A and [cut:] from B. Child fitness is 0.
        """
        if len(a.weights) != len(b.weights):
            raise ValueError(
                f"parent length mismatch: {len(a.weights)} vs {len(b.weights)}")
        cut = int(rng.integers(0, len(a.weights)))
        return Genome(np.concatenate((a.weights[:cut], b.weights[cut:])))

    def mutate(self, rate: float, strength: float, rng):
        """
        Each weight, with probability `rate`, gets a uniform nudge in
        [-strength, strength] and is then clamped to ±WEIGHT_CLAMP.
        """
        n = len(self.weights)
        if n != GENOME_SIZE:
            raise ValueError(f"genome resized to {n} weights")
        mask   = rng.random(n) < rate
        deltas = rng.uniform(-strength, strength, size=n)
        if mask.any():
            self.weights[mask] = np.clip(self.weights[mask] + deltas[mask],
                                         -WEIGHT_CLAMP, WEIGHT_CLAMP)
            self._brain = None

    def __repr__(self):
        return f"Genome(fitness={self.fitness:.1f}, |w|={np.abs(self.weights).mean():.3f})"


# ──────────────────────────────────────────────────────────────────────────────
# Population-level helpers
# ──────────────────────────────────────────────────────────────────────────────

def genome_distance(a: Genome, b: Genome) -> float:
    """
    Genetic distance (0..1): mean absolute weight difference, scaled by
    the widest possible gap between two clamped weights.
    """
    if len(a.weights) != len(b.weights):
        raise ValueError(
            f"genome length mismatch: {len(a.weights)} vs {len(b.weights)}")
    return float(np.mean(np.abs(a.weights - b.weights)) / (2.0 * WEIGHT_CLAMP))
