"""
Headless match runner for SpaceDuel.

run_match plays one duel between two genomes at a fixed 1/60 s step
until one ship dies or time runs out, then scores both ships:

  win bonus, death penalty, hits, accuracy, shots fired (capped),
  mean proximity to the opponent, and time survived.

Pure turtling and pure bullet spray both score poorly under this mix.
"""

import math
from dataclasses import dataclass, field
from typing import Optional

from game import GameState, toroidal_delta
from config import (
    SIM_DT, MATCH_DURATION,
    FITNESS_WIN, FITNESS_DEATH, FITNESS_PER_HIT, FITNESS_ACCURACY,
    FITNESS_SHOT_CAP, FITNESS_PER_SHOT, FITNESS_PROXIMITY,
    FITNESS_SURVIVE_ALIVE, FITNESS_SURVIVE_DEAD, PROXIMITY_SCALE,
)


@dataclass
class MatchResult:
    """Fitness earned by ship 0 and ship 1 in one duel."""
    fitness: tuple
    winner:  Optional[int] = None
    steps:   int = 0
    time:    float = 0.0


@dataclass
class Replay:
    """A played-out match with per-tick snapshots, for showcase use."""
    result: MatchResult
    frames: list = field(default_factory=list)
    final_state: Optional[GameState] = None

    @property
    def winner_label(self) -> str:
        return {0: "GREEN WINS!", 1: "BLUE WINS!"}.get(self.result.winner, "DRAW!")


def sim_steps(match_duration: float = MATCH_DURATION, dt: float = SIM_DT) -> int:
    return int(round(match_duration / dt))


def proximity(state: GameState) -> float:
    """1 when the ships touch centres, 0 at PROXIMITY_SCALE or further."""
    a, b = state.ships
    dx, dy = toroidal_delta(a.x, a.y, b.x, b.y)
    return 1.0 - min(1.0, math.sqrt(dx * dx + dy * dy) / PROXIMITY_SCALE)


def compute_fitness(state: GameState, avg_proximity: float) -> tuple:
    """Score both ships from the final state and the match-average proximity."""
    elapsed = min(1.0, state.time / state.match_duration)
    fitness = []
    for i in range(2):
        ship = state.ships[i]
        opp  = state.ships[1 - i]
        score = 0.0

        if ship.alive and not opp.alive:
            score += FITNESS_WIN
        if not ship.alive:
            score += FITNESS_DEATH

        score += ship.hits_scored * FITNESS_PER_HIT
        if ship.shots_fired > 0:
            score += (ship.hits_scored / ship.shots_fired) * FITNESS_ACCURACY
        # Engagement: some reward for pulling the trigger at all
        score += min(ship.shots_fired, FITNESS_SHOT_CAP) * FITNESS_PER_SHOT

        score += avg_proximity * FITNESS_PROXIMITY

        if ship.alive:
            score += elapsed * FITNESS_SURVIVE_ALIVE
        else:
            score += elapsed * FITNESS_SURVIVE_DEAD
        fitness.append(score)
    return tuple(fitness)


def _play(g1, g2, state: GameState, max_steps: int, on_tick=None) -> MatchResult:
    genomes = (g1, g2)
    prox_sum = 0.0
    steps = 0
    for _ in range(max_steps):
        if state.match_over:
            break
        actions = (genomes[0].evaluate(genomes[0].get_inputs(state, 0)),
                   genomes[1].evaluate(genomes[1].get_inputs(state, 1)))
        state.update(SIM_DT, actions)
        prox_sum += proximity(state)
        steps += 1
        if on_tick is not None:
            on_tick(state)

    avg_prox = prox_sum / steps if steps else 0.0
    return MatchResult(fitness=compute_fitness(state, avg_prox),
                       winner=state.winner, steps=steps, time=state.time)


def run_match(g1, g2, rng, match_duration: float = MATCH_DURATION) -> MatchResult:
    """Play a full randomised duel between g1 (ship 0) and g2 (ship 1)."""
    state = GameState.new_random(rng, match_duration)
    return _play(g1, g2, state, sim_steps(match_duration))


def replay_match(g1, g2, rng=None, match_duration: float = MATCH_DURATION,
                 state: GameState = None, every: int = 1) -> Replay:
    """
    Like run_match but records a snapshot every `every` ticks (plus the
    spawn and the final tick). Pass `state` to replay a fixed layout.
    """
    if state is None:
        state = GameState.new_random(rng, match_duration)
    frames = [state.snapshot()]
    tick = [0]

    def _record(s):
        tick[0] += 1
        if tick[0] % every == 0 or s.match_over:
            frames.append(s.snapshot())

    result = _play(g1, g2, state, sim_steps(state.match_duration), _record)
    if frames[-1]["time"] != state.time:
        frames.append(state.snapshot())
    return Replay(result=result, frames=frames, final_state=state)
