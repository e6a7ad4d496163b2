"""
Population and generational GA for SpaceDuel.

One generation:
  1. evaluate – every genome starts MATCHES_PER_EVAL duels against random
     other genomes; both sides bank the fitness they earn
  2. evolve   – elites carried over unchanged, the rest bred by tournament
     selection + single-point crossover + mutation

evaluate draws the whole match schedule (pairings and a seed per match)
from the caller's generator before any match is played. Each match then
runs on its own generator, so sequential and process-pool evaluation give
identical fitness for the same seed.
"""

from concurrent.futures import ProcessPoolExecutor

import numpy as np

from genome import Genome, genome_distance
from match import run_match
from config import (
    POPULATION_SIZE, MATCHES_PER_EVAL, TOURNAMENT_SIZE, ELITE_COUNT,
    MUTATION_RATE, MUTATION_STRENGTH, CROSSOVER_RATE, MATCH_DURATION,
    EVAL_WORKERS,
)

SEED_BOUND = 2**63 - 1


# ──────────────────────────────────────────────────────────────────────────────
# Helpers
# ──────────────────────────────────────────────────────────────────────────────

def tournament_select(genomes: list, rng, k: int = TOURNAMENT_SIZE) -> Genome:
    """Draw k genomes uniformly with replacement and return the fittest."""
    if not genomes:
        raise ValueError("cannot select from an empty population")
    if k < 1:
        raise ValueError(f"tournament size must be >= 1, got {k}")
    n = len(genomes)
    best = genomes[int(rng.integers(0, n))]
    for _ in range(1, k):
        candidate = genomes[int(rng.integers(0, n))]
        if candidate.fitness > best.fitness:
            best = candidate
    return best


def pick_opponent(i: int, n: int, rng) -> int:
    """Uniform index in [0, n) \\ {i}: draw from n-1 slots and skip over i."""
    j = int(rng.integers(0, n - 1))
    return j + 1 if j >= i else j


def _play_scheduled(args):
    """Worker entry point: (weights_a, weights_b, seed, duration) → fitness pair."""
    w1, w2, seed, duration = args
    result = run_match(Genome(w1), Genome(w2), np.random.default_rng(seed), duration)
    return result.fitness


# ──────────────────────────────────────────────────────────────────────────────
# Population
# ──────────────────────────────────────────────────────────────────────────────

class Population:
    """
    Fixed-size set of genomes. The size never changes across generations.
    Callers read fields but only change them through evaluate / evolve.
    """

    def __init__(
        self,
        rng,
        size:              int   = POPULATION_SIZE,
        matches_per_eval:  int   = MATCHES_PER_EVAL,
        tournament_size:   int   = TOURNAMENT_SIZE,
        elite_count:       int   = ELITE_COUNT,
        mutation_rate:     float = MUTATION_RATE,
        mutation_strength: float = MUTATION_STRENGTH,
        crossover_rate:    float = CROSSOVER_RATE,
        match_duration:    float = MATCH_DURATION,
        workers:           int   = EVAL_WORKERS,
        genomes:           list  = None,
    ):
        if size < 2:
            raise ValueError(f"population needs at least 2 genomes, got {size}")
        if not 0 <= elite_count <= size:
            raise ValueError(f"elite count {elite_count} outside [0, {size}]")
        if tournament_size < 1:
            raise ValueError(f"tournament size must be >= 1, got {tournament_size}")

        self.size              = size
        self.matches_per_eval  = matches_per_eval
        self.tournament_size   = tournament_size
        self.elite_count       = elite_count
        self.mutation_rate     = mutation_rate
        self.mutation_strength = mutation_strength
        self.crossover_rate    = crossover_rate
        self.match_duration    = match_duration
        self.workers           = workers

        if genomes is None:
            genomes = [Genome.random(rng) for _ in range(size)]
        elif len(genomes) != size:
            raise ValueError(f"got {len(genomes)} genomes for a population of {size}")
        self.genomes      = list(genomes)
        self.generation   = 0
        self.best_fitness = 0.0

    # ──────────────────────────────────────────────────────────────────────────
    # Evaluation
    # ──────────────────────────────────────────────────────────────────────────

    def schedule(self, rng) -> list:
        """Draw (i, j, seed) for every match of one evaluation round."""
        n = len(self.genomes)
        return [
            (i, pick_opponent(i, n, rng), int(rng.integers(0, SEED_BOUND)))
            for i in range(n)
            for _ in range(self.matches_per_eval)
        ]

    def evaluate(self, rng):
        """Reset fitness, play the round, and accumulate both sides' scores."""
        for g in self.genomes:
            g.fitness = 0.0

        fixtures = self.schedule(rng)
        if self.workers > 1:
            work = [(self.genomes[i].weights, self.genomes[j].weights,
                     seed, self.match_duration) for i, j, seed in fixtures]
            with ProcessPoolExecutor(max_workers=self.workers) as pool:
                results = list(pool.map(_play_scheduled, work,
                                        chunksize=max(1, len(work) // (4 * self.workers))))
        else:
            results = [
                run_match(self.genomes[i], self.genomes[j],
                          np.random.default_rng(seed), self.match_duration).fitness
                for i, j, seed in fixtures
            ]

        # Fold in schedule order so the float sums don't depend on workers
        for (i, j, _), (f0, f1) in zip(fixtures, results):
            self.genomes[i].fitness += f0
            self.genomes[j].fitness += f1

        self.best_fitness = max(g.fitness for g in self.genomes)

    # ──────────────────────────────────────────────────────────────────────────
    # Reproduction
    # ──────────────────────────────────────────────────────────────────────────

    def evolve(self, rng):
        """Replace the genomes with the next generation."""
        ranked = self.ranked()
        next_gen = []

        for elite in ranked[:self.elite_count]:
            child = elite.clone()
            child.fitness = 0.0
            next_gen.append(child)

        while len(next_gen) < self.size:
            parent1 = tournament_select(ranked, rng, self.tournament_size)
            parent2 = tournament_select(ranked, rng, self.tournament_size)
            if rng.random() < self.crossover_rate:
                child = Genome.crossover(parent1, parent2, rng)
            else:
                child = parent1.clone()
            child.fitness = 0.0
            child.mutate(self.mutation_rate, self.mutation_strength, rng)
            next_gen.append(child)

        self.genomes = next_gen
        self.generation += 1

    # ──────────────────────────────────────────────────────────────────────────
    # Queries
    # ──────────────────────────────────────────────────────────────────────────

    def ranked(self) -> list:
        """Genomes sorted by fitness, best first (stable for ties)."""
        return sorted(self.genomes, key=lambda g: g.fitness, reverse=True)

    def get_top_two(self) -> tuple:
        """Clones of the two fittest genomes of the current round."""
        ranked = self.ranked()
        return ranked[0].clone(), ranked[1].clone()

    def stats(self, rng=None, sample: int = 30) -> dict:
        fits = np.array([g.fitness for g in self.genomes])
        return {
            "generation":   self.generation,
            "population":   len(self.genomes),
            "best_fitness": float(fits.max()),
            "mean_fitness": float(fits.mean()),
            "worst_fitness": float(fits.min()),
            "diversity":    self.diversity(rng, sample),
        }

    def diversity(self, rng=None, sample: int = 30) -> float:
        """
        Average pairwise genome distance over a sample (0 = clones).
        Uses the first `sample` genomes when no generator is given.
        """
        n = len(self.genomes)
        if n < 2:
            return 0.0
        sample_size = min(sample, n)
        if rng is None:
            idx = range(sample_size)
        else:
            idx = rng.choice(n, sample_size, replace=False)
        sampled = [self.genomes[i] for i in idx]
        total, count = 0.0, 0
        for a in range(len(sampled)):
            for b in range(a + 1, len(sampled)):
                total += genome_distance(sampled[a], sampled[b])
                count += 1
        return total / count if count else 0.0
