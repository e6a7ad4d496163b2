"""
Simulation Engine for SpaceDuel.

Orchestrates the full evolutionary loop:
  for each generation:
    1. Evaluate the population (round-robin-ish random duels)
    2. Take the two fittest genomes as this generation's showcase pair
    3. Evolve → next population
    4. Publish (showcase pair, stats) and log

Consumers (the CLI, the server thread) only ever see a Generation after
both evaluate and evolve have finished.
"""

import time
from dataclasses import dataclass

import numpy as np

from evolution import Population
from match import replay_match
from config import (
    POPULATION_SIZE, MATCHES_PER_EVAL, TOURNAMENT_SIZE, ELITE_COUNT,
    MUTATION_RATE, MUTATION_STRENGTH, CROSSOVER_RATE,
    MAX_GENERATIONS, MATCH_DURATION, EVAL_WORKERS, PRINT_INTERVAL,
)


@dataclass(frozen=True)
class Generation:
    """Everything published at the end of one evaluate + evolve cycle."""
    index:    int      # generation that was just scored
    stats:    dict
    showcase: tuple    # clones of the two fittest genomes of that round


class Simulation:
    """
    Main simulation controller.
    """

    def __init__(
        self,
        population:        int   = POPULATION_SIZE,
        max_generations:   int   = MAX_GENERATIONS,
        matches_per_eval:  int   = MATCHES_PER_EVAL,
        tournament_size:   int   = TOURNAMENT_SIZE,
        elite_count:       int   = ELITE_COUNT,
        mutation_rate:     float = MUTATION_RATE,
        mutation_strength: float = MUTATION_STRENGTH,
        crossover_rate:    float = CROSSOVER_RATE,
        match_duration:    float = MATCH_DURATION,
        workers:           int   = EVAL_WORKERS,
        seed:              int   = None,
        verbose:           bool  = True,
        on_gen_callback    = None,    # called with each published Generation
    ):
        self.max_generations = max_generations
        self.match_duration  = match_duration
        self.verbose         = verbose
        self.on_gen_callback = on_gen_callback
        self.rng = np.random.default_rng(seed)

        self.population = Population(
            self.rng,
            size              = population,
            matches_per_eval  = matches_per_eval,
            tournament_size   = tournament_size,
            elite_count       = elite_count,
            mutation_rate     = mutation_rate,
            mutation_strength = mutation_strength,
            crossover_rate    = crossover_rate,
            match_duration    = match_duration,
            workers           = workers,
        )

        # History
        self.stats  = []          # list of dicts, one per generation
        self.latest = None        # last published Generation

    # ──────────────────────────────────────────────────────────────────────────
    # Public API
    # ──────────────────────────────────────────────────────────────────────────

    def run(self, stop_event=None):
        """Run up to max_generations cycles; stop early if stop_event is set."""
        while self.population.generation < self.max_generations:
            if stop_event is not None and stop_event.is_set():
                break
            self.step()
        if self.verbose:
            print("\n=== Simulation complete ===")

    def step(self) -> Generation:
        """One full evaluate + evolve cycle."""
        pop = self.population
        t0 = time.time()

        pop.evaluate(self.rng)
        stats = pop.stats()
        showcase = pop.get_top_two()
        pop.evolve(self.rng)

        stats["elapsed_s"] = round(time.time() - t0, 3)
        self.stats.append(stats)

        gen = Generation(index=stats["generation"], stats=stats, showcase=showcase)
        self.latest = gen

        if self.verbose:
            self._print_stats(gen)
        if self.on_gen_callback:
            self.on_gen_callback(gen)
        return gen

    def showcase(self, gen: Generation = None, seed: int = None, every: int = 1):
        """Replay the showcase pair of `gen` (default: latest) in a fresh match."""
        gen = gen or self.latest
        if gen is None:
            raise RuntimeError("no generation has been evaluated yet")
        rng = np.random.default_rng(seed) if seed is not None else self.rng.spawn(1)[0]
        g1, g2 = gen.showcase
        return replay_match(g1, g2, rng, self.match_duration, every=every)

    # ──────────────────────────────────────────────────────────────────────────

    def _print_stats(self, gen: Generation):
        s = gen.stats
        if gen.index % PRINT_INTERVAL == 0:
            print(
                f"Generation {gen.index + 1:>4} | "
                f"Best fitness: {s['best_fitness']:.1f}  |  "
                f"mean {s['mean_fitness']:>7.1f}  |  "
                f"diversity {s['diversity']:.3f}  |  "
                f"{s['elapsed_s']:.2f}s"
            )
