"""
SpaceDuel – Main Entry Point
============================

Usage examples:
  python main.py                          # default run, 200 generations
  python main.py --gens 50 --pop 40       # smaller, faster run
  python main.py --matches 4 --seconds 15 # cheaper evaluation rounds
  python main.py --workers 8              # play matches in a process pool
  python main.py --seed 42                # reproducible run
  python main.py --no_mutation            # turn off mutations (demonstration)
"""

import argparse
import os

from simulation import Simulation
from visualizer import (ensure_dirs, save_showcase, save_evolution_chart,
                        save_neural_diagram, append_csv)
from config import (SAVE_DIR, SHOWCASE_INTERVAL, SAVE_NEURAL_SAMPLE,
                    POPULATION_SIZE, MAX_GENERATIONS, MATCHES_PER_EVAL,
                    MUTATION_RATE, MUTATION_STRENGTH, CROSSOVER_RATE,
                    ELITE_COUNT, TOURNAMENT_SIZE, MATCH_DURATION,
                    EVAL_WORKERS, GENOME_SIZE)


# ──────────────────────────────────────────────────────────────────────────────
# CLI
# ──────────────────────────────────────────────────────────────────────────────

def parse_args(argv=None):
    p = argparse.ArgumentParser(description="SpaceDuel – evolved spaceship duel")
    p.add_argument("--gens",       type=int,   default=MAX_GENERATIONS,
                   help="Number of generations to run")
    p.add_argument("--pop",        type=int,   default=POPULATION_SIZE,
                   help="Population size")
    p.add_argument("--matches",    type=int,   default=MATCHES_PER_EVAL,
                   help="Matches each genome starts per evaluation round")
    p.add_argument("--seconds",    type=float, default=MATCH_DURATION,
                   help="Simulated length of one match")
    p.add_argument("--elites",     type=int,   default=ELITE_COUNT,
                   help="Genomes copied unchanged into the next generation")
    p.add_argument("--tournament", type=int,   default=TOURNAMENT_SIZE,
                   help="Tournament size for parent selection")
    p.add_argument("--mutation",   type=float, default=MUTATION_RATE,
                   help="Per-weight mutation probability")
    p.add_argument("--strength",   type=float, default=MUTATION_STRENGTH,
                   help="Maximum mutation nudge")
    p.add_argument("--crossover",  type=float, default=CROSSOVER_RATE,
                   help="Probability a child is bred by crossover")
    p.add_argument("--no_mutation",action="store_true",
                   help="Set mutation rate to 0 (demonstration)")
    p.add_argument("--workers",    type=int,   default=EVAL_WORKERS,
                   help="Worker processes for match evaluation")
    p.add_argument("--seed",       type=int,   default=None,
                   help="Random seed for reproducibility")
    p.add_argument("--outdir",     default=SAVE_DIR,
                   help="Output directory")
    p.add_argument("--showcase_interval", type=int, default=SHOWCASE_INTERVAL,
                   help="Plot a showcase duel every N generations")
    return p.parse_args(argv)


# ──────────────────────────────────────────────────────────────────────────────
# Callbacks
# ──────────────────────────────────────────────────────────────────────────────

class SimCallbacks:
    """Bundles the per-generation callbacks used by the simulation."""

    def __init__(self, sim_ref: list, outdir: str, showcase_interval: int):
        self.sim_ref           = sim_ref     # filled in once Simulation exists
        self.outdir            = outdir
        self.showcase_interval = showcase_interval

    def on_generation(self, gen):
        append_csv(gen.stats, self.outdir)

        if gen.index % self.showcase_interval == 0:
            sim = self.sim_ref[0]
            replay = sim.showcase(gen, every=2)
            path = save_showcase(replay, gen.index, self.outdir)
            print(f"  → Showcase: {path}  ({replay.winner_label})")

            if SAVE_NEURAL_SAMPLE:
                npath = save_neural_diagram(gen.showcase[0], gen.index,
                                            "champion", self.outdir)
                print(f"  → Neural diagram: {npath}")

            save_evolution_chart(sim.stats, self.outdir)


# ──────────────────────────────────────────────────────────────────────────────
# Main
# ──────────────────────────────────────────────────────────────────────────────

def main(argv=None):
    args = parse_args(argv)
    outdir = args.outdir
    ensure_dirs(outdir)

    mutation_rate = 0.0 if args.no_mutation else args.mutation

    print("=" * 60)
    print("  SpaceDuel – Evolved Spaceship Duel")
    print("=" * 60)
    print(f"  Population : {args.pop}")
    print(f"  Generations: {args.gens}")
    print(f"  Matches    : {args.matches} per genome, {args.seconds:.0f}s each")
    print(f"  Genome size: {GENOME_SIZE} weights")
    print(f"  Mutation   : {mutation_rate} (strength {args.strength})")
    print(f"  Workers    : {args.workers}")
    print(f"  Output dir : {outdir}")
    print("=" * 60)

    sim_ref = []
    cb = SimCallbacks(sim_ref, outdir, args.showcase_interval)

    sim = Simulation(
        population        = args.pop,
        max_generations   = args.gens,
        matches_per_eval  = args.matches,
        tournament_size   = args.tournament,
        elite_count       = args.elites,
        mutation_rate     = mutation_rate,
        mutation_strength = args.strength,
        crossover_rate    = args.crossover,
        match_duration    = args.seconds,
        workers           = args.workers,
        seed              = args.seed,
        on_gen_callback   = cb.on_generation,
    )
    sim_ref.append(sim)

    try:
        sim.run()
    except KeyboardInterrupt:
        print("\nInterrupted – saving what we have …")

    print("\nSaving final evolution chart …")
    chart_path = save_evolution_chart(sim.stats, outdir, "evolution_final.png")
    print(f"  → {chart_path}")

    if sim.latest is not None:
        replay = sim.showcase(every=2)
        snap = save_showcase(replay, sim.latest.index, outdir, "final.png")
        print(f"  → Final showcase: {snap}  ({replay.winner_label})")

    print("\nDone! All outputs saved to:", os.path.abspath(outdir))


if __name__ == "__main__":
    main()
