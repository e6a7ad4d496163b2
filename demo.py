"""
Quick demo – runs a short seeded evolution with small populations and
15-second matches, and saves showcase plots + charts without needing a display.
"""
from simulation import Simulation
from visualizer import (ensure_dirs, save_showcase, save_evolution_chart,
                        save_neural_diagram, append_csv)

OUT = "output/demo"
ensure_dirs(OUT)

sim = None

def on_gen(gen):
    append_csv(gen.stats, OUT)
    if gen.index % 5 == 0:
        replay = sim.showcase(gen, seed=gen.index, every=2)
        save_showcase(replay, gen.index, OUT)
        save_neural_diagram(gen.showcase[0], gen.index, "best", OUT)

sim = Simulation(
    population       = 30,
    max_generations  = 20,
    matches_per_eval = 3,
    elite_count      = 2,
    match_duration   = 15.0,
    seed             = 42,
    on_gen_callback  = on_gen,
)
sim.run()

save_evolution_chart(sim.stats, OUT, "demo_chart.png")
print("\nAll outputs in:", OUT)
