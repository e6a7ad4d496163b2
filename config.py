"""
SpaceDuel Configuration
All tunable parameters for the evolved spaceship duel.
"""

import math

# ─── Arena ────────────────────────────────────────────────────────────────────
ARENA_WIDTH  = 800.0   # toroidal, x wraps into [0, ARENA_WIDTH)
ARENA_HEIGHT = 600.0   # toroidal, y wraps into [0, ARENA_HEIGHT)

# ─── Ship physics ─────────────────────────────────────────────────────────────
SHIP_ROTATION_SPEED = 5.0     # rad/s at full turn signal
SHIP_THRUST         = 200.0   # px/s² at full thrust
SHIP_DRAG           = 0.98    # velocity multiplier per 1/60 s tick
MAX_SHIP_SPEED      = 300.0   # px/s
SHIP_RADIUS         = 12.0

# ─── Weapons ──────────────────────────────────────────────────────────────────
PROJECTILE_SPEED         = 400.0   # px/s along the ship's heading
PROJECTILE_LIFETIME      = 2.0     # seconds
PROJECTILE_RADIUS        = 2.0
PROJECTILE_INHERIT       = 0.3     # fraction of ship velocity added to shots
FIRE_COOLDOWN            = 0.25    # seconds between shots
FIRE_THRESHOLD           = 0.5     # fire output must exceed this
MAX_PROJECTILES_PER_SHIP = 5

# ─── Match ────────────────────────────────────────────────────────────────────
MATCH_DURATION = 30.0                             # seconds of simulated time
SIM_DT         = 1.0 / 60.0                       # fixed headless timestep
SIM_STEPS      = int(round(MATCH_DURATION / SIM_DT))

# Randomised spawn: ship 0 on the left facing east, ship 1 on the right
# facing west, both with a jittered heading.
SPAWN_X          = (200.0, 600.0)
SPAWN_Y_RANGE    = (150.0, 450.0)
SPAWN_HEADING    = (0.0, math.pi)
SPAWN_JITTER     = 0.5              # ± radians

# ─── Neural network ───────────────────────────────────────────────────────────
# Sensor inputs available to every ship (index → meaning)
SENSOR_LABELS = {
    0:  "opp_dist",           # toroidal distance to opponent (0→1)
    1:  "opp_bearing_sin",    # bearing to opponent relative to heading
    2:  "opp_bearing_cos",
    3:  "opp_facing_sin",     # opponent heading relative to bearing back at us
    4:  "opp_facing_cos",
    5:  "own_speed",          # (0→1)
    6:  "opp_speed",          # (0→1)
    7:  "bullet_dist",        # nearest enemy projectile (1 = none / far)
    8:  "bullet_bearing_sin",
    9:  "bullet_bearing_cos",
    10: "drift_sin",          # velocity direction relative to heading
    11: "drift_cos",
    12: "fire_cooldown",      # remaining cooldown fraction (0→1)
    13: "own_projectiles",    # in-flight shots / per-ship cap (0→1)
}
NUM_INPUTS = len(SENSOR_LABELS)

# Control outputs (index → meaning), all sigmoid 0..1
ACTION_LABELS = {
    0: "thrust",
    1: "turn_left",
    2: "turn_right",
    3: "fire",
}
NUM_OUTPUTS = len(ACTION_LABELS)

NUM_HIDDEN = 16

# Flattened weights, bias appended per neuron:
# (14+1)*16 + (16+1)*4 = 240 + 68 = 308
GENOME_SIZE = (NUM_INPUTS + 1) * NUM_HIDDEN + (NUM_HIDDEN + 1) * NUM_OUTPUTS

INIT_WEIGHT_RANGE = 1.0   # initial weights uniform in [-1, 1)
WEIGHT_CLAMP      = 3.0   # mutated weights are clamped to [-3, 3]

# Sensor normalisation
SENSOR_DIST_SCALE  = 500.0
SENSOR_SPEED_SCALE = 300.0

# ─── Population / Genetic algorithm ───────────────────────────────────────────
POPULATION_SIZE   = 100
MATCHES_PER_EVAL  = 8      # matches each genome starts per evaluation round
TOURNAMENT_SIZE   = 5
ELITE_COUNT       = 5
MUTATION_RATE     = 0.15   # per-weight probability
MUTATION_STRENGTH = 0.4    # uniform perturbation in [-strength, strength]
CROSSOVER_RATE    = 0.7
MAX_GENERATIONS   = 200
EVAL_WORKERS      = 1      # >1 plays matches in a process pool

# ─── Fitness ──────────────────────────────────────────────────────────────────
FITNESS_WIN            = 100.0
FITNESS_DEATH          = -20.0
FITNESS_PER_HIT        = 50.0
FITNESS_ACCURACY       = 30.0   # × hits/shots
FITNESS_SHOT_CAP       = 20     # shots counted towards the engagement bonus
FITNESS_PER_SHOT       = 0.5
FITNESS_PROXIMITY      = 20.0   # × mean proximity over the match
FITNESS_SURVIVE_ALIVE  = 15.0   # × elapsed fraction, still alive at the end
FITNESS_SURVIVE_DEAD   = 5.0    # × elapsed fraction, killed before the end
PROXIMITY_SCALE        = 500.0

# ─── Output / Logging ─────────────────────────────────────────────────────────
SAVE_DIR          = "output"   # directory for charts, replays and the CSV log
SHOWCASE_INTERVAL = 10         # plot a showcase replay every N generations
SAVE_NEURAL_SAMPLE = True      # save network diagrams of the best genome
LOG_CSV           = True       # write per-generation CSV log
PRINT_INTERVAL    = 1          # console line every N generations
