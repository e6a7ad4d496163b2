"""
Visualizer for SpaceDuel.

Produces:
  1. Evolution chart   – best / mean / worst fitness + diversity per generation
  2. Showcase plots    – ship trails and shots of a replayed duel
  3. Network diagrams  – dense wiring of a genome's brain
  4. CSV log           – per-generation stats
"""

import os
import csv
import math
import numpy as np
import matplotlib
matplotlib.use("Agg")          # non-interactive backend (no display needed)
import matplotlib.pyplot as plt

from config import (
    ARENA_WIDTH, ARENA_HEIGHT, SHIP_RADIUS, SAVE_DIR, LOG_CSV,
    SENSOR_LABELS, ACTION_LABELS,
)

SHIP_COLORS = ("#00FF66", "#6699FF")   # green = ship 0, blue = ship 1


# ──────────────────────────────────────────────────────────────────────────────
# Directory setup
# ──────────────────────────────────────────────────────────────────────────────

def ensure_dirs(base: str = SAVE_DIR):
    for sub in ("showcase", "charts", "neural"):
        os.makedirs(os.path.join(base, sub), exist_ok=True)


def _dark_axes(ax, fig):
    ax.set_facecolor("#111111")
    fig.patch.set_facecolor("#111111")
    ax.tick_params(colors="white")
    for spine in ax.spines.values():
        spine.set_edgecolor("#444444")


# ──────────────────────────────────────────────────────────────────────────────
# Showcase replay
# ──────────────────────────────────────────────────────────────────────────────

def _split_on_wrap(xs, ys):
    """Break a trail wherever it jumped across an arena seam."""
    segments, cur_x, cur_y = [], [], []
    for x, y in zip(xs, ys):
        if cur_x and (abs(x - cur_x[-1]) > ARENA_WIDTH / 2
                      or abs(y - cur_y[-1]) > ARENA_HEIGHT / 2):
            segments.append((cur_x, cur_y))
            cur_x, cur_y = [], []
        cur_x.append(x)
        cur_y.append(y)
    if cur_x:
        segments.append((cur_x, cur_y))
    return segments


def save_showcase(replay, generation: int, base: str = SAVE_DIR,
                  filename: str = None):
    """
    Plot a replayed duel: each ship's trail, its final pose, and every
    projectile position seen in the recorded frames.
    """
    frames = replay.frames
    fig, ax = plt.subplots(figsize=(8, 6), dpi=100)
    _dark_axes(ax, fig)
    ax.set_xlim(0, ARENA_WIDTH)
    ax.set_ylim(ARENA_HEIGHT, 0)          # screen coordinates: y grows down
    ax.set_aspect("equal")

    for i, color in enumerate(SHIP_COLORS):
        xs = [f["ships"][i]["x"] for f in frames]
        ys = [f["ships"][i]["y"] for f in frames]
        for sx, sy in _split_on_wrap(xs, ys):
            ax.plot(sx, sy, color=color, lw=1.0, alpha=0.6)

        shots = [(p["x"], p["y"]) for f in frames
                 for p in f["projectiles"] if p["owner"] == i]
        if shots:
            px, py = zip(*shots)
            ax.scatter(px, py, s=2, color=color, alpha=0.35)

        last = frames[-1]["ships"][i]
        if last["alive"]:
            nose_x = last["x"] + math.cos(last["rotation"]) * SHIP_RADIUS * 1.5
            nose_y = last["y"] + math.sin(last["rotation"]) * SHIP_RADIUS * 1.5
            ax.add_patch(plt.Circle((last["x"], last["y"]), SHIP_RADIUS,
                                    fill=False, color=color, lw=1.5))
            ax.plot([last["x"], nose_x], [last["y"], nose_y], color=color, lw=1.5)
        else:
            ax.scatter([last["x"]], [last["y"]], marker="x", s=120,
                       color=color, linewidths=2)

    s0, s1 = frames[-1]["ships"]
    ax.set_title(
        f"Gen {generation} — {replay.winner_label}  "
        f"t={replay.result.time:.1f}s  |  "
        f"green {s0['hits']}/{s0['shots']}  blue {s1['hits']}/{s1['shots']}",
        color="white", fontsize=10)

    filename = filename or f"gen_{generation:06d}.png"
    path = os.path.join(base, "showcase", filename)
    plt.savefig(path, dpi=100, bbox_inches="tight",
                facecolor=fig.get_facecolor())
    plt.close(fig)
    return path


# ──────────────────────────────────────────────────────────────────────────────
# Evolution statistics chart
# ──────────────────────────────────────────────────────────────────────────────

def save_evolution_chart(stats: list, base: str = SAVE_DIR,
                         filename: str = "evolution.png"):
    """Plot best / mean / worst fitness and genetic diversity across generations."""
    if not stats:
        return
    gens      = [s["generation"]    for s in stats]
    best      = [s["best_fitness"]  for s in stats]
    mean      = [s["mean_fitness"]  for s in stats]
    worst     = [s["worst_fitness"] for s in stats]
    diversity = [s["diversity"]     for s in stats]

    fig, ax1 = plt.subplots(figsize=(12, 5), dpi=100)
    _dark_axes(ax1, fig)

    ax1.plot(gens, best, color="#44FF44", linewidth=1.2, label="Best", zorder=3)
    ax1.plot(gens, mean, color="#FFFFFF", linewidth=1.0, label="Mean", zorder=3)
    ax1.fill_between(gens, worst, best, color="#44FF44", alpha=0.08)
    ax1.set_ylabel("Fitness (sum over round)", color="white")
    ax1.set_xlabel("Generation", color="white")

    ax2 = ax1.twinx()
    ax2.plot(gens, diversity, color="#CC44FF", linewidth=1.0,
             linestyle="--", label="Diversity", zorder=2)
    ax2.set_ylabel("Genetic diversity (0–1)", color="white")
    ax2.set_ylim(0, max(0.05, max(diversity) * 1.1))
    ax2.tick_params(colors="white")

    lines1, labels1 = ax1.get_legend_handles_labels()
    lines2, labels2 = ax2.get_legend_handles_labels()
    ax1.legend(lines1 + lines2, labels1 + labels2,
               facecolor="#222222", labelcolor="white",
               loc="lower right", fontsize=8)

    ax1.set_title("Evolutionary Progress", color="white", fontsize=12)
    plt.tight_layout()
    path = os.path.join(base, "charts", filename)
    plt.savefig(path, dpi=100, bbox_inches="tight",
                facecolor=fig.get_facecolor())
    plt.close(fig)
    return path


# ──────────────────────────────────────────────────────────────────────────────
# Neural network diagram
# ──────────────────────────────────────────────────────────────────────────────

def save_neural_diagram(genome, generation: int, label: str = "",
                        base: str = SAVE_DIR, min_weight: float = 0.5):
    """
    Draw the genome's network as a layered graph.
    Sensors (blue) → hidden (grey) → actions (pink).
    Only edges with |w| >= min_weight are drawn; green positive, red negative.
    """
    layers = genome.brain.layers()
    w_ih, w_ho = layers["w_ih"], layers["w_ho"]
    n_in, n_hid, n_out = w_ih.shape[1], w_ih.shape[0], w_ho.shape[0]

    def _ys(n):
        return [(i + 1) / (n + 1) for i in range(n)]

    pos_in, pos_hid, pos_out = _ys(n_in), _ys(n_hid), _ys(n_out)

    fig, ax = plt.subplots(figsize=(10, 6), dpi=100)
    fig.patch.set_facecolor("#111111")
    ax.set_facecolor("#111111")
    ax.axis("off")
    ax.set_xlim(-0.3, 1.3)
    ax.set_ylim(-0.05, 1.05)

    def _edges(weights, x1, ys1, x2, ys2):
        drawn = 0
        for dst in range(weights.shape[0]):
            for src in range(weights.shape[1]):
                w = weights[dst, src]
                if abs(w) < min_weight:
                    continue
                color = "#44FF44" if w >= 0 else "#FF4444"
                ax.plot([x1, x2], [ys1[src], ys2[dst]], color=color,
                        lw=0.3 + min(2.5, abs(w)), alpha=0.5, zorder=1)
                drawn += 1
        return drawn

    n_edges  = _edges(w_ih, 0.0, pos_in, 0.5, pos_hid)
    n_edges += _edges(w_ho, 0.5, pos_hid, 1.0, pos_out)

    for x, ys, color, labels, ha, dx in (
        (0.0, pos_in,  "#4499FF", SENSOR_LABELS, "right", -0.03),
        (0.5, pos_hid, "#AAAAAA", None,          "center", 0.0),
        (1.0, pos_out, "#FF88AA", ACTION_LABELS, "left",   0.03),
    ):
        for i, y in enumerate(ys):
            ax.add_patch(plt.Circle((x, y), 0.015, color=color, zorder=3))
            if labels:
                ax.text(x + dx, y, labels.get(i, str(i)), color="white",
                        fontsize=6.5, ha=ha, va="center", zorder=4)

    for tx, title in [(0.0, "Sensors"), (0.5, "Hidden"), (1.0, "Actions")]:
        ax.text(tx, 1.03, title, color="#CCCCCC", ha="center",
                fontsize=9, fontweight="bold")

    ax.set_title(
        f"Gen {generation} — Brain of {label}  "
        f"({n_edges} edges with |w| ≥ {min_weight}, "
        f"mean |w| {np.abs(genome.weights).mean():.2f})",
        color="white", fontsize=10, pad=4)

    path = os.path.join(base, "neural", f"gen_{generation:06d}_{label}.png")
    plt.savefig(path, dpi=100, bbox_inches="tight",
                facecolor=fig.get_facecolor())
    plt.close(fig)
    return path


# ──────────────────────────────────────────────────────────────────────────────
# CSV log
# ──────────────────────────────────────────────────────────────────────────────

def append_csv(stats: dict, base: str = SAVE_DIR):
    """Append one generation's stats to a CSV file."""
    if not LOG_CSV:
        return
    path = os.path.join(base, "evolution_log.csv")
    file_exists = os.path.isfile(path)
    with open(path, "a", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=list(stats.keys()))
        if not file_exists:
            writer.writeheader()
        writer.writerow(stats)
