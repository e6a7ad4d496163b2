"""
SpaceDuel Server  –  Flask + Server-Sent Events
==============================================

Endpoints:
  POST /start        Start (or restart) evolution with JSON config body
  POST /stop         Stop the running evolution
  GET  /stream       SSE stream – browser subscribes here for live data
  GET  /status       Current run state as JSON
  GET  /showcase     Replay of the latest showcase pair (frames as JSON)

Evolution runs on a background thread. After each full evaluate + evolve
cycle it publishes one Generation into a single slot; /showcase and the
stream only ever read a finished Generation.

Run:
  python server.py
  # → http://localhost:5000
"""

import threading
import queue
import json

from flask import Flask, Response, request, jsonify

from simulation import Simulation
from config import (
    POPULATION_SIZE, MAX_GENERATIONS, MATCHES_PER_EVAL, MATCH_DURATION,
    MUTATION_RATE, MUTATION_STRENGTH, CROSSOVER_RATE, ELITE_COUNT,
    TOURNAMENT_SIZE, EVAL_WORKERS,
)

# ──────────────────────────────────────────────────────────────────────────────
app = Flask(__name__)

# Global run state
_sim_thread:  threading.Thread | None = None
_sim:         Simulation | None = None
_stop_event   = threading.Event()
_gen_queue    = queue.Queue(maxsize=200)   # holds dicts to stream
_sim_status   = {
    "running":    False,
    "generation": 0,
    "max_gen":    0,
    "cfg":        {},
}
_status_lock  = threading.Lock()
_latest_gen   = None                        # last published Generation


# ──────────────────────────────────────────────────────────────────────────────
# CORS helper – allow a dev front-end (any origin) to call us
# ──────────────────────────────────────────────────────────────────────────────

@app.after_request
def add_cors(response):
    response.headers["Access-Control-Allow-Origin"]  = "*"
    response.headers["Access-Control-Allow-Headers"] = "Content-Type"
    response.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
    return response

@app.route("/", methods=["OPTIONS"])
@app.route("/<path:p>", methods=["OPTIONS"])
def preflight(p=""):
    return Response(status=200)


# ──────────────────────────────────────────────────────────────────────────────
# Evolution thread
# ──────────────────────────────────────────────────────────────────────────────

def _build_cfg(data: dict) -> dict:
    """Merge request JSON with defaults. Raises ValueError on bad values."""
    cfg = {
        "population":        int(data.get("population",       POPULATION_SIZE)),
        "max_generations":   int(data.get("maxGenerations",   MAX_GENERATIONS)),
        "matches_per_eval":  int(data.get("matchesPerEval",   MATCHES_PER_EVAL)),
        "match_duration":    float(data.get("matchDuration",  MATCH_DURATION)),
        "elite_count":       int(data.get("eliteCount",       ELITE_COUNT)),
        "tournament_size":   int(data.get("tournamentSize",   TOURNAMENT_SIZE)),
        "mutation_rate":     float(data.get("mutationRate",   MUTATION_RATE)),
        "mutation_strength": float(data.get("mutationStrength", MUTATION_STRENGTH)),
        "crossover_rate":    float(data.get("crossoverRate",  CROSSOVER_RATE)),
        "workers":           int(data.get("workers",          EVAL_WORKERS)),
        "seed":              data.get("seed"),
    }
    if cfg["seed"] is not None:
        cfg["seed"] = int(cfg["seed"])
    if cfg["match_duration"] <= 0:
        raise ValueError("matchDuration must be positive")
    return cfg


def _publish(payload: dict, out_q: queue.Queue):
    # Non-blocking put; drop oldest frame if queue full
    if out_q.full():
        try:
            out_q.get_nowait()
        except queue.Empty:
            pass
    out_q.put(payload)


def _sim_worker(sim: Simulation, stop_evt: threading.Event, out_q: queue.Queue):
    """Run the evolution loop; push each generation's stats into the queue."""

    def on_gen(gen):
        global _latest_gen
        with _status_lock:
            # A stopped or superseded run must not touch the shared slot
            if stop_evt.is_set() or stop_evt is not _stop_event:
                return
            _latest_gen = gen
            _sim_status["generation"] = gen.index + 1
        s = gen.stats
        _publish({
            "type":        "generation",
            "gen":         gen.index,
            "bestFitness": round(s["best_fitness"], 2),
            "meanFitness": round(s["mean_fitness"], 2),
            "diversity":   round(s["diversity"], 4),
            "elapsed":     s["elapsed_s"],
        }, out_q)

    sim.on_gen_callback = on_gen
    with _status_lock:
        if stop_evt is _stop_event:
            _sim_status["running"] = True
    try:
        sim.run(stop_event=stop_evt)
    finally:
        final_gen = sim.population.generation
        with _status_lock:
            if stop_evt is _stop_event:
                _sim_status["running"] = False
                final_gen = _sim_status["generation"]
        out_q.put({"type": "done", "gen": final_gen})


# ──────────────────────────────────────────────────────────────────────────────
# Routes
# ──────────────────────────────────────────────────────────────────────────────

@app.route("/start", methods=["POST"])
def start():
    global _sim_thread, _sim, _stop_event, _gen_queue, _latest_gen

    try:
        cfg = _build_cfg(request.get_json(force=True, silent=True) or {})
        sim = Simulation(
            population        = cfg["population"],
            max_generations   = cfg["max_generations"],
            matches_per_eval  = cfg["matches_per_eval"],
            tournament_size   = cfg["tournament_size"],
            elite_count       = cfg["elite_count"],
            mutation_rate     = cfg["mutation_rate"],
            mutation_strength = cfg["mutation_strength"],
            crossover_rate    = cfg["crossover_rate"],
            match_duration    = cfg["match_duration"],
            workers           = cfg["workers"],
            seed              = cfg["seed"],
            verbose           = False,
        )
    except (TypeError, ValueError) as exc:
        return jsonify({"status": "error", "error": str(exc)}), 400

    # Stop any running evolution
    _stop_event.set()
    if _sim_thread and _sim_thread.is_alive():
        _sim_thread.join(timeout=3)

    with _status_lock:
        _stop_event = threading.Event()
        _gen_queue  = queue.Queue(maxsize=200)
        _sim        = sim
        _latest_gen = None
        _sim_status["generation"] = 0
        _sim_status["running"]    = False
        _sim_status["cfg"]        = cfg
        _sim_status["max_gen"]    = cfg["max_generations"]

    _sim_thread = threading.Thread(
        target=_sim_worker,
        args=(sim, _stop_event, _gen_queue),
        daemon=True,
    )
    _sim_thread.start()
    return jsonify({"status": "started", "cfg": cfg})


@app.route("/stop", methods=["POST"])
def stop():
    _stop_event.set()
    return jsonify({"status": "stopped"})


@app.route("/status", methods=["GET"])
def status():
    with _status_lock:
        return jsonify(dict(_sim_status))


@app.route("/showcase", methods=["GET"])
def showcase():
    """Replay the latest showcase pair in a fresh match and return its frames."""
    with _status_lock:
        gen, sim = _latest_gen, _sim
    if gen is None or sim is None:
        return jsonify({"status": "empty",
                        "hint": "No generation finished yet – POST /start first"}), 404

    seed  = request.args.get("seed", type=int)
    every = max(1, request.args.get("every", default=2, type=int))
    replay = sim.showcase(gen, seed=seed if seed is not None else gen.index, every=every)
    return jsonify({
        "gen":     gen.index,
        "winner":  replay.result.winner,
        "label":   replay.winner_label,
        "fitness": list(replay.result.fitness),
        "frames":  replay.frames,
    })


@app.route("/stream", methods=["GET"])
def stream():
    """SSE endpoint – browser subscribes and receives each generation as an event."""
    out_q = _gen_queue

    def event_gen():
        # Send a hello so the browser knows it's connected
        yield "data: {\"type\": \"connected\"}\n\n"

        while True:
            try:
                payload = out_q.get(timeout=1)
                yield f"data: {json.dumps(payload)}\n\n"
                if payload.get("type") == "done":
                    break
            except queue.Empty:
                # Keep-alive ping
                yield "data: {\"type\": \"ping\"}\n\n"

    return Response(
        event_gen(),
        mimetype="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",    # disable nginx buffering if behind proxy
        },
    )


# ──────────────────────────────────────────────────────────────────────────────

if __name__ == "__main__":
    print("=" * 50)
    print("  SpaceDuel Server  →  http://localhost:5000")
    print("  SSE stream        →  http://localhost:5000/stream")
    print("=" * 50)
    app.run(host="0.0.0.0", port=5000, threaded=True, debug=False)
