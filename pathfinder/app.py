"""Flask backend running A* terrain searches and pushing results via SocketIO.

It exposes minimal HTTP endpoints to start a search and broadcasts the
finished search (path, expansion order, visited cells) through WebSocket
events using Flask-SocketIO (which falls back to polling if WebSocket is
unavailable).
"""
from __future__ import annotations

import os
from threading import Lock
from typing import Dict, Any

from flask import Flask, request, jsonify
from flask_socketio import SocketIO
from flask_cors import CORS

from pathfinder.algorithms.astar import AStarEngine
from pathfinder.algorithms.terrain import HeightMapTerrain, UniformTerrain

app = Flask(__name__)
app.config["SECRET_KEY"] = os.environ.get("PATHFINDER_SECRET_KEY", "change-me")
app.config["MAX_GRID_SIDE"] = int(os.environ.get("PATHFINDER_MAX_GRID_SIDE", "256"))
app.config["DEFAULT_HEURISTIC_WEIGHT"] = float(os.environ.get("PATHFINDER_HEURISTIC_WEIGHT", "1.0"))
socketio = SocketIO(app, cors_allowed_origins="*")

# Enable CORS for /api/* endpoints so that a browser front-end can POST
CORS(app, resources={r"/api/*": {"origins": "*"}})

# run id -> summary of the finished search
_runs: Dict[str, Any] = {}
_runs_lock = Lock()


def _bad_request(message: str):
    app.logger.warning("rejected search request: %s", message)
    return jsonify({"error": message}), 400


def _make_terrain(data: dict):
    """Build the terrain described by a request body.

    "terrain": "uniform" -> unit step cost everywhere
    "terrain": "height"  -> seeded random hills, optional rectangle obstacles
    """
    n = int(data["n"])
    kind = data.get("terrain", "height")
    if kind == "uniform":
        return UniformTerrain(n, step_cost=float(data.get("step_cost", 1.0)))
    if kind == "height":
        hills = HeightMapTerrain.random(
            n,
            seed=data.get("seed"),
            roughness=float(data.get("roughness", 4.0)),
            slope_weight=float(data.get("slope_weight", 1.0)),
        )
        obstacles = data.get("obstacles", [])
        if not obstacles:
            return hills
        return HeightMapTerrain.with_obstacles(
            hills.heights,
            obstacles,
            cell_size=float(data.get("cell_size", 1.0)),
            slope_weight=hills.slope_weight,
        )
    raise ValueError(f"unknown terrain kind {kind!r}")


@app.route("/api/run/astar", methods=["POST"])
def run_astar():
    data = request.get_json(force=True)

    try:
        run_id = data.get("run_id")
        if run_id is not None and (isinstance(run_id, bool) or not isinstance(run_id, (str, int))):
            return _bad_request(f"run_id must be a string or integer, got {type(run_id).__name__}")
        n = int(data["n"])
        if not 0 < n <= app.config["MAX_GRID_SIDE"]:
            return _bad_request(f"grid side must be in 1..{app.config['MAX_GRID_SIDE']}, got {n}")
        terrain = _make_terrain(data)
        engine = AStarEngine(
            terrain,
            heuristic_weight=float(data.get("heuristic_weight", app.config["DEFAULT_HEURISTIC_WEIGHT"])),
            start=data.get("start"),
            goal=data.get("goal"),
        )
        engine.compute_path()
    except KeyError as e:
        return _bad_request(f"missing field {e.args[0]!r}")
    except (ValueError, TypeError) as e:
        # ConfigurationError and TerrainError are ValueErrors
        return _bad_request(str(e))

    run_id = f"astar_{id(engine)}" if run_id is None else str(run_id)
    result = engine.snapshot()
    if isinstance(terrain, HeightMapTerrain):
        result["heights"] = terrain.heights.tolist()
        result["blocked"] = terrain.blocked.tolist()

    app.logger.info(
        "run %s: n=%d found=%s cost=%s expansions=%d",
        run_id, n, result["found"], result["cost"], result["expansions"],
    )

    socketio.emit("astar_done", {"run_id": run_id, **result})

    with _runs_lock:
        _runs[run_id] = {"found": result["found"], "cost": result["cost"], "expansions": result["expansions"]}

    return jsonify({"status": "done", "run_id": run_id, **result})


@app.route("/api/runs", methods=["GET"])
def list_runs():
    with _runs_lock:
        return jsonify(list(_runs.keys()))


if __name__ == "__main__":
    socketio.run(app, host="0.0.0.0", port=int(os.environ.get("PATHFINDER_PORT", "5000")), allow_unsafe_werkzeug=True)
