"""
main.py — Traversal Stepper Flask App
======================================
JSON service that lets a front end drive the step engine one micro-step at
a time.

Routes:
  GET  /                       – service index
  GET  /api/algorithms         – algorithm capability cards
  POST /api/graph/generate     – generate a new graph (random / grid)
  POST /api/graph/import       – import from adjacency-list text or a graph dict
  POST /api/run                – start an algorithm run
  POST /api/compare            – run two configurations to completion and compare
  POST /api/step/next          – execute one step
  POST /api/step/run           – fast-forward (max_steps / until_step / until_vertex)
  POST /api/reset              – drop the current run, keep the graph
  GET  /api/state              – counters, frontier, path, components
  GET  /api/metrics            – run metrics once the run has finished

State management:
  The Flask session only carries an opaque token.  The token keys a
  bounded, least-recently-used registry of Workspaces (TRAVSPAN_MAX_SESSIONS);
  each holds:
    • graph       – the Graph every run of this session reads
    • controller  – current RunController (None before /api/run)
    • recorder    – Recorder attached to the controller as both sinks
    • lock        – serialises requests of one session across server threads
"""

import logging
import os
import secrets
import sys
import threading
from collections import OrderedDict
from dataclasses import asdict, dataclass, field
from typing import Optional, Tuple

from flask import Flask, jsonify, request, session

# add project root to path so imports work
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from algorithms import HEURISTICS, list_algorithms
from config import DEFAULT_ALGORITHM, DEFAULT_HEURISTIC, Settings, as_bool
from engine import (
    RunConfig,
    RunController,
    Recorder,
    StepName,
    StepResult,
    StoppingMode,
    compare,
    stop_at_step,
    stop_when_visiting,
)
from engine.events import (
    ComponentFinalized,
    EdgeMarked,
    Event,
    PathFound,
    RunFinished,
    TreeEntryAdded,
    VertexMarked,
)
from errors import AlreadyTerminatedError, NotStartedError
from graph import Graph

logger = logging.getLogger(__name__)

settings = Settings.from_env()

app = Flask(__name__)
app.secret_key = settings.secret_key


# ---------------------------------------------------------------------------
# Session State Helpers
# ---------------------------------------------------------------------------
@dataclass
class Workspace:
    graph:      Graph
    controller: Optional[RunController] = None
    recorder:   Optional[Recorder]      = None
    # held by every route that reads or drives the controller
    lock:       threading.Lock          = field(default_factory=threading.Lock, repr=False, compare=False)


def default_graph() -> Graph:
    return Graph.generate_random(num_vertices=8, edge_probability=0.4, seed=42)


class WorkspaceRegistry:
    """
    Token → Workspace, least recently used first.  Creating a workspace
    beyond `capacity` evicts the stalest one; its session simply starts
    over with a fresh default graph.
    """

    def __init__(self, capacity: int):
        self.capacity = capacity
        self._items: "OrderedDict[str, Workspace]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __contains__(self, token: str) -> bool:
        with self._lock:
            return token in self._items

    def lookup(self, token: Optional[str]) -> Optional[Workspace]:
        if token is None:
            return None
        with self._lock:
            ws = self._items.get(token)
            if ws is not None:
                self._items.move_to_end(token)
            return ws

    def create(self) -> Tuple[str, Workspace]:
        token = secrets.token_hex(16)
        ws = Workspace(graph=default_graph())
        with self._lock:
            self._items[token] = ws
            while len(self._items) > self.capacity:
                evicted, _ = self._items.popitem(last=False)
                logger.debug("Evicted workspace %s", evicted[:8])
        return token, ws


workspaces = WorkspaceRegistry(settings.max_sessions)


def get_workspace() -> Workspace:
    """Look up this session's workspace, creating it with a default graph."""
    ws = workspaces.lookup(session.get("token"))
    if ws is None:
        token, ws = workspaces.create()
        session["token"] = token
    return ws


def replace_graph(ws: Workspace, graph: Graph) -> None:
    ws.graph = graph
    ws.controller = None
    ws.recorder = None


def require_controller(ws: Workspace) -> RunController:
    if ws.controller is None:
        raise NotStartedError("No run in progress; POST /api/run first")
    return ws.controller


def request_data() -> dict:
    return request.get_json(silent=True) or {}


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------
def event_to_dict(ev: Event) -> dict:
    if isinstance(ev, VertexMarked):
        return {"type": "vertex", "vertex": ev.vertex, "role": ev.role.value, "component": ev.component}
    if isinstance(ev, EdgeMarked):
        return {"type": "edge", "edge": ev.edge, "role": ev.role.value, "component": ev.component}
    if isinstance(ev, TreeEntryAdded):
        return {"type": "tree_entry", "record": ev.record.to_dict(), "sequence_number": ev.sequence_number}
    if isinstance(ev, PathFound):
        return {
            "type":       "path",
            "records":    [r.to_dict() for r in ev.records],
            "total_cost": ev.total_cost,
            "hop_count":  ev.hop_count,
        }
    if isinstance(ev, ComponentFinalized):
        return {"type": "component", "index": ev.index,
                "vertices": list(ev.vertices), "edges": list(ev.edges)}
    if isinstance(ev, RunFinished):
        return {"type": "finished", "reason": ev.reason.value, "stats": ev.stats.to_dict()}
    raise TypeError(f"Unknown event type: {type(ev).__name__}")


def step_to_dict(result: StepResult) -> dict:
    data = result.to_dict()
    data["events"] = [event_to_dict(ev) for ev in result.events]
    return data


def state_to_dict(ws: Workspace) -> dict:
    ctl = ws.controller
    if ctl is None or ctl.engine is None:
        return {"running": False, "vertex_count": ws.graph.vertex_count(),
                "edge_count": ws.graph.edge_count()}
    current = ctl.current_step
    return {
        "running":     True,
        "config":      ctl.config.to_dict(),
        "current_step": current.value if current else None,
        "step_count":  ctl.step_count,
        "done":        ctl.is_done(),
        "reason":      ctl.termination_reason.value,
        "stats":       ctl.stats.to_dict(),
        "visiting":    ctl.visiting.to_dict() if ctl.visiting else None,
        "frontier":    [r.to_dict() for r in ctl.frontier_entries()],
        "frontier_name": ctl.engine.frontier.display_name,
        "path":        [r.to_dict() for r in ctl.path],
        "path_cost":   ctl.path_cost,
        "components":  [c.to_dict() for c in ctl.components],
    }


# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------
@app.errorhandler(ValueError)
def handle_bad_input(exc):
    # InvalidConfigurationError is a ValueError too
    return jsonify({"error": str(exc)}), 400


@app.errorhandler(NotStartedError)
@app.errorhandler(AlreadyTerminatedError)
def handle_conflict(exc):
    return jsonify({"error": str(exc)}), 409


# ---------------------------------------------------------------------------
# Index
# ---------------------------------------------------------------------------
@app.route("/")
def index():
    return jsonify({
        "service": "travspan",
        "routes": sorted(
            str(rule) for rule in app.url_map.iter_rules() if rule.endpoint != "static"
        ),
    })


@app.route("/api/algorithms")
def api_algorithms():
    return jsonify({
        "algorithms": [
            {
                "key":               info.key,
                "label":             info.label,
                "frontier":          info.frontier_kind.value,
                "value_label":       info.value_label,
                "supports_find_all": info.supports_find_all,
                "requires_end":      info.requires_end,
                "stop_at_end_only":  info.stop_at_end_only,
                "uses_heuristic":    info.uses_heuristic,
                "found_table_header": info.found_table_header,
                "description":       info.description,
            }
            for info in list_algorithms()
        ],
        "heuristics":        sorted(HEURISTICS),
        "stopping_modes":    [m.value for m in StoppingMode],
        "default_algorithm": DEFAULT_ALGORITHM,
        "default_heuristic": DEFAULT_HEURISTIC,
    })


# ---------------------------------------------------------------------------
# API: Graph Generation
# ---------------------------------------------------------------------------
@app.route("/api/graph/generate", methods=["POST"])
def api_graph_generate():
    data = request_data()
    mode = data.get("mode", "random")

    if mode == "random":
        g = Graph.generate_random(
            num_vertices=int(data.get("vertices", 10)),
            edge_probability=float(data.get("prob", 0.3)),
            weighted=as_bool(data.get("weighted", True)),
            connected=as_bool(data.get("connected", True)),
            seed=data.get("seed"),
        )
    elif mode == "grid":
        g = Graph.generate_grid(
            rows=int(data.get("rows", 6)),
            cols=int(data.get("cols", 8)),
            weighted=as_bool(data.get("weighted", True)),
        )
    else:
        return jsonify({"error": f"Unknown mode: {mode!r}"}), 400

    ws = get_workspace()
    with ws.lock:
        replace_graph(ws, g)
    logger.info("Generated %s graph: %d vertices, %d edges", mode, g.vertex_count(), g.edge_count())
    return jsonify({"graph": g.to_dict()})


@app.route("/api/graph/import", methods=["POST"])
def api_graph_import():
    data = request_data()
    if "graph" in data:
        g = Graph.from_dict(data["graph"])
    elif "text" in data:
        g = Graph.from_adjacency_list(data["text"])
    else:
        return jsonify({"error": "Provide either 'text' or 'graph'"}), 400

    ws = get_workspace()
    with ws.lock:
        replace_graph(ws, g)
    logger.info("Imported graph: %d vertices, %d edges", g.vertex_count(), g.edge_count())
    return jsonify({"graph": g.to_dict()})


# ---------------------------------------------------------------------------
# API: Run Algorithm
# ---------------------------------------------------------------------------
def run_config(data: dict, graph: Graph) -> RunConfig:
    """RunConfig from request JSON; the default heuristic follows the graph's weights."""
    data = dict(data)
    data.setdefault("algorithm", DEFAULT_ALGORITHM)
    data.setdefault("heuristic", DEFAULT_HEURISTIC if graph.has_geometric_weights() else "zero")
    return RunConfig.from_dict(data)


@app.route("/api/run", methods=["POST"])
def api_run():
    data = request_data()
    ws = get_workspace()
    with ws.lock:
        config = run_config(data, ws.graph)
        recorder = Recorder()
        recorder.start(ws.graph, config)
        ws.recorder = recorder
        ws.controller = recorder.controller
        return jsonify(state_to_dict(ws))


@app.route("/api/compare", methods=["POST"])
def api_compare():
    """Run two configurations to completion on the session graph, side by side."""
    data = request_data()
    if not isinstance(data.get("left"), dict) or not isinstance(data.get("right"), dict):
        return jsonify({"error": "Provide 'left' and 'right' run configurations"}), 400

    ws = get_workspace()
    with ws.lock:
        graph = ws.graph
    recorders = []
    for side in ("left", "right"):
        rec = Recorder()
        rec.start(graph, run_config(data[side], graph))
        rec.run_to_completion(settings.max_steps_per_request)
        if not rec.controller.is_done():
            return jsonify({"error": f"The {side} run did not finish within "
                                     f"{settings.max_steps_per_request} steps"}), 409
        recorders.append(rec)
    return jsonify({"comparison": asdict(compare(*recorders))})


# ---------------------------------------------------------------------------
# API: Stepping
# ---------------------------------------------------------------------------
@app.route("/api/step/next", methods=["POST"])
def api_step_next():
    ws = get_workspace()
    with ws.lock:
        result = require_controller(ws).step()
        ws.recorder.record_step(result)
        return jsonify({"step": step_to_dict(result), "state": state_to_dict(ws)})


@app.route("/api/step/run", methods=["POST"])
def api_step_run():
    data = request_data()
    ws = get_workspace()
    with ws.lock:
        ctl = require_controller(ws)
        if ctl.is_done():
            raise AlreadyTerminatedError("Run already finished; POST /api/run or /api/reset")

        max_steps = min(int(data.get("max_steps", settings.max_steps_per_request)),
                        settings.max_steps_per_request)
        if "until_step" in data:
            results = ctl.run_until(stop_at_step(StepName(data["until_step"])), max_steps)
        elif "until_vertex" in data:
            results = ctl.run_until(stop_when_visiting(int(data["until_vertex"])), max_steps)
        else:
            results = ctl.run_to_completion(max_steps)

        for result in results:
            ws.recorder.record_step(result)
        return jsonify({
            "steps_taken": len(results),
            "last_step":   step_to_dict(results[-1]) if results else None,
            "state":       state_to_dict(ws),
        })


@app.route("/api/reset", methods=["POST"])
def api_reset():
    ws = get_workspace()
    with ws.lock:
        if ws.controller is not None:
            ws.controller.reset()
        ws.controller = None
        ws.recorder = None
        return jsonify(state_to_dict(ws))


@app.route("/api/state")
def api_state():
    ws = get_workspace()
    with ws.lock:
        return jsonify(state_to_dict(ws))


@app.route("/api/metrics")
def api_metrics():
    ws = get_workspace()
    with ws.lock:
        ctl = require_controller(ws)
        if not ctl.is_done():
            return jsonify({"error": "Run has not finished yet"}), 409
        return jsonify({"metrics": asdict(ws.recorder.get_metrics())})


# ---------------------------------------------------------------------------
# Run
# ---------------------------------------------------------------------------
def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


if __name__ == "__main__":
    configure_logging(settings.log_level)
    logger.info("Starting traversal stepper on http://%s:%d", settings.host, settings.port)
    app.run(debug=settings.debug, host=settings.host, port=settings.port)
