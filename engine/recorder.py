"""
recorder.py — Run Recorder & Analytics
========================================
Records a complete run (every step name and every notification), then
computes the metrics a results panel or Comparison Mode needs.

Usage:
    rec = Recorder()
    rec.start(graph=g, config=RunConfig(Algorithm.DIJKSTRA, start=0, end=5))
    metrics = rec.run_to_completion()     # drives its own RunController
    rec.export()                          # serialisable snapshot for save/replay

A Recorder is both a PresentationSink and a ResultsSink, so it can also
be attached to a controller someone else is stepping.

Comparison Mode:
    Hold two Recorders, run both to completion on the SAME graph, then
    call compare(rec1, rec2) → ComparisonResult.
"""

import random
import time
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional, Sequence

from algorithms import get_algorithm
from algorithms.record import TraversalRecord
from engine.controller import RunController, StepResult
from engine.events import MarkRole
from engine.sinks import PresentationSink, ResultsSink
from engine.state import Component, RunConfig, RunStats, TerminationReason
from graph.provider import GraphProvider


# ---------------------------------------------------------------------------
# Metrics dataclass — what the Analytics panel renders
# ---------------------------------------------------------------------------
@dataclass
class RunMetrics:
    algo_key:         str   = ""
    algo_label:       str   = ""
    start:            int   = -1
    end:              Optional[int] = None
    stopping:         str   = ""
    reason:           str   = ""
    vertices_added:   int   = 0
    edges_added:      int   = 0
    discarded_on_discovery: int = 0
    discarded_on_removal:   int = 0
    components:       int   = 0
    total_tree_cost:  float = 0.0
    path_found:       bool  = False
    path_cost:        float = 0.0
    path_hops:        int   = 0
    total_steps:      int   = 0
    wall_time_ms:     float = 0.0
    heuristic:        str   = ""          # A* only


# ---------------------------------------------------------------------------
# ComparisonResult — side-by-side analytics
# ---------------------------------------------------------------------------
@dataclass
class ComparisonResult:
    left:  RunMetrics = field(default_factory=RunMetrics)
    right: RunMetrics = field(default_factory=RunMetrics)
    # derived
    winner_vertices: str = ""   # which algo added fewer vertices
    winner_steps:    str = ""
    winner_path:     str = ""   # which algo found the cheaper path


# ---------------------------------------------------------------------------
# Recorder
# ---------------------------------------------------------------------------
class Recorder(PresentationSink, ResultsSink):
    """
    Attributes:
        steps        : StepResults from run_to_completion().
        marks        : (kind, index, role, component) in notification order.
        tree         : tree records in the order they were added.
        path         : start→end records once a path is found.
        components   : finalised components (FindAllComponents).
        reason       : termination reason once the run finished.
        final_stats  : counters reported with RunFinished.
        metrics      : computed RunMetrics (after run_to_completion).
        controller   : the RunController driven by start()/run_to_completion().
    """

    def __init__(self):
        self.steps:       List[StepResult]      = []
        self.marks:       List[tuple]           = []
        self.tree:        List[TraversalRecord] = []
        self.path:        List[TraversalRecord] = []
        self.path_cost:   float                 = 0.0
        self.components:  List[Component]       = []
        self.reason:      Optional[TerminationReason] = None
        self.final_stats: Optional[RunStats]    = None
        self.metrics:     Optional[RunMetrics]  = None
        self.controller:  Optional[RunController] = None

        self._config:     Optional[RunConfig]   = None

    # ------------------------------------------------------------------
    # Setup & run
    # ------------------------------------------------------------------
    def start(
        self,
        graph: GraphProvider,
        config: RunConfig,
        rng: Optional[random.Random] = None,
    ) -> None:
        """Build a controller wired to this recorder and start the run."""
        self.clear()
        self._config = config
        self.controller = RunController(graph, presentation=self, results=self, rng=rng)
        self.controller.start(config)

    def run_to_completion(self, max_steps: Optional[int] = None) -> RunMetrics:
        """Drive the controller to DONE, record every step, compute metrics."""
        if self.controller is None:
            raise RuntimeError("Call start() first.")

        started = time.monotonic()
        self.steps.extend(self.controller.run_to_completion(max_steps))
        wall_ms = (time.monotonic() - started) * 1000

        self.metrics = self._compute_metrics(wall_ms)
        return self.metrics

    def get_metrics(self) -> Optional[RunMetrics]:
        """Metrics of a finished run, computing them if it was stepped by hand."""
        if self.metrics is None and self.reason is not None:
            self.metrics = self._compute_metrics(0.0)
        return self.metrics

    # ------------------------------------------------------------------
    # Step access (for live playback recording)
    # ------------------------------------------------------------------
    def record_step(self, result: StepResult) -> None:
        self.steps.append(result)

    def clear(self) -> None:
        self.steps       = []
        self.marks       = []
        self.tree        = []
        self.path        = []
        self.path_cost   = 0.0
        self.components  = []
        self.reason      = None
        self.final_stats = None
        self.metrics     = None

    @property
    def step_names(self) -> List[str]:
        return [s.step.value for s in self.steps]

    # ------------------------------------------------------------------
    # Sink callbacks
    # ------------------------------------------------------------------
    def on_vertex_marked(self, vertex: int, role: MarkRole, component: Optional[int] = None) -> None:
        self.marks.append(("vertex", vertex, role, component))

    def on_edge_marked(self, edge: int, role: MarkRole, component: Optional[int] = None) -> None:
        self.marks.append(("edge", edge, role, component))

    def on_tree_entry_added(self, record: TraversalRecord, sequence_number: int) -> None:
        self.tree.append(record)

    def on_path_found(self, records: Sequence[TraversalRecord], total_cost: float, hop_count: int) -> None:
        self.path = list(records)
        self.path_cost = total_cost

    def on_component_finalized(self, index: int, vertices: Sequence[int], edges: Sequence[int]) -> None:
        self.components.append(Component(index, tuple(vertices), tuple(edges)))

    def on_run_finished(self, reason, stats) -> None:
        self.reason = reason
        self.final_stats = stats

    # ------------------------------------------------------------------
    # Export (serialisable snapshot)
    # ------------------------------------------------------------------
    def export(self) -> Dict[str, Any]:
        return {
            "config":     self._config.to_dict() if self._config else {},
            "metrics":    asdict(self.metrics) if self.metrics else {},
            "reason":     self.reason.value if self.reason else None,
            "stats":      self.final_stats.to_dict() if self.final_stats else {},
            "tree":       [r.to_dict() for r in self.tree],
            "path":       [r.to_dict() for r in self.path],
            "components": [c.to_dict() for c in self.components],
            "steps":      [s.to_dict() for s in self.steps],
        }

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------
    def _compute_metrics(self, wall_ms: float) -> RunMetrics:
        config = self._config
        info = get_algorithm(config.algorithm) if config else None
        stats = self.final_stats or RunStats()

        return RunMetrics(
            algo_key=info.key if info else "",
            algo_label=info.label if info else "",
            start=config.start if config else -1,
            end=config.end if config else None,
            stopping=config.stopping.value if config else "",
            reason=self.reason.value if self.reason else TerminationReason.STILL_RUNNING.value,
            vertices_added=stats.tree_vertices,
            edges_added=stats.tree_edges,
            discarded_on_discovery=stats.discarded_on_discovery,
            discarded_on_removal=stats.discarded_on_removal,
            components=stats.components,
            total_tree_cost=stats.total_tree_cost,
            path_found=self.reason is TerminationReason.FOUND_PATH,
            path_cost=self.path_cost,
            path_hops=len(self.path),
            total_steps=len(self.steps),
            wall_time_ms=round(wall_ms, 2),
            heuristic=config.heuristic if (config and info and info.uses_heuristic) else "",
        )


# ---------------------------------------------------------------------------
# Comparison helper
# ---------------------------------------------------------------------------
def compare(left: Recorder, right: Recorder) -> ComparisonResult:
    """Given two completed Recorders, produce a ComparisonResult."""
    l = left.metrics  or RunMetrics()
    r = right.metrics or RunMetrics()

    def winner(l_val, r_val, l_key, r_key, lower_is_better=True):
        if l_val == r_val:
            return "tie"
        if lower_is_better:
            return l_key if l_val < r_val else r_key
        return l_key if l_val > r_val else r_key

    if l.path_found and r.path_found:
        winner_path = winner(l.path_cost, r.path_cost, l.algo_label, r.algo_label)
    elif l.path_found or r.path_found:
        winner_path = l.algo_label if l.path_found else r.algo_label
    else:
        winner_path = "none"

    return ComparisonResult(
        left=l,
        right=r,
        winner_vertices=winner(l.vertices_added, r.vertices_added, l.algo_label, r.algo_label),
        winner_steps=winner(l.total_steps, r.total_steps, l.algo_label, r.algo_label),
        winner_path=winner_path,
    )
