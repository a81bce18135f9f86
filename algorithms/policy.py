"""
policy.py — Priority Policies & Heuristics
===========================================
One pure function per algorithm family computes the ordering value of a
newly discovered neighbour from the record being expanded.  This is the
whole difference between Dijkstra, A*, Prim and the plain traversals; the
state machine calls `info.value_fn(...)` and never branches on algorithm.

    hop_count       previous.value + 1              BFS / DFS / RFS
    cumulative      previous.value + w(e)           Dijkstra
    astar           previous.cost + w(e) + h(v)     A*
    edge_length     w(e)                            Prim

A* keeps g (record.cost) and h (record.heuristic) as separate fields, so
g is never recovered by subtracting h from a composite value.

Heuristics take (graph, vertex, end) and return a straight-line estimate
in edge-weight units:
  • haversine – great-circle miles (admissible when edges are road lengths)
  • euclidean – planar distance on raw lat/lon degrees
  • zero      – h = 0 → A* behaves exactly like Dijkstra

On graphs whose weights are not great-circle lengths (unit weights, imported
weights) only `zero` keeps A* optimal.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Optional

from algorithms.record import TraversalRecord
from graph.geo import coordinate_distance, planar_distance
from graph.provider import GraphProvider


Heuristic = Callable[[GraphProvider, int, int], float]


# ---------------------------------------------------------------------------
# Built-in heuristics
# ---------------------------------------------------------------------------
def haversine(graph: GraphProvider, vertex: int, end: int) -> float:
    return coordinate_distance(graph.vertex_coordinate(vertex), graph.vertex_coordinate(end))

def euclidean(graph: GraphProvider, vertex: int, end: int) -> float:
    return planar_distance(graph.vertex_coordinate(vertex), graph.vertex_coordinate(end))

def zero(graph: GraphProvider, vertex: int, end: int) -> float:
    return 0.0

HEURISTICS: Dict[str, Heuristic] = {
    "haversine": haversine,
    "euclidean": euclidean,
    "zero":      zero,
}

# admissible only when edge weights are great-circle lengths
GEOMETRIC_HEURISTICS = frozenset({"haversine", "euclidean"})


# ---------------------------------------------------------------------------
# Context handed to every policy call
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class PolicyContext:
    graph:     GraphProvider
    end:       Optional[int] = None
    heuristic: Heuristic     = zero

    def h(self, vertex: int) -> float:
        if self.end is None:
            return 0.0
        return self.heuristic(self.graph, vertex, self.end)


ValueFn      = Callable[[TraversalRecord, int, int, PolicyContext], float]
StartValueFn = Callable[[int, PolicyContext], float]


# ---------------------------------------------------------------------------
# Value functions: (previous, neighbour_edge, neighbour_vertex, ctx) -> value
# ---------------------------------------------------------------------------
def hop_count(previous: TraversalRecord, edge: int, vertex: int, ctx: PolicyContext) -> float:
    return previous.value + 1

def cumulative_distance(previous: TraversalRecord, edge: int, vertex: int, ctx: PolicyContext) -> float:
    return previous.value + ctx.graph.edge_weight(edge)

def astar_estimate(previous: TraversalRecord, edge: int, vertex: int, ctx: PolicyContext) -> float:
    return previous.cost + ctx.graph.edge_weight(edge) + ctx.h(vertex)

def edge_length(previous: TraversalRecord, edge: int, vertex: int, ctx: PolicyContext) -> float:
    return ctx.graph.edge_weight(edge)


# ---------------------------------------------------------------------------
# Start values for the synthetic start record
# ---------------------------------------------------------------------------
def zero_start(vertex: int, ctx: PolicyContext) -> float:
    return 0.0

def astar_start(vertex: int, ctx: PolicyContext) -> float:
    return ctx.h(vertex)
