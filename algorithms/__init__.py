"""
algorithms/__init__.py — Algorithm Registry
=============================================
Single source of truth for every algorithm the engine can step through.

    from algorithms import Algorithm, REGISTRY, get_algorithm

REGISTRY is a dict:
    {
        Algorithm.BFS: AlgoInfo(key, label, frontier_kind, value_fn, …),
        …
    }

All six algorithms run on the SAME step state machine.  AlgoInfo is the
capability record that tells it what differs: which frontier to build,
how to value a newly discovered neighbour, and which stopping modes make
sense.  Adding an algorithm is: pick a frontier kind, write a value
function, add one entry here.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Union

from algorithms.frontier import Frontier, FrontierKind, make_frontier
from algorithms.policy import (
    GEOMETRIC_HEURISTICS,
    HEURISTICS,
    PolicyContext,
    StartValueFn,
    ValueFn,
    astar_estimate,
    astar_start,
    cumulative_distance,
    edge_length,
    hop_count,
    zero_start,
)
from algorithms.record import TraversalRecord


class Algorithm(Enum):
    BFS      = "bfs"
    DFS      = "dfs"
    RFS      = "rfs"
    DIJKSTRA = "dijkstra"
    ASTAR    = "astar"
    PRIM     = "prim"


# ---------------------------------------------------------------------------
# AlgoInfo — capability card for each algorithm
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class AlgoInfo:
    algorithm:          Algorithm
    label:              str                   # human label, e.g. "Breadth-First Search"
    frontier_kind:      FrontierKind
    value_fn:           ValueFn               # priority of a newly discovered neighbour
    start_value_fn:     StartValueFn = zero_start
    supports_find_all:  bool         = False  # FindAllComponents allowed?
    requires_end:       bool         = False  # needs an end vertex whatever the mode
    stop_at_end_only:   bool         = False  # A*: the heuristic needs a goal
    uses_heuristic:     bool         = False  # ctx carries a real heuristic
    value_label:        str          = "Value"   # column header for record values
    value_precision:    int          = 3
    found_table_header: str          = ""
    description:        str          = ""

    @property
    def key(self) -> str:
        return self.algorithm.value


# ---------------------------------------------------------------------------
# THE REGISTRY
# ---------------------------------------------------------------------------
REGISTRY: Dict[Algorithm, AlgoInfo] = {

    Algorithm.BFS: AlgoInfo(
        algorithm=Algorithm.BFS, label="Breadth-First Search",
        frontier_kind=FrontierKind.QUEUE, value_fn=hop_count,
        supports_find_all=True, value_label="Hops", value_precision=0,
        found_table_header="Edges in Spanning Tree/Forest",
        description="Explores layer by layer; values are hop counts from the start.",
    ),

    Algorithm.DFS: AlgoInfo(
        algorithm=Algorithm.DFS, label="Depth-First Search",
        frontier_kind=FrontierKind.STACK, value_fn=hop_count,
        supports_find_all=True, value_label="Hops", value_precision=0,
        found_table_header="Edges in Spanning Tree/Forest",
        description="Dives deep before backtracking.",
    ),

    Algorithm.RFS: AlgoInfo(
        algorithm=Algorithm.RFS, label="Random-First Search",
        frontier_kind=FrontierKind.RANDOM, value_fn=hop_count,
        supports_find_all=True, value_label="Hops", value_precision=0,
        found_table_header="Edges in Spanning Tree/Forest",
        description="Removes a uniformly random discovered vertex each time.",
    ),

    Algorithm.DIJKSTRA: AlgoInfo(
        algorithm=Algorithm.DIJKSTRA, label="Dijkstra's Algorithm",
        frontier_kind=FrontierKind.PRIORITY, value_fn=cumulative_distance,
        value_label="Distance",
        found_table_header="Shortest Paths Found So Far",
        description="Single-source shortest paths for non-negative edge lengths.",
    ),

    Algorithm.ASTAR: AlgoInfo(
        algorithm=Algorithm.ASTAR, label="A* Search",
        frontier_kind=FrontierKind.PRIORITY, value_fn=astar_estimate,
        start_value_fn=astar_start, requires_end=True, stop_at_end_only=True,
        uses_heuristic=True,
        value_label="Priority",
        found_table_header="Paths Found So Far",
        description="Dijkstra guided by a straight-line estimate to the end vertex.",
    ),

    Algorithm.PRIM: AlgoInfo(
        algorithm=Algorithm.PRIM, label="Prim's Algorithm",
        frontier_kind=FrontierKind.PRIORITY, value_fn=edge_length,
        supports_find_all=True, value_label="Length",
        found_table_header="Edges in Spanning Tree/Forest",
        description="Minimum-cost spanning tree (or forest) by cheapest crossing edge.",
    ),
}


# ---------------------------------------------------------------------------
# Lookup helpers
# ---------------------------------------------------------------------------
def get_algorithm(key: Union[str, Algorithm]) -> Optional[AlgoInfo]:
    """Return AlgoInfo by enum or case-insensitive key, or None."""
    if isinstance(key, Algorithm):
        return REGISTRY.get(key)
    try:
        return REGISTRY.get(Algorithm(str(key).strip().lower()))
    except ValueError:
        return None


def list_algorithms() -> List[AlgoInfo]:
    """Return all registered algorithms in declaration order."""
    return list(REGISTRY.values())


__all__ = [
    "Algorithm",
    "AlgoInfo",
    "REGISTRY",
    "get_algorithm",
    "list_algorithms",
    "Frontier",
    "FrontierKind",
    "make_frontier",
    "GEOMETRIC_HEURISTICS",
    "HEURISTICS",
    "PolicyContext",
    "TraversalRecord",
]
