"""
record.py — Traversal Record
============================
The entry type held by every frontier: "vertex `vertex` was reached over
edge `edge` with ordering value `value`".

    value     : what the frontier orders by: hop count for traversals,
                cumulative distance for Dijkstra, g + h for A*, the raw
                edge length for Prim.
    cost      : cumulative tree-path length from the component root (A*'s g).
    heuristic : A*'s h for `vertex`; 0 for every other algorithm.
    origin    : the other endpoint of `edge`, i.e. where we came from.

A record with edge=None is the synthetic entry that seeds a traversal or
a new component.  Records are frozen: once inserted they are consumed
exactly once, when removed from the frontier.
"""

from dataclasses import dataclass
from typing import Optional

from graph.provider import GraphProvider


@dataclass(frozen=True)
class TraversalRecord:
    vertex:    int
    edge:      Optional[int] = None
    value:     float         = 0.0
    cost:      float         = 0.0
    heuristic: float         = 0.0
    origin:    Optional[int] = None

    @classmethod
    def start(cls, vertex: int, value: float = 0.0, heuristic: float = 0.0) -> "TraversalRecord":
        return cls(vertex=vertex, value=value, heuristic=heuristic)

    @classmethod
    def via(
        cls,
        graph: GraphProvider,
        vertex: int,
        edge: int,
        value: float,
        cost: float,
        heuristic: float = 0.0,
    ) -> "TraversalRecord":
        """Build a record for reaching `vertex` over `edge`; derives `origin`."""
        v1, v2 = graph.edge_endpoints(edge)
        origin = v2 if v1 == vertex else v1
        return cls(vertex=vertex, edge=edge, value=value, cost=cost,
                   heuristic=heuristic, origin=origin)

    @property
    def is_start(self) -> bool:
        return self.edge is None

    def describe(self, precision: int = 3) -> str:
        """Short form for explanations, e.g. '#4 via edge 7 (2.500)'."""
        if self.edge is None:
            return f"#{self.vertex}, the starting vertex"
        return f"#{self.vertex} via edge {self.edge} from #{self.origin} ({self.value:.{precision}f})"

    def to_dict(self) -> dict:
        return {
            "vertex":    self.vertex,
            "edge":      self.edge,
            "value":     self.value,
            "cost":      self.cost,
            "heuristic": self.heuristic,
            "origin":    self.origin,
        }
