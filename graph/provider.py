"""
provider.py — GraphProvider contract
=====================================
The narrow read-only view the traversal engine has of a graph.  Anything
that answers these seven questions can be stepped through; `graph.Graph`
is the in-memory implementation.

The engine never mutates a provider, so one provider may be shared by
several RunControllers at once.
"""

from typing import Protocol, Sequence, Tuple


class GraphProvider(Protocol):

    def vertex_count(self) -> int: ...

    def edge_count(self) -> int: ...

    def edge_endpoints(self, edge_id: int) -> Tuple[int, int]: ...

    def edge_weight(self, edge_id: int) -> float: ...

    def adjacent_edges(self, vertex: int) -> Sequence[int]:
        """Incident edge ids, in a fixed enumeration order."""
        ...

    def vertex_coordinate(self, vertex: int) -> Tuple[float, float]:
        """(lat, lon); only the A* heuristics need this."""
        ...

    def has_geometric_weights(self) -> bool:
        """True when every edge weight is its endpoints' great-circle length."""
        ...
