"""
edge.py — Graph Edge
====================
Connects two vertices with a non-negative length.

Design decisions:
  - `v1` and `v2` are vertex indices, NOT Vertex references.
    This keeps edges serialisable and avoids circular references.
  - Edges are undirected: traversal works in both directions and
    `other_end` answers "where does this edge lead from here?".
  - A weight of None means "use the great-circle length of the
    endpoints"; the owning Graph resolves it when the edge is added.
"""

from typing import Optional


class Edge:
    """
    Attributes:
        id     : Index into the graph's edge list.
        v1, v2 : Endpoint vertex indices.
        weight : Edge length (same units as the heuristics: miles).
        label  : Human-readable name, e.g. a route designation.
    """

    __slots__ = ("id", "v1", "v2", "weight", "label")

    def __init__(
        self,
        edge_id: int,
        v1: int,
        v2: int,
        weight: Optional[float] = None,
        label: Optional[str] = None,
    ):
        self.id:     int             = edge_id
        self.v1:     int             = v1
        self.v2:     int             = v2
        self.weight: Optional[float] = weight
        self.label:  str             = label if label is not None else f"{v1}-{v2}"

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    @property
    def endpoints(self):
        return (self.v1, self.v2)

    def connects(self, a: int, b: int) -> bool:
        return {self.v1, self.v2} == {a, b}

    def other_end(self, vertex: int) -> Optional[int]:
        """Given one endpoint, return the other. None if vertex isn't an endpoint."""
        if vertex == self.v1:
            return self.v2
        if vertex == self.v2:
            return self.v1
        return None

    # ------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------
    def to_dict(self) -> dict:
        return {
            "id":     self.id,
            "v1":     self.v1,
            "v2":     self.v2,
            "weight": self.weight,
            "label":  self.label,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Edge":
        weight = data.get("weight")
        return cls(
            edge_id=int(data["id"]),
            v1=int(data["v1"]),
            v2=int(data["v2"]),
            weight=float(weight) if weight is not None else None,
            label=data.get("label"),
        )

    # ------------------------------------------------------------------
    # Dunder
    # ------------------------------------------------------------------
    def __repr__(self) -> str:
        return f"Edge(#{self.id} {self.v1} ↔ {self.v2}, w={self.weight})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Edge) and self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)
