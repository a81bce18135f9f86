"""
vertex.py — Graph Vertex
========================
A waypoint in the graph: an integer index, a label and a (lat, lon)
coordinate.  The traversal engine never stores vertex payload; it only
keeps markers indexed by `id`, so a Vertex carries no algorithm state.

Design decisions:
  - `id` is the vertex's position in the owning Graph (0..n-1).  The
    engine sizes its marker arrays from the vertex count.
  - Coordinates are only consulted by the A* heuristics and by default
    edge-length computation.
"""

from typing import Optional, Tuple

from graph.geo import distance_in_miles


class Vertex:
    """
    Attributes:
        id    : Index into the graph's vertex list.
        label : Human-readable name (defaults to the index).
        lat   : Latitude in degrees.
        lon   : Longitude in degrees.
    """

    __slots__ = ("id", "label", "lat", "lon")

    def __init__(
        self,
        vertex_id: int,
        lat: float = 0.0,
        lon: float = 0.0,
        label: Optional[str] = None,
    ):
        self.id:    int   = vertex_id
        self.label: str   = label if label is not None else str(vertex_id)
        self.lat:   float = lat
        self.lon:   float = lon

    @property
    def coordinate(self) -> Tuple[float, float]:
        return (self.lat, self.lon)

    def distance_to(self, other: "Vertex") -> float:
        """Great-circle distance in miles."""
        return distance_in_miles(self.lat, self.lon, other.lat, other.lon)

    # ------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------
    def to_dict(self) -> dict:
        return {
            "id":    self.id,
            "label": self.label,
            "lat":   self.lat,
            "lon":   self.lon,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Vertex":
        return cls(
            vertex_id=int(data["id"]),
            lat=float(data.get("lat", 0.0)),
            lon=float(data.get("lon", 0.0)),
            label=data.get("label"),
        )

    # ------------------------------------------------------------------
    # Dunder
    # ------------------------------------------------------------------
    def __repr__(self) -> str:
        return f"Vertex(#{self.id} {self.label}, ({self.lat:.4f},{self.lon:.4f}))"

    def __eq__(self, other) -> bool:
        return isinstance(other, Vertex) and self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)
