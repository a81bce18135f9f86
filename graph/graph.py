"""
graph.py — Graph Container & Generator
=======================================
In-memory implementation of the GraphProvider contract.  The traversal
engine reads it; it never writes to it.

Responsibilities:
  1. Building the graph                     (add / create vertices & edges)
  2. GraphProvider queries                  (counts, endpoints, weights, adjacency)
  3. Graph-generation factory methods       (random, grid)
  4. Import from adjacency-list text        (text → graph)
  5. Serialisation round-trip               (to_dict / from_dict)

Design decisions:
  - Vertices & edges stored in lists so their index IS their id; the
    engine sizes its marker arrays from vertex_count() / edge_count().
  - A separate adjacency list `_adj[vertex] → [edge_id, …]` is maintained
    incrementally, in edge insertion order.  That order is the
    enumeration order the engine sees, so runs are reproducible.
  - Edges without an explicit weight get the great-circle length of
    their endpoints.  `geometric_weights` stays True only while every
    weight is that length; the distance heuristics are valid only then.
"""

import math
import random
from typing import Dict, List, Optional, Sequence, Set, Tuple

from graph.edge import Edge
from graph.vertex import Vertex


# default centre for generated / imported layouts (lat, lon)
DEFAULT_CENTRE = (42.72, -73.75)


class Graph:
    """
    Attributes:
        vertices : [Vertex]   – index == vertex id
        edges    : [Edge]     – index == edge id
        _adj     : [[edge_id, …]] per vertex
        geometric_weights : bool – every weight is a great-circle length
    """

    def __init__(self):
        self.vertices: List[Vertex]    = []
        self.edges:    List[Edge]      = []
        self._adj:     List[List[int]] = []
        self.geometric_weights: bool   = True

    # ==================================================================
    # BUILDING
    # ==================================================================
    def create_vertex(self, lat: float = 0.0, lon: float = 0.0, label: Optional[str] = None) -> Vertex:
        """Append a vertex; its id is the next free index."""
        vertex = Vertex(len(self.vertices), lat=lat, lon=lon, label=label)
        self.vertices.append(vertex)
        self._adj.append([])
        return vertex

    def create_edge(
        self,
        v1: int,
        v2: int,
        weight: Optional[float] = None,
        label: Optional[str] = None,
    ) -> Edge:
        """Append an undirected edge between two existing vertices."""
        for v in (v1, v2):
            if not 0 <= v < len(self.vertices):
                raise ValueError(f"Edge endpoint {v} is not a vertex of this graph")
        length = self.vertices[v1].distance_to(self.vertices[v2])
        if weight is None:
            weight = length
        elif not math.isclose(weight, length, rel_tol=1e-9, abs_tol=1e-9):
            self.geometric_weights = False
        if weight < 0:
            raise ValueError(f"Edge {v1}-{v2} has negative weight {weight}")
        edge = Edge(len(self.edges), v1, v2, weight=float(weight), label=label)
        self.edges.append(edge)
        self._adj[v1].append(edge.id)
        if v2 != v1:
            self._adj[v2].append(edge.id)
        return edge

    def get_vertex(self, vertex_id: int) -> Optional[Vertex]:
        if 0 <= vertex_id < len(self.vertices):
            return self.vertices[vertex_id]
        return None

    def get_edge(self, edge_id: int) -> Optional[Edge]:
        if 0 <= edge_id < len(self.edges):
            return self.edges[edge_id]
        return None

    def get_edge_between(self, a: int, b: int) -> Optional[Edge]:
        """First edge connecting a and b."""
        for eid in self._adj[a]:
            if self.edges[eid].connects(a, b):
                return self.edges[eid]
        return None

    # ==================================================================
    # GRAPH PROVIDER
    # ==================================================================
    def vertex_count(self) -> int:
        return len(self.vertices)

    def edge_count(self) -> int:
        return len(self.edges)

    def edge_endpoints(self, edge_id: int) -> Tuple[int, int]:
        return self.edges[edge_id].endpoints

    def edge_weight(self, edge_id: int) -> float:
        return self.edges[edge_id].weight

    def adjacent_edges(self, vertex: int) -> Sequence[int]:
        return tuple(self._adj[vertex])

    def vertex_coordinate(self, vertex: int) -> Tuple[float, float]:
        return self.vertices[vertex].coordinate

    def has_geometric_weights(self) -> bool:
        return self.geometric_weights

    # ==================================================================
    # ADJACENCY QUERIES
    # ==================================================================
    def neighbours(self, vertex: int) -> List[Tuple[int, int]]:
        """Return [(neighbour, edge_id)] in adjacency order."""
        return [(self.edges[eid].other_end(vertex), eid) for eid in self._adj[vertex]]

    def degree(self, vertex: int) -> int:
        return len(self._adj[vertex])

    def vertex_label(self, vertex: int) -> str:
        return self.vertices[vertex].label

    def edge_label(self, edge_id: int) -> str:
        return self.edges[edge_id].label

    # ==================================================================
    # SERIALISATION
    # ==================================================================
    def to_dict(self) -> dict:
        return {
            "vertices": [v.to_dict() for v in self.vertices],
            "edges":    [e.to_dict() for e in self.edges],
            "geometric_weights": self.geometric_weights,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Graph":
        """
        Rebuild from `to_dict` output.  Vertex ids must be 0..n-1; edges
        are re-added in list order so adjacency order is preserved.
        `geometric_weights` is recomputed from the weights, not trusted.
        """
        g = cls()
        vertices = sorted((Vertex.from_dict(vd) for vd in data.get("vertices", [])), key=lambda v: v.id)
        for expected, v in enumerate(vertices):
            if v.id != expected:
                raise ValueError(f"Vertex ids must be contiguous from 0; found {v.id} at position {expected}")
            g.create_vertex(v.lat, v.lon, label=v.label)
        for ed in data.get("edges", []):
            e = Edge.from_dict(ed)
            g.create_edge(e.v1, e.v2, weight=e.weight, label=ed.get("label"))
        return g

    # ==================================================================
    # GENERATORS — Factory class-methods
    # ==================================================================

    # ---------- Random Graph ----------
    @classmethod
    def generate_random(
        cls,
        num_vertices: int = 10,
        edge_probability: float = 0.3,
        weighted: bool = True,
        connected: bool = True,
        seed: Optional[int] = None,
        centre: Tuple[float, float] = DEFAULT_CENTRE,
        spread: float = 0.5,
    ) -> "Graph":
        """
        Erdős–Rényi style random graph on scattered coordinates.
        Each possible edge is included with probability `edge_probability`.
        Weighted graphs use great-circle edge lengths; unweighted ones use 1.
        """
        rng = random.Random(seed)
        g = cls()

        for i in range(num_vertices):
            lat = centre[0] + rng.uniform(-spread, spread)
            lon = centre[1] + rng.uniform(-spread, spread)
            g.create_vertex(lat, lon, label=str(i))

        def weight() -> Optional[float]:
            return None if weighted else 1.0

        for i in range(num_vertices):
            for j in range(i + 1, num_vertices):
                if rng.random() < edge_probability:
                    g.create_edge(i, j, weight=weight())

        # guarantee connectivity: add a spanning-tree backbone
        if connected:
            shuffled = list(range(num_vertices))
            rng.shuffle(shuffled)
            for k in range(1, len(shuffled)):
                if not g.get_edge_between(shuffled[k - 1], shuffled[k]):
                    g.create_edge(shuffled[k - 1], shuffled[k], weight=weight())

        return g

    # ---------- Grid Graph ----------
    @classmethod
    def generate_grid(
        cls,
        rows: int = 6,
        cols: int = 8,
        weighted: bool = True,
        centre: Tuple[float, float] = DEFAULT_CENTRE,
        spacing: float = 0.05,
    ) -> "Graph":
        """
        2-D lattice; edges connect 4-neighbours (right / down).
        Vertex ids are row-major: id = r * cols + c.
        """
        g = cls()
        top  = centre[0] + spacing * (rows - 1) / 2
        left = centre[1] - spacing * (cols - 1) / 2

        for r in range(rows):
            for c in range(cols):
                g.create_vertex(top - r * spacing, left + c * spacing, label=f"{r}_{c}")

        for r in range(rows):
            for c in range(cols):
                here = r * cols + c
                for dr, dc in ((0, 1), (1, 0)):
                    nr, nc = r + dr, c + dc
                    if nr < rows and nc < cols:
                        g.create_edge(here, nr * cols + nc, weight=None if weighted else 1.0)

        return g

    # ---------- Import from Adjacency List (text) ----------
    @classmethod
    def from_adjacency_list(
        cls,
        text: str,
        centre: Tuple[float, float] = DEFAULT_CENTRE,
        radius: float = 0.5,
    ) -> "Graph":
        """
        Parse a simple text adjacency list.

        Supported formats (one vertex per line):
            A: B C D            → A connects to B, C, D  (weight 1)
            A: B(3) C(7)        → A–B weight 3, A–C weight 7
            0 -> 1,2,3          → alternate arrow syntax

        Vertex ids follow first appearance; vertices are laid out on a circle.
        Duplicate undirected pairs are kept once.
        """
        adjacency: Dict[str, List[Tuple[str, float]]] = {}

        for line in text.strip().splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue

            if ":" in line:
                parts = line.split(":", 1)
            elif "→" in line:
                parts = line.split("→", 1)
            elif "->" in line:
                parts = line.split("->", 1)
            else:
                raise ValueError(f"Cannot parse adjacency line: {line!r}")

            src = parts[0].strip()
            adjacency.setdefault(src, [])

            for token in parts[1].replace(",", " ").split():
                # optional weight: "B(3)" or "B"
                if "(" in token and token.endswith(")"):
                    tgt, w_str = token[:-1].split("(", 1)
                    try:
                        w = float(w_str)
                    except ValueError:
                        raise ValueError(f"Bad weight in token {token!r}") from None
                else:
                    tgt, w = token, 1.0
                adjacency.setdefault(tgt, [])
                adjacency[src].append((tgt, w))

        g = cls()
        labels = list(adjacency.keys())
        index = {label: i for i, label in enumerate(labels)}
        n = len(labels)
        for i, label in enumerate(labels):
            angle = 2 * math.pi * i / n
            g.create_vertex(centre[0] + radius * math.sin(angle),
                            centre[1] + radius * math.cos(angle),
                            label=label)

        seen: Set[frozenset] = set()
        for src, targets in adjacency.items():
            for tgt, w in targets:
                key = frozenset([src, tgt])
                if key in seen:
                    continue
                seen.add(key)
                g.create_edge(index[src], index[tgt], weight=w)

        return g

    # ==================================================================
    # UTILITY
    # ==================================================================
    def __repr__(self) -> str:
        return f"Graph(vertices={self.vertex_count()}, edges={self.edge_count()})"
