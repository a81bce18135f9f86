import sys
from pathlib import Path

# Ensure top-level packages import for tests
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest

from graph import Graph


def make_graph(n, edges):
    """Build a Graph from `n` vertices and (v1, v2, weight) triples, in order."""
    g = Graph()
    for i in range(n):
        g.create_vertex(42.0 + 0.01 * i, -73.0, label=f"V{i}")
    for v1, v2, w in edges:
        g.create_edge(v1, v2, weight=w)
    return g


@pytest.fixture
def cycle4() -> Graph:
    """V0–V1–V2–V3–V0 with unit weights; edge ids 0..3 in that order."""
    return make_graph(4, [(0, 1, 1.0), (1, 2, 1.0), (2, 3, 1.0), (3, 0, 1.0)])


@pytest.fixture
def two_triangles() -> Graph:
    return make_graph(6, [
        (0, 1, 1.0), (1, 2, 1.0), (2, 0, 1.0),
        (3, 4, 1.0), (4, 5, 1.0), (5, 3, 1.0),
    ])


@pytest.fixture
def isolated_start() -> Graph:
    """Vertex 0 has no edges; 1–2 are connected."""
    return make_graph(3, [(1, 2, 1.0)])


@pytest.fixture
def weighted_diamond() -> Graph:
    """
    Edges 0-1 (1), 1-3 (1), 0-2 (4), 2-3 (1).
    Shortest 0→3 is 0-1-3 (2.0); edge 0-2 is expensive.
    """
    return make_graph(4, [(0, 1, 1.0), (1, 3, 1.0), (0, 2, 4.0), (2, 3, 1.0)])
