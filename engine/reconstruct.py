"""
reconstruct.py — Path & Component Reconstruction
=================================================
Reads the append-only tree history (records in the order their vertices
were added) and never writes to it.

    reconstruct_path      start → target path through the tree
    path_cost             total edge weight of such a path
    partition_components  split a forest's history into its trees

Path reconstruction walks backward from the end of the history: find the
most recent record whose destination is the current vertex, take its
edge, move to its origin, repeat until the start is reached.  Every
vertex appears in the history at most once, so one backward cursor is
enough and the walk is linear in the history length.
"""

from typing import List, Sequence

from algorithms.record import TraversalRecord
from engine.state import Component
from graph.provider import GraphProvider


def reconstruct_path(
    history: Sequence[TraversalRecord],
    start: int,
    target: int,
) -> List[TraversalRecord]:
    """
    Return the tree records leading from `start` to `target`, in order.
    The synthetic start record is not included, so len(result) is the hop
    count.  Raises ValueError if `target` is not in start's tree.
    """
    path: List[TraversalRecord] = []
    place = target
    idx = len(history) - 1
    while place != start:
        while idx >= 0 and history[idx].vertex != place:
            idx -= 1
        if idx < 0:
            raise ValueError(f"Vertex #{place} is not in the tree rooted at #{start}")
        record = history[idx]
        if record.is_start:
            raise ValueError(f"Vertex #{place} roots a different tree than #{start}")
        path.append(record)
        place = record.origin
        idx -= 1
    path.reverse()
    return path


def path_cost(graph: GraphProvider, records: Sequence[TraversalRecord]) -> float:
    return sum(graph.edge_weight(r.edge) for r in records if r.edge is not None)


def partition_components(history: Sequence[TraversalRecord]) -> List[Component]:
    """Each synthetic start record opens a new component."""
    components: List[Component] = []
    vertices: List[int] = []
    edges:    List[int] = []
    for record in history:
        if record.is_start and vertices:
            components.append(Component(len(components), tuple(vertices), tuple(edges)))
            vertices, edges = [], []
        vertices.append(record.vertex)
        if record.edge is not None:
            edges.append(record.edge)
    if vertices:
        components.append(Component(len(components), tuple(vertices), tuple(edges)))
    return components
