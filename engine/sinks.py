"""
sinks.py — Presentation & Results Collaborators
================================================
The engine's only outbound interfaces.  Both are one-way: the engine
never reads anything back.

    PresentationSink   on_vertex_marked / on_edge_marked
    ResultsSink        on_tree_entry_added / on_path_found /
                       on_component_finalized / on_run_finished

The base classes do nothing, so implementers override only what they
care about.  `dispatch` is the thin adapter the RunController calls
after every step.
"""

from typing import Iterable, Optional, Sequence

from algorithms.record import TraversalRecord
from engine.events import (
    ComponentFinalized,
    EdgeMarked,
    Event,
    MarkRole,
    PathFound,
    RunFinished,
    TreeEntryAdded,
    VertexMarked,
)


class PresentationSink:

    def on_vertex_marked(self, vertex: int, role: MarkRole, component: Optional[int] = None) -> None:
        pass

    def on_edge_marked(self, edge: int, role: MarkRole, component: Optional[int] = None) -> None:
        pass


class ResultsSink:

    def on_tree_entry_added(self, record: TraversalRecord, sequence_number: int) -> None:
        pass

    def on_path_found(self, records: Sequence[TraversalRecord], total_cost: float, hop_count: int) -> None:
        pass

    def on_component_finalized(self, index: int, vertices: Sequence[int], edges: Sequence[int]) -> None:
        pass

    def on_run_finished(self, reason, stats) -> None:
        pass


def dispatch(
    events: Iterable[Event],
    presentation: Optional[PresentationSink] = None,
    results: Optional[ResultsSink] = None,
) -> None:
    """Forward each event to the matching sink callback."""
    for ev in events:
        if isinstance(ev, VertexMarked):
            if presentation is not None:
                presentation.on_vertex_marked(ev.vertex, ev.role, ev.component)
        elif isinstance(ev, EdgeMarked):
            if presentation is not None:
                presentation.on_edge_marked(ev.edge, ev.role, ev.component)
        elif results is None:
            continue
        elif isinstance(ev, TreeEntryAdded):
            results.on_tree_entry_added(ev.record, ev.sequence_number)
        elif isinstance(ev, PathFound):
            results.on_path_found(list(ev.records), ev.total_cost, ev.hop_count)
        elif isinstance(ev, ComponentFinalized):
            results.on_component_finalized(ev.index, list(ev.vertices), list(ev.edges))
        elif isinstance(ev, RunFinished):
            results.on_run_finished(ev.reason, ev.stats)
        else:
            raise TypeError(f"Unknown event type: {type(ev).__name__}")
