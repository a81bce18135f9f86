"""
events.py — Step Notifications
===============================
Step transitions never talk to a renderer or a results table directly.
Each one returns a list of small frozen event objects describing what
happened; `engine.sinks.dispatch` forwards them to whichever
PresentationSink / ResultsSink the caller attached.

Design decisions:
  - Events are plain frozen dataclasses, so two runs can be compared
    with `==` (the determinism tests rely on this).
  - `EventBuilder` is the mutable scratch-pad a transition fills in;
    `build()` freezes it into a tuple.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple, TYPE_CHECKING

from algorithms.record import TraversalRecord

if TYPE_CHECKING:
    from engine.state import RunStats, TerminationReason


class MarkRole(Enum):
    VISITING               = "visiting"
    DISCOVERED             = "discovered"
    ADDED_TO_TREE          = "addedToTree"
    ADDED_EARLIER          = "addedEarlier"           # settled, duplicates still pending
    DISCARDED_ON_DISCOVERY = "discardedOnDiscovery"
    DISCARDED_ON_REMOVAL   = "discardedOnRemoval"
    START_VERTEX           = "startVertex"
    END_VERTEX             = "endVertex"
    COMPLETED_COMPONENT    = "completedComponent"
    FOUND_PATH             = "foundPath"


# ---------------------------------------------------------------------------
# Event types
# ---------------------------------------------------------------------------
class Event:
    """Marker base class."""


@dataclass(frozen=True)
class VertexMarked(Event):
    vertex:    int
    role:      MarkRole
    component: Optional[int] = None


@dataclass(frozen=True)
class EdgeMarked(Event):
    edge:      int
    role:      MarkRole
    component: Optional[int] = None


@dataclass(frozen=True)
class TreeEntryAdded(Event):
    record:          TraversalRecord
    sequence_number: int


@dataclass(frozen=True)
class PathFound(Event):
    records:    Tuple[TraversalRecord, ...]
    total_cost: float
    hop_count:  int


@dataclass(frozen=True)
class ComponentFinalized(Event):
    index:    int
    vertices: Tuple[int, ...]
    edges:    Tuple[int, ...]


@dataclass(frozen=True)
class RunFinished(Event):
    reason: "TerminationReason"
    stats:  "RunStats"


# ---------------------------------------------------------------------------
# Builder used inside transitions
# ---------------------------------------------------------------------------
class EventBuilder:
    """
    Usage inside a transition:
        eb = EventBuilder()
        eb.vertex(3, MarkRole.VISITING)
        eb.edge(7, MarkRole.VISITING)
        return Transition(StepName.CHECK_ADDED, eb.build(), "Removed #3 …")
    """

    def __init__(self):
        self._events: List[Event] = []

    def vertex(self, vertex: int, role: MarkRole, component: Optional[int] = None) -> None:
        self._events.append(VertexMarked(vertex, role, component))

    def edge(self, edge: Optional[int], role: MarkRole, component: Optional[int] = None) -> None:
        if edge is not None:
            self._events.append(EdgeMarked(edge, role, component))

    def add(self, event: Event) -> None:
        self._events.append(event)

    def build(self) -> Tuple[Event, ...]:
        return tuple(self._events)
