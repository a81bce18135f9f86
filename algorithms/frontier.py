"""
frontier.py — List of Discovered Vertices
==========================================
The frontier holds TraversalRecords for vertices that have been
discovered but not yet resolved.  The ONLY difference between the
traversal disciplines is the order in which records come back out:

    QueueFrontier     FIFO            breadth-first
    StackFrontier     LIFO            depth-first
    RandomFrontier    uniform pick    random-first   (injected random.Random)
    PriorityFrontier  min value       Dijkstra / A* / Prim

Duplicate destinations are allowed to coexist; the state machine
discards stale ones when they are removed.  `contains_vertex` exists for
presentation only and never influences which record is removed.
"""

import heapq
import itertools
import random
from collections import deque
from enum import Enum
from typing import Deque, List, Optional, Tuple

from algorithms.record import TraversalRecord
from errors import EmptyFrontierError


class FrontierKind(Enum):
    QUEUE    = "queue"
    STACK    = "stack"
    RANDOM   = "random"
    PRIORITY = "priority"


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Frontier:
    """Common contract; subclasses implement the storage discipline."""

    kind:         FrontierKind
    display_name: str = "Frontier"

    def insert(self, record: TraversalRecord) -> None:
        raise NotImplementedError

    def remove_next(self) -> TraversalRecord:
        if self.is_empty():
            raise EmptyFrontierError(f"remove_next() called on empty {self.display_name}")
        return self._remove()

    def _remove(self) -> TraversalRecord:
        raise NotImplementedError

    def entries(self) -> List[TraversalRecord]:
        """Snapshot of held records (for display); priority frontiers list them in removal order."""
        raise NotImplementedError

    def is_empty(self) -> bool:
        return len(self) == 0

    def contains_vertex(self, vertex: int) -> bool:
        return any(r.vertex == vertex for r in self.entries())

    def __len__(self) -> int:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(size={len(self)})"


# ---------------------------------------------------------------------------
# Linear disciplines
# ---------------------------------------------------------------------------
class QueueFrontier(Frontier):
    kind         = FrontierKind.QUEUE
    display_name = "BFS Discovered Queue"

    def __init__(self):
        self._items: Deque[TraversalRecord] = deque()

    def insert(self, record: TraversalRecord) -> None:
        self._items.append(record)

    def _remove(self) -> TraversalRecord:
        return self._items.popleft()

    def entries(self) -> List[TraversalRecord]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)


class StackFrontier(Frontier):
    kind         = FrontierKind.STACK
    display_name = "DFS Discovered Stack"

    def __init__(self):
        self._items: List[TraversalRecord] = []

    def insert(self, record: TraversalRecord) -> None:
        self._items.append(record)

    def _remove(self) -> TraversalRecord:
        return self._items.pop()

    def entries(self) -> List[TraversalRecord]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)


class RandomFrontier(Frontier):
    kind         = FrontierKind.RANDOM
    display_name = "RFS Discovered List"

    def __init__(self, rng: Optional[random.Random] = None):
        self._items: List[TraversalRecord] = []
        self._rng:   random.Random         = rng if rng is not None else random.Random()

    def insert(self, record: TraversalRecord) -> None:
        self._items.append(record)

    def _remove(self) -> TraversalRecord:
        # swap-with-last keeps removal O(1); storage order is display-only
        idx = self._rng.randrange(len(self._items))
        self._items[idx], self._items[-1] = self._items[-1], self._items[idx]
        return self._items.pop()

    def entries(self) -> List[TraversalRecord]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)


# ---------------------------------------------------------------------------
# Priority queue
# ---------------------------------------------------------------------------
class PriorityFrontier(Frontier):
    """
    Min-heap on record.value.  Equal values come out in insertion order
    (the counter is the tie-breaker), so runs are deterministic.
    """

    kind         = FrontierKind.PRIORITY
    display_name = "Priority Queue"

    def __init__(self):
        self._heap:    List[Tuple[float, int, TraversalRecord]] = []
        self._counter = itertools.count()

    def insert(self, record: TraversalRecord) -> None:
        heapq.heappush(self._heap, (record.value, next(self._counter), record))

    def _remove(self) -> TraversalRecord:
        return heapq.heappop(self._heap)[2]

    def peek(self) -> Optional[TraversalRecord]:
        return self._heap[0][2] if self._heap else None

    def entries(self) -> List[TraversalRecord]:
        return [r for _, _, r in sorted(self._heap)]

    def __len__(self) -> int:
        return len(self._heap)


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------
def make_frontier(kind: FrontierKind, rng: Optional[random.Random] = None) -> Frontier:
    if kind is FrontierKind.QUEUE:
        return QueueFrontier()
    if kind is FrontierKind.STACK:
        return StackFrontier()
    if kind is FrontierKind.RANDOM:
        return RandomFrontier(rng)
    if kind is FrontierKind.PRIORITY:
        return PriorityFrontier()
    raise ValueError(f"Unknown frontier kind: {kind!r}")
