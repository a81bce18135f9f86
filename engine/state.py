"""
state.py — Run Configuration & Engine State
============================================
Everything one run owns.  A RunController builds a fresh EngineState on
start(), the step transitions are its only writers, and reset() throws it
away.  Nothing here is module-level: two controllers never share state,
only (read-only) the graph.
"""

import random
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, List, NamedTuple, Optional, Tuple, Union

from algorithms import AlgoInfo, Algorithm, GEOMETRIC_HEURISTICS, HEURISTICS, PolicyContext, get_algorithm, make_frontier
from algorithms.frontier import Frontier
from algorithms.policy import zero
from algorithms.record import TraversalRecord
from errors import InvalidConfigurationError
from graph.provider import GraphProvider


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class StoppingMode(Enum):
    STOP_AT_END         = "StopAtEnd"
    FIND_REACHABLE      = "FindReachable"
    FIND_ALL_COMPONENTS = "FindAllComponents"

    @classmethod
    def parse(cls, value: Union[str, "StoppingMode"]) -> "StoppingMode":
        if isinstance(value, cls):
            return value
        text = str(value).strip()
        if text == "FindAll":
            return cls.FIND_ALL_COMPONENTS
        for mode in cls:
            if text in (mode.value, mode.name) or text.lower() == mode.value.lower():
                return mode
        raise InvalidConfigurationError(f"Unknown stopping mode: {value!r}")


class TerminationReason(Enum):
    STILL_RUNNING        = "StillRunning"
    FOUND_PATH           = "FoundPath"
    FOUND_COMPONENT      = "FoundComponent"
    FOUND_ALL_COMPONENTS = "FoundAllComponents"
    SEARCH_FAILED        = "SearchFailed"


class StepName(Enum):
    START                        = "START"
    CHECK_ALL_COMPONENTS_DONE    = "checkAllComponentsDone"
    CHECK_COMPONENT_DONE         = "checkComponentDone"
    CHECK_END_ADDED              = "checkEndAdded"
    CHECK_LDV_EMPTY              = "checkLDVEmpty"
    LDV_EMPTY                    = "LDVEmpty"
    GET_PLACE_FROM_LDV           = "getPlaceFromLDV"
    CHECK_ADDED                  = "checkAdded"
    WAS_ADDED                    = "wasAdded"
    WAS_NOT_ADDED                = "wasNotAdded"
    CHECK_NEIGHBORS_LOOP_TOP     = "checkNeighborsLoopTop"
    CHECK_NEIGHBORS_LOOP_IF      = "checkNeighborsLoopIf"
    CHECK_NEIGHBORS_LOOP_IF_TRUE = "checkNeighborsLoopIfTrue"
    CHECK_NEIGHBORS_LOOP_IF_FALSE = "checkNeighborsLoopIfFalse"
    FINALIZE_COMPONENT           = "finalizeComponent"
    CHECK_ANY_UNADDED            = "checkAnyUnadded"
    START_NEW_COMPONENT          = "startNewComponent"
    DONE_TO_TRUE                 = "doneToTrue"
    CLEANUP                      = "cleanup"
    DONE                         = "DONE"


# ---------------------------------------------------------------------------
# Run configuration
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class RunConfig:
    """
    Passed once to RunController.start().

    Attributes:
        algorithm : which capability record to run.
        start     : start vertex.
        end       : end vertex; required for StopAtEnd and for A*.
        stopping  : StopAtEnd / FindReachable / FindAllComponents.
        heuristic : key into algorithms.policy.HEURISTICS (A* only).
        seed      : seed for the RFS random source.
    """

    algorithm: Algorithm
    start:     int
    end:       Optional[int] = None
    stopping:  StoppingMode  = StoppingMode.STOP_AT_END
    heuristic: str           = "haversine"
    seed:      Optional[int] = None

    def validate(self, graph: GraphProvider) -> AlgoInfo:
        """Return the algorithm's AlgoInfo or raise InvalidConfigurationError."""
        info = get_algorithm(self.algorithm)
        if info is None:
            raise InvalidConfigurationError(f"Unknown algorithm: {self.algorithm!r}")

        n = graph.vertex_count()
        if not _is_vertex(self.start, n):
            raise InvalidConfigurationError(f"Start vertex {self.start!r} out of range 0..{n - 1}")

        needs_end = self.stopping is StoppingMode.STOP_AT_END or info.requires_end
        if needs_end:
            if self.end is None:
                raise InvalidConfigurationError(f"{info.label} with {self.stopping.value} needs an end vertex")
            if not _is_vertex(self.end, n):
                raise InvalidConfigurationError(f"End vertex {self.end!r} out of range 0..{n - 1}")

        if info.stop_at_end_only and self.stopping is not StoppingMode.STOP_AT_END:
            raise InvalidConfigurationError(f"{info.label} supports only StopAtEnd")
        if self.stopping is StoppingMode.FIND_ALL_COMPONENTS and not info.supports_find_all:
            raise InvalidConfigurationError(f"{info.label} does not support FindAllComponents")

        if info.uses_heuristic and self.heuristic not in HEURISTICS:
            raise InvalidConfigurationError(
                f"Unknown heuristic {self.heuristic!r}; choose from {sorted(HEURISTICS)}"
            )
        if (info.uses_heuristic and self.heuristic in GEOMETRIC_HEURISTICS
                and not graph.has_geometric_weights()):
            raise InvalidConfigurationError(
                f"Heuristic {self.heuristic!r} assumes great-circle edge weights, "
                "which this graph does not have; use 'zero'"
            )
        return info

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RunConfig":
        """Parse the JSON shape used by the HTTP API."""
        info = get_algorithm(data.get("algorithm", ""))
        if info is None:
            raise InvalidConfigurationError(f"Unknown algorithm: {data.get('algorithm')!r}")
        try:
            start = int(data["start"])
            end   = int(data["end"]) if data.get("end") is not None else None
            seed  = int(data["seed"]) if data.get("seed") is not None else None
        except KeyError:
            raise InvalidConfigurationError("Missing start vertex") from None
        except (TypeError, ValueError) as exc:
            raise InvalidConfigurationError(f"Bad vertex or seed value: {exc}") from None
        return cls(
            algorithm=info.algorithm,
            start=start,
            end=end,
            stopping=StoppingMode.parse(data.get("stopping", StoppingMode.STOP_AT_END.value)),
            heuristic=str(data.get("heuristic", "haversine")),
            seed=seed,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "algorithm": self.algorithm.value,
            "start":     self.start,
            "end":       self.end,
            "stopping":  self.stopping.value,
            "heuristic": self.heuristic,
            "seed":      self.seed,
        }


def _is_vertex(v: Any, n: int) -> bool:
    return isinstance(v, int) and not isinstance(v, bool) and 0 <= v < n


# ---------------------------------------------------------------------------
# Counters & snapshots
# ---------------------------------------------------------------------------
@dataclass
class RunStats:
    tree_vertices:          int   = 0
    tree_edges:             int   = 0
    undiscovered_vertices:  int   = 0
    undiscovered_edges:     int   = 0
    discarded_on_discovery: int   = 0
    discarded_on_removal:   int   = 0
    components:             int   = 1
    total_tree_cost:        float = 0.0

    def snapshot(self) -> "RunStats":
        return RunStats(**asdict(self))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Component:
    index:    int
    vertices: Tuple[int, ...]
    edges:    Tuple[int, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {"index": self.index, "vertices": list(self.vertices), "edges": list(self.edges)}


class PendingNeighbor(NamedTuple):
    to:  int
    via: int


# ---------------------------------------------------------------------------
# EngineState
# ---------------------------------------------------------------------------
@dataclass
class EngineState:
    """
    Attributes:
        graph              : read-only provider.
        info               : capability record of the algorithm being run.
        config             : the RunConfig this state was built from.
        frontier           : discovered-but-unresolved records (the LDV).
        ctx                : policy context (graph, end, heuristic).
        added_v            : vertex is in the tree/forest.
        discovered_v       : vertex has been seen.
        discovered_e       : edge has been seen.
        visiting           : last record removed from the frontier.
        neighbors_to_loop  : worklist built when `visiting` was added.
        next_neighbor      : entry currently being examined.
        history            : tree records in the order they were added.
        component_vertices : vertices of the component being built.
        component_edges    : edges of the component being built.
        components         : finalised component snapshots.
        component_index    : 0-based index of the current component.
        next_unadded       : scan cursor for the next component's root.
        all_components_done: FindAllComponents loop flag.
        path               : start→end records once a path is found.
        path_cost          : total weight of `path`.
        step               : name of the next step to execute.
        reason             : why the run stopped.
    """

    graph:               GraphProvider
    info:                AlgoInfo
    config:              RunConfig
    frontier:            Frontier
    ctx:                 PolicyContext
    added_v:             List[bool]                = field(default_factory=list)
    discovered_v:        List[bool]                = field(default_factory=list)
    discovered_e:        List[bool]                = field(default_factory=list)
    visiting:            Optional[TraversalRecord] = None
    neighbors_to_loop:   List[PendingNeighbor]     = field(default_factory=list)
    next_neighbor:       Optional[PendingNeighbor] = None
    history:             List[TraversalRecord]     = field(default_factory=list)
    component_vertices:  List[int]                 = field(default_factory=list)
    component_edges:     List[int]                 = field(default_factory=list)
    components:          List[Component]           = field(default_factory=list)
    component_index:     int                       = 0
    next_unadded:        int                       = 0
    all_components_done: bool                      = False
    path:                List[TraversalRecord]     = field(default_factory=list)
    path_cost:           float                     = 0.0
    stats:               RunStats                  = field(default_factory=RunStats)
    step:                StepName                  = StepName.START
    reason:              TerminationReason         = TerminationReason.STILL_RUNNING

    @classmethod
    def fresh(
        cls,
        graph: GraphProvider,
        config: RunConfig,
        info: AlgoInfo,
        rng: Optional[random.Random] = None,
    ) -> "EngineState":
        if rng is None:
            rng = random.Random(config.seed)
        heuristic = HEURISTICS[config.heuristic] if info.uses_heuristic else zero
        return cls(
            graph=graph,
            info=info,
            config=config,
            frontier=make_frontier(info.frontier_kind, rng),
            ctx=PolicyContext(graph=graph, end=config.end, heuristic=heuristic),
        )

    # -- convenience views --
    @property
    def start(self) -> int:
        return self.config.start

    @property
    def end(self) -> Optional[int]:
        return self.config.end

    @property
    def stopping(self) -> StoppingMode:
        return self.config.stopping

    @property
    def stop_at_end(self) -> bool:
        return self.config.stopping is StoppingMode.STOP_AT_END

    @property
    def find_all(self) -> bool:
        return self.config.stopping is StoppingMode.FIND_ALL_COMPONENTS

    @property
    def is_done(self) -> bool:
        return self.step is StepName.DONE
