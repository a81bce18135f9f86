"""
controller.py — Step-by-Step Run Controller
============================================
The RunController is the ONLY object outer tooling drives during a run.
It owns one EngineState, executes exactly one named step per call, and
forwards every notification the step produced to the attached sinks.

State machine:
    IDLE     →  start(config)  →  RUNNING
    RUNNING  →  step()         →  RUNNING | FINISHED
    FINISHED →  step()         →  AlreadyTerminatedError
    any      →  reset()        →  IDLE
    any      →  start(config)  →  RUNNING   (previous run discarded)

Thread safety:
  This class is NOT thread-safe.  Each step is atomic with respect to the
  caller, which is all a cooperative stepper needs; the HTTP layer keeps
  one controller per session.  The graph is only ever read, so several
  controllers may share one.
"""

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Tuple

from algorithms.record import TraversalRecord
from engine.events import Event
from engine.machine import STEP_COMMENTS, advance
from engine.reconstruct import partition_components
from engine.sinks import PresentationSink, ResultsSink, dispatch
from engine.state import (
    Component,
    EngineState,
    RunConfig,
    RunStats,
    StepName,
    TerminationReason,
)
from errors import AlreadyTerminatedError, NotStartedError
from graph.provider import GraphProvider

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# States
# ---------------------------------------------------------------------------
class ControllerState(Enum):
    IDLE     = "idle"
    RUNNING  = "running"
    FINISHED = "finished"


# ---------------------------------------------------------------------------
# StepResult — what one step() call hands back
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class StepResult:
    step_number: int                        # 0-based
    step:        StepName                   # the step that just ran
    next_step:   StepName
    explanation: str
    events:      Tuple[Event, ...]
    is_final:    bool
    visiting:    Optional[TraversalRecord] = None

    @property
    def comment(self) -> str:
        return STEP_COMMENTS.get(self.step, "")

    def to_dict(self) -> dict:
        return {
            "step_number": self.step_number,
            "step":        self.step.value,
            "next_step":   self.next_step.value,
            "comment":     self.comment,
            "explanation": self.explanation,
            "is_final":    self.is_final,
            "visiting":    self.visiting.to_dict() if self.visiting else None,
        }


StepPredicate = Callable[[StepResult], bool]


# ---------------------------------------------------------------------------
# Breakpoint helpers for run_until()
# ---------------------------------------------------------------------------
def stop_at_step(name: StepName) -> StepPredicate:
    """Break right after a step named `name` has run."""
    return lambda result: result.step is name


def stop_when_visiting(vertex: int) -> StepPredicate:
    """Break once `vertex` has been removed from the frontier."""
    return lambda result: (
        result.step is StepName.GET_PLACE_FROM_LDV
        and result.visiting is not None
        and result.visiting.vertex == vertex
    )


# ---------------------------------------------------------------------------
# RunController
# ---------------------------------------------------------------------------
class RunController:
    """
    Attributes:
        graph        : read-only GraphProvider shared by every run.
        presentation : optional PresentationSink fed after each step.
        results      : optional ResultsSink fed after each step.
        state        : current ControllerState.
        step_count   : number of steps executed in the current run.
    """

    def __init__(
        self,
        graph: GraphProvider,
        presentation: Optional[PresentationSink] = None,
        results: Optional[ResultsSink] = None,
        rng: Optional[random.Random] = None,
    ):
        self.graph:        GraphProvider              = graph
        self.presentation: Optional[PresentationSink] = presentation
        self.results:      Optional[ResultsSink]      = results
        self.state:        ControllerState            = ControllerState.IDLE
        self.step_count:   int                        = 0

        self._rng:    Optional[random.Random] = rng
        self._engine: Optional[EngineState]   = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def start(self, config: RunConfig) -> None:
        """Validate `config` and set up a fresh run at step START."""
        info = config.validate(self.graph)
        self._engine    = EngineState.fresh(self.graph, config, info, self._rng)
        self.step_count = 0
        self.state      = ControllerState.RUNNING
        logger.info(
            "Starting %s from #%d (end=%s, mode=%s)",
            info.label, config.start, config.end, config.stopping.value,
        )

    def reset(self) -> None:
        """Back to IDLE; sinks stay attached, caller must start() again."""
        self._engine    = None
        self.step_count = 0
        self.state      = ControllerState.IDLE

    # ------------------------------------------------------------------
    # Stepping
    # ------------------------------------------------------------------
    def step(self) -> StepResult:
        """Execute exactly one named step and notify the sinks."""
        engine = self._require_engine()
        if engine.is_done:
            raise AlreadyTerminatedError("Run already finished; call reset() or start()")

        ran = engine.step
        transition = advance(engine)
        result = StepResult(
            step_number=self.step_count,
            step=ran,
            next_step=transition.next_step,
            explanation=transition.explanation,
            events=transition.events,
            is_final=engine.is_done,
            visiting=engine.visiting,
        )
        self.step_count += 1
        logger.debug("step %d %s: %s", result.step_number, ran.value, result.explanation)

        dispatch(transition.events, self.presentation, self.results)

        if result.is_final:
            self.state = ControllerState.FINISHED
            logger.info(
                "%s finished after %d steps: %s",
                engine.info.label, self.step_count, engine.reason.value,
            )
        return result

    def is_done(self) -> bool:
        return self._engine is not None and self._engine.is_done

    def run_to_completion(self, max_steps: Optional[int] = None) -> List[StepResult]:
        """Step until DONE, or until `max_steps` steps have run."""
        return self.run_until(lambda result: False, max_steps)

    def run_until(self, predicate: StepPredicate, max_steps: Optional[int] = None) -> List[StepResult]:
        """
        Step until `predicate(result)` is true for the step just taken, the
        run finishes, or `max_steps` steps have been taken.  Returns every
        StepResult produced by this call.
        """
        self._require_engine()
        taken: List[StepResult] = []
        while not self.is_done():
            if max_steps is not None and len(taken) >= max_steps:
                break
            result = self.step()
            taken.append(result)
            if predicate(result):
                break
        return taken

    # ------------------------------------------------------------------
    # Read-only accessors
    # ------------------------------------------------------------------
    @property
    def engine(self) -> Optional[EngineState]:
        return self._engine

    @property
    def config(self) -> Optional[RunConfig]:
        return self._engine.config if self._engine else None

    @property
    def stats(self) -> RunStats:
        return self._require_engine().stats.snapshot()

    def frontier_entries(self) -> List[TraversalRecord]:
        return self._require_engine().frontier.entries()

    @property
    def path(self) -> List[TraversalRecord]:
        return list(self._require_engine().path)

    @property
    def path_cost(self) -> float:
        return self._require_engine().path_cost

    @property
    def history(self) -> List[TraversalRecord]:
        return list(self._require_engine().history)

    @property
    def components(self) -> List[Component]:
        """Finalised components; for a single-tree run, its one tree so far."""
        engine = self._require_engine()
        if engine.find_all:
            return list(engine.components)
        return partition_components(engine.history)

    @property
    def termination_reason(self) -> TerminationReason:
        return self._require_engine().reason

    @property
    def current_step(self) -> Optional[StepName]:
        """Name of the step the next step() call will execute."""
        return self._engine.step if self._engine else None

    @property
    def visiting(self) -> Optional[TraversalRecord]:
        return self._require_engine().visiting

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------
    def _require_engine(self) -> EngineState:
        if self._engine is None:
            raise NotStartedError("No run in progress; call start() first")
        return self._engine
