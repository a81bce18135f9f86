"""
engine/
-------
Step state machine, run control & recording layer.

    from engine import RunController, RunConfig, StoppingMode, Recorder, compare
"""

from engine.state import (
    Component,
    EngineState,
    RunConfig,
    RunStats,
    StepName,
    StoppingMode,
    TerminationReason,
)
from engine.events import MarkRole
from engine.sinks import PresentationSink, ResultsSink, dispatch
from engine.machine import STEP_COMMENTS, TRANSITIONS, Transition
from engine.reconstruct import partition_components, path_cost, reconstruct_path
from engine.controller import (
    ControllerState,
    RunController,
    StepResult,
    stop_at_step,
    stop_when_visiting,
)
from engine.recorder import Recorder, RunMetrics, ComparisonResult, compare

__all__ = [
    "Component",
    "EngineState",
    "RunConfig",
    "RunStats",
    "StepName",
    "StoppingMode",
    "TerminationReason",
    "MarkRole",
    "PresentationSink",
    "ResultsSink",
    "dispatch",
    "STEP_COMMENTS",
    "TRANSITIONS",
    "Transition",
    "partition_components",
    "path_cost",
    "reconstruct_path",
    "ControllerState",
    "RunController",
    "StepResult",
    "stop_at_step",
    "stop_when_visiting",
    "Recorder",
    "RunMetrics",
    "ComparisonResult",
    "compare",
]
