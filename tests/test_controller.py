"""
Unit tests for RunController lifecycle, configuration errors and breakpoints.
"""

import random

import pytest

from algorithms import Algorithm
from engine import (
    ControllerState,
    PresentationSink,
    ResultsSink,
    RunConfig,
    RunController,
    StepName,
    StoppingMode,
    TerminationReason,
    stop_at_step,
    stop_when_visiting,
)
from errors import (
    AlreadyTerminatedError,
    InvalidConfigurationError,
    NotStartedError,
    TraversalError,
)


class CountingSink(PresentationSink, ResultsSink):
    def __init__(self):
        self.vertex_marks = 0
        self.edge_marks = 0
        self.finished = []

    def on_vertex_marked(self, vertex, role, component=None):
        self.vertex_marks += 1

    def on_edge_marked(self, edge, role, component=None):
        self.edge_marks += 1

    def on_run_finished(self, reason, stats):
        self.finished.append(reason)


def test_step_before_start_raises(cycle4):
    ctl = RunController(cycle4)
    assert ctl.state is ControllerState.IDLE
    assert ctl.current_step is None
    with pytest.raises(NotStartedError):
        ctl.step()
    with pytest.raises(NotStartedError):
        _ = ctl.stats


def test_step_after_done_raises(cycle4):
    ctl = RunController(cycle4)
    ctl.start(RunConfig(Algorithm.BFS, 0, end=2))
    ctl.run_to_completion()
    assert ctl.is_done()
    assert ctl.state is ControllerState.FINISHED
    assert ctl.current_step is StepName.DONE
    with pytest.raises(AlreadyTerminatedError):
        ctl.step()


def test_reset_returns_to_idle_and_keeps_sinks(cycle4):
    sink = CountingSink()
    ctl = RunController(cycle4, presentation=sink, results=sink)
    ctl.start(RunConfig(Algorithm.BFS, 0, end=2))
    ctl.step()
    ctl.reset()

    assert ctl.state is ControllerState.IDLE
    assert not ctl.is_done()
    assert ctl.step_count == 0
    with pytest.raises(NotStartedError):
        ctl.step()

    ctl.start(RunConfig(Algorithm.BFS, 0, end=2))
    ctl.run_to_completion()
    assert sink.finished == [TerminationReason.FOUND_PATH]
    assert sink.vertex_marks > 0 and sink.edge_marks > 0


def test_start_again_discards_previous_run(cycle4):
    ctl = RunController(cycle4)
    ctl.start(RunConfig(Algorithm.BFS, 0, end=2))
    ctl.run_to_completion(max_steps=5)
    ctl.start(RunConfig(Algorithm.DFS, 1, end=3))
    assert ctl.current_step is StepName.START
    assert ctl.step_count == 0
    assert ctl.config.algorithm is Algorithm.DFS


@pytest.mark.parametrize("config", [
    RunConfig(Algorithm.BFS, 7, end=1),                                             # start out of range
    RunConfig(Algorithm.BFS, -1, end=1),
    RunConfig(Algorithm.BFS, 0),                                                    # StopAtEnd without end
    RunConfig(Algorithm.BFS, 0, end=9),
    RunConfig(Algorithm.ASTAR, 0, end=2, stopping=StoppingMode.FIND_REACHABLE),      # A* is StopAtEnd only
    RunConfig(Algorithm.ASTAR, 0, end=2, heuristic="manhattan"),
    RunConfig(Algorithm.ASTAR, 0, end=2),                                           # haversine on unit weights
    RunConfig(Algorithm.DIJKSTRA, 0, stopping=StoppingMode.FIND_ALL_COMPONENTS),
])
def test_invalid_configurations(cycle4, config):
    ctl = RunController(cycle4)
    with pytest.raises(InvalidConfigurationError):
        ctl.start(config)
    assert ctl.state is ControllerState.IDLE


def test_error_taxonomy():
    assert issubclass(InvalidConfigurationError, ValueError)
    assert issubclass(AlreadyTerminatedError, RuntimeError)
    for exc in (InvalidConfigurationError, AlreadyTerminatedError, NotStartedError):
        assert issubclass(exc, TraversalError)


def test_heuristic_name_ignored_for_non_astar(cycle4):
    ctl = RunController(cycle4)
    ctl.start(RunConfig(Algorithm.DIJKSTRA, 0, end=2, heuristic="nonsense"))
    ctl.run_to_completion()
    assert ctl.termination_reason is TerminationReason.FOUND_PATH


def test_find_reachable_needs_no_end(cycle4):
    ctl = RunController(cycle4)
    ctl.start(RunConfig(Algorithm.PRIM, 2, stopping=StoppingMode.FIND_REACHABLE))
    ctl.run_to_completion()
    assert ctl.termination_reason is TerminationReason.FOUND_COMPONENT
    assert len(ctl.components) == 1
    assert ctl.components[0].vertices[0] == 2


def test_step_results_are_numbered(cycle4):
    ctl = RunController(cycle4)
    ctl.start(RunConfig(Algorithm.BFS, 0, end=2))
    results = ctl.run_to_completion()

    assert [r.step_number for r in results] == list(range(len(results)))
    assert results[0].step is StepName.START
    assert [r.is_final for r in results].count(True) == 1
    assert results[-1].is_final
    assert all(r.next_step is results[i + 1].step for i, r in enumerate(results[:-1]))


def test_max_steps_limits_progress(cycle4):
    ctl = RunController(cycle4)
    ctl.start(RunConfig(Algorithm.BFS, 0, end=2))
    assert len(ctl.run_to_completion(max_steps=3)) == 3
    assert not ctl.is_done()
    assert ctl.termination_reason is TerminationReason.STILL_RUNNING


def test_breakpoint_at_step_name(cycle4):
    ctl = RunController(cycle4)
    ctl.start(RunConfig(Algorithm.DIJKSTRA, 0, end=2))
    taken = ctl.run_until(stop_at_step(StepName.WAS_NOT_ADDED))
    assert taken[-1].step is StepName.WAS_NOT_ADDED
    assert ctl.current_step is StepName.CHECK_NEIGHBORS_LOOP_TOP
    assert ctl.stats.tree_vertices == 1


def test_breakpoint_when_visiting_vertex(cycle4):
    ctl = RunController(cycle4)
    ctl.start(RunConfig(Algorithm.BFS, 0, stopping=StoppingMode.FIND_REACHABLE))
    ctl.run_until(stop_when_visiting(1))
    assert ctl.visiting.vertex == 1
    assert ctl.current_step is StepName.CHECK_ADDED


def test_frontier_entries_and_path_accessors(weighted_diamond):
    ctl = RunController(weighted_diamond)
    ctl.start(RunConfig(Algorithm.DIJKSTRA, 0, end=3))
    ctl.run_until(stop_at_step(StepName.CHECK_NEIGHBORS_LOOP_IF_FALSE))
    assert [r.vertex for r in ctl.frontier_entries()] == [2]

    ctl.run_to_completion()
    assert [r.vertex for r in ctl.path] == [1, 3]
    assert ctl.path_cost == 2.0
    assert ctl.stats.total_tree_cost == 2.0


def test_injected_rng_drives_random_frontier(cycle4):
    orders = []
    for _ in range(2):
        ctl = RunController(cycle4, rng=random.Random(42))
        ctl.start(RunConfig(Algorithm.RFS, 0, stopping=StoppingMode.FIND_REACHABLE))
        ctl.run_to_completion()
        orders.append([r.vertex for r in ctl.history])
    assert orders[0] == orders[1]


def test_shared_graph_between_controllers(cycle4):
    a, b = RunController(cycle4), RunController(cycle4)
    a.start(RunConfig(Algorithm.BFS, 0, end=2))
    b.start(RunConfig(Algorithm.DFS, 0, end=2))
    a.step()
    b.run_to_completion()
    assert not a.is_done() and b.is_done()
    a.run_to_completion()
    assert a.termination_reason is TerminationReason.FOUND_PATH
