"""
Step-sequence tests for the shared state machine on small hand-built graphs.
"""

import pytest

from algorithms import Algorithm
from engine import EngineState, Recorder, RunConfig, StepName, StoppingMode, TerminationReason
from engine.events import MarkRole, PathFound, RunFinished, TreeEntryAdded
from engine.machine import STEP_COMMENTS, TRANSITIONS, advance
from errors import EmptyFrontierError


def record_run(graph, algorithm, start, end=None, stopping=StoppingMode.STOP_AT_END, **kw):
    rec = Recorder()
    rec.start(graph, RunConfig(algorithm, start, end=end, stopping=stopping, **kw))
    rec.run_to_completion()
    return rec


def test_every_step_has_a_transition_and_comment():
    for name in StepName:
        if name is StepName.DONE:
            continue
        assert name in TRANSITIONS
        assert STEP_COMMENTS[name]


def test_bfs_stop_at_end_on_cycle(cycle4):
    rec = record_run(cycle4, Algorithm.BFS, 0, end=2)

    assert rec.reason is TerminationReason.FOUND_PATH
    assert [r.vertex for r in rec.path] == [3, 2]
    assert [r.edge for r in rec.path] == [3, 2]
    assert rec.metrics.path_hops == 2
    assert rec.path_cost == 2.0
    assert rec.step_names[0] == "START"
    assert rec.step_names[-1] == "cleanup"


def test_dijkstra_find_reachable_distances_on_cycle(cycle4):
    rec = record_run(cycle4, Algorithm.DIJKSTRA, 0, stopping=StoppingMode.FIND_REACHABLE)

    values = {r.vertex: r.value for r in rec.tree}
    assert values == {0: 0.0, 1: 1.0, 2: 2.0, 3: 1.0}
    assert rec.reason is TerminationReason.FOUND_COMPONENT

    stats = rec.final_stats
    assert stats.tree_vertices == 4
    assert stats.tree_edges == 3
    assert stats.total_tree_cost == 3.0
    assert stats.undiscovered_vertices == 0
    assert stats.undiscovered_edges == 0
    assert stats.discarded_on_discovery == 1
    assert stats.discarded_on_removal == 1
    assert stats.components == 1


def test_bfs_find_all_two_triangles(two_triangles):
    rec = record_run(two_triangles, Algorithm.BFS, 0, stopping=StoppingMode.FIND_ALL_COMPONENTS)

    assert rec.reason is TerminationReason.FOUND_ALL_COMPONENTS
    assert len(rec.components) == 2
    for comp in rec.components:
        assert len(comp.vertices) == 3
        assert len(comp.edges) == 2
    assert set(rec.components[0].vertices) == {0, 1, 2}
    assert set(rec.components[1].vertices) == {3, 4, 5}
    assert rec.final_stats.tree_edges == 4
    assert rec.final_stats.components == 2

    completed = [m for m in rec.marks if m[2] is MarkRole.COMPLETED_COMPONENT]
    assert {m[3] for m in completed} == {0, 1}

    names = rec.step_names
    assert names.count("finalizeComponent") == 2
    assert names.count("startNewComponent") == 1
    assert names.count("doneToTrue") == 1


def test_find_all_starting_mid_graph(two_triangles):
    rec = record_run(two_triangles, Algorithm.PRIM, 4, stopping=StoppingMode.FIND_ALL_COMPONENTS)
    assert set(rec.components[0].vertices) == {3, 4, 5}
    assert set(rec.components[1].vertices) == {0, 1, 2}


def test_isolated_start_search_fails_after_one_empty_check(isolated_start):
    rec = record_run(isolated_start, Algorithm.BFS, 0, end=2)

    assert rec.reason is TerminationReason.SEARCH_FAILED
    assert rec.step_names == [
        "START",
        "checkEndAdded",
        "checkLDVEmpty",
        "getPlaceFromLDV",
        "checkAdded",
        "wasNotAdded",
        "checkNeighborsLoopTop",
        "checkEndAdded",
        "checkLDVEmpty",
        "LDVEmpty",
        "cleanup",
    ]
    assert rec.path == []
    assert rec.steps[-1].is_final


def test_start_equals_end_finds_empty_path(cycle4):
    rec = record_run(cycle4, Algorithm.DFS, 1, end=1)
    assert rec.reason is TerminationReason.FOUND_PATH
    assert rec.path == []
    assert rec.path_cost == 0.0


def test_start_marks_end_and_discovers_start(cycle4):
    rec = Recorder()
    rec.start(cycle4, RunConfig(Algorithm.BFS, 0, end=2))
    first = rec.controller.step()

    assert first.step is StepName.START
    assert first.next_step is StepName.CHECK_END_ADDED
    assert rec.marks == [
        ("vertex", 2, MarkRole.END_VERTEX, None),
        ("vertex", 0, MarkRole.DISCOVERED, None),
    ]
    assert [r.vertex for r in rec.controller.frontier_entries()] == [0]


def test_neighbour_worklist_is_consumed_from_its_end(cycle4):
    rec = Recorder()
    rec.start(cycle4, RunConfig(Algorithm.DFS, 0, stopping=StoppingMode.FIND_REACHABLE))
    ctl = rec.controller
    ctl.run_until(lambda r: r.step is StepName.CHECK_NEIGHBORS_LOOP_TOP)

    engine = ctl.engine
    assert [(p.to, p.via) for p in engine.neighbors_to_loop] == [(1, 0), (3, 3)]
    ctl.step()
    assert engine.next_neighbor.to == 3


def test_arrival_edge_is_excluded(cycle4):
    rec = Recorder()
    rec.start(cycle4, RunConfig(Algorithm.BFS, 0, stopping=StoppingMode.FIND_REACHABLE))
    ctl = rec.controller
    # second vertex added is #3 via edge 3
    added = 0
    while added < 2:
        if ctl.step().step is StepName.WAS_NOT_ADDED:
            added += 1
    assert ctl.visiting.vertex == 3
    ctl.step()
    assert [(p.to, p.via) for p in ctl.engine.neighbors_to_loop] == [(2, 2)]


def test_stop_at_end_recolours_path_then_reverts(cycle4):
    rec = Recorder()
    rec.start(cycle4, RunConfig(Algorithm.BFS, 0, end=2))
    ctl = rec.controller

    ctl.run_until(lambda r: r.step is StepName.WAS_NOT_ADDED and r.visiting.vertex == 3)
    rec.marks.clear()
    ctl.step()  # checkNeighborsLoopTop
    assert ("edge", 3, MarkRole.ADDED_TO_TREE, None) in rec.marks
    assert ("vertex", 3, MarkRole.ADDED_TO_TREE, None) in rec.marks


def test_was_not_added_emits_tree_entry_with_sequence_number(cycle4):
    rec = Recorder()
    rec.start(cycle4, RunConfig(Algorithm.BFS, 0, stopping=StoppingMode.FIND_REACHABLE))
    results = rec.controller.run_to_completion()

    entries = [ev for r in results for ev in r.events if isinstance(ev, TreeEntryAdded)]
    assert [ev.sequence_number for ev in entries] == [0, 1, 2, 3]
    assert entries[0].record.is_start


def test_cleanup_events(weighted_diamond):
    rec = Recorder()
    rec.start(weighted_diamond, RunConfig(Algorithm.DIJKSTRA, 0, end=3))
    results = rec.controller.run_to_completion()
    last = results[-1]

    assert last.step is StepName.CLEANUP
    assert last.next_step is StepName.DONE
    found = [ev for ev in last.events if isinstance(ev, PathFound)]
    assert len(found) == 1
    assert found[0].total_cost == 2.0 and found[0].hop_count == 2
    assert isinstance(last.events[-1], RunFinished)
    assert last.events[-1].reason is TerminationReason.FOUND_PATH


def test_was_added_marks_vertex_and_edge_discarded_on_removal(cycle4):
    rec = record_run(cycle4, Algorithm.DIJKSTRA, 0, stopping=StoppingMode.FIND_REACHABLE)
    removal_marks = [m for m in rec.marks if m[2] is MarkRole.DISCARDED_ON_REMOVAL]
    assert removal_marks == [
        ("vertex", 2, MarkRole.DISCARDED_ON_REMOVAL, None),
        ("edge", 1, MarkRole.DISCARDED_ON_REMOVAL, None),
    ]
    assert not any(m[2] is MarkRole.ADDED_EARLIER for m in rec.marks)


def test_failed_removal_leaves_state_untouched(cycle4):
    config = RunConfig(Algorithm.DIJKSTRA, 0, stopping=StoppingMode.FIND_REACHABLE)
    state = EngineState.fresh(cycle4, config, config.validate(cycle4))
    while state.visiting is None:
        advance(state)
    while not state.frontier.is_empty():
        state.frontier.remove_next()
    state.step = StepName.GET_PLACE_FROM_LDV
    visiting = state.visiting
    stats = state.stats.snapshot()

    with pytest.raises(EmptyFrontierError):
        advance(state)

    assert state.step is StepName.GET_PLACE_FROM_LDV
    assert state.visiting is visiting
    assert state.stats == stats


def test_explanations_mention_frontier_name(cycle4):
    rec = record_run(cycle4, Algorithm.PRIM, 0, stopping=StoppingMode.FIND_REACHABLE)
    removed = [s.explanation for s in rec.steps if s.step is StepName.GET_PLACE_FROM_LDV]
    assert removed and all("Priority Queue" in text for text in removed)
    assert "Found all paths from #0" in rec.steps[-1].explanation


def test_find_all_cleanup_explanation(two_triangles):
    rec = record_run(two_triangles, Algorithm.DFS, 0, stopping=StoppingMode.FIND_ALL_COMPONENTS)
    assert rec.steps[-1].explanation.startswith("Found all 2 components")


@pytest.mark.parametrize("algorithm", [Algorithm.BFS, Algorithm.DFS, Algorithm.RFS, Algorithm.PRIM])
def test_find_all_covers_every_vertex(two_triangles, algorithm):
    rec = record_run(two_triangles, algorithm, 2, stopping=StoppingMode.FIND_ALL_COMPONENTS, seed=5)
    assert sorted(v for c in rec.components for v in c.vertices) == list(range(6))
    assert rec.final_stats.undiscovered_vertices == 0
