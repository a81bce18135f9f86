"""
machine.py — Step State Machine
================================
One table of named steps drives all six algorithms.  Each entry is a
transition function `fn(state) -> Transition`: it applies its change to
the EngineState, and reports the next step name, the notification events
it produced and a one-line explanation of what just happened.

    START ─┬─ StopAtEnd ──────────▶ checkEndAdded ─▶ checkLDVEmpty ─▶ LDVEmpty ─▶ cleanup
           ├─ FindReachable ──────▶ checkComponentDone ──────────────────────────▶ cleanup
           └─ FindAllComponents ──▶ checkAllComponentsDone ─▶ checkComponentDone
                                                                   │ (empty)
                        finalizeComponent ◀─────────────────────────┘
                               ▼
                        checkAnyUnadded ─▶ startNewComponent | doneToTrue ─▶ checkAllComponentsDone

    main loop body (shared by every mode):
        getPlaceFromLDV ─▶ checkAdded ─┬─ wasAdded ──▶ loop top
                                       └─ wasNotAdded ─▶ checkNeighborsLoopTop
                                              ▲                 │
              checkNeighborsLoopIfTrue/False ◀── checkNeighborsLoopIf

The machine never looks at which algorithm is running; everything
algorithm-specific comes from `state.info` (frontier kind, value
function).  Transitions that can fail do so before touching the state,
so a step is either fully applied or not applied at all.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Tuple

from algorithms.record import TraversalRecord
from engine.events import (
    ComponentFinalized,
    Event,
    EventBuilder,
    MarkRole,
    PathFound,
    RunFinished,
    TreeEntryAdded,
)
from engine.reconstruct import path_cost, reconstruct_path
from engine.state import (
    Component,
    EngineState,
    PendingNeighbor,
    RunStats,
    StepName,
    TerminationReason,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Transition:
    next_step:   StepName
    events:      Tuple[Event, ...]
    explanation: str


TransitionFn = Callable[[EngineState], Transition]


# ---------------------------------------------------------------------------
# Short comments per step (the pseudocode side panel's tooltips)
# ---------------------------------------------------------------------------
STEP_COMMENTS: Dict[StepName, str] = {
    StepName.START:                         "initialize algorithm",
    StepName.CHECK_ALL_COMPONENTS_DONE:     "Check if more components remain to be found",
    StepName.CHECK_COMPONENT_DONE:          "Check if the current component is completely added",
    StepName.CHECK_END_ADDED:               "Check if we have added the end vertex",
    StepName.CHECK_LDV_EMPTY:               "Check if the LDV is empty (in which case no path exists)",
    StepName.LDV_EMPTY:                     "LDV is empty, no path exists",
    StepName.GET_PLACE_FROM_LDV:            "Get a place from the LDV",
    StepName.CHECK_ADDED:                   "Check if the place being visited was previously added",
    StepName.WAS_ADDED:                     "Place being visited already added, so discard",
    StepName.WAS_NOT_ADDED:                 "Found path to new place, so add it to tree",
    StepName.CHECK_NEIGHBORS_LOOP_TOP:      "Top of loop over edges from vertex just added",
    StepName.CHECK_NEIGHBORS_LOOP_IF:       "Check the next neighbor of an added vertex",
    StepName.CHECK_NEIGHBORS_LOOP_IF_TRUE:  "Neighbor already visited, discard on discovery",
    StepName.CHECK_NEIGHBORS_LOOP_IF_FALSE: "Neighbor not yet visited, add to LDV",
    StepName.FINALIZE_COMPONENT:            "Finalize completed component",
    StepName.CHECK_ANY_UNADDED:             "Check if there are more vertices not yet in the forest",
    StepName.START_NEW_COMPONENT:           "Start work on the next connected component",
    StepName.DONE_TO_TRUE:                  "All vertices added, so no more components",
    StepName.CLEANUP:                       "Clean up and finalize",
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _loop_top(state: EngineState) -> StepName:
    """Where the main loop resumes after finishing with one record."""
    return StepName.CHECK_END_ADDED if state.stop_at_end else StepName.CHECK_COMPONENT_DONE


def _after_neighbor(state: EngineState) -> StepName:
    return StepName.CHECK_NEIGHBORS_LOOP_IF if state.neighbors_to_loop else _loop_top(state)


def _tree_role(state: EngineState, vertex: int) -> MarkRole:
    """Role a settled vertex shows: start / end keep their own."""
    if vertex == state.start:
        return MarkRole.START_VERTEX
    if state.stop_at_end and vertex == state.end:
        return MarkRole.END_VERTEX
    return MarkRole.ADDED_TO_TREE


def _mark_path_to_visiting(state: EngineState, eb: EventBuilder, found: bool) -> None:
    """Recolour the tree path from start to the vertex just added."""
    path = reconstruct_path(state.history, state.start, state.visiting.vertex)
    for record in path:
        eb.vertex(record.vertex, MarkRole.FOUND_PATH if found else _tree_role(state, record.vertex))
        eb.edge(record.edge, MarkRole.FOUND_PATH if found else MarkRole.ADDED_TO_TREE)


def _new_start_record(state: EngineState, vertex: int) -> TraversalRecord:
    return TraversalRecord.start(
        vertex,
        value=state.info.start_value_fn(vertex, state.ctx),
        heuristic=state.ctx.h(vertex),
    )


def _discover_vertex(state: EngineState, vertex: int) -> None:
    if not state.discovered_v[vertex]:
        state.discovered_v[vertex] = True
        state.stats.undiscovered_vertices -= 1


def _discover_edge(state: EngineState, edge: int) -> None:
    if not state.discovered_e[edge]:
        state.discovered_e[edge] = True
        state.stats.undiscovered_edges -= 1


def _describe(state: EngineState, record: TraversalRecord) -> str:
    return record.describe(state.info.value_precision)


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------
def start(state: EngineState) -> Transition:
    n = state.graph.vertex_count()
    m = state.graph.edge_count()
    state.added_v      = [False] * n
    state.discovered_v = [False] * n
    state.discovered_e = [False] * m
    state.stats        = RunStats(undiscovered_vertices=n, undiscovered_edges=m)
    state.component_index = 0
    state.next_unadded    = 0
    state.all_components_done = False

    eb = EventBuilder()
    if state.stop_at_end:
        eb.vertex(state.end, MarkRole.END_VERTEX)

    _discover_vertex(state, state.start)
    eb.vertex(state.start, MarkRole.DISCOVERED)
    state.frontier.insert(_new_start_record(state, state.start))

    if state.stop_at_end:
        nxt = StepName.CHECK_END_ADDED
    elif state.find_all:
        nxt = StepName.CHECK_ALL_COMPONENTS_DONE
    else:
        nxt = StepName.CHECK_COMPONENT_DONE
    return Transition(nxt, eb.build(), "Initializing")


def check_all_components_done(state: EngineState) -> Transition:
    if state.all_components_done:
        state.reason = TerminationReason.FOUND_ALL_COMPONENTS
        nxt = StepName.CLEANUP
    else:
        nxt = StepName.CHECK_COMPONENT_DONE
    return Transition(nxt, (), "Checking if all components have been found")


def check_component_done(state: EngineState) -> Transition:
    if state.frontier.is_empty():
        if state.find_all:
            nxt = StepName.FINALIZE_COMPONENT
        else:
            state.reason = TerminationReason.FOUND_COMPONENT
            nxt = StepName.CLEANUP
    else:
        nxt = StepName.GET_PLACE_FROM_LDV
    return Transition(nxt, (), f"Check if the {state.frontier.display_name} is empty")


def check_end_added(state: EngineState) -> Transition:
    if state.added_v[state.end]:
        state.reason = TerminationReason.FOUND_PATH
        nxt = StepName.CLEANUP
    else:
        nxt = StepName.CHECK_LDV_EMPTY
    return Transition(nxt, (), "Check if the end vertex has been added")


def check_ldv_empty(state: EngineState) -> Transition:
    nxt = StepName.LDV_EMPTY if state.frontier.is_empty() else StepName.GET_PLACE_FROM_LDV
    return Transition(nxt, (), f"Check if the {state.frontier.display_name} is empty")


def ldv_empty(state: EngineState) -> Transition:
    state.reason = TerminationReason.SEARCH_FAILED
    return Transition(
        StepName.CLEANUP, (),
        f"The {state.frontier.display_name} is empty, no path to end vertex exists",
    )


def get_place_from_ldv(state: EngineState) -> Transition:
    record = state.frontier.remove_next()
    state.visiting = record

    eb = EventBuilder()
    eb.vertex(record.vertex, MarkRole.VISITING)
    eb.edge(record.edge, MarkRole.VISITING)
    return Transition(
        StepName.CHECK_ADDED, eb.build(),
        f"Removed {_describe(state, record)} from {state.frontier.display_name}",
    )


def check_added(state: EngineState) -> Transition:
    vertex = state.visiting.vertex
    nxt = StepName.WAS_ADDED if state.added_v[vertex] else StepName.WAS_NOT_ADDED
    return Transition(nxt, (), f"Checking if #{vertex} was previously added")


def was_added(state: EngineState) -> Transition:
    record = state.visiting
    state.stats.discarded_on_removal += 1

    eb = EventBuilder()
    role = _tree_role(state, record.vertex)
    if role is MarkRole.ADDED_TO_TREE:
        if record.edge is None and state.frontier.contains_vertex(record.vertex):
            role = MarkRole.ADDED_EARLIER
        else:
            role = MarkRole.DISCARDED_ON_REMOVAL
    eb.vertex(record.vertex, role)
    eb.edge(record.edge, MarkRole.DISCARDED_ON_REMOVAL)
    return Transition(_loop_top(state), eb.build(), f"Discarding {_describe(state, record)} on removal")


def was_not_added(state: EngineState) -> Transition:
    record = state.visiting
    vertex = record.vertex

    state.added_v[vertex] = True
    state.component_vertices.append(vertex)
    state.stats.tree_vertices += 1

    eb = EventBuilder()
    eb.vertex(vertex, _tree_role(state, vertex))
    if record.edge is not None:
        state.stats.tree_edges += 1
        state.stats.total_tree_cost += state.graph.edge_weight(record.edge)
        state.component_edges.append(record.edge)
        eb.edge(record.edge, MarkRole.ADDED_TO_TREE)

    state.history.append(record)
    eb.add(TreeEntryAdded(record, len(state.history) - 1))

    if state.stop_at_end:
        _mark_path_to_visiting(state, eb, found=True)

    return Transition(StepName.CHECK_NEIGHBORS_LOOP_TOP, eb.build(), f"Adding {_describe(state, record)} to tree")


def check_neighbors_loop_top(state: EngineState) -> Transition:
    record = state.visiting
    eb = EventBuilder()
    if state.stop_at_end:
        _mark_path_to_visiting(state, eb, found=False)

    graph = state.graph
    pending: List[PendingNeighbor] = []
    for edge in graph.adjacent_edges(record.vertex):
        if edge == record.edge:
            continue
        v1, v2 = graph.edge_endpoints(edge)
        pending.append(PendingNeighbor(v2 if v1 == record.vertex else v1, edge))
    state.neighbors_to_loop = pending

    if pending:
        explanation = f"Looping over {len(pending)} neighbors"
    else:
        explanation = "No neighbors to loop over"
    return Transition(_after_neighbor(state), eb.build(), explanation)


def check_neighbors_loop_if(state: EngineState) -> Transition:
    # consumed from the end: the last incident edge is examined first
    state.next_neighbor = state.neighbors_to_loop.pop()
    to = state.next_neighbor.to
    if state.added_v[to]:
        nxt = StepName.CHECK_NEIGHBORS_LOOP_IF_TRUE
    else:
        nxt = StepName.CHECK_NEIGHBORS_LOOP_IF_FALSE
    return Transition(nxt, (), f"Checking if #{to} is in the tree")


def check_neighbors_loop_if_true(state: EngineState) -> Transition:
    nb = state.next_neighbor
    state.stats.discarded_on_discovery += 1
    _discover_edge(state, nb.via)

    eb = EventBuilder()
    eb.edge(nb.via, MarkRole.DISCARDED_ON_DISCOVERY)
    return Transition(
        _after_neighbor(state), eb.build(),
        f"#{nb.to} via edge {nb.via} already visited, discarding on discovery",
    )


def check_neighbors_loop_if_false(state: EngineState) -> Transition:
    nb = state.next_neighbor
    previous = state.visiting
    graph = state.graph

    value = state.info.value_fn(previous, nb.via, nb.to, state.ctx)
    cost  = previous.cost + graph.edge_weight(nb.via)
    record = TraversalRecord.via(graph, nb.to, nb.via, value, cost, state.ctx.h(nb.to))

    _discover_vertex(state, nb.to)
    _discover_edge(state, nb.via)
    state.frontier.insert(record)

    eb = EventBuilder()
    if state.stop_at_end and nb.to == state.end:
        eb.vertex(nb.to, MarkRole.END_VERTEX)
    else:
        eb.vertex(nb.to, MarkRole.DISCOVERED)
    eb.edge(nb.via, MarkRole.DISCOVERED)
    return Transition(
        _after_neighbor(state), eb.build(),
        f"#{nb.to} via edge {nb.via} added to {state.frontier.display_name}",
    )


def finalize_component(state: EngineState) -> Transition:
    index = state.component_index
    component = Component(index, tuple(state.component_vertices), tuple(state.component_edges))
    state.components.append(component)
    state.component_vertices = []
    state.component_edges = []

    eb = EventBuilder()
    for v in component.vertices:
        eb.vertex(v, MarkRole.COMPLETED_COMPONENT, index)
    for e in component.edges:
        eb.edge(e, MarkRole.COMPLETED_COMPONENT, index)
    eb.add(ComponentFinalized(index, component.vertices, component.edges))

    logger.info("Finalized component %d: %d vertices, %d edges",
                index, len(component.vertices), len(component.edges))
    return Transition(
        StepName.CHECK_ANY_UNADDED, eb.build(),
        f"Finalized component {index} with {len(component.vertices)} vertices, "
        f"{len(component.edges)} edges",
    )


def check_any_unadded(state: EngineState) -> Transition:
    if state.stats.tree_vertices != state.graph.vertex_count():
        nxt = StepName.START_NEW_COMPONENT
    else:
        nxt = StepName.DONE_TO_TRUE
    return Transition(nxt, (), "Checking if all vertices have been added to a tree")


def start_new_component(state: EngineState) -> Transition:
    while state.added_v[state.next_unadded]:
        state.next_unadded += 1
    vertex = state.next_unadded

    state.component_index += 1
    state.stats.components = state.component_index + 1
    _discover_vertex(state, vertex)
    state.frontier.insert(_new_start_record(state, vertex))

    eb = EventBuilder()
    eb.vertex(vertex, MarkRole.DISCOVERED)
    return Transition(
        StepName.CHECK_ALL_COMPONENTS_DONE, eb.build(),
        f"Starting component {state.component_index} with vertex #{vertex}",
    )


def done_to_true(state: EngineState) -> Transition:
    state.all_components_done = True
    return Transition(
        StepName.CHECK_ALL_COMPONENTS_DONE, (),
        "All components found, setting done flag to true",
    )


def cleanup(state: EngineState) -> Transition:
    eb = EventBuilder()
    reason = state.reason

    if reason is TerminationReason.FOUND_PATH:
        records = reconstruct_path(state.history, state.start, state.end)
        state.path = records
        state.path_cost = path_cost(state.graph, records)
        for record in records:
            eb.vertex(record.vertex, MarkRole.FOUND_PATH)
            eb.edge(record.edge, MarkRole.FOUND_PATH)
        eb.add(PathFound(tuple(records), state.path_cost, len(records)))
        explanation = (
            f"Found path from #{state.start} to #{state.end}, "
            f"distance {state.path_cost:.3f} with {len(records)} hops"
        )
    elif reason is TerminationReason.SEARCH_FAILED:
        explanation = f"No path found from #{state.start} to #{state.end}"
    elif reason is TerminationReason.FOUND_COMPONENT:
        explanation = (
            f"Found all paths from #{state.start}, "
            f"total cost {state.stats.total_tree_cost:.3f}"
        )
    else:
        count = len(state.components)
        noun = "component" if count == 1 else "components"
        explanation = f"Found all {count} {noun}, total cost {state.stats.total_tree_cost:.3f}"

    eb.add(RunFinished(reason, state.stats.snapshot()))
    state.visiting = None
    return Transition(StepName.DONE, eb.build(), explanation)


# ---------------------------------------------------------------------------
# THE TABLE
# ---------------------------------------------------------------------------
TRANSITIONS: Dict[StepName, TransitionFn] = {
    StepName.START:                         start,
    StepName.CHECK_ALL_COMPONENTS_DONE:     check_all_components_done,
    StepName.CHECK_COMPONENT_DONE:          check_component_done,
    StepName.CHECK_END_ADDED:               check_end_added,
    StepName.CHECK_LDV_EMPTY:               check_ldv_empty,
    StepName.LDV_EMPTY:                     ldv_empty,
    StepName.GET_PLACE_FROM_LDV:            get_place_from_ldv,
    StepName.CHECK_ADDED:                   check_added,
    StepName.WAS_ADDED:                     was_added,
    StepName.WAS_NOT_ADDED:                 was_not_added,
    StepName.CHECK_NEIGHBORS_LOOP_TOP:      check_neighbors_loop_top,
    StepName.CHECK_NEIGHBORS_LOOP_IF:       check_neighbors_loop_if,
    StepName.CHECK_NEIGHBORS_LOOP_IF_TRUE:  check_neighbors_loop_if_true,
    StepName.CHECK_NEIGHBORS_LOOP_IF_FALSE: check_neighbors_loop_if_false,
    StepName.FINALIZE_COMPONENT:            finalize_component,
    StepName.CHECK_ANY_UNADDED:             check_any_unadded,
    StepName.START_NEW_COMPONENT:           start_new_component,
    StepName.DONE_TO_TRUE:                  done_to_true,
    StepName.CLEANUP:                       cleanup,
}


def advance(state: EngineState) -> Transition:
    """Run the transition for `state.step` and move the state to the next step."""
    transition = TRANSITIONS[state.step](state)
    state.step = transition.next_step
    return transition
