"""
Property checks against independent reference implementations:
BFS hop distances, heap-based Dijkstra, Kruskal MST with a disjoint set.
"""

import heapq
import itertools
from collections import deque

import pytest

from algorithms import Algorithm
from engine import Recorder, RunConfig, RunController, StoppingMode, TerminationReason
from errors import InvalidConfigurationError
from graph import Graph

SEEDS = [1, 2, 3, 5, 8, 13]


# ---------------------------------------------------------------------------
# Reference algorithms
# ---------------------------------------------------------------------------
def reference_hops(graph, source):
    dist = {source: 0}
    queue = deque([source])
    while queue:
        v = queue.popleft()
        for nbr, _ in graph.neighbours(v):
            if nbr not in dist:
                dist[nbr] = dist[v] + 1
                queue.append(nbr)
    return dist


def reference_dijkstra(graph, source):
    dist = {}
    counter = itertools.count()
    heap = [(0.0, next(counter), source)]
    while heap:
        d, _, v = heapq.heappop(heap)
        if v in dist:
            continue
        dist[v] = d
        for nbr, eid in graph.neighbours(v):
            if nbr not in dist:
                heapq.heappush(heap, (d + graph.edge_weight(eid), next(counter), nbr))
    return dist


class DisjointSet:
    def __init__(self, n):
        self.parent = list(range(n))
        self.rank = [0] * n

    def find(self, x):
        while self.parent[x] != x:
            self.parent[x] = self.parent[self.parent[x]]
            x = self.parent[x]
        return x

    def union(self, a, b):
        ra, rb = self.find(a), self.find(b)
        if ra == rb:
            return False
        if self.rank[ra] < self.rank[rb]:
            ra, rb = rb, ra
        self.parent[rb] = ra
        if self.rank[ra] == self.rank[rb]:
            self.rank[ra] += 1
        return True


def reference_mst_weight(graph):
    """Total Kruskal forest weight, keyed by each tree's smallest vertex."""
    ds = DisjointSet(graph.vertex_count())
    order = sorted(range(graph.edge_count()), key=graph.edge_weight)
    chosen = []
    for e in order:
        if ds.union(*graph.edge_endpoints(e)):
            chosen.append(e)
    totals = {}
    for e in chosen:
        root = min(v for v in range(graph.vertex_count()) if ds.find(v) == ds.find(graph.edge_endpoints(e)[0]))
        totals[root] = totals.get(root, 0.0) + graph.edge_weight(e)
    return totals


def run(graph, config):
    rec = Recorder()
    rec.start(graph, config)
    rec.run_to_completion()
    return rec


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------
@pytest.mark.parametrize("seed", SEEDS)
def test_bfs_find_reachable_hops_match_true_distance(seed):
    g = Graph.generate_random(num_vertices=14, edge_probability=0.15, connected=False, seed=seed)
    rec = run(g, RunConfig(Algorithm.BFS, 0, stopping=StoppingMode.FIND_REACHABLE))

    expected = reference_hops(g, 0)
    added = [r.vertex for r in rec.tree]
    assert len(added) == len(set(added))
    assert set(added) == set(expected)
    for r in rec.tree:
        assert r.value == expected[r.vertex]


@pytest.mark.parametrize("seed", SEEDS)
def test_dijkstra_value_at_add_time_is_shortest_distance(seed):
    g = Graph.generate_random(num_vertices=14, edge_probability=0.3, seed=seed)
    rec = run(g, RunConfig(Algorithm.DIJKSTRA, 0, stopping=StoppingMode.FIND_REACHABLE))

    expected = reference_dijkstra(g, 0)
    assert {r.vertex for r in rec.tree} == set(expected)
    for r in rec.tree:
        assert r.value == pytest.approx(expected[r.vertex])
        assert r.cost == pytest.approx(expected[r.vertex])


@pytest.mark.parametrize("seed", SEEDS)
def test_prim_find_all_matches_kruskal_per_component(seed):
    g = Graph.generate_random(num_vertices=16, edge_probability=0.12, connected=False, seed=seed)
    rec = run(g, RunConfig(Algorithm.PRIM, 0, stopping=StoppingMode.FIND_ALL_COMPONENTS))

    expected = reference_mst_weight(g)
    for comp in rec.components:
        weight = sum(g.edge_weight(e) for e in comp.edges)
        assert len(comp.edges) == len(comp.vertices) - 1
        if comp.edges:
            assert weight == pytest.approx(expected[min(comp.vertices)])
    assert rec.final_stats.total_tree_cost == pytest.approx(sum(expected.values()))
    assert sorted(v for c in rec.components for v in c.vertices) == list(range(16))


@pytest.mark.parametrize("seed", SEEDS)
@pytest.mark.parametrize("heuristic", ["haversine", "zero"])
def test_astar_cost_equals_dijkstra(seed, heuristic):
    g = Graph.generate_random(num_vertices=18, edge_probability=0.2, seed=seed)
    end = g.vertex_count() - 1

    dijkstra = run(g, RunConfig(Algorithm.DIJKSTRA, 0, end=end))
    astar = run(g, RunConfig(Algorithm.ASTAR, 0, end=end, heuristic=heuristic))

    assert dijkstra.reason is astar.reason is TerminationReason.FOUND_PATH
    assert astar.path_cost == pytest.approx(dijkstra.path_cost)
    assert astar.path_cost == pytest.approx(reference_dijkstra(g, 0)[end])
    # g and h stay separate on every record
    for r in astar.tree:
        assert r.value == pytest.approx(r.cost + r.heuristic)


def test_astar_with_haversine_adds_no_more_vertices_than_dijkstra():
    g = Graph.generate_grid(rows=8, cols=8)
    end = g.vertex_count() - 1
    dijkstra = run(g, RunConfig(Algorithm.DIJKSTRA, 0, end=end))
    astar = run(g, RunConfig(Algorithm.ASTAR, 0, end=end))
    assert astar.metrics.vertices_added <= dijkstra.metrics.vertices_added


UNIT_WEIGHT_DETOUR = "A: B(1) E(1)\nB: C(1)\nC: D(1)\nE: F(1)\nF: G(1)\nG: D(1)\nH: D(1)"


@pytest.mark.parametrize("heuristic", ["haversine", "euclidean"])
def test_distance_heuristics_rejected_on_unit_weights(heuristic):
    g = Graph.from_adjacency_list(UNIT_WEIGHT_DETOUR)
    with pytest.raises(InvalidConfigurationError):
        RunController(g).start(RunConfig(Algorithm.ASTAR, 0, end=4, heuristic=heuristic))


def test_astar_zero_heuristic_optimal_on_imported_graph():
    g = Graph.from_adjacency_list(UNIT_WEIGHT_DETOUR)
    end = 4     # D: three hops via B-C, four via E-F-G
    astar = run(g, RunConfig(Algorithm.ASTAR, 0, end=end, heuristic="zero"))
    assert astar.path_cost == pytest.approx(3.0)
    assert astar.path_cost == pytest.approx(reference_dijkstra(g, 0)[end])


def test_astar_zero_heuristic_optimal_on_unweighted_random_graph():
    g = Graph.generate_random(14, 0.25, weighted=False, seed=3)
    expected = reference_dijkstra(g, 0)
    for end in range(1, g.vertex_count()):
        astar = run(g, RunConfig(Algorithm.ASTAR, 0, end=end, heuristic="zero"))
        assert astar.path_cost == pytest.approx(expected[end]), end


@pytest.mark.parametrize("algorithm", list(Algorithm))
def test_reset_and_restart_reproduces_run(algorithm):
    g = Graph.generate_random(num_vertices=12, edge_probability=0.3, seed=4)
    config = RunConfig(algorithm, 0, end=11, seed=99)
    ctl = RunController(g)

    ctl.start(config)
    first = ctl.run_to_completion()
    ctl.reset()
    ctl.start(config)
    second = ctl.run_to_completion()

    assert [r.step for r in first] == [r.step for r in second]
    assert [r.events for r in first] == [r.events for r in second]
    assert [r.explanation for r in first] == [r.explanation for r in second]


def test_rfs_different_seeds_can_diverge():
    g = Graph.generate_random(num_vertices=20, edge_probability=0.3, seed=6)
    orders = set()
    for seed in range(6):
        rec = run(g, RunConfig(Algorithm.RFS, 0, stopping=StoppingMode.FIND_REACHABLE, seed=seed))
        orders.add(tuple(r.vertex for r in rec.tree))
    assert len(orders) > 1


@pytest.mark.parametrize("algorithm", [Algorithm.BFS, Algorithm.DFS, Algorithm.RFS, Algorithm.PRIM])
def test_spanning_tree_counts(algorithm):
    g = Graph.generate_random(num_vertices=15, edge_probability=0.25, seed=10)
    rec = run(g, RunConfig(algorithm, 3, stopping=StoppingMode.FIND_REACHABLE, seed=1))
    stats = rec.final_stats

    assert stats.tree_vertices == 15
    assert stats.tree_edges == 14
    assert stats.undiscovered_vertices == 0
    assert stats.undiscovered_edges == 0
    # every non-tree edge is discarded exactly once, on discovery or removal
    assert stats.discarded_on_discovery + stats.discarded_on_removal >= g.edge_count() - 14
