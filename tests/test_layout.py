"""Tests for layout.py: validation, layering, dummy nodes, crossing minimisation,
grid coordinates, depth, link geometry and the full ``compute_layout`` pipeline.
"""

from __future__ import annotations

import itertools
import random

import networkx as nx
import pytest
from conftest import issues

from blockgraph.config import LayoutSettings
from blockgraph.errors import LayoutError
from blockgraph.graph import Issue
from blockgraph.layout import (
    DUMMY_PREFIX,
    NON_EPIC_ARROW_COLOR,
    AugmentedGraph,
    LayerAssignment,
    assign_cells,
    compute_depths,
    compute_layout,
    count_crossings,
    get_intersection,
    get_rect_dimensions,
    insert_dummy_nodes,
    minimise_crossings,
    minimise_crossings_exact,
    normalize_2d,
    overlap_opacities,
    validate_graph,
)
from blockgraph.overrides import Point

# ─── Helpers ──────────────────────────────────────────────────────────────────


def make_graph(*edges: tuple[str, str]) -> nx.DiGraph:
    """Build a DiGraph from a list of (src, tgt) string pairs."""
    g: nx.DiGraph = nx.DiGraph()
    for src, tgt in edges:
        g.add_edge(src, tgt)
    return g


def two_layer_optimum(top: list[str], bottom: list[str], edges: list[tuple[str, str]]) -> int:
    """Fewest crossings over all orders of two layers.

    Every order of ``bottom`` is tried; for each, the best order of ``top`` comes
    from a dynamic program over the subsets already placed on the left.
    """
    best = None
    for order in itertools.permutations(bottom):
        pos = {b: i for i, b in enumerate(order)}
        reach = {t: [pos[b] for s, b in edges if s == t] for t in top}
        cross = [[sum(1 for p in reach[u] for q in reach[v] if p > q) for v in top] for u in top]
        dp = {0: 0}
        for mask in range(1 << len(top)):
            if mask not in dp:
                continue
            for v in range(len(top)):
                if mask & (1 << v):
                    continue
                added = sum(cross[u][v] for u in range(len(top)) if mask & (1 << u))
                nxt = mask | (1 << v)
                dp[nxt] = min(dp.get(nxt, dp[mask] + added), dp[mask] + added)
        total = dp[(1 << len(top)) - 1]
        best = total if best is None else min(best, total)
    return best


def make_augmented_graph(
    edges: list[tuple[str, str]],
    layers: dict[str, int],
) -> AugmentedGraph:
    """Build a minimal AugmentedGraph from (src, tgt) edges and explicit layers.

    Nodes are added in ``layers`` order so the initial ordering is predictable.
    """
    g: nx.DiGraph = nx.DiGraph()
    for nid in layers:
        g.add_node(nid)
    for src, tgt in edges:
        g.add_edge(src, tgt)
    layer_count = (max(layers.values()) + 1) if layers else 0
    return AugmentedGraph(graph=g, layers=layers, layer_count=layer_count, dummy_edges=[])


def diamond():
    return issues({"1": [], "2": ["1"], "3": ["1"], "4": ["2", "3"]})


# ─── Validation Tests ─────────────────────────────────────────────────────────


class TestValidateGraph:
    def test_dag_accepted(self):
        dag = validate_graph(diamond())
        assert set(dag.nodes) == {"1", "2", "3", "4"}
        assert dag.number_of_edges() == 4

    def test_duplicate_ids_rejected(self):
        graph = [Issue(id="1"), Issue(id="2"), Issue(id="1")]
        with pytest.raises(LayoutError) as exc_info:
            validate_graph(graph)
        assert exc_info.value.node_ids == ["1"]

    def test_cycle_rejected(self):
        """1 -> 2 -> 1 cannot be layered."""
        with pytest.raises(LayoutError, match="dependency cycle"):
            validate_graph(issues({"1": ["2"], "2": ["1"]}))

    def test_self_parent_rejected(self):
        with pytest.raises(LayoutError):
            validate_graph(issues({"1": ["1"]}))

    def test_compute_layout_propagates_cycle(self):
        with pytest.raises(LayoutError):
            compute_layout(issues({"1": ["3"], "2": ["1"], "3": ["2"]}))


# ─── Layer Assignment Tests ───────────────────────────────────────────────────


class TestLayerAssignment:
    def test_chain(self):
        la = LayerAssignment.assign(make_graph(("a", "b"), ("b", "c")))
        assert la.layers == {"a": 0, "b": 1, "c": 2}
        assert la.layer_count == 3

    def test_longest_path_wins(self):
        """c is blocked by a directly and via b, so it sits below b."""
        la = LayerAssignment.assign(make_graph(("a", "b"), ("b", "c"), ("a", "c")))
        assert la.layers["c"] == 2

    def test_source_pulled_down_to_child(self):
        """A blocker with no blockers of its own sits right above its highest child."""
        la = LayerAssignment.assign(make_graph(("a", "b"), ("b", "c"), ("d", "c")))
        assert la.layers["d"] == 1

    def test_isolated_node_layer_zero(self):
        g = make_graph(("a", "b"))
        g.add_node("z")
        assert LayerAssignment.assign(g).layers["z"] == 0

    def test_edges_point_downward(self):
        g = validate_graph(diamond())
        la = LayerAssignment.assign(g)
        for src, tgt in g.edges:
            assert la.layers[src] < la.layers[tgt]


# ─── Dummy Node Tests ─────────────────────────────────────────────────────────


class TestInsertDummyNodes:
    def test_short_edges_untouched(self):
        g = make_graph(("a", "b"))
        aug = insert_dummy_nodes(g, LayerAssignment.assign(g))
        assert aug.dummy_edges == []
        assert list(aug.graph.edges) == [("a", "b")]

    def test_long_edge_split(self):
        """a -> c spans two layers and gets one dummy in between."""
        g = make_graph(("a", "b"), ("b", "c"), ("a", "c"))
        aug = insert_dummy_nodes(g, LayerAssignment.assign(g))
        assert len(aug.dummy_edges) == 1
        dummy = aug.dummy_edges[0]
        assert (dummy.original_src, dummy.original_tgt) == ("a", "c")
        assert len(dummy.dummy_ids) == 1
        d = dummy.dummy_ids[0]
        assert d.startswith(DUMMY_PREFIX)
        assert aug.layers[d] == 1
        assert aug.graph.has_edge("a", d) and aug.graph.has_edge(d, "c")
        assert not aug.graph.has_edge("a", "c")

    def test_every_edge_spans_one_layer(self):
        g = make_graph(("a", "b"), ("b", "c"), ("c", "d"), ("a", "d"), ("b", "d"))
        aug = insert_dummy_nodes(g, LayerAssignment.assign(g))
        for src, tgt in aug.graph.edges:
            assert aug.layers[tgt] - aug.layers[src] == 1


# ─── count_crossings Tests ────────────────────────────────────────────────────


class TestCountCrossings:
    def test_no_crossings_simple_chain(self):
        """A → B with A in layer 0 and B in layer 1: zero crossings."""
        aug = make_augmented_graph([("A", "B")], {"A": 0, "B": 1})
        assert count_crossings([["A"], ["B"]], aug.graph) == 0

    def test_no_crossings_parallel(self):
        aug = make_augmented_graph([("A", "C"), ("B", "D")], {"A": 0, "B": 0, "C": 1, "D": 1})
        assert count_crossings([["A", "B"], ["C", "D"]], aug.graph) == 0

    def test_one_crossing(self):
        """A→D and B→C with A before B in layer 0: D after C makes one crossing."""
        aug = make_augmented_graph([("A", "D"), ("B", "C")], {"A": 0, "B": 0, "C": 1, "D": 1})
        assert count_crossings([["A", "B"], ["C", "D"]], aug.graph) == 1

    def test_empty_graph_no_crossings(self):
        assert count_crossings([], nx.DiGraph()) == 0

    def test_crossing_reduces_with_swap(self):
        aug = make_augmented_graph([("A", "D"), ("B", "C")], {"A": 0, "B": 0, "C": 1, "D": 1})
        assert count_crossings([["A", "B"], ["C", "D"]], aug.graph) == 1
        assert count_crossings([["A", "B"], ["D", "C"]], aug.graph) == 0


# ─── Crossing Minimisation Tests ──────────────────────────────────────────────


class TestMinimiseCrossings:
    def test_returns_all_nodes(self):
        aug = make_augmented_graph([("A", "B"), ("A", "C")], {"A": 0, "B": 1, "C": 1})
        result = minimise_crossings(aug)
        assert {nid for layer in result for nid in layer} == {"A", "B", "C"}

    def test_each_node_in_correct_layer(self):
        layers = {"A": 0, "B": 1, "C": 1, "D": 2}
        aug = make_augmented_graph([("A", "B"), ("A", "C"), ("B", "D"), ("C", "D")], layers)
        result = minimise_crossings(aug)
        for node_id, expected_layer in layers.items():
            assert node_id in result[expected_layer]

    def test_removes_simple_crossing(self):
        aug = make_augmented_graph([("A", "D"), ("B", "C")], {"A": 0, "B": 0, "C": 1, "D": 1})
        assert count_crossings(minimise_crossings(aug), aug.graph) == 0

    def test_empty_graph(self):
        aug = AugmentedGraph(graph=nx.DiGraph(), layers={}, layer_count=0, dummy_edges=[])
        assert minimise_crossings(aug) == []


class TestMinimiseCrossingsExact:
    def test_finds_zero_crossings(self):
        layers = {"A": 0, "B": 0, "C": 0, "D": 1, "E": 1, "F": 1}
        edges = [("A", "F"), ("B", "E"), ("C", "D")]
        aug = make_augmented_graph(edges, layers)
        assert count_crossings([["A", "B", "C"], ["D", "E", "F"]], aug.graph) == 3
        assert count_crossings(minimise_crossings_exact(aug), aug.graph) == 0

    def test_never_worse_than_barycenter(self):
        layers = {"A": 0, "B": 0, "C": 0, "D": 1, "E": 1, "F": 1, "G": 2, "H": 2}
        edges = [("A", "E"), ("A", "F"), ("B", "D"), ("C", "D"), ("C", "F"), ("D", "H"), ("E", "G"), ("F", "G")]
        aug = make_augmented_graph(edges, layers)
        exact = count_crossings(minimise_crossings_exact(aug), aug.graph)
        assert exact <= count_crossings(minimise_crossings(aug), aug.graph)

    def test_wide_layer_stays_crossing_free(self):
        """Nine parallel edges listed in reverse come back untangled."""
        top = [f"t{i}" for i in range(9)]
        bottom = [f"b{i}" for i in range(9)]
        layers = {**{t: 0 for t in top}, **{b: 1 for b in reversed(bottom)}}
        aug = make_augmented_graph(list(zip(top, bottom)), layers)
        result = minimise_crossings_exact(aug)
        assert count_crossings(result, aug.graph) == 0
        assert sorted(result[1]) == sorted(bottom)

    @pytest.mark.parametrize("seed", [1, 5, 9, 13])
    def test_wide_layer_matches_optimum(self, seed):
        """An eight-wide layer over three issues reaches the true minimum."""
        rng = random.Random(seed)
        top = [f"t{i}" for i in range(8)]
        bottom = ["x", "y", "z"]
        edges = [(t, b) for t in top for b in bottom if rng.random() < 0.5]
        aug = make_augmented_graph(edges, {**{t: 0 for t in top}, **{b: 1 for b in bottom}})
        result = minimise_crossings_exact(aug)
        assert sorted(result[0]) == sorted(top)
        assert count_crossings(result, aug.graph) == two_layer_optimum(top, bottom, edges)

    def test_matches_joint_enumeration(self):
        layers = {"A": 0, "B": 0, "C": 0, "D": 1, "E": 1, "F": 1, "G": 2, "H": 2}
        edges = [("A", "E"), ("A", "F"), ("B", "D"), ("C", "D"), ("C", "F"), ("D", "H"), ("E", "G"), ("F", "G")]
        aug = make_augmented_graph(edges, layers)
        ordering = [["A", "B", "C"], ["D", "E", "F"], ["G", "H"]]
        optimum = min(
            count_crossings([list(layer) for layer in combo], aug.graph)
            for combo in itertools.product(*(itertools.permutations(layer) for layer in ordering))
        )
        assert count_crossings(minimise_crossings_exact(aug), aug.graph) == optimum


# ─── Coordinate Tests ─────────────────────────────────────────────────────────


class TestAssignCells:
    def test_layers_centred_on_widest(self):
        cells = assign_cells([["A"], ["B", "C"]])
        assert cells["A"].col == 1
        assert (cells["B"].col, cells["C"].col) == (0, 2)

    def test_dummy_takes_one_cell(self):
        d = f"{DUMMY_PREFIX}0_0"
        cells = assign_cells([["A", d, "B"]])
        assert cells[d].cells == 1
        assert cells["B"].col == 3

    def test_no_overlap_within_layer(self):
        cells = assign_cells([["A", "B", "C"], ["D"]])
        row = sorted((cells[n] for n in ["A", "B", "C"]), key=lambda c: c.col)
        for left, right in zip(row, row[1:]):
            assert left.col + left.cells <= right.col


class TestComputeDepths:
    def test_anchor_depths(self):
        depths = compute_depths(validate_graph(diamond()))
        assert depths == {"4": 0, "2": 1, "3": 1, "1": 2}

    def test_nearest_anchor_wins(self):
        """b blocks an anchor directly and another anchor through c."""
        depths = compute_depths(make_graph(("b", "x"), ("b", "c"), ("c", "y")))
        assert depths["b"] == 1

    def test_isolated_node_is_anchor(self):
        g = nx.DiGraph()
        g.add_node("solo")
        assert compute_depths(g) == {"solo": 0}


# ─── Geometry Helpers ─────────────────────────────────────────────────────────


class TestGeometry:
    def test_intersection_vertical_side(self):
        assert get_intersection(100, 0, 0, 0, 10, 5) == (10, 0)

    def test_intersection_horizontal_side(self):
        assert get_intersection(0, -50, 0, 0, 10, 5) == (0, -5)

    def test_intersection_diagonal(self):
        assert get_intersection(10, 10, 0, 0, 10, 5) == (5, 5)

    def test_intersection_coincident_returns_centre(self):
        assert get_intersection(0, 0, 7, 8, 10, 5) == (7, 8)

    def test_normalize(self):
        assert normalize_2d(3, 4) == pytest.approx((0.6, 0.8))
        assert normalize_2d(0, 0) == (0, 0)

    def test_overlap_opacities(self):
        positions = {"a": Point(0, 0), "b": Point(0, 0), "c": Point(0, 0), "d": Point(1, 0)}
        assert overlap_opacities(positions) == pytest.approx({"a": 1 / 3, "b": 1 / 3, "c": 1 / 3})

    def test_rect_dimensions(self):
        assert get_rect_dimensions(LayoutSettings()) == (60, 35)
        assert get_rect_dimensions(LayoutSettings(show_issue_sprints=True)) == (60, 41)
        assert get_rect_dimensions(LayoutSettings(show_issue_details=True, show_issue_sprints=True)) == (60, 44)
        assert get_rect_dimensions(LayoutSettings(show_issue_details=True)) == (60, 35)


# ─── compute_layout Tests ─────────────────────────────────────────────────────


class TestComputeLayout:
    def test_empty_graph(self):
        layout = compute_layout([])
        assert layout.nodes == []
        assert layout.links == []
        assert layout.dag_width == 0
        assert layout.node_width == 90

    def test_metrics(self):
        layout = compute_layout(diamond())
        assert (layout.rect_width, layout.rect_height) == (60, 35)
        assert (layout.node_width, layout.node_height) == (90, 70)
        assert (layout.grid_width, layout.grid_height) == (45, 35)
        assert layout.arrow_size == 35

    def test_diamond_positions(self):
        layout = compute_layout(diamond())
        assert layout.positions() == {
            "1": Point(90, 35),
            "2": Point(45, 105),
            "3": Point(135, 105),
            "4": Point(90, 175),
        }
        assert layout.dag_width == 180
        assert layout.dag_height == 210

    def test_depth_and_z(self):
        layout = compute_layout(diamond(), LayoutSettings(z_step=10))
        node = layout.node("1")
        assert node is not None
        assert node.depth == 2
        assert node.z == -20
        assert layout.node("4").z == 0

    def test_nodes_in_input_order(self):
        graph = issues({"b": [], "a": ["b"], "c": []})
        assert [n.id for n in compute_layout(graph).nodes] == ["b", "a", "c"]

    def test_computed_positions_on_snap_lattice(self):
        layout = compute_layout(diamond(), LayoutSettings(snap_to_grid=True))
        assert layout.positions() == compute_layout(diamond()).positions()

    def test_override_replaces_position(self):
        layout = compute_layout(diamond(), overrides={"1": Point(500, 10)})
        assert layout.node("1").x == 500
        assert layout.node("1").y == 10

    def test_override_as_mapping(self):
        layout = compute_layout(diamond(), overrides={"2": {"x": 1, "y": 2}})
        assert (layout.node("2").x, layout.node("2").y) == (1, 2)

    def test_override_snapped(self):
        settings = LayoutSettings(snap_to_grid=True)
        layout = compute_layout(diamond(), settings, overrides={"1": Point(500, 10)})
        assert (layout.node("1").x, layout.node("1").y) == (495, 0)

    def test_overlapping_overrides_share_opacity(self):
        layout = compute_layout(diamond(), overrides={"2": Point(0, 0), "3": Point(0, 0)})
        assert layout.node("2").opacity == 0.5
        assert layout.node("3").opacity == 0.5
        assert layout.node("1").opacity == 1.0

    def test_rainbow_colours_follow_topological_order(self):
        layout = compute_layout(diamond())
        assert layout.node("1").color == "rgb(110, 64, 170)"
        assert layout.node("3").color == "rgb(175, 240, 91)"

    def test_pipeline_colour_wins(self):
        graph = diamond()
        graph[1].pipeline_name = "Review"
        layout = compute_layout(graph, pipeline_colors={"Review": "#abcdef"})
        assert layout.node("2").color == "#abcdef"
        assert layout.node("3").color != "#abcdef"

    def test_link_order_and_endpoints(self):
        layout = compute_layout(issues({"1": [], "2": ["1"]}))
        assert [(link.source_id, link.target_id) for link in layout.links] == [("1", "2")]
        link = layout.links[0]
        assert link.points[0] == Point(45, 35)
        assert link.points[1].x == pytest.approx(45)
        # Arrow stops at the target box plus a third of the arrow size.
        assert link.points[1].y == pytest.approx(105 - (35 + 35 / 3) / 2)
        assert (link.arrow.dir_x, link.arrow.dir_y) == pytest.approx((0, 1))

    def test_links_follow_target_then_parent_order(self):
        layout = compute_layout(diamond())
        assert [(link.source_id, link.target_id) for link in layout.links] == [
            ("1", "2"),
            ("1", "3"),
            ("2", "4"),
            ("3", "4"),
        ]

    def test_non_epic_target_arrow(self):
        graph = issues({"1": [], "2": ["1"]})
        graph[1].is_non_epic_issue = True
        link = compute_layout(graph).links[0]
        assert link.arrow_color == NON_EPIC_ARROW_COLOR
        assert link.target_color != NON_EPIC_ARROW_COLOR

    def test_dangling_parent_has_no_link(self):
        layout = compute_layout(issues({"1": ["ghost"], "2": ["1"]}))
        assert [(link.source_id, link.target_id) for link in layout.links] == [("1", "2")]

    def test_large_graph_uses_heuristic(self):
        """Above the decross threshold the barycenter path still yields a valid layering."""
        parents_by_id = {"0": []}
        for i in range(1, 30):
            parents_by_id[str(i)] = [str(i - 1)] if i % 3 else []
        layout = compute_layout(issues(parents_by_id), LayoutSettings(max_graph_size_to_decross=5))
        assert len(layout.nodes) == 30
        for link in layout.links:
            assert layout.node(link.source_id).layer < layout.node(link.target_id).layer

    def test_no_two_nodes_share_computed_position(self):
        graph = issues({"1": [], "2": ["1"], "3": ["1"], "4": ["1"], "5": ["2", "4"], "6": []})
        positions = list(compute_layout(graph).positions().values())
        assert len(set(positions)) == len(positions)

    def test_to_dict_shape(self):
        data = compute_layout(diamond()).to_dict()
        assert data["nodeWidth"] == 90
        assert data["nodes"][0]["id"] == "1"
        assert set(data["links"][0]) == {
            "sourceId",
            "targetId",
            "points",
            "sourceColor",
            "targetColor",
            "arrowColor",
            "arrow",
        }
