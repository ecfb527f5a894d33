"""Sugiyama-style layered layout of an issue dependency graph.

Phases:
  1. Validation (unique ids, acyclic)
  2. Layer assignment (blockers above the issues they block)
  3. Dummy node insertion for edges spanning several layers
  4. Crossing minimization (exhaustive below a size threshold, barycenter above)
  5. Coordinate assignment on a grid of half-node cells
  6. Depth from anchors (z), coordinate overrides, overlap opacity
  7. Link geometry (arrow endpoint on the target's box) and colours

Positions are node centres. A node is ``node_width`` x ``node_height`` and the
grid cells are half that, so every computed position already sits on the snap
lattice used by ``blockgraph.overrides.snap_to_grid``.
"""

from __future__ import annotations

import itertools
import math
from collections import deque
from collections.abc import Mapping
from dataclasses import dataclass, field

import networkx as nx

from blockgraph.colors import rainbow_colors
from blockgraph.config import LayoutSettings
from blockgraph.errors import LayoutError
from blockgraph.graph import Graph, Issue, to_digraph
from blockgraph.logging import get_logger
from blockgraph.overrides import Point, snap_to_grid

# ─── Geometry constants ───────────────────────────────────────────────────────

RECT_WIDTH: float = 60.0
NON_EPIC_ARROW_COLOR = "tomato"

# Cells per node along x; dummy nodes take a single cell.
NODE_CELLS: int = 2
DUMMY_CELLS: int = 1

MAX_SWEEPS: int = 24


def get_rect_dimensions(settings: LayoutSettings) -> tuple[float, float]:
    """Return (rect_width, rect_height) of a drawn issue box."""
    if settings.show_issue_details:
        height = 44.0 if settings.show_issue_sprints else 35.0
    else:
        height = 41.0 if settings.show_issue_sprints else 35.0
    return RECT_WIDTH, height


# ─── Validation ───────────────────────────────────────────────────────────────


def validate_graph(graph: Graph) -> nx.DiGraph:
    """Build the layout DiGraph, refusing anything that is not a DAG.

    Raises:
        LayoutError: duplicate ids, or a cycle (self-parents included).
    """
    seen: set[str] = set()
    duplicates: list[str] = []
    for issue in graph:
        if issue.id in seen and issue.id not in duplicates:
            duplicates.append(issue.id)
        seen.add(issue.id)
    if duplicates:
        raise LayoutError(f"duplicate issue ids: {', '.join(duplicates)}", duplicates)

    dag = to_digraph(graph)
    if not nx.is_directed_acyclic_graph(dag):
        cycle = [src for src, _ in nx.find_cycle(dag)]
        raise LayoutError(f"dependency cycle: {' -> '.join(cycle + cycle[:1])}", cycle)
    return dag


# ─── Layer Assignment ─────────────────────────────────────────────────────────


class LayerAssignment:
    """Result of layer assignment: each node is assigned a layer (rank).

    Layer 0 is the top. Every edge goes from a lower to a strictly higher layer.

    Attributes:
        layers: Maps node id → layer index.
        layer_count: Total number of layers.
    """

    def __init__(self, layers: dict[str, int], layer_count: int) -> None:
        self.layers = layers
        self.layer_count = layer_count

    @classmethod
    def assign(cls, dag: nx.DiGraph) -> LayerAssignment:
        """Longest-path layering, then pull sources down next to their children.

        A source (nothing blocks it) sits directly above its highest child rather
        than at layer 0, which keeps its edges short.
        """
        layers: dict[str, int] = {node_id: 0 for node_id in dag.nodes}
        order = list(nx.topological_sort(dag))
        for node_id in order:
            for succ in dag.successors(node_id):
                if layers[succ] < layers[node_id] + 1:
                    layers[succ] = layers[node_id] + 1

        for node_id in reversed(order):
            if dag.in_degree(node_id) == 0 and dag.out_degree(node_id) > 0:
                layers[node_id] = min(layers[succ] for succ in dag.successors(node_id)) - 1

        layer_count = (max(layers.values()) + 1) if layers else 0
        return cls(layers=layers, layer_count=layer_count)


# ─── Dummy Node Insertion ─────────────────────────────────────────────────────

DUMMY_PREFIX = "__dummy_"


@dataclass
class DummyEdge:
    """A long edge replaced by a chain of dummy nodes, one per skipped layer."""

    original_src: str
    original_tgt: str
    dummy_ids: list[str]


@dataclass
class AugmentedGraph:
    """A graph where every edge connects adjacent layers."""

    graph: nx.DiGraph
    layers: dict[str, int]
    layer_count: int
    dummy_edges: list[DummyEdge]


def is_dummy(node_id: str) -> bool:
    return node_id.startswith(DUMMY_PREFIX)


def insert_dummy_nodes(dag: nx.DiGraph, la: LayerAssignment) -> AugmentedGraph:
    """Replace each edge u → v with layer[v] - layer[u] > 1 by u → d₁ → … → dₖ → v."""
    g: nx.DiGraph = nx.DiGraph()
    for node_id in dag.nodes:
        g.add_node(node_id, **dag.nodes[node_id])

    layers: dict[str, int] = dict(la.layers)
    dummy_edges: list[DummyEdge] = []

    for edge_counter, (src_id, tgt_id) in enumerate(list(dag.edges())):
        span = layers[tgt_id] - layers[src_id]
        if span <= 1:
            g.add_edge(src_id, tgt_id)
            continue

        dummy_ids: list[str] = []
        chain_prev = src_id
        for i in range(span - 1):
            dummy_id = f"{DUMMY_PREFIX}{edge_counter}_{i}"
            g.add_node(dummy_id, dummy=True)
            layers[dummy_id] = layers[src_id] + i + 1
            dummy_ids.append(dummy_id)
            g.add_edge(chain_prev, dummy_id)
            chain_prev = dummy_id
        g.add_edge(chain_prev, tgt_id)

        dummy_edges.append(DummyEdge(original_src=src_id, original_tgt=tgt_id, dummy_ids=dummy_ids))

    return AugmentedGraph(graph=g, layers=layers, layer_count=la.layer_count, dummy_edges=dummy_edges)


# ─── Crossing Minimization ────────────────────────────────────────────────────


def initial_ordering(aug: AugmentedGraph) -> list[list[str]]:
    """Group nodes by layer, keeping graph insertion order for determinism."""
    ordering: list[list[str]] = [[] for _ in range(aug.layer_count)]
    for node_id in aug.graph.nodes:
        ordering[aug.layers[node_id]].append(node_id)
    return ordering


def _pair_crossings(upper: list[str] | tuple[str, ...], lower: list[str] | tuple[str, ...], graph: nx.DiGraph) -> int:
    tgt_pos: dict[str, int] = {nid: i for i, nid in enumerate(lower)}
    segments: list[tuple[int, int]] = []
    for sp, src_id in enumerate(upper):
        if src_id in graph:
            for nb in graph.successors(src_id):
                if nb in tgt_pos:
                    segments.append((sp, tgt_pos[nb]))
    total = 0
    for i in range(len(segments)):
        for j in range(i + 1, len(segments)):
            ei, ej = segments[i], segments[j]
            if (ei[0] < ej[0] and ei[1] > ej[1]) or (ei[0] > ej[0] and ei[1] < ej[1]):
                total += 1
    return total


def count_crossings(ordering: list[list[str]], graph: nx.DiGraph) -> int:
    """Count edge crossings between consecutive layers (inversion count)."""
    return sum(_pair_crossings(ordering[i], ordering[i + 1], graph) for i in range(len(ordering) - 1))


def _barycenter(
    node_id: str,
    graph: nx.DiGraph,
    neighbor_pos: dict[str, float],
    direction: str,
) -> float:
    """Average position of a node's neighbours in the adjacent layer.

    direction: "incoming" to look at predecessors, "outgoing" for successors.
    Returns float('inf') if the node has no neighbours in the adjacent layer.
    """
    if node_id not in graph:
        return float("inf")

    neighbors = graph.predecessors(node_id) if direction == "incoming" else graph.successors(node_id)
    positions = [neighbor_pos[nb] for nb in neighbors if nb in neighbor_pos]
    if not positions:
        return float("inf")
    return sum(positions) / len(positions)


def minimise_crossings(aug: AugmentedGraph, ordering: list[list[str]] | None = None) -> list[list[str]]:
    """Minimise edge crossings using the barycenter heuristic.

    Alternating top-down and bottom-up sweeps run until the crossing count stops
    improving (or ``MAX_SWEEPS`` is hit). The best ordering seen is returned.
    """
    ordering = [list(layer) for layer in (ordering or initial_ordering(aug))]
    layer_count = len(ordering)

    best = count_crossings(ordering, aug.graph)
    best_ordering = [list(layer) for layer in ordering]

    for _pass in range(MAX_SWEEPS):
        if best == 0:
            break
        for layer_idx in range(1, layer_count):
            prev = {nid: float(i) for i, nid in enumerate(ordering[layer_idx - 1])}
            ordering[layer_idx].sort(key=lambda a, p=prev: _barycenter(a, aug.graph, p, "incoming"))

        for layer_idx in range(max(0, layer_count - 2), -1, -1):
            nxt = {nid: float(i) for i, nid in enumerate(ordering[layer_idx + 1])}
            ordering[layer_idx].sort(key=lambda a, n=nxt: _barycenter(a, aug.graph, n, "outgoing"))

        new = count_crossings(ordering, aug.graph)
        if new >= best:
            break
        best = new
        best_ordering = [list(layer) for layer in ordering]

    return best_ordering


class _DecrossSearch:
    """Branch and bound over layer orderings.

    Layers are fixed one at a time, starting from the narrowest and growing
    outward, so each later layer is ordered against a neighbour whose order is
    already known. Within a layer nodes are placed left to right: the crossings
    a node adds against the still unplaced ones are exact, and each unplaced
    pair is bounded below by its cheaper relative order.
    """

    def __init__(self, graph: nx.DiGraph, ordering: list[list[str]], best: int) -> None:
        self.graph = graph
        self.layers = ordering
        self.best = best
        self.best_ordering = [list(layer) for layer in ordering]
        self.current: list[list[str]] = [[] for _ in ordering]
        root = min(range(len(ordering)), key=lambda i: len(ordering[i]))
        self.sequence: list[tuple[int, int | None]] = [(root, None)]
        self.sequence += [(i, i + 1) for i in range(root - 1, -1, -1)]
        self.sequence += [(i, i - 1) for i in range(root + 1, len(ordering))]

    def run(self) -> list[list[str]]:
        self._fix_layer(0, 0)
        return self.best_ordering

    def _pair_costs(self, nodes: list[str], anchor_idx: int | None) -> dict[tuple[str, str], int]:
        """Crossings between the edges of ``u`` and ``v`` when ``u`` sits left of ``v``."""
        if anchor_idx is None:
            return {(u, v): 0 for u in nodes for v in nodes if u != v}
        pos = {nid: i for i, nid in enumerate(self.current[anchor_idx])}
        reach = {u: [pos[nb] for nb in nx.all_neighbors(self.graph, u) if nb in pos] for u in nodes}
        return {(u, v): sum(1 for p in reach[u] for q in reach[v] if p > q) for u in nodes for v in nodes if u != v}

    def _fix_layer(self, step: int, cost: int) -> None:
        if step == len(self.sequence):
            if cost < self.best:
                self.best = cost
                self.best_ordering = [list(layer) for layer in self.current]
            return
        layer_idx, anchor_idx = self.sequence[step]
        nodes = self.layers[layer_idx]
        costs = self._pair_costs(nodes, anchor_idx)
        bound = sum(min(costs[u, v], costs[v, u]) for u, v in itertools.combinations(nodes, 2))
        self._place(step, list(nodes), [], cost, bound, costs)

    def _place(
        self,
        step: int,
        remaining: list[str],
        placed: list[str],
        cost: int,
        bound: int,
        costs: dict[tuple[str, str], int],
    ) -> None:
        if cost + bound >= self.best:
            return
        if not remaining:
            self.current[self.sequence[step][0]] = placed
            self._fix_layer(step + 1, cost)
            return
        candidates = []
        for v in remaining:
            added = sum(costs[v, u] for u in remaining if u != v)
            relaxed = sum(min(costs[v, u], costs[u, v]) for u in remaining if u != v)
            candidates.append((added - relaxed, v, added, relaxed))
        candidates.sort(key=lambda c: c[0])
        for _slack, v, added, relaxed in candidates:
            rest = [u for u in remaining if u != v]
            self._place(step, rest, placed + [v], cost + added, bound - relaxed, costs)


def minimise_crossings_exact(aug: AugmentedGraph) -> list[list[str]]:
    """Crossing minimisation with a provably minimal result.

    The barycenter ordering seeds the upper bound, then ``_DecrossSearch``
    explores every ordering that could still beat it. Runtime is exponential in
    the worst case, so this is only used below ``max_graph_size_to_decross``.
    """
    ordering = minimise_crossings(aug)
    best = count_crossings(ordering, aug.graph)
    if best == 0:
        return ordering
    return _DecrossSearch(aug.graph, ordering, best).run()


# ─── Coordinate Assignment ────────────────────────────────────────────────────


@dataclass
class CellPosition:
    """A node's slot on the half-node grid: leftmost column and layer."""

    col: int
    layer: int
    cells: int

    @property
    def center2(self) -> int:
        """Centre column, doubled to stay integral."""
        return 2 * self.col + self.cells


def assign_cells(ordering: list[list[str]]) -> dict[str, CellPosition]:
    """Place every node of every layer in grid columns.

    Each layer is centred on the widest one, then shifted toward the centres of
    its parents (top-down) and children (bottom-up). Shifts larger than one node
    width are skipped so distant layers do not drag each other around. Finally
    everything is moved so the leftmost cell is column 0.
    """
    cells: dict[str, CellPosition] = {}
    layer_widths = [sum(DUMMY_CELLS if is_dummy(nid) else NODE_CELLS for nid in layer) for layer in ordering]
    max_width = max(layer_widths, default=0)

    for layer_idx, layer_nodes in enumerate(ordering):
        col = (max_width - layer_widths[layer_idx]) // 2
        for node_id in layer_nodes:
            width = DUMMY_CELLS if is_dummy(node_id) else NODE_CELLS
            cells[node_id] = CellPosition(col=col, layer=layer_idx, cells=width)
            col += width

    return cells


def refine_cells(
    ordering: list[list[str]],
    cells: dict[str, CellPosition],
    graph: nx.DiGraph,
) -> dict[str, CellPosition]:
    """Barycenter refinement of ``assign_cells`` output (in place, also returned)."""

    def shift_layer(layer_idx: int, neighbours: str) -> None:
        sum_node = 0
        sum_other = 0
        count = 0
        for node_id in ordering[layer_idx]:
            others = graph.predecessors(node_id) if neighbours == "parents" else graph.successors(node_id)
            for other in others:
                sum_node += cells[node_id].center2
                sum_other += cells[other].center2
                count += 1
        if count == 0:
            return
        # center2 is in half-columns.
        shift = round((sum_other - sum_node) / (2 * count))
        if shift == 0 or abs(shift) > NODE_CELLS:
            return
        for node_id in ordering[layer_idx]:
            cells[node_id].col += shift

    for layer_idx in range(1, len(ordering)):
        shift_layer(layer_idx, "parents")
    for layer_idx in range(len(ordering) - 2, -1, -1):
        shift_layer(layer_idx, "children")

    if cells:
        min_col = min(c.col for c in cells.values())
        if min_col != 0:
            for c in cells.values():
                c.col -= min_col
    return cells


# ─── Depth (z) ────────────────────────────────────────────────────────────────


def compute_depths(dag: nx.DiGraph) -> dict[str, int]:
    """Distance from each node to its nearest anchor.

    Anchors are nodes that block nothing (no children); they get depth 0. A
    breadth-first walk backwards along blocking edges assigns every blocker the
    minimum distance to any anchor. Nodes that reach no anchor keep depth 0.
    """
    depths: dict[str, int] = {}
    queue: deque[str] = deque()
    for node_id in dag.nodes:
        if dag.out_degree(node_id) == 0:
            depths[node_id] = 0
            queue.append(node_id)

    while queue:
        node_id = queue.popleft()
        for pred in dag.predecessors(node_id):
            if pred not in depths:
                depths[pred] = depths[node_id] + 1
                queue.append(pred)

    for node_id in dag.nodes:
        depths.setdefault(node_id, 0)
    return depths


# ─── Link Geometry ────────────────────────────────────────────────────────────


def get_intersection(dx: float, dy: float, cx: float, cy: float, w: float, h: float) -> tuple[float, float]:
    """Point where a line into a box centred at (cx, cy) crosses the box border.

    (dx, dy) is the direction from the box centre back toward the line's origin;
    w and h are the box's half-width and half-height. Coincident points return
    the centre.
    """
    if dx == 0 and dy == 0:
        return cx, cy
    if dx != 0 and abs(dy / dx) < h / w:
        # Hits a vertical side.
        return cx + (w if dx > 0 else -w), cy + dy * w / abs(dx)
    # Hits a horizontal side.
    return cx + dx * h / abs(dy), cy + (h if dy > 0 else -h)


def normalize_2d(dx: float, dy: float) -> tuple[float, float]:
    length = math.hypot(dx, dy) or 1.0
    return dx / length, dy / length


def overlap_opacities(positions: Mapping[str, Point]) -> dict[str, float]:
    """1 / N for each of N > 1 nodes sharing a position; nodes alone are omitted."""
    by_point: dict[tuple[float, float], list[str]] = {}
    for node_id, point in positions.items():
        by_point.setdefault((point.x, point.y), []).append(node_id)
    opacities: dict[str, float] = {}
    for ids in by_point.values():
        if len(ids) > 1:
            for node_id in ids:
                opacities[node_id] = 1 / len(ids)
    return opacities


def get_node_color(issue: Issue, pipeline_colors: Mapping[str, str], color_map: Mapping[str, str]) -> str:
    return pipeline_colors.get(issue.pipeline_name) or color_map[issue.id]


def get_arrow_end_color(
    source: Issue,
    target: Issue,
    pipeline_colors: Mapping[str, str],
    color_map: Mapping[str, str],
) -> str:
    if not source.is_non_epic_issue and target.is_non_epic_issue:
        return NON_EPIC_ARROW_COLOR
    return get_node_color(target, pipeline_colors, color_map)


# ─── Layout Result ────────────────────────────────────────────────────────────


@dataclass
class Arrow:
    x: float
    y: float
    dir_x: float
    dir_y: float


@dataclass
class LayoutNode:
    """A positioned issue."""

    id: str
    x: float
    y: float
    z: float
    depth: int
    layer: int
    opacity: float
    color: str
    data: Issue


@dataclass
class LayoutLink:
    """A drawn blocking edge from ``source_id`` (blocker) to ``target_id``."""

    source_id: str
    target_id: str
    points: list[Point]
    source_color: str
    target_color: str
    arrow_color: str
    arrow: Arrow


@dataclass
class GraphLayout:
    nodes: list[LayoutNode] = field(default_factory=list)
    links: list[LayoutLink] = field(default_factory=list)
    dag_width: float = 0.0
    dag_height: float = 0.0
    rect_width: float = RECT_WIDTH
    rect_height: float = 35.0
    node_width: float = 0.0
    node_height: float = 0.0
    grid_width: float = 0.0
    grid_height: float = 0.0
    arrow_size: float = 0.0

    def positions(self) -> dict[str, Point]:
        return {n.id: Point(n.x, n.y) for n in self.nodes}

    def node(self, node_id: str) -> LayoutNode | None:
        return next((n for n in self.nodes if n.id == node_id), None)

    def to_dict(self) -> dict[str, object]:
        return {
            "nodes": [
                {
                    "id": n.id,
                    "x": n.x,
                    "y": n.y,
                    "z": n.z,
                    "depth": n.depth,
                    "layer": n.layer,
                    "opacity": n.opacity,
                    "color": n.color,
                }
                for n in self.nodes
            ],
            "links": [
                {
                    "sourceId": link.source_id,
                    "targetId": link.target_id,
                    "points": [{"x": p.x, "y": p.y} for p in link.points],
                    "sourceColor": link.source_color,
                    "targetColor": link.target_color,
                    "arrowColor": link.arrow_color,
                    "arrow": {
                        "x": link.arrow.x,
                        "y": link.arrow.y,
                        "dirX": link.arrow.dir_x,
                        "dirY": link.arrow.dir_y,
                    },
                }
                for link in self.links
            ],
            "dagWidth": self.dag_width,
            "dagHeight": self.dag_height,
            "rectWidth": self.rect_width,
            "rectHeight": self.rect_height,
            "nodeWidth": self.node_width,
            "nodeHeight": self.node_height,
            "gridWidth": self.grid_width,
            "gridHeight": self.grid_height,
            "arrowSize": self.arrow_size,
        }


# ─── Full Layout Pipeline ─────────────────────────────────────────────────────


def compute_layout(
    graph: Graph,
    settings: LayoutSettings | None = None,
    *,
    pipeline_colors: Mapping[str, str] | None = None,
    overrides: Mapping[str, Point] | None = None,
) -> GraphLayout:
    """Lay out ``graph`` and return render-ready nodes, links and metrics.

    Raises:
        LayoutError: the graph has duplicate ids or a cycle.
    """
    settings = settings or LayoutSettings()
    pipeline_colors = pipeline_colors or {}
    overrides = overrides or {}

    rect_width, rect_height = get_rect_dimensions(settings)
    node_width = rect_width * 1.5
    node_height = rect_height * 2
    arrow_size = node_height / 2
    grid_width = node_width / 2
    grid_height = node_height / 2

    layout = GraphLayout(
        rect_width=rect_width,
        rect_height=rect_height,
        node_width=node_width,
        node_height=node_height,
        grid_width=grid_width,
        grid_height=grid_height,
        arrow_size=arrow_size,
    )
    if not graph:
        return layout

    with get_logger().timed_operation("compute_layout", node_count=len(graph)):
        dag = validate_graph(graph)
        la = LayerAssignment.assign(dag)
        aug = insert_dummy_nodes(dag, la)
        if len(graph) < settings.max_graph_size_to_decross:
            ordering = minimise_crossings_exact(aug)
        else:
            ordering = minimise_crossings(aug)
        cells = refine_cells(ordering, assign_cells(ordering), aug.graph)

        layout.dag_width = max(c.col + c.cells for c in cells.values()) * grid_width
        layout.dag_height = la.layer_count * node_height

        def snapped(point: Point) -> Point:
            if settings.snap_to_grid:
                return Point(*snap_to_grid(point.x, point.y, grid_width, grid_height, node_width, node_height))
            return Point(point.x, point.y)

        positions: dict[str, Point] = {}
        for issue in graph:
            cell = cells[issue.id]
            computed = Point(cell.col * grid_width + node_width / 2, cell.layer * node_height + node_height / 2)
            override = overrides.get(issue.id)
            positions[issue.id] = snapped(Point.from_any(override)) if override is not None else computed

        depths = compute_depths(dag)
        opacities = overlap_opacities(positions)

        index = {issue.id: i for i, issue in enumerate(graph)}
        traversal = list(nx.lexicographical_topological_sort(dag, key=index.__getitem__))
        color_map = rainbow_colors(traversal)
        issues = {issue.id: issue for issue in graph}

        for issue in graph:
            point = positions[issue.id]
            layout.nodes.append(
                LayoutNode(
                    id=issue.id,
                    x=point.x,
                    y=point.y,
                    z=-depths[issue.id] * settings.z_step,
                    depth=depths[issue.id],
                    layer=la.layers[issue.id],
                    opacity=opacities.get(issue.id, 1.0),
                    color=get_node_color(issue, pipeline_colors, color_map),
                    data=issue,
                )
            )

        half_w = (rect_width + arrow_size / 3) / 2
        half_h = (rect_height + arrow_size / 3) / 2
        for target in graph:
            for source_id in target.parent_ids:
                if source_id not in issues:
                    continue
                source = issues[source_id]
                start = positions[source_id]
                end = positions[target.id]
                ax, ay = get_intersection(start.x - end.x, start.y - end.y, end.x, end.y, half_w, half_h)
                dir_x, dir_y = normalize_2d(ax - start.x, ay - start.y)
                layout.links.append(
                    LayoutLink(
                        source_id=source_id,
                        target_id=target.id,
                        points=[Point(start.x, start.y), Point(ax, ay)],
                        source_color=get_node_color(source, pipeline_colors, color_map),
                        target_color=get_node_color(target, pipeline_colors, color_map),
                        arrow_color=get_arrow_end_color(source, target, pipeline_colors, color_map),
                        arrow=Arrow(x=ax, y=ay, dir_x=dir_x, dir_y=dir_y),
                    )
                )

    return layout


__all__ = [
    "DUMMY_PREFIX",
    "NON_EPIC_ARROW_COLOR",
    "RECT_WIDTH",
    "Arrow",
    "AugmentedGraph",
    "CellPosition",
    "DummyEdge",
    "GraphLayout",
    "LayerAssignment",
    "LayoutLink",
    "LayoutNode",
    "assign_cells",
    "compute_depths",
    "compute_layout",
    "count_crossings",
    "get_arrow_end_color",
    "get_intersection",
    "get_node_color",
    "get_rect_dimensions",
    "initial_ordering",
    "insert_dummy_nodes",
    "minimise_crossings",
    "minimise_crossings_exact",
    "normalize_2d",
    "overlap_opacities",
    "refine_cells",
    "validate_graph",
]
