"""In-memory dependency editing with cycle prevention.

Every edit works on a copy: the caller's graph is never mutated and a new list
is returned, so consumers can detect changes by identity. Invalid edits
(self-edges, duplicates, anything that would close a cycle) are rejected by
returning ``None``; they are an expected outcome of dragging onto a bad target,
not an error.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from blockgraph.graph import Edge, Graph, Issue, clone_graph, index_graph, is_ancestor_indexed
from blockgraph.overrides import Point

# ─── Edit primitives ──────────────────────────────────────────────────────────


def can_add_edge(source_id: str, target_id: str, graph: Graph, *, ignore: Edge | None = None) -> bool:
    """Whether ``source_id`` may start blocking ``target_id``.

    Rejects empty ids, self-edges, unknown targets, duplicates, and edges whose
    target is already upstream of the source. ``ignore`` removes one existing
    edge from consideration (the edge being moved by a retarget).
    """
    if not source_id or not target_id or source_id == target_id:
        return False

    index: Mapping[str, Issue] = index_graph(graph)
    target = index.get(target_id)
    if target is None or source_id in target.parent_ids:
        return False

    if ignore is not None and ignore.target_id in index:
        without = index[ignore.target_id]
        index = {
            **index,
            ignore.target_id: Issue(
                id=without.id,
                parent_ids=[pid for pid in without.parent_ids if pid != ignore.source_id],
            ),
        }
    return not is_ancestor_indexed(index, source_id, target_id)


def _find(graph: Graph, node_id: str) -> Issue | None:
    return next((issue for issue in graph if issue.id == node_id), None)


def create_edge(source_id: str, target_id: str, graph: Graph) -> Graph | None:
    if not can_add_edge(source_id, target_id, graph):
        return None
    updated = clone_graph(graph)
    target = _find(updated, target_id)
    if target is None:
        return None
    target.parent_ids.append(source_id)
    return updated


def delete_edge(source_id: str, target_id: str, graph: Graph) -> Graph | None:
    target = _find(graph, target_id)
    if target is None or source_id not in target.parent_ids:
        return None
    updated = clone_graph(graph)
    target = _find(updated, target_id)
    if target is None:
        return None
    target.parent_ids = [pid for pid in target.parent_ids if pid != source_id]
    return updated


def retarget_edge(source_id: str, old_target_id: str, new_target_id: str, graph: Graph) -> Graph | None:
    """Move the edge ``source_id -> old_target_id`` so it points at ``new_target_id``."""
    if not new_target_id or new_target_id == old_target_id:
        return None
    old_target = _find(graph, old_target_id)
    if old_target is None or source_id not in old_target.parent_ids:
        return None
    if not can_add_edge(source_id, new_target_id, graph, ignore=Edge(source_id, old_target_id)):
        return None

    updated = clone_graph(graph)
    old_target = _find(updated, old_target_id)
    new_target = _find(updated, new_target_id)
    if old_target is None or new_target is None:
        return None
    old_target.parent_ids = [pid for pid in old_target.parent_ids if pid != source_id]
    new_target.parent_ids.append(source_id)
    return updated


# ─── Controller ───────────────────────────────────────────────────────────────


@dataclass
class EditResult:
    """A successful edit: the new graph and the positions to pin as overrides."""

    graph: Graph
    positions: dict[str, Point]


class DependencyEditController:
    """Owns the working copy of the graph during interactive editing.

    ``positions`` is the last rendered ``{id: Point}`` map. Each successful edit
    hands it back so the caller can install it as coordinate overrides right
    after swapping in the new graph, keeping nodes where the user left them.
    """

    def __init__(self, graph: Graph, positions: Mapping[str, Point] | None = None) -> None:
        self._graph = clone_graph(graph)
        self._positions: dict[str, Point] = dict(positions or {})

    @property
    def graph(self) -> Graph:
        return self._graph

    def update_positions(self, positions: Mapping[str, Point]) -> None:
        self._positions = dict(positions)

    def replace_graph(self, graph: Graph) -> None:
        self._graph = clone_graph(graph)

    def can_add_edge(self, source_id: str, target_id: str) -> bool:
        return can_add_edge(source_id, target_id, self._graph)

    def _accept(self, updated: Graph | None) -> EditResult | None:
        if updated is None:
            return None
        self._graph = updated
        return EditResult(graph=updated, positions=dict(self._positions))

    def create_edge(self, source_id: str, target_id: str) -> EditResult | None:
        return self._accept(create_edge(source_id, target_id, self._graph))

    def delete_edge(self, source_id: str, target_id: str) -> EditResult | None:
        return self._accept(delete_edge(source_id, target_id, self._graph))

    def retarget_edge(self, source_id: str, old_target_id: str, new_target_id: str) -> EditResult | None:
        return self._accept(retarget_edge(source_id, old_target_id, new_target_id, self._graph))


# ─── Edit mode ────────────────────────────────────────────────────────────────


@dataclass
class EdgeDrag:
    """An in-progress handle drag: creating from ``source_id`` or moving ``edge``."""

    source_id: str
    edge: Edge | None = None
    drop_target_id: str | None = None


@dataclass
class EditMode:
    """Explicit edit-mode state for the interaction layer.

    Edit affordances (node handle, edge handle) show only while the modifier key
    is held and the pointer is over a node or edge. The interaction layer feeds
    key, hover and drag events in and reads visibility flags out.
    """

    modifier_down: bool = False
    hovered_node_id: str | None = None
    hovered_edge: Edge | None = None
    drag: EdgeDrag | None = field(default=None)

    @property
    def active(self) -> bool:
        return self.modifier_down or self.drag is not None

    @property
    def node_handle_visible(self) -> bool:
        return self.modifier_down and self.hovered_node_id is not None

    @property
    def edge_handle_visible(self) -> bool:
        return self.modifier_down and self.hovered_edge is not None

    def set_modifier(self, down: bool) -> None:
        self.modifier_down = down
        if not down:
            self.hovered_edge = None
            if self.drag is not None:
                self.drag.drop_target_id = None

    def hover_node(self, node_id: str | None, *, modifier_down: bool, busy: bool = False) -> None:
        """Pointer entered (or left, with ``None``) a node. Ignored while lasso/drag is busy."""
        if busy:
            return
        if node_id is None and self.drag is not None:
            return
        self.hovered_node_id = node_id
        if node_id is not None:
            self.modifier_down = modifier_down

    def hover_edge(self, edge: Edge | None, *, modifier_down: bool, busy: bool = False) -> None:
        if busy or self.drag is not None:
            return
        if edge is not None and not modifier_down:
            return
        if edge is not None:
            self.modifier_down = True
        self.hovered_edge = edge

    def start_create(self, source_id: str, *, modifier_down: bool) -> bool:
        if not modifier_down:
            return False
        self.drag = EdgeDrag(source_id=source_id)
        return True

    def start_retarget(self, edge: Edge, *, modifier_down: bool) -> bool:
        if not modifier_down:
            return False
        self.drag = EdgeDrag(source_id=edge.source_id, edge=edge)
        return True

    def set_drop_target(self, node_id: str | None) -> None:
        if self.drag is not None:
            self.drag.drop_target_id = None if node_id == self.drag.source_id else node_id

    def finish(self, controller: DependencyEditController, *, modifier_down: bool) -> EditResult | None:
        """Complete the drag against ``controller``; returns the edit or ``None``."""
        drag, self.drag = self.drag, None
        if drag is None or drag.drop_target_id is None:
            return None
        if drag.edge is None:
            if not modifier_down:
                return None
            return controller.create_edge(drag.source_id, drag.drop_target_id)
        return controller.retarget_edge(drag.source_id, drag.edge.target_id, drag.drop_target_id)

    def cancel(self) -> None:
        self.drag = None


__all__ = [
    "DependencyEditController",
    "EdgeDrag",
    "EditMode",
    "EditResult",
    "can_add_edge",
    "create_edge",
    "delete_edge",
    "retarget_edge",
]
