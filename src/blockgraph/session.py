"""An editing session over one grouping of issues.

The session holds two graphs: ``baseline`` (what the remote system has) and
``current`` (what the user sees and edits). Pending changes are always the diff
between the two; committing pushes them to the remote and moves the baseline
forward by however many ops succeeded.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from blockgraph.changes import (
    ApplyResult,
    DependencyRemote,
    PendingChanges,
    apply_pending_ops,
    compute_pending_ops,
)
from blockgraph.config import LayoutSettings
from blockgraph.editing import DependencyEditController, EditResult
from blockgraph.errors import DependencyApplyError
from blockgraph.graph import Graph, Issue, clone_graph, prepare_display_graph
from blockgraph.layout import GraphLayout, compute_layout
from blockgraph.logging import get_logger
from blockgraph.overrides import CoordinateOverrideStore, Point, snap_to_grid
from blockgraph.positioning import drag_positions, find_node_at_point, lasso_select


class GraphSession:
    def __init__(
        self,
        settings: LayoutSettings | None = None,
        overrides: CoordinateOverrideStore | None = None,
    ) -> None:
        self.settings = settings or LayoutSettings()
        self.overrides = overrides if overrides is not None else CoordinateOverrideStore()
        self.baseline: Graph = []
        self._controller = DependencyEditController([])
        self.grouping_key: str | None = None
        self._last_layout = GraphLayout()

    @property
    def current(self) -> Graph:
        return self._controller.graph

    def load(self, grouping_key: str, graph: Iterable[Issue] | Iterable[Mapping[str, Any]]) -> None:
        """Start editing ``graph``; coordinate overrides switch to ``grouping_key``."""
        items = list(graph)
        issues = [item if isinstance(item, Issue) else Issue.from_record(item) for item in items]
        self.grouping_key = grouping_key
        self.baseline = clone_graph(issues)
        self._controller = DependencyEditController(issues)
        self.overrides.switch(grouping_key)
        self._last_layout = GraphLayout()
        get_logger().log_operation("session_load", grouping_key=grouping_key, issue_count=len(issues))

    def layout(
        self,
        pipeline_colors: Mapping[str, str] | None = None,
        hidden_pipelines: Iterable[str] = (),
    ) -> GraphLayout:
        display = prepare_display_graph(self.current, self.settings, hidden_pipelines)
        result = compute_layout(
            display.graph,
            self.settings,
            pipeline_colors=pipeline_colors,
            overrides=self.overrides.snapshot(),
        )
        self._controller.update_positions(result.positions())
        self._last_layout = result
        return result

    def _snap(self, x: float, y: float) -> tuple[float, float]:
        drawn = self._last_layout
        return snap_to_grid(x, y, drawn.grid_width, drawn.grid_height, drawn.node_width, drawn.node_height)

    def drag(self, ids: Iterable[str], dx: float, dy: float) -> dict[str, Point]:
        """Move ``ids`` by (dx, dy) from where they were last drawn and pin them.

        The whole drag is a single undo step. Returns the pinned positions.
        """
        snap = self._snap if self.settings.snap_to_grid else None
        moved = drag_positions(self._last_layout.positions(), ids, dx, dy, snap=snap)
        if moved and self.overrides.active_namespace is not None:
            self.overrides.set_many(moved)
        return moved

    def select(self, x: float, y: float, width: float, height: float) -> list[str]:
        return lasso_select(self._last_layout.positions(), x, y, width, height)

    def node_at(self, x: float, y: float, exclude_id: str | None = None) -> str | None:
        drawn = self._last_layout
        return find_node_at_point(drawn.positions(), x, y, drawn.rect_width, drawn.rect_height, exclude_id)

    def _install(self, result: EditResult | None) -> bool:
        if result is None:
            return False
        # Pin every node where it was last drawn so the edit doesn't reshuffle the view.
        if result.positions and self.overrides.active_namespace is not None:
            self.overrides.set_many(result.positions)
        return True

    def can_add_edge(self, source_id: str, target_id: str) -> bool:
        return self._controller.can_add_edge(source_id, target_id)

    def create_edge(self, source_id: str, target_id: str) -> bool:
        return self._install(self._controller.create_edge(source_id, target_id))

    def delete_edge(self, source_id: str, target_id: str) -> bool:
        return self._install(self._controller.delete_edge(source_id, target_id))

    def retarget_edge(self, source_id: str, old_target_id: str, new_target_id: str) -> bool:
        return self._install(self._controller.retarget_edge(source_id, old_target_id, new_target_id))

    def discard_changes(self) -> None:
        self._controller.replace_graph(self.baseline)

    def pending_ops(self) -> PendingChanges:
        return compute_pending_ops(self.baseline, self.current)

    @property
    def has_pending_changes(self) -> bool:
        return bool(self.pending_ops().ops)

    async def commit(self, remote: DependencyRemote) -> ApplyResult:
        """Push pending ops to ``remote``.

        On failure the baseline still advances past the ops that succeeded and
        the ``DependencyApplyError`` is re-raised; the next ``pending_ops()``
        then holds only what is left.
        """
        ops = self.pending_ops().ops
        if not ops:
            return ApplyResult(next_baseline=clone_graph(self.baseline), applied_count=0, total_count=0)
        try:
            result = await apply_pending_ops(self.baseline, self.current, ops, remote)
        except DependencyApplyError as exc:
            self.baseline = exc.next_baseline
            raise
        self.baseline = result.next_baseline
        return result


__all__ = ["GraphSession"]
