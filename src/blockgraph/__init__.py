"""Layout and editing engine for issue dependency graphs."""

from __future__ import annotations

from blockgraph.changes import (
    ApplyResult,
    CreateOp,
    DeleteOp,
    DependencyRemote,
    PendingChanges,
    RetargetOp,
    apply_pending_ops,
    compute_pending_ops,
)
from blockgraph.config import LayoutSettings, load_settings
from blockgraph.editing import DependencyEditController, EditMode
from blockgraph.errors import (
    BlockgraphError,
    DependencyApplyError,
    GraphInputError,
    LayoutError,
    MissingRemoteRefError,
)
from blockgraph.graph import Edge, Graph, Issue, clone_graph, load_graph
from blockgraph.layout import GraphLayout, compute_layout
from blockgraph.overrides import CoordinateOverrideStore, Point
from blockgraph.positioning import drag_positions, find_node_at_point, lasso_select
from blockgraph.session import GraphSession

__version__ = "0.1.0"

__all__ = [
    "ApplyResult",
    "BlockgraphError",
    "CoordinateOverrideStore",
    "CreateOp",
    "DeleteOp",
    "DependencyApplyError",
    "DependencyEditController",
    "DependencyRemote",
    "Edge",
    "EditMode",
    "Graph",
    "GraphInputError",
    "GraphLayout",
    "GraphSession",
    "Issue",
    "LayoutError",
    "LayoutSettings",
    "MissingRemoteRefError",
    "PendingChanges",
    "Point",
    "RetargetOp",
    "apply_pending_ops",
    "clone_graph",
    "compute_layout",
    "compute_pending_ops",
    "drag_positions",
    "find_node_at_point",
    "lasso_select",
    "load_graph",
    "load_settings",
]
