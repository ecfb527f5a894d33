"""Error taxonomy for blockgraph.

Three families matter to callers:

* ``GraphInputError``: the graph handed to the layout engine cannot be laid
  out (duplicate ids, a cycle). Fatal for the call; callers show an empty
  state instead of a partial render.
* ``ReconciliationError``: applying pending dependency changes against the
  remote system failed. ``DependencyApplyError`` carries the progress made so
  far so the caller can adopt it and retry only the remainder.
* ``ConfigError`` / ``OverrideError``: local misconfiguration.

Rejected edits (cycles, duplicate edges) are not errors: the edit functions
return ``None`` and leave state unchanged.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from blockgraph.changes import DependencyOp
    from blockgraph.graph import Graph


class BlockgraphError(Exception):
    """Root of every exception raised by this package."""


class GraphInputError(BlockgraphError):
    """The graph data is malformed (duplicate ids, cycles)."""


class LayoutError(GraphInputError):
    """The layout engine refused the graph.

    ``node_ids`` lists the offending ids (duplicates or cycle members) when known.
    """

    def __init__(self, message: str, node_ids: list[str] | None = None) -> None:
        super().__init__(message)
        self.node_ids = node_ids or []


class ConfigError(BlockgraphError):
    pass


class OverrideError(BlockgraphError):
    pass


class ReconciliationError(BlockgraphError):
    """Base class for failures while applying dependency changes remotely."""


class MissingRemoteRefError(ReconciliationError):
    """An issue involved in an op has no remote identifier; never retried."""

    def __init__(self, message: str, issue_ids: list[str]) -> None:
        super().__init__(message)
        self.issue_ids = issue_ids


class DependencyApplyError(ReconciliationError):
    """Raised by ``apply_pending_ops`` at the first failing op.

    Attributes:
        next_baseline: Baseline with every op applied before the failure folded in.
        applied_count: How many ops succeeded before ``failed_op``.
        failed_op:     The op that failed.
        total_count:   Number of ops in the batch.
    """

    def __init__(
        self,
        message: str,
        *,
        next_baseline: Graph,
        applied_count: int,
        failed_op: DependencyOp,
        total_count: int,
    ) -> None:
        super().__init__(message)
        self.next_baseline = next_baseline
        self.applied_count = applied_count
        self.failed_op = failed_op
        self.total_count = total_count

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": str(self),
            "applied_count": self.applied_count,
            "total_count": self.total_count,
            "failed_op": self.failed_op.to_dict(),
        }


__all__ = [
    "BlockgraphError",
    "ConfigError",
    "DependencyApplyError",
    "GraphInputError",
    "LayoutError",
    "MissingRemoteRefError",
    "OverrideError",
    "ReconciliationError",
]
