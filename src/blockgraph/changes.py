"""Pending dependency changes: diffing a baseline against the edited graph and
applying the result to the remote system.

The baseline is the last graph state known to match the remote. The diff is
recomputed from scratch whenever pending changes are requested, so nothing
here keeps state between calls.

Ordering of the computed ops is fixed: retargets, then creates, then deletes.
A retarget is sent as create-new-edge followed by delete-old-edge; if the
delete fails, the new edge is deleted again so the remote is left as it was.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Literal, Protocol, Union

from blockgraph.errors import DependencyApplyError, MissingRemoteRefError
from blockgraph.graph import Edge, Graph, Issue, clone_graph, edges
from blockgraph.logging import get_logger

MutationKind = Literal["create", "delete"]

# ─── Ops ──────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class CreateOp:
    edge: Edge
    kind: Literal["create"] = field(default="create", init=False)

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "sourceId": self.edge.source_id, "targetId": self.edge.target_id}


@dataclass(frozen=True)
class DeleteOp:
    edge: Edge
    kind: Literal["delete"] = field(default="delete", init=False)

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "sourceId": self.edge.source_id, "targetId": self.edge.target_id}


@dataclass(frozen=True)
class RetargetOp:
    source_id: str
    old_target_id: str
    new_target_id: str
    kind: Literal["retarget"] = field(default="retarget", init=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "sourceId": self.source_id,
            "oldTargetId": self.old_target_id,
            "newTargetId": self.new_target_id,
        }


DependencyOp = Union[CreateOp, DeleteOp, RetargetOp]


def describe_op(op: DependencyOp) -> str:
    if isinstance(op, CreateOp):
        return f"+ {op.edge.source_id} blocks {op.edge.target_id}"
    if isinstance(op, DeleteOp):
        return f"- {op.edge.source_id} blocks {op.edge.target_id}"
    return f"~ {op.source_id} blocks {op.new_target_id} (was {op.old_target_id})"


# ─── Diff ─────────────────────────────────────────────────────────────────────


@dataclass
class PendingChanges:
    ops: list[DependencyOp] = field(default_factory=list)
    creates: list[Edge] = field(default_factory=list)
    deletes: list[Edge] = field(default_factory=list)


def compute_pending_ops(baseline: Graph | None, current: Graph | None) -> PendingChanges:
    """Ops that turn ``baseline`` into ``current``.

    A source with exactly one created and one deleted edge becomes a single
    retarget. Sources with several creates or deletes are left as independent
    ops; no pairing is guessed for them.
    """
    if not baseline or not current:
        return PendingChanges()

    baseline_edges = edges(baseline)
    current_edges = edges(current)
    baseline_keys = {e.key for e in baseline_edges}
    current_keys = {e.key for e in current_edges}

    creates = [e for e in current_edges if e.key not in baseline_keys]
    deletes = [e for e in baseline_edges if e.key not in current_keys]

    creates_by_source: dict[str, list[Edge]] = {}
    deletes_by_source: dict[str, list[Edge]] = {}
    for e in creates:
        creates_by_source.setdefault(e.source_id, []).append(e)
    for e in deletes:
        deletes_by_source.setdefault(e.source_id, []).append(e)

    retargets: list[DependencyOp] = []
    paired: set[str] = set()
    for source_id in dict.fromkeys([*creates_by_source, *deletes_by_source]):
        cs = creates_by_source.get(source_id, [])
        ds = deletes_by_source.get(source_id, [])
        if len(cs) == 1 and len(ds) == 1:
            retargets.append(
                RetargetOp(source_id=source_id, old_target_id=ds[0].target_id, new_target_id=cs[0].target_id)
            )
            paired.add(cs[0].key)
            paired.add(ds[0].key)

    ops: list[DependencyOp] = [
        *retargets,
        *(CreateOp(edge=e) for e in creates if e.key not in paired),
        *(DeleteOp(edge=e) for e in deletes if e.key not in paired),
    ]
    return PendingChanges(ops=ops, creates=creates, deletes=deletes)


def _add_parent(issue: Issue, parent_id: str) -> None:
    if parent_id not in issue.parent_ids:
        issue.parent_ids.append(parent_id)


def _remove_parent(issue: Issue, parent_id: str) -> None:
    issue.parent_ids = [pid for pid in issue.parent_ids if pid != parent_id]


def apply_edge_to_baseline(baseline: Graph, op: DependencyOp) -> Graph:
    """Return a copy of ``baseline`` with ``op`` applied locally.

    Ops touching issues that are not in the baseline are skipped for those issues.
    """
    nxt = clone_graph(baseline)
    by_id = {issue.id: issue for issue in nxt}

    if isinstance(op, CreateOp):
        target = by_id.get(op.edge.target_id)
        if target is not None:
            _add_parent(target, op.edge.source_id)
    elif isinstance(op, DeleteOp):
        target = by_id.get(op.edge.target_id)
        if target is not None:
            _remove_parent(target, op.edge.source_id)
    else:
        old_target = by_id.get(op.old_target_id)
        new_target = by_id.get(op.new_target_id)
        if old_target is not None:
            _remove_parent(old_target, op.source_id)
        if new_target is not None:
            _add_parent(new_target, op.source_id)
    return nxt


# ─── Reconciliation ───────────────────────────────────────────────────────────


class DependencyRemote(Protocol):
    """The remote system's dependency mutation endpoint.

    ``blocking_ref`` and ``blocked_ref`` are remote identifiers, not display ids.
    """

    async def mutate_dependency(self, kind: MutationKind, blocking_ref: str, blocked_ref: str) -> None: ...


@dataclass
class ApplyResult:
    next_baseline: Graph
    applied_count: int
    total_count: int

    @property
    def complete(self) -> bool:
        return self.applied_count == self.total_count


class _RefResolver:
    def __init__(self, current: Graph) -> None:
        self._refs = {issue.id: issue.remote_id for issue in current if issue.remote_id}

    def resolve(self, *issue_ids: str) -> list[str]:
        missing = [issue_id for issue_id in issue_ids if issue_id not in self._refs]
        if missing:
            raise MissingRemoteRefError(f"missing remote id for issue(s): {', '.join(missing)}", missing)
        return [self._refs[issue_id] for issue_id in issue_ids]


async def _apply_retarget(op: RetargetOp, resolver: _RefResolver, remote: DependencyRemote) -> None:
    source_ref, old_ref, new_ref = resolver.resolve(op.source_id, op.old_target_id, op.new_target_id)
    await remote.mutate_dependency("create", source_ref, new_ref)
    try:
        await remote.mutate_dependency("delete", source_ref, old_ref)
    except Exception:
        try:
            await remote.mutate_dependency("delete", source_ref, new_ref)
        except Exception as compensation_exc:
            # The original failure is what gets reported.
            get_logger().warning(
                "compensating delete failed",
                op=describe_op(op),
                error=str(compensation_exc),
            )
        raise


async def _apply_one(op: DependencyOp, resolver: _RefResolver, remote: DependencyRemote) -> None:
    if isinstance(op, CreateOp):
        blocking_ref, blocked_ref = resolver.resolve(op.edge.source_id, op.edge.target_id)
        await remote.mutate_dependency("create", blocking_ref, blocked_ref)
    elif isinstance(op, DeleteOp):
        blocking_ref, blocked_ref = resolver.resolve(op.edge.source_id, op.edge.target_id)
        await remote.mutate_dependency("delete", blocking_ref, blocked_ref)
    elif isinstance(op, RetargetOp):
        await _apply_retarget(op, resolver, remote)
    else:  # pragma: no cover - exhaustive over DependencyOp
        raise TypeError(f"unknown dependency op: {op!r}")


async def apply_pending_ops(
    baseline: Graph,
    current: Graph,
    ops: list[DependencyOp],
    remote: DependencyRemote,
) -> ApplyResult:
    """Apply ``ops`` one at a time, folding each success into the next baseline.

    Raises:
        DependencyApplyError: at the first failing op. It carries the baseline
            with all earlier ops folded in, so the caller can adopt it and a
            fresh diff yields only the remaining changes.
    """
    logger = get_logger()
    resolver = _RefResolver(current)
    next_baseline = clone_graph(baseline)
    applied_count = 0

    for op in ops:
        try:
            await _apply_one(op, resolver, remote)
        except Exception as exc:
            logger.log_error(
                "dependency change failed",
                error=str(exc),
                op=describe_op(op),
                applied_count=applied_count,
                total_count=len(ops),
            )
            raise DependencyApplyError(
                str(exc) or "Failed to apply dependency changes",
                next_baseline=next_baseline,
                applied_count=applied_count,
                failed_op=op,
                total_count=len(ops),
            ) from exc
        next_baseline = apply_edge_to_baseline(next_baseline, op)
        applied_count += 1
        logger.log_dependency_op(op.kind, describe_op(op), applied_count=applied_count)

    return ApplyResult(next_baseline=next_baseline, applied_count=applied_count, total_count=len(ops))


def format_apply_summary(result: ApplyResult | DependencyApplyError) -> str:
    """User-facing message for a finished (or failed) commit."""
    if isinstance(result, DependencyApplyError):
        if result.applied_count == 0:
            return str(result)
        return f"Applied {result.applied_count}/{result.total_count} changes. {result}"
    if result.complete:
        plural = "" if result.applied_count == 1 else "s"
        return f"Applied {result.applied_count} dependency change{plural}."
    return f"Applied {result.applied_count}/{result.total_count} changes."


def ops_from_dicts(items: list[Mapping[str, Any]]) -> list[DependencyOp]:
    """Inverse of ``op.to_dict()`` for every op kind."""
    ops: list[DependencyOp] = []
    for item in items:
        kind = item.get("kind")
        if kind == "create":
            ops.append(CreateOp(edge=Edge(str(item["sourceId"]), str(item["targetId"]))))
        elif kind == "delete":
            ops.append(DeleteOp(edge=Edge(str(item["sourceId"]), str(item["targetId"]))))
        elif kind == "retarget":
            ops.append(
                RetargetOp(
                    source_id=str(item["sourceId"]),
                    old_target_id=str(item["oldTargetId"]),
                    new_target_id=str(item["newTargetId"]),
                )
            )
        else:
            raise ValueError(f"unknown dependency op kind: {kind!r}")
    return ops


__all__ = [
    "ApplyResult",
    "CreateOp",
    "DeleteOp",
    "DependencyOp",
    "DependencyRemote",
    "PendingChanges",
    "RetargetOp",
    "apply_edge_to_baseline",
    "apply_pending_ops",
    "compute_pending_ops",
    "describe_op",
    "format_apply_summary",
    "ops_from_dicts",
]
