"""Graph model: issues, their blocking relationships, and structural queries.

An issue's ``parent_ids`` lists the issues that block it. Visually an edge runs
parent -> child (blocker -> blocked). ``parent_ids`` may reference issues that
are not part of the graph (external blockers); those references are kept on the
issue but ignored by reachability and layout.

Every function here that changes structure returns a new ``Graph`` and leaves
its input untouched. Use ``clone_graph`` before mutating anything by hand.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

import networkx as nx

if TYPE_CHECKING:
    from blockgraph.config import LayoutSettings

# ─── Data Model ───────────────────────────────────────────────────────────────


@dataclass
class Issue:
    """A single work item in the dependency graph."""

    id: str
    title: str = ""
    body: str | None = None
    html_url: str = ""
    assignees: list[str] = field(default_factory=list)
    estimate: str | None = None
    pipeline_name: str = ""
    parent_ids: list[str] = field(default_factory=list)
    sprints: list[str] = field(default_factory=list)
    is_chosen_sprint: bool = False
    is_non_epic_issue: bool = False
    # Identifier understood by the remote system; the display id is a sequence number.
    remote_id: str | None = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> Issue:
        """Build an issue from a raw record with camelCase or snake_case keys."""

        def pick(camel: str, snake: str, default: Any = None) -> Any:
            if camel in record:
                return record[camel]
            return record.get(snake, default)

        estimate = record.get("estimate")
        return cls(
            id=str(record["id"]),
            title=record.get("title") or "",
            body=record.get("body"),
            html_url=pick("htmlUrl", "html_url", "") or "",
            assignees=list(record.get("assignees") or []),
            estimate=str(estimate) if estimate is not None else None,
            pipeline_name=pick("pipelineName", "pipeline_name", "") or "",
            parent_ids=[str(pid) for pid in pick("parentIds", "parent_ids", None) or []],
            sprints=list(record.get("sprints") or []),
            is_chosen_sprint=bool(pick("isChosenSprint", "is_chosen_sprint", False)),
            is_non_epic_issue=bool(pick("isNonEpicIssue", "is_non_epic_issue", False)),
            remote_id=pick("remoteId", "remote_id"),
        )

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "htmlUrl": self.html_url,
            "assignees": list(self.assignees),
            "pipelineName": self.pipeline_name,
            "parentIds": list(self.parent_ids),
            "sprints": list(self.sprints),
            "isChosenSprint": self.is_chosen_sprint,
            "isNonEpicIssue": self.is_non_epic_issue,
        }
        if self.body is not None:
            record["body"] = self.body
        if self.estimate is not None:
            record["estimate"] = self.estimate
        if self.remote_id is not None:
            record["remoteId"] = self.remote_id
        return record


Graph = list[Issue]


@dataclass(frozen=True)
class Edge:
    """A blocking relationship: ``source_id`` blocks ``target_id``."""

    source_id: str
    target_id: str

    @property
    def key(self) -> str:
        return f"{self.source_id}->{self.target_id}"


def load_graph(records: Iterable[Mapping[str, Any]]) -> Graph:
    return [Issue.from_record(record) for record in records]


def dump_graph(graph: Graph) -> list[dict[str, Any]]:
    return [issue.to_record() for issue in graph]


def clone_graph(graph: Graph) -> Graph:
    """Copy every issue, giving each its own ``parent_ids`` (and other list) objects."""
    return [
        replace(
            issue,
            parent_ids=list(issue.parent_ids),
            assignees=list(issue.assignees),
            sprints=list(issue.sprints),
        )
        for issue in graph
    ]


def index_graph(graph: Graph) -> dict[str, Issue]:
    return {issue.id: issue for issue in graph}


def edges(graph: Graph) -> list[Edge]:
    """Flatten ``parent_ids`` into edges, in node order then parent order."""
    return [Edge(source_id=pid, target_id=issue.id) for issue in graph for pid in issue.parent_ids]


def to_digraph(graph: Graph) -> nx.DiGraph:
    """Build a DiGraph (blocker -> blocked) over the issues present in ``graph``.

    Parent ids that do not resolve to an issue in the graph are skipped.
    """
    g: nx.DiGraph = nx.DiGraph()
    for issue in graph:
        g.add_node(issue.id, data=issue)
    for issue in graph:
        for pid in issue.parent_ids:
            if pid in g:
                g.add_edge(pid, issue.id)
    return g


# ─── Reachability ─────────────────────────────────────────────────────────────


def is_ancestor_indexed(index: Mapping[str, Issue], node_id: str, ancestor_id: str) -> bool:
    # Iterative DFS; ids already expanded are not followed again, so a cyclic
    # parent_ids set terminates instead of recursing forever.
    visited: set[str] = set()
    stack = [node_id]
    while stack:
        current = stack.pop()
        if current in visited:
            continue
        visited.add(current)
        issue = index.get(current)
        if issue is None:
            continue
        for pid in issue.parent_ids:
            if pid == ancestor_id:
                return True
            if pid not in visited:
                stack.append(pid)
    return False


def is_ancestor(node_id: str, candidate_ancestor_id: str, graph: Graph) -> bool:
    """True if ``candidate_ancestor_id`` is reachable from ``node_id`` via ``parent_ids``."""
    return is_ancestor_indexed(index_graph(graph), node_id, candidate_ancestor_id)


def has_cycle(graph: Graph) -> bool:
    """True if any issue is its own ancestor (self-parents included)."""
    index = index_graph(graph)
    return any(is_ancestor_indexed(index, issue.id, issue.id) for issue in graph)


def remove_redundant_ancestor_edges(graph: Graph) -> Graph:
    """Keep only the closest blockers of each issue.

    For an issue with parents P and Q where Q is itself an ancestor of P, the
    direct edge from Q is implied by the path through P and is dropped.
    """
    index = index_graph(graph)
    result = clone_graph(graph)
    for issue in result:
        if len(issue.parent_ids) < 2:
            continue
        redundant: set[str] = set()
        for parent_id in issue.parent_ids:
            for other_id in issue.parent_ids:
                if is_ancestor_indexed(index, parent_id, other_id):
                    redundant.add(other_id)
        issue.parent_ids = [pid for pid in issue.parent_ids if pid not in redundant]
    return result


# ─── Filtering ────────────────────────────────────────────────────────────────


def _nearest_kept_ancestors(
    issue: Issue,
    index: Mapping[str, Issue],
    removed_ids: set[str],
    visited: set[str],
) -> list[str]:
    found: list[str] = []
    for pid in issue.parent_ids:
        parent = index.get(pid)
        if parent is None or pid in visited:
            continue
        visited.add(pid)
        if pid in removed_ids:
            found.extend(_nearest_kept_ancestors(parent, index, removed_ids, visited))
        else:
            found.append(pid)
    return found


def remove_issues_matching(predicate: Callable[[Issue], bool], graph: Graph) -> tuple[Graph, list[Issue]]:
    """Remove matching issues while preserving blocking semantics.

    Any remaining issue blocked by a removed issue inherits that issue's nearest
    non-matching blockers instead, skipping over chains of matching issues.

    Returns:
        (new_graph, removed_issues)
    """
    index = index_graph(graph)
    removed = [issue for issue in graph if predicate(issue)]
    removed_ids = {issue.id for issue in removed}

    result: Graph = []
    for issue in clone_graph(graph):
        if issue.id in removed_ids:
            continue
        parents: list[str] = []
        for pid in issue.parent_ids:
            if pid in removed_ids:
                inherited = _nearest_kept_ancestors(index[pid], index, removed_ids, {pid})
            else:
                inherited = [pid]
            for candidate in inherited:
                if candidate not in parents:
                    parents.append(candidate)
        issue.parent_ids = parents
        result.append(issue)
    return result, [replace(issue, parent_ids=list(issue.parent_ids)) for issue in removed]


def remove_pipeline_issues(graph: Graph, pipeline_name: str) -> tuple[Graph, list[Issue]]:
    return remove_issues_matching(lambda issue: issue.pipeline_name == pipeline_name, graph)


def remove_non_epic_issues(graph: Graph) -> tuple[Graph, list[Issue]]:
    """Drop issues outside the epic along with every reference to them (no rewiring)."""
    removed = [issue for issue in graph if issue.is_non_epic_issue]
    removed_ids = {issue.id for issue in removed}
    result = [issue for issue in clone_graph(graph) if issue.id not in removed_ids]
    for issue in result:
        issue.parent_ids = [pid for pid in issue.parent_ids if pid not in removed_ids]
    return result, removed


def remove_self_contained_issues(graph: Graph) -> tuple[Graph, list[Issue]]:
    """Drop issues that neither block nor are blocked by anything."""
    blocking_ids = {pid for issue in graph for pid in issue.parent_ids}
    removed = [issue for issue in graph if not issue.parent_ids and issue.id not in blocking_ids]
    removed_ids = {issue.id for issue in removed}
    return [issue for issue in clone_graph(graph) if issue.id not in removed_ids], removed


@dataclass
class DisplayGraph:
    """A graph prepared for display plus the issues each filter hid."""

    graph: Graph
    non_epic_issues: list[Issue] = field(default_factory=list)
    self_contained_issues: list[Issue] = field(default_factory=list)
    hidden_issues: list[Issue] = field(default_factory=list)


def prepare_display_graph(
    graph: Graph,
    settings: LayoutSettings,
    hidden_pipelines: Iterable[str] = (),
) -> DisplayGraph:
    """Apply the display filters in the order the viewer applies them."""
    current = clone_graph(graph)
    display = DisplayGraph(graph=current)

    if not settings.show_non_epic_issues:
        current, display.non_epic_issues = remove_non_epic_issues(current)
    if not settings.show_self_contained_issues:
        current, display.self_contained_issues = remove_self_contained_issues(current)
    for pipeline_name in hidden_pipelines:
        current, hidden = remove_pipeline_issues(current, pipeline_name)
        display.hidden_issues.extend(hidden)
    if not settings.show_ancestor_dependencies:
        current = remove_redundant_ancestor_edges(current)

    display.graph = current
    return display


__all__ = [
    "DisplayGraph",
    "Edge",
    "Graph",
    "Issue",
    "clone_graph",
    "dump_graph",
    "edges",
    "has_cycle",
    "index_graph",
    "is_ancestor",
    "is_ancestor_indexed",
    "load_graph",
    "prepare_display_graph",
    "remove_issues_matching",
    "remove_non_epic_issues",
    "remove_pipeline_issues",
    "remove_redundant_ancestor_edges",
    "remove_self_contained_issues",
    "to_digraph",
]
