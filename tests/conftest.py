"""Shared fixtures for the blockgraph tests."""

from __future__ import annotations

import pytest

from blockgraph.graph import Graph, Issue
from blockgraph.logging import configure_logging


@pytest.fixture(autouse=True)
def _fresh_logger():
    """Bind the package logger to this test's captured stderr."""
    configure_logging()
    yield


def issues(parents_by_id: dict[str, list[str]], **remote_ids: str) -> Graph:
    """Build a graph from ``{id: [parent ids]}`` in dict order."""
    return [
        Issue(id=node_id, parent_ids=list(parents), remote_id=remote_ids.get(node_id))
        for node_id, parents in parents_by_id.items()
    ]


class FakeRemote:
    """Records every mutation; raises for calls listed in ``fail_on``."""

    def __init__(self, fail_on: set[tuple[str, str, str]] | None = None) -> None:
        self.calls: list[tuple[str, str, str]] = []
        self.fail_on = fail_on or set()

    async def mutate_dependency(self, kind: str, blocking_ref: str, blocked_ref: str) -> None:
        call = (kind, blocking_ref, blocked_ref)
        self.calls.append(call)
        if call in self.fail_on:
            raise RuntimeError(f"remote rejected {kind} {blocking_ref}->{blocked_ref}")


@pytest.fixture
def remote() -> FakeRemote:
    return FakeRemote()
