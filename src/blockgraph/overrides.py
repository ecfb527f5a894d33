"""Manually pinned node coordinates layered on top of the computed layout.

Overrides are namespaced by grouping (the epic currently displayed) so that
switching groupings never leaks stale coordinates. Every write installs a new
mapping object, so consumers can detect changes by identity.
"""

from __future__ import annotations

import math
from collections import deque
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, NamedTuple

from blockgraph.errors import OverrideError

HISTORY_LIMIT = 100


class Point(NamedTuple):
    x: float
    y: float

    @classmethod
    def from_any(cls, value: Any) -> Point:
        """Accept a Point, an ``(x, y)`` pair or a ``{"x": .., "y": ..}`` mapping."""
        if isinstance(value, Mapping):
            return cls(float(value["x"]), float(value["y"]))
        x, y = value
        return cls(float(x), float(y))

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y}


OverrideMap = Mapping[str, Point]


def snap_to_grid(
    x: float,
    y: float,
    grid_width: float,
    grid_height: float,
    node_width: float,
    node_height: float,
) -> tuple[float, float]:
    """Snap a node centre to the nearest lattice point.

    Lattice points are ``k * grid + node / 2``; with ``grid = node / 2`` node
    rectangles placed on the lattice tile without gaps. Halfway points round up.
    """
    snapped_x = math.floor((x - node_width / 2) / grid_width + 0.5) * grid_width + node_width / 2
    snapped_y = math.floor((y - node_height / 2) / grid_height + 0.5) * grid_height + node_height / 2
    return snapped_x, snapped_y


@dataclass
class _Namespace:
    current: dict[str, Point] = field(default_factory=dict)
    undo_stack: deque[dict[str, Point]] = field(default_factory=lambda: deque(maxlen=HISTORY_LIMIT))
    redo_stack: deque[dict[str, Point]] = field(default_factory=lambda: deque(maxlen=HISTORY_LIMIT))


class CoordinateOverrideStore:
    """Sparse ``{issue_id: Point}`` maps, one per grouping, with undo/redo.

    Undo and redo operate on the whole active map at once, never on single
    nodes. History is bounded to ``history_limit`` snapshots per namespace.
    """

    def __init__(self, history_limit: int = HISTORY_LIMIT) -> None:
        self._history_limit = history_limit
        self._namespaces: dict[str, _Namespace] = {}
        self._active: str | None = None

    # ── namespace handling ──

    @property
    def active_namespace(self) -> str | None:
        return self._active

    def switch(self, namespace: str | None) -> None:
        """Make ``namespace`` active; other namespaces keep their data."""
        self._active = namespace
        if namespace is not None and namespace not in self._namespaces:
            self._namespaces[namespace] = self._new_namespace()

    def _new_namespace(self) -> _Namespace:
        return _Namespace(
            undo_stack=deque(maxlen=self._history_limit),
            redo_stack=deque(maxlen=self._history_limit),
        )

    def _ns(self) -> _Namespace:
        if self._active is None:
            raise OverrideError("no active override namespace")
        return self._namespaces[self._active]

    # ── reads ──

    def snapshot(self) -> Mapping[str, Point]:
        """The active map. Empty (and detached) when no namespace is active."""
        if self._active is None:
            return {}
        return self._namespaces[self._active].current

    def get(self, node_id: str) -> Point | None:
        return self.snapshot().get(node_id)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.snapshot()

    def __len__(self) -> int:
        return len(self.snapshot())

    # ── writes ──

    def _commit(self, new_map: dict[str, Point]) -> None:
        ns = self._ns()
        ns.undo_stack.append(ns.current)
        ns.redo_stack.clear()
        ns.current = new_map

    def set(self, node_id: str, point: Point | Mapping[str, float] | tuple[float, float]) -> None:
        new_map = dict(self._ns().current)
        new_map[node_id] = Point.from_any(point)
        self._commit(new_map)

    def set_many(self, points: Mapping[str, Any]) -> None:
        """Merge several positions as a single undoable step."""
        new_map = dict(self._ns().current)
        new_map.update({node_id: Point.from_any(point) for node_id, point in points.items()})
        self._commit(new_map)

    def clear(self, node_id: str) -> None:
        current = self._ns().current
        if node_id not in current:
            return
        self._commit({k: v for k, v in current.items() if k != node_id})

    def clear_all(self) -> None:
        if self._ns().current:
            self._commit({})

    # ── history ──

    @property
    def can_undo(self) -> bool:
        return self._active is not None and bool(self._namespaces[self._active].undo_stack)

    @property
    def can_redo(self) -> bool:
        return self._active is not None and bool(self._namespaces[self._active].redo_stack)

    def undo(self) -> bool:
        """Restore the previous map. Returns False when there is nothing to undo."""
        ns = self._ns()
        if not ns.undo_stack:
            return False
        ns.redo_stack.append(ns.current)
        ns.current = ns.undo_stack.pop()
        return True

    def redo(self) -> bool:
        ns = self._ns()
        if not ns.redo_stack:
            return False
        ns.undo_stack.append(ns.current)
        ns.current = ns.redo_stack.pop()
        return True

    # ── persistence shape ──

    def export(self) -> dict[str, dict[str, dict[str, float]]]:
        return {
            name: {node_id: point.to_dict() for node_id, point in ns.current.items()}
            for name, ns in self._namespaces.items()
            if ns.current
        }

    def load(self, namespace: str, mapping: Mapping[str, Any]) -> None:
        """Replace a namespace's map without recording history (e.g. on startup)."""
        ns = self._namespaces.setdefault(namespace, self._new_namespace())
        ns.current = {node_id: Point.from_any(point) for node_id, point in mapping.items()}
        ns.undo_stack.clear()
        ns.redo_stack.clear()


__all__ = ["HISTORY_LIMIT", "CoordinateOverrideStore", "OverrideMap", "Point", "snap_to_grid"]
