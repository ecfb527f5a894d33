"""Pointer-driven positioning math: dragging, lasso selection and hit testing.

These work on plain ``{id: Point}`` maps (``GraphLayout.positions()`` merged
with the active overrides) so the interaction layer stays a thin shell.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from decimal import ROUND_HALF_UP, Decimal

from blockgraph.overrides import Point

SnapFn = Callable[[float, float], tuple[float, float]]


def round_coordinate(value: float, places: int = 1) -> float:
    """Round half away from zero to ``places`` decimals (keeps persisted values short)."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def drag_positions(
    positions: Mapping[str, Point],
    ids: Iterable[str],
    dx: float,
    dy: float,
    *,
    snap: SnapFn | None = None,
) -> dict[str, Point]:
    """Final positions of the dragged nodes after moving them by (dx, dy).

    Only the moved ids are returned; merge them into the override store with
    ``set_many`` so the whole drag is one undo step.
    """
    moved: dict[str, Point] = {}
    for node_id in ids:
        start = positions.get(node_id)
        if start is None:
            continue
        x = round_coordinate(start.x + dx)
        y = round_coordinate(start.y + dy)
        if snap is not None:
            x, y = snap(x, y)
        moved[node_id] = Point(x, y)
    return moved


def lasso_select(positions: Mapping[str, Point], x: float, y: float, width: float, height: float) -> list[str]:
    """Ids whose centre lies inside the rectangle (edges inclusive)."""
    return [
        node_id
        for node_id, p in positions.items()
        if x <= p.x <= x + width and y <= p.y <= y + height
    ]


def find_node_at_point(
    positions: Mapping[str, Point],
    x: float,
    y: float,
    rect_width: float,
    rect_height: float,
    exclude_id: str | None = None,
) -> str | None:
    """Top-most node whose box contains (x, y); later entries are drawn on top."""
    for node_id, p in reversed(list(positions.items())):
        if node_id == exclude_id:
            continue
        if p.x - rect_width / 2 <= x <= p.x + rect_width / 2 and p.y - rect_height / 2 <= y <= p.y + rect_height / 2:
            return node_id
    return None


def issues_at(positions: Mapping[str, Point], x: float, y: float, exclude_id: str | None = None) -> list[str]:
    """Ids placed exactly at (x, y), used to highlight a snap target that is occupied."""
    return [node_id for node_id, p in positions.items() if p.x == x and p.y == y and node_id != exclude_id]


__all__ = ["SnapFn", "drag_positions", "find_node_at_point", "issues_at", "lasso_select", "round_coordinate"]
