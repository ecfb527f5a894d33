"""Command line entry point: ``blockgraph layout`` and ``blockgraph diff``."""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

from blockgraph.changes import compute_pending_ops, describe_op
from blockgraph.config import LayoutSettings, load_settings
from blockgraph.errors import BlockgraphError, GraphInputError, OverrideError
from blockgraph.graph import Graph, load_graph, prepare_display_graph
from blockgraph.layout import compute_layout
from blockgraph.logging import configure_logging
from blockgraph.overrides import Point

EXIT_INPUT_ERROR = 2


def _read_json(path: str) -> Any:
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as exc:
        raise GraphInputError(f"cannot read {path}: {exc.strerror or exc}") from exc
    except json.JSONDecodeError as exc:
        raise GraphInputError(f"invalid JSON in {path}: {exc}") from exc


def _read_graph(path: str) -> Graph:
    data = _read_json(path)
    # Either a bare list of issues or {"issues": [...]}.
    if isinstance(data, dict):
        data = data.get("issues")
    if not isinstance(data, list):
        raise GraphInputError(f"{path}: expected a list of issues")
    try:
        return load_graph(data)
    except (KeyError, TypeError, AttributeError) as exc:
        raise GraphInputError(f"{path}: malformed issue record ({exc})") from exc


def _read_overrides(path: str) -> dict[str, Point]:
    data = _read_json(path)
    if not isinstance(data, dict):
        raise OverrideError(f"{path}: expected a mapping of issue id to {{x, y}}")
    try:
        return {str(node_id): Point.from_any(value) for node_id, value in data.items()}
    except (KeyError, TypeError, ValueError) as exc:
        raise OverrideError(f"{path}: malformed override ({exc})") from exc


def _cmd_layout(args: argparse.Namespace, settings: LayoutSettings) -> int:
    graph = _read_graph(args.graph)
    overrides = _read_overrides(args.overrides) if args.overrides else {}
    display = prepare_display_graph(graph, settings, args.hide_pipeline or ())
    layout = compute_layout(display.graph, settings, overrides=overrides)
    print(json.dumps(layout.to_dict(), indent=2))
    return 0


def _cmd_diff(args: argparse.Namespace, settings: LayoutSettings) -> int:
    pending = compute_pending_ops(_read_graph(args.baseline), _read_graph(args.current))
    if args.json:
        print(json.dumps([op.to_dict() for op in pending.ops], indent=2))
    else:
        for op in pending.ops:
            print(describe_op(op))
    return 0


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="blockgraph", description="Issue dependency graph layout and diffing")
    p.add_argument("--config", default=None, help="YAML settings file (default: ./blockgraph.yaml if present)")
    sub = p.add_subparsers(dest="cmd", required=True, metavar="<command>")

    pl = sub.add_parser("layout", help="Lay out a graph and print node/link geometry as JSON")
    pl.add_argument("graph", help="JSON file with the issue list")
    pl.add_argument("--overrides", default=None, help="JSON file mapping issue id to {x, y}")
    pl.add_argument("--hide-pipeline", action="append", metavar="NAME", help="Hide issues in this pipeline")

    pd = sub.add_parser("diff", help="Print the dependency ops that turn BASELINE into CURRENT")
    pd.add_argument("baseline")
    pd.add_argument("current")
    pd.add_argument("--json", action="store_true", help="Emit ops as a JSON list")
    return p


_HANDLERS: dict[str, Callable[[argparse.Namespace, LayoutSettings], int]] = {
    "layout": _cmd_layout,
    "diff": _cmd_diff,
}


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    try:
        settings = load_settings(args.config)
        configure_logging(settings.logging_json, settings.logging_level)
        return _HANDLERS[args.cmd](args, settings)
    except BlockgraphError as exc:
        print(f"blockgraph: {exc}", file=sys.stderr)
        return EXIT_INPUT_ERROR


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
