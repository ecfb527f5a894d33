"""``python -m blockgraph`` runs the CLI."""

from __future__ import annotations

from blockgraph.cli import main

if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
