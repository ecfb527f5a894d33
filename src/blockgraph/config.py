"""Layout and logging settings, optionally loaded from a YAML file.

Example ``blockgraph.yaml``::

    layout:
      snap_to_grid: true
      show_issue_sprints: true
      z_step: 40
    logging:
      json: false
      level: DEBUG
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml

from blockgraph.errors import ConfigError

DEFAULT_CONFIG_FILE = "blockgraph.yaml"


@dataclass(frozen=True)
class LayoutSettings:
    """Rendering settings that influence layout and the display pipeline."""

    snap_to_grid: bool = False
    show_issue_details: bool = False
    show_issue_sprints: bool = False
    show_non_epic_issues: bool = True
    show_self_contained_issues: bool = True
    show_ancestor_dependencies: bool = False
    # Graphs with fewer issues than this get exhaustive crossing minimisation.
    max_graph_size_to_decross: int = 20
    z_step: float = 40.0
    logging_json: bool = False
    logging_level: str = "INFO"

    def with_changes(self, **changes: Any) -> LayoutSettings:
        return replace(self, **changes)


_FIELD_TYPES: dict[str, tuple[type, ...]] = {
    "snap_to_grid": (bool,),
    "show_issue_details": (bool,),
    "show_issue_sprints": (bool,),
    "show_non_epic_issues": (bool,),
    "show_self_contained_issues": (bool,),
    "show_ancestor_dependencies": (bool,),
    "max_graph_size_to_decross": (int,),
    "z_step": (int, float),
    "logging_json": (bool,),
    "logging_level": (str,),
}


def _check_type(key: str, value: Any) -> Any:
    expected = _FIELD_TYPES[key]
    # bool is an int subclass; reject it for numeric fields.
    if isinstance(value, bool) and bool not in expected:
        raise ConfigError(f"{key}: expected {expected[0].__name__}, got bool")
    if not isinstance(value, expected):
        raise ConfigError(f"{key}: expected {expected[0].__name__}, got {type(value).__name__}")
    if key == "z_step":
        return float(value)
    return value


def settings_from_mapping(data: dict[str, Any] | None) -> LayoutSettings:
    """Build settings from a parsed config mapping.

    Accepts either the sectioned form (``layout:`` / ``logging:``) or a flat
    mapping of field names. Unknown keys are ignored.
    """
    if data is None:
        return LayoutSettings()
    if not isinstance(data, dict):
        raise ConfigError("config root must be a mapping")

    flat: dict[str, Any] = {}
    layout_section = data.get("layout", {})
    logging_section = data.get("logging", {})
    if not isinstance(layout_section, dict) or not isinstance(logging_section, dict):
        raise ConfigError("'layout' and 'logging' sections must be mappings")

    known = {f.name for f in fields(LayoutSettings)}
    for key, value in data.items():
        if key in known:
            flat[key] = value
    flat.update({k: v for k, v in layout_section.items() if k in known})
    if "json" in logging_section:
        flat["logging_json"] = logging_section["json"]
    if "level" in logging_section:
        flat["logging_level"] = logging_section["level"]

    return LayoutSettings(**{key: _check_type(key, value) for key, value in flat.items()})


def load_settings(path: str | Path | None = None) -> LayoutSettings:
    """Load settings from ``path`` (or ``blockgraph.yaml`` in the cwd if present)."""
    if path is None:
        candidate = Path.cwd() / DEFAULT_CONFIG_FILE
        if not candidate.exists():
            return LayoutSettings()
        path = candidate
    cfg_path = Path(path)
    try:
        raw = yaml.safe_load(cfg_path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ConfigError(f"config file not found: {cfg_path}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in {cfg_path}: {exc}") from exc
    return settings_from_mapping(raw)


__all__ = ["DEFAULT_CONFIG_FILE", "LayoutSettings", "load_settings", "settings_from_mapping"]
