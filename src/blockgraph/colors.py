"""Fallback node colours: the d3 ``interpolateRainbow`` scale (cubehelix based)."""

from __future__ import annotations

import math

# Cubehelix -> RGB coefficients (Green 2011, as used by d3-color).
_A = -0.14861
_B = 1.78277
_C = -0.29227
_D = -0.90649
_E = 1.97294


def _clamp_channel(value: float) -> int:
    return max(0, min(255, math.floor(value + 0.5)))


def cubehelix_to_rgb(hue: float, saturation: float, lightness: float) -> tuple[int, int, int]:
    h = math.radians(hue + 120)
    a = saturation * lightness * (1 - lightness)
    cos_h = math.cos(h)
    sin_h = math.sin(h)
    r = 255 * (lightness + a * (_A * cos_h + _B * sin_h))
    g = 255 * (lightness + a * (_C * cos_h + _D * sin_h))
    b = 255 * (lightness + a * (_E * cos_h))
    return _clamp_channel(r), _clamp_channel(g), _clamp_channel(b)


def interpolate_rainbow(t: float) -> str:
    """Colour at position ``t`` (wrapped into [0, 1]) as an ``rgb(r, g, b)`` string."""
    if t < 0 or t > 1:
        t -= math.floor(t)
    ts = abs(t - 0.5)
    r, g, b = cubehelix_to_rgb(360 * t - 100, 1.5 - 1.5 * ts, 0.8 - 0.9 * ts)
    return f"rgb({r}, {g}, {b})"


def rainbow_colors(ids: list[str]) -> dict[str, str]:
    """Assign each id a rainbow colour by its position in ``ids``."""
    steps = len(ids)
    return {node_id: interpolate_rainbow(i / steps) for i, node_id in enumerate(ids)}


__all__ = ["cubehelix_to_rgb", "interpolate_rainbow", "rainbow_colors"]
