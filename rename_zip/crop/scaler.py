"""Display <-> natural coordinate conversion for the crop tool."""

from __future__ import annotations

import math

from rename_zip.crop.crop_controller import DisplayRect
from rename_zip.models import CropArea


def _round_half_up(v: float) -> int:
    return int(math.floor(v + 0.5))


def _check_scale(value: float, axis: str) -> float:
    s = float(value)
    if math.isnan(s) or s <= 0:
        raise ValueError(f"scale_{axis} must be a positive number, got {value!r}")
    return s


def scale_factors(natural_size: tuple[int, int], display_size: tuple[float, float]) -> tuple[float, float]:
    """Return ``(scale_x, scale_y)`` mapping display pixels to natural pixels."""
    nw, nh = natural_size
    dw, dh = display_size
    if dw <= 0 or dh <= 0:
        raise ValueError(f"display size must be positive, got {display_size!r}")
    return nw / dw, nh / dh


def to_natural(
    rect: DisplayRect,
    scale_x: float,
    scale_y: float,
    bounds: tuple[int, int] | None = None,
) -> CropArea:
    """Convert a display rect to natural pixels.

    Each of x, y, width and height is scaled and rounded on its own. Rounding
    the fields separately can overshoot the right/bottom edge by one pixel;
    pass ``bounds`` (natural width, height) to trim the size back inside.
    """
    sx = _check_scale(scale_x, "x")
    sy = _check_scale(scale_y, "y")

    x = max(0, _round_half_up(rect.x * sx))
    y = max(0, _round_half_up(rect.y * sy))
    w = max(1, _round_half_up(rect.w * sx))
    h = max(1, _round_half_up(rect.h * sy))

    if bounds is not None:
        nw, nh = int(bounds[0]), int(bounds[1])
        x = min(x, max(0, nw - 1))
        y = min(y, max(0, nh - 1))
        w = max(1, min(w, nw - x))
        h = max(1, min(h, nh - y))

    return CropArea(x, y, w, h)

