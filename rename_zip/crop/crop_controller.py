from __future__ import annotations

from dataclasses import dataclass

MIN_CROP_SIZE = 20.0
INITIAL_FRACTION = 0.8

# Control point names: eight compass handles plus the rect body.
HANDLES = ("n", "ne", "e", "se", "s", "sw", "w", "nw")
MOVE = "move"
CONTROL_POINTS = (*HANDLES, MOVE)


@dataclass(frozen=True, slots=True)
class DisplayRect:
    """Crop rect in display pixels, (x, y, w, h) form."""

    x: float
    y: float
    w: float
    h: float

    @property
    def x2(self) -> float:
        return self.x + self.w

    @property
    def y2(self) -> float:
        return self.y + self.h


def _clamp(v: float, lo: float, hi: float) -> float:
    # lo wins when the range is inverted, so the minimum size always holds
    return max(lo, min(hi, v))


def _edge_flags(control: str) -> tuple[bool, bool, bool, bool]:
    """Return (west, east, north, south) for a control point name."""
    c = (control or "").lower()
    if c not in CONTROL_POINTS:
        raise ValueError(f"unknown control point: {control!r}")
    if c == MOVE:
        return False, False, False, False
    return "w" in c, "e" in c, "n" in c, "s" in c


def initial_rect(display_w: float, display_h: float, fraction: float = INITIAL_FRACTION) -> DisplayRect:
    """Centred rect covering ``fraction`` of the displayed image on each axis."""
    w = display_w * fraction
    h = display_h * fraction
    return DisplayRect((display_w - w) / 2, (display_h - h) / 2, w, h)


def drag_rect(
    *,
    start: DisplayRect,
    control: str,
    dx: float,
    dy: float,
    bounds: tuple[float, float],
    min_size: float = MIN_CROP_SIZE,
) -> DisplayRect:
    """Rect produced by dragging ``control`` by (dx, dy) from ``start``.

    Always computed from the drag-start snapshot and the cumulative pointer
    delta, never from the previous frame.

    Rules:
    - move: translate, clamped so the rect stays inside ``bounds``; size kept.
    - west/north: the near edge moves, the opposite edge stays fixed; x/y never
      below 0 and the size never below ``min_size``.
    - east/south: only the size changes, within [min_size, bound - start].
    - corner handles apply both axes independently.
    """
    img_w, img_h = float(bounds[0]), float(bounds[1])
    west, east, north, south = _edge_flags(control)

    if control == MOVE:
        x = _clamp(start.x + dx, 0.0, img_w - start.w)
        y = _clamp(start.y + dy, 0.0, img_h - start.h)
        return DisplayRect(x, y, start.w, start.h)

    x, y, w, h = start.x, start.y, start.w, start.h

    if west:
        actual_dx = min(dx, start.w - min_size)
        x = _clamp(start.x + actual_dx, 0.0, start.x2 - min_size)
        w = start.w - (x - start.x)
    if east:
        w = _clamp(start.w + dx, min_size, img_w - start.x)
    if north:
        actual_dy = min(dy, start.h - min_size)
        y = _clamp(start.y + actual_dy, 0.0, start.y2 - min_size)
        h = start.h - (y - start.y)
    if south:
        h = _clamp(start.h + dy, min_size, img_h - start.y)

    return DisplayRect(x, y, w, h)
