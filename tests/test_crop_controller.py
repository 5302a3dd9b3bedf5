from __future__ import annotations

import pytest

from rename_zip.crop.crop_controller import HANDLES, MIN_CROP_SIZE, DisplayRect, drag_rect, initial_rect

BOUNDS = (400.0, 300.0)
START = DisplayRect(100.0, 50.0, 200.0, 150.0)


def _drag(control: str, dx: float, dy: float, start: DisplayRect = START) -> DisplayRect:
    return drag_rect(start=start, control=control, dx=dx, dy=dy, bounds=BOUNDS)


def test_initial_rect_is_centered_80_percent() -> None:
    r = initial_rect(400, 300)
    assert (r.w, r.h) == pytest.approx((320.0, 240.0))
    assert (r.x, r.y) == pytest.approx((40.0, 30.0))


def test_move_translates_and_keeps_size() -> None:
    out = _drag("move", 30, -20)
    assert (out.x, out.y, out.w, out.h) == (130.0, 30.0, 200.0, 150.0)


@pytest.mark.parametrize("dx,dy", [(1000, 1000), (-1000, -1000), (1000, -1000), (-1000, 1000)])
def test_move_clamps_to_bounds(dx: float, dy: float) -> None:
    out = _drag("move", dx, dy)
    assert 0.0 <= out.x and out.x2 <= BOUNDS[0]
    assert 0.0 <= out.y and out.y2 <= BOUNDS[1]
    assert (out.w, out.h) == (START.w, START.h)


def test_west_keeps_east_edge_fixed() -> None:
    out = _drag("w", -40, 0)
    assert out.x == 60.0
    assert out.x2 == START.x2
    assert out.w == 240.0


def test_west_stops_at_zero() -> None:
    out = _drag("w", -500, 0)
    assert out.x == 0.0
    assert out.x2 == START.x2


def test_west_stops_at_min_size() -> None:
    out = _drag("w", 500, 0)
    assert out.w == MIN_CROP_SIZE
    assert out.x2 == START.x2


def test_east_only_changes_width() -> None:
    out = _drag("e", 50, 0)
    assert (out.x, out.y, out.h) == (START.x, START.y, START.h)
    assert out.w == 250.0
    assert _drag("e", 1000, 0).x2 == BOUNDS[0]
    assert _drag("e", -1000, 0).w == MIN_CROP_SIZE


def test_north_and_south_mirror_west_and_east() -> None:
    north = _drag("n", 0, -20)
    assert north.y == 30.0 and north.y2 == START.y2
    assert _drag("n", 0, 1000).h == MIN_CROP_SIZE
    assert _drag("n", 0, -1000).y == 0.0

    south = _drag("s", 0, 40)
    assert south.y == START.y and south.h == 190.0
    assert _drag("s", 0, 1000).y2 == BOUNDS[1]
    assert _drag("s", 0, -1000).h == MIN_CROP_SIZE


def test_corner_applies_both_axes() -> None:
    out = _drag("nw", -10, -10)
    assert (out.x, out.y) == (90.0, 40.0)
    assert (out.x2, out.y2) == (START.x2, START.y2)

    out = _drag("se", 10, 20)
    assert (out.x, out.y) == (START.x, START.y)
    assert (out.w, out.h) == (210.0, 170.0)

    out = _drag("ne", 10, 10)
    assert out.x == START.x and out.w == 210.0
    assert out.y == 60.0 and out.y2 == START.y2

    out = _drag("sw", 10, 10)
    assert out.x == 110.0 and out.x2 == START.x2
    assert out.y == START.y and out.h == 160.0


@pytest.mark.parametrize("handle", HANDLES)
@pytest.mark.parametrize("delta", [-1000.0, -37.5, 0.0, 12.25, 1000.0])
def test_min_size_and_bounds_hold_for_every_handle(handle: str, delta: float) -> None:
    out = _drag(handle, delta, delta)
    assert out.w >= MIN_CROP_SIZE
    assert out.h >= MIN_CROP_SIZE
    assert out.x >= 0.0 and out.y >= 0.0
    assert out.x2 <= BOUNDS[0] + 1e-9
    assert out.y2 <= BOUNDS[1] + 1e-9


def test_unknown_control_point_rejected() -> None:
    with pytest.raises(ValueError):
        _drag("center", 1, 1)
