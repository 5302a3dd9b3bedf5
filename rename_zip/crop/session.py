"""Crop interaction session.

Owns the display-space crop rect while the crop tool is open and turns
press/move/release sequences on a control point into rect updates.

States::

    idle --open()--> active --press()--> dragging --release()/abort_drag()--> active
    active --commit()--> idle (returns CropArea)
    active --cancel()--> idle

While dragging, pointer tracking is global: a ``PointerGrab`` is entered on
``press`` and is always exited when the session leaves ``dragging``, whatever
the reason (release, focus loss, cancel, commit or an exception in a move).

Keep this module free of Qt dependencies; the widget supplies a grab that
installs an application-wide event filter.
"""

from __future__ import annotations

import contextlib
import enum
from dataclasses import dataclass
from typing import Protocol

from rename_zip.crop.crop_controller import (
    CONTROL_POINTS,
    INITIAL_FRACTION,
    MIN_CROP_SIZE,
    DisplayRect,
    drag_rect,
    initial_rect,
)
from rename_zip.crop.scaler import scale_factors, to_natural
from rename_zip.logger import get_logger
from rename_zip.models import CropArea

_logger = get_logger("crop_session")


class CropState(enum.Enum):
    IDLE = "idle"
    ACTIVE = "active"
    DRAGGING = "dragging"


class PointerGrab(Protocol):
    """Global pointer listener attached only for the duration of a drag."""

    def attach(self) -> None: ...

    def detach(self) -> None: ...


class NullGrab:
    """Grab used when the host has nothing to attach (headless use, tests)."""

    def attach(self) -> None:
        pass

    def detach(self) -> None:
        pass


@dataclass(frozen=True, slots=True)
class _Drag:
    control: str
    start_x: float
    start_y: float
    start_rect: DisplayRect


class CropSession:
    def __init__(
        self,
        grab: PointerGrab | None = None,
        *,
        min_size: float = MIN_CROP_SIZE,
        initial_fraction: float = INITIAL_FRACTION,
    ) -> None:
        self._grab: PointerGrab = grab if grab is not None else NullGrab()
        self._min_size = float(min_size)
        self._initial_fraction = float(initial_fraction)
        self._state = CropState.IDLE
        self._rect: DisplayRect | None = None
        self._natural_size: tuple[int, int] = (0, 0)
        self._display_size: tuple[float, float] = (0.0, 0.0)
        self._drag: _Drag | None = None
        self._grab_stack: contextlib.ExitStack | None = None

    # ---- read-only state ----
    @property
    def state(self) -> CropState:
        return self._state

    @property
    def rect(self) -> DisplayRect | None:
        return self._rect

    @property
    def dragging(self) -> bool:
        return self._state is CropState.DRAGGING

    @property
    def control(self) -> str | None:
        return self._drag.control if self._drag is not None else None

    @property
    def display_size(self) -> tuple[float, float]:
        return self._display_size

    @property
    def natural_size(self) -> tuple[int, int]:
        return self._natural_size

    def natural_preview(self) -> CropArea | None:
        """The CropArea a commit would produce right now (for size labels)."""
        if self._rect is None:
            return None
        sx, sy = scale_factors(self._natural_size, self._display_size)
        return to_natural(self._rect, sx, sy, bounds=self._natural_size)

    # ---- transitions ----
    def open(self, natural_size: tuple[int, int], display_size: tuple[float, float]) -> DisplayRect:
        """Start a session for one image. Any drag from a previous session is dropped."""
        nw, nh = int(natural_size[0]), int(natural_size[1])
        dw, dh = float(display_size[0]), float(display_size[1])
        if nw <= 0 or nh <= 0 or dw <= 0 or dh <= 0:
            raise ValueError(f"image must be loaded and measured: natural={natural_size} display={display_size}")

        self._end_drag()
        self._natural_size = (nw, nh)
        self._display_size = (dw, dh)
        self._rect = initial_rect(dw, dh, self._initial_fraction)
        self._state = CropState.ACTIVE
        _logger.debug("crop session opened: natural=%dx%d display=%.1fx%.1f", nw, nh, dw, dh)
        return self._rect

    def resize_display(self, display_size: tuple[float, float]) -> None:
        """The image was re-laid out at a new on-screen size; keep the rect proportional."""
        if self._rect is None:
            return
        ow, oh = self._display_size
        dw, dh = float(display_size[0]), float(display_size[1])
        if dw <= 0 or dh <= 0 or (dw, dh) == (ow, oh):
            return
        self._end_drag()
        fx, fy = dw / ow, dh / oh
        r = self._rect
        self._rect = DisplayRect(r.x * fx, r.y * fy, r.w * fx, r.h * fy)
        self._display_size = (dw, dh)

    def press(self, control: str, x: float, y: float) -> bool:
        """Pointer-down on a control point. Returns True if a drag started."""
        if self._state is not CropState.ACTIVE or self._rect is None:
            return False
        if control not in CONTROL_POINTS:
            raise ValueError(f"unknown control point: {control!r}")

        stack = contextlib.ExitStack()
        self._grab.attach()
        stack.callback(self._grab.detach)
        self._grab_stack = stack

        self._drag = _Drag(control, float(x), float(y), self._rect)
        self._state = CropState.DRAGGING
        return True

    def drag_to(self, x: float, y: float) -> DisplayRect | None:
        """Pointer-move while dragging; ignored in any other state."""
        drag = self._drag
        if self._state is not CropState.DRAGGING or drag is None:
            return self._rect
        try:
            self._rect = drag_rect(
                start=drag.start_rect,
                control=drag.control,
                dx=float(x) - drag.start_x,
                dy=float(y) - drag.start_y,
                bounds=self._display_size,
                min_size=self._min_size,
            )
        except Exception:
            self._end_drag()
            raise
        return self._rect

    def release(self) -> None:
        """Pointer-up: the current rect becomes the resting state."""
        if self._state is CropState.DRAGGING:
            self._end_drag()

    def abort_drag(self) -> None:
        """The pointer-up was lost (window blur, tab switch); same as a release."""
        if self._state is CropState.DRAGGING:
            _logger.debug("crop drag aborted (focus lost)")
            self._end_drag()

    def commit(self) -> CropArea:
        if self._state is CropState.IDLE or self._rect is None:
            raise RuntimeError("no crop session is open")
        self._end_drag()
        area = self.natural_preview()
        assert area is not None
        self._reset()
        _logger.info("crop committed: %s", area.as_tuple())
        return area

    def cancel(self) -> None:
        self._end_drag()
        self._reset()

    # ---- internals ----
    def _end_drag(self) -> None:
        stack, self._grab_stack = self._grab_stack, None
        self._drag = None
        if self._state is CropState.DRAGGING:
            self._state = CropState.ACTIVE
        if stack is not None:
            stack.close()

    def _reset(self) -> None:
        self._rect = None
        self._state = CropState.IDLE
