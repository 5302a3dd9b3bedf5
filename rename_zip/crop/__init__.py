"""Crop package public API.

Keep this module lightweight: no Qt imports here. For the interactive
widget import it directly:
    - `from rename_zip.crop.ui_crop import CropDialog`
"""

from .crop_controller import CONTROL_POINTS, HANDLES, MIN_CROP_SIZE, MOVE, DisplayRect, drag_rect, initial_rect
from .scaler import scale_factors, to_natural
from .session import CropSession, CropState, NullGrab, PointerGrab

__all__ = [
    "CONTROL_POINTS",
    "HANDLES",
    "MIN_CROP_SIZE",
    "MOVE",
    "CropSession",
    "CropState",
    "DisplayRect",
    "NullGrab",
    "PointerGrab",
    "drag_rect",
    "initial_rect",
    "scale_factors",
    "to_natural",
]
