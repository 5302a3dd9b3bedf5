"""Preview decoding using pyvips.

Produces downscaled RGB numpy arrays for on-screen display. The crop tool
shows these previews; the natural size reported alongside always comes from
the full image, so display->natural scaling stays exact.
"""

from __future__ import annotations

import numpy as np
import pyvips  # type: ignore

from rename_zip.errors import DecodeError
from rename_zip.logger import get_logger
from rename_zip.models import SourceFile
from rename_zip.transform import decoded_image

_logger = get_logger("decoder")

RGB_CHANNELS = 3


def _to_rgb_array(image: pyvips.Image) -> np.ndarray:
    try:
        image = image.colourspace("srgb")
    except pyvips.Error:
        _logger.debug("colourspace conversion skipped")
    if image.hasalpha():
        image = image.flatten(background=[0, 0, 0])
    if image.bands > RGB_CHANNELS:
        image = image.extract_band(0, n=RGB_CHANNELS)
    elif image.bands < RGB_CHANNELS:
        image = pyvips.Image.bandjoin([image] * RGB_CHANNELS)
    if image.format != "uchar":
        image = image.cast("uchar")

    mem = image.write_to_memory()
    array = np.frombuffer(mem, dtype=np.uint8).reshape(image.height, image.width, image.bands)
    return array.copy()


def decode_preview(source: SourceFile, max_width: int, max_height: int) -> tuple[tuple[int, int], np.ndarray]:
    """Return ``((natural_w, natural_h), rgb_array)`` for ``source``.

    The array fits within ``max_width`` x ``max_height`` and is never upscaled.

    Raises:
        DecodeError: the data is not an image libvips can read
    """
    with decoded_image(source, access="random") as full:
        natural = (int(full.width), int(full.height))

    try:
        thumb = pyvips.Image.thumbnail_buffer(
            source.data,
            max(1, int(max_width)),
            height=max(1, int(max_height)),
            size="down",
            option_string="",
        )
        array = _to_rgb_array(thumb)
    except pyvips.Error as e:
        raise DecodeError(source.name, str(e).strip() or "preview decoding failed") from e

    _logger.debug("preview %s: natural=%dx%d preview=%dx%d", source.name, *natural, array.shape[1], array.shape[0])
    return natural, array
