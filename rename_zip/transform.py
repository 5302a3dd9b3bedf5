"""Single-image crop and re-encode using pyvips.

Pure functions, no Qt dependencies.
"""

from __future__ import annotations

import contextlib
from collections.abc import Iterator
from typing import Any

import pyvips  # type: ignore

from rename_zip.errors import CropOutOfBoundsError, DecodeError, EncodeError
from rename_zip.logger import get_logger
from rename_zip.models import CropArea, SourceFile

_logger = get_logger("transform")

DEFAULT_QUALITY = 95

# media type -> (saver suffix, saver takes Q); types missing here (e.g. BMP) stay uncropped
_SAVERS: dict[str, tuple[str, bool]] = {
    "image/jpeg": (".jpg", True),
    "image/jpg": (".jpg", True),
    "image/pjpeg": (".jpg", True),
    "image/png": (".png", False),
    "image/webp": (".webp", True),
    "image/gif": (".gif", False),
    "image/tiff": (".tif", False),
    "image/avif": (".avif", True),
    "image/heic": (".heic", True),
    "image/heif": (".heic", True),
}

_cache_configured = False


def _configure_pyvips() -> None:
    # Avoid memory growth from the operation cache across large batches
    global _cache_configured
    if _cache_configured:
        return
    with contextlib.suppress(Exception):
        pyvips.cache_set_max(0)
        pyvips.cache_set_max_mem(0)
        pyvips.cache_set_max_files(0)
    _cache_configured = True


def _orientation(image: Any) -> int:
    """EXIF orientation (1-8) as libvips reports it; 1 when the file has none."""
    if image.get_typeof("orientation") == 0:
        return 1
    try:
        return int(image.get("orientation"))
    except (pyvips.Error, TypeError, ValueError):
        return 1


def saver_for(media_type: str) -> tuple[str, bool] | None:
    return _SAVERS.get(media_type.lower())


@contextlib.contextmanager
def decoded_image(source: SourceFile, access: str = "sequential") -> Iterator[Any]:
    """Decode ``source`` upright and drop the pyvips handle when the block exits.

    Orientation is applied after loading for every format, matching what
    ``thumbnail_buffer`` does for the crop preview. The loader is picked from
    the bytes, so the file name's extension plays no part here.
    """
    _configure_pyvips()
    try:
        image = pyvips.Image.new_from_buffer(source.data, "", access=access)
        if _orientation(image) > 1:
            if access != "random":
                # rotation reads out of order
                image = pyvips.Image.new_from_buffer(source.data, "", access="random")
            image = image.autorot()
    except pyvips.Error as e:
        _logger.debug("decode failed for %s: %s", source.name, e)
        raise DecodeError(source.name, str(e).strip() or "not a decodable image") from e
    try:
        yield image
    finally:
        with contextlib.suppress(Exception):
            del image


def image_dimensions(source: SourceFile) -> tuple[int, int]:
    """Natural (width, height) after orientation is applied."""
    with decoded_image(source) as image:
        return int(image.width), int(image.height)


def transform_image(source: SourceFile, crop: CropArea | None, quality: int = DEFAULT_QUALITY) -> bytes:
    """Crop ``source`` to ``crop`` and re-encode it in its own media type.

    Returns the original bytes untouched when ``crop`` is None.

    A crop that extends past this image is clipped to the image; a crop that
    misses the image entirely raises ``CropOutOfBoundsError``.

    Raises:
        DecodeError: the data is not an image libvips can read
        EncodeError: the media type has no saver or the saver produced nothing
    """
    if crop is None:
        return source.data

    saver = saver_for(source.media_type)
    if saver is None:
        raise EncodeError(source.name, f"no encoder for media type {source.media_type!r}")
    suffix, takes_quality = saver

    with decoded_image(source) as image:
        region = crop.clipped_to(image.width, image.height)
        if region is None:
            raise CropOutOfBoundsError(
                source.name, f"crop {crop.as_tuple()} lies outside {image.width}x{image.height}"
            )
        if region != crop:
            _logger.debug("crop %s clipped to %s for %s", crop.as_tuple(), region.as_tuple(), source.name)

        options: dict[str, Any] = {"Q": int(quality)} if takes_quality else {}
        try:
            cropped = image.crop(region.x, region.y, region.width, region.height)
            data = cropped.write_to_buffer(suffix, **options)
        except pyvips.Error as e:
            # Lazy decoding means truncated files often only fail here
            _logger.debug("encode failed for %s: %s", source.name, e)
            raise EncodeError(source.name, str(e).strip() or "encoding failed") from e

    if not data:
        raise EncodeError(source.name, "encoder produced no output")
    return bytes(data)
