"""Pytest configuration.

Widget tests need a single QApplication for the whole session; it is created
as early as possible (offscreen, so no display is required) and shut down at
the end. Image fixtures are generated in memory with Pillow.
"""

from __future__ import annotations

import io
import os
from typing import Any

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

_APP: Any | None = None


def pytest_configure(config) -> None:  # noqa: ARG001
    """Ensure a QApplication exists before collecting/running tests."""

    try:
        from PySide6.QtWidgets import QApplication
    except ImportError:
        return

    global _APP

    app = QApplication.instance()
    # Keep a strong ref so it isn't GC'd mid-session.
    _APP = QApplication([]) if app is None else app


def pytest_sessionfinish(session, exitstatus) -> None:  # noqa: ARG001
    try:
        from PySide6.QtWidgets import QApplication
    except ImportError:
        return

    app = QApplication.instance()
    if app is None:
        return
    app.quit()
    app.processEvents()


def encode_image(width: int, height: int, fmt: str = "PNG", color=(200, 30, 30)) -> bytes:
    from PIL import Image

    img = Image.new("RGB", (width, height), color)
    # Mark the top-left pixel so crops can be told apart from the original
    img.putpixel((0, 0), (0, 255, 0))
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def png_source():
    from rename_zip.models import SourceFile

    def _make(name: str = "photo.png", width: int = 120, height: int = 80) -> SourceFile:
        return SourceFile(encode_image(width, height, "PNG"), name, "image/png")

    return _make


@pytest.fixture
def jpeg_source():
    from rename_zip.models import SourceFile

    def _make(name: str = "photo.jpg", width: int = 120, height: int = 80) -> SourceFile:
        return SourceFile(encode_image(width, height, "JPEG"), name, "image/jpeg")

    return _make


def encode_oriented(width: int, height: int, fmt: str, orientation: int) -> bytes:
    """Like ``encode_image`` but with an EXIF orientation tag on the stored pixels."""
    from PIL import Image

    img = Image.new("RGB", (width, height), (200, 30, 30))
    # a 10x10 block survives lossy JPEG, a single pixel would not
    img.paste((0, 255, 0), (0, 0, 10, 10))
    exif = Image.Exif()
    exif[0x0112] = orientation
    buf = io.BytesIO()
    options = {"lossless": True} if fmt == "WEBP" else {}
    img.save(buf, format=fmt, exif=exif.tobytes(), **options)
    return buf.getvalue()
