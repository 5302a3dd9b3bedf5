"""Exception hierarchy.

Per-item failures (``TransformError`` and subclasses) are recovered inside the
batch pipeline. ``PackagingError`` is the only batch-level failure.
"""

from __future__ import annotations


class RenameZipError(Exception):
    """Base class for all project errors."""


class PreconditionError(RenameZipError):
    """The caller asked for something that cannot run (no title, no files)."""


class TransformError(RenameZipError):
    """A single image could not be cropped and re-encoded."""

    def __init__(self, name: str, message: str):
        super().__init__(f"{name}: {message}")
        self.name = name


class DecodeError(TransformError):
    pass


class EncodeError(TransformError):
    pass


class CropOutOfBoundsError(TransformError):
    """The batch crop does not overlap this image at all."""


class PackagingError(RenameZipError):
    """Archive assembly or delivery failed; nothing was delivered."""
