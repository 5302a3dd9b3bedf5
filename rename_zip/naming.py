"""Output filename rules.

Pure string transforms, no Qt or filesystem access.
"""

from __future__ import annotations

import re

ARCHIVE_SUFFIX = ".zip"

_AMPERSAND_RE = re.compile(r"\s*&\s*")
_SEPARATOR_RE = re.compile(r"[\s_]+")
_DISALLOWED_RE = re.compile(r"[^a-zA-Z0-9-]")
_HYPHEN_RUN_RE = re.compile(r"-+")
_ARCHIVE_DISALLOWED_RE = re.compile(r"[^a-zA-Z0-9]")


def sanitize_title(title: str | None) -> str:
    """Turn a free-form title into a lower-case, hyphen-separated slug.

    A missing/empty title yields ``"untitled"``; a title with nothing usable
    left after cleaning (e.g. ``"!!!"``) yields ``"image"``.
    """
    if not title:
        return "untitled"

    s = title.strip()
    s = _AMPERSAND_RE.sub("-and-", s)
    s = _SEPARATOR_RE.sub("-", s)
    s = _DISALLOWED_RE.sub("", s)
    s = _HYPHEN_RUN_RE.sub("-", s)
    s = s.strip("-").lower()
    return s or "image"


def file_extension(filename: str) -> str:
    """Everything from the last dot (inclusive); empty when there is no dot."""
    dot = filename.rfind(".")
    return filename[dot:] if dot >= 0 else ""


def generate_new_filename(title: str | None, index: int, original_filename: str) -> str:
    """``"My Tour", 0, "IMG_1.JPG"`` -> ``"my-tour-01.JPG"``."""
    if index < 0:
        raise ValueError(f"index must be non-negative, got {index}")
    return f"{sanitize_title(title)}-{index + 1:02d}{file_extension(original_filename)}"


def sanitize_archive_name(title: str | None) -> str:
    """``"5-Day Safari!"`` -> ``"5_day_safari"`` (edge underscores trimmed)."""
    return _ARCHIVE_DISALLOWED_RE.sub("_", title or "").lower().strip("_")


def archive_filename(title: str | None) -> str:
    return f"{sanitize_archive_name(title) or 'images'}{ARCHIVE_SUFFIX}"
