"""Archive delivery: write the finished zip somewhere the user can find it."""

from __future__ import annotations

import os
from collections.abc import Callable
from pathlib import Path

from rename_zip.logger import get_logger

_logger = get_logger("delivery")


def unique_path(directory: Path, filename: str) -> Path:
    """``directory/filename``, or ``name (2).zip`` etc. if that already exists."""
    target = directory / filename
    if not target.exists():
        return target
    stem, suffix = target.stem, target.suffix
    n = 2
    while True:
        candidate = directory / f"{stem} ({n}){suffix}"
        if not candidate.exists():
            return candidate
        n += 1


def write_archive(path: str | Path, content: bytes) -> Path:
    """Write ``content`` atomically: a temp file in the same folder, then rename."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    tmp = target.with_name(target.name + ".part")
    try:
        tmp.write_bytes(content)
        os.replace(tmp, target)
    except Exception:
        tmp.unlink(missing_ok=True)
        raise
    _logger.info("archive saved: %s", target)
    return target


def save_to_directory(directory: str | Path, overwrite: bool = False) -> Callable[[bytes, str], Path]:
    """Return a deliver callback that stores the archive under ``directory``."""
    folder = Path(directory).expanduser()

    def _deliver(content: bytes, suggested_name: str) -> Path:
        target = folder / suggested_name if overwrite else unique_path(folder, suggested_name)
        return write_archive(target, content)

    return _deliver
