"""Wait cursor for work done on (or blocking) the GUI thread."""

from __future__ import annotations

import time
from collections.abc import Iterator
from contextlib import contextmanager

from PySide6.QtCore import Qt
from PySide6.QtWidgets import QApplication

from rename_zip.logger import get_logger

_logger = get_logger("busy_cursor")


def set_busy_cursor(busy: bool) -> None:
    """Push or pop one wait-cursor override; calls must be paired."""
    if busy:
        QApplication.setOverrideCursor(Qt.CursorShape.WaitCursor)
        # Show it before the GUI thread blocks
        QApplication.processEvents()
    else:
        QApplication.restoreOverrideCursor()


@contextmanager
def busy_cursor(task: str = "") -> Iterator[None]:
    """Wait cursor for the block; restored even if the block raises.

    ``task`` names the work in the debug log along with how long it took.
    """
    start = time.perf_counter()
    set_busy_cursor(True)
    try:
        yield
    finally:
        set_busy_cursor(False)
        if task:
            _logger.debug("%s took %.3fs", task, time.perf_counter() - start)
