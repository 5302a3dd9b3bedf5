"""In-memory zip archive assembled from concurrently finishing items."""

from __future__ import annotations

import io
import threading
import zipfile
from dataclasses import dataclass

from rename_zip.errors import PackagingError
from rename_zip.logger import get_logger

_logger = get_logger("archive")


@dataclass(frozen=True, slots=True)
class BuiltArchive:
    name: str
    content: bytes
    entries: tuple[str, ...]


class Archive:
    """Collects ``(filename, bytes)`` entries; safe to ``add`` from several threads.

    Entries are keyed by filename (last write wins) and written in the order
    their sequence index dictates, not in completion order.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[str, tuple[int, bytes]] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, filename: object) -> bool:
        with self._lock:
            return filename in self._entries

    def add(self, filename: str, data: bytes, order: int = 0) -> None:
        with self._lock:
            self._entries[filename] = (order, data)

    def get(self, filename: str) -> bytes | None:
        with self._lock:
            entry = self._entries.get(filename)
        return entry[1] if entry is not None else None

    def filenames(self) -> list[str]:
        with self._lock:
            items = sorted(self._entries.items(), key=lambda kv: kv[1][0])
        return [name for name, _ in items]

    def to_bytes(self) -> bytes:
        """Write all entries into a zip. Raises PackagingError on any failure."""
        with self._lock:
            items = sorted(self._entries.items(), key=lambda kv: kv[1][0])
        buf = io.BytesIO()
        try:
            with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
                for name, (_order, data) in items:
                    zf.writestr(name, data)
        except Exception as e:
            _logger.error("zip assembly failed: %s", e, exc_info=True)
            raise PackagingError(f"could not build archive: {e}") from e
        return buf.getvalue()

    def build(self, name: str) -> BuiltArchive:
        content = self.to_bytes()
        return BuiltArchive(name=name, content=content, entries=tuple(self.filenames()))
