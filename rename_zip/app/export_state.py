from __future__ import annotations

from collections.abc import Iterable

from PySide6.QtCore import Property, QObject, Signal

from rename_zip.errors import PreconditionError
from rename_zip.logger import get_logger
from rename_zip.models import CropArea, FileList, SourceFile

_logger = get_logger("export_state")


class ExportState(QObject):
    """Everything the export needs besides the files' pixels.

    Design:
    - Files are kept in output order; the pipeline only ever gets a snapshot.
    - At most one crop is active and it applies to every file.
    - Removing the last file, or clearing everything, drops the crop.
    """

    titleChanged = Signal(str)
    filesChanged = Signal()
    cropChanged = Signal(object)
    busyChanged = Signal(bool)

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._title = ""
        self._files = FileList()
        self._crop: CropArea | None = None
        self._busy = False

    # ---- read-only properties ----
    def _get_title(self) -> str:
        return str(self._title)

    title = Property(str, _get_title, notify=titleChanged)  # type: ignore[arg-type]

    def _get_busy(self) -> bool:
        return bool(self._busy)

    busy = Property(bool, _get_busy, notify=busyChanged)  # type: ignore[arg-type]

    @property
    def files(self) -> FileList:
        return self._files

    @property
    def crop(self) -> CropArea | None:
        return self._crop

    # ---- mutation ----
    def set_title(self, title: str) -> None:
        t = str(title)
        if t == self._title:
            return
        self._title = t
        self.titleChanged.emit(t)

    def add_files(self, sources: Iterable[SourceFile]) -> int:
        """Append image files; anything that is not an image is skipped."""
        added = 0
        for src in sources:
            if not src.is_image:
                _logger.debug("skipping non-image file: %s (%s)", src.name, src.media_type)
                continue
            self._files.append(src)
            added += 1
        if added:
            self.filesChanged.emit()
        return added

    def remove_file(self, index: int) -> SourceFile:
        removed = self._files.remove_at(index)
        if len(self._files) == 0:
            self.set_crop(None)
        self.filesChanged.emit()
        return removed

    def move_file(self, from_index: int, to_index: int) -> None:
        if from_index == to_index:
            return
        self._files.move(from_index, to_index)
        self.filesChanged.emit()

    def clear_all(self) -> None:
        self._files.clear()
        self.set_title("")
        self.set_crop(None)
        self.filesChanged.emit()

    def set_crop(self, crop: CropArea | None) -> None:
        if crop == self._crop:
            return
        self._crop = crop
        self.cropChanged.emit(crop)

    def set_busy(self, value: bool) -> None:
        v = bool(value)
        if v == self._busy:
            return
        self._busy = v
        self.busyChanged.emit(v)

    # ---- preconditions ----
    def check_crop(self) -> SourceFile:
        """Return the reference image for the crop tool."""
        if len(self._files) == 0:
            raise PreconditionError("Upload images first.")
        return self._files[0]

    def check_export(self) -> None:
        if len(self._files) == 0:
            raise PreconditionError("Add at least one image before exporting.")
        if not self._title.strip():
            raise PreconditionError("Please enter a title for the tour/album first.")
