from __future__ import annotations

from collections.abc import Sequence

from PySide6.QtCore import QObject, Signal

from rename_zip.errors import PackagingError, PreconditionError
from rename_zip.logger import get_logger
from rename_zip.models import CropArea, SourceFile
from rename_zip.pipeline import Deliver, export_batch

_logger = get_logger("export_worker")


class ExportWorker(QObject):
    """Runs one export off the GUI thread (move it to a QThread and call ``run``)."""

    progress = Signal(int, int, str)  # done, total, output filename
    succeeded = Signal(str, int)  # archive name, entry count
    failed = Signal(str)
    finished = Signal()

    def __init__(
        self,
        files: Sequence[SourceFile],
        title: str,
        crop: CropArea | None,
        deliver: Deliver,
        quality: int,
        max_workers: int | None = None,
    ):
        super().__init__()
        self.files = tuple(files)
        self.title = title
        self.crop = crop
        self.deliver = deliver
        self.quality = quality
        self.max_workers = max_workers

    def run(self) -> None:
        try:
            built = export_batch(
                self.files,
                self.title,
                self.crop,
                self.deliver,
                quality=self.quality,
                max_workers=self.max_workers,
                progress=self.progress.emit,
            )
            self.succeeded.emit(built.name, len(built.entries))
        except (PackagingError, PreconditionError) as ex:
            self.failed.emit(str(ex))
        finally:
            self.finished.emit()
