from __future__ import annotations

from pathlib import Path

from PySide6.QtCore import QSize, Qt, QThread
from PySide6.QtGui import QImage, QPixmap
from PySide6.QtWidgets import (
    QAbstractItemView,
    QFileDialog,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from rename_zip.app.export_state import ExportState
from rename_zip.app.export_worker import ExportWorker
from rename_zip.busy_cursor import set_busy_cursor
from rename_zip.delivery import write_archive
from rename_zip.errors import PreconditionError, RenameZipError
from rename_zip.logger import get_logger
from rename_zip.models import SourceFile
from rename_zip.naming import archive_filename, generate_new_filename
from rename_zip.settings_manager import SettingsManager

_logger = get_logger("ui_main")

THUMB_SIZE = 96
IMAGE_FILTER = "Images (*.jpg *.jpeg *.png *.webp *.gif *.tif *.tiff *.avif *.heic)"


class ImageListWidget(QListWidget):
    """Thumbnails of the files to export, in output order; drag to reorder.

    Each row owns its thumbnail, so removing the row releases it.
    """

    def __init__(self, parent: QWidget | None = None):
        super().__init__(parent)
        self.setIconSize(QSize(THUMB_SIZE, THUMB_SIZE))
        self.setResizeMode(QListWidget.ResizeMode.Adjust)
        self.setFlow(QListWidget.Flow.LeftToRight)
        self.setWrapping(True)
        self.setDragDropMode(QAbstractItemView.DragDropMode.InternalMove)
        self.setDefaultDropAction(Qt.DropAction.MoveAction)
        self.setSelectionMode(QAbstractItemView.SelectionMode.SingleSelection)
        self.setWordWrap(True)


def _thumbnail(source: SourceFile) -> QPixmap:
    img = QImage.fromData(source.data)
    if img.isNull():
        return QPixmap()
    return QPixmap.fromImage(
        img.scaled(THUMB_SIZE, THUMB_SIZE, Qt.AspectRatioMode.KeepAspectRatio, Qt.TransformationMode.SmoothTransformation)
    )


class MainWindow(QMainWindow):
    def __init__(self, settings: SettingsManager | None = None):
        super().__init__()
        self.setWindowTitle("Rename & Zip")
        self._settings = settings or SettingsManager()
        self.state = ExportState(self)
        self._thread: QThread | None = None
        self._worker: ExportWorker | None = None
        self._pending_output: Path | None = None

        central = QWidget(self)
        layout = QVBoxLayout(central)

        layout.addWidget(QLabel("1. Enter Tour / Album Title", central))
        self.title_edit = QLineEdit(central)
        self.title_edit.setPlaceholderText("e.g. 5-Day Nyerere & Mikumi National Park from Dar")
        layout.addWidget(self.title_edit)
        self.preview_label = QLabel("", central)
        layout.addWidget(self.preview_label)

        layout.addWidget(QLabel("2. Add images (drag to reorder)", central))
        self.list_widget = ImageListWidget(central)
        layout.addWidget(self.list_widget, 1)

        buttons = QHBoxLayout()
        self.add_btn = QPushButton("Add Images...", central)
        self.remove_btn = QPushButton("Remove", central)
        self.clear_btn = QPushButton("Clear All", central)
        self.crop_btn = QPushButton("Set Crop...", central)
        self.export_btn = QPushButton("Download ZIP", central)
        for b in (self.add_btn, self.remove_btn, self.clear_btn, self.crop_btn):
            buttons.addWidget(b)
        buttons.addStretch(1)
        self.crop_label = QLabel("No crop", central)
        buttons.addWidget(self.crop_label)
        buttons.addWidget(self.export_btn)
        layout.addLayout(buttons)

        self.setCentralWidget(central)
        self.resize(1000, 700)

        self.title_edit.textChanged.connect(self.state.set_title)
        self.state.titleChanged.connect(self._on_title_changed)
        self.state.cropChanged.connect(self._on_crop_changed)
        self.state.busyChanged.connect(self._on_busy_changed)
        self.add_btn.clicked.connect(self._on_add_files)
        self.remove_btn.clicked.connect(self._on_remove_selected)
        self.clear_btn.clicked.connect(self._on_clear_all)
        self.crop_btn.clicked.connect(self._on_set_crop)
        self.export_btn.clicked.connect(self._on_export)
        self.list_widget.model().rowsMoved.connect(self._on_rows_moved)

    # ---- file list ----
    def add_sources(self, sources: list[SourceFile]) -> int:
        images = [s for s in sources if s.is_image]
        added = self.state.add_files(images)
        for src in images:
            item = QListWidgetItem(src.name)
            pm = _thumbnail(src)
            if not pm.isNull():
                item.setIcon(pm)
            self.list_widget.addItem(item)
        self._refresh_names()
        return added

    def _on_add_files(self) -> None:
        start = self._settings.last_input_dir or str(Path.home())
        paths, _ = QFileDialog.getOpenFileNames(self, "Add Images", start, IMAGE_FILTER)
        if not paths:
            return
        sources = []
        for p in paths:
            try:
                sources.append(SourceFile.from_path(p))
            except OSError as e:
                _logger.warning("could not read %s: %s", p, e)
        self._settings.set("last_input_dir", str(Path(paths[0]).parent))
        self.add_sources(sources)

    def _on_remove_selected(self) -> None:
        row = self.list_widget.currentRow()
        if row < 0:
            return
        self.state.remove_file(row)
        self.list_widget.takeItem(row)
        self._refresh_names()

    def _on_clear_all(self) -> None:
        answer = QMessageBox.question(self, "Clear All", "Are you sure you want to clear all images?")
        if answer != QMessageBox.StandardButton.Yes:
            return
        self.state.clear_all()
        self.list_widget.clear()
        self.title_edit.clear()

    def _on_rows_moved(self, _parent, start: int, _end: int, _dest, row: int) -> None:
        # rowsMoved reports the destination as "insert before row" in the old layout
        to_index = row - 1 if row > start else row
        self.state.move_file(start, to_index)
        self._refresh_names()

    def _refresh_names(self) -> None:
        title = self.state.title
        for i in range(self.list_widget.count()):
            item = self.list_widget.item(i)
            item.setToolTip(generate_new_filename(title, i, self.state.files[i].name))

    # ---- state reactions ----
    def _on_title_changed(self, title: str) -> None:
        if title and len(self.state.files):
            self.preview_label.setText(f"Preview example: {generate_new_filename(title, 0, self.state.files[0].name)}")
        elif title:
            self.preview_label.setText(f"Preview example: {generate_new_filename(title, 0, 'image.jpg')}")
        else:
            self.preview_label.setText("")
        self._refresh_names()

    def _on_crop_changed(self, crop) -> None:
        self.crop_label.setText(f"Crop: {crop.width} x {crop.height} px" if crop else "No crop")

    def _on_busy_changed(self, busy: bool) -> None:
        self.export_btn.setEnabled(not busy)
        self.export_btn.setText("Zipping..." if busy else "Download ZIP")
        set_busy_cursor(busy)

    # ---- crop ----
    def _on_set_crop(self) -> None:
        from rename_zip.crop.ui_crop import CropDialog

        try:
            reference = self.state.check_crop()
        except PreconditionError as e:
            QMessageBox.warning(self, "No Images", str(e))
            return
        try:
            dialog = CropDialog(
                self,
                reference,
                min_size=self._settings.min_crop_size,
                initial_fraction=self._settings.initial_crop_fraction,
            )
        except RenameZipError as e:
            _logger.error("crop tool could not open %s: %s", reference.name, e)
            QMessageBox.warning(self, "Crop", f"Could not open {reference.name}:\n{e}")
            return
        if dialog.exec():
            self.state.set_crop(dialog.get_crop())

    # ---- export ----
    def _on_export(self) -> None:
        if self.state.busy:
            return
        try:
            self.state.check_export()
        except PreconditionError as e:
            QMessageBox.warning(self, "Rename & Zip", str(e))
            return

        start_dir = Path(self._settings.last_output_dir or Path.home())
        path, _ = QFileDialog.getSaveFileName(
            self, "Save Archive", str(start_dir / archive_filename(self.state.title)), "Zip archives (*.zip)"
        )
        if not path:
            return
        self._pending_output = Path(path)
        self._settings.set("last_output_dir", str(self._pending_output.parent))
        self.start_export(self._deliver_to_pending)

    def _deliver_to_pending(self, content: bytes, _suggested: str) -> Path:
        assert self._pending_output is not None
        return write_archive(self._pending_output, content)

    def start_export(self, deliver) -> None:
        worker = ExportWorker(
            self.state.files.snapshot(),
            self.state.title,
            self.state.crop,
            deliver,
            quality=self._settings.quality,
            max_workers=self._settings.max_workers,
        )
        thread = QThread(self)
        worker.moveToThread(thread)
        thread.started.connect(worker.run)
        worker.failed.connect(self._on_export_failed)
        worker.succeeded.connect(self._on_export_succeeded)
        worker.finished.connect(thread.quit)
        worker.finished.connect(worker.deleteLater)
        thread.finished.connect(thread.deleteLater)
        thread.finished.connect(self._on_export_finished)

        self._worker = worker
        self._thread = thread
        self.state.set_busy(True)
        thread.start()

    def _on_export_succeeded(self, name: str, count: int) -> None:
        self.statusBar().showMessage(f"Saved {name} ({count} images)", 5000)

    def _on_export_failed(self, message: str) -> None:
        QMessageBox.critical(self, "Export Failed", f"An error occurred while creating the zip file.\n{message}")

    def _on_export_finished(self) -> None:
        self._worker = None
        self._thread = None
        self._pending_output = None
        self.state.set_busy(False)
