from __future__ import annotations

import contextlib

import numpy as np
from PySide6.QtCore import QEvent, QObject, QPointF, QRectF, QSize, Qt, Signal
from PySide6.QtGui import QColor, QCursor, QGuiApplication, QImage, QPainter, QPen
from PySide6.QtWidgets import (
    QApplication,
    QDialog,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QSizePolicy,
    QVBoxLayout,
    QWidget,
)

from rename_zip.busy_cursor import busy_cursor
from rename_zip.crop.crop_controller import HANDLES, INITIAL_FRACTION, MIN_CROP_SIZE, MOVE, DisplayRect
from rename_zip.crop.session import CropSession, CropState
from rename_zip.decoder import decode_preview
from rename_zip.logger import get_logger
from rename_zip.models import CropArea, SourceFile

_logger = get_logger("ui_crop")

_RGB_CHANNELS = 3
_EXPECTED_NDIM = 3
PREVIEW_MAX_SIZE = (1600, 1200)

_CURSORS = {
    "n": Qt.CursorShape.SizeVerCursor,
    "s": Qt.CursorShape.SizeVerCursor,
    "e": Qt.CursorShape.SizeHorCursor,
    "w": Qt.CursorShape.SizeHorCursor,
    "nw": Qt.CursorShape.SizeFDiagCursor,
    "se": Qt.CursorShape.SizeFDiagCursor,
    "ne": Qt.CursorShape.SizeBDiagCursor,
    "sw": Qt.CursorShape.SizeBDiagCursor,
    MOVE: Qt.CursorShape.SizeAllCursor,
}


def qimage_from_array(array: np.ndarray) -> QImage:
    """Copy an (H, W, 3) uint8 array into a QImage."""
    arr = np.ascontiguousarray(array)
    if arr.ndim != _EXPECTED_NDIM or arr.shape[2] < _RGB_CHANNELS:
        raise ValueError("unexpected image array shape")
    height, width = arr.shape[0], arr.shape[1]
    # .copy() so the QImage does not borrow the numpy buffer
    return QImage(arr.data, width, height, _RGB_CHANNELS * width, QImage.Format.Format_RGB888).copy()


def handle_points(rect: DisplayRect) -> dict[str, QPointF]:
    cx = rect.x + rect.w / 2
    cy = rect.y + rect.h / 2
    return {
        "nw": QPointF(rect.x, rect.y),
        "n": QPointF(cx, rect.y),
        "ne": QPointF(rect.x2, rect.y),
        "e": QPointF(rect.x2, cy),
        "se": QPointF(rect.x2, rect.y2),
        "s": QPointF(cx, rect.y2),
        "sw": QPointF(rect.x, rect.y2),
        "w": QPointF(rect.x, cy),
    }


class _GlobalPointerGrab(QObject):
    """Application-wide pointer tracking for one drag.

    Installed on the QApplication when a drag starts so moves and the release
    are seen even when the pointer leaves the canvas. Window deactivation or
    the application going inactive ends the drag, since the release may never
    arrive.
    """

    def __init__(self, canvas: CropCanvas):
        super().__init__(canvas)
        self._canvas = canvas
        self._installed = False

    @property
    def installed(self) -> bool:
        return self._installed

    def attach(self) -> None:
        app = QApplication.instance()
        if app is None or self._installed:
            return
        app.installEventFilter(self)
        self._installed = True
        with contextlib.suppress(Exception):
            self._canvas.grabMouse()

    def detach(self) -> None:
        if not self._installed:
            return
        self._installed = False
        app = QApplication.instance()
        if app is not None:
            app.removeEventFilter(self)
        with contextlib.suppress(Exception):
            self._canvas.releaseMouse()

    def eventFilter(self, obj: QObject, event: QEvent) -> bool:  # type: ignore[override]
        et = event.type()
        if et == QEvent.Type.MouseMove:
            gp = event.globalPosition()  # type: ignore[attr-defined]
            self._canvas.drag_to_global(gp)
            return False
        if et == QEvent.Type.MouseButtonRelease:
            if event.button() == Qt.MouseButton.LeftButton:  # type: ignore[attr-defined]
                self._canvas.end_drag()
            return False
        if et == QEvent.Type.ApplicationStateChange:
            if QGuiApplication.applicationState() != Qt.ApplicationState.ApplicationActive:
                self._canvas.abort_drag()
            return False
        if et == QEvent.Type.WindowDeactivate and obj is self._canvas.window():
            self._canvas.abort_drag()
        return False


class CropCanvas(QWidget):
    """Shows one image scaled to fit and lets the user drag a crop rect over it."""

    HANDLE_SIZE = 12
    GRID_LINES = 3

    rectChanged = Signal()

    def __init__(
        self,
        image: QImage,
        natural_size: tuple[int, int],
        parent: QWidget | None = None,
        *,
        min_size: float = MIN_CROP_SIZE,
        initial_fraction: float = INITIAL_FRACTION,
    ):
        super().__init__(parent)
        self._image = image
        self._natural_size = (int(natural_size[0]), int(natural_size[1]))
        self._grab = _GlobalPointerGrab(self)
        self.session = CropSession(self._grab, min_size=min_size, initial_fraction=initial_fraction)
        self._image_rect = QRectF()

        self.setMouseTracking(True)
        self.setMinimumSize(200, 150)
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)

    @property
    def grab_installed(self) -> bool:
        return self._grab.installed

    @property
    def image_rect(self) -> QRectF:
        """Where the image is drawn, in widget coordinates."""
        return QRectF(self._image_rect)

    def sizeHint(self) -> QSize:  # type: ignore[override]
        return QSize(900, 600)

    # ---- layout ----
    def fit_to(self, width: float, height: float) -> None:
        """Lay the image out inside ``width`` x ``height`` and (re)size the session."""
        iw, ih = self._image.width(), self._image.height()
        if iw <= 0 or ih <= 0 or width <= 0 or height <= 0:
            return
        scale = min(width / iw, height / ih, 1.0)
        dw, dh = iw * scale, ih * scale
        self._image_rect = QRectF((width - dw) / 2, (height - dh) / 2, dw, dh)

        if self.session.state is CropState.IDLE:
            self.session.open(self._natural_size, (dw, dh))
        else:
            self.session.resize_display((dw, dh))
        self.rectChanged.emit()
        self.update()

    def resizeEvent(self, event) -> None:  # type: ignore[override]
        super().resizeEvent(event)
        self.fit_to(self.width(), self.height())

    # ---- coordinates ----
    def to_image(self, pos: QPointF) -> QPointF:
        return QPointF(pos.x() - self._image_rect.x(), pos.y() - self._image_rect.y())

    def hit_test(self, pos: QPointF) -> str | None:
        """Control point under ``pos`` (image coordinates); handles win over the body."""
        rect = self.session.rect
        if rect is None:
            return None
        half = self.HANDLE_SIZE / 2
        points = handle_points(rect)
        for name in HANDLES:
            pt = points[name]
            if abs(pos.x() - pt.x()) <= half and abs(pos.y() - pt.y()) <= half:
                return name
        if rect.x <= pos.x() <= rect.x2 and rect.y <= pos.y() <= rect.y2:
            return MOVE
        return None

    # ---- drag plumbing (also driven by the global grab) ----
    def begin_drag(self, control: str, pos: QPointF) -> bool:
        started = self.session.press(control, pos.x(), pos.y())
        if started:
            with contextlib.suppress(Exception):
                self.setCursor(QCursor(_CURSORS.get(control, Qt.CursorShape.ArrowCursor)))
        return started

    def drag_to(self, pos: QPointF) -> None:
        if not self.session.dragging:
            return
        self.session.drag_to(pos.x(), pos.y())
        self.rectChanged.emit()
        self.update()

    def drag_to_global(self, global_pos: QPointF) -> None:
        local = QPointF(self.mapFromGlobal(global_pos.toPoint()))
        self.drag_to(self.to_image(local))

    def end_drag(self) -> None:
        self.session.release()
        self.unsetCursor()
        self.update()

    def abort_drag(self) -> None:
        self.session.abort_drag()
        self.unsetCursor()
        self.update()

    # ---- Qt events ----
    def mousePressEvent(self, event) -> None:  # type: ignore[override]
        if event.button() != Qt.MouseButton.LeftButton:
            super().mousePressEvent(event)
            return
        pos = self.to_image(event.position())
        control = self.hit_test(pos)
        if control is None or not self.begin_drag(control, pos):
            super().mousePressEvent(event)
            return
        event.accept()

    def mouseMoveEvent(self, event) -> None:  # type: ignore[override]
        if self.session.dragging:
            # The global grab already handles it
            event.accept()
            return
        control = self.hit_test(self.to_image(event.position()))
        if control is None:
            self.unsetCursor()
        else:
            self.setCursor(QCursor(_CURSORS[control]))

    def mouseReleaseEvent(self, event) -> None:  # type: ignore[override]
        if self.session.dragging and event.button() == Qt.MouseButton.LeftButton:
            self.end_drag()
            event.accept()
            return
        super().mouseReleaseEvent(event)

    def focusOutEvent(self, event) -> None:  # type: ignore[override]
        self.abort_drag()
        super().focusOutEvent(event)

    def hideEvent(self, event) -> None:  # type: ignore[override]
        self.abort_drag()
        super().hideEvent(event)

    def paintEvent(self, event) -> None:  # type: ignore[override]
        painter = QPainter(self)
        try:
            painter.fillRect(self.rect(), QColor(26, 26, 26))
            if self._image_rect.isEmpty():
                return
            painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform, True)
            painter.drawImage(self._image_rect, self._image)

            rect = self.session.rect
            if rect is None:
                return
            ox, oy = self._image_rect.x(), self._image_rect.y()
            sel = QRectF(ox + rect.x, oy + rect.y, rect.w, rect.h)

            # Dim everything outside the selection
            dim = QColor(0, 0, 0, 128)
            ir = self._image_rect
            painter.fillRect(QRectF(ir.left(), ir.top(), ir.width(), sel.top() - ir.top()), dim)
            painter.fillRect(QRectF(ir.left(), sel.bottom(), ir.width(), ir.bottom() - sel.bottom()), dim)
            painter.fillRect(QRectF(ir.left(), sel.top(), sel.left() - ir.left(), sel.height()), dim)
            painter.fillRect(QRectF(sel.right(), sel.top(), ir.right() - sel.right(), sel.height()), dim)

            painter.setPen(QPen(QColor(255, 255, 255, 77), 1))
            for i in range(1, self.GRID_LINES):
                x = sel.left() + sel.width() * i / self.GRID_LINES
                y = sel.top() + sel.height() * i / self.GRID_LINES
                painter.drawLine(QPointF(x, sel.top()), QPointF(x, sel.bottom()))
                painter.drawLine(QPointF(sel.left(), y), QPointF(sel.right(), y))

            painter.setPen(QPen(QColor(255, 255, 255, 128), 1))
            painter.drawRect(sel)

            painter.setPen(QPen(QColor(148, 163, 184), 1))
            painter.setBrush(QColor(255, 255, 255))
            half = self.HANDLE_SIZE / 2
            for pt in handle_points(rect).values():
                painter.drawRect(QRectF(ox + pt.x() - half, oy + pt.y() - half, self.HANDLE_SIZE, self.HANDLE_SIZE))
        finally:
            painter.end()


class CropDialog(QDialog):
    """Pick one crop rectangle on a reference image; it is applied to every file."""

    def __init__(
        self,
        parent: QWidget | None,
        reference: SourceFile,
        *,
        min_size: float = MIN_CROP_SIZE,
        initial_fraction: float = INITIAL_FRACTION,
    ):
        super().__init__(parent)
        self.setWindowTitle("Set Crop Area")
        self.setModal(True)
        self._reference = reference
        self._result: CropArea | None = None

        with busy_cursor(f"preview decode of {reference.name}"):
            natural, array = decode_preview(reference, *PREVIEW_MAX_SIZE)
        self.canvas = CropCanvas(
            qimage_from_array(array), natural, self, min_size=min_size, initial_fraction=initial_fraction
        )

        layout = QVBoxLayout(self)

        header = QHBoxLayout()
        text = QVBoxLayout()
        title = QLabel("<b>Set Crop Area</b>", self)
        hint = QLabel("Drag handles to resize. Move box to position.", self)
        text.addWidget(title)
        text.addWidget(hint)
        header.addLayout(text)
        header.addStretch(1)
        self.size_label = QLabel("Loading...", self)
        header.addWidget(self.size_label)
        layout.addLayout(header)

        layout.addWidget(self.canvas, 1)

        buttons = QHBoxLayout()
        buttons.addStretch(1)
        self.cancel_btn = QPushButton("Cancel", self)
        self.apply_btn = QPushButton("Apply Crop to All", self)
        self.apply_btn.setDefault(True)
        self.cancel_btn.clicked.connect(self.reject)
        self.apply_btn.clicked.connect(self.accept)
        buttons.addWidget(self.cancel_btn)
        buttons.addWidget(self.apply_btn)
        layout.addLayout(buttons)

        self.canvas.rectChanged.connect(self._update_size_label)
        self.resize(960, 720)

    def _update_size_label(self) -> None:
        area = self.canvas.session.natural_preview()
        self.size_label.setText(f"{area.width} x {area.height} px" if area else "Loading...")

    def accept(self) -> None:  # type: ignore[override]
        if self.canvas.session.state is CropState.IDLE:
            # Never laid out (dialog closed before showing); nothing to commit
            _logger.debug("crop dialog accepted before layout; ignoring")
            super().reject()
            return
        self._result = self.canvas.session.commit()
        super().accept()

    def reject(self) -> None:  # type: ignore[override]
        self.canvas.session.cancel()
        super().reject()

    def get_crop(self) -> CropArea | None:
        return self._result
