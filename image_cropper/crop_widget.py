"""
Interactive crop canvas and Qt image helpers.

This module contains everything that touches both Qt **and** image display:
``pil_to_qpixmap``, the background ``ImageLoaderThread``, and the
``CropCanvas`` widget.  The canvas is the session's event source (mouse,
keyboard and resize input become ``CropSession`` events) and its render sink
(it paints whatever ``RenderFrame`` the session last emitted).
"""

import math
from pathlib import Path

from PIL import Image
from PyQt6.QtWidgets import QWidget, QSizePolicy
from PyQt6.QtCore import Qt, QRectF, QPointF, pyqtSignal, QThread
from PyQt6.QtGui import (
    QPainter, QPainterPath, QPixmap, QColor, QPen, QBrush, QImage, QPolygonF,
    QKeyEvent, QMouseEvent, QPaintEvent, QResizeEvent,
)

from image_cropper.config import (
    HANDLE_SIZE, HANDLE_ICON_SIZE, MASK_OPACITY, OUTLINE_WIDTH, OUTLINE_DASH,
    NUDGE_SMALL, NUDGE_LARGE,
)
from image_cropper.errors import OperationResult
from image_cropper.events import ContainerResized, DragBegin, DragChanged, DragEnded, RenderFrame
from image_cropper.image_io import open_image
from image_cropper.models import HandleId, Point2D, Rect, Size2D
from image_cropper.session import CropSession


# =============================================================================
# Qt ↔ PIL helpers
# =============================================================================

def pil_to_qpixmap(pil_img: Image.Image) -> QPixmap:
    """Convert a PIL Image to QPixmap."""
    img_rgb = pil_img.convert("RGBA")
    data = img_rgb.tobytes("raw", "RGBA")
    qimg = QImage(data, img_rgb.width, img_rgb.height, QImage.Format.Format_RGBA8888)
    return QPixmap.fromImage(qimg.copy())


def _qpoint(point: Point2D) -> QPointF:
    return QPointF(point.x, point.y)


def _qrect(rect: Rect) -> QRectF:
    return QRectF(rect.x, rect.y, rect.width, rect.height)


# =============================================================================
# Background image loader
# =============================================================================

class ImageLoaderThread(QThread):
    """Background thread for opening images (especially large PSDs)."""
    finished = pyqtSignal(object)
    error = pyqtSignal(str)

    def __init__(self, path: Path, parent=None):
        super().__init__(parent)
        self._path = path

    def run(self):
        try:
            self.finished.emit(open_image(self._path))
        except Exception as e:
            self.error.emit(str(e))


# =============================================================================
# Crop Canvas: draggable handles over the displayed image
# =============================================================================

class CropCanvas(QWidget):
    """Widget that displays the session's image with four draggable crop handles."""

    crop_changed = pyqtSignal()
    operation_failed = pyqtSignal(str)

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setMinimumSize(400, 300)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)

        self._session: CropSession | None = None
        self._render: RenderFrame | None = None
        self._pixmap: QPixmap | None = None
        self._pixmap_source = None  # image handle the pixmap was built from

        # Interaction state
        self._last_pos = QPointF()
        self._nudge_handle = HandleId.BOTTOM_RIGHT
        self._loading = False

    # --- Session wiring (event source side) ---

    def connect_session(self, session: CropSession | None):
        """Attach a session; the canvas becomes its render sink."""
        if self._session is not None:
            self._session.set_render_sink(None)
        self._session = session
        self._render = None
        self._loading = False
        if session is not None:
            session.set_render_sink(self)
            self._dispatch(ContainerResized(Size2D(self.width(), self.height())))
        self.update()

    def set_loading(self, loading: bool):
        """Show/hide loading indicator."""
        self._loading = loading
        self.update()

    def _dispatch(self, event) -> OperationResult:
        result = self._session.handle_event(event)
        if not result.ok:
            self.operation_failed.emit(result.message)
        return result

    # --- Render sink ---

    def consume(self, frame: RenderFrame):
        if frame.image.image is not self._pixmap_source:
            self._pixmap = pil_to_qpixmap(frame.image.image)
            self._pixmap_source = frame.image.image
        self._render = frame
        self.crop_changed.emit()
        self.update()

    # --- Handle hit testing ---

    def _hit_test(self, pos: QPointF) -> HandleId | None:
        """Return the handle whose hit area contains *pos*, nearest first."""
        if self._render is None:
            return None
        radius = HANDLE_SIZE / 2
        best, best_dist = None, radius
        for handle, center in self._render.quad.items():
            dist = math.hypot(pos.x() - center.x, pos.y() - center.y)
            if dist <= best_dist:
                best, best_dist = handle, dist
        return best

    # --- Painting ---

    def paintEvent(self, event: QPaintEvent):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.fillRect(self.rect(), QColor(255, 255, 255))

        if self._render is None or self._pixmap is None:
            painter.setPen(QColor(128, 128, 128))
            msg = "Loading image…" if self._loading else "No image loaded"
            painter.drawText(self.rect(), Qt.AlignmentFlag.AlignCenter, msg)
            painter.end()
            return

        dest = _qrect(self._render.mask_rect)
        painter.drawPixmap(dest.toRect(), self._pixmap)

        quad = QPolygonF([_qpoint(p) for p in self._render.outline])

        # Dim the frame outside the quad
        mask = QPainterPath()
        mask.setFillRule(Qt.FillRule.OddEvenFill)
        mask.addRect(dest)
        mask.addPolygon(quad)
        mask.closeSubpath()
        dim = QColor(0, 0, 0)
        dim.setAlphaF(MASK_OPACITY)
        painter.fillPath(mask, dim)

        # Dashed outline
        pen = QPen(QColor(255, 255, 255), OUTLINE_WIDTH)
        pen.setDashPattern([float(v) for v in OUTLINE_DASH])
        pen.setJoinStyle(Qt.PenJoinStyle.RoundJoin)
        painter.setPen(pen)
        painter.setBrush(Qt.BrushStyle.NoBrush)
        painter.drawPolygon(quad)

        # Handles; the dragged one is drawn enlarged
        active = self._session.active_handle if self._session else None
        painter.setPen(QPen(QColor(0, 0, 0), 1))
        painter.setBrush(QBrush(QColor(255, 255, 255)))
        for handle, center in self._render.quad.items():
            r = HANDLE_ICON_SIZE / 2 * (2 if handle is active else 1)
            painter.drawEllipse(_qpoint(center), r, r)

        # Crop size label in image pixels
        pixel_rect = self._session.pixel_crop_rect() if self._session else None
        if pixel_rect is not None and pixel_rect.ok:
            bounds = quad.boundingRect()
            painter.setPen(QColor(255, 255, 255))
            label = f"{round(pixel_rect.value.width)} × {round(pixel_rect.value.height)}"
            painter.drawText(
                bounds.adjusted(0, -20, 0, 0).toRect(),
                Qt.AlignmentFlag.AlignHCenter | Qt.AlignmentFlag.AlignTop,
                label,
            )

        painter.end()

    def resizeEvent(self, event: QResizeEvent):
        if self._session is not None:
            self._dispatch(ContainerResized(Size2D(self.width(), self.height())))
        super().resizeEvent(event)

    # --- Mouse interaction ---

    def mousePressEvent(self, event: QMouseEvent):
        if event.button() != Qt.MouseButton.LeftButton or self._session is None:
            return
        pos = event.position()
        handle = self._hit_test(pos)
        if handle is None:
            return
        if self._dispatch(DragBegin(handle)).ok:
            self._last_pos = pos
            self._nudge_handle = handle
            self.update()

    def mouseMoveEvent(self, event: QMouseEvent):
        if self._session is None:
            return

        pos = event.position()

        if self._session.active_handle is None:
            if self._hit_test(pos) is not None:
                self.setCursor(Qt.CursorShape.OpenHandCursor)
            else:
                self.setCursor(Qt.CursorShape.ArrowCursor)
            return

        self.setCursor(Qt.CursorShape.ClosedHandCursor)
        delta = pos - self._last_pos
        self._last_pos = pos
        self._dispatch(DragChanged(Point2D(delta.x(), delta.y())))

    def mouseReleaseEvent(self, event: QMouseEvent):
        if event.button() == Qt.MouseButton.LeftButton and self._session is not None:
            if self._session.active_handle is not None:
                self._dispatch(DragEnded())
                self.update()

    # --- Keyboard nudge ---

    def keyPressEvent(self, event: QKeyEvent):
        if self._session is None or self._render is None:
            return super().keyPressEvent(event)
        amount = NUDGE_LARGE if event.modifiers() & Qt.KeyboardModifier.ShiftModifier else NUDGE_SMALL
        deltas = {
            Qt.Key.Key_Left: Point2D(-amount, 0),
            Qt.Key.Key_Right: Point2D(amount, 0),
            Qt.Key.Key_Up: Point2D(0, -amount),
            Qt.Key.Key_Down: Point2D(0, amount),
        }
        delta = deltas.get(event.key())
        if delta is None:
            super().keyPressEvent(event)
            return
        # The mouse owns the handle while a drag is in progress
        if self._session.active_handle is not None:
            return
        if self._dispatch(DragBegin(self._nudge_handle)).ok:
            self._dispatch(DragChanged(delta))
            self._dispatch(DragEnded())
