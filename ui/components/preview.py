"""
Frame Preview
Letter-boxed grayscale frame display with rubber-band ROI selection
"""
from PySide6.QtWidgets import QLabel, QRubberBand, QSizePolicy
from PySide6.QtCore import Qt, Signal, QRect, QSize
from PySide6.QtGui import QPixmap, QImage, QPainter, QPen, QColor

import numpy as np

from services.focus import Roi
from ..theme.tokens import Colors, Typography, Layout


class FramePreview(QLabel):
    """
    Preview label showing the latest frame scaled to fit (KeepAspectRatio).

    Drag to select an ROI; a plain click clears it. roi_selected carries the
    selection in widget coordinates plus the widget size, ready for
    map_view_rect_to_image().
    """

    roi_selected = Signal(object, tuple)  # Roi in view coords, (view_w, view_h)

    def __init__(self, parent=None):
        super().__init__(parent)
        self._pixmap = None
        self._image_roi = Roi()
        self._image_size = (0, 0)
        self._origin = None
        self._rubber_band = QRubberBand(QRubberBand.Rectangle, self)
        self._setup_ui()

    def _setup_ui(self):
        self.setMinimumSize(*Layout.preview_min_size)
        self.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Expanding)
        self.setAlignment(Qt.AlignCenter)
        self.setText("No frames yet")
        self.setStyleSheet(f"""
            QLabel {{
                background-color: {Colors.bg_input};
                color: {Colors.text_muted};
                border-radius: {Layout.radius_md}px;
                font-size: {Typography.size_body}px;
            }}
        """)

    def update_frame(self, frame: np.ndarray):
        """Show a 2D uint8 frame"""
        frame = np.ascontiguousarray(frame)
        height, width = frame.shape[:2]
        qimg = QImage(frame.data, width, height, frame.strides[0], QImage.Format_Grayscale8)
        # QImage borrows the buffer; copy before the array goes away
        self._pixmap = QPixmap.fromImage(qimg.copy())
        self._image_size = (width, height)
        self._update_display()

    def clear_frame(self):
        self._pixmap = None
        self._image_roi = Roi()
        self._image_size = (0, 0)
        self.clear()
        self.setText("No frames yet")

    def set_image_roi(self, roi: Roi):
        """Outline the evaluated ROI (image coordinates); null hides it"""
        self._image_roi = roi or Roi()
        self.update()

    def _update_display(self):
        if self._pixmap:
            scaled = self._pixmap.scaled(self.size(), Qt.KeepAspectRatio, Qt.FastTransformation)
            self.setPixmap(scaled)

    def _displayed_rect(self) -> QRect:
        """Where the scaled image sits inside the label"""
        if not self._pixmap:
            return QRect()
        scaled = QSize(*self._image_size).scaled(self.size(), Qt.KeepAspectRatio)
        x = (self.width() - scaled.width()) // 2
        y = (self.height() - scaled.height()) // 2
        return QRect(x, y, scaled.width(), scaled.height())

    def resizeEvent(self, event):
        super().resizeEvent(event)
        self._update_display()

    def mousePressEvent(self, event):
        if event.button() == Qt.LeftButton and self._pixmap:
            self._origin = event.position().toPoint()
            self._rubber_band.setGeometry(QRect(self._origin, QSize()))
            self._rubber_band.show()
        super().mousePressEvent(event)

    def mouseMoveEvent(self, event):
        if self._origin is not None:
            self._rubber_band.setGeometry(QRect(self._origin, event.position().toPoint()).normalized())
        super().mouseMoveEvent(event)

    def mouseReleaseEvent(self, event):
        if self._origin is not None and event.button() == Qt.LeftButton:
            rect = QRect(self._origin, event.position().toPoint()).normalized()
            self._origin = None
            self._rubber_band.hide()
            view_rect = Roi(rect.x(), rect.y(), rect.width(), rect.height())
            self.roi_selected.emit(view_rect, (self.width(), self.height()))
        super().mouseReleaseEvent(event)

    def paintEvent(self, event):
        super().paintEvent(event)
        if self._image_roi.is_null or not self._pixmap:
            return

        shown = self._displayed_rect()
        img_w, img_h = self._image_size
        if shown.isEmpty() or img_w <= 0 or img_h <= 0:
            return

        sx = shown.width() / img_w
        sy = shown.height() / img_h
        outline = QRect(
            shown.x() + int(self._image_roi.x * sx),
            shown.y() + int(self._image_roi.y * sy),
            int(self._image_roi.width * sx),
            int(self._image_roi.height * sy),
        )

        painter = QPainter(self)
        pen = QPen(QColor(Colors.roi_outline), 2)
        pen.setStyle(Qt.DashLine)
        painter.setPen(pen)
        painter.drawRect(outline)
        painter.end()
