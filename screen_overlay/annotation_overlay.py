"""Screenshot overlay with red highlight boxes and a watermark."""
from __future__ import annotations

from typing import Callable, Iterable, List, Optional, Sequence

from PyQt6.QtCore import QRectF, Qt
from PyQt6.QtGui import QColor, QKeyEvent, QMouseEvent, QPainter, QPen, QPixmap, QScreen
from PyQt6.QtWidgets import QLabel, QPushButton, QWidget

from screen_overlay.bounding_boxes import BoundingBox
from screen_overlay.logging_utils import get_logger
from screen_overlay.overlay_window import DeviceRect, apply_overlay_window_flags, cover_screen, to_device_rects
from screen_overlay.verification_overlay import CODE_BOX_MARGIN, CODE_BOX_WIDTH, monospace_font

_LOGGER = get_logger("AnnotationOverlay")

HIGHLIGHT_COLOR = QColor(255, 0, 0)
HIGHLIGHT_LINE_WIDTH = 5
WATERMARK_HEIGHT = 30
DISMISS_BUTTON_OFFSET = 60


class AnnotationOverlay(QWidget):
    """Full-screen screenshot with highlight boxes; any click or key press dismisses it."""

    def __init__(
        self,
        watermark: str = "JARVIS",
        *,
        screen: Optional[QScreen] = None,
        on_dismiss: Optional[Callable[[], None]] = None,
    ) -> None:
        super().__init__()
        self._image: Optional[QPixmap] = None
        self._boxes: List[BoundingBox] = []
        self._on_dismiss = on_dismiss
        apply_overlay_window_flags(self, click_through=False)
        cover_screen(self, screen)

        self.watermark_label = QLabel(watermark, self)
        self.watermark_label.setFont(monospace_font())
        self.watermark_label.setAlignment(Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignVCenter)
        self.watermark_label.setIndent(5)
        self.watermark_label.setStyleSheet(
            "color: #ffffff; background-color: rgba(0, 0, 0, 128); border-radius: 8px;"
        )
        self.watermark_label.resize(CODE_BOX_WIDTH, WATERMARK_HEIGHT)

        self.dismiss_button = QPushButton("Dismiss Overlay", self)
        self.dismiss_button.resize(CODE_BOX_WIDTH, WATERMARK_HEIGHT)
        self.dismiss_button.clicked.connect(self.dismiss)
        self._layout_children()

    @property
    def image(self) -> Optional[QPixmap]:
        return self._image

    @property
    def highlight_boxes(self) -> Sequence[BoundingBox]:
        return tuple(self._boxes)

    def show_annotation(self, image: QPixmap, boxes: Iterable[BoundingBox] = ()) -> None:
        """Show ``image`` across the screen with ``boxes`` (bottom-left origin) outlined."""
        self._image = image
        self._boxes = list(boxes)
        self._layout_children()
        self.show()
        self.raise_()
        self.activateWindow()
        self.update()
        _LOGGER.info("Annotation overlay shown with %d highlight box(es)", len(self._boxes))

    def dismiss(self) -> None:
        was_visible = self.isVisible()
        self.hide()
        self._image = None
        self._boxes = []
        if was_visible and self._on_dismiss is not None:
            self._on_dismiss()

    def highlight_rects(self) -> List[DeviceRect]:
        return to_device_rects(self._boxes, float(self.height()), render_all=True)

    def image_target_rect(self) -> QRectF:
        """Rect the screenshot is drawn into, scaled to fit without distorting its aspect ratio."""
        if self._image is None or self._image.isNull():
            return QRectF()
        width = float(self.width())
        height = float(self.height())
        image_width = float(self._image.width())
        image_height = float(self._image.height())
        factor = min(width / image_width, height / image_height)
        target_width = image_width * factor
        target_height = image_height * factor
        return QRectF((width - target_width) / 2.0, (height - target_height) / 2.0, target_width, target_height)

    def paintEvent(self, event) -> None:  # type: ignore[override]
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)
        if self._image is not None and not self._image.isNull():
            painter.drawPixmap(self.image_target_rect(), self._image, QRectF(self._image.rect()))
        pen = QPen(HIGHLIGHT_COLOR)
        pen.setWidth(HIGHLIGHT_LINE_WIDTH)
        painter.setPen(pen)
        painter.setBrush(Qt.BrushStyle.NoBrush)
        for x, y, width, height in self.highlight_rects():
            painter.drawRect(QRectF(x, y, width, height))
        painter.end()
        super().paintEvent(event)

    def mousePressEvent(self, event: QMouseEvent) -> None:  # type: ignore[override]
        if event.button() == Qt.MouseButton.LeftButton:
            self.dismiss()
        super().mousePressEvent(event)

    def keyPressEvent(self, event: QKeyEvent) -> None:  # type: ignore[override]
        self.dismiss()
        super().keyPressEvent(event)

    def resizeEvent(self, event) -> None:  # type: ignore[override]
        self._layout_children()
        super().resizeEvent(event)

    def _layout_children(self) -> None:
        height = self.height()
        self.watermark_label.move(CODE_BOX_MARGIN, height - CODE_BOX_MARGIN - WATERMARK_HEIGHT)
        self.dismiss_button.move(CODE_BOX_MARGIN, height - DISMISS_BUTTON_OFFSET - WATERMARK_HEIGHT)
