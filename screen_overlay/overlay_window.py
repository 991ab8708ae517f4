"""Full-screen, click-through overlay that draws the live bounding boxes."""
from __future__ import annotations

import sys
from typing import Iterable, List, Optional, Sequence, Tuple

from PyQt6.QtCore import QRectF, Qt
from PyQt6.QtGui import QColor, QPainter, QPen, QScreen
from PyQt6.QtWidgets import QWidget

from screen_overlay.bounding_boxes import EMPTY_SET, BoundingBox, BoundingBoxSet, flip_y
from screen_overlay.logging_utils import get_logger
from screen_overlay.screen_capture import primary_screen

_LOGGER = get_logger("OverlayWindow")

BOX_COLOR = QColor(255, 0, 0)
BOX_LINE_WIDTH = 8

DeviceRect = Tuple[float, float, float, float]


def to_device_rects(boxes: Iterable[BoundingBox], surface_height: float, *, render_all: bool = False) -> List[DeviceRect]:
    """Map render-space boxes (bottom-left origin) to Qt widget rects (top-left origin)."""
    rects: List[DeviceRect] = []
    for box in boxes:
        rects.append((box.x, flip_y(box.y, box.height, surface_height), box.width, box.height))
        if not render_all:
            break
    return rects


def apply_overlay_window_flags(widget: QWidget, *, click_through: bool) -> None:
    """Frameless, always-on-top, translucent window that can sit above full-screen apps."""
    widget.setAttribute(Qt.WidgetAttribute.WA_TranslucentBackground)
    window_flags = (
        Qt.WindowType.FramelessWindowHint
        | Qt.WindowType.WindowStaysOnTopHint
        | Qt.WindowType.Tool
    )
    if sys.platform.startswith("linux"):
        window_flags |= Qt.WindowType.X11BypassWindowManagerHint
    if click_through:
        window_flags |= Qt.WindowType.WindowTransparentForInput
    widget.setWindowFlags(window_flags)
    widget.setAttribute(Qt.WidgetAttribute.WA_TransparentForMouseEvents, click_through)
    widget.setAttribute(Qt.WidgetAttribute.WA_NoSystemBackground, True)
    widget.setAttribute(Qt.WidgetAttribute.WA_ShowWithoutActivating, click_through)


def cover_screen(widget: QWidget, screen: Optional[QScreen] = None) -> None:
    target = screen or primary_screen()
    if target is None:
        _LOGGER.warning("No screen available to size overlay %s", type(widget).__name__)
        return
    widget.setGeometry(target.geometry())


class OverlayWindow(QWidget):
    """Transparent overlay that outlines the streamed bounding boxes."""

    def __init__(
        self,
        *,
        render_all: bool = False,
        surface_height: Optional[float] = None,
        screen: Optional[QScreen] = None,
    ) -> None:
        super().__init__()
        self._render_all = render_all
        self._surface_height = surface_height
        self._boxes: BoundingBoxSet = EMPTY_SET
        apply_overlay_window_flags(self, click_through=True)
        cover_screen(self, screen)

    @property
    def boxes(self) -> BoundingBoxSet:
        return self._boxes

    def show_boxes(self, boxes: Sequence[BoundingBox]) -> None:
        self._boxes = tuple(boxes)
        if self._boxes:
            first = self._boxes[0]
            _LOGGER.debug(
                "Showing %d box(es); first id=%s x=%.1f y=%.1f w=%.1f h=%.1f",
                len(self._boxes),
                first.id,
                first.x,
                first.y,
                first.width,
                first.height,
            )
        if not self.isVisible():
            self.show()
            self.raise_()
        self.update()

    def hide_boxes(self) -> None:
        self._boxes = EMPTY_SET
        self.update()
        self.hide()

    def device_rects(self) -> List[DeviceRect]:
        surface_height = self._surface_height if self._surface_height is not None else float(self.height())
        return to_device_rects(self._boxes, surface_height, render_all=self._render_all)

    def paintEvent(self, event) -> None:  # type: ignore[override]
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        pen = QPen(BOX_COLOR)
        pen.setWidth(BOX_LINE_WIDTH)
        painter.setPen(pen)
        painter.setBrush(Qt.BrushStyle.NoBrush)
        for x, y, width, height in self.device_rects():
            painter.drawRect(QRectF(x, y, width, height))
        painter.end()
        super().paintEvent(event)
