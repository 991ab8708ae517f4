"""Screen capture and surface geometry helpers backed by QScreen."""
from __future__ import annotations

from typing import Optional, Tuple

from PyQt6.QtGui import QGuiApplication, QPixmap, QScreen

from screen_overlay.logging_utils import get_logger

_LOGGER = get_logger("ScreenCapture")

# Used when no screen is attached (headless sessions).
FALLBACK_SURFACE_SIZE: Tuple[int, int] = (3072, 1920)


def primary_screen() -> Optional[QScreen]:
    return QGuiApplication.primaryScreen()


def surface_size(screen: Optional[QScreen] = None) -> Tuple[int, int]:
    """Return the (width, height) of the render surface in logical points."""
    target = screen or primary_screen()
    if target is None:
        _LOGGER.warning("No screen available; assuming %dx%d surface", *FALLBACK_SURFACE_SIZE)
        return FALLBACK_SURFACE_SIZE
    geometry = target.geometry()
    return max(geometry.width(), 1), max(geometry.height(), 1)


def capture_screen(screen: Optional[QScreen] = None) -> Optional[QPixmap]:
    """Grab the whole screen; None when there is no screen or the grab came back empty.

    An empty grab is what macOS hands back when screen recording permission is denied.
    """
    target = screen or primary_screen()
    if target is None:
        _LOGGER.warning("Screen capture failed: no screen available")
        return None
    pixmap = target.grabWindow(0)
    if pixmap.isNull() or pixmap.width() == 0 or pixmap.height() == 0:
        _LOGGER.warning("Screen capture failed: empty image (screen recording permission missing?)")
        return None
    _LOGGER.debug("Captured screen %s at %dx%d", target.name(), pixmap.width(), pixmap.height())
    return pixmap


class ScreenCapturer:
    """Captures the screen and remembers the most recent screenshot."""

    def __init__(self, screen: Optional[QScreen] = None) -> None:
        self._screen = screen
        self._last: Optional[QPixmap] = None

    def capture(self) -> Optional[QPixmap]:
        pixmap = capture_screen(self._screen)
        if pixmap is not None:
            self._last = pixmap
        return pixmap

    def remember(self, pixmap: QPixmap) -> None:
        self._last = pixmap

    def last_screenshot(self) -> Optional[QPixmap]:
        return self._last
