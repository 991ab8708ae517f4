"""Coordinates the verification, annotation and capture overlays.

Only one of the verification and annotation overlays is visible at a time; showing
either hides whatever was up before.
"""
from __future__ import annotations

from typing import Callable, Iterable, Optional

from PyQt6.QtGui import QPixmap

from screen_overlay.annotation_overlay import AnnotationOverlay
from screen_overlay.bounding_boxes import BoundingBox
from screen_overlay.logging_utils import get_logger
from screen_overlay.screen_capture import ScreenCapturer, primary_screen, surface_size
from screen_overlay.verification_overlay import CompletionCallback, VerificationOverlay

_LOGGER = get_logger("OverlayManager")


def centered_highlight(width: float, height: float, fraction: float = 0.5) -> BoundingBox:
    """Box covering ``fraction`` of each dimension, centered on the surface."""
    margin = (1.0 - fraction) / 2.0
    return BoundingBox(
        id="highlight",
        x=width * margin,
        y=height * margin,
        width=width * fraction,
        height=height * fraction,
    )


class OverlayManager:
    def __init__(
        self,
        *,
        watermark: str = "JARVIS",
        capturer: Optional[ScreenCapturer] = None,
        hide_before_capture: Optional[Callable[[], None]] = None,
    ) -> None:
        self._watermark = watermark
        self._capturer = capturer or ScreenCapturer()
        self._verification: Optional[VerificationOverlay] = None
        self._annotation: Optional[AnnotationOverlay] = None
        self._hide_before_capture = hide_before_capture

    @property
    def verification_overlay(self) -> Optional[VerificationOverlay]:
        return self._verification

    @property
    def annotation_overlay(self) -> Optional[AnnotationOverlay]:
        return self._annotation

    def show_verification_overlay(self, code: str, completion: CompletionCallback) -> None:
        self.hide_overlay()
        if primary_screen() is None:
            _LOGGER.warning("Cannot show verification overlay: no screen available")
            completion(False)
            return
        if self._verification is None:
            self._verification = VerificationOverlay()
        self._verification.display(code, completion)

    def show_annotation_overlay(self, image: QPixmap, boxes: Iterable[BoundingBox] = ()) -> None:
        self.hide_overlay()
        self._capturer.remember(image)
        if primary_screen() is None:
            _LOGGER.warning("Cannot show annotation overlay: no screen available")
            return
        if self._annotation is None:
            self._annotation = AnnotationOverlay(self._watermark)
        self._annotation.show_annotation(image, boxes)

    def hide_overlay(self) -> None:
        """Hide whichever overlay is up; a pending verification is left for its owner to resolve."""
        if self._verification is not None and self._verification.isVisible():
            self._verification.hide()
        if self._annotation is not None and self._annotation.isVisible():
            self._annotation.dismiss()

    def capture_screen(self) -> Optional[QPixmap]:
        if self._hide_before_capture is not None:
            self._hide_before_capture()
        return self._capturer.capture()

    def last_screenshot(self) -> Optional[QPixmap]:
        return self._capturer.last_screenshot()

    def capture_and_annotate(self, prompt: str) -> bool:
        """Capture the screen and highlight its centre; False when the capture fails."""
        screenshot = self.capture_screen()
        if screenshot is None:
            _LOGGER.error("Failed to capture screen for prompt %r", prompt)
            return False
        width, height = surface_size()
        self.show_annotation_overlay(screenshot, [centered_highlight(float(width), float(height))])
        _LOGGER.info("Showing annotation for prompt: %s", prompt)
        return True
