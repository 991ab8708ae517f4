"""Verification code box shown at startup."""
from __future__ import annotations

from typing import Callable, Optional

from PyQt6.QtCore import Qt, QTimer
from PyQt6.QtGui import QCloseEvent, QFont, QFontDatabase, QKeyEvent, QMouseEvent, QScreen
from PyQt6.QtWidgets import QLabel, QPushButton, QWidget

from screen_overlay.logging_utils import get_logger
from screen_overlay.overlay_window import apply_overlay_window_flags, cover_screen

_LOGGER = get_logger("VerificationOverlay")

CODE_BOX_MARGIN = 16
CODE_BOX_WIDTH = 200
CODE_BOX_HEIGHT = 40
DISMISS_BUTTON_OFFSET = 70
DISMISS_BUTTON_HEIGHT = 30

CompletionCallback = Callable[[bool], None]


def monospace_font(point_size: int = 14) -> QFont:
    font = QFontDatabase.systemFont(QFontDatabase.SystemFont.FixedFont)
    font.setPointSize(point_size)
    font.setWeight(QFont.Weight.Normal)
    return font


class VerificationOverlay(QWidget):
    """Shows ``Code: <code>`` near the bottom-left corner until the user interacts."""

    def __init__(self, screen: Optional[QScreen] = None) -> None:
        super().__init__()
        self._completion: Optional[CompletionCallback] = None
        apply_overlay_window_flags(self, click_through=False)
        cover_screen(self, screen)

        self.code_label = QLabel("", self)
        self.code_label.setFont(monospace_font())
        self.code_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.code_label.setStyleSheet(
            "color: #ffffff; background-color: rgba(0, 0, 0, 128); border-radius: 8px;"
        )
        self.code_label.resize(CODE_BOX_WIDTH, CODE_BOX_HEIGHT)

        self.dismiss_button = QPushButton("Dismiss Overlay", self)
        self.dismiss_button.resize(CODE_BOX_WIDTH, DISMISS_BUTTON_HEIGHT)
        self.dismiss_button.clicked.connect(lambda: self.complete(True))
        self._layout_children()

    @property
    def code_text(self) -> str:
        return self.code_label.text()

    @property
    def pending(self) -> bool:
        return self._completion is not None

    def display(self, code: str, on_complete: CompletionCallback) -> None:
        """Show ``code`` and call ``on_complete`` once with the outcome."""
        if self._completion is not None:
            _LOGGER.debug("Replacing pending verification without completing it")
        self._completion = on_complete
        self.code_label.setText(f"Code: {code}")
        self._layout_children()
        self.show()
        self.raise_()
        self.activateWindow()
        _LOGGER.info("Verification overlay shown")

    def complete(self, success: bool) -> None:
        completion = self._completion
        self._completion = None
        self.hide()
        if completion is None:
            return
        _LOGGER.info("Verification %s", "completed" if success else "cancelled")
        QTimer.singleShot(0, lambda: completion(success))

    def cancel(self) -> None:
        self.complete(False)

    def mousePressEvent(self, event: QMouseEvent) -> None:  # type: ignore[override]
        if event.button() == Qt.MouseButton.LeftButton:
            self.complete(True)
        super().mousePressEvent(event)

    def keyPressEvent(self, event: QKeyEvent) -> None:  # type: ignore[override]
        self.complete(True)
        super().keyPressEvent(event)

    def closeEvent(self, event: QCloseEvent) -> None:  # type: ignore[override]
        # A window closed while still pending counts as a failed verification.
        if self._completion is not None:
            self.cancel()
        super().closeEvent(event)

    def resizeEvent(self, event) -> None:  # type: ignore[override]
        self._layout_children()
        super().resizeEvent(event)

    def _layout_children(self) -> None:
        # Positions are measured from the bottom edge, Qt measures from the top.
        height = self.height()
        self.code_label.move(CODE_BOX_MARGIN, height - CODE_BOX_MARGIN - CODE_BOX_HEIGHT)
        self.dismiss_button.move(CODE_BOX_MARGIN, height - DISMISS_BUTTON_OFFSET - DISMISS_BUTTON_HEIGHT)
