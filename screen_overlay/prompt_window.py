"""Main window: a prompt field and a Capture button that trigger the annotation overlay."""
from __future__ import annotations

from PyQt6.QtCore import QTimer
from PyQt6.QtWidgets import QHBoxLayout, QLineEdit, QMessageBox, QPushButton, QWidget

from screen_overlay.logging_utils import get_logger
from screen_overlay.overlay_manager import OverlayManager

_LOGGER = get_logger("PromptWindow")

# Give the window manager time to remove this window before the screen is grabbed.
CAPTURE_DELAY_MS = 300
RESTORE_DELAY_MS = 500


class PromptWindow(QWidget):
    def __init__(self, manager: OverlayManager) -> None:
        super().__init__()
        self._manager = manager
        self.setWindowTitle("Screen Overlay")
        self.prompt_field = QLineEdit(self)
        self.prompt_field.setPlaceholderText("What do you want to do?")
        self.capture_button = QPushButton("Capture", self)
        layout = QHBoxLayout(self)
        layout.addWidget(self.prompt_field)
        layout.addWidget(self.capture_button)
        self.capture_button.clicked.connect(self.request_capture)
        self.prompt_field.returnPressed.connect(self.request_capture)

    def request_capture(self) -> bool:
        prompt = self.prompt_field.text().strip()
        if not prompt:
            QMessageBox.warning(self, "Empty Prompt", "Please enter a prompt for annotation.")
            return False
        self.hide()
        QTimer.singleShot(CAPTURE_DELAY_MS, lambda: self._capture(prompt))
        return True

    def _capture(self, prompt: str) -> None:
        if not self._manager.capture_and_annotate(prompt):
            _LOGGER.warning("Annotation skipped; screen capture unavailable")
        QTimer.singleShot(RESTORE_DELAY_MS, self._restore)

    def _restore(self) -> None:
        self.show()
        self.raise_()
        self.activateWindow()
