"""Render-context handles that run callables on the rendering thread."""
from __future__ import annotations

from typing import Callable, List

from PyQt6.QtCore import QObject, Qt, pyqtSignal, pyqtSlot

from screen_overlay.logging_utils import get_logger

_LOGGER = get_logger("RenderContext")


class RenderContext:
    def post(self, fn: Callable[[], None]) -> None: ...


class ImmediateRenderContext(RenderContext):
    """Runs posted callables inline on the calling thread."""

    def post(self, fn: Callable[[], None]) -> None:
        fn()


class DeferredRenderContext(RenderContext):
    """Queues posted callables until ``drain()`` runs them in order."""

    def __init__(self) -> None:
        self._pending: List[Callable[[], None]] = []

    def post(self, fn: Callable[[], None]) -> None:
        self._pending.append(fn)

    def drain(self) -> int:
        ran = 0
        while self._pending:
            self._pending.pop(0)()
            ran += 1
        return ran

    def __len__(self) -> int:
        return len(self._pending)


class QtRenderContext(QObject, RenderContext):
    """Marshals callables onto the thread that owns this object (the Qt GUI thread)."""

    _dispatch = pyqtSignal(object)

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._dispatch.connect(self._run, Qt.ConnectionType.QueuedConnection)

    def post(self, fn: Callable[[], None]) -> None:
        self._dispatch.emit(fn)

    @pyqtSlot(object)
    def _run(self, fn: Callable[[], None]) -> None:
        try:
            fn()
        except Exception:  # pragma: no cover - observer failures must not kill the event loop
            _LOGGER.exception("Render-context callback %r failed", fn)
