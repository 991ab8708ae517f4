from __future__ import annotations

import pytest
from PyQt6.QtCore import Qt
from PyQt6.QtGui import QColor, QPixmap
from PyQt6.QtTest import QTest

from screen_overlay.annotation_overlay import AnnotationOverlay
from screen_overlay.bounding_boxes import BoundingBox


def _pixmap(width: int, height: int) -> QPixmap:
    pixmap = QPixmap(width, height)
    pixmap.fill(QColor(10, 20, 30))
    return pixmap


@pytest.fixture
def overlay(qt_app):
    dismissed = []
    widget = AnnotationOverlay("HELPER", on_dismiss=lambda: dismissed.append(True))
    widget.resize(400, 300)
    widget.dismissed = dismissed
    yield widget
    widget.hide()
    widget.deleteLater()


def test_show_annotation_displays_image_and_boxes(overlay) -> None:
    box = BoundingBox(id="h", x=100.0, y=75.0, width=200.0, height=150.0)
    overlay.show_annotation(_pixmap(800, 600), [box])

    assert overlay.isVisible()
    assert overlay.image is not None
    assert overlay.highlight_boxes == (box,)
    assert overlay.highlight_rects() == [(100.0, 75.0, 200.0, 150.0)]
    assert overlay.watermark_label.text() == "HELPER"
    overlay.repaint()


def test_image_keeps_aspect_ratio(overlay) -> None:
    overlay.show_annotation(_pixmap(200, 100))
    target = overlay.image_target_rect()
    assert target.width() == pytest.approx(400.0)
    assert target.height() == pytest.approx(200.0)
    assert target.y() == pytest.approx(50.0)


def test_click_dismisses_and_notifies(overlay) -> None:
    overlay.show_annotation(_pixmap(10, 10))
    QTest.mouseClick(overlay, Qt.MouseButton.LeftButton)
    assert not overlay.isVisible()
    assert overlay.image is None
    assert overlay.dismissed == [True]


def test_key_press_dismisses(overlay) -> None:
    overlay.show_annotation(_pixmap(10, 10))
    QTest.keyClick(overlay, Qt.Key.Key_Escape)
    assert not overlay.isVisible()


def test_dismiss_button_dismisses(overlay) -> None:
    overlay.show_annotation(_pixmap(10, 10))
    overlay.dismiss_button.click()
    assert not overlay.isVisible()
    assert overlay.dismissed == [True]


def test_dismiss_when_hidden_does_not_notify(overlay) -> None:
    overlay.dismiss()
    assert overlay.dismissed == []
