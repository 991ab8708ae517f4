from __future__ import annotations

import pytest
from PyQt6.QtCore import Qt

from screen_overlay.bounding_boxes import BoundingBox, decode_frame
from screen_overlay.overlay_window import OverlayWindow, to_device_rects


BOXES = (
    BoundingBox(id="a", x=0.0, y=80.0, width=10.0, height=20.0),
    BoundingBox(id="b", x=50.0, y=30.0, width=10.0, height=20.0),
)


def test_device_rects_restore_top_left_origin() -> None:
    assert to_device_rects(BOXES, 100.0, render_all=True) == [(0.0, 0.0, 10.0, 20.0), (50.0, 50.0, 10.0, 20.0)]


def test_device_rects_only_first_box_by_default() -> None:
    assert to_device_rects(BOXES, 100.0) == [(0.0, 0.0, 10.0, 20.0)]
    assert to_device_rects((), 100.0) == []


def test_decoded_frame_maps_back_to_producer_corners() -> None:
    boxes = decode_frame('{"bboxes": {"a": [12, 34, 56, 78]}}', 600)
    x, y, width, height = to_device_rects(boxes, 600)[0]
    assert (x, y, x + width, y + height) == (12.0, 34.0, 56.0, 78.0)


@pytest.fixture
def window(qt_app):
    win = OverlayWindow(surface_height=100.0)
    yield win
    win.hide()
    win.deleteLater()


def test_window_is_click_through_and_on_top(window) -> None:
    flags = window.windowFlags()
    assert flags & Qt.WindowType.FramelessWindowHint
    assert flags & Qt.WindowType.WindowStaysOnTopHint
    assert flags & Qt.WindowType.WindowTransparentForInput
    assert window.testAttribute(Qt.WidgetAttribute.WA_TransparentForMouseEvents)
    assert window.testAttribute(Qt.WidgetAttribute.WA_TranslucentBackground)


def test_show_boxes_makes_window_visible(window) -> None:
    window.show_boxes(BOXES)
    assert window.isVisible()
    assert window.boxes == BOXES
    assert window.device_rects() == [(0.0, 0.0, 10.0, 20.0)]


def test_render_all_outlines_every_box(qt_app) -> None:
    win = OverlayWindow(render_all=True, surface_height=100.0)
    try:
        win.show_boxes(BOXES)
        assert len(win.device_rects()) == 2
        win.repaint()
    finally:
        win.hide()
        win.deleteLater()


def test_hide_boxes_clears_and_hides(window) -> None:
    window.show_boxes(BOXES)
    window.hide_boxes()
    assert not window.isVisible()
    assert window.boxes == ()
    assert window.device_rects() == []


def test_window_height_is_used_without_explicit_surface_height(qt_app) -> None:
    win = OverlayWindow()
    try:
        win.resize(300, 200)
        win.show_boxes([BoundingBox(id="a", x=5.0, y=150.0, width=10.0, height=20.0)])
        assert win.device_rects() == [(5.0, 30.0, 10.0, 20.0)]
    finally:
        win.hide()
        win.deleteLater()
