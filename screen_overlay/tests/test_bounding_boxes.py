from __future__ import annotations

import json

import pytest

from screen_overlay.bounding_boxes import BoundingBox, FrameDecodeError, decode_frame, flip_y


def _frame(bboxes, **extra) -> str:
    payload = {"bboxes": bboxes}
    payload.update(extra)
    return json.dumps(payload)


@pytest.mark.parametrize(
    "x1, y1, x2, y2, surface_height",
    [
        (0, 0, 10, 20, 100),
        (50, 50, 60, 70, 100),
        (12, 900, 400, 1080, 1080),
        (0, 0, 0, 0, 1),
    ],
)
def test_flip_round_trip_recovers_top(x1, y1, x2, y2, surface_height) -> None:
    height = y2 - y1
    flipped = flip_y(y1, height, surface_height)
    assert flip_y(flipped, height, surface_height) == y1


def test_decode_multiple_boxes_flips_against_surface_height() -> None:
    boxes = decode_frame(_frame({"a": [0, 0, 10, 20], "b": [50, 50, 60, 70]}), 100)

    assert boxes == (
        BoundingBox(id="a", x=0.0, y=80.0, width=10.0, height=20.0),
        BoundingBox(id="b", x=50.0, y=30.0, width=10.0, height=20.0),
    )


def test_decode_preserves_message_order() -> None:
    boxes = decode_frame(_frame({"z": [0, 0, 1, 1], "a": [0, 0, 1, 1], "m": [0, 0, 1, 1]}), 10)
    assert [box.id for box in boxes] == ["z", "a", "m"]


def test_negative_width_entry_is_dropped() -> None:
    boxes = decode_frame(_frame({"a": [10, 10, 5, 20]}), 100)
    assert all(box.id != "a" for box in boxes)
    assert boxes == ()


def test_negative_height_drops_only_that_entry() -> None:
    boxes = decode_frame(_frame({"bad": [0, 30, 10, 20], "good": [0, 0, 10, 10]}), 100)
    assert [box.id for box in boxes] == ["good"]


def test_zero_sized_box_is_kept() -> None:
    boxes = decode_frame(_frame({"dot": [5, 5, 5, 5]}), 50)
    assert boxes == (BoundingBox(id="dot", x=5.0, y=45.0, width=0.0, height=0.0),)


def test_scale_is_applied_before_flip() -> None:
    boxes = decode_frame(_frame({"a": [10, 20, 30, 60]}), 100, scale=0.5)
    assert boxes == (BoundingBox(id="a", x=5.0, y=70.0, width=10.0, height=20.0),)


def test_frame_scale_overrides_configured_scale() -> None:
    boxes = decode_frame(_frame({"a": [10, 20, 30, 60]}, scale=2), 200, scale=0.5)
    assert boxes == (BoundingBox(id="a", x=20.0, y=80.0, width=40.0, height=80.0),)


def test_empty_bboxes_decodes_to_empty_set() -> None:
    assert decode_frame(_frame({}), 100) == ()


def test_bytes_frame_is_decoded_as_utf8() -> None:
    boxes = decode_frame(_frame({"a": [0, 0, 10, 20]}).encode("utf-8"), 100)
    assert [box.id for box in boxes] == ["a"]


@pytest.mark.parametrize(
    "raw",
    [
        "not json",
        "[1, 2, 3]",
        json.dumps({"boxes": {}}),
        json.dumps({"bboxes": [[0, 0, 1, 1]]}),
        _frame({"a": [0, 0, 1]}),
        _frame({"a": [0, 0, 1, 1, 2]}),
        _frame({"a": "0,0,1,1"}),
        _frame({"a": [0, "0", 1, 1]}),
        _frame({"a": [0, 0, True, 1]}),
        _frame({"a": [0, 0, 1, 1]}, scale=0),
        _frame({"a": [0, 0, 1, 1]}, scale="big"),
        b"\xff\xfe",
        '{"bboxes": {"a": [0, 0, ' + "9" * 400 + ", 1]}}",
        '{"bboxes": {"a": [0, 0, ' + "9" * 5000 + ", 1]}}",
        "[" * 100000,
        '{"bboxes": {"a": [0, 0, NaN, 1]}}',
        '{"bboxes": {"a": [0, 0, 1, Infinity]}}',
        '{"bboxes": {"a": [-Infinity, 0, 1, 1]}}',
        '{"bboxes": {"a": [0, 0, 1, 1]}, "scale": Infinity}',
        '{"bboxes": {"a": [0, 0, 1, 1]}, "scale": NaN}',
        '{"bboxes": {"a": [0, 0, 1, 1]}, "scale": ' + "9" * 400 + "}",
    ],
)
def test_malformed_frames_raise_decode_error(raw) -> None:
    with pytest.raises(FrameDecodeError):
        decode_frame(raw, 100)


def test_one_bad_entry_rejects_the_whole_frame() -> None:
    with pytest.raises(FrameDecodeError):
        decode_frame(_frame({"good": [0, 0, 10, 10], "bad": [0, 0, None, 10]}), 100)


def test_decode_error_is_a_value_error() -> None:
    assert issubclass(FrameDecodeError, ValueError)
