"""Bounding box model, frame decoding and the top-left/bottom-left flip transform.

Producer frames describe rectangles as ``[x1, y1, x2, y2]`` with the origin at the
top-left and y growing downward. Boxes handed to the renderer use the host
windowing convention instead: origin at the bottom-left, y growing upward.
"""
from __future__ import annotations

import json
import math
import logging
from dataclasses import dataclass
from numbers import Real
from typing import Any, Mapping, Optional, Tuple, Union

from screen_overlay.logging_utils import get_logger

_LOGGER = get_logger("BoundingBoxes")


class FrameDecodeError(ValueError):
    """Raised when a frame is not a well-formed bounding box message."""


@dataclass(frozen=True)
class BoundingBox:
    id: str
    x: float
    y: float
    width: float
    height: float


BoundingBoxSet = Tuple[BoundingBox, ...]

EMPTY_SET: BoundingBoxSet = ()


def flip_y(y: float, height: float, surface_height: float) -> float:
    """Convert a rectangle origin between top-left/y-down and bottom-left/y-up.

    The transform is its own inverse for a fixed ``surface_height``.
    """
    return surface_height - y - height


def _coordinate(value: Any, box_id: str, index: int) -> float:
    # bool is a Real subclass; a true/false corner is a producer bug, not a coordinate
    if isinstance(value, bool) or not isinstance(value, Real):
        raise FrameDecodeError(f"Coordinate {index} of box {box_id!r} is not a number: {value!r}")
    try:
        coordinate = float(value)
    except OverflowError as exc:
        raise FrameDecodeError(f"Coordinate {index} of box {box_id!r} is out of range") from exc
    if not math.isfinite(coordinate):
        raise FrameDecodeError(f"Coordinate {index} of box {box_id!r} is not finite: {value!r}")
    return coordinate


def _resolve_scale(payload: Mapping[str, Any], default_scale: float) -> float:
    if "scale" not in payload:
        return default_scale
    value = payload["scale"]
    if isinstance(value, bool) or not isinstance(value, Real):
        raise FrameDecodeError(f"Frame scale must be a positive number, got {value!r}")
    try:
        scale = float(value)
    except OverflowError as exc:
        raise FrameDecodeError("Frame scale is out of range") from exc
    if not math.isfinite(scale) or scale <= 0.0:
        raise FrameDecodeError(f"Frame scale must be a positive number, got {value!r}")
    return scale


def parse_frame(raw_frame: Union[str, bytes]) -> Mapping[str, Any]:
    """Parse a text frame into its JSON object, checking only that ``bboxes`` is present."""
    if isinstance(raw_frame, bytes):
        try:
            raw_frame = raw_frame.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise FrameDecodeError(f"Frame is not valid UTF-8: {exc}") from exc
    try:
        payload = json.loads(raw_frame)
    # ValueError also covers integer strings over the interpreter's digit limit
    except (ValueError, RecursionError) as exc:
        raise FrameDecodeError(f"Frame is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise FrameDecodeError(f"Frame must be a JSON object, got {type(payload).__name__}")
    bboxes = payload.get("bboxes")
    if not isinstance(bboxes, dict):
        raise FrameDecodeError("Frame is missing the 'bboxes' object")
    return payload


def decode_frame(
    raw_frame: Union[str, bytes],
    surface_height: float,
    *,
    scale: float = 1.0,
    logger: Optional[logging.Logger] = None,
) -> BoundingBoxSet:
    """Decode one frame into render-space boxes.

    Any structural problem rejects the whole frame with FrameDecodeError. Entries
    whose derived width or height is negative are dropped individually.
    """
    log = logger or _LOGGER
    payload = parse_frame(raw_frame)
    frame_scale = _resolve_scale(payload, scale)
    boxes = []
    for box_id, corners in payload["bboxes"].items():
        if not isinstance(corners, (list, tuple)) or len(corners) != 4:
            raise FrameDecodeError(f"Box {box_id!r} must be a list of four coordinates, got {corners!r}")
        x1, y1, x2, y2 = (_coordinate(value, box_id, index) for index, value in enumerate(corners))
        width = (x2 - x1) * frame_scale
        height = (y2 - y1) * frame_scale
        if width < 0 or height < 0:
            log.debug("Dropping box %r with negative geometry (width=%s height=%s)", box_id, width, height)
            continue
        top = y1 * frame_scale
        boxes.append(
            BoundingBox(
                id=str(box_id),
                x=x1 * frame_scale,
                y=flip_y(top, height, surface_height),
                width=width,
                height=height,
            )
        )
    return tuple(boxes)
