"""Overlay drawing helpers (OpenCV).

Draws the per-frame header (frame number, processing time) and, when an object
was detected, its contour, bounding box and labels. Everything uses one color.
"""

from __future__ import annotations

from dataclasses import dataclass

import cv2
import numpy as np

from framediff.core.types import Detection, Frame, Point

FONT = cv2.FONT_HERSHEY_PLAIN


@dataclass(frozen=True)
class OverlayStyle:
    color: tuple[int, int, int] = (0, 0, 255)  # BGR red
    line_height: int = 10
    header_origin: Point = (5, 10)
    label_offset: int = 5
    font_scale: float = 0.8


def write_lines(img: np.ndarray, lines: list[str], origin: Point, style: OverlayStyle) -> None:
    """Write `lines` into `img` in place, moving down one line height per line."""

    x, y0 = origin
    for i, line in enumerate(lines):
        y = y0 + i * style.line_height
        cv2.putText(img, line, (int(x), int(y)), FONT, style.font_scale, style.color)


def header_lines(frame_index: int, elapsed_ms: float) -> list[str]:
    return [
        f"Frame Number: {frame_index}",
        f"Processing Time: {int(elapsed_ms)} ms",
    ]


def format_area(area: float) -> str:
    """Full-precision area text without a trailing `.0` (1440000.0 -> "1440000")."""

    if float(area).is_integer():
        return str(int(area))
    return repr(float(area))


def detection_lines(detection: Detection) -> list[str]:
    cx, cy = detection.center
    return [
        f"Area: {format_area(detection.area)}",
        f"Position: {cx}, {cy}",
    ]


def mark_detection(img: np.ndarray, detection: Detection, style: OverlayStyle) -> None:
    """Draw contour, bounding box and labels for `detection` into `img` in place."""

    x, y, w, h = detection.bbox
    cv2.polylines(img, [detection.contour], True, style.color)
    # Inclusive corners, matching cv2.rectangle(img, rect) semantics.
    cv2.rectangle(img, (x, y), (x + w - 1, y + h - 1), style.color)

    _, cy = detection.center
    write_lines(img, detection_lines(detection), (x + w + style.label_offset, cy), style)


def canvas(frame: Frame) -> np.ndarray:
    """Return a BGR copy of `frame` to draw on; gray frames are expanded to 3 channels."""

    if frame.ndim == 2:
        return cv2.cvtColor(frame, cv2.COLOR_GRAY2BGR)
    return frame.copy()


def write_header(img: np.ndarray, frame_index: int, elapsed_ms: float, style: OverlayStyle) -> None:
    write_lines(img, header_lines(frame_index, elapsed_ms), style.header_origin, style)


def annotate(
    frame: Frame,
    detection: Detection | None,
    frame_index: int,
    elapsed_ms: float,
    style: OverlayStyle | None = None,
) -> Frame:
    """Return an annotated BGR copy of `frame`; the input is left untouched."""

    style = style or OverlayStyle()
    img = canvas(frame)
    if detection is not None:
        mark_detection(img, detection, style)
    write_header(img, frame_index, elapsed_ms, style)
    return img
