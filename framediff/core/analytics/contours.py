"""Contour extraction and dominant-contour selection.

Contours are returned in a fixed traversal order: top-to-bottom, then
left-to-right, by each contour's topmost-leftmost point. Ties keep OpenCV's
own order (stable sort), so the selector is deterministic for a given mask.
"""

from __future__ import annotations

import cv2

from framediff.core.types import BBox, Contour, Detection, Frame, Point


def _raster_key(contour: Contour) -> tuple[int, int]:
    """Return (y, x) of the contour's topmost-leftmost point."""

    pts = contour.reshape(-1, 2)
    top = int(pts[:, 1].min())
    left = int(pts[pts[:, 1] == top][:, 0].min())
    return top, left


def find_contours(mask: Frame) -> list[Contour]:
    """Return every boundary contour of the mask as a flat list (no nesting)."""

    contours, _hierarchy = cv2.findContours(mask, cv2.RETR_LIST, cv2.CHAIN_APPROX_SIMPLE)
    return sorted(contours, key=_raster_key)


def contour_area(contour: Contour) -> float:
    """Polygon area enclosed by the contour's point sequence."""

    return float(cv2.contourArea(contour))


def box_center(bbox: BBox) -> Point:
    x, y, w, h = bbox
    return x + w // 2, y + h // 2


def select_largest(contours: list[Contour]) -> Detection | None:
    """Pick the contour with strictly the greatest area.

    The first contour in traversal order wins ties. Returns `None` when there is
    nothing to select, which is the normal no-motion outcome.
    """

    best: Contour | None = None
    best_area = 0.0
    for contour in contours:
        area = contour_area(contour)
        if best is None or area > best_area:
            best = contour
            best_area = area

    if best is None:
        return None

    x, y, w, h = cv2.boundingRect(best)
    bbox = (int(x), int(y), int(w), int(h))
    return Detection(contour=best, area=best_area, bbox=bbox, center=box_center(bbox))


def detect_object(mask: Frame) -> Detection | None:
    """Extract contours from a denoised mask and return the dominant one."""

    return select_largest(find_contours(mask))
