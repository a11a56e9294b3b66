import numpy as np

from framediff.core.analytics.contours import (
    box_center,
    contour_area,
    detect_object,
    find_contours,
    select_largest,
)


def _square(x: int, y: int, side: int) -> np.ndarray:
    """Closed square polygon in OpenCV contour layout."""

    pts = [(x, y), (x, y + side), (x + side, y + side), (x + side, y)]
    return np.array([[p] for p in pts], dtype=np.int32)


def test_empty_mask_has_no_detection():
    mask = np.zeros((30, 30), dtype=np.uint8)
    assert find_contours(mask) == []
    assert select_largest([]) is None
    assert detect_object(mask) is None


def test_contour_area_uses_polygon_formula():
    assert contour_area(_square(0, 0, 10)) == 100.0


def test_box_center():
    assert box_center((10, 20, 21, 11)) == (20, 25)


def test_selector_prefers_larger_area():
    mask = np.zeros((60, 60), dtype=np.uint8)
    mask[2:8, 40:51] = 255  # 11x6 pixels -> polygon area 50, placed first in raster order
    mask[30:41, 5:16] = 255  # 11x11 pixels -> polygon area 100

    contours = find_contours(mask)
    assert sorted(contour_area(c) for c in contours) == [50.0, 100.0]

    det = select_largest(contours)
    assert det is not None
    assert det.area == 100.0
    assert det.bbox == (5, 30, 11, 11)
    assert det.center == (10, 35)


def test_selector_breaks_ties_by_traversal_order():
    mask = np.zeros((60, 60), dtype=np.uint8)
    mask[30:41, 5:16] = 255
    mask[5:16, 40:51] = 255

    results = {detect_object(mask).bbox for _ in range(5)}
    # The topmost contour comes first in traversal order and wins the tie.
    assert results == {(40, 5, 11, 11)}


def test_selector_first_of_equal_areas_wins():
    a = _square(0, 0, 10)
    b = _square(50, 50, 10)
    assert select_largest([a, b]).bbox == (0, 0, 11, 11)
    assert select_largest([b, a]).bbox == (50, 50, 11, 11)


def test_find_contours_is_ordered_top_to_bottom_left_to_right():
    mask = np.zeros((80, 80), dtype=np.uint8)
    mask[50:60, 50:60] = 255
    mask[10:20, 60:70] = 255
    mask[10:20, 5:15] = 255
    mask[50:60, 5:15] = 255

    tops = [tuple(c.reshape(-1, 2)[:, ::-1].min(axis=0)) for c in find_contours(mask)]
    assert tops == sorted(tops)
    boxes = [select_largest([c]).bbox[:2] for c in find_contours(mask)]
    assert boxes == [(5, 10), (60, 10), (5, 50), (50, 50)]


def test_zero_area_contours_still_select_first():
    line = np.array([[[0, 0]], [[5, 0]]], dtype=np.int32)
    det = select_largest([line])
    assert det is not None
    assert det.area == 0.0
