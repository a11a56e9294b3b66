"""Pure transform chain: difference, binarization and morphological opening.

Each function returns a new array and never writes into its inputs.
"""

from __future__ import annotations

import cv2
import numpy as np

from framediff.core.types import Frame, ShapeMismatchError

HIGH_VALUE = 255

# 3x3 structuring neighborhood shared by erosion and dilation.
_KERNEL = np.ones((3, 3), dtype=np.uint8)


def _require_single_channel(frame: Frame, what: str) -> None:
    if frame.ndim != 2:
        raise ShapeMismatchError(f"{what} must be single-channel, got shape {frame.shape}")


def difference_frame(background: Frame, frame: Frame) -> Frame:
    """Return the single-channel absolute difference between `background` and `frame`.

    Color inputs are reduced with the standard BGR -> luma conversion.
    """

    if background.shape != frame.shape or background.dtype != frame.dtype:
        raise ShapeMismatchError(
            f"background {background.shape}/{background.dtype} does not match "
            f"frame {frame.shape}/{frame.dtype}"
        )

    diff = cv2.absdiff(background, frame)
    if diff.ndim == 2:
        return diff
    if diff.ndim == 3 and diff.shape[2] == 3:
        return cv2.cvtColor(diff, cv2.COLOR_BGR2GRAY)
    raise ShapeMismatchError(f"unsupported frame shape {frame.shape}")


def binarize(gray: Frame, threshold: int, high: int = HIGH_VALUE) -> Frame:
    """Set pixels strictly brighter than `threshold` to `high`, everything else to 0."""

    if not 0 <= threshold <= 255:
        raise ValueError("threshold must be in [0, 255]")
    _require_single_channel(gray, "binarize input")
    _, mask = cv2.threshold(gray, threshold, high, cv2.THRESH_BINARY)
    return mask


def denoise(mask: Frame, erode_iterations: int, dilate_iterations: int) -> Frame:
    """Morphological opening: erode `erode_iterations` times, then dilate.

    Regions erased by erosion cannot be regrown by dilation; only surviving seeds
    expand. Both operations replicate border pixels.
    """

    if erode_iterations < 0 or dilate_iterations < 0:
        raise ValueError("iteration counts must be >= 0")
    _require_single_channel(mask, "denoise input")

    out = mask.copy()
    if erode_iterations > 0:
        out = cv2.erode(
            out, _KERNEL, iterations=erode_iterations, borderType=cv2.BORDER_REPLICATE
        )
    if dilate_iterations > 0:
        out = cv2.dilate(
            out, _KERNEL, iterations=dilate_iterations, borderType=cv2.BORDER_REPLICATE
        )
    return out
