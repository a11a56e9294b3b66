"""Shared type definitions used across the motion pipeline.

Frames are plain numpy arrays (H x W x 3 BGR or H x W single-channel, uint8).
Small value types for contours, boxes and per-frame outputs live here so stage,
overlay and playback code can stay strongly typed.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

Frame = np.ndarray
Contour = np.ndarray  # shape: (N, 1, 2) int32, OpenCV layout

BBox = tuple[int, int, int, int]  # x, y, w, h
Point = tuple[int, int]


class ShapeMismatchError(ValueError):
    """Raised when a pipeline stage receives frames of incompatible shape/depth."""


@dataclass(frozen=True)
class Detection:
    """The dominant contour of a frame and its derived geometry."""

    contour: Contour
    area: float
    bbox: BBox
    center: Point


@dataclass
class FrameOutputs:
    """Everything produced for one processed video frame."""

    frame_index: int
    raw: Frame
    gray_diff: Frame
    binary_diff: Frame
    denoised_diff: Frame
    annotated: Frame
    detection: Detection | None
    elapsed_ms: float
    timings: dict[str, float] = field(default_factory=dict)
