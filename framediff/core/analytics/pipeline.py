"""Per-frame motion pipeline.

Ties the background difference, binarization, opening, contour selection and
overlay into a single `process()` call. The background is captured once and
kept read-only; every stage hands a fresh array to the next one.
"""

from __future__ import annotations

import time
from dataclasses import dataclass

from framediff.core.analytics.contours import find_contours, select_largest
from framediff.core.analytics.difference import binarize, denoise, difference_frame
from framediff.core.overlay.draw import OverlayStyle, canvas, mark_detection, write_header
from framediff.core.types import Frame, FrameOutputs


@dataclass(frozen=True)
class PipelineConfig:
    threshold: int = 5
    erode_iterations: int = 3
    dilate_iterations: int = 3

    def __post_init__(self) -> None:
        if not 0 <= self.threshold <= 255:
            raise ValueError("threshold must be in [0, 255]")
        if self.erode_iterations < 0 or self.dilate_iterations < 0:
            raise ValueError("iteration counts must be >= 0")


def _ms(t0: float, t1: float) -> float:
    return (t1 - t0) * 1000.0


class MotionPipeline:
    """Detect the dominant moving region of each frame against a fixed background.

    `process()` is a single request/response step: the caller decides when to
    pull the next frame, so the pipeline knows nothing about input devices.
    """

    def __init__(
        self,
        background: Frame,
        config: PipelineConfig | None = None,
        style: OverlayStyle | None = None,
    ) -> None:
        background = background.copy()
        background.flags.writeable = False
        self.background = background
        self.config = config or PipelineConfig()
        self.style = style or OverlayStyle()

    def process(self, frame: Frame, frame_index: int) -> FrameOutputs:
        """Run every stage on `frame` and return the intermediate and final images.

        `elapsed_ms` covers difference through marking the detection; only the
        header text is drawn afterwards, since it reports that time.
        `timings` holds the same measurement split per stage.
        """

        cfg = self.config
        timings: dict[str, float] = {}

        t0 = time.perf_counter()
        gray_diff = difference_frame(self.background, frame)
        t1 = time.perf_counter()
        binary_diff = binarize(gray_diff, cfg.threshold)
        t2 = time.perf_counter()
        denoised_diff = denoise(binary_diff, cfg.erode_iterations, cfg.dilate_iterations)
        t3 = time.perf_counter()
        detection = select_largest(find_contours(denoised_diff))
        t4 = time.perf_counter()
        annotated = canvas(frame)
        if detection is not None:
            mark_detection(annotated, detection, self.style)
        t5 = time.perf_counter()

        timings["diff_ms"] = _ms(t0, t1)
        timings["threshold_ms"] = _ms(t1, t2)
        timings["denoise_ms"] = _ms(t2, t3)
        timings["contours_ms"] = _ms(t3, t4)
        timings["overlay_ms"] = _ms(t4, t5)
        elapsed_ms = _ms(t0, t5)

        write_header(annotated, frame_index, elapsed_ms, self.style)
        timings["pipeline_ms"] = _ms(t0, time.perf_counter())

        return FrameOutputs(
            frame_index=frame_index,
            raw=frame,
            gray_diff=gray_diff,
            binary_diff=binary_diff,
            denoised_diff=denoised_diff,
            annotated=annotated,
            detection=detection,
            elapsed_ms=elapsed_ms,
            timings=timings,
        )
