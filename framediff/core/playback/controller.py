"""Playback controller: the stateful loop around the motion pipeline.

States are RUNNING and STOPPED. STOPPED is terminal. Stream exhaustion is not a
state change: the source is rewound and the frame index reset to 0.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable
from dataclasses import dataclass

from framediff.core.analytics.pipeline import MotionPipeline, PipelineConfig
from framediff.core.display.windows import (
    BACKGROUND_WINDOW,
    BINARY_DIFF_WINDOW,
    DENOISED_DIFF_WINDOW,
    ESC_KEY,
    FINAL_WINDOW,
    GRAYSCALE_DIFF_WINDOW,
    RAW_WINDOW,
    DisplaySurface,
    NullDisplay,
    SignalSource,
)
from framediff.core.overlay.draw import OverlayStyle
from framediff.core.types import FrameOutputs
from framediff.core.video_sources.base import SourceUnavailableError, VideoSource

logger = logging.getLogger(__name__)


class PlaybackStatus(enum.Enum):
    RUNNING = "running"
    STOPPED = "stopped"


@dataclass
class PlaybackState:
    frame_index: int = 0
    status: PlaybackStatus = PlaybackStatus.RUNNING


class PlaybackController:
    """Pull frames, run the pipeline, present the stages and apply exit policy.

    `step()` processes at most one frame and never waits for input, so it can be
    driven by any caller. `run()` is the interactive loop built on it: after
    every processed frame it blocks on `signals.wait()`.
    """

    def __init__(
        self,
        source: VideoSource,
        signals: SignalSource,
        display: DisplaySurface | None = None,
        config: PipelineConfig | None = None,
        style: OverlayStyle | None = None,
        exit_key: int = ESC_KEY,
        on_frame: Callable[[FrameOutputs], None] | None = None,
    ) -> None:
        self.source = source
        self.signals = signals
        self.display: DisplaySurface = display or NullDisplay()
        self.config = config or PipelineConfig()
        self.style = style or OverlayStyle()
        self.exit_key = exit_key
        self.on_frame = on_frame
        self.state = PlaybackState()
        self.pipeline: MotionPipeline | None = None
        self._rewound = False

    @property
    def running(self) -> bool:
        return self.state.status is PlaybackStatus.RUNNING

    def start(self) -> None:
        """Capture the first frame as the background and show it once."""

        background = self.source.read()
        if background is None:
            raise SourceUnavailableError("Video source produced no first frame")

        self.pipeline = MotionPipeline(background, self.config, self.style)
        # The background is the stream's first frame.
        self.state.frame_index = 1
        self.display.show(BACKGROUND_WINDOW, self.pipeline.background)
        logger.info(
            "Playback started: background %sx%s, threshold=%s erode=%s dilate=%s",
            background.shape[1],
            background.shape[0],
            self.config.threshold,
            self.config.erode_iterations,
            self.config.dilate_iterations,
        )

    def step(self) -> FrameOutputs | None:
        """Process the next frame, or rewind and return `None` at end of stream."""

        if not self.running:
            raise RuntimeError("Playback has been stopped")
        if self.pipeline is None:
            raise RuntimeError("Playback has not been started")

        frame = self.source.read()
        if frame is None:
            if self._rewound:
                raise SourceUnavailableError("Video source produced no frames after rewind")
            logger.debug("End of stream after frame %s, looping", self.state.frame_index)
            self.source.rewind()
            self.state.frame_index = 0
            self._rewound = True
            return None

        self._rewound = False
        self.state.frame_index += 1
        outputs = self.pipeline.process(frame, self.state.frame_index)
        self._show(outputs)

        det = outputs.detection
        logger.debug(
            "Frame %s processed in %.2f ms, area=%s",
            outputs.frame_index,
            outputs.elapsed_ms,
            det.area if det is not None else None,
        )
        if self.on_frame is not None:
            self.on_frame(outputs)
        return outputs

    def handle_signal(self, code: int) -> bool:
        """Apply a user signal; the exit code stops playback for good."""

        if code == self.exit_key:
            self.state.status = PlaybackStatus.STOPPED
            logger.info("Exit requested at frame %s", self.state.frame_index)
        return self.running

    def run(self) -> int:
        """Start playback and loop until the exit signal; return frames processed."""

        self.start()
        processed = 0
        while self.running:
            outputs = self.step()
            if outputs is None:
                continue
            processed += 1
            self.handle_signal(self.signals.wait())
        return processed

    def _show(self, outputs: FrameOutputs) -> None:
        self.display.show(RAW_WINDOW, outputs.raw)
        self.display.show(GRAYSCALE_DIFF_WINDOW, outputs.gray_diff)
        self.display.show(BINARY_DIFF_WINDOW, outputs.binary_diff)
        self.display.show(DENOISED_DIFF_WINDOW, outputs.denoised_diff)
        self.display.show(FINAL_WINDOW, outputs.annotated)
