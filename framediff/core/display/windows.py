"""Display surfaces and user-advance signal sources.

The playback controller presents frames through `DisplaySurface` and blocks on
`SignalSource.wait()` after each processed frame. The OpenCV implementations
map these onto HighGUI windows and `cv2.waitKey`; the others serve headless
runs.
"""

from __future__ import annotations

from typing import Protocol

import cv2

from framediff.core.types import Frame

ESC_KEY = 27

BACKGROUND_WINDOW = "Background Frame"
RAW_WINDOW = "Raw Frame"
GRAYSCALE_DIFF_WINDOW = "Grayscale Difference Frame"
BINARY_DIFF_WINDOW = "Binary Difference Frame"
DENOISED_DIFF_WINDOW = "Denoised Difference Frame"
FINAL_WINDOW = "Final Frame"


class DisplaySurface(Protocol):
    def show(self, name: str, frame: Frame) -> None:
        """Present `frame` on the output channel called `name`."""

    def close(self) -> None:
        """Tear down any open output channels."""


class SignalSource(Protocol):
    def wait(self) -> int:
        """Block until the user signals, and return the signal code."""


class OpenCVWindows:
    """One HighGUI window per output channel."""

    def show(self, name: str, frame: Frame) -> None:
        cv2.imshow(name, frame)

    def close(self) -> None:
        cv2.destroyAllWindows()


class NullDisplay:
    """Discards frames; used when running without a screen."""

    def show(self, name: str, frame: Frame) -> None:
        return None

    def close(self) -> None:
        return None


class KeyboardSignals:
    """Wait indefinitely for a key press in any HighGUI window."""

    def wait(self) -> int:
        return cv2.waitKey(0) & 0xFF


class FrameBudgetSignals:
    """Advance automatically and signal exit once `max_frames` frames were seen.

    A budget of 0 never exits. Without an explicit `advance_key` the code after
    `exit_key` is used, so the two never collide.
    """

    def __init__(
        self, max_frames: int = 0, exit_key: int = ESC_KEY, advance_key: int | None = None
    ) -> None:
        if max_frames < 0:
            raise ValueError("max_frames must be >= 0")
        if advance_key is None:
            advance_key = (exit_key + 1) % 256
        if advance_key == exit_key:
            raise ValueError("advance_key must differ from exit_key")
        self.max_frames = max_frames
        self.exit_key = exit_key
        self.advance_key = advance_key
        self.seen = 0

    def wait(self) -> int:
        self.seen += 1
        if self.max_frames and self.seen >= self.max_frames:
            return self.exit_key
        return self.advance_key
