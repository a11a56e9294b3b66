"""Video source abstractions.

The playback controller consumes frames through a small interface
(`VideoSource`) so the capture implementation can be swapped without affecting
the motion pipeline.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

import cv2

from framediff.core.types import Frame

logger = logging.getLogger(__name__)


class SourceUnavailableError(RuntimeError):
    """The video source could not be opened or produced no frames."""


class VideoSource(ABC):
    """Base interface for anything that can produce video frames."""

    @abstractmethod
    def read(self) -> Frame | None:
        """Return the next frame, or `None` at end of stream."""

        raise NotImplementedError

    @abstractmethod
    def rewind(self) -> None:
        """Move the stream position back to its first frame."""

        raise NotImplementedError

    @abstractmethod
    def close(self) -> None:
        """Release any underlying resources."""

        raise NotImplementedError


class OpenCVSource(VideoSource):
    """A `VideoSource` backed by `cv2.VideoCapture`."""

    def __init__(self, source: str | int) -> None:
        self._source = source
        self.cap = cv2.VideoCapture(source)
        if not self.cap.isOpened():
            raise SourceUnavailableError(f"Unable to open {source}")
        logger.info("Opened video source %s", source)

    def read(self) -> Frame | None:
        """Read the next frame from the underlying OpenCV capture."""

        ok, frame = self.cap.read()
        if not ok:
            return None
        return frame

    def rewind(self) -> None:
        self.cap.set(cv2.CAP_PROP_POS_FRAMES, 0)

    def close(self) -> None:
        """Release the underlying OpenCV capture."""

        self.cap.release()


class FileSource(OpenCVSource):
    """Video file source (path to a container/codec supported by OpenCV)."""

    def __init__(self, path: str) -> None:
        self._path = path
        super().__init__(path)

    def rewind(self) -> None:
        """Seek back to frame 0; reopen the file if the backend ignores the seek."""

        rewound = False
        try:
            rewound = bool(self.cap.set(cv2.CAP_PROP_POS_FRAMES, 0))
        except cv2.error:
            rewound = False
        if rewound:
            logger.debug("Rewound %s to the first frame", self._path)
            return

        # Some backends ignore CAP_PROP_POS_FRAMES; fall back to reopen.
        logger.debug("Seek ignored by backend, reopening %s", self._path)
        self.cap.release()
        self.cap = cv2.VideoCapture(self._path)
        if not self.cap.isOpened():
            raise SourceUnavailableError(f"Unable to reopen {self._path}")
