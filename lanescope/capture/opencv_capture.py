"""
Pixel sources backed by ``cv2.VideoCapture``.

Cameras and recorded drives are polled the same way, one decoded frame per
display frame. They differ in how the capture is opened and in what a
failed read means: a camera may recover on the next poll, a file is
finished unless it loops.
"""

import logging
from abc import abstractmethod
from typing import Optional

import cv2
import numpy as np

from lanescope.config import CaptureConfig
from lanescope.capture.adapter import PixelSource
from lanescope.capture.frame import Frame, FrameSource

logger = logging.getLogger(__name__)


class CaptureSource(PixelSource):
    """Common open/poll/release cycle around one ``cv2.VideoCapture``."""

    frame_source: FrameSource

    def __init__(self, config: CaptureConfig):
        super().__init__(config)
        self._cap: Optional[cv2.VideoCapture] = None

    @property
    @abstractmethod
    def target(self) -> str:
        """Human readable name of the device or file, for logs."""

    @abstractmethod
    def _open(self) -> Optional[cv2.VideoCapture]:
        """Create the capture, or return None when it cannot be attempted."""

    def _configure(self, cap: cv2.VideoCapture) -> None:
        """Apply capture properties after opening."""

    def _recover(self) -> Optional[np.ndarray]:
        """Handle a failed read; may return replacement pixels."""
        return None

    def initialize(self) -> bool:
        cap = self._open()
        if cap is None:
            return False
        if not cap.isOpened():
            logger.error(f"Failed to open {self.target}")
            cap.release()
            return False

        self._configure(cap)
        self._cap = cap
        self._width = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        self._height = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        logger.info(
            f"Opened {self.target}: {self._width}x{self._height} "
            f"@ {cap.get(cv2.CAP_PROP_FPS):.1f} FPS"
        )

        self._is_initialized = True
        self.reset_frame_count()
        return True

    def is_ready(self) -> bool:
        return self._is_initialized and self._cap is not None and not self.exhausted

    def read_frame(self) -> Optional[Frame]:
        if not self.is_ready():
            return None

        ok, pixels = self._cap.read()
        if not ok or pixels is None:
            pixels = self._recover()
            if pixels is None:
                return None

        frame = Frame.capture(pixels, self._increment_frame_count(), self.frame_source)
        # Decoders may change size mid-stream
        self._height, self._width = frame.height, frame.width
        return frame

    def release(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None
            logger.info(f"Released {self.target}")
        self._is_initialized = False
