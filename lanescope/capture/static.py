"""
In-memory pixel source.

Serves the same image on every read. Used for synthetic runs and tests.
"""

from typing import Optional

import numpy as np

from lanescope.config import CaptureConfig
from lanescope.capture.adapter import PixelSource
from lanescope.capture.frame import Frame, FrameSource


class StaticFrameSource(PixelSource):
    """
    Pixel source backed by a fixed numpy image.

    Args:
        image: BGR uint8 image served on every read
        warmup_polls: Number of ``is_ready()`` polls that report "not ready"
            before the source starts yielding frames
    """

    def __init__(
        self,
        image: np.ndarray,
        warmup_polls: int = 0,
        config: Optional[CaptureConfig] = None,
    ):
        super().__init__(config or CaptureConfig(source="static"))
        self._image = image
        self._warmup_polls = warmup_polls
        self._height, self._width = image.shape[:2]
        self._is_initialized = True

    def initialize(self) -> bool:
        self._is_initialized = True
        return True

    def is_ready(self) -> bool:
        if self._warmup_polls > 0:
            self._warmup_polls -= 1
            return False
        return self._is_initialized

    def read_frame(self) -> Optional[Frame]:
        if not self._is_initialized:
            return None
        return Frame.capture(self._image.copy(), self._increment_frame_count(), FrameSource.STATIC)

    def set_image(self, image: np.ndarray) -> None:
        """Replace the served image."""
        self._image = image
        self._height, self._width = image.shape[:2]

    def release(self) -> None:
        self._is_initialized = False
