"""
Frames handed from pixel sources to the lane pipeline.

The band search reads one pixel layout only: a C-contiguous uint8 array of
shape (height, width, 3) in BGR order. ``to_bgr8`` brings grey, single
channel, BGRA and non-uint8 captures into that layout, and
``Frame.capture`` applies it at the point a source yields a frame.
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import cv2
import numpy as np


class FrameSource(Enum):
    """Where a frame came from."""
    WEBCAM = "webcam"
    VIDEO_FILE = "video"
    STATIC = "static"


def to_bgr8(data: np.ndarray) -> np.ndarray:
    """
    Convert an image to the pipeline pixel layout.

    Values outside [0, 255] are clipped before the cast. Returns ``data``
    itself when it already has the layout, so callers that need to own the
    buffer must copy.
    """
    if data.dtype != np.uint8:
        data = np.clip(data, 0, 255).astype(np.uint8)

    if data.ndim == 2 or data.shape[2] == 1:
        data = cv2.cvtColor(data, cv2.COLOR_GRAY2BGR)
    elif data.shape[2] == 4:
        data = cv2.cvtColor(data, cv2.COLOR_BGRA2BGR)

    return np.ascontiguousarray(data)


@dataclass(frozen=True, eq=False)
class Frame:
    """
    One polled frame.

    Attributes:
        data: Pixel array; BGR uint8 (H, W, 3) when built with ``capture``
        timestamp: Monotonic time the pixels were read, in seconds
        sequence: Per-source read counter, starting at 0
        source: Kind of source that produced the frame
    """
    data: np.ndarray
    timestamp: float
    sequence: int
    source: FrameSource

    @classmethod
    def capture(
        cls,
        data: np.ndarray,
        sequence: int,
        source: FrameSource,
        timestamp: Optional[float] = None,
    ) -> "Frame":
        """Build a frame from raw capture output, normalizing its pixels."""
        if timestamp is None:
            timestamp = time.monotonic()
        return cls(to_bgr8(data), timestamp, sequence, source)

    @property
    def height(self) -> int:
        return self.data.shape[0]

    @property
    def width(self) -> int:
        return self.data.shape[1]

    @property
    def is_bgr8(self) -> bool:
        """True when ``data`` already has the pipeline pixel layout."""
        data = self.data
        return (
            data.dtype == np.uint8
            and data.ndim == 3
            and data.shape[2] == 3
            and data.shape[0] > 0
            and data.shape[1] > 0
            and data.flags.c_contiguous
        )
