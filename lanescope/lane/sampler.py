"""
Pixel sampler.

Copies the current frame into the fixed-format buffer the band search
reads: contiguous BGR uint8, shape (height, width, 3).
"""

from typing import Optional, Tuple
import numpy as np
import cv2

from lanescope.capture.frame import Frame, to_bgr8


class PixelSampler:
    """
    Copies (and optionally rescales) frames into a pipeline-owned buffer.

    Args:
        resolution: Target (width, height), or None to keep the source size
    """

    def __init__(self, resolution: Optional[Tuple[int, int]] = None):
        self._resolution = resolution

    def sample(self, frame: Frame) -> np.ndarray:
        """
        Produce this tick's pixel buffer.

        Args:
            frame: Frame read from the pixel source

        Returns:
            BGR uint8 array owned by the caller
        """
        data = to_bgr8(frame.data)

        if self._resolution is not None:
            target_w, target_h = self._resolution
            if data.shape[1] != target_w or data.shape[0] != target_h:
                return cv2.resize(data, (target_w, target_h), interpolation=cv2.INTER_AREA)

        # to_bgr8 may hand back the frame's own array
        return data.copy()
