"""Live webcam source."""

import logging
import platform
from typing import Optional

import cv2
import numpy as np

from lanescope.capture.frame import FrameSource
from lanescope.capture.opencv_capture import CaptureSource

logger = logging.getLogger(__name__)


class CameraSource(CaptureSource):
    """
    Webcam polled once per display frame.

    Ready once the device is open and reports a frame size. A failed grab
    yields no frame for that tick; the engine defers and polls again.
    """

    frame_source = FrameSource.WEBCAM

    @property
    def target(self) -> str:
        return f"camera {self._config.camera_index}"

    def _open(self) -> Optional[cv2.VideoCapture]:
        index = self._config.camera_index
        # DirectShow opens much faster than MSMF on Windows
        if platform.system() == "Windows":
            return cv2.VideoCapture(index, cv2.CAP_DSHOW)
        return cv2.VideoCapture(index)

    def _configure(self, cap: cv2.VideoCapture) -> None:
        if self._config.resolution is not None:
            width, height = self._config.resolution
            cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
            cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
        cap.set(cv2.CAP_PROP_FPS, self._config.target_fps)
        # Only the newest frame matters
        cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)

    def _recover(self) -> Optional[np.ndarray]:
        logger.warning(f"Grab failed on {self.target}")
        return None

    def is_ready(self) -> bool:
        return (
            super().is_ready()
            and self._cap.isOpened()
            and self._width > 0
            and self._height > 0
        )
