"""Recorded drive playback."""

import logging
from pathlib import Path
from typing import Optional

import cv2
import numpy as np

from lanescope.config import CaptureConfig
from lanescope.capture.frame import FrameSource
from lanescope.capture.opencv_capture import CaptureSource

logger = logging.getLogger(__name__)


class VideoFileSource(CaptureSource):
    """
    Video file decoded one frame per display frame.

    Playback speed follows the frame loop, not the file's native rate. At
    end of file the source either rewinds (``loop_video``) or becomes
    exhausted, which ends the run.
    """

    frame_source = FrameSource.VIDEO_FILE

    def __init__(self, config: CaptureConfig):
        super().__init__(config)
        self._total_frames = 0
        self._exhausted = False

    @property
    def target(self) -> str:
        return f"video {self._config.video_path}"

    def _open(self) -> Optional[cv2.VideoCapture]:
        if self._config.video_path is None:
            logger.error("No video path configured")
            return None

        path = Path(self._config.video_path)
        if not path.exists():
            logger.error(f"Video file not found: {path}")
            return None

        self._exhausted = False
        return cv2.VideoCapture(str(path))

    def _configure(self, cap: cv2.VideoCapture) -> None:
        self._total_frames = int(cap.get(cv2.CAP_PROP_FRAME_COUNT))
        logger.debug(f"{self.target} has {self._total_frames} frames")

    def _recover(self) -> Optional[np.ndarray]:
        if not self._config.loop_video:
            logger.info(f"End of {self.target}")
            self._exhausted = True
            return None

        self._cap.set(cv2.CAP_PROP_POS_FRAMES, 0)
        ok, pixels = self._cap.read()
        if not ok or pixels is None:
            logger.error(f"Rewind failed on {self.target}")
            self._exhausted = True
            return None

        logger.debug(f"Rewound {self.target}")
        return pixels

    @property
    def exhausted(self) -> bool:
        return self._exhausted

    @property
    def total_frames(self) -> int:
        """Frame count reported by the container (0 if unknown)."""
        return self._total_frames
