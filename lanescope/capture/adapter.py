"""
Abstract pixel source interface.

Defines the contract every frame provider must implement so the lane
engine can poll it once per display frame.
"""

from abc import ABC, abstractmethod
from typing import Optional

from lanescope.config import CaptureConfig
from lanescope.capture.frame import Frame


class PixelSource(ABC):
    """
    Abstract base class for live pixel sources.

    The engine only relies on ``width``, ``height``, ``is_ready()`` and
    ``read_frame()``. Acquisition details (devices, files, permissions)
    stay inside the concrete adapters.
    """

    def __init__(self, config: CaptureConfig):
        """
        Initialize the pixel source.

        Args:
            config: Capture configuration
        """
        self._config = config
        self._frame_count = 0
        self._is_initialized = False
        self._width = 0
        self._height = 0

    @property
    def config(self) -> CaptureConfig:
        """Get the capture configuration."""
        return self._config

    @property
    def frame_count(self) -> int:
        """Get the number of frames read."""
        return self._frame_count

    @property
    def is_initialized(self) -> bool:
        """Check if the source is initialized."""
        return self._is_initialized

    @property
    def width(self) -> int:
        """Current frame width in pixels (0 until known)."""
        return self._width

    @property
    def height(self) -> int:
        """Current frame height in pixels (0 until known)."""
        return self._height

    @property
    def exhausted(self) -> bool:
        """True once a finite source has no more frames to yield."""
        return False

    @abstractmethod
    def initialize(self) -> bool:
        """
        Open the underlying device or file.

        Returns:
            True if initialization successful, False otherwise
        """
        pass

    @abstractmethod
    def is_ready(self) -> bool:
        """
        Check whether the source can yield pixel data right now.

        Returns:
            True if ``read_frame()`` is expected to succeed
        """
        pass

    @abstractmethod
    def read_frame(self) -> Optional[Frame]:
        """
        Copy the current frame out of the source.

        Returns:
            Frame object if successful, None if no pixel data was available
        """
        pass

    @abstractmethod
    def release(self) -> None:
        """Release source resources."""
        pass

    def _increment_frame_count(self) -> int:
        """Increment and return the frame count."""
        count = self._frame_count
        self._frame_count += 1
        return count

    def reset_frame_count(self) -> None:
        """Reset the frame counter to zero."""
        self._frame_count = 0
