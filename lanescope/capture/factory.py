"""
Pixel source factory.

Creates the appropriate pixel source based on configuration.
"""

import logging

from lanescope.config import CaptureConfig
from lanescope.capture.adapter import PixelSource
from lanescope.capture.camera import CameraSource
from lanescope.capture.static import StaticFrameSource
from lanescope.capture.synthetic import make_road_image
from lanescope.capture.video_file import VideoFileSource

logger = logging.getLogger(__name__)

# Frame size of the synthetic source when no resolution is configured
SYNTHETIC_SIZE = (640, 360)


def create_pixel_source(config: CaptureConfig) -> PixelSource:
    """
    Create the pixel source named by the capture configuration.

    Args:
        config: Capture configuration

    Returns:
        Uninitialized PixelSource instance

    Raises:
        ValueError: If configuration is invalid
    """
    source = config.source

    if source == "video":
        if config.video_path is None:
            raise ValueError("video_path required for video source")

        logger.info(f"Creating video file source: {config.video_path}")
        return VideoFileSource(config)

    elif source == "webcam":
        logger.info(f"Creating camera source (index {config.camera_index})")
        return CameraSource(config)

    elif source == "synthetic":
        width, height = config.resolution or SYNTHETIC_SIZE
        logger.info(f"Creating synthetic road source: {width}x{height}")
        return StaticFrameSource(make_road_image(width, height), config=config)

    else:
        raise ValueError(f"Unknown frame source: {source}")
