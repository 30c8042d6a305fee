"""Frame capture module for LaneScope."""

from lanescope.capture.adapter import PixelSource
from lanescope.capture.frame import Frame, FrameSource, to_bgr8
from lanescope.capture.opencv_capture import CaptureSource
from lanescope.capture.camera import CameraSource
from lanescope.capture.video_file import VideoFileSource
from lanescope.capture.static import StaticFrameSource
from lanescope.capture.synthetic import make_road_image
from lanescope.capture.factory import create_pixel_source

__all__ = [
    "PixelSource",
    "Frame",
    "FrameSource",
    "to_bgr8",
    "CaptureSource",
    "CameraSource",
    "VideoFileSource",
    "StaticFrameSource",
    "make_road_image",
    "create_pixel_source",
]
