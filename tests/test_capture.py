#!/usr/bin/env python3
"""
Pixel source tests.

OpenCV capture devices are mocked; no camera or video file is needed.

Run:
    pytest tests/test_capture.py -v
"""

from dataclasses import FrozenInstanceError
from unittest.mock import MagicMock, patch

import cv2
import numpy as np
import pytest

from lanescope.capture import (
    CameraSource,
    Frame,
    FrameSource,
    StaticFrameSource,
    VideoFileSource,
    create_pixel_source,
    make_road_image,
    to_bgr8,
)
from lanescope.config import CaptureConfig


def mock_capture(frames, width=640, height=480, fps=30.0):
    """Build a VideoCapture mock that yields the given frames, then EOF."""
    cap = MagicMock()
    cap.isOpened.return_value = True
    cap.read.side_effect = [(True, f) for f in frames] + [(False, None)] * 5
    cap.get.side_effect = lambda prop: {
        cv2.CAP_PROP_FRAME_WIDTH: width,
        cv2.CAP_PROP_FRAME_HEIGHT: height,
        cv2.CAP_PROP_FPS: fps,
        cv2.CAP_PROP_FRAME_COUNT: len(frames),
    }.get(prop, 0)
    return cap


@pytest.fixture
def video_path(tmp_path):
    path = tmp_path / "drive.mp4"
    path.write_bytes(b"")
    return str(path)


# ==============================================================================
# Frame
# ==============================================================================

class TestFrame:
    """Test Frame and the pipeline pixel layout."""

    def test_properties(self, road_image):
        frame = Frame(data=road_image, timestamp=1.0, sequence=3, source=FrameSource.STATIC)

        assert frame.width == 640
        assert frame.height == 360
        assert frame.is_bgr8

    def test_raw_frames_not_bgr8(self):
        gray = Frame(np.zeros((10, 10), np.uint8), 0.0, 0, FrameSource.STATIC)
        floats = Frame(np.zeros((10, 10, 3), np.float32), 0.0, 0, FrameSource.STATIC)
        strided = Frame(np.zeros((10, 20, 3), np.uint8)[:, ::2], 0.0, 0, FrameSource.STATIC)
        assert not gray.is_bgr8
        assert not floats.is_bgr8
        assert not strided.is_bgr8

    @pytest.mark.parametrize("raw", [
        np.full((10, 12), 200, np.uint8),
        np.full((10, 12, 1), 200, np.uint8),
        np.full((10, 12, 4), 200, np.uint8),
        np.full((10, 12, 3), 200.0, np.float64),
    ])
    def test_capture_normalizes(self, raw):
        frame = Frame.capture(raw, sequence=7, source=FrameSource.WEBCAM, timestamp=2.5)

        assert frame.is_bgr8
        assert frame.data.shape == (10, 12, 3)
        assert (frame.data == 200).all()
        assert (frame.sequence, frame.timestamp) == (7, 2.5)

    def test_capture_clips_out_of_range(self):
        raw = np.array([[[-5.0, 128.0, 300.0]]])
        assert to_bgr8(raw).tolist() == [[[0, 128, 255]]]

    def test_bgr8_passes_through(self, road_image):
        assert to_bgr8(road_image) is road_image

    def test_frame_is_frozen(self, road_image):
        frame = Frame.capture(road_image, 0, FrameSource.STATIC)
        with pytest.raises(FrozenInstanceError):
            frame.sequence = 1


# ==============================================================================
# Static and synthetic sources
# ==============================================================================

class TestStaticFrameSource:
    """Test the in-memory source."""

    def test_serves_copies(self, road_image):
        source = StaticFrameSource(road_image)
        frame = source.read_frame()

        assert source.is_ready()
        assert frame.sequence == 0
        assert source.read_frame().sequence == 1
        frame.data[:] = 0
        assert road_image.any()

    def test_warmup_polls(self, road_image):
        source = StaticFrameSource(road_image, warmup_polls=2)
        assert [source.is_ready() for _ in range(3)] == [False, False, True]

    def test_release(self, road_image):
        source = StaticFrameSource(road_image)
        source.release()
        assert not source.is_ready()
        assert source.read_frame() is None

    def test_set_image(self, road_image, black_image):
        source = StaticFrameSource(road_image)
        source.set_image(black_image[:100, :200])
        assert (source.width, source.height) == (200, 100)
        assert not source.read_frame().data.any()


class TestSyntheticRoad:
    """Test the synthetic road generator."""

    def test_lines_reach_horizon(self):
        image = make_road_image(640, 360, roi_height=45)

        assert image.shape == (360, 640, 3)
        assert image[359].max() == 255
        assert image[198].max() == 255
        assert image[197].max() < 255

    def test_line_width(self):
        image = make_road_image(640, 360, half_width=5)
        bright = np.flatnonzero(image[300, :320, 0] == 255)
        assert len(bright) == 11


# ==============================================================================
# Video file and camera sources
# ==============================================================================

class TestVideoFileSource:
    """Test video playback with a mocked VideoCapture."""

    def test_missing_file(self, tmp_path):
        source = VideoFileSource(CaptureConfig(video_path=str(tmp_path / "nope.mp4")))
        assert source.initialize() is False

    @patch("lanescope.capture.video_file.cv2.VideoCapture")
    def test_playback_until_exhausted(self, mock_capture_class, video_path):
        frames = [np.zeros((480, 640, 3), np.uint8) for _ in range(2)]
        mock_capture_class.return_value = mock_capture(frames)
        source = VideoFileSource(CaptureConfig(video_path=video_path))

        assert source.initialize()
        assert source.total_frames == 2
        assert source.read_frame().source == FrameSource.VIDEO_FILE
        assert source.read_frame().sequence == 1
        assert source.read_frame() is None
        assert source.exhausted
        assert not source.is_ready()

    @patch("lanescope.capture.video_file.cv2.VideoCapture")
    def test_loop_video(self, mock_capture_class, video_path):
        cap = MagicMock()
        cap.isOpened.return_value = True
        frame = np.zeros((480, 640, 3), np.uint8)
        cap.read.side_effect = [(True, frame), (False, None), (True, frame)]
        cap.get.return_value = 1
        mock_capture_class.return_value = cap

        source = VideoFileSource(CaptureConfig(video_path=video_path, loop_video=True))
        source.initialize()
        source.read_frame()

        assert source.read_frame() is not None
        assert not source.exhausted
        cap.set.assert_called_with(cv2.CAP_PROP_POS_FRAMES, 0)

    @patch("lanescope.capture.video_file.cv2.VideoCapture")
    def test_open_failure(self, mock_capture_class, video_path):
        mock_capture_class.return_value.isOpened.return_value = False
        source = VideoFileSource(CaptureConfig(video_path=video_path))
        assert source.initialize() is False
        assert not source.is_ready()


class TestCameraSource:
    """Test webcam capture with a mocked VideoCapture."""

    @patch("lanescope.capture.camera.cv2.VideoCapture")
    def test_capture(self, mock_capture_class):
        mock_capture_class.return_value = mock_capture([np.zeros((480, 640, 3), np.uint8)])
        source = CameraSource(CaptureConfig(source="webcam"))

        assert source.initialize()
        assert source.is_ready()
        frame = source.read_frame()
        assert frame.source == FrameSource.WEBCAM
        assert (frame.width, frame.height) == (640, 480)

    @patch("lanescope.capture.camera.cv2.VideoCapture")
    def test_failed_read_returns_none(self, mock_capture_class):
        mock_capture_class.return_value = mock_capture([])
        source = CameraSource(CaptureConfig(source="webcam"))
        source.initialize()

        assert source.read_frame() is None
        assert not source.exhausted


class TestFactory:
    """Test create_pixel_source."""

    def test_video(self, video_path):
        assert isinstance(create_pixel_source(CaptureConfig(video_path=video_path)), VideoFileSource)

    def test_video_requires_path(self):
        with pytest.raises(ValueError):
            create_pixel_source(CaptureConfig(source="video"))

    def test_webcam(self):
        assert isinstance(create_pixel_source(CaptureConfig(source="webcam")), CameraSource)

    def test_synthetic(self):
        source = create_pixel_source(CaptureConfig(source="synthetic", resolution=(320, 180)))
        assert isinstance(source, StaticFrameSource)
        assert source.read_frame().data.shape == (180, 320, 3)

    def test_unknown(self):
        with pytest.raises(ValueError):
            create_pixel_source(CaptureConfig(source="lidar"))
