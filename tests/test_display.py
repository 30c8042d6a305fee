#!/usr/bin/env python3
"""
Overlay renderer, display window and diagnostic view tests.

Run:
    pytest tests/test_display.py -v
"""

from unittest.mock import patch

import numpy as np
import pytest

from lanescope.config import PipelineSettings
from lanescope.display.renderer import (
    FILL_CONFIDENT_COLOR,
    DisplayWindow,
    OverlayConfig,
    OverlayRenderer,
    Surface,
    SurfaceSet,
)
from lanescope.lane.geometry import EMPTY_POLYLINE, build_polyline
from lanescope.lane.result import FrameMetrics, LaneGeometry
from lanescope.lane.scoring import Feasibility
from lanescope.lane.visualize import (
    ROI_SHADE_COLOR,
    binary_view,
    build_diagnostics,
    grayscale_view,
    roi_view,
)


def make_metrics(confidence: float = 80.0, both: bool = True) -> FrameMetrics:
    feasibility = Feasibility.CLEAR if both else Feasibility.CRITICAL
    return FrameMetrics(
        timestamp=0.0,
        frame_seq=0,
        confidence=confidence,
        left_lane_detected=both,
        right_lane_detected=both,
        edge_clarity=confidence,
        continuity_score=95 if both else 20,
        lighting_score=92.0,
        left_curvature=5000.0,
        right_curvature=5000.0,
        left_shift_feasibility=feasibility,
        right_shift_feasibility=feasibility,
    )


def make_geometry(detected: bool = True) -> LaneGeometry:
    if detected:
        left = build_polyline(150.0, 250, 360, 198)
        right = build_polyline(490.0, 400, 360, 198)
    else:
        left = right = EMPTY_POLYLINE
    return LaneGeometry(left=left, right=right, horizon_y=198, frame_width=640, frame_height=360)


# ==============================================================================
# Overlay renderer
# ==============================================================================

class TestOverlayRenderer:
    """Test overlay drawing."""

    def test_fill_between_lanes(self, black_image):
        renderer = OverlayRenderer(OverlayConfig(show_hud=False))
        surface = Surface("overlay")

        image = renderer.render(surface, black_image, make_metrics(80.0), make_geometry())

        assert surface.image is image
        # Centre of the lane region is tinted with the confident color
        pixel = image[300, 320].astype(int)
        assert pixel[0] > pixel[2]
        assert pixel.tolist() == pytest.approx(
            [c * 0.25 for c in FILL_CONFIDENT_COLOR], abs=1
        )

    def test_low_confidence_fill_is_red(self, black_image):
        renderer = OverlayRenderer(OverlayConfig(show_hud=False))
        image = renderer.render(Surface("overlay"), black_image, make_metrics(40.0), make_geometry())

        pixel = image[300, 320].astype(int)
        assert pixel[2] > pixel[0]

    def test_nothing_drawn_without_detection(self, black_image):
        renderer = OverlayRenderer(OverlayConfig(show_hud=False))
        image = renderer.render(
            Surface("overlay"), black_image, make_metrics(0.0, both=False), make_geometry(False)
        )
        assert not image.any()

    def test_source_frame_untouched(self, road_image):
        original = road_image.copy()
        OverlayRenderer().render(Surface("overlay"), road_image, make_metrics(), make_geometry())
        assert np.array_equal(road_image, original)

    def test_scaled_surface(self, black_image):
        surface = Surface("overlay", (320, 180))
        image = OverlayRenderer().render(surface, black_image, make_metrics(), make_geometry())
        assert image.shape == (180, 320, 3)

    def test_hud_drawn(self, black_image):
        image = OverlayRenderer().render(
            Surface("overlay"), black_image, make_metrics(0.0, both=False), make_geometry(False)
        )
        assert image[10:90, 5:200].any()


class TestSurfaceSet:
    def test_active_and_diagnostics(self):
        surfaces = SurfaceSet(overlay=Surface("overlay"))
        assert not surfaces.has_diagnostics
        assert [s.name for s in surfaces.active()] == ["overlay"]

        surfaces.roi = Surface("roi")
        assert surfaces.has_diagnostics
        assert len(surfaces.active()) == 2


# ==============================================================================
# Display window
# ==============================================================================

class TestDisplayWindow:
    """Test the OpenCV window wrapper with cv2 GUI calls mocked."""

    @patch("lanescope.display.renderer.cv2.namedWindow")
    def test_initialize(self, mock_named):
        window = DisplayWindow("Test")
        assert window.initialize() is True
        assert window.is_active
        mock_named.assert_called_once()

    @patch("lanescope.display.renderer.cv2.waitKey", return_value=ord("q"))
    @patch("lanescope.display.renderer.cv2.imshow")
    @patch("lanescope.display.renderer.cv2.namedWindow")
    def test_show_and_quit(self, mock_named, mock_imshow, mock_wait, black_image):
        window = DisplayWindow("Test")
        window.initialize()

        overlay = Surface("overlay")
        overlay.image = black_image
        roi = Surface("roi")
        roi.image = black_image
        window.show(SurfaceSet(overlay=overlay, roi=roi, binary=Surface("binary")))

        shown = [call.args[0] for call in mock_imshow.call_args_list]
        assert shown == ["Test", "Test - roi"]
        assert window.should_quit()

    @patch("lanescope.display.renderer.cv2.waitKey", return_value=255)
    @patch("lanescope.display.renderer.cv2.imshow")
    @patch("lanescope.display.renderer.cv2.namedWindow")
    def test_no_quit_without_key(self, mock_named, mock_imshow, mock_wait):
        window = DisplayWindow("Test")
        window.initialize()
        window.show(SurfaceSet())
        assert not window.should_quit()

    def test_show_before_initialize_is_noop(self):
        with patch("lanescope.display.renderer.cv2.imshow") as mock_imshow:
            DisplayWindow("Test").show(SurfaceSet(overlay=Surface("overlay")))
            mock_imshow.assert_not_called()

    @patch("lanescope.display.renderer.cv2.destroyWindow")
    @patch("lanescope.display.renderer.cv2.namedWindow")
    def test_cleanup(self, mock_named, mock_destroy):
        window = DisplayWindow("Test")
        window.initialize()
        window.cleanup()

        mock_destroy.assert_called_once_with("Test")
        assert not window.is_active


# ==============================================================================
# Diagnostic views
# ==============================================================================

class TestDiagnosticViews:
    """Test display-only visualization stages."""

    def test_grayscale_view(self, road_image):
        gray = grayscale_view(road_image, 5)
        assert gray.shape == (360, 640)
        assert gray.dtype == np.uint8

    def test_even_blur_radius_is_made_odd(self, road_image):
        assert grayscale_view(road_image, 4).shape == (360, 640)

    def test_binary_view_is_two_level(self, road_image):
        binary = binary_view(road_image, 150)
        assert set(np.unique(binary).tolist()) == {0, 255}

    def test_roi_view_shades_above_horizon(self, road_image):
        roi = roi_view(road_image, 198)

        assert np.array_equal(roi[198:], road_image[198:])
        top = roi[0, 0].astype(float)
        expected = road_image[0, 0] * 0.15 + np.array(ROI_SHADE_COLOR) * 0.85
        assert top.tolist() == pytest.approx(expected.tolist(), abs=1)

    def test_build_diagnostics_defaults_horizon(self, road_image):
        views = build_diagnostics(road_image, PipelineSettings(roi_height=45))

        assert np.array_equal(views.roi[198:], road_image[198:])
        assert not np.array_equal(views.roi[:198], road_image[:198])
        assert views.edges.shape == (360, 640)
