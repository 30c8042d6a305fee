"""
Display renderer for visual overlays.

Draws the fitted lane polylines and the feasibility-tinted lane region
onto display surfaces. Rendering is a pure side channel: nothing drawn
here is read back by the lane pipeline.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional, List, Tuple
import numpy as np
import cv2

from lanescope.lane.geometry import LanePolyline, Point
from lanescope.lane.result import FrameMetrics, LaneGeometry
from lanescope.lane.scoring import Feasibility

logger = logging.getLogger(__name__)


# Colors (BGR)
LANE_COLOR = (246, 130, 59)            # blue
FILL_CONFIDENT_COLOR = (246, 130, 59)  # blue
FILL_WARNING_COLOR = (68, 68, 239)     # red

FEASIBILITY_COLORS = {
    Feasibility.CRITICAL: (68, 68, 239),   # Red
    Feasibility.CAUTION: (11, 158, 245),   # Amber
    Feasibility.CLEAR: (129, 185, 16),     # Green
}

# Confidence above which the lane region is drawn in the "confident" color
FILL_CONFIDENCE_THRESHOLD = 60.0


@dataclass
class OverlayConfig:
    """Configuration for overlay rendering."""
    fill_confident_alpha: float = 0.25
    fill_warning_alpha: float = 0.15
    lane_thickness: int = 6
    dash_length: int = 20
    gap_length: int = 10
    font_scale: float = 0.6
    show_hud: bool = True


class Surface:
    """
    A registered drawing target.

    Holds the most recent image drawn into it. When ``size`` is None the
    surface follows the source frame size.

    Args:
        name: Surface name (used as window title suffix)
        size: Fixed (width, height), or None
    """

    def __init__(self, name: str, size: Optional[Tuple[int, int]] = None):
        self.name = name
        self.size = size
        self.image: Optional[np.ndarray] = None

    def resolve_size(self, frame_width: int, frame_height: int) -> Tuple[int, int]:
        """Get the (width, height) to draw at for a given frame size."""
        if self.size is None:
            return (frame_width, frame_height)
        return self.size

    def __repr__(self) -> str:
        shape = None if self.image is None else self.image.shape
        return f"Surface(name={self.name!r}, size={self.size}, image={shape})"


@dataclass
class SurfaceSet:
    """Optional surfaces the engine draws into after each frame."""
    overlay: Optional[Surface] = None
    grayscale: Optional[Surface] = None
    binary: Optional[Surface] = None
    edges: Optional[Surface] = None
    roi: Optional[Surface] = None

    @property
    def has_diagnostics(self) -> bool:
        return any(s is not None for s in (self.grayscale, self.binary, self.edges, self.roi))

    def active(self) -> List[Surface]:
        """Get all registered surfaces."""
        return [
            s for s in (self.overlay, self.grayscale, self.binary, self.edges, self.roi)
            if s is not None
        ]


class OverlayRenderer:
    """
    Renders lane overlays on video frames.

    Features:
    - Semi-transparent region between both polylines (blue when
      confidence > 60, red-tinted warning otherwise)
    - Dashed polyline per detected side
    - HUD with confidence and per-side feasibility

    Usage:
        renderer = OverlayRenderer()
        surface = Surface("overlay")

        # After each processed frame:
        renderer.render(surface, frame, metrics, geometry)
    """

    def __init__(self, config: Optional[OverlayConfig] = None):
        """
        Initialize overlay renderer.

        Args:
            config: Overlay configuration (uses defaults if None)
        """
        self._config = config or OverlayConfig()

    def render(
        self,
        surface: Surface,
        frame: np.ndarray,
        metrics: FrameMetrics,
        geometry: LaneGeometry,
    ) -> np.ndarray:
        """
        Render the overlay for one frame into a surface.

        Args:
            surface: Target surface
            frame: Source BGR frame (not modified)
            metrics: Metrics of the frame
            geometry: Fitted lane geometry of the frame

        Returns:
            The rendered image (also stored on the surface)
        """
        width, height = surface.resolve_size(geometry.frame_width, geometry.frame_height)
        sx = width / geometry.frame_width
        sy = height / geometry.frame_height

        if frame.shape[1] != width or frame.shape[0] != height:
            output = cv2.resize(frame, (width, height))
        else:
            output = frame.copy()

        left = _scale_polyline(geometry.left, sx, sy)
        right = _scale_polyline(geometry.right, sx, sy)

        # Layer 1: lane region
        if left.detected and right.detected:
            output = self._draw_lane_fill(output, left, right, metrics.confidence)

        # Layer 2: lane lines
        for line in (left, right):
            if line.detected:
                self._draw_dashed_polyline(output, line.points, LANE_COLOR)

        # Layer 3: HUD
        if self._config.show_hud:
            output = self._draw_hud(output, metrics)

        surface.image = output
        return output

    def _draw_lane_fill(
        self,
        frame: np.ndarray,
        left: LanePolyline,
        right: LanePolyline,
        confidence: float,
    ) -> np.ndarray:
        """Fill the trapezoid between the near and far points of both sides."""
        if confidence > FILL_CONFIDENCE_THRESHOLD:
            color, alpha = FILL_CONFIDENT_COLOR, self._config.fill_confident_alpha
        else:
            color, alpha = FILL_WARNING_COLOR, self._config.fill_warning_alpha

        polygon = [left.near.as_int(), left.far.as_int(), right.far.as_int(), right.near.as_int()]
        pts = np.array(polygon, np.int32).reshape((-1, 1, 2))

        overlay = frame.copy()
        cv2.fillPoly(overlay, [pts], color)
        return cv2.addWeighted(overlay, alpha, frame, 1 - alpha, 0)

    def _draw_dashed_polyline(
        self,
        frame: np.ndarray,
        points: Tuple[Point, ...],
        color: Tuple[int, int, int],
    ) -> None:
        """
        Draw a dashed polyline in place.

        The dash pattern continues across segment joints.
        """
        dash = self._config.dash_length
        gap = self._config.gap_length
        period = dash + gap
        offset = 0.0

        for start, end in zip(points, points[1:]):
            length = math.hypot(end.x - start.x, end.y - start.y)
            if length == 0:
                continue
            ux = (end.x - start.x) / length
            uy = (end.y - start.y) / length

            pos = 0.0
            while pos < length:
                phase = (offset + pos) % period
                if phase < dash:
                    seg_end = min(length, pos + dash - phase)
                    p0 = (int(round(start.x + ux * pos)), int(round(start.y + uy * pos)))
                    p1 = (int(round(start.x + ux * seg_end)), int(round(start.y + uy * seg_end)))
                    cv2.line(frame, p0, p1, color, self._config.lane_thickness, cv2.LINE_AA)
                    pos = seg_end
                else:
                    pos += period - phase
            offset += length

    def _draw_hud(self, frame: np.ndarray, metrics: FrameMetrics) -> np.ndarray:
        """Draw info panel in top-left corner."""
        lines = [
            (f"Confidence: {metrics.confidence:.0f}%", (255, 255, 255)),
            (f"Edge clarity: {metrics.edge_clarity:.0f}%", (255, 255, 255)),
            (
                f"Left: {metrics.left_shift_feasibility.value}",
                FEASIBILITY_COLORS[metrics.left_shift_feasibility],
            ),
            (
                f"Right: {metrics.right_shift_feasibility.value}",
                FEASIBILITY_COLORS[metrics.right_shift_feasibility],
            ),
        ]

        padding = 10
        line_height = 20
        panel_width = 190
        panel_height = len(lines) * line_height + padding * 2

        overlay = frame.copy()
        cv2.rectangle(overlay, (5, 5), (5 + panel_width, 5 + panel_height), (0, 0, 0), -1)
        output = cv2.addWeighted(overlay, 0.5, frame, 0.5, 0)

        y = 5 + padding + 12
        for text, color in lines:
            cv2.putText(
                output,
                text,
                (10, y),
                cv2.FONT_HERSHEY_SIMPLEX,
                self._config.font_scale * 0.85,
                color,
                1,
            )
            y += line_height

        return output


def _scale_polyline(line: LanePolyline, sx: float, sy: float) -> LanePolyline:
    if not line.detected:
        return line
    return LanePolyline(tuple(p.scaled(sx, sy) for p in line.points))


class DisplayWindow:
    """
    OpenCV window showing the registered surfaces.

    Usage:
        window = DisplayWindow("LaneScope")
        window.initialize()
        window.show(surfaces)
        if window.should_quit():
            ...
        window.cleanup()
    """

    def __init__(self, window_name: str = "LaneScope"):
        self._window_name = window_name
        self._window_created = False
        self._last_key = -1
        self._open_windows: List[str] = []

    def initialize(self) -> bool:
        """
        Initialize the display window.

        Returns:
            True if initialization successful
        """
        try:
            cv2.namedWindow(self._window_name, cv2.WINDOW_NORMAL)
        except cv2.error as e:
            logger.error(f"Display initialization failed: {e}")
            return False

        self._window_created = True
        self._open_windows = [self._window_name]
        logger.info(f"Display window created: {self._window_name}")
        return True

    def show(self, surfaces: SurfaceSet) -> None:
        """
        Show every surface that holds an image.

        The overlay goes to the main window; diagnostic surfaces get their
        own windows named after the surface.

        Args:
            surfaces: Surfaces to show
        """
        if not self._window_created:
            return

        for surface in surfaces.active():
            if surface.image is None:
                continue
            if surface is surfaces.overlay:
                name = self._window_name
            else:
                name = f"{self._window_name} - {surface.name}"
            if name not in self._open_windows:
                cv2.namedWindow(name, cv2.WINDOW_NORMAL)
                self._open_windows.append(name)
            cv2.imshow(name, surface.image)

        self._last_key = cv2.waitKey(1) & 0xFF

    def should_quit(self) -> bool:
        """
        Check if quit key was pressed.

        Returns:
            True if 'q' or ESC was pressed
        """
        return self._last_key in (ord('q'), ord('Q'), 27)  # q, Q, or ESC

    def cleanup(self) -> None:
        """Clean up display resources."""
        if self._window_created:
            for name in self._open_windows:
                try:
                    cv2.destroyWindow(name)
                except cv2.error:
                    logger.debug(f"Window already closed: {name}")
            self._open_windows = []
            self._window_created = False

        logger.info("Display window cleaned up")

    @property
    def is_active(self) -> bool:
        """Check if display is active."""
        return self._window_created
