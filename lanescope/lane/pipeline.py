"""
Complete per-frame lane pipeline.

Combines the histogram search, temporal tracking, geometry and scoring
stages into a single processing pass.
"""

import logging
import random
from dataclasses import dataclass, field
from typing import Optional, Tuple
import numpy as np

from lanescope.config import PipelineSettings
from lanescope.capture.frame import Frame
from lanescope.lane.histogram import BandLayout, BandScan, search_bands
from lanescope.lane.temporal import LaneTracker, is_side_detected
from lanescope.lane.geometry import (
    EMPTY_POLYLINE,
    LanePolyline,
    build_polyline,
    curvature_radius,
)
from lanescope.lane.scoring import (
    ConfidenceSmoother,
    classify_feasibility,
    continuity_score,
    edge_clarity,
    lighting_score,
    raw_confidence,
    strength_score,
)
from lanescope.lane.result import FrameMetrics, LaneGeometry
from lanescope.lane.sampler import PixelSampler
from lanescope.utils.timing import measure_time

logger = logging.getLogger(__name__)


@dataclass
class EngineState:
    """
    Mutable state carried between frames of one run.

    Owned by a single pipeline and never shared across runs.
    """
    tracker: LaneTracker = field(default_factory=LaneTracker)
    confidence: ConfidenceSmoother = field(default_factory=ConfidenceSmoother)

    @property
    def last_left_x(self) -> Optional[float]:
        return self.tracker.left_x

    @property
    def last_right_x(self) -> Optional[float]:
        return self.tracker.right_x

    @property
    def last_confidence(self) -> float:
        return self.confidence.value

    def reset(self) -> None:
        """Return to the initial state of a run."""
        self.tracker.reset()
        self.confidence.reset()


@dataclass(frozen=True)
class PipelineOutput:
    """Everything one pipeline pass produces."""
    metrics: FrameMetrics
    geometry: LaneGeometry
    scan: BandScan
    buffer: np.ndarray


class LanePipeline:
    """
    Deterministic histogram-based lane pipeline.

    Processing stages:
    1. Pixel sampling (fixed-format buffer copy)
    2. Band histogram search (near/far, left/right)
    3. Temporal tracking of near-band positions
    4. Three-point geometry and curvature radius
    5. Confidence, quality and feasibility scoring

    Anomalies (no peak, degenerate geometry, blank frames) never raise;
    they surface as "not detected" and low confidence.
    """

    def __init__(
        self,
        settings: PipelineSettings,
        sampler: Optional[PixelSampler] = None,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize lane pipeline.

        Args:
            settings: Pipeline settings for this run
            sampler: Pixel sampler (defaults to a copy at native size)
            rng: Random source for the placeholder lighting score
        """
        self._settings = settings
        self._sampler = sampler or PixelSampler()
        self._rng = rng or random.Random()
        self._state = EngineState()
        self._layout: Optional[BandLayout] = None
        self._frame_shape: Optional[Tuple[int, int]] = None

    @property
    def settings(self) -> PipelineSettings:
        return self._settings

    @property
    def state(self) -> EngineState:
        return self._state

    def process(self, frame: Frame) -> PipelineOutput:
        """
        Run one pass of the pipeline over a frame.

        Args:
            frame: Input frame

        Returns:
            PipelineOutput with metrics, geometry and the sampled buffer
        """
        with measure_time() as timer:
            buffer = self._sampler.sample(frame)
            height, width = buffer.shape[:2]

            if self._layout is None or self._frame_shape != (height, width):
                self._init_layout(width, height)
            layout = self._layout

            # Stage 2: band search
            scan = search_bands(buffer, layout)

            left_ok = is_side_detected(scan.near_left, scan.far_left)
            right_ok = is_side_detected(scan.near_right, scan.far_right)
            both_ok = left_ok and right_ok

            # Stage 3: temporal tracking
            tracker = self._state.tracker
            tracker.update(left_ok, scan.near_left.x, right_ok, scan.near_right.x)

            # Stage 4: geometry
            left_line = self._side_polyline(left_ok, tracker.left_x, scan.far_left.x, height, layout)
            right_line = self._side_polyline(right_ok, tracker.right_x, scan.far_right.x, height, layout)
            left_curv = curvature_radius(left_line.points)
            right_curv = curvature_radius(right_line.points)

            # Stage 5: scoring
            strength = strength_score(scan)
            raw = raw_confidence(scan, both_ok)
            confidence = self._state.confidence.update(raw)

        metrics = FrameMetrics(
            timestamp=frame.timestamp,
            frame_seq=frame.sequence,
            confidence=confidence,
            left_lane_detected=left_ok,
            right_lane_detected=right_ok,
            edge_clarity=edge_clarity(strength),
            continuity_score=continuity_score(both_ok),
            lighting_score=lighting_score(self._rng),
            left_curvature=left_curv,
            right_curvature=right_curv,
            left_shift_feasibility=classify_feasibility(left_ok, left_curv, confidence),
            right_shift_feasibility=classify_feasibility(right_ok, right_curv, confidence),
            latency_ms=timer.elapsed_ms,
        )

        logger.debug(
            f"Frame {frame.sequence}: L={left_ok} R={right_ok} "
            f"conf={confidence:.1f} raw={raw:.1f}"
        )

        geometry = LaneGeometry(
            left=left_line,
            right=right_line,
            horizon_y=layout.horizon_y,
            frame_width=width,
            frame_height=height,
        )

        return PipelineOutput(metrics=metrics, geometry=geometry, scan=scan, buffer=buffer)

    @staticmethod
    def _side_polyline(
        detected: bool,
        tracked_x: Optional[float],
        far_x: Optional[int],
        height: int,
        layout: BandLayout,
    ) -> LanePolyline:
        if not detected or tracked_x is None or far_x is None:
            return EMPTY_POLYLINE
        return build_polyline(tracked_x, far_x, height, layout.horizon_y)

    def _init_layout(self, width: int, height: int) -> None:
        """Compute band layout for the given frame dimensions."""
        self._frame_shape = (height, width)
        self._layout = BandLayout.for_frame(width, height, self._settings.roi_height)
        logger.debug(f"Band layout initialized: {width}x{height}, horizon={self._layout.horizon_y}")

    def reset(self) -> None:
        """Reset the pipeline state (clears tracked positions and confidence)."""
        self._state.reset()
        logger.debug("Lane pipeline reset")
