"""Lane perception module for LaneScope."""

from lanescope.lane.histogram import BandPeak, BandLayout, BandScan, find_band_peak
from lanescope.lane.temporal import LaneTracker, is_side_detected
from lanescope.lane.geometry import Point, LanePolyline, build_polyline, curvature_radius
from lanescope.lane.scoring import Feasibility, classify_feasibility
from lanescope.lane.result import FrameMetrics, LaneGeometry
from lanescope.lane.pipeline import LanePipeline, EngineState, PipelineOutput

__all__ = [
    "BandPeak",
    "BandLayout",
    "BandScan",
    "find_band_peak",
    "LaneTracker",
    "is_side_detected",
    "Point",
    "LanePolyline",
    "build_polyline",
    "curvature_radius",
    "Feasibility",
    "classify_feasibility",
    "FrameMetrics",
    "LaneGeometry",
    "LanePipeline",
    "EngineState",
    "PipelineOutput",
]
