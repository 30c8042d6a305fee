"""
Lane pipeline result data structures.

Defines the per-frame output emitted to result consumers and the geometry
handed to the overlay side channel.
"""

from dataclasses import dataclass
from typing import Dict, Any

from lanescope.lane.geometry import LanePolyline
from lanescope.lane.scoring import Feasibility


@dataclass(frozen=True)
class FrameMetrics:
    """
    Metrics emitted for a single processed frame.

    Attributes:
        timestamp: Monotonic capture time of the frame in seconds
        frame_seq: Sequence number of the frame within its source
        confidence: Smoothed detection confidence [0, 100]
        left_lane_detected: Left side detected this frame
        right_lane_detected: Right side detected this frame
        edge_clarity: Edge clarity score [0, 100]
        continuity_score: 95 if both sides detected, else 20
        lighting_score: Placeholder lighting signal in [90, 95]
        left_curvature: Left curvature radius (0, 5000], 5000 = straight/unknown
        right_curvature: Right curvature radius (0, 5000]
        left_shift_feasibility: Feasibility of a maneuver to the left
        right_shift_feasibility: Feasibility of a maneuver to the right
        latency_ms: Pipeline processing time for the frame
    """
    timestamp: float
    frame_seq: int
    confidence: float
    left_lane_detected: bool
    right_lane_detected: bool
    edge_clarity: float
    continuity_score: int
    lighting_score: float
    left_curvature: float
    right_curvature: float
    left_shift_feasibility: Feasibility
    right_shift_feasibility: Feasibility
    latency_ms: float = 0.0

    @property
    def both_detected(self) -> bool:
        """True if both lane sides are detected."""
        return self.left_lane_detected and self.right_lane_detected

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "timestamp": self.timestamp,
            "frame_seq": self.frame_seq,
            "confidence": round(self.confidence, 2),
            "left_lane_detected": self.left_lane_detected,
            "right_lane_detected": self.right_lane_detected,
            "edge_clarity": round(self.edge_clarity, 2),
            "continuity_score": self.continuity_score,
            "lighting_score": round(self.lighting_score, 2),
            "left_curvature": round(self.left_curvature, 1),
            "right_curvature": round(self.right_curvature, 1),
            "left_shift_feasibility": self.left_shift_feasibility.value,
            "right_shift_feasibility": self.right_shift_feasibility.value,
            "latency_ms": round(self.latency_ms, 2),
        }


@dataclass(frozen=True)
class LaneGeometry:
    """
    Fitted lane geometry of one frame, used for overlay rendering.

    Attributes:
        left: Left polyline (empty if not detected)
        right: Right polyline (empty if not detected)
        horizon_y: Horizon row in source-frame pixels
        frame_width: Source frame width
        frame_height: Source frame height
    """
    left: LanePolyline
    right: LanePolyline
    horizon_y: int
    frame_width: int
    frame_height: int
