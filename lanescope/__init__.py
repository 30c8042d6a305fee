"""
LaneScope - explainable lane boundary and maneuver feasibility estimation.

Deterministic pixel-histogram lane perception for live video streams.
"""

from lanescope.config import PipelineSettings, Config, load_config
from lanescope.lane.engine import LaneEngine, EngineStatus
from lanescope.lane.result import FrameMetrics
from lanescope.lane.scoring import Feasibility
from lanescope.utils.frame_loop import FrameLoop

__version__ = "0.1.0"

__all__ = [
    "PipelineSettings",
    "Config",
    "load_config",
    "LaneEngine",
    "EngineStatus",
    "FrameMetrics",
    "Feasibility",
    "FrameLoop",
]
