"""Utility modules for LaneScope."""

from lanescope.utils.timing import Stopwatch, measure_time
from lanescope.utils.frame_loop import FrameLoop

__all__ = [
    "Stopwatch",
    "measure_time",
    "FrameLoop",
]
