"""
Temporal tracking for lane positions.

Applies exponential moving average (EMA) filtering to the near-band lane
position of each side so the fitted polyline does not jitter between
frames. Positions are sticky: a side that is not detected keeps its last
tracked value until the run is stopped.
"""

from dataclasses import dataclass
from typing import Optional

from lanescope.lane.histogram import BandPeak

# Near-band strength a side needs before it counts as detected
MIN_NEAR_STRENGTH = 0.03

# Weight of the new measurement in the EMA update
TRACK_ALPHA = 0.2


def is_side_detected(near: BandPeak, far: BandPeak) -> bool:
    """
    Decide whether a lane side is detected this frame.

    Args:
        near: Peak of the side's near band
        far: Peak of the side's far band

    Returns:
        True if the near band is strong enough and the far band has a peak
    """
    return near.found and near.strength > MIN_NEAR_STRENGTH and far.found


@dataclass
class SideTrack:
    """Tracked lane position for one side."""
    x: Optional[float] = None
    updates: int = 0

    def update(self, new_x: float, alpha: float) -> float:
        if self.x is None:
            self.x = float(new_x)
        else:
            self.x = self.x * (1 - alpha) + new_x * alpha
        self.updates += 1
        return self.x

    def reset(self) -> None:
        self.x = None
        self.updates = 0


class LaneTracker:
    """
    Smooths detected near-band x positions across frames.

    Features:
    - EMA smoothing of the near-band peak (alpha = 0.2)
    - First detection of a run is taken as-is
    - Last known position persists through missed frames
    """

    def __init__(self, alpha: float = TRACK_ALPHA):
        """
        Initialize lane tracker.

        Args:
            alpha: EMA smoothing factor (0-1, higher = more responsive)
        """
        self._alpha = alpha
        self._left = SideTrack()
        self._right = SideTrack()

    def update(
        self,
        left_detected: bool,
        left_x: Optional[int],
        right_detected: bool,
        right_x: Optional[int],
    ) -> None:
        """
        Update both sides with this frame's near-band peaks.

        Args:
            left_detected: Whether the left side is detected this frame
            left_x: Left near-band peak column
            right_detected: Whether the right side is detected this frame
            right_x: Right near-band peak column
        """
        if left_detected and left_x is not None:
            self._left.update(left_x, self._alpha)
        if right_detected and right_x is not None:
            self._right.update(right_x, self._alpha)

    def reset(self) -> None:
        """Clear tracked positions for both sides."""
        self._left.reset()
        self._right.reset()

    @property
    def left_x(self) -> Optional[float]:
        """Tracked left lane x, or None before the first detection."""
        return self._left.x

    @property
    def right_x(self) -> Optional[float]:
        """Tracked right lane x, or None before the first detection."""
        return self._right.x
