"""
Bounded trailing history of emitted frame metrics.

Keeps the most recent results in memory and summarizes a session.
"""

from collections import deque
from dataclasses import dataclass
from typing import Deque, Iterator, List, Optional, Dict, Any

from lanescope.lane.result import FrameMetrics

DEFAULT_HISTORY_SIZE = 100

# Detection stability is only reported once this many samples exist
MIN_STABILITY_SAMPLES = 10


@dataclass(frozen=True)
class SessionSummary:
    """
    Aggregate statistics over a metrics history.

    Attributes:
        samples: Number of frames in the history
        average_confidence: Mean smoothed confidence
        detection_stability: Percent of frames with both sides detected,
            or None with too few samples
        mean_radius: Mean of the per-frame average of both curvatures
    """
    samples: int
    average_confidence: float
    detection_stability: Optional[float]
    mean_radius: float

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "samples": self.samples,
            "average_confidence": round(self.average_confidence, 1),
            "detection_stability": (
                round(self.detection_stability, 1)
                if self.detection_stability is not None else None
            ),
            "mean_radius": round(self.mean_radius, 0),
        }


class MetricsHistory:
    """
    Bounded FIFO of FrameMetrics.

    Usage:
        history = MetricsHistory()
        engine.start(source, settings, on_result=history.append)
        ...
        print(history.summary())
    """

    def __init__(self, maxlen: int = DEFAULT_HISTORY_SIZE):
        """
        Initialize metrics history.

        Args:
            maxlen: Number of most recent frames to keep
        """
        if maxlen <= 0:
            raise ValueError("maxlen must be positive")
        self._items: Deque[FrameMetrics] = deque(maxlen=maxlen)

    def append(self, metrics: FrameMetrics) -> None:
        """Add one frame's metrics, evicting the oldest when full."""
        self._items.append(metrics)

    def clear(self) -> None:
        self._items.clear()

    @property
    def latest(self) -> Optional[FrameMetrics]:
        """Most recently added metrics, or None."""
        return self._items[-1] if self._items else None

    @property
    def maxlen(self) -> int:
        return self._items.maxlen

    def as_list(self) -> List[FrameMetrics]:
        return list(self._items)

    def summary(self) -> SessionSummary:
        """
        Summarize the retained frames.

        Returns:
            SessionSummary (all zeros for an empty history)
        """
        n = len(self._items)
        if n == 0:
            return SessionSummary(0, 0.0, None, 0.0)

        avg_conf = sum(m.confidence for m in self._items) / n
        mean_radius = sum((m.left_curvature + m.right_curvature) / 2 for m in self._items) / n

        stability = None
        if n > MIN_STABILITY_SAMPLES:
            both = sum(1 for m in self._items if m.both_detected)
            stability = both / n * 100

        return SessionSummary(
            samples=n,
            average_confidence=avg_conf,
            detection_stability=stability,
            mean_radius=mean_radius,
        )

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[FrameMetrics]:
        return iter(self._items)
