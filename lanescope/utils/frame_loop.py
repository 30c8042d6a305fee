"""
Cooperative per-display-frame scheduler.

Callbacks request to run on the next display frame, the way a UI
animation frame callback works. Everything runs on the calling thread;
callbacks are never preempted and at most one frame is in flight.
"""

import logging
import time
from collections import deque
from typing import Callable, Deque, List, Optional

logger = logging.getLogger(__name__)

FrameCallback = Callable[[float], None]

# Frame start times kept for the measured rate
FPS_WINDOW = 30


class FrameLoop:
    """
    Single-threaded frame scheduler.

    Usage:
        loop = FrameLoop(target_fps=30)
        loop.request(callback)   # callback(timestamp) runs next frame
        loop.run()               # pump until nothing is pending or stop()

    Tests drive the loop deterministically with ``step()``.
    """

    def __init__(self, target_fps: float = 30.0):
        """
        Initialize frame loop.

        Args:
            target_fps: Display refresh rate to pace ``run()`` at
        """
        if target_fps <= 0:
            raise ValueError(f"target_fps must be positive, got {target_fps}")

        self._target_fps = target_fps
        self._frame_interval_s = 1.0 / target_fps
        self._frame_starts: Deque[float] = deque(maxlen=FPS_WINDOW + 1)
        self._pending: List[FrameCallback] = []
        self._running = False
        self._frame_count = 0

    def request(self, callback: FrameCallback) -> None:
        """
        Schedule a callback for the next display frame.

        Args:
            callback: Called once with the monotonic frame timestamp
        """
        self._pending.append(callback)

    def step(self) -> int:
        """
        Run one display frame.

        Only callbacks requested before this frame started are run;
        requests made while running land in the next frame.

        Returns:
            Number of callbacks run
        """
        batch, self._pending = self._pending, []
        timestamp = time.monotonic()
        for callback in batch:
            callback(timestamp)
        self._frame_count += 1
        return len(batch)

    def run(self, max_frames: Optional[int] = None) -> int:
        """
        Pump frames at the target rate.

        Stops when no callback is pending, when ``stop()`` is called, or
        after ``max_frames`` frames.

        Args:
            max_frames: Optional frame limit

        Returns:
            Number of frames run
        """
        self._running = True
        frames = 0
        logger.debug(f"Frame loop started at {self._target_fps:.0f} FPS")

        try:
            while self._running and self._pending:
                frame_start = time.monotonic()
                self._frame_starts.append(frame_start)
                self.step()
                frames += 1
                if max_frames is not None and frames >= max_frames:
                    break
                self._wait_for_next_frame(frame_start)
        finally:
            self._running = False

        logger.debug(f"Frame loop finished after {frames} frames")
        return frames

    def _wait_for_next_frame(self, frame_start: float) -> None:
        remaining = self._frame_interval_s - (time.monotonic() - frame_start)
        if remaining > 0:
            time.sleep(remaining)

    def stop(self) -> None:
        """Stop ``run()`` after the current frame."""
        self._running = False

    def clear(self) -> None:
        """Drop all pending callbacks."""
        self._pending.clear()

    @property
    def pending(self) -> int:
        """Number of callbacks waiting for the next frame."""
        return len(self._pending)

    @property
    def frame_count(self) -> int:
        return self._frame_count

    @property
    def target_fps(self) -> float:
        return self._target_fps

    @property
    def fps(self) -> float:
        """Measured rate of recent ``run()`` frames, or the target before any."""
        if len(self._frame_starts) < 3:
            return self._target_fps
        span = self._frame_starts[-1] - self._frame_starts[0]
        if span <= 0:
            return self._target_fps
        return (len(self._frame_starts) - 1) / span
