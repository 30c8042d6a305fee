"""Latency measurement for pipeline passes."""

import time
from contextlib import contextmanager
from typing import Iterator, Optional


class Stopwatch:
    """Monotonic stopwatch started on creation; ``elapsed_ms`` freezes once stopped."""

    def __init__(self):
        self._started = time.perf_counter()
        self._stopped: Optional[float] = None

    def stop(self) -> float:
        """Freeze the reading (first call wins) and return it in milliseconds."""
        if self._stopped is None:
            self._stopped = time.perf_counter()
        return self.elapsed_ms

    @property
    def stopped(self) -> bool:
        return self._stopped is not None

    @property
    def elapsed_ms(self) -> float:
        end = self._stopped if self._stopped is not None else time.perf_counter()
        return (end - self._started) * 1000.0


@contextmanager
def measure_time() -> Iterator[Stopwatch]:
    """
    Time a block of work.

    The stopwatch is stopped when the block exits, including on error,
    so ``latency_ms`` can be read after the ``with`` statement.
    """
    watch = Stopwatch()
    try:
        yield watch
    finally:
        watch.stop()
