"""
Telemetry module for LaneScope.

Bounded in-memory metrics history and optional JSON Lines logging.
"""

from .history import DEFAULT_HISTORY_SIZE, MetricsHistory, SessionSummary
from .logger import TelemetryLogger, TelemetryRecord

__all__ = [
    "DEFAULT_HISTORY_SIZE",
    "MetricsHistory",
    "SessionSummary",
    "TelemetryLogger",
    "TelemetryRecord",
]
