"""
Confidence and maneuver feasibility scoring.

Turns band strengths and detection flags into the per-frame quality
scores and the CRITICAL / CAUTION / CLEAR classification per side.
"""

import random
from enum import Enum
from typing import Optional

from lanescope.lane.histogram import BandScan


class Feasibility(Enum):
    """
    Advisory classification of a lateral maneuver toward one side.

    IMPORTANT: This is advisory information only, not a safety system.
    """
    CRITICAL = "CRITICAL"   # Side not detected or confidence too low
    CAUTION = "CAUTION"     # Tight curve or moderate confidence
    CLEAR = "CLEAR"         # Maneuver may be possible (advisory only)


# Feasibility thresholds
CRITICAL_CONFIDENCE = 35.0
CAUTION_CONFIDENCE = 65.0
CAUTION_RADIUS = 750.0

# Mean band strength -> percent confidence
STRENGTH_TO_CONFIDENCE = 800.0

# Raw confidence multiplier when only one side (or none) is detected
PARTIAL_DETECTION_PENALTY = 0.4

# Weight of the new raw confidence in the EMA update
CONFIDENCE_ALPHA = 0.3

EDGE_CLARITY_GAIN = 1.5

CONTINUITY_BOTH = 95
CONTINUITY_PARTIAL = 20

# Placeholder lighting signal bounds; not measured from pixels
LIGHTING_BASE = 90.0
LIGHTING_SPREAD = 5.0


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    """Clamp a value into [low, high]."""
    return max(low, min(high, value))


def classify_feasibility(detected: bool, curvature: float, confidence: float) -> Feasibility:
    """
    Classify maneuver feasibility toward one side.

    There is no hysteresis: a side can change class every frame when
    confidence oscillates around a threshold.

    Args:
        detected: Whether the side is detected this frame
        curvature: Curvature radius of the side
        confidence: Smoothed confidence (0-100)

    Returns:
        Feasibility class
    """
    if not detected or confidence < CRITICAL_CONFIDENCE:
        return Feasibility.CRITICAL
    if curvature < CAUTION_RADIUS or confidence < CAUTION_CONFIDENCE:
        return Feasibility.CAUTION
    return Feasibility.CLEAR


def strength_score(scan: BandScan) -> float:
    """Mean band strength scaled to [0, 100], before any detection penalty."""
    return clamp(scan.mean_strength * STRENGTH_TO_CONFIDENCE)


def raw_confidence(scan: BandScan, both_detected: bool) -> float:
    """
    Compute the unsmoothed confidence for a frame.

    Args:
        scan: Peaks of the four bands
        both_detected: Whether both sides are detected

    Returns:
        Confidence in [0, 100], penalized for partial detection
    """
    raw = strength_score(scan)
    if not both_detected:
        raw *= PARTIAL_DETECTION_PENALTY
    return raw


def edge_clarity(raw: float) -> float:
    """Edge clarity score (0-100) from the unpenalized strength score."""
    return clamp(raw * EDGE_CLARITY_GAIN)


def continuity_score(both_detected: bool) -> int:
    """Discrete continuity level: 95 with both sides, 20 otherwise."""
    return CONTINUITY_BOTH if both_detected else CONTINUITY_PARTIAL


def lighting_score(rng: Optional[random.Random] = None) -> float:
    """
    Placeholder lighting score in [90, 95].

    Not derived from pixel data; consumers must not treat it as a
    measured quantity.
    """
    rng = rng or random
    return LIGHTING_BASE + rng.random() * LIGHTING_SPREAD


class ConfidenceSmoother:
    """
    Exponential smoothing of frame confidence.

    Seeded at 0 for the first frame of a run; output stays in [0, 100].
    """

    def __init__(self, alpha: float = CONFIDENCE_ALPHA):
        self._alpha = alpha
        self._value = 0.0

    def update(self, raw: float) -> float:
        """
        Blend a new raw confidence into the running value.

        Args:
            raw: Raw confidence for this frame

        Returns:
            Smoothed confidence
        """
        self._value = clamp(self._value * (1 - self._alpha) + clamp(raw) * self._alpha)
        return self._value

    def reset(self) -> None:
        self._value = 0.0

    @property
    def value(self) -> float:
        return self._value
