"""
Lane geometry: three-point polylines and curvature radius.

A detected side is described by three points (near, mid, far). The
curvature radius is the circumradius of those points, scaled to an
approximate distance unit and capped for near-straight lines.
"""

import math
from dataclasses import dataclass
from typing import Sequence, Tuple

# Reported radius for straight, unknown or degenerate geometry
MAX_RADIUS = 5000.0

# Pixel-to-distance scale applied to the circumradius
RADIUS_SCALE = 8.0

# Below this |den| the three points are treated as collinear
COLLINEAR_EPSILON = 0.1


@dataclass(frozen=True)
class Point:
    """A point in source-frame pixel coordinates."""
    x: float
    y: float

    def as_int(self) -> Tuple[int, int]:
        """Get the point as integer pixel coordinates."""
        return (int(round(self.x)), int(round(self.y)))

    def scaled(self, sx: float, sy: float) -> "Point":
        """Get the point scaled by independent x/y factors."""
        return Point(self.x * sx, self.y * sy)


@dataclass(frozen=True)
class LanePolyline:
    """
    Polyline for one lane side.

    Either empty (side not detected this frame) or exactly three points
    ordered near, mid, far.
    """
    points: Tuple[Point, ...] = ()

    def __post_init__(self):
        if len(self.points) not in (0, 3):
            raise ValueError(f"LanePolyline needs 0 or 3 points, got {len(self.points)}")

    @property
    def detected(self) -> bool:
        return len(self.points) == 3

    @property
    def near(self) -> Point:
        return self.points[0]

    @property
    def mid(self) -> Point:
        return self.points[1]

    @property
    def far(self) -> Point:
        return self.points[2]


EMPTY_POLYLINE = LanePolyline()


def build_polyline(near_x: float, far_x: float, height: int, horizon_y: int) -> LanePolyline:
    """
    Build the three-point polyline for a detected side.

    Args:
        near_x: Tracked near-band x position
        far_x: Far-band peak x position
        height: Frame height (row of the near point)
        horizon_y: Horizon row (row of the far point)

    Returns:
        LanePolyline with near, midpoint and far points
    """
    near = Point(float(near_x), float(height))
    far = Point(float(far_x), float(horizon_y))
    mid = Point((near.x + far.x) / 2, (near.y + far.y) / 2)
    return LanePolyline((near, mid, far))


def curvature_radius(points: Sequence[Point]) -> float:
    """
    Estimate the curvature radius through the first, middle and last point.

    Uses the circumradius R = (d12 * d23 * d31) / |den| with
    den = 2 * (x1(y2 - y3) - y1(x2 - x3) + x2*y3 - x3*y2).

    Args:
        points: Polyline points

    Returns:
        Scaled radius in (0, MAX_RADIUS]; MAX_RADIUS when fewer than three
        points are given or the points are near-collinear
    """
    if len(points) < 3:
        return MAX_RADIUS

    p1 = points[0]
    p2 = points[len(points) // 2]
    p3 = points[-1]

    den = 2 * (p1.x * (p2.y - p3.y) - p1.y * (p2.x - p3.x) + p2.x * p3.y - p3.x * p2.y)
    if abs(den) < COLLINEAR_EPSILON:
        return MAX_RADIUS

    d12 = math.hypot(p1.x - p2.x, p1.y - p2.y)
    d23 = math.hypot(p2.x - p3.x, p2.y - p3.y)
    d31 = math.hypot(p3.x - p1.x, p3.y - p1.y)
    radius = d12 * d23 * d31 / abs(den)

    return min(MAX_RADIUS, radius * RADIUS_SCALE)
