"""
Synthetic road images.

Dark road with two bright, perspective-slanted lane lines that converge
toward the horizon. Used for smoke runs without a camera and by tests.
"""

from typing import Tuple

import numpy as np

# Road and sky colors (BGR)
ROAD_COLOR = (60, 60, 60)
SKY_COLOR = (110, 90, 70)
LINE_COLOR = (255, 255, 255)

# Lane line x positions as a fraction of frame width: (bottom, horizon)
LEFT_LINE = (0.156, 0.344)
RIGHT_LINE = (0.781, 0.656)


def line_center(
    y: int,
    height: int,
    horizon_y: int,
    x_bottom: float,
    x_horizon: float,
) -> float:
    """Center column of a straight line running from (x_bottom, height) to (x_horizon, horizon_y)."""
    progress = (height - y) / (height - horizon_y)
    return x_bottom + progress * (x_horizon - x_bottom)


def make_road_image(
    width: int = 640,
    height: int = 360,
    roi_height: int = 45,
    half_width: int = 10,
    left: Tuple[float, float] = LEFT_LINE,
    right: Tuple[float, float] = RIGHT_LINE,
) -> np.ndarray:
    """
    Create a synthetic road image.

    Each lane line is filled row by row over columns
    [center - half_width, center + half_width] from the horizon row down
    to the bottom edge.

    Args:
        width: Image width
        height: Image height
        roi_height: Percent of height below the horizon
        half_width: Half width of each painted line in pixels
        left: Left line (bottom, horizon) x positions as width fractions
        right: Right line (bottom, horizon) x positions as width fractions

    Returns:
        BGR uint8 image
    """
    horizon_y = int(height * (1 - roi_height / 100))

    image = np.empty((height, width, 3), dtype=np.uint8)
    image[:horizon_y] = SKY_COLOR
    image[horizon_y:] = ROAD_COLOR

    for x_bottom, x_horizon in (left, right):
        for y in range(horizon_y, height):
            cx = int(round(line_center(y, height, horizon_y, x_bottom * width, x_horizon * width)))
            x0 = max(0, cx - half_width)
            x1 = min(width, cx + half_width + 1)
            image[y, x0:x1] = LINE_COLOR

    return image
