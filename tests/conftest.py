"""Shared fixtures for LaneScope tests."""

import time

import numpy as np
import pytest

from lanescope.capture.frame import Frame, FrameSource
from lanescope.capture.synthetic import make_road_image

WIDTH = 640
HEIGHT = 360


def make_frame(image: np.ndarray, sequence: int = 0) -> Frame:
    """Wrap an image in a Frame."""
    return Frame(
        data=image,
        timestamp=time.monotonic(),
        sequence=sequence,
        source=FrameSource.STATIC,
    )


@pytest.fixture
def road_image() -> np.ndarray:
    """640x360 road with two slanted lane lines, horizon at row 198."""
    return make_road_image(WIDTH, HEIGHT, roi_height=45)


@pytest.fixture
def black_image() -> np.ndarray:
    return np.zeros((HEIGHT, WIDTH, 3), dtype=np.uint8)


@pytest.fixture
def left_only_image(road_image) -> np.ndarray:
    """Road image with the right half blacked out."""
    image = road_image.copy()
    image[:, WIDTH // 2:] = 0
    return image
