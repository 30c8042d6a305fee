"""
Column-intensity histogram search for lane-line bands.

Each frame is probed in four horizontal bands (near/far, left/right).
Inside a band, bright pixels are accumulated per column and a sliding
window picks the densest column as the lane-line position.
"""

from dataclasses import dataclass
from typing import Optional
import numpy as np

# Mean channel value a pixel must exceed to count as lane paint
BRIGHTNESS_THRESHOLD = 120

# Half width of the histogram smoothing window (columns)
WINDOW_HALF_WIDTH = 10

# Height of the near/far search bands as a ratio of frame height
SCAN_HEIGHT_RATIO = 0.15

# Rows left out at the very bottom of the near band
BOTTOM_MARGIN = 5

# Columns left out at the left/right frame edges in the near band
EDGE_MARGIN = 10


@dataclass(frozen=True)
class BandPeak:
    """
    Result of a single band search.

    Attributes:
        x: Peak column, or None if no bright pixel was found
        strength: Window saturation, roughly in [0, 1] (can exceed 1
            slightly because the window spans 2w+1 columns)
    """
    x: Optional[int]
    strength: float

    @property
    def found(self) -> bool:
        """True if the band produced a peak."""
        return self.x is not None


NO_PEAK = BandPeak(x=None, strength=0.0)


@dataclass(frozen=True)
class Band:
    """A rectangular search region: rows [start_y, end_y), columns [x_min, x_max)."""
    start_y: int
    end_y: int
    x_min: int
    x_max: int

    @property
    def height(self) -> int:
        return self.end_y - self.start_y


@dataclass(frozen=True)
class BandLayout:
    """The four search bands for one frame size and horizon."""
    near_left: Band
    near_right: Band
    far_left: Band
    far_right: Band
    horizon_y: int

    @staticmethod
    def for_frame(width: int, height: int, roi_height: float) -> "BandLayout":
        """
        Compute the band layout for a frame.

        The near bands cover the bottom strip of the frame, split at the
        horizontal midpoint with a 4% gap. The far bands start at the
        horizon row and cover the central quadrants.

        Args:
            width: Frame width in pixels
            height: Frame height in pixels
            roi_height: Percent of frame height used as region of interest

        Returns:
            BandLayout for the frame
        """
        horizon_y = int(height * (1 - roi_height / 100))
        scan_h = int(height * SCAN_HEIGHT_RATIO)

        near_top = height - scan_h
        near_bottom = height - BOTTOM_MARGIN
        far_bottom = horizon_y + scan_h

        return BandLayout(
            near_left=Band(near_top, near_bottom, EDGE_MARGIN, int(width * 0.48)),
            near_right=Band(near_top, near_bottom, int(width * 0.52), width - EDGE_MARGIN),
            far_left=Band(horizon_y, far_bottom, int(width * 0.2), int(width * 0.5)),
            far_right=Band(horizon_y, far_bottom, int(width * 0.5), int(width * 0.8)),
            horizon_y=horizon_y,
        )


@dataclass(frozen=True)
class BandScan:
    """Peaks of all four bands for one frame."""
    near_left: BandPeak
    near_right: BandPeak
    far_left: BandPeak
    far_right: BandPeak

    @property
    def mean_strength(self) -> float:
        """Average strength over the four bands."""
        return (
            self.near_left.strength + self.near_right.strength +
            self.far_left.strength + self.far_right.strength
        ) / 4


def find_band_peak(
    buffer: np.ndarray,
    start_y: int,
    end_y: int,
    x_min: int,
    x_max: int,
) -> BandPeak:
    """
    Find the brightest smoothed column inside a band.

    Pixels whose channel mean exceeds BRIGHTNESS_THRESHOLD add their
    brightness to a per-column histogram. A window of 2w+1 columns slides
    over [x_min + w, x_max - w); the first column with the largest window
    sum wins, so ties resolve to the lowest x.

    Args:
        buffer: uint8 image, shape (height, width, 3)
        start_y: First row of the band (inclusive)
        end_y: Last row of the band (exclusive)
        x_min: First column of the range (inclusive)
        x_max: Last column of the range (exclusive)

    Returns:
        BandPeak with the peak column and its normalized strength
    """
    w = WINDOW_HALF_WIDTH
    height, width = buffer.shape[:2]

    start_y, end_y = max(0, start_y), min(height, end_y)
    x_min, x_max = max(0, x_min), min(width, x_max)
    band_height = end_y - start_y

    if band_height <= 0 or x_max - x_min <= 2 * w:
        return NO_PEAK

    # Channel sums stay integral so equal windows compare exactly equal
    channel_sum = buffer[start_y:end_y, x_min:x_max, :3].sum(axis=2, dtype=np.int64)
    bright = np.where(channel_sum > BRIGHTNESS_THRESHOLD * 3, channel_sum, 0)
    histogram = bright.sum(axis=0)

    # Windowed sums centred on local columns w .. n-w-1
    window_sums = np.convolve(histogram, np.ones(2 * w + 1, dtype=np.int64), mode="valid")

    best = int(np.argmax(window_sums))
    max_sum = int(window_sums[best])
    if max_sum <= 0:
        return NO_PEAK

    strength = (max_sum / 3) / (band_height * (2 * w) * 255)
    return BandPeak(x=x_min + w + best, strength=strength)


def search_band(buffer: np.ndarray, band: Band) -> BandPeak:
    """Run find_band_peak over a Band."""
    return find_band_peak(buffer, band.start_y, band.end_y, band.x_min, band.x_max)


def search_bands(buffer: np.ndarray, layout: BandLayout) -> BandScan:
    """
    Search all four bands of a frame.

    Args:
        buffer: uint8 image, shape (height, width, 3)
        layout: Band layout for the frame

    Returns:
        BandScan with one peak per band
    """
    return BandScan(
        near_left=search_band(buffer, layout.near_left),
        near_right=search_band(buffer, layout.near_right),
        far_left=search_band(buffer, layout.far_left),
        far_right=search_band(buffer, layout.far_right),
    )
