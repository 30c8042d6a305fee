"""
Display-only pipeline stages.

Grayscale, binary threshold, edge and region-of-interest views for the
diagnostic panels. These operate on copies of the frame and are never
read by the band search, which works on raw pixel brightness. The images
here do not show what the histogram search analyzed.
"""

from dataclasses import dataclass
from typing import Optional
import numpy as np
import cv2

from lanescope.config import PipelineSettings

# Darkening applied above the horizon in the ROI view (BGR)
ROI_SHADE_COLOR = (42, 23, 15)
ROI_SHADE_ALPHA = 0.85


@dataclass
class DiagnosticViews:
    """Images produced by the display-only stages."""
    grayscale: np.ndarray
    binary: np.ndarray
    edges: np.ndarray
    roi: np.ndarray


def grayscale_view(image: np.ndarray, blur_radius: int) -> np.ndarray:
    """Grayscale copy of the frame, blurred with an odd kernel."""
    gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    kernel = max(1, blur_radius) | 1
    return cv2.GaussianBlur(gray, (kernel, kernel), 0)


def binary_view(image: np.ndarray, threshold: int) -> np.ndarray:
    """
    Contrast-boosted grayscale thresholded to black/white.

    Args:
        image: BGR frame
        threshold: Gray level above which a pixel turns white

    Returns:
        uint8 single-channel image with values 0 or 255
    """
    gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY).astype(np.float32)
    boosted = np.clip(((gray - 128.0) * 2.0 + 128.0) * 1.1, 0, 255)
    return np.where(boosted > threshold, 255, 0).astype(np.uint8)


def edge_view(gray: np.ndarray, low: int, high: int) -> np.ndarray:
    """Canny edges of an already blurred grayscale image."""
    return cv2.Canny(gray, low, high)


def roi_view(image: np.ndarray, horizon_y: int) -> np.ndarray:
    """Copy of the frame with everything above the horizon darkened."""
    out = image.copy()
    horizon_y = max(0, min(horizon_y, out.shape[0]))
    if horizon_y > 0:
        top = out[:horizon_y].astype(np.float32)
        shade = np.array(ROI_SHADE_COLOR, dtype=np.float32)
        out[:horizon_y] = (top * (1 - ROI_SHADE_ALPHA) + shade * ROI_SHADE_ALPHA).astype(np.uint8)
    return out


def build_diagnostics(
    image: np.ndarray,
    settings: PipelineSettings,
    horizon_y: Optional[int] = None,
) -> DiagnosticViews:
    """
    Render all diagnostic views for a frame.

    Args:
        image: BGR frame (not modified)
        settings: Pipeline settings of the run
        horizon_y: Horizon row; computed from settings when omitted

    Returns:
        DiagnosticViews
    """
    if horizon_y is None:
        horizon_y = settings.horizon_row(image.shape[0])

    gray = grayscale_view(image, settings.blur_radius)
    return DiagnosticViews(
        grayscale=gray,
        binary=binary_view(image, settings.canny_high),
        edges=edge_view(gray, settings.canny_low, settings.canny_high),
        roi=roi_view(image, horizon_y),
    )
