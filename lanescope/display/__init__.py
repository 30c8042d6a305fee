"""
Display module for overlay rendering.

Provides visualization of fitted lanes, feasibility and diagnostic views.
"""

from .renderer import (
    DisplayWindow,
    OverlayConfig,
    OverlayRenderer,
    Surface,
    SurfaceSet,
)

__all__ = [
    "DisplayWindow",
    "OverlayConfig",
    "OverlayRenderer",
    "Surface",
    "SurfaceSet",
]
