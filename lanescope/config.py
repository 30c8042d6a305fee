"""
Configuration management for LaneScope.

Handles loading, validation, and access to system configuration.
"""

import yaml
from dataclasses import dataclass, field
from typing import Tuple, Optional, Any, Dict
from pathlib import Path


@dataclass(frozen=True)
class PipelineSettings:
    """
    Per-run lane pipeline settings.

    Supplied once when a run starts and never changed while it is active.
    Only ``roi_height`` feeds the detection math; the remaining values drive
    the display-only visualization stages.

    Attributes:
        canny_low: Lower edge threshold for the visualization stage [0, 100]
        canny_high: Binary threshold for the visualization stage [50, 255]
        blur_radius: Gaussian blur radius, odd, [1, 15]
        roi_height: Percent of frame height above the bottom edge that
            defines the horizon row [30, 70]
        roi_width: Reserved for trapezoid narrowing [0, 40]
    """
    canny_low: int = 50
    canny_high: int = 150
    blur_radius: int = 5
    roi_height: int = 45
    roi_width: int = 10

    def __post_init__(self):
        """Validate setting ranges."""
        _check_range("canny_low", self.canny_low, 0, 100)
        _check_range("canny_high", self.canny_high, 50, 255)
        _check_range("blur_radius", self.blur_radius, 1, 15)
        _check_range("roi_height", self.roi_height, 30, 70)
        _check_range("roi_width", self.roi_width, 0, 40)
        if self.blur_radius % 2 == 0:
            raise ValueError(f"blur_radius must be odd, got {self.blur_radius}")

    def horizon_row(self, height: int) -> int:
        """Get the horizon row for a frame of the given height."""
        return int(height * (1 - self.roi_height / 100))


def _check_range(name: str, value: float, low: float, high: float) -> None:
    if not low <= value <= high:
        raise ValueError(f"{name} must be between {low} and {high}, got {value}")


@dataclass
class CaptureConfig:
    """Frame capture configuration."""
    source: str = "video"  # "video", "webcam" or "synthetic"
    video_path: Optional[str] = None
    camera_index: int = 0
    resolution: Optional[Tuple[int, int]] = None  # (width, height), None keeps native size
    target_fps: int = 30
    loop_video: bool = False


@dataclass
class DisplayConfig:
    """Display overlay configuration."""
    enabled: bool = False
    window_name: str = "LaneScope"
    overlay_size: Optional[Tuple[int, int]] = None  # (width, height), None follows frame size
    show_diagnostics: bool = False
    font_scale: float = 0.6


@dataclass
class SystemConfig:
    """Top-level system configuration."""
    log_level: str = "INFO"
    telemetry_file: Optional[str] = None
    telemetry_flush_interval_s: float = 1.0
    history_size: int = 100


@dataclass
class Config:
    """Complete system configuration."""
    system: SystemConfig = field(default_factory=SystemConfig)
    capture: CaptureConfig = field(default_factory=CaptureConfig)
    pipeline: PipelineSettings = field(default_factory=PipelineSettings)
    display: DisplayConfig = field(default_factory=DisplayConfig)


def _optional_size(value: Any) -> Optional[Tuple[int, int]]:
    """Parse an optional [width, height] pair."""
    if value is None:
        return None
    width, height = value
    return (int(width), int(height))


def parse_config(data: Dict[str, Any]) -> Config:
    """
    Build a Config from a parsed YAML mapping.

    Args:
        data: Mapping with optional system/capture/pipeline/display sections

    Returns:
        Populated Config object

    Raises:
        ValueError: If pipeline settings are out of range
    """
    config = Config()

    if "system" in data:
        sys_data = data["system"]
        config.system = SystemConfig(
            log_level=sys_data.get("log_level", "INFO"),
            telemetry_file=sys_data.get("telemetry_file"),
            telemetry_flush_interval_s=sys_data.get("telemetry_flush_interval_s", 1.0),
            history_size=sys_data.get("history_size", 100),
        )

    if "capture" in data:
        cap_data = data["capture"]
        config.capture = CaptureConfig(
            source=cap_data.get("source", "video"),
            video_path=cap_data.get("video_path"),
            camera_index=cap_data.get("camera_index", 0),
            resolution=_optional_size(cap_data.get("resolution")),
            target_fps=cap_data.get("target_fps", 30),
            loop_video=cap_data.get("loop_video", False),
        )

    if "pipeline" in data:
        pipe_data = data["pipeline"]
        config.pipeline = PipelineSettings(
            canny_low=pipe_data.get("canny_low", 50),
            canny_high=pipe_data.get("canny_high", 150),
            blur_radius=pipe_data.get("blur_radius", 5),
            roi_height=pipe_data.get("roi_height", 45),
            roi_width=pipe_data.get("roi_width", 10),
        )

    if "display" in data:
        disp_data = data["display"]
        config.display = DisplayConfig(
            enabled=disp_data.get("enabled", False),
            window_name=disp_data.get("window_name", "LaneScope"),
            overlay_size=_optional_size(disp_data.get("overlay_size")),
            show_diagnostics=disp_data.get("show_diagnostics", False),
            font_scale=disp_data.get("font_scale", 0.6),
        )

    return config


def load_config(config_path: Optional[str] = None) -> Config:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to config file. If None, uses default config.yaml

    Returns:
        Populated Config object

    Raises:
        yaml.YAMLError: If config file is malformed
        ValueError: If pipeline settings are out of range
    """
    if config_path is None:
        # Look for config.yaml in project root
        path = Path(__file__).parent.parent / "config.yaml"
    else:
        path = Path(config_path)

    if not path.exists():
        # Return default configuration
        return Config()

    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}

    return parse_config(data)
