#!/usr/bin/env python3
"""
LaneScope - Main Entry Point

Histogram-based lane boundary and maneuver feasibility estimation on a
live video stream.

Usage:
    # Video file, with overlay window
    lanescope --source video --video-path drive.mp4 --display

    # Webcam, headless with telemetry
    lanescope --source webcam --telemetry-file telemetry.jsonl

    # Synthetic two-lane road, useful as a smoke test
    lanescope --source synthetic --max-frames 60
"""

import argparse
import logging
import signal
import sys
from typing import Optional

from lanescope.config import Config, PipelineSettings, load_config
from lanescope.capture import PixelSource, create_pixel_source
from lanescope.display import DisplayWindow, OverlayRenderer, OverlayConfig, Surface, SurfaceSet
from lanescope.lane.engine import LaneEngine
from lanescope.lane.result import FrameMetrics
from lanescope.lane.sampler import PixelSampler
from lanescope.telemetry import MetricsHistory, TelemetryLogger
from lanescope.utils.frame_loop import FrameLoop

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

# Frames between periodic status lines
STATUS_INTERVAL = 100


class LaneScopeApp:
    """
    Main application class.

    Wires a pixel source, the lane engine, the optional display window and
    telemetry together on a single-threaded frame loop.
    """

    def __init__(self, config: Config, max_frames: Optional[int] = None):
        """
        Initialize the application.

        Args:
            config: System configuration
            max_frames: Stop after this many display frames (None = unbounded)
        """
        self._config = config
        self._max_frames = max_frames

        self._loop = FrameLoop(target_fps=config.capture.target_fps)
        self._source: Optional[PixelSource] = None
        self._engine: Optional[LaneEngine] = None
        self._window: Optional[DisplayWindow] = None
        self._surfaces = SurfaceSet()
        self._telemetry: Optional[TelemetryLogger] = None
        self._history = MetricsHistory(maxlen=config.system.history_size)
        self._frames = 0

        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

    def setup(self) -> bool:
        """
        Initialize source, display and telemetry.

        Returns:
            True if the pixel source opened successfully
        """
        if not self._setup_source():
            return False

        if self._config.display.enabled:
            self._setup_display()

        if self._config.system.telemetry_file:
            self._telemetry = TelemetryLogger(
                log_file=self._config.system.telemetry_file,
                flush_interval=self._config.system.telemetry_flush_interval_s,
            )
            self._telemetry.start()

        overlay_config = OverlayConfig(font_scale=self._config.display.font_scale)
        self._engine = LaneEngine(
            self._loop,
            surfaces=self._surfaces,
            renderer=OverlayRenderer(overlay_config),
            sampler=PixelSampler(self._config.capture.resolution),
        )

        logger.info("LaneScope initialization complete")
        return True

    def _setup_source(self) -> bool:
        """Open the configured pixel source."""
        try:
            self._source = create_pixel_source(self._config.capture)
        except ValueError as e:
            logger.error(f"Source setup failed: {e}")
            return False

        if not self._source.initialize():
            logger.error("Pixel source initialization failed")
            return False

        return True

    def _setup_display(self) -> None:
        """Create the window and register surfaces."""
        display = self._config.display
        self._window = DisplayWindow(display.window_name)
        if not self._window.initialize():
            logger.warning("Display initialization failed - running headless")
            self._window = None
            return

        self._surfaces.overlay = Surface("overlay", display.overlay_size)
        if display.show_diagnostics:
            self._surfaces.grayscale = Surface("grayscale")
            self._surfaces.binary = Surface("binary")
            self._surfaces.edges = Surface("edges")
            self._surfaces.roi = Surface("roi")

    def run(self) -> None:
        """Start the engine and pump the frame loop until done."""
        self._engine.start(self._source, self._config.pipeline, self._on_result)
        self._loop.request(self._present)
        self._loop.run()

    def _on_result(self, metrics: FrameMetrics) -> None:
        """Result sink: history, telemetry and periodic status."""
        self._history.append(metrics)

        if self._telemetry is not None:
            self._telemetry.log_metrics(metrics, self._loop.fps)

        if metrics.frame_seq % STATUS_INTERVAL == 0:
            logger.info(
                f"Frame {metrics.frame_seq}: conf={metrics.confidence:.0f}% "
                f"L={metrics.left_shift_feasibility.value} "
                f"R={metrics.right_shift_feasibility.value} "
                f"latency={metrics.latency_ms:.1f}ms"
            )

    def _present(self, _timestamp: float) -> None:
        """Per-frame UI callback: show surfaces and check stop conditions."""
        self._frames += 1

        if self._window is not None:
            self._window.show(self._surfaces)
            if self._window.should_quit():
                logger.info("Quit requested via display")
                self.shutdown()
                return

        if self._source.exhausted:
            logger.info("Source exhausted")
            self.shutdown()
            return

        if self._max_frames is not None and self._frames >= self._max_frames:
            logger.info(f"Reached frame limit ({self._max_frames})")
            self.shutdown()
            return

        self._loop.request(self._present)

    def shutdown(self) -> None:
        """Stop the engine and the frame loop."""
        if self._engine is not None:
            self._engine.stop()
        self._loop.stop()
        self._loop.clear()

    def cleanup(self) -> None:
        """Clean up all resources."""
        logger.info("Cleaning up...")
        self.shutdown()

        summary = self._history.summary()
        logger.info(f"Session summary: {summary.to_dict()}")

        if self._telemetry is not None:
            self._telemetry.stop()
        if self._window is not None:
            self._window.cleanup()
        if self._source is not None:
            self._source.release()

    def _signal_handler(self, signum, frame) -> None:
        logger.info(f"Received signal {signum}, shutting down")
        self.shutdown()

    @property
    def history(self) -> MetricsHistory:
        return self._history

    @property
    def surfaces(self) -> SurfaceSet:
        return self._surfaces


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="LaneScope - histogram-based lane perception",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  lanescope --source video --video-path drive.mp4 --display
  lanescope --source webcam --telemetry-file telemetry.jsonl
  lanescope --source synthetic --max-frames 60
        """,
    )

    source_group = parser.add_argument_group("Input Source")
    source_group.add_argument(
        "--source",
        type=str,
        choices=["video", "webcam", "synthetic"],
        default=None,
        help="Frame source (default: from config)",
    )
    source_group.add_argument("--video-path", type=str, default=None, help="Path to video file")
    source_group.add_argument("--camera-index", type=int, default=None, help="Camera index")
    source_group.add_argument("--loop", action="store_true", help="Loop video playback")
    source_group.add_argument(
        "--resolution",
        type=str,
        default=None,
        help="Rescale frames to WxH before processing",
    )

    display_group = parser.add_argument_group("Display")
    display_group.add_argument("--display", action="store_true", help="Show overlay window")
    display_group.add_argument(
        "--diagnostics",
        action="store_true",
        help="Also show grayscale/binary/ROI views",
    )

    pipeline_group = parser.add_argument_group("Pipeline")
    pipeline_group.add_argument("--roi-height", type=int, default=None, help="ROI height percent [30, 70]")
    pipeline_group.add_argument("--blur-radius", type=int, default=None, help="Blur radius, odd [1, 15]")
    pipeline_group.add_argument("--canny-high", type=int, default=None, help="Binary view threshold [50, 255]")

    config_group = parser.add_argument_group("Configuration")
    config_group.add_argument("--config", type=str, default=None, help="Path to configuration YAML file")
    config_group.add_argument("--telemetry-file", type=str, default=None, help="JSON Lines telemetry output")
    config_group.add_argument("--max-frames", type=int, default=None, help="Stop after N display frames")
    config_group.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: from config)",
    )

    return parser.parse_args(argv)


def apply_overrides(config: Config, args: argparse.Namespace) -> Config:
    """
    Apply CLI overrides to a loaded configuration.

    Raises:
        ValueError: If an override is malformed or out of range
    """
    if args.source:
        config.capture.source = args.source
    if args.video_path:
        config.capture.video_path = args.video_path
        if not args.source:
            config.capture.source = "video"
    if args.camera_index is not None:
        config.capture.camera_index = args.camera_index
    if args.loop:
        config.capture.loop_video = True
    if args.resolution:
        w, h = args.resolution.lower().split("x")
        config.capture.resolution = (int(w), int(h))

    if args.display:
        config.display.enabled = True
    if args.diagnostics:
        config.display.enabled = True
        config.display.show_diagnostics = True

    pipeline = config.pipeline
    config.pipeline = PipelineSettings(
        canny_low=pipeline.canny_low,
        canny_high=args.canny_high if args.canny_high is not None else pipeline.canny_high,
        blur_radius=args.blur_radius if args.blur_radius is not None else pipeline.blur_radius,
        roi_height=args.roi_height if args.roi_height is not None else pipeline.roi_height,
        roi_width=pipeline.roi_width,
    )

    if args.telemetry_file:
        config.system.telemetry_file = args.telemetry_file
    if args.log_level:
        config.system.log_level = args.log_level

    return config


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    try:
        config = apply_overrides(load_config(args.config), args)
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    logging.getLogger().setLevel(getattr(logging, config.system.log_level.upper(), logging.INFO))

    if config.capture.source == "video" and not config.capture.video_path:
        logger.error("--video-path required when source=video")
        return 1

    app = LaneScopeApp(config, max_frames=args.max_frames)

    try:
        if not app.setup():
            logger.critical("Setup failed - aborting")
            return 1

        app.run()
        return 0

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 0
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        return 1
    finally:
        app.cleanup()


if __name__ == "__main__":
    sys.exit(main())
