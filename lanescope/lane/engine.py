"""
Lane engine: drives one pipeline pass per display frame.

Owns the start/stop lifecycle of a run, polls the pixel source, emits
FrameMetrics to the result callback and feeds the optional overlay and
diagnostic surfaces.
"""

import logging
from enum import Enum
from typing import Callable, Optional

import cv2

from lanescope.config import PipelineSettings
from lanescope.capture.adapter import PixelSource
from lanescope.display.renderer import OverlayRenderer, SurfaceSet
from lanescope.lane.pipeline import LanePipeline, PipelineOutput
from lanescope.lane.result import FrameMetrics
from lanescope.lane.sampler import PixelSampler
from lanescope.lane.visualize import build_diagnostics
from lanescope.utils.frame_loop import FrameLoop

logger = logging.getLogger(__name__)

ResultCallback = Callable[[FrameMetrics], None]


class EngineStatus(Enum):
    """Lifecycle state of the engine."""
    STOPPED = "stopped"
    RUNNING = "running"


class LaneEngine:
    """
    Frame scheduler for the lane pipeline.

    State transitions:
        STOPPED -> RUNNING: start()
        RUNNING -> STOPPED: stop()

    While RUNNING each display frame either defers (source not ready) or
    runs exactly one pipeline pass, calls ``on_result`` synchronously and
    re-arms for the next frame. ``stop()`` is cooperative: a pass already
    in progress completes and emits before the stop takes effect.

    Usage:
        loop = FrameLoop(target_fps=30)
        engine = LaneEngine(loop)
        engine.start(source, PipelineSettings(), on_result=history.append)
        loop.run()
    """

    def __init__(
        self,
        loop: FrameLoop,
        surfaces: Optional[SurfaceSet] = None,
        renderer: Optional[OverlayRenderer] = None,
        sampler: Optional[PixelSampler] = None,
    ):
        """
        Initialize lane engine.

        Args:
            loop: Frame loop the engine schedules its ticks on
            surfaces: Optional display surfaces to draw into
            renderer: Overlay renderer (default renderer if None)
            sampler: Pixel sampler handed to each run's pipeline
        """
        self._loop = loop
        self._surfaces = surfaces or SurfaceSet()
        self._renderer = renderer or OverlayRenderer()
        self._sampler = sampler

        self._status = EngineStatus.STOPPED
        self._generation = 0
        self._source: Optional[PixelSource] = None
        self._on_result: Optional[ResultCallback] = None
        self._pipeline: Optional[LanePipeline] = None
        self._last_output: Optional[PipelineOutput] = None

        self._frames_processed = 0
        self._deferred_ticks = 0

    def register_surfaces(self, surfaces: SurfaceSet) -> None:
        """Replace the registered display surfaces."""
        self._surfaces = surfaces

    def start(
        self,
        source: PixelSource,
        settings: PipelineSettings,
        on_result: ResultCallback,
    ) -> None:
        """
        Start a run.

        Starting while already running restarts with fresh state. The first
        tick runs immediately; if the source is not ready it is retried on
        the next display frame.

        Args:
            source: Pixel source to poll
            settings: Settings for the whole run
            on_result: Called once per processed frame
        """
        if self._status == EngineStatus.RUNNING:
            self.stop()

        self._generation += 1
        self._source = source
        self._on_result = on_result
        self._pipeline = LanePipeline(settings, sampler=self._sampler)
        self._last_output = None
        self._frames_processed = 0
        self._deferred_ticks = 0
        self._status = EngineStatus.RUNNING

        logger.info(
            f"Lane engine started (run {self._generation}, roi_height={settings.roi_height})"
        )

        self._tick(self._generation)

    def stop(self) -> None:
        """Stop the run and clear tracked state. Safe to call repeatedly."""
        if self._status == EngineStatus.STOPPED:
            return

        self._status = EngineStatus.STOPPED
        if self._pipeline is not None:
            self._pipeline.reset()

        logger.info(
            f"Lane engine stopped after {self._frames_processed} frames "
            f"({self._deferred_ticks} deferred ticks)"
        )

    def _request_tick(self, generation: int) -> None:
        self._loop.request(lambda _ts: self._tick(generation))

    def _tick(self, generation: int) -> None:
        """Run one scheduled frame of a run."""
        # Ticks queued by an earlier run, or after stop(), are dropped
        if self._status != EngineStatus.RUNNING or generation != self._generation:
            return

        source = self._source
        if not source.is_ready():
            self._deferred_ticks += 1
            self._request_tick(generation)
            return

        frame = source.read_frame()
        if frame is None:
            self._deferred_ticks += 1
            self._request_tick(generation)
            return

        output = self._pipeline.process(frame)
        self._last_output = output
        self._frames_processed += 1

        try:
            self._on_result(output.metrics)
        except Exception:
            logger.error(f"Result callback failed on frame {frame.sequence}, stopping run")
            self.stop()
            raise

        self._draw_surfaces(output)

        if self._status == EngineStatus.RUNNING and generation == self._generation:
            self._request_tick(generation)

    def _draw_surfaces(self, output: PipelineOutput) -> None:
        """Best-effort rendering into registered surfaces."""
        surfaces = self._surfaces
        try:
            if surfaces.overlay is not None:
                self._renderer.render(
                    surfaces.overlay, output.buffer, output.metrics, output.geometry
                )

            if surfaces.has_diagnostics:
                views = build_diagnostics(
                    output.buffer, self._pipeline.settings, output.geometry.horizon_y
                )
                if surfaces.grayscale is not None:
                    surfaces.grayscale.image = views.grayscale
                if surfaces.binary is not None:
                    surfaces.binary.image = views.binary
                if surfaces.edges is not None:
                    surfaces.edges.image = views.edges
                if surfaces.roi is not None:
                    surfaces.roi.image = views.roi
        except cv2.error as e:
            logger.warning(f"Overlay rendering skipped: {e}")

    @property
    def status(self) -> EngineStatus:
        return self._status

    @property
    def is_running(self) -> bool:
        return self._status == EngineStatus.RUNNING

    @property
    def pipeline(self) -> Optional[LanePipeline]:
        """Pipeline of the current (or last) run."""
        return self._pipeline

    @property
    def last_output(self) -> Optional[PipelineOutput]:
        """Output of the most recent pass of the current run."""
        return self._last_output

    @property
    def frames_processed(self) -> int:
        return self._frames_processed

    @property
    def deferred_ticks(self) -> int:
        return self._deferred_ticks
