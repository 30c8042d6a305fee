#!/usr/bin/env python3
"""
Lane engine and frame loop tests.

The frame loop is stepped by hand so every display frame is explicit.

Run:
    pytest tests/test_engine.py -v
"""

import time
from unittest.mock import Mock

import cv2
import pytest

from lanescope.capture import StaticFrameSource
from lanescope.config import PipelineSettings
from lanescope.display.renderer import Surface, SurfaceSet
from lanescope.lane.engine import EngineStatus, LaneEngine
from lanescope.lane.scoring import Feasibility
from lanescope.utils.frame_loop import FrameLoop
from lanescope.utils.timing import measure_time


@pytest.fixture
def loop():
    return FrameLoop(target_fps=1000)


@pytest.fixture
def engine(loop):
    return LaneEngine(loop)


# ==============================================================================
# FrameLoop
# ==============================================================================

class TestFrameLoop:
    """Test the cooperative frame scheduler."""

    def test_step_runs_pending_once(self, loop):
        calls = []
        loop.request(calls.append)
        loop.request(calls.append)

        assert loop.step() == 2
        assert len(calls) == 2
        assert loop.step() == 0
        assert loop.frame_count == 2

    def test_requests_during_step_wait_for_next_frame(self, loop):
        calls = []

        def rearm(ts):
            calls.append(ts)
            loop.request(rearm)

        loop.request(rearm)
        loop.step()
        assert len(calls) == 1
        assert loop.pending == 1

    def test_run_stops_when_idle(self, loop):
        loop.request(lambda ts: None)
        assert loop.run() == 1

    def test_run_max_frames(self, loop):
        def rearm(ts):
            loop.request(rearm)

        loop.request(rearm)
        assert loop.run(max_frames=5) == 5

    def test_stop_and_clear(self, loop):
        def stopper(ts):
            loop.request(stopper)
            loop.stop()

        loop.request(stopper)
        assert loop.run() == 1
        loop.clear()
        assert loop.pending == 0

    def test_invalid_target_fps(self):
        with pytest.raises(ValueError):
            FrameLoop(target_fps=0)

    def test_fps_defaults_to_target(self, loop):
        assert loop.fps == loop.target_fps == 1000

    def test_run_paces_frames(self):
        paced = FrameLoop(target_fps=50)

        def rearm(ts):
            paced.request(rearm)

        paced.request(rearm)
        started = time.monotonic()
        paced.run(max_frames=5)

        # Four waits of one 20 ms frame interval each
        assert time.monotonic() - started >= 0.08
        assert 0 < paced.fps <= 50.5


class TestMeasureTime:
    """Test pass latency measurement."""

    def test_reading_frozen_after_block(self):
        with measure_time() as watch:
            time.sleep(0.01)

        assert watch.stopped
        reading = watch.elapsed_ms
        assert reading >= 10.0
        time.sleep(0.005)
        assert watch.elapsed_ms == reading

    def test_stopped_on_error(self):
        with pytest.raises(RuntimeError):
            with measure_time() as watch:
                raise RuntimeError("boom")
        assert watch.stopped


# ==============================================================================
# Lifecycle
# ==============================================================================

class TestEngineLifecycle:
    """Test start/stop transitions and per-frame scheduling."""

    def test_start_processes_immediately(self, engine, loop, road_image):
        results = []
        engine.start(StaticFrameSource(road_image), PipelineSettings(), results.append)

        assert engine.status == EngineStatus.RUNNING
        assert len(results) == 1
        assert loop.pending == 1

    def test_one_pass_per_frame(self, engine, loop, road_image):
        results = []
        engine.start(StaticFrameSource(road_image), PipelineSettings(), results.append)
        for _ in range(4):
            loop.step()

        assert len(results) == 5
        assert engine.frames_processed == 5
        assert loop.pending == 1

    def test_scenario_reaches_clear(self, engine, loop, road_image):
        results = []
        engine.start(StaticFrameSource(road_image), PipelineSettings(roi_height=45), results.append)
        loop.step()
        loop.step()

        assert results[-1].confidence == pytest.approx(65.7)
        assert results[-1].left_shift_feasibility == Feasibility.CLEAR
        assert results[-1].right_shift_feasibility == Feasibility.CLEAR

    def test_not_ready_source_defers(self, engine, loop, road_image):
        """No pass runs until the source reports ready."""
        results = []
        engine.start(StaticFrameSource(road_image, warmup_polls=2), PipelineSettings(), results.append)

        assert results == []
        loop.step()
        assert results == []
        assert engine.deferred_ticks == 2

        loop.step()
        assert len(results) == 1
        assert engine.is_running

    def test_missing_frame_defers(self, engine, loop, road_image):
        source = StaticFrameSource(road_image)
        source.read_frame = Mock(side_effect=[None, source.read_frame()])
        results = []

        engine.start(source, PipelineSettings(), results.append)
        assert results == []
        loop.step()
        assert len(results) == 1

    def test_stop_is_idempotent(self, engine, loop, road_image):
        results = []
        engine.start(StaticFrameSource(road_image), PipelineSettings(), results.append)

        engine.stop()
        engine.stop()
        assert engine.status == EngineStatus.STOPPED

        loop.step()
        assert len(results) == 1
        assert loop.pending == 0

    def test_stop_before_start(self, engine):
        engine.stop()
        assert not engine.is_running

    def test_stop_clears_state(self, engine, loop, road_image):
        engine.start(StaticFrameSource(road_image), PipelineSettings(), lambda m: None)
        loop.step()
        engine.stop()

        state = engine.pipeline.state
        assert state.last_left_x is None
        assert state.last_right_x is None
        assert state.last_confidence == 0.0

    def test_stop_from_result_callback(self, engine, loop, road_image):
        """Stopping inside on_result finishes that pass and schedules nothing."""
        results = []

        def on_result(metrics):
            results.append(metrics)
            engine.stop()

        engine.start(StaticFrameSource(road_image), PipelineSettings(), on_result)

        assert len(results) == 1
        assert loop.pending == 0

    def test_result_callback_errors_propagate(self, engine, road_image):
        def on_result(metrics):
            raise RuntimeError("sink failed")

        with pytest.raises(RuntimeError):
            engine.start(StaticFrameSource(road_image), PipelineSettings(), on_result)

    def test_result_callback_error_stops_run(self, engine, loop, road_image):
        on_result = Mock(side_effect=[None, RuntimeError("sink failed")])
        engine.start(StaticFrameSource(road_image), PipelineSettings(), on_result)

        with pytest.raises(RuntimeError):
            loop.step()

        assert engine.status == EngineStatus.STOPPED
        assert not engine.is_running
        assert loop.pending == 0


class TestEngineRestart:
    """Test that a new run never sees state or ticks of an earlier one."""

    def test_restart_tracks_from_scratch(self, engine, loop, road_image):
        results = []
        engine.start(StaticFrameSource(road_image), PipelineSettings(), results.append)
        for _ in range(5):
            loop.step()
        engine.stop()

        engine.start(StaticFrameSource(road_image), PipelineSettings(), results.append)
        output = engine.last_output

        assert results[-1].confidence == pytest.approx(30.0)
        assert output.geometry.left.near.x == output.scan.near_left.x
        assert output.geometry.right.near.x == output.scan.near_right.x

    def test_restart_while_running_drops_stale_tick(self, engine, loop, road_image):
        first, second = [], []
        engine.start(StaticFrameSource(road_image), PipelineSettings(), first.append)
        engine.start(StaticFrameSource(road_image), PipelineSettings(), second.append)

        assert loop.pending == 2
        loop.step()

        assert len(first) == 1
        assert len(second) == 2
        assert engine.frames_processed == 2
        assert loop.pending == 1


# ==============================================================================
# Surfaces
# ==============================================================================

class TestEngineSurfaces:
    """Test overlay and diagnostic drawing side channels."""

    def test_overlay_drawn_at_frame_size(self, loop, road_image):
        surfaces = SurfaceSet(overlay=Surface("overlay"))
        engine = LaneEngine(loop, surfaces=surfaces)

        engine.start(StaticFrameSource(road_image), PipelineSettings(), lambda m: None)

        assert surfaces.overlay.image.shape == (360, 640, 3)

    def test_overlay_drawn_at_surface_size(self, loop, road_image):
        surfaces = SurfaceSet(overlay=Surface("overlay", (320, 180)))
        engine = LaneEngine(loop, surfaces=surfaces)

        engine.start(StaticFrameSource(road_image), PipelineSettings(), lambda m: None)

        assert surfaces.overlay.image.shape == (180, 320, 3)

    def test_diagnostic_surfaces(self, loop, road_image):
        surfaces = SurfaceSet(
            grayscale=Surface("grayscale"),
            binary=Surface("binary"),
            edges=Surface("edges"),
            roi=Surface("roi"),
        )
        engine = LaneEngine(loop)
        engine.register_surfaces(surfaces)

        engine.start(StaticFrameSource(road_image), PipelineSettings(), lambda m: None)

        assert surfaces.grayscale.image.shape == (360, 640)
        assert set(surfaces.binary.image.ravel().tolist()) <= {0, 255}
        assert surfaces.edges.image.any()
        assert surfaces.roi.image.shape == (360, 640, 3)

    def test_render_failure_does_not_stop_run(self, loop, road_image):
        renderer = Mock()
        renderer.render.side_effect = cv2.error("draw failed")
        engine = LaneEngine(loop, surfaces=SurfaceSet(overlay=Surface("overlay")), renderer=renderer)
        results = []

        engine.start(StaticFrameSource(road_image), PipelineSettings(), results.append)
        loop.step()

        assert len(results) == 2
        assert engine.is_running

    def test_no_surfaces_skips_rendering(self, loop, road_image):
        renderer = Mock()
        engine = LaneEngine(loop, renderer=renderer)

        engine.start(StaticFrameSource(road_image), PipelineSettings(), lambda m: None)

        renderer.render.assert_not_called()
