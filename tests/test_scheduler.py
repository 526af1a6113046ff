"""Tests for tick schedulers and threaded engine operation."""

import threading
import time

import numpy as np
import pytest

from autotune.analysis import PitchDetector
from autotune.core import DetectionResult
from autotune.engine import AutoTune, IntervalScheduler, ManualScheduler
from autotune.simulation import (
    RampCommand,
    SimulatedAnalyser,
    SimulatedGraph,
    SimulatedPitchShifter,
)


def wait_until(predicate, timeout: float = 2.0) -> bool:
    """Poll until predicate() is true or the timeout expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.002)
    return predicate()


class TestIntervalScheduler:
    """Tests for the threaded scheduler."""

    def test_fires_repeatedly(self):
        scheduler = IntervalScheduler()
        calls = []
        scheduler.start(lambda: calls.append(1), 0.005)

        try:
            assert wait_until(lambda: len(calls) >= 3)
            assert scheduler.active
        finally:
            scheduler.cancel()

    def test_no_callback_after_cancel(self):
        scheduler = IntervalScheduler()
        calls = []
        scheduler.start(lambda: calls.append(1), 0.005)
        assert wait_until(lambda: len(calls) >= 1)

        scheduler.cancel()
        count = len(calls)
        time.sleep(0.05)

        assert len(calls) == count
        assert not scheduler.active

    def test_cancel_waits_for_running_tick(self):
        scheduler = IntervalScheduler()
        started = threading.Event()
        finished = []

        def slow_tick():
            started.set()
            time.sleep(0.05)
            finished.append(1)

        scheduler.start(slow_tick, 0.001)
        assert started.wait(2.0)
        scheduler.cancel()

        assert finished

    def test_callback_errors_do_not_stop_ticks(self):
        scheduler = IntervalScheduler()
        calls = []

        def flaky():
            calls.append(1)
            raise RuntimeError("bad tick")

        scheduler.start(flaky, 0.005)
        try:
            assert wait_until(lambda: len(calls) >= 3)
        finally:
            scheduler.cancel()

    def test_cancel_from_inside_callback(self):
        scheduler = IntervalScheduler()
        calls = []

        def once():
            calls.append(1)
            scheduler.cancel()

        scheduler.start(once, 0.005)
        assert wait_until(lambda: len(calls) >= 1)
        time.sleep(0.05)

        assert len(calls) == 1
        assert not scheduler.active

    def test_start_while_active_is_noop(self):
        scheduler = IntervalScheduler()
        first, second = [], []
        scheduler.start(lambda: first.append(1), 0.005)
        scheduler.start(lambda: second.append(1), 0.005)

        try:
            assert wait_until(lambda: len(first) >= 2)
            assert second == []
        finally:
            scheduler.cancel()

    def test_restart_after_cancel(self):
        scheduler = IntervalScheduler()
        calls = []
        scheduler.start(lambda: calls.append(1), 0.005)
        scheduler.cancel()

        scheduler.start(lambda: calls.append(2), 0.005)
        try:
            assert wait_until(lambda: 2 in calls)
        finally:
            scheduler.cancel()

    @pytest.mark.parametrize("interval", [0, -0.1])
    def test_invalid_interval(self, interval):
        with pytest.raises(ValueError, match="interval"):
            IntervalScheduler().start(lambda: None, interval)


class TestManualScheduler:
    """Tests for the deterministic scheduler."""

    def test_advance_fires_ticks(self):
        scheduler = ManualScheduler()
        calls = []
        scheduler.start(lambda: calls.append(1), 0.03)

        assert scheduler.advance(4) == 4
        assert len(calls) == 4
        assert scheduler.ticks_fired == 4

    def test_inactive_until_started(self):
        scheduler = ManualScheduler()
        assert not scheduler.active
        assert scheduler.advance(3) == 0

    def test_cancel_mid_advance(self):
        scheduler = ManualScheduler()
        calls = []

        def tick():
            calls.append(1)
            if len(calls) == 2:
                scheduler.cancel()

        scheduler.start(tick, 0.03)
        assert scheduler.advance(10) == 2


class TestThreadedEngine:
    """AutoTune driven by a real IntervalScheduler."""

    def test_stop_is_final(self):
        graph = SimulatedGraph(sample_rate=44100)
        engine = AutoTune(graph, scheduler=IntervalScheduler())
        analyser = graph.find(SimulatedAnalyser)[0]
        shifter = graph.find(SimulatedPitchShifter)[0]

        t = np.arange(1024) / 44100
        analyser.feed((0.5 * np.sin(2 * np.pi * 450.0 * t)).astype(np.float32))

        engine.config.tick_interval = 0.005
        engine.start()
        try:
            assert wait_until(lambda: engine.stats.corrected >= 2)
        finally:
            engine.stop()

        n_commands = len(shifter.commands)
        time.sleep(0.05)

        assert len(shifter.commands) == n_commands
        assert shifter.commands[-1] == RampCommand(0.0, 0.1)
        assert shifter.commands.count(RampCommand(0.0, 0.1)) == 1
        engine.dispose()

    def test_disable_during_tick_leaves_shift_at_zero(self):
        """A correction computed before a disable must not land after it."""

        class BlockingDetector(PitchDetector):
            def __init__(self):
                super().__init__()
                self.entered = threading.Event()
                self.release = threading.Event()

            def detect(self, frame, sample_rate, fmin=None, fmax=None):
                self.entered.set()
                self.release.wait(2.0)
                return DetectionResult(frequency_hz=450.0, confidence=0.9)

        graph = SimulatedGraph(sample_rate=44100)
        detector = BlockingDetector()
        engine = AutoTune(graph, scheduler=IntervalScheduler(), detector=detector)
        shifter = graph.find(SimulatedPitchShifter)[0]

        engine.config.tick_interval = 0.005
        engine.start()
        try:
            assert detector.entered.wait(2.0)
            engine.set_state({"enabled": False})
            detector.release.set()
            assert wait_until(lambda: engine.stats.skipped >= 1)

            assert shifter.commands[-1] == RampCommand(0.0, 0.1)
            state = engine.get_state()
            assert state.last_shift_semitones == 0.0
            assert state.target_midi is None
        finally:
            engine.dispose()
