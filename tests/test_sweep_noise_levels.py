"""Tests for the SweepNoiseLevels use-case and sweep trackers."""
import numpy as np
import pytest

from tiny_unet.domain.engine.forward import forward_pass
from tiny_unet.domain.interfaces.sweep_tracker import SweepTracker
from tiny_unet.domain.use_cases.sweep_noise_levels import SweepNoiseLevels
from tiny_unet.infrastructure.observability import ConsoleTracker, SilentTracker


class RecordingTracker(SweepTracker):
    """Tracker that records every event it receives."""

    def __init__(self):
        self.events = []

    def on_sweep_start(self, total_steps):
        self.events.append(("start", total_steps))

    def on_step_end(self, step, sigma, output_norm):
        self.events.append(("step", step, sigma, output_norm))

    def on_sweep_end(self):
        self.events.append(("end",))


class TestSweepNoiseLevels:
    """Tests for the sweep use-case."""

    def test_one_result_per_sigma(self, seeded_model, sample_input):
        sigmas = [0.0, 0.25, 0.5, 1.0]

        results = SweepNoiseLevels(seeded_model, sample_input, sigmas, SilentTracker()).run()

        assert [r.sigma for r in results] == sigmas
        for result in results:
            expected = forward_pass(seeded_model, sample_input, result.sigma)
            assert result.cnoise == expected.cnoise
            np.testing.assert_array_equal(result.output, expected.output.data)

    def test_cnoise_increases_along_sweep(self, seeded_model, sample_input):
        results = SweepNoiseLevels(
            seeded_model, sample_input, [0.1, 0.2, 0.4, 0.8], SilentTracker()
        ).run()
        cnoises = [r.cnoise for r in results]
        assert all(a < b for a, b in zip(cnoises, cnoises[1:]))

    def test_tracker_lifecycle(self, seeded_model, sample_input):
        tracker = RecordingTracker()

        SweepNoiseLevels(seeded_model, sample_input, [0.2, 0.6], tracker).run()

        assert tracker.events[0] == ("start", 2)
        assert [event[:3] for event in tracker.events[1:3]] == [("step", 0, 0.2), ("step", 1, 0.6)]
        assert all(event[3] >= 0.0 for event in tracker.events[1:3])
        assert tracker.events[-1] == ("end",)

    def test_tracker_closed_on_failure(self, seeded_model):
        from tiny_unet.domain.entities.tensor import ActivationTensor
        from tiny_unet.domain.errors import ShapeMismatchError

        tracker = RecordingTracker()
        sweep = SweepNoiseLevels(seeded_model, ActivationTensor.zeros(1, 3, 3), [0.5], tracker)

        with pytest.raises(ShapeMismatchError):
            sweep.run()
        assert tracker.events[-1] == ("end",)

    def test_empty_sweep(self, seeded_model, sample_input):
        tracker = RecordingTracker()
        assert SweepNoiseLevels(seeded_model, sample_input, [], tracker).run() == []
        assert tracker.events == [("start", 0), ("end",)]


class TestSweepTrackerInterface:
    """Tests for the SweepTracker abstract interface."""

    def test_all_methods_are_abstract(self):
        assert {"on_sweep_start", "on_step_end", "on_sweep_end"}.issubset(
            SweepTracker.__abstractmethods__
        )


class TestConsoleTracker:
    """Tests for ConsoleTracker implementation."""

    def test_console_tracker_implements_interface(self):
        assert isinstance(ConsoleTracker(), SweepTracker)

    def test_console_tracker_can_complete_sweep_cycle(self):
        tracker = ConsoleTracker()

        tracker.on_sweep_start(total_steps=3)
        for step, sigma in enumerate([0.0, 0.5, 1.0]):
            tracker.on_step_end(step, sigma, output_norm=0.1 * step)
        tracker.on_sweep_end()

        assert tracker._pbar is None

    def test_step_before_start_is_ignored(self):
        tracker = ConsoleTracker()
        tracker.on_step_end(0, 0.5, 1.0)
        tracker.on_sweep_end()


class TestSilentTracker:
    """Tests for SilentTracker implementation."""

    def test_silent_tracker_produces_no_output(self, capsys):
        tracker = SilentTracker()

        tracker.on_sweep_start(total_steps=2)
        tracker.on_step_end(0, 0.1, 1.0)
        tracker.on_sweep_end()

        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err == ""
