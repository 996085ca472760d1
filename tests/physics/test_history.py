"""Tests for the distance-bounded position trail."""

import pytest

from digitalatc.physics.history import PositionHistory
from digitalatc.physics.vectors import Vector3


class TestPositionHistory:
    """Test suite for PositionHistory."""

    def test_seed_only_when_empty(self) -> None:
        """Test seeding adds the start point once."""
        history = PositionHistory()
        history.seed(Vector3(1.0, 2.0, 3.0), 0.0)
        history.seed(Vector3(9.0, 9.0, 9.0), 10.0)

        assert len(history) == 1
        assert history.samples[0].position == Vector3(1.0, 2.0, 3.0)

    def test_first_record_after_seed_always_samples(self) -> None:
        """Test seeding does not start the sampling cadence."""
        history = PositionHistory(interval_ms=50.0)
        history.seed(Vector3(0.0, 0.0, 0.0), 0.0)

        assert history.record(Vector3(5.0, 0.0, 0.0), 10.0)
        assert len(history) == 2

    def test_sampling_cadence(self) -> None:
        """Test samples are taken at most once per interval."""
        history = PositionHistory(interval_ms=50.0)

        assert history.record(Vector3(0.0, 0.0, 0.0), 0.0)
        assert not history.record(Vector3(1.0, 0.0, 0.0), 20.0)
        assert not history.record(Vector3(2.0, 0.0, 0.0), 49.0)
        assert history.record(Vector3(3.0, 0.0, 0.0), 50.0)

        assert [s.timestamp for s in history.samples] == [0.0, 50.0]

    def test_cumulative_distance_is_horizontal(self) -> None:
        """Test climbing in place adds no trail distance."""
        history = PositionHistory(interval_ms=0.0)
        history.record(Vector3(0.0, 0.0, 0.0), 0.0)
        history.record(Vector3(0.0, 0.0, 500.0), 1.0)
        history.record(Vector3(3.0, 4.0, 500.0), 2.0)

        assert [s.cumulative_distance for s in history.samples] == [0.0, 0.0, 5.0]

    def test_trim_to_max_distance(self) -> None:
        """Test the old end is dropped once the trail exceeds its maximum length."""
        history = PositionHistory(max_distance_m=100.0, interval_ms=50.0)
        for i in range(10):
            history.record(Vector3(30.0 * i, 0.0, 0.0), 50.0 * i)

        assert history.trail_length() == pytest.approx(90.0)
        assert history.samples[0].x == pytest.approx(180.0)
        assert history.samples[-1].x == pytest.approx(270.0)

    def test_single_sample_never_trimmed(self) -> None:
        """Test a jump longer than the maximum keeps the newest sample."""
        history = PositionHistory(max_distance_m=10.0, interval_ms=0.0)
        history.record(Vector3(0.0, 0.0, 0.0), 0.0)
        history.record(Vector3(1000.0, 0.0, 0.0), 1.0)

        assert len(history) == 1
        assert history.samples[0].x == 1000.0
        assert history.trail_length() == 0.0

    def test_samples_snapshot_is_immutable(self) -> None:
        """Test a snapshot is not affected by later trimming."""
        history = PositionHistory(max_distance_m=10.0, interval_ms=0.0)
        history.record(Vector3(0.0, 0.0, 0.0), 0.0)
        snapshot = history.samples
        history.record(Vector3(100.0, 0.0, 0.0), 1.0)

        assert len(snapshot) == 1
        assert snapshot[0].x == 0.0

    def test_clear(self) -> None:
        """Test clear empties the trail and restarts the cadence."""
        history = PositionHistory(interval_ms=50.0)
        history.record(Vector3(10.0, 0.0, 0.0), 0.0)
        history.clear()

        assert len(history) == 0
        assert history.record(Vector3(0.0, 0.0, 0.0), 1.0)
        assert history.samples[0].cumulative_distance == 0.0
