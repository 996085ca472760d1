"""Breadcrumb trail of recent aircraft positions.

The trail is bounded by distance flown rather than by sample count or age:
samples are dropped from the old end once the path they span exceeds the
maximum trailing distance. Samples are taken on a fixed wall-clock cadence,
not on every physics tick.

Typical usage example:
    history = PositionHistory(max_distance_m=5000.0, interval_ms=50.0)
    history.record(position, timestamp_ms)
    trail = history.samples
"""

from dataclasses import dataclass

from digitalatc.physics.vectors import Vector3


@dataclass(frozen=True)
class PositionHistorySample:
    """One trail point.

    Attributes:
        x: East position (meters).
        y: North position (meters).
        z: Altitude (meters, local).
        cumulative_distance: Ground distance flown since the trail began.
        timestamp: Frame timestamp in milliseconds.
    """

    x: float
    y: float
    z: float
    cumulative_distance: float
    timestamp: float

    @property
    def position(self) -> Vector3:
        return Vector3(self.x, self.y, self.z)


class PositionHistory:
    """Arc-length bounded position buffer.

    Single writer (the dynamics tick), many readers. Readers get tuples, so
    the buffer can be trimmed without affecting a snapshot already handed out.
    """

    def __init__(self, max_distance_m: float = 5000.0, interval_ms: float = 50.0) -> None:
        self.max_distance_m = max_distance_m
        self.interval_ms = interval_ms
        self._samples: list[PositionHistorySample] = []
        self._cumulative_distance = 0.0
        self._last_sample_ms: float | None = None

    def __len__(self) -> int:
        return len(self._samples)

    @property
    def samples(self) -> tuple[PositionHistorySample, ...]:
        return tuple(self._samples)

    def seed(self, position: Vector3, timestamp_ms: float) -> None:
        """Add the starting point if the trail is empty.

        Does not start the sampling cadence, so the first record() after
        seeding always samples.
        """
        if not self._samples:
            self._samples.append(
                PositionHistorySample(position.x, position.y, position.z, 0.0, timestamp_ms)
            )

    def is_due(self, timestamp_ms: float) -> bool:
        """True if enough time has passed since the last sample."""
        return self._last_sample_ms is None or timestamp_ms - self._last_sample_ms >= self.interval_ms

    def record(self, position: Vector3, timestamp_ms: float) -> bool:
        """Append a sample if the cadence allows it, then trim the old end.

        Args:
            position: Current local position.
            timestamp_ms: Frame timestamp.

        Returns:
            True if a sample was appended.
        """
        if not self.is_due(timestamp_ms):
            return False

        if self._samples:
            self._cumulative_distance += self._samples[-1].position.horizontal_distance_to(position)

        self._samples.append(
            PositionHistorySample(
                position.x, position.y, position.z, self._cumulative_distance, timestamp_ms
            )
        )
        self._trim()
        self._last_sample_ms = timestamp_ms
        return True

    def _trim(self) -> None:
        newest = self._samples[-1].cumulative_distance
        drop = 0
        while len(self._samples) - drop > 1:
            if newest - self._samples[drop].cumulative_distance <= self.max_distance_m:
                break
            drop += 1
        if drop:
            del self._samples[:drop]

    def trail_length(self) -> float:
        """Ground distance spanned by the retained samples."""
        if len(self._samples) < 2:
            return 0.0
        return self._samples[-1].cumulative_distance - self._samples[0].cumulative_distance

    def clear(self) -> None:
        self._samples.clear()
        self._cumulative_distance = 0.0
        self._last_sample_ms = None
