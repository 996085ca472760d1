"""Straight-line movers for background traffic contacts.

Traffic does not seek targets or react to other aircraft; each contact
keeps its heading, speed and altitude and only exists so renderers have a
moving position to draw.
"""

import math
from dataclasses import dataclass
from typing import Any

from digitalatc.physics.units import KT_TO_MPS, normalize_heading
from digitalatc.physics.vectors import Vector3

MAX_TRAFFIC_DT_S = 0.1


@dataclass(frozen=True)
class TrafficPosition:
    """Snapshot of one contact for renderers."""

    id: str
    x: float
    y: float
    z: float
    heading_deg: float
    speed_kt: float
    callsign: str | None = None


class TrafficMovement:
    """Integrates one contact along a fixed heading.

    Examples:
        >>> mover = TrafficMovement(heading_deg=90.0, speed_kt=100.0)
        >>> mover.update(0.1)
        >>> round(mover.get_position()[0], 2)
        5.14
    """

    def __init__(
        self,
        initial_x: float = 0.0,
        initial_y: float = 0.0,
        initial_z: float = 0.0,
        heading_deg: float = 0.0,
        speed_kt: float = 100.0,
    ) -> None:
        self._position = Vector3(initial_x, initial_y, initial_z)
        self._heading_deg = normalize_heading(heading_deg)
        self.speed_kt = speed_kt
        self._speed_mps = speed_kt * KT_TO_MPS

    @property
    def heading_deg(self) -> float:
        return self._heading_deg

    def update(self, dt: float) -> None:
        """Move forward by speed * dt. Intervals outside (0, 0.1] s are ignored."""
        if dt <= 0 or dt > MAX_TRAFFIC_DT_S:
            return
        step = Vector3.from_heading(self._heading_deg, self._speed_mps * dt)
        self._position = Vector3(self._position.x + step.x, self._position.y + step.y, self._position.z)

    def get_position(self) -> tuple[float, float, float, float]:
        """Return (x, y, z, heading_deg)."""
        return self._position.x, self._position.y, self._position.z, self._heading_deg

    def set_position(self, x: float, y: float, z: float, heading_deg: float | None = None) -> None:
        self._position = Vector3(x, y, z)
        if heading_deg is not None:
            self._heading_deg = normalize_heading(heading_deg)


@dataclass(frozen=True)
class TrafficContact:
    """A traffic contact as declared by an ADD_TRAFFIC event.

    Position is given either in local meters (`x`, `y`) or geodetically
    (`lat`, `lon`); altitude either as local `z` meters or `altitudeFt`.
    """

    id: str
    heading_deg: float = 0.0
    speed_kt: float = 100.0
    x: float | None = None
    y: float | None = None
    z: float | None = None
    lat: float | None = None
    lon: float | None = None
    altitude_ft: float | None = None
    callsign: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any], fallback_id: str) -> "TrafficContact":
        """Build from an event's `traffic` mapping.

        Non-numeric or non-finite values are treated as absent.
        """

        def number(*keys: str) -> float | None:
            for key in keys:
                value = data.get(key)
                if isinstance(value, bool) or not isinstance(value, (int, float)):
                    continue
                if math.isfinite(value):
                    return float(value)
            return None

        raw_id = data.get("id")
        heading = number("headingDeg", "heading")
        speed = number("groundspeedKt", "speedKt")
        return cls(
            id=str(raw_id) if raw_id is not None else fallback_id,
            heading_deg=heading if heading is not None else 0.0,
            speed_kt=speed if speed is not None else 100.0,
            x=number("x"),
            y=number("y"),
            z=number("z"),
            lat=number("lat"),
            lon=number("lon"),
            altitude_ft=number("altitudeFt"),
            callsign=data.get("callsign"),
        )
