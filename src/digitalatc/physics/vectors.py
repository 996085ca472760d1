"""Vector mathematics for local simulation coordinates.

Local frame, in meters relative to a fixed origin:
    x: east
    y: north
    z: up

Typical usage example:
    from digitalatc.physics.vectors import Vector3

    position = Vector3(0.0, 0.0, 1000.0)
    position = position + Vector3.from_heading(90.0, 50.0)  # 50 m east
"""

import math
from dataclasses import dataclass


@dataclass
class Vector3:
    """3D vector in the local east/north/up frame.

    Attributes:
        x: East component (meters).
        y: North component (meters).
        z: Up component (meters).

    Examples:
        >>> Vector3(1.0, 2.0, 3.0) + Vector3(4.0, 5.0, 6.0)
        Vector3(x=5.0, y=7.0, z=9.0)
    """

    x: float
    y: float
    z: float

    def __add__(self, other: "Vector3") -> "Vector3":
        return Vector3(self.x + other.x, self.y + other.y, self.z + other.z)

    def horizontal_distance_to(self, other: "Vector3") -> float:
        """Distance to another point ignoring altitude.

        Trail arc length is measured over the ground, so climbs and
        descents do not shorten the visible trail.

        Examples:
            >>> Vector3(0.0, 0.0, 0.0).horizontal_distance_to(Vector3(3.0, 4.0, 900.0))
            5.0
        """
        return math.hypot(self.x - other.x, self.y - other.y)

    @classmethod
    def from_heading(cls, heading_deg: float, distance: float, climb: float = 0.0) -> "Vector3":
        """Build a displacement along a heading.

        Args:
            heading_deg: True heading in degrees (0 = north, 90 = east).
            distance: Horizontal distance in meters.
            climb: Vertical displacement in meters.

        Returns:
            Displacement vector.
        """
        heading_rad = math.radians(heading_deg)
        return cls(math.sin(heading_rad) * distance, math.cos(heading_rad) * distance, climb)

    def __str__(self) -> str:
        return f"Vector3(x={self.x:.2f}, y={self.y:.2f}, z={self.z:.2f})"
