"""Small-area projection of geodetic coordinates onto the local frame.

Scenario documents place the own ship and traffic by latitude/longitude.
Over the few tens of kilometers a scenario covers, a tangent plane at the
scenario origin is accurate enough, so offsets are scaled by the WGS84
radii of curvature at the origin latitude.
"""

import numpy as np

WGS84_A_M = 6378137.0
WGS84_E2 = 6.69437999014e-3


def radii_of_curvature(lat_deg: float) -> tuple[float, float]:
    """Meridional and prime-vertical radii (meters) at a latitude."""
    sin_lat = np.sin(np.deg2rad(lat_deg))
    w = np.sqrt(1.0 - WGS84_E2 * sin_lat * sin_lat)
    meridional = WGS84_A_M * (1.0 - WGS84_E2) / w**3
    prime_vertical = WGS84_A_M / w
    return float(meridional), float(prime_vertical)


def geodetic_to_local(
    lat_deg: float, lon_deg: float, origin_lat_deg: float, origin_lon_deg: float
) -> tuple[float, float]:
    """Project a geodetic point to (east, north) meters from an origin.

    Examples:
        >>> east, north = geodetic_to_local(37.72, -122.2152, 37.7148, -122.2152)
        >>> round(east, 3), round(north)
        (0.0, 577)
    """
    meridional, prime_vertical = radii_of_curvature(origin_lat_deg)
    d_lat = np.deg2rad(lat_deg - origin_lat_deg)
    # Wrap longitude difference across the antimeridian
    d_lon = np.deg2rad((lon_deg - origin_lon_deg + 180.0) % 360.0 - 180.0)
    east = d_lon * prime_vertical * np.cos(np.deg2rad(origin_lat_deg))
    north = d_lat * meridional
    return float(east), float(north)
