"""Proximity calculation for geofence checks.

Great-circle distance between two WGS84 coordinates using the
haversine formula on a spherical Earth.
"""

import math

from proxyfail.common.constants import GeoConstants


def distance_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute the great-circle distance between two points.

    Args:
        lat1: Latitude of the first point (degrees)
        lon1: Longitude of the first point (degrees)
        lat2: Latitude of the second point (degrees)
        lon2: Longitude of the second point (degrees)

    Returns:
        Distance in meters, always >= 0. Identical points give exactly 0.
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    # Rounding near antipodes can push a just past 1
    a = min(1.0, max(0.0, a))

    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return GeoConstants.EARTH_RADIUS_METERS * c


def round_meters(distance: float) -> int:
    """Round a distance half-up to a whole meter."""
    return int(math.floor(distance + 0.5))
