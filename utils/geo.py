"""
Great-circle distance and the geofence gate used for pickup/delivery confirmation.
"""

import math
from typing import Any

EARTH_RADIUS_METERS = 6_371_000.0
DEFAULT_RADIUS_METERS = 500.0


def _coords(point: Any) -> tuple[float, float]:
    if isinstance(point, (tuple, list)):
        latitude, longitude = point
    else:
        latitude, longitude = point.latitude, point.longitude
    return float(latitude), float(longitude)


def haversine_distance(a: Any, b: Any) -> float:
    """
    Distance in meters between two points.

    Points may be (lat, lon) tuples or any object with latitude/longitude
    attributes (LocationDTO, RiderPosition).

    Examples:
        (24.8607, 67.0011) → (24.8607, 67.0011) = 0m
        (24.8607, 67.0011) → (24.8700, 67.0100) ≈ 1,370m
    """
    lat1, lon1 = _coords(a)
    lat2, lon2 = _coords(b)

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_phi = math.radians(lat2 - lat1)
    delta_lambda = math.radians(lon2 - lon1)

    h = (math.sin(delta_phi / 2) ** 2
         + math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda / 2) ** 2)
    # Rounding can push h a hair past 1 for antipodal points
    h = min(1.0, max(0.0, h))
    return 2 * EARTH_RADIUS_METERS * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def within_range(current: Any, target: Any, radius_meters: float = DEFAULT_RADIUS_METERS) -> bool:
    """True when the two points are at most radius_meters apart (boundary inclusive)."""
    return haversine_distance(current, target) <= radius_meters
