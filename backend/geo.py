"""
Great-circle helpers shared by the catalog, display and scoring code.
"""

import math

EARTH_RADIUS_KM = 6371.0


def distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Calculate great-circle distance between two points in kilometers.

    Uses the Haversine formula. Symmetric, and zero for identical points.
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    a = (
        math.sin(delta_lat / 2) ** 2 +
        math.cos(lat1_rad) * math.cos(lat2_rad) *
        math.sin(delta_lon / 2) ** 2
    )
    # Rounding can push `a` slightly above 1 for antipodal points
    a = min(1.0, a)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def bearing_degrees(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Initial compass bearing from point 1 towards point 2, in [0, 360).

    Coincident points have no direction and yield 0.
    """
    if lat1 == lat2 and lon1 == lon2:
        return 0.0

    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lon = math.radians(lon2 - lon1)

    x = math.sin(delta_lon) * math.cos(lat2_rad)
    y = (
        math.cos(lat1_rad) * math.sin(lat2_rad) -
        math.sin(lat1_rad) * math.cos(lat2_rad) * math.cos(delta_lon)
    )

    bearing = math.degrees(math.atan2(x, y)) % 360.0
    # -0.0 % 360 and tiny negatives can land exactly on 360.0
    if bearing >= 360.0:
        bearing = 0.0
    return bearing


def offset_point(lat: float, lon: float, distance_deg: float, angle_rad: float) -> tuple[float, float]:
    """Shift a coordinate by ``distance_deg`` degrees along ``angle_rad`` (planar)."""
    return (
        lat + distance_deg * math.cos(angle_rad),
        lon + distance_deg * math.sin(angle_rad),
    )
