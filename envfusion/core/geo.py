"""
Geographic helpers shared by source clients and the fusion engine.
"""
import math
from typing import Iterable, Optional, Tuple

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two WGS84 points in kilometres."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(a)))


def bounding_box(lat: float, lon: float, radius_km: float) -> Tuple[float, float, float, float]:
    """
    Approximate (min_lon, min_lat, max_lon, max_lat) box around a point.

    Used to build bbox query parameters; clamped to valid coordinates.
    """
    d_lat = radius_km / 111.0
    cos_lat = max(math.cos(math.radians(lat)), 0.01)
    d_lon = radius_km / (111.0 * cos_lat)
    return (
        max(-180.0, lon - d_lon),
        max(-90.0, lat - d_lat),
        min(180.0, lon + d_lon),
        min(90.0, lat + d_lat),
    )


def nearest(
    lat: float,
    lon: float,
    candidates: Iterable[Tuple[float, float, object]],
) -> Optional[Tuple[float, object]]:
    """
    Pick the candidate closest to (lat, lon).

    Args:
        candidates: (lat, lon, item) tuples

    Returns:
        (distance_km, item) or None if there are no candidates
    """
    best: Optional[Tuple[float, object]] = None
    for c_lat, c_lon, item in candidates:
        distance = haversine_km(lat, lon, c_lat, c_lon)
        if best is None or distance < best[0]:
            best = (distance, item)
    return best
