import math
from typing import Iterable, List, Tuple

LatLon = Tuple[float, float]

EARTH_RADIUS_M = 6371000.0


def haversine_m(a: LatLon, b: LatLon) -> float:
    lat1, lon1 = map(math.radians, a)
    lat2, lon2 = map(math.radians, b)
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    x = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(x))


def bearing_deg(a: LatLon, b: LatLon) -> float:
    """
    Initial great-circle bearing (forward azimuth) from a to b.

    Args:
        a: Origin (lat, lon) in decimal degrees.
        b: Destination (lat, lon) in decimal degrees.

    Returns:
        Bearing in degrees, in [0, 360). Identical points give 0.
    """
    if a == b:
        return 0.0
    lat1, lon1 = map(math.radians, a)
    lat2, lon2 = map(math.radians, b)
    dlon = lon2 - lon1
    y = math.sin(dlon) * math.cos(lat2)
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(dlon)
    brng = (math.degrees(math.atan2(y, x)) + 360.0) % 360.0
    # -0.0 and float rounding can land exactly on 360
    return 0.0 if brng >= 360.0 else brng


def heading_at(points: List[LatLon], idx: int) -> float:
    # no next point at the end of the route
    if idx + 1 >= len(points):
        return 0.0
    return bearing_deg(points[idx], points[idx + 1])


def bounds(points: Iterable[LatLon]) -> Tuple[LatLon, LatLon]:
    pts = list(points)
    if not pts:
        raise ValueError("bounds of empty point list")
    lats = [p[0] for p in pts]
    lons = [p[1] for p in pts]
    return (min(lats), min(lons)), (max(lats), max(lons))


def is_latlon(p) -> bool:
    if isinstance(p, str):
        return False
    try:
        lat, lon = p
        lat = float(lat)
        lon = float(lon)
    except (TypeError, ValueError):
        return False
    return math.isfinite(lat) and math.isfinite(lon)
