"""
Distance primitives for the route optimizer.

Great-circle (haversine) distance in kilometres. This is an approximation
of travel cost; road distances come from the directions provider after the
order is chosen.
"""

import math
from typing import Sequence

from models import Waypoint
from scheduler.exceptions import RouteInputInvalid

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two WGS84 points."""
    if lat1 == lat2 and lon1 == lon2:
        return 0.0
    if not all(math.isfinite(c) for c in (lat1, lon1, lat2, lon2)):
        raise RouteInputInvalid(f"Non-finite coordinate in ({lat1}, {lon1}) -> ({lat2}, {lon2})")

    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (math.sin(d_lat / 2) ** 2
         + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2)
    # Rounding can push `a` a hair past 1.0 for antipodal points
    a = min(1.0, a)
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def waypoint_distance_km(a: Waypoint, b: Waypoint) -> float:
    return haversine_km(a.latitude, a.longitude, b.latitude, b.longitude)


def route_distance_km(route: Sequence[Waypoint]) -> float:
    """Sum of consecutive legs. Open path: no return to the first point."""
    return sum(
        waypoint_distance_km(route[i], route[i + 1])
        for i in range(len(route) - 1)
    )
