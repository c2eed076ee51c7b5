"""
Route optimization package.

Exports the great-circle distance primitives and the simulated annealing
waypoint optimizer used to sequence field appointments.
"""

from .distance import (
    EARTH_RADIUS_KM,
    haversine_km,
    route_distance_km,
    waypoint_distance_km
)

from .optimizer import (
    RouteOptimizer,
    RouteResult,
    optimize_waypoint_order
)

__all__ = [
    "EARTH_RADIUS_KM",
    "haversine_km",
    "route_distance_km",
    "waypoint_distance_km",
    "RouteOptimizer",
    "RouteResult",
    "optimize_waypoint_order",
]
