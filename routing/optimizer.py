"""
Route Optimizer.

Orders field-appointment waypoints to approximately minimize total
great-circle distance, using simulated annealing over 2-opt moves:

1. Keep the fixed start (and optional fixed end) in place; shuffle the rest.
2. At each temperature level, try N random 2-opt reversals of a segment
   strictly between the fixed endpoints.
3. Accept improvements always, and worse routes with probability
   exp(-delta / temperature) (Metropolis criterion).
4. Cool geometrically until the stop temperature; return the best route seen.

The result is a bounded-time heuristic, not a proven optimum.
"""

import logging
import math
import random
import time
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

from pydantic import ValidationError

from models import Waypoint
from scheduler.config import AnnealingConfig
from scheduler.exceptions import RouteInputInvalid
from .distance import waypoint_distance_km

logger = logging.getLogger(__name__)

MIN_WAYPOINTS = 2


@dataclass
class RouteResult:
    """Outcome of one optimizer run."""
    waypoints: List[Waypoint]
    initial_distance_km: float
    best_distance_km: float
    temperature_levels: int = 0
    truncated: bool = False

    @property
    def improvement_km(self) -> float:
        return self.initial_distance_km - self.best_distance_km


def _coerce_waypoints(waypoints: Sequence[Any]) -> List[Waypoint]:
    if waypoints is None or isinstance(waypoints, (str, bytes)):
        raise RouteInputInvalid("waypoints must be a list")
    try:
        points = [wp if isinstance(wp, Waypoint) else Waypoint.model_validate(wp) for wp in waypoints]
    except ValidationError as e:
        raise RouteInputInvalid(f"Invalid waypoint: {e.errors()[0].get('msg', e)}") from e
    except TypeError as e:
        raise RouteInputInvalid(f"waypoints must be a list: {e}") from e

    if len(points) < MIN_WAYPOINTS:
        raise RouteInputInvalid(f"At least {MIN_WAYPOINTS} waypoints are required, got {len(points)}")
    return points


def _check_index(value: Any, count: int, label: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise RouteInputInvalid(f"{label} must be an integer, got {value!r}")
    if not 0 <= value < count:
        raise RouteInputInvalid(f"{label} {value} is out of range for {count} waypoints")
    return value


class RouteOptimizer:
    """
    Simulated annealing TSP-path solver.
    Stateless between runs apart from its random source; give each thread its own.
    """

    def __init__(self, config: Optional[AnnealingConfig] = None, rng: Optional[random.Random] = None):
        self.config = config or AnnealingConfig()
        self.rng = rng or random.Random()

    def optimize(
        self,
        waypoints: Sequence[Any],
        fixed_start_index: Optional[int] = 0,
        fixed_end_index: Optional[int] = None,
        deadline: Optional[float] = None
    ) -> List[Waypoint]:
        """Reordered waypoints; the fixed start is first and the fixed end (if any) last."""
        return self.optimize_with_stats(waypoints, fixed_start_index, fixed_end_index, deadline).waypoints

    def optimize_by_ids(
        self,
        waypoints: Sequence[Any],
        start_point_id: Optional[str] = None,
        end_point_id: Optional[str] = None,
        deadline: Optional[float] = None
    ) -> List[Waypoint]:
        """Same as optimize(), with the fixed endpoints given as waypoint ids."""
        points = _coerce_waypoints(waypoints)
        ids = [wp.id for wp in points]

        start_index = 0
        if start_point_id:
            if start_point_id not in ids:
                raise RouteInputInvalid(f'Start point ID "{start_point_id}" not found in waypoints.')
            start_index = ids.index(start_point_id)

        end_index = None
        if end_point_id:
            if end_point_id == start_point_id:
                raise RouteInputInvalid("Start and End point IDs cannot be the same if both are specified.")
            if end_point_id not in ids:
                raise RouteInputInvalid(f'End point ID "{end_point_id}" not found in waypoints.')
            end_index = ids.index(end_point_id)

        return self.optimize(points, start_index, end_index, deadline)

    def optimize_with_stats(
        self,
        waypoints: Sequence[Any],
        fixed_start_index: Optional[int] = 0,
        fixed_end_index: Optional[int] = None,
        deadline: Optional[float] = None
    ) -> RouteResult:
        """
        Run the annealing loop and report initial vs. best distance.

        `deadline` is a time.monotonic() value; when it passes, the loop stops
        after the current temperature level and the best route so far is returned.

        Raises:
            RouteInputInvalid: fewer than 2 waypoints, invalid coordinates,
                or fixed indices outside the list.
        """
        points = _coerce_waypoints(waypoints)
        n = len(points)

        start = _check_index(0 if fixed_start_index is None else fixed_start_index, n, "fixed_start_index")
        end = None
        if fixed_end_index is not None:
            end = _check_index(fixed_end_index, n, "fixed_end_index")
            if end == start:
                logger.warning("Start and End point indices are the same. Treating as only fixed start.")
                end = None

        if n < 3:
            # Nothing to search; only the fixed start is moved to the front
            route = [start] + [i for i in range(n) if i != start]
            distance = self._path_length(route, self._distance_matrix(points))
            return RouteResult([points[i] for i in route], distance, distance)

        logger.info(f"Starting route optimization for {n} waypoints")
        dist = self._distance_matrix(points)

        # --- Step 1: Initial candidate (fixed ends, shuffled middle) ---
        middle = [i for i in range(n) if i != start and i != end]
        self.rng.shuffle(middle)
        route = [start] + middle + ([end] if end is not None else [])

        current_distance = self._path_length(route, dist)
        initial_distance = current_distance
        best_route = list(route)
        best_distance = current_distance

        # Positions eligible for reversal: after the start, before a fixed end
        lo = 1
        hi = n - 1 if end is not None else n
        if hi - lo < 2:
            return RouteResult([points[i] for i in route], initial_distance, initial_distance)

        # --- Step 2: Annealing loop ---
        cfg = self.config
        temperature = cfg.initial_temperature
        levels = 0
        truncated = False
        positions = range(lo, hi)

        while temperature > cfg.min_temperature:
            for _ in range(cfg.iterations_per_temperature):
                i, j = sorted(self.rng.sample(positions, 2))
                delta = self._two_opt_delta(route, dist, i, j)

                if delta < 0 or self.rng.random() < math.exp(-delta / temperature):
                    route[i:j + 1] = route[i:j + 1][::-1]
                    current_distance += delta

                    if current_distance < best_distance:
                        best_distance = current_distance
                        best_route = list(route)

            # Resync the running total with the exact length once per level
            current_distance = self._path_length(route, dist)
            temperature *= cfg.cooling_rate
            levels += 1

            if deadline is not None and time.monotonic() >= deadline:
                truncated = True
                logger.warning(f"Route optimization cut off by deadline after {levels} temperature levels")
                break

        best_distance = self._path_length(best_route, dist)
        ordered = [points[i] for i in best_route]

        logger.info(f"Initial Distance: {initial_distance:.2f} km, Optimized Distance: {best_distance:.2f} km")
        logger.debug(f"Optimized Route Order (IDs): {' -> '.join(wp.id for wp in ordered)}")
        return RouteResult(ordered, initial_distance, best_distance, levels, truncated)

    @staticmethod
    def _distance_matrix(points: List[Waypoint]) -> List[List[float]]:
        n = len(points)
        dist = [[0.0] * n for _ in range(n)]
        for a in range(n):
            for b in range(a + 1, n):
                d = waypoint_distance_km(points[a], points[b])
                dist[a][b] = dist[b][a] = d
        return dist

    @staticmethod
    def _path_length(route: List[int], dist: List[List[float]]) -> float:
        return sum(dist[route[k]][route[k + 1]] for k in range(len(route) - 1))

    @staticmethod
    def _two_opt_delta(route: List[int], dist: List[List[float]], i: int, j: int) -> float:
        """
        Length change from reversing route[i..j].
        Only the two boundary edges change; the reversed segment's internal
        legs keep their lengths because distance is symmetric.
        """
        before, first, last = route[i - 1], route[i], route[j]
        delta = dist[before][last] - dist[before][first]
        if j + 1 < len(route):
            after = route[j + 1]
            delta += dist[first][after] - dist[last][after]
        return delta


def optimize_waypoint_order(
    waypoints: Sequence[Any],
    fixed_start_index: Optional[int] = 0,
    fixed_end_index: Optional[int] = None,
    rng: Optional[random.Random] = None,
    config: Optional[AnnealingConfig] = None
) -> List[Waypoint]:
    """Convenience wrapper: one-off optimizer with its own random source."""
    return RouteOptimizer(config=config, rng=rng).optimize(waypoints, fixed_start_index, fixed_end_index)
