"""
Scheduling Service facade.

The three operations the booking backend calls:
- resolve_available_slots: bookable start/end pairs for a date range
- check_conflicts: would this booking collide? (empty list = bookable)
- optimize_waypoint_order: visiting order for a field appointment's stops

Each call builds its own resolver cache, so concurrent calls share nothing
except the (read-only) repository. Log lines emitted during a call carry
its request id; the previous id is restored when the call returns.
"""

import random
import uuid
from datetime import date as date_type, datetime
from typing import Any, Callable, List, Optional, Sequence, Union

from models import Appointment, Slot, Waypoint
from routing.optimizer import RouteOptimizer
from .availability import AvailabilityResolver
from .cache import LookupCache
from .config import AppConfig, load_config
from .constraints import ConflictChecker, load_service, validate_interval
from .engine import SlotGenerator
from .exceptions import InvalidSchedulingRequest
from .logging_context import get_request_logger, reset_request_id, set_request_id
from .repository import SchedulingRepository

logger = get_request_logger(__name__)


class SchedulingService:
    """Entry point wiring repository, config and the scheduling components together."""

    def __init__(
        self,
        repository: SchedulingRepository,
        config: Optional[AppConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
        rng_factory: Optional[Callable[[], random.Random]] = None
    ):
        self.repository = repository
        self.config = config or load_config()
        self.clock = clock
        self.rng_factory = rng_factory or random.Random
        self.checker = ConflictChecker(repository)

    def resolve_available_slots(
        self,
        service_id: str,
        resource_id: str,
        date_range_start: Union[date_type, str],
        date_range_end: Union[date_type, str],
        granularity_minutes: Optional[int] = None,
        timezone_name: Optional[str] = None,
        deadline: Optional[float] = None
    ) -> List[Slot]:
        token = set_request_id(f"slots-{resource_id}-{uuid.uuid4().hex[:8]}")
        try:
            generator = SlotGenerator(
                self.repository,
                resolver=AvailabilityResolver(self.repository, LookupCache()),
                config=self.config.scheduling,
                clock=self.clock,
            )
            slots = generator.generate(
                service_id, resource_id, date_range_start, date_range_end,
                granularity_minutes=granularity_minutes,
                timezone_name=timezone_name,
                deadline=deadline,
            )
            logger.info(f"Returning {len(slots)} slot(s) for {resource_id}/{service_id}")
            return slots
        finally:
            reset_request_id(token)

    def check_conflicts(
        self,
        service_id: str,
        resource_id: str,
        start: datetime,
        end: datetime,
        exclude_appointment_id: Optional[str] = None
    ) -> List[Appointment]:
        token = set_request_id(f"conflicts-{resource_id}-{uuid.uuid4().hex[:8]}")
        try:
            if not service_id:
                raise InvalidSchedulingRequest("service_id is required")
            if not resource_id:
                raise InvalidSchedulingRequest("resource_id is required")
            start, end = validate_interval(start, end)
            service = load_service(self.repository, service_id)
            return self.checker.check_for_service(service, resource_id, start, end, exclude_appointment_id)
        finally:
            reset_request_id(token)

    def optimize_waypoint_order(
        self,
        waypoints: Sequence[Any],
        fixed_start_index: Optional[int] = 0,
        fixed_end_index: Optional[int] = None,
        deadline: Optional[float] = None
    ) -> List[Waypoint]:
        token = set_request_id(f"route-{uuid.uuid4().hex[:8]}")
        try:
            optimizer = RouteOptimizer(config=self.config.annealing, rng=self.rng_factory())
            return optimizer.optimize(waypoints, fixed_start_index, fixed_end_index, deadline)
        finally:
            reset_request_id(token)
