"""
Conflict Checker.

This module answers the binary question: "Can this resource take a
booking from Start to End?"
The proposed service window is widened by the service's buffer on both
sides (the occupied interval) and matched against committed appointments
using the half-open rule: touching intervals do NOT conflict.

Existing appointments are matched by their raw stored interval; their
own buffers are not re-applied. The buffer belongs to the incoming request.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple

from models import Appointment, Service
from .exceptions import InvalidSchedulingRequest, RecordNotFound, RepositoryError, ServiceLookupFailed
from .repository import SchedulingRepository

logger = logging.getLogger(__name__)


def intervals_overlap(a_start, a_end, b_start, b_end) -> bool:
    """Half-open overlap: StartA < EndB and EndA > StartB. Works for minutes or datetimes."""
    return a_start < b_end and a_end > b_start


def occupied_interval(start: datetime, end: datetime, buffer_minutes: int) -> Tuple[datetime, datetime]:
    """The service window expanded symmetrically by the buffer."""
    buffer = timedelta(minutes=buffer_minutes)
    return start - buffer, end + buffer


def load_service(repository: SchedulingRepository, service_id: str) -> Service:
    """
    Read a service record, translating store errors into scheduling errors.

    Raises:
        InvalidSchedulingRequest: the service does not exist.
        ServiceLookupFailed: the store could not answer.
    """
    try:
        return repository.get_service(service_id)
    except RecordNotFound:
        raise InvalidSchedulingRequest(f"Unknown service {service_id!r}") from None
    except RepositoryError as e:
        raise ServiceLookupFailed(service_id, str(e)) from e


def require_service_metadata(service: Optional[Service]) -> Tuple[int, int]:
    """
    Return (duration_minutes, buffer_minutes) or fail fast.
    Both values must be present; nothing is defaulted.
    """
    if service is None:
        raise InvalidSchedulingRequest("Service is required")
    if service.duration_minutes is None:
        raise InvalidSchedulingRequest(f"Service {service.id} has no duration_minutes")
    if service.buffer_minutes is None:
        raise InvalidSchedulingRequest(f"Service {service.id} has no buffer_minutes")
    return service.duration_minutes, service.buffer_minutes


def _as_aware(value: datetime, label: str) -> datetime:
    if not isinstance(value, datetime):
        raise InvalidSchedulingRequest(f"{label} must be a datetime, got {type(value).__name__}")
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def validate_interval(start: datetime, end: datetime) -> Tuple[datetime, datetime]:
    """Aware (start, end) with start < end, or InvalidSchedulingRequest. Naive values are UTC."""
    start = _as_aware(start, "start")
    end = _as_aware(end, "end")
    if start >= end:
        raise InvalidSchedulingRequest(f"Invalid interval: start {start.isoformat()} is not before end {end.isoformat()}")
    return start, end


class ConflictChecker:
    """
    Validates that a proposed booking does not collide with committed appointments.
    Pure query: it never writes, and it does not make check-then-insert atomic.
    """

    def __init__(self, repository: SchedulingRepository):
        self.repository = repository

    def check(
        self,
        resource_id: str,
        start: datetime,
        end: datetime,
        buffer_minutes: Optional[int],
        exclude_appointment_id: Optional[str] = None
    ) -> List[Appointment]:
        """
        Master validation function. Returns the conflicting appointments
        (empty list = bookable).

        Raises:
            InvalidSchedulingRequest: before any query, when the resource is
                missing, the buffer is missing/negative, or start >= end.
        """
        if not resource_id:
            raise InvalidSchedulingRequest("resource_id is required")
        if buffer_minutes is None or buffer_minutes < 0:
            raise InvalidSchedulingRequest(f"buffer_minutes must be >= 0, got {buffer_minutes!r}")

        start, end = validate_interval(start, end)
        occ_start, occ_end = occupied_interval(start, end, buffer_minutes)

        found = self.repository.find_overlapping_appointments(
            resource_id, occ_start, occ_end, exclude_appointment_id
        )

        # Status and overlap rules hold regardless of how the store filtered
        conflicts = [
            appt for appt in found
            if appt.blocks_time
            and appt.id != exclude_appointment_id
            and intervals_overlap(appt.start, appt.end, occ_start, occ_end)
        ]

        logger.info(
            f"Conflict check for {resource_id} "
            f"[{occ_start.isoformat()} - {occ_end.isoformat()}]: {len(conflicts)} conflict(s)"
        )
        return conflicts

    def check_for_service(
        self,
        service: Service,
        resource_id: str,
        start: datetime,
        end: datetime,
        exclude_appointment_id: Optional[str] = None
    ) -> List[Appointment]:
        """Same as check(), with the buffer taken from the service record."""
        _, buffer_minutes = require_service_metadata(service)
        return self.check(resource_id, start, end, buffer_minutes, exclude_appointment_id)
