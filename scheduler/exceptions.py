"""
Error taxonomy for the scheduling core.

Scheduling errors describe bad requests or unresolvable days.
Repository errors describe what the persistence collaborator reports,
so callers can tell "that row does not exist" from "try again later".
"""

from datetime import date as date_type
from typing import Optional


class SchedulingError(Exception):
    """Base class for every error raised by the scheduling core."""


class InvalidTimeFormat(SchedulingError, ValueError):
    """A local time string is not a valid 'HH:MM' between 00:00 and 23:59."""

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"Invalid local time {value!r}; expected 'HH:MM' between 00:00 and 23:59")


class InvalidSchedulingRequest(SchedulingError, ValueError):
    """Missing service metadata, an empty interval, or an unknown resource."""


class AvailabilityLookupFailed(SchedulingError):
    """A persistence read failed while resolving one resource's day."""

    def __init__(self, resource_id: str, day: date_type, reason: str):
        self.resource_id = resource_id
        self.day = day
        self.reason = reason
        super().__init__(f"Availability lookup failed for {resource_id} on {day.isoformat()}: {reason}")


class ServiceLookupFailed(SchedulingError):
    """The service record could not be read for a reason other than absence."""

    def __init__(self, service_id: str, reason: str):
        self.service_id = service_id
        self.reason = reason
        super().__init__(f"Service lookup failed for {service_id!r}: {reason}")


class RouteInputInvalid(SchedulingError, ValueError):
    """Too few waypoints, bad coordinates, or fixed indices that do not exist."""


# --- Persistence collaborator errors ---

class RepositoryError(Exception):
    """Base class for errors reported by a SchedulingRepository."""


class RecordNotFound(RepositoryError):
    """The requested record does not exist."""

    def __init__(self, kind: str, key: object):
        self.kind = kind
        self.key = key
        super().__init__(f"{kind} {key!r} not found")


class TransientLookupError(RepositoryError):
    """The store could not answer right now (timeout, connection reset, ...)."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)
