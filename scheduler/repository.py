"""
Persistence boundary for the scheduling core.

The core only ever READS through this interface. Writes (and the atomicity
of check-then-insert) belong to the booking write path, e.g. an exclusion
constraint on (resource_id, tstzrange(start, end)) in the database.
"""

from abc import ABC, abstractmethod
from collections import defaultdict
from datetime import date as date_type, datetime
from typing import Dict, Iterable, List, Optional, Tuple

from models import (
    Appointment,
    DefaultAvailability,
    Holiday,
    OverrideAvailability,
    Service,
)
from .exceptions import RecordNotFound


class SchedulingRepository(ABC):
    """
    Read contract consumed by the core.

    Getters return None when the row does not exist (except get_service,
    which raises RecordNotFound). Implementations raise TransientLookupError
    when the store cannot answer.
    """

    @abstractmethod
    def get_override_availability(self, resource_id: str, day: date_type) -> Optional[OverrideAvailability]:
        ...

    @abstractmethod
    def get_default_availability(self, resource_id: str, weekday: int) -> Optional[DefaultAvailability]:
        ...

    @abstractmethod
    def get_holiday(self, day: date_type) -> Optional[Holiday]:
        ...

    @abstractmethod
    def get_service(self, service_id: str) -> Service:
        ...

    @abstractmethod
    def find_overlapping_appointments(
        self,
        resource_id: str,
        start: datetime,
        end: datetime,
        exclude_id: Optional[str] = None
    ) -> List[Appointment]:
        """
        Blocking (pending/confirmed) appointments of `resource_id` with
        existing.start < end AND existing.end > start, minus `exclude_id`.
        """
        ...


class InMemoryRepository(SchedulingRepository):
    """Dictionary-backed repository for tests and the demo script."""

    def __init__(
        self,
        services: Iterable[Service] = (),
        defaults: Iterable[DefaultAvailability] = (),
        overrides: Iterable[OverrideAvailability] = (),
        holidays: Iterable[Holiday] = (),
        appointments: Iterable[Appointment] = ()
    ):
        # Index records for O(1) lookup
        self.services: Dict[str, Service] = {s.id: s for s in services}
        self.defaults: Dict[Tuple[str, int], DefaultAvailability] = {
            (d.resource_id, d.day_of_week): d for d in defaults
        }
        self.overrides: Dict[Tuple[str, date_type], OverrideAvailability] = {
            (o.resource_id, o.date): o for o in overrides
        }
        self.holidays: Dict[date_type, Holiday] = {h.date: h for h in holidays}
        self.appointments: Dict[str, List[Appointment]] = defaultdict(list)
        for appt in appointments:
            self.add_appointment(appt)

    def add_appointment(self, appointment: Appointment) -> None:
        self.appointments[appointment.resource_id].append(appointment)

    def get_override_availability(self, resource_id: str, day: date_type) -> Optional[OverrideAvailability]:
        return self.overrides.get((resource_id, day))

    def get_default_availability(self, resource_id: str, weekday: int) -> Optional[DefaultAvailability]:
        return self.defaults.get((resource_id, weekday))

    def get_holiday(self, day: date_type) -> Optional[Holiday]:
        return self.holidays.get(day)

    def get_service(self, service_id: str) -> Service:
        service = self.services.get(service_id)
        if service is None:
            raise RecordNotFound("Service", service_id)
        return service

    def find_overlapping_appointments(
        self,
        resource_id: str,
        start: datetime,
        end: datetime,
        exclude_id: Optional[str] = None
    ) -> List[Appointment]:
        found = [
            appt for appt in self.appointments.get(resource_id, [])
            if appt.blocks_time
            and appt.id != exclude_id
            and appt.start < end and appt.end > start
        ]
        found.sort(key=lambda a: a.start)
        return found
