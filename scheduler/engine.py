"""
The Slot Candidate Generator.

This module implements the core "bookable times" logic.
For every date in the requested range it:
1. Resolves the resource's working window and breaks (AvailabilityResolver).
2. Pins the window, its breaks and committed appointments to absolute time.
3. Walks candidate start times at a fixed wall-clock granularity and keeps
   those whose buffered interval stays inside the window and clear of every
   occupied period.
"""

import logging
import time
from datetime import date as date_type, datetime, timedelta, timezone
from typing import Callable, List, Optional, Tuple, Union

from models import Slot
from .availability import AvailabilityResolver, DaySchedule, TimeWindow
from .config import SchedulingConfig
from .constraints import intervals_overlap, load_service, require_service_metadata
from .exceptions import (
    AvailabilityLookupFailed,
    InvalidSchedulingRequest,
    RepositoryError,
)
from .repository import SchedulingRepository
from .state import GenerationState
from .timeconv import (
    get_timezone,
    local_date_of,
    local_minutes_to_instant,
)

logger = logging.getLogger(__name__)


def _to_date(value: Union[date_type, str], label: str) -> date_type:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date_type):
        return value
    try:
        return date_type.fromisoformat(value)
    except (TypeError, ValueError):
        raise InvalidSchedulingRequest(f"{label} must be a date or 'YYYY-MM-DD', got {value!r}") from None


class SlotGenerator:
    """
    Main slot generation engine.
    Ingests Policy (availability tiers) and Bookings (appointments), outputs Slots.
    """

    def __init__(
        self,
        repository: SchedulingRepository,
        resolver: Optional[AvailabilityResolver] = None,
        config: Optional[SchedulingConfig] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.repository = repository
        self.resolver = resolver or AvailabilityResolver(repository)
        self.config = config or SchedulingConfig()
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def generate(
        self,
        service_id: str,
        resource_id: str,
        start_date: Union[date_type, str],
        end_date: Union[date_type, str],
        granularity_minutes: Optional[int] = None,
        timezone_name: Optional[str] = None,
        now: Optional[datetime] = None,
        deadline: Optional[float] = None
    ) -> List[Slot]:
        """Bookable slots in ascending chronological order."""
        return self.run(
            service_id, resource_id, start_date, end_date,
            granularity_minutes=granularity_minutes,
            timezone_name=timezone_name,
            now=now,
            deadline=deadline,
        ).slots

    def run(
        self,
        service_id: str,
        resource_id: str,
        start_date: Union[date_type, str],
        end_date: Union[date_type, str],
        granularity_minutes: Optional[int] = None,
        timezone_name: Optional[str] = None,
        now: Optional[datetime] = None,
        deadline: Optional[float] = None
    ) -> GenerationState:
        """
        Execute the generation pipeline and return the full run state.

        `deadline` is a time.monotonic() value; once it passes, the range is
        truncated after the date being processed.

        Raises:
            InvalidSchedulingRequest: bad inputs or unusable service, before
                any availability or appointment read.
            ServiceLookupFailed: the service record could not be read.
        """
        # 1. Validate the request (fail fast, no persistence access yet)
        if not resource_id:
            raise InvalidSchedulingRequest("resource_id is required")
        granularity = granularity_minutes if granularity_minutes is not None else self.config.slot_granularity_minutes
        if granularity < 1:
            raise InvalidSchedulingRequest(f"granularity_minutes must be >= 1, got {granularity}")

        first_day = _to_date(start_date, "start_date")
        last_day = _to_date(end_date, "end_date")
        if first_day > last_day:
            raise InvalidSchedulingRequest(f"start_date {first_day} is after end_date {last_day}")

        tz_name = timezone_name or self.config.business_timezone
        get_timezone(tz_name)

        # 2. Service metadata
        service = load_service(self.repository, service_id)
        duration, buffer = require_service_metadata(service)

        # 3. Never offer the past
        now = now or self.clock()
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        today = local_date_of(now, tz_name)
        if first_day < today:
            first_day = today

        state = GenerationState()
        logger.info(
            f"Generating slots for {resource_id}/{service_id} "
            f"{first_day}..{last_day} every {granularity} min ({duration}+/-{buffer} min, {tz_name})"
        )

        # 4. Main Loop: one date at a time, ascending
        day = first_day
        while day <= last_day:
            self._process_date(state, day, resource_id, service_id, duration, buffer, granularity, tz_name, now)

            if deadline is not None and time.monotonic() >= deadline:
                if day < last_day:
                    state.truncated_after = day
                    logger.warning(f"Deadline reached; slot generation truncated after {day}")
                break
            day += timedelta(days=1)

        logger.info(f"Slot generation finished: {state.get_statistics()}")
        return state

    def _process_date(
        self,
        state: GenerationState,
        day: date_type,
        resource_id: str,
        service_id: str,
        duration: int,
        buffer: int,
        granularity: int,
        tz_name: str,
        now: datetime
    ) -> None:
        # A. Resolve policy; lookup failures close the date, never open it
        try:
            schedule = self.resolver.resolve(resource_id, day)
        except AvailabilityLookupFailed as e:
            logger.warning(f"Skipping {day}: {e}")
            state.record_skip(day, str(e))
            return

        if not schedule.is_open:
            logger.debug(f"{resource_id} closed on {day} ({schedule.source}: {schedule.reason})")
            state.record_closed(day, schedule.source, schedule.reason)
            return

        # B. Pin the window to absolute time and collect what already occupies it
        window = self._window_instants(day, schedule.window, tz_name)
        try:
            occupied = self._occupied_periods(schedule, window, resource_id, tz_name)
        except RepositoryError as e:
            logger.warning(f"Skipping {day}: appointment lookup failed for {resource_id}: {e}")
            state.record_skip(day, f"Appointment lookup failed: {e}")
            return

        # C. Walk the candidates
        for slot in self._generate_times_for_date(
            schedule, window, occupied, resource_id, service_id, duration, buffer, granularity, tz_name
        ):
            if slot.start < now:
                continue
            state.add_slot(slot)

    def _occupied_periods(
        self,
        schedule: DaySchedule,
        window: Tuple[datetime, datetime],
        resource_id: str,
        tz_name: str
    ) -> List[Tuple[datetime, datetime]]:
        """
        Breaks plus appointments that touch this date's working window, as
        absolute (start, end) instants.
        """
        occupied = [self._window_instants(schedule.day, b, tz_name) for b in schedule.breaks]

        # Appointments keep their raw stored interval
        for appt in self.repository.find_overlapping_appointments(resource_id, window[0], window[1]):
            if appt.blocks_time:
                occupied.append((appt.start, appt.end))

        occupied.sort(key=lambda p: p[0])
        return occupied

    @staticmethod
    def _window_instants(day: date_type, window: TimeWindow, tz_name: str) -> Tuple[datetime, datetime]:
        """Local minutes of `day` -> absolute (start, end)."""
        return (
            local_minutes_to_instant(day, window.start, tz_name),
            local_minutes_to_instant(day, window.end, tz_name),
        )

    def _generate_times_for_date(
        self,
        schedule: DaySchedule,
        window: Tuple[datetime, datetime],
        occupied: List[Tuple[datetime, datetime]],
        resource_id: str,
        service_id: str,
        duration: int,
        buffer: int,
        granularity: int,
        tz_name: str
    ) -> List[Slot]:
        """
        Helper: Returns accepted slots for a single open date.
        Candidates step through the window in wall-clock minutes; each one is
        then judged in absolute time, so a DST change inside the window
        cannot stretch or shrink the service. A candidate passes when
          - the service itself ends within the window,
          - [start - buffer, end + buffer] lies inside the window,
          - that buffered range overlaps no break or appointment.
        """
        window_start, window_end = window
        service_length = timedelta(minutes=duration)
        padding = timedelta(minutes=buffer)
        slots: List[Slot] = []

        for candidate in range(schedule.window.start, schedule.window.end, granularity):
            start = local_minutes_to_instant(schedule.day, candidate, tz_name)
            # Nonexistent local times (spring-forward gap) collapse onto later instants
            if slots and start <= slots[-1].start:
                continue

            end = start + service_length
            if end > window_end:
                continue

            occ_start, occ_end = start - padding, end + padding
            if occ_start < window_start or occ_end > window_end:
                continue
            if any(intervals_overlap(occ_start, occ_end, p_start, p_end) for p_start, p_end in occupied):
                continue

            slots.append(Slot(
                start=start,
                end=end,
                resource_id=resource_id,
                service_id=service_id,
                date=schedule.day,
            ))

        logger.debug(
            f"{resource_id} on {schedule.day}: {len(slots)} slot(s) in {schedule.window}, "
            f"{len(occupied)} occupied period(s)"
        )
        return slots
