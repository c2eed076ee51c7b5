"""
Availability Resolver.

Answers: "What are resource X's working hours on date D?"
Three policy tiers are consulted in order, each able to end the search:
1. OverrideAvailability for the exact date (closes it, or opens it with its own hours).
2. A global Holiday (closes the day unless step 1 opened it).
3. DefaultAvailability for the weekday (the recurring pattern).

Windows come back in local minutes since midnight. An overnight shift
(22:00-06:00) is normalized to an end beyond 1440 (1320-1800).
"""

import logging
from dataclasses import dataclass
from datetime import date as date_type
from typing import Callable, Hashable, List, Optional, Tuple, TypeVar, Union

from models import DefaultAvailability, OverrideAvailability
from .cache import LookupCache
from .exceptions import (
    AvailabilityLookupFailed,
    InvalidTimeFormat,
    RecordNotFound,
    RepositoryError,
)
from .repository import SchedulingRepository
from .timeconv import MINUTES_PER_DAY, minutes_to_hhmm, parse_time_to_minutes

logger = logging.getLogger(__name__)

T = TypeVar("T")

SOURCE_OVERRIDE = "override"
SOURCE_HOLIDAY = "holiday"
SOURCE_DEFAULT = "default"


@dataclass(frozen=True)
class TimeWindow:
    """Half-open [start, end) range of local minutes."""
    start: int
    end: int

    def overlaps(self, start: int, end: int) -> bool:
        return start < self.end and end > self.start

    def contains(self, start: int, end: int) -> bool:
        return start >= self.start and end <= self.end

    def __str__(self) -> str:
        return f"{minutes_to_hhmm(self.start)}-{minutes_to_hhmm(self.end)}"


@dataclass(frozen=True)
class DaySchedule:
    """Resolved schedule for one resource on one date: Closed, or Open(window, breaks)."""
    day: date_type
    source: str
    window: Optional[TimeWindow] = None
    breaks: Tuple[TimeWindow, ...] = ()
    reason: str = ""

    @property
    def is_open(self) -> bool:
        return self.window is not None

    @property
    def is_overnight(self) -> bool:
        return self.window is not None and self.window.end > MINUTES_PER_DAY

    @classmethod
    def closed(cls, day: date_type, source: str, reason: str = "") -> "DaySchedule":
        return cls(day=day, source=source, reason=reason)


class AvailabilityResolver:
    """
    Resolves one authoritative DaySchedule per (resource, date).
    Lookups are memoized in the injected LookupCache; give each request its own.
    """

    def __init__(self, repository: SchedulingRepository, cache: Optional[LookupCache] = None):
        self.repository = repository
        self.cache = cache if cache is not None else LookupCache()

    def resolve(self, resource_id: str, day: date_type) -> DaySchedule:
        """
        Raises:
            AvailabilityLookupFailed: any tier could not be read, or a stored
                time is malformed. Callers skip the date (fail closed).
        """
        # --- Tier 1: Date-specific override ---
        override = self._lookup(
            ("override", resource_id, day), resource_id, day,
            lambda: self.repository.get_override_availability(resource_id, day)
        )
        if override is not None:
            if not override.is_available:
                return DaySchedule.closed(day, SOURCE_OVERRIDE, override.reason or "Marked unavailable")
            if override.has_window:
                return self._build_open(resource_id, day, override, SOURCE_OVERRIDE)
            # Available but without hours: fall through to the lower tiers

        # --- Tier 2: Global holiday ---
        holiday = self._lookup(
            ("holiday", day), resource_id, day,
            lambda: self.repository.get_holiday(day)
        )
        if holiday is not None and holiday.affects_all_members:
            return DaySchedule.closed(day, SOURCE_HOLIDAY, holiday.name or "Holiday")

        # --- Tier 3: Weekly default ---
        weekday = day.weekday()
        default = self._lookup(
            ("default", resource_id, weekday), resource_id, day,
            lambda: self.repository.get_default_availability(resource_id, weekday)
        )
        if default is None:
            return DaySchedule.closed(day, SOURCE_DEFAULT, "No weekly availability configured")
        if not default.is_working_day:
            return DaySchedule.closed(day, SOURCE_DEFAULT, "Not a working day")
        if not (default.start_time and default.end_time):
            return DaySchedule.closed(day, SOURCE_DEFAULT, "Working hours incomplete")

        return self._build_open(resource_id, day, default, SOURCE_DEFAULT)

    def _lookup(self, key: Hashable, resource_id: str, day: date_type, loader: Callable[[], T]) -> Optional[T]:
        def guarded() -> Optional[T]:
            try:
                return loader()
            except RecordNotFound:
                return None
            except RepositoryError as e:
                raise AvailabilityLookupFailed(resource_id, day, str(e)) from e

        return self.cache.get_or_load(key, guarded)

    def _build_open(
        self,
        resource_id: str,
        day: date_type,
        record: Union[OverrideAvailability, DefaultAvailability],
        source: str
    ) -> DaySchedule:
        try:
            start = parse_time_to_minutes(record.start_time)
            end = parse_time_to_minutes(record.end_time)
            raw_break = None
            if record.break_start_time and record.break_end_time:
                raw_break = (
                    parse_time_to_minutes(record.break_start_time),
                    parse_time_to_minutes(record.break_end_time),
                )
        except InvalidTimeFormat as e:
            raise AvailabilityLookupFailed(resource_id, day, f"Malformed {source} hours: {e}") from e

        if end < start:
            end += MINUTES_PER_DAY

        if end == start:
            return DaySchedule.closed(day, source, "Empty working window")

        window = TimeWindow(start, end)
        breaks = self._normalize_breaks(window, [raw_break] if raw_break else [])

        logger.debug(f"{resource_id} on {day}: open {window} via {source}, breaks={[str(b) for b in breaks]}")
        return DaySchedule(day=day, source=source, window=window, breaks=tuple(breaks))

    @staticmethod
    def _normalize_breaks(window: TimeWindow, raw_breaks: List[Tuple[int, int]]) -> List[TimeWindow]:
        """Move breaks into the window's minute space and clip them to it."""
        breaks = []
        for b_start, b_end in raw_breaks:
            if b_end < b_start:
                b_end += MINUTES_PER_DAY
            # On an overnight shift, an early-morning break belongs to the next day
            if window.end > MINUTES_PER_DAY and b_start < window.start:
                b_start += MINUTES_PER_DAY
                b_end += MINUTES_PER_DAY

            b_start = max(b_start, window.start)
            b_end = min(b_end, window.end)
            if b_start < b_end:
                breaks.append(TimeWindow(b_start, b_end))

        breaks.sort(key=lambda b: b.start)
        return breaks
