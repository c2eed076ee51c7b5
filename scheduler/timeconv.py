"""
Time Conversion Layer.

Every conversion between business-local wall-clock time and absolute
instants goes through here. Conversions use the IANA rules shipped with
pytz, so a 09:00 opening stays 09:00 on both sides of a DST change.

Local times are expressed as minutes since the local midnight of a given
calendar date. Values >= 1440 address the following day (overnight
shifts); negative values address the previous day.
"""

import re
from datetime import date as date_type, datetime, time as time_type, timedelta
from functools import lru_cache
from typing import Union

import pytz

from .exceptions import InvalidTimeFormat, InvalidSchedulingRequest

MINUTES_PER_DAY = 24 * 60

_TIME_PATTERN = re.compile(r"^\s*(\d{1,2}):(\d{2})(?::(\d{2}))?\s*$")


@lru_cache(maxsize=64)
def get_timezone(tz_name: str) -> pytz.BaseTzInfo:
    """Resolve an IANA zone name. Unknown names are a request error."""
    try:
        return pytz.timezone(tz_name)
    except pytz.UnknownTimeZoneError:
        raise InvalidSchedulingRequest(f"Unknown timezone {tz_name!r}") from None


def parse_time_to_minutes(value: Union[str, time_type]) -> int:
    """
    Convert 'HH:MM' (or the 'HH:MM:SS' form databases return) to minutes
    since midnight. Seconds are ignored.

    Raises:
        InvalidTimeFormat: non-numeric parts or a value outside 00:00-23:59.
    """
    if isinstance(value, time_type):
        return value.hour * 60 + value.minute
    if not isinstance(value, str):
        raise InvalidTimeFormat(value)

    match = _TIME_PATTERN.match(value)
    if not match:
        raise InvalidTimeFormat(value)

    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise InvalidTimeFormat(value)
    return hours * 60 + minutes


def minutes_to_hhmm(minutes: int) -> str:
    """Render local minutes as 'HH:MM', wrapping past midnight (1500 -> '01:00')."""
    minutes = minutes % MINUTES_PER_DAY
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def local_minutes_to_instant(day: date_type, minutes: int, tz_name: str) -> datetime:
    """
    Wall-clock minutes relative to `day`'s local midnight -> aware UTC instant.

    Times inside a spring-forward gap do not exist locally; they are
    localized with is_dst=False and come out shifted forward by the gap.
    """
    tz = get_timezone(tz_name)
    day_offset, minute_of_day = divmod(minutes, MINUTES_PER_DAY)
    local_day = day + timedelta(days=day_offset)
    naive = datetime.combine(local_day, time_type(minute_of_day // 60, minute_of_day % 60))
    return tz.localize(naive, is_dst=False).astimezone(pytz.utc)


def local_to_instant(day: date_type, hhmm: Union[str, time_type], tz_name: str) -> datetime:
    """Business-local ('2025-03-09', '09:00') -> aware UTC instant."""
    return local_minutes_to_instant(day, parse_time_to_minutes(hhmm), tz_name)


def to_local(instant: datetime, tz_name: str) -> datetime:
    """Aware instant -> aware local datetime. Naive instants are taken as UTC."""
    if instant.tzinfo is None:
        instant = pytz.utc.localize(instant)
    return instant.astimezone(get_timezone(tz_name))


def instant_to_local_minutes(instant: datetime, tz_name: str) -> int:
    """Minutes since the local midnight of the instant's own local date."""
    local = to_local(instant, tz_name)
    return local.hour * 60 + local.minute


def local_date_of(instant: datetime, tz_name: str) -> date_type:
    """The business-local calendar date an instant falls on."""
    return to_local(instant, tz_name).date()


def minutes_relative_to(day: date_type, instant: datetime, tz_name: str) -> int:
    """
    Local minutes of `instant` measured from `day`'s local midnight.

    An instant on the following local date yields 1440 + its minutes, which
    puts it in the same extended minute space as an overnight working window.
    """
    local = to_local(instant, tz_name)
    day_offset = (local.date() - day).days
    return day_offset * MINUTES_PER_DAY + local.hour * 60 + local.minute
