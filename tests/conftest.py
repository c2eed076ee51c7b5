"""Shared test fixtures and helpers."""

from datetime import date, datetime, timezone
from typing import Optional

import pytest

from models import (
    Appointment,
    AppointmentStatus,
    DefaultAvailability,
    Service,
    Waypoint,
)
from scheduler.config import AnnealingConfig, AppConfig, SchedulingConfig
from scheduler.repository import InMemoryRepository

MONDAY = date(2025, 3, 17)
NEXT_MONDAY = date(2025, 3, 24)
FRIDAY = date(2025, 3, 21)

# Well before every test date, so nothing is clamped unless a test asks for it
NOW = datetime(2025, 3, 1, 0, 0, tzinfo=timezone.utc)


def utc(day: date, hour: int, minute: int = 0) -> datetime:
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=timezone.utc)


def make_appointment(
    appt_id: str,
    start: datetime,
    end: datetime,
    resource_id: str = "team_north",
    status: AppointmentStatus = AppointmentStatus.CONFIRMED,
) -> Appointment:
    """Helper to create an Appointment with sensible defaults."""
    return Appointment(
        id=appt_id,
        resource_id=resource_id,
        service_id="svc_clean",
        start=start,
        end=end,
        status=status,
    )


def make_repository(
    buffer_minutes: Optional[int] = 15,
    duration_minutes: Optional[int] = 60,
    appointments=None,
    **kwargs,
) -> InMemoryRepository:
    """
    team_north works Mondays 09:00-17:00 with a 12:00-13:00 break and has
    a confirmed 10:00-11:00 appointment on MONDAY.
    """
    if appointments is None:
        appointments = [make_appointment("appt_1", utc(MONDAY, 10), utc(MONDAY, 11))]
    defaults = kwargs.pop("defaults", [
        DefaultAvailability(
            resource_id="team_north",
            day_of_week=0,
            start_time="09:00",
            end_time="17:00",
            break_start_time="12:00",
            break_end_time="13:00",
        )
    ])
    return InMemoryRepository(
        services=[Service(
            id="svc_clean",
            name="Standard Clean",
            duration_minutes=duration_minutes,
            buffer_minutes=buffer_minutes,
        )],
        defaults=defaults,
        appointments=appointments,
        **kwargs,
    )


@pytest.fixture
def repository():
    return make_repository()


@pytest.fixture
def scheduling_config():
    return SchedulingConfig(business_timezone="UTC", slot_granularity_minutes=15)


@pytest.fixture
def fast_annealing():
    return AnnealingConfig(
        initial_temperature=100.0,
        cooling_rate=0.9,
        min_temperature=0.1,
        iterations_per_temperature=50,
    )


@pytest.fixture
def app_config(scheduling_config, fast_annealing):
    return AppConfig(scheduling=scheduling_config, annealing=fast_annealing, log_level="DEBUG")


@pytest.fixture
def waypoints():
    """Six stops around central London, deliberately out of order."""
    return [
        Waypoint(id="depot", latitude=51.5074, longitude=-0.1278, name="Depot"),
        Waypoint(id="c", latitude=51.5155, longitude=-0.0922, name="Bank"),
        Waypoint(id="a", latitude=51.5014, longitude=-0.1419, name="Buckingham Palace"),
        Waypoint(id="e", latitude=51.5033, longitude=-0.0195, name="Canary Wharf"),
        Waypoint(id="b", latitude=51.5194, longitude=-0.1270, name="British Museum"),
        Waypoint(id="d", latitude=51.5081, longitude=-0.0759, name="Tower of London"),
    ]
