"""
Schedule data models for the appointment scheduling core.

This module defines what the core reads and what it emits:
committed Appointments (read-only input) and candidate Slots (output).
All instants are timezone-aware; naive datetimes are taken to be UTC,
which is how the booking backend stores them.
"""

from typing import Optional
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator
from datetime import date as date_type, datetime, timedelta, timezone


def _ensure_aware(value: datetime) -> datetime:
    if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class AppointmentStatus(str, Enum):
    """Lifecycle of a booked appointment."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    NO_SHOW = "no_show"


# Only these statuses hold a resource's time.
BLOCKING_STATUSES = frozenset({AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED})


class Appointment(BaseModel):
    """
    A committed booking for one resource.
    The stored interval is the raw service window, WITHOUT buffers.
    """
    id: str = Field(description="Unique identifier")
    resource_id: str = Field(description="Assigned staff member or team")
    service_id: Optional[str] = Field(default=None)
    start: datetime = Field(description="Absolute start instant")
    end: datetime = Field(description="Absolute end instant")
    status: AppointmentStatus = Field(default=AppointmentStatus.CONFIRMED)
    client_name: Optional[str] = Field(default=None)

    @field_validator('start', 'end')
    @classmethod
    def make_aware(cls, v: datetime) -> datetime:
        return _ensure_aware(v)

    @model_validator(mode='after')
    def validate_interval(self):
        if self.start >= self.end:
            raise ValueError("Appointment end must be strictly after start")
        return self

    @property
    def blocks_time(self) -> bool:
        return self.status in BLOCKING_STATUSES

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "id": "appt_0001",
            "resource_id": "team_north",
            "service_id": "svc_deep_clean",
            "start": "2025-03-17T10:00:00Z",
            "end": "2025-03-17T11:00:00Z",
            "status": "confirmed",
            "client_name": "Jane Doe"
        }
    })


class Slot(BaseModel):
    """A bookable start/end pair produced by the slot generator."""
    start: datetime
    end: datetime
    resource_id: str
    service_id: str
    date: date_type = Field(description="Business-local calendar date the slot belongs to")

    @property
    def duration_minutes(self) -> int:
        return int((self.end - self.start).total_seconds() // 60)
