"""
Resource and Policy data models for the appointment scheduling core.

This module defines the 'Supply' side of the scheduler:
1. Services (what is being booked: duration + buffer)
2. Weekly default availability (the recurring pattern per resource)
3. Date-specific overrides and holidays (the tiers that beat the default)

Times of day are kept as the "HH:MM" strings the booking backend stores;
they are parsed by the time conversion layer, never here.
"""

from typing import Optional
from pydantic import BaseModel, Field, ConfigDict
from datetime import date as date_type


class Service(BaseModel):
    """
    A bookable service.
    Duration and buffer are optional at the model level because legacy rows
    may lack them; the scheduling core refuses to work without both.
    """
    id: str = Field(description="Unique identifier")
    name: Optional[str] = Field(default=None, description="Display name")
    duration_minutes: Optional[int] = Field(
        default=None,
        ge=1,
        description="Nominal length of the service window"
    )
    buffer_minutes: Optional[int] = Field(
        default=None,
        ge=0,
        description="Applied before AND after the service window when checking conflicts"
    )

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "id": "svc_deep_clean",
            "name": "Deep Clean",
            "duration_minutes": 60,
            "buffer_minutes": 15
        }
    })


class DefaultAvailability(BaseModel):
    """Recurring weekly working pattern for one resource and one weekday."""
    resource_id: str = Field(description="Staff member or team")
    day_of_week: int = Field(ge=0, le=6, description="0=Monday, 6=Sunday")
    is_working_day: bool = Field(default=True)

    start_time: Optional[str] = Field(default=None, description="Local 'HH:MM' shift start")
    end_time: Optional[str] = Field(default=None, description="Local 'HH:MM' shift end")
    break_start_time: Optional[str] = Field(default=None)
    break_end_time: Optional[str] = Field(default=None)

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "resource_id": "team_north",
            "day_of_week": 0,
            "is_working_day": True,
            "start_time": "09:00",
            "end_time": "17:00",
            "break_start_time": "12:00",
            "break_end_time": "13:00"
        }
    })


class OverrideAvailability(BaseModel):
    """
    Date-specific availability for one resource.
    Beats both the weekly default and global holidays when it marks the
    resource available with a complete working window.
    """
    resource_id: str = Field(description="Staff member or team")
    date: date_type = Field(description="Calendar date in business-local time")
    is_available: bool = Field(description="False closes the day outright")

    start_time: Optional[str] = Field(default=None)
    end_time: Optional[str] = Field(default=None)
    break_start_time: Optional[str] = Field(default=None)
    break_end_time: Optional[str] = Field(default=None)

    reason: Optional[str] = Field(default=None, description="e.g. 'Sick leave', 'Holiday cover'")

    @property
    def has_window(self) -> bool:
        return bool(self.start_time and self.end_time)


class Holiday(BaseModel):
    """A calendar date on which the business is (usually) closed."""
    date: date_type
    name: str = Field(default="", description="e.g. 'New Year's Day'")
    affects_all_members: bool = Field(
        default=True,
        description="If True, closes every resource that has no explicit override"
    )
