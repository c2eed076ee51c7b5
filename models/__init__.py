"""
Data models package for the appointment scheduling core.

This package exports the three pillars of the data architecture:
1. Supply & Policy (Service, DefaultAvailability, OverrideAvailability, Holiday)
2. Bookings (Appointment, AppointmentStatus) and Output (Slot)
3. Geography (Waypoint)
"""

from .resource import (
    Service,
    DefaultAvailability,
    OverrideAvailability,
    Holiday
)

from .schedule import (
    Appointment,
    AppointmentStatus,
    BLOCKING_STATUSES,
    Slot
)

from .route import (
    Waypoint
)

__all__ = [
    # --- Supply & Policy Models ---
    "Service",
    "DefaultAvailability",
    "OverrideAvailability",
    "Holiday",

    # --- Booking & Output Models ---
    "Appointment",
    "AppointmentStatus",
    "BLOCKING_STATUSES",
    "Slot",

    # --- Geography ---
    "Waypoint",
]
