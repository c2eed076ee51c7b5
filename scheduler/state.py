"""
Slot Generation State.

This module acts as the 'Memory' of one slot generation run.
It tracks:
1. The slots emitted so far (in chronological order).
2. Dates that were closed by policy (override / holiday / weekly default).
3. Dates that were skipped because a lookup failed (fail closed, logged).
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date as date_type
from typing import Any, Dict, List, Optional, Tuple

from models import Slot


@dataclass
class SkippedDate:
    """Record of a date that produced no slots because of an error."""
    day: date_type
    reason: str


class GenerationState:
    """
    Maintains the mutable state of a single generation run.
    One instance per call; never shared between requests.
    """

    def __init__(self):
        """Initialize empty generation state."""
        self.slots: List[Slot] = []
        self.slots_per_date: Dict[date_type, int] = defaultdict(int)

        # Closed dates: day -> (tier that closed it, reason)
        self.closed_dates: Dict[date_type, Tuple[str, str]] = {}

        # Failure Tracking
        self.skipped_dates: List[SkippedDate] = []

        # Set when a deadline cut the date range short
        self.truncated_after: Optional[date_type] = None

    def add_slot(self, slot: Slot) -> None:
        """Commit an accepted candidate."""
        self.slots.append(slot)
        self.slots_per_date[slot.date] += 1

    def record_closed(self, day: date_type, source: str, reason: str) -> None:
        self.closed_dates[day] = (source, reason)

    def record_skip(self, day: date_type, reason: str) -> None:
        self.skipped_dates.append(SkippedDate(day=day, reason=reason))

    @property
    def truncated(self) -> bool:
        return self.truncated_after is not None

    def get_statistics(self) -> Dict[str, Any]:
        """Summary used for the run's log line and the demo report."""
        busiest_day = max(self.slots_per_date.items(), key=lambda x: x[1]) if self.slots_per_date else None
        return {
            "total_slots": len(self.slots),
            "dates_with_slots": len(self.slots_per_date),
            "closed_dates": len(self.closed_dates),
            "skipped_dates": len(self.skipped_dates),
            "busiest_day": busiest_day,
            "truncated": self.truncated,
        }
