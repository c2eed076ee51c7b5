"""
Main Execution Script for the scheduling core.
Loads a JSON data file into the in-memory repository, prints the bookable
slots for a resource/service over a date range, then sequences the demo
waypoints with the route optimizer.

Usage:
    python run_scheduler.py [data_file.json]
"""

import json
import logging
import os
import sys
from datetime import date, datetime, timedelta

# Add current directory to path so imports work
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from models import (
    Appointment,
    DefaultAvailability,
    Holiday,
    OverrideAvailability,
    Service,
    Waypoint,
)
from routing.distance import route_distance_km
from scheduler.config import load_config
from scheduler.exceptions import SchedulingError
from scheduler.logging_context import configure_logging
from scheduler.repository import InMemoryRepository
from scheduler.service import SchedulingService
from scheduler.timeconv import to_local

logger = logging.getLogger("Main")

# --- CONFIGURATION ---
DATA_FILENAME = os.path.join(os.path.dirname(os.path.abspath(__file__)), "data", "demo_data.json")
DAYS_AHEAD = 7
# ---------------------


def load_data(filename: str):
    """
    Helper to load JSON data and reconstruct Pydantic objects.
    Returns (repository, request_dict, waypoints) or (None, None, None).
    """
    try:
        with open(filename, 'r') as f:
            data = json.load(f)
    except (FileNotFoundError, json.JSONDecodeError) as e:
        logger.error(f"❌ Data file {filename} not found or invalid: {e}")
        return None, None, None

    logger.info(f"📂 Loading data from {filename}...")

    # Re-hydrate Pydantic models from the JSON dicts
    repository = InMemoryRepository(
        services=[Service(**item) for item in data.get('services', [])],
        defaults=[DefaultAvailability(**item) for item in data.get('default_availability', [])],
        overrides=[OverrideAvailability(**item) for item in data.get('override_availability', [])],
        holidays=[Holiday(**item) for item in data.get('holidays', [])],
        appointments=[Appointment(**item) for item in data.get('appointments', [])],
    )
    waypoints = [Waypoint(**item) for item in data.get('waypoints', [])]

    logger.info(
        f"✅ Data Loaded: {len(repository.services)} services, "
        f"{len(repository.defaults)} weekly rules, {len(waypoints)} waypoints."
    )
    return repository, data.get('request', {}), waypoints


def main():
    config = load_config()
    configure_logging(config)

    filename = sys.argv[1] if len(sys.argv) > 1 else DATA_FILENAME
    repository, request, waypoints = load_data(filename)
    if repository is None:
        return 1

    service = SchedulingService(repository, config=config)

    # --- PHASE 1: SLOT GENERATION ---
    start_date = date.today()
    end_date = start_date + timedelta(days=DAYS_AHEAD - 1)
    try:
        slots = service.resolve_available_slots(
            request["service_id"],
            request["resource_id"],
            start_date,
            end_date,
            granularity_minutes=request.get("granularity_minutes"),
        )
    except (KeyError, SchedulingError) as e:
        logger.error(f"❌ Slot generation failed: {e}")
        return 1

    print("\n" + "=" * 50)
    print(f"📅 BOOKABLE SLOTS {start_date} .. {end_date} ({config.scheduling.business_timezone})")
    print("=" * 50)
    tz_name = config.scheduling.business_timezone
    current = None
    for slot in slots:
        if slot.date != current:
            current = slot.date
            print(f"\n{current.strftime('%A %Y-%m-%d')}")
        local_start, local_end = to_local(slot.start, tz_name), to_local(slot.end, tz_name)
        print(f"   {local_start.strftime('%H:%M')} - {local_end.strftime('%H:%M')}")
    if not slots:
        print("No slots available.")

    # --- PHASE 2: CONFLICT CHECK FOR THE FIRST SLOT ---
    if slots:
        first = slots[0]
        conflicts = service.check_conflicts(request["service_id"], request["resource_id"], first.start, first.end)
        print(f"\n🔍 First slot {first.start.isoformat()} conflicts: {len(conflicts)}")

    # --- PHASE 3: ROUTE OPTIMIZATION ---
    if len(waypoints) >= 2:
        started = datetime.now()
        ordered = service.optimize_waypoint_order(waypoints)
        elapsed = (datetime.now() - started).total_seconds()
        print("\n" + "=" * 50)
        print("🗺️  OPTIMIZED ROUTE")
        print("=" * 50)
        print(" -> ".join(wp.name or wp.id for wp in ordered))
        print(f"Input order:     {route_distance_km(waypoints):.2f} km")
        print(f"Optimized order: {route_distance_km(ordered):.2f} km ({elapsed:.1f}s)")

    print("\n✅ Demo Complete.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
