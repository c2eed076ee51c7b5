"""Tests for tiered availability resolution."""

from datetime import date

import pytest

from models import DefaultAvailability, Holiday, OverrideAvailability
from scheduler.availability import (
    SOURCE_DEFAULT,
    SOURCE_HOLIDAY,
    SOURCE_OVERRIDE,
    AvailabilityResolver,
    TimeWindow,
)
from scheduler.cache import LookupCache
from scheduler.exceptions import AvailabilityLookupFailed, RecordNotFound, TransientLookupError
from scheduler.repository import InMemoryRepository
from tests.conftest import FRIDAY, MONDAY, NEXT_MONDAY, make_repository

TUESDAY = date(2025, 3, 18)


def friday_night_shift(**overrides) -> DefaultAvailability:
    fields = dict(resource_id="team_north", day_of_week=4, start_time="22:00", end_time="06:00")
    fields.update(overrides)
    return DefaultAvailability(**fields)


class FlakyRepository(InMemoryRepository):
    """Fails every override read."""

    def get_override_availability(self, resource_id, day):
        raise TransientLookupError("connection reset")


class MissingRowRepository(InMemoryRepository):
    """Reports missing holidays by raising instead of returning None."""

    def get_holiday(self, day):
        raise RecordNotFound("Holiday", day)


class TestPrecedence:
    def test_weekly_default(self, repository):
        schedule = AvailabilityResolver(repository).resolve("team_north", MONDAY)
        assert schedule.is_open
        assert schedule.source == SOURCE_DEFAULT
        assert schedule.window == TimeWindow(540, 1020)
        assert schedule.breaks == (TimeWindow(720, 780),)

    def test_no_default_is_closed(self, repository):
        schedule = AvailabilityResolver(repository).resolve("team_north", TUESDAY)
        assert not schedule.is_open
        assert schedule.source == SOURCE_DEFAULT

    def test_not_a_working_day(self):
        repo = make_repository(defaults=[
            DefaultAvailability(resource_id="team_north", day_of_week=0, is_working_day=False,
                                start_time="09:00", end_time="17:00")
        ])
        schedule = AvailabilityResolver(repo).resolve("team_north", MONDAY)
        assert not schedule.is_open

    def test_incomplete_default_is_closed(self):
        repo = make_repository(defaults=[
            DefaultAvailability(resource_id="team_north", day_of_week=0, start_time="09:00")
        ])
        assert not AvailabilityResolver(repo).resolve("team_north", MONDAY).is_open

    def test_holiday_closes_the_day(self):
        repo = make_repository(holidays=[Holiday(date=MONDAY, name="St Patrick's Day")])
        schedule = AvailabilityResolver(repo).resolve("team_north", MONDAY)
        assert not schedule.is_open
        assert schedule.source == SOURCE_HOLIDAY
        assert schedule.reason == "St Patrick's Day"

    def test_holiday_not_affecting_members(self):
        repo = make_repository(holidays=[Holiday(date=MONDAY, name="Office party", affects_all_members=False)])
        schedule = AvailabilityResolver(repo).resolve("team_north", MONDAY)
        assert schedule.is_open
        assert schedule.source == SOURCE_DEFAULT

    def test_override_unavailable_beats_default(self):
        repo = make_repository(overrides=[
            OverrideAvailability(resource_id="team_north", date=MONDAY, is_available=False, reason="Sick leave")
        ])
        schedule = AvailabilityResolver(repo).resolve("team_north", MONDAY)
        assert not schedule.is_open
        assert schedule.source == SOURCE_OVERRIDE
        assert schedule.reason == "Sick leave"

    def test_override_window_beats_holiday(self):
        repo = make_repository(
            holidays=[Holiday(date=MONDAY, name="Bank holiday")],
            overrides=[OverrideAvailability(
                resource_id="team_north", date=MONDAY, is_available=True,
                start_time="10:00", end_time="14:00", reason="Holiday cover",
            )],
        )
        schedule = AvailabilityResolver(repo).resolve("team_north", MONDAY)
        assert schedule.is_open
        assert schedule.source == SOURCE_OVERRIDE
        assert schedule.window == TimeWindow(600, 840)
        assert schedule.breaks == ()

    def test_override_without_window_falls_through(self):
        repo = make_repository(overrides=[
            OverrideAvailability(resource_id="team_north", date=MONDAY, is_available=True)
        ])
        schedule = AvailabilityResolver(repo).resolve("team_north", MONDAY)
        assert schedule.source == SOURCE_DEFAULT
        assert schedule.window == TimeWindow(540, 1020)

    def test_override_for_other_resource_is_ignored(self):
        repo = make_repository(overrides=[
            OverrideAvailability(resource_id="team_south", date=MONDAY, is_available=False)
        ])
        assert AvailabilityResolver(repo).resolve("team_north", MONDAY).is_open

    def test_empty_window_is_closed(self):
        repo = make_repository(overrides=[
            OverrideAvailability(resource_id="team_north", date=MONDAY, is_available=True,
                                 start_time="10:00", end_time="10:00")
        ])
        assert not AvailabilityResolver(repo).resolve("team_north", MONDAY).is_open


class TestWindows:
    def test_overnight_shift(self):
        repo = make_repository(defaults=[friday_night_shift()])
        schedule = AvailabilityResolver(repo).resolve("team_north", FRIDAY)
        assert schedule.window == TimeWindow(1320, 1800)
        assert schedule.is_overnight

    def test_overnight_break_after_midnight(self):
        repo = make_repository(defaults=[friday_night_shift(break_start_time="02:00", break_end_time="02:30")])
        schedule = AvailabilityResolver(repo).resolve("team_north", FRIDAY)
        assert schedule.breaks == (TimeWindow(1560, 1590),)

    def test_overnight_break_spanning_midnight(self):
        repo = make_repository(defaults=[friday_night_shift(break_start_time="23:30", break_end_time="00:30")])
        schedule = AvailabilityResolver(repo).resolve("team_north", FRIDAY)
        assert schedule.breaks == (TimeWindow(1410, 1470),)

    def test_break_is_clipped_to_window(self):
        repo = make_repository(defaults=[
            DefaultAvailability(resource_id="team_north", day_of_week=0, start_time="09:00", end_time="17:00",
                                break_start_time="08:00", break_end_time="09:30")
        ])
        schedule = AvailabilityResolver(repo).resolve("team_north", MONDAY)
        assert schedule.breaks == (TimeWindow(540, 570),)

    def test_break_outside_window_is_dropped(self):
        repo = make_repository(defaults=[
            DefaultAvailability(resource_id="team_north", day_of_week=0, start_time="09:00", end_time="17:00",
                                break_start_time="18:00", break_end_time="19:00")
        ])
        assert AvailabilityResolver(repo).resolve("team_north", MONDAY).breaks == ()

    def test_time_window_str(self):
        assert str(TimeWindow(1320, 1800)) == "22:00-06:00"


class TestLookupFailures:
    def test_malformed_stored_time(self):
        repo = make_repository(defaults=[
            DefaultAvailability(resource_id="team_north", day_of_week=0, start_time="25:00", end_time="17:00")
        ])
        with pytest.raises(AvailabilityLookupFailed) as exc_info:
            AvailabilityResolver(repo).resolve("team_north", MONDAY)
        assert exc_info.value.day == MONDAY
        assert exc_info.value.resource_id == "team_north"

    def test_transient_error_fails_closed(self):
        repo = FlakyRepository(defaults=make_repository().defaults.values())
        with pytest.raises(AvailabilityLookupFailed, match="connection reset"):
            AvailabilityResolver(repo).resolve("team_north", MONDAY)

    def test_record_not_found_means_absent(self):
        repo = MissingRowRepository(defaults=make_repository().defaults.values())
        schedule = AvailabilityResolver(repo).resolve("team_north", MONDAY)
        assert schedule.is_open
        assert schedule.source == SOURCE_DEFAULT


class TestCaching:
    def test_weekly_default_read_once_per_weekday(self, repository):
        cache = LookupCache()
        resolver = AvailabilityResolver(repository, cache)
        resolver.resolve("team_north", MONDAY)
        resolver.resolve("team_north", NEXT_MONDAY)

        # override + holiday per date, default shared by both Mondays
        assert cache.misses == 5
        assert cache.hits == 1

    def test_repeat_resolution_is_cached(self, repository):
        cache = LookupCache()
        resolver = AvailabilityResolver(repository, cache)
        first = resolver.resolve("team_north", MONDAY)
        second = resolver.resolve("team_north", MONDAY)
        assert first == second
        assert cache.misses == 3
        assert cache.hits == 3

    def test_failed_lookup_is_not_cached(self):
        cache = LookupCache()
        repo = FlakyRepository(defaults=make_repository().defaults.values())
        with pytest.raises(AvailabilityLookupFailed):
            AvailabilityResolver(repo, cache).resolve("team_north", MONDAY)
        assert ("override", "team_north", MONDAY) not in cache
