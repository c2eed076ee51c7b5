"""Tests for the half-open conflict rule and buffered intervals."""

from datetime import datetime, timedelta

import pytest

from models import AppointmentStatus, Service
from scheduler.constraints import (
    ConflictChecker,
    intervals_overlap,
    occupied_interval,
    require_service_metadata,
    validate_interval,
)
from scheduler.exceptions import InvalidSchedulingRequest
from scheduler.repository import InMemoryRepository
from tests.conftest import MONDAY, make_appointment, make_repository, utc


class LeakyRepository(InMemoryRepository):
    """Returns every stored appointment, ignoring status and overlap."""

    def find_overlapping_appointments(self, resource_id, start, end, exclude_id=None):
        return list(self.appointments.get(resource_id, []))


@pytest.fixture
def checker(repository):
    return ConflictChecker(repository)


class TestOverlapRule:
    def test_touching_intervals_do_not_overlap(self):
        assert not intervals_overlap(0, 60, 60, 120)
        assert not intervals_overlap(60, 120, 0, 60)

    def test_partial_overlap(self):
        assert intervals_overlap(0, 61, 60, 120)

    def test_containment_overlaps(self):
        assert intervals_overlap(0, 300, 60, 120)
        assert intervals_overlap(60, 120, 0, 300)

    def test_occupied_interval(self):
        start, end = occupied_interval(utc(MONDAY, 10), utc(MONDAY, 11), 15)
        assert start == utc(MONDAY, 9, 45)
        assert end == utc(MONDAY, 11, 15)


class TestConflictChecker:
    def test_back_to_back_without_buffer(self, checker):
        assert checker.check("team_north", utc(MONDAY, 11), utc(MONDAY, 12), 0) == []
        assert checker.check("team_north", utc(MONDAY, 9), utc(MONDAY, 10), 0) == []

    def test_direct_overlap(self, checker):
        conflicts = checker.check("team_north", utc(MONDAY, 10, 30), utc(MONDAY, 11, 30), 0)
        assert [a.id for a in conflicts] == ["appt_1"]

    def test_buffer_boundary_after(self, checker):
        # Existing ends at 11:00; with a 15 minute buffer 11:15 is the first clean start
        assert checker.check("team_north", utc(MONDAY, 11, 15), utc(MONDAY, 12, 15), 15) == []
        assert len(checker.check("team_north", utc(MONDAY, 11, 14), utc(MONDAY, 12, 14), 15)) == 1

    def test_buffer_boundary_before(self, checker):
        # Existing starts at 10:00; the proposal must end by 09:45
        assert checker.check("team_north", utc(MONDAY, 8, 45), utc(MONDAY, 9, 45), 15) == []
        assert len(checker.check("team_north", utc(MONDAY, 8, 46), utc(MONDAY, 9, 46), 15)) == 1

    def test_other_resource_is_free(self, checker):
        assert checker.check("team_south", utc(MONDAY, 10), utc(MONDAY, 11), 15) == []

    def test_exclude_appointment_being_rescheduled(self, checker):
        conflicts = checker.check(
            "team_north", utc(MONDAY, 10, 30), utc(MONDAY, 11, 30), 15,
            exclude_appointment_id="appt_1",
        )
        assert conflicts == []

    @pytest.mark.parametrize("status,blocks", [
        (AppointmentStatus.PENDING, True),
        (AppointmentStatus.CONFIRMED, True),
        (AppointmentStatus.CANCELLED, False),
        (AppointmentStatus.COMPLETED, False),
        (AppointmentStatus.NO_SHOW, False),
    ])
    def test_only_blocking_statuses_conflict(self, status, blocks):
        repo = make_repository(appointments=[
            make_appointment("appt_x", utc(MONDAY, 10), utc(MONDAY, 11), status=status)
        ])
        conflicts = ConflictChecker(repo).check("team_north", utc(MONDAY, 10), utc(MONDAY, 11), 0)
        assert bool(conflicts) is blocks

    def test_results_refiltered_after_repository(self):
        repo = LeakyRepository(appointments=[
            make_appointment("cancelled", utc(MONDAY, 10), utc(MONDAY, 11), status=AppointmentStatus.CANCELLED),
            make_appointment("far_away", utc(MONDAY, 15), utc(MONDAY, 16)),
            make_appointment("hit", utc(MONDAY, 10), utc(MONDAY, 11)),
        ])
        conflicts = ConflictChecker(repo).check("team_north", utc(MONDAY, 10), utc(MONDAY, 11), 0)
        assert [a.id for a in conflicts] == ["hit"]

    def test_multiple_conflicts_sorted(self):
        repo = make_repository(appointments=[
            make_appointment("late", utc(MONDAY, 14), utc(MONDAY, 15)),
            make_appointment("early", utc(MONDAY, 9), utc(MONDAY, 10)),
        ])
        conflicts = ConflictChecker(repo).check("team_north", utc(MONDAY, 9, 30), utc(MONDAY, 14, 30), 0)
        assert [a.id for a in conflicts] == ["early", "late"]

    def test_naive_datetimes_are_utc(self, checker):
        naive_start = datetime(MONDAY.year, MONDAY.month, MONDAY.day, 10, 30)
        conflicts = checker.check("team_north", naive_start, naive_start + timedelta(hours=1), 0)
        assert len(conflicts) == 1


class TestValidation:
    def test_start_must_precede_end(self, checker):
        with pytest.raises(InvalidSchedulingRequest, match="Invalid interval"):
            checker.check("team_north", utc(MONDAY, 11), utc(MONDAY, 11), 0)
        with pytest.raises(InvalidSchedulingRequest):
            checker.check("team_north", utc(MONDAY, 12), utc(MONDAY, 11), 0)

    @pytest.mark.parametrize("buffer", [None, -5])
    def test_buffer_required(self, checker, buffer):
        with pytest.raises(InvalidSchedulingRequest, match="buffer_minutes"):
            checker.check("team_north", utc(MONDAY, 10), utc(MONDAY, 11), buffer)

    def test_resource_required(self, checker):
        with pytest.raises(InvalidSchedulingRequest, match="resource_id"):
            checker.check("", utc(MONDAY, 10), utc(MONDAY, 11), 0)

    def test_non_datetime_rejected(self):
        with pytest.raises(InvalidSchedulingRequest, match="must be a datetime"):
            validate_interval("2025-03-17T10:00", utc(MONDAY, 11))

    def test_service_without_buffer(self, checker):
        service = Service(id="svc_legacy", duration_minutes=60)
        with pytest.raises(InvalidSchedulingRequest, match="buffer_minutes"):
            checker.check_for_service(service, "team_north", utc(MONDAY, 10), utc(MONDAY, 11))

    def test_service_without_duration(self):
        with pytest.raises(InvalidSchedulingRequest, match="duration_minutes"):
            require_service_metadata(Service(id="svc_legacy", buffer_minutes=10))

    def test_check_for_service_uses_service_buffer(self, checker):
        service = Service(id="svc_clean", duration_minutes=60, buffer_minutes=15)
        conflicts = checker.check_for_service(service, "team_north", utc(MONDAY, 11, 10), utc(MONDAY, 12, 10))
        assert len(conflicts) == 1
