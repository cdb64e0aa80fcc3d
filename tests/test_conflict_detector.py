"""Tests for overlap detection against existing appointments."""

import uuid
from datetime import date, time

import pytest

from studio_scheduler.core.exceptions import InvalidRangeError, NotFoundError
from studio_scheduler.models import Appointment, AppointmentStatus
from studio_scheduler.services.availability.conflict_detector import ConflictDetector

MONDAY = date(2025, 9, 1)
TUESDAY = date(2025, 9, 2)


@pytest.fixture
def add_appointment(db, studio, team_member, location):
    def _add(service, start, end, on=MONDAY, status=AppointmentStatus.SCHEDULED.value, at=None):
        appointment = Appointment(
            studio_id=studio.id,
            team_member_id=team_member.id,
            service_id=service.id,
            location_id=(at or location).id,
            appointment_date=on,
            start_time=time.fromisoformat(start),
            end_time=time.fromisoformat(end),
            status=status,
        )
        db.add(appointment)
        db.commit()
        return appointment
    return _add


@pytest.fixture
def detector(store):
    return ConflictDetector(store)


class TestOverlap:
    """Plain half-open overlap without buffers."""

    def test_partial_overlap_is_a_conflict(self, detector, team_member, haircut, trim, add_appointment):
        booked = add_appointment(haircut, "09:00", "10:00")

        conflicts = detector.find_conflicts(team_member.id, MONDAY, "09:30", "10:00", service_id=trim.id)
        assert [c.id for c in conflicts] == [booked.id]
        assert detector.has_conflict(team_member.id, MONDAY, "09:30", "10:00")

    def test_back_to_back_is_not_a_conflict(self, detector, team_member, haircut, add_appointment):
        add_appointment(haircut, "09:00", "10:00")

        assert not detector.has_conflict(team_member.id, MONDAY, "10:00", "11:00")
        assert not detector.has_conflict(team_member.id, MONDAY, "08:00", "09:00")

    def test_other_day_is_ignored(self, detector, team_member, haircut, add_appointment):
        add_appointment(haircut, "09:00", "10:00")
        assert not detector.has_conflict(team_member.id, TUESDAY, "09:00", "10:00")

    @pytest.mark.parametrize("status", [AppointmentStatus.CANCELLED.value, AppointmentStatus.NO_SHOW.value])
    def test_released_appointments_do_not_block(self, detector, team_member, haircut, add_appointment, status):
        add_appointment(haircut, "09:00", "10:00", status=status)
        assert not detector.has_conflict(team_member.id, MONDAY, "09:00", "10:00")

    def test_excluded_appointment_is_skipped(self, detector, team_member, haircut, add_appointment):
        booked = add_appointment(haircut, "09:00", "10:00")
        assert not detector.has_conflict(
            team_member.id, MONDAY, "09:30", "10:30", exclude_appointment_id=booked.id
        )

    def test_reversed_range_is_rejected(self, detector, team_member):
        with pytest.raises(InvalidRangeError):
            detector.has_conflict(team_member.id, MONDAY, "10:00", "10:00")

    def test_unknown_team_member(self, detector):
        with pytest.raises(NotFoundError):
            detector.has_conflict(uuid.uuid4(), MONDAY, "09:00", "10:00")


class TestBuffers:
    """Setup, cleanup and travel padding."""

    def test_cleanup_of_existing_blocks_next_start(self, detector, team_member, haircut, trim, add_appointment, make_buffer):
        make_buffer(haircut, cleanup=15)
        add_appointment(haircut, "09:00", "10:00")

        assert detector.has_conflict(team_member.id, MONDAY, "10:00", "10:30", service_id=trim.id)
        assert not detector.has_conflict(team_member.id, MONDAY, "10:15", "10:45", service_id=trim.id)

    def test_setup_of_candidate_reaches_back(self, detector, team_member, haircut, trim, add_appointment, make_buffer):
        make_buffer(trim, setup=10)
        add_appointment(haircut, "09:00", "10:00")

        assert detector.has_conflict(team_member.id, MONDAY, "10:05", "10:35", service_id=trim.id)
        assert not detector.has_conflict(team_member.id, MONDAY, "10:10", "10:40", service_id=trim.id)

    def test_travel_applies_between_locations(
            self, detector, team_member, haircut, trim, location, second_location, add_appointment, make_buffer
    ):
        make_buffer(haircut, travel=30)
        add_appointment(haircut, "09:00", "10:00", at=location)

        # Same location: no travel needed
        assert not detector.has_conflict(
            team_member.id, MONDAY, "10:00", "10:30", service_id=trim.id, location_id=location.id
        )
        assert detector.has_conflict(
            team_member.id, MONDAY, "10:15", "10:45", service_id=trim.id, location_id=second_location.id
        )
        assert not detector.has_conflict(
            team_member.id, MONDAY, "10:30", "11:00", service_id=trim.id, location_id=second_location.id
        )

    def test_larger_travel_wins(
            self, detector, team_member, haircut, trim, location, second_location, add_appointment, make_buffer
    ):
        make_buffer(haircut, travel=10)
        make_buffer(trim, travel=45)
        add_appointment(haircut, "09:00", "10:00", at=location)

        assert detector.has_conflict(
            team_member.id, MONDAY, "10:30", "11:00", service_id=trim.id, location_id=second_location.id
        )
        assert not detector.has_conflict(
            team_member.id, MONDAY, "10:45", "11:15", service_id=trim.id, location_id=second_location.id
        )
