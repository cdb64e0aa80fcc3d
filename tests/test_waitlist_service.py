"""Tests for the waitlist."""

import uuid
from datetime import date, time

import pytest

from studio_scheduler.core.exceptions import NotFoundError, ValidationError
from studio_scheduler.schemas.scheduling import TimeSlot, WaitlistEntryCreate
from studio_scheduler.services.waitlist.waitlist_service import WaitlistService, serialize_entry

MONDAY = date(2025, 9, 1)


@pytest.fixture
def add_entry(db, studio, client_record, haircut):
    def _add(**kwargs):
        kwargs.setdefault("client_id", client_record.id)
        kwargs.setdefault("service_id", haircut.id)
        return WaitlistService.add_entry(db, studio.id, WaitlistEntryCreate(**kwargs))
    return _add


def slot(start, end, service, team_member, location, on=MONDAY):
    return TimeSlot(
        date=on, start=start, end=end,
        service_id=service.id, team_member_id=team_member.id, location_id=location.id
    )


class TestAddEntry:

    def test_add_and_serialize(self, add_entry, client_record, haircut):
        entry = add_entry(
            preferred_time_start=time(9, 0),
            preferred_time_end=time(12, 0),
            notification_preferences={"sms": True},
        )

        data = serialize_entry(entry)
        assert data["client_id"] == str(client_record.id)
        assert data["service_id"] == str(haircut.id)
        assert data["preferred_time_start"] == "09:00"
        assert data["is_active"] is True
        assert data["notification_preferences"] == {"sms": True}

    def test_reversed_windows(self, add_entry):
        with pytest.raises(ValidationError):
            add_entry(preferred_date_start=date(2025, 9, 10), preferred_date_end=date(2025, 9, 1))
        with pytest.raises(ValidationError):
            add_entry(preferred_time_start=time(12, 0), preferred_time_end=time(12, 0))

    def test_unknown_client_or_service(self, add_entry):
        with pytest.raises(NotFoundError):
            add_entry(client_id=uuid.uuid4())
        with pytest.raises(NotFoundError):
            add_entry(service_id=uuid.uuid4())


class TestMatching:
    """Freed slots are offered in priority order to entries whose preferences fit."""

    def test_priority_order(self, db, studio, add_entry, haircut, team_member, location):
        low = add_entry(priority_score=1)
        high = add_entry(priority_score=10)

        matches = WaitlistService.find_matches(db, studio.id, slot("10:00", "11:00", haircut, team_member, location))
        assert [m.id for m in matches] == [high.id, low.id]

    def test_first_come_within_same_priority(self, db, studio, add_entry):
        entries = [add_entry(priority_score=5) for _ in range(8)]
        urgent = add_entry(priority_score=9)

        active = WaitlistService.list_active(db, studio.id)
        assert [e.id for e in active] == [urgent.id] + [e.id for e in entries]

    def test_preferences_filter(self, db, studio, add_entry, haircut, trim, team_member, location, second_location):
        morning = add_entry(preferred_time_start=time(9, 0), preferred_time_end=time(12, 0))
        harbour = add_entry(location_id=second_location.id)
        september = add_entry(preferred_date_start=date(2025, 9, 1), preferred_date_end=date(2025, 9, 30))
        with_ana = add_entry(preferred_team_member_id=team_member.id)
        trims = add_entry(service_id=trim.id)

        freed = slot("11:30", "12:30", haircut, team_member, location)
        matched = {m.id for m in WaitlistService.find_matches(db, studio.id, freed)}

        assert september.id in matched
        assert with_ana.id in matched
        assert morning.id not in matched
        assert harbour.id not in matched
        assert trims.id not in matched

    def test_deactivated_entries_are_skipped(self, db, studio, add_entry, haircut, team_member, location):
        entry = add_entry()
        WaitlistService.deactivate(db, studio.id, entry.id)

        assert WaitlistService.list_active(db, studio.id) == []
        assert WaitlistService.find_matches(db, studio.id, slot("10:00", "11:00", haircut, team_member, location)) == []

    def test_deactivate_is_idempotent(self, db, studio, add_entry):
        entry = add_entry()
        WaitlistService.deactivate(db, studio.id, entry.id)
        assert WaitlistService.deactivate(db, studio.id, entry.id).is_active is False

    def test_deactivate_unknown(self, db, studio):
        with pytest.raises(NotFoundError):
            WaitlistService.deactivate(db, studio.id, uuid.uuid4())
