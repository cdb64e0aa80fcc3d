"""Tests for client records and preferences."""

import uuid

import pytest

from studio_scheduler.core.exceptions import NotFoundError
from studio_scheduler.models import Studio
from studio_scheduler.schemas.preferences import ClientCreate, ClientPreferencesUpdate, ClientUpdate
from studio_scheduler.services.client.client_service import ClientService


@pytest.fixture
def new_client(db, studio):
    return ClientService.create_client(db, studio.id, ClientCreate(
        first_name="Jonas",
        last_name="Berg",
        email="jonas@example.com",
        preferences={"preferred_language": "de", "notifications": {"email": True, "sms": True}},
    ))


class TestClients:

    def test_create(self, new_client, studio):
        assert new_client.studio_id == studio.id
        assert new_client.email == "jonas@example.com"
        assert new_client.preferences["preferred_language"] == "de"
        assert new_client.preferences["notifications"]["sms"] is True

    def test_search(self, db, studio, new_client, client_record):
        assert [c.id for c in ClientService.list_clients(db, studio.id)] == [new_client.id, client_record.id]
        assert [c.id for c in ClientService.list_clients(db, studio.id, search="berg")] == [new_client.id]
        assert [c.id for c in ClientService.list_clients(db, studio.id, search="+49151")] == [client_record.id]

    def test_update_merges_preferences(self, db, studio, new_client):
        updated = ClientService.update_client(db, studio.id, new_client.id, ClientUpdate(
            phone="+4917000000",
            preferences={"marketing_opt_in": False},
        ))

        assert updated.phone == "+4917000000"
        assert updated.last_name == "Berg"
        assert updated.preferences["preferred_language"] == "de"
        assert updated.preferences["marketing_opt_in"] is False

    def test_other_studio_cannot_see_client(self, db, new_client):
        other = Studio(name="Elsewhere")
        db.add(other)
        db.commit()

        with pytest.raises(NotFoundError):
            ClientService.get_client(db, other.id, new_client.id)
        assert ClientService.list_clients(db, other.id) == []

    def test_delete(self, db, studio, new_client):
        ClientService.upsert_preferences(db, studio.id, new_client.id, ClientPreferencesUpdate(allergies="Latex"))
        ClientService.delete_client(db, studio.id, new_client.id)

        with pytest.raises(NotFoundError):
            ClientService.get_client(db, studio.id, new_client.id)


class TestPreferences:

    def test_defaults_when_missing(self, db, studio, client_record):
        preferences = ClientService.get_preferences(db, studio.id, client_record.id)
        assert preferences["id"] is None
        assert preferences["preferred_team_members"] == []

    def test_upsert(self, db, studio, client_record, team_member):
        ClientService.upsert_preferences(db, studio.id, client_record.id, ClientPreferencesUpdate(
            preferred_team_members=[team_member.id],
            preferred_times={"days_of_week": [1, 3], "earliest": "10:00"},
        ))
        saved = ClientService.upsert_preferences(db, studio.id, client_record.id, ClientPreferencesUpdate(
            allergies="Latex",
        ))

        data = saved.to_dict()
        assert data["preferred_team_members"] == [str(team_member.id)]
        assert data["preferred_times"]["days_of_week"] == [1, 3]
        assert data["allergies"] == "Latex"

    def test_unknown_client(self, db, studio):
        with pytest.raises(NotFoundError):
            ClientService.get_preferences(db, studio.id, uuid.uuid4())
