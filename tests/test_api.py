"""HTTP tests for the dashboard API."""

import uuid
from datetime import date

import pytest

from studio_scheduler.api.dependencies import create_access_token

MONDAY = date(2025, 9, 1)
BASE = "/api/v1/dashboard"


@pytest.fixture
def booking(team_member, haircut, location, client_record):
    return {
        "client_id": str(client_record.id),
        "team_member_id": str(team_member.id),
        "service_id": str(haircut.id),
        "location_id": str(location.id),
        "appointment_date": MONDAY.isoformat(),
        "start_time": "09:00",
    }


@pytest.fixture
def booked(api_client, booking, working_hours):
    response = api_client.post(f"{BASE}/appointments", json=booking)
    assert response.status_code == 201
    return response.json()


class TestAuthentication:

    def test_missing_token(self, api_client):
        del api_client.headers["Authorization"]
        response = api_client.get(f"{BASE}/appointments")
        assert response.status_code in (401, 403)

    def test_garbage_token(self, api_client):
        api_client.headers["Authorization"] = "Bearer not-a-jwt"
        assert api_client.get(f"{BASE}/appointments").status_code == 401

    def test_token_without_studio(self, api_client):
        api_client.headers["Authorization"] = f"Bearer {create_access_token({'sub': 'user-123'})}"
        assert api_client.get(f"{BASE}/appointments").status_code == 403

    def test_health_is_public(self, api_client):
        del api_client.headers["Authorization"]
        response = api_client.get("/health/")
        assert response.status_code == 200


class TestAppointmentsApi:
    """Booking lifecycle over HTTP."""

    def test_book(self, booked, haircut):
        assert booked["start_time"] == "09:00"
        assert booked["end_time"] == "10:00"
        assert booked["status"] == "scheduled"
        assert booked["service"]["name"] == "Haircut"
        assert booked["total_price"] == 50.0

    def test_conflict_is_409(self, api_client, booked, booking, trim):
        booking.update({"service_id": str(trim.id), "start_time": "09:30"})
        response = api_client.post(f"{BASE}/appointments", json=booking, headers={"X-Correlation-ID": "req-42"})

        assert response.status_code == 409
        body = response.json()
        assert body["code"] == "slot_unavailable"
        assert body["correlation_id"] == "req-42"
        assert body["context"]["conflicting_appointment_ids"] == [booked["id"]]
        assert response.headers["X-Correlation-ID"] == "req-42"

    def test_outside_hours_is_409(self, api_client, booking, working_hours):
        booking["start_time"] = "07:00"
        response = api_client.post(f"{BASE}/appointments", json=booking)
        assert response.status_code == 409
        assert response.json()["code"] == "slot_unavailable"

    def test_crossing_midnight_is_422(self, api_client, booking, working_hours):
        booking["start_time"] = "23:30"
        response = api_client.post(f"{BASE}/appointments", json=booking)
        assert response.status_code == 422
        assert response.json()["code"] == "validation_error"
        assert response.json()["error_type"] == "invalid_range"

    def test_seconds_in_start_time_is_422(self, api_client, booking, working_hours):
        booking["start_time"] = "09:00:30"
        assert api_client.post(f"{BASE}/appointments", json=booking).status_code == 422
        assert api_client.get(f"{BASE}/appointments").json()["total_appointments"] == 0

    def test_unknown_appointment_is_404(self, api_client):
        response = api_client.get(f"{BASE}/appointments/{uuid.uuid4()}")
        assert response.status_code == 404
        assert response.json()["code"] == "not_found"

    def test_list_and_get(self, api_client, booked):
        listing = api_client.get(f"{BASE}/appointments", params={"start_date": "2025-09-01"}).json()
        assert listing["total_appointments"] == 1
        assert listing["appointments"][0]["id"] == booked["id"]

        detail = api_client.get(f"{BASE}/appointments/{booked['id']}").json()
        assert detail["reminder_sent_at"] is None

    def test_reschedule_then_history(self, api_client, booked):
        response = api_client.post(
            f"{BASE}/appointments/{booked['id']}/reschedule",
            json={"new_date": "2025-09-02", "new_start_time": "14:00", "reason": "Moved"},
        )
        assert response.status_code == 200
        assert response.json()["status"] == "rescheduled"

        history = api_client.get(f"{BASE}/appointments/{booked['id']}/history").json()
        assert [entry["change_type"] for entry in history] == ["created", "rescheduled"]
        assert history[1]["changed_by"] == "user-123"
        assert history[1]["old_values"]["start_time"] == "09:00"
        assert history[1]["new_values"]["start_time"] == "14:00"

    def test_cancel_twice(self, api_client, booked):
        first = api_client.post(f"{BASE}/appointments/{booked['id']}/cancel", json={"reason": "Sick"})
        second = api_client.post(f"{BASE}/appointments/{booked['id']}/cancel")
        assert first.status_code == second.status_code == 200
        assert second.json()["status"] == "cancelled"

    def test_invalid_transition_is_422(self, api_client, booked):
        response = api_client.post(f"{BASE}/appointments/{booked['id']}/status", json={"status": "completed"})
        assert response.status_code == 422
        assert response.json()["error_type"] == "invalid_transition"

    def test_status_and_payment(self, api_client, booked):
        confirmed = api_client.post(f"{BASE}/appointments/{booked['id']}/status", json={"status": "confirmed"})
        assert confirmed.json()["status"] == "confirmed"

        paid = api_client.patch(f"{BASE}/appointments/{booked['id']}", json={"paid_amount": "50.00"})
        assert paid.status_code == 200
        assert paid.json()["payment_status"] == "paid"

    def test_metrics(self, api_client, booked):
        metrics = api_client.get(f"{BASE}/appointments/metrics").json()
        assert metrics["total_appointments"] == 1
        assert metrics["peak_hours"] == [{"hour": 9, "appointments": 1}]


class TestAvailabilityApi:

    def test_slots(self, api_client, haircut, location, working_hours):
        response = api_client.get(f"{BASE}/availability/slots", params={
            "start_date": "2025-09-01",
            "end_date": "2025-09-01",
            "service_id": str(haircut.id),
            "location_id": str(location.id),
            "step_minutes": 60,
        })
        assert response.status_code == 200
        body = response.json()
        assert body["total_slots"] == 8
        assert body["slots"][0]["start"] == "09:00"
        assert body["slots"][0]["date"] == "2025-09-01"

    def test_slots_need_service_or_duration(self, api_client, working_hours):
        response = api_client.get(f"{BASE}/availability/slots", params={
            "start_date": "2025-09-01", "end_date": "2025-09-01",
        })
        assert response.status_code == 422

    def test_open_intervals(self, api_client, team_member, location, working_hours):
        response = api_client.get(f"{BASE}/availability/open-intervals", params={
            "team_member_id": str(team_member.id),
            "location_id": str(location.id),
            "date": "2025-09-01",
        })
        assert response.json()["intervals"] == [{"start": "09:00", "end": "17:00"}]

    def test_conflicts(self, api_client, booked, team_member):
        response = api_client.get(f"{BASE}/availability/conflicts", params={
            "team_member_id": str(team_member.id),
            "date": "2025-09-01",
            "start_time": "09:30",
            "end_time": "10:30",
        })
        assert response.json() == {"has_conflict": True, "conflicting_appointment_ids": [booked["id"]]}


class TestScheduleAndClientsApi:

    def test_blocked_time_removes_slots(self, api_client, team_member, haircut, location, working_hours):
        created = api_client.post(f"{BASE}/schedule/blocked-time", json={
            "team_member_id": str(team_member.id),
            "title": "Training",
            "block_type": "training",
            "start_date": "2025-09-01",
            "end_date": "2025-09-01",
            "is_all_day": True,
        })
        assert created.status_code == 201

        slots = api_client.get(f"{BASE}/availability/slots", params={
            "start_date": "2025-09-01", "end_date": "2025-09-01", "service_id": str(haircut.id),
        }).json()
        assert slots["total_slots"] == 0

    def test_create_rule_rejects_reversed_times(self, api_client):
        response = api_client.post(f"{BASE}/schedule/rules", json={
            "start_time": "17:00", "end_time": "09:00", "effective_from": "2025-01-01",
        })
        assert response.status_code == 422

    def test_client_crud(self, api_client):
        created = api_client.post(f"{BASE}/clients", json={"first_name": "Lea", "last_name": "Voss"})
        assert created.status_code == 201
        client_id = created.json()["id"]

        assert api_client.get(f"{BASE}/clients", params={"search": "voss"}).json()["total_clients"] == 1
        assert api_client.delete(f"{BASE}/clients/{client_id}").status_code == 204
        assert api_client.get(f"{BASE}/clients/{client_id}").status_code == 404

    def test_waitlist(self, api_client, client_record, haircut, team_member, location):
        created = api_client.post(f"{BASE}/waitlist", json={
            "client_id": str(client_record.id),
            "service_id": str(haircut.id),
            "priority_score": 5,
        })
        assert created.status_code == 201

        matches = api_client.post(f"{BASE}/waitlist/matches", json={
            "date": "2025-09-01",
            "start": "10:00",
            "end": "11:00",
            "service_id": str(haircut.id),
            "team_member_id": str(team_member.id),
            "location_id": str(location.id),
        }).json()
        assert matches["total_matches"] == 1
