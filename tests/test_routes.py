from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient

from clinic_scheduler.api.deps import get_event_store, get_holiday_oracle, get_sms_gateway
from clinic_scheduler.core.clock import at_clinic, now_local
from clinic_scheduler.core.config import settings
from clinic_scheduler.main import app
from tests.fakes import FakeEventStore, FakeHolidayOracle, RecordingSmsGateway


def _upcoming_weekday() -> date:
    d = now_local().date() + timedelta(days=2)
    while d.weekday() >= 5:
        d += timedelta(days=1)
    return d


BOOKING = {
    "appointment_type": "vstupne_vysetrenie",
    "patient_name": "Jana",
    "patient_surname": "Nováková",
    "phone": "0905 123 456",
    "insurance": "dôvera",
    "email": "",
}


@pytest.fixture
def fake_store():
    return FakeEventStore()


@pytest.fixture
def gateway():
    return RecordingSmsGateway()


@pytest.fixture
def client(fake_store, gateway):
    app.dependency_overrides[get_event_store] = lambda: fake_store
    app.dependency_overrides[get_holiday_oracle] = lambda: FakeHolidayOracle()
    app.dependency_overrides[get_sms_gateway] = lambda: gateway
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def day():
    return _upcoming_weekday()


def _book(client, day, hhmm="09:00"):
    return client.post("/api/v1/appointments", json={**BOOKING, "date_time": f"{day.isoformat()}T{hhmm}:00"})


class TestAppointmentTypeRoutes:
    def test_list(self, client):
        response = client.get("/api/v1/appointment-types")
        assert response.status_code == 200
        keys = [t["key"] for t in response.json()]
        assert "konzultacia" in keys

    def test_requirements_by_spoken_name(self, client):
        response = client.get("/api/v1/appointment-types/športová prehliadka/requirements")
        assert response.status_code == 200
        assert response.json()["price"] == "130€"

    def test_unknown_type_is_422(self, client):
        response = client.get("/api/v1/appointment-types/masaz/requirements")
        assert response.status_code == 422
        assert response.json()["detail"]["kind"] == "invalid_input"


class TestSlotRoutes:
    def test_available(self, client, day):
        response = client.get(
            "/api/v1/slots/available",
            params={"date": day.isoformat(), "appointment_type": "konzultacia", "time_preference": "ráno"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["appointment_type"] == "Konzultácia"
        assert [s["time"] for s in data["slots"]][:2] == ["07:30", "07:40"]
        assert all(s["time"] <= "09:00" for s in data["slots"])

    def test_soonest(self, client, day):
        response = client.post(
            "/api/v1/slots/soonest",
            json={"appointment_type": "konzultacia", "preferred_date": day.isoformat()},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["found"] is True
        assert data["closest_slot"]["date"] == day.isoformat()


class TestAppointmentRoutes:
    def test_book(self, client, day, fake_store, gateway, monkeypatch):
        monkeypatch.setattr(settings, "sms_enabled", True)
        response = _book(client, day)
        assert response.status_code == 201
        data = response.json()
        assert data["appointment"]["time"] == "09:00"
        assert data["appointment"]["order_number"] == 1
        assert data["sms_queued"] is True
        assert len(fake_store.events) == 1
        assert gateway.sent[0][0] == "+421905123456"

    def test_double_booking_is_409(self, client, day):
        assert _book(client, day).status_code == 201
        response = _book(client, day)
        assert response.status_code == 409
        detail = response.json()["detail"]
        assert detail["kind"] == "scheduling_conflict"
        assert "Time slot is not available" in detail["errors"]
        assert detail["alternatives"]

    def test_bad_email_is_rejected_by_schema(self, client, day):
        response = client.post(
            "/api/v1/appointments",
            json={**BOOKING, "email": "not-an-email", "date_time": f"{day.isoformat()}T09:00:00"},
        )
        assert response.status_code == 422

    def test_cancel(self, client, day, fake_store):
        _book(client, day)
        response = client.post(
            "/api/v1/appointments/cancel",
            json={"patient_name": "Jana Nováková", "phone": "+421905123456", "appointment_date": day.isoformat()},
        )
        assert response.status_code == 200
        assert response.json()["cancelled_appointment"]["time"] == "09:00"
        assert fake_store.events == {}

    def test_cancel_unknown_is_404(self, client, day):
        response = client.post(
            "/api/v1/appointments/cancel",
            json={"patient_name": "Jana Nováková", "phone": "+421905123456", "appointment_date": day.isoformat()},
        )
        assert response.status_code == 404

    def test_reschedule(self, client, day):
        _book(client, day)
        response = client.post(
            "/api/v1/appointments/reschedule",
            json={
                "patient_name": "Jana Nováková",
                "phone": "0905123456",
                "old_date": day.isoformat(),
                "new_date_time": f"{day.isoformat()}T13:00:00",
            },
        )
        assert response.status_code == 200
        data = response.json()
        assert data["old_appointment"]["time"] == "09:00"
        assert data["new_appointment"]["time"] == "13:00"

    def test_reschedule_partial_failure_is_500(self, client, day, fake_store):
        _book(client, day)
        fake_store.fail_create = True
        response = client.post(
            "/api/v1/appointments/reschedule",
            json={
                "patient_name": "Jana Nováková",
                "phone": "0905123456",
                "old_date": day.isoformat(),
                "new_date_time": f"{day.isoformat()}T13:00:00",
            },
        )
        assert response.status_code == 500
        assert response.json()["detail"]["kind"] == "partial_failure"


class TestWebhook:
    def test_missing_action_is_400(self, client):
        response = client.post("/api/v1/booking/webhook", json={"parameters": {}})
        assert response.status_code == 400

    def test_unsupported_action(self, client):
        response = client.post("/api/v1/booking/webhook", json={"action": "send_fax", "parameters": {}})
        assert response.status_code == 200
        assert response.json()["success"] is False
        assert "book_appointment" in response.json()["supported_actions"]

    def test_missing_parameters(self, client):
        response = client.post("/api/v1/booking/webhook", json={"action": "get_available_slots", "parameters": {}})
        body = response.json()
        assert body["success"] is False
        assert "date" in body["error"]

    def test_book_then_conflict(self, client, day):
        parameters = {**BOOKING, "date_time": f"{day.isoformat()}T09:00:00"}
        first = client.post("/api/v1/booking/webhook", json={"action": "book_appointment", "parameters": parameters})
        assert first.json()["success"] is True
        assert first.json()["appointment"]["order_number"] == 1

        second = client.post("/api/v1/booking/webhook", json={"action": "book_appointment", "parameters": parameters})
        assert second.status_code == 200
        body = second.json()
        assert body["success"] is False
        assert body["kind"] == "scheduling_conflict"
        assert body["alternatives"][0]["available_slots"]

    def test_find_closest_slot(self, client, day):
        response = client.post(
            "/api/v1/booking/webhook",
            json={"action": "find_closest_slot", "parameters": {"appointment_type": "konzultácia", "preferred_date": day.isoformat()}},
        )
        body = response.json()
        assert body["success"] is True
        assert body["closest_slot"]["time"] == "07:30"

    def test_secret_is_enforced_when_configured(self, client, monkeypatch):
        monkeypatch.setattr(settings, "webhook_secret", "s3cret")
        payload = {"action": "get_available_slots", "parameters": {}}
        assert client.post("/api/v1/booking/webhook", json=payload).status_code == 401
        response = client.post("/api/v1/booking/webhook", json=payload, headers={"X-Webhook-Secret": "s3cret"})
        assert response.status_code == 200


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
