"""HTTP surface: auth guards, status codes and error mapping"""

import pytest
from fastapi.testclient import TestClient

from pawcare.app import app
from pawcare.config import settings
from pawcare.dependencies import get_store
from pawcare.services.document_store import APPOINTMENTS, NOTIFICATIONS


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def login(client, user_id):
    client.cookies.set(settings.SESSION_COOKIE_NAME, user_id)


BOOKING = {
    "provider_id": "A",
    "pet_name": "Rex",
    "disease": "Dental",
    "day": "Monday",
    "time": "9:00 AM",
}


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_directory_search_is_public(client):
    response = client.get("/client/api/providers", params={"search": "skin"})

    assert response.status_code == 200
    rows = response.json()["providers"]
    assert [row["provider_id"] for row in rows] == ["A", "B", "C"]


def test_slots_for_day(client):
    response = client.get("/client/api/providers/A/specializations/dental/slots", params={"day": "monday"})

    assert response.status_code == 200
    assert response.json()["slots"] == ["9:00 AM", "10:00 AM"]


def test_booking_requires_session(client):
    response = client.post("/client/api/appointments", json=BOOKING)

    assert response.status_code == 401


def test_booking_rejects_provider_session(client):
    login(client, "A")

    response = client.post("/client/api/appointments", json=BOOKING)

    assert response.status_code == 403


def test_book_appointment(client, store):
    login(client, "owner-1")

    response = client.post("/client/api/appointments", json=BOOKING)

    assert response.status_code == 201
    body = response.json()
    assert body["appointment"]["status"] == "pending"
    stored = store.documents(APPOINTMENTS)
    assert [d["id"] for d in stored] == [body["appointment_id"]]


def test_book_unpublished_slot(client, store):
    login(client, "owner-1")

    response = client.post("/client/api/appointments", json={**BOOKING, "time": "4:00 PM"})

    assert response.status_code == 409
    assert response.json()["error"] == "slot_unavailable"
    assert store.documents(APPOINTMENTS) == []


def test_book_missing_fields(client):
    login(client, "owner-1")

    response = client.post("/client/api/appointments", json={**BOOKING, "pet_name": " "})

    assert response.status_code == 422
    assert response.json()["error"] == "validation_failed"


def test_book_unknown_provider(client):
    login(client, "owner-1")

    response = client.post("/client/api/appointments", json={**BOOKING, "provider_id": "Z"})

    assert response.status_code == 404


def test_approve_flow(client, seed_appointment, store):
    seed_appointment("X")
    login(client, "A")

    response = client.post("/provider/api/appointments/X/approve")

    assert response.status_code == 200
    result = response.json()["result"]
    assert result["appointment"]["status"] == "approved"
    assert result["previous_status"] == "pending"
    login(client, "owner-1")
    notifications = client.get("/notifications/api").json()["notifications"]
    assert [n["message"] for n in notifications] == ["Your appointment has been approved!"]


def test_approve_twice_conflicts(client, seed_appointment):
    seed_appointment("X", status="approved")
    login(client, "A")

    response = client.post("/provider/api/appointments/X/approve")

    assert response.status_code == 409


def test_approve_other_providers_appointment(client, seed_appointment, store):
    seed_appointment("X")
    login(client, "D")

    response = client.post("/provider/api/appointments/X/approve")

    assert response.status_code == 403
    assert store.documents(APPOINTMENTS)[0]["status"] == "pending"


def test_transfer_emergency(client, seed_appointment):
    seed_appointment("Y", provider_id="B", disease="skin", status="emergency_pending", is_emergency=True)
    login(client, "B")

    response = client.post("/provider/api/appointments/Y/transfer")

    assert response.status_code == 200
    result = response.json()["result"]
    assert result["new_provider_id"] == "A"
    assert result["appointment"]["status"] == "emergency_pending"
    login(client, "A")
    listing = client.get("/provider/api/appointments").json()["appointments"]
    assert [a["id"] for a in listing] == ["Y"]


def test_transfer_without_alternate(client, seed_appointment):
    seed_appointment("Y", provider_id="A", disease="Dermatology", status="emergency_pending", is_emergency=True)
    login(client, "A")

    response = client.post("/provider/api/appointments/Y/transfer")

    assert response.status_code == 409
    assert response.json()["error"] == "no_alternate_provider"


def test_emergency_booking_inside_window(client):
    login(client, "owner-2")
    window = client.get("/client/api/emergency-window").json()

    response = client.post("/client/api/emergency-appointments", json={
        **BOOKING,
        "day": window["days"][0],
        "time": window["times"][0],
    })

    assert response.status_code == 201
    appointment = response.json()["appointment"]
    assert appointment["status"] == "emergency_pending"
    assert appointment["is_emergency"] is True


def test_mark_notification_read(client, store):
    store.seed(NOTIFICATIONS, "n1", {
        "recipient_id": "owner-1",
        "kind": "appointment_update",
        "message": "hi",
        "created_at": "2025-03-03T09:00:00+00:00",
        "read": False,
    })
    login(client, "owner-2")
    assert client.post("/notifications/api/n1/read").status_code == 403

    login(client, "owner-1")
    response = client.post("/notifications/api/n1/read")

    assert response.status_code == 200
    assert client.get("/notifications/api", params={"unread_only": True}).json()["notifications"] == []


def test_docs_served_outside_production(client):
    assert not settings.IS_PRODUCTION
    assert client.get("/docs").status_code == 200
