"""Tests for the public booking page and dashboard API routes."""
import inspect
import uuid

import pytest
from fastapi.testclient import TestClient

from app.api.dependencies import get_now
from app.config.database import get_db
from app.main import app

from tests.helpers import MONDAY, NOW, SUNDAY

PUBLIC = "/api/v1/public/businesses"
DASHBOARD = "/api/v1/dashboard/businesses"
GUEST = {"guest_name": "Ada", "guest_phone": "555-0101"}


@pytest.fixture
def client(session_factory):
    """Test client on the in-memory database with a fixed clock."""
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_now] = lambda: NOW
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def setup(client, business, service):
    """Client plus ids of a business open Mon-Fri 09:00-18:00 and a 30 minute service."""
    return client, str(business.id), str(service.id)


def book(client, service_id, time="10:00", day=MONDAY, **extra):
    payload = {"service_id": service_id, "date": day.isoformat(), "time": time, **GUEST, **extra}
    return client.post(f"{PUBLIC}/studio-nine/appointments", json=payload)


class TestBusinessSetupRoutes:
    """Registering a business and configuring its calendar."""

    def test_register_and_configure(self, client):
        response = client.post(f"{DASHBOARD}", json={"name": "Nails", "slug": "nails"})
        assert response.status_code == 201
        business_id = response.json()["id"]

        response = client.put(f"{DASHBOARD}/{business_id}/hours/1", json={"is_open": True})
        assert response.status_code == 200
        assert response.json()["start_time"] == "09:00"

        response = client.post(f"{DASHBOARD}/{business_id}/breaks", json={"day_of_week": 1})
        assert response.status_code == 201

        response = client.post(
            f"{DASHBOARD}/{business_id}/services",
            json={"name": "Manicure", "duration_minutes": 45, "price": 25}
        )
        assert response.status_code == 201
        service_id = response.json()["id"]

        calendar = client.get(f"{DASHBOARD}/{business_id}/calendar").json()
        assert len(calendar["hours"]) == 1
        assert len(calendar["breaks"]) == 1

        slots = client.get(f"{PUBLIC}/nails/slots", params={"service_id": service_id, "date": MONDAY.isoformat()})
        assert slots.status_code == 200
        assert "12:15" in slots.json()["slots"]
        assert "12:30" not in slots.json()["slots"]

    def test_duplicate_slug(self, client, business):
        response = client.post(f"{DASHBOARD}", json={"name": "Again", "slug": "studio-nine"})
        assert response.status_code == 400

    def test_invalid_hours(self, setup):
        client, business_id, _ = setup
        response = client.put(
            f"{DASHBOARD}/{business_id}/hours/1",
            json={"is_open": True, "start_time": "18:00", "end_time": "09:00"}
        )
        assert response.status_code == 400

    def test_close_weekday(self, setup):
        client, business_id, service_id = setup
        response = client.put(f"{DASHBOARD}/{business_id}/hours/1", json={"is_open": False})
        assert response.json() == {"day_of_week": 1, "is_open": False}

        slots = client.get(f"{PUBLIC}/studio-nine/slots", params={"service_id": service_id, "date": MONDAY.isoformat()})
        assert slots.json()["status"] == "closed"

    def test_unknown_business(self, client):
        assert client.get(f"{DASHBOARD}/{uuid.uuid4()}/calendar").status_code == 404
        assert client.get(f"{PUBLIC}/nowhere/gate").status_code == 404


class TestPublicBookingRoutes:
    """Booking page: slots, gate, membership and appointments."""

    def test_booking_page_lists_services(self, setup):
        client, _, service_id = setup
        data = client.get(f"{PUBLIC}/studio-nine").json()
        assert data["business"]["slug"] == "studio-nine"
        assert data["services"][0]["id"] == service_id

    def test_slots(self, setup):
        client, _, service_id = setup
        response = client.get(f"{PUBLIC}/studio-nine/slots", params={"service_id": service_id, "date": MONDAY.isoformat()})

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "open"
        assert data["slots"][0] == "09:00"
        assert data["slots"][-1] == "17:30"

    def test_slots_on_closure(self, setup):
        client, business_id, service_id = setup
        client.post(
            f"{DASHBOARD}/{business_id}/closures",
            json={"start_date": MONDAY.isoformat(), "end_date": MONDAY.isoformat(), "reason": "Holiday"}
        )

        data = client.get(f"{PUBLIC}/studio-nine/slots", params={"service_id": service_id, "date": MONDAY.isoformat()}).json()
        assert data["slots"] == []
        assert data["status"] == "closure"
        assert data["reason"] == "Holiday"

    def test_book_as_guest(self, setup):
        client, _, service_id = setup
        response = book(client, service_id, client_notes="First visit")

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "PENDING"
        assert data["start_time"] == "2030-01-07T10:00:00"
        assert data["end_time"] == "2030-01-07T10:30:00"
        assert "business_private_notes" not in data

        slots = client.get(f"{PUBLIC}/studio-nine/slots", params={"service_id": service_id, "date": MONDAY.isoformat()})
        assert "10:00" not in slots.json()["slots"]

    def test_book_taken_slot(self, setup):
        client, _, service_id = setup
        book(client, service_id)
        response = book(client, service_id)

        assert response.status_code == 409
        assert response.json()["error"] == "invalid_slot"
        assert response.json()["recoverable"] is True

    def test_book_closed_day(self, setup):
        client, _, service_id = setup
        response = book(client, service_id, day=SUNDAY)
        assert response.status_code == 409
        assert response.json()["error"] == "business_closed"

    def test_guest_without_phone(self, setup):
        client, _, service_id = setup
        response = client.post(
            f"{PUBLIC}/studio-nine/appointments",
            json={"service_id": service_id, "date": MONDAY.isoformat(), "time": "10:00", "guest_name": "Ada"}
        )
        assert response.status_code == 400

    def test_too_many_images(self, setup):
        client, _, service_id = setup
        response = book(client, service_id, image_urls=["a.jpg", "b.jpg", "c.jpg"])
        assert response.status_code == 400

    def test_malformed_time(self, setup):
        client, _, service_id = setup
        assert book(client, service_id, time="25:00").status_code == 422

    def test_club_membership_flow(self, setup, db, business):
        client, _, service_id = setup
        business.requires_membership = True
        db.commit()
        client_id = str(uuid.uuid4())

        gate = client.get(f"{PUBLIC}/studio-nine/gate", params={"client_id": client_id}).json()
        assert gate["gate"] == "join_required"

        response = book(client, service_id, client_id=client_id)
        assert response.status_code == 403
        assert response.json()["gate"] == "join_required"

        response = client.post(f"{PUBLIC}/studio-nine/membership", json={"client_id": client_id})
        assert response.status_code == 201
        assert response.json()["status"] == "PENDING"

        gate = client.get(f"{PUBLIC}/studio-nine/gate", params={"client_id": client_id}).json()
        assert gate["gate"] == "awaiting_approval"

        response = client.patch(f"{DASHBOARD}/{business.id}/clients/{client_id}", json={"status": "APPROVED"})
        assert response.status_code == 200

        response = book(client, service_id, client_id=client_id)
        assert response.status_code == 201
        assert response.json()["status"] == "CONFIRMED"

    def test_guest_gate_on_club_business(self, setup, db, business):
        client, _, _ = setup
        business.requires_membership = True
        db.commit()

        gate = client.get(f"{PUBLIC}/studio-nine/gate").json()
        assert gate["gate"] == "login_required"
        assert gate["membership_status"] == "NONE"


class TestBookingFormRoutes:
    """Business-defined questions on the booking form."""

    def test_required_question_flow(self, setup):
        client, business_id, service_id = setup
        response = client.post(
            f"{DASHBOARD}/{business_id}/form-fields",
            json={"label": "Hair length", "field_type": "SELECT", "is_required": True, "options": ["short", "long"]}
        )
        assert response.status_code == 201
        field_id = response.json()["id"]

        page = client.get(f"{PUBLIC}/studio-nine").json()
        assert page["form_fields"][0]["label"] == "Hair length"

        response = book(client, service_id)
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_request"

        response = book(client, service_id, custom_fields_data={field_id: "long"})
        assert response.status_code == 201
        assert response.json()["custom_fields_data"] == {field_id: "long"}

    def test_update_and_delete(self, setup):
        client, business_id, _ = setup
        field_id = client.post(f"{DASHBOARD}/{business_id}/form-fields", json={"label": "Allergies"}).json()["id"]
        url = f"{DASHBOARD}/{business_id}/form-fields/{field_id}"

        response = client.patch(url, json={"is_required": True})
        assert response.json()["is_required"] is True

        response = client.patch(url, json={"field_type": "SELECT"})
        assert response.status_code == 400

        assert client.delete(url).status_code == 204
        assert client.delete(url).status_code == 404
        assert client.get(f"{DASHBOARD}/{business_id}/form-fields").json()["total"] == 0


class TestDashboardAppointmentRoutes:
    """Manual booking, status changes, notes and reschedules."""

    def test_manual_booking_is_confirmed(self, setup):
        client, business_id, service_id = setup
        response = client.post(
            f"{DASHBOARD}/{business_id}/appointments",
            json={"service_id": service_id, "date": MONDAY.isoformat(), "time": "11:00", **GUEST}
        )

        assert response.status_code == 201
        assert response.json()["status"] == "CONFIRMED"
        assert response.json()["booking_source"] == "STAFF"

    def test_status_changes(self, setup):
        client, business_id, service_id = setup
        appointment_id = book(client, service_id).json()["id"]
        url = f"{DASHBOARD}/{business_id}/appointments/{appointment_id}/status"

        assert client.patch(url, json={"status": "CONFIRMED"}).json()["status"] == "CONFIRMED"
        assert client.patch(url, json={"status": "COMPLETED"}).json()["status"] == "COMPLETED"

        response = client.patch(url, json={"status": "CANCELLED"})
        assert response.status_code == 409
        assert response.json()["error"] == "invalid_transition"
        assert response.json()["recoverable"] is False

    def test_cancel_frees_the_slot_and_restore_rechecks_it(self, setup):
        client, business_id, service_id = setup
        first_id = book(client, service_id).json()["id"]
        url = f"{DASHBOARD}/{business_id}/appointments/{first_id}/status"

        assert client.patch(url, json={"status": "CANCELLED"}).status_code == 200
        assert book(client, service_id).status_code == 201

        response = client.patch(url, json={"status": "PENDING"})
        assert response.status_code == 409
        assert response.json()["error"] == "slot_no_longer_available"

    def test_notes(self, setup):
        client, business_id, service_id = setup
        appointment_id = book(client, service_id).json()["id"]

        response = client.patch(
            f"{DASHBOARD}/{business_id}/appointments/{appointment_id}/notes",
            json={"business_public_notes": "See you!", "business_private_notes": "Regular"}
        )
        assert response.status_code == 200
        assert response.json()["business_private_notes"] == "Regular"

    def test_reschedule(self, setup):
        client, business_id, service_id = setup
        appointment_id = book(client, service_id).json()["id"]
        base = f"{DASHBOARD}/{business_id}/appointments/{appointment_id}"

        slots = client.get(f"{base}/reschedule-slots", params={"date": MONDAY.isoformat()}).json()
        assert "10:00" in slots["slots"]
        assert "10:15" in slots["slots"]

        response = client.post(f"{base}/reschedule", json={"date": MONDAY.isoformat(), "time": "10:15"})
        assert response.status_code == 200
        assert response.json()["start_time"] == "2030-01-07T10:15:00"
        assert response.json()["status"] == "PENDING"

    def test_unknown_appointment(self, setup):
        client, business_id, _ = setup
        response = client.get(f"{DASHBOARD}/{business_id}/appointments/{uuid.uuid4()}")
        assert response.status_code == 404

    def test_listing_and_stats(self, setup):
        client, business_id, service_id = setup
        book(client, service_id, time="09:00")
        book(client, service_id, time="10:00")

        listing = client.get(f"{DASHBOARD}/{business_id}/appointments", params={"view": "active"}).json()
        assert listing["total_appointments"] == 2

        day = client.get(f"{DASHBOARD}/{business_id}/appointments/day/{MONDAY.isoformat()}").json()
        assert [a["start_time"][11:16] for a in day["appointments"]] == ["09:00", "10:00"]

        stats = client.get(f"{DASHBOARD}/{business_id}/appointments/stats/summary").json()
        assert stats["pending_appointments"] == 2


class TestCommitRoutes:
    """Routes that write through the commit guard wait on the booking lock."""

    @pytest.mark.parametrize("method,path", [
        ("POST", "/api/v1/public/businesses/{slug}/appointments"),
        ("POST", "/api/v1/dashboard/businesses/{business_id}/appointments"),
        ("POST", "/api/v1/dashboard/businesses/{business_id}/appointments/{appointment_id}/reschedule"),
        ("PATCH", "/api/v1/dashboard/businesses/{business_id}/appointments/{appointment_id}/status"),
    ])
    def test_commit_routes_run_in_threadpool(self, method, path):
        route = next(r for r in app.routes if getattr(r, "path", None) == path and method in r.methods)
        assert not inspect.iscoroutinefunction(route.endpoint)


class TestHealthRoutes:

    def test_health(self, client):
        assert client.get("/health/").json()["status"] == "healthy"

    def test_detailed_health(self, client):
        data = client.get("/health/detailed").json()
        assert data["database"] == "healthy"
        assert data["overall"] == "healthy"
