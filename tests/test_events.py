"""Tests for the event API.

Covers:
- Admin-only create / update / delete (401 without caller, 403 for non-admins)
- Field validation → 422 with per-field detail
- Derived occupancy fields on every event response
- Listing filters and ordering
- Delete cascades to registrations
"""
from tests.conftest import (
    auth,
    create_test_event,
    create_test_user,
    days_from_today,
    participant,
)


def _setup(client):
    """Create an administrator and a regular resident."""
    admin = create_test_user(client, name="City Admin", is_admin=True)
    resident = create_test_user(client, name="Resident One")
    return admin, resident


class TestEventCreate:
    """Event creation and validation."""

    def test_create_event(self, client):
        admin, _ = _setup(client)
        event = create_test_event(client, admin, title="Harbour Clean-up", capacity=25)
        assert event["title"] == "Harbour Clean-up"
        assert event["category"] == "Environment"
        assert event["created_by"] == admin["user_id"]
        assert event["registered_count"] == 0
        assert event["available_spots"] == 25
        assert event["is_full"] is False

    def test_time_normalised(self, client):
        admin, _ = _setup(client)
        event = create_test_event(client, admin, time="7:45")
        assert event["time"] == "07:45"

    def test_create_without_header_unauthorized(self, client):
        admin, _ = _setup(client)
        payload = {
            "title": "Chess", "city": "Nicosia", "category": "Education",
            "date": days_from_today(3).isoformat(), "time": "10:00",
            "location": "Library", "capacity": 10,
        }
        resp = client.post("/api/events", json=payload)
        assert resp.status_code == 401
        assert resp.json()["code"] == "UNAUTHORIZED"

    def test_create_non_admin_forbidden(self, client):
        _, resident = _setup(client)
        payload = {
            "title": "Chess", "city": "Nicosia", "category": "Education",
            "date": days_from_today(3).isoformat(), "time": "10:00",
            "location": "Library", "capacity": 10,
        }
        resp = client.post("/api/events", json=payload, headers=auth(resident))
        assert resp.status_code == 403
        assert resp.json()["code"] == "FORBIDDEN"

    def test_invalid_capacity(self, client):
        admin, _ = _setup(client)
        payload = {
            "title": "Chess", "city": "Nicosia", "category": "Education",
            "date": days_from_today(3).isoformat(), "time": "10:00",
            "location": "Library", "capacity": 0,
        }
        resp = client.post("/api/events", json=payload, headers=auth(admin))
        assert resp.status_code == 422
        body = resp.json()
        assert body["code"] == "VALIDATION_ERROR"
        assert "capacity" in body["fields"]

    def test_invalid_time_and_blank_title(self, client):
        admin, _ = _setup(client)
        payload = {
            "title": "   ", "city": "Nicosia", "category": "Education",
            "date": days_from_today(3).isoformat(), "time": "24:30",
            "location": "Library", "capacity": 10,
        }
        resp = client.post("/api/events", json=payload, headers=auth(admin))
        assert resp.status_code == 422
        assert set(resp.json()["fields"]) == {"title", "time"}

    def test_missing_fields_and_unknown_category(self, client):
        admin, _ = _setup(client)
        resp = client.post(
            "/api/events",
            json={"title": "Chess", "category": "Gardening"},
            headers=auth(admin),
        )
        assert resp.status_code == 422
        fields = resp.json()["fields"]
        assert "category" in fields
        assert "city" in fields
        assert "capacity" in fields


class TestEventRead:
    """Single fetch and listing."""

    def test_get_event(self, client):
        admin, _ = _setup(client)
        event = create_test_event(client, admin)
        resp = client.get(f"/api/events/{event['event_id']}")
        assert resp.status_code == 200
        assert resp.json()["event_id"] == event["event_id"]

    def test_get_unknown_event(self, client):
        resp = client.get("/api/events/does-not-exist")
        assert resp.status_code == 404
        assert resp.json()["code"] == "NOT_FOUND"

    def test_list_ordered_by_date_and_time(self, client):
        admin, _ = _setup(client)
        create_test_event(client, admin, title="Evening", date=days_from_today(5).isoformat(), time="19:00")
        create_test_event(client, admin, title="Morning", date=days_from_today(5).isoformat(), time="08:00")
        create_test_event(client, admin, title="Tomorrow", date=days_from_today(1).isoformat(), time="21:00")
        titles = [e["title"] for e in client.get("/api/events").json()]
        assert titles == ["Tomorrow", "Morning", "Evening"]

    def test_list_filters(self, client):
        admin, _ = _setup(client)
        create_test_event(client, admin, title="Jazz Evening", city="Limassol", category="Music & Entertainment")
        create_test_event(client, admin, title="Jazz Workshop", city="Nicosia", category="Education")
        create_test_event(client, admin, title="Museum Walk", city="Nicosia", category="Culture",
                          date=days_from_today(-2).isoformat())

        def titles(**params):
            resp = client.get("/api/events", params=params)
            assert resp.status_code == 200
            return sorted(e["title"] for e in resp.json())

        assert titles(city="nicosia") == ["Jazz Workshop", "Museum Walk"]
        assert titles(category="Music & Entertainment") == ["Jazz Evening"]
        assert titles(search="jazz", city="Nicosia") == ["Jazz Workshop"]
        assert titles(city="Nicosia", upcoming="true") == ["Jazz Workshop"]
        assert titles(date=days_from_today(-2).isoformat()) == ["Museum Walk"]

    def test_list_rejects_unknown_category(self, client):
        resp = client.get("/api/events", params={"category": "Gardening"})
        assert resp.status_code == 422
        assert "category" in resp.json()["fields"]


class TestEventUpdate:
    """Partial updates, admin only."""

    def test_update_event(self, client):
        admin, _ = _setup(client)
        event = create_test_event(client, admin)
        resp = client.put(
            f"/api/events/{event['event_id']}",
            json={"location": "Kyrenia Castle", "capacity": 40},
            headers=auth(admin),
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["location"] == "Kyrenia Castle"
        assert data["capacity"] == 40
        assert data["title"] == event["title"]

    def test_update_non_admin_forbidden(self, client):
        admin, resident = _setup(client)
        event = create_test_event(client, admin)
        resp = client.put(f"/api/events/{event['event_id']}", json={"capacity": 40}, headers=auth(resident))
        assert resp.status_code == 403

    def test_update_unknown_event(self, client):
        admin, _ = _setup(client)
        resp = client.put("/api/events/missing", json={"capacity": 4}, headers=auth(admin))
        assert resp.status_code == 404

    def test_update_invalid_capacity(self, client):
        admin, _ = _setup(client)
        event = create_test_event(client, admin)
        resp = client.put(f"/api/events/{event['event_id']}", json={"capacity": -3}, headers=auth(admin))
        assert resp.status_code == 422
        assert "capacity" in resp.json()["fields"]

    def test_lowering_capacity_clamps_available_spots(self, client):
        admin, resident = _setup(client)
        event = create_test_event(client, admin, capacity=3)
        client.post("/api/registrations", json={
            "event_id": event["event_id"],
            "participants": [participant("A", "a@example.com"), participant("B", "b@example.com")],
        }, headers=auth(resident))
        resp = client.put(f"/api/events/{event['event_id']}", json={"capacity": 1}, headers=auth(admin))
        assert resp.status_code == 200
        data = resp.json()
        assert data["registered_count"] == 2
        assert data["available_spots"] == 0
        assert data["is_full"] is True


class TestEventDelete:
    """Deletion cascades to registrations."""

    def test_delete_event_cascades(self, client):
        admin, resident = _setup(client)
        event = create_test_event(client, admin, capacity=10)
        other = create_test_event(client, admin, title="Kite Festival")
        for target in (event, other):
            resp = client.post("/api/registrations", json={"event_id": target["event_id"]}, headers=auth(resident))
            assert resp.status_code == 201

        resp = client.delete(f"/api/events/{event['event_id']}", headers=auth(admin))
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "registrations_removed": 1}

        assert client.get(f"/api/events/{event['event_id']}").status_code == 404
        mine = client.get("/api/registrations", headers=auth(resident)).json()
        assert [r["event_id"] for r in mine] == [other["event_id"]]
        admin_view = client.get(f"/api/admin/events/{event['event_id']}/registrations", headers=auth(admin))
        assert admin_view.status_code == 404

    def test_delete_non_admin_forbidden(self, client):
        admin, resident = _setup(client)
        event = create_test_event(client, admin)
        resp = client.delete(f"/api/events/{event['event_id']}", headers=auth(resident))
        assert resp.status_code == 403
        assert client.get(f"/api/events/{event['event_id']}").status_code == 200

    def test_delete_unknown_event(self, client):
        admin, _ = _setup(client)
        resp = client.delete("/api/events/missing", headers=auth(admin))
        assert resp.status_code == 404


class TestHealth:
    def test_health(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}
