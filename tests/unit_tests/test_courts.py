"""Tests for the /api/courts endpoints."""

from datetime import timedelta

from tests.mocks.models import MOCK_COURTS, upcoming_date


class TestListCourts:
    def test_list_all_courts(self, client):
        resp = client.get("/api/courts")
        assert resp.status_code == 200
        data = resp.json()
        assert len(data["items"]) == len(MOCK_COURTS)
        assert data["meta"]["total_items"] == len(MOCK_COURTS)

    def test_filter_venue_and_active(self, client):
        resp = client.get("/api/courts", params={"venue_id": "venue-1", "active": "true"})
        assert resp.status_code == 200
        assert [c["id"] for c in resp.json()["items"]] == ["court-a", "court-b"]

    def test_filter_court_type(self, client):
        resp = client.get("/api/courts", params={"court_type": "badminton"})
        assert {c["id"] for c in resp.json()["items"]} == {"court-a", "court-d"}

    def test_pagination(self, client):
        resp = client.get("/api/courts", params={"page": 2, "page_size": 3})
        data = resp.json()
        assert len(data["items"]) == 1
        assert data["meta"]["total_pages"] == 2


class TestGetCourt:
    def test_get_existing_court(self, client):
        resp = client.get("/api/courts/court-a")
        assert resp.status_code == 200
        data = resp.json()
        assert data["name"] == "Court A"
        assert data["capacity"] == 10

    def test_get_court_not_found(self, client):
        resp = client.get("/api/courts/no-such-court")
        assert resp.status_code == 404


class TestCourtTimeSlots:
    def test_slots_for_date(self, client):
        day = upcoming_date()
        resp = client.get("/api/courts/court-a/time-slots", params={"date": day.isoformat()})
        assert resp.status_code == 200

        data = resp.json()
        assert data["court_id"] == "court-a"
        assert data["availability_date"] == day.isoformat()
        starts = [s["start_time"] for s in data["time_slots"]]
        assert len(starts) == 15
        assert "12:00" not in starts
        assert data["time_slots"][0]["id"] == f"court-a-{day.isoformat()}-06:00"
        assert data["time_slots"][0]["price"] == "600.00"
        assert all(s["is_available"] for s in data["time_slots"])

    def test_inactive_court_has_no_slots(self, client):
        resp = client.get("/api/courts/court-c/time-slots", params={"date": upcoming_date().isoformat()})
        assert resp.status_code == 200
        assert resp.json()["time_slots"] == []

    def test_unknown_court(self, client):
        resp = client.get("/api/courts/no-such-court/time-slots")
        assert resp.status_code == 404

    def test_date_beyond_booking_window(self, client):
        resp = client.get(
            "/api/courts/court-a/time-slots",
            params={"date": upcoming_date(31).isoformat()},
        )
        assert resp.status_code == 400

    def test_past_date(self, client):
        resp = client.get(
            "/api/courts/court-a/time-slots",
            params={"date": (upcoming_date(0) - timedelta(days=1)).isoformat()},
        )
        assert resp.status_code == 400
