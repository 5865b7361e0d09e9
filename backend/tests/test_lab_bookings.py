"""Tests for the lab booking slot picker."""
import pytest

from labx.errors import ValidationError
from labx.services import lab_booking_service
from tests.conftest import create_test_user


class TestSlots:
    def test_grid(self):
        slots = lab_booking_service.TIME_SLOTS
        assert len(slots) == 32
        assert slots[0] == "08:00"
        assert slots[1] == "08:20"
        assert slots[-1] == "18:20"

    def test_selection_in_either_order(self):
        assert lab_booking_service.resolve_selection(5, 3) == ["09:00", "09:20", "09:40"]
        assert lab_booking_service.resolve_selection(3, 5) == ["09:00", "09:20", "09:40"]

    def test_single_tap(self):
        assert lab_booking_service.resolve_selection(0) == ["08:00"]

    @pytest.mark.parametrize("start,end", [(-1, None), (32, None), (0, 40)])
    def test_out_of_range(self, start, end):
        with pytest.raises(ValidationError):
            lab_booking_service.resolve_selection(start, end)


class TestBookingRoutes:
    def test_slots_endpoint(self, client):
        data = client.get("/api/lab-bookings/slots").json()
        assert data["locations"] == ["Research Lab", "Physics Lab", "Chemistry Lab", "Biology Lab"]
        assert data["slots"][3] == "09:00"

    def test_book_range(self, client, outbox):
        alex = create_test_user(client, outbox)
        resp = client.post("/api/lab-bookings/", json={
            "location": "Physics Lab",
            "booking_date": "2024-01-10",
            "start_index": 6,
            "end_index": 3,
            "booked_by": alex["user_id"],
        })
        assert resp.status_code == 201
        data = resp.json()
        assert (data["start_time"], data["end_time"]) == ("09:00", "10:00")

        listed = client.get("/api/lab-bookings/", params={"booking_date": "2024-01-10"}).json()
        assert [b["booking_id"] for b in listed] == [data["booking_id"]]

    def test_unknown_location(self, client, outbox):
        alex = create_test_user(client, outbox)
        resp = client.post("/api/lab-bookings/", json={
            "location": "Art Room",
            "booking_date": "2024-01-10",
            "start_index": 0,
            "booked_by": alex["user_id"],
        })
        assert resp.status_code == 400
