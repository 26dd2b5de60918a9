"""
Booking API tests
Covers /bookings lifecycle endpoints and the DomainError -> HTTP mapping
"""
from datetime import date, timedelta
from decimal import Decimal

from fastapi.testclient import TestClient

from resortpms.models.ontology import BookingStatus, RoomStatus

from factories import auth_headers, make_booking, make_room


def _stay(offset=0, nights=2):
    start = date.today() + timedelta(days=offset)
    return start.isoformat(), (start + timedelta(days=nights)).isoformat()


def _create(client, headers, room_id, offset=0, nights=2, **extra):
    check_in, check_out = _stay(offset, nights)
    payload = {
        "room_id": room_id,
        "guest_name": "Alice",
        "guest_phone": "0800000001",
        "check_in": check_in,
        "check_out": check_out,
    }
    payload.update(extra)
    return client.post("/bookings", json=payload, headers=headers)


class TestCreateBooking:

    def test_create(self, client: TestClient, room, receptionist_headers):
        response = _create(client, receptionist_headers, room.id)

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "pending"
        assert data["payment_status"] == "pending"
        assert data["nights"] == 2
        assert data["room_name"] == "R1"
        assert Decimal(data["total_amount"]) == Decimal("2000")

    def test_guest_can_self_book(self, client: TestClient, room, guest_headers):
        response = _create(client, guest_headers, room.id, offset=5)
        assert response.status_code == 201
        assert response.json()["created_by"] == "guest-1"

    def test_guest_cannot_confirm_own_booking(self, client: TestClient, room, guest_headers, receptionist_headers):
        booking_id = _create(client, guest_headers, room.id, offset=5).json()["id"]

        response = client.post(f"/bookings/{booking_id}/confirm", headers=guest_headers)
        assert response.status_code == 403
        assert response.json()["code"] == "permission_denied"
        assert client.get(f"/bookings/{booking_id}", headers=receptionist_headers).json()["status"] == "pending"

    def test_overlap_conflict(self, client: TestClient, room, receptionist_headers):
        assert _create(client, receptionist_headers, room.id).status_code == 201

        response = _create(client, receptionist_headers, room.id, offset=1, guest_phone="0811111111")
        assert response.status_code == 409
        assert response.json()["code"] == "overlap"

    def test_back_to_back_allowed(self, client: TestClient, room, receptionist_headers):
        assert _create(client, receptionist_headers, room.id, offset=0).status_code == 201
        assert _create(client, receptionist_headers, room.id, offset=2).status_code == 201

    def test_bad_interval(self, client: TestClient, room, receptionist_headers):
        response = _create(client, receptionist_headers, room.id, nights=0)
        assert response.status_code == 422
        assert response.json()["code"] == "invalid_interval"

    def test_walk_in_in_the_past(self, client: TestClient, room, receptionist_headers):
        response = _create(client, receptionist_headers, room.id, offset=-1, source="walk_in")
        assert response.status_code == 422
        assert "past" in response.json()["detail"]

    def test_blank_guest_name(self, client: TestClient, room, receptionist_headers):
        response = _create(client, receptionist_headers, room.id, guest_name="   ")
        assert response.status_code == 422

    def test_unknown_room(self, client: TestClient, receptionist_headers):
        response = _create(client, receptionist_headers, 999)
        assert response.status_code == 404
        assert response.json()["code"] == "not_found"

    def test_housekeeper_forbidden(self, client: TestClient, room, housekeeper):
        response = _create(client, auth_headers(housekeeper), room.id)
        assert response.status_code == 403
        assert response.json()["code"] == "permission_denied"

    def test_bad_token(self, client: TestClient, room):
        response = _create(client, {"Authorization": "Bearer not-a-token"}, room.id)
        assert response.status_code == 401


class TestLifecycle:

    def test_full_stay(self, client: TestClient, db_session, room, receptionist_headers):
        booking_id = _create(client, receptionist_headers, room.id).json()["id"]

        response = client.post(f"/bookings/{booking_id}/confirm", headers=receptionist_headers)
        assert response.json()["status"] == "confirmed"

        response = client.post(f"/bookings/{booking_id}/check-in", headers=receptionist_headers)
        assert response.status_code == 200
        assert response.json()["checked_in_at"] is not None
        db_session.refresh(room)
        assert room.status == RoomStatus.OCCUPIED

        in_house = client.get("/bookings/in-house", headers=receptionist_headers).json()
        assert [b["id"] for b in in_house] == [booking_id]

        response = client.post(f"/bookings/{booking_id}/check-out", headers=receptionist_headers)
        assert response.json()["status"] == "checked_out"
        db_session.refresh(room)
        assert room.status == RoomStatus.CLEANING

    def test_check_in_pending_rejected(self, client: TestClient, room, receptionist_headers):
        booking_id = _create(client, receptionist_headers, room.id).json()["id"]

        response = client.post(f"/bookings/{booking_id}/check-in", headers=receptionist_headers)
        assert response.status_code == 409
        assert response.json()["code"] == "invalid_transition"

    def test_check_in_room_in_cleaning(self, client: TestClient, db_session, receptionist_headers):
        room = make_room(db_session, status=RoomStatus.CLEANING)
        booking = make_booking(db_session, room, check_in=date.today(),
                               check_out=date.today() + timedelta(days=1),
                               status=BookingStatus.CONFIRMED)

        response = client.post(f"/bookings/{booking.id}/check-in", headers=receptionist_headers)
        assert response.status_code == 409
        assert response.json()["code"] == "room_unavailable"

    def test_cancel_with_reason(self, client: TestClient, room, receptionist_headers):
        booking_id = _create(client, receptionist_headers, room.id).json()["id"]

        response = client.post(f"/bookings/{booking_id}/cancel", json={"reason": "change of plans"},
                               headers=receptionist_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"
        assert response.json()["cancel_reason"] == "change of plans"

        again = client.post(f"/bookings/{booking_id}/cancel", json={}, headers=receptionist_headers)
        assert again.status_code == 409

    def test_guest_cannot_cancel(self, client: TestClient, room, guest_headers):
        booking_id = _create(client, guest_headers, room.id).json()["id"]
        response = client.post(f"/bookings/{booking_id}/cancel", json={}, headers=guest_headers)
        assert response.status_code == 403

    def test_get_unknown(self, client: TestClient, receptionist_headers):
        assert client.get("/bookings/404", headers=receptionist_headers).status_code == 404


class TestQueries:

    def test_filter_by_status_and_guest(self, client: TestClient, db_session, room, receptionist_headers):
        make_booking(db_session, room, status=BookingStatus.CONFIRMED)
        make_booking(db_session, room, check_in=date(2024, 3, 10), check_out=date(2024, 3, 12),
                     guest_name="Bob", guest_phone="0899999999")

        confirmed = client.get("/bookings", params={"status": "confirmed"}, headers=receptionist_headers)
        assert [b["guest_name"] for b in confirmed.json()] == ["Alice"]

        bob = client.get("/bookings", params={"guest": "Bob"}, headers=receptionist_headers)
        assert len(bob.json()) == 1

    def test_date_range_selects_overlapping_stays(self, client: TestClient, db_session, room,
                                                  receptionist_headers):
        make_booking(db_session, room, check_in=date(2024, 3, 1), check_out=date(2024, 3, 3))
        make_booking(db_session, room, check_in=date(2024, 3, 5), check_out=date(2024, 3, 7))

        response = client.get("/bookings", params={"date_from": "2024-03-02", "date_to": "2024-03-05"},
                              headers=receptionist_headers)
        assert [b["check_in"] for b in response.json()] == ["2024-03-01"]

    def test_guest_cannot_list(self, client: TestClient, guest_headers):
        assert client.get("/bookings", headers=guest_headers).status_code == 403
