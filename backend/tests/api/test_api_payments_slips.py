"""
Orders, settlement and payment slip API tests
"""
from decimal import Decimal

from fastapi.testclient import TestClient

from resortpms.models.ontology import BookingStatus

from factories import make_booking


class TestOrdersApi:

    def test_order_charged_to_booking(self, client: TestClient, db_session, room, receptionist_headers):
        booking = make_booking(db_session, room, status=BookingStatus.CHECKED_IN)

        response = client.post("/orders", json={
            "booking_id": booking.id,
            "items": [{"product_id": "BEER", "unit_price": "80", "quantity": 3}],
            "tax": "16.80",
        }, headers=receptionist_headers)
        assert response.status_code == 201
        order = response.json()
        assert Decimal(order["total"]) == Decimal("256.80")
        assert order["guest_name"] == "Alice"

        total = client.get(f"/bookings/{booking.id}/total", headers=receptionist_headers).json()
        assert Decimal(total["grand_total"]) == Decimal("2256.80")
        assert Decimal(total["balance_due"]) == Decimal("2256.80")

    def test_empty_order_rejected(self, client: TestClient, receptionist_headers):
        response = client.post("/orders", json={"items": []}, headers=receptionist_headers)
        assert response.status_code == 422

    def test_kitchen_flow_then_settle(self, client: TestClient, receptionist_headers):
        order_id = client.post("/orders", json={
            "items": [{"product_id": "PAD-THAI", "unit_price": "120", "quantity": 1}],
        }, headers=receptionist_headers).json()["id"]

        for trigger, expected in [("prepare", "preparing"), ("ready", "ready"), ("deliver", "delivered")]:
            response = client.post(f"/orders/{order_id}/status", json={"trigger": trigger},
                                   headers=receptionist_headers)
            assert response.json()["status"] == expected

        paid = client.post(f"/orders/{order_id}/settle", json={"method": "card"}, headers=receptionist_headers)
        assert paid.status_code == 201
        assert paid.json()["order_id"] == order_id
        assert client.get(f"/orders/{order_id}", headers=receptionist_headers).json()["status"] == "paid"

    def test_settle_trigger_not_a_kitchen_step(self, client: TestClient, receptionist_headers):
        order_id = client.post("/orders", json={
            "items": [{"product_id": "TEA", "unit_price": "40", "quantity": 1}],
        }, headers=receptionist_headers).json()["id"]

        response = client.post(f"/orders/{order_id}/status", json={"trigger": "settle"},
                               headers=receptionist_headers)
        assert response.status_code == 422


class TestSettlementApi:

    def test_settle_and_refund(self, client: TestClient, db_session, room, receptionist_headers, owner_headers):
        booking = make_booking(db_session, room, status=BookingStatus.CONFIRMED)

        response = client.post(f"/bookings/{booking.id}/settle", json={"amount": "2000", "method": "cash"},
                               headers=receptionist_headers)
        assert response.status_code == 201
        payment_id = response.json()["id"]
        assert client.get(f"/bookings/{booking.id}", headers=receptionist_headers).json()["payment_status"] == "paid"

        denied = client.post(f"/payments/{payment_id}/refund", json={"reason": "overcharge"},
                             headers=receptionist_headers)
        assert denied.status_code == 403

        refunded = client.post(f"/payments/{payment_id}/refund", json={"reason": "overcharge"},
                               headers=owner_headers)
        assert refunded.json()["status"] == "refunded"
        assert client.get(f"/bookings/{booking.id}", headers=receptionist_headers).json()["payment_status"] == "refunded"

    def test_non_positive_amount(self, client: TestClient, db_session, room, receptionist_headers):
        booking = make_booking(db_session, room)
        response = client.post(f"/bookings/{booking.id}/settle", json={"amount": "0", "method": "cash"},
                               headers=receptionist_headers)
        assert response.status_code == 422

    def test_payment_history(self, client: TestClient, db_session, room, receptionist_headers):
        booking = make_booking(db_session, room)
        client.post(f"/bookings/{booking.id}/settle", json={"amount": "500", "method": "cash"},
                    headers=receptionist_headers)
        client.post(f"/bookings/{booking.id}/settle", json={"amount": "700", "method": "transfer"},
                    headers=receptionist_headers)

        history = client.get(f"/bookings/{booking.id}/payments", headers=receptionist_headers).json()
        assert sorted(Decimal(p["amount"]) for p in history) == [Decimal("500"), Decimal("700")]
        total = client.get(f"/bookings/{booking.id}/total", headers=receptionist_headers).json()
        assert Decimal(total["amount_paid"]) == Decimal("1200")
        assert Decimal(total["balance_due"]) == Decimal("800")


class TestSlipApi:

    def test_submit_and_approve(self, client: TestClient, db_session, room, guest_headers, receptionist_headers):
        booking = make_booking(db_session, room)

        slip = client.post("/payments/slips", json={
            "booking_id": booking.id, "image_ref": "slips/abc.jpg", "amount": "2000"
        }, headers=guest_headers)
        assert slip.status_code == 201
        slip_id = slip.json()["id"]

        pending = client.get("/payments/slips", params={"status": "pending"}, headers=receptionist_headers)
        assert [s["id"] for s in pending.json()] == [slip_id]

        approved = client.post(f"/payments/slips/{slip_id}/approve", headers=receptionist_headers)
        assert approved.json()["status"] == "approved"
        assert client.get(f"/bookings/{booking.id}", headers=receptionist_headers).json()["payment_status"] == "paid"

        again = client.post(f"/payments/slips/{slip_id}/approve", headers=receptionist_headers)
        assert again.status_code == 409
        assert again.json()["code"] == "already_resolved"

    def test_reject_needs_reason(self, client: TestClient, db_session, room, guest_headers, receptionist_headers):
        booking = make_booking(db_session, room)
        slip_id = client.post("/payments/slips", json={
            "booking_id": booking.id, "image_ref": "slips/abc.jpg", "amount": "2000"
        }, headers=guest_headers).json()["id"]

        blank = client.post(f"/payments/slips/{slip_id}/reject", json={"reason": ""}, headers=receptionist_headers)
        assert blank.status_code == 422
        assert blank.json()["code"] == "invalid_input"

        rejected = client.post(f"/payments/slips/{slip_id}/reject", json={"reason": "wrong account"},
                               headers=receptionist_headers)
        assert rejected.json()["status"] == "rejected"
        assert client.get(f"/bookings/{booking.id}", headers=receptionist_headers).json()["payment_status"] == "pending"

    def test_guest_cannot_list_slips(self, client: TestClient, guest_headers):
        assert client.get("/payments/slips", headers=guest_headers).status_code == 403
