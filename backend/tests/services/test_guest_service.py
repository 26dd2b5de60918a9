"""
Tests for resortpms/services/guest_service.py
"""
import pytest
from datetime import date

from resortpms.exceptions import NotFoundError
from resortpms.models.schemas import BookingCreate
from resortpms.services.guest_service import GuestService


def _intake(name="Alice", phone="0800000001", **extra):
    return BookingCreate(room_id=1, guest_name=name, guest_phone=phone,
                         check_in=date(2024, 3, 1), check_out=date(2024, 3, 2), **extra)


class TestGuestService:

    def test_upsert_creates_then_updates(self, db_session):
        svc = GuestService(db_session)
        created = svc.upsert_from_booking(_intake(nationality="TH"))
        db_session.commit()
        updated = svc.upsert_from_booking(_intake(name="Alice Smith", id_card="X123"))
        db_session.commit()

        assert created.id == updated.id
        assert updated.name == "Alice Smith"
        assert updated.nationality == "TH"
        assert updated.id_card == "X123"

    def test_search(self, db_session):
        svc = GuestService(db_session)
        svc.upsert_from_booking(_intake())
        svc.upsert_from_booking(_intake(name="Bob", phone="0899999999"))
        db_session.commit()

        assert [g.name for g in svc.get_guests(search="0899")] == ["Bob"]
        assert len(svc.get_guests()) == 2

    def test_record_visit(self, db_session):
        svc = GuestService(db_session)
        guest = svc.upsert_from_booking(_intake())
        svc.record_visit(guest.id)
        svc.record_visit(None)
        db_session.commit()
        assert svc.get_guest(guest.id).total_visits == 1

    def test_unknown_guest(self, db_session):
        with pytest.raises(NotFoundError):
            GuestService(db_session).get_guest(3)
