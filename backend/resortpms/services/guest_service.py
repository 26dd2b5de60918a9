"""
Guest service - guest records keyed by phone
"""
from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import or_, desc
from resortpms.exceptions import NotFoundError
from resortpms.models.ontology import Guest
from resortpms.models.schemas import BookingCreate


class GuestService:
    """Guest service"""

    def __init__(self, db: Session):
        self.db = db

    def get_guests(self, search: Optional[str] = None, limit: int = 100) -> List[Guest]:
        query = self.db.query(Guest)

        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(
                    Guest.name.like(pattern),
                    Guest.phone.like(pattern),
                    Guest.email.like(pattern),
                    Guest.id_card.like(pattern),
                )
            )

        return query.order_by(desc(Guest.created_at), desc(Guest.id)).limit(limit).all()

    def get_guest(self, guest_id: int) -> Guest:
        guest = self.db.query(Guest).filter(Guest.id == guest_id).first()
        if not guest:
            raise NotFoundError("Guest", guest_id)
        return guest

    def get_guest_by_phone(self, phone: str) -> Optional[Guest]:
        return self.db.query(Guest).filter(Guest.phone == phone).first()

    def upsert_from_booking(self, data: BookingCreate) -> Guest:
        """
        Find the guest by phone or create one, refreshing the contact fields.

        Flushes only: the booking that triggered the upsert commits both.
        """
        guest = self.get_guest_by_phone(data.guest_phone)
        if guest is None:
            guest = Guest(
                name=data.guest_name,
                phone=data.guest_phone,
                email=data.guest_email,
                id_card=data.id_card,
                nationality=data.nationality,
                total_visits=0,
            )
            self.db.add(guest)
        else:
            guest.name = data.guest_name
            if data.guest_email:
                guest.email = data.guest_email
            if data.id_card:
                guest.id_card = data.id_card
            if data.nationality:
                guest.nationality = data.nationality
        self.db.flush()
        return guest

    def record_visit(self, guest_id: Optional[int]) -> None:
        """Count a completed stay; flushed with the check-out"""
        if guest_id is None:
            return
        guest = self.get_guest(guest_id)
        guest.total_visits = (guest.total_visits or 0) + 1
