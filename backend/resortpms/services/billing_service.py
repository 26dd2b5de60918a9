"""
Billing service - what a booking owes
Query only: nothing here writes to the store.
"""
from dataclasses import dataclass, asdict
from decimal import Decimal
from typing import Any, Dict, List

from sqlalchemy import or_
from sqlalchemy.orm import Session

from resortpms.exceptions import NotFoundError
from resortpms.models.ontology import Booking, Order, Payment, PaymentStatus

CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    return Decimal(value if value is not None else 0).quantize(CENT)


@dataclass(frozen=True)
class BookingTotal:
    """
    room_total uses the rate captured when the booking was created, never the
    room's current rate. order_total counts every linked order, paid or not;
    amount_paid includes the payments that settled those orders.
    """
    booking_id: int
    nights: int
    nightly_rate: Decimal
    room_total: Decimal
    order_total: Decimal
    grand_total: Decimal
    amount_paid: Decimal
    balance_due: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class BillingService:
    """Billing service"""

    def __init__(self, db: Session):
        self.db = db

    def _booking(self, booking_id: int) -> Booking:
        booking = self.db.query(Booking).filter(Booking.id == booking_id).first()
        if not booking:
            raise NotFoundError("Booking", booking_id)
        return booking

    def get_booking_orders(self, booking_id: int) -> List[Order]:
        return self.db.query(Order).filter(Order.booking_id == booking_id).order_by(Order.id).all()

    def get_booking_payments(self, booking_id: int) -> List[Payment]:
        return self.db.query(Payment).filter(Payment.booking_id == booking_id).order_by(Payment.id).all()

    def amount_paid(self, booking_id: int) -> Decimal:
        """Completed payments against the booking or against any of its orders"""
        payments = self.db.query(Payment).outerjoin(
            Order, Payment.order_id == Order.id
        ).filter(
            or_(Payment.booking_id == booking_id, Order.booking_id == booking_id),
            Payment.status == PaymentStatus.COMPLETED
        ).all()
        return to_money(sum((Decimal(p.amount) for p in payments), Decimal("0")))

    def compute_booking_total(self, booking_id: int) -> BookingTotal:
        booking = self._booking(booking_id)
        room_total = to_money(booking.total_amount)
        order_total = to_money(sum(
            (Decimal(o.total or 0) for o in self.get_booking_orders(booking_id)),
            Decimal("0")
        ))
        grand_total = room_total + order_total
        paid = self.amount_paid(booking_id)

        return BookingTotal(
            booking_id=booking.id,
            nights=booking.nights,
            nightly_rate=to_money(booking.nightly_rate),
            room_total=room_total,
            order_total=order_total,
            grand_total=grand_total,
            amount_paid=paid,
            balance_due=grand_total - paid,
        )
