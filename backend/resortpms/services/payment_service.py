"""
Payment service - manual POS settlement and refunds
Every settlement writes a completed Payment against exactly one booking or
one order.
"""
from typing import Callable, List, Optional
from decimal import Decimal
import logging

from sqlalchemy.orm import Session

from resortpms.database import unit_of_work
from resortpms.domain.state_machines import ORDER_STATE_MACHINE, PAYMENT_STATE_MACHINE
from resortpms.exceptions import InvalidInputError, InvalidTransitionError, NotFoundError
from resortpms.models.events import EventType, PaymentEventData
from resortpms.models.ontology import (
    Booking, BookingStatus, BookingPaymentStatus, Order, OrderStatus,
    Payment, PaymentMethod, PaymentStatus,
)
from resortpms.models.schemas import SettlementCreate, OrderSettlement
from resortpms.security.auth import Actor, require_permission
from resortpms.security import permissions as perm
from resortpms.services.billing_service import BillingService, to_money
from resortpms.services.event_bus import Event, emit, event_bus
from resortpms.services.transitions import advance

logger = logging.getLogger(__name__)

# Booking payment states an order settlement may move forward
OPEN_BALANCE = (BookingPaymentStatus.PENDING, BookingPaymentStatus.PARTIAL)


class PaymentService:
    """Payment service"""

    def __init__(self, db: Session, event_publisher: Callable[[Event], None] = None):
        self.db = db
        self._publish_event = event_publisher or event_bus.publish
        self.billing = BillingService(db)

    # ============== Queries ==============

    def get_payment(self, payment_id: int) -> Payment:
        payment = self.db.query(Payment).filter(Payment.id == payment_id).first()
        if not payment:
            raise NotFoundError("Payment", payment_id)
        return payment

    def get_payments(self, booking_id: Optional[int] = None,
                     order_id: Optional[int] = None,
                     status: Optional[PaymentStatus] = None) -> List[Payment]:
        query = self.db.query(Payment)
        if booking_id:
            query = query.filter(Payment.booking_id == booking_id)
        if order_id:
            query = query.filter(Payment.order_id == order_id)
        if status:
            query = query.filter(Payment.status == status)
        return query.order_by(Payment.created_at.desc(), Payment.id.desc()).all()

    # ============== Settlement ==============

    def _new_payment(self, amount: Decimal, method: PaymentMethod, actor: Actor,
                     booking_id: Optional[int] = None, order_id: Optional[int] = None,
                     reference: Optional[str] = None, notes: Optional[str] = None) -> Payment:
        if (booking_id is None) == (order_id is None):
            raise InvalidInputError("A payment references exactly one of a booking or an order")
        payment = Payment(
            booking_id=booking_id,
            order_id=order_id,
            amount=to_money(amount),
            method=method,
            status=PaymentStatus.COMPLETED,
            reference=reference,
            notes=notes,
            created_by=actor.actor_id,
        )
        self.db.add(payment)
        self.db.flush()
        return payment

    def settle_booking(self, booking_id: int, data: SettlementCreate, actor: Actor) -> Payment:
        """
        Take a front-desk payment against the booking. payment_status becomes
        `paid` once completed payments cover the grand total, else `partial`.
        """
        require_permission(actor, perm.PAYMENT_SETTLE)
        if data.amount is None or data.amount <= 0:
            raise InvalidInputError("Settlement amount must be positive", amount=data.amount)

        booking = self.db.query(Booking).filter(Booking.id == booking_id).first()
        if not booking:
            raise NotFoundError("Booking", booking_id)
        if booking.status == BookingStatus.CANCELLED:
            logger.warning(f"Settlement refused: booking {booking.id} is cancelled")
            raise InvalidTransitionError("Booking", booking.status.value, "settle")

        with unit_of_work(self.db):
            payment = self._new_payment(
                data.amount, data.method, actor, booking_id=booking.id,
                reference=data.reference, notes=data.notes
            )
            self._refresh_payment_status(booking)

        self.db.refresh(payment)
        self.db.refresh(booking)
        logger.info(
            f"Booking {booking.id} settled {payment.amount} by {payment.method.value}, "
            f"payment_status={booking.payment_status.value}"
        )
        self._publish_payment(EventType.PAYMENT_RECEIVED, payment, actor)
        return payment

    def settle_order(self, order_id: int, data: OrderSettlement, actor: Actor) -> Payment:
        require_permission(actor, perm.PAYMENT_SETTLE)
        order = self.db.query(Order).filter(Order.id == order_id).first()
        if not order:
            raise NotFoundError("Order", order_id)

        with unit_of_work(self.db):
            advance(self.db, order, ORDER_STATE_MACHINE, OrderStatus, "settle",
                    payment_method=data.method)
            payment = self._new_payment(
                order.total, data.method, actor, order_id=order.id, reference=data.reference
            )
            if order.booking_id is not None:
                booking = self.db.query(Booking).filter(Booking.id == order.booking_id).first()
                if booking.status != BookingStatus.CANCELLED and booking.payment_status in OPEN_BALANCE:
                    self._refresh_payment_status(booking)

        self.db.refresh(payment)
        logger.info(f"Order {order_id} settled {payment.amount} by {payment.method.value}")
        self._publish_payment(EventType.PAYMENT_RECEIVED, payment, actor)
        return payment

    def _refresh_payment_status(self, booking: Booking) -> None:
        """paid once completed payments, order payments included, cover the grand total"""
        totals = self.billing.compute_booking_total(booking.id)
        if totals.amount_paid <= 0:
            return
        booking.payment_status = (
            BookingPaymentStatus.PAID if totals.balance_due <= 0
            else BookingPaymentStatus.PARTIAL
        )

    def refund_payment(self, payment_id: int, reason: str, actor: Actor) -> Payment:
        """completed -> refunded; a booking payment flags the booking `refunded`"""
        require_permission(actor, perm.PAYMENT_REFUND)
        if not reason or not reason.strip():
            raise InvalidInputError("A refund needs a reason")
        payment = self.get_payment(payment_id)

        with unit_of_work(self.db):
            advance(self.db, payment, PAYMENT_STATE_MACHINE, PaymentStatus, "refund",
                    notes=reason.strip())
            if payment.booking_id is not None:
                booking = self.db.query(Booking).filter(Booking.id == payment.booking_id).first()
                booking.payment_status = BookingPaymentStatus.REFUNDED

        self.db.refresh(payment)
        logger.info(f"Payment {payment.id} refunded: {reason}")
        self._publish_payment(EventType.PAYMENT_REFUNDED, payment, actor, reason=reason.strip())
        return payment

    def _publish_payment(self, event_type: EventType, payment: Payment, actor: Actor,
                         reason: str = "") -> None:
        emit(self._publish_event, event_type, PaymentEventData(
            booking_id=payment.booking_id,
            order_id=payment.order_id,
            payment_id=payment.id,
            amount=payment.amount,
            payment_status=payment.status.value,
            actor_id=actor.actor_id,
            reason=reason,
        ).to_dict(), source="payment_service")
