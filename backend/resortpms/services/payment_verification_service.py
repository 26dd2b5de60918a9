"""
Payment verification service - guest transfer slips
A slip is approved or rejected once. Approval flips the booking's
payment_status to paid without writing a Payment record.
"""
from typing import Callable, List, Optional
import logging

from sqlalchemy.orm import Session

from resortpms.clock import utcnow
from resortpms.database import unit_of_work
from resortpms.domain.state_machines import SLIP_STATE_MACHINE
from resortpms.exceptions import (
    AlreadyResolvedError, InvalidInputError, InvalidTransitionError, NotFoundError,
)
from resortpms.models.events import EventType, PaymentEventData
from resortpms.models.ontology import (
    Booking, BookingStatus, BookingPaymentStatus, PaymentSlip, SlipStatus,
)
from resortpms.models.schemas import SlipCreate
from resortpms.security.auth import Actor, require_permission
from resortpms.security import permissions as perm
from resortpms.services.billing_service import to_money
from resortpms.services.event_bus import Event, emit, event_bus
from resortpms.services.transitions import advance

logger = logging.getLogger(__name__)


class PaymentVerificationService:
    """Payment verification service"""

    def __init__(self, db: Session, event_publisher: Callable[[Event], None] = None):
        self.db = db
        self._publish_event = event_publisher or event_bus.publish

    def get_slip(self, slip_id: int) -> PaymentSlip:
        slip = self.db.query(PaymentSlip).filter(PaymentSlip.id == slip_id).first()
        if not slip:
            raise NotFoundError("PaymentSlip", slip_id)
        return slip

    def get_slips(self, status: Optional[SlipStatus] = None,
                  booking_id: Optional[int] = None) -> List[PaymentSlip]:
        query = self.db.query(PaymentSlip)
        if status:
            query = query.filter(PaymentSlip.status == status)
        if booking_id:
            query = query.filter(PaymentSlip.booking_id == booking_id)
        return query.order_by(PaymentSlip.created_at.desc(), PaymentSlip.id.desc()).all()

    def _booking(self, booking_id: int) -> Booking:
        booking = self.db.query(Booking).filter(Booking.id == booking_id).first()
        if not booking:
            raise NotFoundError("Booking", booking_id)
        return booking

    def submit_slip(self, data: SlipCreate, actor: Actor) -> PaymentSlip:
        require_permission(actor, perm.PAYMENT_SLIP_SUBMIT)
        if not data.image_ref or not data.image_ref.strip():
            raise InvalidInputError("A slip needs an image reference")
        if data.amount is None or data.amount <= 0:
            raise InvalidInputError("Slip amount must be positive", amount=data.amount)

        booking = self._booking(data.booking_id)
        if booking.status == BookingStatus.CANCELLED:
            raise InvalidTransitionError("Booking", booking.status.value, "submit_slip")

        with unit_of_work(self.db):
            slip = PaymentSlip(
                booking_id=booking.id,
                image_ref=data.image_ref.strip(),
                amount=to_money(data.amount),
                status=SlipStatus.PENDING,
                submitted_by=actor.actor_id,
            )
            self.db.add(slip)

        self.db.refresh(slip)
        logger.info(f"Payment slip {slip.id} submitted for booking {booking.id}, amount {slip.amount}")
        self._publish_slip(EventType.PAYMENT_SLIP_SUBMITTED, slip, actor)
        return slip

    def approve_slip(self, slip_id: int, actor: Actor) -> PaymentSlip:
        """pending -> approved and booking.payment_status = paid; a second approval is refused"""
        require_permission(actor, perm.PAYMENT_VERIFY)
        slip = self.get_slip(slip_id)

        with unit_of_work(self.db):
            self._resolve(slip, "approve", actor)
            booking = self._booking(slip.booking_id)
            booking.payment_status = BookingPaymentStatus.PAID

        self.db.refresh(slip)
        logger.info(f"Payment slip {slip.id} approved by {actor.actor_id}; booking {slip.booking_id} paid")
        self._publish_slip(EventType.PAYMENT_SLIP_APPROVED, slip, actor)
        return slip

    def reject_slip(self, slip_id: int, actor: Actor, reason: str) -> PaymentSlip:
        """pending -> rejected; the booking's payment_status is left alone"""
        require_permission(actor, perm.PAYMENT_VERIFY)
        if not reason or not reason.strip():
            raise InvalidInputError("A rejection needs a reason")
        slip = self.get_slip(slip_id)

        with unit_of_work(self.db):
            self._resolve(slip, "reject", actor, reject_reason=reason.strip())

        self.db.refresh(slip)
        logger.info(f"Payment slip {slip.id} rejected by {actor.actor_id}: {slip.reject_reason}")
        self._publish_slip(EventType.PAYMENT_SLIP_REJECTED, slip, actor, reason=slip.reject_reason)
        return slip

    def _resolve(self, slip: PaymentSlip, trigger: str, actor: Actor, **values) -> None:
        if slip.status != SlipStatus.PENDING:
            logger.warning(f"Payment slip {slip.id} already {slip.status.value}, '{trigger}' refused")
            raise AlreadyResolvedError(
                f"Payment slip {slip.id} is already {slip.status.value}",
                slip_id=slip.id, status=slip.status.value
            )
        try:
            advance(self.db, slip, SLIP_STATE_MACHINE, SlipStatus, trigger,
                    verified_by=actor.actor_id, verified_at=utcnow(), **values)
        except InvalidTransitionError as e:
            raise AlreadyResolvedError(
                f"Payment slip {slip.id} was resolved by another verifier",
                slip_id=slip.id
            ) from e

    def _publish_slip(self, event_type: EventType, slip: PaymentSlip, actor: Actor,
                      reason: str = "") -> None:
        emit(self._publish_event, event_type, PaymentEventData(
            booking_id=slip.booking_id,
            slip_id=slip.id,
            amount=slip.amount,
            payment_status=slip.status.value,
            actor_id=actor.actor_id,
            reason=reason or "",
        ).to_dict(), source="payment_verification_service")
