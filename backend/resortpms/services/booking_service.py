"""
Booking service - stay lifecycle
Owns the Booking state machine and asks RoomStateService for the room side
effects of check-in, check-out and cancellation. Events are raised only after
the unit of work has committed.
"""
from typing import Callable, List, Optional
from datetime import date
from decimal import Decimal
import logging

from sqlalchemy import or_
from sqlalchemy.orm import Session

from resortpms.clock import utcnow
from resortpms.database import unit_of_work
from resortpms.domain.state_machines import BOOKING_STATE_MACHINE
from resortpms.exceptions import (
    InvalidIntervalError, NotFoundError, OverlapError,
    RoomUnavailableError,
)
from resortpms.models.events import EventType, BookingEventData
from resortpms.models.ontology import (
    Booking, BookingStatus, BookingSource, Room, RoomStatus,
)
from resortpms.models.schemas import BookingCreate
from resortpms.security.auth import Actor, require_permission
from resortpms.security import permissions as perm
from resortpms.services.availability_service import AvailabilityService, validate_interval
from resortpms.services.event_bus import Event, emit, event_bus
from resortpms.services.guest_service import GuestService
from resortpms.services.room_locks import RoomLockRegistry, room_locks
from resortpms.services.room_state_service import RoomStateService, TransitionOrigin
from resortpms.services.transitions import advance, target_state

logger = logging.getLogger(__name__)


class BookingService:
    """Booking service"""

    def __init__(self, db: Session, event_publisher: Callable[[Event], None] = None,
                 clock: Callable[[], date] = None, locks: RoomLockRegistry = None):
        self.db = db
        self._publish_event = event_publisher or event_bus.publish
        self._today = clock or date.today
        self._locks = locks or room_locks
        self.rooms = RoomStateService(db, self._publish_event)
        self.availability = AvailabilityService(db)
        self.guests = GuestService(db)

    # ============== Queries ==============

    def get_booking(self, booking_id: int) -> Optional[Booking]:
        return self.db.query(Booking).filter(Booking.id == booking_id).first()

    def require_booking(self, booking_id: int) -> Booking:
        booking = self.get_booking(booking_id)
        if not booking:
            raise NotFoundError("Booking", booking_id)
        return booking

    def get_bookings(self, status: Optional[BookingStatus] = None,
                     room_id: Optional[int] = None,
                     date_from: Optional[date] = None,
                     date_to: Optional[date] = None,
                     guest_name: Optional[str] = None) -> List[Booking]:
        """
        List bookings. A date range selects bookings whose stay overlaps
        [date_from, date_to); either end may be left open.
        """
        query = self.db.query(Booking)

        if status:
            query = query.filter(Booking.status == status)
        if room_id:
            query = query.filter(Booking.room_id == room_id)
        if date_from:
            query = query.filter(Booking.check_out > date_from)
        if date_to:
            query = query.filter(Booking.check_in < date_to)
        if guest_name:
            query = query.filter(or_(
                Booking.guest_name.contains(guest_name),
                Booking.guest_phone.contains(guest_name),
            ))

        return query.order_by(Booking.check_in, Booking.id).all()

    def get_today_arrivals(self) -> List[Booking]:
        return self.db.query(Booking).filter(
            Booking.check_in == self._today(),
            Booking.status == BookingStatus.CONFIRMED
        ).order_by(Booking.id).all()

    def get_today_departures(self) -> List[Booking]:
        return self.db.query(Booking).filter(
            Booking.check_out == self._today(),
            Booking.status == BookingStatus.CHECKED_IN
        ).order_by(Booking.id).all()

    def get_in_house(self) -> List[Booking]:
        return self.db.query(Booking).filter(
            Booking.status == BookingStatus.CHECKED_IN
        ).order_by(Booking.check_out, Booking.id).all()

    # ============== Creation ==============

    def validate_stay(self, check_in: date, check_out: date, source: BookingSource) -> None:
        """Interval checks shared by walk-in and self-service intake"""
        validate_interval(check_in, check_out)
        if source == BookingSource.WALK_IN and check_in < self._today():
            raise InvalidIntervalError(
                f"Walk-in check_in {check_in} is in the past",
                check_in=check_in
            )

    def create_booking(self, data: BookingCreate, actor: Actor) -> Booking:
        """
        Create a pending booking.

        The overlap check and the insert run under the room's lock and inside
        one transaction, so two concurrent creates for the same room cannot
        both see the interval as free.
        """
        require_permission(actor, perm.BOOKING_WRITE)
        self.validate_stay(data.check_in, data.check_out, data.source)

        with self._locks.hold(data.room_id):
            with unit_of_work(self.db):
                room = self.db.query(Room).filter(
                    Room.id == data.room_id
                ).with_for_update().populate_existing().first()
                if not room:
                    raise NotFoundError("Room", data.room_id)
                if not room.is_active:
                    raise RoomUnavailableError(f"Room {room.name} is not in service", room_id=room.id)

                conflicts = self.availability.overlapping_bookings(
                    room.id, data.check_in, data.check_out
                )
                if conflicts:
                    logger.warning(
                        f"Booking rejected: room {room.name} {data.check_in}..{data.check_out} "
                        f"overlaps booking(s) {[b.id for b in conflicts]}"
                    )
                    raise OverlapError(
                        f"Room {room.name} is already booked between {data.check_in} and {data.check_out}",
                        room_id=room.id, conflicting_booking_id=conflicts[0].id
                    )

                guest = self.guests.upsert_from_booking(data)
                nights = (data.check_out - data.check_in).days
                nightly_rate = Decimal(room.rate)

                booking = Booking(
                    room_id=room.id,
                    guest_id=guest.id,
                    guest_name=data.guest_name,
                    guest_phone=data.guest_phone,
                    guest_email=data.guest_email,
                    check_in=data.check_in,
                    check_out=data.check_out,
                    adults=data.adults,
                    children=data.children,
                    status=BookingStatus.PENDING,
                    source=data.source,
                    nightly_rate=nightly_rate,
                    total_amount=nightly_rate * nights,
                    notes=data.notes,
                    created_by=actor.actor_id,
                )
                self.db.add(booking)

        self.db.refresh(booking)
        logger.info(
            f"Booking {booking.id} created: room {booking.room_id} "
            f"{booking.check_in}..{booking.check_out} total {booking.total_amount}"
        )
        self._publish_booking(EventType.BOOKING_CREATED, booking, actor)
        return booking

    # ============== Transitions ==============

    def confirm_booking(self, booking_id: int, actor: Actor) -> Booking:
        require_permission(actor, perm.BOOKING_CONFIRM)
        booking = self.require_booking(booking_id)

        with unit_of_work(self.db):
            advance(self.db, booking, BOOKING_STATE_MACHINE, BookingStatus, "confirm")

        self.db.refresh(booking)
        logger.info(f"Booking {booking.id} confirmed")
        self._publish_booking(EventType.BOOKING_CONFIRMED, booking, actor)
        return booking

    def check_in(self, booking_id: int, actor: Actor) -> Booking:
        """
        confirmed -> checked-in, room available -> occupied.

        The room must be `available` right now; a room still in cleaning or
        maintenance rejects the check-in even when the booking is confirmed.
        """
        require_permission(actor, perm.BOOKING_CHECKIN)
        booking = self.require_booking(booking_id)
        target_state(booking, BOOKING_STATE_MACHINE, BookingStatus, "check_in")

        room = self.rooms.require_room(booking.room_id)
        if room.status != RoomStatus.AVAILABLE:
            logger.warning(f"Check-in of booking {booking.id} rejected: room {room.name} is {room.status.value}")
            raise RoomUnavailableError(
                f"Room {room.name} is {room.status.value}, not available for check-in",
                room_id=room.id, status=room.status.value
            )

        with unit_of_work(self.db):
            change = self.rooms.transition(
                room.id, RoomStatus.AVAILABLE, RoomStatus.OCCUPIED,
                TransitionOrigin.CHECK_IN, actor_id=actor.actor_id
            )
            advance(self.db, booking, BOOKING_STATE_MACHINE, BookingStatus, "check_in",
                    checked_in_at=utcnow())

        self.db.refresh(booking)
        logger.info(f"Booking {booking.id} checked in to room {change.room_name}")
        self._publish_booking(EventType.BOOKING_CHECKED_IN, booking, actor)
        self.rooms.publish_changes(change)
        return booking

    def check_out(self, booking_id: int, actor: Actor) -> Booking:
        """checked-in -> checked-out, room occupied -> cleaning"""
        require_permission(actor, perm.BOOKING_CHECKOUT)
        booking = self.require_booking(booking_id)
        target_state(booking, BOOKING_STATE_MACHINE, BookingStatus, "check_out")

        with unit_of_work(self.db):
            change = self.rooms.transition(
                booking.room_id, RoomStatus.OCCUPIED, RoomStatus.CLEANING,
                TransitionOrigin.CHECK_OUT, actor_id=actor.actor_id
            )
            advance(self.db, booking, BOOKING_STATE_MACHINE, BookingStatus, "check_out",
                    checked_out_at=utcnow())
            self.guests.record_visit(booking.guest_id)

        self.db.refresh(booking)
        logger.info(f"Booking {booking.id} checked out, room {change.room_name} awaiting cleaning")
        self._publish_booking(EventType.BOOKING_CHECKED_OUT, booking, actor)
        self.rooms.publish_changes(change)
        return booking

    def cancel_booking(self, booking_id: int, actor: Actor, reason: Optional[str] = None) -> Booking:
        """
        pending/confirmed -> cancelled.

        The room goes back to `available` only when it is `occupied` with no
        other stay holding it; any other room state is left as it is.
        """
        require_permission(actor, perm.BOOKING_CANCEL)
        booking = self.require_booking(booking_id)

        with unit_of_work(self.db):
            advance(self.db, booking, BOOKING_STATE_MACHINE, BookingStatus, "cancel",
                    cancel_reason=reason)
            change = self._release_after_cancel(booking, actor)

        self.db.refresh(booking)
        logger.info(f"Booking {booking.id} cancelled")
        self._publish_booking(EventType.BOOKING_CANCELLED, booking, actor, reason=reason or "")
        self.rooms.publish_changes(change)
        return booking

    # ============== Internals ==============

    def _release_after_cancel(self, booking: Booking, actor: Actor):
        room = self.rooms.require_room(booking.room_id)

        if room.status == RoomStatus.AVAILABLE:
            return None
        if room.status != RoomStatus.OCCUPIED:
            logger.info(f"Room {room.name} stays {room.status.value} after cancelling booking {booking.id}")
            return None

        today = self._today()
        holder = self.db.query(Booking).filter(
            Booking.room_id == room.id,
            Booking.id != booking.id,
            or_(
                Booking.status == BookingStatus.CHECKED_IN,
                (Booking.status == BookingStatus.CONFIRMED)
                & (Booking.check_in <= today) & (Booking.check_out > today),
            )
        ).first()
        if holder is not None:
            logger.warning(
                f"Room {room.name} left {room.status.value} after cancelling booking {booking.id}: "
                f"still held by booking {holder.id}"
            )
            return None

        return self.rooms.transition(
            room.id, RoomStatus.OCCUPIED, RoomStatus.AVAILABLE,
            TransitionOrigin.CANCELLATION, actor_id=actor.actor_id
        )

    def _publish_booking(self, event_type: EventType, booking: Booking, actor: Actor,
                         reason: str = "") -> None:
        emit(self._publish_event, event_type, BookingEventData(
            booking_id=booking.id,
            room_id=booking.room_id,
            room_name=booking.room_name or "",
            guest_name=booking.guest_name,
            check_in=booking.check_in,
            check_out=booking.check_out,
            status=booking.status.value,
            total_amount=booking.total_amount,
            actor_id=actor.actor_id,
            reason=reason,
        ).to_dict(), source="booking_service")
