"""
Availability service - which rooms are free for a half-open interval
Reads straight from the entity store on every call; nothing is cached.
"""
from datetime import date
from typing import Iterable, List, Optional, Set

from sqlalchemy import and_, exists
from sqlalchemy.orm import Session

from resortpms.exceptions import InvalidIntervalError
from resortpms.models.ontology import Booking, Room, RoomStatus, ROOM_HOLDING_STATUSES


def validate_interval(check_in: date, check_out: date) -> None:
    """Reject malformed [check_in, check_out) ranges"""
    if check_in is None or check_out is None:
        raise InvalidIntervalError("Both check_in and check_out are required")
    if check_in >= check_out:
        raise InvalidIntervalError(
            f"check_in {check_in} must be before check_out {check_out}",
            check_in=check_in, check_out=check_out
        )


def overlap_clause(check_in: date, check_out: date):
    """
    existing.check_in < query.check_out AND existing.check_out > query.check_in

    Same-day turnover (one stay's check_out equal to the next check_in) is not an overlap.
    """
    return and_(Booking.check_in < check_out, Booking.check_out > check_in)


class AvailabilityService:
    """Availability service"""

    def __init__(self, db: Session):
        self.db = db

    def overlapping_bookings(self, room_id: int, check_in: date, check_out: date,
                             statuses: Iterable = ROOM_HOLDING_STATUSES,
                             exclude_booking_id: Optional[int] = None) -> List[Booking]:
        """Bookings on `room_id` in `statuses` whose interval overlaps the query"""
        query = self.db.query(Booking).filter(
            Booking.room_id == room_id,
            Booking.status.in_(list(statuses)),
            overlap_clause(check_in, check_out),
        )
        if exclude_booking_id is not None:
            query = query.filter(Booking.id != exclude_booking_id)
        return query.order_by(Booking.check_in).all()

    def find_free_rooms(self, check_in: date, check_out: date) -> List[Room]:
        """Rooms that are `available` now and have no holding booking overlapping the interval"""
        validate_interval(check_in, check_out)
        blocked = exists().where(
            Booking.room_id == Room.id,
            Booking.status.in_(list(ROOM_HOLDING_STATUSES)),
            overlap_clause(check_in, check_out),
        )
        return self.db.query(Room).filter(
            Room.is_active == True,  # noqa: E712
            Room.status == RoomStatus.AVAILABLE,
            ~blocked,
        ).order_by(Room.name).all()

    def find_free(self, check_in: date, check_out: date) -> Set[int]:
        return {room.id for room in self.find_free_rooms(check_in, check_out)}

    def is_room_free(self, room_id: int, check_in: date, check_out: date) -> bool:
        return room_id in self.find_free(check_in, check_out)
