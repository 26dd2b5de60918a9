"""
Room state service - sole writer of Room.status
Booking, housekeeping and maintenance workflows request transitions here;
each request is a compare-and-set on the status the caller expects.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, FrozenSet, List, Optional, Tuple
import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from resortpms.database import compare_and_set
from resortpms.exceptions import InvalidTransitionError, NotFoundError, RoomUnavailableError
from resortpms.models.events import EventType, RoomStatusChangedData
from resortpms.models.ontology import Room, RoomStatus
from resortpms.services.event_bus import Event, emit, event_bus

logger = logging.getLogger(__name__)


class TransitionOrigin(str, Enum):
    """Workflow step asking for a room transition"""
    CHECK_IN = "check_in"
    CHECK_OUT = "check_out"
    CANCELLATION = "cancellation"
    CLEANING_INSPECTED = "cleaning_inspected"
    MAINTENANCE_RAISED = "maintenance_raised"
    MAINTENANCE_COMPLETED = "maintenance_completed"


# (from, to) -> origins allowed to request it
ROOM_TRANSITIONS: Dict[Tuple[RoomStatus, RoomStatus], FrozenSet[TransitionOrigin]] = {
    (RoomStatus.AVAILABLE, RoomStatus.OCCUPIED): frozenset({TransitionOrigin.CHECK_IN}),
    (RoomStatus.OCCUPIED, RoomStatus.CLEANING): frozenset({TransitionOrigin.CHECK_OUT}),
    (RoomStatus.OCCUPIED, RoomStatus.AVAILABLE): frozenset({TransitionOrigin.CANCELLATION}),
    (RoomStatus.CLEANING, RoomStatus.AVAILABLE): frozenset({TransitionOrigin.CLEANING_INSPECTED}),
    (RoomStatus.AVAILABLE, RoomStatus.MAINTENANCE): frozenset({TransitionOrigin.MAINTENANCE_RAISED}),
    (RoomStatus.CLEANING, RoomStatus.MAINTENANCE): frozenset({TransitionOrigin.MAINTENANCE_RAISED}),
    (RoomStatus.MAINTENANCE, RoomStatus.AVAILABLE): frozenset({TransitionOrigin.MAINTENANCE_COMPLETED}),
    (RoomStatus.MAINTENANCE, RoomStatus.CLEANING): frozenset({TransitionOrigin.MAINTENANCE_COMPLETED}),
}

# Leaving these states for `available` needs the gating task resolved
GATED_STATES = (RoomStatus.CLEANING, RoomStatus.MAINTENANCE)


@dataclass
class RoomStatusChange:
    """A committed-pending room transition, published once the caller commits"""
    room_id: int
    room_name: str
    old_status: RoomStatus
    new_status: RoomStatus
    origin: TransitionOrigin
    actor_id: str = ""


class RoomStateService:
    """Room state service"""

    def __init__(self, db: Session, event_publisher: Callable[[Event], None] = None):
        self.db = db
        self._publish_event = event_publisher or event_bus.publish

    # ============== Queries ==============

    def get_room(self, room_id: int) -> Optional[Room]:
        return self.db.query(Room).filter(Room.id == room_id).first()

    def require_room(self, room_id: int) -> Room:
        room = self.get_room(room_id)
        if not room:
            raise NotFoundError("Room", room_id)
        return room

    def get_rooms(self, status: Optional[RoomStatus] = None,
                  is_active: Optional[bool] = True) -> List[Room]:
        query = self.db.query(Room)
        if status is not None:
            query = query.filter(Room.status == status)
        if is_active is not None:
            query = query.filter(Room.is_active == is_active)
        return query.order_by(Room.name).all()

    def get_status_summary(self) -> Dict[str, int]:
        """Room count per status"""
        rows = self.db.query(Room.status, func.count(Room.id)).filter(
            Room.is_active == True  # noqa: E712
        ).group_by(Room.status).all()
        summary = {status.value: 0 for status in RoomStatus}
        for status, count in rows:
            summary[status.value] = count
        summary["total"] = sum(summary.values())
        return summary

    # ============== Transitions ==============

    @staticmethod
    def check_transition(current: RoomStatus, target: RoomStatus, origin: TransitionOrigin,
                         resolved: bool = False) -> None:
        """
        Raise InvalidTransitionError unless `origin` may move a room from
        `current` to `target`.
        """
        origins = ROOM_TRANSITIONS.get((current, target))
        if not origins or origin not in origins:
            raise InvalidTransitionError(
                "Room", current.value, target.value,
                reason=f"not permitted for {origin.value}"
            )
        if target == RoomStatus.AVAILABLE and current in GATED_STATES and not resolved:
            raise InvalidTransitionError(
                "Room", current.value, target.value,
                reason="gating task is not resolved"
            )

    def transition(self, room_id: int, expected: RoomStatus, target: RoomStatus,
                   origin: TransitionOrigin, actor_id: str = "",
                   resolved: bool = False) -> RoomStatusChange:
        """
        Compare-and-set Room.status from `expected` to `target`.

        Does not commit: the requesting workflow commits the room change
        together with its own record, then calls `publish_changes`.
        """
        self.check_transition(expected, target, origin, resolved)

        if not compare_and_set(self.db, Room, room_id, expected, status=target):
            room = self.get_room(room_id)
            if room is None:
                raise NotFoundError("Room", room_id)
            self.db.refresh(room)
            logger.warning(
                f"Room {room.name} transition {expected.value} -> {target.value} "
                f"rejected for {origin.value}: room is {room.status.value}"
            )
            raise RoomUnavailableError(
                f"Room {room.name} is {room.status.value}, expected {expected.value}",
                room_id=room_id, status=room.status.value
            )

        room = self.get_room(room_id)
        logger.info(f"Room {room.name}: {expected.value} -> {target.value} ({origin.value})")
        return RoomStatusChange(
            room_id=room_id,
            room_name=room.name,
            old_status=expected,
            new_status=target,
            origin=origin,
            actor_id=actor_id,
        )

    def publish_changes(self, *changes: Optional[RoomStatusChange]) -> None:
        """Raise room.status_changed for each committed change"""
        for change in changes:
            if change is None:
                continue
            emit(self._publish_event, EventType.ROOM_STATUS_CHANGED, RoomStatusChangedData(
                room_id=change.room_id,
                room_name=change.room_name,
                old_status=change.old_status.value,
                new_status=change.new_status.value,
                origin=change.origin.value,
                actor_id=change.actor_id,
            ).to_dict(), source="room_state_service")
