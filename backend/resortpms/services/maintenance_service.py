"""
Maintenance service - defect reports
High/urgent requests force their room into `maintenance`; at most one of them
holds the room at a time and completing it releases the room.
"""
from typing import Callable, List, Optional
from decimal import Decimal
import logging

from sqlalchemy.orm import Session

from resortpms.clock import utcnow
from resortpms.database import unit_of_work
from resortpms.domain.state_machines import MAINTENANCE_STATE_MACHINE
from resortpms.exceptions import InvalidTransitionError, NotFoundError, RoomUnavailableError
from resortpms.models.events import EventType, MaintenanceEventData
from resortpms.models.ontology import (
    MaintenanceRequest, MaintenanceStatus, MaintenancePriority, RoomStatus,
    ROOM_FORCING_PRIORITIES,
)
from resortpms.models.schemas import MaintenanceCreate
from resortpms.security.auth import Actor, require_permission
from resortpms.security import permissions as perm
from resortpms.services.event_bus import Event, emit, event_bus
from resortpms.services.housekeeping_service import HousekeepingService
from resortpms.services.room_state_service import RoomStateService, TransitionOrigin
from resortpms.services.transitions import advance

logger = logging.getLogger(__name__)


class MaintenanceService:
    """Maintenance service"""

    def __init__(self, db: Session, event_publisher: Callable[[Event], None] = None):
        self.db = db
        self._publish_event = event_publisher or event_bus.publish
        self.rooms = RoomStateService(db, self._publish_event)
        self.housekeeping = HousekeepingService(db, self._publish_event)

    # ============== Queries ==============

    def get_request(self, request_id: int) -> MaintenanceRequest:
        request = self.db.query(MaintenanceRequest).filter(MaintenanceRequest.id == request_id).first()
        if not request:
            raise NotFoundError("MaintenanceRequest", request_id)
        return request

    def get_requests(self, room_id: Optional[int] = None,
                     status: Optional[MaintenanceStatus] = None,
                     priority: Optional[MaintenancePriority] = None) -> List[MaintenanceRequest]:
        query = self.db.query(MaintenanceRequest)
        if room_id:
            query = query.filter(MaintenanceRequest.room_id == room_id)
        if status:
            query = query.filter(MaintenanceRequest.status == status)
        if priority:
            query = query.filter(MaintenanceRequest.priority == priority)
        return query.order_by(MaintenanceRequest.created_at.desc(), MaintenanceRequest.id.desc()).all()

    def get_holding_request(self, room_id: int) -> Optional[MaintenanceRequest]:
        return self.db.query(MaintenanceRequest).filter(
            MaintenanceRequest.room_id == room_id,
            MaintenanceRequest.holds_room == True,  # noqa: E712
            MaintenanceRequest.status != MaintenanceStatus.COMPLETED
        ).first()

    def _next_forcing_request(self, room_id: int, exclude_id: int) -> Optional[MaintenanceRequest]:
        """Oldest open high/urgent request other than `exclude_id`"""
        return self.db.query(MaintenanceRequest).filter(
            MaintenanceRequest.room_id == room_id,
            MaintenanceRequest.id != exclude_id,
            MaintenanceRequest.status != MaintenanceStatus.COMPLETED,
            MaintenanceRequest.priority.in_(ROOM_FORCING_PRIORITIES)
        ).order_by(MaintenanceRequest.id).first()

    # ============== Workflow ==============

    def raise_request(self, data: MaintenanceCreate, actor: Actor) -> MaintenanceRequest:
        """
        Log a defect. A high/urgent request moves an available or cleaning
        room into maintenance; an occupied room is refused.
        """
        require_permission(actor, perm.MAINTENANCE_WRITE)
        room = self.rooms.require_room(data.room_id)
        forces = data.priority in ROOM_FORCING_PRIORITIES
        change = None
        holds = False
        prior = None

        if forces and room.status == RoomStatus.OCCUPIED:
            logger.warning(f"{data.priority.value} maintenance refused: room {room.name} is occupied")
            raise RoomUnavailableError(
                f"Room {room.name} is occupied; move the guest before taking it out of service",
                room_id=room.id, status=room.status.value
            )

        with unit_of_work(self.db):
            if forces:
                if room.status == RoomStatus.MAINTENANCE:
                    holder = self.get_holding_request(room.id)
                    holds = holder is None
                    if holder is not None:
                        logger.info(f"Room {room.name} already held by maintenance request {holder.id}")
                else:
                    prior = room.status
                    change = self.rooms.transition(
                        room.id, prior, RoomStatus.MAINTENANCE,
                        TransitionOrigin.MAINTENANCE_RAISED, actor_id=actor.actor_id
                    )
                    holds = True

            request = MaintenanceRequest(
                room_id=room.id,
                title=data.title,
                description=data.description,
                priority=data.priority,
                status=MaintenanceStatus.PENDING,
                holds_room=holds,
                prior_status=prior,
                reported_by=actor.actor_id,
            )
            self.db.add(request)

        self.db.refresh(request)
        logger.info(
            f"Maintenance request {request.id} ({request.priority.value}) raised on room {room.name}"
            f"{', holding room' if holds else ''}"
        )
        self._publish_request(EventType.MAINTENANCE_RAISED, request, actor)
        self.rooms.publish_changes(change)
        return request

    def start_request(self, request_id: int, actor: Actor) -> MaintenanceRequest:
        require_permission(actor, perm.MAINTENANCE_WRITE)
        request = self.get_request(request_id)

        with unit_of_work(self.db):
            advance(self.db, request, MAINTENANCE_STATE_MACHINE, MaintenanceStatus, "start",
                    started_at=utcnow())

        self.db.refresh(request)
        logger.info(f"Maintenance request {request.id} started")
        self._publish_request(EventType.MAINTENANCE_STARTED, request, actor)
        return request

    def complete_request(self, request_id: int, actor: Actor,
                         cost: Optional[Decimal] = None) -> MaintenanceRequest:
        """
        Close the request. When it held the room the hold passes to the next
        open high/urgent request, or the room is released: back to cleaning if
        it was taken out of cleaning or a cleaning task is still open, otherwise
        to available.
        """
        require_permission(actor, perm.MAINTENANCE_WRITE)
        request = self.get_request(request_id)
        was_holding = bool(request.holds_room)
        change = None

        with unit_of_work(self.db):
            values = {"completed_at": utcnow(), "holds_room": False}
            if cost is not None:
                values["cost"] = cost
            advance(self.db, request, MAINTENANCE_STATE_MACHINE, MaintenanceStatus, "complete", **values)

            if was_holding:
                change = self._release_hold(request, actor)

        self.db.refresh(request)
        logger.info(f"Maintenance request {request.id} completed")
        self._publish_request(EventType.MAINTENANCE_COMPLETED, request, actor)
        self.rooms.publish_changes(change)
        return request

    def _release_hold(self, request: MaintenanceRequest, actor: Actor):
        successor = self._next_forcing_request(request.room_id, request.id)
        if successor is not None:
            successor.holds_room = True
            successor.prior_status = request.prior_status
            logger.info(f"Room {request.room_id} hold passed to maintenance request {successor.id}")
            return None

        room = self.rooms.require_room(request.room_id)
        if room.status != RoomStatus.MAINTENANCE:
            logger.warning(f"Room {room.name} was {room.status.value} while held by request {request.id}")
            return None

        target = RoomStatus.AVAILABLE
        if request.prior_status == RoomStatus.CLEANING or \
                self.housekeeping.get_gating_task(room.id) is not None:
            target = RoomStatus.CLEANING
        return self.rooms.transition(
            room.id, RoomStatus.MAINTENANCE, target,
            TransitionOrigin.MAINTENANCE_COMPLETED, actor_id=actor.actor_id,
            resolved=True
        )

    # ============== Log ==============

    def delete_request(self, request_id: int, actor: Actor) -> None:
        """Completed requests, and open ones that never held the room, can be removed"""
        require_permission(actor, perm.MAINTENANCE_WRITE)
        request = self.get_request(request_id)
        if request.status != MaintenanceStatus.COMPLETED and request.holds_room:
            raise InvalidTransitionError(
                "MaintenanceRequest", request.status.value, "delete",
                reason="request is holding its room in maintenance"
            )
        with unit_of_work(self.db):
            self.db.delete(request)
        logger.info(f"Maintenance request {request_id} deleted")

    def _publish_request(self, event_type: EventType, request: MaintenanceRequest, actor: Actor) -> None:
        emit(self._publish_event, event_type, MaintenanceEventData(
            request_id=request.id,
            room_id=request.room_id,
            title=request.title,
            priority=request.priority.value,
            status=request.status.value,
            holds_room=bool(request.holds_room),
            actor_id=actor.actor_id,
        ).to_dict(), source="maintenance_service")
