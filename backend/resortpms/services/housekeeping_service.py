"""
Housekeeping service - cleaning turnaround
A room in `cleaning` is worked through in_progress -> completed -> inspected;
only the inspection hands the room back to `available`.
"""
from typing import Callable, List, Optional
import logging

from sqlalchemy import exists
from sqlalchemy.orm import Session

from resortpms.clock import utcnow
from resortpms.database import unit_of_work
from resortpms.domain.state_machines import CLEANING_STATE_MACHINE
from resortpms.exceptions import InvalidTransitionError, NotFoundError, RoomUnavailableError
from resortpms.models.events import EventType, CleaningEventData
from resortpms.models.ontology import (
    CleaningTask, CleaningStatus, Room, RoomStatus, UNRESOLVED_CLEANING_STATUSES,
)
from resortpms.models.schemas import CleaningStart
from resortpms.security.auth import Actor, require_permission
from resortpms.security import permissions as perm
from resortpms.services.event_bus import Event, emit, event_bus
from resortpms.services.room_state_service import RoomStateService, TransitionOrigin
from resortpms.services.transitions import advance

logger = logging.getLogger(__name__)


class HousekeepingService:
    """Housekeeping service"""

    def __init__(self, db: Session, event_publisher: Callable[[Event], None] = None):
        self.db = db
        self._publish_event = event_publisher or event_bus.publish
        self.rooms = RoomStateService(db, self._publish_event)

    # ============== Queries ==============

    def get_task(self, task_id: int) -> CleaningTask:
        task = self.db.query(CleaningTask).filter(CleaningTask.id == task_id).first()
        if not task:
            raise NotFoundError("CleaningTask", task_id)
        return task

    def get_tasks(self, room_id: Optional[int] = None,
                  status: Optional[CleaningStatus] = None) -> List[CleaningTask]:
        query = self.db.query(CleaningTask)
        if room_id:
            query = query.filter(CleaningTask.room_id == room_id)
        if status:
            query = query.filter(CleaningTask.status == status)
        return query.order_by(CleaningTask.created_at.desc(), CleaningTask.id.desc()).all()

    def get_gating_task(self, room_id: int) -> Optional[CleaningTask]:
        """Most recent unresolved task for the room"""
        return self.db.query(CleaningTask).filter(
            CleaningTask.room_id == room_id,
            CleaningTask.status.in_(UNRESOLVED_CLEANING_STATUSES)
        ).order_by(CleaningTask.id.desc()).first()

    def get_rooms_awaiting_cleaning(self) -> List[Room]:
        """Rooms in `cleaning` that nobody has been assigned to yet"""
        assigned = exists().where(
            CleaningTask.room_id == Room.id,
            CleaningTask.status.in_(UNRESOLVED_CLEANING_STATUSES)
        )
        return self.db.query(Room).filter(
            Room.status == RoomStatus.CLEANING,
            ~assigned
        ).order_by(Room.name).all()

    # ============== Workflow ==============

    def start_cleaning(self, data: CleaningStart, actor: Actor) -> CleaningTask:
        """Assign staff to a room in `cleaning`; the room status does not change"""
        require_permission(actor, perm.HOUSEKEEPING_WRITE)
        room = self.rooms.require_room(data.room_id)

        if room.status != RoomStatus.CLEANING:
            logger.warning(f"Cleaning not started: room {room.name} is {room.status.value}")
            raise RoomUnavailableError(
                f"Room {room.name} is {room.status.value}, not awaiting cleaning",
                room_id=room.id, status=room.status.value
            )

        open_task = self.get_gating_task(room.id)
        if open_task is not None:
            logger.warning(f"Cleaning not started: room {room.name} already has task {open_task.id}")
            raise InvalidTransitionError(
                "CleaningTask", open_task.status.value, "assign",
                reason=f"room {room.name} already has unresolved task {open_task.id}"
            )

        with unit_of_work(self.db):
            task = CleaningTask(
                room_id=room.id,
                assignee=data.assignee,
                status=CleaningStatus.IN_PROGRESS,
                notes=data.notes,
                started_at=utcnow(),
            )
            self.db.add(task)

        self.db.refresh(task)
        logger.info(f"Cleaning task {task.id} started on room {room.name} by {task.assignee}")
        self._publish_task(EventType.CLEANING_STARTED, task, actor)
        return task

    def complete_cleaning(self, task_id: int, actor: Actor) -> CleaningTask:
        require_permission(actor, perm.HOUSEKEEPING_WRITE)
        task = self.get_task(task_id)

        with unit_of_work(self.db):
            advance(self.db, task, CLEANING_STATE_MACHINE, CleaningStatus, "complete",
                    completed_at=utcnow())

        self.db.refresh(task)
        logger.info(f"Cleaning task {task.id} completed")
        self._publish_task(EventType.CLEANING_COMPLETED, task, actor)
        return task

    def inspect_cleaning(self, task_id: int, actor: Actor) -> CleaningTask:
        """
        Supervisor sign-off; releases the room cleaning -> available.

        A room that went into maintenance meanwhile stays there; completing
        the maintenance request releases it.
        """
        require_permission(actor, perm.HOUSEKEEPING_INSPECT)
        task = self.get_task(task_id)
        change = None

        with unit_of_work(self.db):
            advance(self.db, task, CLEANING_STATE_MACHINE, CleaningStatus, "inspect",
                    inspected_by=actor.actor_id, inspected_at=utcnow())
            room = self.rooms.require_room(task.room_id)
            if room.status == RoomStatus.CLEANING:
                change = self.rooms.transition(
                    room.id, RoomStatus.CLEANING, RoomStatus.AVAILABLE,
                    TransitionOrigin.CLEANING_INSPECTED, actor_id=actor.actor_id,
                    resolved=True
                )
            else:
                logger.info(f"Room {room.name} stays {room.status.value} after inspection of task {task.id}")

        self.db.refresh(task)
        logger.info(f"Cleaning task {task.id} inspected by {actor.actor_id}")
        self._publish_task(EventType.CLEANING_INSPECTED, task, actor)
        self.rooms.publish_changes(change)
        return task

    # ============== Log ==============

    def clear_task(self, task_id: int, actor: Actor) -> None:
        """Remove an inspected task from the log"""
        require_permission(actor, perm.HOUSEKEEPING_WRITE)
        task = self.get_task(task_id)
        if not task.is_resolved:
            raise InvalidTransitionError(
                "CleaningTask", task.status.value, "clear",
                reason="only inspected tasks can be cleared"
            )
        with unit_of_work(self.db):
            self.db.delete(task)
        logger.info(f"Cleaning task {task_id} cleared")

    def clear_inspected_tasks(self, actor: Actor, room_id: Optional[int] = None) -> int:
        """Remove every inspected task, optionally for one room. Returns the count"""
        require_permission(actor, perm.HOUSEKEEPING_WRITE)
        query = self.db.query(CleaningTask).filter(CleaningTask.status == CleaningStatus.INSPECTED)
        if room_id:
            query = query.filter(CleaningTask.room_id == room_id)
        with unit_of_work(self.db):
            count = query.delete(synchronize_session=False)
        logger.info(f"Cleared {count} inspected cleaning task(s)")
        return count

    def _publish_task(self, event_type: EventType, task: CleaningTask, actor: Actor) -> None:
        emit(self._publish_event, event_type, CleaningEventData(
            task_id=task.id,
            room_id=task.room_id,
            status=task.status.value,
            assignee=task.assignee,
            actor_id=actor.actor_id,
        ).to_dict(), source="housekeeping_service")
