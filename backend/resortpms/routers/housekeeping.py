"""
Housekeeping routes
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from resortpms.database import get_db
from resortpms.models.ontology import CleaningStatus
from resortpms.models.schemas import CleaningStart, CleaningTaskResponse, RoomResponse
from resortpms.security.auth import Actor, get_current_actor, permission_required
from resortpms.security import permissions as perm
from resortpms.services.housekeeping_service import HousekeepingService

router = APIRouter(prefix="/housekeeping", tags=["Housekeeping"])


@router.get("/tasks", response_model=List[CleaningTaskResponse])
def list_tasks(
    room_id: Optional[int] = None,
    status: Optional[CleaningStatus] = None,
    db: Session = Depends(get_db),
    actor: Actor = Depends(permission_required(perm.ROOM_READ))
):
    return HousekeepingService(db).get_tasks(room_id, status)


@router.get("/awaiting", response_model=List[RoomResponse])
def rooms_awaiting_cleaning(
    db: Session = Depends(get_db),
    actor: Actor = Depends(permission_required(perm.ROOM_READ))
):
    """Rooms in cleaning with nobody assigned"""
    return HousekeepingService(db).get_rooms_awaiting_cleaning()


@router.post("/tasks", response_model=CleaningTaskResponse, status_code=status.HTTP_201_CREATED)
def start_cleaning(
    data: CleaningStart,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    return HousekeepingService(db).start_cleaning(data, actor)


@router.post("/tasks/{task_id}/complete", response_model=CleaningTaskResponse)
def complete_cleaning(
    task_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    return HousekeepingService(db).complete_cleaning(task_id, actor)


@router.post("/tasks/{task_id}/inspect", response_model=CleaningTaskResponse)
def inspect_cleaning(
    task_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    return HousekeepingService(db).inspect_cleaning(task_id, actor)


@router.delete("/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def clear_task(
    task_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    HousekeepingService(db).clear_task(task_id, actor)


@router.delete("/tasks")
def clear_inspected_tasks(
    room_id: Optional[int] = None,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    return {"cleared": HousekeepingService(db).clear_inspected_tasks(actor, room_id)}
