"""
Room board and availability routes
"""
from typing import List, Optional
from datetime import date
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from resortpms.database import get_db
from resortpms.models.ontology import RoomStatus
from resortpms.models.schemas import RoomResponse, RoomBoardResponse
from resortpms.security.auth import Actor, permission_required
from resortpms.security import permissions as perm
from resortpms.services.availability_service import AvailabilityService
from resortpms.services.room_state_service import RoomStateService

router = APIRouter(prefix="/rooms", tags=["Rooms"])


@router.get("", response_model=RoomBoardResponse)
def list_rooms(
    status: Optional[RoomStatus] = None,
    db: Session = Depends(get_db),
    actor: Actor = Depends(permission_required(perm.ROOM_READ))
):
    """Room board with per-status counts"""
    service = RoomStateService(db)
    return RoomBoardResponse(
        rooms=[RoomResponse.model_validate(r) for r in service.get_rooms(status=status)],
        summary=service.get_status_summary(),
    )


@router.get("/available", response_model=List[RoomResponse])
def find_available_rooms(
    check_in: date,
    check_out: date,
    db: Session = Depends(get_db),
    actor: Actor = Depends(permission_required(perm.ROOM_READ))
):
    """Rooms free for [check_in, check_out)"""
    return AvailabilityService(db).find_free_rooms(check_in, check_out)


@router.get("/{room_id}", response_model=RoomResponse)
def get_room(
    room_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(permission_required(perm.ROOM_READ))
):
    return RoomStateService(db).require_room(room_id)
