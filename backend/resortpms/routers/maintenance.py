"""
Maintenance routes
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from resortpms.database import get_db
from resortpms.models.ontology import MaintenanceStatus, MaintenancePriority
from resortpms.models.schemas import MaintenanceCreate, MaintenanceComplete, MaintenanceResponse
from resortpms.security.auth import Actor, get_current_actor, permission_required
from resortpms.security import permissions as perm
from resortpms.services.maintenance_service import MaintenanceService

router = APIRouter(prefix="/maintenance", tags=["Maintenance"])


@router.get("", response_model=List[MaintenanceResponse])
def list_requests(
    room_id: Optional[int] = None,
    status: Optional[MaintenanceStatus] = None,
    priority: Optional[MaintenancePriority] = None,
    db: Session = Depends(get_db),
    actor: Actor = Depends(permission_required(perm.ROOM_READ))
):
    return MaintenanceService(db).get_requests(room_id, status, priority)


@router.post("", response_model=MaintenanceResponse, status_code=status.HTTP_201_CREATED)
def raise_request(
    data: MaintenanceCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    return MaintenanceService(db).raise_request(data, actor)


@router.post("/{request_id}/start", response_model=MaintenanceResponse)
def start_request(
    request_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    return MaintenanceService(db).start_request(request_id, actor)


@router.post("/{request_id}/complete", response_model=MaintenanceResponse)
def complete_request(
    request_id: int,
    data: MaintenanceComplete,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    return MaintenanceService(db).complete_request(request_id, actor, cost=data.cost)


@router.delete("/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_request(
    request_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    MaintenanceService(db).delete_request(request_id, actor)
