"""
Guest routes
"""
from typing import List, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from resortpms.database import get_db
from resortpms.models.schemas import GuestResponse
from resortpms.security.auth import Actor, permission_required
from resortpms.security import permissions as perm
from resortpms.services.guest_service import GuestService

router = APIRouter(prefix="/guests", tags=["Guests"])


@router.get("", response_model=List[GuestResponse])
def list_guests(
    search: Optional[str] = None,
    limit: int = 100,
    db: Session = Depends(get_db),
    actor: Actor = Depends(permission_required(perm.GUEST_READ))
):
    return GuestService(db).get_guests(search, limit)


@router.get("/{guest_id}", response_model=GuestResponse)
def get_guest(
    guest_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(permission_required(perm.GUEST_READ))
):
    return GuestService(db).get_guest(guest_id)
