"""
Booking routes - front-desk lifecycle
"""
from typing import List, Optional
from datetime import date
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from resortpms.database import get_db
from resortpms.models.ontology import BookingStatus
from resortpms.models.schemas import (
    BookingCreate, BookingCancel, BookingResponse, BookingTotalResponse,
    PaymentResponse, SettlementCreate,
)
from resortpms.security.auth import Actor, get_current_actor, permission_required
from resortpms.security import permissions as perm
from resortpms.services.billing_service import BillingService
from resortpms.services.booking_service import BookingService
from resortpms.services.payment_service import PaymentService

router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.get("", response_model=List[BookingResponse])
def list_bookings(
    status: Optional[BookingStatus] = None,
    room_id: Optional[int] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    guest: Optional[str] = None,
    db: Session = Depends(get_db),
    actor: Actor = Depends(permission_required(perm.BOOKING_READ))
):
    return BookingService(db).get_bookings(status, room_id, date_from, date_to, guest)


@router.get("/today-arrivals", response_model=List[BookingResponse])
def today_arrivals(
    db: Session = Depends(get_db),
    actor: Actor = Depends(permission_required(perm.BOOKING_READ))
):
    return BookingService(db).get_today_arrivals()


@router.get("/today-departures", response_model=List[BookingResponse])
def today_departures(
    db: Session = Depends(get_db),
    actor: Actor = Depends(permission_required(perm.BOOKING_READ))
):
    return BookingService(db).get_today_departures()


@router.get("/in-house", response_model=List[BookingResponse])
def in_house(
    db: Session = Depends(get_db),
    actor: Actor = Depends(permission_required(perm.BOOKING_READ))
):
    return BookingService(db).get_in_house()


@router.get("/{booking_id}", response_model=BookingResponse)
def get_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(permission_required(perm.BOOKING_READ))
):
    return BookingService(db).require_booking(booking_id)


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    data: BookingCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    """Walk-in or self-service intake"""
    return BookingService(db).create_booking(data, actor)


@router.post("/{booking_id}/confirm", response_model=BookingResponse)
def confirm_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    return BookingService(db).confirm_booking(booking_id, actor)


@router.post("/{booking_id}/check-in", response_model=BookingResponse)
def check_in(
    booking_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    return BookingService(db).check_in(booking_id, actor)


@router.post("/{booking_id}/check-out", response_model=BookingResponse)
def check_out(
    booking_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    return BookingService(db).check_out(booking_id, actor)


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
def cancel_booking(
    booking_id: int,
    data: BookingCancel,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    return BookingService(db).cancel_booking(booking_id, actor, data.reason)


@router.get("/{booking_id}/total", response_model=BookingTotalResponse)
def booking_total(
    booking_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(permission_required(perm.BILLING_READ))
):
    """Room charge, orders and balance"""
    return BookingTotalResponse(**BillingService(db).compute_booking_total(booking_id).to_dict())


@router.get("/{booking_id}/payments", response_model=List[PaymentResponse])
def booking_payments(
    booking_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(permission_required(perm.BILLING_READ))
):
    return PaymentService(db).get_payments(booking_id=booking_id)


@router.post("/{booking_id}/settle", response_model=PaymentResponse,
             status_code=status.HTTP_201_CREATED)
def settle_booking(
    booking_id: int,
    data: SettlementCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    """Front-desk cash/card settlement"""
    return PaymentService(db).settle_booking(booking_id, data, actor)
