"""
Payment routes - slips and refunds
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from resortpms.database import get_db
from resortpms.models.ontology import SlipStatus, PaymentStatus
from resortpms.models.schemas import (
    PaymentResponse, RefundRequest, SlipCreate, SlipReject, SlipResponse,
)
from resortpms.security.auth import Actor, get_current_actor, permission_required
from resortpms.security import permissions as perm
from resortpms.services.payment_service import PaymentService
from resortpms.services.payment_verification_service import PaymentVerificationService

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.get("", response_model=List[PaymentResponse])
def list_payments(
    status: Optional[PaymentStatus] = None,
    db: Session = Depends(get_db),
    actor: Actor = Depends(permission_required(perm.BILLING_READ))
):
    return PaymentService(db).get_payments(status=status)


@router.post("/{payment_id}/refund", response_model=PaymentResponse)
def refund_payment(
    payment_id: int,
    data: RefundRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    return PaymentService(db).refund_payment(payment_id, data.reason, actor)


@router.get("/slips", response_model=List[SlipResponse])
def list_slips(
    status: Optional[SlipStatus] = None,
    booking_id: Optional[int] = None,
    db: Session = Depends(get_db),
    actor: Actor = Depends(permission_required(perm.PAYMENT_VERIFY))
):
    return PaymentVerificationService(db).get_slips(status, booking_id)


@router.post("/slips", response_model=SlipResponse, status_code=status.HTTP_201_CREATED)
def submit_slip(
    data: SlipCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    """Guest transfer slip upload"""
    return PaymentVerificationService(db).submit_slip(data, actor)


@router.post("/slips/{slip_id}/approve", response_model=SlipResponse)
def approve_slip(
    slip_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    return PaymentVerificationService(db).approve_slip(slip_id, actor)


@router.post("/slips/{slip_id}/reject", response_model=SlipResponse)
def reject_slip(
    slip_id: int,
    data: SlipReject,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    return PaymentVerificationService(db).reject_slip(slip_id, actor, data.reason)
