"""
Food & beverage order routes
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from resortpms.database import get_db
from resortpms.models.ontology import OrderStatus
from resortpms.models.schemas import (
    OrderCreate, OrderResponse, OrderStatusUpdate, OrderSettlement, PaymentResponse,
)
from resortpms.security.auth import Actor, get_current_actor, permission_required
from resortpms.security import permissions as perm
from resortpms.services.order_service import OrderService
from resortpms.services.payment_service import PaymentService

router = APIRouter(prefix="/orders", tags=["Orders"])


@router.get("", response_model=List[OrderResponse])
def list_orders(
    booking_id: Optional[int] = None,
    status: Optional[OrderStatus] = None,
    db: Session = Depends(get_db),
    actor: Actor = Depends(permission_required(perm.BILLING_READ))
):
    return OrderService(db).get_orders(booking_id, status)


@router.get("/{order_id}", response_model=OrderResponse)
def get_order(
    order_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(permission_required(perm.BILLING_READ))
):
    return OrderService(db).get_order(order_id)


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
def create_order(
    data: OrderCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    return OrderService(db).create_order(data, actor)


@router.post("/{order_id}/status", response_model=OrderResponse)
def update_order_status(
    order_id: int,
    data: OrderStatusUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    return OrderService(db).update_order_status(order_id, data.trigger, actor)


@router.post("/{order_id}/settle", response_model=PaymentResponse,
             status_code=status.HTTP_201_CREATED)
def settle_order(
    order_id: int,
    data: OrderSettlement,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    return PaymentService(db).settle_order(order_id, data, actor)
