"""
Pydantic schemas
Request/response validation at the API boundary; services accept the request models directly
"""
from datetime import datetime, date
from decimal import Decimal
from typing import Optional, List, Dict
from pydantic import BaseModel, Field, field_validator, ConfigDict
from resortpms.models.ontology import (
    RoomStatus, BookingStatus, BookingPaymentStatus, BookingSource, PaymentMethod,
    PaymentStatus, SlipStatus, CleaningStatus, MaintenancePriority, MaintenanceStatus,
    OrderStatus
)


# ============== Room Schemas ==============

class RoomResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    rate: Decimal
    capacity: int
    status: RoomStatus
    is_active: bool
    model_config = ConfigDict(from_attributes=True)


class RoomBoardResponse(BaseModel):
    rooms: List[RoomResponse]
    summary: Dict[str, int]


# ============== Guest Schemas ==============

class GuestResponse(BaseModel):
    id: int
    name: str
    phone: str
    email: Optional[str] = None
    id_card: Optional[str] = None
    nationality: Optional[str] = None
    total_visits: int = 0
    model_config = ConfigDict(from_attributes=True)


# ============== Booking Schemas ==============

class BookingCreate(BaseModel):
    room_id: int
    guest_name: str = Field(..., min_length=1, max_length=100)
    guest_phone: str = Field(..., min_length=1, max_length=30)
    guest_email: Optional[str] = Field(None, max_length=100)
    id_card: Optional[str] = Field(None, max_length=50)
    nationality: Optional[str] = Field(None, max_length=50)
    check_in: date
    check_out: date
    adults: int = Field(default=1, ge=1)
    children: int = Field(default=0, ge=0)
    source: BookingSource = BookingSource.SELF_SERVICE
    notes: Optional[str] = None

    @field_validator("guest_name", "guest_phone")
    @classmethod
    def strip_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class BookingCancel(BaseModel):
    reason: Optional[str] = None


class BookingResponse(BaseModel):
    id: int
    room_id: int
    room_name: Optional[str] = None
    guest_id: Optional[int] = None
    guest_name: str
    guest_phone: str
    guest_email: Optional[str] = None
    check_in: date
    check_out: date
    nights: int
    adults: int
    children: int
    status: BookingStatus
    payment_status: BookingPaymentStatus
    source: Optional[BookingSource] = None
    nightly_rate: Decimal
    total_amount: Decimal
    notes: Optional[str] = None
    cancel_reason: Optional[str] = None
    checked_in_at: Optional[datetime] = None
    checked_out_at: Optional[datetime] = None
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


# ============== Billing Schemas ==============

class BookingTotalResponse(BaseModel):
    booking_id: int
    nights: int
    nightly_rate: Decimal
    room_total: Decimal
    order_total: Decimal
    grand_total: Decimal
    amount_paid: Decimal
    balance_due: Decimal


# ============== Housekeeping Schemas ==============

class CleaningStart(BaseModel):
    room_id: int
    assignee: str = Field(..., min_length=1, max_length=64)
    notes: Optional[str] = None


class CleaningTaskResponse(BaseModel):
    id: int
    room_id: int
    assignee: str
    status: CleaningStatus
    notes: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    inspected_by: Optional[str] = None
    inspected_at: Optional[datetime] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


# ============== Maintenance Schemas ==============

class MaintenanceCreate(BaseModel):
    room_id: int
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    priority: MaintenancePriority = MaintenancePriority.MEDIUM


class MaintenanceComplete(BaseModel):
    cost: Optional[Decimal] = Field(None, ge=0)


class MaintenanceResponse(BaseModel):
    id: int
    room_id: int
    title: str
    description: Optional[str] = None
    priority: MaintenancePriority
    status: MaintenanceStatus
    holds_room: bool
    prior_status: Optional[RoomStatus] = None
    cost: Optional[Decimal] = None
    reported_by: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


# ============== Order Schemas ==============

class OrderItemCreate(BaseModel):
    product_id: str = Field(..., min_length=1, max_length=64)
    product_name: Optional[str] = Field(None, max_length=100)
    unit_price: Decimal = Field(..., ge=0)
    quantity: int = Field(..., ge=1)


class OrderCreate(BaseModel):
    booking_id: Optional[int] = None
    guest_name: Optional[str] = Field(None, max_length=100)
    items: List[OrderItemCreate] = Field(..., min_length=1)
    tax: Decimal = Field(default=Decimal("0"), ge=0)


class OrderStatusUpdate(BaseModel):
    trigger: str = Field(..., description="prepare | ready | deliver")


class OrderItemResponse(BaseModel):
    id: int
    product_id: str
    product_name: Optional[str] = None
    unit_price: Decimal
    quantity: int
    total: Decimal
    model_config = ConfigDict(from_attributes=True)


class OrderResponse(BaseModel):
    id: int
    booking_id: Optional[int] = None
    guest_name: Optional[str] = None
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    status: OrderStatus
    payment_method: Optional[PaymentMethod] = None
    created_by: Optional[str] = None
    created_at: datetime
    items: List[OrderItemResponse] = []
    model_config = ConfigDict(from_attributes=True)


# ============== Payment Schemas ==============

class SettlementCreate(BaseModel):
    amount: Decimal = Field(..., gt=0)
    method: PaymentMethod
    reference: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None


class OrderSettlement(BaseModel):
    method: PaymentMethod
    reference: Optional[str] = Field(None, max_length=100)


class RefundRequest(BaseModel):
    reason: str = Field(..., min_length=1)


class PaymentResponse(BaseModel):
    id: int
    booking_id: Optional[int] = None
    order_id: Optional[int] = None
    amount: Decimal
    method: PaymentMethod
    status: PaymentStatus
    reference: Optional[str] = None
    notes: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class SlipCreate(BaseModel):
    booking_id: int
    image_ref: str = Field(..., min_length=1, max_length=500)
    amount: Decimal = Field(..., gt=0)


class SlipReject(BaseModel):
    reason: str = ""


class SlipResponse(BaseModel):
    id: int
    booking_id: int
    image_ref: str
    amount: Decimal
    status: SlipStatus
    submitted_by: Optional[str] = None
    verified_by: Optional[str] = None
    verified_at: Optional[datetime] = None
    reject_reason: Optional[str] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)
