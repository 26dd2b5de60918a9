"""
Domain events
Raised after the state change they describe has been committed
"""
from enum import Enum
from dataclasses import dataclass, field, asdict
from datetime import datetime, date
from decimal import Decimal
from typing import Optional, Dict, Any

from resortpms.clock import utcnow


class EventType(str, Enum):
    """Event types"""
    # Booking
    BOOKING_CREATED = "booking.created"
    BOOKING_CONFIRMED = "booking.confirmed"
    BOOKING_CHECKED_IN = "booking.checked_in"
    BOOKING_CHECKED_OUT = "booking.checked_out"
    BOOKING_CANCELLED = "booking.cancelled"

    # Room
    ROOM_STATUS_CHANGED = "room.status_changed"

    # Housekeeping
    CLEANING_STARTED = "cleaning.started"
    CLEANING_COMPLETED = "cleaning.completed"
    CLEANING_INSPECTED = "cleaning.inspected"

    # Maintenance
    MAINTENANCE_RAISED = "maintenance.raised"
    MAINTENANCE_STARTED = "maintenance.started"
    MAINTENANCE_COMPLETED = "maintenance.completed"

    # Payments
    PAYMENT_SLIP_SUBMITTED = "payment.slip_submitted"
    PAYMENT_SLIP_APPROVED = "payment.slip_approved"
    PAYMENT_SLIP_REJECTED = "payment.slip_rejected"
    PAYMENT_RECEIVED = "payment.received"
    PAYMENT_REFUNDED = "payment.refunded"

    # Orders
    ORDER_CREATED = "order.created"


@dataclass
class BaseEventData:
    """Base class for event payloads"""
    timestamp: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        for key, value in result.items():
            if isinstance(value, (datetime, date)):
                result[key] = value.isoformat()
            elif isinstance(value, Decimal):
                result[key] = str(value)
        return result


@dataclass
class BookingEventData(BaseEventData):
    """Shared payload for booking lifecycle events"""
    booking_id: int = 0
    room_id: int = 0
    room_name: str = ""
    guest_name: str = ""
    check_in: Optional[date] = None
    check_out: Optional[date] = None
    status: str = ""
    total_amount: Decimal = Decimal("0")
    actor_id: str = ""
    reason: str = ""


@dataclass
class RoomStatusChangedData(BaseEventData):
    room_id: int = 0
    room_name: str = ""
    old_status: str = ""
    new_status: str = ""
    origin: str = ""
    actor_id: str = ""


@dataclass
class CleaningEventData(BaseEventData):
    task_id: int = 0
    room_id: int = 0
    status: str = ""
    assignee: str = ""
    actor_id: str = ""


@dataclass
class MaintenanceEventData(BaseEventData):
    request_id: int = 0
    room_id: int = 0
    title: str = ""
    priority: str = ""
    status: str = ""
    holds_room: bool = False
    actor_id: str = ""


@dataclass
class PaymentEventData(BaseEventData):
    booking_id: Optional[int] = None
    order_id: Optional[int] = None
    payment_id: Optional[int] = None
    slip_id: Optional[int] = None
    amount: Decimal = Decimal("0")
    payment_status: str = ""
    actor_id: str = ""
    reason: str = ""


@dataclass
class OrderCreatedData(BaseEventData):
    order_id: int = 0
    booking_id: Optional[int] = None
    total: Decimal = Decimal("0")
    item_count: int = 0
    actor_id: str = ""
