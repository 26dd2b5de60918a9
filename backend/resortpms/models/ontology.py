"""
Entity definitions for the entity store
Room, Booking, Payment, PaymentSlip, Order, CleaningTask, MaintenanceRequest, Guest
"""
from datetime import date
from decimal import Decimal
from enum import Enum
from sqlalchemy import (
    Column, Integer, String, DateTime, Date, ForeignKey, Text,
    Enum as SQLEnum, Boolean, Numeric, CheckConstraint
)
from sqlalchemy.orm import relationship
from resortpms.clock import utcnow
from resortpms.database import Base


# ============== Enums ==============

class RoomStatus(str, Enum):
    """Room occupancy state"""
    AVAILABLE = "available"
    OCCUPIED = "occupied"
    CLEANING = "cleaning"
    MAINTENANCE = "maintenance"


class BookingStatus(str, Enum):
    """Booking stay state"""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked-in"
    CHECKED_OUT = "checked-out"
    CANCELLED = "cancelled"


class BookingPaymentStatus(str, Enum):
    """Aggregate payment flag read by the front desk"""
    PENDING = "pending"
    PAID = "paid"
    PARTIAL = "partial"
    REFUNDED = "refunded"


class BookingSource(str, Enum):
    """Entry point the booking came from"""
    WALK_IN = "walk_in"
    SELF_SERVICE = "self_service"


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    TRANSFER = "transfer"
    QR = "qr"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class SlipStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class CleaningStatus(str, Enum):
    """pending is implicit: a room in `cleaning` with no unresolved task"""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    INSPECTED = "inspected"


class MaintenancePriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class MaintenanceStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class OrderStatus(str, Enum):
    PENDING = "pending"
    PREPARING = "preparing"
    READY = "ready"
    DELIVERED = "delivered"
    PAID = "paid"


# Bookings in these states hold their room for their interval
ROOM_HOLDING_STATUSES = (
    BookingStatus.PENDING,
    BookingStatus.CONFIRMED,
    BookingStatus.CHECKED_IN,
)

# Active bookings in the no-double-booking sense
ACTIVE_BOOKING_STATUSES = (BookingStatus.CONFIRMED, BookingStatus.CHECKED_IN)

TERMINAL_BOOKING_STATUSES = (BookingStatus.CHECKED_OUT, BookingStatus.CANCELLED)

ROOM_FORCING_PRIORITIES = (MaintenancePriority.HIGH, MaintenancePriority.URGENT)

UNRESOLVED_CLEANING_STATUSES = (CleaningStatus.IN_PROGRESS, CleaningStatus.COMPLETED)


# ============== Entities ==============

class Room(Base):
    """
    Room - status is the single source of truth for "can a stay start here today".
    Only RoomStateService writes `status`.
    """
    __tablename__ = "rooms"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)      # display name
    description = Column(Text)
    rate = Column(Numeric(10, 2), nullable=False)                 # nightly rate
    capacity = Column(Integer, default=2)
    status = Column(SQLEnum(RoomStatus), default=RoomStatus.AVAILABLE, nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    bookings = relationship("Booking", back_populates="room")
    cleaning_tasks = relationship("CleaningTask", back_populates="room")
    maintenance_requests = relationship("MaintenanceRequest", back_populates="room")


class Guest(Base):
    """Guest record, upserted by phone at booking intake"""
    __tablename__ = "guests"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    phone = Column(String(30), unique=True, nullable=False, index=True)
    email = Column(String(100))
    id_card = Column(String(50))
    nationality = Column(String(50))
    total_visits = Column(Integer, default=0)
    notes = Column(Text)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    bookings = relationship("Booking", back_populates="guest")


class Booking(Base):
    """
    Booking - a stay over the half-open interval [check_in, check_out).
    total_amount is a snapshot of nightly_rate x nights taken at creation.
    """
    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("check_in < check_out", name="ck_booking_interval"),
    )

    id = Column(Integer, primary_key=True, index=True)
    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=False, index=True)
    guest_id = Column(Integer, ForeignKey("guests.id"), nullable=True)
    guest_name = Column(String(100), nullable=False)
    guest_phone = Column(String(30), nullable=False)
    guest_email = Column(String(100))
    check_in = Column(Date, nullable=False, index=True)
    check_out = Column(Date, nullable=False, index=True)
    adults = Column(Integer, default=1)
    children = Column(Integer, default=0)
    status = Column(SQLEnum(BookingStatus), default=BookingStatus.PENDING, nullable=False, index=True)
    payment_status = Column(SQLEnum(BookingPaymentStatus), default=BookingPaymentStatus.PENDING,
                            nullable=False)
    source = Column(SQLEnum(BookingSource), default=BookingSource.SELF_SERVICE)
    nightly_rate = Column(Numeric(10, 2), nullable=False)
    total_amount = Column(Numeric(10, 2), nullable=False)
    notes = Column(Text)
    cancel_reason = Column(Text)
    checked_in_at = Column(DateTime(timezone=True))
    checked_out_at = Column(DateTime(timezone=True))
    created_by = Column(String(64))
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    room = relationship("Room", back_populates="bookings")
    guest = relationship("Guest", back_populates="bookings")
    payments = relationship("Payment", back_populates="booking")
    payment_slips = relationship("PaymentSlip", back_populates="booking")
    orders = relationship("Order", back_populates="booking")

    @property
    def room_name(self):
        return self.room.name if self.room else None

    @property
    def nights(self) -> int:
        return (self.check_out - self.check_in).days

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_BOOKING_STATUSES

    def covers(self, day: date) -> bool:
        """Whether `day` falls inside [check_in, check_out)"""
        return self.check_in <= day < self.check_out


class Payment(Base):
    """Payment against exactly one of a booking or an order"""
    __tablename__ = "payments"
    __table_args__ = (
        CheckConstraint(
            "(booking_id IS NULL) <> (order_id IS NULL)",
            name="ck_payment_single_target"
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=True, index=True)
    amount = Column(Numeric(10, 2), nullable=False)
    method = Column(SQLEnum(PaymentMethod), nullable=False)
    status = Column(SQLEnum(PaymentStatus), default=PaymentStatus.PENDING, nullable=False)
    reference = Column(String(100))
    notes = Column(Text)
    created_by = Column(String(64))
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    booking = relationship("Booking", back_populates="payments")
    order = relationship("Order", back_populates="payments")


class PaymentSlip(Base):
    """Transfer slip uploaded by a guest, resolved by a verifier"""
    __tablename__ = "payment_slips"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False, index=True)
    image_ref = Column(String(500), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    status = Column(SQLEnum(SlipStatus), default=SlipStatus.PENDING, nullable=False, index=True)
    submitted_by = Column(String(64))
    verified_by = Column(String(64))
    verified_at = Column(DateTime(timezone=True))
    reject_reason = Column(Text)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    booking = relationship("Booking", back_populates="payment_slips")


class Order(Base):
    """Food & beverage order, optionally charged to a booking"""
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=True, index=True)
    guest_name = Column(String(100))
    subtotal = Column(Numeric(10, 2), default=Decimal("0"))
    tax = Column(Numeric(10, 2), default=Decimal("0"))
    total = Column(Numeric(10, 2), default=Decimal("0"))
    status = Column(SQLEnum(OrderStatus), default=OrderStatus.PENDING, nullable=False)
    payment_method = Column(SQLEnum(PaymentMethod))
    created_by = Column(String(64))
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    booking = relationship("Booking", back_populates="orders")
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")
    payments = relationship("Payment", back_populates="order")


class OrderItem(Base):
    """Line item; product identity and price are captured at time of sale"""
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False)
    product_id = Column(String(64), nullable=False)
    product_name = Column(String(100))
    unit_price = Column(Numeric(10, 2), nullable=False)
    quantity = Column(Integer, nullable=False)
    total = Column(Numeric(10, 2), nullable=False)

    order = relationship("Order", back_populates="items")


class CleaningTask(Base):
    """Housekeeping turnaround task for a room in `cleaning`"""
    __tablename__ = "cleaning_tasks"

    id = Column(Integer, primary_key=True, index=True)
    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=False, index=True)
    assignee = Column(String(64), nullable=False)
    status = Column(SQLEnum(CleaningStatus), default=CleaningStatus.IN_PROGRESS, nullable=False)
    notes = Column(Text)
    started_at = Column(DateTime(timezone=True))
    completed_at = Column(DateTime(timezone=True))
    inspected_by = Column(String(64))
    inspected_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    room = relationship("Room", back_populates="cleaning_tasks")

    @property
    def is_resolved(self) -> bool:
        return self.status == CleaningStatus.INSPECTED


class MaintenanceRequest(Base):
    """Defect report; high/urgent requests hold their room in `maintenance`"""
    __tablename__ = "maintenance_requests"

    id = Column(Integer, primary_key=True, index=True)
    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text)
    priority = Column(SQLEnum(MaintenancePriority), default=MaintenancePriority.MEDIUM, nullable=False)
    status = Column(SQLEnum(MaintenanceStatus), default=MaintenanceStatus.PENDING, nullable=False)
    holds_room = Column(Boolean, default=False)
    prior_status = Column(SQLEnum(RoomStatus))  # room status this request's hold replaced
    cost = Column(Numeric(10, 2))
    reported_by = Column(String(64))
    started_at = Column(DateTime(timezone=True))
    completed_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    room = relationship("Room", back_populates="maintenance_requests")

    @property
    def forces_room(self) -> bool:
        return self.priority in ROOM_FORCING_PRIORITIES
