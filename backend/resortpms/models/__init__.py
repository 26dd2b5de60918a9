"""
Entity definitions, domain events and API schemas
"""
from resortpms.models.ontology import (
    Room, Guest, Booking, Payment, PaymentSlip, Order, OrderItem,
    CleaningTask, MaintenanceRequest,
    RoomStatus, BookingStatus, BookingPaymentStatus, BookingSource,
    PaymentMethod, PaymentStatus, SlipStatus, CleaningStatus,
    MaintenancePriority, MaintenanceStatus, OrderStatus,
)

__all__ = [
    "Room", "Guest", "Booking", "Payment", "PaymentSlip", "Order", "OrderItem",
    "CleaningTask", "MaintenanceRequest",
    "RoomStatus", "BookingStatus", "BookingPaymentStatus", "BookingSource",
    "PaymentMethod", "PaymentStatus", "SlipStatus", "CleaningStatus",
    "MaintenancePriority", "MaintenanceStatus", "OrderStatus",
]
