# API Routers
from resortpms.routers import rooms, bookings, housekeeping, maintenance, orders, payments, guests

__all__ = ['rooms', 'bookings', 'housekeeping', 'maintenance', 'orders', 'payments', 'guests']
