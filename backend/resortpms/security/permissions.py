"""
Permission codes checked at the boundary of every mutating operation
"""

# Rooms
ROOM_READ = "room:read"

# Bookings
BOOKING_READ = "booking:read"
BOOKING_WRITE = "booking:write"
BOOKING_CONFIRM = "booking:confirm"
BOOKING_CHECKIN = "booking:checkin"
BOOKING_CHECKOUT = "booking:checkout"
BOOKING_CANCEL = "booking:cancel"

# Housekeeping
HOUSEKEEPING_WRITE = "housekeeping:write"
HOUSEKEEPING_INSPECT = "housekeeping:inspect"

# Maintenance
MAINTENANCE_WRITE = "maintenance:write"

# Billing / orders
BILLING_READ = "billing:read"
ORDER_WRITE = "order:write"

# Payments
PAYMENT_SETTLE = "payment:settle"
PAYMENT_REFUND = "payment:refund"
PAYMENT_SLIP_SUBMIT = "payment:slip_submit"
PAYMENT_VERIFY = "payment:verify"

GUEST_READ = "guest:read"


# Role presets handed out by the external auth service
RECEPTIONIST_PERMISSIONS = frozenset({
    ROOM_READ, BOOKING_READ, BOOKING_WRITE, BOOKING_CONFIRM, BOOKING_CHECKIN, BOOKING_CHECKOUT, BOOKING_CANCEL,
    BILLING_READ, ORDER_WRITE, PAYMENT_SETTLE, PAYMENT_VERIFY, GUEST_READ, MAINTENANCE_WRITE,
})

HOUSEKEEPER_PERMISSIONS = frozenset({ROOM_READ, HOUSEKEEPING_WRITE, MAINTENANCE_WRITE})

SUPERVISOR_PERMISSIONS = HOUSEKEEPER_PERMISSIONS | {HOUSEKEEPING_INSPECT}

GUEST_PERMISSIONS = frozenset({ROOM_READ, BOOKING_WRITE, PAYMENT_SLIP_SUBMIT})

OWNER_PERMISSIONS = (
    RECEPTIONIST_PERMISSIONS | SUPERVISOR_PERMISSIONS | {PAYMENT_REFUND}
)
