# Orchestration services
from resortpms.services.room_state_service import RoomStateService
from resortpms.services.availability_service import AvailabilityService
from resortpms.services.guest_service import GuestService
from resortpms.services.booking_service import BookingService
from resortpms.services.housekeeping_service import HousekeepingService
from resortpms.services.maintenance_service import MaintenanceService
from resortpms.services.billing_service import BillingService
from resortpms.services.order_service import OrderService
from resortpms.services.payment_service import PaymentService
from resortpms.services.payment_verification_service import PaymentVerificationService

__all__ = [
    'RoomStateService', 'AvailabilityService', 'GuestService', 'BookingService',
    'HousekeepingService', 'MaintenanceService', 'BillingService', 'OrderService',
    'PaymentService', 'PaymentVerificationService',
]
