from autocare.models.profile import Profile
from autocare.models.vehicle import Vehicle
from autocare.models.service_type import ServiceType
from autocare.models.time_slot import TimeSlot
from autocare.models.booking import Booking, BookingStatus
from autocare.models.booking_status_history import BookingStatusHistory

__all__ = [
    "Profile",
    "Vehicle",
    "ServiceType",
    "TimeSlot",
    "Booking",
    "BookingStatus",
    "BookingStatusHistory",
]
