from autocare.schemas.slot import SlotCreate, SlotResponse, SlotListResponse
from autocare.schemas.booking import (
    BookingDraft,
    BookingCreate,
    BookingResponse,
    BookingDetailResponse,
    StatusUpdate,
    CancelRequest,
    StatusHistoryResponse,
    StatusCountsResponse,
)
from autocare.schemas.notification import (
    NotificationPayload,
    NotificationRequest,
    DispatchResult,
    NotificationResponse,
)

__all__ = [
    "SlotCreate", "SlotResponse", "SlotListResponse",
    "BookingDraft", "BookingCreate", "BookingResponse", "BookingDetailResponse",
    "StatusUpdate", "CancelRequest", "StatusHistoryResponse", "StatusCountsResponse",
    "NotificationPayload", "NotificationRequest", "DispatchResult", "NotificationResponse",
]
