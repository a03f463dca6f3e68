"""
Pydantic schemas for booking-related request/response validation.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from autocare.models.booking import BookingStatus
from autocare.schemas.slot import SlotResponse


class BookingDraft(BaseModel):
    """Everything a booking needs except the slot it will occupy."""

    user_id: int
    vehicle_id: int
    service_type_id: int
    notes: str = Field(default="", max_length=2000)


class BookingCreate(BookingDraft):
    time_slot_id: int


class BookingResponse(BaseModel):
    id: int
    user_id: int
    vehicle_id: int
    service_type_id: int
    time_slot_id: int
    status: BookingStatus
    notes: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class VehicleSummary(BaseModel):
    id: int
    vehicle_type: str
    make: str
    model: str
    year: int
    registration_number: str

    model_config = {"from_attributes": True}


class ServiceSummary(BaseModel):
    id: int
    name: str
    vehicle_type: str
    duration_minutes: int
    price: float

    model_config = {"from_attributes": True}


class BookingDetailResponse(BookingResponse):
    vehicle: VehicleSummary
    service_type: ServiceSummary
    time_slot: SlotResponse


class StatusUpdate(BaseModel):
    status: BookingStatus
    changed_by: Optional[int] = None
    notes: Optional[str] = Field(default=None, max_length=2000)


class CancelRequest(BaseModel):
    changed_by: Optional[int] = None
    notes: Optional[str] = Field(default=None, max_length=2000)


class StatusHistoryResponse(BaseModel):
    id: int
    booking_id: int
    old_status: Optional[BookingStatus]
    new_status: BookingStatus
    changed_by: Optional[int]
    notes: str
    created_at: datetime

    model_config = {"from_attributes": True}


class StatusCountsResponse(BaseModel):
    all: int = 0
    pending: int = 0
    confirmed: int = 0
    in_progress: int = 0
    completed: int = 0
    cancelled: int = 0
