"""
Customer booking endpoints.

Reservation goes through SlotAllocator (atomic capacity claim); cancellation
goes through BookingLifecycle like every other status change.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from autocare.api.deps import get_allocator, get_lifecycle
from autocare.core.logging import get_logger
from autocare.db.session import get_db
from autocare.models.booking import BookingStatus
from autocare.schemas.booking import (
    BookingCreate,
    BookingDetailResponse,
    BookingDraft,
    BookingResponse,
    CancelRequest,
    StatusHistoryResponse,
)
from autocare.services.booking_lifecycle import BookingLifecycle
from autocare.services.booking_query_service import get_booking, list_user_bookings
from autocare.services.slot_allocator import SlotAllocator

logger = get_logger(__name__)
router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.post("/", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_data: BookingCreate,
    allocator: SlotAllocator = Depends(get_allocator),
):
    """
    Reserve a place on a time slot.

    Capacity is claimed atomically; a full slot returns 409 and nothing is
    written, so the customer can simply pick another slot.
    """
    draft = BookingDraft(**booking_data.model_dump(exclude={"time_slot_id"}))
    return await allocator.reserve(booking_data.time_slot_id, draft)


@router.get("/", response_model=list[BookingDetailResponse])
async def list_bookings_for_user(
    user_id: int = Query(...),
    db: AsyncSession = Depends(get_db),
):
    """A customer's bookings, newest first."""
    return await list_user_bookings(db, user_id)


@router.get("/{booking_id}", response_model=BookingDetailResponse)
async def get_booking_endpoint(
    booking_id: int,
    db: AsyncSession = Depends(get_db),
):
    return await get_booking(db, booking_id)


@router.get("/{booking_id}/history", response_model=list[StatusHistoryResponse])
async def get_booking_history(
    booking_id: int,
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
):
    """Status history in the order the transitions happened."""
    return await lifecycle.history(booking_id)


@router.post("/{booking_id}/cancel", response_model=StatusHistoryResponse)
async def cancel_booking_endpoint(
    booking_id: int,
    cancel_data: CancelRequest,
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
):
    """Cancel a pending or confirmed booking and give its place back to the slot."""
    return await lifecycle.transition(
        booking_id,
        BookingStatus.CANCELLED,
        actor=cancel_data.changed_by,
        notes=cancel_data.notes,
    )
