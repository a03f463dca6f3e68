"""
Staff endpoints: booking overview and status changes.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from autocare.api.deps import get_lifecycle
from autocare.core.logging import get_logger
from autocare.db.session import get_db
from autocare.models.booking import BookingStatus
from autocare.schemas.booking import (
    BookingDetailResponse,
    StatusCountsResponse,
    StatusHistoryResponse,
    StatusUpdate,
)
from autocare.services.booking_lifecycle import BookingLifecycle
from autocare.services.booking_query_service import list_bookings, status_counts

logger = get_logger(__name__)
router = APIRouter(prefix="/admin/bookings", tags=["Admin"])


@router.get("/", response_model=list[BookingDetailResponse])
async def list_bookings_endpoint(
    status: Optional[BookingStatus] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    db: AsyncSession = Depends(get_db),
):
    """All bookings with vehicle, service and slot, newest first."""
    return await list_bookings(db, status=status, search=search)


@router.get("/counts", response_model=StatusCountsResponse)
async def status_counts_endpoint(db: AsyncSession = Depends(get_db)):
    return await status_counts(db)


@router.patch("/{booking_id}/status", response_model=StatusHistoryResponse)
async def set_status(
    booking_id: int,
    update: StatusUpdate,
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
):
    """
    Change a booking's status. Only transitions in the lifecycle table are
    accepted; anything else returns 409 and leaves the booking untouched.
    """
    return await lifecycle.transition(
        booking_id,
        update.status,
        actor=update.changed_by,
        notes=update.notes,
    )
