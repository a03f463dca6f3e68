"""
Time slot endpoints with Redis caching on the per-day listing.
"""

import datetime as dt

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from autocare.core.logging import get_logger
from autocare.db.session import get_db
from autocare.schemas.slot import SlotCreate, SlotListResponse, SlotResponse
from autocare.services.cache_service import get_cached_slots, invalidate_slot_cache, set_cached_slots
from autocare.services.slot_service import create_slot, get_slot, list_slots

logger = get_logger(__name__)
router = APIRouter(prefix="/slots", tags=["Slots"])


@router.post("/", response_model=SlotResponse, status_code=status.HTTP_201_CREATED)
async def create_slot_endpoint(
    slot_data: SlotCreate,
    db: AsyncSession = Depends(get_db),
):
    slot = await create_slot(db, slot_data)
    await invalidate_slot_cache(slot.date)
    return slot


@router.get("/", response_model=SlotListResponse)
async def list_slots_endpoint(
    date: dt.date = Query(..., description="Day to list, YYYY-MM-DD"),
    db: AsyncSession = Depends(get_db),
):
    """
    Active slots for one day with remaining capacity.
    Served from Redis when cached; reservations invalidate the day's entry.
    """
    cached = await get_cached_slots(date)
    if cached:
        logger.info("slots_list_cache_hit", date=date.isoformat())
        cached["cached"] = True
        return SlotListResponse(**cached)

    slots = await list_slots(db, date)
    response = SlotListResponse(
        date=date,
        slots=[SlotResponse.model_validate(s) for s in slots],
        cached=False,
        generated_at=dt.datetime.now(dt.timezone.utc),
    )
    await set_cached_slots(date, response.model_dump(mode="json"))
    return response


@router.get("/{slot_id}", response_model=SlotResponse)
async def get_slot_endpoint(
    slot_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Single slot, never cached (live booked_count)."""
    return await get_slot(db, slot_id)
