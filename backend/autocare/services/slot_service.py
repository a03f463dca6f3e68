"""
Time slot administration and listing.
"""

import datetime as dt

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from autocare.core.exceptions import NotFoundError
from autocare.core.logging import get_logger
from autocare.models.time_slot import TimeSlot
from autocare.schemas.slot import SlotCreate

logger = get_logger(__name__)


async def create_slot(db: AsyncSession, slot_data: SlotCreate) -> TimeSlot:
    """Create a slot with no capacity claimed yet."""
    slot = TimeSlot(
        date=slot_data.date,
        start_time=slot_data.start_time,
        end_time=slot_data.end_time,
        capacity=slot_data.capacity,
        booked_count=0,
        active=slot_data.active,
    )
    db.add(slot)
    await db.flush()
    await db.refresh(slot)

    logger.info("slot_created", slot_id=slot.id, date=slot.date.isoformat(), capacity=slot.capacity)
    return slot


async def get_slot(db: AsyncSession, slot_id: int) -> TimeSlot:
    slot = await db.get(TimeSlot, slot_id)
    if not slot:
        raise NotFoundError(f"Time slot {slot_id} not found")
    return slot


async def list_slots(db: AsyncSession, day: dt.date) -> list[TimeSlot]:
    """Active slots of one day in start-time order. Uses ix_time_slots_date_start."""
    result = await db.execute(
        select(TimeSlot)
        .where(TimeSlot.date == day, TimeSlot.active.is_(True))
        .order_by(TimeSlot.start_time.asc())
    )
    return list(result.scalars().all())
