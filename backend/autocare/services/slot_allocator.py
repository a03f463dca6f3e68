"""
Slot allocation with an atomic capacity check.

Reading booked_count, comparing it with capacity and then inserting the
booking lets two customers both pass the check before either insert
lands, over-booking the slot.

Here the check and the increment are one statement:

  UPDATE time_slots SET booked_count = booked_count + 1
  WHERE id = :slot_id AND active AND booked_count < capacity

executed in the same transaction as the booking INSERT. rowcount == 0
means the slot is full and the transaction rolls back with nothing written.
No application code reads booked_count and then writes it back.
"""

import time

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from autocare.core.config import Settings, get_settings
from autocare.core.exceptions import InvalidBookingError, NotFoundError, SlotFullError
from autocare.core.logging import get_logger
from autocare.core.metrics import record_release, record_reservation, reservation_latency
from autocare.db.base import utcnow
from autocare.db.transaction import run_in_transaction
from autocare.models.booking import Booking, BookingStatus
from autocare.models.booking_status_history import BookingStatusHistory
from autocare.models.service_type import ServiceType
from autocare.models.time_slot import TimeSlot
from autocare.models.vehicle import Vehicle
from autocare.schemas.booking import BookingDraft
from autocare.services.cache_service import invalidate_slot_cache

logger = get_logger(__name__)


class SlotAllocator:
    """Claims and releases capacity on time slots."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        settings: Settings | None = None,
    ):
        self._session_factory = session_factory
        self._settings = settings or get_settings()

    async def reserve(self, slot_id: int, draft: BookingDraft) -> Booking:
        """
        Claim one unit of capacity on `slot_id` and create a pending booking.

        Raises:
            NotFoundError: unknown or inactive slot, vehicle or service
            InvalidBookingError: vehicle/service combination not bookable
            SlotFullError: no capacity left; nothing was written
            PersistenceError: store kept failing; nothing was written
        """
        start = time.perf_counter()

        async def work(session: AsyncSession) -> tuple[Booking, TimeSlot]:
            slot = await session.get(TimeSlot, slot_id)
            if slot is None or not slot.active:
                raise NotFoundError(f"Time slot {slot_id} not found")

            await self._validate_draft(session, draft)

            claimed = await session.execute(
                update(TimeSlot)
                .where(
                    TimeSlot.id == slot_id,
                    TimeSlot.active.is_(True),
                    TimeSlot.booked_count < TimeSlot.capacity,
                )
                .values(booked_count=TimeSlot.booked_count + 1, updated_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            if claimed.rowcount == 0:
                raise SlotFullError(slot_id)

            booking = Booking(
                user_id=draft.user_id,
                vehicle_id=draft.vehicle_id,
                service_type_id=draft.service_type_id,
                time_slot_id=slot_id,
                status=BookingStatus.PENDING.value,
                notes=draft.notes,
            )
            session.add(booking)
            await session.flush()

            if self._settings.RECORD_CREATION_HISTORY:
                session.add(
                    BookingStatusHistory(
                        booking_id=booking.id,
                        old_status=None,
                        new_status=BookingStatus.PENDING.value,
                        changed_by=draft.user_id,
                        notes="Booking created",
                    )
                )
                await session.flush()
            return booking, slot

        try:
            booking, slot = await run_in_transaction(
                self._session_factory,
                work,
                operation="reserve",
                max_attempts=self._settings.MAX_RETRY_ATTEMPTS,
            )
        except SlotFullError:
            record_reservation("slot_full")
            logger.warning("slot_full", slot_id=slot_id, user_id=draft.user_id)
            raise
        except Exception:
            record_reservation("error")
            raise

        record_reservation("success")
        reservation_latency.observe(time.perf_counter() - start)
        logger.info(
            "booking_reserved",
            booking_id=booking.id,
            slot_id=slot_id,
            user_id=draft.user_id,
            service_type_id=draft.service_type_id,
        )
        await invalidate_slot_cache(slot.date)
        return booking

    async def release(self, slot_id: int) -> TimeSlot:
        """
        Give one unit of capacity back to `slot_id`, floored at zero.
        Runs as its own transaction.
        """

        async def work(session: AsyncSession) -> tuple[TimeSlot, bool]:
            released = await session.execute(
                update(TimeSlot)
                .where(TimeSlot.id == slot_id, TimeSlot.booked_count > 0)
                .values(booked_count=TimeSlot.booked_count - 1, updated_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            result = await session.execute(select(TimeSlot).where(TimeSlot.id == slot_id))
            slot = result.scalar_one_or_none()
            if slot is None:
                raise NotFoundError(f"Time slot {slot_id} not found")
            return slot, released.rowcount > 0

        slot, released = await run_in_transaction(
            self._session_factory,
            work,
            operation="release",
            max_attempts=self._settings.MAX_RETRY_ATTEMPTS,
        )

        if released:
            record_release("released")
            logger.info("slot_released", slot_id=slot_id, booked_count=slot.booked_count)
        else:
            record_release("floored")
            logger.warning("slot_release_floored", slot_id=slot_id)
        await invalidate_slot_cache(slot.date)
        return slot

    @staticmethod
    async def _validate_draft(session: AsyncSession, draft: BookingDraft) -> None:
        vehicle = await session.get(Vehicle, draft.vehicle_id)
        if vehicle is None:
            raise NotFoundError(f"Vehicle {draft.vehicle_id} not found")
        if vehicle.user_id != draft.user_id:
            raise InvalidBookingError("Vehicle does not belong to this customer")

        service = await session.get(ServiceType, draft.service_type_id)
        if service is None:
            raise NotFoundError(f"Service type {draft.service_type_id} not found")
        if not service.active:
            raise InvalidBookingError(f"Service '{service.name}' is not currently offered")
        if not service.accepts(vehicle.vehicle_type):
            raise InvalidBookingError(
                f"Service '{service.name}' is not available for {vehicle.vehicle_type}s"
            )
