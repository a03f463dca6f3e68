"""
Booking status state machine with audit history.

    pending ──> confirmed ──> in_progress ──> completed
       │            │  └─────────────────────────^
       └────────────┴──> cancelled

completed and cancelled are terminal. VALID_TRANSITIONS is the only gate
for status changes; admin and customer entry points both go through
BookingLifecycle.transition.

A transition commits two writes together: the guarded status UPDATE and
one BookingStatusHistory INSERT. Two follow-ups run after that commit
and can never undo it:
  1. capacity release when a capacity-holding booking is cancelled
     (separate transaction through SlotAllocator.release)
  2. customer notification, scheduled as a background task
"""

import asyncio
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from autocare.core.config import Settings, get_settings
from autocare.core.exceptions import BookingEngineError, InvalidTransitionError, NotFoundError
from autocare.core.logging import get_logger
from autocare.core.metrics import record_transition
from autocare.db.base import utcnow
from autocare.db.transaction import TransactionConflict, run_in_transaction
from autocare.models.booking import Booking, BookingStatus
from autocare.models.booking_status_history import BookingStatusHistory
from autocare.models.profile import Profile
from autocare.services.notification_dispatcher import NotificationDispatcher
from autocare.services.slot_allocator import SlotAllocator

logger = get_logger(__name__)

VALID_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset(
        {BookingStatus.IN_PROGRESS, BookingStatus.COMPLETED, BookingStatus.CANCELLED}
    ),
    BookingStatus.IN_PROGRESS: frozenset({BookingStatus.COMPLETED}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}


def can_transition(current: BookingStatus, new: BookingStatus) -> bool:
    return new in VALID_TRANSITIONS[current]


def parse_status(value: str | BookingStatus) -> BookingStatus:
    try:
        return BookingStatus(value)
    except ValueError:
        raise InvalidTransitionError(None, str(value), f"Unknown booking status '{value}'")


class BookingLifecycle:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        allocator: SlotAllocator,
        dispatcher: NotificationDispatcher,
        settings: Settings | None = None,
    ):
        self._session_factory = session_factory
        self._allocator = allocator
        self._dispatcher = dispatcher
        self._settings = settings or get_settings()
        # References only, so in-flight notification tasks are not garbage collected
        self._pending_notifications: set[asyncio.Task] = set()
        # Latest notification per booking; the next one waits for it to keep status order
        self._last_notification: dict[int, asyncio.Task] = {}

    async def transition(
        self,
        booking_id: int,
        new_status: str | BookingStatus,
        actor: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> BookingStatusHistory:
        """
        Move a booking to `new_status` and record the change.

        Raises:
            NotFoundError: unknown booking or actor profile
            InvalidTransitionError: target not reachable from the current status
            PersistenceError: store kept failing or kept losing to concurrent writers
        """
        target = parse_status(new_status)

        async def work(session: AsyncSession) -> tuple[BookingStatusHistory, BookingStatus, int]:
            booking = await session.get(Booking, booking_id)
            if booking is None:
                raise NotFoundError(f"Booking {booking_id} not found")
            if actor is not None and await session.get(Profile, actor) is None:
                raise NotFoundError(f"Profile {actor} not found")

            current = BookingStatus(booking.status)
            if not can_transition(current, target):
                record_transition(current.value, target.value, accepted=False)
                logger.warning(
                    "invalid_transition",
                    booking_id=booking_id,
                    from_status=current.value,
                    to_status=target.value,
                    actor=actor,
                )
                raise InvalidTransitionError(current.value, target.value)

            now = utcnow()
            updated = await session.execute(
                update(Booking)
                .where(
                    Booking.id == booking_id,
                    Booking.status == current.value,
                    Booking.version == booking.version,
                )
                .values(status=target.value, version=Booking.version + 1, updated_at=now)
                .execution_options(synchronize_session=False)
            )
            if updated.rowcount == 0:
                # Another transition committed first; re-read and re-validate
                raise TransactionConflict(f"booking {booking_id} changed concurrently")

            entry = BookingStatusHistory(
                booking_id=booking_id,
                old_status=current.value,
                new_status=target.value,
                changed_by=actor,
                notes=notes or "",
                created_at=now,
            )
            session.add(entry)
            await session.flush()
            return entry, current, booking.time_slot_id

        entry, previous, slot_id = await run_in_transaction(
            self._session_factory,
            work,
            operation="transition",
            max_attempts=self._settings.MAX_RETRY_ATTEMPTS,
        )

        record_transition(previous.value, target.value)
        logger.info(
            "booking_transitioned",
            booking_id=booking_id,
            from_status=previous.value,
            to_status=target.value,
            actor=actor,
        )

        if target is BookingStatus.CANCELLED and previous.value in self._settings.RELEASE_ON_CANCEL_FROM:
            await self._release_capacity(booking_id, slot_id)

        self._schedule_notification(booking_id, target)
        return entry

    async def history(self, booking_id: int) -> list[BookingStatusHistory]:
        async with self._session_factory() as session:
            if await session.get(Booking, booking_id) is None:
                raise NotFoundError(f"Booking {booking_id} not found")
            result = await session.execute(
                select(BookingStatusHistory)
                .where(BookingStatusHistory.booking_id == booking_id)
                .order_by(BookingStatusHistory.created_at.asc(), BookingStatusHistory.id.asc())
            )
            return list(result.scalars().all())

    async def drain(self) -> None:
        """Wait for every scheduled notification to finish."""
        while self._pending_notifications:
            await asyncio.gather(*list(self._pending_notifications), return_exceptions=True)

    async def _release_capacity(self, booking_id: int, slot_id: int) -> None:
        # Compensating step: the cancellation is already committed
        try:
            await self._allocator.release(slot_id)
        except (BookingEngineError, SQLAlchemyError) as e:
            logger.error(
                "slot_release_failed",
                booking_id=booking_id,
                slot_id=slot_id,
                error=str(e),
            )

    def _schedule_notification(self, booking_id: int, status: BookingStatus) -> None:
        previous = self._last_notification.get(booking_id)
        task = asyncio.create_task(self._notify(booking_id, status, after=previous))
        self._pending_notifications.add(task)
        self._last_notification[booking_id] = task

        def _forget(done: asyncio.Task) -> None:
            self._pending_notifications.discard(done)
            if self._last_notification.get(booking_id) is done:
                del self._last_notification[booking_id]

        task.add_done_callback(_forget)

    async def _notify(
        self,
        booking_id: int,
        status: BookingStatus,
        after: Optional[asyncio.Task] = None,
    ) -> None:
        if after is not None:
            # asyncio.wait never raises the earlier task's outcome
            await asyncio.wait([after])
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(Booking)
                    .options(
                        selectinload(Booking.customer),
                        selectinload(Booking.vehicle),
                        selectinload(Booking.service_type),
                        selectinload(Booking.time_slot),
                    )
                    .where(Booking.id == booking_id)
                )
                booking = result.scalar_one()
            await self._dispatcher.notify(booking, status.value)
        except Exception as e:
            # Best effort: the transition is committed whatever happens here
            logger.error(
                "notification_dispatch_failed",
                booking_id=booking_id,
                status=status.value,
                error=str(e),
            )
