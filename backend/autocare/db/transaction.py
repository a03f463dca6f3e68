"""
Transaction runner with retry.

CONCURRENCY STRATEGY: Guarded UPDATE inside one transaction, retry on conflict
===============================================================================

Every write the booking engine makes is a single predicate-guarded UPDATE
(plus at most one INSERT) inside one transaction:

  UPDATE time_slots SET booked_count = booked_count + 1
  WHERE id = :slot_id AND active AND booked_count < capacity

  UPDATE bookings SET status = :new, version = version + 1
  WHERE id = :booking_id AND status = :current AND version = :version

The database evaluates the predicate against the committed row under its
own row lock, so two callers can never both pass the check. The caller
inspects rowcount to learn whether the guard held.

Two things trigger a retry of the whole unit of work:
  - the work raises TransactionConflict (a guard lost to a concurrent writer
    whose change may still leave the operation valid, so re-read and retry)
  - the driver raises OperationalError (deadlock, serialization failure,
    "database is locked")

Nothing is committed on a failed attempt. When attempts run out the caller
gets PersistenceError and may retry the whole operation.
"""

from typing import Awaitable, Callable, TypeVar

from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from autocare.core.exceptions import PersistenceError
from autocare.core.logging import get_logger
from autocare.core.metrics import record_db_retry

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 3


class TransactionConflict(Exception):
    """Raised inside a unit of work when a guarded UPDATE matched no row."""


async def run_in_transaction(
    session_factory: async_sessionmaker[AsyncSession],
    work: Callable[[AsyncSession], Awaitable[T]],
    *,
    operation: str,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> T:
    """
    Run `work` in a fresh session and transaction, committing on return.
    Domain errors raised by `work` roll back and propagate unchanged.
    """
    for attempt in range(1, max_attempts + 1):
        try:
            async with session_factory() as session:
                async with session.begin():
                    return await work(session)
        except (TransactionConflict, OperationalError) as exc:
            reason = "conflict" if isinstance(exc, TransactionConflict) else "operational_error"
            record_db_retry(operation)
            logger.info(
                "transaction_retry",
                operation=operation,
                attempt=attempt,
                reason=reason,
                error=str(exc) or None,
            )
            if attempt == max_attempts:
                raise PersistenceError(
                    f"{operation} failed after {max_attempts} attempts. Please try again."
                ) from exc

    # max_attempts < 1
    raise PersistenceError(f"{operation} was not attempted")
