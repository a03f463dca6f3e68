"""
Booking engine error taxonomy.

Allocation and lifecycle errors propagate to the caller verbatim and are
mapped to HTTP responses by the handlers registered in main.py.
NotificationError never leaves the dispatcher; it only shows up in logs.
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse

from autocare.core.logging import get_logger

logger = get_logger(__name__)


class BookingEngineError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class SlotFullError(BookingEngineError):
    """Slot capacity exhausted. The customer should pick another slot."""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, slot_id: int):
        self.slot_id = slot_id
        super().__init__(f"Time slot {slot_id} is fully booked")


class InvalidTransitionError(BookingEngineError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, current_status: str | None, new_status: str, message: str | None = None):
        self.current_status = current_status
        self.new_status = new_status
        super().__init__(message or f"Cannot change booking status from {current_status} to {new_status}")


class InvalidBookingError(BookingEngineError):
    status_code = 422


class NotFoundError(BookingEngineError):
    status_code = status.HTTP_404_NOT_FOUND


class PersistenceError(BookingEngineError):
    """Transient store failure. Nothing was committed, so the whole operation can be retried."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class NotificationError(BookingEngineError):
    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, channel: str, message: str):
        self.channel = channel
        super().__init__(f"{channel}: {message}")


async def booking_engine_error_handler(request: Request, exc: BookingEngineError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("request_error", error=exc.message, error_type=type(exc).__name__)
    else:
        logger.warning("request_rejected", error=exc.message, error_type=type(exc).__name__)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_exception", error=str(exc))
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


EXCEPTION_HANDLERS = {
    BookingEngineError: booking_engine_error_handler,
    Exception: unhandled_exception_handler,
}


def register_exception_handlers(app) -> None:
    for exception_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exception_class, handler)
