"""
Best-effort customer notifications.

One notify() per committed transition. The message comes from a fixed
status table with a generic fallback, and every configured channel is
tried once, concurrently. A failing channel never stops the other one, and
nothing is retried. Failures surface only in the DispatchResult and the
logs; they are never raised to the caller.
"""

import asyncio
from typing import Optional

import httpx

from autocare.core.config import Settings, get_settings
from autocare.core.exceptions import NotificationError
from autocare.core.logging import get_logger
from autocare.core.metrics import record_notification
from autocare.models.booking import Booking, BookingStatus
from autocare.schemas.notification import DispatchResult, NotificationPayload
from autocare.services.channel_factory import build_channels
from autocare.services.interfaces.channel import NotificationChannel

logger = get_logger(__name__)

STATUS_MESSAGES: dict[str, str] = {
    BookingStatus.PENDING.value: "Your booking has been received and is pending confirmation.",
    BookingStatus.CONFIRMED.value: "Your booking has been confirmed!",
    BookingStatus.IN_PROGRESS.value: "Your vehicle service is now in progress.",
    BookingStatus.COMPLETED.value: "Your vehicle service has been completed. Thank you for choosing AutoCare!",
    BookingStatus.CANCELLED.value: "Your booking has been cancelled.",
}

DEFAULT_STATUS_MESSAGE = "Your booking status has been updated."


def compose_message(status: str) -> str:
    return STATUS_MESSAGES.get(status, DEFAULT_STATUS_MESSAGE)


def build_payload(booking: Booking, new_status: str) -> NotificationPayload:
    """Booking must be loaded with customer, service_type and time_slot."""
    slot = booking.time_slot
    return NotificationPayload(
        booking_id=str(booking.id),
        phone=booking.customer.phone,
        email=booking.customer.email,
        customer_name=booking.customer.full_name,
        service_name=booking.service_type.name,
        date=slot.date.isoformat(),
        time=slot.start_time.strftime("%H:%M"),
        status=new_status,
    )


class NotificationDispatcher:
    def __init__(
        self,
        channels: list[NotificationChannel],
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._channels = list(channels)
        # Owned HTTP client, closed by aclose(); None when channels were injected
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "NotificationDispatcher":
        settings = settings or get_settings()
        client = httpx.AsyncClient(timeout=settings.NOTIFICATION_TIMEOUT)
        return cls(build_channels(settings, client), client=client)

    @property
    def channel_names(self) -> list[str]:
        return [c.name for c in self._channels]

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()

    async def notify(self, booking: Booking, new_status: str) -> DispatchResult:
        return await self.send(build_payload(booking, new_status))

    async def send(self, payload: NotificationPayload) -> DispatchResult:
        message = compose_message(payload.status)
        channels = [c for c in self._channels if c.can_deliver(payload)]

        if not channels:
            logger.info("notification_skipped", booking_id=payload.booking_id, reason="no_channel")
            return DispatchResult(success=True)

        outcomes = await asyncio.gather(*(self._deliver(c, payload, message) for c in channels))

        sent = {c.name: ok for c, (ok, _) in zip(channels, outcomes)}
        errors = [err for _, err in outcomes if err]
        result = DispatchResult(
            success=not errors,
            sms_sent=sent.get("sms", False),
            email_sent=sent.get("email", False),
            attempted=[c.name for c in channels],
            error="; ".join(errors) or None,
        )
        logger.info(
            "notification_sent" if result.success else "notification_partially_failed",
            booking_id=payload.booking_id,
            status=payload.status,
            sms_sent=result.sms_sent,
            email_sent=result.email_sent,
        )
        return result

    async def _deliver(
        self,
        channel: NotificationChannel,
        payload: NotificationPayload,
        message: str,
    ) -> tuple[bool, Optional[str]]:
        try:
            await channel.send(payload, message)
        except NotificationError as e:
            record_notification(channel.name, sent=False)
            logger.warning(
                "notification_channel_failed",
                channel=channel.name,
                booking_id=payload.booking_id,
                error=e.message,
            )
            return False, e.message
        except Exception as e:
            # Anything the channel did not map itself still only fails this channel
            error = NotificationError(channel.name, f"unexpected error: {e!r}")
            record_notification(channel.name, sent=False)
            logger.exception(
                "notification_channel_failed",
                channel=channel.name,
                booking_id=payload.booking_id,
                error=error.message,
            )
            return False, error.message
        record_notification(channel.name, sent=True)
        return True, None
