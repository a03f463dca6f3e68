"""
Notification channel interface.
Lets the dispatcher fan out to SMS and email without knowing the providers.
"""

from abc import ABC, abstractmethod

from autocare.schemas.notification import NotificationPayload


class NotificationChannel(ABC):
    """
    Interface for one outbound notification channel.

    Implementations:
    - TwilioSmsChannel: SMS through the Twilio Messages API
    - SendGridEmailChannel: HTML email through the SendGrid v3 API
    """

    name: str

    @abstractmethod
    def can_deliver(self, payload: NotificationPayload) -> bool:
        """Whether the payload carries what this channel needs (phone, email)."""

    @abstractmethod
    async def send(self, payload: NotificationPayload, message: str) -> None:
        """
        Deliver one notification.

        Args:
            payload: recipient and booking details
            message: status message composed by the dispatcher

        Raises:
            NotificationError: provider rejected the request or was unreachable
        """
