"""
Notification channel factory.
Builds the channels whose provider credentials are configured.
"""

import httpx

from autocare.core.config import Settings
from autocare.core.logging import get_logger
from autocare.infrastructure.sendgrid_email import SendGridEmailChannel
from autocare.infrastructure.twilio_sms import TwilioSmsChannel
from autocare.services.interfaces.channel import NotificationChannel

logger = get_logger(__name__)


def build_channels(settings: Settings, client: httpx.AsyncClient) -> list[NotificationChannel]:
    """
    Each channel is optional:
    - SMS needs TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN and TWILIO_PHONE_NUMBER
    - Email needs SENDGRID_API_KEY
    A missing channel is not an error; notify() simply skips it.
    """
    channels: list[NotificationChannel] = []

    if settings.sms_configured:
        channels.append(
            TwilioSmsChannel(
                client,
                account_sid=settings.TWILIO_ACCOUNT_SID,
                auth_token=settings.TWILIO_AUTH_TOKEN,
                from_number=settings.TWILIO_PHONE_NUMBER,
                api_base=settings.TWILIO_API_BASE,
            )
        )

    if settings.email_configured:
        channels.append(
            SendGridEmailChannel(
                client,
                api_key=settings.SENDGRID_API_KEY,
                from_email=settings.FROM_EMAIL,
                api_url=settings.SENDGRID_API_URL,
            )
        )

    logger.info("notification_channels_configured", channels=[c.name for c in channels])
    return channels
