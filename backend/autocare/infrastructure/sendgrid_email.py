"""
SendGrid email channel.
"""

from html import escape

import httpx

from autocare.core.exceptions import NotificationError
from autocare.schemas.notification import NotificationPayload
from autocare.services.interfaces.channel import NotificationChannel


def humanize_status(status: str) -> str:
    return status.replace("_", " ")


def render_email_html(payload: NotificationPayload, message: str) -> str:
    rows = [
        ("Service", escape(payload.service_name)),
        ("Date", escape(payload.date)),
        ("Time", escape(payload.time)),
        ("Status", escape(humanize_status(payload.status).title())),
    ]
    table = "".join(
        f'<tr><td style="padding: 10px 0; color: #6b7280;">{label}:</td>'
        f'<td style="padding: 10px 0; color: #1f2937; font-weight: bold;">{value}</td></tr>'
        for label, value in rows
    )
    return (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
        '<div style="background: #2563eb; padding: 30px; text-align: center;">'
        '<h1 style="color: white; margin: 0;">AutoCare</h1></div>'
        '<div style="padding: 30px; background: #f9fafb;">'
        '<h2 style="color: #1f2937; margin-top: 0;">Booking Update</h2>'
        f'<p style="color: #4b5563; font-size: 16px;">Hi {escape(payload.customer_name)},</p>'
        f'<p style="color: #4b5563; font-size: 16px;">{escape(message)}</p>'
        f'<div style="background: white; padding: 20px; border-radius: 8px; margin: 20px 0;">'
        f'<table style="width: 100%;">{table}</table></div>'
        '<p style="color: #6b7280; font-size: 14px; margin-top: 30px;">Thank you for choosing AutoCare!</p>'
        '</div></div>'
    )


class SendGridEmailChannel(NotificationChannel):
    name = "email"

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str,
        from_email: str,
        api_url: str = "https://api.sendgrid.com/v3/mail/send",
    ):
        self._client = client
        self._api_key = api_key
        self._from_email = from_email
        self._api_url = api_url

    def can_deliver(self, payload: NotificationPayload) -> bool:
        return bool(payload.email)

    async def send(self, payload: NotificationPayload, message: str) -> None:
        subject = f"AutoCare Booking Update - {humanize_status(payload.status).upper()}"
        body = {
            "personalizations": [{"to": [{"email": payload.email}], "subject": subject}],
            "from": {"email": self._from_email},
            "content": [{"type": "text/html", "value": render_email_html(payload, message)}],
        }
        try:
            resp = await self._client.post(
                self._api_url,
                headers={"Authorization": f"Bearer {self._api_key}"},
                json=body,
            )
            resp.raise_for_status()
        except httpx.TimeoutException:
            raise NotificationError(self.name, "timed out calling SendGrid")
        except httpx.HTTPStatusError as e:
            raise NotificationError(self.name, f"SendGrid returned {e.response.status_code}: {e.response.text}")
        except httpx.HTTPError as e:
            raise NotificationError(self.name, f"SendGrid request failed: {e}")
