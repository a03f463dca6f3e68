"""
Twilio SMS channel.
Separated from business logic so the dispatcher only sees NotificationChannel.
"""

import httpx

from autocare.core.exceptions import NotificationError
from autocare.schemas.notification import NotificationPayload
from autocare.services.interfaces.channel import NotificationChannel


class TwilioSmsChannel(NotificationChannel):
    name = "sms"

    def __init__(
        self,
        client: httpx.AsyncClient,
        account_sid: str,
        auth_token: str,
        from_number: str,
        api_base: str = "https://api.twilio.com/2010-04-01",
    ):
        self._client = client
        self._auth = httpx.BasicAuth(account_sid, auth_token)
        self._from_number = from_number
        self._url = f"{api_base}/Accounts/{account_sid}/Messages.json"

    def can_deliver(self, payload: NotificationPayload) -> bool:
        return bool(payload.phone)

    async def send(self, payload: NotificationPayload, message: str) -> None:
        body = (
            f"Hi {payload.customer_name}, {message} "
            f"Service: {payload.service_name}, Date: {payload.date} at {payload.time}. - AutoCare"
        )
        try:
            resp = await self._client.post(
                self._url,
                auth=self._auth,
                data={"To": payload.phone, "From": self._from_number, "Body": body},
            )
            resp.raise_for_status()
        except httpx.TimeoutException:
            raise NotificationError(self.name, "timed out calling Twilio")
        except httpx.HTTPStatusError as e:
            raise NotificationError(self.name, f"Twilio returned {e.response.status_code}: {e.response.text}")
        except httpx.HTTPError as e:
            raise NotificationError(self.name, f"Twilio request failed: {e}")
