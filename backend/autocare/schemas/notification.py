"""
Wire schemas for the booking notification endpoint.

Field names are camelCase on the wire to stay compatible with existing
clients of the notification endpoint.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel


class NotificationPayload(BaseModel):
    """What the dispatcher delivers. Addresses are passed through as stored; the providers judge them."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    booking_id: str
    phone: Optional[str] = None
    email: Optional[str] = None
    customer_name: str
    service_name: str
    date: str
    time: str
    status: str


class DispatchResult(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool
    sms_sent: bool = False
    email_sent: bool = False
    attempted: list[str] = Field(default_factory=list)
    error: Optional[str] = None


class NotificationResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool
    message: str
    sms_sent: bool
    email_sent: bool


class NotificationRequest(NotificationPayload):
    """Body of POST /notifications/booking; external callers get a checked email."""

    email: Optional[EmailStr] = None
