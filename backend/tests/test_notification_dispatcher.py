"""
Tests for notification composition and per-channel delivery.
Provider HTTP APIs are replaced with httpx.MockTransport.
"""

import json
from urllib.parse import parse_qs

import httpx
import pytest

from autocare.core.config import Settings
from autocare.infrastructure.sendgrid_email import render_email_html
from autocare.models import Profile
from autocare.services.booking_lifecycle import BookingLifecycle
from autocare.services.channel_factory import build_channels
from autocare.services.notification_dispatcher import (
    DEFAULT_STATUS_MESSAGE,
    NotificationDispatcher,
    compose_message,
)
from autocare.schemas.notification import NotificationPayload

TWILIO = dict(
    TWILIO_ACCOUNT_SID="AC0123456789",
    TWILIO_AUTH_TOKEN="twilio-token",
    TWILIO_PHONE_NUMBER="+15550009999",
)
SENDGRID = dict(SENDGRID_API_KEY="SG.test-key", FROM_EMAIL="service@autocare.com")


class ProviderStub:
    """Records outgoing requests and answers per provider host."""

    def __init__(self, sms_status: int = 201, email_status: int = 202, sms_error: Exception | None = None):
        self.requests: list[httpx.Request] = []
        self.sms_status = sms_status
        self.email_status = email_status
        self.sms_error = sms_error

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host == "api.twilio.com":
            if self.sms_error:
                raise self.sms_error
            return httpx.Response(self.sms_status, json={"sid": "SM123"})
        if request.url.host == "api.sendgrid.com":
            return httpx.Response(self.email_status)
        return httpx.Response(404)

    def hosts(self) -> list[str]:
        return sorted(r.url.host for r in self.requests)


def make_dispatcher(stub: ProviderStub, **overrides) -> NotificationDispatcher:
    settings = Settings(REDIS_ENABLED=False, **overrides)
    client = httpx.AsyncClient(transport=httpx.MockTransport(stub))
    return NotificationDispatcher(build_channels(settings, client), client=client)


@pytest.fixture
def payload() -> NotificationPayload:
    return NotificationPayload(
        booking_id="42",
        phone="+15550102030",
        email="jane@example.com",
        customer_name="Jane Driver",
        service_name="Oil Change",
        date="2026-10-20",
        time="09:00",
        status="confirmed",
    )


def test_compose_message_known_statuses():
    assert compose_message("confirmed") == "Your booking has been confirmed!"
    assert compose_message("in_progress") == "Your vehicle service is now in progress."
    assert compose_message("cancelled") == "Your booking has been cancelled."
    assert "pending confirmation" in compose_message("pending")
    assert "completed" in compose_message("completed")


def test_compose_message_unknown_status_falls_back():
    assert compose_message("on_hold") == DEFAULT_STATUS_MESSAGE


def test_payload_uses_camel_case_on_the_wire(payload):
    data = payload.model_dump(by_alias=True)
    assert data["bookingId"] == "42"
    assert data["customerName"] == "Jane Driver"
    assert data["serviceName"] == "Oil Change"


@pytest.mark.asyncio
async def test_both_channels_configured(payload):
    stub = ProviderStub()
    dispatcher = make_dispatcher(stub, **TWILIO, **SENDGRID)

    result = await dispatcher.send(payload)
    await dispatcher.aclose()

    assert result.success is True
    assert result.sms_sent is True
    assert result.email_sent is True
    assert sorted(result.attempted) == ["email", "sms"]
    assert stub.hosts() == ["api.sendgrid.com", "api.twilio.com"]


@pytest.mark.asyncio
async def test_sms_request_shape(payload):
    stub = ProviderStub()
    dispatcher = make_dispatcher(stub, **TWILIO)

    await dispatcher.send(payload)
    await dispatcher.aclose()

    (request,) = stub.requests
    assert request.method == "POST"
    assert request.url.path == "/2010-04-01/Accounts/AC0123456789/Messages.json"
    assert request.headers["Authorization"].startswith("Basic ")
    form = parse_qs(request.content.decode())
    assert form["To"] == ["+15550102030"]
    assert form["From"] == ["+15550009999"]
    assert form["Body"][0] == (
        "Hi Jane Driver, Your booking has been confirmed! "
        "Service: Oil Change, Date: 2026-10-20 at 09:00. - AutoCare"
    )


@pytest.mark.asyncio
async def test_email_request_shape(payload):
    stub = ProviderStub()
    dispatcher = make_dispatcher(stub, **SENDGRID)
    payload.status = "in_progress"

    await dispatcher.send(payload)
    await dispatcher.aclose()

    (request,) = stub.requests
    assert request.headers["Authorization"] == "Bearer SG.test-key"
    body = json.loads(request.content)
    personalization = body["personalizations"][0]
    assert personalization["to"] == [{"email": "jane@example.com"}]
    assert personalization["subject"] == "AutoCare Booking Update - IN PROGRESS"
    assert body["from"] == {"email": "service@autocare.com"}
    html = body["content"][0]["value"]
    assert "Your vehicle service is now in progress." in html
    assert "Oil Change" in html


@pytest.mark.asyncio
async def test_unconfigured_sms_channel_is_skipped(payload):
    """Only email is configured: only email is attempted and reported."""
    stub = ProviderStub()
    dispatcher = make_dispatcher(stub, **SENDGRID)

    result = await dispatcher.send(payload)
    await dispatcher.aclose()

    assert result.attempted == ["email"]
    assert result.sms_sent is False
    assert result.email_sent is True
    assert result.success is True
    assert stub.hosts() == ["api.sendgrid.com"]


@pytest.mark.asyncio
async def test_failing_sms_does_not_block_email(payload):
    stub = ProviderStub(sms_status=500)
    dispatcher = make_dispatcher(stub, **TWILIO, **SENDGRID)

    result = await dispatcher.send(payload)
    await dispatcher.aclose()

    assert result.success is False
    assert result.sms_sent is False
    assert result.email_sent is True
    assert "sms" in result.error
    # Attempted exactly once, no retry
    assert stub.hosts() == ["api.sendgrid.com", "api.twilio.com"]


@pytest.mark.asyncio
async def test_sms_timeout_is_a_channel_failure(payload):
    stub = ProviderStub(sms_error=httpx.ConnectTimeout("timed out"))
    dispatcher = make_dispatcher(stub, **TWILIO, **SENDGRID)

    result = await dispatcher.send(payload)
    await dispatcher.aclose()

    assert result.sms_sent is False
    assert result.email_sent is True
    assert "timed out" in result.error


@pytest.mark.asyncio
async def test_missing_phone_skips_sms(payload):
    stub = ProviderStub()
    dispatcher = make_dispatcher(stub, **TWILIO, **SENDGRID)
    payload.phone = None

    result = await dispatcher.send(payload)
    await dispatcher.aclose()

    assert result.attempted == ["email"]
    assert result.sms_sent is False


@pytest.mark.asyncio
async def test_no_channels_configured(payload):
    stub = ProviderStub()
    dispatcher = make_dispatcher(stub)

    result = await dispatcher.send(payload)
    await dispatcher.aclose()

    assert result.success is True
    assert result.attempted == []
    assert stub.requests == []


@pytest.mark.asyncio
async def test_notify_builds_payload_from_booking(lifecycle, dispatcher, booking, staff):
    """notify() is fed the booking with customer, service and slot loaded."""
    sent = []

    async def capture(payload):
        sent.append(payload)
        return await NotificationDispatcher.send(dispatcher, payload)

    dispatcher.send = capture
    await lifecycle.transition(booking.id, "confirmed", actor=staff.id)
    await lifecycle.drain()

    (payload,) = sent
    assert payload.booking_id == str(booking.id)
    assert payload.customer_name == "Jane Driver"
    assert payload.email == "jane@example.com"
    assert payload.phone == "+15550102030"
    assert payload.service_name == "Oil Change"
    assert payload.time == "09:00"
    assert payload.status == "confirmed"


@pytest.mark.asyncio
async def test_unexpected_channel_error_does_not_block_email(payload):
    """A channel error that is not a provider HTTP failure still only fails that channel."""
    stub = ProviderStub(sms_error=RuntimeError("malformed Twilio base URL"))
    dispatcher = make_dispatcher(stub, **TWILIO, **SENDGRID)

    result = await dispatcher.send(payload)
    await dispatcher.aclose()

    assert result.success is False
    assert result.sms_sent is False
    assert result.email_sent is True
    assert "sms" in result.error
    assert "malformed Twilio base URL" in result.error


@pytest.mark.asyncio
async def test_unusual_profile_email_still_gets_sms(session_factory, allocator, settings, booking, customer, staff):
    """A stored address the email validator would reject must not stop the SMS."""
    async with session_factory() as session:
        profile = await session.get(Profile, customer.id)
        profile.email = "jane@garage.local"
        await session.commit()

    stub = ProviderStub()
    dispatcher = make_dispatcher(stub, **TWILIO)
    lifecycle = BookingLifecycle(session_factory, allocator, dispatcher, settings)

    await lifecycle.transition(booking.id, "confirmed", actor=staff.id)
    await lifecycle.drain()
    await dispatcher.aclose()

    assert stub.hosts() == ["api.twilio.com"]
    form = parse_qs(stub.requests[0].content.decode())
    assert form["To"] == ["+15550102030"]


def test_email_status_row_is_title_cased(payload):
    payload.status = "in_progress"

    html = render_email_html(payload, compose_message(payload.status))

    assert "In Progress" in html
