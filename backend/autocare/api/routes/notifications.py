"""
Booking notification endpoint.

Accepts the camelCase payload used by existing clients and returns
{success, message, smsSent, emailSent}. A malformed or invalid body gets
400 and a failure while dispatching gets 500, both as
{success: false, error}. CORS preflight is answered by the app's
CORSMiddleware.
"""

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from autocare.api.deps import get_dispatcher
from autocare.core.logging import get_logger
from autocare.schemas.notification import NotificationRequest, NotificationResponse
from autocare.services.notification_dispatcher import NotificationDispatcher

logger = get_logger(__name__)
router = APIRouter(prefix="/notifications", tags=["Notifications"])


def _failure(status_code: int, error: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error})


@router.post("/booking", response_model=NotificationResponse, response_model_by_alias=True)
async def send_booking_notification(
    request: Request,
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    try:
        payload = NotificationRequest.model_validate(await request.json())
    except (ValueError, ValidationError) as e:
        logger.warning("notification_payload_invalid", error=str(e))
        return _failure(status.HTTP_400_BAD_REQUEST, str(e))

    try:
        result = await dispatcher.send(payload)
    except Exception as e:
        logger.exception("notification_request_failed", booking_id=payload.booking_id)
        return _failure(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e))

    return NotificationResponse(
        success=True,
        message="Notifications sent successfully" if result.success else "Notifications processed with errors",
        sms_sent=result.sms_sent,
        email_sent=result.email_sent,
    )
