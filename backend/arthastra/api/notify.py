"""WhatsApp notification endpoints."""

import logging

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse

from arthastra.config import settings
from arthastra.schemas import NotifyRequest, TestWhatsAppRequest
from arthastra.services.whatsapp_notifier import notify_stage, send_whatsapp_message

logger = logging.getLogger(__name__)
router = APIRouter()

TEST_MESSAGE = (
    "✅ ArthAstra Test Message!\n\n"
    "Twilio is working correctly. Your WhatsApp notifications are active.\n"
    "— ArthAstra AI"
)


@router.post("/notify")
async def notify(data: NotifyRequest):
    if not data.user_data.get("phone"):
        logger.warning("No phone number provided for stage %s", data.stage)
        raise HTTPException(status_code=400, detail="No phone number provided")

    result = await notify_stage(data.stage, data.user_data)
    if not result.get("success"):
        return JSONResponse(status_code=502, content=result)
    return result


@router.post("/test-whatsapp")
async def test_whatsapp(data: TestWhatsAppRequest):
    """Send a diagnostic message and report which credentials are loaded."""
    result = await send_whatsapp_message(data.phone, data.message or TEST_MESSAGE)
    return {
        **result,
        "credentials_loaded": bool(settings.twilio_account_sid and settings.twilio_auth_token),
    }
