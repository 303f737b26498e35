"""WhatsApp notification service using the Twilio REST API.

Sends WhatsApp messages for application-stage updates and alert nudges.
Without Twilio credentials the message is logged and reported as a mock
send, so local development never needs an account. Outside production the
recipient is replaced by the configured sandbox phone when one is set.
"""

import logging
import random
import re
import string
from typing import Any, Optional

import httpx

from arthastra.config import settings
from arthastra.services.eligibility import format_inr

logger = logging.getLogger(__name__)

TWILIO_MESSAGES_URL = (
    "https://api.twilio.com/2010-04-01/Accounts/{sid}/Messages.json"
)

# Twilio error codes with dedicated handling
RECIPIENT_NOT_OPTED_IN = 63015
INVALID_PHONE_NUMBER = 21211

_SEPARATORS = re.compile(r"[\s\-().]")

DEFAULT_BANK = "HDFC Bank"
DEFAULT_AMOUNT = 500000
SIGNATURE = "— *ArthAstra AI*"


def normalize_phone(phone: str, country_code: Optional[str] = None) -> str:
    """Return ``phone`` in E.164 form.

    Strips separators and a single trunk ``0``; numbers without a ``+``
    prefix get the default country code (+91).
    """
    cleaned = _SEPARATORS.sub("", phone or "")
    if cleaned.startswith("whatsapp:"):
        cleaned = cleaned[len("whatsapp:"):]
    if cleaned.startswith("0"):
        cleaned = cleaned[1:]
    if not cleaned.startswith("+"):
        cleaned = f"{country_code or settings.default_country_code}{cleaned}"
    return cleaned


def _whatsapp_address(number: str) -> str:
    return number if number.startswith("whatsapp:") else f"whatsapp:{number}"


def _twilio_failure(code: Optional[int], message: str, status_code: int) -> dict[str, Any]:
    if code == RECIPIENT_NOT_OPTED_IN:
        return {
            "success": False,
            "error": (
                "Recipient has not joined the Twilio sandbox. Ask them to send "
                "'join <sandbox-word>' to the sandbox number first."
            ),
            "code": RECIPIENT_NOT_OPTED_IN,
            "status_code": status_code,
        }
    if code == INVALID_PHONE_NUMBER:
        return {
            "success": False,
            "error": "Invalid phone number format.",
            "code": INVALID_PHONE_NUMBER,
            "status_code": status_code,
        }
    return {"success": False, "error": message, "code": code, "status_code": status_code}


async def send_whatsapp_message(to_phone: str, body: str) -> dict[str, Any]:
    """Send a WhatsApp message via Twilio.

    Parameters
    ----------
    to_phone : str
        Recipient phone number. Indian numbers may be given without a
        country code (``98765 43210``, ``098765-43210``).
    body : str
        Plain-text message body.

    Returns
    -------
    dict
        ``{"success": True, "sid": ..., "recipient": ...}`` on delivery,
        ``{"success": True, "mock": True, ...}`` when Twilio is not
        configured, or ``{"success": False, "error": ..., "code": ...}``.
        This function never raises; notification failures must not break
        the calling flow.
    """
    recipient = normalize_phone(to_phone)

    sid = settings.twilio_account_sid.strip()
    token = settings.twilio_auth_token.strip()
    if not sid or not token:
        logger.warning("Twilio credentials not configured, mock WhatsApp send to %s", recipient)
        logger.info("WhatsApp mock message:\n%s", body)
        return {"success": True, "mock": True, "sid": "mock-sid", "recipient": recipient}

    # In sandbox / development mode send to the sandbox phone when configured
    if settings.environment != "production" and settings.whatsapp_sandbox_phone:
        recipient = normalize_phone(settings.whatsapp_sandbox_phone)

    url = TWILIO_MESSAGES_URL.format(sid=sid)

    try:
        async with httpx.AsyncClient() as client:
            response = await client.post(
                url,
                data={
                    "To": _whatsapp_address(recipient),
                    "From": _whatsapp_address(settings.twilio_whatsapp_number),
                    "Body": body,
                },
                auth=(sid, token),
                timeout=15.0,
            )

        result = response.json()

        if response.status_code >= 400:
            logger.error(
                "Twilio API error %s (code %s): %s",
                response.status_code,
                result.get("code"),
                result.get("message", result),
            )
            return _twilio_failure(result.get("code"), result.get("message", str(result)), response.status_code)

        logger.info(
            "WhatsApp message sent: SID %s, to %s, status %s",
            result.get("sid"),
            recipient,
            result.get("status"),
        )
        return {
            "success": True,
            "sid": result.get("sid"),
            "mode": "real",
            "recipient": recipient,
            "status": result.get("status"),
        }

    except Exception as exc:
        logger.error("Failed to send WhatsApp message: %s", exc)
        return {"success": False, "error": str(exc)}


# ===================================================================
# Application stage templates
# ===================================================================

def _rupees(value: Any) -> Optional[str]:
    if value in (None, ""):
        return None
    try:
        return f"₹{format_inr(float(str(value).replace(',', '')))}"
    except ValueError:
        return None


def _reference_id() -> str:
    suffix = "".join(random.choices(string.ascii_uppercase + string.digits, k=8))
    return f"HDFC-{suffix}"


def _credit_verdict(score: Any) -> str:
    try:
        value = float(score)
    except (TypeError, ValueError):
        value = 0
    if value >= 700:
        return "🟢 Excellent score! You qualify for the best interest rates."
    if value >= 600:
        return "🟡 Good score. You qualify for most loan products."
    return "🔴 Lower score detected. Limited options available — we will find the best match."


def build_stage_message(stage: str, user_data: Optional[dict] = None) -> str:
    """Render the WhatsApp update for an application ``stage``.

    Unknown stages get a generic status update naming the stage.
    """
    data = user_data or {}
    name = data.get("name") or "Customer"
    amount = _rupees(data.get("amount")) or _rupees(data.get("loan_amount")) or _rupees(DEFAULT_AMOUNT)
    emi = _rupees(data.get("emi"))
    tenure = data.get("tenure")
    ref_id = data.get("ref_id") or _reference_id()
    credit_score = data.get("credit_score")
    bank = data.get("bank_name") or DEFAULT_BANK
    dashboard = f"{settings.app_url.rstrip('/')}/dashboard"

    if stage == "profile_setup":
        return (
            f"🌟 *Welcome to ArthAstra, {name}!*\n\n"
            f"Your profile has been created successfully.\n\n"
            f"✅ Step 1: Profile Setup — Done\n"
            f"📄 Step 2: Upload Documents — *Pending*\n"
            f"🔍 Step 3: Credit Check — Pending\n"
            f"🏦 Step 4: Lender Match — Pending\n\n"
            f"Head to your dashboard to upload PAN, Aadhaar, and salary slip to proceed.\n"
            f"👉 {dashboard}\n\n{SIGNATURE}"
        )
    if stage == "docs_uploaded":
        return (
            f"📄 *Documents Received, {name}!*\n\n"
            f"We are now verifying your uploaded documents. This usually takes under 60 seconds.\n\n"
            f"Documents being verified:\n"
            f"• PAN Card\n• Aadhaar Card\n• Salary Slip\n• Bank Statement\n\n"
            f"You will receive another notification once verification is complete.\n\n{SIGNATURE}"
        )
    if stage == "credit_check_started":
        return (
            f"🔍 *Credit Check Initiated, {name}!*\n\n"
            f"We are performing a soft inquiry on your CIBIL credit report.\n\n"
            f"⚠️ This is a *soft check only* — it does NOT affect your credit score.\n\n"
            f"Results will be ready in a few moments.\n\n{SIGNATURE}"
        )
    if stage == "credit_check_completed":
        return (
            f"✅ *Credit Check Complete, {name}!*\n\n"
            f"Your CIBIL score: *{credit_score or 'Fetched'}*\n\n"
            f"{_credit_verdict(credit_score)}\n\n"
            f"Next step: View your matched loan offers.\n"
            f"👉 {dashboard}/loans\n\n{SIGNATURE}"
        )
    if stage == "lender_match_found":
        return (
            f"🏦 *Lender Match Found, {name}!*\n\n"
            f"ArthAstra AI has analysed 12+ lenders and matched you with the best offer:\n\n"
            f"🏆 *{bank} — Personal Loan*\n"
            f"• Amount: *{amount}*\n"
            f"• Interest Rate: *10.5% p.a.*\n"
            f"• Monthly EMI: *{emi or 'Calculated'}*\n"
            f"• Tenure: *{f'{tenure} years' if tenure else 'Flexible'}*\n\n"
            f"Ready to apply? Open your dashboard now:\n"
            f"👉 {dashboard}/loans\n\n{SIGNATURE}"
        )
    if stage == "application_submitted":
        return (
            f"🚀 *Application Submitted to {bank}!*\n\n"
            f"Hi {name}, your loan application has been officially submitted.\n\n"
            f"📋 *Application Summary:*\n"
            f"• Loan Amount: *{amount}*\n"
            f"• EMI: *{emi or 'As calculated'}*\n"
            f"• Tenure: *{f'{tenure} years' if tenure else 'N/A'}*\n"
            f"• Interest Rate: *10.5% p.a.*\n"
            f"• Reference ID: *{ref_id}*\n\n"
            f"⏳ {bank} typically responds within *2 business days*.\n\n"
            f"Track your status:\n"
            f"👉 {dashboard}/timeline\n\n{SIGNATURE}"
        )
    if stage == "loan_approved":
        return (
            f"🎊 *LOAN APPROVED — Congratulations, {name}!*\n\n"
            f"{bank} has *approved* your loan application!\n\n"
            f"✅ *Final Approval Details:*\n"
            f"• Approved Amount: *{amount}*\n"
            f"• Monthly EMI: *{emi or 'As calculated'}*\n"
            f"• Tenure: *{f'{tenure} years' if tenure else 'N/A'}*\n"
            f"• Reference ID: *{ref_id}*\n\n"
            f"💰 Disbursal to your registered bank account within *1–2 business days*.\n\n"
            f"View your approval letter:\n"
            f"👉 {dashboard}/timeline\n\n"
            f"Thank you for trusting ArthAstra! 🙌\n\n{SIGNATURE}"
        )
    if stage == "loan_rejected":
        return (
            f"📋 *Application Update, {name}*\n\n"
            f"Unfortunately, {bank} could not approve your application at this time.\n\n"
            f"*Don't worry — here's what you can do:*\n"
            f"• Try a lower loan amount\n"
            f"• Improve your credit score over 3–6 months\n"
            f"• Explore other lenders on ArthAstra\n\n"
            f"👉 {dashboard}/rejection-recovery\n\n"
            f"Our AI Advisor is ready to help:\n"
            f"👉 {dashboard}/chat\n\n{SIGNATURE}"
        )
    return (
        f"📢 *ArthAstra Update, {name}*\n\n"
        f"Your application status: *{stage.replace('_', ' ').title()}*\n\n"
        f"Check your dashboard for details:\n"
        f"👉 {dashboard}\n\n{SIGNATURE}"
    )


async def notify_stage(stage: str, user_data: dict) -> dict[str, Any]:
    """Send the stage update to ``user_data["phone"]``."""
    logger.info("Stage notification %s for %s", stage, user_data.get("name") or "Customer")
    return await send_whatsapp_message(user_data["phone"], build_stage_message(stage, user_data))


async def notify_drop_off(to_phone: str, first_name: str, onboarding_step: int) -> dict[str, Any]:
    """Nudge a user who left onboarding unfinished."""
    msg = (
        f"👋 Hi {first_name}, your ArthAstra profile is almost ready "
        f"(step {onboarding_step} of 5).\n\n"
        f"Finish setting up to see the loans you qualify for:\n"
        f"👉 {settings.app_url.rstrip('/')}/onboarding\n\n{SIGNATURE}"
    )
    return await send_whatsapp_message(to_phone, msg)


async def notify_emi_reminder(to_phone: str, first_name: str, loan_name: str,
                              amount: int, days_left: int) -> dict[str, Any]:
    """Remind a user of an upcoming EMI."""
    when = "today" if days_left <= 0 else ("tomorrow" if days_left == 1 else f"in {days_left} days")
    msg = (
        f"⏰ Hi {first_name}, your EMI of *₹{format_inr(amount)}* for {loan_name} "
        f"is due {when}.\n\nKeep sufficient balance to avoid late fees.\n\n{SIGNATURE}"
    )
    return await send_whatsapp_message(to_phone, msg)
