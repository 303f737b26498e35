"""Tests for the WhatsApp notification service (Twilio).

Unit tests (mocked) run in every pytest invocation.
Integration tests marked ``whatsapp_live`` hit the real Twilio API and
deliver an actual WhatsApp message. Run them with:

    pytest backend/tests/test_whatsapp_notifier.py -m whatsapp_live -s

They are skipped unless TWILIO_ACCOUNT_SID and TWILIO_AUTH_TOKEN are configured.
"""

import httpx
import pytest
from unittest.mock import patch, AsyncMock, MagicMock

from arthastra.config import settings
from arthastra.services.whatsapp_notifier import (
    INVALID_PHONE_NUMBER,
    RECIPIENT_NOT_OPTED_IN,
    build_stage_message,
    normalize_phone,
    notify_drop_off,
    notify_emi_reminder,
    notify_stage,
    send_whatsapp_message,
)

_HAS_TWILIO_CREDS = bool(settings.twilio_account_sid and settings.twilio_auth_token)

whatsapp_live = pytest.mark.skipif(
    not _HAS_TWILIO_CREDS,
    reason="Live Twilio credentials not configured. Set TWILIO_ACCOUNT_SID & TWILIO_AUTH_TOKEN in .env",
)

_CLIENT_PATH = "arthastra.services.whatsapp_notifier.httpx.AsyncClient"


def _fake_twilio_response(status_code: int = 201, body: dict | None = None):
    """Return a mock httpx.Response that looks like a Twilio reply."""
    if body is None:
        body = {
            "sid": "SM00000000000000000000000000000000",
            "status": "queued",
            "to": "whatsapp:+919876543210",
        }
    resp = MagicMock(spec=httpx.Response)
    resp.status_code = status_code
    resp.json.return_value = body
    return resp


def _mock_client(post: AsyncMock) -> AsyncMock:
    client = AsyncMock()
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=False)
    client.post = post
    return client


def _twilio_settings(environment: str = "production", sandbox: str = ""):
    """Patch the settings singleton with fake Twilio credentials."""
    return (
        patch.object(settings, "twilio_account_sid", "ACtest"),
        patch.object(settings, "twilio_auth_token", "tok"),
        patch.object(settings, "twilio_whatsapp_number", "whatsapp:+14155238886"),
        patch.object(settings, "environment", environment),
        patch.object(settings, "whatsapp_sandbox_phone", sandbox),
    )


async def _send(post: AsyncMock, to_phone: str = "9876543210", body: str = "hi",
                environment: str = "production", sandbox: str = "") -> dict:
    p1, p2, p3, p4, p5 = _twilio_settings(environment, sandbox)
    with p1, p2, p3, p4, p5, patch(_CLIENT_PATH, return_value=_mock_client(post)):
        return await send_whatsapp_message(to_phone, body)


# ===================================================================
# Unit tests (Twilio API is mocked)
# ===================================================================


class TestNormalizePhone:

    @pytest.mark.parametrize("raw,expected", [
        ("9876543210", "+919876543210"),
        ("98765 43210", "+919876543210"),
        ("098765-43210", "+919876543210"),
        ("(987) 654.3210", "+919876543210"),
        ("+447432723070", "+447432723070"),
        ("whatsapp:+919876543210", "+919876543210"),
    ])
    def test_normalizes(self, raw, expected):
        assert normalize_phone(raw) == expected

    def test_explicit_country_code(self):
        assert normalize_phone("5551234567", country_code="+1") == "+15551234567"


class TestMissingCredentials:
    """Without Twilio creds the send is mocked and reported as a success."""

    @pytest.mark.asyncio
    async def test_empty_sid_returns_mock(self):
        with patch.object(settings, "twilio_account_sid", ""), \
             patch.object(settings, "twilio_auth_token", "some-token"), \
             patch(_CLIENT_PATH) as client_cls:
            result = await send_whatsapp_message("9876543210", "hi")
        assert result == {"success": True, "mock": True, "sid": "mock-sid", "recipient": "+919876543210"}
        client_cls.assert_not_called()

    @pytest.mark.asyncio
    async def test_blank_token_returns_mock(self):
        with patch.object(settings, "twilio_account_sid", "ACxxx"), \
             patch.object(settings, "twilio_auth_token", "   "):
            result = await send_whatsapp_message("+18681234567", "hi")
        assert result["mock"] is True


class TestSandboxOverride:
    """Outside production the recipient is replaced by the sandbox phone."""

    @pytest.mark.asyncio
    async def test_dev_mode_redirects_to_sandbox_phone(self):
        post = AsyncMock(return_value=_fake_twilio_response())
        result = await _send(post, "+18681111111", environment="development", sandbox="+15551234567")

        assert post.call_args.kwargs["data"]["To"] == "whatsapp:+15551234567"
        assert result["recipient"] == "+15551234567"

    @pytest.mark.asyncio
    async def test_production_mode_uses_real_phone(self):
        post = AsyncMock(return_value=_fake_twilio_response())
        await _send(post, "+18681111111", environment="production", sandbox="+15551234567")

        assert post.call_args.kwargs["data"]["To"] == "whatsapp:+18681111111"

    @pytest.mark.asyncio
    async def test_dev_mode_without_sandbox_phone(self):
        post = AsyncMock(return_value=_fake_twilio_response())
        await _send(post, "9876543210", environment="development")

        assert post.call_args.kwargs["data"]["To"] == "whatsapp:+919876543210"


class TestRequestShape:

    @pytest.mark.asyncio
    async def test_prefix_not_doubled(self):
        post = AsyncMock(return_value=_fake_twilio_response())
        await _send(post, "whatsapp:+18681234567", body="hello")

        data = post.call_args.kwargs["data"]
        assert data == {"To": "whatsapp:+18681234567", "From": "whatsapp:+14155238886", "Body": "hello"}

    @pytest.mark.asyncio
    async def test_url_and_auth(self):
        post = AsyncMock(return_value=_fake_twilio_response())
        await _send(post)

        url = post.call_args.args[0]
        assert "ACtest" in url
        assert url.endswith("Messages.json")
        assert post.call_args.kwargs["auth"] == ("ACtest", "tok")


class TestSuccessResponse:

    @pytest.mark.asyncio
    async def test_real_send(self):
        post = AsyncMock(return_value=_fake_twilio_response(201, {"sid": "SM123", "status": "queued"}))
        result = await _send(post)

        assert result == {
            "success": True,
            "sid": "SM123",
            "mode": "real",
            "recipient": "+919876543210",
            "status": "queued",
        }


class TestErrorHandling:
    """Twilio errors and network failures must not raise exceptions."""

    @pytest.mark.asyncio
    async def test_recipient_not_opted_in(self):
        body = {"code": RECIPIENT_NOT_OPTED_IN, "message": "not in sandbox"}
        result = await _send(AsyncMock(return_value=_fake_twilio_response(400, body)))

        assert result["success"] is False
        assert result["code"] == 63015
        assert "sandbox" in result["error"]

    @pytest.mark.asyncio
    async def test_invalid_number(self):
        body = {"code": INVALID_PHONE_NUMBER, "message": "Invalid 'To' phone number"}
        result = await _send(AsyncMock(return_value=_fake_twilio_response(400, body)))

        assert result["error"] == "Invalid phone number format."
        assert result["status_code"] == 400

    @pytest.mark.asyncio
    async def test_other_error_passes_message_through(self):
        body = {"code": 20003, "message": "Authenticate"}
        result = await _send(AsyncMock(return_value=_fake_twilio_response(401, body)))

        assert result == {"success": False, "error": "Authenticate", "code": 20003, "status_code": 401}

    @pytest.mark.asyncio
    async def test_network_exception_returns_error(self):
        result = await _send(AsyncMock(side_effect=httpx.ConnectError("DNS failed")))

        assert result["success"] is False
        assert "DNS" in result["error"]

    @pytest.mark.asyncio
    async def test_timeout_returns_error(self):
        result = await _send(AsyncMock(side_effect=httpx.ReadTimeout("read timed out")))

        assert result["success"] is False


class TestStageMessages:

    def test_profile_setup(self):
        msg = build_stage_message("profile_setup", {"name": "Asha"})
        assert "Welcome to ArthAstra, Asha!" in msg
        assert "/dashboard" in msg

    def test_credit_check_verdicts(self):
        assert "Excellent score" in build_stage_message("credit_check_completed", {"credit_score": 760})
        assert "Good score" in build_stage_message("credit_check_completed", {"credit_score": 640})
        assert "Lower score" in build_stage_message("credit_check_completed", {"credit_score": 550})
        assert "Lower score" in build_stage_message("credit_check_completed", {})

    def test_application_submitted_uses_amounts(self):
        msg = build_stage_message("application_submitted", {
            "name": "Asha", "amount": 750000, "emi": 24911, "tenure": 3,
            "ref_id": "REF-1", "bank_name": "SBI",
        })
        assert "Application Submitted to SBI" in msg
        assert "₹7,50,000" in msg
        assert "₹24,911" in msg
        assert "3 years" in msg
        assert "REF-1" in msg

    def test_defaults(self):
        msg = build_stage_message("loan_approved")
        assert "Customer" in msg
        assert "HDFC Bank" in msg
        assert "₹5,00,000" in msg
        assert "Reference ID: *HDFC-" in msg

    def test_unknown_stage(self):
        msg = build_stage_message("kyc_pending", {"name": "Ravi"})
        assert "Kyc Pending" in msg
        assert "Ravi" in msg


class TestNotifyHelpers:

    @pytest.mark.asyncio
    async def test_notify_stage_sends_to_user_phone(self):
        with patch("arthastra.services.whatsapp_notifier.send_whatsapp_message",
                   AsyncMock(return_value={"success": True})) as send:
            await notify_stage("loan_rejected", {"phone": "9876543210", "name": "Asha"})
        to_phone, body = send.await_args.args
        assert to_phone == "9876543210"
        assert "Application Update, Asha" in body

    @pytest.mark.asyncio
    async def test_drop_off_nudge(self):
        with patch("arthastra.services.whatsapp_notifier.send_whatsapp_message",
                   AsyncMock(return_value={"success": True})) as send:
            await notify_drop_off("9876543210", "Asha", 2)
        body = send.await_args.args[1]
        assert "step 2 of 5" in body
        assert "/onboarding" in body

    @pytest.mark.asyncio
    @pytest.mark.parametrize("days,phrase", [(0, "due today"), (1, "due tomorrow"), (3, "due in 3 days")])
    async def test_emi_reminder(self, days, phrase):
        with patch("arthastra.services.whatsapp_notifier.send_whatsapp_message",
                   AsyncMock(return_value={"success": True})) as send:
            await notify_emi_reminder("9876543210", "Asha", "Home Loan", 25000, days)
        body = send.await_args.args[1]
        assert phrase in body
        assert "₹25,000" in body


# ===================================================================
# Live integration tests: actually send a WhatsApp message
# ===================================================================


class TestLiveWhatsApp:

    @whatsapp_live
    @pytest.mark.whatsapp_live
    @pytest.mark.asyncio
    async def test_send_real_whatsapp_message(self):
        result = await send_whatsapp_message(
            settings.whatsapp_sandbox_phone or "9876543210",
            "ArthAstra test suite: WhatsApp integration is working!",
        )
        assert result["success"], f"Twilio returned an error: {result}"
        assert result["sid"].startswith("SM")
