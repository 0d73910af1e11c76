# -*- coding: utf-8 -*-
"""
Tests de los SMS senders.

Cubre:
- Factory por SMS_MODE (console / twilio)
- Validación de credenciales Twilio
- Envío Twilio contra un transporte httpx simulado (éxito, error HTTP, red)
"""

from urllib.parse import parse_qs

import httpx
import pytest
from pydantic import SecretStr

from app.shared.integrations import SmsSendError, SmsSender, StubSmsSender, TwilioSmsSender


def _twilio(handler):
    return TwilioSmsSender(
        account_sid="AC123",
        auth_token="secret",
        from_number="+15550001111",
        transport=httpx.MockTransport(handler),
    )


def test_factory_console_mode_returns_stub(settings):
    settings.sms_mode = "console"
    assert isinstance(SmsSender.from_settings(settings), StubSmsSender)


def test_factory_twilio_mode(settings):
    settings.sms_mode = "twilio"
    settings.twilio_account_sid = "AC123"
    settings.twilio_auth_token = SecretStr("secret")
    settings.twilio_phone_number = "+15550001111"

    sender = SmsSender.from_settings(settings)

    assert isinstance(sender, TwilioSmsSender)
    assert sender.from_number == "+15550001111"
    assert sender.messages_url.endswith("/Accounts/AC123/Messages.json")


def test_factory_twilio_without_credentials_fails(settings):
    settings.sms_mode = "twilio"
    settings.twilio_account_sid = None

    with pytest.raises(ValueError):
        SmsSender.from_settings(settings)


@pytest.mark.asyncio
async def test_stub_sender_returns_dev_id():
    sid = await StubSmsSender().send("+15550001111", "+14155550100", "hello")
    assert sid.startswith("dev-fallback-")


@pytest.mark.asyncio
async def test_twilio_send_success():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["form"] = parse_qs(request.content.decode())
        captured["auth"] = request.headers.get("authorization", "")
        return httpx.Response(201, json={"sid": "SM42"})

    sid = await _twilio(handler).send("+15550001111", "+14155550100", "Hi Sam")

    assert sid == "SM42"
    assert captured["url"].endswith("/Accounts/AC123/Messages.json")
    assert captured["form"] == {"From": ["+15550001111"], "To": ["+14155550100"], "Body": ["Hi Sam"]}
    assert captured["auth"].startswith("Basic ")


@pytest.mark.asyncio
async def test_twilio_http_error_raises_with_status():
    def handler(request):
        return httpx.Response(400, json={"message": "invalid To"})

    with pytest.raises(SmsSendError) as exc_info:
        await _twilio(handler).send("+15550001111", "+1", "x")

    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_twilio_network_error_raises():
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    with pytest.raises(SmsSendError):
        await _twilio(handler).send("+15550001111", "+14155550100", "x")


def test_twilio_requires_credentials():
    with pytest.raises(ValueError):
        TwilioSmsSender(account_sid="", auth_token="t", from_number="+1555")
