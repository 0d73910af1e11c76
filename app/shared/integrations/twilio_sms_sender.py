# -*- coding: utf-8 -*-
"""
app/shared/integrations/twilio_sms_sender.py

Envío de SMS usando la API REST de Twilio (httpx, sin SDK).

Autor: HeyTeam
Fecha: 2026-02-10
"""

from __future__ import annotations

import logging
from typing import Optional, TYPE_CHECKING

import httpx

from app.shared.integrations.sms_sender import SmsSendError

if TYPE_CHECKING:
    from app.shared.config.settings_base import BaseAppSettings

logger = logging.getLogger(__name__)

TWILIO_API_BASE = "https://api.twilio.com/2010-04-01"


class TwilioSmsSender:
    """Envío de SMS usando Twilio Messages API."""

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not account_sid:
            raise ValueError("TWILIO_ACCOUNT_SID es requerido")
        if not auth_token:
            raise ValueError("TWILIO_AUTH_TOKEN es requerido")
        if not from_number:
            raise ValueError("TWILIO_PHONE_NUMBER es requerido")

        self.account_sid = account_sid
        self.auth_token = auth_token
        self._from_number = from_number
        self.timeout = timeout
        self._transport = transport

    @property
    def from_number(self) -> str:
        return self._from_number

    @classmethod
    def from_settings(cls, settings: BaseAppSettings) -> "TwilioSmsSender":
        """
        Crea instancia desde settings.

        Raises:
            ValueError: si faltan credenciales requeridas
        """
        auth_token = ""
        if settings.twilio_auth_token:
            auth_token = settings.twilio_auth_token.get_secret_value().strip()

        sender = cls(
            account_sid=(settings.twilio_account_sid or "").strip(),
            auth_token=auth_token,
            from_number=(settings.twilio_phone_number or "").strip(),
            timeout=settings.sms_timeout_sec,
        )
        logger.info("[Twilio] config: from=%s timeout=%ss", sender.from_number, sender.timeout)
        return sender

    @property
    def messages_url(self) -> str:
        return f"{TWILIO_API_BASE}/Accounts/{self.account_sid}/Messages.json"

    async def send(self, from_number: str, to_e164: str, body: str) -> str:
        """
        Envía un SMS.

        Returns:
            SID del mensaje asignado por Twilio

        Raises:
            SmsSendError: respuesta no exitosa, timeout o error de red
        """
        payload = {"From": from_number or self._from_number, "To": to_e164, "Body": body}

        async with httpx.AsyncClient(
            timeout=self.timeout,
            auth=(self.account_sid, self.auth_token),
            transport=self._transport,
        ) as client:
            try:
                response = await client.post(self.messages_url, data=payload)
            except httpx.TimeoutException as e:
                logger.error("[Twilio] timeout sending to %s: %s", to_e164, e)
                raise SmsSendError(f"Twilio timeout: {e}") from e
            except httpx.RequestError as e:
                logger.error("[Twilio] request error sending to %s: %s", to_e164, e)
                raise SmsSendError(f"Twilio request error: {e}") from e

        if response.status_code in (200, 201):
            sid = response.json().get("sid", "")
            logger.info("[Twilio] sms sent to %s sid=%s", to_e164, sid)
            return sid

        error_body = response.text
        logger.error(
            "[Twilio] API error status=%s body=%s",
            response.status_code,
            error_body[:200],
        )
        raise SmsSendError(
            f"Twilio API error: {response.status_code} - {error_body[:200]}",
            status_code=response.status_code,
        )


__all__ = ["TwilioSmsSender", "TWILIO_API_BASE"]

# Fin del archivo app/shared/integrations/twilio_sms_sender.py
