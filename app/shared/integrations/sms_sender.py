# -*- coding: utf-8 -*-
"""
app/shared/integrations/sms_sender.py

Factory unificado para SmsSender.
Soporta dos modos:
- console: stub que solo loguea (desarrollo/tests)
- twilio: envío via API REST de Twilio

Autor: HeyTeam
Fecha: 2026-02-10
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from app.shared.config.settings_base import BaseAppSettings

logger = logging.getLogger(__name__)


class SmsSendError(Exception):
    """El proveedor rechazó el mensaje o no fue posible contactarlo."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class ISmsSender(Protocol):
    """Protocolo para implementaciones de SMS sender."""

    @property
    def from_number(self) -> str: ...

    async def send(self, from_number: str, to_e164: str, body: str) -> str:
        """Envía el SMS y devuelve el identificador del proveedor."""
        ...


class StubSmsSender:
    """Implementación que no envía SMS; solo hace logging (modo console)."""

    def __init__(self, from_number: str = "+15555550100"):
        self._from_number = from_number

    @property
    def from_number(self) -> str:
        return self._from_number

    async def send(self, from_number: str, to_e164: str, body: str) -> str:
        sid = f"dev-fallback-{int(datetime.now(timezone.utc).timestamp() * 1000)}"
        logger.info("[CONSOLE SMS] %s -> %s | %d chars | sid=%s", from_number, to_e164, len(body), sid)
        return sid


class SmsSender:
    """
    Factory unificado para selección de SMS sender.

    Variables de entorno (via settings):
    - SMS_MODE: console | twilio
    - TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN, TWILIO_PHONE_NUMBER (modo twilio)
    """

    @staticmethod
    def from_settings(settings: BaseAppSettings) -> ISmsSender:
        """
        Crea el SMS sender apropiado según settings.

        Raises:
            ValueError: si sms_mode=twilio pero faltan credenciales,
                o si el modo no es reconocido en producción
        """
        mode = (settings.sms_mode or "console").strip().lower()
        logger.info("[SmsSender] mode=%r", mode)

        if mode in ("console", "stub", ""):
            return StubSmsSender(from_number=settings.twilio_phone_number or "+15555550100")

        if mode == "twilio":
            from app.shared.integrations.twilio_sms_sender import TwilioSmsSender
            return TwilioSmsSender.from_settings(settings)

        if settings.is_prod:
            raise ValueError(f"SMS_MODE '{mode}' no reconocido. Configure SMS_MODE=console|twilio")

        logger.warning("[SmsSender] SMS_MODE=%r not recognized, using console (dev only)", mode)
        return StubSmsSender()


__all__ = ["ISmsSender", "SmsSendError", "SmsSender", "StubSmsSender"]

# Fin del archivo app/shared/integrations/sms_sender.py
