# -*- coding: utf-8 -*-
"""
app/shared/integrations/__init__.py

Clientes de integración con servicios externos.
"""

from .sms_sender import ISmsSender, SmsSendError, SmsSender, StubSmsSender
from .twilio_sms_sender import TwilioSmsSender

__all__ = [
    "ISmsSender",
    "SmsSendError",
    "SmsSender",
    "StubSmsSender",
    "TwilioSmsSender",
]
