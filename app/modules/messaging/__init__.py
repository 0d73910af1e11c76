# -*- coding: utf-8 -*-
"""
app/modules/messaging/__init__.py

Módulo de mensajería: entregas push, fallback SMS, mensajes y trail de
eventos.

Autor: HeyTeam
Fecha: 2026-02-10
"""

from .enums import (
    DeliveryStatus,
    MessageDirection,
    MessageLogEvent,
    MessageLogStatus,
    MessageStatus,
)
from .errors import DeliveryNotFound, DeliveryOwnershipError
from .jobs import (
    SMS_FALLBACK_JOB_ID,
    FallbackConfig,
    FallbackCycleResult,
    SmsFallbackProcessor,
    register_sms_fallback_job,
)
from .models import Message, MessageLog, PushNotificationDelivery
from .repositories import MessageLogRepository, MessageRepository, PushDeliveryRepository
from .routes import router as messaging_router
from .services import PushDeliveryService
from .template_renderer import render_template

__all__ = [
    # Models
    "PushNotificationDelivery",
    "Message",
    "MessageLog",
    # Enums
    "DeliveryStatus",
    "MessageDirection",
    "MessageStatus",
    "MessageLogEvent",
    "MessageLogStatus",
    # Errors
    "DeliveryNotFound",
    "DeliveryOwnershipError",
    # Repositories
    "PushDeliveryRepository",
    "MessageRepository",
    "MessageLogRepository",
    # Services / jobs
    "PushDeliveryService",
    "SmsFallbackProcessor",
    "FallbackConfig",
    "FallbackCycleResult",
    "SMS_FALLBACK_JOB_ID",
    "register_sms_fallback_job",
    "render_template",
    # Router
    "messaging_router",
]
