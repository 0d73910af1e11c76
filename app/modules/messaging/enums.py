# -*- coding: utf-8 -*-
"""
app/modules/messaging/enums.py

Enums de mensajería: estados de entrega push, dirección de mensajes y
eventos del trail de message_logs.

Autor: HeyTeam
Fecha: 2026-02-10
"""

from enum import Enum


class DeliveryStatus(str, Enum):
    """
    Estado de una push_notification_delivery.

    sent -> delivered (ack del push o contacto con portal)
    sent -> [claim] -> sms_fallback | failed
    """
    SENT = "sent"
    DELIVERED = "delivered"
    SMS_FALLBACK = "sms_fallback"
    FAILED = "failed"


class MessageDirection(str, Enum):
    OUTBOUND = "outbound"
    INBOUND = "inbound"


class MessageStatus(str, Enum):
    QUEUED = "queued"
    SENT = "sent"
    FAILED = "failed"


class MessageLogEvent(str, Enum):
    """Eventos del trail de observabilidad (no se usan para decisiones)."""
    SMS_FALLBACK_SCHEDULED = "sms_fallback_scheduled"
    SMS_FALLBACK_TRIGGERED = "sms_fallback_triggered"
    SMS_FALLBACK_REQUEUED = "sms_fallback_requeued"
    SMS_SENT = "sms_sent"
    SMS_FAILED = "sms_failed"
    PUSH_DELIVERED = "push_delivered"


class MessageLogStatus(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"


__all__ = [
    "DeliveryStatus",
    "MessageDirection",
    "MessageStatus",
    "MessageLogEvent",
    "MessageLogStatus",
]
