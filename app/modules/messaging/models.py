# -*- coding: utf-8 -*-
"""
app/modules/messaging/models.py

Modelos ORM de mensajería.

- PushNotificationDelivery: un push enviado a un contacto, con su plazo de
  fallback SMS (Delivery Record Store)
- Message: mensaje SMS enviado o recibido
- MessageLog: trail append-only de eventos por entrega

Autor: HeyTeam
Fecha: 2026-02-10
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.shared.database.base import Base, new_uuid, utcnow
from .enums import (
    DeliveryStatus,
    MessageDirection,
    MessageLogEvent,
    MessageLogStatus,
    MessageStatus,
)


def _str_enum(enum_cls, name: str) -> SQLEnum:
    """Enum guardado como VARCHAR (sin tipo nativo) con los valores en minúscula."""
    return SQLEnum(
        enum_cls,
        name=name,
        native_enum=False,
        length=32,
        values_callable=lambda e: [x.value for x in e],
    )


class PushNotificationDelivery(Base):
    """
    Un push enviado a un contacto para un job/campaña.

    Tabla: public.push_notification_deliveries

    fallback_processed pasa de False a True una sola vez por claim, mediante
    un UPDATE condicional; solo quien gana el claim escribe el resto de campos.
    Un claim liberado (reintento) vuelve a False con un fallback_due_at nuevo.
    """

    __tablename__ = "push_notification_deliveries"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)

    organization_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )

    contact_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("contacts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    job_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("jobs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    campaign_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)

    template_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("templates.id", ondelete="SET NULL"),
        nullable=True,
    )

    custom_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    device_token: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    notification_id: Mapped[str] = mapped_column(Text, nullable=False, unique=True)

    status: Mapped[DeliveryStatus] = mapped_column(
        _str_enum(DeliveryStatus, "push_delivery_status"),
        nullable=False,
        default=DeliveryStatus.SENT,
    )

    fallback_due_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    fallback_processed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    fallback_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    fallback_claimed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    last_error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    delivered_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    sms_fallback_sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        Index("ix_push_deliveries_fallback_due", "status", "fallback_processed", "fallback_due_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<PushNotificationDelivery id={self.id} status={self.status} "
            f"processed={self.fallback_processed} attempts={self.fallback_attempts}>"
        )


class Message(Base):
    """
    Mensaje SMS de o hacia un contacto.

    Tabla: public.messages
    """

    __tablename__ = "messages"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)

    organization_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Autor del envío; NULL cuando lo genera el sistema (fallback)
    user_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    contact_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("contacts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    job_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("jobs.id", ondelete="SET NULL"),
        nullable=True,
    )

    campaign_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)

    direction: Mapped[MessageDirection] = mapped_column(
        _str_enum(MessageDirection, "message_direction"),
        nullable=False,
    )

    content: Mapped[str] = mapped_column(Text, nullable=False)

    status: Mapped[MessageStatus] = mapped_column(
        _str_enum(MessageStatus, "message_status"),
        nullable=False,
        default=MessageStatus.QUEUED,
    )

    provider_message_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<Message id={self.id} contact={self.contact_id} direction={self.direction} status={self.status}>"


class MessageLog(Base):
    """
    Evento de observabilidad por entrega. Append-only.

    Tabla: public.message_logs
    """

    __tablename__ = "message_logs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)

    organization_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, index=True)
    push_delivery_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("push_notification_deliveries.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    contact_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    job_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    campaign_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)

    event_type: Mapped[MessageLogEvent] = mapped_column(
        _str_enum(MessageLogEvent, "message_log_event"),
        nullable=False,
    )
    channel: Mapped[str] = mapped_column(String(16), nullable=False, default="sms")
    status: Mapped[MessageLogStatus] = mapped_column(
        _str_enum(MessageLogStatus, "message_log_status"),
        nullable=False,
    )

    delivery_attempt: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    provider_message_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    cost_credits: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    processing_time_ms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    scheduled_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    details: Mapped[Optional[str]] = mapped_column(Text, nullable=True)  # JSON serializado

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<MessageLog id={self.id} delivery={self.push_delivery_id} event={self.event_type}>"


__all__ = [
    "PushNotificationDelivery",
    "Message",
    "MessageLog",
]
