# -*- coding: utf-8 -*-
"""
app/modules/messaging/repositories.py

Repositorios de mensajería.

PushDeliveryRepository implementa el claim optimista del fallback SMS:
un UPDATE condicional que vuelve a verificar status='sent' y
fallback_processed=false al momento de escribir. Solo las filas realmente
actualizadas (rowcount == 1) quedan reclamadas por quien ejecutó el UPDATE.

Autor: HeyTeam
Fecha: 2026-02-10
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional, Sequence

from sqlalchemy import and_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .enums import DeliveryStatus
from .models import Message, MessageLog, PushNotificationDelivery

logger = logging.getLogger(__name__)


class PushDeliveryRepository:
    """Repositorio del Delivery Record Store."""

    def add(self, session: AsyncSession, delivery: PushNotificationDelivery) -> None:
        session.add(delivery)

    async def get_by_id(self, session: AsyncSession, delivery_id: str) -> Optional[PushNotificationDelivery]:
        return await session.get(PushNotificationDelivery, delivery_id)

    async def get_by_notification_id(
        self,
        session: AsyncSession,
        notification_id: str,
    ) -> Optional[PushNotificationDelivery]:
        result = await session.execute(
            select(PushNotificationDelivery).where(
                PushNotificationDelivery.notification_id == notification_id
            )
        )
        return result.scalar_one_or_none()

    async def get_many(
        self,
        session: AsyncSession,
        delivery_ids: Sequence[str],
    ) -> list[PushNotificationDelivery]:
        if not delivery_ids:
            return []
        result = await session.execute(
            select(PushNotificationDelivery)
            .where(PushNotificationDelivery.id.in_(list(delivery_ids)))
            .order_by(PushNotificationDelivery.fallback_due_at, PushNotificationDelivery.id)
        )
        return list(result.scalars().all())

    # ===== Claim =====

    async def find_due_fallback_ids(
        self,
        session: AsyncSession,
        now: datetime,
        limit: int,
    ) -> list[str]:
        """IDs candidatos: status='sent', sin procesar y con el plazo vencido."""
        result = await session.execute(
            select(PushNotificationDelivery.id)
            .where(
                and_(
                    PushNotificationDelivery.status == DeliveryStatus.SENT,
                    PushNotificationDelivery.fallback_processed.is_(False),
                    PushNotificationDelivery.fallback_due_at.is_not(None),
                    PushNotificationDelivery.fallback_due_at < now,
                )
            )
            .order_by(PushNotificationDelivery.fallback_due_at, PushNotificationDelivery.id)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def try_claim(self, session: AsyncSession, delivery_id: str, now: datetime) -> bool:
        """
        Compare-and-swap de fallback_processed false -> true.

        Returns:
            True si esta llamada ganó el claim
        """
        result = await session.execute(
            update(PushNotificationDelivery)
            .where(
                and_(
                    PushNotificationDelivery.id == delivery_id,
                    PushNotificationDelivery.status == DeliveryStatus.SENT,
                    PushNotificationDelivery.fallback_processed.is_(False),
                    PushNotificationDelivery.fallback_due_at < now,
                )
            )
            .values(
                fallback_processed=True,
                fallback_claimed_at=now,
                fallback_attempts=PushNotificationDelivery.fallback_attempts + 1,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def release_claim(
        self,
        session: AsyncSession,
        delivery_id: str,
        retry_at: datetime,
        error: Optional[str],
    ) -> bool:
        """Devuelve una entrega reclamada a la cola con un nuevo plazo."""
        result = await session.execute(
            update(PushNotificationDelivery)
            .where(
                and_(
                    PushNotificationDelivery.id == delivery_id,
                    PushNotificationDelivery.status == DeliveryStatus.SENT,
                    PushNotificationDelivery.fallback_processed.is_(True),
                )
            )
            .values(
                fallback_processed=False,
                fallback_due_at=retry_at,
                last_error=error,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def finish_claimed(
        self,
        session: AsyncSession,
        delivery_id: str,
        status: DeliveryStatus,
        **values: Any,
    ) -> bool:
        """Escritura final del dueño del claim (sms_fallback, failed o delivered)."""
        result = await session.execute(
            update(PushNotificationDelivery)
            .where(
                and_(
                    PushNotificationDelivery.id == delivery_id,
                    PushNotificationDelivery.fallback_processed.is_(True),
                )
            )
            .values(status=status, **values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    # ===== Recibos de entrega =====

    async def mark_push_delivered(
        self,
        session: AsyncSession,
        delivery_id: str,
        now: datetime,
    ) -> bool:
        """
        sent -> delivered solo si el fallback no la ha reclamado.

        Returns:
            False si la entrega ya no estaba pendiente
        """
        result = await session.execute(
            update(PushNotificationDelivery)
            .where(
                and_(
                    PushNotificationDelivery.id == delivery_id,
                    PushNotificationDelivery.status == DeliveryStatus.SENT,
                    PushNotificationDelivery.fallback_processed.is_(False),
                )
            )
            .values(status=DeliveryStatus.DELIVERED, delivered_at=now)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1


class MessageRepository:
    """Repositorio de mensajes SMS."""

    def add(self, session: AsyncSession, message: Message) -> None:
        session.add(message)

    async def list_for_contact(self, session: AsyncSession, contact_id: str) -> list[Message]:
        result = await session.execute(
            select(Message).where(Message.contact_id == contact_id).order_by(Message.created_at)
        )
        return list(result.scalars().all())


class MessageLogRepository:
    """Repositorio del trail de eventos (append-only)."""

    def add(self, session: AsyncSession, log: MessageLog) -> None:
        session.add(log)

    async def list_for_delivery(self, session: AsyncSession, delivery_id: str) -> list[MessageLog]:
        result = await session.execute(
            select(MessageLog)
            .where(MessageLog.push_delivery_id == delivery_id)
            .order_by(MessageLog.created_at, MessageLog.id)
        )
        return list(result.scalars().all())


__all__ = [
    "PushDeliveryRepository",
    "MessageRepository",
    "MessageLogRepository",
]
