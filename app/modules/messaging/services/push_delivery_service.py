# -*- coding: utf-8 -*-
"""
app/modules/messaging/services/push_delivery_service.py

Registro de pushes enviados y confirmación de entrega.

- record_push_sent: crea la PushNotificationDelivery con su plazo de
  fallback (now + SMS_FALLBACK_DELAY_SECONDS) y el evento
  sms_fallback_scheduled.
- confirm_delivery: recibo del dispositivo. Solo transiciona sent ->
  delivered si el job de fallback no la reclamó todavía.

Autor: HeyTeam
Fecha: 2026-02-10
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.shared.config.settings_base import BaseAppSettings
from app.shared.database.base import utcnow
from ..enums import DeliveryStatus, MessageLogEvent, MessageLogStatus
from ..errors import DeliveryNotFound, DeliveryOwnershipError
from ..models import MessageLog, PushNotificationDelivery
from ..repositories import MessageLogRepository, PushDeliveryRepository

logger = logging.getLogger(__name__)


class PushDeliveryService:
    """Servicio de entregas push."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        settings: BaseAppSettings,
        *,
        clock: Callable[[], datetime] = utcnow,
        delivery_repo: Optional[PushDeliveryRepository] = None,
        log_repo: Optional[MessageLogRepository] = None,
    ):
        self._session_factory = session_factory
        self.settings = settings
        self._clock = clock
        self.delivery_repo = delivery_repo or PushDeliveryRepository()
        self.log_repo = log_repo or MessageLogRepository()

    async def record_push_sent(
        self,
        *,
        contact_id: str,
        job_id: str,
        notification_id: str,
        organization_id: Optional[str] = None,
        campaign_id: Optional[str] = None,
        template_id: Optional[str] = None,
        custom_message: Optional[str] = None,
        device_token: Optional[str] = None,
    ) -> PushNotificationDelivery:
        """Registra un push enviado y agenda su fallback SMS."""
        now = self._clock()
        due_at = now + timedelta(seconds=self.settings.sms_fallback_delay_seconds)

        delivery = PushNotificationDelivery(
            organization_id=organization_id,
            contact_id=contact_id,
            job_id=job_id,
            campaign_id=campaign_id,
            template_id=template_id,
            custom_message=custom_message,
            device_token=device_token,
            notification_id=notification_id,
            status=DeliveryStatus.SENT,
            fallback_due_at=due_at,
            fallback_processed=False,
            fallback_attempts=0,
            created_at=now,
        )

        async with self._session_factory() as session:
            self.delivery_repo.add(session, delivery)
            await session.flush()
            self.log_repo.add(session, MessageLog(
                organization_id=organization_id,
                push_delivery_id=delivery.id,
                contact_id=contact_id,
                job_id=job_id,
                campaign_id=campaign_id,
                event_type=MessageLogEvent.SMS_FALLBACK_SCHEDULED,
                channel="push",
                status=MessageLogStatus.PENDING,
                scheduled_at=due_at,
                details=json.dumps({"delay_seconds": self.settings.sms_fallback_delay_seconds}),
            ))
            await session.commit()

        logger.info(
            "Push %s recorded for contact %s, SMS fallback due at %s",
            notification_id, contact_id, due_at.isoformat(),
        )
        return delivery

    async def confirm_delivery(self, notification_id: str, contact_id: str) -> bool:
        """
        Confirma la entrega de un push.

        Returns:
            True si la entrega pasó a delivered; False si ya no estaba
            pendiente (confirmada antes o reclamada por el fallback)

        Raises:
            DeliveryNotFound: notification_id desconocido
            DeliveryOwnershipError: el contacto no es el destinatario
        """
        async with self._session_factory() as session:
            delivery = await self.delivery_repo.get_by_notification_id(session, notification_id)
            if delivery is None:
                raise DeliveryNotFound(notification_id)
            if delivery.contact_id != contact_id:
                logger.warning(
                    "Contact %s tried to confirm delivery %s owned by %s",
                    contact_id, notification_id, delivery.contact_id,
                )
                raise DeliveryOwnershipError(notification_id, contact_id)

            now = self._clock()
            updated = await self.delivery_repo.mark_push_delivered(session, delivery.id, now)
            if not updated:
                await session.rollback()
                logger.info(
                    "Delivery %s no longer pending (status=%s), receipt ignored",
                    notification_id, delivery.status,
                )
                return False

            self.log_repo.add(session, MessageLog(
                organization_id=delivery.organization_id,
                push_delivery_id=delivery.id,
                contact_id=delivery.contact_id,
                job_id=delivery.job_id,
                campaign_id=delivery.campaign_id,
                event_type=MessageLogEvent.PUSH_DELIVERED,
                channel="push",
                status=MessageLogStatus.SUCCESS,
            ))
            await session.commit()

        logger.info("Push delivery %s confirmed by contact %s", notification_id, contact_id)
        return True


__all__ = ["PushDeliveryService"]

# Fin del archivo app/modules/messaging/services/push_delivery_service.py
