# -*- coding: utf-8 -*-
"""
app/modules/messaging/jobs/sms_fallback_job.py

Job programado de fallback SMS para push notifications no confirmadas.

Cada ciclo:
1. Claim: reclama de forma atómica (UPDATE condicional por fila) las entregas
   con status='sent', fallback_processed=false y fallback_due_at vencido.
   El claim ocurre una sola vez, antes de cualquier procesamiento en paralelo.
2. Agrupa por (campaña | 'no-campaign', job, plantilla) para leer job y
   plantilla una vez por grupo.
3. Procesa cada entrega del grupo (concurrencia acotada, sesión propia):
   contacto inexistente o teléfono inválido -> failed; opted-out -> se omite sin escrituras;
   contacto con portal -> delivered; en otro caso se renderiza y se envía el
   SMS, se registra el Message y el trail, y se cobra 1 crédito.

Reintentos: si el grupo no se puede resolver (job o contenido ausente) o hay
un error ANTES de llamar al proveedor, el claim se libera con backoff
exponencial hasta SMS_FALLBACK_MAX_ATTEMPTS; después la entrega queda failed.
Un error DESPUÉS de llamar al proveedor nunca se reintenta (no se duplica
el SMS). Tras un envío aceptado, el estado sms_fallback se confirma en su
propia transacción antes del Message y el trail, y el cobro posterior se
intenta aunque ese registro falle.

El ciclo nunca propaga excepciones: cada error queda aislado en su entrega
o grupo.

Autor: HeyTeam
Fecha: 2026-02-10
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Optional, TYPE_CHECKING

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.modules.billing.credits.errors import CreditLedgerError, InsufficientCredits
from app.modules.billing.credits.services import CREDITS_PER_MESSAGE, CreditService
from app.modules.staffing.models import Contact, Job, Template
from app.modules.staffing.repositories import ContactRepository, JobRepository, TemplateRepository
from app.shared.database.base import new_uuid, utcnow
from app.shared.integrations.sms_sender import ISmsSender
from app.shared.scheduler import SchedulerService
from app.shared.utils.phone_utils import InvalidPhoneNumber, to_e164

from ..enums import (
    DeliveryStatus,
    MessageDirection,
    MessageLogEvent,
    MessageLogStatus,
    MessageStatus,
)
from ..metrics.collectors.fallback_collectors import (
    sms_fallback_claimed_total,
    sms_fallback_credit_errors_total,
    sms_fallback_cycles_total,
    sms_fallback_outcome_total,
)
from ..models import Message, MessageLog, PushNotificationDelivery
from ..repositories import MessageLogRepository, MessageRepository, PushDeliveryRepository
from ..template_renderer import render_template

if TYPE_CHECKING:
    from app.shared.config.settings_base import BaseAppSettings

logger = logging.getLogger(__name__)

# ID del job para referencia
SMS_FALLBACK_JOB_ID = "messaging_sms_fallback"

NO_CAMPAIGN = "no-campaign"


@dataclass
class FallbackConfig:
    """Parámetros del procesador (ver SMS_FALLBACK_* en settings)."""
    batch_size: int = 200
    max_attempts: int = 3
    retry_backoff_seconds: int = 60
    max_concurrency: int = 5
    charge_before_send: bool = False

    @classmethod
    def from_settings(cls, settings: BaseAppSettings) -> "FallbackConfig":
        return cls(
            batch_size=settings.sms_fallback_batch_size,
            max_attempts=settings.sms_fallback_max_attempts,
            retry_backoff_seconds=settings.sms_fallback_retry_backoff_seconds,
            max_concurrency=settings.sms_fallback_max_concurrency,
            charge_before_send=settings.sms_fallback_charge_before_send,
        )


@dataclass
class FallbackCycleResult:
    """Resumen de un ciclo."""
    claimed: int = 0
    sent: int = 0
    failed: int = 0
    delivered_portal: int = 0
    skipped: int = 0
    requeued: int = 0
    errors: int = 0
    credit_errors: int = 0


@dataclass
class _Attempt:
    """Estado de una entrega dentro del ciclo."""
    delivery: PushNotificationDelivery
    started: float = field(default_factory=time.monotonic)
    provider_called: bool = False
    charged_tx_ids: list[str] = field(default_factory=list)

    @property
    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self.started) * 1000)


GroupKey = tuple[str, str, str]


def group_key(delivery: PushNotificationDelivery) -> GroupKey:
    return (delivery.campaign_id or NO_CAMPAIGN, delivery.job_id, delivery.template_id or "")


def group_deliveries(deliveries: list[PushNotificationDelivery]) -> dict[GroupKey, list[PushNotificationDelivery]]:
    groups: dict[GroupKey, list[PushNotificationDelivery]] = {}
    for delivery in deliveries:
        groups.setdefault(group_key(delivery), []).append(delivery)
    return groups


class SmsFallbackProcessor:
    """
    Procesador de fallbacks SMS. Dependencias inyectadas en construcción:
    session factory, SMS sender y CreditService.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        sms_sender: ISmsSender,
        credit_service: CreditService,
        config: Optional[FallbackConfig] = None,
        *,
        clock: Callable[[], datetime] = utcnow,
        delivery_repo: Optional[PushDeliveryRepository] = None,
        message_repo: Optional[MessageRepository] = None,
        log_repo: Optional[MessageLogRepository] = None,
        contact_repo: Optional[ContactRepository] = None,
        job_repo: Optional[JobRepository] = None,
        template_repo: Optional[TemplateRepository] = None,
    ):
        self._session_factory = session_factory
        self.sms_sender = sms_sender
        self.credit_service = credit_service
        self.config = config or FallbackConfig()
        self._clock = clock
        self.delivery_repo = delivery_repo or PushDeliveryRepository()
        self.message_repo = message_repo or MessageRepository()
        self.log_repo = log_repo or MessageLogRepository()
        self.contact_repo = contact_repo or ContactRepository()
        self.job_repo = job_repo or JobRepository()
        self.template_repo = template_repo or TemplateRepository()

    # ===== Ciclo =====

    async def run_cycle(self) -> FallbackCycleResult:
        """Ejecuta un ciclo completo. Nunca lanza excepciones."""
        sms_fallback_cycles_total.inc()
        result = FallbackCycleResult()

        try:
            deliveries = await self.claim_due()
        except Exception:
            logger.exception("SMS fallback claim step failed")
            result.errors += 1
            return result

        if not deliveries:
            logger.debug("No pending SMS fallbacks")
            return result

        result.claimed = len(deliveries)
        sms_fallback_claimed_total.inc(len(deliveries))
        logger.info("Processing %d pending SMS fallbacks", len(deliveries))

        for key, group in group_deliveries(deliveries).items():
            try:
                await self._process_group(key, group, result)
            except Exception:
                logger.exception("Unexpected error processing fallback group %s", key)
                result.errors += 1

        logger.info(
            "SMS fallback cycle done: claimed=%d sent=%d failed=%d delivered_portal=%d "
            "skipped=%d requeued=%d errors=%d credit_errors=%d",
            result.claimed, result.sent, result.failed, result.delivered_portal,
            result.skipped, result.requeued, result.errors, result.credit_errors,
        )
        return result

    async def claim_due(self) -> list[PushNotificationDelivery]:
        """
        Reclama las entregas vencidas. Solo las filas cuyo UPDATE condicional
        afectó una fila pertenecen a este ciclo; las demás las ganó otra
        instancia y se ignoran.
        """
        now = self._clock()
        async with self._session_factory() as session:
            candidate_ids = await self.delivery_repo.find_due_fallback_ids(
                session, now, self.config.batch_size
            )
            claimed_ids = [
                delivery_id
                for delivery_id in candidate_ids
                if await self.delivery_repo.try_claim(session, delivery_id, now)
            ]
            await session.commit()

            if len(claimed_ids) < len(candidate_ids):
                logger.info(
                    "Skipped %d fallbacks claimed by another worker",
                    len(candidate_ids) - len(claimed_ids),
                )
            return await self.delivery_repo.get_many(session, claimed_ids)

    # ===== Grupo =====

    async def _process_group(
        self,
        key: GroupKey,
        deliveries: list[PushNotificationDelivery],
        result: FallbackCycleResult,
    ) -> None:
        first = deliveries[0]
        try:
            async with self._session_factory() as session:
                job = await self.job_repo.get_by_id(session, first.job_id)
                template = None
                if first.template_id:
                    template = await self.template_repo.get_by_id(session, first.template_id)
        except Exception as e:
            logger.exception("Could not resolve fallback group %s", key)
            for delivery in deliveries:
                await self._requeue_or_fail(_Attempt(delivery), f"group resolution failed: {e}", result)
            return

        if job is None:
            logger.error("Job %s not found for fallback group %s", first.job_id, key)
            for delivery in deliveries:
                await self._requeue_or_fail(_Attempt(delivery), f"job {first.job_id} not found", result)
            return

        ready: list[PushNotificationDelivery] = []
        for delivery in deliveries:
            if delivery.custom_message or template is not None:
                ready.append(delivery)
            else:
                logger.error("No template or custom message for fallback delivery %s", delivery.id)
                await self._requeue_or_fail(_Attempt(delivery), "no template or custom message", result)

        semaphore = asyncio.Semaphore(self.config.max_concurrency)

        async def _bounded(delivery: PushNotificationDelivery) -> None:
            async with semaphore:
                await self._process_delivery(delivery, job, template, result)

        await asyncio.gather(*(_bounded(d) for d in ready))

    # ===== Entrega =====

    async def _process_delivery(
        self,
        delivery: PushNotificationDelivery,
        job: Job,
        template: Optional[Template],
        result: FallbackCycleResult,
    ) -> None:
        attempt = _Attempt(delivery)
        try:
            await self._send_fallback(attempt, job, template, result)
        except Exception as e:
            logger.exception("Error processing SMS fallback for delivery %s", delivery.id)
            if attempt.provider_called:
                result.errors += 1
                sms_fallback_outcome_total.labels(outcome="error").inc()
                await self._log_post_send_error(attempt, job, str(e))
            else:
                await self._refund_charge(attempt, job, "fallback aborted before send")
                await self._requeue_or_fail(attempt, str(e), result)

    async def _send_fallback(
        self,
        attempt: _Attempt,
        job: Job,
        template: Optional[Template],
        result: FallbackCycleResult,
    ) -> None:
        delivery = attempt.delivery
        organization_id = delivery.organization_id or job.organization_id

        # --- Fase 1: contacto, contenido y evento de disparo ---
        async with self._session_factory() as session:
            contact = await self.contact_repo.get_by_id(session, delivery.contact_id)

            if contact is None:
                logger.error("Contact %s not found for SMS fallback", delivery.contact_id)
                await self._fail_unsendable(session, delivery, job, organization_id, "contact not found", result)
                return

            if contact.is_opted_out:
                logger.debug("Skipping opted-out contact %s", contact.id)
                result.skipped += 1
                sms_fallback_outcome_total.labels(outcome="skipped").inc()
                return

            if contact.has_login:
                logger.info("Contact %s has portal login, marking delivery %s as delivered", contact.id, delivery.id)
                await self.delivery_repo.finish_claimed(
                    session, delivery.id, DeliveryStatus.DELIVERED, delivered_at=self._clock()
                )
                await session.commit()
                result.delivered_portal += 1
                sms_fallback_outcome_total.labels(outcome="delivered_portal").inc()
                return

            source = delivery.custom_message or (template.content if template else "")
            body = render_template(source, contact, job)
            try:
                to_number = to_e164(contact.country_code, contact.phone)
            except InvalidPhoneNumber as e:
                logger.error("Contact %s has an invalid phone number: %s", contact.id, e.reason)
                await self._fail_unsendable(session, delivery, job, organization_id, str(e), result)
                return

            due_at = delivery.fallback_due_at
            self.log_repo.add(session, self._log(
                delivery, job, organization_id,
                MessageLogEvent.SMS_FALLBACK_TRIGGERED, MessageLogStatus.PENDING,
                scheduled_at=due_at,
                details={
                    "reason": "Push notification not delivered within timeout",
                    "attempt": delivery.fallback_attempts,
                },
            ))
            await session.commit()

        reason = f"SMS fallback for delivery {delivery.id}"

        # --- Fase 2 (opcional): cobro previo ---
        if self.config.charge_before_send and organization_id:
            try:
                txs = await self.credit_service.consume_for_message(organization_id, reason)
            except InsufficientCredits as e:
                logger.warning(
                    "Insufficient credits for fallback delivery %s (available=%s)",
                    delivery.id, e.available,
                )
                await self._finish_failed(attempt, job, organization_id, body, str(e), result)
                return
            attempt.charged_tx_ids = [tx.id for tx in txs]

        # --- Fase 3: envío ---
        attempt.provider_called = True
        try:
            provider_id = await self.sms_sender.send(self.sms_sender.from_number, to_number, body)
        except Exception as e:
            logger.error("SMS fallback failed for contact %s: %s", contact.id, e)
            try:
                await self._finish_failed(attempt, job, organization_id, body, str(e) or type(e).__name__, result)
            finally:
                await self._refund_charge(attempt, job, "SMS fallback send failed")
            return

        # El SMS ya salió: el cobro posterior corre aunque falle el registro
        message_id: Optional[str] = None
        try:
            # --- Fase 4: estado (commit propio) ---
            async with self._session_factory() as session:
                await self.delivery_repo.finish_claimed(
                    session, delivery.id, DeliveryStatus.SMS_FALLBACK,
                    sms_fallback_sent_at=self._clock(), last_error=None,
                )
                await session.commit()

            result.sent += 1
            sms_fallback_outcome_total.labels(outcome="sent").inc()
            logger.info("SMS fallback sent for delivery %s (provider id %s)", delivery.id, provider_id)

            # --- Fase 5: Message y trail ---
            message_id = await self._record_sent(attempt, job, organization_id, contact, body, provider_id)
        finally:
            # --- Fase 6: cobro posterior (best-effort) ---
            if not self.config.charge_before_send and organization_id:
                await self._charge_after_send(organization_id, reason, message_id, result)

    async def _record_sent(
        self,
        attempt: _Attempt,
        job: Job,
        organization_id: Optional[str],
        contact: Contact,
        body: str,
        provider_id: str,
    ) -> Optional[str]:
        """Guarda el Message saliente y el evento sms_sent. Devuelve el ID del Message."""
        delivery = attempt.delivery
        message_id = new_uuid() if organization_id else None
        async with self._session_factory() as session:
            if message_id:
                self.message_repo.add(session, Message(
                    id=message_id,
                    organization_id=organization_id,
                    contact_id=contact.id,
                    job_id=job.id,
                    campaign_id=delivery.campaign_id,
                    direction=MessageDirection.OUTBOUND,
                    content=body,
                    status=MessageStatus.SENT,
                    provider_message_id=provider_id,
                ))
            self.log_repo.add(session, self._log(
                delivery, job, organization_id,
                MessageLogEvent.SMS_SENT, MessageLogStatus.SUCCESS,
                provider_message_id=provider_id,
                cost_credits=CREDITS_PER_MESSAGE,
                processing_time_ms=attempt.elapsed_ms,
                details={"is_fallback": True, "country_code": contact.country_code},
            ))
            await session.commit()
        return message_id

    async def _fail_unsendable(
        self,
        session: AsyncSession,
        delivery: PushNotificationDelivery,
        job: Job,
        organization_id: Optional[str],
        error: str,
        result: FallbackCycleResult,
    ) -> None:
        """Fallo terminal antes del envío (contacto inexistente o teléfono inválido)."""
        await self.delivery_repo.finish_claimed(
            session, delivery.id, DeliveryStatus.FAILED, last_error=error
        )
        self.log_repo.add(session, self._log(
            delivery, job, organization_id,
            MessageLogEvent.SMS_FAILED, MessageLogStatus.FAILED,
            error_message=error,
        ))
        await session.commit()
        result.failed += 1
        sms_fallback_outcome_total.labels(outcome="failed").inc()

    async def _charge_after_send(
        self,
        organization_id: str,
        reason: str,
        message_id: Optional[str],
        result: FallbackCycleResult,
    ) -> None:
        try:
            await self.credit_service.consume_for_message(organization_id, reason, message_id)
        except InsufficientCredits as e:
            result.credit_errors += 1
            sms_fallback_credit_errors_total.labels(reason="insufficient_credits").inc()
            logger.error(
                "Fallback SMS sent but organization %s has no credits left (shortfall=%s)",
                organization_id, e.shortfall,
            )
        except CreditLedgerError as e:
            result.credit_errors += 1
            sms_fallback_credit_errors_total.labels(reason=type(e).__name__).inc()
            logger.error("Failed to consume credit for fallback SMS (org %s): %s", organization_id, e)
        except Exception:
            result.credit_errors += 1
            sms_fallback_credit_errors_total.labels(reason="unexpected").inc()
            logger.exception("Unexpected error consuming credit for fallback SMS (org %s)", organization_id)

    async def _finish_failed(
        self,
        attempt: _Attempt,
        job: Job,
        organization_id: Optional[str],
        body: str,
        error: str,
        result: FallbackCycleResult,
    ) -> None:
        delivery = attempt.delivery
        async with self._session_factory() as session:
            await self.delivery_repo.finish_claimed(
                session, delivery.id, DeliveryStatus.FAILED, last_error=error
            )
            if organization_id and attempt.provider_called:
                self.message_repo.add(session, Message(
                    organization_id=organization_id,
                    contact_id=delivery.contact_id,
                    job_id=job.id,
                    campaign_id=delivery.campaign_id,
                    direction=MessageDirection.OUTBOUND,
                    content=body,
                    status=MessageStatus.FAILED,
                ))
            self.log_repo.add(session, self._log(
                delivery, job, organization_id,
                MessageLogEvent.SMS_FAILED, MessageLogStatus.FAILED,
                error_message=error,
                processing_time_ms=attempt.elapsed_ms,
                details={"is_fallback": True},
            ))
            await session.commit()
        result.failed += 1
        sms_fallback_outcome_total.labels(outcome="failed").inc()

    async def _refund_charge(self, attempt: _Attempt, job: Job, reason: str) -> None:
        """Revierte el cobro previo (modo charge_before_send). Best-effort."""
        if not attempt.charged_tx_ids:
            return
        organization_id = attempt.delivery.organization_id or job.organization_id
        try:
            await self.credit_service.refund_credits_for_organization(
                organization_id, attempt.charged_tx_ids, reason
            )
            attempt.charged_tx_ids = []
        except Exception:
            logger.exception("Could not refund fallback charge for delivery %s", attempt.delivery.id)

    async def _requeue_or_fail(self, attempt: _Attempt, error: str, result: FallbackCycleResult) -> None:
        """Libera el claim con backoff, o marca failed si se agotaron los intentos."""
        delivery = attempt.delivery
        attempts = delivery.fallback_attempts
        try:
            async with self._session_factory() as session:
                if attempts >= self.config.max_attempts:
                    await self.delivery_repo.finish_claimed(
                        session, delivery.id, DeliveryStatus.FAILED, last_error=error
                    )
                    self.log_repo.add(session, self._log(
                        delivery, None, delivery.organization_id,
                        MessageLogEvent.SMS_FAILED, MessageLogStatus.FAILED,
                        error_message=f"giving up after {attempts} attempts: {error}",
                    ))
                    await session.commit()
                    result.failed += 1
                    sms_fallback_outcome_total.labels(outcome="failed").inc()
                    logger.error(
                        "SMS fallback for delivery %s failed after %d attempts: %s",
                        delivery.id, attempts, error,
                    )
                    return

                retry_at = self._clock() + timedelta(
                    seconds=self.config.retry_backoff_seconds * 2 ** max(attempts - 1, 0)
                )
                released = await self.delivery_repo.release_claim(session, delivery.id, retry_at, error)
                if not released:
                    logger.warning(
                        "Fallback delivery %s is no longer claimed; not requeued", delivery.id
                    )
                    return
                self.log_repo.add(session, self._log(
                    delivery, None, delivery.organization_id,
                    MessageLogEvent.SMS_FALLBACK_REQUEUED, MessageLogStatus.PENDING,
                    error_message=error,
                    scheduled_at=retry_at,
                ))
                await session.commit()
        except Exception:
            logger.exception("Could not requeue fallback delivery %s", delivery.id)
            result.errors += 1
            return

        result.requeued += 1
        sms_fallback_outcome_total.labels(outcome="requeued").inc()
        logger.warning(
            "SMS fallback for delivery %s requeued (attempt %d/%d) until %s: %s",
            delivery.id, attempts, self.config.max_attempts, retry_at.isoformat(), error,
        )

    async def _log_post_send_error(self, attempt: _Attempt, job: Job, error: str) -> None:
        try:
            async with self._session_factory() as session:
                self.log_repo.add(session, self._log(
                    attempt.delivery, job, attempt.delivery.organization_id or job.organization_id,
                    MessageLogEvent.SMS_FAILED, MessageLogStatus.FAILED,
                    error_message=error,
                    processing_time_ms=attempt.elapsed_ms,
                    details={"is_fallback": True, "after_send": True},
                ))
                await session.commit()
        except Exception:
            logger.exception("Failed to log fallback error for delivery %s", attempt.delivery.id)

    def _log(
        self,
        delivery: PushNotificationDelivery,
        job: Optional[Job],
        organization_id: Optional[str],
        event: MessageLogEvent,
        status: MessageLogStatus,
        *,
        details: Optional[dict] = None,
        **fields,
    ) -> MessageLog:
        return MessageLog(
            organization_id=organization_id,
            push_delivery_id=delivery.id,
            contact_id=delivery.contact_id,
            job_id=job.id if job is not None else delivery.job_id,
            campaign_id=delivery.campaign_id,
            event_type=event,
            channel="sms",
            status=status,
            delivery_attempt=delivery.fallback_attempts or 1,
            details=json.dumps(details) if details else None,
            **fields,
        )


def register_sms_fallback_job(
    scheduler: SchedulerService,
    processor: SmsFallbackProcessor,
    interval_seconds: int = 15,
) -> str:
    """
    Registra el ciclo de fallback como job por intervalo.

    El scheduler usa max_instances=1 y coalesce: en un proceso los ciclos
    nunca se solapan; entre procesos, el claim condicional evita duplicados.

    Returns:
        ID del job registrado
    """
    job_id = scheduler.add_interval_job(
        func=processor.run_cycle,
        job_id=SMS_FALLBACK_JOB_ID,
        seconds=interval_seconds,
    )
    logger.info(
        "Registered SMS fallback job: id=%s interval=%ds",
        job_id,
        interval_seconds,
    )
    return job_id


__all__ = [
    "SMS_FALLBACK_JOB_ID",
    "FallbackConfig",
    "FallbackCycleResult",
    "SmsFallbackProcessor",
    "group_deliveries",
    "register_sms_fallback_job",
]

# Fin del archivo app/modules/messaging/jobs/sms_fallback_job.py
