# -*- coding: utf-8 -*-
"""
app/modules/billing/credits/services.py

Servicio de créditos: traduce intenciones de dominio (trial de bienvenida,
renovación de suscripción, compra de paquete, envío de un mensaje,
reembolso por fallo) a operaciones del CreditLedger.

No contiene reglas de consumo; esas viven en ledger.py.

Autor: HeyTeam
Fecha: 2026-02-10
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Sequence

from app.shared.config.settings_base import BaseAppSettings
from app.shared.database.base import ensure_utc, utcnow
from .enums import CreditSourceType
from .errors import InsufficientCredits
from .ledger import CreditLedger, CreditScope, is_grant_active, validate_amount
from .metrics.collectors.credit_collectors import (
    credits_consumed_total,
    credits_granted_total,
    credits_insufficient_total,
    credits_refunded_total,
)
from .models import CreditGrant, CreditTransaction

logger = logging.getLogger(__name__)

# Créditos por SMS enviado
CREDITS_PER_MESSAGE = 1


@dataclass
class CreditBreakdown:
    """Créditos vigentes por origen, más lo que quedó sin usar en grants expirados."""
    total: int = 0
    trial: int = 0
    subscription: int = 0
    bundle: int = 0
    expired: int = 0


def build_breakdown(grants: Sequence[CreditGrant], now: Optional[datetime] = None) -> CreditBreakdown:
    now = now or utcnow()
    breakdown = CreditBreakdown()
    for grant in grants:
        expires_at = ensure_utc(grant.expires_at)
        if expires_at is not None and expires_at <= now:
            breakdown.expired += grant.credits_remaining
            continue
        if not is_grant_active(grant, now):
            continue
        breakdown.total += grant.credits_remaining
        if grant.source_type == CreditSourceType.TRIAL:
            breakdown.trial += grant.credits_remaining
        elif grant.source_type == CreditSourceType.SUBSCRIPTION:
            breakdown.subscription += grant.credits_remaining
        elif grant.source_type == CreditSourceType.BUNDLE:
            breakdown.bundle += grant.credits_remaining
    return breakdown


class CreditService:
    """
    Fachada de créditos usada por rutas, envíos interactivos y el job de
    fallback SMS. El ledger se inyecta en construcción.
    """

    def __init__(self, ledger: CreditLedger, settings: BaseAppSettings):
        self.ledger = ledger
        self.settings = settings

    # ===== Grants =====

    async def grant_credits(
        self,
        scope: CreditScope,
        source_type: CreditSourceType,
        amount: int,
        *,
        source_ref: Optional[str] = None,
        expires_at: Optional[datetime] = None,
        owner_user_id: Optional[str] = None,
    ) -> CreditGrant:
        grant = await self.ledger.grant(
            scope,
            source_type,
            amount,
            source_ref=source_ref,
            expires_at=expires_at,
            owner_user_id=owner_user_id,
        )
        credits_granted_total.labels(source=source_type.value).inc(amount)
        return grant

    async def grant_trial_credits(self, user_id: str) -> CreditGrant:
        """Créditos de bienvenida al registrarse (TRIAL_CREDITS)."""
        expires_at = None
        if self.settings.trial_days:
            expires_at = utcnow() + timedelta(days=self.settings.trial_days)
        return await self.grant_credits(
            CreditScope.user(user_id),
            CreditSourceType.TRIAL,
            self.settings.trial_credits,
            source_ref="signup",
            expires_at=expires_at,
        )

    async def grant_subscription_credits(
        self,
        user_id: str,
        amount: int,
        subscription_ref: str,
        period_end: Optional[datetime] = None,
    ) -> CreditGrant:
        """Créditos de una renovación; expiran al fin del periodo facturado."""
        expires_at = period_end or (
            utcnow() + timedelta(days=self.settings.subscription_fallback_period_days)
        )
        return await self.grant_credits(
            CreditScope.user(user_id),
            CreditSourceType.SUBSCRIPTION,
            amount,
            source_ref=subscription_ref,
            expires_at=expires_at,
        )

    async def grant_bundle_credits(self, user_id: str, amount: int, purchase_ref: str) -> CreditGrant:
        """Créditos de un paquete comprado; expiración larga (BUNDLE_EXPIRY_YEARS)."""
        now = utcnow()
        try:
            expires_at = now.replace(year=now.year + self.settings.bundle_expiry_years)
        except ValueError:
            # 29 de febrero en año no bisiesto
            expires_at = now.replace(year=now.year + self.settings.bundle_expiry_years, day=28)
        return await self.grant_credits(
            CreditScope.user(user_id),
            CreditSourceType.BUNDLE,
            amount,
            source_ref=purchase_ref,
            expires_at=expires_at,
        )

    # ===== Consumo =====

    async def _consume(
        self,
        scope: CreditScope,
        amount: int,
        reason: str,
        message_id: Optional[str],
    ) -> list[CreditTransaction]:
        try:
            transactions = await self.ledger.consume(scope, amount, reason, message_id)
        except InsufficientCredits as e:
            credits_insufficient_total.labels(scope=scope.kind.value).inc()
            logger.warning(
                "Insufficient credits for %s: available=%s required=%s",
                scope, e.available, e.required,
            )
            raise
        credits_consumed_total.labels(scope=scope.kind.value).inc(amount)
        return transactions

    async def consume_credits(
        self,
        user_id: str,
        amount: int,
        reason: str,
        message_id: Optional[str] = None,
    ) -> list[CreditTransaction]:
        return await self._consume(CreditScope.user(user_id), amount, reason, message_id)

    async def consume_credits_for_organization(
        self,
        organization_id: str,
        amount: int,
        reason: str,
        message_id: Optional[str] = None,
    ) -> list[CreditTransaction]:
        return await self._consume(CreditScope.organization(organization_id), amount, reason, message_id)

    async def consume_for_message(
        self,
        organization_id: str,
        reason: str,
        message_id: Optional[str] = None,
    ) -> list[CreditTransaction]:
        """Cobra el envío de un SMS a la organización."""
        return await self.consume_credits_for_organization(
            organization_id, CREDITS_PER_MESSAGE, reason, message_id
        )

    # ===== Reembolsos =====

    async def _refund(
        self,
        scope: CreditScope,
        transaction_ids: Sequence[str],
        reason: str,
    ) -> list[CreditTransaction]:
        refunds = await self.ledger.refund(scope, transaction_ids, reason)
        credits_refunded_total.labels(scope=scope.kind.value).inc(sum(tx.delta for tx in refunds))
        return refunds

    async def refund_credits(
        self,
        user_id: str,
        transaction_ids: Sequence[str],
        reason: str,
    ) -> list[CreditTransaction]:
        return await self._refund(CreditScope.user(user_id), transaction_ids, reason)

    async def refund_credits_for_organization(
        self,
        organization_id: str,
        transaction_ids: Sequence[str],
        reason: str,
    ) -> list[CreditTransaction]:
        return await self._refund(CreditScope.organization(organization_id), transaction_ids, reason)

    # ===== Consultas =====

    async def get_available_credits(self, user_id: str) -> int:
        return await self.ledger.total_available(CreditScope.user(user_id))

    async def get_available_credits_for_organization(self, organization_id: str) -> int:
        return await self.ledger.total_available(CreditScope.organization(organization_id))

    async def ensure_credits_available(self, organization_id: str, required: int) -> None:
        """
        Verifica saldo antes de despachar un envío.

        Raises:
            InvalidAmount: si required no es positivo
            InsufficientCredits: con el faltante, si no alcanza
        """
        validate_amount(required)
        available = await self.get_available_credits_for_organization(organization_id)
        if available < required:
            raise InsufficientCredits(available=available, required=required)

    async def get_credit_breakdown(self, user_id: str) -> CreditBreakdown:
        grants = await self.ledger.list_grants(CreditScope.user(user_id))
        return build_breakdown(grants)

    async def get_credit_breakdown_for_organization(self, organization_id: str) -> CreditBreakdown:
        grants = await self.ledger.list_grants(CreditScope.organization(organization_id))
        return build_breakdown(grants)


__all__ = [
    "CREDITS_PER_MESSAGE",
    "CreditBreakdown",
    "CreditService",
    "build_breakdown",
]
