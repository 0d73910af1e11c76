# -*- coding: utf-8 -*-
"""
app/modules/billing/credits/memory_ledger.py

Ledger de créditos en memoria para despliegues de un solo proceso y tests.

Un asyncio.Lock por organización serializa consume/refund: los grants de un
usuario son un subconjunto de los de su organización, así que ambos scopes
comparten el mismo candado.

La organización de un usuario se toma de user_organizations (register_user)
o, si no está, del organization_resolver opcional; main lo construye sobre
UserRepository.

Autor: HeyTeam
Fecha: 2026-02-10
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from datetime import datetime
from typing import Awaitable, Callable, Optional, Sequence

from app.shared.database.base import utcnow
from .enums import CreditSourceType
from .errors import ScopeNotResolvable
from .ledger import (
    CreditLedger,
    CreditScope,
    ResolvedScope,
    apply_consumption,
    apply_refund,
    available_total,
    new_grant,
    plan_consumption,
    validate_amount,
    validate_refund,
)
from .models import CreditGrant, CreditTransaction

logger = logging.getLogger(__name__)

# user_id -> organization_id (None si el usuario no existe o no tiene)
OrganizationResolver = Callable[[str], Awaitable[Optional[str]]]


class InMemoryCreditLedger(CreditLedger):
    """Implementación en memoria (dicts + asyncio.Lock por organización)."""

    def __init__(
        self,
        user_organizations: Optional[dict[str, str]] = None,
        organization_resolver: Optional[OrganizationResolver] = None,
    ):
        self._user_organizations: dict[str, str] = dict(user_organizations or {})
        self._organization_resolver = organization_resolver
        self._grants: dict[str, CreditGrant] = {}
        self._transactions: dict[str, CreditTransaction] = {}
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def register_user(self, user_id: str, organization_id: str) -> None:
        self._user_organizations[user_id] = organization_id

    async def _resolve(self, scope: CreditScope) -> ResolvedScope:
        if not scope.is_user:
            return ResolvedScope(scope, scope.id)
        organization_id = self._user_organizations.get(scope.id)
        if not organization_id and self._organization_resolver is not None:
            organization_id = await self._organization_resolver(scope.id)
            if organization_id:
                self._user_organizations[scope.id] = organization_id
        if not organization_id:
            raise ScopeNotResolvable(scope.id)
        return ResolvedScope(scope, organization_id)

    def _grants_for(self, resolved: ResolvedScope) -> list[CreditGrant]:
        return [g for g in self._grants.values() if resolved.owns_grant(g)]

    async def grant(
        self,
        scope: CreditScope,
        source_type: CreditSourceType,
        amount: int,
        *,
        source_ref: Optional[str] = None,
        expires_at: Optional[datetime] = None,
        owner_user_id: Optional[str] = None,
    ) -> CreditGrant:
        validate_amount(amount)
        resolved = await self._resolve(scope)
        grant = new_grant(
            organization_id=resolved.organization_id,
            user_id=resolved.user_id or owner_user_id,
            source_type=source_type,
            amount=amount,
            source_ref=source_ref,
            expires_at=expires_at,
        )
        async with self._locks[resolved.organization_id]:
            self._grants[grant.id] = grant

        logger.info("Credit grant created (memory): %s source=%s amount=%s", scope, source_type.value, amount)
        return grant

    async def consume(
        self,
        scope: CreditScope,
        amount: int,
        reason: str,
        message_id: Optional[str] = None,
    ) -> list[CreditTransaction]:
        validate_amount(amount)
        resolved = await self._resolve(scope)

        async with self._locks[resolved.organization_id]:
            # Punto de suspensión dentro de la sección crítica: otro consumidor
            # puede despertar aquí, pero no puede entrar al candado.
            await asyncio.sleep(0)
            now = utcnow()
            plan = plan_consumption(self._grants_for(resolved), amount, now)
            transactions = apply_consumption(plan, resolved, reason, message_id, now)
            for tx in transactions:
                self._transactions[tx.id] = tx

        logger.info("Credits consumed (memory): %s amount=%s reason=%r", scope, amount, reason)
        return transactions

    async def refund(
        self,
        scope: CreditScope,
        transaction_ids: Sequence[str],
        reason: str,
    ) -> list[CreditTransaction]:
        resolved = await self._resolve(scope)

        async with self._locks[resolved.organization_id]:
            originals = validate_refund(resolved, transaction_ids, self._transactions)
            refunds = apply_refund(originals, self._grants, reason, utcnow())
            for tx in refunds:
                self._transactions[tx.id] = tx

        logger.info("Credits refunded (memory): %s transactions=%s", scope, len(refunds))
        return refunds

    async def total_available(self, scope: CreditScope) -> int:
        resolved = await self._resolve(scope)
        return available_total(self._grants_for(resolved), utcnow())

    async def list_grants(self, scope: CreditScope) -> list[CreditGrant]:
        resolved = await self._resolve(scope)
        return sorted(self._grants_for(resolved), key=lambda g: (g.created_at, g.id))

    async def list_transactions(self, scope: CreditScope, limit: int = 100) -> list[CreditTransaction]:
        resolved = await self._resolve(scope)
        txs = [tx for tx in self._transactions.values() if resolved.owns_transaction(tx)]
        txs.sort(key=lambda tx: tx.created_at, reverse=True)
        return txs[:limit]


__all__ = ["InMemoryCreditLedger"]

# Fin del archivo app/modules/billing/credits/memory_ledger.py
