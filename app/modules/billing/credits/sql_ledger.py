# -*- coding: utf-8 -*-
"""
app/modules/billing/credits/sql_ledger.py

Ledger de créditos sobre SQLAlchemy async.

Cada operación abre su propia sesión y transacción. consume/refund bloquean
los grants del scope con SELECT ... FOR UPDATE antes de leerlos, de modo que
dos consumidores concurrentes nunca observan el mismo saldo (multi-proceso).

Autor: HeyTeam
Fecha: 2026-02-10
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.modules.staffing.repositories import UserRepository
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
from .repositories import CreditGrantRepository, CreditTransactionRepository

logger = logging.getLogger(__name__)


class SqlCreditLedger(CreditLedger):
    """Implementación persistente (PostgreSQL en producción)."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        grant_repo: Optional[CreditGrantRepository] = None,
        tx_repo: Optional[CreditTransactionRepository] = None,
        user_repo: Optional[UserRepository] = None,
    ):
        self._session_factory = session_factory
        self.grant_repo = grant_repo or CreditGrantRepository()
        self.tx_repo = tx_repo or CreditTransactionRepository()
        self.user_repo = user_repo or UserRepository()

    async def _resolve(self, session: AsyncSession, scope: CreditScope) -> ResolvedScope:
        if not scope.is_user:
            return ResolvedScope(scope, scope.id)
        organization_id = await self.user_repo.get_organization_id(session, scope.id)
        if not organization_id:
            raise ScopeNotResolvable(scope.id)
        return ResolvedScope(scope, organization_id)

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

        async with self._session_factory() as session:
            async with session.begin():
                resolved = await self._resolve(session, scope)
                grant = new_grant(
                    organization_id=resolved.organization_id,
                    user_id=resolved.user_id or owner_user_id,
                    source_type=source_type,
                    amount=amount,
                    source_ref=source_ref,
                    expires_at=expires_at,
                )
                self.grant_repo.add(session, grant)

        logger.info(
            "Credit grant created: %s source=%s amount=%s expires_at=%s grant_id=%s",
            scope, source_type.value, amount, expires_at, grant.id,
        )
        return grant

    async def consume(
        self,
        scope: CreditScope,
        amount: int,
        reason: str,
        message_id: Optional[str] = None,
    ) -> list[CreditTransaction]:
        validate_amount(amount)

        async with self._session_factory() as session:
            async with session.begin():
                resolved = await self._resolve(session, scope)
                grants = await self.grant_repo.list_for_scope(
                    session,
                    resolved.organization_id,
                    resolved.user_id,
                    for_update=True,
                )
                now = utcnow()
                plan = plan_consumption(grants, amount, now)
                transactions = apply_consumption(plan, resolved, reason, message_id, now)
                self.tx_repo.add_all(session, transactions)

        logger.info(
            "Credits consumed: %s amount=%s grants_touched=%s reason=%r",
            scope, amount, len(transactions), reason,
        )
        return transactions

    async def refund(
        self,
        scope: CreditScope,
        transaction_ids: Sequence[str],
        reason: str,
    ) -> list[CreditTransaction]:
        async with self._session_factory() as session:
            async with session.begin():
                resolved = await self._resolve(session, scope)
                # Mismo orden de bloqueo que consume: primero los grants del scope
                grants = await self.grant_repo.list_for_scope(
                    session,
                    resolved.organization_id,
                    resolved.user_id,
                    for_update=True,
                )
                txs = await self.tx_repo.get_many(session, transaction_ids, for_update=True)
                originals = validate_refund(resolved, transaction_ids, txs)
                refunds = apply_refund(originals, {g.id: g for g in grants}, reason, utcnow())
                self.tx_repo.add_all(session, refunds)

        logger.info(
            "Credits refunded: %s transactions=%s total=%s reason=%r",
            scope, len(refunds), sum(r.delta for r in refunds), reason,
        )
        return refunds

    async def total_available(self, scope: CreditScope) -> int:
        async with self._session_factory() as session:
            resolved = await self._resolve(session, scope)
            grants = await self.grant_repo.list_for_scope(
                session, resolved.organization_id, resolved.user_id
            )
            return available_total(grants, utcnow())

    async def list_grants(self, scope: CreditScope) -> list[CreditGrant]:
        async with self._session_factory() as session:
            resolved = await self._resolve(session, scope)
            return await self.grant_repo.list_for_scope(
                session, resolved.organization_id, resolved.user_id
            )

    async def list_transactions(self, scope: CreditScope, limit: int = 100) -> list[CreditTransaction]:
        async with self._session_factory() as session:
            resolved = await self._resolve(session, scope)
            return await self.tx_repo.list_for_scope(
                session, resolved.organization_id, resolved.user_id, limit=limit
            )


__all__ = ["SqlCreditLedger"]

# Fin del archivo app/modules/billing/credits/sql_ledger.py
