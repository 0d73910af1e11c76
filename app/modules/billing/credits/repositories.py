# -*- coding: utf-8 -*-
"""
app/modules/billing/credits/repositories.py

Repositorios para el sistema de créditos.

Autor: HeyTeam
Fecha: 2026-02-10
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import CreditGrant, CreditTransaction

logger = logging.getLogger(__name__)


class CreditGrantRepository:
    """Repositorio de grants (Grant Store)."""

    async def list_for_scope(
        self,
        session: AsyncSession,
        organization_id: str,
        user_id: Optional[str] = None,
        *,
        for_update: bool = False,
    ) -> list[CreditGrant]:
        """
        Grants de una organización (o solo los de un usuario dentro de ella).

        Con for_update=True bloquea las filas (SELECT ... FOR UPDATE) hasta
        el fin de la transacción: consumidores concurrentes del mismo scope
        se serializan aquí.
        """
        stmt = select(CreditGrant).where(CreditGrant.organization_id == organization_id)
        if user_id is not None:
            stmt = stmt.where(CreditGrant.user_id == user_id)
        stmt = stmt.order_by(CreditGrant.created_at, CreditGrant.id)
        if for_update:
            stmt = stmt.with_for_update()

        result = await session.execute(stmt)
        return list(result.scalars().all())

    async def get_many(
        self,
        session: AsyncSession,
        grant_ids: Iterable[str],
        *,
        for_update: bool = False,
    ) -> dict[str, CreditGrant]:
        ids = list(set(grant_ids))
        if not ids:
            return {}
        stmt = select(CreditGrant).where(CreditGrant.id.in_(ids)).order_by(CreditGrant.id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await session.execute(stmt)
        return {g.id: g for g in result.scalars().all()}

    def add(self, session: AsyncSession, grant: CreditGrant) -> None:
        session.add(grant)


class CreditTransactionRepository:
    """Repositorio del ledger de transacciones (append-only)."""

    async def get_many(
        self,
        session: AsyncSession,
        transaction_ids: Sequence[str],
        *,
        for_update: bool = False,
    ) -> dict[str, CreditTransaction]:
        ids = list(set(transaction_ids))
        if not ids:
            return {}
        stmt = select(CreditTransaction).where(CreditTransaction.id.in_(ids)).order_by(CreditTransaction.id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await session.execute(stmt)
        return {tx.id: tx for tx in result.scalars().all()}

    async def list_for_scope(
        self,
        session: AsyncSession,
        organization_id: str,
        user_id: Optional[str] = None,
        *,
        limit: int = 100,
    ) -> list[CreditTransaction]:
        stmt = select(CreditTransaction).where(CreditTransaction.organization_id == organization_id)
        if user_id is not None:
            stmt = stmt.where(CreditTransaction.user_id == user_id)
        stmt = stmt.order_by(CreditTransaction.created_at.desc(), CreditTransaction.id).limit(limit)

        result = await session.execute(stmt)
        return list(result.scalars().all())

    def add_all(self, session: AsyncSession, transactions: Sequence[CreditTransaction]) -> None:
        session.add_all(transactions)


__all__ = [
    "CreditGrantRepository",
    "CreditTransactionRepository",
]
