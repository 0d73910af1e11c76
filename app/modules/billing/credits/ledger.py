# -*- coding: utf-8 -*-
"""
app/modules/billing/credits/ledger.py

Contrato del ledger de créditos y reglas puras compartidas por sus
implementaciones (SQL con bloqueo de filas y memoria con asyncio.Lock).

Reglas:
- Un grant es vigente si credits_remaining > 0 y no ha expirado.
- Orden de consumo: expires_at ascendente, los grants sin expiración al
  final; empates por created_at ascendente (el más antiguo primero).
- Si el total vigente no alcanza, se rechaza sin efectos (todo o nada).
- Solo los consumos (delta < 0) se reembolsan, una sola vez.

Autor: HeyTeam
Fecha: 2026-02-10
"""

from __future__ import annotations

import abc
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional, Sequence

from app.shared.database.base import ensure_utc, new_uuid, utcnow
from .enums import CreditScopeKind, CreditSourceType
from .errors import (
    AlreadyRefunded,
    GrantNotFound,
    InsufficientCredits,
    InvalidAmount,
    NotAConsumption,
    ScopeMismatch,
    TransactionNotFound,
)
from .models import CreditGrant, CreditTransaction

REFUND_REASON_PREFIX = "Refund: "


# ===== SCOPE =====

@dataclass(frozen=True)
class CreditScope:
    """Frontera contable: un usuario o una organización."""
    kind: CreditScopeKind
    id: str

    @classmethod
    def user(cls, user_id: str) -> "CreditScope":
        return cls(CreditScopeKind.USER, user_id)

    @classmethod
    def organization(cls, organization_id: str) -> "CreditScope":
        return cls(CreditScopeKind.ORGANIZATION, organization_id)

    @property
    def is_user(self) -> bool:
        return self.kind == CreditScopeKind.USER

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.id}"


@dataclass(frozen=True)
class ResolvedScope:
    """Scope con la organización dueña ya resuelta."""
    scope: CreditScope
    organization_id: str

    @property
    def user_id(self) -> Optional[str]:
        return self.scope.id if self.scope.is_user else None

    def owns_grant(self, grant: CreditGrant) -> bool:
        if grant.organization_id != self.organization_id:
            return False
        return self.user_id is None or grant.user_id == self.user_id

    def owns_transaction(self, tx: CreditTransaction) -> bool:
        if tx.organization_id != self.organization_id:
            return False
        return self.user_id is None or tx.user_id == self.user_id


# ===== CONTRATO =====

class CreditLedger(abc.ABC):
    """
    Motor de créditos. Todas las operaciones de escritura son atómicas
    respecto a llamadas concurrentes sobre el mismo scope.
    """

    @abc.abstractmethod
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
        """Crea un grant nuevo (consumed=0, remaining=amount)."""

    @abc.abstractmethod
    async def consume(
        self,
        scope: CreditScope,
        amount: int,
        reason: str,
        message_id: Optional[str] = None,
    ) -> list[CreditTransaction]:
        """Consume `amount` créditos FIFO-por-expiración; una transacción por grant tocado."""

    @abc.abstractmethod
    async def refund(
        self,
        scope: CreditScope,
        transaction_ids: Sequence[str],
        reason: str,
    ) -> list[CreditTransaction]:
        """Revierte consumos; todo o nada."""

    @abc.abstractmethod
    async def total_available(self, scope: CreditScope) -> int:
        """Suma de credits_remaining de los grants vigentes."""

    @abc.abstractmethod
    async def list_grants(self, scope: CreditScope) -> list[CreditGrant]:
        """Todos los grants del scope (incluye agotados y expirados)."""

    @abc.abstractmethod
    async def list_transactions(self, scope: CreditScope, limit: int = 100) -> list[CreditTransaction]:
        """Transacciones del scope, las más recientes primero."""


# ===== REGLAS PURAS =====

def validate_amount(amount: int) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise InvalidAmount(amount)


def is_grant_active(grant: CreditGrant, now: datetime) -> bool:
    if grant.credits_remaining <= 0:
        return False
    expires_at = ensure_utc(grant.expires_at)
    return expires_at is None or expires_at > now


def consumption_order(grants: Iterable[CreditGrant], now: datetime) -> list[CreditGrant]:
    """Grants vigentes en el orden en que deben consumirse."""
    active = [g for g in grants if is_grant_active(g, now)]

    def _key(g: CreditGrant):
        expires_at = ensure_utc(g.expires_at)
        return (
            expires_at is None,
            expires_at or now,
            ensure_utc(g.created_at),
            g.id,
        )

    return sorted(active, key=_key)


def available_total(grants: Iterable[CreditGrant], now: datetime) -> int:
    return sum(g.credits_remaining for g in grants if is_grant_active(g, now))


def plan_consumption(
    grants: Iterable[CreditGrant],
    amount: int,
    now: datetime,
) -> list[tuple[CreditGrant, int]]:
    """
    Calcula cuánto tomar de cada grant sin mutar nada.

    Raises:
        InsufficientCredits: si el total vigente es menor que amount
    """
    ordered = consumption_order(grants, now)
    available = sum(g.credits_remaining for g in ordered)
    if available < amount:
        raise InsufficientCredits(available=available, required=amount)

    plan: list[tuple[CreditGrant, int]] = []
    needed = amount
    for grant in ordered:
        if needed == 0:
            break
        take = min(needed, grant.credits_remaining)
        plan.append((grant, take))
        needed -= take
    return plan


def apply_consumption(
    plan: Sequence[tuple[CreditGrant, int]],
    resolved: ResolvedScope,
    reason: str,
    message_id: Optional[str],
    now: datetime,
) -> list[CreditTransaction]:
    """Muta los grants del plan y construye una transacción por grant."""
    transactions: list[CreditTransaction] = []
    for grant, take in plan:
        grant.credits_consumed += take
        grant.credits_remaining -= take
        transactions.append(
            new_transaction(
                organization_id=resolved.organization_id,
                user_id=resolved.user_id or grant.user_id,
                grant_id=grant.id,
                delta=-take,
                reason=reason,
                message_id=message_id,
                created_at=now,
            )
        )
    return transactions


def validate_refund(
    resolved: ResolvedScope,
    transaction_ids: Sequence[str],
    transactions_by_id: dict[str, CreditTransaction],
) -> list[CreditTransaction]:
    """
    Verifica las precondiciones de reembolso de todas las transacciones
    antes de tocar cualquier grant.

    Returns:
        Transacciones originales, en el orden solicitado
    """
    seen: set[str] = set()
    originals: list[CreditTransaction] = []
    for tx_id in transaction_ids:
        tx = transactions_by_id.get(tx_id)
        if tx is None:
            raise TransactionNotFound(tx_id)
        if not resolved.owns_transaction(tx):
            raise ScopeMismatch(tx_id, resolved.scope)
        if tx.delta >= 0:
            raise NotAConsumption(tx_id, tx.delta)
        if tx.refunded_at is not None or tx_id in seen:
            raise AlreadyRefunded(tx_id)
        seen.add(tx_id)
        originals.append(tx)
    return originals


def apply_refund(
    originals: Sequence[CreditTransaction],
    grants_by_id: dict[str, CreditGrant],
    reason: str,
    now: datetime,
) -> list[CreditTransaction]:
    """Devuelve los créditos a sus grants y crea las transacciones positivas."""
    for tx in originals:
        if tx.grant_id not in grants_by_id:
            raise GrantNotFound(tx.grant_id)

    refunds: list[CreditTransaction] = []
    for tx in originals:
        grant = grants_by_id[tx.grant_id]
        amount = -tx.delta
        grant.credits_consumed -= amount
        grant.credits_remaining += amount
        tx.refunded_at = now
        refunds.append(
            new_transaction(
                organization_id=tx.organization_id,
                user_id=tx.user_id,
                grant_id=grant.id,
                delta=amount,
                reason=f"{REFUND_REASON_PREFIX}{reason}",
                message_id=tx.message_id,
                refund_of_id=tx.id,
                created_at=now,
            )
        )
    return refunds


# ===== CONSTRUCTORES =====
# Se asignan id y created_at explícitamente para que el objeto sea usable
# antes (o sin) pasar por un flush.

def new_grant(
    *,
    organization_id: str,
    user_id: Optional[str],
    source_type: CreditSourceType,
    amount: int,
    source_ref: Optional[str] = None,
    expires_at: Optional[datetime] = None,
    created_at: Optional[datetime] = None,
) -> CreditGrant:
    return CreditGrant(
        id=new_uuid(),
        organization_id=organization_id,
        user_id=user_id,
        source_type=source_type,
        source_ref=source_ref,
        credits_granted=amount,
        credits_consumed=0,
        credits_remaining=amount,
        expires_at=ensure_utc(expires_at),
        created_at=created_at or utcnow(),
    )


def new_transaction(
    *,
    organization_id: str,
    user_id: Optional[str],
    grant_id: str,
    delta: int,
    reason: str,
    message_id: Optional[str] = None,
    refund_of_id: Optional[str] = None,
    created_at: Optional[datetime] = None,
) -> CreditTransaction:
    return CreditTransaction(
        id=new_uuid(),
        organization_id=organization_id,
        user_id=user_id,
        grant_id=grant_id,
        message_id=message_id,
        delta=delta,
        reason=reason,
        refund_of_id=refund_of_id,
        refunded_at=None,
        created_at=created_at or utcnow(),
    )


__all__ = [
    "REFUND_REASON_PREFIX",
    "CreditScope",
    "ResolvedScope",
    "CreditLedger",
    "validate_amount",
    "is_grant_active",
    "consumption_order",
    "available_total",
    "plan_consumption",
    "apply_consumption",
    "validate_refund",
    "apply_refund",
    "new_grant",
    "new_transaction",
]

# Fin del archivo app/modules/billing/credits/ledger.py
