# -*- coding: utf-8 -*-
"""
Tests del ledger de créditos en memoria.

Cubre:
- Conservación por grant tras consumos y reembolsos
- Sin sobregiro bajo consumos concurrentes (asyncio.gather)
- Reembolso todo-o-nada y reembolso único
- Resolución de scope de usuario (mapa, resolver y backend memory de main)
"""

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from app.modules.billing.credits import (
    AlreadyRefunded,
    CreditScope,
    CreditService,
    CreditSourceType,
    InMemoryCreditLedger,
    InsufficientCredits,
    InvalidAmount,
    ScopeMismatch,
    ScopeNotResolvable,
    TransactionNotFound,
)
from app.shared.database.base import utcnow

ORG = CreditScope.organization("org-1")


@pytest.fixture
def ledger():
    return InMemoryCreditLedger(user_organizations={"user-1": "org-1", "user-2": "org-1"})


def _assert_conserved(grants):
    for g in grants:
        assert g.credits_consumed + g.credits_remaining == g.credits_granted
        assert g.credits_consumed >= 0 and g.credits_remaining >= 0


@pytest.mark.asyncio
async def test_grant_rejects_non_positive_amount(ledger):
    with pytest.raises(InvalidAmount):
        await ledger.grant(ORG, CreditSourceType.BUNDLE, 0)


@pytest.mark.asyncio
async def test_consume_uses_soonest_expiring_grant_first(ledger):
    never = await ledger.grant(ORG, CreditSourceType.TRIAL, 10)
    sub = await ledger.grant(
        ORG, CreditSourceType.SUBSCRIPTION, 3, expires_at=utcnow() + timedelta(days=20)
    )

    txs = await ledger.consume(ORG, 4, "campaign")

    assert [(tx.grant_id, tx.delta) for tx in txs] == [(sub.id, -3), (never.id, -1)]
    assert await ledger.total_available(ORG) == 9
    _assert_conserved(await ledger.list_grants(ORG))


@pytest.mark.asyncio
async def test_expired_grant_is_not_available(ledger):
    await ledger.grant(ORG, CreditSourceType.SUBSCRIPTION, 5, expires_at=utcnow() - timedelta(seconds=1))

    assert await ledger.total_available(ORG) == 0
    with pytest.raises(InsufficientCredits) as exc_info:
        await ledger.consume(ORG, 1, "sms")
    assert exc_info.value.available == 0


@pytest.mark.asyncio
async def test_insufficient_credits_leaves_balances_untouched(ledger):
    await ledger.grant(ORG, CreditSourceType.BUNDLE, 2)

    with pytest.raises(InsufficientCredits) as exc_info:
        await ledger.consume(ORG, 3, "sms")

    assert exc_info.value.shortfall == 1
    assert await ledger.total_available(ORG) == 2
    assert await ledger.list_transactions(ORG) == []


@pytest.mark.asyncio
async def test_concurrent_consumers_never_overdraw(ledger):
    """10 consumos concurrentes de 1 crédito contra 5 disponibles: exactamente 5 ganan."""
    await ledger.grant(ORG, CreditSourceType.BUNDLE, 3)
    await ledger.grant(ORG, CreditSourceType.TRIAL, 2)

    results = await asyncio.gather(
        *(ledger.consume(ORG, 1, f"sms-{i}") for i in range(10)),
        return_exceptions=True,
    )

    successes = [r for r in results if isinstance(r, list)]
    failures = [r for r in results if isinstance(r, InsufficientCredits)]
    assert len(successes) == 5
    assert len(failures) == 5
    assert await ledger.total_available(ORG) == 0
    _assert_conserved(await ledger.list_grants(ORG))


@pytest.mark.asyncio
async def test_refund_round_trip_restores_balance(ledger):
    await ledger.grant(ORG, CreditSourceType.BUNDLE, 5)
    txs = await ledger.consume(ORG, 3, "sms")

    refunds = await ledger.refund(ORG, [tx.id for tx in txs], "provider error")

    assert await ledger.total_available(ORG) == 5
    assert [r.refund_of_id for r in refunds] == [tx.id for tx in txs]
    assert all(r.delta > 0 for r in refunds)
    _assert_conserved(await ledger.list_grants(ORG))


@pytest.mark.asyncio
async def test_refund_twice_raises_already_refunded(ledger):
    await ledger.grant(ORG, CreditSourceType.BUNDLE, 5)
    [tx] = await ledger.consume(ORG, 1, "sms")
    await ledger.refund(ORG, [tx.id], "first")

    with pytest.raises(AlreadyRefunded):
        await ledger.refund(ORG, [tx.id], "second")
    assert await ledger.total_available(ORG) == 5


@pytest.mark.asyncio
async def test_refund_is_all_or_nothing(ledger):
    await ledger.grant(ORG, CreditSourceType.BUNDLE, 5)
    [tx] = await ledger.consume(ORG, 2, "sms")

    with pytest.raises(TransactionNotFound):
        await ledger.refund(ORG, [tx.id, "does-not-exist"], "batch")

    assert await ledger.total_available(ORG) == 3
    [original] = [t for t in await ledger.list_transactions(ORG) if t.id == tx.id]
    assert original.refunded_at is None


@pytest.mark.asyncio
async def test_user_scope_sees_only_own_grants(ledger):
    user_scope = CreditScope.user("user-1")
    await ledger.grant(user_scope, CreditSourceType.TRIAL, 10)
    await ledger.grant(ORG, CreditSourceType.BUNDLE, 5)

    assert await ledger.total_available(user_scope) == 10
    assert await ledger.total_available(CreditScope.user("user-2")) == 0
    assert await ledger.total_available(ORG) == 15


@pytest.mark.asyncio
async def test_user_cannot_refund_other_users_consumption(ledger):
    await ledger.grant(CreditScope.user("user-1"), CreditSourceType.TRIAL, 3)
    [tx] = await ledger.consume(CreditScope.user("user-1"), 1, "sms")

    with pytest.raises(ScopeMismatch):
        await ledger.refund(CreditScope.user("user-2"), [tx.id], "nope")


@pytest.mark.asyncio
async def test_user_without_organization_is_not_resolvable(ledger):
    with pytest.raises(ScopeNotResolvable):
        await ledger.consume(CreditScope.user("ghost"), 1, "sms")

    ledger.register_user("ghost", "org-1")
    await ledger.grant(CreditScope.user("ghost"), CreditSourceType.TRIAL, 1)
    assert await ledger.total_available(CreditScope.user("ghost")) == 1


@pytest.mark.asyncio
async def test_organization_resolver_is_used_for_unknown_users():
    resolver = AsyncMock(side_effect=lambda user_id: {"user-9": "org-1"}.get(user_id))
    ledger = InMemoryCreditLedger(organization_resolver=resolver)

    grant = await ledger.grant(CreditScope.user("user-9"), CreditSourceType.TRIAL, 2)
    assert grant.organization_id == "org-1"
    assert await ledger.total_available(CreditScope.user("user-9")) == 2
    # resuelto una vez y cacheado
    resolver.assert_awaited_once_with("user-9")

    with pytest.raises(ScopeNotResolvable):
        await ledger.total_available(CreditScope.user("nobody"))


@pytest.mark.asyncio
async def test_memory_backend_resolves_users_from_database(settings, session_factory, user):
    from app.main import build_credit_ledger

    settings.credit_ledger_backend = "memory"
    ledger = build_credit_ledger(settings, session_factory)
    service = CreditService(ledger, settings)

    assert isinstance(ledger, InMemoryCreditLedger)
    await service.grant_trial_credits("user-1")
    assert await service.get_available_credits("user-1") == settings.trial_credits
    assert await service.get_available_credits_for_organization("org-1") == settings.trial_credits
