# -*- coding: utf-8 -*-
"""
Tests del CreditService (fachada sobre el ledger en memoria).

Cubre:
- Grants por origen (trial, suscripción, paquete) y su expiración
- consume_for_message cobra 1 crédito a la organización
- ensure_credits_available con faltante
- Desglose por origen y créditos expirados
"""

from datetime import timedelta

import pytest

from app.modules.billing.credits import (
    CreditScope,
    CreditService,
    CreditSourceType,
    InMemoryCreditLedger,
    InsufficientCredits,
    InvalidAmount,
)
from app.modules.billing.credits.services import CREDITS_PER_MESSAGE, build_breakdown
from app.shared.database.base import ensure_utc, utcnow


@pytest.fixture
def ledger():
    return InMemoryCreditLedger(user_organizations={"user-1": "org-1"})


@pytest.fixture
def service(ledger, settings):
    return CreditService(ledger, settings)


@pytest.mark.asyncio
async def test_trial_credits_use_settings(service, settings):
    grant = await service.grant_trial_credits("user-1")

    assert grant.credits_granted == settings.trial_credits
    assert grant.source_type == CreditSourceType.TRIAL
    assert grant.expires_at is None
    assert await service.get_available_credits("user-1") == settings.trial_credits


@pytest.mark.asyncio
async def test_trial_credits_expire_when_trial_days_set(ledger, settings):
    settings.trial_days = 14
    service = CreditService(ledger, settings)

    grant = await service.grant_trial_credits("user-1")

    remaining = ensure_utc(grant.expires_at) - utcnow()
    assert timedelta(days=13) < remaining <= timedelta(days=14)


@pytest.mark.asyncio
async def test_subscription_credits_expire_at_period_end(service):
    period_end = utcnow() + timedelta(days=7)

    grant = await service.grant_subscription_credits("user-1", 100, "sub_1", period_end=period_end)

    assert ensure_utc(grant.expires_at) == period_end
    assert grant.source_ref == "sub_1"


@pytest.mark.asyncio
async def test_subscription_without_period_end_uses_fallback_period(service, settings):
    grant = await service.grant_subscription_credits("user-1", 100, "sub_2")

    remaining = ensure_utc(grant.expires_at) - utcnow()
    assert remaining > timedelta(days=settings.subscription_fallback_period_days - 1)


@pytest.mark.asyncio
async def test_bundle_credits_expire_years_later(service, settings):
    grant = await service.grant_bundle_credits("user-1", 500, "pi_abc")

    assert ensure_utc(grant.expires_at).year == utcnow().year + settings.bundle_expiry_years


@pytest.mark.asyncio
async def test_consume_for_message_charges_organization(service):
    await service.grant_credits(CreditScope.organization("org-1"), CreditSourceType.BUNDLE, 3)

    txs = await service.consume_for_message("org-1", "SMS to contact c-1", message_id="msg-1")

    assert sum(tx.delta for tx in txs) == -CREDITS_PER_MESSAGE
    assert txs[0].message_id == "msg-1"
    assert await service.get_available_credits_for_organization("org-1") == 2


@pytest.mark.asyncio
async def test_refund_for_organization_restores_credit(service):
    await service.grant_credits(CreditScope.organization("org-1"), CreditSourceType.BUNDLE, 1)
    txs = await service.consume_for_message("org-1", "sms")

    await service.refund_credits_for_organization("org-1", [tx.id for tx in txs], "provider failed")

    assert await service.get_available_credits_for_organization("org-1") == 1


@pytest.mark.asyncio
async def test_ensure_credits_available_reports_shortfall(service):
    await service.grant_credits(CreditScope.organization("org-1"), CreditSourceType.BUNDLE, 2)

    await service.ensure_credits_available("org-1", 2)
    with pytest.raises(InsufficientCredits) as exc_info:
        await service.ensure_credits_available("org-1", 5)
    assert exc_info.value.shortfall == 3

    with pytest.raises(InvalidAmount):
        await service.ensure_credits_available("org-1", 0)


@pytest.mark.asyncio
async def test_consume_insufficient_propagates(service):
    with pytest.raises(InsufficientCredits):
        await service.consume_credits("user-1", 1, "sms")


@pytest.mark.asyncio
async def test_breakdown_by_source(service):
    org = CreditScope.organization("org-1")
    await service.grant_trial_credits("user-1")
    await service.grant_credits(org, CreditSourceType.SUBSCRIPTION, 20, expires_at=utcnow() + timedelta(days=30))
    await service.grant_credits(org, CreditSourceType.BUNDLE, 50)
    await service.grant_credits(org, CreditSourceType.BUNDLE, 7, expires_at=utcnow() - timedelta(days=1))

    breakdown = await service.get_credit_breakdown_for_organization("org-1")

    assert breakdown.trial == 10
    assert breakdown.subscription == 20
    assert breakdown.bundle == 50
    assert breakdown.total == 80
    assert breakdown.expired == 7

    user_breakdown = await service.get_credit_breakdown("user-1")
    assert user_breakdown.total == 10


def test_build_breakdown_empty():
    breakdown = build_breakdown([])
    assert (breakdown.total, breakdown.expired) == (0, 0)
