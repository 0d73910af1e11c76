# -*- coding: utf-8 -*-
"""
Tests de las reglas puras del ledger de créditos.

Cubre:
- Orden de consumo FIFO por expiración (sin expiración al final)
- Grants agotados o expirados no participan
- Plan de consumo todo-o-nada
- Precondiciones de reembolso
"""

from datetime import datetime, timedelta, timezone

import pytest

from app.modules.billing.credits.enums import CreditScopeKind, CreditSourceType
from app.modules.billing.credits.errors import (
    AlreadyRefunded,
    GrantNotFound,
    InsufficientCredits,
    InvalidAmount,
    NotAConsumption,
    ScopeMismatch,
    TransactionNotFound,
)
from app.modules.billing.credits.ledger import (
    CreditScope,
    ResolvedScope,
    apply_consumption,
    apply_refund,
    available_total,
    consumption_order,
    new_grant,
    new_transaction,
    plan_consumption,
    validate_amount,
    validate_refund,
)

NOW = datetime(2026, 2, 10, 12, 0, tzinfo=timezone.utc)


def _grant(amount, expires_in_days=None, created_offset=0, user_id=None):
    return new_grant(
        organization_id="org-1",
        user_id=user_id,
        source_type=CreditSourceType.BUNDLE,
        amount=amount,
        expires_at=NOW + timedelta(days=expires_in_days) if expires_in_days is not None else None,
        created_at=NOW + timedelta(seconds=created_offset),
    )


ORG = ResolvedScope(CreditScope.organization("org-1"), "org-1")


def test_scope_str_and_kind():
    assert str(CreditScope.user("u1")) == "user:u1"
    assert CreditScope.organization("o1").kind == CreditScopeKind.ORGANIZATION
    assert CreditScope.user("u1").is_user


@pytest.mark.parametrize("amount", [0, -1, 1.5, True, "3"])
def test_validate_amount_rejects_non_positive_integers(amount):
    with pytest.raises(InvalidAmount):
        validate_amount(amount)


def test_consumption_order_earliest_expiry_first_and_no_expiry_last():
    never = _grant(5, created_offset=0)
    late = _grant(5, expires_in_days=30, created_offset=1)
    soon = _grant(5, expires_in_days=5, created_offset=2)

    ordered = consumption_order([never, late, soon], NOW)

    assert [g.id for g in ordered] == [soon.id, late.id, never.id]


def test_consumption_order_ties_broken_by_oldest_grant():
    newer = _grant(5, expires_in_days=10, created_offset=10)
    older = _grant(5, expires_in_days=10, created_offset=0)

    assert consumption_order([newer, older], NOW)[0] is older


def test_expired_and_exhausted_grants_are_skipped():
    expired = _grant(5, expires_in_days=-1)
    exhausted = _grant(5)
    exhausted.credits_consumed, exhausted.credits_remaining = 5, 0
    active = _grant(3)

    assert consumption_order([expired, exhausted, active], NOW) == [active]
    assert available_total([expired, exhausted, active], NOW) == 3


def test_plan_consumption_spans_grants_in_order():
    soon = _grant(2, expires_in_days=1)
    later = _grant(5, expires_in_days=9)

    plan = plan_consumption([later, soon], 4, NOW)

    assert [(g.id, take) for g, take in plan] == [(soon.id, 2), (later.id, 2)]


def test_plan_consumption_insufficient_reports_shortfall_without_mutation():
    grant = _grant(2)

    with pytest.raises(InsufficientCredits) as exc_info:
        plan_consumption([grant], 5, NOW)

    assert exc_info.value.available == 2
    assert exc_info.value.required == 5
    assert exc_info.value.shortfall == 3
    assert grant.credits_remaining == 2


def test_apply_consumption_keeps_conservation_and_creates_one_tx_per_grant():
    a, b = _grant(2, expires_in_days=1), _grant(5, expires_in_days=2)

    txs = apply_consumption(plan_consumption([a, b], 3, NOW), ORG, "sms", "msg-1", NOW)

    assert [tx.delta for tx in txs] == [-2, -1]
    assert all(tx.message_id == "msg-1" for tx in txs)
    for g in (a, b):
        assert g.credits_consumed + g.credits_remaining == g.credits_granted


def test_validate_refund_checks():
    consumption = new_transaction(organization_id="org-1", user_id=None, grant_id="g1", delta=-1, reason="sms")
    credit = new_transaction(organization_id="org-1", user_id=None, grant_id="g1", delta=2, reason="refund")
    foreign = new_transaction(organization_id="org-2", user_id=None, grant_id="g9", delta=-1, reason="sms")
    by_id = {tx.id: tx for tx in (consumption, credit, foreign)}

    with pytest.raises(TransactionNotFound):
        validate_refund(ORG, ["missing"], by_id)
    with pytest.raises(ScopeMismatch):
        validate_refund(ORG, [foreign.id], by_id)
    with pytest.raises(NotAConsumption):
        validate_refund(ORG, [credit.id], by_id)
    with pytest.raises(AlreadyRefunded):
        validate_refund(ORG, [consumption.id, consumption.id], by_id)

    consumption.refunded_at = NOW
    with pytest.raises(AlreadyRefunded):
        validate_refund(ORG, [consumption.id], by_id)


def test_user_scope_cannot_refund_another_users_transaction():
    resolved = ResolvedScope(CreditScope.user("u1"), "org-1")
    tx = new_transaction(organization_id="org-1", user_id="u2", grant_id="g1", delta=-1, reason="sms")

    with pytest.raises(ScopeMismatch):
        validate_refund(resolved, [tx.id], {tx.id: tx})


def test_apply_refund_restores_grant_and_links_original():
    grant = _grant(3)
    [tx] = apply_consumption(plan_consumption([grant], 2, NOW), ORG, "sms", None, NOW)

    [refund] = apply_refund([tx], {grant.id: grant}, "provider failed", NOW)

    assert grant.credits_remaining == 3
    assert grant.credits_consumed == 0
    assert refund.delta == 2
    assert refund.refund_of_id == tx.id
    assert refund.reason == "Refund: provider failed"
    assert tx.refunded_at == NOW


def test_apply_refund_missing_grant_changes_nothing():
    grant = _grant(3)
    [tx] = apply_consumption(plan_consumption([grant], 1, NOW), ORG, "sms", None, NOW)

    with pytest.raises(GrantNotFound):
        apply_refund([tx], {}, "x", NOW)

    assert tx.refunded_at is None
