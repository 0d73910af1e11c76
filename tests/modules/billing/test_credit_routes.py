# -*- coding: utf-8 -*-
"""
Tests de las rutas de créditos y del mapeo de errores de dominio a HTTP.
"""

from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.modules.billing import router as billing_router
from app.modules.billing.credits import AlreadyRefunded, InsufficientCredits, ScopeMismatch
from app.modules.billing.credits.services import CreditBreakdown
from app.shared.middleware import register_exception_handlers


@pytest.fixture
def credit_service():
    service = AsyncMock()
    service.get_available_credits_for_organization.return_value = 42
    service.get_credit_breakdown_for_organization.return_value = CreditBreakdown(
        total=42, trial=2, subscription=0, bundle=40, expired=5
    )
    return service


@pytest.fixture
def client(credit_service):
    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(billing_router, prefix="/api")
    app.state.credit_service = credit_service

    @app.get("/boom/insufficient")
    async def boom_insufficient():
        raise InsufficientCredits(available=1, required=4)

    @app.get("/boom/scope")
    async def boom_scope():
        raise ScopeMismatch("tx-1", "organization:org-2")

    @app.get("/boom/refunded")
    async def boom_refunded():
        raise AlreadyRefunded("tx-1")

    return TestClient(app)


def test_balance(client, credit_service):
    response = client.get("/api/credits/organizations/org-1/balance")

    assert response.status_code == 200
    assert response.json() == {"organization_id": "org-1", "available": 42}
    credit_service.get_available_credits_for_organization.assert_awaited_once_with("org-1")


def test_breakdown(client):
    response = client.get("/api/credits/organizations/org-1/breakdown")

    assert response.status_code == 200
    body = response.json()
    assert body["bundle"] == 40
    assert body["expired"] == 5


def test_insufficient_credits_maps_to_402(client):
    response = client.get("/boom/insufficient")

    assert response.status_code == 402
    body = response.json()
    assert body["error"] == "insufficient_credits"
    assert (body["available"], body["required"], body["shortfall"]) == (1, 4, 3)


def test_scope_mismatch_maps_to_403(client):
    response = client.get("/boom/scope")
    assert response.status_code == 403
    assert response.json()["error"] == "scope_mismatch"


def test_already_refunded_maps_to_409(client):
    response = client.get("/boom/refunded")
    assert response.status_code == 409
