# -*- coding: utf-8 -*-
"""
app/modules/billing/credits/routes.py

Rutas de consulta de créditos.

Endpoints:
- GET /api/credits/organizations/{organization_id}/balance
- GET /api/credits/organizations/{organization_id}/breakdown

Autor: HeyTeam
Fecha: 2026-02-10
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from .schemas import CreditBalanceResponse, CreditBreakdownResponse
from .services import CreditService

router = APIRouter(
    prefix="/credits",
    tags=["credits"],
)


def get_credit_service(request: Request) -> CreditService:
    """CreditService construido en el lifespan de la app."""
    return request.app.state.credit_service


@router.get(
    "/organizations/{organization_id}/balance",
    response_model=CreditBalanceResponse,
    summary="Saldo de créditos de la organización",
)
async def get_organization_balance(
    organization_id: str,
    service: CreditService = Depends(get_credit_service),
) -> CreditBalanceResponse:
    available = await service.get_available_credits_for_organization(organization_id)
    return CreditBalanceResponse(organization_id=organization_id, available=available)


@router.get(
    "/organizations/{organization_id}/breakdown",
    response_model=CreditBreakdownResponse,
    summary="Desglose de créditos por origen",
)
async def get_organization_breakdown(
    organization_id: str,
    service: CreditService = Depends(get_credit_service),
) -> CreditBreakdownResponse:
    breakdown = await service.get_credit_breakdown_for_organization(organization_id)
    return CreditBreakdownResponse(
        organization_id=organization_id,
        total=breakdown.total,
        trial=breakdown.trial,
        subscription=breakdown.subscription,
        bundle=breakdown.bundle,
        expired=breakdown.expired,
    )


__all__ = ["router", "get_credit_service"]

# Fin del archivo app/modules/billing/credits/routes.py
