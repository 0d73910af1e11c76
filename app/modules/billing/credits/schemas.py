# -*- coding: utf-8 -*-
"""
app/modules/billing/credits/schemas.py

Esquemas Pydantic de respuesta para créditos.

Autor: HeyTeam
Fecha: 2026-02-10
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class CreditBalanceResponse(BaseModel):
    """Saldo vigente de una organización."""

    organization_id: str
    available: int = Field(ge=0, description="Créditos vigentes (no expirados) disponibles.")


class CreditBreakdownResponse(BaseModel):
    """Créditos vigentes por origen y créditos perdidos por expiración."""

    organization_id: str
    total: int = Field(ge=0)
    trial: int = Field(ge=0)
    subscription: int = Field(ge=0)
    bundle: int = Field(ge=0)
    expired: int = Field(ge=0, description="Créditos que quedaron sin usar en grants expirados.")


class InsufficientCreditsResponse(BaseModel):
    """Cuerpo del error 402."""

    error: str = "insufficient_credits"
    detail: str
    available: int
    required: int
    shortfall: int


__all__ = [
    "CreditBalanceResponse",
    "CreditBreakdownResponse",
    "InsufficientCreditsResponse",
]
