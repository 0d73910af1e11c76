# -*- coding: utf-8 -*-
"""
app/modules/billing/credits/enums.py

Enums para el sistema de créditos.

Autor: HeyTeam
Fecha: 2026-02-10
"""

from enum import Enum


class CreditSourceType(str, Enum):
    """
    Origen de un grant de créditos.

    Se guarda como texto en credit_grants.source_type.
    """
    TRIAL = "trial"                # Créditos de bienvenida
    SUBSCRIPTION = "subscription"  # Renovación de plan (expira al fin de periodo)
    BUNDLE = "bundle"              # Paquete comprado (expiración larga)


class CreditScopeKind(str, Enum):
    """Frontera contable contra la que se evalúa la suficiencia de créditos."""
    USER = "user"
    ORGANIZATION = "organization"


__all__ = [
    "CreditSourceType",
    "CreditScopeKind",
]
