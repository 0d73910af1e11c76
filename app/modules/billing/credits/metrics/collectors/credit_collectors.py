# -*- coding: utf-8 -*-
"""
app/modules/billing/credits/metrics/collectors/credit_collectors.py

Coleccionistas Prometheus para el ledger de créditos.

Define contadores para:
- Créditos otorgados por origen
- Créditos consumidos y reembolsados por tipo de scope
- Consumos rechazados por saldo insuficiente

Autor: HeyTeam
Fecha: 2026-02-10
"""
from prometheus_client import Counter

NAMESPACE = "heyteam"
SUBSYSTEM = "credits"

credits_granted_total = Counter(
    f"{NAMESPACE}_{SUBSYSTEM}_granted_total",
    "Credits granted",
    labelnames=("source",),  # trial|subscription|bundle
)

credits_consumed_total = Counter(
    f"{NAMESPACE}_{SUBSYSTEM}_consumed_total",
    "Credits consumed",
    labelnames=("scope",),  # user|organization
)

credits_refunded_total = Counter(
    f"{NAMESPACE}_{SUBSYSTEM}_refunded_total",
    "Credits refunded",
    labelnames=("scope",),
)

credits_insufficient_total = Counter(
    f"{NAMESPACE}_{SUBSYSTEM}_insufficient_total",
    "Consume requests rejected for insufficient credits",
    labelnames=("scope",),
)

__all__ = [
    "credits_granted_total",
    "credits_consumed_total",
    "credits_refunded_total",
    "credits_insufficient_total",
]

# Fin del archivo
