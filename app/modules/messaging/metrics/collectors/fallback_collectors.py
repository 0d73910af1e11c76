# -*- coding: utf-8 -*-
"""
app/modules/messaging/metrics/collectors/fallback_collectors.py

Coleccionistas Prometheus para el fallback SMS de push notifications.

Define contadores para:
- Ciclos ejecutados
- Entregas reclamadas (claim atómico)
- Resultados por entrega (sent|failed|delivered_portal|skipped|requeued|error)

Autor: HeyTeam
Fecha: 2026-02-10
"""
from prometheus_client import Counter

NAMESPACE = "heyteam"
SUBSYSTEM = "messaging"

sms_fallback_cycles_total = Counter(
    f"{NAMESPACE}_{SUBSYSTEM}_sms_fallback_cycles_total",
    "SMS fallback poll cycles executed",
)

sms_fallback_claimed_total = Counter(
    f"{NAMESPACE}_{SUBSYSTEM}_sms_fallback_claimed_total",
    "Push deliveries claimed for SMS fallback",
)

sms_fallback_outcome_total = Counter(
    f"{NAMESPACE}_{SUBSYSTEM}_sms_fallback_outcome_total",
    "SMS fallback outcomes per delivery",
    labelnames=("outcome",),  # sent|failed|delivered_portal|skipped|requeued|error
)

sms_fallback_credit_errors_total = Counter(
    f"{NAMESPACE}_{SUBSYSTEM}_sms_fallback_credit_errors_total",
    "Credit consumption failures while charging a fallback SMS",
    labelnames=("reason",),
)

__all__ = [
    "sms_fallback_cycles_total",
    "sms_fallback_claimed_total",
    "sms_fallback_outcome_total",
    "sms_fallback_credit_errors_total",
]

# Fin del archivo
