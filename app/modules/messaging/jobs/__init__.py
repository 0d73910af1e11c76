# -*- coding: utf-8 -*-
"""
app/modules/messaging/jobs/__init__.py

Jobs programados de mensajería.

Autor: HeyTeam
Fecha: 2026-02-10
"""

from .sms_fallback_job import (
    SMS_FALLBACK_JOB_ID,
    FallbackConfig,
    FallbackCycleResult,
    SmsFallbackProcessor,
    register_sms_fallback_job,
)

__all__ = [
    "SMS_FALLBACK_JOB_ID",
    "FallbackConfig",
    "FallbackCycleResult",
    "SmsFallbackProcessor",
    "register_sms_fallback_job",
]
