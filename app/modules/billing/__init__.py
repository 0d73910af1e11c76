# -*- coding: utf-8 -*-
"""
app/modules/billing/__init__.py

Módulo de billing. Hoy expone el ledger de créditos (billing.credits);
el checkout de paquetes y suscripciones vive fuera de este backend.

Autor: HeyTeam
Fecha: 2026-02-10
"""

from fastapi import APIRouter

from .credits.routes import router as credits_router

router = APIRouter()
router.include_router(credits_router)

__all__ = ["router"]
