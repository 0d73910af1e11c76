# -*- coding: utf-8 -*-
"""
app/routes/__init__.py

Ensamblador de ruteadores de la API de HeyTeam.

- /health (sin prefijo)
- /api/credits/...          (billing.credits)
- /api/push-notifications/... (messaging)

Autor: HeyTeam
Fecha: 2026-02-10
"""

from fastapi import APIRouter

from app.modules.billing import router as billing_router
from app.modules.messaging.routes import router as messaging_router

from .health_routes import router as health_router

api = APIRouter(prefix="/api")
api.include_router(billing_router)
api.include_router(messaging_router)

router = APIRouter()
router.include_router(health_router)
router.include_router(api)

__all__ = ["router", "api"]

# Fin del archivo app/routes/__init__.py
