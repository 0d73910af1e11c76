# -*- coding: utf-8 -*-
"""
app/routes/health_routes.py

Health check del backend HeyTeam.

Autor: HeyTeam
Fecha: 2026-02-10
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Request

from app.shared.database import check_database_health

router = APIRouter()


@router.get(
    "/health",
    summary="Health check del backend",
    description="Estado del backend: conectividad a la base de datos y estado del scheduler.",
)
async def health_check(request: Request) -> dict:
    settings = request.app.state.settings
    scheduler = getattr(request.app.state, "scheduler", None)

    db_ok = await check_database_health(timeout_s=2.0)

    return {
        "status": "ok" if db_ok else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.python_env,
        "database": {
            "reachable": db_ok,
        },
        "scheduler": {
            "running": bool(scheduler and scheduler.is_running),
            "sms_fallback_enabled": settings.sms_fallback_enabled,
        },
        "service": {
            "name": settings.app_name,
            "version": settings.app_version,
        },
    }

# Fin del archivo app/routes/health_routes.py
