# -*- coding: utf-8 -*-
"""
app/main.py

Punto de entrada del backend HeyTeam.

- Carga .env antes de leer settings
- Lifespan: logging, engine/sesiones, ledger de créditos, SMS sender,
  servicio de entregas push y job de fallback SMS (APScheduler). Todo se
  construye aquí y se inyecta por constructor; las rutas lo leen de
  app.state.
- Observabilidad Prometheus (/metrics), handlers de errores de dominio y CORS

Autor: HeyTeam
Fecha: 2026-02-10
"""

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

# ---------------------------------------------------------------------------
# Cargar .env ANTES de construir settings
# En PROD: override=False para respetar variables del entorno
# ---------------------------------------------------------------------------
from dotenv import load_dotenv

_ENV_PATH = Path(__file__).resolve().parents[1] / ".env"
_PYTHON_ENV = os.getenv("PYTHON_ENV", "development").strip().lower()
load_dotenv(dotenv_path=_ENV_PATH, override=_PYTHON_ENV != "production")

import anyio
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.modules.billing.credits import (
    CreditLedger,
    CreditService,
    InMemoryCreditLedger,
    SqlCreditLedger,
)
from app.modules.messaging import (
    FallbackConfig,
    PushDeliveryService,
    SmsFallbackProcessor,
    register_sms_fallback_job,
)
from app.modules.staffing.repositories import UserRepository
from app.observability import setup_observability
from app.shared.config import BaseAppSettings, get_settings, setup_logging
from app.shared.database import dispose_engine, get_engine, get_session_factory, init_models
from app.shared.integrations import SmsSender
from app.shared.middleware import JSONExceptionMiddleware, register_exception_handlers
from app.shared.scheduler import SchedulerService

logger = logging.getLogger(__name__)


def build_credit_ledger(
    settings: BaseAppSettings,
    session_factory: async_sessionmaker[AsyncSession],
) -> CreditLedger:
    """Ledger según CREDIT_LEDGER_BACKEND (memory solo para dev/tests)."""
    if settings.credit_ledger_backend == "memory":
        logger.warning("Using in-memory credit ledger: balances are lost on restart")
        users = UserRepository()

        async def resolve_organization(user_id: str) -> Optional[str]:
            async with session_factory() as session:
                return await users.get_organization_id(session, user_id)

        return InMemoryCreditLedger(organization_resolver=resolve_organization)
    return SqlCreditLedger(session_factory)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # ────────── STARTUP ──────────
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)

    engine = get_engine()
    session_factory = get_session_factory()
    if not settings.is_prod:
        await init_models(engine)

    credit_service = CreditService(build_credit_ledger(settings, session_factory), settings)
    sms_sender = SmsSender.from_settings(settings)
    push_delivery_service = PushDeliveryService(session_factory, settings)
    fallback_processor = SmsFallbackProcessor(
        session_factory,
        sms_sender,
        credit_service,
        FallbackConfig.from_settings(settings),
    )

    scheduler = SchedulerService()
    if settings.sms_fallback_enabled:
        register_sms_fallback_job(
            scheduler,
            fallback_processor,
            settings.sms_fallback_interval_seconds,
        )
    else:
        logger.info("SMS fallback job disabled (SMS_FALLBACK_ENABLED=false)")
    scheduler.start()

    app.state.settings = settings
    app.state.credit_service = credit_service
    app.state.push_delivery_service = push_delivery_service
    app.state.fallback_processor = fallback_processor
    app.state.scheduler = scheduler

    logger.info("HeyTeam backend started (env=%s, sms_mode=%s)", settings.python_env, settings.sms_mode)
    try:
        yield
    finally:
        # ────────── SHUTDOWN ──────────
        logger.info("Shutting down HeyTeam backend...")
        with anyio.CancelScope(shield=True):
            # el scheduler primero: no se inician ciclos nuevos con el engine cerrado
            scheduler.shutdown(wait=True)
            await dispose_engine()
        logger.info("HeyTeam backend stopped")


openapi_tags = [
    {"name": "credits", "description": "Saldo y desglose de créditos"},
    {"name": "messaging", "description": "Recibos de entrega push"},
]


def _configure_cors(app_instance: FastAPI, settings: BaseAppSettings) -> None:
    origins = settings.get_cors_origins()
    is_wildcard_only = origins == ["*"]
    if is_wildcard_only and settings.is_prod:
        logger.warning("CORS wildcard in production; set CORS_ORIGINS to explicit origins")

    app_instance.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        # "*" con credenciales es inválido en navegadores
        allow_credentials=not is_wildcard_only,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        max_age=600,
    )
    logger.debug("CORS configured for origins=%s", origins)


def create_app() -> FastAPI:
    settings = get_settings()

    application = FastAPI(
        title="HeyTeam API",
        description="Créditos de mensajería y fallback SMS de notificaciones push",
        version=settings.app_version,
        lifespan=lifespan,
        openapi_tags=openapi_tags,
    )

    register_exception_handlers(application)

    # El orden de ejecución de middlewares es inverso al registro: CORS queda outermost
    application.add_middleware(JSONExceptionMiddleware)
    setup_observability(application)
    _configure_cors(application, settings)

    from app.routes import router as main_router

    application.include_router(main_router)
    return application


app = create_app()


@app.get("/")
async def root():
    return {"service": "HeyTeam Backend", "status": "active"}


if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.is_dev,
    )

# Fin del archivo app/main.py
