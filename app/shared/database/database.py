# -*- coding: utf-8 -*-
"""
app/shared/database/database.py

SQLAlchemy async (asyncpg en producción, aiosqlite en tests).

Provee:
- build_engine / build_session_factory: construcción explícita desde settings
- get_engine / get_session_factory: instancias perezosas del proceso
- Dependencia FastAPI: get_async_session
- context manager: session_scope()
- init_models() y check_database_health()

Autor: HeyTeam
Fecha: 2026-02-10
"""

from __future__ import annotations

import asyncio
import logging
import ssl
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.shared.config import BaseAppSettings, get_settings
from app.shared.database.base import Base

logger = logging.getLogger(__name__)

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


# ── Engine
def build_engine(settings: BaseAppSettings) -> AsyncEngine:
    """
    Crea el AsyncEngine según la URL configurada.

    - asyncpg: timeout por consulta y TLS cuando DB_SSLMODE=require.
    - aiosqlite: sin connect_args especiales.
    """
    url = settings.database_url
    connect_args: dict[str, Any] = {}

    if url.startswith("postgresql+asyncpg"):
        connect_args["command_timeout"] = settings.db_command_timeout_s
        if settings.db_sslmode == "require":
            connect_args["ssl"] = ssl.create_default_context(purpose=ssl.Purpose.SERVER_AUTH)

    driver = url.split("://", 1)[0]
    logger.info("[DB] Creating engine (driver=%s, echo=%s)", driver, settings.db_echo_sql)

    return create_async_engine(
        url,
        echo=settings.db_echo_sql,
        pool_pre_ping=url.startswith("postgresql"),
        connect_args=connect_args,
    )


# ── Session factory
def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        expire_on_commit=False,
        class_=AsyncSession,
        autoflush=False,
    )


def get_engine() -> AsyncEngine:
    global _engine
    if _engine is None:
        _engine = build_engine(get_settings())
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    global _session_factory
    if _session_factory is None:
        _session_factory = build_session_factory(get_engine())
    return _session_factory


# ── Dependencia FastAPI
async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    async with get_session_factory()() as session:
        try:
            yield session
        except SQLAlchemyError:
            # rollback para liberar cualquier transacción/lock
            await session.rollback()
            raise
        finally:
            if session.in_transaction():
                await session.rollback()


# ── Context manager reutilizable en jobs/scripts/tests
@asynccontextmanager
async def session_scope(
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
) -> AsyncGenerator[AsyncSession, None]:
    """
    Abre una sesión y la cierra al salir.
    El commit queda a cargo de quien use el scope; aquí solo se hace rollback
    de lo que haya quedado pendiente.
    """
    factory = session_factory or get_session_factory()
    async with factory() as session:
        try:
            yield session
        finally:
            if session.in_transaction():
                await session.rollback()


# ── Esquema
async def init_models(engine: Optional[AsyncEngine] = None) -> None:
    """Crea las tablas declaradas en Base.metadata (dev/tests)."""
    # Importa los modelos para registrarlos en el metadata
    import app.modules.staffing.models  # noqa: F401
    import app.modules.billing.credits.models  # noqa: F401
    import app.modules.messaging.models  # noqa: F401

    target = engine or get_engine()
    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# ── Health check
async def check_database_health(timeout_s: float = 3.0, sql: str = "SELECT 1") -> bool:
    """
    Verifica conectividad a la base de datos.

    Returns:
        True si la conexión es exitosa, False en caso contrario
    """
    try:
        async with asyncio.timeout(timeout_s):
            async with get_engine().connect() as conn:
                await conn.execute(text(sql))
        return True
    except (SQLAlchemyError, OSError, TimeoutError) as e:
        logger.warning("[DB] Health check failed: %s", e)
        return False


async def dispose_engine() -> None:
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None


__all__ = [
    "build_engine",
    "build_session_factory",
    "get_engine",
    "get_session_factory",
    "get_async_session",
    "session_scope",
    "init_models",
    "check_database_health",
    "dispose_engine",
]
# Fin del archivo app/shared/database/database.py
