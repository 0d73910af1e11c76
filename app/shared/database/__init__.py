# -*- coding: utf-8 -*-
"""
app/shared/database/__init__.py

Re-exporta utilidades comunes de base de datos.

Autor: HeyTeam
Fecha: 2026-02-10
"""

from __future__ import annotations

from .base import Base, NAMING_CONVENTION, ensure_utc, new_uuid, utcnow
from .database import (
    build_engine,
    build_session_factory,
    check_database_health,
    dispose_engine,
    get_async_session,
    get_engine,
    get_session_factory,
    init_models,
    session_scope,
)

__all__ = [
    "Base",
    "NAMING_CONVENTION",
    "ensure_utc",
    "new_uuid",
    "utcnow",
    "build_engine",
    "build_session_factory",
    "check_database_health",
    "dispose_engine",
    "get_async_session",
    "get_engine",
    "get_session_factory",
    "init_models",
    "session_scope",
]

# Fin del archivo app/shared/database/__init__.py
