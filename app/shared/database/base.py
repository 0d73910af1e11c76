# -*- coding: utf-8 -*-
"""
app/shared/database/base.py

Base declarativa y convención de nombres para modelos ORM.

Este módulo proporciona:
- Base: clase base declarativa de SQLAlchemy
- NAMING_CONVENTION: convención de nombres para constraints
- new_uuid / utcnow / ensure_utc: helpers de columnas compartidos por los modelos

Autor: HeyTeam
Fecha: 2026-02-10
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase

# ===== NAMING CONVENTION =====
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


# ===== BASE DECLARATIVA =====
class Base(DeclarativeBase):
    """
    Base declarativa para todos los modelos ORM de HeyTeam.
    Incluye convención de nombres para constraints.
    """
    metadata = MetaData(naming_convention=NAMING_CONVENTION)


# ===== HELPERS DE COLUMNAS =====
def new_uuid() -> str:
    """Identificador por defecto de las tablas (UUID4 como texto)."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Timestamp aware en UTC."""
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Normaliza un datetime a aware-UTC.

    SQLite devuelve datetimes naive aunque la columna sea timezone=True;
    se interpretan como UTC para poder compararlos con utcnow().
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


__all__ = ["Base", "NAMING_CONVENTION", "new_uuid", "utcnow", "ensure_utc"]

# Fin del archivo app/shared/database/base.py
