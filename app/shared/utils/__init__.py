# -*- coding: utf-8 -*-
"""
app/shared/utils/__init__.py

Exportación de utilidades comunes.

Autor: HeyTeam
Fecha: 2026-02-10
"""

from .phone_utils import (
    DEFAULT_REGION,
    InvalidPhoneNumber,
    normalize_phone_number,
    phone_region,
    to_e164,
)

__all__ = [
    "DEFAULT_REGION",
    "InvalidPhoneNumber",
    "normalize_phone_number",
    "phone_region",
    "to_e164",
]
