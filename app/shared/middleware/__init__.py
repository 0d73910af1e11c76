# -*- coding: utf-8 -*-
"""
app/shared/middleware/__init__.py

Middlewares y manejo de errores HTTP.

Autor: HeyTeam
Fecha: 2026-02-10
"""

from .exception_handler import (
    JSONExceptionMiddleware,
    get_request_id,
    register_exception_handlers,
)

__all__ = [
    "JSONExceptionMiddleware",
    "get_request_id",
    "register_exception_handlers",
]
