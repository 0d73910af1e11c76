# -*- coding: utf-8 -*-
"""
app/shared/middleware/exception_handler.py

Manejo de errores HTTP:

- JSONExceptionMiddleware: captura excepciones no manejadas y responde JSON
  (500) con request_id para correlación de logs.
- register_exception_handlers: traduce los errores de dominio (ledger de
  créditos y entregas push) a respuestas JSON con status estable.

Autor: HeyTeam
Fecha: 2026-02-10
"""

from __future__ import annotations

import logging
import uuid
from typing import Callable

from fastapi import FastAPI
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from app.modules.billing.credits.errors import (
    AlreadyRefunded,
    GrantNotFound,
    InsufficientCredits,
    InvalidAmount,
    NotAConsumption,
    ScopeMismatch,
    ScopeNotResolvable,
    TransactionNotFound,
)
from app.modules.messaging.errors import DeliveryNotFound, DeliveryOwnershipError

logger = logging.getLogger(__name__)

REQUEST_ID_HEADERS = ["x-request-id", "x-correlation-id"]


def get_request_id(request: Request) -> str:
    """Extrae request_id de headers o genera uno nuevo."""
    for header in REQUEST_ID_HEADERS:
        value = request.headers.get(header)
        if value:
            return value
    return uuid.uuid4().hex[:16]


class JSONExceptionMiddleware(BaseHTTPMiddleware):
    """Captura excepciones no manejadas y devuelve JSON con error_code y request_id."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = get_request_id(request)
        request.state.request_id = request_id

        try:
            return await call_next(request)
        except Exception as e:
            logger.exception(
                "unhandled_exception request_id=%s method=%s path=%s error=%r",
                request_id,
                request.method,
                request.url.path,
                e,
            )
            return JSONResponse(
                status_code=500,
                content={
                    "detail": {
                        "error_code": "INTERNAL_SERVER_ERROR",
                        "message": "Internal server error",
                        "request_id": request_id,
                    }
                },
                headers={"X-Request-ID": request_id},
            )


# Error de dominio -> (status HTTP, error_code)
ERROR_STATUS: dict[type[Exception], tuple[int, str]] = {
    TransactionNotFound: (404, "transaction_not_found"),
    GrantNotFound: (404, "grant_not_found"),
    DeliveryNotFound: (404, "delivery_not_found"),
    ScopeMismatch: (403, "scope_mismatch"),
    DeliveryOwnershipError: (403, "delivery_ownership"),
    InvalidAmount: (400, "invalid_amount"),
    NotAConsumption: (400, "not_a_consumption"),
    AlreadyRefunded: (409, "already_refunded"),
    ScopeNotResolvable: (409, "scope_not_resolvable"),
}


async def insufficient_credits_handler(request: Request, exc: InsufficientCredits) -> JSONResponse:
    return JSONResponse(
        status_code=402,
        content={
            "error": "insufficient_credits",
            "detail": str(exc),
            "available": exc.available,
            "required": exc.required,
            "shortfall": exc.shortfall,
        },
    )


async def domain_error_handler(request: Request, exc: Exception) -> JSONResponse:
    status_code, error_code = ERROR_STATUS[type(exc)]
    logger.info("Domain error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status_code,
        content={"error": error_code, "detail": str(exc)},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Registra los handlers de errores de dominio en la app."""
    app.add_exception_handler(InsufficientCredits, insufficient_credits_handler)
    for exc_class in ERROR_STATUS:
        app.add_exception_handler(exc_class, domain_error_handler)


__all__ = [
    "JSONExceptionMiddleware",
    "get_request_id",
    "register_exception_handlers",
]

# Fin del archivo app/shared/middleware/exception_handler.py
