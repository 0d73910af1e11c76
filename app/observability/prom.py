# -*- coding: utf-8 -*-
"""
app/observability/prom.py

Observabilidad Prometheus del backend HeyTeam.

Incluye:
- Middleware HTTP para conteo y latencia por ruta/estado
- Endpoint /metrics (pull model); expone también los contadores de
  créditos y del fallback SMS registrados en el registry por defecto
- Soporte multiproceso (PROMETHEUS_MULTIPROC_DIR)

Autor: HeyTeam
Fecha: 2026-02-10
"""
from __future__ import annotations

import os
from time import perf_counter
from typing import Optional

from fastapi import FastAPI
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from prometheus_client import (
    CollectorRegistry, multiprocess, generate_latest, CONTENT_TYPE_LATEST,
    Counter, Histogram,
)

REQUEST_COUNT = Counter(
    "heyteam_http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)
REQUEST_LATENCY = Histogram(
    "heyteam_http_request_latency_seconds",
    "Latency per request (s)",
    ["method", "path", "status"],
)


def _route_path(request) -> str:
    """Plantilla de la ruta (/credits/organizations/{organization_id}/balance), no la URL cruda."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Instrumenta peticiones HTTP."""

    async def dispatch(self, request, call_next):
        start = perf_counter()
        resp = await call_next(request)
        elapsed = perf_counter() - start

        path = _route_path(request)
        status = str(resp.status_code)
        REQUEST_LATENCY.labels(request.method, path, status).observe(elapsed)
        REQUEST_COUNT.labels(request.method, path, status).inc()
        return resp


def _build_registry() -> Optional[CollectorRegistry]:
    if os.environ.get("PROMETHEUS_MULTIPROC_DIR"):
        registry = CollectorRegistry()
        multiprocess.MultiProcessCollector(registry)
        return registry
    return None


def mount_metrics(app: FastAPI, path: str = "/metrics") -> None:
    """Registra el endpoint /metrics en la app FastAPI."""
    registry = _build_registry()

    @app.get(path, include_in_schema=False)
    def metrics():
        data = generate_latest(registry) if registry else generate_latest()
        return Response(content=data, media_type=CONTENT_TYPE_LATEST)


def setup_observability(app: FastAPI) -> None:
    """Agrega middleware de Prometheus y monta el endpoint /metrics."""
    app.add_middleware(PrometheusMiddleware)
    mount_metrics(app)


# Fin del archivo app/observability/prom.py
