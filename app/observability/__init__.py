# -*- coding: utf-8 -*-
"""
app/observability/__init__.py

Observabilidad HTTP (Prometheus).

Autor: HeyTeam
Fecha: 2026-02-10
"""

from .prom import setup_observability

__all__ = ["setup_observability"]
