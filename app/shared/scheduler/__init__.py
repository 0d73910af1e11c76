# -*- coding: utf-8 -*-
"""
app/shared/scheduler/__init__.py

Sistema de jobs programados usando APScheduler.

Autor: HeyTeam
Fecha: 2026-02-10
"""

from .scheduler_service import SchedulerService

__all__ = [
    "SchedulerService",
]
