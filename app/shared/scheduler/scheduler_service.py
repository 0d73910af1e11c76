# -*- coding: utf-8 -*-
"""
app/shared/scheduler/scheduler_service.py

Servicio de programación de tareas periódicas usando APScheduler.

La instancia se construye explícitamente en el lifespan de la aplicación
(app/main.py) y se inyecta a quien registre jobs; no hay singleton global.

Autor: HeyTeam
Fecha: 2026-02-10
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from apscheduler.executors.asyncio import AsyncIOExecutor
from apscheduler.jobstores.base import JobLookupError
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

logger = logging.getLogger(__name__)


class SchedulerService:
    """
    Servicio de programación de tareas periódicas.

    - Jobs por intervalo con una sola instancia en ejecución por job
      (un ciclo nunca se solapa consigo mismo).
    - Ejecuciones perdidas se combinan en una sola (coalesce).
    """

    def __init__(self, misfire_grace_time: int = 30):
        jobstores = {
            "default": MemoryJobStore()
        }
        executors = {
            "default": AsyncIOExecutor()
        }
        job_defaults = {
            "coalesce": True,
            "max_instances": 1,
            "misfire_grace_time": misfire_grace_time,
        }

        self._scheduler = AsyncIOScheduler(
            jobstores=jobstores,
            executors=executors,
            job_defaults=job_defaults,
            timezone="UTC",
        )
        self._started = False
        logger.info("SchedulerService initialized")

    def start(self) -> None:
        """Inicia el scheduler (requiere un event loop activo)."""
        if not self._started:
            self._scheduler.start()
            self._started = True
            logger.info("SchedulerService started")

    def shutdown(self, wait: bool = True) -> None:
        """
        Detiene el scheduler.

        Args:
            wait: Si True, espera a que terminen los jobs en ejecución
        """
        if self._started:
            self._scheduler.shutdown(wait=wait)
            self._started = False
            logger.info("SchedulerService stopped")

    def add_interval_job(
        self,
        func: Callable[..., Any],
        job_id: str,
        seconds: int,
        run_immediately: bool = False,
        **kwargs: Any,
    ) -> str:
        """
        Agrega un job que se ejecuta cada `seconds` segundos.

        Args:
            func: Función (o corrutina) a ejecutar
            job_id: ID único del job; reemplaza uno existente con el mismo ID
            seconds: Intervalo en segundos
            run_immediately: Si True, la primera ejecución es inmediata
            **kwargs: Argumentos adicionales para func

        Returns:
            ID del job agregado
        """
        if seconds <= 0:
            raise ValueError("El intervalo debe ser mayor a 0 segundos")

        options: dict[str, Any] = {}
        if run_immediately:
            options["next_run_time"] = datetime.now(timezone.utc)

        self._scheduler.add_job(
            func=func,
            trigger=IntervalTrigger(seconds=seconds),
            id=job_id,
            name=job_id,
            replace_existing=True,
            kwargs=kwargs,
            **options,
        )

        logger.info("Job '%s' scheduled every %ss", job_id, seconds)
        return job_id

    def remove_job(self, job_id: str) -> bool:
        """
        Elimina un job programado.

        Returns:
            True si se eliminó, False si no existía
        """
        try:
            self._scheduler.remove_job(job_id)
        except JobLookupError:
            logger.warning("Job '%s' not found, nothing to remove", job_id)
            return False
        logger.info("Job '%s' removed", job_id)
        return True

    def get_jobs(self) -> list[dict[str, Any]]:
        return [
            {
                "id": job.id,
                "name": job.name,
                "next_run": getattr(job, "next_run_time", None),
                "trigger": str(job.trigger),
            }
            for job in self._scheduler.get_jobs()
        ]

    def get_job_status(self, job_id: str) -> Optional[dict[str, Any]]:
        """Dict con información del job o None si no existe."""
        job = self._scheduler.get_job(job_id)
        if job is None:
            return None
        return {
            "id": job.id,
            "name": job.name,
            "next_run": getattr(job, "next_run_time", None),
            "trigger": str(job.trigger),
            "pending": job.pending,
        }

    @property
    def is_running(self) -> bool:
        """Retorna True si el scheduler está activo."""
        return self._started and self._scheduler.running


# Fin del archivo app/shared/scheduler/scheduler_service.py
