# -*- coding: utf-8 -*-
"""
app/modules/messaging/template_renderer.py

Renderizado de plantillas de mensajes.

Sintaxis canónica: doble llave, p. ej. "Hi {{firstName}}". Tokens soportados:

    {{firstName}}    nombre del contacto
    {{lastName}}     apellido del contacto
    {{jobName}}      nombre del job
    {{jobLocation}}  ubicación del job
    {{jobDate}}      fecha de inicio, "Mar 5, 2026"
    {{jobTime}}      hora de inicio, "3:30 PM"
    {{jobEndTime}}   hora de fin, "11:00 PM"
    {{jobNotes}}     notas del job

Los tokens desconocidos (y cualquier texto con una sola llave) se dejan
tal cual. Un valor ausente se renderiza como cadena vacía. Las fechas se
formatean en UTC. Función pura: sin I/O ni estado.

Autor: HeyTeam
Fecha: 2026-02-10
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Callable, Optional

from app.shared.database.base import ensure_utc

TOKEN_PATTERN = re.compile(r"\{\{(\w+)\}\}")

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def format_date(value: Optional[datetime]) -> str:
    """'Mar 5, 2026' (sin cero a la izquierda en el día)."""
    if value is None:
        return ""
    value = ensure_utc(value)
    return f"{_MONTHS[value.month - 1]} {value.day}, {value.year}"


def format_time(value: Optional[datetime]) -> str:
    """'3:30 PM' (reloj de 12 horas, sin cero a la izquierda)."""
    if value is None:
        return ""
    value = ensure_utc(value)
    hour = value.hour % 12 or 12
    suffix = "AM" if value.hour < 12 else "PM"
    return f"{hour}:{value.minute:02d} {suffix}"


def _text(value: Any) -> str:
    return "" if value is None else str(value)


# token -> función(contact, job) -> str
TOKENS: dict[str, Callable[[Any, Any], str]] = {
    "firstName": lambda contact, job: _text(getattr(contact, "first_name", None)),
    "lastName": lambda contact, job: _text(getattr(contact, "last_name", None)),
    "jobName": lambda contact, job: _text(getattr(job, "name", None)),
    "jobLocation": lambda contact, job: _text(getattr(job, "location", None)),
    "jobDate": lambda contact, job: format_date(getattr(job, "start_time", None)),
    "jobTime": lambda contact, job: format_time(getattr(job, "start_time", None)),
    "jobEndTime": lambda contact, job: format_time(getattr(job, "end_time", None)),
    "jobNotes": lambda contact, job: _text(getattr(job, "notes", None)),
}


def render_template(template_body: str, contact: Any, job: Any) -> str:
    """
    Sustituye los tokens soportados con datos del contacto y del job.

    Acepta cualquier objeto con los atributos de Contact / Job
    (modelos ORM o dobles de prueba).
    """

    def _replace(match: re.Match) -> str:
        resolver = TOKENS.get(match.group(1))
        if resolver is None:
            return match.group(0)
        return resolver(contact, job)

    return TOKEN_PATTERN.sub(_replace, template_body or "")


__all__ = ["TOKENS", "TOKEN_PATTERN", "format_date", "format_time", "render_template"]

# Fin del archivo app/modules/messaging/template_renderer.py
