# -*- coding: utf-8 -*-
"""
app/shared/config/logging_config.py

Configuración centralizada de logging para HeyTeam.
Soporta formato plain (desarrollo), pretty (con timestamp) y json (producción).

Autor: HeyTeam
Fecha: 2026-02-10
"""

import logging.config
from typing import Literal


# Librerías ruidosas que se limitan a WARNING salvo en DEBUG
_NOISY_LOGGERS = ("apscheduler", "httpx", "httpcore", "sqlalchemy.engine", "aiosqlite")


def setup_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO",
    fmt: Literal["plain", "pretty", "json"] = "plain",
) -> None:
    """
    Configura el sistema de logging de la aplicación.

    Args:
        level: Nivel de logging (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        fmt: Formato de salida (plain, pretty, json)

    Ejemplos:
        >>> setup_logging("INFO", "plain")
        >>> setup_logging("WARNING", "json")
    """
    level = level.upper()

    formatters = {
        "plain": {
            "format": "%(levelname)s [%(name)s]: %(message)s",
        },
        "pretty": {
            "format": "%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
            "datefmt": "%H:%M:%S",
        },
        "json": {
            "()": "pythonjsonlogger.json.JsonFormatter",
            "format": "%(asctime)s %(name)s %(levelname)s %(message)s",
        },
    }

    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": fmt if fmt in formatters else "plain",
            "stream": "ext://sys.stdout",
        }
    }

    loggers = {
        name: {"level": level if level == "DEBUG" else "WARNING"}
        for name in _NOISY_LOGGERS
    }

    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": formatters,
        "handlers": handlers,
        "loggers": loggers,
        "root": {
            "handlers": ["console"],
            "level": level,
        },
    }

    logging.config.dictConfig(logging_config)


__all__ = ["setup_logging"]
# Fin del archivo app/shared/config/logging_config.py
