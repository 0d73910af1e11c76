# -*- coding: utf-8 -*-
"""
app/shared/config/settings_testing.py

Overrides para entorno de PRUEBAS (test) usando Pydantic v2.
Busca ser determinista: logging moderado, SQLite en memoria,
SMS en modo console y job de fallback deshabilitado.

Autor: HeyTeam
Fecha: 2026-02-10
"""

from typing import Optional

from pydantic_settings import SettingsConfigDict

from .settings_base import BaseAppSettings


class EnvTestingSettings(BaseAppSettings):
    # --- Identidad de entorno ---
    python_env: str = "test"

    # --- Logging en test: menos ruido ---
    log_level: str = "WARNING"
    log_format: str = "pretty"

    # --- Base de datos aislada ---
    db_url: Optional[str] = "sqlite+aiosqlite:///:memory:"
    db_sslmode: str = "disable"

    # --- Integraciones sin efectos externos ---
    sms_mode: str = "console"
    sms_fallback_enabled: bool = False
    sms_fallback_max_concurrency: int = 1

    model_config = SettingsConfigDict(
        env_file=".env.test",
        env_file_encoding="utf-8",
        extra="ignore",
    )


__all__ = ["EnvTestingSettings"]
# Fin del archivo app/shared/config/settings_testing.py
