# -*- coding: utf-8 -*-
"""
app/shared/config/settings_base.py

Base de configuración (Pydantic v2) para HeyTeam.
- Esta clase NO instancia singletons ni resuelve .env; eso lo hace config_loader.
- Es la base para settings_dev.py, settings_testing.py y settings_prod.py.

Autor: HeyTeam
Fecha: 2026-02-10
"""

from typing import Literal, Optional

from pydantic import Field, SecretStr, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Tipos de entorno soportados
EnvName = Literal["development", "test", "production"]


class BaseAppSettings(BaseSettings):
    # =========================
    # Núcleo de la aplicación
    # =========================
    python_env: EnvName = Field(default="development", validation_alias="PYTHON_ENV")
    app_name: str = Field(default="HeyTeam", validation_alias="APP_NAME")
    app_version: str = Field(default="0.1.0", validation_alias="APP_VERSION")
    app_host: str = Field(default="0.0.0.0", validation_alias="APP_HOST")
    app_port: int = Field(default=8000, validation_alias="APP_PORT")
    debug: bool = Field(default=False, validation_alias="DEBUG")

    # =========================
    # Base de datos (PostgreSQL)
    # =========================
    db_user: str = Field(default="postgres", validation_alias="DB_USER")
    db_password: SecretStr = Field(default=SecretStr("postgres"), validation_alias="DB_PASSWORD")
    db_host: str = Field(default="localhost", validation_alias="DB_HOST")
    db_port: int = Field(default=5432, validation_alias="DB_PORT")
    db_name: str = Field(default="heyteam", validation_alias="DB_NAME")
    db_echo_sql: bool = Field(default=False, validation_alias="DB_ECHO_SQL")
    db_sslmode: str = Field(default="prefer", validation_alias="DB_SSLMODE")  # prefer|require|disable
    db_url: Optional[str] = Field(default=None, validation_alias="DB_URL")
    db_command_timeout_s: float = Field(default=5.0, validation_alias="DB_COMMAND_TIMEOUT_S")

    @computed_field  # type: ignore[misc]
    @property
    def database_url(self) -> str:
        """
        Genera la URL de conexión completa para SQLAlchemy async.
        Prioriza DB_URL si existe, sino construye desde componentes individuales.
        """
        from urllib.parse import quote_plus

        if self.db_url:
            url = self.db_url
            if url.startswith("postgres://"):
                url = url.replace("postgres://", "postgresql+asyncpg://", 1)
            elif url.startswith("postgresql://"):
                url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
            return url

        pw = quote_plus(self.db_password.get_secret_value())
        return (
            f"postgresql+asyncpg://{self.db_user}:{pw}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    # =========================
    # SMS (Twilio)
    # =========================
    sms_mode: Literal["console", "twilio"] = Field(default="console", validation_alias="SMS_MODE")
    sms_timeout_sec: float = Field(default=10.0, validation_alias="SMS_TIMEOUT_SEC")
    twilio_account_sid: Optional[str] = Field(default=None, validation_alias="TWILIO_ACCOUNT_SID")
    twilio_auth_token: Optional[SecretStr] = Field(default=None, validation_alias="TWILIO_AUTH_TOKEN")
    twilio_phone_number: Optional[str] = Field(default=None, validation_alias="TWILIO_PHONE_NUMBER")

    # =========================
    # SMS fallback de push notifications
    # =========================
    sms_fallback_enabled: bool = Field(default=True, validation_alias="SMS_FALLBACK_ENABLED")
    sms_fallback_interval_seconds: int = Field(default=15, validation_alias="SMS_FALLBACK_INTERVAL_SECONDS")
    sms_fallback_delay_seconds: int = Field(default=30, validation_alias="SMS_FALLBACK_DELAY_SECONDS")
    sms_fallback_batch_size: int = Field(default=200, validation_alias="SMS_FALLBACK_BATCH_SIZE")
    sms_fallback_max_attempts: int = Field(default=3, validation_alias="SMS_FALLBACK_MAX_ATTEMPTS")
    sms_fallback_retry_backoff_seconds: int = Field(default=60, validation_alias="SMS_FALLBACK_RETRY_BACKOFF_SECONDS")
    sms_fallback_max_concurrency: int = Field(default=5, validation_alias="SMS_FALLBACK_MAX_CONCURRENCY")
    sms_fallback_charge_before_send: bool = Field(default=False, validation_alias="SMS_FALLBACK_CHARGE_BEFORE_SEND")

    # =========================
    # Créditos
    # =========================
    credit_ledger_backend: Literal["sql", "memory"] = Field(default="sql", validation_alias="CREDIT_LEDGER_BACKEND")
    trial_credits: int = Field(default=10, validation_alias="TRIAL_CREDITS")
    trial_days: Optional[int] = Field(default=None, validation_alias="TRIAL_DAYS")
    bundle_expiry_years: int = Field(default=10, validation_alias="BUNDLE_EXPIRY_YEARS")
    subscription_fallback_period_days: int = Field(default=30, validation_alias="SUBSCRIPTION_FALLBACK_PERIOD_DAYS")

    # =========================
    # CORS / Frontend
    # =========================
    allowed_origins: str = Field(default="*", validation_alias="CORS_ORIGINS")

    # =========================
    # Observabilidad / Logging
    # =========================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_format: Literal["json", "pretty", "plain"] = Field(default="pretty", validation_alias="LOG_FORMAT")

    # ===== Helpers de entorno =====
    @computed_field  # type: ignore[misc]
    @property
    def is_dev(self) -> bool:
        return self.python_env == "development"

    @computed_field  # type: ignore[misc]
    @property
    def is_test(self) -> bool:
        return self.python_env == "test"

    @computed_field  # type: ignore[misc]
    @property
    def is_prod(self) -> bool:
        return self.python_env == "production"

    # ===== Utilidad para normalizar CORS =====
    def get_cors_origins(self) -> list[str]:
        """Convierte allowed_origins en lista procesable para CORS middleware."""
        if not self.allowed_origins or self.allowed_origins == "*":
            return ["*"]
        return [o.strip().strip('"').strip("'") for o in self.allowed_origins.split(",") if o.strip()]

    def _security_and_sms_checks(self) -> None:
        """
        Validaciones mínimas de seguridad y coherencia.
        Se invoca desde config_loader tras instanciar el settings.
        """
        import logging
        logger = logging.getLogger(__name__)

        if self.sms_mode == "twilio":
            missing = [
                name for name, value in (
                    ("TWILIO_ACCOUNT_SID", self.twilio_account_sid),
                    ("TWILIO_AUTH_TOKEN", self.twilio_auth_token),
                    ("TWILIO_PHONE_NUMBER", self.twilio_phone_number),
                )
                if not value
            ]
            if missing:
                raise ValueError(f"SMS_MODE=twilio requiere {', '.join(missing)}.")

        if self.is_prod:
            if self.db_sslmode != "require":
                raise ValueError("DB_SSLMODE debe ser 'require' en producción")
            if self.credit_ledger_backend != "sql":
                raise ValueError("CREDIT_LEDGER_BACKEND=memory no está permitido en producción")
            if self.sms_mode == "console":
                logger.warning("SMS_MODE=console in production: fallback SMS will only be logged")

        if self.sms_fallback_max_attempts < 1:
            raise ValueError("SMS_FALLBACK_MAX_ATTEMPTS debe ser >= 1")
        if self.sms_fallback_max_concurrency < 1:
            raise ValueError("SMS_FALLBACK_MAX_CONCURRENCY debe ser >= 1")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


__all__ = ["BaseAppSettings", "EnvName"]
# Fin del archivo app/shared/config/settings_base.py
