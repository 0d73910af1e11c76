# -*- coding: utf-8 -*-
"""
Tests de configuración.
"""

import pytest

from app.shared.config.settings_base import BaseAppSettings
from app.shared.config.settings_testing import EnvTestingSettings


def test_testing_settings_defaults():
    settings = EnvTestingSettings()

    assert settings.is_test
    assert settings.database_url.startswith("sqlite+aiosqlite")
    assert settings.sms_mode == "console"
    assert settings.sms_fallback_enabled is False
    assert settings.sms_fallback_delay_seconds == 30
    assert settings.trial_credits == 10


def test_db_url_postgres_scheme_is_converted(monkeypatch):
    monkeypatch.setenv("DB_URL", "postgres://u:p@db:5432/heyteam")

    settings = BaseAppSettings(_env_file=None)

    assert settings.database_url == "postgresql+asyncpg://u:p@db:5432/heyteam"


def test_twilio_mode_requires_credentials(monkeypatch):
    monkeypatch.setenv("SMS_MODE", "twilio")
    monkeypatch.delenv("TWILIO_ACCOUNT_SID", raising=False)

    settings = BaseAppSettings(_env_file=None)

    with pytest.raises(ValueError, match="TWILIO_ACCOUNT_SID"):
        settings._security_and_sms_checks()


def test_production_rejects_memory_ledger(monkeypatch):
    monkeypatch.setenv("PYTHON_ENV", "production")
    monkeypatch.setenv("DB_SSLMODE", "require")
    monkeypatch.setenv("CREDIT_LEDGER_BACKEND", "memory")

    settings = BaseAppSettings(_env_file=None)

    with pytest.raises(ValueError, match="CREDIT_LEDGER_BACKEND"):
        settings._security_and_sms_checks()


def test_cors_origins_parsing(monkeypatch):
    monkeypatch.setenv("CORS_ORIGINS", "https://app.heyteam.test, 'https://admin.heyteam.test'")

    settings = BaseAppSettings(_env_file=None)

    assert settings.get_cors_origins() == ["https://app.heyteam.test", "https://admin.heyteam.test"]
