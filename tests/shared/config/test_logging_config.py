# -*- coding: utf-8 -*-
"""
Tests de setup_logging.
"""

import logging

import pytest
from pythonjsonlogger.json import JsonFormatter

from app.shared.config.logging_config import setup_logging


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


def test_json_format_uses_json_formatter():
    setup_logging("INFO", "json")

    root = logging.getLogger()
    assert root.level == logging.INFO
    assert isinstance(root.handlers[0].formatter, JsonFormatter)


def test_noisy_loggers_are_limited_outside_debug():
    setup_logging("INFO", "plain")
    assert logging.getLogger("apscheduler").level == logging.WARNING

    setup_logging("DEBUG", "plain")
    assert logging.getLogger("apscheduler").level == logging.DEBUG


def test_unknown_format_falls_back_to_plain():
    setup_logging("WARNING", "xml")  # type: ignore[arg-type]

    formatter = logging.getLogger().handlers[0].formatter
    assert formatter._fmt == "%(levelname)s [%(name)s]: %(message)s"
