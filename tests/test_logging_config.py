"""Tests for the structlog setup."""

from __future__ import annotations

import json
import logging

import pytest
import structlog

from custodial_escrow.config import Settings
from custodial_escrow.logging_config import (
    MAX_SAFE_JSON_INT,
    SERVICE_NAME,
    configure_logging,
    get_logger,
    setup_logging,
    stringify_wide_ints,
)


@pytest.fixture
def _restore_logging():
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    logging.getLogger().handlers.clear()


class TestStringifyWideInts:
    def test_wide_amounts_become_strings(self) -> None:
        event = stringify_wide_ints(None, "info", {"amount": 2**256 + 7, "deadline": -(2**60)})
        assert event == {"amount": str(2**256 + 7), "deadline": str(-(2**60))}

    def test_safe_values_are_untouched(self) -> None:
        event = {"amount": MAX_SAFE_JSON_INT, "ok": True, "deal_id": "ab" * 32}
        assert stringify_wide_ints(None, "info", dict(event)) == event


@pytest.mark.usefixtures("_restore_logging")
class TestSetupLogging:
    def test_json_lines_carry_service_and_exact_amount(self, capsys) -> None:
        setup_logging(log_level="INFO", json_logs=True)
        structlog.contextvars.bind_contextvars(request_id="req-7")

        get_logger("escrow").info("escrow.funded", amount=10**30)

        line = capsys.readouterr().out.strip().splitlines()[-1]
        entry = json.loads(line)
        assert entry["event"] == "escrow.funded"
        assert entry["amount"] == str(10**30)
        assert entry["service"] == SERVICE_NAME
        assert entry["request_id"] == "req-7"

    def test_level_filters_lower_levels(self, capsys) -> None:
        setup_logging(log_level="WARNING", json_logs=True)

        get_logger("escrow").info("escrow.created")

        assert capsys.readouterr().out == ""

    def test_configure_from_settings_uses_level(self) -> None:
        configure_logging(Settings(_env_file=None, app_env="production", app_log_level="ERROR"))
        assert logging.getLogger().level == logging.ERROR
