"""Tests for logging setup and secret redaction."""

import logging

import structlog

from eva.logging import get_logger, redact_secrets, setup_logging


def test_redact_secrets_masks_credential_fields() -> None:
    event = {
        "event": "order_placed",
        "api_key": "abc",
        "api_secret": "xyz",
        "signature": "deadbeef",
        "symbol": "BTCUSDT",
    }
    result = redact_secrets(logging.getLogger("test"), "info", event)
    assert result["api_key"] == "***"
    assert result["api_secret"] == "***"
    assert result["signature"] == "***"
    assert result["symbol"] == "BTCUSDT"


def test_setup_logging_sets_levels() -> None:
    setup_logging("DEBUG")
    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("websockets").level == logging.WARNING
    assert get_logger("eva.test") is not None


def test_unknown_level_falls_back_to_info() -> None:
    setup_logging("chatty")
    assert logging.getLogger().level == logging.INFO


def test_json_format_installs_json_renderer() -> None:
    setup_logging("INFO", log_format="json")
    formatter = logging.getLogger().handlers[0].formatter
    assert isinstance(formatter, structlog.stdlib.ProcessorFormatter)
    assert any(isinstance(p, structlog.processors.JSONRenderer) for p in formatter.processors)
