"""Tests for the logging error reporter."""

import logging

import pytest

from src.adapters.driven.logging.error_reporter import LoggingErrorReporter
from src.adapters.driven.logging.logging_config import configure_logs

__all__ = []


def test_reporter_logs_error(caplog: pytest.LogCaptureFixture) -> None:
    """report_error() should emit one ERROR record with the message."""
    reporter = LoggingErrorReporter()

    with caplog.at_level(logging.ERROR):
        reporter.report_error("Fail to create a transport")

    assert [r.getMessage() for r in caplog.records] == ["Fail to create a transport"]
    assert caplog.records[0].levelno == logging.ERROR
    assert reporter.reported == 1


def test_reporter_uses_given_logger(caplog: pytest.LogCaptureFixture) -> None:
    """A custom logger should receive the records."""
    reporter = LoggingErrorReporter(logging.getLogger("custom.sink"))

    with caplog.at_level(logging.ERROR, logger="custom.sink"):
        reporter.report_error("Server is not reachable: http://x")
        reporter.report_error("again")

    assert {r.name for r in caplog.records} == {"custom.sink"}
    assert reporter.reported == 2


def test_configure_logs_is_idempotent() -> None:
    """Repeated configuration should not stack console handlers."""
    root = logging.getLogger()
    before = len(root.handlers)

    configure_logs()
    configure_logs()

    assert len(root.handlers) <= before + 1
    assert logging.getLogger("aiohttp").level == logging.WARNING
    assert logging.getLogger("src").level == logging.DEBUG
