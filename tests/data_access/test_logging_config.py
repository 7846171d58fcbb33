"""Tests for structured logging helpers."""

import io
import json
import logging

import pytest

from RestScroll.DataAccess.logging_config import (
    LOGGER_NAME,
    JSONFormatter,
    configure_logging,
    mask_sensitive_data,
)


@pytest.fixture
def restore_logger():
    logger = logging.getLogger(LOGGER_NAME)
    level = logger.level
    yield logger
    for handler in list(logger.handlers):
        if getattr(handler, "_restscroll_managed", False):
            logger.removeHandler(handler)
    logger.setLevel(level)


def test_mask_sensitive_data_nested():
    masked = mask_sensitive_data(
        {"status": 200, "headers": {"Authorization": "Bearer abc", "Accept": "application/json"}, "note": "bearer xyz"}
    )
    assert masked["status"] == 200
    assert masked["headers"] == {"Authorization": "***masked***", "Accept": "application/json"}
    assert masked["note"] == "***masked***"


def test_json_formatter_includes_extra_fields():
    record = logging.makeLogRecord(
        {"msg": "retry %d", "args": (2,), "levelname": "WARNING", "name": "RestScroll.x", "extra_fields": {"token": "t"}}
    )
    payload = json.loads(JSONFormatter().format(record))
    assert payload["message"] == "retry 2"
    assert payload["level"] == "WARNING"
    assert payload["logger"] == "RestScroll.x"
    assert payload["token"] == "***masked***"


def test_configure_logging_replaces_managed_handler(restore_logger):
    first = io.StringIO()
    second = io.StringIO()
    configure_logging("DEBUG", json_format=True, stream=first)
    configure_logging("INFO", json_format=True, stream=second)

    logging.getLogger("RestScroll.DataAccess.pagination").info("hello")

    managed = [h for h in restore_logger.handlers if getattr(h, "_restscroll_managed", False)]
    assert len(managed) == 1
    assert first.getvalue() == ""
    assert json.loads(second.getvalue().strip())["message"] == "hello"
    assert restore_logger.level == logging.INFO


def test_plain_text_format(restore_logger):
    stream = io.StringIO()
    configure_logging("WARNING", stream=stream)
    logging.getLogger("RestScroll.DataAccess.retry").warning("retry attempt=1")
    assert stream.getvalue().strip() == "WARNING RestScroll.DataAccess.retry: retry attempt=1"
