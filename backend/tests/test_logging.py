"""Tests for structured logging."""

import io
import json
import logging

import pytest

from qtibridge.core.logging import get_logger, setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_records_are_json_with_extra_fields(restore_root_logger):
    stream = io.StringIO()
    setup_logging("INFO", stream=stream)

    get_logger("qtibridge.test").info("QTI export completed", extra={"total": 3, "failed": 1})

    record = json.loads(stream.getvalue().strip())
    assert record["event"] == "QTI export completed"
    assert record["level"] == "INFO"
    assert record["logger"] == "qtibridge.test"
    assert record["total"] == 3
    assert record["failed"] == 1
    assert "message" not in record


def test_level_filters_records(restore_root_logger):
    stream = io.StringIO()
    setup_logging("warning", stream=stream)

    get_logger("qtibridge.test").info("hidden")

    assert stream.getvalue() == ""
