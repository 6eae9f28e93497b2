"""Tests for logging configuration."""

import json
import logging

import pytest

from awsum_ilb.config import LoggingConfig
from awsum_ilb.logging_config import JSONFormatter, TextFormatter, configure_logging


def _record(msg="test", args=()) -> logging.LogRecord:
    return logging.LogRecord(
        name="awsum_ilb.test", level=logging.INFO, pathname="", lineno=0,
        msg=msg, args=args, exc_info=None,
    )


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestJSONFormatter:
    def test_formats_as_json(self):
        parsed = json.loads(JSONFormatter().format(_record("hello %s", ("world",))))
        assert parsed["message"] == "hello world"
        assert parsed["level"] == "INFO"
        assert parsed["logger"] == "awsum_ilb.test"
        assert "timestamp" in parsed

    def test_includes_extra_fields(self):
        record = _record()
        record.service = "web"  # type: ignore
        record.resource_name = "awsum-ilb-svc-web"  # type: ignore
        record.total_instances = 3  # type: ignore
        parsed = json.loads(JSONFormatter().format(record))
        assert parsed["service"] == "web"
        assert parsed["resource_name"] == "awsum-ilb-svc-web"
        assert parsed["total_instances"] == 3

    def test_omits_unknown_and_missing_extras(self):
        record = _record()
        record.backend = "ignored"  # type: ignore
        parsed = json.loads(JSONFormatter().format(record))
        assert "backend" not in parsed
        assert "arn" not in parsed


class TestConfigureLogging:
    def test_json_format(self):
        configure_logging(LoggingConfig(level="DEBUG", format="json"))
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert any(isinstance(h.formatter, JSONFormatter) for h in root.handlers)

    def test_text_format(self):
        configure_logging(LoggingConfig(level="WARNING", format="text"))
        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert any(isinstance(h.formatter, TextFormatter) for h in root.handlers)

    def test_suppresses_noisy_loggers(self):
        configure_logging(LoggingConfig())
        assert logging.getLogger("botocore").level >= logging.WARNING
        assert logging.getLogger("boto3").level >= logging.WARNING
        assert logging.getLogger("urllib3").level >= logging.WARNING
