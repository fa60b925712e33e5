"""Tests for JSON logging and PII redaction."""

import json
import logging
import re

import pytest

from backend.core.observability import bind_request_context
from backend.core.observability.logging import JSONFormatter


def _record(msg: str, **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="test",
        level=logging.INFO,
        pathname="",
        lineno=0,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestLoggerPII:
    """PII redaction in log messages and extra fields."""

    @pytest.fixture
    def formatter(self):
        return JSONFormatter()

    def test_iban_redaction(self, formatter):
        log_data = json.loads(formatter.format(_record("Zahlung auf IBAN DE89370400440532013000")))

        assert "DE89370400440532013000" not in log_data["msg"]
        assert "DE********************" in log_data["msg"]

    def test_email_redaction(self, formatter):
        log_data = json.loads(formatter.format(_record("Rechnung an buy@acme.de versendet")))

        assert "buy@acme.de" not in log_data["msg"]
        assert "b**@acme.de" in log_data["msg"]

    def test_phone_redaction(self, formatter):
        log_data = json.loads(formatter.format(_record("Rückruf: +49 30 12345678")))

        assert "+49 30 12345678" not in log_data["msg"]
        assert "+4*************" in log_data["msg"]

    def test_extra_fields_pii_redaction(self, formatter):
        record = _record(
            "generate_formats_start",
            buyer_email="jane.smith@example.com",
            payee_iban="FR1420041010050500013M02606",
            formats=["xrechnung", "zugferd"],
            duration_ms=1.25,
        )
        log_data = json.loads(formatter.format(record))

        assert log_data["buyer_email"] == "j*********@example.com"
        assert log_data["payee_iban"].startswith("FR**")
        assert "FR1420041010050500013M02606" not in log_data["payee_iban"]
        assert log_data["formats"] == ["xrechnung", "zugferd"]
        assert log_data["duration_ms"] == 1.25

    def test_no_pii_preserved(self, formatter):
        log_data = json.loads(formatter.format(_record("Format XRechnung erzeugt")))

        assert log_data["msg"] == "Format XRechnung erzeugt"
        assert log_data["level"] == "info"

    def test_single_character_email(self, formatter):
        log_data = json.loads(formatter.format(_record("Email: a@b.com")))

        assert "a@b.com" not in log_data["msg"]
        assert "*@b.com" in log_data["msg"]


class TestLoggerContext:
    def test_mandatory_fields_and_bound_context(self):
        trace_id = bind_request_context("trace-123", "acme-01")
        log_data = json.loads(JSONFormatter().format(_record("generate_formats_done")))

        assert trace_id == "trace-123"
        assert log_data["trace_id"] == "trace-123"
        assert log_data["tenant_id"] == "acme-01"
        assert re.match(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$", log_data["ts_utc"])

    def test_defaults_without_context(self):
        trace_id = bind_request_context(None, None)
        log_data = json.loads(JSONFormatter().format(_record("x")))

        assert log_data["trace_id"] == trace_id
        assert len(trace_id) == 36
        assert log_data["tenant_id"] == "unknown"

    def test_exception_info_is_included(self):
        try:
            raise RuntimeError("kaputt")
        except RuntimeError:
            import sys

            record = _record("generate_formats_failed")
            record.exc_info = sys.exc_info()
        log_data = json.loads(JSONFormatter().format(record))

        assert "RuntimeError: kaputt" in log_data["exc_info"]
