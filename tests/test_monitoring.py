"""
Tests for logging, metrics and request middleware helpers.
"""

import json
import logging

import pytest

from monitoring.logging import (
    ConsoleFormatter,
    JSONFormatter,
    LoggingContext,
    get_request_context,
    pseudonymize,
    redact_sensitive_data,
    redact_string,
)
from monitoring.metrics import MetricsCollector
from monitoring.middleware import normalize_path


def make_record(msg, level=logging.INFO, **extra):
    record = logging.LogRecord(
        name="complaint_registry",
        level=level,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestRedaction:
    """Tests for sensitive data redaction."""

    def test_redacts_api_key_in_string(self):
        assert "secret-value" not in redact_string("api_key=secret-value")

    def test_redacts_bearer_token(self):
        assert redact_string("Authorization: Bearer abc.def").endswith("[REDACTED]")

    def test_redacts_header_style_key(self):
        assert redact_string("X-API-Key: k-123") == "X-API-Key: [REDACTED]"

    def test_leaves_complaint_fields_alone(self):
        assert redact_string("complaint_hash=9f86d081") == "complaint_hash=9f86d081"

    def test_pseudonym_is_stable_and_hides_value(self):
        assert pseudonymize("U1") == pseudonymize("U1")
        assert pseudonymize("U1") != pseudonymize("U2")
        assert "U1" not in pseudonymize("U1")
        assert pseudonymize("U1").startswith("user:")

    def test_redacts_fields_recursively(self):
        data = {"complaint_id": "C1", "headers": {"X-API-Key": "k", "items": [{"Authorization": "t"}]}}
        redacted = redact_sensitive_data(data)
        assert redacted["complaint_id"] == "C1"
        assert redacted["headers"]["X-API-Key"] == "[REDACTED]"
        assert redacted["headers"]["items"][0]["Authorization"] == "[REDACTED]"

    def test_user_id_is_pseudonymized(self):
        redacted = redact_sensitive_data({"complaint_id": "C1", "user_id": "U1"})
        assert redacted == {"complaint_id": "C1", "user_id": pseudonymize("U1")}


class TestFormatters:
    """Tests for JSON and console formatters."""

    def test_json_formatter_includes_extras(self):
        record = make_record("Complaint register accepted", complaint_id="C1", reason=None)
        entry = json.loads(JSONFormatter().format(record))

        assert entry["level"] == "INFO"
        assert entry["logger"] == "complaint_registry"
        assert entry["message"] == "Complaint register accepted"
        assert entry["complaint_id"] == "C1"
        assert "location" not in entry

    def test_json_formatter_never_writes_user_id(self):
        record = make_record("Complaint register accepted", complaint_id="C1", user_id="U-alice")
        line = JSONFormatter().format(record)
        assert "U-alice" not in line
        assert json.loads(line)["user_id"] == pseudonymize("U-alice")

    def test_json_formatter_location_for_warnings(self):
        entry = json.loads(JSONFormatter().format(make_record("careful", level=logging.WARNING)))
        assert entry["location"]["line"] == 1

    def test_json_formatter_includes_context(self):
        with LoggingContext(request_id="abc123"):
            entry = json.loads(JSONFormatter().format(make_record("hello")))
        assert entry["context"] == {"request_id": "abc123"}
        assert get_request_context() == {}

    def test_console_formatter(self):
        line = ConsoleFormatter().format(make_record("hello", complaint_id="C1", user_id="U1"))
        assert "[complaint_registry]" in line
        assert "complaint_id=C1" in line
        assert f"user_id={pseudonymize('U1')}" in line

    def test_logging_context_restores_outer_context(self):
        with LoggingContext(request_id="r1"):
            with LoggingContext(operation="register_proof"):
                assert get_request_context() == {"request_id": "r1", "operation": "register_proof"}
            assert get_request_context() == {"request_id": "r1"}


class TestMetricsCollector:
    """Tests for the metrics collector."""

    @pytest.fixture
    def collector(self):
        return MetricsCollector()

    def test_counters_with_labels(self, collector):
        collector.increment("ops", labels={"operation": "register"})
        collector.increment("ops", labels={"operation": "register"})
        collector.increment("ops", labels={"operation": "attach_proof"})

        assert collector.get_counter("ops", {"operation": "register"}) == 2
        assert collector.get_counter("ops", {"operation": "attach_proof"}) == 1
        assert collector.get_counter("ops") == 0

    def test_gauges(self, collector):
        collector.set_gauge("complaints_registered", 3)
        collector.increment_gauge("complaints_registered")
        collector.decrement_gauge("complaints_registered", 2)
        assert collector.get_gauge("complaints_registered") == 2

    def test_timer(self, collector):
        with collector.timer("work_ms"):
            pass
        hist = collector.get_all()["histograms"]["work_ms"]["_total"]
        assert hist["count"] == 1

    def test_prometheus_export(self, collector):
        collector.increment("complaint_operations_total", labels={"outcome": "accepted"})
        collector.timing("http_request_duration_ms", 12.0)
        text = collector.to_prometheus()

        assert 'audit_layer_complaint_operations_total{outcome="accepted"} 1' in text
        assert 'audit_layer_http_request_duration_ms_bucket{le="25"} 1' in text
        assert "audit_layer_http_request_duration_ms_count 1" in text

    def test_reset(self, collector):
        collector.increment("ops")
        collector.reset()
        assert collector.get_all()["counters"] == {}


class TestNormalizePath:
    """Tests for metrics path normalization."""

    @pytest.mark.parametrize("path,expected", [
        ("/complaints/C-1001", "/complaints/:complaint_id"),
        ("/complaints", "/complaints"),
        ("/invoke/register_proof", "/invoke/register_proof"),
        ("/invoke/drop_everything_7f3a", "/invoke/:operation"),
        ("/", "/"),
        ("/items/42", "/items/:id"),
    ])
    def test_normalize(self, path, expected):
        assert normalize_path(path) == expected
