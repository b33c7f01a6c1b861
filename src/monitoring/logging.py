"""
Structured logging for the complaint audit layer.

Two formats are available: JSON lines for log aggregation (LOG_FORMAT=json)
and a coloured single-line console format for development.

Complaint records carry caller identities, so formatters never write a
user_id as given: it is replaced with a stable pseudonym, which keeps one
complainant's log lines correlatable. API keys presented to the host are
redacted outright.
"""

import hashlib
import json
import logging
import os
import re
import sys
import threading
from datetime import UTC, datetime
from typing import Any

REDACTED = "[REDACTED]"

# key=value / "key": "value" forms and Authorization headers
_KEY_VALUE_PATTERN = re.compile(
    r"(x[_-]api[_-]key|api[_-]?key)([\"']?\s*[:=]\s*[\"']?)([^\s\"',}{]+)", re.IGNORECASE
)
_BEARER_PATTERN = re.compile(r"(Bearer\s+)(\S+)", re.IGNORECASE)

REDACTED_FIELDS = frozenset({"api_key", "x_api_key", "authorization"})
PSEUDONYMIZED_FIELDS = frozenset({"user_id"})

_STANDARD_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime"}


def pseudonymize(value: Any) -> str:
    digest = hashlib.sha256(str(value).encode("utf-8")).hexdigest()
    return f"user:{digest[:10]}"


def redact_string(text: str) -> str:
    """Strip API keys and bearer tokens from free text."""
    if not isinstance(text, str):
        return text
    text = _KEY_VALUE_PATTERN.sub(rf"\1\2{REDACTED}", text)
    return _BEARER_PATTERN.sub(rf"\1{REDACTED}", text)


def redact_sensitive_data(data: Any) -> Any:
    """
    Redact a log payload.

    Dict keys are compared case-insensitively with '-' treated as '_', so
    header names such as X-API-Key match. Nested dicts and lists are walked.
    """
    if isinstance(data, dict):
        result = {}
        for key, value in data.items():
            name = str(key).lower().replace("-", "_")
            if name in REDACTED_FIELDS:
                result[key] = REDACTED
            elif name in PSEUDONYMIZED_FIELDS and value is not None:
                result[key] = pseudonymize(value)
            else:
                result[key] = redact_sensitive_data(value)
        return result
    if isinstance(data, list):
        return [redact_sensitive_data(item) for item in data]
    return redact_string(data)


def _record_extras(record: logging.LogRecord) -> dict[str, Any]:
    """Fields passed through ``extra=``, already redacted."""
    return redact_sensitive_data({
        key: value
        for key, value in record.__dict__.items()
        if key not in _STANDARD_RECORD_ATTRS
    })


# Per-thread request context, filled by the request middleware
_request_context = threading.local()


def set_request_context(**kwargs) -> None:
    if not hasattr(_request_context, "data"):
        _request_context.data = {}
    _request_context.data.update(kwargs)


def clear_request_context() -> None:
    _request_context.data = {}


def get_request_context() -> dict[str, Any]:
    return getattr(_request_context, "data", {})


class JSONFormatter(logging.Formatter):
    """
    One JSON object per line:

    {"timestamp": "...", "level": "INFO", "logger": "complaint_registry",
     "message": "Complaint register accepted", "context": {"request_id": ...},
     "complaint_id": "C1", "user_id": "user:1a2b3c4d5e"}

    Records at WARNING and above also carry their source location.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": redact_string(record.getMessage()),
        }

        if record.levelno >= logging.WARNING:
            entry["location"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        context = get_request_context()
        if context:
            entry["context"] = redact_sensitive_data(context)

        entry.update(_record_extras(record))
        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Coloured development output: ``HH:MM:SS.mmm L [logger] message (context) [extras]``."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        timestamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]
        line = (
            f"{color}{timestamp} {record.levelname[0]} [{record.name}]{self.RESET} "
            f"{redact_string(record.getMessage())}"
        )

        context = get_request_context()
        if context:
            pairs = " ".join(f"{k}={v}" for k, v in redact_sensitive_data(context).items())
            line += f" {color}({pairs}){self.RESET}"

        extras = _record_extras(record)
        if extras:
            line += " [" + ", ".join(f"{k}={v}" for k, v in extras.items()) + "]"

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(level: str = "INFO", json_output: bool | None = None) -> None:
    """
    Install a single stdout handler on the root logger.

    Args:
        level: Log level name
        json_output: JSON lines if True; when None, LOG_FORMAT=json decides
    """
    if json_output is None:
        json_output = os.getenv("LOG_FORMAT", "").lower() == "json"

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if json_output else ConsoleFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    logging.getLogger("werkzeug").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class LoggingContext:
    """
    Temporarily add fields to the request context.

    Usage:
        with LoggingContext(operation="register_proof", complaint_id="C1"):
            logger.info("Persisting registry")
    """

    def __init__(self, **kwargs):
        self.context = kwargs
        self._saved: dict[str, Any] = {}

    def __enter__(self):
        self._saved = dict(get_request_context())
        set_request_context(**self.context)
        return self

    def __exit__(self, _exc_type, _exc_val, _exc_tb):
        clear_request_context()
        set_request_context(**self._saved)
        return False


if not logging.getLogger().handlers:
    configure_logging(level=os.getenv("LOG_LEVEL", "INFO"))
