"""
Flask middleware for request logging and metrics.

Provides:
- Request ID tracking (X-Request-ID in and out)
- Request timing and metrics collection
- Structured logging of requests and failures
"""

import time
import uuid

from flask import Flask, Response, g, request

from monitoring.logging import clear_request_context, get_logger, set_request_context
from monitoring.metrics import metrics
from operation_manifest import get_operation

logger = get_logger("audit_layer.request")


def setup_request_logging(app: Flask) -> None:
    """
    Set up request logging middleware for a Flask app.

    Args:
        app: Flask application instance
    """

    @app.before_request
    def before_request():
        g.request_id = request.headers.get("X-Request-ID", str(uuid.uuid4())[:8])
        g.start_time = time.perf_counter()

        set_request_context(
            request_id=g.request_id,
            method=request.method,
            path=request.path,
        )
        metrics.increment_gauge("http_requests_active")

    @app.after_request
    def after_request(response: Response) -> Response:
        _record_request_metrics(response.status_code)

        if hasattr(g, "request_id"):
            response.headers["X-Request-ID"] = g.request_id

        return response

    @app.teardown_request
    def teardown_request(exception=None):
        clear_request_context()
        metrics.decrement_gauge("http_requests_active")

        if exception:
            logger.error(
                "Request failed with exception",
                exc_info=exception,
                extra={
                    "request_id": getattr(g, "request_id", "unknown"),
                    "path": request.path,
                    "method": request.method,
                },
            )


def _record_request_metrics(status_code: int) -> None:
    """Record metrics and a log line for a completed request."""
    duration_ms = 0.0
    if hasattr(g, "start_time"):
        duration_ms = (time.perf_counter() - g.start_time) * 1000

    path = normalize_path(request.path)
    metrics.increment(
        "http_requests_total",
        labels={"method": request.method, "path": path, "status": str(status_code)},
    )
    metrics.timing(
        "http_request_duration_ms",
        duration_ms,
        labels={"method": request.method, "path": path},
    )

    log = logger.info
    if status_code >= 500:
        log = logger.error
    elif status_code >= 400:
        log = logger.warning

    log(
        f"{request.method} {request.path} -> {status_code}",
        extra={
            "status_code": status_code,
            "duration_ms": round(duration_ms, 2),
            "request_id": getattr(g, "request_id", "unknown"),
        },
    )


def normalize_path(path: str) -> str:
    """
    Normalize a path for metrics labels.

    Complaint ids are caller-assigned, so the segment after
    /complaints is always replaced. Operation names after /invoke are kept
    only when published; anything else becomes :operation.
    """
    parts = [p for p in path.strip("/").split("/") if p]
    normalized = []

    for index, part in enumerate(parts):
        if index > 0 and parts[index - 1] == "complaints":
            normalized.append(":complaint_id")
        elif index > 0 and parts[index - 1] == "invoke":
            normalized.append(part if get_operation(part) is not None else ":operation")
        elif part.isdigit():
            normalized.append(":id")
        else:
            normalized.append(part)

    return "/" + "/".join(normalized)
