"""
Monitoring and metrics infrastructure for the complaint audit layer.

This package provides:
- Application metrics collection (counters, gauges, histograms)
- Structured logging with JSON output
- Request timing middleware

Usage:
    from monitoring import metrics, get_logger

    metrics.increment("complaint_operations_total", labels={"operation": "register"})

    logger = get_logger(__name__)
    logger.info("Complaint registered", extra={"complaint_id": "C1"})
"""

from monitoring.logging import LoggingContext, configure_logging, get_logger
from monitoring.metrics import MetricsCollector, metrics
from monitoring.middleware import setup_request_logging

__all__ = [
    "LoggingContext",
    "MetricsCollector",
    "configure_logging",
    "get_logger",
    "metrics",
    "setup_request_logging",
]
