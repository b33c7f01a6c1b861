"""
Monitoring and metrics API endpoints.

This blueprint provides:
- /metrics: Prometheus-compatible metrics endpoint
- /metrics/json: JSON format metrics
- /health: Basic health check
- /health/live: Liveness probe
- /health/ready: Readiness probe
"""

import time

from flask import Blueprint, Response, jsonify

from complaint_registry import __version__
from monitoring import metrics

from . import state

monitoring_bp = Blueprint('monitoring', __name__)

_startup_time = time.time()


def _update_dynamic_metrics() -> None:
    metrics.set_gauge("complaints_registered", len(state.registry.store))


@monitoring_bp.route('/metrics', methods=['GET'])
def prometheus_metrics():
    """Metrics in Prometheus text exposition format."""
    _update_dynamic_metrics()
    return Response(
        metrics.to_prometheus(),
        mimetype='text/plain; charset=utf-8'
    )


@monitoring_bp.route('/metrics/json', methods=['GET'])
def json_metrics():
    _update_dynamic_metrics()
    return jsonify(metrics.get_all())


@monitoring_bp.route('/health', methods=['GET'])
def health():
    """
    Basic health check endpoint.

    Returns service status and registry statistics.
    """
    return jsonify({
        "status": "healthy",
        "service": "Complaint Audit Layer API",
        "version": __version__,
        "uptime_seconds": time.time() - _startup_time,
        "checks": {
            "registry": {
                "status": "ok",
                "complaints": len(state.registry.store),
            },
            "storage": _check_storage(),
        }
    })


@monitoring_bp.route('/health/live', methods=['GET'])
def liveness():
    """Returns 200 while the application is running."""
    return jsonify({"status": "alive"})


@monitoring_bp.route('/health/ready', methods=['GET'])
def readiness():
    """
    Readiness probe.

    Returns 503 while the storage backend is unavailable.
    """
    storage_check = _check_storage()
    if storage_check["status"] != "ok":
        return jsonify({
            "status": "not_ready",
            "issues": [f"storage: {storage_check.get('error', 'not available')}"],
        }), 503

    return jsonify({"status": "ready"})


def _check_storage() -> dict:
    try:
        storage = state.get_storage()
        available = storage.is_available()
        return {
            "status": "ok" if available else "unavailable",
            "backend": storage.__class__.__name__,
        }
    except Exception as e:
        return {"status": "error", "error": str(e)}
