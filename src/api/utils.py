"""
Shared utilities for the audit layer API.

Authentication of callers belongs to the host, not the registry: every
request that reaches the registry has already passed require_api_key.
"""

import os
import secrets
from functools import wraps
from typing import Any

from flask import jsonify, request

# ============================================================
# Security Configuration
# ============================================================

API_KEY = os.getenv("AUDIT_LAYER_API_KEY", None)
# Default to requiring authentication
API_KEY_REQUIRED = os.getenv("AUDIT_LAYER_REQUIRE_AUTH", "true").lower() == "true"


def require_api_key(f):
    """Decorator to require API key authentication."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not API_KEY_REQUIRED:
            return f(*args, **kwargs)

        provided_key = request.headers.get('X-API-Key')

        if not provided_key:
            return jsonify({
                "error": "API key required",
                "hint": "Provide API key in X-API-Key header"
            }), 401

        if not API_KEY:
            return jsonify({
                "error": "Server API key not configured",
                "hint": "Set AUDIT_LAYER_API_KEY environment variable"
            }), 503

        if not secrets.compare_digest(provided_key, API_KEY):
            return jsonify({"error": "Invalid API key"}), 403

        return f(*args, **kwargs)
    return decorated_function


# ============================================================
# Input Validation
# ============================================================

MAX_ARGUMENT_LENGTH = int(os.getenv("AUDIT_LAYER_MAX_ARGUMENT_LENGTH", "4096"))


def validate_json_schema(
    data: dict[str, Any],
    required_fields: dict[str, type],
    optional_fields: dict[str, type] | None = None,
    max_lengths: dict[str, int] | None = None
) -> tuple:
    """
    Validate a JSON payload against a simple schema.

    Args:
        data: The JSON data to validate
        required_fields: Dict mapping field names to expected types
        optional_fields: Dict mapping optional field names to expected types
        max_lengths: Dict mapping field names to maximum string lengths

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not isinstance(data, dict):
        return False, "Request body must be a JSON object"

    for field_name, expected_type in required_fields.items():
        if field_name not in data:
            return False, f"Missing required field: {field_name}"
        if not isinstance(data[field_name], expected_type):
            return False, f"Field '{field_name}' must be of type {expected_type.__name__}"

    if optional_fields:
        for field_name, expected_type in optional_fields.items():
            if data.get(field_name) is not None and not isinstance(data[field_name], expected_type):
                return False, f"Field '{field_name}' must be of type {expected_type.__name__}"

    if max_lengths:
        for field_name, max_len in max_lengths.items():
            value = data.get(field_name)
            if isinstance(value, str) and len(value) > max_len:
                return False, f"Field '{field_name}' exceeds maximum length of {max_len}"

    return True, None
