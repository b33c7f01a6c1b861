"""
Complaint registry blueprint.

Routes requests to the registry operations:
- GET  /tools                       Published operation descriptions
- GET  /prompts                     Published prompt catalogue
- POST /invoke/<operation>          Invoke an operation with a JSON argument object
- GET  /complaints                  All complaints
- GET  /complaints/<complaint_id>   One complaint
"""

from flask import Blueprint, jsonify, request

import operation_manifest
from monitoring import get_logger
from operation_manifest import InvalidArgumentsError, UnknownOperationError
from storage import StorageError

from . import state
from .utils import MAX_ARGUMENT_LENGTH, require_api_key, validate_json_schema

logger = get_logger(__name__)

complaints_bp = Blueprint("complaints", __name__)

_JSON_TYPES = {"string": str, "boolean": bool, "object": dict, "array": list}


@complaints_bp.route("/tools", methods=["GET"])
def list_tools():
    """Operation descriptions for tool-calling agents."""
    return jsonify(operation_manifest.tools())


@complaints_bp.route("/prompts", methods=["GET"])
def list_prompts():
    return jsonify(operation_manifest.prompts())


@complaints_bp.route("/invoke/<operation>", methods=["POST"])
@require_api_key
def invoke_operation(operation: str):
    """
    Invoke a registry operation.

    Request body: JSON object mapping parameter names to values, e.g.
    {
        "complaint_id": "C1",
        "proof_hash": "e3b0c442...",
        "proof_type": "document",
        "timestamp": "2025-01-15T10:30:00"
    }

    Returns:
        {"operation": ..., "result": ...} plus "reason" for rejected writes
    """
    spec = operation_manifest.get_operation(operation)
    if spec is None:
        return jsonify({
            "error": f"Unknown operation: {operation}",
            "available": operation_manifest.operation_names(),
        }), 404

    arguments = request.get_json(silent=True)
    if arguments is None and request.content_length:
        return jsonify({"error": "Request body must be a JSON object"}), 400

    if arguments is not None:
        is_valid, error_msg = validate_json_schema(
            arguments,
            required_fields={
                p.name: _JSON_TYPES[p.type] for p in spec.parameters if p.required
            },
            optional_fields={
                p.name: _JSON_TYPES[p.type] for p in spec.parameters if not p.required
            },
            max_lengths={p.name: MAX_ARGUMENT_LENGTH for p in spec.parameters},
        )
        if not is_valid:
            return jsonify({"error": error_msg}), 400

    try:
        result, reason = state.invoke(operation, arguments)
    except UnknownOperationError as e:
        return jsonify({"error": str(e)}), 404
    except InvalidArgumentsError as e:
        return jsonify({"error": str(e)}), 400
    except StorageError as e:
        logger.error("Operation could not be persisted", extra={"operation": operation})
        return jsonify({"error": "Failed to persist registry", "reason": str(e)}), 500

    response = {"operation": operation, "result": state.result_to_data(result)}
    if reason is not None:
        response["reason"] = reason
    return jsonify(response)


@complaints_bp.route("/complaints", methods=["GET"])
@require_api_key
def get_complaints():
    complaints, _ = state.invoke("get_complaints")
    return jsonify({
        "count": len(complaints),
        "complaints": state.result_to_data(complaints),
    })


@complaints_bp.route("/complaints/<complaint_id>", methods=["GET"])
@require_api_key
def get_complaint(complaint_id: str):
    complaint, _ = state.invoke("get_complaint", {"complaint_id": complaint_id})
    if complaint is None:
        return jsonify({"error": "Complaint not found", "complaint_id": complaint_id}), 404
    return jsonify(complaint.to_dict())
