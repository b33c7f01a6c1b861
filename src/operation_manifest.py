"""
Complaint Audit Layer - Operation Manifest

Machine-readable descriptions of the registry operations for external
tool-calling agents, and name-based dispatch of those operations for hosts.

Each operation has a stable published name, a description, and an ordered
list of parameters (name, JSON type, description, required). Parameter
order matches the ComplaintRegistry method signature.

Usage:
    from operation_manifest import tools, dispatch

    tool_list = tools()
    accepted = dispatch(registry, "complaint_register", {
        "complaint_id": "C1",
        "complaint_hash": "9f86d081...",
        "user_id": "U1",
        "timestamp": "2025-01-15T10:30:00",
    })
"""

import json
from dataclasses import dataclass, field
from typing import Any


class UnknownOperationError(LookupError):
    """Raised when dispatching an operation name that is not published."""
    pass


class InvalidArgumentsError(ValueError):
    """Raised when dispatch arguments do not match the operation's parameters."""
    pass


@dataclass(frozen=True)
class OperationParameter:
    """A single named parameter of an operation."""
    name: str
    description: str
    type: str = "string"
    required: bool = True

    def to_schema(self) -> dict[str, Any]:
        return {"type": self.type, "description": self.description}


@dataclass(frozen=True)
class OperationSpec:
    """Published description of one registry operation."""
    name: str
    method: str
    description: str
    parameters: tuple[OperationParameter, ...] = field(default_factory=tuple)
    mutates: bool = False

    @property
    def parameter_names(self) -> list[str]:
        return [p.name for p in self.parameters]

    @property
    def required_parameters(self) -> list[str]:
        return [p.name for p in self.parameters if p.required]

    def to_tool(self) -> dict[str, Any]:
        """Render as an OpenAI-style function tool definition."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": {
                    "type": "object",
                    "properties": {p.name: p.to_schema() for p in self.parameters},
                    "required": self.required_parameters,
                },
            },
        }


_COMPLAINT_ID = "complaint_id"

OPERATIONS: tuple[OperationSpec, ...] = (
    OperationSpec(
        name="complaint_register",
        method="register",
        description="Register a new complaint",
        mutates=True,
        parameters=(
            OperationParameter(_COMPLAINT_ID, "Unique complaint id"),
            OperationParameter("complaint_hash", "SHA256 hash of the complaint text"),
            OperationParameter("user_id", "Unique user id"),
            OperationParameter("timestamp", "Time at which the complaint is registered"),
        ),
    ),
    OperationSpec(
        name="register_proof",
        method="attach_proof",
        description=(
            "Store the hash of a proof, the type of proof and the time it was "
            "submitted against an active complaint"
        ),
        mutates=True,
        parameters=(
            OperationParameter(_COMPLAINT_ID, "Complaint id to which the proof belongs"),
            OperationParameter("proof_hash", "SHA256 hash of the proof"),
            OperationParameter("proof_type", "Type of the proof which has been submitted"),
            OperationParameter("timestamp", "Time at which the proof was submitted"),
        ),
    ),
    OperationSpec(
        name="update_complaint_status",
        method="update_status",
        description=(
            "Update the complaint status. Complaints that are already RESOLVED "
            "or REJECTED are left unchanged"
        ),
        mutates=True,
        parameters=(
            OperationParameter(_COMPLAINT_ID, "Complaint id whose status is updated"),
            OperationParameter(
                "status",
                "New status: FILED, UNDER_INVESTIGATION, RESOLVED or REJECTED",
            ),
            OperationParameter("timestamp", "Time at which the complaint status is updated"),
        ),
    ),
    OperationSpec(
        name="get_complaints",
        method="get_all",
        description="Fetch all complaints",
    ),
    OperationSpec(
        name="get_complaint",
        method="get_one",
        description="Fetch a single complaint by complaint id",
        parameters=(
            OperationParameter(_COMPLAINT_ID, "Complaint id to retrieve"),
        ),
    ),
)

_BY_NAME: dict[str, OperationSpec] = {op.name: op for op in OPERATIONS}

_JSON_TYPES: dict[str, type] = {
    "string": str,
    "boolean": bool,
    "integer": int,
    "object": dict,
    "array": list,
}


def get_operation(name: str) -> OperationSpec | None:
    """Look up a published operation by name."""
    return _BY_NAME.get(name)


def operation_names() -> list[str]:
    return [op.name for op in OPERATIONS]


def tools() -> list[dict[str, Any]]:
    """All operations as a function tool list."""
    return [op.to_tool() for op in OPERATIONS]


def tools_json(indent: int = 2) -> str:
    return json.dumps(tools(), indent=indent)


def prompts() -> dict[str, Any]:
    """Prompt catalogue published alongside the tools. None are defined."""
    return {"prompts": []}


def validate_arguments(spec: OperationSpec, arguments: Any) -> dict[str, Any]:
    """
    Check dispatch arguments against an operation's parameters.

    Args:
        spec: The operation being invoked
        arguments: Mapping of parameter name to value

    Returns:
        Keyword arguments in parameter order

    Raises:
        InvalidArgumentsError: If arguments are missing, unexpected or mistyped
    """
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, dict):
        raise InvalidArgumentsError("Arguments must be an object")

    unexpected = sorted(set(arguments) - set(spec.parameter_names))
    if unexpected:
        raise InvalidArgumentsError(
            f"Unexpected arguments for {spec.name}: {', '.join(unexpected)}"
        )

    kwargs: dict[str, Any] = {}
    for param in spec.parameters:
        if param.name not in arguments:
            if param.required:
                raise InvalidArgumentsError(f"Missing required argument: {param.name}")
            continue
        value = arguments[param.name]
        expected = _JSON_TYPES.get(param.type)
        if expected is not None and not isinstance(value, expected):
            raise InvalidArgumentsError(
                f"Argument '{param.name}' must be of type {param.type}"
            )
        kwargs[param.name] = value
    return kwargs


def dispatch(registry: Any, name: str, arguments: dict[str, Any] | None = None) -> Any:
    """
    Invoke a published operation on a registry by name.

    Raises:
        UnknownOperationError: If no operation has this name
        InvalidArgumentsError: If the arguments do not fit the operation
    """
    spec = get_operation(name)
    if spec is None:
        raise UnknownOperationError(f"Unknown operation: {name}")
    kwargs = validate_arguments(spec, arguments)
    return getattr(registry, spec.method)(**kwargs)
