"""
Shared state for the audit layer API.

This module is the host side of the registry: it owns the single
ComplaintRegistry instance, serialises operations against it, and
persists its export through the configured storage backend after every
accepted write.
"""

import os
import threading
from typing import Any

from complaint_registry import ComplaintRecord, ComplaintRegistry, RegistryFormatError
from monitoring import LoggingContext, get_logger
from operation_manifest import dispatch, get_operation
from storage import StorageBackend, StorageError, get_storage_backend

logger = get_logger(__name__)

VALIDATE_TIMESTAMPS = os.getenv("AUDIT_LAYER_VALIDATE_TIMESTAMPS", "false").lower() == "true"

# ============================================================
# Shared State
# ============================================================

registry: ComplaintRegistry = ComplaintRegistry(enable_timestamp_validation=VALIDATE_TIMESTAMPS)

_storage: StorageBackend | None = None

# One operation at a time against the registry, including its save
_registry_lock = threading.Lock()


def get_storage() -> StorageBackend:
    """Get or create the configured storage backend."""
    global _storage
    if _storage is None:
        _storage = get_storage_backend()
    return _storage


def set_storage(backend: StorageBackend | None) -> None:
    """Replace the storage backend (None re-reads the environment on next use)."""
    global _storage
    _storage = backend


def reset_registry(new_registry: ComplaintRegistry | None = None) -> ComplaintRegistry:
    """Swap in a fresh (or given) registry instance."""
    global registry
    with _registry_lock:
        registry = new_registry or ComplaintRegistry(
            enable_timestamp_validation=VALIDATE_TIMESTAMPS
        )
        return registry


# ============================================================
# Persistence
# ============================================================

def load_registry() -> bool:
    """
    Load the registry from storage if saved data exists.

    Unreadable or invalid data is logged and the registry starts empty.

    Returns:
        True if saved data was loaded
    """
    global registry

    with _registry_lock:
        try:
            data = get_storage().load_registry()
        except StorageError as e:
            logger.warning("Could not read saved registry, starting empty: %s", e)
            return False

        if data is None:
            logger.info("No saved registry found. Starting fresh.")
            return False

        try:
            registry = ComplaintRegistry.from_dict(
                data, enable_timestamp_validation=VALIDATE_TIMESTAMPS
            )
        except RegistryFormatError as e:
            logger.warning("Saved registry is invalid, starting empty: %s", e)
            return False

        logger.info("Loaded registry", extra={"complaint_count": len(registry.store)})
        return True


def save_registry() -> None:
    """
    Persist the current registry export.

    Raises:
        StorageWriteError: If the backend cannot write
    """
    with _registry_lock:
        get_storage().save_registry(registry.to_dict())


# ============================================================
# Operation dispatch
# ============================================================

def invoke(operation: str, arguments: dict[str, Any] | None = None) -> tuple[Any, str | None]:
    """
    Dispatch one published operation and persist accepted writes.

    If saving fails the write is rolled back, so memory never runs ahead
    of storage.

    Returns:
        Tuple of (result, rejection reason or None)

    Raises:
        UnknownOperationError: For names the manifest does not publish
        InvalidArgumentsError: For arguments that do not fit the operation
        StorageWriteError: If an accepted write cannot be persisted
    """
    global registry

    spec = get_operation(operation)
    with _registry_lock, LoggingContext(operation=operation):
        if spec is None or not spec.mutates:
            return dispatch(registry, operation, arguments), None

        before = registry.to_dict()
        result = dispatch(registry, operation, arguments)
        if not result:
            return result, registry.last_rejection

        try:
            get_storage().save_registry(registry.to_dict())
        except StorageError:
            logger.error(
                "Persisting %s failed, rolling back",
                operation,
                exc_info=True,
            )
            registry = ComplaintRegistry.from_dict(
                before, enable_timestamp_validation=registry.enable_timestamp_validation
            )
            raise
        return result, None


def result_to_data(result: Any) -> Any:
    """Convert an operation result into JSON-ready data."""
    if isinstance(result, ComplaintRecord):
        return result.to_dict()
    if isinstance(result, dict):
        return {key: result_to_data(value) for key, value in result.items()}
    return result
