"""
Storage abstraction layer for the complaint audit layer.

The registry core does not persist itself; the host saves and reloads its
value-level export through one of these backends:

- JSON file (default)
- Memory (for testing)

Usage:
    from storage import get_storage_backend

    storage = get_storage_backend()
    storage.save_registry(registry.to_dict())
    data = storage.load_registry()
"""

import os

from storage.base import (
    StorageBackend,
    StorageError,
    StorageReadError,
    StorageWriteError,
)
from storage.json_file import DEFAULT_DATA_FILE, JSONFileStorage
from storage.memory import MemoryStorage

__all__ = [
    "JSONFileStorage",
    "MemoryStorage",
    "StorageBackend",
    "StorageError",
    "StorageReadError",
    "StorageWriteError",
    "get_storage_backend",
]


def get_storage_backend() -> StorageBackend:
    """
    Get the configured storage backend based on environment variables.

    Environment variables:
        STORAGE_BACKEND: Backend type ("json", "memory")
        AUDIT_LAYER_DATA_FILE: Path for JSON file storage (default: complaints_data.json)

    Returns:
        Configured StorageBackend instance
    """
    backend_type = os.getenv("STORAGE_BACKEND", "json").lower()

    if backend_type == "json":
        data_file = os.getenv("AUDIT_LAYER_DATA_FILE", DEFAULT_DATA_FILE)
        return JSONFileStorage(data_file)

    elif backend_type == "memory":
        return MemoryStorage()

    else:
        raise StorageError(f"Unknown storage backend: {backend_type}")
