"""
In-memory storage backend.

This backend keeps the registry snapshot in memory only, useful for:
- Unit testing
- Development
- Ephemeral registries
"""

import copy
import threading
from typing import Any

from storage.base import StorageBackend


class MemoryStorage(StorageBackend):
    """
    In-memory storage backend.

    All data is lost when the process exits. Thread-safe operations.
    """

    def __init__(self):
        """Initialize empty memory storage."""
        self._data: dict[str, Any] | None = None
        # Reentrant: get_info calls the count helpers while holding the lock
        self._lock = threading.RLock()

    def load_registry(self) -> dict[str, Any] | None:
        """
        Load registry data from memory.

        Returns:
            Copy of stored data, or None if empty
        """
        with self._lock:
            if self._data is None:
                return None
            return copy.deepcopy(self._data)

    def save_registry(self, registry_data: dict[str, Any]) -> None:
        """
        Save registry data to memory.

        Args:
            registry_data: Dictionary containing the complete registry state
        """
        with self._lock:
            self._data = copy.deepcopy(registry_data)

    def is_available(self) -> bool:
        """Memory storage is always available."""
        return True

    def get_info(self) -> dict[str, Any]:
        """Get storage backend information."""
        info = super().get_info()
        with self._lock:
            info.update(
                {
                    "has_data": self._data is not None,
                    "complaint_count": self.get_complaint_count(),
                    "proof_count": self.get_proof_count(),
                }
            )
        return info

    def clear(self) -> None:
        """Clear all stored data."""
        with self._lock:
            self._data = None

    def get_complaint_count(self) -> int:
        with self._lock:
            if self._data and "complaints" in self._data:
                return len(self._data["complaints"])
            return 0

    def get_proof_count(self) -> int:
        with self._lock:
            if self._data and "complaints" in self._data:
                return sum(
                    len(complaint.get("proofs", []))
                    for complaint in self._data["complaints"].values()
                )
            return 0
