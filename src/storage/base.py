"""
Abstract base class for storage backends.

This module defines the interface that all registry storage backends
must implement.
"""

from abc import ABC, abstractmethod
from typing import Any


class StorageError(Exception):
    """Base exception for storage-related errors."""
    pass


class StorageReadError(StorageError):
    """Raised when reading from storage fails."""
    pass


class StorageWriteError(StorageError):
    """Raised when writing to storage fails."""
    pass


class StorageBackend(ABC):
    """
    Abstract base class for complaint registry storage backends.

    Backends persist the value-level export of a registry
    (``ComplaintRegistry.to_dict()``) and hand it back unchanged.
    """

    @abstractmethod
    def load_registry(self) -> dict[str, Any] | None:
        """
        Load the registry data from storage.

        Returns:
            Dictionary containing registry data, or None if no data exists.

        Raises:
            StorageReadError: If reading fails
        """
        pass

    @abstractmethod
    def save_registry(self, registry_data: dict[str, Any]) -> None:
        """
        Save the registry data to storage.

        Args:
            registry_data: Dictionary containing the complete registry state

        Raises:
            StorageWriteError: If writing fails
        """
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """
        Check if the storage backend is available and ready.

        Returns:
            True if storage is accessible, False otherwise
        """
        pass

    def get_info(self) -> dict[str, Any]:
        """
        Get information about the storage backend.

        Returns:
            Dictionary with backend type, status, and configuration
        """
        return {
            "backend_type": self.__class__.__name__,
            "available": self.is_available(),
        }

    def get_complaint_count(self) -> int:
        """
        Get the number of stored complaints.

        Default implementation loads the whole registry.
        """
        registry_data = self.load_registry()
        if registry_data and "complaints" in registry_data:
            return len(registry_data["complaints"])
        return 0

    def get_proof_count(self) -> int:
        """Get the total number of proofs across all stored complaints."""
        registry_data = self.load_registry()
        if registry_data and "complaints" in registry_data:
            return sum(
                len(complaint.get("proofs", []))
                for complaint in registry_data["complaints"].values()
            )
        return 0

    def close(self) -> None:
        """
        Close the storage connection and release resources.

        Default implementation does nothing - backends with connections
        should override this.
        """
        pass

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - closes connection."""
        self.close()
        return False
