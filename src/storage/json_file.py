"""
JSON file storage backend.

This is the default storage backend. It persists the registry export
to a local JSON file, replacing the file atomically on every save.
"""

import json
import os
import shutil
import threading
from datetime import datetime
from typing import Any

from storage.base import (
    StorageBackend,
    StorageError,
    StorageReadError,
    StorageWriteError,
)

DEFAULT_DATA_FILE = "complaints_data.json"


class JSONFileStorage(StorageBackend):
    """
    JSON file storage backend.

    Thread-safe operations using a file lock.
    """

    def __init__(self, file_path: str = DEFAULT_DATA_FILE):
        """
        Initialize JSON file storage.

        Args:
            file_path: Path to the JSON file
        """
        self.file_path = file_path
        self._lock = threading.Lock()

    def load_registry(self) -> dict[str, Any] | None:
        """
        Load registry data from the JSON file.

        Returns:
            Dictionary containing registry data, or None if the file doesn't exist.

        Raises:
            StorageReadError: If reading fails
        """
        with self._lock:
            try:
                if not os.path.exists(self.file_path):
                    return None

                with open(self.file_path, 'r', encoding='utf-8') as f:
                    raw_data = f.read()

                if not raw_data.strip():
                    return None

                return json.loads(raw_data)

            except FileNotFoundError:
                return None
            except PermissionError as e:
                raise StorageReadError(f"Permission denied: {self.file_path}") from e
            except json.JSONDecodeError as e:
                raise StorageReadError(f"Invalid JSON format: {e}") from e
            except UnicodeDecodeError as e:
                raise StorageReadError(f"Invalid encoding: {e}") from e
            except OSError as e:
                raise StorageReadError(f"Failed to load registry: {e}") from e

    def save_registry(self, registry_data: dict[str, Any]) -> None:
        """
        Save registry data to the JSON file.

        Args:
            registry_data: Dictionary containing the complete registry state

        Raises:
            StorageWriteError: If writing fails
        """
        with self._lock:
            try:
                data = json.dumps(registry_data, indent=2, ensure_ascii=False)

                # Write to a temp file, then rename over the target
                temp_path = f"{self.file_path}.tmp"
                with open(temp_path, 'w', encoding='utf-8') as f:
                    f.write(data)

                os.replace(temp_path, self.file_path)

            except PermissionError as e:
                raise StorageWriteError(
                    f"Permission denied: {self.file_path}"
                ) from e
            except (TypeError, ValueError) as e:
                raise StorageWriteError(f"Registry data is not JSON serializable: {e}") from e
            except OSError as e:
                raise StorageWriteError(f"OS error: {e}") from e

    def is_available(self) -> bool:
        """
        Check if file storage is available.

        Returns:
            True if the file's directory exists and is writable
        """
        directory = os.path.dirname(self.file_path) or "."
        if not os.path.exists(directory):
            return False
        return os.access(directory, os.W_OK)

    def get_info(self) -> dict[str, Any]:
        """Get storage backend information."""
        info = super().get_info()
        info.update({
            "file_path": self.file_path,
            "file_exists": os.path.exists(self.file_path),
        })

        if os.path.exists(self.file_path):
            try:
                stat = os.stat(self.file_path)
                info["file_size_bytes"] = stat.st_size
                info["last_modified"] = stat.st_mtime
            except OSError:
                pass

            try:
                info["complaint_count"] = self.get_complaint_count()
                info["proof_count"] = self.get_proof_count()
            except StorageReadError as e:
                info["read_error"] = str(e)

        return info

    def delete(self) -> bool:
        """
        Delete the storage file.

        Returns:
            True if deleted, False if file didn't exist
        """
        with self._lock:
            try:
                if os.path.exists(self.file_path):
                    os.remove(self.file_path)
                    return True
                return False
            except OSError:
                return False

    def backup(self, backup_path: str | None = None) -> str:
        """
        Create a backup of the storage file.

        Args:
            backup_path: Path for backup file (default: adds .backup suffix)

        Returns:
            Path to the backup file

        Raises:
            StorageError: If backup fails
        """
        if backup_path is None:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            backup_path = f"{self.file_path}.{timestamp}.backup"

        try:
            with self._lock:
                if not os.path.exists(self.file_path):
                    raise StorageError("No file to backup")
                shutil.copy2(self.file_path, backup_path)
                return backup_path
        except OSError as e:
            raise StorageError(f"Backup failed: {e}") from e
