"""
Tests for storage backends.
"""

import json
import os
import tempfile
import threading

import pytest

from complaint_registry import ComplaintRegistry
from storage import StorageError, get_storage_backend
from storage.base import StorageReadError
from storage.json_file import JSONFileStorage
from storage.memory import MemoryStorage

SAMPLE_REGISTRY_DATA = {
    "complaints": {
        "C1": {
            "complaint_id": "C1",
            "user_id": "U1",
            "complaint_hash": "hashA",
            "filed_at": "2025-01-15T10:30:00",
            "status": "UNDER_INVESTIGATION",
            "last_status_update": "2025-01-16T09:00:00",
            "proofs": [
                {"proof_hash": "p1", "proof_type": "document", "submitted_at": "2025-01-15T11:00:00"},
                {"proof_hash": "p2", "proof_type": "photo", "submitted_at": "2025-01-15T11:05:00"},
            ],
        },
        "C2": {
            "complaint_id": "C2",
            "user_id": "U2",
            "complaint_hash": "hashB",
            "filed_at": "2025-01-17T08:00:00",
            "status": "FILED",
            "last_status_update": "2025-01-17T08:00:00",
            "proofs": [],
        },
    }
}


class TestMemoryStorage:
    """Tests for MemoryStorage backend."""

    def test_init_empty(self):
        storage = MemoryStorage()
        assert storage.load_registry() is None
        assert storage.is_available() is True

    def test_save_and_load(self):
        storage = MemoryStorage()
        storage.save_registry(SAMPLE_REGISTRY_DATA)

        loaded = storage.load_registry()
        assert loaded == SAMPLE_REGISTRY_DATA

    def test_deep_copy_isolation(self):
        """Modifying loaded data does not change what is stored."""
        storage = MemoryStorage()
        storage.save_registry(SAMPLE_REGISTRY_DATA)

        loaded = storage.load_registry()
        loaded["complaints"]["C1"]["proofs"].clear()

        assert len(storage.load_registry()["complaints"]["C1"]["proofs"]) == 2

    def test_clear(self):
        storage = MemoryStorage()
        storage.save_registry(SAMPLE_REGISTRY_DATA)
        storage.clear()
        assert storage.load_registry() is None

    def test_get_info(self):
        storage = MemoryStorage()
        info = storage.get_info()
        assert info["backend_type"] == "MemoryStorage"
        assert info["has_data"] is False

        storage.save_registry(SAMPLE_REGISTRY_DATA)
        info = storage.get_info()
        assert info["has_data"] is True
        assert info["complaint_count"] == 2
        assert info["proof_count"] == 2

    def test_thread_safety(self):
        storage = MemoryStorage()
        results = []

        def save_and_load(n):
            storage.save_registry({"complaints": {f"C{n}": {}}})
            results.append(storage.load_registry() is not None)

        threads = [threading.Thread(target=save_and_load, args=(i,)) for i in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert all(results)
        assert len(results) == 10

    def test_context_manager(self):
        with MemoryStorage() as storage:
            storage.save_registry(SAMPLE_REGISTRY_DATA)
            assert storage.get_complaint_count() == 2


class TestJSONFileStorage:
    """Tests for JSONFileStorage backend."""

    @pytest.fixture
    def data_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            yield os.path.join(tmpdir, "complaints.json")

    def test_load_missing_file(self, data_file):
        assert JSONFileStorage(data_file).load_registry() is None

    def test_save_and_load(self, data_file):
        storage = JSONFileStorage(data_file)
        storage.save_registry(SAMPLE_REGISTRY_DATA)

        assert os.path.exists(data_file)
        assert not os.path.exists(f"{data_file}.tmp")
        assert storage.load_registry() == SAMPLE_REGISTRY_DATA

    def test_empty_file(self, data_file):
        with open(data_file, "w") as f:
            f.write("   \n")
        assert JSONFileStorage(data_file).load_registry() is None

    def test_invalid_json(self, data_file):
        with open(data_file, "w") as f:
            f.write("{not json")
        with pytest.raises(StorageReadError):
            JSONFileStorage(data_file).load_registry()

    def test_invalid_encoding(self, data_file):
        with open(data_file, "wb") as f:
            f.write(b"\xff\xfe garbage")
        with pytest.raises(StorageReadError, match="encoding"):
            JSONFileStorage(data_file).load_registry()

    def test_registry_round_trip(self, data_file):
        registry = ComplaintRegistry.from_dict(SAMPLE_REGISTRY_DATA)
        storage = JSONFileStorage(data_file)
        storage.save_registry(registry.to_dict())

        restored = ComplaintRegistry.from_dict(storage.load_registry())
        assert restored.get_all() == registry.get_all()

    def test_file_is_readable_json(self, data_file):
        JSONFileStorage(data_file).save_registry(SAMPLE_REGISTRY_DATA)
        with open(data_file, encoding="utf-8") as f:
            assert json.load(f)["complaints"]["C2"]["status"] == "FILED"

    def test_is_available(self, data_file):
        assert JSONFileStorage(data_file).is_available() is True
        assert JSONFileStorage("/nonexistent/dir/file.json").is_available() is False

    def test_get_info(self, data_file):
        storage = JSONFileStorage(data_file)
        assert storage.get_info()["file_exists"] is False

        storage.save_registry(SAMPLE_REGISTRY_DATA)
        info = storage.get_info()
        assert info["file_exists"] is True
        assert info["file_size_bytes"] > 0
        assert info["complaint_count"] == 2
        assert info["proof_count"] == 2
        assert storage.get_complaint_count() == 2
        assert storage.get_proof_count() == 2

    def test_get_info_reports_unreadable_file(self, data_file):
        with open(data_file, "w") as f:
            f.write("{not json")
        info = JSONFileStorage(data_file).get_info()
        assert info["file_exists"] is True
        assert "complaint_count" not in info
        assert "Invalid JSON" in info["read_error"]

    def test_delete(self, data_file):
        storage = JSONFileStorage(data_file)
        assert storage.delete() is False
        storage.save_registry(SAMPLE_REGISTRY_DATA)
        assert storage.delete() is True
        assert storage.load_registry() is None

    def test_backup(self, data_file):
        storage = JSONFileStorage(data_file)
        with pytest.raises(StorageError):
            storage.backup()

        storage.save_registry(SAMPLE_REGISTRY_DATA)
        backup_path = storage.backup(f"{data_file}.bak")
        assert JSONFileStorage(backup_path).load_registry() == SAMPLE_REGISTRY_DATA


class TestStorageFactory:
    """Tests for get_storage_backend."""

    def test_memory_backend(self, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "memory")
        assert isinstance(get_storage_backend(), MemoryStorage)

    def test_json_backend(self, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "json")
        monkeypatch.setenv("AUDIT_LAYER_DATA_FILE", "custom.json")
        storage = get_storage_backend()
        assert isinstance(storage, JSONFileStorage)
        assert storage.file_path == "custom.json"

    def test_unknown_backend(self, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "postgresql")
        with pytest.raises(StorageError):
            get_storage_backend()
