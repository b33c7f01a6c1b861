"""
Pytest configuration and shared fixtures for audit layer tests.

This module provides shared fixtures and test configuration including:
- An empty registry per test
- Flask app setup with in-memory storage
- API authentication headers
"""

import os
import sys

import pytest

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

# Set up test environment before any imports
os.environ["AUDIT_LAYER_API_KEY"] = "test-api-key-12345"
os.environ["AUDIT_LAYER_REQUIRE_AUTH"] = "false"
os.environ["STORAGE_BACKEND"] = "memory"


@pytest.fixture
def registry():
    """An empty complaint registry."""
    from complaint_registry import ComplaintRegistry
    return ComplaintRegistry()


@pytest.fixture
def filed_registry(registry):
    """A registry holding one FILED complaint, C1."""
    assert registry.register("C1", "hashA", "U1", "T0")
    return registry


@pytest.fixture(scope="function")
def memory_storage():
    from storage import MemoryStorage
    return MemoryStorage()


@pytest.fixture(scope="function")
def flask_app(memory_storage):
    """Create Flask test app with a fresh registry and in-memory storage."""
    from api import create_app, state

    state.set_storage(memory_storage)
    state.reset_registry()

    app = create_app(load_state=False)
    app.config['TESTING'] = True
    yield app

    state.set_storage(None)
    state.reset_registry()


@pytest.fixture(scope="function")
def flask_client(flask_app):
    """Create Flask test client."""
    return flask_app.test_client()


@pytest.fixture
def test_auth_headers():
    """Headers for authenticated requests."""
    return {
        "Content-Type": "application/json",
        "X-API-Key": "test-api-key-12345"
    }
