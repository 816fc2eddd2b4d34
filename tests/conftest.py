"""
Shared pytest fixtures and configuration for FluxState tests.
"""

import pytest

from fluxstate import FluxPersist, MemoryBackend, PersistConfig
from fluxstate.di import _reset_registry
from fluxstate.persist import _reset_persist


@pytest.fixture(autouse=True)
def reset_process_defaults():
    """Reset the process-wide persist and registry to prevent state leakage."""
    _reset_persist()
    _reset_registry()
    yield
    _reset_persist()
    _reset_registry()


@pytest.fixture
def backend():
    """Provide a fresh in-memory backend."""
    return MemoryBackend()


@pytest.fixture
def persist(backend, tmp_path):
    """Provide a FluxPersist over `backend` with files under tmp_path."""
    return FluxPersist(backend, PersistConfig(documents_dir=tmp_path))
