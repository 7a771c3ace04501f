"""
Shared pytest fixtures for Agent Memory tests.

This module provides:
- Temporary store paths
- Fake and mocked embedding providers
- Sample entries
"""

import json
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from agent_memory.memory.entry_store import EntryStore
from agent_memory.memory.memory_manager import MemoryManager
from tests.fixtures import FakeEmbeddingService, make_entries, make_entry


# =============================================================================
# Core Fixtures
# =============================================================================


@pytest.fixture
def store_path(tmp_path) -> Path:
    """Provide a store file path inside a not-yet-created directory."""
    return tmp_path / "project" / "vector_store.json"


@pytest.fixture
def entry_store(store_path) -> EntryStore:
    """Provide an empty EntryStore."""
    return EntryStore(store_path)


# =============================================================================
# Sample Data Fixtures
# =============================================================================


@pytest.fixture
def sample_entry():
    """Provide a single sample entry."""
    return make_entry()


@pytest.fixture
def sample_entries():
    """Provide three sample entries."""
    return make_entries(count=3)


@pytest.fixture
def sample_store_json(store_path, sample_entries) -> Path:
    """Write a valid store file and return its path."""
    store_path.parent.mkdir(parents=True, exist_ok=True)
    store_path.write_text(json.dumps([e.to_dict() for e in sample_entries], indent=2))
    return store_path


# =============================================================================
# Embedding Fixtures
# =============================================================================


@pytest.fixture
def fake_embeddings() -> FakeEmbeddingService:
    """Provide a deterministic embedding service."""
    return FakeEmbeddingService()


@pytest.fixture
def fruit_embeddings() -> FakeEmbeddingService:
    """Embeddings where 'Fruit' is closer to 'Apple' than to 'Banana'."""
    return FakeEmbeddingService(
        vectors={
            "Apple": [1.0, 0.0],
            "Banana": [0.0, 1.0],
            "Fruit": [0.8, 0.2],
        },
        default=[0.5, 0.5],
    )


@pytest.fixture
def manager(entry_store, fake_embeddings) -> MemoryManager:
    """Provide a MemoryManager backed by the fake embedding service."""
    return MemoryManager(store=entry_store, embedding_service=fake_embeddings)


@pytest.fixture
def mock_openai():
    """Mock AsyncOpenAI for OpenAI embedding tests."""
    # Patch where it's imported lazily
    with patch("openai.AsyncOpenAI") as mock_client_class:
        mock_client = MagicMock()

        mock_response = MagicMock()
        mock_response.data = [
            MagicMock(index=1, embedding=[0.0, 1.0]),
            MagicMock(index=0, embedding=[1.0, 0.0]),
        ]

        mock_client.embeddings.create = AsyncMock(return_value=mock_response)
        mock_client_class.return_value = mock_client
        yield mock_client_class


@pytest.fixture
def mock_google_genai():
    """Mock google.generativeai for Gemini embedding tests."""
    with patch("google.generativeai.configure") as mock_configure, \
            patch("google.generativeai.embed_content") as mock_embed:
        mock_embed.return_value = {"embedding": [[0.1, 0.2], [0.3, 0.4]]}
        yield SimpleNamespace(configure=mock_configure, embed_content=mock_embed)


# =============================================================================
# Config Fixtures
# =============================================================================


@pytest.fixture
def mock_env_vars(monkeypatch):
    """Set mock environment variables for testing."""
    monkeypatch.setenv("OPENAI_API_KEY", "test-openai-key")
    monkeypatch.setenv("GOOGLE_API_KEY", "test-google-key")
