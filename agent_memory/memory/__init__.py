"""
Vector Memory System for long-term agent context.

Text is chunked, embedded, and kept in a JSON-backed store so that
later queries can recall the most similar chunks.
"""

from .base import (
    AgentMemoryError,
    DimensionMismatchError,
    InvalidMetadataError,
    MemoryEntry,
    SearchResult,
)
from .chunker import chunk_text
from .embeddings import EmbeddingService, create_embedding_service
from .entry_store import EntryStore, LoadResult, LoadStatus, PersistResult, project_temp_dir
from .memory_manager import MemoryManager, create_memory_manager
from .similarity import LinearScanIndex, SimilarityIndex, cosine_similarity

__all__ = [
    "AgentMemoryError",
    "DimensionMismatchError",
    "InvalidMetadataError",
    "MemoryEntry",
    "SearchResult",
    "chunk_text",
    "EmbeddingService",
    "create_embedding_service",
    "EntryStore",
    "LoadResult",
    "LoadStatus",
    "PersistResult",
    "project_temp_dir",
    "MemoryManager",
    "create_memory_manager",
    "LinearScanIndex",
    "SimilarityIndex",
    "cosine_similarity",
]
