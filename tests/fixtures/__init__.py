"""
Test fixtures and sample data for Agent Memory tests.
"""

from agent_memory.memory.base import MemoryEntry
from agent_memory.memory.embeddings import EmbeddingService


class FakeEmbeddingService(EmbeddingService):
    """
    Deterministic embedding service for tests.

    Looks texts up in a table, falling back to a default vector,
    and records every batch it was asked to embed.
    """

    def __init__(
        self,
        vectors: dict[str, list[float]] | None = None,
        default: list[float] | None = None,
        configured: bool = True,
    ):
        self.vectors = vectors or {}
        self.default = default or [0.1]
        self.configured = configured
        self.calls: list[list[str]] = []

    @property
    def dimension(self) -> int:
        return len(self.default)

    def is_configured(self) -> bool:
        return self.configured

    async def embed(self, text: str) -> list[float]:
        self.calls.append([text])
        return list(self.vectors.get(text, self.default))

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        return [list(self.vectors.get(t, self.default)) for t in texts]


def make_entry(
    id: str = "notes.md-1700000000000-0",
    text: str = "The parser uses a recursive descent approach.",
    metadata: dict | None = None,
    embedding: list[float] | None = None,
) -> MemoryEntry:
    """Create a sample MemoryEntry for testing."""
    return MemoryEntry(
        id=id,
        text=text,
        metadata=metadata if metadata is not None else {"path": "notes.md", "chunk_index": 0},
        embedding=embedding if embedding is not None else [1.0, 0.0],
    )


def make_entries(count: int = 3) -> list[MemoryEntry]:
    """Create entries with distinct unit-ish embeddings."""
    return [
        make_entry(
            id=f"memory-1700000000000-{i}",
            text=f"Memory chunk number {i}",
            metadata={"chunk_index": i},
            embedding=[float(i + 1), 1.0],
        )
        for i in range(count)
    ]
