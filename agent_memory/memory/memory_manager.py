"""
Memory Manager - Orchestrates the vector memory system.

This is the high-level interface the agent runtime uses.
It handles:
- Chunking incoming text and generating embeddings
- Appending entries to the persistent store
- Searching for the chunks most similar to a query
- Formatting retrieved context for the LLM

When no embedding provider is available, ingestion and search quietly
do nothing instead of failing.
"""

import copy
import logging
import time
from pathlib import Path
from typing import Callable, Optional

from .base import MemoryEntry, SearchResult, validate_metadata
from .chunker import DEFAULT_CHUNK_SIZE, chunk_text
from .embeddings import EmbeddingService, create_embedding_service
from .entry_store import STORE_FILENAME, EntryStore, PersistResult, project_temp_dir
from .similarity import LinearScanIndex, SimilarityIndex

logger = logging.getLogger("agent_memory.memory.manager")

EmbeddingFactory = Callable[[], Optional[EmbeddingService]]


class MemoryManager:
    """
    Long-term memory for an agent.

    Provides semantic search over previously ingested text so the
    agent can pull relevant context into its prompts.
    """

    def __init__(
        self,
        store: EntryStore,
        embedding_service: Optional[EmbeddingService] = None,
        embedding_factory: Optional[EmbeddingFactory] = None,
        index: Optional[SimilarityIndex] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        default_limit: int = 5,
    ):
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self.store = store
        self.index = index or LinearScanIndex()
        self.chunk_size = chunk_size
        self.default_limit = default_limit
        self._embedding_service = embedding_service
        self._embedding_factory = embedding_factory
        logger.info(f"MemoryManager created with {len(store)} stored entries")

    def _get_embedding_service(self) -> Optional[EmbeddingService]:
        """Resolve the embedding service, or None if embeddings are unavailable."""
        if self._embedding_service is None and self._embedding_factory is not None:
            try:
                self._embedding_service = self._embedding_factory()
            except (ValueError, RuntimeError, ImportError) as e:
                logger.debug(f"Embedding service unavailable: {e}")
                return None

        service = self._embedding_service
        if service is None or not service.is_configured():
            return None
        return service

    def count(self) -> int:
        """Get total number of stored entries."""
        return len(self.store)

    def _make_id(self, metadata: dict, timestamp_ms: int, chunk_index: int) -> str:
        return f"{metadata.get('path') or 'memory'}-{timestamp_ms}-{chunk_index}"

    async def add_text(self, text: str, metadata: Optional[dict] = None) -> list[MemoryEntry]:
        """
        Chunk, embed and store a piece of text.

        Args:
            text: Text to remember
            metadata: Caller metadata copied onto every chunk's entry

        Returns:
            Copies of the entries added (empty if nothing was stored)

        Raises:
            InvalidMetadataError: If metadata holds unsupported values
        """
        if not text or not text.strip():
            return []

        base_metadata = validate_metadata(metadata or {})

        service = self._get_embedding_service()
        if service is None:
            logger.debug("Embeddings unavailable, skipping add_text")
            return []

        chunks = chunk_text(text, self.chunk_size)
        try:
            embeddings = await service.embed_batch(chunks)
        except Exception as e:
            logger.warning(f"Embedding failed, text not stored: {e}")
            return []

        if len(embeddings) != len(chunks):
            logger.warning(
                f"Embedding provider returned {len(embeddings)} vectors for {len(chunks)} chunks; "
                f"storing the first {min(len(embeddings), len(chunks))}"
            )

        timestamp_ms = int(time.time() * 1000)
        entries = []
        for i, (chunk, embedding) in enumerate(zip(chunks, embeddings)):
            entry_metadata = copy.deepcopy(base_metadata)
            entry_metadata["chunk_index"] = i
            entries.append(MemoryEntry(
                id=self._make_id(base_metadata, timestamp_ms, i),
                text=chunk,
                metadata=entry_metadata,
                embedding=[float(x) for x in embedding],
            ))

        self.store.append(entries)
        logger.info(f"Stored {len(entries)} chunks ({len(self.store)} total entries)")
        return copy.deepcopy(entries)

    async def search_with_scores(
        self,
        query: str,
        limit: Optional[int] = None,
    ) -> list[SearchResult]:
        """
        Find stored entries most similar to the query, with scores.

        Args:
            query: Natural-language query
            limit: Maximum results (defaults to default_limit)

        Returns:
            List of search results, ordered by similarity
        """
        if limit is None:
            limit = self.default_limit

        entries = self.store.snapshot()
        if not entries:
            return []

        service = self._get_embedding_service()
        if service is None:
            logger.debug("Embeddings unavailable, search returns nothing")
            return []

        try:
            query_embedding = await service.embed(query)
        except Exception as e:
            logger.warning(f"Query embedding failed: {e}")
            return []

        if not query_embedding:
            return []

        results = self.index.rank(query_embedding, entries, limit)
        logger.debug(f"Search returned {len(results)} of {len(entries)} entries")
        return [
            SearchResult(entry=copy.deepcopy(r.entry), similarity=r.similarity)
            for r in results
        ]

    async def search(self, query: str, limit: Optional[int] = None) -> list[MemoryEntry]:
        """Find stored entries most similar to the query."""
        results = await self.search_with_scores(query, limit)
        return [r.entry for r in results]

    def format_context_for_llm(self, results: list[SearchResult] | list[MemoryEntry]) -> str:
        """
        Format retrieved entries for inclusion in LLM context.

        Returns an empty string when there is nothing to add, so callers
        can append the result unconditionally.
        """
        if not results:
            return ""

        lines = [
            "## Long-Term Memory",
            "",
            "The following is relevant context retrieved from your long-term memory.",
            "Use it only where it actually helps answer the current request.",
            "",
        ]

        for item in results:
            if isinstance(item, SearchResult):
                lines.append(item.entry.to_context_string())
                lines.append(f"*Similarity: {item.similarity:.1%}*")
            else:
                lines.append(item.to_context_string())
            lines.append("")

        return "\n".join(lines)

    def clear(self) -> None:
        """Forget everything."""
        self.store.clear()

    async def flush(self) -> Optional[PersistResult]:
        """Wait for pending writes to reach disk."""
        return await self.store.flush()

    async def close(self) -> None:
        """Flush pending writes before shutdown."""
        await self.flush()
        logger.info("MemoryManager closed")


def create_memory_manager(cfg=None, project_root: str | Path | None = None) -> MemoryManager:
    """
    Factory function to create a MemoryManager from configuration.

    Args:
        cfg: Config instance (defaults to the global config)
        project_root: Project the memory is scoped to (defaults to cwd)

    Returns:
        MemoryManager whose embedding service is resolved on first use
    """
    if cfg is None:
        from ..config import config as cfg

    mem = cfg.memory
    if mem.storage_path:
        path = Path(mem.storage_path)
    else:
        path = project_temp_dir(project_root, mem.storage_dir or None) / STORE_FILENAME

    def embedding_factory() -> Optional[EmbeddingService]:
        if not mem.enabled:
            return None
        return create_embedding_service(
            provider=mem.embedding_provider,
            api_key=cfg.embedding_api_key(),
            model=mem.embedding_model,
            dimensions=mem.embedding_dimensions,
        )

    return MemoryManager(
        store=EntryStore(path),
        embedding_factory=embedding_factory,
        index=LinearScanIndex(strict_dimensions=mem.strict_dimensions),
        chunk_size=mem.chunk_size,
        default_limit=mem.default_limit,
    )
