"""
Similarity scoring and ranking.

The default index is an exhaustive linear scan, fine while the store
holds a few thousand entries. Anything larger needs a real ANN index
plugged in behind SimilarityIndex.
"""

import logging
from abc import ABC, abstractmethod
from typing import Sequence

import numpy as np

from .base import DimensionMismatchError, MemoryEntry, SearchResult

logger = logging.getLogger("agent_memory.memory.similarity")


def cosine_similarity(
    a: Sequence[float],
    b: Sequence[float],
    strict: bool = False,
) -> float:
    """
    Cosine similarity of two vectors.

    Only the overlapping index range is compared when lengths differ,
    unless strict is set. A zero vector is similar to nothing.

    Args:
        a: First vector
        b: Second vector
        strict: Raise DimensionMismatchError instead of truncating

    Returns:
        Similarity in [-1, 1], or 0.0 if either norm is zero
    """
    if strict and len(a) != len(b):
        raise DimensionMismatchError(len(a), len(b))

    n = min(len(a), len(b))
    va = np.asarray(a[:n], dtype=np.float64)
    vb = np.asarray(b[:n], dtype=np.float64)

    norm_a = np.linalg.norm(va)
    norm_b = np.linalg.norm(vb)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return float(np.dot(va, vb) / (norm_a * norm_b))


class SimilarityIndex(ABC):
    """
    Abstract interface for ranking stored entries against a query vector.

    Implementations: LinearScanIndex (exhaustive cosine scan)
    """

    @abstractmethod
    def rank(
        self,
        query_embedding: Sequence[float],
        entries: Sequence[MemoryEntry],
        limit: int = 5,
    ) -> list[SearchResult]:
        """
        Rank entries by similarity to the query.

        Args:
            query_embedding: The embedding to search for
            entries: Candidate entries, in insertion order
            limit: Maximum number of results

        Returns:
            List of search results, ordered by similarity
        """
        pass


class LinearScanIndex(SimilarityIndex):
    """Scores every entry with cosine similarity. O(n*d) per query."""

    def __init__(self, strict_dimensions: bool = False):
        self.strict_dimensions = strict_dimensions
        self._warned_mismatch = False

    def rank(
        self,
        query_embedding: Sequence[float],
        entries: Sequence[MemoryEntry],
        limit: int = 5,
    ) -> list[SearchResult]:
        if not entries or len(query_embedding) == 0 or limit <= 0:
            return []

        dim = len(query_embedding)
        if all(len(entry.embedding) == dim for entry in entries):
            similarities = self._score_matrix(query_embedding, entries)
        else:
            similarities = np.empty(len(entries), dtype=np.float64)
            for i, entry in enumerate(entries):
                if len(entry.embedding) != dim:
                    self._on_mismatch(dim, len(entry.embedding))
                similarities[i] = cosine_similarity(
                    query_embedding, entry.embedding, strict=self.strict_dimensions
                )

        # Stable sort, so ties keep insertion order
        order = np.argsort(-similarities, kind="stable")[:limit]
        return [
            SearchResult(entry=entries[i], similarity=float(similarities[i]))
            for i in order
        ]

    @staticmethod
    def _score_matrix(
        query_embedding: Sequence[float], entries: Sequence[MemoryEntry]
    ) -> np.ndarray:
        matrix = np.asarray([entry.embedding for entry in entries], dtype=np.float64)
        query = np.asarray(query_embedding, dtype=np.float64)

        query_norm = np.linalg.norm(query)
        if query_norm == 0:
            return np.zeros(len(entries), dtype=np.float64)

        dots = matrix @ query
        norms = np.linalg.norm(matrix, axis=1) * query_norm
        # A zero-norm entry scores 0
        return np.divide(dots, norms, out=np.zeros_like(dots), where=norms != 0)

    def _on_mismatch(self, query_dim: int, entry_dim: int) -> None:
        if self.strict_dimensions:
            raise DimensionMismatchError(query_dim, entry_dim)
        if not self._warned_mismatch:
            logger.warning(
                f"Embedding dimension mismatch (query={query_dim}, entry={entry_dim}); "
                f"comparing the first {min(query_dim, entry_dim)} components"
            )
            self._warned_mismatch = True
