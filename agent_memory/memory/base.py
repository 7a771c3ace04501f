"""
Base interfaces and data structures for vector memory.

Defines the entry record, the search result wrapper, the metadata
contract, and the exceptions shared by the memory package.
"""

from dataclasses import dataclass, field
from typing import Any, Union

# Closed set of value shapes allowed in entry metadata.
MetadataValue = Union[
    str, int, float, bool, None, list["MetadataValue"], dict[str, "MetadataValue"]
]


class AgentMemoryError(Exception):
    """Base class for memory errors."""


class InvalidMetadataError(AgentMemoryError, TypeError):
    """Metadata contains a value outside the permitted shapes."""


class DimensionMismatchError(AgentMemoryError, ValueError):
    """Query and stored embeddings have different lengths."""

    def __init__(self, query_dim: int, entry_dim: int):
        self.query_dim = query_dim
        self.entry_dim = entry_dim
        super().__init__(
            f"Embedding dimension mismatch: query has {query_dim}, entry has {entry_dim}"
        )


def validate_metadata(metadata: Any, path: str = "metadata") -> dict[str, MetadataValue]:
    """
    Check that metadata only holds JSON-stable values.

    Args:
        metadata: Mapping supplied by the caller
        path: Key path used in error messages

    Returns:
        A deep copy of the metadata as plain dicts and lists

    Raises:
        InvalidMetadataError: On non-string keys or unsupported values
    """
    if not isinstance(metadata, dict):
        raise InvalidMetadataError(f"{path} must be a mapping, got {type(metadata).__name__}")

    copied: dict[str, MetadataValue] = {}
    for key, value in metadata.items():
        if not isinstance(key, str):
            raise InvalidMetadataError(f"{path} keys must be strings, got {key!r}")
        copied[key] = _validate_value(value, f"{path}.{key}")
    return copied


def _validate_value(value: Any, path: str) -> MetadataValue:
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, dict):
        return validate_metadata(value, path)
    if isinstance(value, (list, tuple)):
        return [_validate_value(v, f"{path}[{i}]") for i, v in enumerate(value)]
    raise InvalidMetadataError(f"{path} has unsupported type {type(value).__name__}")


@dataclass(frozen=True)
class MemoryEntry:
    """
    One stored chunk of long-term memory.

    Entries are created once per chunk at ingestion time and never
    modified afterwards.
    """
    id: str
    text: str
    metadata: dict[str, MetadataValue] = field(default_factory=dict)
    embedding: list[float] = field(default_factory=list)

    @property
    def chunk_index(self) -> int | None:
        return self.metadata.get("chunk_index")

    def to_dict(self) -> dict:
        """Convert to the JSON record stored in the durable mirror."""
        return {
            "id": self.id,
            "text": self.text,
            "metadata": self.metadata,
            "embedding": self.embedding,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "MemoryEntry":
        """Build an entry from a JSON record; raises KeyError/TypeError on bad records."""
        if not isinstance(data, dict):
            raise TypeError(f"Entry record must be an object, got {type(data).__name__}")
        metadata = data.get("metadata") or {}
        if not isinstance(metadata, dict):
            raise TypeError("Entry metadata must be an object")
        embedding = data["embedding"]
        if not isinstance(embedding, list):
            raise TypeError("Entry embedding must be an array")
        entry_id, text = data["id"], data["text"]
        if not isinstance(entry_id, str) or not isinstance(text, str):
            raise TypeError("Entry id and text must be strings")
        return cls(
            id=entry_id,
            text=text,
            metadata=metadata,
            embedding=[float(x) for x in embedding],
        )

    def to_context_string(self) -> str:
        """
        Format this entry for inclusion in LLM context.
        """
        source = self.metadata.get("path")
        header = f"### From {source}" if source else "### Memory"
        return f"{header}\n{self.text}\n"


@dataclass
class SearchResult:
    """A search result from the similarity index."""
    entry: MemoryEntry
    similarity: float  # cosine, -1 to 1, higher is more similar

    @property
    def is_strong_match(self) -> bool:
        """Is this a strong enough match to mention?"""
        return self.similarity > 0.75

    @property
    def is_moderate_match(self) -> bool:
        """Is this a moderate match worth considering?"""
        return self.similarity > 0.6
