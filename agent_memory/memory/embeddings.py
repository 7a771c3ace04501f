"""
Embedding adapters that turn memory chunks and queries into vectors.

The provider is picked by memory.embedding_provider: openai (hosted),
google (Gemini) or local (sentence-transformers, no API key).
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Literal

logger = logging.getLogger("agent_memory.memory.embeddings")


class EmbeddingService(ABC):
    """
    Abstract interface for embedding generation.

    embed_batch must return one vector per input, in input order.
    """

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Return the dimension of embeddings produced."""
        pass

    def is_configured(self) -> bool:
        """Check if the service can be called."""
        return True

    @abstractmethod
    async def embed(self, text: str) -> list[float]:
        """Generate embedding for a single text."""
        pass

    @abstractmethod
    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Generate embeddings for multiple texts."""
        pass


class OpenAIEmbeddingService(EmbeddingService):
    """
    Embeds memory chunks through the OpenAI embeddings endpoint.

    When memory.embedding_dimensions is set it is sent as the request's
    dimensions field, so stored vectors keep one length across models.
    """

    # Default dimensions for each model
    MODEL_DEFAULT_DIMENSIONS = {
        "text-embedding-3-small": 1536,
        "text-embedding-3-large": 3072,
    }

    def __init__(
        self,
        api_key: str,
        model: str = "text-embedding-3-small",
        dimensions: int | None = None,
    ):
        """
        Create the adapter. The client is built on first use.

        Args:
            api_key: OpenAI API key
            model: Model name (text-embedding-3-small or text-embedding-3-large)
            dimensions: Override output dimensions. If None, uses model's default.
        """
        self.api_key = api_key
        self.model = model
        self._client = None

        default_dim = self.MODEL_DEFAULT_DIMENSIONS.get(model, 1536)
        if dimensions is not None and dimensions > default_dim:
            logger.warning(
                f"Requested dimensions ({dimensions}) exceeds model default ({default_dim}). "
                f"Using {default_dim}."
            )
            dimensions = None
        self._dimension = dimensions or default_dim
        self._requested_dimensions = dimensions

        logger.info(
            f"OpenAIEmbeddingService initialized: model={model}, dimensions={self._dimension}"
        )

    @property
    def dimension(self) -> int:
        return self._dimension

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _get_client(self):
        if self._client is None:
            from openai import AsyncOpenAI
            self._client = AsyncOpenAI(api_key=self.api_key)
        return self._client

    def _request_kwargs(self, input) -> dict:
        kwargs = {
            "model": self.model,
            "input": input,
        }
        if self._requested_dimensions is not None:
            kwargs["dimensions"] = self._requested_dimensions
        return kwargs

    async def embed(self, text: str) -> list[float]:
        """Generate embedding for a single text."""
        client = self._get_client()
        response = await client.embeddings.create(**self._request_kwargs(text))
        return response.data[0].embedding

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed all chunks in one request, returned in input order."""
        if not texts:
            return []

        client = self._get_client()
        response = await client.embeddings.create(**self._request_kwargs(texts))

        # Sort by index to maintain order
        sorted_data = sorted(response.data, key=lambda x: x.index)
        return [item.embedding for item in sorted_data]


class GoogleEmbeddingService(EmbeddingService):
    """
    Google Gemini embedding service.

    Google's SDK is synchronous, so calls run in a worker thread.
    """

    MODEL_DEFAULT_DIMENSIONS = {
        "models/text-embedding-004": 768,
        "models/embedding-001": 768,
    }

    def __init__(self, api_key: str, model: str = "models/text-embedding-004"):
        self._api_key = api_key
        self.model = model if model.startswith("models/") else f"models/{model}"
        self._dimension = self.MODEL_DEFAULT_DIMENSIONS.get(self.model, 768)
        self._configured = False
        self._genai = None

        if api_key:
            import google.generativeai as genai
            genai.configure(api_key=api_key)
            self._genai = genai
            self._configured = True

        logger.info(f"GoogleEmbeddingService initialized with model: {self.model}")

    @property
    def dimension(self) -> int:
        return self._dimension

    def is_configured(self) -> bool:
        return self._configured and bool(self._api_key)

    def _embed_sync(self, content):
        result = self._genai.embed_content(model=self.model, content=content)
        return result["embedding"]

    async def embed(self, text: str) -> list[float]:
        """Generate embedding for a single text."""
        return list(await asyncio.to_thread(self._embed_sync, text))

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Generate embeddings for multiple texts."""
        if not texts:
            return []

        embeddings = await asyncio.to_thread(self._embed_sync, texts)
        return [list(e) for e in embeddings]


class LocalEmbeddingService(EmbeddingService):
    """
    Embeds memory chunks on this machine with sentence-transformers.

    The model is loaded on first use; the default produces 384-dim vectors.
    """

    def __init__(self, model_name: str = "all-MiniLM-L6-v2"):
        self.model_name = model_name
        self._model = None
        self._dimension = 384  # Default for MiniLM
        logger.info(f"LocalEmbeddingService initialized with model: {model_name}")

    @property
    def dimension(self) -> int:
        return self._dimension

    def _get_model(self):
        if self._model is None:
            try:
                from sentence_transformers import SentenceTransformer
            except ImportError:
                raise RuntimeError(
                    "sentence-transformers not installed. "
                    "Install with: pip install 'agent-memory[local]'"
                )
            self._model = SentenceTransformer(self.model_name)
            self._dimension = self._model.get_sentence_embedding_dimension()
            logger.info(f"Loaded local embedding model: {self.model_name}")
        return self._model

    async def embed(self, text: str) -> list[float]:
        """Generate embedding for a single text."""
        model = self._get_model()
        embedding = await asyncio.to_thread(model.encode, text, convert_to_numpy=True)
        return embedding.tolist()

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Generate embeddings for multiple texts."""
        if not texts:
            return []

        model = self._get_model()
        embeddings = await asyncio.to_thread(model.encode, texts, convert_to_numpy=True)
        return embeddings.tolist()


def create_embedding_service(
    provider: Literal["openai", "google", "local"] = "openai",
    api_key: str = "",
    model: str = "",
    dimensions: int | None = None,
) -> EmbeddingService:
    """
    Build the embedding adapter named by memory.embedding_provider.

    Args:
        provider: "openai", "google" or "local"
        api_key: API key (required for openai and google providers)
        model: Model name (optional, uses defaults)
        dimensions: Override output dimensions for OpenAI embeddings

    Returns:
        Configured EmbeddingService instance

    Raises:
        ValueError: If provider is not supported or not properly configured.
    """
    if provider == "openai":
        if not api_key:
            raise ValueError("OpenAI API key required for openai embedding provider")
        return OpenAIEmbeddingService(
            api_key=api_key,
            model=model or "text-embedding-3-small",
            dimensions=dimensions,
        )
    elif provider == "google":
        if not api_key:
            raise ValueError("Google API key required for google embedding provider")
        return GoogleEmbeddingService(
            api_key=api_key,
            model=model or "models/text-embedding-004",
        )
    elif provider == "local":
        return LocalEmbeddingService(
            model_name=model or "all-MiniLM-L6-v2",
        )
    else:
        raise ValueError(f"Unknown embedding provider: {provider}")
