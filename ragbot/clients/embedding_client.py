"""Embedding client for Azure OpenAI with caching and retry."""

import logging
from numbers import Real
from typing import Any, List, Optional

from openai import AsyncAzureOpenAI, OpenAIError

from ragbot.clients.retry import call_with_retry, is_transient_openai_error
from ragbot.config.configuration import RetryConfig
from ragbot.services.embedding_cache import EmbeddingCache

logger = logging.getLogger(__name__)


class EmbeddingError(Exception):
    """Custom exception for embedding generation failures."""
    pass


class InvalidEmbeddingResponse(Exception):
    """Raised when the embedding API answers without a usable vector."""
    pass


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, InvalidEmbeddingResponse) or is_transient_openai_error(exc)


def extract_embedding(response: Any, expected_dimensions: Optional[int] = None) -> List[float]:
    """
    Pull the vector out of an embeddings response and validate its shape.

    Args:
        response: Response object from ``embeddings.create``.
        expected_dimensions: Required vector length, if known.

    Returns:
        The embedding as a list of floats.

    Raises:
        InvalidEmbeddingResponse: If the vector is missing, empty, non-numeric
            or of the wrong length.
    """
    data = getattr(response, "data", None)
    if not data:
        raise InvalidEmbeddingResponse("Embedding response contains no data")

    vector = getattr(data[0], "embedding", None)
    if not isinstance(vector, list) or not vector:
        raise InvalidEmbeddingResponse("Embedding response contains no vector")
    if not all(isinstance(value, Real) and not isinstance(value, bool) for value in vector):
        raise InvalidEmbeddingResponse("Embedding vector contains non-numeric values")
    if expected_dimensions is not None and len(vector) != expected_dimensions:
        raise InvalidEmbeddingResponse(
            f"Embedding has {len(vector)} dimensions, expected {expected_dimensions}"
        )
    return [float(value) for value in vector]


class EmbeddingClient:
    """Generates embeddings through an Azure OpenAI deployment.

    Consults the cache first; on a miss calls the API with retry/backoff and
    stores the result.
    """

    def __init__(
        self,
        openai_client: AsyncAzureOpenAI,
        deployment: str,
        dimensions: int,
        cache: EmbeddingCache,
        retry_config: RetryConfig,
    ):
        self._client = openai_client
        self._deployment = deployment
        self._dimensions = dimensions
        self._cache = cache
        self._retry_config = retry_config

    @property
    def dimensions(self) -> int:
        return self._dimensions

    async def embed(self, text: str, use_cache: bool = True) -> List[float]:
        """
        Generate embedding vector for a text.

        Args:
            text: The text to embed.
            use_cache: Whether to read from the cache. Warm-up passes False
                to force a real upstream call.

        Returns:
            List of floats representing the embedding vector.

        Raises:
            EmbeddingError: If embedding generation fails after all retries.
        """
        if use_cache:
            cached = self._cache.get(text)
            if cached is not None:
                return cached

        try:
            vector = await call_with_retry(
                lambda: self._request_embedding(text),
                self._retry_config,
                is_transient=_is_retryable,
                operation_name="Embedding request",
            )
        except (OpenAIError, InvalidEmbeddingResponse, TimeoutError) as e:
            raise EmbeddingError(f"Failed to generate embedding: {e}") from e

        self._cache.put(text, vector)
        return vector

    async def _request_embedding(self, text: str) -> List[float]:
        response = await self._client.embeddings.create(
            input=[text],
            model=self._deployment,
            dimensions=self._dimensions,
        )
        return extract_embedding(response, self._dimensions)
