"""Embedding service interface and the HTTP implementation."""

import time
from abc import ABC, abstractmethod
from typing import Any

import httpx

from ragent.config import EmbeddingSettings, get_settings
from ragent.embeddings.models import EmbeddingResult
from ragent.exceptions import EmbeddingServiceError, ErrorCode
from ragent.http_backend import FailureCodes, JSONBackend
from ragent.observability.metrics import track_embedding_request


class EmbeddingService(ABC):
    """Maps text to fixed-dimension vectors.

    One service instance always produces vectors of a single dimensionality;
    the index built from it relies on that.
    """

    @abstractmethod
    async def embed_batch(self, texts: list[str]) -> list[EmbeddingResult]:
        """Embed several texts, returning results in input order.

        Raises:
            EmbeddingServiceError: If the service fails.
        """
        ...

    async def embed(self, text: str) -> EmbeddingResult:
        """Embed a single text.

        Raises:
            EmbeddingServiceError: If the service fails.
        """
        results = await self.embed_batch([text])
        if not results:
            raise EmbeddingServiceError("Embedding service returned no vectors")
        return results[0]

    @property
    @abstractmethod
    def model_name(self) -> str: ...

    async def close(self) -> None:
        return None


class HTTPEmbeddingService(JSONBackend, EmbeddingService):
    """Client for OpenAI-style ``/embeddings`` endpoints.

    Works with the OpenAI API and text-embeddings-inference (TEI) servers.
    Texts are sent in slices of ``batch_size``.
    """

    service = "Embedding"
    error_type = EmbeddingServiceError
    failure_codes = FailureCodes(
        timeout=ErrorCode.EMBEDDING_TIMEOUT,
        rate_limit=ErrorCode.EMBEDDING_RATE_LIMIT,
        unavailable=ErrorCode.EMBEDDING_SERVICE_ERROR,
    )

    def __init__(
        self,
        settings: EmbeddingSettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or get_settings().embedding
        super().__init__(
            self._settings.base_url,
            self._settings.api_key,
            self._settings.timeout,
            client=client,
        )
        # Fixed by the first response
        self._dimensions: int | None = None

    @property
    def model_name(self) -> str:
        return self._settings.model

    async def embed_batch(self, texts: list[str]) -> list[EmbeddingResult]:
        size = self._settings.batch_size
        results: list[EmbeddingResult] = []
        for offset in range(0, len(texts), size):
            results.extend(await self._request(texts[offset : offset + size]))
        return results

    async def _request(self, texts: list[str]) -> list[EmbeddingResult]:
        start = time.perf_counter()
        try:
            body = await self._post_json(
                "/embeddings", {"input": texts, "model": self._settings.model}
            )
            vectors = self._vectors(body, len(texts))
        except EmbeddingServiceError:
            track_embedding_request(
                self.model_name, time.perf_counter() - start, len(texts), success=False
            )
            raise

        track_embedding_request(self.model_name, time.perf_counter() - start, len(texts))
        return [
            EmbeddingResult(text=text, vector=vector, model=self.model_name)
            for text, vector in zip(texts, vectors)
        ]

    def _vectors(self, body: Any, expected: int) -> list[list[float]]:
        """Pull vectors out of a response, ordered by their ``index`` field."""
        try:
            items = sorted(body["data"], key=lambda item: item.get("index", 0))
            vectors = [list(item["embedding"] or []) for item in items]
        except (KeyError, TypeError, AttributeError) as e:
            raise EmbeddingServiceError(
                f"Invalid response from embedding service: {e}",
                details={"error": str(e)},
            ) from e

        if len(vectors) != expected:
            raise EmbeddingServiceError(
                "Embedding count does not match input count",
                details={"expected": expected, "received": len(vectors)},
            )
        for vector in vectors:
            self._check_dimensions(len(vector))
        return vectors

    def _check_dimensions(self, size: int) -> None:
        if size == 0:
            raise EmbeddingServiceError("Embedding service returned an empty vector")
        if self._dimensions is None:
            self._dimensions = size
        elif size != self._dimensions:
            raise EmbeddingServiceError(
                f"Expected {self._dimensions} dimensions, got {size}",
                code=ErrorCode.EMBEDDING_DIMENSION_MISMATCH,
                details={"expected": self._dimensions, "received": size},
            )
