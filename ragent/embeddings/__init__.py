"""Embedding service module."""

from ragent.embeddings.models import EmbeddingResult
from ragent.embeddings.service import EmbeddingService, HTTPEmbeddingService

__all__ = [
    "EmbeddingResult",
    "EmbeddingService",
    "HTTPEmbeddingService",
]
