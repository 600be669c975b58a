"""Vector index module."""

from ragent.vectorstore.models import IndexRecord, SearchResult, SimilarityMetric
from ragent.vectorstore.service import (
    InMemoryVectorIndex,
    QdrantVectorIndex,
    VectorIndex,
    create_vector_index,
    similarity,
)

__all__ = [
    "InMemoryVectorIndex",
    "IndexRecord",
    "QdrantVectorIndex",
    "SearchResult",
    "SimilarityMetric",
    "VectorIndex",
    "create_vector_index",
    "similarity",
]
