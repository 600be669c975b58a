"""Vector index data models."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SimilarityMetric(str, Enum):
    """Similarity metric used to rank records."""

    COSINE = "cosine"
    INNER_PRODUCT = "inner_product"


class IndexRecord(BaseModel):
    """One retrievable unit stored in a vector index.

    Attributes:
        id: Unique identifier for the record.
        vector: The embedding vector.
        content: Text of the originating chunk.
        metadata: Arbitrary metadata (e.g. source URL), preserved verbatim.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Unique record identifier")
    vector: list[float] = Field(description="Embedding vector")
    content: str = Field(description="Originating chunk text")
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Metadata payload",
    )


class SearchResult(BaseModel):
    """Result from a vector similarity search.

    Attributes:
        record: The matched record.
        score: Similarity score (higher is more similar).
    """

    record: IndexRecord = Field(description="Matched record")
    score: float = Field(description="Similarity score")

    @property
    def id(self) -> str:
        """Identifier of the matched record."""
        return self.record.id

    @property
    def content(self) -> str:
        """Text of the matched record."""
        return self.record.content
