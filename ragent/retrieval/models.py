"""Retrieval data models."""

from typing import Any

from pydantic import BaseModel, Field

from ragent.vectorstore.models import SearchResult


class RetrievalResult(BaseModel):
    """A chunk matched for a query, highest score first in result lists.

    ``source`` is the originating document; records stored without one
    report their own id instead.
    """

    id: str = ""
    content: str
    score: float
    source: str
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_search(cls, hit: SearchResult) -> "RetrievalResult":
        metadata = hit.record.metadata
        return cls(
            id=hit.id,
            content=hit.content,
            score=hit.score,
            source=str(metadata.get("source", hit.id)),
            metadata=metadata,
        )
