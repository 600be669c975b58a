"""Question and answer models for the RAG chain."""

from pydantic import BaseModel, ConfigDict, Field

from ragent.retrieval.models import RetrievalResult

SNIPPET_CHARS = 200


class SourceAttribution(BaseModel):
    """A chunk the answer was grounded on, with a shortened snippet."""

    model_config = ConfigDict(frozen=True)

    source: str
    content: str
    score: float

    @classmethod
    def from_result(cls, result: RetrievalResult) -> "SourceAttribution":
        snippet = result.content
        if len(snippet) > SNIPPET_CHARS:
            snippet = snippet[:SNIPPET_CHARS] + "..."
        return cls(source=result.source, content=snippet, score=result.score)


class RAGQuery(BaseModel):
    """A question, with optional per-query retrieval overrides.

    Unset ``top_k`` and ``score_threshold`` fall back to the chain's defaults.
    """

    question: str = Field(min_length=1)
    top_k: int | None = Field(default=None, ge=0, le=50)
    # Unbounded: inner-product scores have no fixed range
    score_threshold: float | None = None


class RAGResponse(BaseModel):
    answer: str
    sources: list[SourceAttribution] = Field(default_factory=list)
    model: str
    tokens_used: int = 0
