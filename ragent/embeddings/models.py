"""Embedding data models."""

from pydantic import BaseModel, ConfigDict, field_validator


class EmbeddingResult(BaseModel):
    """Vector produced for one text by an embedding model."""

    model_config = ConfigDict(frozen=True)

    text: str
    vector: list[float]
    model: str

    @field_validator("vector")
    @classmethod
    def _not_empty(cls, value: list[float]) -> list[float]:
        if not value:
            raise ValueError("embedding vector must not be empty")
        return value

    @property
    def dimensions(self) -> int:
        return len(self.vector)
