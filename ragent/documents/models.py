"""Document data models."""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class DocumentMetadata(BaseModel):
    """Where a text came from, carried unchanged onto its chunks.

    Attributes:
        source: Path, URL or any caller-chosen identifier.
        content_type: MIME type of the original text.
        loaded_at: When the text entered the engine.
        extra: Caller metadata, preserved verbatim.
    """

    model_config = ConfigDict(frozen=True)

    source: str = Field(description="Source identifier")
    content_type: str = Field(default="text/plain", description="MIME type")
    loaded_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="Load timestamp",
    )
    extra: dict[str, Any] = Field(default_factory=dict, description="Caller metadata")

    def at_position(self, index: int, start_char: int, end_char: int) -> "DocumentMetadata":
        """Copy of this metadata locating one chunk in the source text."""
        return self.model_copy(
            update={
                "extra": {
                    **self.extra,
                    "chunk_index": index,
                    "start_char": start_char,
                    "end_char": end_char,
                }
            }
        )


class Document(BaseModel):
    """Raw text handed over by a document source."""

    model_config = ConfigDict(frozen=True)

    content: str
    metadata: DocumentMetadata

    @property
    def source(self) -> str:
        return self.metadata.source

    @classmethod
    def from_text(
        cls,
        content: str,
        source: str,
        content_type: str = "text/plain",
        **extra: Any,
    ) -> "Document":
        """Wrap raw text.

        Args:
            content: The text.
            source: Identifier recorded on every chunk.
            content_type: MIME type of the text.
            **extra: Additional metadata.
        """
        return cls(
            content=content,
            metadata=DocumentMetadata(source=source, content_type=content_type, extra=extra),
        )
