"""Conversation memory data models."""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field

from ragent.llm.models import Role


class MemoryTurn(BaseModel):
    """One remembered message.

    Attributes:
        role: Who said it, user or assistant.
        content: Message text.
        ordinal: Position in the conversation, strictly increasing.
        created_at: When the turn was recorded.
    """

    model_config = ConfigDict(frozen=True)

    role: Role = Field(description="Message role")
    content: str = Field(description="Message text")
    ordinal: int = Field(ge=0, description="Insertion ordinal")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="When the turn was recorded",
    )
