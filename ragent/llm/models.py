"""LLM data models."""

from enum import Enum
from typing import Annotated, Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


class Role(str, Enum):
    """Message role in a conversation."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class ToolCallRequest(BaseModel):
    """A model request to run one registered tool.

    Attributes:
        id: Call identifier echoed back with the observation.
        tool_name: Name of the requested tool.
        tool_input: Single textual input for the tool.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: f"call_{uuid4().hex[:12]}")
    tool_name: str = Field(description="Requested tool name")
    tool_input: str = Field(default="", description="Tool input text")


class Message(BaseModel):
    """A message in a conversation.

    Attributes:
        role: The role of the message sender.
        content: The message content.
        tool_calls: Tool calls requested by an assistant message.
        tool_call_id: Call answered by a tool message.
    """

    role: Role = Field(description="Message role")
    content: str = Field(default="", description="Message content")
    tool_calls: list[ToolCallRequest] = Field(default_factory=list)
    tool_call_id: str | None = Field(default=None)


class FinalAnswer(BaseModel):
    """The model answered without requesting a tool."""

    kind: Literal["final"] = "final"
    text: str


class ToolCall(BaseModel):
    """The model requested a tool invocation."""

    kind: Literal["tool_call"] = "tool_call"
    request: ToolCallRequest


Decision = Annotated[FinalAnswer | ToolCall, Field(discriminator="kind")]


class GenerationResult(BaseModel):
    """Result from LLM generation.

    Attributes:
        content: The generated text.
        tool_calls: Tool calls requested by the model, in response order.
        model: Model used for generation.
        prompt_tokens: Number of tokens in the prompt.
        completion_tokens: Number of tokens in the completion.
        total_tokens: Total tokens used.
    """

    content: str = Field(default="", description="Generated text")
    tool_calls: list[ToolCallRequest] = Field(
        default_factory=list,
        description="Requested tool calls",
    )
    model: str = Field(description="Model used")
    prompt_tokens: int = Field(default=0, description="Prompt token count")
    completion_tokens: int = Field(default=0, description="Completion token count")
    total_tokens: int = Field(default=0, description="Total token count")

    def to_decision(self) -> FinalAnswer | ToolCall:
        """Interpret the result as the agent's next step.

        Only the first tool call is honoured; one tool runs per iteration.
        """
        if self.tool_calls:
            return ToolCall(request=self.tool_calls[0])
        return FinalAnswer(text=self.content)
