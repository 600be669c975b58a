"""Tool data models."""

from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

ToolFunc = Callable[[str], Any]


class ToolSpec(BaseModel):
    """A named capability the agent may invoke.

    Attributes:
        name: Unique tool name, as sent to the model.
        description: What the tool does; shown to the model.
        input_description: What the single text input should contain.
        func: Sync or async callable taking the input text.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = Field(pattern=r"^[A-Za-z0-9_-]{1,64}$", description="Tool name")
    description: str = Field(description="Tool description")
    input_description: str = Field(
        default="Input text for the tool",
        description="Description of the tool input",
    )
    func: ToolFunc = Field(exclude=True, description="Callable implementing the tool")

    @property
    def input_schema(self) -> dict[str, Any]:
        """JSON schema of the tool arguments."""
        return {
            "type": "object",
            "properties": {
                "input": {"type": "string", "description": self.input_description},
            },
            "required": ["input"],
        }

    def to_openai(self) -> dict[str, Any]:
        """Function definition in the chat completions ``tools`` format."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.input_schema,
            },
        }
