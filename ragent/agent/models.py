"""Agent loop data models."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from ragent.llm.models import ToolCallRequest

UNABLE_TO_COMPLETE = "I was unable to complete the request within the allowed number of steps."


class AgentStatus(str, Enum):
    """Position of a turn in the decide/act/observe cycle."""

    AWAITING_MODEL = "awaiting_model"
    TOOL_REQUESTED = "tool_requested"
    EXECUTING_TOOL = "executing_tool"
    FINAL = "final"
    DONE = "done"
    EXCEEDED_ITERATIONS = "exceeded_iterations"


class AgentStep(BaseModel):
    """A tool call and what it returned."""

    model_config = ConfigDict(frozen=True)

    request: ToolCallRequest
    observation: str


class AgentState(BaseModel):
    """Mutable state of one user turn.

    Attributes:
        iteration: Tool executions performed so far.
        status: Current position in the cycle.
        pending: Tool call waiting to be executed.
        steps: Completed tool calls with their observations.
    """

    iteration: int = Field(default=0, ge=0)
    status: AgentStatus = Field(default=AgentStatus.AWAITING_MODEL)
    pending: ToolCallRequest | None = None
    steps: list[AgentStep] = Field(default_factory=list)

    @property
    def last_observation(self) -> str | None:
        return self.steps[-1].observation if self.steps else None


class AgentResult(BaseModel):
    """Outcome of one user turn.

    Attributes:
        output: Final answer, or the fallback text when the bound was hit.
        status: DONE or EXCEEDED_ITERATIONS.
        iterations: Tool executions performed.
        steps: Tool calls with their observations, in order.
    """

    output: str
    status: AgentStatus
    iterations: int
    steps: list[AgentStep] = Field(default_factory=list)
