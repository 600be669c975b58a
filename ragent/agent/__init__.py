"""Tool-using agent module."""

from ragent.agent.loop import AgentLoop
from ragent.agent.models import (
    UNABLE_TO_COMPLETE,
    AgentResult,
    AgentState,
    AgentStatus,
    AgentStep,
)

__all__ = [
    "UNABLE_TO_COMPLETE",
    "AgentLoop",
    "AgentResult",
    "AgentState",
    "AgentStatus",
    "AgentStep",
]
