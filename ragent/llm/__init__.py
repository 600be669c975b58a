"""LLM client module."""

from ragent.llm.client import LLMClient, OpenAICompatibleClient
from ragent.llm.models import (
    Decision,
    FinalAnswer,
    GenerationResult,
    Message,
    Role,
    ToolCall,
    ToolCallRequest,
)
from ragent.llm.prompts import AgentPromptBuilder, RAGPromptTemplate, SummaryPromptTemplate

__all__ = [
    "AgentPromptBuilder",
    "Decision",
    "FinalAnswer",
    "GenerationResult",
    "LLMClient",
    "Message",
    "OpenAICompatibleClient",
    "RAGPromptTemplate",
    "Role",
    "SummaryPromptTemplate",
    "ToolCall",
    "ToolCallRequest",
]
