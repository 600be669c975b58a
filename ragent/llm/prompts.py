"""Prompts for the RAG chain, summarization and the agent loop."""

from collections.abc import Sequence
from string import Formatter
from typing import TYPE_CHECKING

from ragent.exceptions import ConfigurationError
from ragent.llm.models import Message, Role

if TYPE_CHECKING:
    from ragent.agent.models import AgentStep


def _check_placeholders(template: str, expected: frozenset[str]) -> None:
    try:
        used = {field for _, field, _, _ in Formatter().parse(template) if field is not None}
    except ValueError as e:
        raise ConfigurationError(
            f"Malformed prompt template: {e}",
            details={"template": template[:100]},
        ) from e

    if used != expected:
        names = " and ".join(f"{{{name}}}" for name in sorted(expected))
        raise ConfigurationError(
            f"Prompt template must use exactly {names}",
            details={
                "missing": sorted(expected - used),
                "unknown": sorted(used - expected),
            },
        )


class RAGPromptTemplate:
    """System prompt plus a user template with ``{context}`` and ``{question}``.

    A custom ``user_template`` must use exactly those two placeholders.

    Raises:
        ConfigurationError: On construction, for malformed templates.
    """

    PLACEHOLDERS = frozenset({"context", "question"})

    DEFAULT_SYSTEM_PROMPT = (
        "You are a helpful assistant that answers questions based on the provided context.\n\n"
        "Rules:\n"
        "- Answer ONLY based on the provided context\n"
        "- If the context does not contain enough information, say so\n"
        "- Be concise and direct"
    )
    DEFAULT_USER_TEMPLATE = (
        "Answer the question based only on the following context:\n"
        "{context}\n\n"
        "Question: {question}"
    )

    def __init__(
        self,
        system_prompt: str | None = None,
        user_template: str | None = None,
    ) -> None:
        self.system_prompt = system_prompt or self.DEFAULT_SYSTEM_PROMPT
        self.user_template = user_template or self.DEFAULT_USER_TEMPLATE
        _check_placeholders(self.user_template, self.PLACEHOLDERS)

    def format(self, context: str, question: str) -> str:
        # Single pass, so braces inside context or question stay literal.
        return self.user_template.format(context=context, question=question)

    def build_prompt(self, question: str, context: str) -> tuple[str, str]:
        """Return ``(system_prompt, user_prompt)``."""
        return self.system_prompt, self.format(context, question)


class SummaryPromptTemplate:
    """Prompts for map-reduce summarization.

    ``map_template`` summarizes one chunk and ``combine_template`` merges
    partial summaries. Both take a single ``{text}`` placeholder.

    Raises:
        ConfigurationError: On construction, for malformed templates.
    """

    PLACEHOLDERS = frozenset({"text"})

    DEFAULT_SYSTEM_PROMPT = "You write accurate, concise summaries."
    DEFAULT_MAP_TEMPLATE = (
        'Write a concise summary of the following:\n\n"{text}"\n\nCONCISE SUMMARY:'
    )
    DEFAULT_COMBINE_TEMPLATE = (
        "The following are summaries of consecutive parts of one text:\n\n"
        "{text}\n\n"
        "Combine them into a single concise summary of the whole text.\n\n"
        "CONCISE SUMMARY:"
    )

    def __init__(
        self,
        system_prompt: str | None = None,
        map_template: str | None = None,
        combine_template: str | None = None,
    ) -> None:
        self.system_prompt = system_prompt or self.DEFAULT_SYSTEM_PROMPT
        self.map_template = map_template or self.DEFAULT_MAP_TEMPLATE
        self.combine_template = combine_template or self.DEFAULT_COMBINE_TEMPLATE
        _check_placeholders(self.map_template, self.PLACEHOLDERS)
        _check_placeholders(self.combine_template, self.PLACEHOLDERS)


class AgentPromptBuilder:
    """Builds the message list sent to the model on every agent iteration.

    Layout: system prompt (with the tool listing appended), memory history,
    the current user input, then one assistant tool call and one tool
    observation per step already taken in this turn.
    """

    def __init__(self, system_prompt: str) -> None:
        self.system_prompt = system_prompt

    def build(
        self,
        user_input: str,
        history: Sequence[Message] = (),
        tool_listing: str = "",
        steps: Sequence["AgentStep"] = (),
    ) -> list[Message]:
        """Assemble the messages for one model call.

        Args:
            user_input: Current user input.
            history: Prior conversation turns, oldest first.
            tool_listing: Human-readable tool catalog.
            steps: Tool calls and observations from this turn.

        Returns:
            Messages in prompt order.
        """
        system = self.system_prompt
        if tool_listing:
            system = f"{system}\n\nYou can use the following tools:\n{tool_listing}"

        messages = [Message(role=Role.SYSTEM, content=system), *history]
        messages.append(Message(role=Role.USER, content=user_input))

        for step in steps:
            messages.append(Message(role=Role.ASSISTANT, tool_calls=[step.request]))
            messages.append(
                Message(
                    role=Role.TOOL,
                    content=step.observation,
                    tool_call_id=step.request.id,
                )
            )
        return messages
