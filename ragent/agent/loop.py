"""Bounded decide/act/observe agent loop."""

from ragent.agent.models import (
    UNABLE_TO_COMPLETE,
    AgentResult,
    AgentState,
    AgentStatus,
    AgentStep,
)
from ragent.exceptions import ConfigurationError, RagentError, UnknownToolError
from ragent.llm.client import LLMClient
from ragent.llm.models import FinalAnswer
from ragent.llm.prompts import AgentPromptBuilder
from ragent.logging_config import get_logger
from ragent.memory.buffer import ConversationMemory
from ragent.observability.metrics import track_agent_turn
from ragent.tools.registry import ToolRegistry

logger = get_logger(__name__)

DEFAULT_SYSTEM_PROMPT = "You are a helpful assistant who can remember the previous conversation."


class AgentLoop:
    """Runs one user turn at a time against a model and a tool registry.

    Each iteration asks the model for a decision. A final answer ends the
    turn and is written to memory together with the user input. A tool call
    is executed and its observation fed back on the next iteration. At most
    ``max_iterations`` tools run per turn; memory is only written on success.
    """

    def __init__(
        self,
        llm_client: LLMClient,
        tools: ToolRegistry,
        memory: ConversationMemory,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
        max_iterations: int = 3,
    ) -> None:
        """Initialize the loop.

        Args:
            llm_client: Chat model client.
            tools: Tools the model may call.
            memory: Conversation memory owned by the caller.
            system_prompt: Instructions sent first on every call.
            max_iterations: Maximum tool executions per turn.

        Raises:
            ConfigurationError: If max_iterations is negative.
        """
        if max_iterations < 0:
            raise ConfigurationError(
                "max_iterations must not be negative",
                details={"max_iterations": max_iterations},
            )
        self._llm_client = llm_client
        self._tools = tools
        self._memory = memory
        self._prompts = AgentPromptBuilder(system_prompt)
        self._max_iterations = max_iterations

    @property
    def memory(self) -> ConversationMemory:
        return self._memory

    @property
    def tools(self) -> ToolRegistry:
        return self._tools

    @property
    def max_iterations(self) -> int:
        return self._max_iterations

    async def run(self, user_input: str) -> AgentResult:
        """Handle one user input.

        Args:
            user_input: The user's message.

        Returns:
            AgentResult with status DONE or EXCEEDED_ITERATIONS.

        Raises:
            UnknownToolError: If the model asks for an unregistered tool.
            GenerationServiceError: If the model call fails.
        """
        state = AgentState()
        history = self._memory.to_messages()
        catalog = self._tools.catalog() or None
        listing = self._tools.describe()

        try:
            while True:
                messages = self._prompts.build(
                    user_input,
                    history=history,
                    tool_listing=listing,
                    steps=state.steps,
                )
                generation = await self._llm_client.generate(messages, tools=catalog)
                decision = generation.to_decision()

                if isinstance(decision, FinalAnswer):
                    state.status = AgentStatus.FINAL
                    self._memory.record_exchange(user_input, decision.text)
                    state.status = AgentStatus.DONE
                    return self._finish(state, decision.text)

                state.status = AgentStatus.TOOL_REQUESTED
                state.pending = decision.request

                if decision.request.tool_name not in self._tools:
                    raise UnknownToolError(
                        decision.request.tool_name,
                        available=self._tools.names(),
                    )

                if state.iteration >= self._max_iterations:
                    state.status = AgentStatus.EXCEEDED_ITERATIONS
                    logger.warning(
                        "Agent reached the iteration limit",
                        extra={
                            "max_iterations": self._max_iterations,
                            "requested_tool": decision.request.tool_name,
                        },
                    )
                    return self._finish(
                        state,
                        state.last_observation or UNABLE_TO_COMPLETE,
                    )

                state.status = AgentStatus.EXECUTING_TOOL
                observation = await self._tools.execute(decision.request)
                state.steps.append(AgentStep(request=decision.request, observation=observation))
                state.pending = None
                state.iteration += 1
                state.status = AgentStatus.AWAITING_MODEL

                logger.info(
                    "Tool observation recorded",
                    extra={
                        "tool": decision.request.tool_name,
                        "iteration": state.iteration,
                    },
                )
        except RagentError:
            track_agent_turn("failed", state.iteration)
            raise

    def _finish(self, state: AgentState, output: str) -> AgentResult:
        track_agent_turn(state.status.value, state.iteration)
        logger.info(
            "Agent turn finished",
            extra={"status": state.status.value, "iterations": state.iteration},
        )
        return AgentResult(
            output=output,
            status=state.status,
            iterations=state.iteration,
            steps=list(state.steps),
        )
