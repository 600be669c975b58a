"""Tool registry and execution."""

import asyncio
import inspect
import time
from collections.abc import Callable

from ragent.exceptions import ConfigurationError, ToolExecutionError, UnknownToolError
from ragent.llm.models import ToolCallRequest
from ragent.logging_config import get_logger
from ragent.observability.metrics import track_tool_call
from ragent.tools.models import ToolFunc, ToolSpec

logger = get_logger(__name__)


class ToolRegistry:
    """Named set of tools available to an agent.

    Tool failures never escape :meth:`execute`; they become observation
    strings the model can react to. Asking for a tool that is not
    registered is a protocol violation and raises.
    """

    def __init__(self, timeout: float | None = None) -> None:
        """Initialize an empty registry.

        Args:
            timeout: Per-call timeout in seconds, or None for no limit.
        """
        self._tools: dict[str, ToolSpec] = {}
        self._timeout = timeout

    def register(self, spec: ToolSpec) -> ToolSpec:
        """Add a tool.

        Raises:
            ConfigurationError: If the name is taken or the description is
                blank.
        """
        if spec.name in self._tools:
            raise ConfigurationError(
                f"Tool already registered: {spec.name}",
                details={"tool": spec.name},
            )
        if not spec.description.strip():
            raise ConfigurationError(
                f"Tool {spec.name} needs a description",
                details={"tool": spec.name},
            )

        self._tools[spec.name] = spec
        logger.debug("Registered tool", extra={"tool": spec.name})
        return spec

    def tool(
        self,
        name: str,
        description: str,
        input_description: str = "Input text for the tool",
    ) -> Callable[[ToolFunc], ToolFunc]:
        """Decorator registering a function as a tool."""

        def decorator(func: ToolFunc) -> ToolFunc:
            self.register(
                ToolSpec(
                    name=name,
                    description=description,
                    input_description=input_description,
                    func=func,
                )
            )
            return func

        return decorator

    def get(self, name: str) -> ToolSpec:
        """Look a tool up by name.

        Raises:
            UnknownToolError: If no tool has that name.
        """
        try:
            return self._tools[name]
        except KeyError:
            raise UnknownToolError(name, available=self.names()) from None

    def names(self) -> list[str]:
        """Registered tool names in registration order."""
        return list(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def catalog(self) -> list[dict]:
        """Tool definitions for the generation client."""
        return [spec.to_openai() for spec in self._tools.values()]

    def describe(self) -> str:
        """Plain-text tool listing for the system prompt."""
        return "\n".join(
            f"- {spec.name}: {spec.description}" for spec in self._tools.values()
        )

    async def execute(self, request: ToolCallRequest) -> str:
        """Run a requested tool and return its observation.

        Args:
            request: The model's tool call.

        Returns:
            The tool output, or a ``Tool '<name>' failed: <reason>`` string
            when the tool raised or timed out.

        Raises:
            UnknownToolError: If the tool is not registered.
        """
        spec = self.get(request.tool_name)
        start = time.perf_counter()

        try:
            output = await self._invoke(spec, request.tool_input)
        except Exception as e:
            error = self._to_error(spec, e)
            track_tool_call(spec.name, time.perf_counter() - start, success=False)
            logger.warning(
                error.message,
                extra={"tool": spec.name, "code": error.code.value},
            )
            return f"Tool '{spec.name}' failed: {error.details['reason']}"

        track_tool_call(spec.name, time.perf_counter() - start)
        logger.debug(
            "Tool executed",
            extra={"tool": spec.name, "output_length": len(output)},
        )
        return output

    async def _invoke(self, spec: ToolSpec, tool_input: str) -> str:
        result = spec.func(tool_input)
        if inspect.isawaitable(result):
            result = await asyncio.wait_for(result, timeout=self._timeout)
        return result if isinstance(result, str) else str(result)

    def _to_error(self, spec: ToolSpec, exc: Exception) -> ToolExecutionError:
        if isinstance(exc, TimeoutError):
            reason = f"timed out after {self._timeout}s"
        else:
            reason = str(exc) or type(exc).__name__
        return ToolExecutionError(
            f"Tool {spec.name} failed: {reason}",
            details={"tool": spec.name, "reason": reason, "type": type(exc).__name__},
        )
