"""LLM client interface and implementations."""

import json
import time
from abc import ABC, abstractmethod
from typing import Any

import httpx

from ragent.config import LLMSettings, get_settings
from ragent.exceptions import ErrorCode, GenerationServiceError
from ragent.http_backend import FailureCodes, JSONBackend
from ragent.llm.models import GenerationResult, Message, Role, ToolCallRequest
from ragent.logging_config import get_logger
from ragent.observability.metrics import track_llm_request

logger = get_logger(__name__)


class LLMClient(ABC):
    """Chat-completion backend that can also request tool calls."""

    @abstractmethod
    async def generate(
        self,
        messages: list[Message],
        tools: list[dict[str, Any]] | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> GenerationResult:
        """Generate a reply from messages.

        Args:
            messages: Conversation messages.
            tools: Tool catalog the model may choose from.
            temperature: Sampling temperature override.
            max_tokens: Maximum tokens override.

        Returns:
            GenerationResult with generated text or tool calls.

        Raises:
            GenerationServiceError: If generation fails.
        """
        ...

    async def generate_text(
        self,
        prompt: str,
        system_prompt: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> GenerationResult:
        """Single-prompt completion without tools."""
        messages = [Message(role=Role.USER, content=prompt)]
        if system_prompt:
            messages.insert(0, Message(role=Role.SYSTEM, content=system_prompt))
        return await self.generate(messages, temperature=temperature, max_tokens=max_tokens)

    @property
    @abstractmethod
    def model_name(self) -> str: ...

    async def close(self) -> None:
        return None


def _serialize_message(message: Message) -> dict[str, Any]:
    """Convert a message to the OpenAI chat format."""
    data: dict[str, Any] = {"role": message.role.value, "content": message.content}

    if message.tool_calls:
        data["content"] = message.content or None
        data["tool_calls"] = [
            {
                "id": call.id,
                "type": "function",
                "function": {
                    "name": call.tool_name,
                    "arguments": json.dumps({"input": call.tool_input}),
                },
            }
            for call in message.tool_calls
        ]

    if message.tool_call_id is not None:
        data["tool_call_id"] = message.tool_call_id

    return data


def _parse_tool_call(raw: dict[str, Any]) -> ToolCallRequest:
    """Parse one ``tool_calls`` entry.

    Arguments are expected as ``{"input": "..."}``; a single-key object or a
    non-JSON string is accepted as the input itself.
    """
    function = raw["function"]
    arguments = function.get("arguments") or ""

    tool_input: Any = arguments
    if isinstance(arguments, str):
        try:
            tool_input = json.loads(arguments) if arguments.strip() else ""
        except json.JSONDecodeError:
            tool_input = arguments

    if isinstance(tool_input, dict):
        if "input" in tool_input:
            tool_input = tool_input["input"]
        elif len(tool_input) == 1:
            tool_input = next(iter(tool_input.values()))
        else:
            tool_input = json.dumps(tool_input)

    fields: dict[str, Any] = {
        "tool_name": function["name"],
        "tool_input": tool_input if isinstance(tool_input, str) else json.dumps(tool_input),
    }
    if raw.get("id"):
        fields["id"] = raw["id"]
    return ToolCallRequest(**fields)


class OpenAICompatibleClient(JSONBackend, LLMClient):
    """Client for OpenAI-style ``/chat/completions`` endpoints.

    Works with Ollama (``localhost:11434/v1``), vLLM, the OpenAI API and
    any compatible server that supports function calling.
    """

    service = "LLM"
    error_type = GenerationServiceError
    failure_codes = FailureCodes(
        timeout=ErrorCode.GENERATION_TIMEOUT,
        rate_limit=ErrorCode.GENERATION_RATE_LIMIT,
        unavailable=ErrorCode.GENERATION_SERVICE_ERROR,
    )

    def __init__(
        self,
        settings: LLMSettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or get_settings().llm
        super().__init__(
            self._settings.base_url,
            self._settings.api_key,
            self._settings.timeout,
            client=client,
        )

    @property
    def model_name(self) -> str:
        return self._settings.model

    async def generate(
        self,
        messages: list[Message],
        tools: list[dict[str, Any]] | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> GenerationResult:
        payload: dict[str, Any] = {
            "model": self._settings.model,
            "messages": [_serialize_message(msg) for msg in messages],
            "temperature": self._settings.temperature if temperature is None else temperature,
            "max_tokens": max_tokens or self._settings.max_tokens,
        }
        if tools:
            payload["tools"] = tools
            payload["tool_choice"] = "auto"

        start = time.perf_counter()
        try:
            result = self._parse_completion(await self._post_json("/chat/completions", payload))
        except GenerationServiceError:
            track_llm_request(self.model_name, time.perf_counter() - start, 0, 0, success=False)
            raise

        track_llm_request(
            self.model_name,
            time.perf_counter() - start,
            result.prompt_tokens,
            result.completion_tokens,
        )
        if len(result.tool_calls) > 1:
            logger.warning(
                "Model requested several tool calls; only the first will run",
                extra={"tools": [call.tool_name for call in result.tool_calls]},
            )
        return result

    def _parse_completion(self, body: Any) -> GenerationResult:
        try:
            message = body["choices"][0]["message"]
            usage = body.get("usage") or {}
            return GenerationResult(
                content=message.get("content") or "",
                tool_calls=[_parse_tool_call(raw) for raw in message.get("tool_calls") or []],
                model=body.get("model", self._settings.model),
                prompt_tokens=usage.get("prompt_tokens", 0),
                completion_tokens=usage.get("completion_tokens", 0),
                total_tokens=usage.get("total_tokens", 0),
            )
        except (KeyError, IndexError, TypeError, AttributeError, ValueError) as e:
            raise GenerationServiceError(
                f"Invalid response from LLM: {e}",
                code=ErrorCode.GENERATION_INVALID_RESPONSE,
                details={"error": str(e)},
            ) from e
