"""Pytest configuration and shared fixtures."""

from collections.abc import AsyncGenerator, Callable
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from ragent.api.app import app
from ragent.config import Settings
from ragent.embeddings.models import EmbeddingResult
from ragent.embeddings.service import EmbeddingService
from ragent.llm.client import LLMClient
from ragent.llm.models import GenerationResult, Message, ToolCallRequest
from ragent.session import SessionManager

# Each vocabulary word is one embedding dimension.
VOCABULARY = (
    "paris",
    "france",
    "capital",
    "python",
    "language",
    "weather",
    "cat",
    "dog",
    "tower",
    "population",
)

Reply = str | ToolCallRequest | GenerationResult | Exception


class KeywordEmbeddingService(EmbeddingService):
    """Deterministic embeddings from vocabulary word counts."""

    def __init__(self) -> None:
        self.batches: list[list[str]] = []

    @staticmethod
    def vector_for(text: str) -> list[float]:
        lowered = text.lower()
        return [float(lowered.count(word)) for word in VOCABULARY] + [0.1]

    async def embed(self, text: str) -> EmbeddingResult:
        return (await self.embed_batch([text]))[0]

    async def embed_batch(self, texts: list[str]) -> list[EmbeddingResult]:
        self.batches.append(list(texts))
        return [
            EmbeddingResult(
                text=text,
                vector=self.vector_for(text),
                model=self.model_name,
            )
            for text in texts
        ]

    @property
    def model_name(self) -> str:
        return "keyword-test"


class ScriptedLLMClient(LLMClient):
    """Replays canned replies and records every request.

    Strings become final answers, ToolCallRequests become tool calls and
    exceptions are raised. Once the script runs out every reply is "done".
    """

    def __init__(self, replies: list[Reply] | None = None) -> None:
        self.replies = list(replies or [])
        self.calls: list[dict[str, Any]] = []

    def script(self, *replies: Reply) -> None:
        self.replies.extend(replies)

    async def generate(
        self,
        messages: list[Message],
        tools: list[dict[str, Any]] | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> GenerationResult:
        self.calls.append({"messages": list(messages), "tools": tools})
        reply = self.replies.pop(0) if self.replies else "done"

        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, GenerationResult):
            return reply
        if isinstance(reply, ToolCallRequest):
            return GenerationResult(tool_calls=[reply], model=self.model_name)
        return GenerationResult(content=reply, model=self.model_name, total_tokens=7)

    @property
    def model_name(self) -> str:
        return "scripted-test"


@pytest.fixture
def embedding_service() -> KeywordEmbeddingService:
    """Keyword-count embedding service."""
    return KeywordEmbeddingService()


@pytest.fixture
def make_llm() -> Callable[..., ScriptedLLMClient]:
    """Factory for scripted LLM clients."""

    def factory(*replies: Reply) -> ScriptedLLMClient:
        return ScriptedLLMClient(list(replies))

    return factory


@pytest.fixture
def llm() -> ScriptedLLMClient:
    """Scripted LLM client with an empty script."""
    return ScriptedLLMClient()


@pytest.fixture
async def sessions(
    llm: ScriptedLLMClient,
    embedding_service: KeywordEmbeddingService,
) -> AsyncGenerator[SessionManager, None]:
    """Session manager wired to the test doubles."""
    manager = SessionManager(
        Settings(),
        llm_client=llm,
        embedding_service=embedding_service,
    )
    yield manager
    await manager.close()


@pytest.fixture
async def client(sessions: SessionManager) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client for FastAPI app.

    The transport does not run the lifespan, so the session manager is
    installed directly.

    Yields:
        AsyncClient configured for testing.
    """
    app.state.sessions = sessions
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac
    finally:
        app.state.sessions = None
