"""Tests for chat sessions and the session manager."""

from pathlib import Path
from tempfile import TemporaryDirectory
from unittest.mock import AsyncMock, patch

import pytest

from ragent.agent.models import AgentStatus
from ragent.config import IndexBackend, Settings
from ragent.exceptions import DocumentError, SessionNotFoundError, VectorStoreError
from ragent.llm.models import ToolCallRequest
from ragent.rag.pipeline import NO_CONTEXT_ANSWER
from ragent.session import ChatSession, SessionConfig, SessionManager
from ragent.tools.models import ToolSpec
from ragent.vectorstore.models import SimilarityMetric
from ragent.vectorstore.service import InMemoryVectorIndex, QdrantVectorIndex


def _session(llm, embedding_service, config=None, **kwargs) -> ChatSession:
    return ChatSession(llm, embedding_service, config=config, settings=Settings(), **kwargs)


class TestChatSession:
    """Tests for ChatSession."""

    def test_builtin_tools(self, llm, embedding_service) -> None:
        session = _session(llm, embedding_service)
        assert session.tools.names() == [
            "document_search",
            "calculator",
            "get-weather",
            "suggest-activity",
            "summarize",
        ]

    def test_extra_tools(self, llm, embedding_service) -> None:
        echo = ToolSpec(name="echo", description="Echoes", func=lambda text: text)
        session = _session(llm, embedding_service, extra_tools=[echo])
        assert session.tools.names()[-1] == "echo"

    def test_config_overrides(self, llm, embedding_service) -> None:
        config = SessionConfig(
            chunk_size=200,
            chunk_overlap=20,
            similarity_metric=SimilarityMetric.INNER_PRODUCT,
            top_k=2,
            max_iterations=5,
            system_prompt="Be terse.",
        )
        session = _session(llm, embedding_service, config)

        assert session.segmenter.config.chunk_size == 200
        assert session.index.metric == SimilarityMetric.INNER_PRODUCT
        assert session.rag_chain.top_k == 2
        assert session.agent.max_iterations == 5

    def test_qdrant_backend(self, llm, embedding_service) -> None:
        settings = Settings()
        settings.rag.index_backend = IndexBackend.QDRANT
        session = ChatSession(llm, embedding_service, settings=settings)
        assert isinstance(session.index, QdrantVectorIndex)

    @pytest.mark.asyncio
    async def test_ingest_and_query(self, llm, embedding_service) -> None:
        session = _session(llm, embedding_service)
        llm.script("Paris.")

        added = await session.ingest_text("Paris is the capital of France.", "france.txt")
        response = await session.query("What is the capital of France?")

        assert added == 1
        assert response.answer == "Paris."
        assert response.sources[0].source == "france.txt"

    @pytest.mark.asyncio
    async def test_query_without_documents(self, llm, embedding_service) -> None:
        session = _session(llm, embedding_service)
        response = await session.query("Anything?")

        assert response.answer == NO_CONTEXT_ANSWER
        assert llm.calls == []

    @pytest.mark.asyncio
    async def test_ingest_file(self, llm, embedding_service) -> None:
        session = _session(llm, embedding_service)
        with TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "notes.txt"
            path.write_text("The dog likes the cat.", encoding="utf-8")
            assert await session.ingest_file(path) == 1

        with pytest.raises(DocumentError):
            await session.ingest_file("/nonexistent/notes.txt")

    @pytest.mark.asyncio
    async def test_chat_uses_document_search(self, llm, embedding_service) -> None:
        """The agent reaches the documents through the document_search tool."""
        session = _session(llm, embedding_service)
        await session.ingest_text("The Eiffel tower is in Paris.", "paris.txt")
        llm.script(
            ToolCallRequest(tool_name="document_search", tool_input="Where is the tower?"),
            "It is in Paris.",  # answer of the inner RAG chain
            "The tower is in Paris.",
        )

        result = await session.chat("Where is the Eiffel tower?")

        assert result.status == AgentStatus.DONE
        assert result.output == "The tower is in Paris."
        assert result.steps[0].observation == "It is in Paris."
        assert len(session.memory) == 2

    @pytest.mark.asyncio
    async def test_summarize_leaves_index_and_memory(self, llm, embedding_service) -> None:
        session = _session(llm, embedding_service)
        llm.script("Paris is a capital.")

        result = await session.summarize("Paris is the capital of France.", "france.txt")

        assert result.summary == "Paris is a capital."
        assert result.chunks == 1
        assert await session.index.count() == 0
        assert len(session.memory) == 0

    @pytest.mark.asyncio
    async def test_reset_memory_keeps_documents(self, llm, embedding_service) -> None:
        session = _session(llm, embedding_service)
        await session.ingest_text("cat facts", "cats.txt")
        llm.script("hello")
        await session.chat("hi")

        await session.reset_memory()

        assert len(session.memory) == 0
        assert await session.index.count() == 1

    @pytest.mark.asyncio
    async def test_close_clears_index(self, llm, embedding_service) -> None:
        session = _session(llm, embedding_service)
        await session.ingest_text("dog facts", "dogs.txt")
        await session.close()
        assert await session.index.count() == 0


class TestSessionManager:
    """Tests for SessionManager."""

    @pytest.mark.asyncio
    async def test_sessions_are_isolated(self, sessions: SessionManager, llm) -> None:
        first = sessions.create()
        second = sessions.create()
        await first.ingest_text("Python is a language.", "python.txt")
        llm.script("first answer")
        await first.chat("hello")

        assert first.id != second.id
        assert len(sessions) == 2
        assert await second.index.count() == 0
        assert len(second.memory) == 0
        assert isinstance(second.index, InMemoryVectorIndex)

    @pytest.mark.asyncio
    async def test_get_and_delete(self, sessions: SessionManager) -> None:
        session = sessions.create(SessionConfig(top_k=1))

        assert sessions.get(session.id) is session
        assert sessions.ids() == [session.id]

        await sessions.delete(session.id)

        with pytest.raises(SessionNotFoundError):
            sessions.get(session.id)
        with pytest.raises(SessionNotFoundError):
            await sessions.delete(session.id)

    @pytest.mark.asyncio
    async def test_close_closes_every_session(self, sessions: SessionManager) -> None:
        sessions.create()
        sessions.create()
        await sessions.close()
        assert len(sessions) == 0

    @pytest.mark.asyncio
    async def test_close_continues_past_failing_session(
        self, sessions: SessionManager, llm, embedding_service
    ) -> None:
        broken = sessions.create()
        healthy = sessions.create()
        broken.index.clear = AsyncMock(side_effect=VectorStoreError("backend gone"))
        healthy.index.clear = AsyncMock()

        with (
            patch.object(llm, "close", AsyncMock()) as llm_close,
            patch.object(embedding_service, "close", AsyncMock()) as embedding_close,
        ):
            await sessions.close()

        assert len(sessions) == 0
        healthy.index.clear.assert_awaited_once()
        llm_close.assert_awaited_once()
        embedding_close.assert_awaited_once()
