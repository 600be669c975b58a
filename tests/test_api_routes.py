"""Integration tests for session API routes."""

import pytest
from httpx import AsyncClient

from ragent.agent.models import AgentResult, AgentStatus, AgentStep
from ragent.api.routes import agent_result_to_chat_response, rag_response_to_query_response
from ragent.exceptions import GenerationServiceError
from ragent.llm.models import ToolCallRequest
from ragent.rag.models import RAGResponse, SourceAttribution


async def _create_session(client: AsyncClient, **config) -> str:
    response = await client.post("/api/v1/sessions", json=config or None)
    assert response.status_code == 201
    return response.json()["session_id"]


class TestSessionEndpoints:
    """Tests for session lifecycle endpoints."""

    @pytest.mark.asyncio
    async def test_create_session(self, client: AsyncClient) -> None:
        response = await client.post("/api/v1/sessions")

        assert response.status_code == 201
        data = response.json()
        assert data["session_id"]
        assert data["tools"] == [
            "document_search",
            "calculator",
            "get-weather",
            "suggest-activity",
            "summarize",
        ]

    @pytest.mark.asyncio
    async def test_create_session_with_config(self, client: AsyncClient, sessions) -> None:
        session_id = await _create_session(client, top_k=2, max_iterations=1)
        session = sessions.get(session_id)

        assert session.rag_chain.top_k == 2
        assert session.agent.max_iterations == 1

    @pytest.mark.asyncio
    async def test_invalid_config(self, client: AsyncClient) -> None:
        response = await client.post("/api/v1/sessions", json={"max_iterations": -1})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_delete_session(self, client: AsyncClient) -> None:
        session_id = await _create_session(client)

        response = await client.delete(f"/api/v1/sessions/{session_id}")
        assert response.status_code == 204

        response = await client.delete(f"/api/v1/sessions/{session_id}")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_unknown_session(self, client: AsyncClient) -> None:
        response = await client.post("/api/v1/sessions/nope/chat", json={"message": "hi"})

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "RAG-7002"


class TestSummarize:
    """Tests for the summarize endpoint."""

    @pytest.mark.asyncio
    async def test_summarize(self, client: AsyncClient, llm) -> None:
        session_id = await _create_session(client)
        llm.script("A note about Paris.")

        response = await client.post(
            f"/api/v1/sessions/{session_id}/summarize",
            json={"content": "Paris is the capital of France.", "source": "france.txt"},
        )

        assert response.status_code == 200
        assert response.json() == {
            "summary": "A note about Paris.",
            "chunks": 1,
            "model": "scripted-test",
            "tokens_used": 7,
        }

    @pytest.mark.asyncio
    async def test_empty_content_rejected(self, client: AsyncClient) -> None:
        session_id = await _create_session(client)

        response = await client.post(
            f"/api/v1/sessions/{session_id}/summarize", json={"content": ""}
        )
        assert response.status_code == 422


class TestIngestAndQuery:
    """Tests for ingestion and RAG query endpoints."""

    @pytest.mark.asyncio
    async def test_ingest(self, client: AsyncClient) -> None:
        session_id = await _create_session(client)

        response = await client.post(
            f"/api/v1/sessions/{session_id}/ingest",
            json={
                "content": "Paris is the capital of France.",
                "source": "france.txt",
                "metadata": {"lang": "en"},
            },
        )

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "chunks_created": 1,
            "source": "france.txt",
        }

    @pytest.mark.asyncio
    async def test_ingest_requires_source(self, client: AsyncClient) -> None:
        session_id = await _create_session(client)
        response = await client.post(
            f"/api/v1/sessions/{session_id}/ingest",
            json={"content": "text", "source": ""},
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_query(self, client: AsyncClient, llm) -> None:
        session_id = await _create_session(client)
        await client.post(
            f"/api/v1/sessions/{session_id}/ingest",
            json={"content": "Paris is the capital of France.", "source": "france.txt"},
        )
        llm.script("Paris.")

        response = await client.post(
            f"/api/v1/sessions/{session_id}/query",
            json={"question": "What is the capital of France?"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["answer"] == "Paris."
        assert data["sources"][0]["source"] == "france.txt"
        assert data["model"] == "scripted-test"

    @pytest.mark.asyncio
    async def test_query_rejects_empty_question(self, client: AsyncClient) -> None:
        session_id = await _create_session(client)
        response = await client.post(
            f"/api/v1/sessions/{session_id}/query",
            json={"question": ""},
        )
        assert response.status_code == 422


class TestChatEndpoint:
    """Tests for the agent chat endpoint."""

    @pytest.mark.asyncio
    async def test_chat_with_tool(self, client: AsyncClient, llm) -> None:
        session_id = await _create_session(client)
        llm.script(
            ToolCallRequest(tool_name="calculator", tool_input="7 * 10"),
            "70",
        )

        response = await client.post(
            f"/api/v1/sessions/{session_id}/chat",
            json={"message": "What is 7 * 10?"},
        )

        assert response.status_code == 200
        assert response.json() == {
            "output": "70",
            "status": "done",
            "iterations": 1,
            "tool_calls": [{"tool": "calculator", "input": "7 * 10"}],
        }

    @pytest.mark.asyncio
    async def test_unknown_tool_is_bad_gateway(self, client: AsyncClient, llm) -> None:
        session_id = await _create_session(client)
        llm.script(ToolCallRequest(tool_name="web_search", tool_input="news"))

        response = await client.post(
            f"/api/v1/sessions/{session_id}/chat",
            json={"message": "news?"},
        )

        assert response.status_code == 502
        error = response.json()["error"]
        assert error["code"] == "RAG-7000"
        assert error["details"]["tool"] == "web_search"

    @pytest.mark.asyncio
    async def test_generation_failure(self, client: AsyncClient, llm) -> None:
        session_id = await _create_session(client)
        llm.script(GenerationServiceError("LLM service returned 500"))

        response = await client.post(
            f"/api/v1/sessions/{session_id}/chat",
            json={"message": "hi"},
        )

        assert response.status_code == 502
        assert response.json()["error"]["message"] == "LLM service returned 500"

    @pytest.mark.asyncio
    async def test_reset(self, client: AsyncClient, llm, sessions) -> None:
        session_id = await _create_session(client)
        llm.script("hello")
        await client.post(f"/api/v1/sessions/{session_id}/chat", json={"message": "hi"})

        response = await client.post(f"/api/v1/sessions/{session_id}/reset")

        assert response.status_code == 204
        assert len(sessions.get(session_id).memory) == 0


class TestConverters:
    """Tests for response converters."""

    def test_rag_response_conversion(self) -> None:
        rag_response = RAGResponse(
            answer="Answer",
            sources=[SourceAttribution(source="a.txt", content="snippet", score=0.8)],
            model="m",
            tokens_used=3,
        )

        response = rag_response_to_query_response(rag_response)

        assert response.sources == [{"source": "a.txt", "content": "snippet", "score": 0.8}]
        assert response.tokens_used == 3

    def test_agent_result_conversion(self) -> None:
        request = ToolCallRequest(tool_name="calculator", tool_input="1+1")
        result = AgentResult(
            output="2",
            status=AgentStatus.EXCEEDED_ITERATIONS,
            iterations=1,
            steps=[AgentStep(request=request, observation="2")],
        )

        response = agent_result_to_chat_response(result)

        assert response.status == "exceeded_iterations"
        assert response.tool_calls == [{"tool": "calculator", "input": "1+1"}]
