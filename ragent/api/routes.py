"""API routes for chat sessions."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel, Field

from ragent.agent.models import AgentResult
from ragent.logging_config import get_logger
from ragent.rag.models import RAGResponse
from ragent.rag.summarizer import SummaryResult
from ragent.session import ChatSession, SessionConfig, SessionManager

logger = get_logger(__name__)


router = APIRouter(prefix="/api/v1", tags=["Sessions"])


class SessionResponse(BaseModel):
    """A created session."""

    session_id: str = Field(description="Session identifier")
    tools: list[str] = Field(description="Tools available to the agent")


class IngestRequest(BaseModel):
    """Request body for text ingestion."""

    content: str = Field(description="Text to ingest")
    source: str = Field(min_length=1, description="Source identifier")
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional metadata",
    )


class IngestResponse(BaseModel):
    """Response from text ingestion."""

    success: bool = Field(description="Whether ingestion succeeded")
    chunks_created: int = Field(description="Number of chunks added to the index")
    source: str = Field(description="Source identifier")


class QueryRequest(BaseModel):
    """Request body for a RAG query."""

    question: str = Field(min_length=1, description="Question to answer")
    top_k: int | None = Field(default=None, ge=0, le=50, description="Chunks to retrieve")


class QueryResponse(BaseModel):
    """Response from a RAG query."""

    answer: str = Field(description="Generated answer")
    sources: list[dict[str, Any]] = Field(description="Source attributions")
    model: str = Field(description="Model used")
    tokens_used: int = Field(description="Tokens consumed")


class ChatRequest(BaseModel):
    """Request body for one agent turn."""

    message: str = Field(min_length=1, description="User message")


class SummarizeRequest(BaseModel):
    """Request body for summarizing a text."""

    content: str = Field(min_length=1, description="Text to summarize")
    source: str = Field(default="", description="Source identifier for logs")


class ChatResponse(BaseModel):
    """Response from one agent turn."""

    output: str = Field(description="Agent answer")
    status: str = Field(description="Terminal status of the turn")
    iterations: int = Field(description="Tool executions performed")
    tool_calls: list[dict[str, str]] = Field(description="Tools called, in order")


def get_session_manager(request: Request) -> SessionManager:
    """Session manager owned by the application."""
    return request.app.state.sessions


Sessions = Annotated[SessionManager, Depends(get_session_manager)]


def get_session(session_id: str, sessions: Sessions) -> ChatSession:
    """Resolve the session named in the path."""
    return sessions.get(session_id)


Session = Annotated[ChatSession, Depends(get_session)]


@router.post(
    "/sessions",
    response_model=SessionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_session(
    sessions: Sessions,
    config: SessionConfig | None = None,
) -> SessionResponse:
    """Start a new chat session."""
    session = sessions.create(config)
    return SessionResponse(session_id=session.id, tools=session.tools.names())


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(session_id: str, sessions: Sessions) -> None:
    """Close a session and discard its documents and memory."""
    await sessions.delete(session_id)


@router.post("/sessions/{session_id}/ingest", response_model=IngestResponse)
async def ingest_endpoint(request: IngestRequest, session: Session) -> IngestResponse:
    """Index text into the session."""
    added = await session.ingest_text(request.content, request.source, **request.metadata)
    return IngestResponse(success=True, chunks_created=added, source=request.source)


@router.post("/sessions/{session_id}/query", response_model=QueryResponse)
async def query_endpoint(request: QueryRequest, session: Session) -> QueryResponse:
    """Answer a question from the session documents."""
    response = await session.query(request.question, top_k=request.top_k)
    return rag_response_to_query_response(response)


@router.post("/sessions/{session_id}/chat", response_model=ChatResponse)
async def chat_endpoint(request: ChatRequest, session: Session) -> ChatResponse:
    """Run one agent turn."""
    result = await session.chat(request.message)
    return agent_result_to_chat_response(result)


@router.post("/sessions/{session_id}/summarize", response_model=SummaryResult)
async def summarize_endpoint(request: SummarizeRequest, session: Session) -> SummaryResult:
    """Summarize a text with the session model."""
    return await session.summarize(request.content, request.source)


@router.post("/sessions/{session_id}/reset", status_code=status.HTTP_204_NO_CONTENT)
async def reset_endpoint(session: Session) -> None:
    """Forget the session conversation."""
    await session.reset_memory()


def rag_response_to_query_response(rag_response: RAGResponse) -> QueryResponse:
    """Convert internal RAGResponse to API QueryResponse."""
    return QueryResponse(
        answer=rag_response.answer,
        sources=[
            {
                "source": s.source,
                "content": s.content,
                "score": s.score,
            }
            for s in rag_response.sources
        ],
        model=rag_response.model,
        tokens_used=rag_response.tokens_used,
    )


def agent_result_to_chat_response(result: AgentResult) -> ChatResponse:
    """Convert internal AgentResult to API ChatResponse."""
    return ChatResponse(
        output=result.output,
        status=result.status.value,
        iterations=result.iterations,
        tool_calls=[
            {"tool": step.request.tool_name, "input": step.request.tool_input}
            for step in result.steps
        ],
    )
