"""Chat sessions: one index, one memory and one agent per conversation."""

import asyncio
from pathlib import Path
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field

from ragent.agent.loop import AgentLoop
from ragent.agent.models import AgentResult
from ragent.config import Settings, get_settings
from ragent.documents.chunker import RecursiveTextSegmenter, SegmenterConfig
from ragent.documents.loader import DocumentLoader, TextFileLoader
from ragent.documents.models import Document
from ragent.embeddings.service import EmbeddingService, HTTPEmbeddingService
from ragent.exceptions import RagentError, SessionNotFoundError
from ragent.llm.client import LLMClient, OpenAICompatibleClient
from ragent.logging_config import get_logger
from ragent.memory.buffer import ConversationMemory
from ragent.rag.models import RAGQuery, RAGResponse
from ragent.rag.pipeline import RAGChain
from ragent.rag.summarizer import MapReduceSummarizer, SummaryResult
from ragent.retrieval.indexer import DocumentIndexer
from ragent.retrieval.retriever import SemanticRetriever
from ragent.tools.builtin import WeatherTool, activity_tool, calculator_tool
from ragent.tools.models import ToolSpec
from ragent.tools.registry import ToolRegistry
from ragent.vectorstore.models import SimilarityMetric
from ragent.vectorstore.service import VectorIndex, create_vector_index

logger = get_logger(__name__)


class SessionConfig(BaseModel):
    """Per-session knobs. Unset fields fall back to application settings."""

    chunk_size: int | None = Field(default=None, description="Maximum chunk size")
    chunk_overlap: int | None = Field(default=None, description="Chunk overlap")
    similarity_metric: SimilarityMetric | None = Field(
        default=None,
        description="Similarity metric for the session index",
    )
    top_k: int | None = Field(default=None, ge=0, description="Chunks per query")
    max_iterations: int | None = Field(
        default=None,
        ge=0,
        description="Maximum tool executions per turn",
    )
    system_prompt: str | None = Field(default=None, description="Agent system prompt")


class ChatSession:
    """A conversation over its own documents.

    Wires segmenter, index, RAG chain, tools, memory and agent loop for one
    session. Turns and ingestion are serialised by a per-session lock.
    """

    def __init__(
        self,
        llm_client: LLMClient,
        embedding_service: EmbeddingService,
        config: SessionConfig | None = None,
        settings: Settings | None = None,
        extra_tools: list[ToolSpec] | None = None,
        session_id: str | None = None,
    ) -> None:
        """Initialize a session.

        Args:
            llm_client: Chat model client.
            embedding_service: Embedding service.
            config: Session overrides.
            settings: Application settings.
            extra_tools: Tools registered after the built-in ones.
            session_id: Identifier; generated when omitted.

        Raises:
            ConfigurationError: If the resulting configuration is invalid.
        """
        settings = settings or get_settings()
        self.config = config or SessionConfig()
        self.id = session_id or uuid4().hex
        self._lock = asyncio.Lock()

        rag_settings = settings.rag.model_copy(
            update={
                k: v
                for k, v in {
                    "chunk_size": self.config.chunk_size,
                    "chunk_overlap": self.config.chunk_overlap,
                    "similarity_metric": (
                        self.config.similarity_metric.value
                        if self.config.similarity_metric
                        else None
                    ),
                    "top_k": self.config.top_k,
                }.items()
                if v is not None
            }
        )

        self.segmenter = RecursiveTextSegmenter(
            SegmenterConfig(
                chunk_size=rag_settings.chunk_size,
                chunk_overlap=rag_settings.chunk_overlap,
                separators=list(rag_settings.separators),
            )
        )
        self.index: VectorIndex = create_vector_index(rag_settings, settings.qdrant)
        self.indexer = DocumentIndexer(self.segmenter, embedding_service, self.index)
        self.rag_chain = RAGChain(
            retriever=SemanticRetriever(
                embedding_service,
                self.index,
                score_threshold=rag_settings.score_threshold,
            ),
            llm_client=llm_client,
            top_k=rag_settings.top_k,
        )
        self.summarizer = MapReduceSummarizer(
            llm_client,
            segmenter=RecursiveTextSegmenter(
                SegmenterConfig(
                    chunk_size=settings.summary.chunk_size,
                    chunk_overlap=settings.summary.chunk_overlap,
                    separators=list(rag_settings.separators),
                )
            ),
            collapse_chars=settings.summary.collapse_chars,
            max_concurrency=settings.summary.max_concurrency,
        )

        self.tools = ToolRegistry(timeout=settings.agent.tool_timeout)
        self.tools.register(self.rag_chain.as_tool())
        self.tools.register(calculator_tool())
        self._weather = WeatherTool(settings.weather)
        self.tools.register(self._weather.as_tool())
        self.tools.register(activity_tool())
        self.tools.register(self.summarizer.as_tool())
        for spec in extra_tools or []:
            self.tools.register(spec)

        self.memory = ConversationMemory(max_turns=settings.agent.memory_max_turns)
        self.agent = AgentLoop(
            llm_client=llm_client,
            tools=self.tools,
            memory=self.memory,
            system_prompt=self.config.system_prompt or settings.agent.system_prompt,
            max_iterations=(
                self.config.max_iterations
                if self.config.max_iterations is not None
                else settings.agent.max_iterations
            ),
        )

    async def ingest_document(self, document: Document) -> int:
        """Segment, embed and index a document.

        Returns:
            Number of chunks newly added.
        """
        async with self._lock:
            return await self.indexer.index_document(document)

    async def ingest_text(self, text: str, source: str, **metadata: Any) -> int:
        """Index raw text under a source identifier."""
        return await self.ingest_document(Document.from_text(text, source, **metadata))

    async def ingest_file(
        self,
        path: str | Path,
        loader: DocumentLoader | None = None,
    ) -> int:
        """Load a file and index its content.

        Raises:
            DocumentError: If the file cannot be read.
        """
        document = (loader or TextFileLoader()).load(path)
        return await self.ingest_document(document)

    async def query(self, question: str, top_k: int | None = None) -> RAGResponse:
        """Answer a question from the session documents, bypassing the agent."""
        async with self._lock:
            return await self.rag_chain.query(RAGQuery(question=question, top_k=top_k))

    async def summarize(self, text: str, source: str = "") -> SummaryResult:
        """Summarize a text without touching the index or memory."""
        return await self.summarizer.summarize(text, source)

    async def chat(self, user_input: str) -> AgentResult:
        """Run one agent turn.

        Raises:
            UnknownToolError: If the model asks for an unregistered tool.
            GenerationServiceError: If the model call fails.
        """
        async with self._lock:
            return await self.agent.run(user_input)

    async def reset_memory(self) -> None:
        """Forget the conversation; indexed documents are kept."""
        async with self._lock:
            self.memory.clear()

    async def close(self) -> None:
        """Release the session index and tool clients."""
        async with self._lock:
            try:
                await self.index.clear()
            finally:
                await self.index.close()
                await self._weather.close()
        logger.info("Closed session", extra={"session_id": self.id})


class SessionManager:
    """Creates and tracks independent chat sessions.

    The model and embedding clients are shared; everything else belongs to
    a single session.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        llm_client: LLMClient | None = None,
        embedding_service: EmbeddingService | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._llm_client = llm_client or OpenAICompatibleClient(self._settings.llm)
        self._embedding_service = embedding_service or HTTPEmbeddingService(
            self._settings.embedding
        )
        self._sessions: dict[str, ChatSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self, config: SessionConfig | None = None) -> ChatSession:
        """Start a new session."""
        session = ChatSession(
            llm_client=self._llm_client,
            embedding_service=self._embedding_service,
            config=config,
            settings=self._settings,
        )
        self._sessions[session.id] = session
        logger.info("Created session", extra={"session_id": session.id})
        return session

    def get(self, session_id: str) -> ChatSession:
        """Look a session up.

        Raises:
            SessionNotFoundError: If the id is unknown.
        """
        try:
            return self._sessions[session_id]
        except KeyError:
            raise SessionNotFoundError(session_id) from None

    def ids(self) -> list[str]:
        return list(self._sessions)

    async def delete(self, session_id: str) -> None:
        """Close and forget a session.

        Raises:
            SessionNotFoundError: If the id is unknown.
        """
        session = self._sessions.pop(session_id, None)
        if session is None:
            raise SessionNotFoundError(session_id)
        await session.close()

    async def close(self) -> None:
        """Close every session and the shared clients.

        A session that fails to close is logged and skipped.
        """
        try:
            for session_id in list(self._sessions):
                try:
                    await self.delete(session_id)
                except RagentError as e:
                    logger.error(
                        f"Failed to close session: {e.message}",
                        extra={"session_id": session_id, "error_code": e.code.value},
                    )
        finally:
            await self._llm_client.close()
            await self._embedding_service.close()
