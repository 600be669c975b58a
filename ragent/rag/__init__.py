"""RAG chain and summarization module."""

from ragent.rag.context import ContextAssembler
from ragent.rag.models import RAGQuery, RAGResponse, SourceAttribution
from ragent.rag.pipeline import NO_CONTEXT_ANSWER, RAGChain
from ragent.rag.summarizer import MapReduceSummarizer, SummaryResult

__all__ = [
    "NO_CONTEXT_ANSWER",
    "ContextAssembler",
    "MapReduceSummarizer",
    "RAGChain",
    "RAGQuery",
    "RAGResponse",
    "SourceAttribution",
    "SummaryResult",
]
