"""Retrieval pipeline module."""

from ragent.retrieval.indexer import DocumentIndexer
from ragent.retrieval.models import RetrievalResult
from ragent.retrieval.retriever import Retriever, SemanticRetriever

__all__ = [
    "DocumentIndexer",
    "Retriever",
    "RetrievalResult",
    "SemanticRetriever",
]
