"""Document loading and segmentation module."""

from ragent.documents.chunker import (
    Chunk,
    Chunker,
    ChunkStream,
    RecursiveTextSegmenter,
    SegmenterConfig,
)
from ragent.documents.loader import DocumentLoader, TextFileLoader
from ragent.documents.models import Document, DocumentMetadata

__all__ = [
    "Chunk",
    "ChunkStream",
    "Chunker",
    "Document",
    "DocumentLoader",
    "DocumentMetadata",
    "RecursiveTextSegmenter",
    "SegmenterConfig",
    "TextFileLoader",
]
