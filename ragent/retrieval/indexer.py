"""Build-time indexing: segment, embed and store documents."""

from typing import Any

from ragent.documents.chunker import Chunk, Chunker
from ragent.documents.models import Document
from ragent.embeddings.service import EmbeddingService
from ragent.logging_config import get_logger
from ragent.vectorstore.models import IndexRecord
from ragent.vectorstore.service import VectorIndex

logger = get_logger(__name__)


class DocumentIndexer:
    """Feeds documents through the segmenter and embedder into an index.

    Chunks are embedded with one ``embed_batch`` call per document and their
    vectors are added in document order, so insertion order matches chunk
    order. A failing embedding call leaves the index untouched.
    """

    def __init__(
        self,
        chunker: Chunker,
        embedding_service: EmbeddingService,
        vector_index: VectorIndex,
    ) -> None:
        self._chunker = chunker
        self._embedding_service = embedding_service
        self._vector_index = vector_index

    @staticmethod
    def record_id(chunk: Chunk) -> str:
        """Stable record identifier for a chunk."""
        return f"{chunk.source}#{chunk.index}"

    async def index_document(self, document: Document) -> int:
        """Index one document.

        Args:
            document: Document to segment and store.

        Returns:
            Number of records newly added to the index.

        Raises:
            EmbeddingServiceError: If embedding fails.
            VectorStoreError: If the index rejects the vectors.
        """
        chunks = self._chunker.chunk(document)
        if not chunks:
            logger.info(
                "Document produced no chunks",
                extra={"source": document.metadata.source},
            )
            return 0

        embeddings = await self._embedding_service.embed_batch(
            [chunk.content for chunk in chunks]
        )
        records = [
            IndexRecord(
                id=self.record_id(chunk),
                vector=embedding.vector,
                content=chunk.content,
                metadata={"source": chunk.source, **chunk.metadata.extra},
            )
            for chunk, embedding in zip(chunks, embeddings)
        ]
        added = await self._vector_index.add(records)

        logger.info(
            "Indexed document",
            extra={
                "source": document.metadata.source,
                "chunks": len(chunks),
                "added": added,
            },
        )
        return added

    async def index_text(self, text: str, source: str, **metadata: Any) -> int:
        """Index raw text under the given source identifier."""
        return await self.index_document(Document.from_text(text, source, **metadata))
