"""Query-side retrieval: embed the question, search the index."""

from abc import ABC, abstractmethod

from ragent.embeddings.service import EmbeddingService
from ragent.exceptions import RagentError, RetrievalError
from ragent.logging_config import get_logger
from ragent.observability.metrics import track_retrieval_request
from ragent.retrieval.models import RetrievalResult
from ragent.vectorstore.service import VectorIndex

logger = get_logger(__name__)


class Retriever(ABC):
    @abstractmethod
    async def retrieve(self, query: str, top_k: int = 4) -> list[RetrievalResult]:
        """Best ``top_k`` chunks for ``query``, highest score first.

        Raises:
            RagentError: If the embedding service or the index fails.
        """
        ...


class SemanticRetriever(Retriever):
    """Ranks index records by similarity to the embedded query.

    Args:
        embedding_service: Must be the service the index was built with.
        vector_index: Index to search.
        score_threshold: Results scoring below this are dropped.
    """

    def __init__(
        self,
        embedding_service: EmbeddingService,
        vector_index: VectorIndex,
        score_threshold: float | None = None,
    ) -> None:
        self._embedding_service = embedding_service
        self._vector_index = vector_index
        self._score_threshold = score_threshold

    @property
    def vector_index(self) -> VectorIndex:
        return self._vector_index

    async def retrieve(self, query: str, top_k: int = 4) -> list[RetrievalResult]:
        """Search the index.

        Blank queries return nothing without calling the embedding service.
        Engine errors propagate unchanged; anything else is wrapped in
        ``RetrievalError``.
        """
        if not query.strip():
            return []

        try:
            query_vector = (await self._embedding_service.embed(query)).vector
            hits = await self._vector_index.search(query_vector, top_k)
        except RagentError:
            raise
        except Exception as e:
            logger.error(f"Retrieval failed: {e}")
            raise RetrievalError(
                f"Failed to retrieve documents: {e}",
                details={"query": query[:100], "error": str(e)},
            ) from e

        threshold = self._score_threshold
        results = [
            RetrievalResult.from_search(hit)
            for hit in hits
            if threshold is None or hit.score >= threshold
        ]

        track_retrieval_request(len(results), results[0].score if results else 0.0)
        logger.debug(
            "Retrieved chunks",
            extra={"query_length": len(query), "top_k": top_k, "results": len(results)},
        )
        return results
