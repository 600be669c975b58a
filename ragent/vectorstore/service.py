"""Vector index interface, exact in-memory scan and Qdrant implementation."""

import heapq
import math
from abc import ABC, abstractmethod
from collections.abc import Sequence
from uuid import uuid4

from qdrant_client import AsyncQdrantClient
from qdrant_client.models import Distance, PointStruct, ScoredPoint, VectorParams

from ragent.config import IndexBackend, QdrantSettings, RAGSettings, get_settings
from ragent.exceptions import (
    ConfigurationError,
    ErrorCode,
    ValidationError,
    VectorStoreError,
)
from ragent.logging_config import get_logger
from ragent.vectorstore.models import IndexRecord, SearchResult, SimilarityMetric

logger = get_logger(__name__)


def _norm(vector: Sequence[float]) -> float:
    return math.hypot(*vector) if vector else 0.0


def _dot(a: Sequence[float], b: Sequence[float]) -> float:
    return math.fsum(x * y for x, y in zip(a, b))


def similarity(
    a: Sequence[float],
    b: Sequence[float],
    metric: SimilarityMetric = SimilarityMetric.COSINE,
) -> float:
    """Compute similarity between two vectors.

    Cosine similarity involving a zero vector is defined as 0.0.

    Args:
        a: First vector.
        b: Second vector, same length as ``a``.
        metric: Similarity metric.

    Returns:
        Similarity score.
    """
    if metric == SimilarityMetric.INNER_PRODUCT:
        return _dot(a, b)
    return _cosine(_dot(a, b), _norm(a), _norm(b))


def _point_score(point: ScoredPoint) -> float:
    score = point.score
    if score is None or not math.isfinite(score):
        return 0.0
    return float(score)


def _cosine(dot: float, norm_a: float, norm_b: float) -> float:
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return max(-1.0, min(1.0, dot / (norm_a * norm_b)))


class VectorIndex(ABC):
    """Abstract base class for vector indexes.

    An index is append-only while it is built and read-only while it is
    queried. All vectors in one index share a single dimensionality.
    """

    def __init__(self, metric: SimilarityMetric = SimilarityMetric.COSINE) -> None:
        self._metric = metric
        self._dimensions: int | None = None
        self._ids: dict[str, int] = {}

    @property
    def metric(self) -> SimilarityMetric:
        """Similarity metric used for ranking."""
        return self._metric

    @property
    def dimensions(self) -> int | None:
        """Vector dimensionality, fixed by the first stored record."""
        return self._dimensions

    @abstractmethod
    async def add(self, records: Sequence[IndexRecord]) -> int:
        """Store records.

        Idempotent per record id: a record whose id is already stored is
        ignored.

        Args:
            records: Records to add.

        Returns:
            Number of newly stored records.

        Raises:
            VectorStoreError: If a vector has the wrong dimensionality.
        """
        ...

    @abstractmethod
    async def search(self, vector: Sequence[float], k: int) -> list[SearchResult]:
        """Find the ``k`` most similar records.

        Args:
            vector: Query vector.
            k: Maximum results to return.

        Returns:
            Results by descending score, ties broken by insertion order.

        Raises:
            ValidationError: If ``k`` is negative.
            VectorStoreError: If the query has the wrong dimensionality.
        """
        ...

    @abstractmethod
    async def clear(self) -> None:
        """Discard every record."""
        ...

    async def count(self) -> int:
        """Number of stored records."""
        return len(self._ids)

    async def close(self) -> None:
        """Release backend resources."""
        return None

    def _new_records(self, records: Sequence[IndexRecord]) -> list[IndexRecord]:
        """Validate a batch and drop ids that are already stored.

        The whole batch is checked before anything is stored so that a
        rejected batch leaves the index untouched.
        """
        dimensions = self._dimensions
        seen: set[str] = set()
        fresh: list[IndexRecord] = []

        for record in records:
            if record.id in self._ids or record.id in seen:
                logger.debug("Skipping duplicate record", extra={"record_id": record.id})
                continue
            if dimensions is None:
                dimensions = len(record.vector)
            if not record.vector or len(record.vector) != dimensions:
                raise VectorStoreError(
                    f"Record {record.id} has {len(record.vector)} dimensions, "
                    f"index expects {dimensions}",
                    code=ErrorCode.INDEX_DIMENSION_MISMATCH,
                    details={
                        "record_id": record.id,
                        "expected": dimensions,
                        "received": len(record.vector),
                    },
                )
            seen.add(record.id)
            fresh.append(record)

        return fresh

    def _check_query(self, vector: Sequence[float], k: int) -> None:
        if k < 0:
            raise ValidationError("k must not be negative", details={"k": k})
        if self._dimensions is not None and len(vector) != self._dimensions:
            raise VectorStoreError(
                f"Query has {len(vector)} dimensions, index expects {self._dimensions}",
                code=ErrorCode.INDEX_DIMENSION_MISMATCH,
                details={"expected": self._dimensions, "received": len(vector)},
            )


class InMemoryVectorIndex(VectorIndex):
    """Exact brute-force vector index.

    Scores every stored record against the query. This is the correctness
    baseline every other implementation is measured against.
    """

    def __init__(self, metric: SimilarityMetric = SimilarityMetric.COSINE) -> None:
        super().__init__(metric)
        self._records: list[IndexRecord] = []
        self._norms: list[float] = []

    async def add(self, records: Sequence[IndexRecord]) -> int:
        """Append records in order."""
        fresh = self._new_records(records)
        if fresh:
            self._dimensions = len(fresh[0].vector)
        for record in fresh:
            self._ids[record.id] = len(self._records)
            self._records.append(record)
            self._norms.append(_norm(record.vector))

        if fresh:
            logger.debug(
                f"Added {len(fresh)} records",
                extra={"total": len(self._records)},
            )
        return len(fresh)

    async def search(self, vector: Sequence[float], k: int) -> list[SearchResult]:
        """Rank all records against ``vector``."""
        self._check_query(vector, k)
        if k == 0 or not self._records:
            return []

        if self._metric == SimilarityMetric.INNER_PRODUCT:
            scores = [_dot(vector, record.vector) for record in self._records]
        else:
            query_norm = _norm(vector)
            scores = [
                _cosine(_dot(vector, record.vector), query_norm, norm)
                for record, norm in zip(self._records, self._norms)
            ]

        ranked = heapq.nsmallest(
            k,
            range(len(scores)),
            key=lambda position: (-scores[position], position),
        )
        return [
            SearchResult(record=self._records[position], score=scores[position])
            for position in ranked
        ]

    async def clear(self) -> None:
        """Discard every record."""
        self._records.clear()
        self._norms.clear()
        self._ids.clear()
        self._dimensions = None


class QdrantVectorIndex(VectorIndex):
    """Accelerated vector index backed by Qdrant.

    Runs Qdrant in local ``:memory:`` mode unless a server URL is configured.
    Point ids are insertion ordinals, so ties are broken by insertion order
    after Qdrant returns its candidates. Under cosine, zero vectors are kept
    out of Qdrant and scored 0.0 locally.

    While the last candidate still ties with the k-th, the query is repeated
    with a doubled limit until a lower score shows up or every point has
    been returned, so a tie at the cut-off is always settled by insertion
    order.

    Deviation from ``InMemoryVectorIndex``: Qdrant scores in float32, so a
    score may differ from the exact one by up to ~1e-6. Records whose exact
    scores lie closer together than that can swap places or fall on either
    side of the ``k`` cut-off. Rankings are otherwise identical.
    """

    # Extra candidates fetched so ties at the cut-off can be re-ranked
    TIE_MARGIN = 8
    # Scores this close count as tied when deciding whether to fetch more
    TIE_TOLERANCE = 1e-6

    def __init__(
        self,
        metric: SimilarityMetric = SimilarityMetric.COSINE,
        settings: QdrantSettings | None = None,
        client: AsyncQdrantClient | None = None,
    ) -> None:
        """Initialize the Qdrant-backed index.

        Args:
            metric: Similarity metric.
            settings: Qdrant configuration.
            client: Existing client (for testing).
        """
        super().__init__(metric)
        self._settings = settings or get_settings().qdrant
        self._client = client
        self._owns_client = client is None
        self._collection = f"{self._settings.collection_name}_{uuid4().hex[:12]}"
        self._collection_ready = False
        self._zero_records: list[tuple[int, IndexRecord]] = []

    @property
    def collection_name(self) -> str:
        """Qdrant collection backing this index."""
        return self._collection

    def _get_client(self) -> AsyncQdrantClient:
        """Get or create Qdrant client."""
        if self._client is None:
            if self._settings.url:
                api_key = None
                if self._settings.api_key:
                    api_key = self._settings.api_key.get_secret_value()
                self._client = AsyncQdrantClient(url=self._settings.url, api_key=api_key)
            else:
                self._client = AsyncQdrantClient(location=self._settings.location)
        return self._client

    async def close(self) -> None:
        """Close the Qdrant client."""
        if self._owns_client and self._client is not None:
            await self._client.close()
            self._client = None

    def _distance(self) -> Distance:
        if self._metric == SimilarityMetric.INNER_PRODUCT:
            return Distance.DOT
        return Distance.COSINE

    async def _ensure_collection(self, dimensions: int) -> None:
        if self._collection_ready:
            return
        client = self._get_client()
        await client.create_collection(
            collection_name=self._collection,
            vectors_config=VectorParams(size=dimensions, distance=self._distance()),
        )
        self._collection_ready = True
        logger.info(
            f"Created collection: {self._collection}",
            extra={"dimensions": dimensions, "metric": self._metric.value},
        )

    async def add(self, records: Sequence[IndexRecord]) -> int:
        """Upsert new records into the collection."""
        fresh = self._new_records(records)
        if not fresh:
            return 0

        points: list[PointStruct] = []
        ordinals: dict[str, int] = {}
        zero_records: list[tuple[int, IndexRecord]] = []
        next_ordinal = len(self._ids)

        for record in fresh:
            ordinal = next_ordinal
            next_ordinal += 1
            ordinals[record.id] = ordinal
            if self._metric == SimilarityMetric.COSINE and _norm(record.vector) == 0.0:
                zero_records.append((ordinal, record))
                continue
            points.append(
                PointStruct(
                    id=ordinal,
                    vector=list(record.vector),
                    payload={
                        "record_id": record.id,
                        "content": record.content,
                        "metadata": record.metadata,
                        "vector": list(record.vector),
                    },
                )
            )

        try:
            await self._ensure_collection(len(fresh[0].vector))
            if points:
                await self._get_client().upsert(
                    collection_name=self._collection,
                    points=points,
                )
        except Exception as e:
            raise VectorStoreError(
                f"Failed to upsert records: {e}",
                code=ErrorCode.VECTOR_STORE_ERROR,
                details={"collection": self._collection, "error": str(e)},
            ) from e

        self._dimensions = len(fresh[0].vector)
        self._ids.update(ordinals)
        self._zero_records.extend(zero_records)
        logger.debug(
            f"Upserted {len(fresh)} records",
            extra={"collection": self._collection},
        )
        return len(fresh)

    async def search(self, vector: Sequence[float], k: int) -> list[SearchResult]:
        """Query Qdrant and re-rank the candidates deterministically."""
        self._check_query(vector, k)
        if k == 0 or not self._ids:
            return []

        candidates: list[tuple[float, int, IndexRecord]] = [
            (0.0, ordinal, record) for ordinal, record in self._zero_records
        ]

        query_is_zero = self._metric == SimilarityMetric.COSINE and _norm(vector) == 0.0
        stored_points = len(self._ids) - len(self._zero_records)

        if stored_points > 0:
            try:
                candidates.extend(await self._query(vector, k, stored_points, query_is_zero))
            except Exception as e:
                raise VectorStoreError(
                    f"Failed to search: {e}",
                    code=ErrorCode.VECTOR_STORE_ERROR,
                    details={"collection": self._collection, "error": str(e)},
                ) from e

        candidates.sort(key=lambda item: (-item[0], item[1]))
        return [
            SearchResult(record=record, score=score)
            for score, _, record in candidates[:k]
        ]

    async def _query(
        self,
        vector: Sequence[float],
        k: int,
        stored_points: int,
        query_is_zero: bool,
    ) -> list[tuple[float, int, IndexRecord]]:
        client = self._get_client()
        limit = min(stored_points, k + self.TIE_MARGIN)

        if query_is_zero:
            # Every score is 0.0: earliest inserted records win.
            points, _ = await client.scroll(
                collection_name=self._collection,
                limit=limit,
                with_payload=True,
            )
            return [(0.0, int(point.id), self._to_record(point.payload)) for point in points]

        while True:
            response = await client.query_points(
                collection_name=self._collection,
                query=list(vector),
                limit=limit,
                with_payload=True,
            )
            scores = [_point_score(point) for point in response.points]
            if limit >= stored_points or not self._tied_at_cutoff(scores, k):
                break
            limit = min(stored_points, limit * 2)
            logger.debug(
                "Tie at the cut-off, widening the query",
                extra={"collection": self._collection, "limit": limit},
            )

        return [
            (score, int(point.id), self._to_record(point.payload))
            for score, point in zip(scores, response.points)
        ]

    def _tied_at_cutoff(self, scores: list[float], k: int) -> bool:
        """Whether points past the last candidate could still tie with the k-th."""
        if len(scores) <= k:
            return False
        return math.isclose(
            scores[k - 1], scores[-1], rel_tol=0.0, abs_tol=self.TIE_TOLERANCE
        )

    @staticmethod
    def _to_record(payload: dict | None) -> IndexRecord:
        payload = payload or {}
        return IndexRecord(
            id=payload.get("record_id", ""),
            vector=payload.get("vector", []),
            content=payload.get("content", ""),
            metadata=payload.get("metadata") or {},
        )

    async def clear(self) -> None:
        """Drop the collection and forget every record."""
        if self._collection_ready:
            try:
                await self._get_client().delete_collection(self._collection)
            except Exception as e:
                raise VectorStoreError(
                    f"Failed to delete collection: {e}",
                    code=ErrorCode.VECTOR_STORE_ERROR,
                    details={"collection": self._collection, "error": str(e)},
                ) from e
            logger.info(f"Deleted collection: {self._collection}")
        self._collection_ready = False
        self._ids.clear()
        self._zero_records.clear()
        self._dimensions = None


def create_vector_index(
    settings: RAGSettings | None = None,
    qdrant_settings: QdrantSettings | None = None,
) -> VectorIndex:
    """Create the configured vector index.

    Args:
        settings: Retrieval configuration (metric and backend).
        qdrant_settings: Qdrant configuration for the accelerated backend.

    Returns:
        A new, empty index.

    Raises:
        ConfigurationError: If the metric name is unknown.
    """
    settings = settings or get_settings().rag
    try:
        metric = SimilarityMetric(settings.similarity_metric)
    except ValueError as e:
        raise ConfigurationError(
            f"Unknown similarity metric: {settings.similarity_metric}",
            details={"allowed": [m.value for m in SimilarityMetric]},
        ) from e

    if settings.index_backend == IndexBackend.QDRANT:
        return QdrantVectorIndex(metric=metric, settings=qdrant_settings)
    return InMemoryVectorIndex(metric=metric)
