"""Text segmentation into overlapping chunks."""

from abc import ABC, abstractmethod
from collections.abc import Iterator

from pydantic import BaseModel, ConfigDict, Field

from ragent.documents.models import Document, DocumentMetadata
from ragent.exceptions import ConfigurationError
from ragent.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_SEPARATORS = ("\n\n", "\n", ". ", " ")

# (start, end, divisible): divisible pieces contain no separator and may be
# cut at any character boundary.
Piece = tuple[int, int, bool]


class Chunk(BaseModel):
    """A contiguous slice of source text.

    ``content == text[start_char:end_char]`` for the text it was cut from,
    and ``index`` is its position in the segmentation.
    """

    model_config = ConfigDict(frozen=True)

    content: str
    metadata: DocumentMetadata
    index: int
    start_char: int
    end_char: int

    @property
    def source(self) -> str:
        return self.metadata.source


class SegmenterConfig(BaseModel):
    """Configuration for text segmentation.

    Attributes:
        chunk_size: Maximum size of each chunk in characters.
        chunk_overlap: Characters shared by adjacent chunks.
        separators: Delimiters tried in priority order.
    """

    chunk_size: int = Field(default=1000, description="Maximum chunk size")
    chunk_overlap: int = Field(default=200, description="Overlap between chunks")
    separators: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SEPARATORS),
        description="Separators in priority order",
    )


class ChunkStream:
    """Lazy, restartable sequence of chunks.

    Every iteration re-runs segmentation from the beginning of the text.
    """

    def __init__(
        self,
        chunker: "Chunker",
        text: str,
        metadata: DocumentMetadata,
    ) -> None:
        self._chunker = chunker
        self._text = text
        self._metadata = metadata

    def __iter__(self) -> Iterator[Chunk]:
        for index, (start, end) in enumerate(self._chunker.split_spans(self._text)):
            yield self._chunker._create_chunk(
                content=self._text[start:end],
                source_metadata=self._metadata,
                index=index,
                start_char=start,
                end_char=end,
            )


class Chunker(ABC):
    """Turns text into chunks; subclasses decide where to cut.

    Raises:
        ConfigurationError: On construction, for sizes or separators that
            cannot produce a valid segmentation.
    """

    def __init__(self, config: SegmenterConfig | None = None) -> None:
        self.config = config or SegmenterConfig()
        self._validate_config()

    def _validate_config(self) -> None:
        size = self.config.chunk_size
        overlap = self.config.chunk_overlap
        details = {"chunk_size": size, "chunk_overlap": overlap}

        if size <= 0:
            raise ConfigurationError("chunk_size must be positive", details=details)
        if overlap < 0:
            raise ConfigurationError("chunk_overlap must not be negative", details=details)
        if overlap >= size:
            raise ConfigurationError(
                "chunk_overlap must be less than chunk_size", details=details
            )
        if "" in self.config.separators:
            raise ConfigurationError(
                "separators must not contain the empty string",
                details={"separators": self.config.separators},
            )

    @abstractmethod
    def split_spans(self, text: str) -> Iterator[tuple[int, int]]:
        """Yield ``(start, end)`` offsets of consecutive chunks.

        Args:
            text: Text to split.

        Yields:
            Character span of each chunk in ``text``.
        """
        ...

    def segment(self, text: str, source: str = "") -> ChunkStream:
        """Split raw text into a lazy sequence of chunks.

        Args:
            text: Raw text.
            source: Identifier recorded on every chunk.

        Returns:
            Restartable chunk sequence.
        """
        return ChunkStream(self, text, DocumentMetadata(source=source))

    def chunk(self, document: Document) -> list[Chunk]:
        """All chunks of a document, carrying its metadata."""
        chunks = list(ChunkStream(self, document.content, document.metadata))
        logger.debug(
            "Segmented document",
            extra={
                "source": document.source,
                "chars": len(document.content),
                "chunks": len(chunks),
            },
        )
        return chunks

    def _create_chunk(
        self,
        content: str,
        source_metadata: DocumentMetadata,
        index: int,
        start_char: int,
        end_char: int,
    ) -> Chunk:
        return Chunk(
            content=content,
            metadata=source_metadata.at_position(index, start_char, end_char),
            index=index,
            start_char=start_char,
            end_char=end_char,
        )


class RecursiveTextSegmenter(Chunker):
    """Recursive separator-based segmentation with exact overlap.

    Text is split on the highest-priority separator it contains. Pieces that
    are still larger than the fresh-text budget (``chunk_size - chunk_overlap``)
    are split again with the next separator; text without any separator left
    is cut at character boundaries. Separators stay attached to the piece they
    terminate, so pieces are consecutive slices of the input.

    Pieces are then packed greedily. The first chunk holds up to
    ``chunk_size`` characters; every following chunk starts with the last
    ``chunk_overlap`` characters of its predecessor and adds up to
    ``chunk_size - chunk_overlap`` new characters.
    """

    def split_spans(self, text: str) -> Iterator[tuple[int, int]]:
        """Yield chunk spans for ``text``."""
        if not text:
            return

        size = self.config.chunk_size
        overlap = self.config.chunk_overlap
        budget = size - overlap

        chunk_start = 0
        fresh_start = 0
        cursor = 0
        first = True

        for _, piece_end, divisible in self._split_pieces(
            text, 0, len(text), tuple(self.config.separators), budget
        ):
            while True:
                capacity = size if first else budget
                room = capacity - (cursor - fresh_start)
                if piece_end - cursor <= room:
                    cursor = piece_end
                    break

                if divisible and room > 0:
                    cursor += room

                # cursor > fresh_start holds here: an atomic piece never
                # exceeds the budget, so it always fits an empty chunk.
                yield chunk_start, cursor
                first = False
                chunk_start = cursor - overlap
                fresh_start = cursor

        if cursor > fresh_start:
            yield chunk_start, cursor

    def _split_pieces(
        self,
        text: str,
        start: int,
        end: int,
        separators: tuple[str, ...],
        budget: int,
    ) -> Iterator[Piece]:
        """Recursively split ``text[start:end]`` into pieces.

        Args:
            text: Full text.
            start: Span start.
            end: Span end.
            separators: Remaining separators in priority order.
            budget: Largest atomic piece allowed.

        Yields:
            Consecutive pieces covering the span.
        """
        if end - start <= budget:
            yield start, end, False
            return

        for position, separator in enumerate(separators):
            if text.find(separator, start, end) == -1:
                continue

            lower = separators[position + 1 :]
            piece_start = start
            while piece_start < end:
                found = text.find(separator, piece_start, end)
                piece_end = end if found == -1 else found + len(separator)
                yield from self._split_pieces(text, piece_start, piece_end, lower, budget)
                piece_start = piece_end
            return

        yield start, end, True
