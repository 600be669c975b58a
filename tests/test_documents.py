"""Tests for document models, loaders, and the text segmenter."""

from pathlib import Path
from tempfile import NamedTemporaryFile, TemporaryDirectory

import pytest
from pydantic import ValidationError

from ragent.documents.chunker import RecursiveTextSegmenter, SegmenterConfig
from ragent.documents.loader import TextFileLoader
from ragent.documents.models import Document, DocumentMetadata
from ragent.exceptions import ConfigurationError, DocumentError, ErrorCode


def _segmenter(size: int, overlap: int, separators: list[str] | None = None):
    extra = {} if separators is None else {"separators": separators}
    return RecursiveTextSegmenter(
        SegmenterConfig(chunk_size=size, chunk_overlap=overlap, **extra)
    )


def _assert_segmentation_invariants(text: str, chunks, size: int, overlap: int) -> None:
    """Slices match, stay within size, overlap exactly and cover the text."""
    assert chunks, "non-empty text must produce chunks"
    assert chunks[0].start_char == 0
    assert chunks[-1].end_char == len(text)

    for i, chunk in enumerate(chunks):
        assert chunk.index == i
        assert chunk.content
        assert len(chunk.content) <= size
        assert chunk.content == text[chunk.start_char : chunk.end_char]

    for prev, nxt in zip(chunks, chunks[1:]):
        assert nxt.start_char == prev.end_char - overlap
        assert nxt.end_char > prev.end_char
        assert prev.content[len(prev.content) - overlap :] == nxt.content[:overlap]


class TestDocumentMetadata:
    """Tests for DocumentMetadata model."""

    def test_defaults(self) -> None:
        meta = DocumentMetadata(source="test.txt")
        assert meta.content_type == "text/plain"
        assert meta.extra == {}
        assert meta.loaded_at.tzinfo is not None

    def test_at_position_keeps_caller_metadata(self) -> None:
        meta = DocumentMetadata(source="a.txt", extra={"lang": "en"})

        located = meta.at_position(2, 10, 20)

        assert located.extra == {"lang": "en", "chunk_index": 2, "start_char": 10, "end_char": 20}
        assert located.loaded_at == meta.loaded_at
        assert meta.extra == {"lang": "en"}

    def test_frozen(self) -> None:
        meta = DocumentMetadata(source="a.txt")
        with pytest.raises(ValidationError):
            meta.source = "b.txt"


class TestDocument:
    """Tests for Document model."""

    def test_from_text(self) -> None:
        doc = Document.from_text(content="Hello, world!", source="greeting.txt")
        assert doc.content == "Hello, world!"
        assert doc.source == "greeting.txt"

    def test_from_text_with_extra(self) -> None:
        """Document preserves extra metadata."""
        doc = Document.from_text(
            content="Test content",
            source="https://example.com/page",
            title="Example",
        )
        assert doc.metadata.extra == {"title": "Example"}


class TestTextFileLoader:
    """Tests for TextFileLoader."""

    def test_load_text_file(self) -> None:
        """Loader reads text file content."""
        with NamedTemporaryFile(mode="w", suffix=".txt", delete=False) as f:
            f.write("Test document content")
            path = Path(f.name)

        try:
            doc = TextFileLoader().load(path)
            assert doc.content == "Test document content"
            assert doc.metadata.source == str(path)
            assert doc.metadata.extra["file_name"] == path.name
        finally:
            path.unlink()

    def test_markdown_content_type(self) -> None:
        with NamedTemporaryFile(mode="w", suffix=".md", delete=False) as f:
            f.write("# Heading")
            path_str = f.name

        try:
            doc = TextFileLoader().load(path_str)
            assert doc.metadata.content_type == "text/markdown"
        finally:
            Path(path_str).unlink()

    def test_load_missing_file(self) -> None:
        """Loader raises DocumentError for missing files."""
        with pytest.raises(DocumentError) as exc_info:
            TextFileLoader().load("/nonexistent/file.txt")

        assert exc_info.value.code == ErrorCode.DOCUMENT_NOT_FOUND

    def test_load_directory(self) -> None:
        with TemporaryDirectory() as tmpdir:
            with pytest.raises(DocumentError) as exc_info:
                TextFileLoader().load(tmpdir)

            assert exc_info.value.code == ErrorCode.DOCUMENT_PARSE_ERROR

    def test_undecodable_file(self) -> None:
        with NamedTemporaryFile(mode="wb", suffix=".txt", delete=False) as f:
            f.write(b"\xff\xfe\xfa")
            path = Path(f.name)

        try:
            with pytest.raises(DocumentError) as exc_info:
                TextFileLoader().load(path)
            assert exc_info.value.code == ErrorCode.DOCUMENT_PARSE_ERROR
        finally:
            path.unlink()

    def test_supports(self) -> None:
        loader = TextFileLoader()
        assert loader.supports("document.txt") is True
        assert loader.supports(Path("readme.md")) is True
        assert loader.supports("image.png") is False


class TestSegmenterConfig:
    """Tests for segmenter configuration checks."""

    def test_default_values(self) -> None:
        config = SegmenterConfig()
        assert config.chunk_size == 1000
        assert config.chunk_overlap == 200
        assert config.separators == ["\n\n", "\n", ". ", " "]

    @pytest.mark.parametrize(
        ("size", "overlap"),
        [(100, 100), (100, 150), (0, 0), (-5, 0), (100, -1)],
    )
    def test_invalid_sizes_rejected(self, size: int, overlap: int) -> None:
        with pytest.raises(ConfigurationError):
            _segmenter(size, overlap)

    def test_empty_separator_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            _segmenter(100, 10, separators=["\n", ""])


class TestRecursiveTextSegmenter:
    """Tests for RecursiveTextSegmenter."""

    def test_empty_text(self) -> None:
        """Empty text yields no chunks."""
        assert list(_segmenter(100, 10).segment("")) == []

    def test_short_text_single_chunk(self) -> None:
        chunks = list(_segmenter(1000, 100).segment("Short text", source="s.txt"))

        assert len(chunks) == 1
        assert chunks[0].content == "Short text"
        assert chunks[0].source == "s.txt"
        assert (chunks[0].start_char, chunks[0].end_char) == (0, 10)

    def test_text_without_separators(self) -> None:
        """2500 characters with no separator split at character boundaries."""
        text = "x" * 2500
        chunks = list(_segmenter(1000, 200).segment(text))

        assert [len(c.content) for c in chunks] == [1000, 1000, 900]
        assert [(c.start_char, c.end_char) for c in chunks] == [
            (0, 1000),
            (800, 1800),
            (1600, 2500),
        ]
        _assert_segmentation_invariants(text, chunks, 1000, 200)

    def test_new_text_per_chunk(self) -> None:
        """Chunks after the first add at most chunk_size - chunk_overlap."""
        text = "x" * 2500
        chunks = list(_segmenter(1000, 200).segment(text))
        fresh = [chunks[0].end_char] + [
            b.end_char - a.end_char for a, b in zip(chunks, chunks[1:])
        ]
        assert fresh == [1000, 800, 700]

    def test_prefers_paragraph_boundaries(self) -> None:
        paragraphs = ["a" * 60, "b" * 60, "c" * 60]
        text = "\n\n".join(paragraphs)
        chunks = list(_segmenter(100, 10).segment(text))

        _assert_segmentation_invariants(text, chunks, 100, 10)
        # First chunk ends right after the first paragraph break.
        assert chunks[0].content == paragraphs[0] + "\n\n"

    def test_falls_back_to_lower_priority_separators(self) -> None:
        words = " ".join(f"word{i}" for i in range(200))
        chunks = list(_segmenter(120, 20).segment(words))

        _assert_segmentation_invariants(words, chunks, 120, 20)
        for chunk in chunks[:-1]:
            assert chunk.content.endswith(" ")

    @pytest.mark.parametrize(
        ("size", "overlap"),
        [(50, 0), (50, 10), (64, 63), (200, 40), (1000, 200)],
    )
    def test_invariants_on_mixed_text(self, size: int, overlap: int) -> None:
        sentences = [f"Sentence {i} talks about topic {i % 7}." for i in range(120)]
        text = "\n\n".join(
            " ".join(sentences[i : i + 6]) + "\n" + "z" * (i % 90)
            for i in range(0, 120, 6)
        )
        chunks = list(_segmenter(size, overlap).segment(text))
        _assert_segmentation_invariants(text, chunks, size, overlap)

    def test_stream_is_restartable(self) -> None:
        stream = _segmenter(50, 5).segment("one two three four five " * 20)
        first = [c.content for c in stream]
        second = [c.content for c in stream]
        assert first == second
        assert len(first) > 1

    def test_chunk_document_metadata(self) -> None:
        """Chunks inherit document metadata plus their position."""
        doc = Document.from_text("alpha beta gamma " * 10, source="doc.txt", lang="en")
        chunks = _segmenter(40, 8).chunk(doc)

        assert len(chunks) > 1
        second = chunks[1]
        assert second.metadata.source == "doc.txt"
        assert second.metadata.extra["lang"] == "en"
        assert second.metadata.extra["chunk_index"] == 1
        assert second.metadata.extra["start_char"] == second.start_char
        assert second.metadata.extra["end_char"] == second.end_char

    def test_chunks_are_immutable(self) -> None:
        chunk = next(iter(_segmenter(100, 10).segment("hello")))
        with pytest.raises(ValueError):
            chunk.content = "changed"  # type: ignore[misc]
