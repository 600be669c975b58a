"""Document sources."""

from abc import ABC, abstractmethod
from pathlib import Path

from ragent.documents.models import Document
from ragent.exceptions import DocumentError, ErrorCode
from ragent.logging_config import get_logger

logger = get_logger(__name__)


class DocumentLoader(ABC):
    """Supplies raw text as a single string.

    The engine treats the source opaquely; fetching, scraping and format
    conversion belong to loaders.
    """

    @abstractmethod
    def load(self, source: str | Path) -> Document:
        """Load one document.

        Raises:
            DocumentError: If the source cannot be read.
        """
        ...

    @abstractmethod
    def supports(self, source: str | Path) -> bool:
        """Whether this loader can read ``source``."""
        ...


class TextFileLoader(DocumentLoader):
    """Reads local text and markdown files."""

    CONTENT_TYPES = {
        ".txt": "text/plain",
        ".text": "text/plain",
        ".md": "text/markdown",
        ".markdown": "text/markdown",
        ".rst": "text/x-rst",
    }

    def __init__(self, encoding: str = "utf-8") -> None:
        self.encoding = encoding

    def supports(self, source: str | Path) -> bool:
        return Path(source).suffix.lower() in self.CONTENT_TYPES

    def load(self, source: str | Path) -> Document:
        """Read a file into a document.

        Files with an unknown suffix are read as plain text.

        Raises:
            DocumentError: ``DOCUMENT_NOT_FOUND`` for a missing path,
                ``DOCUMENT_PARSE_ERROR`` for directories, undecodable or
                unreadable files.
        """
        path = Path(source)
        details = {"path": str(path)}

        if not path.exists():
            raise DocumentError(f"File not found: {path}", details=details)
        if not path.is_file():
            raise DocumentError(
                f"Not a file: {path}",
                code=ErrorCode.DOCUMENT_PARSE_ERROR,
                details=details,
            )

        try:
            text = path.read_text(encoding=self.encoding)
        except (UnicodeDecodeError, OSError) as e:
            raise DocumentError(
                f"Cannot read {path} as {self.encoding} text",
                code=ErrorCode.DOCUMENT_PARSE_ERROR,
                details={**details, "error": str(e)},
            ) from e

        logger.debug("Loaded file", extra={"path": str(path), "chars": len(text)})
        return Document.from_text(
            text,
            str(path),
            content_type=self.CONTENT_TYPES.get(path.suffix.lower(), "text/plain"),
            file_name=path.name,
        )
