"""Context assembly for generation prompts."""

from collections.abc import Iterable

from ragent.documents.chunker import Chunk
from ragent.retrieval.models import RetrievalResult
from ragent.vectorstore.models import SearchResult

ContextItem = str | RetrievalResult | SearchResult | Chunk


class ContextAssembler:
    """Joins retrieved texts into one context string.

    Items keep the order they are given in; duplicates are not removed.
    """

    def __init__(self, separator: str = "\n\n") -> None:
        self.separator = separator

    @staticmethod
    def text_of(item: ContextItem) -> str:
        """Extract the text of a retrieved item."""
        if isinstance(item, str):
            return item
        return item.content

    def assemble(self, items: Iterable[ContextItem]) -> str:
        """Concatenate item texts separated by the configured separator."""
        return self.separator.join(self.text_of(item) for item in items)
