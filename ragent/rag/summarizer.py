"""Map-reduce summarization of texts too long for one prompt."""

import asyncio

from pydantic import BaseModel, Field

from ragent.documents.chunker import Chunker, RecursiveTextSegmenter, SegmenterConfig
from ragent.documents.models import Document
from ragent.exceptions import ConfigurationError, ValidationError
from ragent.llm.client import LLMClient
from ragent.llm.prompts import SummaryPromptTemplate
from ragent.logging_config import get_logger
from ragent.tools.models import ToolSpec

logger = get_logger(__name__)

PARTIAL_SEPARATOR = "\n\n"


class SummaryResult(BaseModel):
    """Final summary of one text."""

    summary: str
    chunks: int = Field(description="Chunks the text was split into")
    model: str
    tokens_used: int = 0


class MapReduceSummarizer:
    """Summarizes each chunk on its own, then combines the partial summaries.

    When the joined partial summaries exceed ``collapse_chars`` they are first
    combined in groups that fit, round after round, until the rest fits in a
    single combine call. A text that yields one chunk is summarized by the map
    call alone.

    Args:
        llm_client: Model that writes the summaries.
        segmenter: Splits the input text; defaults to 2000-character chunks
            with 200 characters of overlap.
        prompt_template: Map and combine prompts.
        collapse_chars: Largest combined text sent in one call.
        max_concurrency: Chunk summaries requested at the same time.
    """

    def __init__(
        self,
        llm_client: LLMClient,
        segmenter: Chunker | None = None,
        prompt_template: SummaryPromptTemplate | None = None,
        collapse_chars: int = 8000,
        max_concurrency: int = 4,
    ) -> None:
        if collapse_chars <= 0 or max_concurrency <= 0:
            raise ConfigurationError(
                "collapse_chars and max_concurrency must be positive",
                details={"collapse_chars": collapse_chars, "max_concurrency": max_concurrency},
            )
        self._llm_client = llm_client
        self._segmenter = segmenter or RecursiveTextSegmenter(
            SegmenterConfig(chunk_size=2000, chunk_overlap=200)
        )
        self._prompts = prompt_template or SummaryPromptTemplate()
        self._collapse_chars = collapse_chars
        self._max_concurrency = max_concurrency

    async def summarize(self, text: str, source: str = "") -> SummaryResult:
        """Summarize ``text``.

        Raises:
            ValidationError: If the text is blank.
            GenerationServiceError: If a model call fails.
        """
        if not text.strip():
            raise ValidationError("Nothing to summarize", details={"source": source})

        chunks = [chunk.content for chunk in self._segmenter.segment(text, source)]
        logger.info(
            "Summarizing text",
            extra={"source": source, "chars": len(text), "chunks": len(chunks)},
        )

        tokens: list[int] = []
        partials = await self._summarize_all(chunks, self._prompts.map_template, tokens)
        if len(partials) > 1:
            partials = await self._collapse(partials, tokens)
            summary = await self._summarize_one(
                self._prompts.combine_template, PARTIAL_SEPARATOR.join(partials), tokens
            )
        else:
            summary = partials[0]

        logger.info(
            "Summary written",
            extra={"source": source, "calls": len(tokens), "tokens_used": sum(tokens)},
        )
        return SummaryResult(
            summary=summary,
            chunks=len(chunks),
            model=self._llm_client.model_name,
            tokens_used=sum(tokens),
        )

    async def summarize_document(self, document: Document) -> SummaryResult:
        return await self.summarize(document.content, document.source)

    async def summarize_text(self, text: str) -> str:
        """Summary text only."""
        return (await self.summarize(text)).summary

    async def _collapse(self, partials: list[str], tokens: list[int]) -> list[str]:
        while len(PARTIAL_SEPARATOR.join(partials)) > self._collapse_chars:
            groups = self._group(partials)
            if len(groups) == len(partials):
                # No two partials fit together; the final combine takes them as they are.
                break
            logger.debug(
                "Collapsing partial summaries",
                extra={"partials": len(partials), "groups": len(groups)},
            )
            partials = await self._summarize_all(
                [PARTIAL_SEPARATOR.join(group) for group in groups],
                self._prompts.combine_template,
                tokens,
            )
        return partials

    def _group(self, partials: list[str]) -> list[list[str]]:
        """Pack consecutive partials into groups whose joined text fits."""
        groups: list[list[str]] = []
        size = 0
        for partial in partials:
            added = len(PARTIAL_SEPARATOR) + len(partial)
            if groups and size + added <= self._collapse_chars:
                groups[-1].append(partial)
                size += added
            else:
                groups.append([partial])
                size = len(partial)
        return groups

    async def _summarize_all(
        self, texts: list[str], template: str, tokens: list[int]
    ) -> list[str]:
        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def bounded(text: str) -> str:
            async with semaphore:
                return await self._summarize_one(template, text, tokens)

        return list(await asyncio.gather(*(bounded(text) for text in texts)))

    async def _summarize_one(self, template: str, text: str, tokens: list[int]) -> str:
        generation = await self._llm_client.generate_text(
            prompt=template.format(text=text),
            system_prompt=self._prompts.system_prompt,
        )
        tokens.append(generation.total_tokens)
        return generation.content.strip()

    def as_tool(
        self,
        name: str = "summarize",
        description: str = (
            "Writes a concise summary of a long text. Input is the text to summarize."
        ),
    ) -> ToolSpec:
        """Expose the summarizer as an agent tool."""
        return ToolSpec(
            name=name,
            description=description,
            input_description="The text to summarize",
            func=self.summarize_text,
        )
