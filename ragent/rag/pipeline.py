"""The retrieve, assemble and generate chain."""

from ragent.llm.client import LLMClient
from ragent.llm.prompts import RAGPromptTemplate
from ragent.logging_config import get_logger
from ragent.rag.context import ContextAssembler
from ragent.rag.models import RAGQuery, RAGResponse, SourceAttribution
from ragent.retrieval.retriever import Retriever
from ragent.tools.models import ToolSpec

logger = get_logger(__name__)

NO_CONTEXT_ANSWER = "I could not find relevant information to answer your question."


class RAGChain:
    """Answers a question from the chunks most similar to it.

    Retrieves the top ``k`` chunks, joins them into the prompt and asks the
    model once. When nothing survives retrieval the model is not called and
    ``NO_CONTEXT_ANSWER`` is returned.

    Args:
        retriever: Chunk retriever.
        llm_client: Model that writes the answer.
        prompt_template: Template with ``{context}`` and ``{question}``.
        assembler: Joins retrieved chunks into the context block.
        top_k: Chunks per question unless the query overrides it.
        score_threshold: Minimum score unless the query overrides it.
    """

    def __init__(
        self,
        retriever: Retriever,
        llm_client: LLMClient,
        prompt_template: RAGPromptTemplate | None = None,
        assembler: ContextAssembler | None = None,
        top_k: int = 4,
        score_threshold: float | None = None,
    ) -> None:
        self._retriever = retriever
        self._llm_client = llm_client
        self._prompt_template = prompt_template or RAGPromptTemplate()
        self._assembler = assembler or ContextAssembler()
        self._top_k = top_k
        self._score_threshold = score_threshold

    @property
    def top_k(self) -> int:
        return self._top_k

    async def query(self, request: RAGQuery) -> RAGResponse:
        top_k = self._top_k if request.top_k is None else request.top_k
        threshold = (
            self._score_threshold if request.score_threshold is None else request.score_threshold
        )
        logger.info(
            "Answering question",
            extra={"question_length": len(request.question), "top_k": top_k},
        )

        hits = [
            hit
            for hit in await self._retriever.retrieve(query=request.question, top_k=top_k)
            if threshold is None or hit.score >= threshold
        ]
        if not hits:
            return RAGResponse(answer=NO_CONTEXT_ANSWER, model=self._llm_client.model_name)

        system_prompt, user_prompt = self._prompt_template.build_prompt(
            question=request.question,
            context=self._assembler.assemble(hits),
        )
        generation = await self._llm_client.generate_text(
            prompt=user_prompt, system_prompt=system_prompt
        )

        logger.info(
            "Question answered",
            extra={"sources": len(hits), "tokens_used": generation.total_tokens},
        )
        return RAGResponse(
            answer=generation.content,
            sources=[SourceAttribution.from_result(hit) for hit in hits],
            model=generation.model,
            tokens_used=generation.total_tokens,
        )

    async def query_simple(self, question: str, top_k: int | None = None) -> str:
        """Answer text only."""
        return (await self.query(RAGQuery(question=question, top_k=top_k))).answer

    def as_tool(
        self,
        name: str = "document_search",
        description: str = (
            "Answers questions using the documents loaded into this session. "
            "Input is the question to answer."
        ),
    ) -> ToolSpec:
        """Expose the chain as an agent tool."""
        return ToolSpec(
            name=name,
            description=description,
            input_description="The question to answer from the loaded documents",
            func=self.query_simple,
        )
