"""Settings loaded from environment variables and ``.env``.

Each section reads its own prefix (``LLM_``, ``EMBEDDING_``, ``RAG_`` ...).
Secrets are ``SecretStr`` and never have real defaults.
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

NO_KEY = SecretStr("not-required")


class Environment(str, Enum):
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class IndexBackend(str, Enum):
    """Which vector index a session builds."""

    MEMORY = "memory"
    QDRANT = "qdrant"


class LLMSettings(BaseSettings):
    """OpenAI-compatible chat-completion endpoint (OpenAI, Ollama, vLLM)."""

    model_config = SettingsConfigDict(env_prefix="LLM_")

    base_url: str = Field("http://localhost:11434/v1", description="API base URL")
    model: str = Field("llama3:8b", description="Chat model")
    api_key: SecretStr = Field(NO_KEY, description="Bearer token, unused by Ollama")
    timeout: float = Field(120.0, gt=0, description="Seconds per attempt")
    max_tokens: int = Field(2048, gt=0, description="Completion token cap")
    temperature: float = Field(0.1, ge=0, description="Sampling temperature")


class EmbeddingSettings(BaseSettings):
    """OpenAI-style ``/embeddings`` endpoint (OpenAI, TEI)."""

    model_config = SettingsConfigDict(env_prefix="EMBEDDING_")

    base_url: str = Field("http://localhost:8080", description="API base URL")
    model: str = Field("BAAI/bge-large-en-v1.5", description="Embedding model")
    api_key: SecretStr = Field(NO_KEY, description="Bearer token, unused by TEI")
    batch_size: int = Field(32, gt=0, description="Texts per request")
    timeout: float = Field(60.0, gt=0, description="Seconds per attempt")


class QdrantSettings(BaseSettings):
    """Qdrant-backed vector index.

    ``url`` selects a server; otherwise ``location`` is used, and the
    default ``:memory:`` keeps vectors inside the process.
    """

    model_config = SettingsConfigDict(env_prefix="QDRANT_")

    location: str = ":memory:"
    url: str | None = None
    api_key: SecretStr | None = None
    collection_name: str = Field("ragent_chunks", description="Collection name prefix")


class RAGSettings(BaseSettings):
    """Segmentation and retrieval defaults for new sessions."""

    model_config = SettingsConfigDict(env_prefix="RAG_")

    chunk_size: int = Field(1000, description="Maximum characters per chunk")
    chunk_overlap: int = Field(200, description="Characters shared by neighbouring chunks")
    separators: list[str] = Field(
        default_factory=lambda: ["\n\n", "\n", ". ", " "],
        description="Split points, highest priority first",
    )
    similarity_metric: str = Field("cosine", description="cosine or inner_product")
    top_k: int = Field(4, ge=0, description="Chunks retrieved per question")
    score_threshold: float | None = Field(
        None, description="Drop results scoring below this; unset keeps all"
    )
    index_backend: IndexBackend = IndexBackend.MEMORY


class SummarySettings(BaseSettings):
    """Map-reduce summarization of long texts."""

    model_config = SettingsConfigDict(env_prefix="SUMMARY_")

    chunk_size: int = Field(2000, description="Characters per mapped chunk")
    chunk_overlap: int = Field(200, description="Characters shared by neighbouring chunks")
    collapse_chars: int = Field(
        8000, gt=0, description="Largest combined text sent in one reduce call"
    )
    max_concurrency: int = Field(4, gt=0, description="Chunk summaries generated at once")


class AgentSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="AGENT_")

    max_iterations: int = Field(3, description="Tool executions allowed per turn")
    system_prompt: str = "You are a helpful assistant who can remember the previous conversation."
    memory_max_turns: int | None = Field(None, description="Unbounded when unset")
    tool_timeout: float | None = Field(30.0, description="Seconds per tool call")


class WeatherSettings(BaseSettings):
    """OpenWeather current-conditions API used by the weather tool."""

    model_config = SettingsConfigDict(env_prefix="OPENWEATHER_")

    api_key: SecretStr | None = None
    base_url: str = "https://api.openweathermap.org/data/2.5"
    timeout: float = Field(10.0, gt=0)


class Settings(BaseSettings):
    """Top-level settings; unknown variables are ignored."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    environment: Environment = Environment.DEVELOPMENT
    log_level: str = "INFO"
    debug: bool = False

    api_host: str = "0.0.0.0"
    api_port: int = 8000

    llm: LLMSettings = Field(default_factory=LLMSettings)
    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    qdrant: QdrantSettings = Field(default_factory=QdrantSettings)
    rag: RAGSettings = Field(default_factory=RAGSettings)
    summary: SummarySettings = Field(default_factory=SummarySettings)
    agent: AgentSettings = Field(default_factory=AgentSettings)
    weather: WeatherSettings = Field(default_factory=WeatherSettings)


@lru_cache
def get_settings() -> Settings:
    """Process-wide settings, read once."""
    return Settings()
