"""Engine error types.

Every error carries a stable ``RAG-XXXX`` code, free-form details and the
HTTP status the API answers with. Subclasses only pick a default code.
"""

from enum import Enum
from typing import Any, ClassVar


class ErrorCode(str, Enum):
    """Stable error codes, grouped by component."""

    # General (1xxx)
    INTERNAL_ERROR = "RAG-1000"
    CONFIGURATION_ERROR = "RAG-1001"
    VALIDATION_ERROR = "RAG-1002"

    # Documents (2xxx)
    DOCUMENT_NOT_FOUND = "RAG-2000"
    DOCUMENT_PARSE_ERROR = "RAG-2001"

    # Embedding service (3xxx)
    EMBEDDING_SERVICE_ERROR = "RAG-3000"
    EMBEDDING_DIMENSION_MISMATCH = "RAG-3001"
    EMBEDDING_TIMEOUT = "RAG-3002"
    EMBEDDING_RATE_LIMIT = "RAG-3003"

    # Vector index (4xxx)
    VECTOR_STORE_ERROR = "RAG-4000"
    INDEX_DIMENSION_MISMATCH = "RAG-4001"

    # Generation service (5xxx)
    GENERATION_SERVICE_ERROR = "RAG-5000"
    GENERATION_TIMEOUT = "RAG-5001"
    GENERATION_RATE_LIMIT = "RAG-5002"
    GENERATION_INVALID_RESPONSE = "RAG-5003"

    # Retrieval (6xxx)
    RETRIEVAL_ERROR = "RAG-6000"

    # Agent, tools and sessions (7xxx)
    UNKNOWN_TOOL = "RAG-7000"
    TOOL_EXECUTION_ERROR = "RAG-7001"
    SESSION_NOT_FOUND = "RAG-7002"


# Upstream failures are 502/504, caller mistakes are 4xx.
HTTP_STATUS: dict[ErrorCode, int] = {
    ErrorCode.CONFIGURATION_ERROR: 400,
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.DOCUMENT_NOT_FOUND: 404,
    ErrorCode.SESSION_NOT_FOUND: 404,
    ErrorCode.INDEX_DIMENSION_MISMATCH: 409,
    ErrorCode.DOCUMENT_PARSE_ERROR: 422,
    ErrorCode.EMBEDDING_RATE_LIMIT: 429,
    ErrorCode.GENERATION_RATE_LIMIT: 429,
    ErrorCode.EMBEDDING_SERVICE_ERROR: 502,
    ErrorCode.EMBEDDING_DIMENSION_MISMATCH: 502,
    ErrorCode.GENERATION_SERVICE_ERROR: 502,
    ErrorCode.GENERATION_INVALID_RESPONSE: 502,
    ErrorCode.UNKNOWN_TOOL: 502,
    ErrorCode.EMBEDDING_TIMEOUT: 504,
    ErrorCode.GENERATION_TIMEOUT: 504,
}


class RagentError(Exception):
    """Base class of every engine error.

    Attributes:
        message: Human-readable description.
        code: Structured error code.
        details: Context for logs and API responses.
    """

    default_code: ClassVar[ErrorCode] = ErrorCode.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        code: ErrorCode | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}

    @property
    def http_status(self) -> int:
        return HTTP_STATUS.get(self.code, 500)

    def to_dict(self) -> dict[str, Any]:
        """Body of an API error response."""
        return {
            "error": {
                "code": self.code.value,
                "message": self.message,
                "details": self.details,
            }
        }


class ConfigurationError(RagentError):
    """Invalid configuration. Raised before any network call."""

    default_code = ErrorCode.CONFIGURATION_ERROR


class ValidationError(RagentError):
    default_code = ErrorCode.VALIDATION_ERROR


class DocumentError(RagentError):
    default_code = ErrorCode.DOCUMENT_NOT_FOUND


class EmbeddingServiceError(RagentError):
    """Embedding service failure: network, quota, timeout or bad payload."""

    default_code = ErrorCode.EMBEDDING_SERVICE_ERROR


class VectorStoreError(RagentError):
    default_code = ErrorCode.VECTOR_STORE_ERROR


class GenerationServiceError(RagentError):
    """Chat-completion service failure: network, quota, timeout or bad payload."""

    default_code = ErrorCode.GENERATION_SERVICE_ERROR


class RetrievalError(RagentError):
    default_code = ErrorCode.RETRIEVAL_ERROR


class ToolExecutionError(RagentError):
    """A tool callable failed.

    Contained by the tool registry and turned into an observation.
    """

    default_code = ErrorCode.TOOL_EXECUTION_ERROR


class UnknownToolError(RagentError):
    """The model asked for a tool that is not registered."""

    default_code = ErrorCode.UNKNOWN_TOOL

    def __init__(self, tool_name: str, available: list[str] | None = None) -> None:
        super().__init__(
            f"Unknown tool: {tool_name}",
            details={"tool": tool_name, "available": available or []},
        )
        self.tool_name = tool_name


class SessionNotFoundError(RagentError):
    default_code = ErrorCode.SESSION_NOT_FOUND

    def __init__(self, session_id: str) -> None:
        super().__init__(
            f"Session not found: {session_id}",
            details={"session_id": session_id},
        )
