"""Prometheus instrumentation.

Covers HTTP traffic, the two upstream services (embedding and chat
completion), retrieval quality and the agent loop.
"""

import re
import time
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware

LATENCY_BUCKETS = (0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)
SLOW_LATENCY_BUCKETS = (0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0)

HTTP_LABELS = ("method", "endpoint", "status_code")
HTTP_REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    HTTP_LABELS,
    buckets=LATENCY_BUCKETS,
)
HTTP_REQUEST_TOTAL = Counter("http_requests_total", "HTTP requests served", HTTP_LABELS)

LLM_REQUEST_DURATION = Histogram(
    "llm_request_duration_seconds",
    "Chat-completion latency",
    ("model", "status"),
    buckets=SLOW_LATENCY_BUCKETS,
)
LLM_REQUEST_TOTAL = Counter("llm_requests_total", "Chat-completion requests", ("model", "status"))
LLM_TOKENS_TOTAL = Counter("llm_tokens_total", "Tokens consumed", ("model", "type"))

EMBEDDING_REQUEST_DURATION = Histogram(
    "embedding_request_duration_seconds",
    "Embedding request latency",
    ("model", "status"),
    buckets=LATENCY_BUCKETS,
)
EMBEDDING_REQUEST_TOTAL = Counter(
    "embedding_requests_total", "Embedding requests", ("model", "status")
)
EMBEDDING_BATCH_SIZE = Histogram(
    "embedding_batch_size",
    "Texts per embedding request",
    ("model",),
    buckets=(1, 5, 10, 25, 50, 100, 250, 500),
)

RETRIEVAL_CHUNKS_RETURNED = Histogram(
    "retrieval_chunks_returned",
    "Chunks returned per retrieval",
    buckets=(0, 1, 2, 3, 5, 10, 20, 50),
)
RETRIEVAL_TOP_SCORE = Histogram(
    "retrieval_top_score",
    "Best score per retrieval",
    buckets=tuple(step / 10 for step in range(1, 11)),
)

AGENT_TURN_TOTAL = Counter("agent_turns_total", "Agent turns by outcome", ("status",))
AGENT_ITERATIONS = Histogram(
    "agent_iterations",
    "Tool executions per agent turn",
    buckets=(0, 1, 2, 3, 5, 8, 13),
)
TOOL_CALL_TOTAL = Counter("tool_calls_total", "Tool invocations", ("tool", "status"))
TOOL_CALL_DURATION = Histogram(
    "tool_call_duration_seconds",
    "Tool invocation latency",
    ("tool",),
    buckets=LATENCY_BUCKETS[2:] + (30.0,),
)

_SESSION_PATH = re.compile(r"^(/api/v1/sessions)/[^/]+(/[^/]+)?")
_API_PATH = re.compile(r"^(/api/v1/[^/]+)")


def _status(success: bool) -> str:
    return "success" if success else "error"


class MetricsMiddleware(BaseHTTPMiddleware):
    """Counts and times every request except the scrape itself."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        if request.url.path == "/metrics":
            return await call_next(request)

        start = time.perf_counter()
        response = await call_next(request)
        labels = {
            "method": request.method,
            "endpoint": self._normalize_endpoint(request.url.path),
            "status_code": response.status_code,
        }
        HTTP_REQUEST_DURATION.labels(**labels).observe(time.perf_counter() - start)
        HTTP_REQUEST_TOTAL.labels(**labels).inc()
        return response

    def _normalize_endpoint(self, path: str) -> str:
        """Collapse session ids and health-check variants to keep label cardinality low.

        ``/api/v1/sessions/<id>/chat`` becomes ``/api/v1/sessions/{id}/chat``.
        """
        if path.startswith("/health"):
            return "/health"
        if match := _SESSION_PATH.match(path):
            return f"{match.group(1)}/{{id}}{match.group(2) or ''}"
        if match := _API_PATH.match(path):
            return match.group(1)
        return path


def get_metrics() -> bytes:
    return generate_latest()


def get_metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST


def track_llm_request(
    model: str,
    duration: float,
    prompt_tokens: int,
    completion_tokens: int,
    success: bool = True,
) -> None:
    """Record one chat-completion call. Tokens count only on success."""
    status = _status(success)
    LLM_REQUEST_DURATION.labels(model=model, status=status).observe(duration)
    LLM_REQUEST_TOTAL.labels(model=model, status=status).inc()
    if success:
        LLM_TOKENS_TOTAL.labels(model=model, type="prompt").inc(prompt_tokens)
        LLM_TOKENS_TOTAL.labels(model=model, type="completion").inc(completion_tokens)


def track_embedding_request(
    model: str,
    duration: float,
    batch_size: int,
    success: bool = True,
) -> None:
    status = _status(success)
    EMBEDDING_REQUEST_DURATION.labels(model=model, status=status).observe(duration)
    EMBEDDING_REQUEST_TOTAL.labels(model=model, status=status).inc()
    EMBEDDING_BATCH_SIZE.labels(model=model).observe(batch_size)


def track_retrieval_request(chunks_returned: int, top_score: float) -> None:
    """Record one retrieval. Empty results carry no top score."""
    RETRIEVAL_CHUNKS_RETURNED.observe(chunks_returned)
    if chunks_returned:
        RETRIEVAL_TOP_SCORE.observe(top_score)


def track_agent_turn(status: str, iterations: int) -> None:
    """Record a finished turn.

    Args:
        status: Terminal status value, e.g. ``done`` or ``exceeded_iterations``.
        iterations: Tool executions performed during the turn.
    """
    AGENT_TURN_TOTAL.labels(status=status).inc()
    AGENT_ITERATIONS.observe(iterations)


def track_tool_call(tool: str, duration: float, success: bool = True) -> None:
    TOOL_CALL_TOTAL.labels(tool=tool, status=_status(success)).inc()
    TOOL_CALL_DURATION.labels(tool=tool).observe(duration)
