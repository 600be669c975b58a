"""Observability module for metrics and monitoring."""

from ragent.observability.metrics import (
    MetricsMiddleware,
    get_metrics,
    get_metrics_content_type,
    track_agent_turn,
    track_embedding_request,
    track_llm_request,
    track_retrieval_request,
    track_tool_call,
)

__all__ = [
    "MetricsMiddleware",
    "get_metrics",
    "get_metrics_content_type",
    "track_agent_turn",
    "track_embedding_request",
    "track_llm_request",
    "track_retrieval_request",
    "track_tool_call",
]
