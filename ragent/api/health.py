"""Health-check and scrape endpoints."""

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Request, Response

from ragent import __version__
from ragent.observability.metrics import get_metrics, get_metrics_content_type

router = APIRouter(tags=["Health"])


def _now() -> str:
    return datetime.now(UTC).isoformat()


@router.get("/health")
async def health_check() -> dict[str, Any]:
    return {"status": "healthy", "version": __version__, "timestamp": _now()}


@router.get("/health/ready")
async def readiness_check(request: Request) -> dict[str, Any]:
    """Ready once the lifespan has installed the session manager."""
    started = getattr(request.app.state, "sessions", None) is not None
    checks = {"config": "ok", "sessions": "ok" if started else "not_started"}
    return {
        "status": "ready" if started else "not_ready",
        "checks": checks,
        "timestamp": _now(),
    }


@router.get("/health/live")
async def liveness_check() -> dict[str, str]:
    return {"status": "alive"}


@router.get("/metrics", tags=["Observability"])
async def metrics_endpoint() -> Response:
    """Prometheus scrape endpoint."""
    return Response(content=get_metrics(), media_type=get_metrics_content_type())
