"""ASGI application: lifespan, error mapping and routers."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ragent import __version__
from ragent.api import health, routes
from ragent.config import Environment, get_settings
from ragent.exceptions import RagentError
from ragent.logging_config import get_logger, setup_logging
from ragent.observability.metrics import MetricsMiddleware
from ragent.session import SessionManager

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Configure logging and own the session manager for the app's lifetime.

    A manager installed before startup (as tests do) is kept.
    """
    settings = get_settings()
    setup_logging(
        level=settings.log_level,
        json_output=settings.environment != Environment.DEVELOPMENT,
    )
    logger.info(
        "Starting ragent",
        extra={"version": __version__, "environment": settings.environment.value},
    )

    if app.state.sessions is None:
        app.state.sessions = SessionManager(settings)
    try:
        yield
    finally:
        logger.info("Shutting down ragent")
        await app.state.sessions.close()


async def handle_ragent_error(request: Request, exc: RagentError) -> JSONResponse:
    """Render an engine error as ``{"error": {code, message, details}}``."""
    logger.error(
        f"Request failed: {exc.message}",
        extra={
            "error_code": exc.code.value,
            "path": request.url.path,
            "details": exc.details,
        },
    )
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title="ragent",
        description="Conversational retrieval and tool-use engine",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )
    app.state.sessions = None

    app.add_middleware(MetricsMiddleware)
    app.add_exception_handler(RagentError, handle_ragent_error)
    app.include_router(health.router)
    app.include_router(routes.router)
    return app


app = create_app()
