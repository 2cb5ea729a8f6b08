"""FastAPI application factory and lifespan management."""

import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from video_rag.api.dependencies import (
    attach_services,
    init_services,
    shutdown_services,
)
from video_rag.api.middleware.error_handler import error_handler_middleware
from video_rag.api.middleware.logging import LoggingMiddleware
from video_rag.api.openapi.routes import health, query, videos
from video_rag.commons.settings.loader import get_settings
from video_rag.commons.settings.models import Settings
from video_rag.commons.telemetry import configure_logging, get_logger
from video_rag.commons.telemetry.logger import (
    JsonFormatter,
    SecretMaskingFilter,
    TextFormatter,
)

logger = get_logger(__name__)


def _log_level(settings: Settings) -> str:
    return (settings.telemetry.log_level or settings.app.log_level).upper()


def _secrets(settings: Settings) -> list[str]:
    return settings.secret_values() if settings.telemetry.mask_secrets else []


def _setup_logging(settings: Settings) -> None:
    """Configure logging for the application package."""
    log_level = _log_level(settings)

    configure_logging(
        level=log_level,
        format_type=settings.telemetry.log_format,
        logger_name="video_rag",
        secrets=_secrets(settings),
    )

    # Also configure root logger as fallback
    logging.getLogger().setLevel(getattr(logging, log_level))


def _configure_uvicorn_logging(settings: Settings) -> None:
    """Configure uvicorn loggers to use our format.

    Called during lifespan when uvicorn handlers are available.
    """
    log_level = getattr(logging, _log_level(settings))
    formatter: logging.Formatter = (
        JsonFormatter() if settings.telemetry.log_format == "json" else TextFormatter()
    )
    masking = SecretMaskingFilter(_secrets(settings))

    for logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(logger_name)
        uvicorn_logger.setLevel(log_level)
        for handler in uvicorn_logger.handlers:
            handler.setFormatter(formatter)
            handler.setLevel(log_level)
            handler.addFilter(masking)
        if not uvicorn_logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(formatter)
            handler.setLevel(log_level)
            handler.addFilter(masking)
            uvicorn_logger.addHandler(handler)
            uvicorn_logger.propagate = False


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifespan - startup and shutdown.

    Prepares indexes and vector collections on startup and cleanly closes
    provider clients on exit.
    """
    settings: Settings = app.state.settings
    _configure_uvicorn_logging(settings)

    missing = settings.missing_credentials()
    if missing:
        logger.warning(
            "Provider credentials are not configured",
            extra={"missing": missing},
        )

    await init_services(app)

    yield

    await shutdown_services(app)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to run with; loaded from config and environment
            when omitted.

    Returns:
        Configured FastAPI application instance.
    """
    settings = settings or get_settings()
    _setup_logging(settings)

    app = FastAPI(
        title=settings.app.name,
        version=settings.app.version,
        description="Video RAG Server - index videos and ask questions about them",
        docs_url="/docs" if settings.server.docs_enabled else None,
        redoc_url="/redoc" if settings.server.docs_enabled else None,
        openapi_url="/openapi.json" if settings.server.docs_enabled else None,
        lifespan=lifespan,
    )

    attach_services(app, settings)
    _configure_middleware(app, settings)
    _register_routes(app, settings)

    return app


def _configure_middleware(app: FastAPI, settings: Settings) -> None:
    """Configure application middleware."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_middleware(LoggingMiddleware)

    # Error handler (as middleware)
    app.middleware("http")(error_handler_middleware)


def _register_routes(app: FastAPI, settings: Settings) -> None:
    """Register API routes."""
    prefix = settings.server.api_prefix

    # Health routes (no prefix for standard health checks)
    app.include_router(health.router, tags=["Health"])

    app.include_router(videos.router, prefix=prefix, tags=["Videos"])
    app.include_router(query.router, prefix=prefix, tags=["Query"])


def run() -> None:
    """Run the server with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "video_rag.api.main:create_app",
        factory=True,
        host=settings.server.host,
        port=settings.server.port,
        workers=settings.server.workers,
        reload=settings.server.reload,
    )


if __name__ == "__main__":
    run()
