"""Error handling middleware and exception handlers."""

from typing import Any

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import RequestResponseEndpoint
from starlette.responses import Response

from video_rag.commons.telemetry.logger import get_logger
from video_rag.domain.exceptions import (
    DomainException,
    EmbeddingGenerationException,
    FrameExtractionException,
    GenerationException,
    IndexingException,
    IndexingInProgressException,
    InvalidInputException,
    NoRelevantContentException,
    TranscriptionException,
    VideoNotFoundException,
    VideoNotIndexedException,
)

logger = get_logger(__name__)

GENERIC_SERVER_MESSAGE = "An unexpected error occurred"


class APIError(Exception):
    """Base API error with code and details."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize API error.

        Args:
            code: Error code for clients.
            message: Human-readable error message.
            status_code: HTTP status code.
            details: Additional error details.
        """
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


def _build_error_response(
    request: Request,
    code: str,
    message: str,
    status_code: int,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    """Build standardized error response.

    Args:
        request: HTTP request.
        code: Error code.
        message: Error message.
        status_code: HTTP status code.
        details: Additional details.

    Returns:
        JSON error response.
    """
    request_id = getattr(request.state, "request_id", "unknown")

    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "code": code,
                "message": message,
                "details": details or {},
                "request_id": request_id,
            }
        },
        headers={"X-Request-ID": request_id},
    )


def _expose_details(request: Request) -> bool:
    settings = getattr(request.app.state, "settings", None)
    return bool(settings and settings.app.expose_error_details)


def _server_message(request: Request, exc: Exception) -> str:
    """Raw message in development, a generic one elsewhere."""
    return str(exc) if _expose_details(request) else GENERIC_SERVER_MESSAGE


def _handle_exception(  # noqa: PLR0911
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle exception and return appropriate error response.

    Args:
        request: HTTP request.
        exc: Exception to handle.

    Returns:
        JSON error response.
    """
    if isinstance(exc, APIError):
        logger.warning(
            f"API error: {exc.code}",
            extra={
                "error_code": exc.code,
                "error_message": exc.message,
                "details": exc.details,
            },
        )
        return _build_error_response(
            request=request,
            code=exc.code,
            message=exc.message,
            status_code=exc.status_code,
            details=exc.details,
        )

    if isinstance(exc, InvalidInputException):
        logger.warning(f"Invalid input: {exc}")
        return _build_error_response(
            request=request,
            code="INVALID_INPUT",
            message=str(exc),
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"field": exc.field, "reason": exc.reason},
        )

    if isinstance(exc, VideoNotFoundException):
        logger.warning(f"Video not found: {exc}")
        return _build_error_response(
            request=request,
            code="VIDEO_NOT_FOUND",
            message=str(exc),
            status_code=status.HTTP_404_NOT_FOUND,
            details={"video_id": exc.video_id},
        )

    if isinstance(exc, VideoNotIndexedException):
        logger.warning(f"Video not indexed: {exc}")
        return _build_error_response(
            request=request,
            code="VIDEO_NOT_INDEXED",
            message=str(exc),
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"video_id": exc.video_id, "status": exc.status.value},
        )

    if isinstance(exc, IndexingInProgressException):
        logger.warning(f"Indexing in progress: {exc}")
        return _build_error_response(
            request=request,
            code="INDEXING_IN_PROGRESS",
            message=str(exc),
            status_code=status.HTTP_409_CONFLICT,
            details={"video_id": exc.video_id},
        )

    if isinstance(exc, NoRelevantContentException):
        logger.info(f"No relevant content: {exc}")
        return _build_error_response(
            request=request,
            code="NO_RELEVANT_CONTENT",
            message=str(exc),
            status_code=status.HTTP_404_NOT_FOUND,
            details={
                "video_id": exc.video_id,
                "query": exc.query,
                "suggestions": exc.suggestions,
            },
        )

    if isinstance(exc, IndexingException):
        logger.error(f"Indexing failed at {exc.stage}: {exc.reason}")
        if _expose_details(request):
            message = exc.reason
        else:
            message = exc.public_reason or GENERIC_SERVER_MESSAGE
        return _build_error_response(
            request=request,
            code="INDEXING_FAILED",
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details={"video_id": exc.video_id, "stage": exc.stage},
        )

    if isinstance(exc, EmbeddingGenerationException):
        logger.error(f"Embedding failed: {exc}")
        return _build_error_response(
            request=request,
            code="EMBEDDING_FAILED",
            message=_server_message(request, exc),
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(exc, GenerationException):
        logger.error(f"Generation failed: {exc}")
        return _build_error_response(
            request=request,
            code="GENERATION_FAILED",
            message=_server_message(request, exc),
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details={"model": exc.model},
        )

    if isinstance(exc, (FrameExtractionException, TranscriptionException)):
        logger.error(f"Media processing failed: {exc}")
        return _build_error_response(
            request=request,
            code="MEDIA_PROCESSING_FAILED",
            message=_server_message(request, exc),
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(exc, DomainException):
        logger.warning(f"Domain error: {exc}")
        return _build_error_response(
            request=request,
            code="DOMAIN_ERROR",
            message=str(exc),
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    # Catch-all for store errors and anything unexpected
    logger.exception(f"Unexpected error: {exc}")
    return _build_error_response(
        request=request,
        code="INTERNAL_ERROR",
        message=_server_message(request, exc),
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


async def error_handler_middleware(
    request: Request,
    call_next: RequestResponseEndpoint,
) -> Response:
    """Middleware to catch and format all exceptions.

    Args:
        request: HTTP request.
        call_next: Next handler in chain.

    Returns:
        HTTP response.
    """
    try:
        return await call_next(request)
    except Exception as exc:
        return _handle_exception(request, exc)
