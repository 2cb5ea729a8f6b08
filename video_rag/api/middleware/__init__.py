"""API middleware components."""

from video_rag.api.middleware.error_handler import APIError, error_handler_middleware
from video_rag.api.middleware.logging import LoggingMiddleware

__all__ = [
    "APIError",
    "LoggingMiddleware",
    "error_handler_middleware",
]
