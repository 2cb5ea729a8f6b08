"""API route handlers."""

from video_rag.api.openapi.routes import health, query, videos

__all__ = [
    "health",
    "query",
    "videos",
]
