"""API layer - REST endpoints."""

from video_rag.api.main import create_app

__all__ = ["create_app"]
