"""Shared infrastructure providers."""

from video_rag.commons.infrastructure.health import HealthStatus

__all__ = ["HealthStatus"]
