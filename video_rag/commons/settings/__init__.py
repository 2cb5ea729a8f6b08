"""Settings management module."""

from video_rag.commons.settings.loader import (
    SettingsLoader,
    get_settings,
    reset_settings,
)
from video_rag.commons.settings.models import (
    AppSettings,
    ChunkingSettings,
    CollectionSettings,
    DocumentCollectionSettings,
    DocumentDBSettings,
    EmbeddingsSettings,
    ImageEmbeddingSettings,
    LangfuseSettings,
    LimitConfig,
    LLMSettings,
    ProcessingSettings,
    RateLimitSettings,
    ServerSettings,
    Settings,
    TelemetrySettings,
    TextEmbeddingSettings,
    TranscriptionSettings,
    VectorDBSettings,
)

__all__ = [
    # Loader
    "SettingsLoader",
    "get_settings",
    "reset_settings",
    # Main settings
    "Settings",
    "AppSettings",
    "ServerSettings",
    # Storage
    "VectorDBSettings",
    "CollectionSettings",
    "DocumentDBSettings",
    "DocumentCollectionSettings",
    # AI Services
    "TranscriptionSettings",
    "EmbeddingsSettings",
    "TextEmbeddingSettings",
    "ImageEmbeddingSettings",
    "LLMSettings",
    # Processing
    "ChunkingSettings",
    "ProcessingSettings",
    # Telemetry & Rate Limiting
    "TelemetrySettings",
    "LangfuseSettings",
    "RateLimitSettings",
    "LimitConfig",
]
