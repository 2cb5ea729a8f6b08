"""Pydantic settings models for application configuration."""

from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseModel):
    """Application-level settings."""

    name: str = "video-rag-server"
    version: str = "0.1.0"
    environment: Literal["dev", "staging", "prod"] = "dev"
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    @property
    def expose_error_details(self) -> bool:
        """Whether raw error messages may be returned to API clients."""
        return self.debug or self.environment == "dev"


class ServerSettings(BaseModel):
    """HTTP server settings."""

    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=1, le=65535)
    workers: int = Field(default=1, ge=1, le=32)
    reload: bool = False
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    api_prefix: str = "/v1"
    docs_enabled: bool = True


class CollectionSettings(BaseModel):
    """Vector DB collection names."""

    text: str = "video_text_embeddings"
    visual: str = "video_visual_embeddings"


class VectorDBSettings(BaseModel):
    """Vector database settings (Qdrant)."""

    provider: Literal["qdrant"] = "qdrant"
    url: str | None = None
    host: str = "localhost"
    port: int = 6333
    grpc_port: int = 6334
    prefer_grpc: bool = False
    api_key: str | None = None
    use_ssl: bool = False
    collections: CollectionSettings = Field(default_factory=CollectionSettings)
    default_limit: int = Field(default=10, ge=1)
    max_search_limit: int = Field(default=20, ge=1)
    index_wait_attempts: int = Field(default=60, ge=1)
    index_wait_interval_seconds: float = Field(default=1.0, gt=0)


class DocumentCollectionSettings(BaseModel):
    """Document DB collection names."""

    videos: str = "videos"


class DocumentDBSettings(BaseModel):
    """Document database settings (MongoDB)."""

    provider: Literal["mongodb"] = "mongodb"
    host: str = "localhost"
    port: int = 27017
    username: str = ""
    password: str = ""
    database: str = "video_rag"
    auth_source: str = "admin"
    collections: DocumentCollectionSettings = Field(
        default_factory=DocumentCollectionSettings
    )


class TranscriptionSettings(BaseModel):
    """Transcription service settings."""

    provider: Literal["assemblyai"] = "assemblyai"
    api_key: str = ""
    base_url: str = "https://api.assemblyai.com"
    speech_model: str = "universal"
    language: str | None = None
    poll_interval_seconds: float = Field(default=3.0, gt=0)
    max_poll_attempts: int = Field(default=100, ge=1)
    request_timeout_seconds: float = 60.0
    audio_sample_rate: int = 16000
    audio_channels: int = 1

    @property
    def timeout_seconds(self) -> float:
        """Overall ceiling for a single transcription job."""
        return self.poll_interval_seconds * self.max_poll_attempts


class TextEmbeddingSettings(BaseModel):
    """Text embedding settings."""

    provider: Literal["openai"] = "openai"
    api_key: str = ""
    endpoint: str | None = None
    model: str = "text-embedding-3-small"
    dimensions: int | None = Field(
        default=None,
        description="Pinned vector size; inferred from the model name when unset",
    )
    max_input_chars: int = Field(default=8000, ge=1)


class ImageEmbeddingSettings(BaseModel):
    """Image embedding settings."""

    provider: Literal["clip"] = "clip"
    api_url: str = "http://localhost:8080"
    api_key: str | None = None
    model: str = "clip-vit-base-patch32"
    dimensions: int = 512
    timeout_seconds: float = 30.0
    allow_synthetic_fallback: bool = False


class EmbeddingsSettings(BaseModel):
    """Combined embedding settings."""

    text: TextEmbeddingSettings = Field(default_factory=TextEmbeddingSettings)
    image: ImageEmbeddingSettings = Field(default_factory=ImageEmbeddingSettings)


class LLMSettings(BaseModel):
    """LLM service settings."""

    provider: Literal["openai", "azure_openai", "anthropic"] = "openai"
    api_key: str = ""
    endpoint: str | None = None
    model: str = "gpt-4o"
    temperature: float = Field(default=0.3, ge=0, le=2)
    max_tokens: int = 2048
    timeout_seconds: int = 60


class ChunkingSettings(BaseModel):
    """Transcript chunking configuration."""

    fixed_chunk_size: int | None = Field(default=None, ge=1)
    fixed_overlap: int | None = Field(default=None, ge=0)
    sentence_max_words: int = Field(default=300, ge=1)
    timestamp_max_words: int = Field(default=400, ge=1)


class ProcessingSettings(BaseModel):
    """Video processing settings."""

    work_dir: str = "data/processed"
    frame_interval_seconds: float = Field(default=5.0, gt=0)
    frame_width: int = 640
    frame_height: int = 480
    text_batch_size: int = Field(default=10, ge=1)
    visual_batch_size: int = Field(default=50, ge=1)
    max_text_chunk_chars: int = Field(default=4999, ge=1, le=5000)
    save_transcript_artifacts: bool = True
    indexing_lease_seconds: float = Field(default=1800.0, gt=0)
    ffmpeg_path: str = "ffmpeg"
    ffprobe_path: str = "ffprobe"


class LimitConfig(BaseModel):
    """Token bucket configuration."""

    rate_per_second: float = Field(gt=0)
    burst: int = Field(default=1, ge=1)


class RateLimitSettings(BaseModel):
    """Provider rate limiting settings."""

    enabled: bool = True
    text_embedding: LimitConfig = Field(
        default_factory=lambda: LimitConfig(rate_per_second=10.0, burst=1)
    )
    image_embedding: LimitConfig = Field(
        default_factory=lambda: LimitConfig(rate_per_second=20.0, burst=1)
    )
    vector_insert: LimitConfig = Field(
        default_factory=lambda: LimitConfig(rate_per_second=5.0, burst=1)
    )


class LangfuseSettings(BaseModel):
    """Langfuse tracing settings."""

    enabled: bool = False
    public_key: str = ""
    secret_key: str = ""
    host: str = "https://cloud.langfuse.com"
    debug: bool = False
    sample_rate: float = Field(default=1.0, ge=0, le=1)
    flush_at: int = 15
    flush_interval: float = 0.5


class TelemetrySettings(BaseModel):
    """Telemetry and observability settings."""

    enabled: bool = True
    log_format: Literal["json", "text"] = "json"
    log_level: str = "INFO"
    mask_secrets: bool = True
    langfuse: LangfuseSettings = Field(default_factory=LangfuseSettings)


class Settings(BaseSettings):
    """Root settings container with environment loading."""

    app: AppSettings = Field(default_factory=AppSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    vector_db: VectorDBSettings = Field(default_factory=VectorDBSettings)
    document_db: DocumentDBSettings = Field(default_factory=DocumentDBSettings)
    transcription: TranscriptionSettings = Field(default_factory=TranscriptionSettings)
    embeddings: EmbeddingsSettings = Field(default_factory=EmbeddingsSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    chunking: ChunkingSettings = Field(default_factory=ChunkingSettings)
    processing: ProcessingSettings = Field(default_factory=ProcessingSettings)
    telemetry: TelemetrySettings = Field(default_factory=TelemetrySettings)
    rate_limiting: RateLimitSettings = Field(default_factory=RateLimitSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="VIDEO_RAG__",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    def missing_credentials(self) -> list[str]:
        """List credentials the configured providers need but don't have.

        Returns:
            Dotted setting paths of empty credentials.
        """
        missing: list[str] = []
        if not self.transcription.api_key:
            missing.append("transcription.api_key")
        if not self.embeddings.text.api_key:
            missing.append("embeddings.text.api_key")
        if not self.llm.api_key:
            missing.append("llm.api_key")
        if self.telemetry.langfuse.enabled and not (
            self.telemetry.langfuse.public_key and self.telemetry.langfuse.secret_key
        ):
            missing.append("telemetry.langfuse.public_key/secret_key")
        return missing

    def secret_values(self) -> list[str]:
        """Collect configured secret values for log masking."""
        candidates = [
            self.transcription.api_key,
            self.embeddings.text.api_key,
            self.embeddings.image.api_key,
            self.llm.api_key,
            self.vector_db.api_key,
            self.document_db.password,
            self.telemetry.langfuse.secret_key,
        ]
        return [value for value in candidates if value]
