"""Infrastructure factory for creating service instances from configuration."""

from typing import Any, cast

from video_rag.commons.concurrency import RateLimiter
from video_rag.commons.infrastructure.documentdb import (
    DocumentDBBase,
    MongoDBDocumentDB,
)
from video_rag.commons.infrastructure.vectordb import QdrantVectorDB, VectorDBBase
from video_rag.commons.settings.models import LimitConfig, Settings
from video_rag.commons.telemetry import LangfuseTracer, get_logger
from video_rag.infrastructure.embeddings import (
    CLIPEmbeddingService,
    ImageEmbeddingServiceBase,
    OpenAIEmbeddingService,
    TextEmbeddingServiceBase,
    VisualEmbeddingService,
    infer_text_embedding_dimensions,
)
from video_rag.infrastructure.llm import (
    AnthropicLLMService,
    LLMServiceBase,
    OpenAILLMService,
)
from video_rag.infrastructure.transcription import (
    AssemblyAITranscriptionService,
    TranscriptionServiceBase,
)
from video_rag.infrastructure.video import (
    AudioExtractorBase,
    FFmpegAudioExtractor,
    FFmpegFrameExtractor,
    FrameExtractorBase,
)

logger = get_logger(__name__)

RATE_LIMITERS = ("text_embedding", "image_embedding", "vector_insert")


class InfrastructureFactory:
    """Factory for creating infrastructure service instances.

    Creates concrete implementations based on configuration settings and
    caches them, so every caller holding the same factory shares clients.
    """

    def __init__(self, settings: Settings) -> None:
        """Initialize factory with settings.

        Args:
            settings: Application settings.
        """
        self._settings = settings
        self._instances: dict[str, Any] = {}

    @property
    def settings(self) -> Settings:
        return self._settings

    def get_vector_db(self) -> VectorDBBase:
        """Get vector database instance.

        Returns:
            Configured vector database provider.
        """
        if "vector_db" not in self._instances:
            vector_settings = self._settings.vector_db
            self._instances["vector_db"] = QdrantVectorDB(
                host=vector_settings.host,
                port=vector_settings.port,
                grpc_port=vector_settings.grpc_port,
                api_key=vector_settings.api_key,
                url=vector_settings.url,
                prefer_grpc=vector_settings.prefer_grpc,
                https=vector_settings.use_ssl,
                flush_attempts=vector_settings.index_wait_attempts,
                flush_interval=vector_settings.index_wait_interval_seconds,
            )
        return cast("VectorDBBase", self._instances["vector_db"])

    def get_document_db(self) -> DocumentDBBase:
        """Get document database instance.

        Returns:
            Configured document database provider.
        """
        if "document_db" not in self._instances:
            doc_settings = self._settings.document_db
            if doc_settings.username and doc_settings.password:
                connection_string = (
                    f"mongodb://{doc_settings.username}:{doc_settings.password}"
                    f"@{doc_settings.host}:{doc_settings.port}"
                    f"/?authSource={doc_settings.auth_source}"
                )
            else:
                connection_string = f"mongodb://{doc_settings.host}:{doc_settings.port}"
            self._instances["document_db"] = MongoDBDocumentDB(
                connection_string=connection_string,
                database_name=doc_settings.database,
            )
        return cast("DocumentDBBase", self._instances["document_db"])

    def get_transcription_service(self) -> TranscriptionServiceBase:
        """Get transcription service instance.

        Returns:
            Configured transcription service.
        """
        if "transcription" not in self._instances:
            trans_settings = self._settings.transcription
            self._instances["transcription"] = AssemblyAITranscriptionService(
                api_key=trans_settings.api_key,
                base_url=trans_settings.base_url,
                speech_model=trans_settings.speech_model,
                language=trans_settings.language,
                poll_interval_seconds=trans_settings.poll_interval_seconds,
                max_poll_attempts=trans_settings.max_poll_attempts,
                request_timeout_seconds=trans_settings.request_timeout_seconds,
            )
        return cast("TranscriptionServiceBase", self._instances["transcription"])

    def get_audio_extractor(self) -> AudioExtractorBase:
        """Get audio extractor instance.

        Returns:
            Configured audio extractor.
        """
        if "audio_extractor" not in self._instances:
            self._instances["audio_extractor"] = FFmpegAudioExtractor(
                ffmpeg_path=self._settings.processing.ffmpeg_path,
                sample_rate=self._settings.transcription.audio_sample_rate,
                channels=self._settings.transcription.audio_channels,
            )
        return cast("AudioExtractorBase", self._instances["audio_extractor"])

    def get_text_embedding_dimensions(self) -> int:
        """Vector size of the configured text model, without creating a client."""
        embed_settings = self._settings.embeddings.text
        return embed_settings.dimensions or infer_text_embedding_dimensions(
            embed_settings.model
        )

    def get_image_embedding_dimensions(self) -> int:
        """Vector size of the configured image model."""
        return self._settings.embeddings.image.dimensions

    def get_text_embedding_service(self) -> TextEmbeddingServiceBase:
        """Get text embedding service instance.

        Returns:
            Configured text embedding service.
        """
        if "text_embedding" not in self._instances:
            embed_settings = self._settings.embeddings.text
            self._instances["text_embedding"] = OpenAIEmbeddingService(
                api_key=embed_settings.api_key,
                model=embed_settings.model,
                base_url=embed_settings.endpoint,
                dimensions=self.get_text_embedding_dimensions(),
                max_input_chars=embed_settings.max_input_chars,
            )
        return cast("TextEmbeddingServiceBase", self._instances["text_embedding"])

    def get_image_embedding_service(self) -> ImageEmbeddingServiceBase:
        """Get image embedding service instance.

        Returns:
            CLIP service wrapped with the configured fallback policy.
        """
        if "image_embedding" not in self._instances:
            embed_settings = self._settings.embeddings.image
            clip = CLIPEmbeddingService(
                api_url=embed_settings.api_url,
                api_key=embed_settings.api_key,
                model=embed_settings.model,
                dimensions=self.get_image_embedding_dimensions(),
                timeout=embed_settings.timeout_seconds,
            )
            self._instances["image_embedding"] = VisualEmbeddingService(
                clip,
                allow_synthetic_fallback=embed_settings.allow_synthetic_fallback,
            )
        return cast("ImageEmbeddingServiceBase", self._instances["image_embedding"])

    def get_tracer(self) -> LangfuseTracer:
        """Get the Langfuse tracer; a no-op one when tracing is off."""
        if "tracer" not in self._instances:
            self._instances["tracer"] = LangfuseTracer.from_settings(
                self._settings.telemetry.langfuse
            )
        return cast("LangfuseTracer", self._instances["tracer"])

    def get_llm_service(self) -> LLMServiceBase:
        """Get LLM service instance.

        Returns:
            Configured LLM service.

        Raises:
            ValueError: If provider is not supported.
        """
        if "llm" not in self._instances:
            llm_settings = self._settings.llm
            provider = llm_settings.provider

            if provider == "anthropic":
                self._instances["llm"] = AnthropicLLMService(
                    api_key=llm_settings.api_key,
                    model=llm_settings.model,
                    base_url=llm_settings.endpoint,
                    temperature=llm_settings.temperature,
                    max_tokens=llm_settings.max_tokens,
                    tracer=self.get_tracer(),
                )
            elif provider == "azure_openai":
                if not llm_settings.endpoint:
                    raise ValueError("llm.endpoint is required for azure_openai")
                self._instances["llm"] = OpenAILLMService.for_azure(
                    api_key=llm_settings.api_key,
                    endpoint=llm_settings.endpoint,
                    model=llm_settings.model,
                    temperature=llm_settings.temperature,
                    max_tokens=llm_settings.max_tokens,
                    tracer=self.get_tracer(),
                )
            elif provider == "openai":
                self._instances["llm"] = OpenAILLMService(
                    api_key=llm_settings.api_key,
                    model=llm_settings.model,
                    base_url=llm_settings.endpoint,
                    temperature=llm_settings.temperature,
                    max_tokens=llm_settings.max_tokens,
                    timeout_seconds=llm_settings.timeout_seconds,
                    tracer=self.get_tracer(),
                )
            else:
                raise ValueError(f"Unsupported LLM provider: {provider}")

        return cast("LLMServiceBase", self._instances["llm"])

    def get_frame_extractor(self) -> FrameExtractorBase:
        """Get frame extractor instance.

        Returns:
            Configured frame extractor.
        """
        if "frame_extractor" not in self._instances:
            processing = self._settings.processing
            self._instances["frame_extractor"] = FFmpegFrameExtractor(
                ffmpeg_path=processing.ffmpeg_path,
                ffprobe_path=processing.ffprobe_path,
                width=processing.frame_width,
                height=processing.frame_height,
            )
        return cast("FrameExtractorBase", self._instances["frame_extractor"])

    def get_rate_limiter(self, name: str) -> RateLimiter:
        """Get the shared rate limiter for a provider.

        Args:
            name: One of text_embedding, image_embedding, vector_insert.

        Returns:
            Token bucket, or an unlimited one when rate limiting is disabled.
        """
        if name not in RATE_LIMITERS:
            raise ValueError(f"Unknown rate limiter: {name}")

        key = f"rate_limiter:{name}"
        if key not in self._instances:
            limits = self._settings.rate_limiting
            if limits.enabled:
                config = cast("LimitConfig", getattr(limits, name))
                limiter = RateLimiter(config.rate_per_second, config.burst)
            else:
                limiter = RateLimiter.unlimited()
            self._instances[key] = limiter
        return cast("RateLimiter", self._instances[key])

    async def close_all(self) -> None:
        """Close all service connections."""
        for name, instance in self._instances.items():
            try:
                if isinstance(instance, LangfuseTracer):
                    instance.shutdown()
                elif hasattr(instance, "close"):
                    await instance.close()
            except Exception as e:
                logger.warning(
                    "Failed to close service",
                    extra={"service": name, "error": str(e)},
                )

        self._instances.clear()
