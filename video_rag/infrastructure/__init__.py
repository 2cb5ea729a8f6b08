"""Infrastructure layer - external service implementations."""

from video_rag.infrastructure.embeddings import (
    CLIPEmbeddingService,
    EmbeddingModality,
    EmbeddingResult,
    ImageEmbeddingServiceBase,
    OpenAIEmbeddingService,
    TextEmbeddingServiceBase,
    VisualEmbeddingService,
)
from video_rag.infrastructure.factory import InfrastructureFactory
from video_rag.infrastructure.llm import (
    AnthropicLLMService,
    LLMResponse,
    LLMServiceBase,
    LLMUsage,
    Message,
    MessageRole,
    OpenAILLMService,
)
from video_rag.infrastructure.transcription import (
    AssemblyAITranscriptionService,
    TranscriptionJob,
    TranscriptionJobStatus,
    TranscriptionResult,
    TranscriptionServiceBase,
)
from video_rag.infrastructure.video import (
    AudioExtractorBase,
    ExtractedFrame,
    FFmpegAudioExtractor,
    FFmpegFrameExtractor,
    FrameExtractorBase,
    VideoInfo,
)

__all__ = [
    # Factory
    "InfrastructureFactory",
    # Transcription
    "TranscriptionServiceBase",
    "TranscriptionResult",
    "TranscriptionJob",
    "TranscriptionJobStatus",
    "AssemblyAITranscriptionService",
    # Embeddings
    "TextEmbeddingServiceBase",
    "ImageEmbeddingServiceBase",
    "EmbeddingResult",
    "EmbeddingModality",
    "OpenAIEmbeddingService",
    "CLIPEmbeddingService",
    "VisualEmbeddingService",
    # LLM
    "LLMServiceBase",
    "LLMResponse",
    "LLMUsage",
    "Message",
    "MessageRole",
    "OpenAILLMService",
    "AnthropicLLMService",
    # Video
    "FrameExtractorBase",
    "AudioExtractorBase",
    "VideoInfo",
    "ExtractedFrame",
    "FFmpegFrameExtractor",
    "FFmpegAudioExtractor",
]
