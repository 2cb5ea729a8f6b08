"""LLM services."""

from video_rag.infrastructure.llm.anthropic_llm import AnthropicLLMService
from video_rag.infrastructure.llm.base import (
    LLMResponse,
    LLMServiceBase,
    LLMUsage,
    Message,
    MessageRole,
)
from video_rag.infrastructure.llm.openai_llm import OpenAILLMService

__all__ = [
    # Base classes
    "LLMServiceBase",
    "LLMResponse",
    "LLMUsage",
    "Message",
    "MessageRole",
    # Implementations
    "AnthropicLLMService",
    "OpenAILLMService",
]
