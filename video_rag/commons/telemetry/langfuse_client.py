"""Langfuse integration for LLM observability."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from langfuse import Langfuse

from video_rag.commons.telemetry.logger import get_logger

if TYPE_CHECKING:
    from langfuse.client import StatefulGenerationClient

    from video_rag.commons.settings.models import LangfuseSettings

logger = get_logger(__name__)


class LangfuseTracer:
    """Records LLM generations in Langfuse.

    One tracer is built per application and handed to the LLM services.
    A tracer built from disabled or incomplete settings is a no-op, so
    callers never need to check whether tracing is on.
    """

    def __init__(self, client: Langfuse | None = None) -> None:
        self._client = client

    @classmethod
    def from_settings(cls, settings: LangfuseSettings) -> LangfuseTracer:
        """Build a tracer from settings.

        Args:
            settings: Langfuse configuration settings.

        Returns:
            An enabled tracer, or a no-op tracer when disabled or unconfigured.
        """
        if not settings.enabled:
            logger.info("Langfuse is disabled")
            return cls()

        if not settings.public_key or not settings.secret_key:
            logger.warning("Langfuse keys not configured, tracing disabled")
            return cls()

        client = Langfuse(
            public_key=settings.public_key,
            secret_key=settings.secret_key,
            host=settings.host,
            debug=settings.debug,
            sample_rate=settings.sample_rate,
            flush_at=settings.flush_at,
            flush_interval=settings.flush_interval,
        )
        logger.info("Langfuse initialized", extra={"host": settings.host})
        return cls(client)

    @property
    def enabled(self) -> bool:
        """Whether generations are actually recorded."""
        return self._client is not None

    def start_generation(
        self,
        name: str,
        model: str,
        input_messages: list[dict[str, Any]],
        model_parameters: dict[str, Any] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> StatefulGenerationClient | None:
        """Open a generation under a new trace.

        Tracing failures are logged and never break the LLM call.

        Args:
            name: Name of the generation (e.g., "chat_completion").
            model: Model identifier.
            input_messages: Input messages sent to the LLM.
            model_parameters: Model parameters (temperature, max_tokens, etc.).
            metadata: Additional metadata.

        Returns:
            The generation handle, or None if disabled.
        """
        if self._client is None:
            return None

        try:
            trace = self._client.trace(name=name, metadata=metadata or {})
            return trace.generation(
                name=name,
                model=model,
                input=input_messages,
                model_parameters=model_parameters or {},
                metadata=metadata or {},
            )
        except Exception as e:
            logger.error("Error creating LLM generation", extra={"error": str(e)})
            return None

    def end_generation(
        self,
        generation: StatefulGenerationClient | None,
        output: str | dict[str, Any] | None,
        usage: dict[str, int] | None = None,
        level: str = "DEFAULT",
        status_message: str | None = None,
    ) -> None:
        """Close a generation with its output and token usage.

        Args:
            generation: Handle returned by start_generation.
            output: The LLM output (text or structured).
            usage: Token usage dict with prompt/completion/total tokens.
            level: Langfuse level (DEFAULT, WARNING, ERROR).
            status_message: Optional status message.
        """
        if generation is None:
            return

        try:
            generation.end(
                output=output,
                usage=usage,
                level=level,
                status_message=status_message,
            )
        except Exception as e:
            logger.error("Error ending LLM generation", extra={"error": str(e)})

    def shutdown(self) -> None:
        """Flush pending events and release the client."""
        if self._client is None:
            return
        try:
            self._client.flush()
            self._client.shutdown()
            logger.info("Langfuse shutdown successfully")
        except Exception as e:
            logger.error("Error shutting down Langfuse", extra={"error": str(e)})
        finally:
            self._client = None
