"""Retrieval and grounded answer generation for indexed videos."""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from video_rag.application.dtos.query import (
    ChunkDTO,
    QueryVideoResponse,
    SearchMetadata,
    VideoSummaryDTO,
)
from video_rag.application.services.batch_insert import PROBE_VALUE
from video_rag.application.services.collections import CollectionManager
from video_rag.application.services.video_repository import VideoRepository
from video_rag.commons.infrastructure.vectordb import SearchResult, VectorDBBase
from video_rag.commons.settings.models import Settings
from video_rag.commons.telemetry import LogContext, get_logger, timed
from video_rag.domain.exceptions import (
    InvalidInputException,
    NoRelevantContentException,
    VideoNotFoundException,
    VideoNotIndexedException,
)
from video_rag.domain.models.video import VideoRecord, VideoStatus, format_timestamp
from video_rag.infrastructure.embeddings.base import TextEmbeddingServiceBase
from video_rag.infrastructure.llm.base import LLMServiceBase, Message, MessageRole

MAX_QUERY_CHARS = 1000
PREVIEW_CHARS = 200
ANSWER_TEMPERATURE = 0.3
ANSWER_MAX_TOKENS = 1024
REFUSAL_MARKER = "i cannot find enough information about"


def refusal_phrase(query: str) -> str:
    """Sentence the model must use when the context cannot answer the query."""
    return (
        f"I cannot find enough information about '{query}' in this video transcript."
    )


@dataclass
class RetrievedChunk:
    """A transcript chunk returned by the similarity search."""

    text: str
    timestamp: float | None
    chunk_index: int | None
    strategy: str | None
    score: float

    @classmethod
    def from_search_result(cls, result: SearchResult) -> "RetrievedChunk":
        payload = result.payload
        timestamp = payload.get("timestamp")
        chunk_index = payload.get("chunk_index")
        return cls(
            text=str(payload.get("text_chunk") or ""),
            timestamp=float(timestamp) if timestamp is not None else None,
            chunk_index=int(chunk_index) if chunk_index is not None else None,
            strategy=payload.get("strategy"),
            score=result.score,
        )

    @property
    def timestamp_formatted(self) -> str | None:
        if self.timestamp is None:
            return None
        return format_timestamp(self.timestamp)


def build_context(chunks: list[RetrievedChunk]) -> str:
    """Number the chunks and label each with its timestamp."""
    lines = []
    for n, chunk in enumerate(chunks, 1):
        label = (
            f"[{chunk.timestamp_formatted}]"
            if chunk.timestamp_formatted is not None
            else "[No timestamp]"
        )
        lines.append(f"Context {n} {label}: {chunk.text}")
    return "\n\n".join(lines)


def is_refusal(answer: str) -> bool:
    """Whether an answer is the model declining for lack of context."""
    return REFUSAL_MARKER in answer.lower()


def truncate_preview(text: str, limit: int = PREVIEW_CHARS) -> str:
    """Shorten text for display, marking the cut with an ellipsis."""
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


class VideoQueryService:
    """Answers questions about one indexed video.

    The question is embedded with the same provider used at indexing time,
    the video's transcript chunks are searched, and the language model
    answers from those chunks only.
    """

    def __init__(
        self,
        videos: VideoRepository,
        collections: CollectionManager,
        vector_db: VectorDBBase,
        text_embedding_service: TextEmbeddingServiceBase,
        llm_service: LLMServiceBase,
        settings: Settings,
    ) -> None:
        """Initialize query service with dependencies.

        Args:
            videos: Video metadata repository.
            collections: Vector collection manager.
            vector_db: Vector store to search.
            text_embedding_service: Provider used to index transcripts.
            llm_service: Answer generation provider.
            settings: Application settings.
        """
        self._videos = videos
        self._collections = collections
        self._vector_db = vector_db
        self._embedder = text_embedding_service
        self._llm = llm_service
        self._settings = settings
        self._logger = get_logger(__name__)

    @timed
    async def query(
        self,
        video_id: str,
        query: str,
        limit: int | None = None,
    ) -> QueryVideoResponse:
        """Answer a question from the video's transcript.

        Args:
            video_id: ID of the video to query.
            query: Natural language question.
            limit: Chunks to retrieve; capped at the configured maximum.

        Returns:
            Answer with the chunks it was grounded on.

        Raises:
            InvalidInputException: If the query or video ID is unusable.
            VideoNotFoundException: If there is no such video.
            VideoNotIndexedException: If the video is not fully indexed.
            NoRelevantContentException: If the search finds nothing usable.
            EmbeddingGenerationException: If the query cannot be embedded.
            GenerationException: If the model fails to answer.
        """
        if not video_id or not video_id.strip():
            raise InvalidInputException("video_id", "must not be empty")
        if not query or not query.strip():
            raise InvalidInputException("query", "must not be empty")
        if len(query) > MAX_QUERY_CHARS:
            raise InvalidInputException(
                "query", f"must be at most {MAX_QUERY_CHARS} characters"
            )

        query = query.strip()
        vector_settings = self._settings.vector_db
        requested = limit if limit is not None else vector_settings.default_limit
        search_limit = max(1, min(requested, vector_settings.max_search_limit))

        with LogContext(video_id=video_id):
            video = await self._videos.get(video_id)
            if video is None:
                raise VideoNotFoundException(video_id)
            if video.status != VideoStatus.COMPLETED or not video.is_indexed:
                self._logger.warning(
                    "Video not ready for querying",
                    extra={"status": video.status.value},
                )
                raise VideoNotIndexedException(video_id, video.status)

            self._logger.info(
                "Starting video query",
                extra={"query": query[:100], "limit": search_limit},
            )

            chunks = await self._search(video_id, query, search_limit)
            if not chunks:
                raise NoRelevantContentException(video_id, query)

            answer = await self._generate_answer(video, query, chunks)

            self._logger.info(
                "Video query completed",
                extra={"chunks_used": len(chunks), "answer_length": len(answer)},
            )

        return QueryVideoResponse(
            query=query,
            video=VideoSummaryDTO(
                id=video.id,
                title=video.original_name,
                duration_seconds=video.duration_seconds,
                duration_formatted=video.duration_formatted,
                size_bytes=video.size_bytes,
                indexed_at=video.indexed_at,
            ),
            answer=answer,
            insufficient_context=is_refusal(answer),
            chunks=[
                ChunkDTO(
                    text=truncate_preview(c.text),
                    timestamp=c.timestamp,
                    timestamp_formatted=c.timestamp_formatted,
                    score=round(c.score, 2),
                    chunk_index=c.chunk_index,
                    strategy=c.strategy,
                )
                for c in chunks
            ],
            search_metadata=SearchMetadata(
                processed_at=datetime.now(UTC),
                collection=self._collections.text_schema.name,
                embedding_model=self._embedder.model_name,
                generative_model=self._llm.default_model,
                results_count=len(chunks),
            ),
        )

    async def _search(
        self,
        video_id: str,
        query: str,
        limit: int,
    ) -> list[RetrievedChunk]:
        embedding = await self._embedder.embed_text(query)

        async with self._collections.shared():
            results = await self._vector_db.search(
                self._collections.text_schema.name,
                embedding.vector,
                limit=limit,
                filters={"video_id": video_id},
            )

        chunks = [RetrievedChunk.from_search_result(r) for r in results]
        usable = [c for c in chunks if c.text.strip()]
        self._logger.debug(
            "Search completed",
            extra={"results": len(results), "usable": len(usable)},
        )
        return usable

    async def _generate_answer(
        self,
        video: VideoRecord,
        query: str,
        chunks: list[RetrievedChunk],
    ) -> str:
        duration = (
            video.duration_formatted if video.duration_seconds > 0 else "Unknown"
        )
        system_prompt = (
            "You are an intelligent video analysis assistant. Answer the user's "
            "query based strictly on the provided context from the video "
            "transcript."
        )
        user_prompt = (
            "Video Information:\n"
            f"- Title: {video.original_name or 'Unknown'}\n"
            f"- Duration: {duration}\n\n"
            "Context from Video Transcript:\n"
            f"{build_context(chunks)}\n\n"
            f'User Query: "{query}"\n\n'
            "Instructions:\n"
            "1. Answer based ONLY on the provided transcript context\n"
            "2. If timestamps are available, reference them in your response\n"
            "3. If the context doesn't contain sufficient information, clearly "
            f'state: "{refusal_phrase(query)}"\n'
            "4. Be specific and cite relevant parts of the transcript\n\n"
            "Answer:"
        )

        messages = [
            Message(role=MessageRole.SYSTEM, content=system_prompt),
            Message(role=MessageRole.USER, content=user_prompt),
        ]
        response = await self._llm.generate(
            messages=messages,
            temperature=ANSWER_TEMPERATURE,
            max_tokens=ANSWER_MAX_TOKENS,
        )
        return response.content.strip()

    async def probe(
        self,
        video_id: str | None = None,
        limit: int = 3,
    ) -> list[SearchResult]:
        """Search the text collection with a constant vector.

        Used by diagnostics to see whether anything is stored, optionally
        for one video only.
        """
        filters: dict[str, Any] | None = {"video_id": video_id} if video_id else None
        vector = [PROBE_VALUE] * self._collections.text_schema.vector_size
        async with self._collections.shared():
            return await self._vector_db.search(
                self._collections.text_schema.name,
                vector,
                limit=limit,
                filters=filters,
            )
