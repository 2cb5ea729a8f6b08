"""Qdrant implementation of vector database."""

import time
import uuid
from typing import Any, ClassVar

from qdrant_client import AsyncQdrantClient, models

from video_rag.commons.concurrency import PollTimeoutError, poll_until
from video_rag.commons.infrastructure.health import HealthStatus
from video_rag.commons.infrastructure.vectordb.base import (
    CollectionSchema,
    CollectionStats,
    SearchResult,
    VectorDBBase,
    VectorPoint,
)
from video_rag.commons.telemetry import get_logger

logger = get_logger(__name__)

RECORD_ID_FIELD = "record_id"


def point_id_for(record_id: str) -> str:
    """Map a record ID to the UUID Qdrant stores it under."""
    return str(uuid.uuid5(uuid.NAMESPACE_URL, record_id))


class QdrantVectorDB(VectorDBBase):
    """Qdrant implementation of vector database.

    Supports both local Qdrant and Qdrant Cloud. Qdrant only accepts
    unsigned integers and UUIDs as point IDs, so record IDs are mapped
    through uuid5 and kept in the payload under `record_id`.
    """

    DISTANCES: ClassVar[dict[str, models.Distance]] = {
        "cosine": models.Distance.COSINE,
        "euclidean": models.Distance.EUCLID,
        "dot": models.Distance.DOT,
    }

    FIELD_SCHEMAS: ClassVar[dict[str, models.PayloadSchemaType]] = {
        "keyword": models.PayloadSchemaType.KEYWORD,
        "integer": models.PayloadSchemaType.INTEGER,
        "float": models.PayloadSchemaType.FLOAT,
        "text": models.PayloadSchemaType.TEXT,
    }

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6333,
        grpc_port: int = 6334,
        api_key: str | None = None,
        url: str | None = None,
        prefer_grpc: bool = False,
        https: bool = False,
        flush_attempts: int = 60,
        flush_interval: float = 1.0,
        client: AsyncQdrantClient | None = None,
    ) -> None:
        """Initialize Qdrant client.

        Args:
            host: Qdrant server host.
            port: Qdrant HTTP port.
            grpc_port: Qdrant gRPC port.
            api_key: API key for Qdrant Cloud.
            url: Full URL (overrides host/port, for Qdrant Cloud).
            prefer_grpc: Use gRPC for operations.
            https: Use TLS when connecting by host/port.
            flush_attempts: Readiness polls made by flush().
            flush_interval: Seconds between readiness polls.
            client: Pre-built client, mainly for tests.
        """
        if client is not None:
            self._client = client
        elif url:
            self._client = AsyncQdrantClient(
                url=url,
                api_key=api_key,
                prefer_grpc=prefer_grpc,
            )
        else:
            self._client = AsyncQdrantClient(
                host=host,
                port=port,
                grpc_port=grpc_port,
                api_key=api_key,
                prefer_grpc=prefer_grpc,
                https=https,
            )
        self._host = url or host
        self._port = port
        self._flush_attempts = flush_attempts
        self._flush_interval = flush_interval

    async def create_collection(self, schema: CollectionSchema) -> bool:
        """Create a collection with its payload indexes."""
        if await self.collection_exists(schema.name):
            return False

        await self._client.create_collection(
            collection_name=schema.name,
            vectors_config=models.VectorParams(
                size=schema.vector_size,
                distance=self.DISTANCES[schema.distance],
            ),
        )
        await self.ensure_payload_indexes(schema)
        logger.info(
            "Created collection",
            extra={"collection": schema.name, "vector_size": schema.vector_size},
        )
        return True

    async def delete_collection(self, name: str) -> bool:
        """Delete a collection."""
        if not await self.collection_exists(name):
            return False

        await self._client.delete_collection(collection_name=name)
        return True

    async def collection_exists(self, name: str) -> bool:
        """Check if collection exists."""
        return bool(await self._client.collection_exists(collection_name=name))

    async def get_vector_size(self, name: str) -> int | None:
        """Read the stored vector dimension of a collection."""
        if not await self.collection_exists(name):
            return None

        info = await self._client.get_collection(collection_name=name)
        vectors = info.config.params.vectors
        if isinstance(vectors, models.VectorParams):
            return int(vectors.size)
        # Named vectors: this service only ever writes one unnamed vector
        if isinstance(vectors, dict) and vectors:
            return int(next(iter(vectors.values())).size)
        return None

    async def ensure_payload_indexes(self, schema: CollectionSchema) -> list[str]:
        """Create the schema's payload indexes that are not there yet."""
        info = await self._client.get_collection(collection_name=schema.name)
        existing = set((info.payload_schema or {}).keys())

        created: list[str] = []
        for payload_field in schema.fields:
            if payload_field.name in existing:
                continue
            await self._client.create_payload_index(
                collection_name=schema.name,
                field_name=payload_field.name,
                field_schema=self.FIELD_SCHEMAS[payload_field.type],
            )
            created.append(payload_field.name)

        if created:
            logger.info(
                "Created payload indexes",
                extra={"collection": schema.name, "fields": created},
            )
        return created

    async def wait_until_ready(
        self,
        name: str,
        attempts: int,
        interval: float,
    ) -> bool:
        """Poll until the collection status turns green."""

        async def fetch() -> models.CollectionStatus:
            info = await self._client.get_collection(collection_name=name)
            return info.status

        try:
            await poll_until(
                fetch,
                lambda status: status == models.CollectionStatus.GREEN,
                interval=interval,
                timeout=attempts * interval,
            )
        except PollTimeoutError:
            logger.warning(
                "Collection not ready in time",
                extra={"collection": name, "attempts": attempts},
            )
            return False
        return True

    async def upsert(
        self,
        collection: str,
        points: list[VectorPoint],
    ) -> int:
        """Insert or update vectors."""
        if not points:
            return 0

        qdrant_points = [
            models.PointStruct(
                id=point_id_for(point.id),
                vector=point.vector,
                payload={**point.payload, RECORD_ID_FIELD: point.id},
            )
            for point in points
        ]

        await self._client.upsert(
            collection_name=collection,
            points=qdrant_points,
            wait=True,
        )
        return len(points)

    async def search(
        self,
        collection: str,
        query_vector: list[float],
        limit: int = 10,
        filters: dict[str, Any] | None = None,
        score_threshold: float | None = None,
    ) -> list[SearchResult]:
        """Search for similar vectors."""
        qdrant_filter = self._build_filter(filters) if filters else None

        response = await self._client.query_points(
            collection_name=collection,
            query=query_vector,
            limit=limit,
            query_filter=qdrant_filter,
            score_threshold=score_threshold,
            with_payload=True,
        )

        results: list[SearchResult] = []
        for point in response.points:
            payload = point.payload or {}
            results.append(
                SearchResult(
                    id=str(payload.get(RECORD_ID_FIELD, point.id)),
                    score=point.score or 0.0,
                    payload=payload,
                )
            )
        return results

    async def delete_by_filter(
        self,
        collection: str,
        filters: dict[str, Any],
    ) -> int:
        """Delete vectors matching filter."""
        if not await self.collection_exists(collection):
            return 0

        count_before = await self.count(collection, filters)
        if count_before == 0:
            return 0

        await self._client.delete(
            collection_name=collection,
            points_selector=models.FilterSelector(filter=self._build_filter(filters)),
            wait=True,
        )

        count_after = await self.count(collection, filters)
        return count_before - count_after

    async def count(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
    ) -> int:
        """Count vectors in collection."""
        qdrant_filter = self._build_filter(filters) if filters else None

        result = await self._client.count(
            collection_name=collection,
            count_filter=qdrant_filter,
            exact=True,
        )
        return int(result.count)

    async def flush(self, collection: str) -> bool:
        """Wait until pending updates are applied and optimized."""
        return await self.wait_until_ready(
            collection, self._flush_attempts, self._flush_interval
        )

    async def get_collection_stats(self, name: str) -> CollectionStats:
        """Describe a collection."""
        if not await self.collection_exists(name):
            return CollectionStats(name=name, exists=False)

        info = await self._client.get_collection(collection_name=name)
        return CollectionStats(
            name=name,
            exists=True,
            vector_size=await self.get_vector_size(name),
            points_count=info.points_count or 0,
            indexed_vectors_count=info.indexed_vectors_count or 0,
            status=str(getattr(info.status, "value", info.status)),
            indexed_fields=sorted((info.payload_schema or {}).keys()),
        )

    async def health_check(self) -> HealthStatus:
        """Check service health."""
        start = time.perf_counter()
        try:
            await self._client.get_collections()
            latency_ms = (time.perf_counter() - start) * 1000
            return HealthStatus(
                healthy=True,
                latency_ms=latency_ms,
                message="Qdrant is healthy",
                details={"host": self._host, "port": str(self._port)},
            )
        except Exception as e:
            latency_ms = (time.perf_counter() - start) * 1000
            return HealthStatus(
                healthy=False,
                latency_ms=latency_ms,
                message=f"Qdrant health check failed: {e}",
                details={"host": self._host, "port": str(self._port), "error": str(e)},
            )

    def _build_filter(self, filters: dict[str, Any]) -> models.Filter:
        """Build Qdrant filter from dict.

        Supports:
        - Simple equality: {"field": "value"}
        - Range: {"field": {"$gte": 10, "$lt": 20}}
        - In list: {"field": {"$in": [1, 2, 3]}}
        """
        conditions: list[models.Condition] = []

        for key, value in filters.items():
            if not isinstance(value, dict):
                conditions.append(
                    models.FieldCondition(
                        key=key,
                        match=models.MatchValue(value=value),
                    )
                )
                continue

            range_args: dict[str, Any] = {}
            for op, op_value in value.items():
                if op in ("$gte", "$gt", "$lte", "$lt"):
                    range_args[op[1:]] = op_value
                elif op == "$in":
                    conditions.append(
                        models.FieldCondition(
                            key=key,
                            match=models.MatchAny(any=op_value),
                        )
                    )
                else:
                    raise ValueError(f"Unsupported filter operator: {op}")
            if range_args:
                conditions.append(
                    models.FieldCondition(key=key, range=models.Range(**range_args))
                )

        return models.Filter(must=conditions)

    async def close(self) -> None:
        """Close the client connection."""
        await self._client.close()
