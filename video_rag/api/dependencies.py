"""FastAPI dependency injection for services and settings."""

from typing import Annotated

from fastapi import Depends, FastAPI, Request

from video_rag.application.services.collections import CollectionManager
from video_rag.application.services.indexing import VideoIndexingService
from video_rag.application.services.retrieval import VideoQueryService
from video_rag.application.services.video_repository import VideoRepository
from video_rag.commons.concurrency import KeyedLock
from video_rag.commons.settings.models import Settings
from video_rag.commons.telemetry import get_logger
from video_rag.infrastructure.factory import InfrastructureFactory

logger = get_logger(__name__)


def get_settings(request: Request) -> Settings:
    """Get the settings the application was created with.

    Args:
        request: Current HTTP request.

    Returns:
        Application settings.
    """
    settings: Settings = request.app.state.settings
    return settings


def get_infrastructure_factory(request: Request) -> InfrastructureFactory:
    """Get the application's infrastructure factory.

    Args:
        request: Current HTTP request.

    Returns:
        Factory shared by every request of this application.
    """
    factory: InfrastructureFactory = request.app.state.factory
    return factory


def get_collection_manager(request: Request) -> CollectionManager:
    """Get the application-wide collection manager."""
    manager: CollectionManager = request.app.state.collections
    return manager


def get_video_locks(request: Request) -> KeyedLock:
    """Get the per-video indexing locks."""
    locks: KeyedLock = request.app.state.video_locks
    return locks


def get_video_repository(
    factory: Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)],
) -> VideoRepository:
    """Get video metadata repository.

    Args:
        factory: Infrastructure factory.

    Returns:
        Repository over the configured document database.
    """
    return VideoRepository(
        document_db=factory.get_document_db(),
        settings=factory.settings.document_db,
    )


def get_indexing_service(
    factory: Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)],
    collections: Annotated[CollectionManager, Depends(get_collection_manager)],
    videos: Annotated[VideoRepository, Depends(get_video_repository)],
    video_locks: Annotated[KeyedLock, Depends(get_video_locks)],
) -> VideoIndexingService:
    """Get video indexing service with all dependencies.

    Args:
        factory: Infrastructure factory.
        collections: Collection manager.
        videos: Video metadata repository.
        video_locks: Per-video indexing locks.

    Returns:
        Configured video indexing service.
    """
    return VideoIndexingService(
        videos=videos,
        collections=collections,
        vector_db=factory.get_vector_db(),
        frame_extractor=factory.get_frame_extractor(),
        audio_extractor=factory.get_audio_extractor(),
        transcription_service=factory.get_transcription_service(),
        text_embedding_service=factory.get_text_embedding_service(),
        image_embedding_service=factory.get_image_embedding_service(),
        settings=factory.settings,
        video_locks=video_locks,
        text_rate_limiter=factory.get_rate_limiter("text_embedding"),
        image_rate_limiter=factory.get_rate_limiter("image_embedding"),
        insert_rate_limiter=factory.get_rate_limiter("vector_insert"),
    )


def get_query_service(
    factory: Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)],
    collections: Annotated[CollectionManager, Depends(get_collection_manager)],
    videos: Annotated[VideoRepository, Depends(get_video_repository)],
) -> VideoQueryService:
    """Get video query service with all dependencies.

    Args:
        factory: Infrastructure factory.
        collections: Collection manager.
        videos: Video metadata repository.

    Returns:
        Configured video query service.
    """
    return VideoQueryService(
        videos=videos,
        collections=collections,
        vector_db=factory.get_vector_db(),
        text_embedding_service=factory.get_text_embedding_service(),
        llm_service=factory.get_llm_service(),
        settings=factory.settings,
    )


# Type aliases for cleaner route signatures
SettingsDep = Annotated[Settings, Depends(get_settings)]
FactoryDep = Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)]
CollectionsDep = Annotated[CollectionManager, Depends(get_collection_manager)]
VideoRepositoryDep = Annotated[VideoRepository, Depends(get_video_repository)]
IndexingServiceDep = Annotated[VideoIndexingService, Depends(get_indexing_service)]
QueryServiceDep = Annotated[VideoQueryService, Depends(get_query_service)]


def build_collection_manager(factory: InfrastructureFactory) -> CollectionManager:
    """Create the collection manager sized from the embedding settings.

    No embedding client is created, so the app starts without credentials.
    """
    return CollectionManager(
        vector_db=factory.get_vector_db(),
        text_dimensions=factory.get_text_embedding_dimensions(),
        visual_dimensions=factory.get_image_embedding_dimensions(),
        settings=factory.settings.vector_db,
    )


def attach_services(app: FastAPI, settings: Settings) -> None:
    """Put the shared service objects on the application state.

    Providers are created lazily by the factory, so attaching performs no
    I/O.

    Args:
        app: FastAPI application.
        settings: Application settings.
    """
    factory = InfrastructureFactory(settings)
    app.state.settings = settings
    app.state.factory = factory
    app.state.collections = build_collection_manager(factory)
    app.state.video_locks = KeyedLock()


async def init_services(app: FastAPI) -> None:
    """Initialize infrastructure services on startup.

    Creates the video indexes and brings the vector collections in line
    with the embedding providers. Failures are logged and left for the
    health endpoints to report.

    Args:
        app: FastAPI application with services attached.
    """
    factory: InfrastructureFactory = app.state.factory
    collections: CollectionManager = app.state.collections

    try:
        await VideoRepository(
            factory.get_document_db(), factory.settings.document_db
        ).ensure_indexes()
    except Exception as e:
        logger.warning("Could not create video indexes", extra={"error": str(e)})

    try:
        await collections.ensure_ready()
    except Exception as e:
        logger.warning(
            "Could not prepare vector collections",
            extra={"error": str(e)},
        )


async def shutdown_services(app: FastAPI) -> None:
    """Shutdown all infrastructure services."""
    factory: InfrastructureFactory | None = getattr(app.state, "factory", None)
    if factory is None:
        return
    await factory.close_all()
