"""Service wiring — builds infrastructure adapters and hands them to the application layer.

The container is built once in the FastAPI lifespan and stored on
``app.state``; request handlers reach it through the ``get_*`` dependencies.
"""

import logging
from dataclasses import dataclass, field

import httpx
from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine

from resume_rag.application.interfaces.cache import Cache
from resume_rag.application.services import (
    BackgroundProcessor,
    ContextOptimizer,
    EmbeddingService,
    IngestionService,
    PIIRedactor,
    RAGService,
    ResumeMetadataExtractor,
    SearchService,
    TextChunker,
    VectorIndexService,
)
from resume_rag.application.services.text_chunker import ChunkingOptions
from resume_rag.config import Settings
from resume_rag.infrastructure.cache import MemoryCache, RedisCache
from resume_rag.infrastructure.database import create_engine, create_session_factory, create_tables
from resume_rag.infrastructure.database.repositories import (
    SQLAlchemyDocumentRepository,
    SQLAlchemyIngestionJobRepository,
)
from resume_rag.infrastructure.extractors.resume_text_extractor import ResumeTextExtractor
from resume_rag.infrastructure.openrouter import OpenRouterClient, OpenRouterEmbeddingProvider
from resume_rag.infrastructure.qdrant import QdrantVectorIndex
from resume_rag.infrastructure.storage.local_object_storage import LocalObjectStorage

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Long-lived services shared by the API and the ingestion workers."""

    settings: Settings
    engine: AsyncEngine
    cache: Cache
    ingestion: IngestionService
    search: SearchService
    rag: RAGService
    processor: BackgroundProcessor
    _closeables: list = field(default_factory=list)

    async def close(self) -> None:
        for resource in reversed(self._closeables):
            try:
                await resource()
            except Exception:
                logger.exception("Error while releasing %r", resource)
        await self.engine.dispose()


async def _build_cache(settings: Settings) -> Cache:
    if settings.redis_url.strip():
        return await RedisCache.connect(settings.redis_url)
    logger.warning("REDIS_URL is not configured; using the in-process cache")
    return MemoryCache()


async def build_container(settings: Settings) -> ServiceContainer:
    """Connect every backing service and assemble the application services."""
    engine = create_engine(settings.database_url, echo=settings.log_level_sql == "DEBUG")
    await create_tables(engine)
    session_factory = create_session_factory(engine)

    documents = SQLAlchemyDocumentRepository(session_factory)
    jobs = SQLAlchemyIngestionJobRepository(session_factory)

    cache = await _build_cache(settings)
    index = await QdrantVectorIndex.connect(
        settings.qdrant_url,
        collection=settings.qdrant_collection,
        namespace=settings.vector_namespace,
        dimensions=settings.embedding_dimensions,
        api_key=settings.qdrant_api_key,
    )

    if not settings.openrouter_api_key.strip():
        logger.warning("OPENROUTER_API_KEY is not configured; embedding and answer calls will fail")
    http_client = httpx.AsyncClient(timeout=settings.openrouter_timeout)
    embedding_provider = OpenRouterEmbeddingProvider(
        api_key=settings.openrouter_api_key,
        base_url=settings.openrouter_base_url,
        app_name=settings.openrouter_app_name,
        model=settings.embedding_model,
        model_dimensions=settings.embedding_dimensions,
        http_client=http_client,
    )
    chat_provider = OpenRouterClient(
        api_key=settings.openrouter_api_key,
        base_url=settings.openrouter_base_url,
        app_name=settings.openrouter_app_name,
        http_client=http_client,
    )

    embeddings = EmbeddingService(embedding_provider, cache, ttl=settings.embedding_cache_ttl)
    vector_index = VectorIndexService(index, cache, ttl=settings.query_cache_ttl)
    storage = LocalObjectStorage(
        settings.storage_dir,
        settings.upload_dir,
        base_url=settings.storage_base_url,
        signing_key=settings.storage_signing_key,
    )

    ingestion = IngestionService(
        documents,
        jobs,
        ResumeTextExtractor(),
        PIIRedactor(),
        ResumeMetadataExtractor(),
        TextChunker(
            ChunkingOptions(
                max_chunk_size=settings.chunk_max_size,
                overlap_size=settings.chunk_overlap,
                preserve_paragraph_boundaries=settings.chunk_preserve_paragraphs,
            )
        ),
        embeddings,
        vector_index,
        storage,
        max_attempts=settings.ingestion_max_attempts,
    )
    search = SearchService(embeddings, vector_index, cache, ttl=settings.search_cache_ttl)
    rag = RAGService(
        search,
        ContextOptimizer(
            settings.context_max_tokens,
            settings.context_min_relevance,
            uniqueness_score=settings.context_uniqueness_score,
        ),
        chat_provider,
        cache,
        model=settings.completion_model,
        temperature=settings.completion_temperature,
        max_tokens=settings.completion_max_tokens,
        ttl=settings.answer_cache_ttl,
    )
    processor = BackgroundProcessor(
        jobs,
        ingestion,
        concurrency=settings.ingestion_concurrency,
        poll_interval=settings.ingestion_poll_interval,
        backoff_seconds=settings.ingestion_backoff_seconds,
        stale_after_seconds=settings.ingestion_stale_after_seconds,
    )

    closeables = [http_client.aclose, index.close]
    if isinstance(cache, RedisCache):
        closeables.append(cache.close)

    return ServiceContainer(
        settings=settings,
        engine=engine,
        cache=cache,
        ingestion=ingestion,
        search=search,
        rag=rag,
        processor=processor,
        _closeables=closeables,
    )


# ── FastAPI dependencies ─────────────────────────────────────────────


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def get_ingestion_service(request: Request) -> IngestionService:
    return get_container(request).ingestion


def get_search_service(request: Request) -> SearchService:
    return get_container(request).search


def get_rag_service(request: Request) -> RAGService:
    return get_container(request).rag
