"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from resume_rag.config import get_settings
from resume_rag.infrastructure.dependencies import build_container
from resume_rag.infrastructure.logging.log_config import setup_logging
from resume_rag.presentation.api.router import router as api_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan — connect backing services, start the ingestion workers."""
    settings = get_settings()
    setup_logging(settings)

    # 1. Ensure upload and storage directories exist
    Path(settings.upload_dir).mkdir(parents=True, exist_ok=True)
    Path(settings.storage_dir).mkdir(parents=True, exist_ok=True)

    # 2. Database, cache, vector index and providers
    container = await build_container(settings)
    app.state.container = container

    # 3. Start background processor
    await container.processor.start()
    logger.info("%s %s ready", settings.app_title, settings.app_version)

    yield

    # Shutdown
    await container.processor.stop()
    await container.close()


def create_app() -> FastAPI:
    """Factory function that builds and configures the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_title,
        version=settings.app_version,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Mount API routes
    app.include_router(api_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "resume_rag.main:app",
        host="0.0.0.0",
        port=8020,
        reload=True,
    )
