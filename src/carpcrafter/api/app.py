"""FastAPI application factory for CarpCrafter."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from carpcrafter import __version__
from carpcrafter.api.deps import init_services, reset_services
from carpcrafter.api.middleware import (
    RequestBodyLimitMiddleware,
    RequestTimingMiddleware,
    SecurityHeadersMiddleware,
)
from carpcrafter.api.routers import generations, inventions, weather
from carpcrafter.api.schemas import HealthResponse
from carpcrafter.client.gemini import GeminiClient
from carpcrafter.service.artifact_store import ArtifactStore
from carpcrafter.service.orchestrator import GenerationOrchestrator
from carpcrafter.settings import Settings
from carpcrafter.storage.local import FileStorage


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Open the gallery and the generation client alongside the application."""
    settings: Settings = app.state.settings
    store = ArtifactStore(
        FileStorage(settings.storage_dir, quota_bytes=settings.storage_quota_bytes),
        key=settings.storage_key,
    )
    store.load()
    client = GeminiClient.from_settings(settings)
    init_services(store, GenerationOrchestrator(client))
    try:
        yield
    finally:
        await client.aclose()
        reset_services()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    if settings is None:
        settings = Settings()

    app = FastAPI(
        title="CarpCrafter",
        description="AI invention lab for carp anglers, with a local gallery.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # Middleware
    app.add_middleware(RequestBodyLimitMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestTimingMiddleware)

    app.include_router(generations.router, prefix="/generations", tags=["generations"])
    app.include_router(inventions.router, prefix="/inventions", tags=["inventions"])
    app.include_router(weather.router, prefix="/weather", tags=["weather"])

    @app.get("/health", response_model=HealthResponse, tags=["health"])
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", version=__version__)

    return app


def main() -> None:
    """Run the REST API server using settings from environment / .env file."""
    settings = Settings()

    logging.basicConfig(level=settings.log_level.upper())
    logger = logging.getLogger("carpcrafter.api")
    logger.info(
        "CarpCrafter API Server v%s starting (host=%s, port=%d, storage=%s)",
        __version__, settings.api_server_host, settings.effective_port, settings.storage_dir,
    )

    uvicorn.run(
        "carpcrafter.api.app:create_app",
        factory=True,
        host=settings.api_server_host,
        port=settings.effective_port,
        log_level=settings.log_level.lower(),
    )
