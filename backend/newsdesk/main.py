"""FastAPI application entry point."""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager, suppress
from datetime import UTC, datetime
import logging

from fastapi import FastAPI

from newsdesk.api.v1.router import api_router
from newsdesk.config import get_settings
from newsdesk.crawler.cache import DetailCache
from newsdesk.crawler.fetcher import PageFetcher
from newsdesk.crawler.orchestrator import create_orchestrator
from newsdesk.crawler.scheduler import run_periodically

logger = logging.getLogger(__name__)


def configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup/shutdown events."""
    # Startup
    settings = get_settings()
    configure_logging(settings.debug)
    logger.info("Starting %s in %s mode", settings.app_name, settings.environment)

    from newsdesk.db.postgres import async_session, init_db

    await init_db()
    logger.info("Database tables initialized")

    fetcher = PageFetcher(settings.crawl_timeout_ms, settings.user_agent)
    cache = DetailCache(settings.cache_ttl_seconds)
    app.state.orchestrator = create_orchestrator(settings, fetcher, async_session, cache)

    scheduler: asyncio.Task[None] | None = None
    if settings.scheduler_enabled:
        scheduler = asyncio.create_task(
            run_periodically(
                app.state.orchestrator,
                settings.crawl_interval_hours * 3600,
                run_immediately=settings.crawl_on_startup,
            )
        )

    yield

    # Shutdown
    logger.info("Shutting down...")
    if scheduler is not None:
        scheduler.cancel()
        with suppress(asyncio.CancelledError):
            await scheduler
    cache.clear()
    await fetcher.aclose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Crawls namu.news category feeds and serves the stored articles",
        version="0.1.0",
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )

    # Include API router
    app.include_router(api_router, prefix=settings.api_prefix)

    @app.get("/")
    async def api_info() -> dict[str, object]:
        """Service information and available endpoints."""
        prefix = settings.api_prefix
        return {
            "message": f"{settings.app_name} API",
            "version": "0.1.0",
            "endpoints": {
                "health": {"path": "/health", "method": "GET"},
                "news": {"path": f"{prefix}/news", "method": "GET"},
                "news_detail": {"path": f"{prefix}/news/{{id}}", "method": "GET"},
                "crawl": {"path": f"{prefix}/crawl", "method": "POST"},
                "crawl_logs": {"path": f"{prefix}/crawl/logs", "method": "GET"},
                "stats": {"path": f"{prefix}/stats", "method": "GET"},
            },
            "timestamp": datetime.now(UTC).isoformat(),
        }

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        from newsdesk.db.postgres import check_connection

        connected = await check_connection()
        return {
            "status": "healthy" if connected else "degraded",
            "app": settings.app_name,
            "database": "connected" if connected else "disconnected",
        }

    return app


app = create_app()
