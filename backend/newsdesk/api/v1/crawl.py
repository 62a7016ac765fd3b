"""Crawl trigger and crawl log endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.crawler.orchestrator import CrawlOrchestrator
from newsdesk.db.postgres import get_session as get_db
from newsdesk.schemas.news import CrawlLogListResponse, CrawlLogResponse, CrawlRunResponse
from newsdesk.services.news_service import NewsService

logger = logging.getLogger(__name__)

router = APIRouter()


def get_orchestrator(request: Request) -> CrawlOrchestrator:
    """Dependency returning the orchestrator built at startup."""
    return request.app.state.orchestrator


@router.post("", response_model=CrawlRunResponse)
async def run_crawl(
    orchestrator: CrawlOrchestrator = Depends(get_orchestrator),
) -> CrawlRunResponse:
    """Run a crawl now and wait for it to finish."""
    try:
        result = await orchestrator.crawl_news()
    except Exception as e:
        logger.error("Manual crawl failed: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Crawl failed: {e}",
        ) from e

    if result.skipped:
        message = "A crawl is already running"
    else:
        message = f"{result.item_count} new articles stored"
    return CrawlRunResponse(
        success=result.success,
        item_count=result.item_count,
        skipped=result.skipped,
        message=message,
    )


@router.get("/logs", response_model=CrawlLogListResponse)
async def list_crawl_logs(
    limit: int = Query(default=50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
) -> CrawlLogListResponse:
    """Crawl run history, newest first."""
    logs = await NewsService(db).get_crawl_logs(limit=limit)
    return CrawlLogListResponse(data=[CrawlLogResponse.model_validate(log) for log in logs])
