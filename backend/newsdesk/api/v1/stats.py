"""Statistics endpoint."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.db.postgres import get_session as get_db
from newsdesk.schemas.news import CrawlLogResponse, NewsStatsResponse
from newsdesk.services.news_service import NewsService

router = APIRouter()


@router.get("", response_model=NewsStatsResponse)
async def get_stats(db: AsyncSession = Depends(get_db)) -> NewsStatsResponse:
    """Article totals, per-category counts and the latest crawl runs."""
    stats = await NewsService(db).get_news_stats()
    return NewsStatsResponse(
        total_news=stats["total_news"],
        today_news=stats["today_news"],
        category_stats=stats["category_stats"],
        recent_crawls=[CrawlLogResponse.model_validate(log) for log in stats["recent_crawls"]],
    )
