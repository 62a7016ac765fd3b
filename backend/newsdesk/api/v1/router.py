"""API v1 main router - aggregates all endpoint routers."""

from fastapi import APIRouter

from newsdesk.api.v1 import crawl, news, stats

api_router = APIRouter()

api_router.include_router(news.router, prefix="/news", tags=["news"])
api_router.include_router(crawl.router, prefix="/crawl", tags=["crawl"])
api_router.include_router(stats.router, prefix="/stats", tags=["stats"])
