"""News query API endpoints."""

from datetime import datetime
import math

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.db.postgres import get_session as get_db
from newsdesk.models import NewsArticle, NewsDetail
from newsdesk.schemas.news import (
    NewsDetailResponse,
    NewsListItem,
    NewsListResponse,
    NewsSummaryDetail,
    NewsWithDetailResponse,
    Pagination,
)
from newsdesk.services.news_service import NewsService

router = APIRouter()


def _detail_response(detail: NewsDetail) -> NewsDetailResponse:
    return NewsDetailResponse(
        content=detail.content,
        author=detail.author,
        source=detail.source,
        tags=detail.tag_list,
        view_count=detail.view_count,
        like_count=detail.like_count,
        comment_count=detail.comment_count,
        created_at=detail.created_at,
    )


def _list_item(article: NewsArticle, detail: NewsDetail | None) -> NewsListItem:
    item = NewsListItem.model_validate(article)
    if detail is not None:
        item.detail = NewsSummaryDetail.model_validate(detail)
    return item


@router.get("", response_model=NewsListResponse)
async def list_news(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    category: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    db: AsyncSession = Depends(get_db),
) -> NewsListResponse:
    """
    List stored news, newest first.

    - category: Filter by category label
    - start_date / end_date: Filter by publication time
    """
    rows, total = await NewsService(db).get_news(
        page=page,
        limit=limit,
        category=category,
        start_date=start_date,
        end_date=end_date,
    )
    return NewsListResponse(
        data=[_list_item(article, detail) for article, detail in rows],
        pagination=Pagination(
            page=page,
            limit=limit,
            total=total,
            total_pages=math.ceil(total / limit),
        ),
    )


@router.get("/{news_id}", response_model=NewsWithDetailResponse)
async def get_news(
    news_id: int,
    db: AsyncSession = Depends(get_db),
) -> NewsWithDetailResponse:
    """Get a specific article together with its parsed detail."""
    found = await NewsService(db).get_news_detail(news_id)
    if found is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"News {news_id} not found",
        )
    article, detail = found
    response = NewsWithDetailResponse.model_validate(article)
    if detail is not None:
        response.detail = _detail_response(detail)
    return response
