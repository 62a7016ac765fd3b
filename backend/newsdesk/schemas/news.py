"""News schemas for API responses."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class NewsDetailResponse(BaseModel):
    """Parsed article body and metadata."""

    model_config = ConfigDict(from_attributes=True)

    content: str
    author: str
    source: str
    tags: list[str] = Field(default_factory=list)
    view_count: int | None = None
    like_count: int | None = None
    comment_count: int | None = None
    created_at: datetime


class NewsSummaryDetail(BaseModel):
    """Detail fields included in list responses."""

    model_config = ConfigDict(from_attributes=True)

    author: str
    source: str
    view_count: int | None = None
    like_count: int | None = None
    comment_count: int | None = None


class NewsResponse(BaseModel):
    """Schema for article responses."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    url: str
    image_url: str | None = None
    summary: str | None = None
    category: str
    published_at: datetime
    crawled_at: datetime


class NewsListItem(NewsResponse):
    detail: NewsSummaryDetail | None = None


class NewsWithDetailResponse(NewsResponse):
    detail: NewsDetailResponse | None = None


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class NewsListResponse(BaseModel):
    """Schema for paginated article list response."""

    success: bool = True
    data: list[NewsListItem]
    pagination: Pagination


class CrawlLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    status: str
    message: str | None = None
    item_count: int | None = None
    started_at: datetime
    finished_at: datetime | None = None
    duration_ms: int | None = None


class CrawlLogListResponse(BaseModel):
    success: bool = True
    data: list[CrawlLogResponse]


class CrawlRunResponse(BaseModel):
    success: bool
    item_count: int
    skipped: bool = False
    message: str


class NewsStatsResponse(BaseModel):
    total_news: int
    today_news: int
    category_stats: dict[str, int]
    recent_crawls: list[CrawlLogResponse]
