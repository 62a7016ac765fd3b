"""Models package - SQLModel database models."""

from newsdesk.models.news import CrawlLog, NewsArticle, NewsDetail

__all__ = ["NewsArticle", "NewsDetail", "CrawlLog"]
