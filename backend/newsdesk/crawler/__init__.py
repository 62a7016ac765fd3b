"""Crawler package - namu.news listing/detail extraction and crawl runs."""

from newsdesk.crawler.cache import DetailCache
from newsdesk.crawler.detail import DetailResult, parse_detail
from newsdesk.crawler.fetcher import FetchError, FetchTimeoutError, PageFetcher
from newsdesk.crawler.listing import ListingItem, normalize_title, parse_listing
from newsdesk.crawler.orchestrator import CrawlOrchestrator, CrawlResult, create_orchestrator
from newsdesk.crawler.source import Category, NamuNewsSource, NewsSource

__all__ = [
    # Extraction
    "ListingItem",
    "parse_listing",
    "normalize_title",
    "DetailResult",
    "parse_detail",
    # Fetching
    "PageFetcher",
    "FetchError",
    "FetchTimeoutError",
    # Sources
    "Category",
    "NewsSource",
    "NamuNewsSource",
    # Runs
    "DetailCache",
    "CrawlOrchestrator",
    "CrawlResult",
    "create_orchestrator",
]
