"""News sources - per-site listing and detail fetching."""

from dataclasses import dataclass
from datetime import UTC, datetime
import logging
from typing import Any, Protocol

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    wait_incrementing,
)
from tenacity.wait import wait_base

from newsdesk.crawler.detail import DetailResult, is_thin_body, parse_detail
from newsdesk.crawler.fetcher import FetchError, PageFetcher
from newsdesk.crawler.listing import ListingItem, parse_listing

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Category:
    """A listing page to crawl and the label its articles are filed under."""

    url: str
    label: str

    @classmethod
    def from_config(cls, entry: dict[str, Any]) -> "Category":
        return cls(url=entry["url"], label=entry["category"])


class NewsSource(Protocol):
    """Capabilities the orchestrator needs from a news site."""

    name: str
    categories: list[Category]

    async def fetch_listing(self, category: Category) -> list[ListingItem]:
        """Fetch a category page and return its candidate articles."""
        ...

    async def fetch_detail(self, url: str) -> DetailResult:
        """Fetch and parse one article page. Must not raise."""
        ...


class NamuNewsSource:
    """namu.news aggregator: category listings plus article detail pages."""

    def __init__(
        self,
        fetcher: PageFetcher,
        categories: list[Category],
        *,
        base_url: str = "https://namu.news",
        site_name: str = "나무뉴스",
        max_per_category: int = 25,
        detail_attempts: int = 2,
        retry_wait: wait_base | None = None,
    ):
        self.name = "NamuNewsCrawler"
        self.fetcher = fetcher
        self.categories = categories
        self.base_url = base_url
        self.site_name = site_name
        self.max_per_category = max_per_category
        # Thin or failed detail responses are re-fetched with a growing delay
        self._detail_retrying = AsyncRetrying(
            stop=stop_after_attempt(detail_attempts),
            wait=retry_wait or wait_incrementing(start=0.5, increment=0.2),
            retry=retry_if_result(is_thin_body) | retry_if_exception_type(FetchError),
            retry_error_callback=lambda state: state.outcome.result(),
        )

    async def fetch_listing(self, category: Category) -> list[ListingItem]:
        html = await self.fetcher.fetch(category.url)
        return parse_listing(
            html,
            category.label,
            base_url=self.base_url,
            limit=self.max_per_category,
            now=datetime.now(UTC),
        )

    async def fetch_detail(self, url: str) -> DetailResult:
        try:
            # copy() keeps retry state per call; detail fetches run concurrently
            html = await self._detail_retrying.copy()(self.fetcher.fetch, url)
        except FetchError as e:
            logger.warning("[%s] Detail fetch failed for %s: %s", self.name, url, e)
            return DetailResult.placeholder(url, self.site_name, fetch_failed=True)
        return parse_detail(html, url, base_url=self.base_url, site_name=self.site_name)
