"""Crawl run orchestration: listing -> dedup -> persist -> details -> backfill."""

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from newsdesk.config import Settings
from newsdesk.crawler.cache import DetailCache
from newsdesk.crawler.fetcher import PageFetcher
from newsdesk.crawler.listing import ListingItem
from newsdesk.crawler.source import Category, NamuNewsSource, NewsSource
from newsdesk.models import NewsDetail
from newsdesk.services.news_service import NewsService

logger = logging.getLogger(__name__)


@dataclass
class CrawlResult:
    """Outcome of a crawl run as reported to callers."""

    success: bool
    item_count: int
    skipped: bool = False


class CrawlOrchestrator:
    """
    Drives one crawl run at a time for a single news source.

    Categories are fetched sequentially with a fixed delay between them.
    Detail pages for newly stored articles are fetched concurrently, bounded
    by a semaphore, and joined before the backfill sweep runs. Failures of a
    single category or detail task are logged and never abort the run; any
    other exception marks the run as failed in the crawl log and is re-raised.
    """

    def __init__(
        self,
        source: NewsSource,
        session_factory: async_sessionmaker[AsyncSession],
        cache: DetailCache,
        *,
        request_delay_ms: int = 800,
        backfill_limit: int = 30,
        backfill_delay_ms: int = 200,
        detail_concurrency: int = 5,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.source = source
        self.session_factory = session_factory
        self.cache = cache
        self.request_delay_ms = request_delay_ms
        self.backfill_limit = backfill_limit
        self.backfill_delay_ms = backfill_delay_ms
        self._detail_slots = asyncio.Semaphore(detail_concurrency)
        self._run_lock = asyncio.Lock()
        self._sleep = sleep

    @property
    def name(self) -> str:
        return self.source.name

    @property
    def is_running(self) -> bool:
        return self._run_lock.locked()

    @asynccontextmanager
    async def _store(self) -> AsyncIterator[NewsService]:
        # One session per unit of work; sessions are never shared across tasks
        async with self.session_factory() as session:
            yield NewsService(session)

    async def crawl_news(self) -> CrawlResult:
        """
        Run a full crawl.

        Returns:
            CrawlResult with the number of new articles stored. If a run is
            already in progress the call returns immediately with skipped=True.
        """
        if self._run_lock.locked():
            logger.warning("[%s] Crawl already running, skipping", self.name)
            return CrawlResult(success=False, item_count=0, skipped=True)

        async with self._run_lock:
            return await self._run()

    async def _run(self) -> CrawlResult:
        async with self._store() as store:
            log_id = await store.create_crawl_log("started")

        item_count = 0
        detail_tasks: list[asyncio.Task[NewsDetail | None]] = []
        try:
            logger.info("[%s] Crawl started", self.name)
            items = await self.crawl_categories()
            new_items = await self.filter_new_articles(items)

            for item in new_items:
                async with self._store() as store:
                    article = await store.create_article(item)
                if article is None:
                    continue
                item_count += 1
                detail_tasks.append(
                    asyncio.create_task(self._bounded_detail(article.id, item.url))
                )

            await self._join_detail_tasks(detail_tasks)

            try:
                await self.backfill_details()
            except Exception as e:
                logger.error("[%s] Backfill sweep failed: %s", self.name, e)

            await self._finish_log(log_id, "success", f"{item_count}개 뉴스 수집 완료", item_count)
            logger.info("[%s] Crawl finished: %d new articles", self.name, item_count)
            return CrawlResult(success=True, item_count=item_count)

        except BaseException as e:
            if isinstance(e, asyncio.CancelledError):
                logger.warning("[%s] Crawl cancelled", self.name)
                message = "cancelled"
            else:
                logger.exception("[%s] Crawl failed", self.name)
                message = str(e)
            for task in detail_tasks:
                task.cancel()
            await asyncio.gather(*detail_tasks, return_exceptions=True)
            # The terminal log update survives a repeated cancel
            await asyncio.shield(self._finish_log(log_id, "error", message, item_count))
            raise

    async def _finish_log(self, log_id: int, status: str, message: str, item_count: int) -> None:
        async with self._store() as store:
            await store.update_crawl_log(log_id, status, message, item_count)

    async def crawl_categories(self) -> list[ListingItem]:
        """Fetch every configured category in order; a failing category is skipped."""
        collected: list[ListingItem] = []
        categories = self.source.categories
        for index, category in enumerate(categories):
            try:
                items = await self.source.fetch_listing(category)
                collected.extend(items)
                logger.info("[%s] %s: %d items", self.name, category.label, len(items))
            except Exception as e:
                logger.error("[%s] Category %s failed: %s", self.name, category.label, e)

            if index < len(categories) - 1:
                await self._sleep(self.request_delay_ms / 1000)
        return collected

    async def filter_new_articles(self, items: list[ListingItem]) -> list[ListingItem]:
        """Drop items whose url is already stored, using one batched lookup."""
        unique: dict[str, ListingItem] = {}
        for item in items:
            unique.setdefault(item.url, item)
        if not unique:
            return []

        async with self._store() as store:
            existing = await store.find_existing_urls(list(unique))
        return [item for url, item in unique.items() if url not in existing]

    async def fetch_and_save_detail(self, article_id: int, url: str) -> NewsDetail | None:
        """
        Fetch, parse and store the detail page of one article.

        Uses the detail cache so the same url is fetched at most once per TTL.
        Returns None when the page could not be fetched; the backfill sweep
        picks such articles up later.
        """
        detail, hit = await self.cache.get_or_load(url, self.source.fetch_detail)
        if hit:
            logger.debug("[%s] Detail cache hit: %s", self.name, url)
        if detail.fetch_failed:
            logger.warning("[%s] No detail stored for article %s", self.name, article_id)
            return None

        async with self._store() as store:
            return await store.create_detail(article_id, detail)

    async def _bounded_detail(self, article_id: int, url: str) -> NewsDetail | None:
        async with self._detail_slots:
            return await self.fetch_and_save_detail(article_id, url)

    async def _join_detail_tasks(self, tasks: list[asyncio.Task[NewsDetail | None]]) -> None:
        if not tasks:
            return
        outcomes = await asyncio.gather(*tasks, return_exceptions=True)
        failed = 0
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                failed += 1
                logger.error("[%s] Detail task failed: %r", self.name, outcome)
        logger.info(
            "[%s] Detail tasks finished: %d ok, %d failed", self.name, len(tasks) - failed, failed
        )

    async def backfill_details(self) -> int:
        """
        Fetch details for stored articles that never got one.

        Returns:
            Number of detail records written
        """
        async with self._store() as store:
            targets = await store.find_articles_missing_detail(self.backfill_limit)
        if not targets:
            return 0
        logger.info("[%s] Backfill targets: %d (limit=%d)", self.name, len(targets), self.backfill_limit)

        written = 0
        attempted = 0
        for article in targets:
            if not article.url:
                continue
            if attempted:
                await self._sleep(self.backfill_delay_ms / 1000)
            attempted += 1
            try:
                detail = await self.fetch_and_save_detail(article.id, article.url)
            except Exception as e:
                logger.warning("[%s] Backfill failed for article %s: %s", self.name, article.id, e)
                continue
            if detail is not None:
                written += 1
                logger.info("[%s] Backfilled article %s", self.name, article.id)
        return written


def create_orchestrator(
    settings: Settings,
    fetcher: PageFetcher,
    session_factory: async_sessionmaker[AsyncSession],
    cache: DetailCache | None = None,
) -> CrawlOrchestrator:
    """Wire the namu.news source, cache and store into an orchestrator."""
    source = NamuNewsSource(
        fetcher,
        [Category.from_config(entry) for entry in settings.categories],
        base_url=settings.site_base_url,
        site_name=settings.site_name,
        max_per_category=settings.max_news_per_category,
    )
    return CrawlOrchestrator(
        source,
        session_factory,
        cache or DetailCache(settings.cache_ttl_seconds),
        request_delay_ms=settings.request_delay_ms,
        backfill_limit=settings.backfill_detail_limit,
        backfill_delay_ms=settings.backfill_delay_ms,
        detail_concurrency=settings.detail_concurrency,
    )
