"""News service - persistence for articles, details and crawl logs."""

from datetime import UTC, datetime, time
import logging
from typing import Any

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from newsdesk.crawler.detail import DetailResult
from newsdesk.crawler.listing import ListingItem
from newsdesk.models import CrawlLog, NewsArticle, NewsDetail

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands timezone-aware columns back as naive values
    return value if value.tzinfo else value.replace(tzinfo=UTC)


class NewsService:
    """
    Store for crawled news.

    The database's unique constraints (article url, one detail per article)
    are the authority for concurrent writers; duplicate inserts are turned
    into no-ops here instead of errors.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    # ------------------------------------------------------------------
    # Crawl side
    # ------------------------------------------------------------------

    async def find_existing_urls(self, urls: list[str]) -> set[str]:
        """Return the subset of urls already stored, in a single query."""
        if not urls:
            return set()
        try:
            result = await self.session.execute(
                select(NewsArticle.url).where(NewsArticle.url.in_(set(urls)))
            )
        except SQLAlchemyError as e:
            logger.error("Existing url lookup failed: %s", e)
            return set()
        return set(result.scalars().all())

    async def create_article(self, item: ListingItem) -> NewsArticle | None:
        """Insert a main article record. Returns None if the url already exists."""
        now = datetime.now(UTC)
        article = NewsArticle(
            title=item.title,
            url=item.url,
            image_url=item.image_url,
            summary=item.summary,
            category=item.category,
            published_at=item.published_at or now,
            crawled_at=now,
            updated_at=now,
        )
        self.session.add(article)
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            logger.info("Skipping duplicate article: %s", item.url)
            return None
        await self.session.refresh(article)
        logger.debug("Saved article %s: %s", article.id, article.title)
        return article

    async def get_detail(self, article_id: int) -> NewsDetail | None:
        result = await self.session.execute(
            select(NewsDetail).where(NewsDetail.article_id == article_id)
        )
        return result.scalar_one_or_none()

    async def create_detail(self, article_id: int, detail: DetailResult) -> NewsDetail:
        """
        Insert the detail record for an article.

        Idempotent: if the article already has a detail (e.g. written by the
        backfill sweep in parallel), the existing record is returned.
        """
        now = datetime.now(UTC)
        record = NewsDetail(
            article_id=article_id,
            content=detail.content,
            author=detail.author,
            source=detail.source,
            tags=",".join(detail.tags),
            view_count=detail.view_count,
            like_count=detail.like_count,
            comment_count=detail.comment_count,
            created_at=now,
            updated_at=now,
        )
        self.session.add(record)
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            existing = await self.get_detail(article_id)
            if existing is None:
                raise
            logger.info("Detail already stored for article %s", article_id)
            return existing
        await self.session.refresh(record)
        logger.debug("Saved detail for article %s", article_id)
        return record

    async def find_articles_missing_detail(self, limit: int = 20) -> list[NewsArticle]:
        """Main records without a detail record, most recently published first."""
        result = await self.session.execute(
            select(NewsArticle)
            .outerjoin(NewsDetail, NewsDetail.article_id == NewsArticle.id)
            .where(NewsDetail.id.is_(None))
            .order_by(NewsArticle.published_at.desc(), NewsArticle.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def create_crawl_log(self, status: str = "started", message: str | None = None) -> int:
        log = CrawlLog(status=status, message=message, started_at=datetime.now(UTC))
        self.session.add(log)
        await self.session.commit()
        await self.session.refresh(log)
        return log.id

    async def update_crawl_log(
        self,
        log_id: int,
        status: str,
        message: str | None = None,
        item_count: int | None = None,
    ) -> None:
        """Record the terminal state of a run along with its duration."""
        try:
            log = await self.session.get(CrawlLog, log_id)
            if log is None:
                logger.error("Crawl log %s not found", log_id)
                return
            finished_at = datetime.now(UTC)
            log.status = status
            log.message = message
            log.item_count = item_count
            log.finished_at = finished_at
            log.duration_ms = int((finished_at - _as_utc(log.started_at)).total_seconds() * 1000)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("Crawl log update failed (log_id=%s): %s", log_id, e)

    # ------------------------------------------------------------------
    # Query side
    # ------------------------------------------------------------------

    async def get_news(
        self,
        page: int = 1,
        limit: int = 20,
        category: str | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> tuple[list[tuple[NewsArticle, NewsDetail | None]], int]:
        """Paginated articles, newest first, each with its detail if present."""
        filters = []
        if category:
            filters.append(NewsArticle.category == category)
        if start_date:
            filters.append(NewsArticle.published_at >= start_date)
        if end_date:
            filters.append(NewsArticle.published_at <= end_date)

        query = (
            select(NewsArticle, NewsDetail)
            .outerjoin(NewsDetail, NewsDetail.article_id == NewsArticle.id)
            .where(*filters)
            .order_by(NewsArticle.published_at.desc(), NewsArticle.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        rows = (await self.session.execute(query)).all()

        total = await self.session.scalar(
            select(func.count()).select_from(NewsArticle).where(*filters)
        )
        return [(article, detail) for article, detail in rows], total or 0

    async def get_news_detail(self, article_id: int) -> tuple[NewsArticle, NewsDetail | None] | None:
        article = await self.session.get(NewsArticle, article_id)
        if article is None:
            return None
        return article, await self.get_detail(article_id)

    async def get_crawl_logs(self, limit: int = 50) -> list[CrawlLog]:
        result = await self.session.execute(
            select(CrawlLog).order_by(CrawlLog.started_at.desc(), CrawlLog.id.desc()).limit(limit)
        )
        return list(result.scalars().all())

    async def get_news_stats(self) -> dict[str, Any]:
        today_start = datetime.combine(datetime.now(UTC).date(), time.min, tzinfo=UTC)

        total_news = await self.session.scalar(select(func.count()).select_from(NewsArticle))
        today_news = await self.session.scalar(
            select(func.count())
            .select_from(NewsArticle)
            .where(NewsArticle.crawled_at >= today_start)
        )
        category_rows = await self.session.execute(
            select(NewsArticle.category, func.count(NewsArticle.id))
            .group_by(NewsArticle.category)
            .order_by(NewsArticle.category)
        )
        return {
            "total_news": total_news or 0,
            "today_news": today_news or 0,
            "category_stats": {category: count for category, count in category_rows.all()},
            "recent_crawls": await self.get_crawl_logs(limit=5),
        }
