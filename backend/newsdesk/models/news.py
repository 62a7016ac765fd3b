"""News article, detail and crawl log models."""

from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, Text
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(UTC)


class NewsArticle(SQLModel, table=True):
    """
    Main article record created from a listing page entry.
    The url is the identity used for deduplication across crawl runs.
    """

    __tablename__ = "news_main"

    id: int | None = Field(default=None, primary_key=True)

    # Article content
    title: str = Field(max_length=500)
    url: str = Field(max_length=2048, unique=True, index=True)
    image_url: str | None = Field(default=None, max_length=2048)
    summary: str | None = Field(default=None, sa_column=Column(Text, nullable=True))
    category: str = Field(max_length=50, index=True)

    # Timestamps
    published_at: datetime = Field(
        default_factory=utcnow, sa_column=Column(DateTime(timezone=True), index=True)
    )
    crawled_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime(timezone=True)))
    updated_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime(timezone=True)))


class NewsDetail(SQLModel, table=True):
    """Full-text detail parsed from an article page. At most one per article."""

    __tablename__ = "news_detail"

    id: int | None = Field(default=None, primary_key=True)
    article_id: int = Field(foreign_key="news_main.id", unique=True, index=True)

    content: str = Field(sa_column=Column(Text, nullable=False))
    author: str = Field(max_length=200)
    source: str = Field(max_length=100)
    tags: str = Field(default="", max_length=1000)  # comma separated

    # Engagement counters are not exposed by the origin site
    view_count: int | None = Field(default=None)
    like_count: int | None = Field(default=None)
    comment_count: int | None = Field(default=None)

    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime(timezone=True)))
    updated_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime(timezone=True)))

    @property
    def tag_list(self) -> list[str]:
        return [t for t in self.tags.split(",") if t]


class CrawlLog(SQLModel, table=True):
    """Audit record bracketing a single crawl run."""

    __tablename__ = "news_crawl_log"

    id: int | None = Field(default=None, primary_key=True)
    status: str = Field(default="started", max_length=20)  # started, success, error
    message: str | None = Field(default=None, sa_column=Column(Text, nullable=True))
    item_count: int | None = Field(default=None)

    started_at: datetime = Field(
        default_factory=utcnow, sa_column=Column(DateTime(timezone=True), index=True)
    )
    finished_at: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True)))
    duration_ms: int | None = Field(default=None)
