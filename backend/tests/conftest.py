"""Shared fixtures: isolated SQLite databases, a fake page fetcher and sample pages."""

import os
import tempfile
from pathlib import Path

# Settings are read once and cached, so the environment must be in place
# before anything under newsdesk is imported.
_DB_DIR = Path(tempfile.mkdtemp(prefix="newsdesk-tests-"))
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_DB_DIR / 'app.db'}")
os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault("ENVIRONMENT", "test")

from collections.abc import AsyncGenerator  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402

from newsdesk.crawler.fetcher import FetchError  # noqa: E402
from newsdesk.db.postgres import init_db  # noqa: E402


class FakeFetcher:
    """Serves canned HTML per url and records every request."""

    def __init__(self, pages: dict[str, str | Exception | list[str | Exception]] | None = None):
        self.pages = pages or {}
        self.calls: list[str] = []

    async def fetch(self, url: str) -> str:
        self.calls.append(url)
        page = self.pages.get(url)
        if isinstance(page, list):
            page = page.pop(0) if len(page) > 1 else page[0]
        if page is None:
            raise FetchError(url, "HTTP error: 404 Not Found")
        if isinstance(page, Exception):
            raise page
        return page

    def count(self, url: str) -> int:
        return self.calls.count(url)

    async def aclose(self) -> None:
        pass


def listing_page(*links: tuple[str, str], nested: bool = False) -> str:
    """Build a category page from (href, anchor text) pairs."""
    anchors = "\n".join(f'<li><a href="{href}">{text}</a></li>' for href, text in links)
    if nested:
        return f"<html><body><section><ul>{anchors}</ul></section></body></html>"
    return f"<html><body><ul class='list'>{anchors}</ul></body></html>"


def article_page(
    *paragraphs: str,
    title: str = "기사 제목",
    description: str = "",
    keywords: str = "",
    extra_body: str = "",
) -> str:
    """Build an article page whose body lives in an <article> container."""
    body = "\n".join(f"<p>{p}</p>" for p in paragraphs)
    return f"""
    <html>
      <head>
        <title>{title}</title>
        <meta property="og:title" content="{title}">
        <meta name="description" content="{description}">
        <meta name="keywords" content="{keywords}">
      </head>
      <body>
        <nav class="nav">홈 정치 경제 사회 세계 문화 IT/과학 스포츠 연예 날씨 전체 메뉴 보기</nav>
        <article>{body}</article>
        {extra_body}
        <footer>나무뉴스 회사소개 이용약관 개인정보처리방침 고객센터 문의하기 광고안내</footer>
      </body>
    </html>
    """


LONG_PARAGRAPHS = (
    "(서울=연합뉴스) 홍길동 기자 = 정부가 내년도 예산안을 국회에 제출했다고 17일 밝혔다.",
    "이번 예산안은 전년 대비 3.2% 늘어난 규모로, 복지와 연구개발 분야에 중점을 뒀다.",
    "기획재정부 관계자는 재정 건전성을 유지하면서도 민생 안정에 필요한 지출은 늘렸다고 설명했다.",
    "국회는 다음 달부터 상임위원회별 심사에 착수해 연말까지 예산안을 처리할 계획이다.",
)


@pytest.fixture
def fake_fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
async def session_factory(tmp_path: Path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """A fresh file-backed SQLite database per test."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'news.db'}")
    await init_db(bind=engine)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
async def session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as s:
        yield s
