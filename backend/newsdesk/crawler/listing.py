"""Listing page parser - turns a category page into candidate articles."""

from dataclasses import dataclass
from datetime import UTC, datetime
import logging
import re

from bs4 import BeautifulSoup, Tag

from newsdesk.constants.crawler_defaults import KNOWN_PROVIDERS

logger = logging.getLogger(__name__)

ARTICLE_LINK_SELECTOR = 'a[href*="/article/"]'
NESTED_ARTICLE_LINK_SELECTOR = 'article a[href*="/article/"], section a[href*="/article/"]'

ARTICLE_PATH_RE = re.compile(r"/article/\d+")
DATE_TOKEN_RE = re.compile(r"(20\d{2}-\d{2}-\d{2})")
UI_CHROME_RE = re.compile(r"더보기|로그인|시사\s*$")
SECONDARY_CHROME_RE = re.compile(r"더보기|로그인")

MIN_TITLE_LENGTH = 5
PRIMARY_PASS_LIMIT = 40
SECONDARY_PASS_LIMIT = 50
SECONDARY_PASS_FLOOR = 10

_PROVIDERS = "|".join(re.escape(p) for p in KNOWN_PROVIDERS)
# "연합뉴스/ 제목", "연합뉴스 | 제목", "시사연합뉴스/연합뉴스/ 제목". A separator other
# than "/" must be followed by whitespace, so "MBC-KBS 중계" stays intact.
_PROVIDER_PREFIX_RE = re.compile(
    rf"^(?:{_PROVIDERS})(?:\s*[/|:>-]+\s+|\s*/)+(?=\S)",
    re.IGNORECASE,
)
# "연합뉴스/2024-01-01 제목", "연합뉴스 2024-01-01 제목". Applied before the
# prefix pattern, which would otherwise leave the date behind.
_PROVIDER_DATE_RE = re.compile(
    rf"^(?:{_PROVIDERS})\s*[/|-]?\s*20\d{{2}}-\d{{2}}-\d{{2}}\s*",
    re.IGNORECASE,
)
_DOUBLED_TITLE_RE = re.compile(r"^(.+?)\s+\1$")


@dataclass
class ListingItem:
    """Candidate article discovered on a category listing page."""

    title: str
    url: str
    category: str
    published_at: datetime
    summary: str = ""
    image_url: str | None = None

    def __post_init__(self) -> None:
        if not self.summary:
            self.summary = self.title


def normalize_title(raw: str) -> str:
    """Strip provider/date prefixes and collapse whitespace and doubled titles."""
    if not raw:
        return raw

    title = raw.strip()
    for _ in range(3):
        stripped = _PROVIDER_DATE_RE.sub("", title, count=1)
        stripped = _PROVIDER_PREFIX_RE.sub("", stripped, count=1).strip()
        if stripped == title:
            break
        title = stripped

    title = re.sub(r"\s{2,}", " ", title).strip()
    return _DOUBLED_TITLE_RE.sub(r"\1", title)


def collapse_whitespace(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def to_absolute(href: str, base_url: str) -> str:
    if href.startswith("http"):
        return href
    return f"{base_url.rstrip('/')}{href if href.startswith('/') else '/' + href}"


def parse_published_at(text: str, default: datetime) -> datetime:
    """Parse a literal YYYY-MM-DD token from anchor text, else return default."""
    match = DATE_TOKEN_RE.search(text)
    if not match:
        return default
    try:
        return datetime.strptime(match.group(1), "%Y-%m-%d").replace(tzinfo=UTC)
    except ValueError:
        return default


def _link_target(anchor: Tag, base_url: str) -> str | None:
    href = anchor.get("href")
    if not isinstance(href, str) or not href:
        return None
    return to_absolute(href, base_url)


def parse_listing(
    html: str,
    category: str,
    *,
    base_url: str,
    limit: int = 25,
    now: datetime | None = None,
) -> list[ListingItem]:
    """
    Extract candidate articles from a category listing page.

    Args:
        html: Raw HTML of the listing page
        category: Category label attached to every item
        base_url: Origin used to absolutize relative article links
        limit: Maximum number of items returned
        now: Crawl time, used when an anchor carries no date

    Returns:
        Items sorted newest first with unique urls. Empty on unparseable input.
    """
    now = now or datetime.now(UTC)
    try:
        if not html or not html.strip():
            return []
        soup = BeautifulSoup(html, "lxml")
    except Exception as e:
        logger.warning("Listing page for %s could not be parsed: %s", category, e)
        return []

    items: list[ListingItem] = []
    seen_urls: set[str] = set()

    # Primary pass: every article link on the page
    for anchor in soup.select(ARTICLE_LINK_SELECTOR):
        if len(items) >= PRIMARY_PASS_LIMIT:
            break
        url = _link_target(anchor, base_url)
        if not url or not ARTICLE_PATH_RE.search(url) or url in seen_urls:
            continue

        text = collapse_whitespace(anchor.get_text())
        if not text or UI_CHROME_RE.search(text):
            continue

        published_at = parse_published_at(text, now)
        title = normalize_title(text)
        if len(title) < MIN_TITLE_LENGTH:
            continue

        seen_urls.add(url)
        items.append(
            ListingItem(title=title, url=url, category=category, published_at=published_at)
        )

    # Secondary pass: links nested in article/section containers
    if len(items) < SECONDARY_PASS_FLOOR:
        for anchor in soup.select(NESTED_ARTICLE_LINK_SELECTOR):
            if len(items) >= SECONDARY_PASS_LIMIT:
                break
            url = _link_target(anchor, base_url)
            if not url or url in seen_urls or not ARTICLE_PATH_RE.search(url):
                continue

            text = collapse_whitespace(anchor.get_text())
            if len(text) < MIN_TITLE_LENGTH or SECONDARY_CHROME_RE.search(text):
                continue
            title = normalize_title(text)
            if len(title) < MIN_TITLE_LENGTH:
                continue

            seen_urls.add(url)
            items.append(ListingItem(title=title, url=url, category=category, published_at=now))

    # sorted() is stable, so equal dates keep discovery order
    items = sorted(items, key=lambda item: item.published_at, reverse=True)
    return items[:limit]
