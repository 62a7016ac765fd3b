"""Detail page parser - extracts article body, author, source and tags."""

from dataclasses import dataclass, field
import logging
import re

from bs4 import BeautifulSoup, Tag

from newsdesk.constants.crawler_defaults import KNOWN_PROVIDERS

logger = logging.getLogger(__name__)

NOISE_SELECTORS = [
    "script",
    "style",
    "noscript",
    "iframe",
    "form",
    "button",
    "svg",
    ".ads",
    ".advert",
    ".ad",
    ".share",
    ".sns",
    ".social",
    ".breadcrumb",
    ".nav",
    ".related",
    ".recommend",
]

# Ranked; on equal scores the earlier selector wins
CONTAINER_SELECTORS = [
    "article",
    ".article",
    ".article-body",
    ".post",
    ".post-content",
    ".entry-content",
    ".content-body",
    "#content",
    "main",
]

AUTHOR_SELECTORS = [
    ".author-name",
    ".reporter-name",
    ".writer",
    ".byline",
    ".article-author",
    ".post-author",
]

TAG_SELECTOR = ".tag, .tags a, .keywords a, a.tag"

NOTICE_MARKERS = ("무단 전재", "재배포", "Copyright", "이 기사", "사진=")

PARAGRAPH_WEIGHT = 80
MIN_PARAGRAPH_LENGTH = 20
MIN_CONTAINER_CONTENT = 120
FALLBACK_PARAGRAPH_LENGTH = 40
FALLBACK_PARAGRAPH_COUNT = 15
MIN_CONTENT_BEFORE_META = 80
MAX_IMAGES = 5
MAX_TAGS = 10
MAX_TAG_LENGTH = 30
SOURCE_LEAD_CHARS = 250
THIN_BODY_CHARS = 200

BRACKET_ONLY_RE = re.compile(r"^\[[^\]]+\]$")
REPORTER_RE = re.compile(r"([가-힣]{2,4})\s?기자")
# "(서울=연합뉴스)", "[세종=뉴시스]"
LOCATION_SOURCE_RE = re.compile(r"[\[(]([가-힣A-Za-z·\s]{1,8})=([가-힣A-Za-z·]{2,15})[)\]]")
TITLE_SOURCE_RE = re.compile(r"^(?:\[.*?\]\s*)?([가-힣A-Za-z·]{2,15})/")


@dataclass
class DetailResult:
    """Structured data extracted from an article detail page."""

    content: str
    author: str
    source: str
    tags: list[str] = field(default_factory=list)
    images: list[str] = field(default_factory=list)
    # Not exposed by the origin site; None means unknown
    view_count: int | None = None
    like_count: int | None = None
    comment_count: int | None = None
    is_placeholder: bool = False
    # Set when the page could not be fetched at all. Such results are neither
    # cached nor persisted so the backfill sweep retries them.
    fetch_failed: bool = False

    @classmethod
    def placeholder(
        cls, url: str, site_name: str, *, error: bool = False, fetch_failed: bool = False
    ) -> "DetailResult":
        if error or fetch_failed:
            content = f"크롤링 에러로 인해 상세 내용을 가져올 수 없습니다. URL: {url}"
        else:
            content = f"뉴스 상세 내용을 추출할 수 없습니다. URL: {url}"
        return cls(
            content=content,
            author=site_name,
            source=site_name,
            is_placeholder=True,
            fetch_failed=fetch_failed,
        )


def visible_text_length(html: str) -> int:
    """Length of the text inside <body>, used to detect thin responses."""
    soup = BeautifulSoup(html or "", "lxml")
    root = soup.body or soup
    return len(root.get_text())


def is_thin_body(html: str) -> bool:
    return visible_text_length(html) <= THIN_BODY_CHARS


def to_absolute(src: str | None, base_url: str) -> str | None:
    if not src:
        return None
    if re.match(r"^https?://", src, re.IGNORECASE):
        return src
    if src.startswith("//"):
        return "https:" + src
    return f"{base_url.rstrip('/')}{'' if src.startswith('/') else '/'}{src}"


def _meta_content(soup: BeautifulSoup, *selectors: str) -> str:
    for selector in selectors:
        el = soup.select_one(selector)
        if el is not None:
            content = el.get("content")
            if isinstance(content, str) and content.strip():
                return content.strip()
    return ""


def _remove_noise(soup: BeautifulSoup) -> None:
    for el in soup.select(", ".join(NOISE_SELECTORS)):
        if not el.decomposed:
            el.decompose()


def _select_container(soup: BeautifulSoup) -> Tag | None:
    best: Tag | None = None
    best_score = 0
    for selector in CONTAINER_SELECTORS:
        for el in soup.select(selector):
            score = len(el.get_text().strip()) + len(el.find_all("p")) * PARAGRAPH_WEIGHT
            if score > best_score:
                best, best_score = el, score
    return best


def _container_paragraphs(container: Tag) -> list[str]:
    for p in container.find_all("p"):
        if any(marker in p.get_text() for marker in NOTICE_MARKERS):
            p.decompose()

    for br in container.find_all("br"):
        br.replace_with("\n")

    paragraphs = []
    for p in container.find_all("p"):
        text = p.get_text().replace("\xa0", " ")
        text = re.sub(r"\n{3,}", "\n\n", text).strip()
        if len(text) >= MIN_PARAGRAPH_LENGTH and not BRACKET_ONLY_RE.match(text):
            paragraphs.append(text)

    # Exact repeats anywhere in the body, first occurrence wins
    return list(dict.fromkeys(paragraphs))


def _container_images(container: Tag, base_url: str) -> list[str]:
    images: list[str] = []
    for img in container.find_all("img"):
        if len(images) >= MAX_IMAGES:
            break
        src = img.get("data-src") or img.get("src")
        absolute = to_absolute(src if isinstance(src, str) else None, base_url)
        if absolute and absolute not in images:
            images.append(absolute)
    return images


def _fallback_paragraphs(soup: BeautifulSoup) -> list[str]:
    paragraphs = []
    for p in soup.find_all("p"):
        text = p.get_text().strip()
        if len(text) > FALLBACK_PARAGRAPH_LENGTH:
            paragraphs.append(text)
        if len(paragraphs) >= FALLBACK_PARAGRAPH_COUNT:
            break
    return paragraphs


def strip_boilerplate(content: str) -> str:
    content = re.sub(r"무단 전재.*$", "", content, flags=re.MULTILINE)
    content = re.sub(r"▶.*$", "", content, flags=re.MULTILINE)
    content = re.sub(r"\n{3,}", "\n\n", content)
    return content.strip()


def extract_author(soup: BeautifulSoup, content: str) -> str:
    for selector in AUTHOR_SELECTORS:
        found = soup.select(selector)
        if found:
            author = re.sub(r"\s+", " ", " ".join(el.get_text() for el in found)).strip()
            if author:
                return author

    match = REPORTER_RE.search(content)
    if match:
        return f"{match.group(1)} 기자"
    return ""


def extract_tags(soup: BeautifulSoup, meta_keywords: list[str]) -> list[str]:
    tags: dict[str, None] = {}
    for el in soup.select(TAG_SELECTOR):
        text = el.get_text().strip()
        if text and len(text) <= MAX_TAG_LENGTH:
            tags[text] = None
    for keyword in meta_keywords:
        tags[keyword] = None
    return list(tags)[:MAX_TAGS]


def infer_source(content: str, meta_title: str, default: str) -> tuple[str, str]:
    """
    Infer the originating outlet from a dateline or a title prefix.

    Returns:
        (source, content) where content has the matched dateline removed
    """
    match = LOCATION_SOURCE_RE.search(content[:SOURCE_LEAD_CHARS])
    if match and match.group(2) in KNOWN_PROVIDERS:
        return match.group(2), content.replace(match.group(0), "", 1).strip()

    match = TITLE_SOURCE_RE.match(meta_title)
    if match and match.group(1) in KNOWN_PROVIDERS:
        return match.group(1), content
    return default, content


def _parse(html: str, url: str, base_url: str, site_name: str) -> DetailResult:
    soup = BeautifulSoup(html, "lxml")

    # Metadata first, before noise removal touches the head
    meta_title = _meta_content(soup, 'meta[property="og:title"]', 'meta[name="twitter:title"]')
    if not meta_title and soup.title is not None:
        meta_title = soup.title.get_text().strip()
    meta_desc = _meta_content(soup, 'meta[property="og:description"]', 'meta[name="description"]')
    meta_keywords = [
        k.strip() for k in _meta_content(soup, 'meta[name="keywords"]').split(",") if k.strip()
    ]

    _remove_noise(soup)
    container = _select_container(soup)

    paragraphs: list[str] = []
    images: list[str] = []
    if container is not None:
        paragraphs = _container_paragraphs(container)
        images = _container_images(container, base_url)

    content = "\n\n".join(paragraphs)
    if len(content) < MIN_CONTAINER_CONTENT:
        fallback = _fallback_paragraphs(soup)
        if fallback:
            content = "\n\n".join(fallback)
    if len(content) < MIN_CONTENT_BEFORE_META and meta_desc:
        content = meta_desc + ("\n\n" + content if content else "")

    content = strip_boilerplate(content)
    author = extract_author(soup, content)
    tags = extract_tags(soup, meta_keywords)

    if images:
        content += "\n\n" + "\n".join(f"![image_{i}]({src})" for i, src in enumerate(images, 1))

    source, content = infer_source(content, meta_title, site_name)

    if not content:
        return DetailResult.placeholder(url, site_name)

    return DetailResult(
        content=content,
        author=author or site_name,
        source=source,
        tags=tags,
        images=images,
    )


def parse_detail(html: str, url: str, *, base_url: str, site_name: str) -> DetailResult:
    """
    Extract the article body and metadata from a detail page.

    Never raises: any parsing failure is converted into a placeholder
    result with default author and source.
    """
    try:
        return _parse(html or "", url, base_url, site_name)
    except Exception as e:
        logger.error("Detail parsing failed for %s: %s", url, e)
        return DetailResult.placeholder(url, site_name, error=True)
