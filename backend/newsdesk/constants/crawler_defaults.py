"""Default crawl targets and lookup tables shared across the crawler."""

from typing import Any

# Category listing pages crawled on every run, in order
DEFAULT_CATEGORIES: list[dict[str, Any]] = [
    {"url": "https://namu.news/news/news/technology", "category": "IT/과학"},
    {"url": "https://namu.news/news/news/world", "category": "세계"},
    {"url": "https://namu.news/news/news/culture", "category": "문화"},
    {"url": "https://namu.news/news/news/society", "category": "사회"},
    {"url": "https://namu.news/news/news/economics", "category": "경제"},
    {"url": "https://namu.news/news/news/politics", "category": "정치"},
    {"url": "https://namu.news/news/news/news-general", "category": "시사일반"},
]

# Outlets syndicated through the aggregator. Used both to strip provider
# prefixes from listing titles and to infer a detail page's source.
KNOWN_PROVIDERS: tuple[str, ...] = (
    "연합뉴스",
    "시사연합뉴스",
    "시사엑스포츠뉴스",
    "뉴시스",
    "YTN",
    "머니투데이",
    "한국경제",
    "서울경제",
    "조선일보",
    "한겨레",
    "경향신문",
    "세계일보",
    "MBN",
    "SBS",
    "KBS",
    "MBC",
    "JTBC",
)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)
