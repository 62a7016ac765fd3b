"""Tests for the detail page parser."""

import pytest

from conftest import LONG_PARAGRAPHS, article_page
from newsdesk.crawler import detail as detail_module
from newsdesk.crawler.detail import (
    DetailResult,
    infer_source,
    is_thin_body,
    parse_detail,
    strip_boilerplate,
)

URL = "https://namu.news/article/123"
BASE = "https://namu.news"
SITE = "나무뉴스"


def parse(html: str) -> DetailResult:
    return parse_detail(html, URL, base_url=BASE, site_name=SITE)


class TestParseDetail:
    def test_extracts_body_author_and_source(self) -> None:
        result = parse(article_page(*LONG_PARAGRAPHS))

        assert result.source == "연합뉴스"
        assert "(서울=연합뉴스)" not in result.content
        assert result.author == "홍길동 기자"
        assert "예산안을 국회에 제출했다" in result.content
        assert result.content.count("\n\n") == len(LONG_PARAGRAPHS) - 1
        assert not result.is_placeholder

    def test_noise_is_removed_before_extraction(self) -> None:
        html = article_page(
            *LONG_PARAGRAPHS,
            extra_body="<div class='related'><p>관련기사: 다른 기사 제목이 여기에 길게 들어갑니다</p></div>"
            "<script>var tracking = 'analytics code that is definitely long enough';</script>",
        )
        result = parse(html)

        assert "관련기사" not in result.content
        assert "tracking" not in result.content

    def test_container_scoring_prefers_paragraph_rich_element(self) -> None:
        footer_text = "회사 정보 " * 40
        html = f"""
        <html><body>
          <main><div>{footer_text}</div></main>
          <div class="article-body">{''.join(f'<p>{p}</p>' for p in LONG_PARAGRAPHS)}</div>
        </body></html>
        """
        result = parse(html)

        assert "기획재정부 관계자는" in result.content
        assert "회사 정보" not in result.content

    def test_drops_short_bracketed_notice_and_repeated_paragraphs(self) -> None:
        html = article_page(
            LONG_PARAGRAPHS[1],
            "[사진 제공: 기획재정부 대변인실]",
            "짧은 문단",
            LONG_PARAGRAPHS[2],
            LONG_PARAGRAPHS[1],
            LONG_PARAGRAPHS[3],
            "저작권자 © 나무뉴스 무단 전재 및 재배포 금지 이 문장은 충분히 깁니다",
        )
        result = parse(html)

        assert result.content.count(LONG_PARAGRAPHS[1]) == 1
        assert "[사진 제공" not in result.content
        assert "짧은 문단" not in result.content
        assert "무단 전재" not in result.content

    def test_line_breaks_become_paragraph_text(self) -> None:
        html = article_page(
            f"{LONG_PARAGRAPHS[1]}<br>{LONG_PARAGRAPHS[2]}",
            LONG_PARAGRAPHS[3],
        )
        result = parse(html)

        assert f"{LONG_PARAGRAPHS[1]}\n{LONG_PARAGRAPHS[2]}" in result.content

    def test_falls_back_to_document_paragraphs(self) -> None:
        long_para = "컨테이너 밖에 있는 긴 문단으로, 본문 후보 선택자에 걸리지 않는 구조의 페이지입니다."
        html = f"""
        <html><body>
          <main><p>짧은 본문</p></main>
          <div class="body"><p>{long_para}</p><p>{long_para} 두 번째</p></div>
        </body></html>
        """
        result = parse(html)

        assert long_para in result.content

    def test_prepends_meta_description_when_still_short(self) -> None:
        html = article_page("본문이 매우 짧은 기사입니다 스무 자 이상", description="메타 설명으로 보강되는 요약문")
        result = parse(html)

        assert result.content.startswith("메타 설명으로 보강되는 요약문")

    def test_author_selector_wins_over_regex(self) -> None:
        html = article_page(
            *LONG_PARAGRAPHS,
            extra_body="<span class='byline'>  김철수\n  선임기자 </span>",
        )
        assert parse(html).author == "김철수 선임기자"

    def test_tags_merge_links_and_meta_keywords(self) -> None:
        tag_links = "".join(f"<a class='tag' href='#'>태그{i}</a>" for i in range(8))
        html = article_page(
            *LONG_PARAGRAPHS,
            keywords="예산, 국회, 태그1, 기획재정부",
            extra_body=f"<div class='tags'>{tag_links}</div>",
        )
        tags = parse(html).tags

        assert len(tags) == 10
        assert len(set(tags)) == len(tags)
        assert tags[:8] == [f"태그{i}" for i in range(8)]
        assert tags[8:] == ["예산", "국회"]

    def test_collects_up_to_five_absolute_images(self) -> None:
        images = "".join(f"<img src='/img/{i}.jpg'>" for i in range(7))
        html = article_page(*LONG_PARAGRAPHS, "<img data-src='//cdn.namu.news/lead.jpg'>" + images)
        result = parse(html)

        assert result.images[0] == "https://cdn.namu.news/lead.jpg"
        assert result.images[1] == "https://namu.news/img/0.jpg"
        assert len(result.images) == 5
        assert "![image_1](https://cdn.namu.news/lead.jpg)" in result.content

    def test_source_from_meta_title_prefix(self) -> None:
        paragraphs = [p.replace("(서울=연합뉴스) ", "") for p in LONG_PARAGRAPHS]
        result = parse(article_page(*paragraphs, title="뉴시스/정부 예산안 국회 제출"))

        assert result.source == "뉴시스"

    def test_unknown_outlet_defaults_to_site_name(self) -> None:
        paragraphs = [p.replace("연합뉴스", "동네신문") for p in LONG_PARAGRAPHS]
        result = parse(article_page(*paragraphs))

        assert result.source == SITE
        assert "(서울=동네신문)" in result.content

    def test_empty_page_yields_placeholder(self) -> None:
        result = parse("<html><body></body></html>")

        assert result.is_placeholder
        assert URL in result.content
        assert result.author == SITE
        assert result.source == SITE

    def test_parse_exception_yields_placeholder(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def boom(*args: object, **kwargs: object) -> None:
            raise RuntimeError("broken selector")

        monkeypatch.setattr(detail_module, "_select_container", boom)
        result = parse(article_page(*LONG_PARAGRAPHS))

        assert result.is_placeholder
        assert result.content
        assert result.author == SITE
        assert result.source == SITE

    def test_engagement_counters_are_unknown(self) -> None:
        result = parse(article_page(*LONG_PARAGRAPHS))

        assert result.view_count is None
        assert result.like_count is None
        assert result.comment_count is None


class TestHelpers:
    def test_strip_boilerplate(self) -> None:
        text = "본문 첫 줄\n무단 전재 및 재배포 금지\n▶ 관련 기사 보기\n\n\n\n마지막 줄"
        assert strip_boilerplate(text) == "본문 첫 줄\n\n마지막 줄"

    def test_infer_source_only_scans_lead(self) -> None:
        content = "가" * 300 + "(서울=연합뉴스)"
        assert infer_source(content, "", SITE) == (SITE, content)

    def test_is_thin_body(self) -> None:
        assert is_thin_body("<html><body>짧음</body></html>")
        assert not is_thin_body(f"<html><body>{'가' * 250}</body></html>")
