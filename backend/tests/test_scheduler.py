"""Tests for the periodic crawl trigger and settings."""

import asyncio
from contextlib import suppress

import pytest

from newsdesk.config import Settings
from newsdesk.crawler.orchestrator import CrawlResult
from newsdesk.crawler.scheduler import run_periodically


class CountingOrchestrator:
    def __init__(self, fail_first: bool = False) -> None:
        self.runs = 0
        self.fail_first = fail_first

    async def crawl_news(self) -> CrawlResult:
        self.runs += 1
        if self.fail_first and self.runs == 1:
            raise RuntimeError("first run broke")
        return CrawlResult(success=True, item_count=1)


async def run_for(orchestrator: CountingOrchestrator, seconds: float, **kwargs: bool) -> None:
    task = asyncio.create_task(run_periodically(orchestrator, 0.01, **kwargs))
    await asyncio.sleep(seconds)
    task.cancel()
    with suppress(asyncio.CancelledError):
        await task


class TestRunPeriodically:
    async def test_runs_immediately_then_on_interval(self) -> None:
        orchestrator = CountingOrchestrator()
        await run_for(orchestrator, 0.1)
        assert orchestrator.runs >= 3

    async def test_can_wait_for_first_interval(self) -> None:
        orchestrator = CountingOrchestrator()
        task = asyncio.create_task(run_periodically(orchestrator, 60, run_immediately=False))
        await asyncio.sleep(0.05)
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task
        assert orchestrator.runs == 0

    async def test_failed_run_does_not_stop_schedule(self) -> None:
        orchestrator = CountingOrchestrator(fail_first=True)
        await run_for(orchestrator, 0.1)
        assert orchestrator.runs >= 2


class TestSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("SCHEDULER_ENABLED", raising=False)
        settings = Settings(_env_file=None)

        assert len(settings.categories) == 7
        assert {c["category"] for c in settings.categories} >= {"정치", "경제", "IT/과학"}
        assert settings.max_news_per_category == 25
        assert settings.request_delay_ms == 800
        assert settings.backfill_detail_limit == 30
        assert settings.scheduler_enabled is True

    def test_environment_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MAX_NEWS_PER_CATEGORY", "10")
        monkeypatch.setenv("CACHE_TTL_SECONDS", "0")
        settings = Settings(_env_file=None)

        assert settings.max_news_per_category == 10
        assert settings.cache_ttl_seconds == 0
