"""In-process periodic crawl trigger."""

import asyncio
import logging

from newsdesk.crawler.orchestrator import CrawlOrchestrator

logger = logging.getLogger(__name__)


async def _crawl_once(orchestrator: CrawlOrchestrator, reason: str) -> None:
    try:
        result = await orchestrator.crawl_news()
    except Exception as e:
        # Already recorded in the crawl log; the next tick tries again
        logger.error("%s crawl failed: %s", reason, e)
        return
    if not result.skipped:
        logger.info("%s crawl finished: %d new articles", reason, result.item_count)


async def run_periodically(
    orchestrator: CrawlOrchestrator,
    interval_seconds: float,
    *,
    run_immediately: bool = True,
) -> None:
    """Run crawl_news every interval_seconds until cancelled."""
    logger.info("Crawl scheduled every %.0f seconds", interval_seconds)
    if run_immediately:
        await _crawl_once(orchestrator, "Initial")
    while True:
        await asyncio.sleep(interval_seconds)
        await _crawl_once(orchestrator, "Scheduled")
