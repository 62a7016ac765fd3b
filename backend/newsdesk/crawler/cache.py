"""Process-local cache of parsed detail pages."""

import asyncio
from collections.abc import Awaitable, Callable
import time

from newsdesk.crawler.detail import DetailResult


class DetailCache:
    """
    TTL-bounded map of article url -> DetailResult.

    Only an optimization: a miss or an expired entry always falls back to
    the loader. Concurrent loads for the same url share one call.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[float, DetailResult]] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def get(self, url: str) -> DetailResult | None:
        entry = self._entries.get(url)
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[url]
            return None
        return value

    def set(self, url: str, value: DetailResult) -> None:
        if self.ttl_seconds <= 0:
            return
        now = self._clock()
        self.prune(now)
        self._entries[url] = (now + self.ttl_seconds, value)

    def prune(self, now: float | None = None) -> int:
        """Drop every expired entry. Returns the number removed."""
        now = self._clock() if now is None else now
        expired = [url for url, (expires_at, _) in self._entries.items() if now >= expires_at]
        for url in expired:
            del self._entries[url]
        return len(expired)

    async def get_or_load(
        self, url: str, loader: Callable[[str], Awaitable[DetailResult]]
    ) -> tuple[DetailResult, bool]:
        """
        Return the cached result for url, loading it on a miss.

        Returns:
            (result, hit) where hit is True if no load was needed
        """
        cached = self.get(url)
        if cached is not None:
            return cached, True

        lock = self._locks.setdefault(url, asyncio.Lock())
        try:
            async with lock:
                # Another task may have filled the entry while we waited
                cached = self.get(url)
                if cached is not None:
                    return cached, True
                result = await loader(url)
                if not result.fetch_failed:
                    self.set(url, result)
        finally:
            if not lock.locked():
                self._locks.pop(url, None)
        return result, False

    def clear(self) -> None:
        self._entries.clear()
        self._locks.clear()

    def __len__(self) -> int:
        return len(self._entries)
