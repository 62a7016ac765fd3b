"""HTTP page fetcher used by news sources."""

import logging

import httpx

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """A page could not be retrieved (network error or bad status)."""

    def __init__(self, url: str, message: str):
        super().__init__(f"{message} ({url})")
        self.url = url


class FetchTimeoutError(FetchError):
    """The request exceeded the configured timeout."""


class PageFetcher:
    """
    Thin async wrapper around httpx that returns raw HTML.

    Every request carries the same timeout and User-Agent. Failures are
    raised as FetchError so callers can treat them as recoverable.
    """

    def __init__(
        self,
        timeout_ms: int,
        user_agent: str,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.http = httpx.AsyncClient(
            timeout=timeout_ms / 1000,
            follow_redirects=True,
            headers={"User-Agent": user_agent},
            transport=transport,
        )

    async def fetch(self, url: str) -> str:
        """Fetch a page and return its body text."""
        try:
            response = await self.http.get(url)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise FetchTimeoutError(url, f"Timed out: {e}") from e
        except httpx.HTTPError as e:
            raise FetchError(url, f"HTTP error: {e}") from e
        return response.text

    async def aclose(self) -> None:
        """Close the HTTP client."""
        await self.http.aclose()

    async def __aenter__(self) -> "PageFetcher":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
