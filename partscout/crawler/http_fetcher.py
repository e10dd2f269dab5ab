"""
Raw HTTP fetching for pages that need no rendering.

Used for the search engine fallback, whose HTML endpoint serves static markup.
Requests share the navigation rate limiter with the browser.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx

if TYPE_CHECKING:
    from partscout.crawler.rate_limiter import SlidingWindowRateLimiter

from partscout.crawler.errors import FetchError, FetchTimeoutError
from partscout.utils.logging import get_logger

logger = get_logger(__name__)


class HttpFetcher:
    """Lazy httpx client that returns response bodies as text."""

    def __init__(
        self,
        rate_limiter: SlidingWindowRateLimiter | None = None,
        user_agent: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize fetcher.

        Args:
            rate_limiter: Limiter gating each request (global one if None)
            user_agent: User-Agent header (browser setting if None)
            timeout: Request timeout in seconds (fallback search setting if None)
            transport: Optional httpx transport, e.g. a MockTransport in tests
        """
        if rate_limiter is None:
            from partscout.crawler.rate_limiter import get_navigation_rate_limiter

            rate_limiter = get_navigation_rate_limiter()
        if user_agent is None or timeout is None:
            from partscout.utils.config import get_settings

            settings = get_settings()
            if user_agent is None:
                user_agent = settings.browser.user_agent
            if timeout is None:
                timeout = settings.fallback_search.request_timeout_seconds

        self._rate_limiter = rate_limiter
        self._timeout = timeout
        self._transport = transport
        self.default_headers = {
            "User-Agent": user_agent,
            "Accept": "text/html,application/xhtml+xml",
            "Accept-Language": "en-US,en;q=0.9",
        }
        self._session: httpx.AsyncClient | None = None

    async def _get_session(self) -> httpx.AsyncClient:
        """Get HTTP session (lazy initialization)."""
        if self._session is None:
            self._session = httpx.AsyncClient(
                timeout=self._timeout,
                headers=self.default_headers,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._session

    async def get_text(self, url: str) -> str:
        """GET a URL and return the decoded body.

        Raises:
            FetchTimeoutError: The request timed out.
            FetchError: Transport failure or non-2xx status.
        """
        await self._rate_limiter.admit()
        session = await self._get_session()

        try:
            response = await session.get(url)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            logger.warning("HTTP request timeout", url=url)
            raise FetchTimeoutError(url, f"Request timeout: {url}") from e
        except httpx.HTTPStatusError as e:
            logger.warning("HTTP error status", url=url, status=e.response.status_code)
            raise FetchError(url, f"HTTP {e.response.status_code} for {url}") from e
        except httpx.HTTPError as e:
            logger.warning("HTTP request failed", url=url, error=str(e))
            raise FetchError(url, f"Request failed for {url}: {e}") from e

        logger.debug("HTTP fetched", url=url, status=response.status_code, length=len(response.text))
        return response.text

    async def close(self) -> None:
        """Close the session."""
        if self._session:
            await self._session.aclose()
            self._session = None


_http_fetcher: HttpFetcher | None = None


def get_http_fetcher() -> HttpFetcher:
    """Get or create the global HttpFetcher."""
    global _http_fetcher
    if _http_fetcher is None:
        _http_fetcher = HttpFetcher()
    return _http_fetcher


async def close_http_fetcher() -> None:
    """Close the global HttpFetcher."""
    global _http_fetcher
    if _http_fetcher is not None:
        await _http_fetcher.close()
        _http_fetcher = None


def reset_http_fetcher() -> None:
    """Reset the global fetcher without closing. For testing only."""
    global _http_fetcher
    _http_fetcher = None
