"""
Rendered page fetching through the shared browser.

Each fetch is admitted by the navigation rate limiter, then runs in its own
browser context (separate cookies and storage) on the shared browser. The
context is closed on every exit path.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

if TYPE_CHECKING:
    from partscout.crawler.browser_session import BrowserSessionManager
    from partscout.crawler.rate_limiter import SlidingWindowRateLimiter
    from partscout.utils.config import BrowserConfig

from partscout.crawler.challenge_detector import detect_challenge_type, is_challenge_page
from partscout.crawler.errors import ChallengeDetectedError, FetchError, FetchTimeoutError
from partscout.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class FetchedPage:
    """A rendered page.

    Attributes:
        requested_url: URL passed to fetch.
        final_url: URL after redirects.
        html: Rendered document HTML.
        status: HTTP status of the main response, if any.
        elapsed_ms: Time spent navigating and capturing.
    """

    requested_url: str
    final_url: str
    html: str
    status: int | None = None
    elapsed_ms: float = 0.0


class PageFetcher:
    """Fetches rendered HTML in an isolated browser context."""

    def __init__(
        self,
        session_manager: BrowserSessionManager | None = None,
        rate_limiter: SlidingWindowRateLimiter | None = None,
        settings: BrowserConfig | None = None,
    ) -> None:
        if session_manager is None:
            from partscout.crawler.browser_session import get_browser_session_manager

            session_manager = get_browser_session_manager()
        if rate_limiter is None:
            from partscout.crawler.rate_limiter import get_navigation_rate_limiter

            rate_limiter = get_navigation_rate_limiter()
        if settings is None:
            from partscout.utils.config import get_settings

            settings = get_settings().browser

        self._session_manager = session_manager
        self._rate_limiter = rate_limiter
        self._settings = settings

    async def fetch(self, url: str) -> str:
        """Fetch rendered HTML for a URL.

        Raises:
            FetchTimeoutError: Navigation did not settle in time.
            ChallengeDetectedError: An anti-bot challenge was served.
            FetchError: Any other navigation failure.
        """
        page = await self.fetch_page(url)
        return page.html

    async def fetch_page(self, url: str) -> FetchedPage:
        """Fetch a URL and report where the navigation landed.

        Args:
            url: Absolute URL to navigate to.

        Returns:
            FetchedPage with the final URL and rendered HTML.
        """
        await self._rate_limiter.admit()
        browser = await self._session_manager.acquire()

        start = time.monotonic()
        try:
            context = await browser.new_context(
                user_agent=self._settings.user_agent,
                viewport={
                    "width": self._settings.viewport_width,
                    "height": self._settings.viewport_height,
                },
            )
        except PlaywrightError as e:
            raise FetchError(url, f"Could not open browser context: {e}") from e

        try:
            try:
                page = await context.new_page()
                response = await page.goto(
                    url,
                    timeout=self._settings.navigation_timeout_seconds * 1000,
                    wait_until=self._settings.wait_until,  # type: ignore[arg-type]
                )
                html = await page.content()
            except PlaywrightTimeoutError as e:
                logger.warning("Navigation timeout", url=url)
                raise FetchTimeoutError(
                    url,
                    f"Navigation timeout after {self._settings.navigation_timeout_seconds}s: {url}",
                ) from e
            except PlaywrightError as e:
                logger.warning("Navigation failed", url=url, error=str(e))
                raise FetchError(url, f"Navigation failed for {url}: {e}") from e

            final_url = page.url or url
            status = response.status if response is not None else None
            headers = response.headers if response is not None else {}

            if is_challenge_page(html, headers):
                challenge_type = detect_challenge_type(html)
                logger.warning("Challenge page detected", url=url, challenge_type=challenge_type)
                raise ChallengeDetectedError(url, challenge_type)

            elapsed_ms = (time.monotonic() - start) * 1000
            logger.debug(
                "Page fetched",
                url=url,
                final_url=final_url,
                status=status,
                content_length=len(html),
                elapsed_ms=round(elapsed_ms, 1),
            )
            return FetchedPage(
                requested_url=url,
                final_url=final_url,
                html=html,
                status=status,
                elapsed_ms=elapsed_ms,
            )
        finally:
            try:
                await context.close()
            except Exception as e:
                logger.debug("Browser context close failed", url=url, error=str(e))


_page_fetcher: PageFetcher | None = None


def get_page_fetcher() -> PageFetcher:
    """Get or create the global PageFetcher."""
    global _page_fetcher
    if _page_fetcher is None:
        _page_fetcher = PageFetcher()
    return _page_fetcher


def reset_page_fetcher() -> None:
    """Reset the global fetcher (for testing only)."""
    global _page_fetcher
    _page_fetcher = None
