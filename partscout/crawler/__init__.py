"""
Crawler module for PartScout.

Shared browser session, navigation rate limiting, and page fetching.
"""

from partscout.crawler.browser_session import (
    BrowserSessionManager,
    PlaywrightLauncher,
    SessionState,
    get_browser_session_manager,
)
from partscout.crawler.errors import (
    ChallengeDetectedError,
    FetchError,
    FetchTimeoutError,
    PartScoutError,
)
from partscout.crawler.http_fetcher import HttpFetcher, get_http_fetcher
from partscout.crawler.page_fetcher import FetchedPage, PageFetcher, get_page_fetcher
from partscout.crawler.rate_limiter import (
    SlidingWindowRateLimiter,
    get_navigation_rate_limiter,
)

__all__ = [
    # Session
    "BrowserSessionManager",
    "PlaywrightLauncher",
    "SessionState",
    "get_browser_session_manager",
    # Errors
    "PartScoutError",
    "FetchError",
    "FetchTimeoutError",
    "ChallengeDetectedError",
    # Fetching
    "PageFetcher",
    "FetchedPage",
    "get_page_fetcher",
    "HttpFetcher",
    "get_http_fetcher",
    # Rate limiting
    "SlidingWindowRateLimiter",
    "get_navigation_rate_limiter",
]
