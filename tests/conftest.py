"""
Pytest fixtures and configuration for PartScout tests.

=============================================================================
Test Classification
=============================================================================

- @pytest.mark.unit: Single class/function, no external dependencies
  - Fast, everything external replaced by fakes
- @pytest.mark.integration: Several components wired together
  - Real rate limiter / session manager / extractor, fake browser and network

No test launches a real browser or touches the network.

=============================================================================
Mock Strategy
=============================================================================

- Playwright: FakeBrowser / FakeContext / FakePage below. Pages are served by
  a router callable mapping a URL to (final_url, html) or raising.
- Raw HTTP: httpx.MockTransport passed to HttpFetcher.
- Config: the repository's config/ directory; tmp_path for override files.
"""

import asyncio
import os
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest

# Set test environment before importing anything else
os.environ["PARTSCOUT_CONFIG_DIR"] = str(Path(__file__).parent.parent / "config")
os.environ["PARTSCOUT_GENERAL__LOG_LEVEL"] = "DEBUG"

Router = Callable[[str], tuple[str, str]]


# =============================================================================
# Playwright fakes
# =============================================================================


class FakeResponse:
    def __init__(self, status: int = 200, headers: dict[str, str] | None = None):
        self.status = status
        self.headers = headers or {}


class FakePage:
    """Page whose navigation is answered by a router."""

    def __init__(self, router: Router):
        self._router = router
        self._html = ""
        self.url = ""
        self.goto_calls: list[dict[str, Any]] = []

    async def goto(self, url: str, timeout: float | None = None, wait_until: str | None = None):
        self.goto_calls.append({"url": url, "timeout": timeout, "wait_until": wait_until})
        final_url, html = self._router(url)
        self.url = final_url
        self._html = html
        return FakeResponse()

    async def content(self) -> str:
        return self._html


class FakeContext:
    def __init__(self, router: Router, options: dict[str, Any]):
        self.options = options
        self.page = FakePage(router)
        self.closed = False

    async def new_page(self) -> FakePage:
        return self.page

    async def close(self) -> None:
        self.closed = True


def _blank_router(url: str) -> tuple[str, str]:
    return url, "<html><head><title>Blank</title></head><body></body></html>"


class FakeBrowser:
    """Stand-in for playwright Browser."""

    def __init__(self, router: Router | None = None):
        self.router = router or _blank_router
        self.contexts: list[FakeContext] = []
        self._handlers: dict[str, list[Callable[[Any], None]]] = {}

    def on(self, event: str, handler: Callable[[Any], None]) -> None:
        self._handlers.setdefault(event, []).append(handler)

    def emit(self, event: str) -> None:
        for handler in self._handlers.get(event, []):
            handler(self)

    async def new_context(self, **options: Any) -> FakeContext:
        context = FakeContext(self.router, options)
        self.contexts.append(context)
        return context


class FakeLauncher:
    """Launcher that hands out FakeBrowsers and records teardown."""

    def __init__(
        self,
        router: Router | None = None,
        delay: float = 0.0,
        error: Exception | None = None,
    ):
        self.router = router
        self.delay = delay
        self.error = error
        self.launch_count = 0
        self.browsers: list[FakeBrowser] = []
        self.shutdown_calls: list[FakeBrowser] = []

    async def launch(self) -> FakeBrowser:
        self.launch_count += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        browser = FakeBrowser(self.router)
        self.browsers.append(browser)
        return browser

    async def shutdown(self, browser: FakeBrowser) -> None:
        self.shutdown_calls.append(browser)


class StaticFetcher:
    """PageFetcher stand-in serving canned HTML per URL."""

    def __init__(self, pages: dict[str, str | Exception]):
        self.pages = pages
        self.fetched: list[str] = []

    async def fetch(self, url: str) -> str:
        from partscout.crawler.errors import FetchError

        self.fetched.append(url)
        page = self.pages.get(url)
        if page is None:
            raise FetchError(url, f"Navigation failed for {url}: net::ERR_NAME_NOT_RESOLVED")
        if isinstance(page, Exception):
            raise page
        return page


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def make_launcher() -> Callable[..., FakeLauncher]:
    """Factory for FakeLauncher instances."""
    return FakeLauncher


@pytest.fixture
def make_browser() -> Callable[..., FakeBrowser]:
    """Factory for FakeBrowser instances."""
    return FakeBrowser


@pytest.fixture
def make_static_fetcher() -> Callable[[dict[str, str | Exception]], StaticFetcher]:
    """Factory for StaticFetcher instances."""
    return StaticFetcher


@pytest.fixture
def fixtures_dir() -> Path:
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def part_page_html(fixtures_dir: Path) -> str:
    """Rendered part detail page for PS11752778."""
    return (fixtures_dir / "part_PS11752778.html").read_text(encoding="utf-8")


@pytest.fixture
def help_page_html(fixtures_dir: Path) -> str:
    """Rendered repair help page for a dishwasher that will not drain."""
    return (fixtures_dir / "help_dishwasher_not_draining.html").read_text(encoding="utf-8")


@pytest.fixture
def duckduckgo_html(fixtures_dir: Path) -> str:
    """DuckDuckGo HTML result page for site:partselect.com PS11752778."""
    return (fixtures_dir / "duckduckgo_PS11752778.html").read_text(encoding="utf-8")


# =============================================================================
# Global Reset Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_globals() -> Generator[None, None, None]:
    """Reset process-wide singletons between tests.

    asyncio.Lock instances and timers are bound to the loop of the test that
    created them, so no global may outlive a test.
    """
    from partscout.utils.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()

    from partscout.crawler.browser_session import reset_browser_session_manager
    from partscout.crawler.http_fetcher import reset_http_fetcher
    from partscout.crawler.page_fetcher import reset_page_fetcher
    from partscout.crawler.rate_limiter import reset_navigation_rate_limiter
    from partscout.extractor.rules import reset_extraction_rules
    from partscout.orchestrator.operations import reset_orchestrator
    from partscout.utils.events import reset_lifecycle_events

    reset_browser_session_manager()
    reset_http_fetcher()
    reset_page_fetcher()
    reset_navigation_rate_limiter()
    reset_extraction_rules()
    reset_orchestrator()
    reset_lifecycle_events()
