"""
Tests for HttpFetcher.

## Test Perspectives Table

| Case ID | Input / Precondition | Perspective (Equivalence / Boundary) | Expected Result | Notes |
|---------|---------------------|---------------------------------------|-----------------|-------|
| TC-N-01 | 200 response | Equivalence – normal | Body text, UA header sent | - |
| TC-N-02 | Redirect | Equivalence – normal | Redirect followed | - |
| TC-A-01 | 503 response | Equivalence – abnormal | FetchError with status | - |
| TC-A-02 | Read timeout | Equivalence – abnormal | FetchTimeoutError | - |
| TC-A-03 | Connection error | Equivalence – abnormal | FetchError | - |
| TC-N-03 | Rate limiting | Equivalence – normal | Each request admitted | - |
"""

import httpx
import pytest
import pytest_asyncio

from partscout.crawler.errors import FetchError, FetchTimeoutError
from partscout.crawler.http_fetcher import HttpFetcher
from partscout.crawler.rate_limiter import SlidingWindowRateLimiter

pytestmark = pytest.mark.unit


def _handler(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    if path == "/ok":
        return httpx.Response(200, text=f"<html>{request.headers['user-agent']}</html>")
    if path == "/moved":
        return httpx.Response(302, headers={"location": "https://example.test/ok"})
    if path == "/unavailable":
        return httpx.Response(503, text="Service Unavailable")
    if path == "/slow":
        raise httpx.ReadTimeout("timed out", request=request)
    raise httpx.ConnectError("connection refused", request=request)


@pytest.fixture
def limiter() -> SlidingWindowRateLimiter:
    return SlidingWindowRateLimiter(limit=100, window_seconds=60.0)


@pytest_asyncio.fixture
async def fetcher(limiter):
    fetcher = HttpFetcher(
        rate_limiter=limiter,
        user_agent="PartScoutTest/1.0",
        timeout=5.0,
        transport=httpx.MockTransport(_handler),
    )
    yield fetcher
    await fetcher.close()


class TestHttpFetcher:
    """Tests for raw HTTP fetching."""

    @pytest.mark.asyncio
    async def test_get_text_returns_body(self, fetcher) -> None:
        """Test TC-N-01.

        Given: An endpoint answering 200
        When: get_text() is called
        Then: The body is returned and the configured User-Agent was sent
        """
        text = await fetcher.get_text("https://example.test/ok")

        assert text == "<html>PartScoutTest/1.0</html>"

    @pytest.mark.asyncio
    async def test_redirects_are_followed(self, fetcher) -> None:
        """Given a 302 to /ok, When get_text() is called, Then the final body is returned."""
        text = await fetcher.get_text("https://example.test/moved")

        assert "PartScoutTest" in text

    @pytest.mark.asyncio
    async def test_error_status_raises_fetch_error(self, fetcher) -> None:
        """Test TC-A-01: Given a 503, When get_text() is called, Then FetchError names the status."""
        with pytest.raises(FetchError, match="HTTP 503"):
            await fetcher.get_text("https://example.test/unavailable")

    @pytest.mark.asyncio
    async def test_timeout_raises_fetch_timeout(self, fetcher) -> None:
        """Test TC-A-02: Given a read timeout, When get_text() is called, Then FetchTimeoutError."""
        with pytest.raises(FetchTimeoutError):
            await fetcher.get_text("https://example.test/slow")

    @pytest.mark.asyncio
    async def test_connection_error_raises_fetch_error(self, fetcher) -> None:
        """Test TC-A-03: Given a refused connection, When get_text() is called, Then FetchError."""
        with pytest.raises(FetchError) as exc_info:
            await fetcher.get_text("https://example.test/refused")

        assert not isinstance(exc_info.value, FetchTimeoutError)
        assert exc_info.value.url == "https://example.test/refused"

    @pytest.mark.asyncio
    async def test_each_request_is_admitted(self, fetcher, limiter) -> None:
        """Test TC-N-03: Given 3 requests, When they run, Then the limiter admitted 3."""
        await fetcher.get_text("https://example.test/ok")
        await fetcher.get_text("https://example.test/ok")
        with pytest.raises(FetchError):
            await fetcher.get_text("https://example.test/unavailable")

        assert limiter.get_stats()["total_admitted"] == 3
