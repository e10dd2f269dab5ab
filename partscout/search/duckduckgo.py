"""
Fallback resolution through DuckDuckGo's HTML endpoint.

The query is scoped to the target site (``site:<domain> <identifier>``).
The result page is parsed in three passes, each falling through to the next:

1. ``uddg=`` redirect parameters on result links, decoded, pointing at the
   target domain and containing the identifier
2. A direct target-domain URL whose path starts with the identifier
3. The first target-domain ``.htm`` URL anywhere in the page
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING
from urllib.parse import parse_qs, quote, urlparse

from bs4 import BeautifulSoup

if TYPE_CHECKING:
    from partscout.crawler.http_fetcher import HttpFetcher
    from partscout.utils.config import FallbackSearchConfig

from partscout.search.resolution import ResolutionMethod, ResolutionStrategy
from partscout.utils.logging import get_logger

logger = get_logger(__name__)


class DuckDuckGoStrategy(ResolutionStrategy):
    """Resolve identifiers with a site-scoped DuckDuckGo query."""

    method = ResolutionMethod.FALLBACK

    def __init__(
        self,
        fetcher: HttpFetcher | None = None,
        settings: FallbackSearchConfig | None = None,
    ):
        if settings is None:
            from partscout.utils.config import get_settings

            settings = get_settings().fallback_search
        self._fetcher = fetcher
        self._settings = settings
        self._domain = settings.site_domain.lower()

    def _get_fetcher(self) -> HttpFetcher:
        if self._fetcher is None:
            from partscout.crawler.http_fetcher import get_http_fetcher

            self._fetcher = get_http_fetcher()
        return self._fetcher

    def build_search_url(self, identifier: str) -> str:
        query = f"site:{self._settings.site_domain} {identifier}"
        return self._settings.search_url.format(query=quote(query, safe=""))

    async def resolve(self, identifier: str) -> str | None:
        html = await self._get_fetcher().get_text(self.build_search_url(identifier))
        return self.parse_results(html, identifier)

    def parse_results(self, html: str, identifier: str) -> str | None:
        """Pick a target-site URL out of a DuckDuckGo HTML result page."""
        if not html:
            return None

        url = self._from_redirect_params(html, identifier)
        if url:
            logger.debug("Fallback matched redirect parameter", url=url)
            return url

        url = self._from_direct_match(html, identifier)
        if url:
            logger.debug("Fallback matched direct URL", url=url)
            return url

        url = self._first_site_url(html)
        if url:
            logger.debug("Fallback guessed first site URL", url=url)
        return url

    def _is_target_host(self, url: str) -> bool:
        netloc = urlparse(url).netloc.lower()
        return netloc == self._domain or netloc.endswith("." + self._domain)

    def _from_redirect_params(self, html: str, identifier: str) -> str | None:
        needle = identifier.lower()
        soup = BeautifulSoup(html, "lxml")

        for link in soup.select("a[href*='uddg=']"):
            href = str(link.get("href", ""))
            for target in parse_qs(urlparse(href).query).get("uddg", []):
                if self._is_target_host(target) and needle in target.lower():
                    return target

        return None

    def _from_direct_match(self, html: str, identifier: str) -> str | None:
        pattern = re.compile(
            rf"https?://(?:www\.)?{re.escape(self._domain)}/{re.escape(identifier)}"
            r"[^\"'\s&<>]*\.htm",
            re.IGNORECASE,
        )
        match = pattern.search(html)
        return match.group(0) if match else None

    def _first_site_url(self, html: str) -> str | None:
        pattern = re.compile(
            rf"https?://(?:www\.)?{re.escape(self._domain)}/[^\"'\s<>]+?\.htm",
            re.IGNORECASE,
        )
        match = pattern.search(html)
        return match.group(0) if match else None
