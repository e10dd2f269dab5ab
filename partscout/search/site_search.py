"""
Primary resolution through the target site's own search.

On an exact hit the site's search endpoint redirects straight to the part's
detail page. Otherwise it renders a results page whose links may contain the
identifier.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING
from urllib.parse import quote, urljoin

from bs4 import BeautifulSoup

if TYPE_CHECKING:
    from partscout.crawler.page_fetcher import PageFetcher
    from partscout.utils.config import SiteConfig

from partscout.search.resolution import ResolutionMethod, ResolutionStrategy
from partscout.utils.logging import get_logger

logger = get_logger(__name__)

# Title words that mark the landed page as a dead end
_FAILURE_TITLE_MARKERS = ("error", "not found")


class SiteSearchStrategy(ResolutionStrategy):
    """Resolve identifiers with the site's search redirect."""

    method = ResolutionMethod.PRIMARY

    def __init__(
        self,
        fetcher: PageFetcher | None = None,
        settings: SiteConfig | None = None,
    ):
        if settings is None:
            from partscout.utils.config import get_settings

            settings = get_settings().site
        self._fetcher = fetcher
        self._settings = settings
        self._detail_pattern = re.compile(settings.detail_url_pattern, re.IGNORECASE)

    def _get_fetcher(self) -> PageFetcher:
        if self._fetcher is None:
            from partscout.crawler.page_fetcher import get_page_fetcher

            self._fetcher = get_page_fetcher()
        return self._fetcher

    def build_search_url(self, identifier: str) -> str:
        return self._settings.search_url.format(query=quote(identifier, safe=""))

    async def resolve(self, identifier: str) -> str | None:
        search_url = self.build_search_url(identifier)
        page = await self._get_fetcher().fetch_page(search_url)
        return self.pick_url(page.final_url, page.html, identifier)

    def pick_url(self, landed_url: str, html: str, identifier: str) -> str | None:
        """Choose the detail-page URL from a rendered search response.

        Args:
            landed_url: URL the browser ended up on after redirects.
            html: Rendered HTML of that page.
            identifier: Identifier that was searched for.

        Returns:
            Detail-page URL, or None.
        """
        needle = identifier.lower()
        soup = BeautifulSoup(html or "", "lxml")

        title = soup.title.get_text(" ", strip=True).lower() if soup.title else ""
        if any(marker in title for marker in _FAILURE_TITLE_MARKERS):
            logger.debug("Site search landed on failure page", title=title, url=landed_url)
            return None

        if self._detail_pattern.match(landed_url) and needle in landed_url.lower():
            return landed_url

        heading = soup.find("h1")
        if heading is not None and needle in heading.get_text(" ", strip=True).lower():
            return landed_url

        for link in soup.select("a[href]"):
            href = str(link.get("href", ""))
            if needle in href.lower():
                return urljoin(landed_url or self._settings.base_url, href)

        return None
