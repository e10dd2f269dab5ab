"""
Identifier-to-URL resolution.

A ResolutionChain runs its strategies in order and stops at the first one
that yields a URL. Strategies are isolated from each other: an exception in
one is logged and treated as "no result", so a later strategy still gets its
turn.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from partscout.utils.logging import get_logger

logger = get_logger(__name__)


class ResolutionMethod(str, Enum):
    """Which strategy produced a URL."""

    PRIMARY = "primary"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class ResolutionResult:
    """Canonical detail-page URL for an identifier."""

    url: str
    method: ResolutionMethod


class ResolutionStrategy(ABC):
    """One way of turning an identifier into a detail-page URL."""

    method: ResolutionMethod = ResolutionMethod.PRIMARY

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    async def resolve(self, identifier: str) -> str | None:
        """Return a URL for the identifier, or None if this strategy found nothing."""


class ResolutionChain:
    """Ordered list of strategies; first hit wins.

    Example:
        chain = ResolutionChain([SiteSearchStrategy(), DuckDuckGoStrategy()])
        result = await chain.resolve("PS11752778")
    """

    def __init__(self, strategies: Sequence[ResolutionStrategy]):
        self._strategies = list(strategies)

    @property
    def strategies(self) -> list[ResolutionStrategy]:
        return list(self._strategies)

    async def resolve(self, identifier: str) -> ResolutionResult | None:
        """Resolve an identifier to a detail-page URL.

        Returns:
            ResolutionResult from the first successful strategy, or None.
        """
        identifier = identifier.strip()
        if not identifier:
            return None

        for strategy in self._strategies:
            try:
                url = await strategy.resolve(identifier)
            except Exception as e:
                logger.warning(
                    "Resolution strategy failed",
                    strategy=strategy.name,
                    identifier=identifier,
                    error=str(e),
                )
                continue

            if url:
                logger.info(
                    "Identifier resolved",
                    identifier=identifier,
                    strategy=strategy.name,
                    method=strategy.method.value,
                    url=url,
                )
                return ResolutionResult(url=url, method=strategy.method)

            logger.debug("Strategy found nothing", strategy=strategy.name, identifier=identifier)

        logger.info("Identifier not resolved", identifier=identifier)
        return None


def build_default_chain() -> ResolutionChain:
    """Site search first, then the search engine fallback when enabled."""
    from partscout.search.duckduckgo import DuckDuckGoStrategy
    from partscout.search.site_search import SiteSearchStrategy
    from partscout.utils.config import get_settings

    strategies: list[ResolutionStrategy] = [SiteSearchStrategy()]
    if get_settings().fallback_search.enabled:
        strategies.append(DuckDuckGoStrategy())
    return ResolutionChain(strategies)
