"""
Search module for PartScout.

Resolves opaque identifiers to canonical detail-page URLs.
"""

from partscout.search.duckduckgo import DuckDuckGoStrategy
from partscout.search.resolution import (
    ResolutionChain,
    ResolutionMethod,
    ResolutionResult,
    ResolutionStrategy,
    build_default_chain,
)
from partscout.search.site_search import SiteSearchStrategy

__all__ = [
    "ResolutionChain",
    "ResolutionMethod",
    "ResolutionResult",
    "ResolutionStrategy",
    "build_default_chain",
    "SiteSearchStrategy",
    "DuckDuckGoStrategy",
]
