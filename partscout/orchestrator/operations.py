"""
Public PartScout operations.

Composes resolution, fetching and extraction into the three operations the
chat layer calls. None of them raise: failures come back as ErrorRecord
shapes (or an empty advisory for troubleshooting) carrying a message the
caller can show.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING
from urllib.parse import quote, urljoin

if TYPE_CHECKING:
    from partscout.crawler.page_fetcher import PageFetcher
    from partscout.search.resolution import ResolutionChain
    from partscout.utils.config import SiteConfig

from partscout.extractor.help_page import extract_help_content, extract_model_page
from partscout.extractor.part_page import extract_part_record
from partscout.utils.logging import LogContext, get_logger
from partscout.utils.schemas import (
    CompatibilityErrorRecord,
    CompatibilityResult,
    ErrorRecord,
    PartRecord,
    TroubleshootingResult,
)

logger = get_logger(__name__)

# Characters encodeURIComponent leaves alone besides the unreserved set
_PATH_SAFE = "!*'()"

GENERAL_GUIDANCE_MESSAGE = (
    "Could not fetch specific troubleshooting data. Will provide general guidance."
)
LIMITED_INFO_MESSAGE = (
    "Limited troubleshooting info available. Common causes and solutions will be provided."
)
COMPATIBILITY_GUIDANCE_MESSAGE = (
    "Unable to verify compatibility. Please check PartSelect.com directly."
)


def slugify_help_query(appliance: str, symptom: str) -> str:
    """Turn "<appliance> <symptom>" into a help-page path segment.

    Example:
        >>> slugify_help_query("dishwasher", "not draining")
        'dishwasher-not-draining'
    """
    query = f"{appliance} {symptom}"
    return quote(re.sub(r"\s+", "-", query), safe=_PATH_SAFE)


class PartsOrchestrator:
    """Entry point for part lookup, compatibility and troubleshooting."""

    def __init__(
        self,
        chain: ResolutionChain | None = None,
        fetcher: PageFetcher | None = None,
        site_settings: SiteConfig | None = None,
    ):
        if chain is None:
            from partscout.search.resolution import build_default_chain

            chain = build_default_chain()
        if fetcher is None:
            from partscout.crawler.page_fetcher import get_page_fetcher

            fetcher = get_page_fetcher()
        if site_settings is None:
            from partscout.utils.config import get_settings

            site_settings = get_settings().site

        self._chain = chain
        self._fetcher = fetcher
        self._site = site_settings

    def model_url(self, model_id: str) -> str:
        path = self._site.model_path.format(model=quote(model_id, safe=_PATH_SAFE))
        return urljoin(self._site.base_url, path)

    def help_url(self, appliance: str, symptom: str) -> str:
        path = self._site.help_path.format(slug=slugify_help_query(appliance, symptom))
        return urljoin(self._site.base_url, path)

    async def search_part(self, identifier: str) -> PartRecord | ErrorRecord:
        """Resolve a part identifier and describe its detail page.

        Args:
            identifier: Part code, e.g. "PS11752778".

        Returns:
            PartRecord with `source_method` and `url` set, or ErrorRecord.
        """
        with LogContext(operation="search_part", identifier=identifier):
            try:
                resolution = await self._chain.resolve(identifier)
                if resolution is None:
                    return ErrorRecord(error=f"No results found for part number: {identifier}")

                html = await self._fetcher.fetch(resolution.url)
                record = extract_part_record(html, identifier, base_url=self._site.base_url)
                return record.model_copy(
                    update={"source_method": resolution.method.value, "url": resolution.url}
                )
            except Exception as e:
                logger.error("Part search failed", error=str(e))
                return ErrorRecord(error=f"Failed to search for part: {e}")

    async def check_compatibility(
        self,
        identifier: str,
        model_id: str,
    ) -> CompatibilityResult | CompatibilityErrorRecord:
        """Check whether a part appears on a model's parts page.

        The signal is heuristic: the part code occurring anywhere in the model
        page text counts as compatible.

        Args:
            identifier: Part code.
            model_id: Appliance model code.

        Returns:
            CompatibilityResult, or CompatibilityErrorRecord if the model page
            could not be checked.
        """
        with LogContext(operation="check_compatibility", identifier=identifier, model=model_id):
            try:
                html = await self._fetcher.fetch(self.model_url(model_id))
                model_name, page_text = extract_model_page(html)
                is_compatible = bool(identifier) and identifier.lower() in page_text.lower()

                part_info = await self.search_part(identifier)

                if is_compatible:
                    message = (
                        f"Part {identifier} appears to be compatible with model {model_id}."
                    )
                else:
                    message = (
                        f"Could not confirm compatibility between {identifier} and "
                        f"{model_id}. Check PartSelect.com directly."
                    )

                logger.info("Compatibility checked", is_compatible=is_compatible)
                return CompatibilityResult(
                    part_number=identifier,
                    model_number=model_id,
                    model_name=model_name,
                    is_compatible=is_compatible,
                    part_info=part_info if isinstance(part_info, PartRecord) else None,
                    message=message,
                )
            except Exception as e:
                logger.error("Compatibility check failed", error=str(e))
                return CompatibilityErrorRecord(
                    part_number=identifier,
                    model_number=model_id,
                    error=f"Failed to check compatibility: {e}",
                    message=COMPATIBILITY_GUIDANCE_MESSAGE,
                )

    async def get_troubleshooting_info(
        self,
        appliance: str,
        symptom: str,
    ) -> TroubleshootingResult:
        """Collect repair tips and commonly replaced parts for a symptom.

        Args:
            appliance: "refrigerator" or "dishwasher".
            symptom: Free-text symptom, e.g. "not draining".

        Returns:
            TroubleshootingResult; empty with a general-guidance message when
            the help page cannot be fetched.
        """
        with LogContext(operation="get_troubleshooting_info", appliance=appliance):
            try:
                html = await self._fetcher.fetch(self.help_url(appliance, symptom))
            except Exception as e:
                logger.warning("Help page fetch failed", symptom=symptom, error=str(e))
                return TroubleshootingResult(
                    appliance=appliance,
                    symptom=symptom,
                    message=GENERAL_GUIDANCE_MESSAGE,
                )

            try:
                tips, suggested_parts = extract_help_content(html)
            except Exception as e:
                logger.error("Help page extraction failed", error=str(e))
                tips, suggested_parts = [], []

            if tips:
                message = f"Found troubleshooting information for {appliance} {symptom}."
            else:
                message = LIMITED_INFO_MESSAGE

            return TroubleshootingResult(
                appliance=appliance,
                symptom=symptom,
                tips=tips,
                suggested_parts=suggested_parts,
                message=message,
            )


# ============================================================================
# Global Instance
# ============================================================================

_orchestrator: PartsOrchestrator | None = None


def get_orchestrator() -> PartsOrchestrator:
    """Get or create the global PartsOrchestrator."""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = PartsOrchestrator()
    return _orchestrator


async def shutdown() -> None:
    """Close the shared browser and HTTP client and drop cached globals."""
    global _orchestrator

    from partscout.crawler.browser_session import close_browser_session_manager
    from partscout.crawler.http_fetcher import close_http_fetcher
    from partscout.crawler.page_fetcher import reset_page_fetcher

    await close_browser_session_manager()
    await close_http_fetcher()
    reset_page_fetcher()
    _orchestrator = None
    logger.info("PartScout shut down")


def reset_orchestrator() -> None:
    """Reset the global orchestrator without closing. For testing only."""
    global _orchestrator
    _orchestrator = None
