"""
Part detail page extraction.

Turns a rendered detail page into a PartRecord. Extraction is total: missing
markup, invalid selectors or unparsable input yield the field defaults.
"""

from __future__ import annotations

from typing import Any

from partscout.extractor.rules import (
    ExtractionRules,
    FieldRule,
    all_values,
    first_value,
    get_extraction_rules,
    has_phrase,
    parse_html,
)
from partscout.utils.logging import get_logger
from partscout.utils.schemas import PartRecord

logger = get_logger(__name__)

MAX_DESCRIPTION_CHARS = 500
MAX_INSTALLATION_STEPS = 10
MAX_VIDEOS = 3
MAX_SYMPTOMS = 10

_TEXT_FIELDS = ("title", "price", "description", "image_url", "compatibility_note")
_LIST_FIELDS = {
    "installation_steps": MAX_INSTALLATION_STEPS,
    "videos": MAX_VIDEOS,
    "symptoms": MAX_SYMPTOMS,
}


def extract_part_record(
    html: Any,
    identifier: str,
    base_url: str | None = None,
    rules: ExtractionRules | None = None,
) -> PartRecord:
    """Extract a PartRecord from a part detail page.

    Args:
        html: Rendered page HTML.
        identifier: Part identifier; copied to `part_number`.
        base_url: Origin for resolving relative image/video URLs. Defaults
                  to the configured site base URL.
        rules: Rule table. Defaults to the process-wide rules.

    Returns:
        PartRecord with every field populated or defaulted.
    """
    if base_url is None:
        from partscout.utils.config import get_settings

        base_url = get_settings().site.base_url
    if rules is None:
        rules = get_extraction_rules()

    soup = parse_html(html)
    part_rules = rules.part
    empty = FieldRule()

    values: dict[str, Any] = {"part_number": identifier or ""}

    for field in _TEXT_FIELDS:
        values[field] = first_value(soup, part_rules.get(field, empty), base_url)
    values["description"] = values["description"][:MAX_DESCRIPTION_CHARS]

    for field, cap in _LIST_FIELDS.items():
        values[field] = all_values(soup, part_rules.get(field, empty), base_url)[:cap]

    values["in_stock"] = has_phrase(soup, part_rules.get("in_stock", empty))

    record = PartRecord(**values)
    logger.debug(
        "Part page extracted",
        identifier=identifier,
        has_title=bool(record.title),
        has_price=bool(record.price),
        steps=len(record.installation_steps),
        videos=len(record.videos),
    )
    return record
