"""Repair help and model page extraction."""

from __future__ import annotations

from typing import Any

from partscout.extractor.rules import (
    ExtractionRules,
    FieldRule,
    all_elements,
    all_values,
    first_value,
    get_extraction_rules,
    normalize_text,
    parse_html,
)
from partscout.utils.schemas import SuggestedPart

MAX_TIPS = 5
MAX_SUGGESTED_PARTS = 5


def extract_help_content(
    html: Any,
    rules: ExtractionRules | None = None,
) -> tuple[list[str], list[SuggestedPart]]:
    """Extract tips and suggested parts from a repair help page.

    Tips keep only text longer than 20 characters. A suggested part is kept
    when it has a name or a number.

    Returns:
        Tuple of (tips, suggested_parts), each capped at 5.
    """
    if rules is None:
        rules = get_extraction_rules()

    soup = parse_html(html)
    help_rules = rules.help
    empty = FieldRule()

    tips = all_values(soup, help_rules.get("tips", empty))[:MAX_TIPS]

    name_rule = help_rules.get("suggested_part_name", empty)
    number_rule = help_rules.get("suggested_part_number", empty)
    suggested: list[SuggestedPart] = []
    for container in all_elements(soup, help_rules.get("suggested_part", empty)):
        name = first_value(container, name_rule)
        number = first_value(container, number_rule)
        if name or number:
            suggested.append(SuggestedPart(name=name, number=number))
        if len(suggested) >= MAX_SUGGESTED_PARTS:
            break

    return tips, suggested


def extract_model_page(html: Any, rules: ExtractionRules | None = None) -> tuple[str, str]:
    """Extract the model heading and the full page text.

    Returns:
        Tuple of (model_name, page_text).
    """
    if rules is None:
        rules = get_extraction_rules()

    soup = parse_html(html)
    model_name = first_value(soup, rules.model.get("model_name", FieldRule()))
    page_text = normalize_text(soup.get_text(" "))
    return model_name, page_text
