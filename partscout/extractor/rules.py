"""
Declarative extraction rules.

Every extracted field is described by a FieldRule: an ordered list of CSS
selectors tried one after another until one yields a non-empty value. The
built-in table below covers part detail pages, repair help pages and model
pages. A YAML file in the config directory may override individual fields
without touching code:

    part:
      price:
        selectors:
          - selector: "span.js-partPrice"

Overrides are deep-merged over the built-in table, so a field's selector list
is replaced as a whole while untouched fields keep their defaults.
"""

from __future__ import annotations

from pathlib import Path
from string import Formatter
from typing import Any
from urllib.parse import urljoin

import yaml
from bs4 import BeautifulSoup, Tag
from pydantic import BaseModel, Field, ValidationError, field_validator

from partscout.utils.config import deep_merge, get_config_dir, get_settings
from partscout.utils.logging import get_logger

logger = get_logger(__name__)


# =============================================================================
# Pydantic Schema Models
# =============================================================================


class SelectorRule(BaseModel):
    """One CSS selector and how to read a value from its matches."""

    selector: str = Field(..., description="CSS selector string")
    attribute: str | None = Field(
        default=None,
        description="Attribute to read; element text when unset",
    )
    template: str | None = Field(
        default=None,
        description="Format string applied to the raw value as {value}",
    )

    @field_validator("selector")
    @classmethod
    def validate_selector(cls, v: str) -> str:
        """Ensure selector is not empty."""
        if not v.strip():
            raise ValueError("Selector cannot be empty")
        return v.strip()

    @field_validator("template")
    @classmethod
    def validate_template(cls, v: str | None) -> str | None:
        """Ensure the template's only placeholder is {value}."""
        if v is None:
            return v
        try:
            fields = [
                (name, spec) for _, name, spec, _ in Formatter().parse(v) if name is not None
            ]
        except ValueError as e:
            raise ValueError(f"Malformed template: {e}") from e
        if fields != [("value", "")]:
            raise ValueError("Template must contain exactly one {value} placeholder")
        return v


class FieldRule(BaseModel):
    """Ordered fallback selectors for one field."""

    selectors: list[SelectorRule] = Field(default_factory=list)
    limit: int | None = Field(default=None, ge=1, description="Cap for list fields")
    min_length: int = Field(default=0, ge=0, description="Drop values shorter than this")
    max_length: int | None = Field(default=None, ge=1, description="Truncate values")
    contains: str | None = Field(
        default=None,
        description="Flag fields: true when matched text contains this phrase",
    )
    absolute: bool = Field(default=False, description="Resolve values against the site origin")
    unique: bool = Field(default=False, description="List fields: drop repeated values")


class ExtractionRules(BaseModel):
    """Rule tables per page kind."""

    part: dict[str, FieldRule] = Field(default_factory=dict)
    help: dict[str, FieldRule] = Field(default_factory=dict)
    model: dict[str, FieldRule] = Field(default_factory=dict)


def _rule(*selectors: str | dict[str, Any], **options: Any) -> dict[str, Any]:
    return {
        "selectors": [s if isinstance(s, dict) else {"selector": s} for s in selectors],
        **options,
    }


DEFAULT_RULES: dict[str, Any] = {
    "part": {
        "title": _rule("h1.title-main", "h1"),
        "price": _rule(
            ".price",
            "span.js-partPrice",
            {"selector": "[itemprop='price']", "attribute": "content"},
        ),
        "description": _rule(
            ".pd__description",
            "[itemprop='description']",
            {"selector": "meta[name='description']", "attribute": "content"},
            max_length=500,
        ),
        "in_stock": _rule(".pd__availability", ".js-partAvailability", contains="in stock"),
        "image_url": _rule(
            {"selector": "meta[property='og:image']", "attribute": "content"},
            {"selector": "img[itemprop='image']", "attribute": "src"},
            {"selector": ".pd__img img", "attribute": "src"},
            absolute=True,
        ),
        "installation_steps": _rule(".repair-story__step, .pd__repair-step", limit=10),
        "videos": _rule(
            {
                "selector": "a[href*='youtube'], a[href*='video'], .video-link",
                "attribute": "href",
            },
            {
                "selector": "div.yt-video[data-yt-init]",
                "attribute": "data-yt-init",
                "template": "https://www.youtube.com/watch?v={value}",
            },
            limit=3,
            absolute=True,
            unique=True,
        ),
        "symptoms": _rule(".pd__symptom, .symptom-item", limit=10),
        "compatibility_note": _rule(".pd__cross-reference, .model-compatibility"),
    },
    "help": {
        "tips": _rule(".repair-help__tip, .repair-story, .help-content p", limit=5, min_length=21),
        "suggested_part": _rule(".part-suggestion, .mega-m__part", limit=5),
        "suggested_part_name": _rule(".mega-m__part-name, h3"),
        "suggested_part_number": _rule(".mega-m__part-number, .part-number"),
    },
    "model": {
        "model_name": _rule("h1"),
    },
}


# =============================================================================
# Rule application
# =============================================================================


def normalize_text(value: str) -> str:
    """Collapse runs of whitespace and trim."""
    return " ".join(value.split())


def parse_html(html: Any) -> BeautifulSoup:
    """Parse HTML leniently; anything that is not a string becomes an empty document."""
    if not isinstance(html, str):
        html = ""
    return BeautifulSoup(html, "lxml")


def select_safe(root: Tag, selector: str) -> list[Tag]:
    """Run a CSS selector, treating invalid selectors as matching nothing."""
    try:
        return list(root.select(selector))
    except Exception as e:
        logger.debug("Selector failed", selector=selector, error=str(e))
        return []


def _read(element: Tag, rule: SelectorRule) -> str:
    if rule.attribute:
        raw = element.get(rule.attribute)
        if isinstance(raw, list):
            raw = " ".join(raw)
        value = normalize_text(str(raw)) if raw else ""
    else:
        value = normalize_text(element.get_text(" "))

    if value and rule.template:
        value = rule.template.format(value=value)
    return value


def _finish(value: str, field_rule: FieldRule, base_url: str) -> str:
    if field_rule.absolute and base_url:
        value = urljoin(base_url, value)
    if field_rule.max_length is not None:
        value = value[: field_rule.max_length]
    return value


def first_value(root: Tag, field_rule: FieldRule, base_url: str = "") -> str:
    """Value of the first selector match that is non-empty, else ""."""
    for rule in field_rule.selectors:
        for element in select_safe(root, rule.selector):
            value = _read(element, rule)
            if value and len(value) >= field_rule.min_length:
                return _finish(value, field_rule, base_url)
    return ""


def all_values(root: Tag, field_rule: FieldRule, base_url: str = "") -> list[str]:
    """Values of the first selector that yields anything, in document order.

    Empty values and values shorter than `min_length` are dropped, as are
    repeats when the rule is `unique`; the result is capped at `limit`.
    """
    for rule in field_rule.selectors:
        values: list[str] = []
        for element in select_safe(root, rule.selector):
            value = _read(element, rule)
            if not value or len(value) < field_rule.min_length:
                continue
            value = _finish(value, field_rule, base_url)
            if field_rule.unique and value in values:
                continue
            values.append(value)
            if field_rule.limit is not None and len(values) >= field_rule.limit:
                break
        if values:
            return values
    return []


def all_elements(root: Tag, field_rule: FieldRule) -> list[Tag]:
    """Elements matched by the first selector that matches anything, capped at `limit`."""
    for rule in field_rule.selectors:
        elements = select_safe(root, rule.selector)
        if elements:
            return elements[: field_rule.limit] if field_rule.limit else elements
    return []


def has_phrase(root: Tag, field_rule: FieldRule) -> bool:
    """True if any selector's matched text contains the rule's phrase (case-insensitive)."""
    if not field_rule.contains:
        return False
    phrase = field_rule.contains.lower()
    for rule in field_rule.selectors:
        text = " ".join(_read(element, rule) for element in select_safe(root, rule.selector))
        if phrase in text.lower():
            return True
    return False


# =============================================================================
# Loading
# =============================================================================


def load_extraction_rules(path: Path | None = None) -> ExtractionRules:
    """Build the rule table, merging the optional YAML override file.

    Args:
        path: Override file. Defaults to the configured rules file in the
              config directory.

    Returns:
        Validated ExtractionRules. An override file that cannot be parsed or
        fails validation is logged and the built-in table is used instead.
    """
    if path is None:
        path = get_config_dir() / get_settings().extraction.rules_file

    if not path.exists():
        return ExtractionRules.model_validate(DEFAULT_RULES)

    try:
        with open(path, encoding="utf-8") as f:
            overrides = yaml.safe_load(f) or {}
        if not isinstance(overrides, dict):
            logger.warning("Ignoring malformed extraction rule file", path=str(path))
            return ExtractionRules.model_validate(DEFAULT_RULES)
        rules = ExtractionRules.model_validate(deep_merge(DEFAULT_RULES, overrides))
    except yaml.YAMLError as e:
        logger.error("Failed to parse extraction rule YAML", error=str(e), path=str(path))
        return ExtractionRules.model_validate(DEFAULT_RULES)
    except ValidationError as e:
        logger.error(
            "Invalid extraction rule overrides",
            errors=e.error_count(),
            error=str(e),
            path=str(path),
        )
        return ExtractionRules.model_validate(DEFAULT_RULES)

    logger.info("Extraction rule overrides loaded", path=str(path))
    return rules


_rules: ExtractionRules | None = None


def get_extraction_rules() -> ExtractionRules:
    """Get or load the process-wide extraction rules."""
    global _rules
    if _rules is None:
        _rules = load_extraction_rules()
    return _rules


def reset_extraction_rules() -> None:
    """Reset cached rules (for testing only)."""
    global _rules
    _rules = None
