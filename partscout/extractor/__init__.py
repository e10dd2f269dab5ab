"""
Extractor module for PartScout.

Pure HTML-to-record transformations driven by declarative selector rules.
"""

from partscout.extractor.help_page import extract_help_content, extract_model_page
from partscout.extractor.part_page import extract_part_record
from partscout.extractor.rules import (
    ExtractionRules,
    FieldRule,
    SelectorRule,
    get_extraction_rules,
    load_extraction_rules,
)

__all__ = [
    "extract_part_record",
    "extract_help_content",
    "extract_model_page",
    "ExtractionRules",
    "FieldRule",
    "SelectorRule",
    "get_extraction_rules",
    "load_extraction_rules",
]
