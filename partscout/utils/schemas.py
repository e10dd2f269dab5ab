"""
Pydantic records returned by the public PartScout operations.

Attributes are snake_case; `to_dict()` produces the camelCase wire shape
consumed by the tool loop and the UI.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Record(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-ready dictionary with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


class PartRecord(_Record):
    """Structured view of a part detail page.

    Every field has a default so a page with no recognizable markup still
    yields a complete record.
    """

    part_number: str = ""
    title: str = ""
    price: str = ""
    description: str = Field(default="", max_length=500)
    in_stock: bool = False
    image_url: str = ""
    installation_steps: list[str] = Field(default_factory=list, max_length=10)
    videos: list[str] = Field(default_factory=list, max_length=3)
    symptoms: list[str] = Field(default_factory=list, max_length=10)
    compatibility_note: str = ""
    source_method: str = ""
    url: str = ""


class SuggestedPart(_Record):
    """A part suggested by a repair help page."""

    name: str = ""
    number: str = ""


class CompatibilityResult(_Record):
    """Outcome of a part/model compatibility check (heuristic)."""

    part_number: str
    model_number: str
    model_name: str = ""
    is_compatible: bool = False
    part_info: PartRecord | None = None
    message: str = ""


class TroubleshootingResult(_Record):
    """Repair help for an appliance symptom."""

    appliance: str
    symptom: str
    tips: list[str] = Field(default_factory=list, max_length=5)
    suggested_parts: list[SuggestedPart] = Field(default_factory=list, max_length=5)
    message: str = ""


class ErrorRecord(_Record):
    """Uniform failure shape returned instead of raising."""

    error: str


class CompatibilityErrorRecord(ErrorRecord):
    """Failure shape for compatibility checks, carrying guidance for the user."""

    part_number: str
    model_number: str
    message: str = ""
