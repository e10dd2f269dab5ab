"""
Tool definitions for an LLM tool-calling loop.

TOOL_DEFINITIONS is handed to the model as-is. execute_tool() validates the
model's input with the pydantic request models below, runs the matching
operation and returns a JSON-ready dict.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, Field, ValidationError

if TYPE_CHECKING:
    from partscout.orchestrator.operations import PartsOrchestrator

from partscout.utils.logging import get_logger

logger = get_logger(__name__)


TOOL_DEFINITIONS: list[dict[str, Any]] = [
    {
        "name": "get_part_info",
        "description": (
            "Search for a part by its part number and get details including price, "
            "availability, description, and installation information. Use this when "
            "a customer asks about a specific part number."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "part_number": {
                    "type": "string",
                    "description": "The part number to search for (e.g., PS11752778)",
                },
            },
            "required": ["part_number"],
        },
    },
    {
        "name": "check_compatibility",
        "description": (
            "Check if a specific part is compatible with an appliance model. Use this "
            "when a customer wants to know if a part fits their specific model."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "part_number": {
                    "type": "string",
                    "description": "The part number to check",
                },
                "model_number": {
                    "type": "string",
                    "description": "The appliance model number (e.g., WDT780SAEM1)",
                },
            },
            "required": ["part_number", "model_number"],
        },
    },
    {
        "name": "troubleshoot",
        "description": (
            "Get troubleshooting information for a refrigerator or dishwasher problem. "
            "Use this when a customer describes an issue with their appliance."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "appliance": {
                    "type": "string",
                    "enum": ["refrigerator", "dishwasher"],
                    "description": "The type of appliance",
                },
                "symptom": {
                    "type": "string",
                    "description": (
                        "The problem or symptom (e.g., 'not making ice', "
                        "'not draining', 'leaking water')"
                    ),
                },
            },
            "required": ["appliance", "symptom"],
        },
    },
]


class GetPartInfoRequest(BaseModel):
    part_number: str = Field(..., min_length=1)


class CheckCompatibilityRequest(BaseModel):
    part_number: str = Field(..., min_length=1)
    model_number: str = Field(..., min_length=1)


class TroubleshootRequest(BaseModel):
    appliance: Literal["refrigerator", "dishwasher"]
    symptom: str = Field(..., min_length=1)


async def _handle_get_part_info(
    orchestrator: PartsOrchestrator, args: dict[str, Any]
) -> dict[str, Any]:
    request = GetPartInfoRequest.model_validate(args)
    result = await orchestrator.search_part(request.part_number)
    return result.to_dict()


async def _handle_check_compatibility(
    orchestrator: PartsOrchestrator, args: dict[str, Any]
) -> dict[str, Any]:
    request = CheckCompatibilityRequest.model_validate(args)
    result = await orchestrator.check_compatibility(request.part_number, request.model_number)
    return result.to_dict()


async def _handle_troubleshoot(
    orchestrator: PartsOrchestrator, args: dict[str, Any]
) -> dict[str, Any]:
    request = TroubleshootRequest.model_validate(args)
    result = await orchestrator.get_troubleshooting_info(request.appliance, request.symptom)
    return result.to_dict()


_HANDLERS: dict[
    str, Callable[[PartsOrchestrator, dict[str, Any]], Awaitable[dict[str, Any]]]
] = {
    "get_part_info": _handle_get_part_info,
    "check_compatibility": _handle_check_compatibility,
    "troubleshoot": _handle_troubleshoot,
}


async def execute_tool(
    name: str,
    tool_input: dict[str, Any] | None,
    orchestrator: PartsOrchestrator | None = None,
) -> dict[str, Any]:
    """Run a tool call from the model.

    Args:
        name: Tool name from TOOL_DEFINITIONS.
        tool_input: Arguments supplied by the model.
        orchestrator: Operations to run against. Defaults to the global one.

    Returns:
        JSON-ready result dict. Unknown tools and invalid input produce
        {"error": ...} instead of raising.
    """
    handler = _HANDLERS.get(name)
    if handler is None:
        logger.warning("Unknown tool requested", tool=name)
        return {"error": f"Unknown tool: {name}"}

    if orchestrator is None:
        from partscout.orchestrator.operations import get_orchestrator

        orchestrator = get_orchestrator()

    try:
        return await handler(orchestrator, tool_input or {})
    except ValidationError as e:
        logger.warning("Invalid tool input", tool=name, errors=e.error_count())
        return {"error": f"Invalid input for {name}: {e.errors(include_url=False)}"}
