"""
Orchestrator module for PartScout.

The three public operations and their tool-calling surface.
"""

from partscout.orchestrator.operations import (
    PartsOrchestrator,
    get_orchestrator,
    shutdown,
    slugify_help_query,
)
from partscout.orchestrator.tools import TOOL_DEFINITIONS, execute_tool

__all__ = [
    "PartsOrchestrator",
    "get_orchestrator",
    "shutdown",
    "slugify_help_query",
    "TOOL_DEFINITIONS",
    "execute_tool",
]
