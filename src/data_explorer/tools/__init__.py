"""Tool catalog and dispatcher."""

from .definitions import APP_ONLY_VISIBILITY, TOOL_DEFINITIONS, ToolName, tool_definitions
from .dispatcher import ToolDispatcher, ToolResult, make_envelope

__all__ = [
    "APP_ONLY_VISIBILITY",
    "TOOL_DEFINITIONS",
    "ToolName",
    "tool_definitions",
    "ToolDispatcher",
    "ToolResult",
    "make_envelope",
]
