"""Tool catalog served by the backend discovery endpoint.

Every tool carries a ``_meta.ui.visibility`` annotation of ``["app"]``: the
tools are meant for the embedded application only and are not offered to
model-driven callers.
"""

from __future__ import annotations

import copy
from enum import Enum
from typing import Any, Dict, List, Optional

APP_ONLY_VISIBILITY: Dict[str, Any] = {"ui": {"visibility": ["app"]}}


class ToolName(str, Enum):
    LIST_DATASETS = "list-datasets"
    GET_SCHEMA = "get-schema"
    QUERY_DATA = "query-data"
    AGGREGATE = "aggregate"
    EXPORT_DATA = "export-data"

    @classmethod
    def parse(cls, value: object) -> Optional["ToolName"]:
        try:
            return cls(value)
        except ValueError:
            return None


TOOL_DEFINITIONS: List[Dict[str, Any]] = [
    {
        "name": ToolName.LIST_DATASETS.value,
        "description": "Get available datasets",
        "inputSchema": {"type": "object", "properties": {}},
        "_meta": APP_ONLY_VISIBILITY,
    },
    {
        "name": ToolName.GET_SCHEMA.value,
        "description": "Get dataset columns and types with statistics",
        "inputSchema": {
            "type": "object",
            "properties": {"dataset": {"type": "string", "description": "Dataset name"}},
            "required": ["dataset"],
        },
        "_meta": APP_ONLY_VISIBILITY,
    },
    {
        "name": ToolName.QUERY_DATA.value,
        "description": "Query data with filters, sorting, and pagination",
        "inputSchema": {
            "type": "object",
            "properties": {
                "dataset": {"type": "string"},
                "filters": {"type": "array"},
                "sort": {"type": "object"},
                "limit": {"type": "number"},
                "offset": {"type": "number"},
            },
            "required": ["dataset"],
        },
        "_meta": APP_ONLY_VISIBILITY,
    },
    {
        "name": ToolName.AGGREGATE.value,
        "description": "Group and aggregate data",
        "inputSchema": {
            "type": "object",
            "properties": {
                "dataset": {"type": "string"},
                "groupBy": {"type": "string"},
                "metric": {"type": "string"},
                "operation": {"type": "string", "enum": ["sum", "avg", "count", "min", "max"]},
            },
            "required": ["dataset", "groupBy", "metric", "operation"],
        },
        "_meta": APP_ONLY_VISIBILITY,
    },
    {
        "name": ToolName.EXPORT_DATA.value,
        "description": "Export filtered data as CSV or JSON",
        "inputSchema": {
            "type": "object",
            "properties": {
                "dataset": {"type": "string"},
                "filters": {"type": "array"},
                "format": {"type": "string", "enum": ["csv", "json"]},
            },
            "required": ["dataset"],
        },
        "_meta": APP_ONLY_VISIBILITY,
    },
]


def tool_definitions() -> List[Dict[str, Any]]:
    """Return a copy of the catalog safe for callers to mutate."""
    return copy.deepcopy(TOOL_DEFINITIONS)


def required_arguments(name: ToolName) -> List[str]:
    for definition in TOOL_DEFINITIONS:
        if definition["name"] == name.value:
            return list(definition["inputSchema"].get("required", []))
    return []
