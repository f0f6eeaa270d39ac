"""Map tool calls onto the query engine.

Each tool handler turns its arguments into exactly one query-engine pipeline
and returns a plain payload. The dispatcher wraps handler outcomes into a
ToolResult; dataset lookups and argument validation failures become
``{"error": ...}`` payloads rather than exceptions.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional

from data_explorer.core.errors import DataExplorerError, DatasetNotFound, MalformedArguments, UnknownTool
from data_explorer.core.models import AggregationSpec, parse_filters, parse_sort
from data_explorer.core.query import (
    DEFAULT_LIMIT,
    DEFAULT_OFFSET,
    aggregate,
    apply_filters,
    describe_dataset,
    export_records,
    paginate,
    sort_records,
    summarize_dataset,
)
from data_explorer.core.store import DatasetStore
from .definitions import ToolName, required_arguments

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolResult:
    """Outcome of one tool call.

    Attributes:
        payload: JSON-serializable result, or ``{"error": ...}`` on failure.
        error: The error behind an error payload, if any.
    """

    payload: Any
    error: Optional[DataExplorerError] = None

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def to_envelope(self) -> Dict[str, Any]:
        return make_envelope(self.payload, is_error=self.is_error)

    @classmethod
    def failure(cls, error: DataExplorerError) -> "ToolResult":
        return cls(payload={"error": error.message}, error=error)


def make_envelope(payload: Any, *, is_error: bool = False) -> Dict[str, Any]:
    """Wrap a payload into the text content envelope sent to the app."""
    envelope: Dict[str, Any] = {
        "content": [{"type": "text", "text": json.dumps(payload, ensure_ascii=False)}]
    }
    if is_error:
        envelope["isError"] = True
    return envelope


def _check_required(name: ToolName, arguments: Mapping[str, Any]) -> None:
    missing = [
        key for key in required_arguments(name) if arguments.get(key) in (None, "")
    ]
    if missing:
        raise MalformedArguments(
            f"Missing required argument(s) for {name.value}: {', '.join(missing)}",
            data={"missing": missing},
        )


class ToolDispatcher:
    """Run catalog tools against a DatasetStore."""

    def __init__(self, store: DatasetStore) -> None:
        self.store = store
        self._handlers: Dict[ToolName, Callable[[Mapping[str, Any]], Any]] = {
            ToolName.LIST_DATASETS: self._list_datasets,
            ToolName.GET_SCHEMA: self._get_schema,
            ToolName.QUERY_DATA: self._query_data,
            ToolName.AGGREGATE: self._aggregate,
            ToolName.EXPORT_DATA: self._export_data,
        }

    def tool_names(self) -> list[str]:
        return [t.value for t in self._handlers]

    def dispatch(self, name: str, arguments: Optional[Mapping[str, Any]] = None) -> ToolResult:
        """Run one tool.

        Raises:
            UnknownTool: If ``name`` is not in the catalog. Callers decide how
                to report it.
        """
        tool = ToolName.parse(name)
        if tool is None:
            raise UnknownTool(str(name))
        args: Mapping[str, Any] = arguments or {}
        if not isinstance(args, Mapping):
            return ToolResult.failure(MalformedArguments("Tool arguments must be an object"))
        try:
            _check_required(tool, args)
            return ToolResult(payload=self._handlers[tool](args))
        except (DatasetNotFound, MalformedArguments) as e:
            logger.info("Tool %s failed: %s", tool.value, e.message)
            return ToolResult.failure(e)

    def _list_datasets(self, args: Mapping[str, Any]) -> Any:
        return [summarize_dataset(ds) for ds in self.store]

    def _get_schema(self, args: Mapping[str, Any]) -> Any:
        return describe_dataset(self.store.get(args["dataset"]))

    def _query_data(self, args: Mapping[str, Any]) -> Any:
        ds = self.store.get(args["dataset"])
        records = apply_filters(ds.records, parse_filters(args.get("filters")))
        records = sort_records(records, parse_sort(args.get("sort")))
        page = paginate(
            records,
            offset=args.get("offset", DEFAULT_OFFSET),
            limit=args.get("limit", DEFAULT_LIMIT),
        )
        return page.to_payload()

    def _aggregate(self, args: Mapping[str, Any]) -> Any:
        ds = self.store.get(args["dataset"])
        spec = AggregationSpec(
            group_by=str(args["groupBy"]),
            metric=str(args["metric"]),
            operation=str(args["operation"]),
        )
        return {
            "groupBy": spec.group_by,
            "metric": spec.metric,
            "operation": spec.operation,
            "results": aggregate(ds.records, spec.group_by, spec.metric, spec.operation),
        }

    def _export_data(self, args: Mapping[str, Any]) -> Any:
        ds = self.store.get(args["dataset"])
        records = apply_filters(ds.records, parse_filters(args.get("filters")))
        return export_records(ds, records, str(args.get("format") or "json"))
