"""Explorer session state and the operations the app's UI drives.

The session is a plain object owned by whoever renders the UI; controller
methods read and update it and never touch module-level state.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from data_explorer.core.enums import FieldType, FilterOperator, SortDirection
from data_explorer.core.models import Filter, SortSpec
from data_explorer.tools.definitions import ToolName
from .client import AppClient

logger = logging.getLogger(__name__)

PAGE_SIZE = 50
CHART_TOP_N = 15

# Filter form inputs and the operator each one produces
_INPUT_OPERATORS: Dict[str, FilterOperator] = {
    "min": FilterOperator.GTE,
    "max": FilterOperator.LTE,
    "select": FilterOperator.EQ,
    "search": FilterOperator.CONTAINS,
}


@dataclass(frozen=True)
class FilterInput:
    """One filter control: ``kind`` is min, max, select or search."""

    field: str
    kind: str
    value: str


def collect_filters(inputs: Iterable[FilterInput]) -> List[Filter]:
    """Turn filter form values into query filters.

    Blank values are skipped; min/max values must parse as numbers.
    """
    filters: List[Filter] = []
    for item in inputs:
        value = (item.value or "").strip()
        operator = _INPUT_OPERATORS.get(item.kind)
        if not value or operator is None:
            continue
        if item.kind in ("min", "max"):
            try:
                number = float(value)
            except ValueError:
                logger.debug("Ignoring non-numeric %s bound for %s: %r", item.kind, item.field, value)
                continue
            filters.append(Filter(item.field, operator.value, number))
        else:
            filters.append(Filter(item.field, operator.value, value))
    return filters


@dataclass
class ExplorerSession:
    datasets: List[Dict[str, Any]] = field(default_factory=list)
    dataset: str = ""
    schema: Optional[Dict[str, Any]] = None
    filters: List[Filter] = field(default_factory=list)
    sort: Optional[SortSpec] = None
    page: int = 0
    page_size: int = PAGE_SIZE
    total_count: int = 0
    rows: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.page_size) if self.page_size else 0

    def reset_view(self) -> None:
        self.page = 0
        self.sort = None
        self.filters = []
        self.rows = []
        self.total_count = 0

    def query_arguments(self) -> Dict[str, Any]:
        return {
            "dataset": self.dataset,
            "filters": [f.to_dict() for f in self.filters],
            "sort": self.sort.to_dict() if self.sort else None,
            "limit": self.page_size,
            "offset": self.page * self.page_size,
        }

    def fields_of_type(self, field_type: FieldType) -> List[str]:
        schema = (self.schema or {}).get("schema") or {}
        return [name for name, info in schema.items() if info.get("type") == field_type.value]


class DataExplorerController:
    """Drive the tool calls behind each UI action."""

    def __init__(self, client: AppClient, session: Optional[ExplorerSession] = None) -> None:
        self.client = client
        self.session = session or ExplorerSession()

    async def load_datasets(self) -> List[Dict[str, Any]]:
        self.session.datasets = await self.client.call_server_tool(ToolName.LIST_DATASETS.value)
        return self.session.datasets

    async def select_dataset(self, name: str) -> None:
        """Switch datasets: reset the view, load the schema and the first page."""
        self.session.dataset = name
        self.session.reset_view()
        self.session.schema = None
        if not name:
            return
        self.session.schema = await self.client.call_server_tool(
            ToolName.GET_SCHEMA.value, {"dataset": name}
        )
        await self.query()

    async def query(self) -> Dict[str, Any]:
        if not self.session.dataset:
            return {}
        result = await self.client.call_server_tool(
            ToolName.QUERY_DATA.value, self.session.query_arguments()
        )
        self.session.rows = result["data"]
        self.session.total_count = result["totalCount"]
        return result

    async def apply_filters(self, inputs: Iterable[FilterInput]) -> Dict[str, Any]:
        self.session.filters = collect_filters(inputs)
        self.session.page = 0
        return await self.query()

    async def clear_filters(self) -> Dict[str, Any]:
        self.session.filters = []
        self.session.page = 0
        return await self.query()

    async def toggle_sort(self, field_name: str) -> Dict[str, Any]:
        """Sort by a column; a second click on the same column flips direction."""
        current = self.session.sort
        if current is not None and current.field == field_name:
            flipped = SortDirection.DESC if current.direction == SortDirection.ASC else SortDirection.ASC
            self.session.sort = SortSpec(field_name, flipped)
        else:
            self.session.sort = SortSpec(field_name, SortDirection.ASC)
        self.session.page = 0
        return await self.query()

    async def next_page(self) -> bool:
        if self.session.page >= self.session.total_pages - 1:
            return False
        self.session.page += 1
        await self.query()
        return True

    async def previous_page(self) -> bool:
        if self.session.page <= 0:
            return False
        self.session.page -= 1
        await self.query()
        return True

    def chart_defaults(self) -> Dict[str, Optional[str]]:
        """First string field to group by and first numeric field to measure."""
        strings = self.session.fields_of_type(FieldType.STRING)
        numbers = self.session.fields_of_type(FieldType.NUMBER)
        return {
            "groupBy": strings[0] if strings else None,
            "metric": numbers[0] if numbers else None,
        }

    async def chart_data(
        self, group_by: str, metric: str, operation: str = "sum", top_n: int = CHART_TOP_N
    ) -> List[Dict[str, Any]]:
        if not (self.session.dataset and group_by and metric):
            return []
        result = await self.client.call_server_tool(
            ToolName.AGGREGATE.value,
            {
                "dataset": self.session.dataset,
                "groupBy": group_by,
                "metric": metric,
                "operation": operation,
            },
        )
        return result["results"][:top_n]

    async def export(self, fmt: str = "json") -> Dict[str, Any]:
        """Export the filtered dataset; adds the download file name."""
        result = await self.client.call_server_tool(
            ToolName.EXPORT_DATA.value,
            {
                "dataset": self.session.dataset,
                "filters": [f.to_dict() for f in self.session.filters],
                "format": fmt,
            },
        )
        result["filename"] = f"{self.session.dataset}_export.{result['format']}"
        return result
