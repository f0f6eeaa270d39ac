"""Dataset and query specification models.

This module defines the value objects passed between the store, the query
engine and the tool dispatcher:
- Dataset: immutable named record collection with a canonical schema
- Filter / SortSpec / AggregationSpec: query knobs parsed from tool arguments
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .enums import FilterOperator, SortDirection

Record = Mapping[str, Any]


@dataclass(frozen=True)
class Dataset:
    """Named, schema-typed record collection.

    Attributes:
        name: Unique key within a DatasetStore.
        description: Human readable description.
        schema: Mapping of field name to type tag ("number" | "string").
        records: Ordered, read-only records. Field sets may vary per record.

    Examples:
        >>> ds = Dataset.build("sales", "Sales", {"revenue": "number"}, [{"revenue": 1}])
        >>> ds.record_count
        1
    """

    name: str
    description: str
    schema: Mapping[str, str]
    records: Tuple[Record, ...] = field(default_factory=tuple)

    @classmethod
    def build(
        cls,
        name: str,
        description: str,
        schema: Mapping[str, str],
        records: Iterable[Mapping[str, Any]],
    ) -> "Dataset":
        """Freeze plain dicts into a Dataset snapshot."""
        return cls(
            name=str(name),
            description=str(description or ""),
            schema=MappingProxyType(dict(schema)),
            records=tuple(MappingProxyType(dict(r)) for r in records),
        )

    @property
    def record_count(self) -> int:
        return len(self.records)

    @property
    def columns(self) -> List[str]:
        return list(self.schema.keys())


@dataclass(frozen=True)
class Filter:
    field: str
    operator: str
    value: Any = None

    @property
    def known_operator(self) -> Optional[FilterOperator]:
        return FilterOperator.parse(self.operator)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Filter":
        return cls(
            field=str(raw.get("field") or ""),
            operator=str(raw.get("operator") or ""),
            value=raw.get("value"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"field": self.field, "operator": self.operator, "value": self.value}


@dataclass(frozen=True)
class SortSpec:
    field: str
    direction: SortDirection = SortDirection.ASC

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "SortSpec":
        direction = str(raw.get("direction") or "asc").lower()
        return cls(
            field=str(raw.get("field") or ""),
            direction=SortDirection.DESC if direction == "desc" else SortDirection.ASC,
        )

    def to_dict(self) -> Dict[str, str]:
        return {"field": self.field, "direction": self.direction.value}


@dataclass(frozen=True)
class AggregationSpec:
    group_by: str
    metric: str
    operation: str


def parse_filters(raw: Any) -> List[Filter]:
    """Parse a list of filter dicts, skipping entries that are not mappings."""
    if not isinstance(raw, (list, tuple)):
        return []
    return [Filter.from_dict(item) for item in raw if isinstance(item, Mapping)]


def parse_sort(raw: Any) -> Optional[SortSpec]:
    if not isinstance(raw, Mapping) or not raw.get("field"):
        return None
    return SortSpec.from_dict(raw)


__all__ = [
    "Record",
    "Dataset",
    "Filter",
    "SortSpec",
    "AggregationSpec",
    "parse_filters",
    "parse_sort",
]
