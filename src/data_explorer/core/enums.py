"""Core enumerations used across the package."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class FieldType(str, Enum):
    """Schema type tags for dataset fields.

    Values are strings to ease serialization and JSON interchange.
    """

    NUMBER = "number"
    STRING = "string"


class FilterOperator(str, Enum):
    EQ = "eq"
    NE = "ne"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    CONTAINS = "contains"
    IN = "in"

    @classmethod
    def parse(cls, value: object) -> Optional["FilterOperator"]:
        """Return the operator for ``value`` or None when it is not recognized."""
        try:
            return cls(str(value).lower())
        except ValueError:
            return None


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class AggregateOperation(str, Enum):
    SUM = "sum"
    AVG = "avg"
    COUNT = "count"
    MIN = "min"
    MAX = "max"

    @classmethod
    def parse(cls, value: object) -> Optional["AggregateOperation"]:
        try:
            return cls(str(value).lower())
        except ValueError:
            return None


class ExportFormat(str, Enum):
    JSON = "json"
    CSV = "csv"


__all__ = [
    "FieldType",
    "FilterOperator",
    "SortDirection",
    "AggregateOperation",
    "ExportFormat",
]
