"""Query engine public API.

Pure functions over a dataset's records: filtering, sorting, pagination,
aggregation and field statistics, plus the catalog helpers that shape tool
payloads. None of them raise for malformed filters or specs.
"""

from .plan import apply_filters, sort_records
from .materialize import DEFAULT_LIMIT, DEFAULT_OFFSET, Page, paginate
from .aggregate import aggregate, field_stats, group_key
from .catalog import describe_dataset, export_records, summarize_dataset, to_csv

__all__ = [
    "apply_filters",
    "sort_records",
    "paginate",
    "Page",
    "DEFAULT_LIMIT",
    "DEFAULT_OFFSET",
    "aggregate",
    "field_stats",
    "group_key",
    "summarize_dataset",
    "describe_dataset",
    "export_records",
    "to_csv",
]
