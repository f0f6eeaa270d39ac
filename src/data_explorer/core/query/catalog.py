from __future__ import annotations

import json
from typing import Any, Dict, Sequence

from ..enums import ExportFormat
from ..models import Dataset, Record
from .aggregate import field_stats

CSV_DELIMITER = ","


def summarize_dataset(ds: Dataset) -> Dict[str, Any]:
    """Row returned by list-datasets."""
    return {
        "name": ds.name,
        "description": ds.description,
        "recordCount": ds.record_count,
        "columns": ds.columns,
    }


def describe_dataset(ds: Dataset) -> Dict[str, Any]:
    """Schema card with per-field statistics, as returned by get-schema."""
    schema: Dict[str, Any] = {}
    for field_name, field_type in ds.schema.items():
        schema[field_name] = {
            "type": field_type,
            "stats": field_stats(ds.records, field_name, field_type),
        }
    return {
        "name": ds.name,
        "description": ds.description,
        "recordCount": ds.record_count,
        "schema": schema,
    }


def _csv_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    text = str(value)
    if isinstance(value, str) and (CSV_DELIMITER in text or '"' in text or "\n" in text):
        return '"' + text.replace('"', '""') + '"'
    return text


def to_csv(columns: Sequence[str], records: Sequence[Record]) -> str:
    """Render records as CSV with a header row, one column per schema field."""
    lines = [CSV_DELIMITER.join(columns)]
    for r in records:
        lines.append(CSV_DELIMITER.join(_csv_cell(r.get(c)) for c in columns))
    return "\n".join(lines)


def export_records(ds: Dataset, records: Sequence[Record], fmt: str = "json") -> Dict[str, Any]:
    """Payload returned by export-data.

    Unknown formats fall back to JSON.
    """
    if str(fmt).lower() == ExportFormat.CSV.value:
        export_format = ExportFormat.CSV
        content = to_csv(ds.columns, records)
    else:
        export_format = ExportFormat.JSON
        content = json.dumps([dict(r) for r in records], indent=2, ensure_ascii=False)
    return {
        "format": export_format.value,
        "recordCount": len(records),
        "content": content,
    }
