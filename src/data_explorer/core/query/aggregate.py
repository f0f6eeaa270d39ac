"""Group-by aggregation and per-field statistics.

Both functions coerce values with ``pd.to_numeric(errors="coerce")`` and round
results to two decimals.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from ..enums import AggregateOperation, FieldType
from ..models import Record

logger = logging.getLogger(__name__)

MAX_DISTINCT_VALUES = 50


def _round2(value: float) -> float:
    return round(float(value), 2)


def group_key(value: Any) -> str:
    """String form of a group-by value.

    Missing and null values group under ``"null"``; integral floats drop the
    trailing ``.0`` so 3 and 3.0 land in the same group.
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _coerce_numeric(values: Sequence[Any]) -> pd.Series:
    series = pd.Series(list(values), dtype=object)
    # bools are not metrics
    series = series.map(lambda v: None if isinstance(v, bool) else v)
    return pd.to_numeric(series, errors="coerce")


def aggregate(
    records: Sequence[Record],
    group_by: str,
    metric: str,
    operation: str,
) -> List[Dict[str, Any]]:
    """Group records and reduce the metric per group.

    Non-numeric or absent metric values count as 0. Results are ordered by
    value, descending; equal values keep the order in which their groups
    first appeared.

    Examples:
        >>> aggregate([{"r": "W", "v": 1}, {"r": "E", "v": 5}], "r", "v", "sum")
        [{'group': 'E', 'value': 5.0}, {'group': 'W', 'value': 1.0}]
    """
    if not records:
        return []
    op = AggregateOperation.parse(operation)
    if op is None:
        logger.warning("Unknown aggregate operation %r; values default to 0", operation)

    df = pd.DataFrame(
        {
            "group": [group_key(r.get(group_by)) for r in records],
            "value": _coerce_numeric([r.get(metric) for r in records]).fillna(0).astype(float),
        }
    )
    grouped = df.groupby("group", sort=False)["value"]
    if op == AggregateOperation.SUM:
        reduced = grouped.sum()
    elif op == AggregateOperation.AVG:
        reduced = grouped.mean()
    elif op == AggregateOperation.COUNT:
        reduced = grouped.size().astype(float)
    elif op == AggregateOperation.MIN:
        reduced = grouped.min()
    elif op == AggregateOperation.MAX:
        reduced = grouped.max()
    else:
        reduced = grouped.size() * 0.0

    ordered = reduced.sort_values(ascending=False, kind="stable")
    return [{"group": str(g), "value": _round2(v)} for g, v in ordered.items()]


def _distinct_strings(values: Sequence[Any]) -> List[str]:
    seen: Dict[str, None] = {}
    for v in values:
        if v is None:
            continue
        seen.setdefault(str(v), None)
    return sorted(seen)


def _plain_number(value: float) -> float | int:
    if math.isfinite(value) and float(value).is_integer():
        return int(value)
    return float(value)


def field_stats(records: Sequence[Record], field: str, field_type: str) -> Optional[Dict[str, Any]]:
    """Summary statistics for one schema field.

    - number: ``{min, max, avg}`` over values that coerce to numbers, or None
      when no record has one.
    - string: ``{uniqueCount, values}`` with at most 50 distinct values,
      ascending.
    - any other type tag: ``{}``.
    """
    values = [r.get(field) for r in records]
    if field_type == FieldType.NUMBER.value:
        numeric = _coerce_numeric(values).dropna()
        if numeric.empty:
            return None
        return {
            "min": _plain_number(float(numeric.min())),
            "max": _plain_number(float(numeric.max())),
            "avg": _round2(numeric.mean()),
        }
    if field_type == FieldType.STRING.value:
        distinct = _distinct_strings(values)
        return {
            "uniqueCount": len(distinct),
            "values": distinct[:MAX_DISTINCT_VALUES],
        }
    return {}
