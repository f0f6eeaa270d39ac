from __future__ import annotations

import locale
import logging
import numbers
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..enums import FilterOperator, SortDirection
from ..models import Filter, Record, SortSpec

logger = logging.getLogger(__name__)

_MISSING = object()


def _is_number(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def _range(cmp: Callable[[Any, Any], bool]) -> Callable[[Any, Any], bool]:
    def check(actual: Any, expected: Any) -> bool:
        if not (_is_number(actual) and _is_number(expected)):
            return False
        return cmp(actual, expected)

    return check


def _as_text(value: Any) -> str:
    if value is _MISSING or value is None:
        return ""
    return str(value)


def _contains(actual: Any, expected: Any) -> bool:
    return _as_text(expected).lower() in _as_text(actual).lower()


def _member_of(actual: Any, expected: Any) -> bool:
    if isinstance(expected, (str, bytes)) or not isinstance(expected, Sequence):
        return False
    return any(_equals(actual, v) for v in expected)


def _equals(actual: Any, expected: Any) -> bool:
    if actual is _MISSING:
        return False
    # no cross-type equality: 1 == True and "1" == 1 are both false here
    if isinstance(actual, bool) != isinstance(expected, bool):
        return False
    if _is_number(actual) and _is_number(expected):
        return actual == expected
    return type(actual) is type(expected) and actual == expected


_PREDICATES: Dict[FilterOperator, Callable[[Any, Any], bool]] = {
    FilterOperator.EQ: _equals,
    FilterOperator.NE: lambda a, e: not _equals(a, e),
    FilterOperator.GT: _range(lambda a, e: a > e),
    FilterOperator.GTE: _range(lambda a, e: a >= e),
    FilterOperator.LT: _range(lambda a, e: a < e),
    FilterOperator.LTE: _range(lambda a, e: a <= e),
    FilterOperator.CONTAINS: _contains,
    FilterOperator.IN: _member_of,
}


def _matches(record: Record, f: Filter) -> bool:
    op = f.known_operator
    if op is None or not f.field:
        # unknown operators pass every record
        return True
    return _PREDICATES[op](record.get(f.field, _MISSING), f.value)


def apply_filters(records: Sequence[Record], filters: Optional[Sequence[Filter]]) -> List[Record]:
    """Return records satisfying every filter, preserving input order."""
    if not filters:
        return list(records)
    unknown = sorted({f.operator for f in filters if f.known_operator is None})
    if unknown:
        logger.debug("Ignoring unknown filter operators: %s", unknown)
    return [r for r in records if all(_matches(r, f) for f in filters)]


def _collation_key(value: Any) -> tuple:
    if _is_number(value):
        return (0, float(value), "", "")
    text = str(value)
    # case-insensitive first so the C locale does not put "Z" before "a"
    return (1, 0.0, locale.strxfrm(text.casefold()), locale.strxfrm(text))


def sort_records(records: Sequence[Record], sort: Optional[SortSpec]) -> List[Record]:
    """Stable sort on one field.

    Numbers order numerically and before strings; strings compare
    case-insensitively under the active locale's collation, with case as
    the tiebreak. Records without a value for the field keep their
    relative order at the end, whatever the direction.
    """
    if sort is None or not sort.field:
        return list(records)
    present: List[Record] = []
    missing: List[Record] = []
    for r in records:
        (missing if r.get(sort.field) is None else present).append(r)
    ordered = sorted(
        present,
        key=lambda r: _collation_key(r[sort.field]),
        reverse=sort.direction == SortDirection.DESC,
    )
    return ordered + missing
