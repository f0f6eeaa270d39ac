from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from ..models import Record

DEFAULT_LIMIT = 100
DEFAULT_OFFSET = 0


@dataclass(frozen=True)
class Page:
    items: List[Record]
    total_count: int
    offset: int
    limit: int

    @property
    def has_more(self) -> bool:
        return self.offset + self.limit < self.total_count

    def to_payload(self) -> Dict[str, Any]:
        """Shape used by the query-data tool."""
        return {
            "data": [dict(r) for r in self.items],
            "totalCount": self.total_count,
            "offset": self.offset,
            "limit": self.limit,
            "hasMore": self.has_more,
        }


def _as_int(value: Any, default: int) -> Optional[int]:
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return None


def paginate(records: Sequence[Record], offset: Any = DEFAULT_OFFSET, limit: Any = DEFAULT_LIMIT) -> Page:
    """Slice a filtered and sorted result.

    A negative or invalid ``offset`` or ``limit`` is out of range and yields an
    empty page, as does an offset past the end. The page reports the offset
    as requested (0 when it was not a number) and the limit clamped to 0.
    """
    start = _as_int(offset, DEFAULT_OFFSET)
    size = _as_int(limit, DEFAULT_LIMIT)
    in_range = start is not None and start >= 0 and size is not None and size >= 0
    return Page(
        items=list(records[start : start + size]) if in_range else [],
        total_count=len(records),
        offset=start if start is not None else 0,
        limit=max(0, size) if size is not None else 0,
    )
