import math
from dataclasses import dataclass
from typing import Any, Dict, Generic, List, Sequence, TypeVar

T = TypeVar("T")

MAX_LIMIT = 100
DEFAULT_LIMIT = 25


@dataclass
class OffsetPage(Generic[T]):
    items: List[T]
    page: int
    limit: int
    total_count: int
    total_pages: int
    has_more: bool

    def pagination(self) -> Dict[str, Any]:
        return {
            "page": self.page,
            "limit": self.limit,
            "totalCount": self.total_count,
            "totalPages": self.total_pages,
            "hasMore": self.has_more,
        }


def page_count(total_count: int, limit: int) -> int:
    if total_count <= 0:
        return 0
    return int(math.ceil(total_count / limit))


def paginate(items: Sequence[T], page: int, limit: int) -> OffsetPage[T]:
    """Slice one page out of an already sorted, fully materialized list.

    Pages past the end come back empty rather than raising.
    """
    if page < 1:
        raise ValueError("page must be >= 1")
    if not 1 <= limit <= MAX_LIMIT:
        raise ValueError(f"limit must be between 1 and {MAX_LIMIT}")

    total_count = len(items)
    total_pages = page_count(total_count, limit)
    start = min((page - 1) * limit, total_count)
    end = min(start + limit, total_count)
    return OffsetPage(
        items=list(items[start:end]),
        page=page,
        limit=limit,
        total_count=total_count,
        total_pages=total_pages,
        has_more=page < total_pages,
    )
