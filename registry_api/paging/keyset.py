"""Search-after pagination for raw listings.

A cursor carries the sort values of the last row of the previous page. It is
only honoured when the client is continuing (page > 1); any other page jump
falls back to offset skipping. A cursor that fails to decode, or whose values
do not fit the sort, is ignored.
"""

import base64
import binascii
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from registry_api.common.records import RECORD_ID_FIELD, SortOrder

logger = logging.getLogger(__name__)

_CURSOR_KEY = "after"


@dataclass(frozen=True)
class KeysetPlan:
    from_: int
    search_after: Optional[List[Any]] = None

    @property
    def uses_cursor(self) -> bool:
        return self.search_after is not None


def sort_spec(field: str, order: SortOrder, tiebreaker: str = RECORD_ID_FIELD) -> List[Dict[str, Any]]:
    """Requested order, always closed by a unique field so the order is total."""
    sort: List[Dict[str, Any]] = [{field: {"order": order.value, "missing": "_last"}}]
    if field != tiebreaker:
        sort.append({tiebreaker: {"order": "asc"}})
    return sort


def encode_cursor(sort_values: List[Any]) -> str:
    raw = json.dumps({_CURSOR_KEY: list(sort_values)}, separators=(",", ":"), ensure_ascii=False)
    return base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii")


_SCALARS = (str, int, float)


def decode_cursor(token: Optional[str], arity: Optional[int] = None) -> Optional[List[Any]]:
    """Sort values carried by a cursor, or None when it cannot continue a listing.

    With ``arity`` given, the cursor must hold exactly that many scalar values.
    """
    if not token:
        return None
    try:
        padded = token.strip() + "=" * (-len(token.strip()) % 4)
        data = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8"))
    except (binascii.Error, ValueError) as e:
        logger.info("Ignoring undecodable cursor: %s", e)
        return None
    values = data.get(_CURSOR_KEY) if isinstance(data, dict) else None
    if not isinstance(values, list) or not values:
        logger.info("Ignoring cursor without sort values")
        return None
    if arity is not None and len(values) != arity:
        logger.info("Ignoring cursor with %d sort values, expected %d", len(values), arity)
        return None
    if any(v is not None and not isinstance(v, _SCALARS) for v in values):
        logger.info("Ignoring cursor with non-scalar sort values")
        return None
    return values


def plan(page: int, limit: int, cursor: Optional[str], arity: Optional[int] = None) -> KeysetPlan:
    if page > 1:
        after = decode_cursor(cursor, arity)
        if after is not None:
            return KeysetPlan(from_=0, search_after=after)
    return KeysetPlan(from_=(max(1, page) - 1) * limit)


def next_cursor(hits: List[Dict[str, Any]], has_more: bool) -> Optional[str]:
    if not hits or not has_more:
        return None
    sort_values = hits[-1].get("sort")
    if not sort_values:
        return None
    return encode_cursor(sort_values)
