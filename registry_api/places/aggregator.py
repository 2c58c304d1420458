import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from elasticsearch import AsyncElasticsearch

from registry_api.errors import StoreResponseError
from registry_api.places.dimensions import DimensionSet
from registry_api.query.nodes import Node, to_wire
from registry_api.store.client import response_body

logger = logging.getLogger(__name__)

AGG_NAME = "places"


@dataclass(frozen=True)
class DimensionBucket:
    dimensions: Dict[str, Optional[str]]
    count: int


def composite_aggregation(dimension_set: DimensionSet, size: int) -> Dict[str, Any]:
    """Grouped count over every dimension, keeping records where a dimension is absent."""
    sources = [
        {d.field: {"terms": {"field": d.keyword_field, "missing_bucket": True}}}
        for d in dimension_set.dimensions
    ]
    return {AGG_NAME: {"composite": {"size": int(size), "sources": sources}}}


def _bucket_value(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def parse_buckets(dimension_set: DimensionSet, response: Mapping[str, Any]) -> List[DimensionBucket]:
    try:
        raw = response["aggregations"][AGG_NAME]["buckets"]
        out: List[DimensionBucket] = []
        for b in raw:
            key = b["key"]
            out.append(
                DimensionBucket(
                    dimensions={f: _bucket_value(key.get(f)) for f in dimension_set.fields},
                    count=int(b["doc_count"]),
                )
            )
        return out
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise StoreResponseError(f"composite aggregation '{AGG_NAME}' missing or malformed: {e!r}") from e


class PlaceAggregator:
    """Runs the single capped composite aggregation behind every place listing."""

    def __init__(self, client: AsyncElasticsearch, index: str, *, bucket_cap: int, timeout_seconds: float):
        self.client = client
        self.index = index
        self.bucket_cap = int(bucket_cap)
        self.timeout_seconds = float(timeout_seconds)

    async def buckets(self, dimension_set: DimensionSet, query: Node) -> List[DimensionBucket]:
        response = await self.client.options(request_timeout=self.timeout_seconds).search(
            index=self.index,
            query=to_wire(query),
            aggs=composite_aggregation(dimension_set, self.bucket_cap),
            size=0,
            track_total_hits=False,
        )
        body = response_body(response)
        out = parse_buckets(dimension_set, body)

        # A full page plus an after_key means more groups exist than the cap allows.
        after_key = (body.get("aggregations") or {}).get(AGG_NAME, {}).get("after_key")
        if after_key is not None and len(out) >= self.bucket_cap:
            logger.warning(
                "Place aggregation '%s' on %s truncated at %d buckets",
                dimension_set.name,
                self.index,
                self.bucket_cap,
            )
        return out
