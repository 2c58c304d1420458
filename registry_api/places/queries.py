from typing import Any, Dict, List, Tuple

from elasticsearch import AsyncElasticsearch

from registry_api.common.records import RECORD_ID_FIELD
from registry_api.errors import StoreResponseError
from registry_api.paging.offset import OffsetPage, page_count, paginate
from registry_api.places.aggregator import PlaceAggregator
from registry_api.places.collapse import collapse_places
from registry_api.places.dimensions import BUSINESS_PLACES, DimensionSet
from registry_api.places.keys import place_filter
from registry_api.places.models import PlaceRegistrationsQuery, PlacesQuery
from registry_api.query.builder import FilterSpec, build_query, keyword
from registry_api.query.nodes import to_wire
from registry_api.settings import S
from registry_api.store.client import response_body

_REGISTRATION_SORT = [
    {"registration_date": {"order": "desc", "missing": "_last"}},
    {RECORD_ID_FIELD: {"order": "asc"}},
]


def places_filter(dimension_set: DimensionSet, req: PlacesQuery) -> FilterSpec:
    return FilterSpec(
        record_type=req.record_type.value,
        search=req.search,
        search_fields=dimension_set.label_fields,
        required_any=tuple(keyword(f) for f in dimension_set.label_fields),
        approved_only=req.approved_only,
    )


async def query_places(
    client: AsyncElasticsearch, index: str, dimension_set: DimensionSet, req: PlacesQuery
) -> Dict[str, Any]:
    aggregator = PlaceAggregator(
        client,
        index,
        bucket_cap=S.place_bucket_cap,
        timeout_seconds=S.aggregation_timeout_seconds,
    )
    buckets = await aggregator.buckets(dimension_set, build_query(places_filter(dimension_set, req)))
    places = collapse_places(dimension_set, buckets)
    page = paginate(places, req.page, req.limit)
    return {
        "places": [p.to_dict() for p in page.items],
        "pagination": page.pagination(),
    }


def hits_and_total(body: Dict[str, Any]) -> Tuple[List[Dict[str, Any]], int]:
    try:
        hits = body["hits"]["hits"]
        total = body["hits"].get("total")
        total_count = int(total["value"]) if isinstance(total, dict) else int(total or 0)
        return hits, total_count
    except (KeyError, TypeError, ValueError) as e:
        raise StoreResponseError(f"search hits missing or malformed: {e!r}") from e


def hit_row(hit: Dict[str, Any]) -> Dict[str, Any]:
    row = dict(hit.get("_source") or {})
    row.setdefault(RECORD_ID_FIELD, hit.get("_id"))
    return row


async def query_place_registrations(
    client: AsyncElasticsearch, place_id: str, req: PlaceRegistrationsQuery
) -> Dict[str, Any]:
    # Decoding first so a bad id never reaches the store.
    spec = FilterSpec(
        record_type=req.record_type.value,
        approved_only=req.approved_only,
        extra=(place_filter(place_id, BUSINESS_PLACES),),
    )
    response = await client.search(
        index=S.registrations_index,
        query=to_wire(build_query(spec)),
        sort=_REGISTRATION_SORT,
        from_=(req.page - 1) * req.limit,
        size=req.limit,
        track_total_hits=True,
    )
    hits, total_count = hits_and_total(response_body(response))
    total_pages = page_count(total_count, req.limit)
    page = OffsetPage(
        items=[hit_row(h) for h in hits],
        page=req.page,
        limit=req.limit,
        total_count=total_count,
        total_pages=total_pages,
        has_more=req.page < total_pages,
    )
    return {"registrations": page.items, "pagination": page.pagination()}
