import asyncio
import logging
from typing import Any, Dict, List, Tuple

from elasticsearch import AsyncElasticsearch

from registry_api.errors import StoreResponseError
from registry_api.paging import keyset
from registry_api.paging.offset import page_count
from registry_api.persons.enrichment import IdentityEnrichmentResolver
from registry_api.persons.models import PERSON_SORT_PATHS, PersonsQuery
from registry_api.places.dimensions import PERSON_NIDA_PLACES, PERSON_RESIDENCE_PLACES
from registry_api.places.keys import place_filter
from registry_api.places.queries import hit_row, hits_and_total
from registry_api.query.builder import FilterSpec, age_range, build_query
from registry_api.query.nodes import Node, Range, to_wire
from registry_api.settings import S
from registry_api.store.client import response_body

logger = logging.getLogger(__name__)

PERSON_SEARCH_FIELDS: Tuple[str, ...] = ("full_name", "first_name", "middle_name", "last_name")


def persons_filter(req: PersonsQuery) -> FilterSpec:
    equals = (
        ("gender", req.gender),
        ("nationality", req.nationality),
        ("role", req.role),
        ("residence_region", req.region),
        ("residence_district", req.district),
        ("residence_ward", req.ward),
        ("nida_region", req.nida_region),
        ("nida_district", req.nida_district),
        ("nida_ward", req.nida_ward),
    )
    ranges: List[Range] = []
    ages = age_range(req.age_min, req.age_max)
    if ages is not None:
        ranges.append(ages)

    extra: List[Node] = []
    if req.place_id:
        extra.append(place_filter(req.place_id, PERSON_NIDA_PLACES, PERSON_RESIDENCE_PLACES))

    return FilterSpec(
        record_type=req.record_type.value,
        search=req.search,
        match_mode=req.match_mode,
        search_fields=PERSON_SEARCH_FIELDS,
        equals=tuple((f, v) for f, v in equals if v),
        ranges=tuple(ranges),
        approved_only=req.approved_only,
        extra=tuple(extra),
    )


def _count(body: Dict[str, Any]) -> int:
    try:
        return int(body["count"])
    except (KeyError, TypeError, ValueError) as e:
        raise StoreResponseError(f"count missing or malformed: {e!r}") from e


async def query_persons(client: AsyncElasticsearch, req: PersonsQuery) -> Dict[str, Any]:
    query = to_wire(build_query(persons_filter(req)))
    sort = keyset.sort_spec(PERSON_SORT_PATHS[req.sort], req.order)
    plan = keyset.plan(req.page, req.limit, req.cursor, arity=len(sort))

    search_kwargs: Dict[str, Any] = {
        "index": S.persons_index,
        "query": query,
        "sort": sort,
        "size": req.limit,
        "track_total_hits": False,
    }
    if plan.uses_cursor:
        search_kwargs["search_after"] = plan.search_after
    else:
        search_kwargs["from_"] = plan.from_

    # The exact count does not depend on the page; fetch both at once.
    search_response, count_response = await asyncio.gather(
        client.search(**search_kwargs),
        client.count(index=S.persons_index, query=query),
    )
    hits, _ = hits_and_total(response_body(search_response))
    total_count = _count(response_body(count_response))

    rows = [hit_row(h) for h in hits]
    resolver = IdentityEnrichmentResolver(client, S.persons_index, sentinels=S.enrichment_sentinels)
    await resolver.enrich(rows)

    total_pages = page_count(total_count, req.limit)
    has_more = req.page < total_pages
    return {
        "persons": rows,
        "pagination": {
            "page": req.page,
            "limit": req.limit,
            "totalCount": total_count,
            "totalPages": total_pages,
            "hasMore": has_more,
            "nextCursor": keyset.next_cursor(hits, has_more),
            "cursorApplied": plan.uses_cursor,
        },
    }
