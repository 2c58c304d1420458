import time
from typing import Annotated, Any, Awaitable, Callable, Dict

from elasticsearch import AsyncElasticsearch
from fastapi import APIRouter, Depends, Query

from registry_api.cache import CachePrefix, CacheStore, cache_key, get_cache_store, ttl
from registry_api.places.dimensions import (
    BUSINESS_PLACES,
    PERSON_NIDA_PLACES,
    PERSON_RESIDENCE_PLACES,
)
from registry_api.places.models import PlaceRegistrationsQuery, PlacesQuery
from registry_api.places.queries import query_place_registrations, query_places
from registry_api.settings import S
from registry_api.store.client import get_store

router = APIRouter()


async def _cached(
    cache_store: CacheStore,
    prefix: CachePrefix,
    payload: Dict[str, Any],
    ttl_seconds: Any,
    run: Callable[[], Awaitable[Dict[str, Any]]],
) -> Dict[str, Any]:
    key = cache_key(prefix, payload)
    cached, source = await cache_store.get_json(key, ttl_seconds=ttl_seconds)
    if cached is not None:
        return {"success": True, "cached": True, "cache_source": source, **cached}

    t0 = time.time()
    out = await run()
    out["t_ms"] = int((time.time() - t0) * 1000)

    await cache_store.set_json(key, out, ttl_seconds=ttl_seconds)
    return {"success": True, "cached": False, **out}


@router.get("/api/v1/places/businesses")
async def business_places(
    req: Annotated[PlacesQuery, Query()],
    store: AsyncElasticsearch = Depends(get_store),
    cache_store: CacheStore = Depends(get_cache_store),
) -> Dict[str, Any]:
    return await _cached(
        cache_store,
        CachePrefix.business_places,
        req.model_dump(mode="json"),
        ttl(),
        lambda: query_places(store, S.registrations_index, BUSINESS_PLACES, req),
    )


@router.get("/api/v1/places/businesses/{place_id}/registrations")
async def place_registrations(
    place_id: str,
    req: Annotated[PlaceRegistrationsQuery, Query()],
    store: AsyncElasticsearch = Depends(get_store),
    cache_store: CacheStore = Depends(get_cache_store),
) -> Dict[str, Any]:
    # Registration pages are less reusable; cache briefly to keep UI paging snappy.
    ttl_seconds = ttl()
    if isinstance(ttl_seconds, int) and ttl_seconds > 0:
        ttl_seconds = min(120, ttl_seconds)
    elif ttl_seconds is None:
        ttl_seconds = 120

    return await _cached(
        cache_store,
        CachePrefix.place_registrations,
        {"place_id": place_id, **req.model_dump(mode="json")},
        ttl_seconds,
        lambda: query_place_registrations(store, place_id, req),
    )


@router.get("/api/v1/places/persons/nida")
async def person_places_nida(
    req: Annotated[PlacesQuery, Query()],
    store: AsyncElasticsearch = Depends(get_store),
    cache_store: CacheStore = Depends(get_cache_store),
) -> Dict[str, Any]:
    return await _cached(
        cache_store,
        CachePrefix.person_places_nida,
        req.model_dump(mode="json"),
        ttl(),
        lambda: query_places(store, S.persons_index, PERSON_NIDA_PLACES, req),
    )


@router.get("/api/v1/places/persons/residence")
async def person_places_residence(
    req: Annotated[PlacesQuery, Query()],
    store: AsyncElasticsearch = Depends(get_store),
    cache_store: CacheStore = Depends(get_cache_store),
) -> Dict[str, Any]:
    return await _cached(
        cache_store,
        CachePrefix.person_places_residence,
        req.model_dump(mode="json"),
        ttl(),
        lambda: query_places(store, S.persons_index, PERSON_RESIDENCE_PLACES, req),
    )
