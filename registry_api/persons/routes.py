import time
from typing import Annotated, Any, Dict

from elasticsearch import AsyncElasticsearch
from fastapi import APIRouter, Depends, Query

from registry_api.persons.models import PersonsQuery
from registry_api.persons.queries import query_persons
from registry_api.store.client import get_store

router = APIRouter()


# Not cached: pages depend on cursors and enrichment must see current siblings.
@router.get("/api/v1/persons")
async def persons(
    req: Annotated[PersonsQuery, Query()],
    store: AsyncElasticsearch = Depends(get_store),
) -> Dict[str, Any]:
    t0 = time.time()
    out = await query_persons(store, req)
    out["t_ms"] = int((time.time() - t0) * 1000)
    return {"success": True, **out}
