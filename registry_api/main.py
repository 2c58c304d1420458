import logging
from typing import Any, Dict

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from registry_api import cache, cache_routes
from registry_api.errors import install_error_handlers
from registry_api.logging_config import configure_logging
from registry_api.persons import routes as person_routes
from registry_api.places import routes as place_routes
from registry_api.settings import S
from registry_api.store import client as store

configure_logging(S.log_level)
logger = logging.getLogger(__name__)

logger.info("CORS config: %s", {"cors_origins": S.cors_origins, "cors_origin_regex": S.cors_origin_regex})


app = FastAPI(title="Registry Locations API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=(["*"] if ("*" in S.cors_origins) else S.cors_origins),
    allow_origin_regex=S.cors_origin_regex,
    # No cookies/auth from the browser.
    allow_credentials=False,
    allow_methods=["GET", "DELETE"],
    allow_headers=["*"],
)

install_error_handlers(app)

app.include_router(place_routes.router)
app.include_router(person_routes.router)
app.include_router(cache_routes.router)


@app.on_event("startup")
async def startup() -> None:
    await cache.init_cache()
    await store.init_store()


@app.on_event("shutdown")
async def shutdown() -> None:
    await store.close_store()
    await cache.close_cache()


@app.get("/health")
async def health() -> Dict[str, Any]:
    store_ok = False
    if store.store_client is not None:
        try:
            store_ok = bool(await store.store_client.ping())
        except Exception as e:
            logger.warning("Search store ping failed: %s", e)

    redis_ok = False
    if cache.redis_client is not None:
        try:
            redis_ok = bool(await cache.redis_client.ping())
        except Exception as e:
            logger.warning("Redis ping failed: %s", e)

    return {
        "success": store_ok,
        "store": store_ok,
        "redis": redis_ok,
        "cache_enabled": S.cache_enabled,
        "cache_materialize": S.cache_materialize,
        "indices": {"registrations": S.registrations_index, "persons": S.persons_index},
    }
