import logging
from typing import Any, Dict, Optional

from elasticsearch import AsyncElasticsearch

from registry_api.settings import S

logger = logging.getLogger(__name__)


store_client: Optional[AsyncElasticsearch] = None


def _client_kwargs() -> Dict[str, Any]:
    kwargs: Dict[str, Any] = {
        "request_timeout": S.request_timeout_seconds,
        "verify_certs": S.es_verify_certs,
        # Callers own retry policy.
        "max_retries": 0,
        "retry_on_timeout": False,
    }
    if S.es_api_key:
        kwargs["api_key"] = S.es_api_key
    elif S.es_username:
        kwargs["basic_auth"] = (S.es_username, S.es_password)
    return kwargs


async def init_store() -> None:
    global store_client
    store_client = AsyncElasticsearch(S.es_url, **_client_kwargs())
    try:
        info = await store_client.info()
        logger.info("Connected to search store %s (version %s)", S.es_url, info["version"]["number"])
    except Exception:
        # The app still starts; requests fail with 5xx until the store is reachable.
        logger.exception("Search store not reachable at %s", S.es_url)


async def close_store() -> None:
    global store_client
    if store_client is not None:
        await store_client.close()
        store_client = None


def get_store() -> AsyncElasticsearch:
    if store_client is None:
        raise RuntimeError("Search store client not initialized")
    return store_client


def response_body(response: Any) -> Dict[str, Any]:
    """Plain dict behind an ``ObjectApiResponse`` (or an already-plain dict)."""
    body = getattr(response, "body", response)
    if not isinstance(body, dict):
        return dict(body or {})
    return body
