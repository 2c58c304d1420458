import logging
import secrets
from typing import Annotated, Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from registry_api.cache import CachePrefix, CacheStore, get_cache_store
from registry_api.settings import S

logger = logging.getLogger(__name__)

router = APIRouter()

_bearer = HTTPBearer(auto_error=False)
_LOCAL_HOSTS = frozenset({"127.0.0.1", "::1", "localhost"})


def require_cache_admin(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
) -> None:
    """Operational guard: a configured bearer token, and localhost unless CACHE_CLEAR_LOCAL_ONLY=false."""
    token = (S.cache_clear_token or "").strip()
    if not token:
        raise HTTPException(status_code=503, detail="Cache clearing is disabled (CACHE_CLEAR_TOKEN not set).")

    host = request.client.host if request.client else ""
    if S.cache_clear_local_only and host not in _LOCAL_HOSTS:
        raise HTTPException(status_code=403, detail="Cache clearing is restricted to localhost.")

    provided = credentials.credentials if credentials else ""
    if not secrets.compare_digest(provided.encode("utf-8"), token.encode("utf-8")):
        raise HTTPException(status_code=401, detail="Unauthorized.")


@router.delete("/api/v1/cache/places", dependencies=[Depends(require_cache_admin)])
async def clear_place_cache(
    prefix: Annotated[Optional[List[CachePrefix]], Query(description="Namespaces to clear; all when omitted.")] = None,
    dry_run: bool = False,
    cache_store: CacheStore = Depends(get_cache_store),
) -> Dict[str, Any]:
    prefixes = list(dict.fromkeys(prefix or CachePrefix))
    info = await cache_store.clear(prefixes, dry_run=dry_run)
    logger.info("Place cache cleared: %s", info)
    return {"success": True, "prefixes": [p.value for p in prefixes], **info}
