import hashlib
import json
import logging
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple

from redis.asyncio import Redis

from registry_api.db.duckdb import duckdb_connect
from registry_api.settings import S

logger = logging.getLogger(__name__)


class CachePrefix(str, Enum):
    """Key namespaces of cached place responses, one per endpoint."""

    business_places = "business_places"
    place_registrations = "place_registrations"
    person_places_nida = "person_places_nida"
    person_places_residence = "person_places_residence"


def ttl(req_ttl: Optional[int] = None) -> Optional[int]:
    """Return cache TTL semantics.

    - None  => use server default (S.cache_ttl_seconds)
    - <0    => disable cache for this request (no read/write)
    - 0     => no expiry (persistent until manually cleared)
    - >0    => expiry in seconds
    """
    v = int(S.cache_ttl_seconds) if req_ttl is None else int(req_ttl)
    if v < 0:
        return -1
    if v == 0:
        return None
    return max(1, v)


def sha1_json(obj: Any) -> str:
    s = json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=True, default=str)
    return hashlib.sha1(s.encode("utf-8")).hexdigest()


def cache_key(prefix: CachePrefix, payload: Any) -> str:
    return f"{prefix.value}:{sha1_json(payload)}"


class CacheStore:
    """Redis response cache, optionally materialized into DuckDB.

    A store built without a Redis client is a no-op: every read misses and
    writes are dropped.
    """

    def __init__(self, redis_client: Optional[Redis]):
        self.redis = redis_client

    def init_materialized_cache(self) -> None:
        if self.redis is None or not S.cache_materialize:
            return
        con = duckdb_connect()
        try:
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS response_cache (
                  cache_key VARCHAR PRIMARY KEY,
                  response_json VARCHAR,
                  created_at TIMESTAMP
                );
                """
            )
            if S.materialize_keep_days > 0:
                # DuckDB does not support parameter placeholders in INTERVAL; value is server config.
                keep_days = int(S.materialize_keep_days)
                con.execute(
                    f"DELETE FROM response_cache WHERE created_at < (now() - INTERVAL '{keep_days} days')"
                )
        finally:
            con.close()

    async def get_json(self, key: str, ttl_seconds: Optional[int]) -> Tuple[Optional[Any], str]:
        if self.redis is None or ttl_seconds == -1:
            return None, "disabled"

        cached = await self.redis.get(key)
        if cached:
            try:
                return json.loads(cached), "redis"
            except ValueError:
                logger.warning("Discarding undecodable cache entry %s", key)

        if not S.cache_materialize:
            return None, "miss"

        con = duckdb_connect()
        try:
            row = con.execute(
                "SELECT response_json FROM response_cache WHERE cache_key = ?",
                [key],
            ).fetchone()
        finally:
            con.close()

        if not row:
            return None, "miss"

        raw = row[0]
        # refresh Redis so the next request hits it directly
        if ttl_seconds is None:
            await self.redis.set(key, raw)
        else:
            await self.redis.set(key, raw, ex=int(ttl_seconds))

        try:
            return json.loads(raw), "duckdb"
        except ValueError:
            return None, "miss"

    async def set_json(self, key: str, value: Any, ttl_seconds: Optional[int]) -> None:
        if self.redis is None or ttl_seconds == -1:
            return
        raw = json.dumps(value, separators=(",", ":"))

        if ttl_seconds is None or int(ttl_seconds) <= 0:
            await self.redis.set(key, raw)
        else:
            await self.redis.set(key, raw, ex=int(ttl_seconds))

        if not S.cache_materialize:
            return

        con = duckdb_connect()
        try:
            con.execute("DELETE FROM response_cache WHERE cache_key = ?", [key])
            con.execute("INSERT INTO response_cache VALUES (?, ?, now())", [key, raw])
        finally:
            con.close()

    async def clear(
        self, prefixes: Iterable[CachePrefix], *, dry_run: bool = False, batch_size: int = 1000
    ) -> Dict[str, Any]:
        """Drop cached responses under the given namespaces, Redis and DuckDB alike."""
        live = [p.value for p in prefixes]
        details: Dict[str, int] = {p: 0 for p in live}
        deleted_total = 0
        if self.redis is None:
            return {"deleted": 0, "by_prefix": details, "dry_run": dry_run}

        for p in live:
            cursor = 0
            while True:
                cursor, keys = await self.redis.scan(cursor=cursor, match=f"{p}:*", count=batch_size)
                if keys:
                    n = len(keys) if dry_run else int(await self.redis.unlink(*keys) or 0)
                    details[p] += n
                    deleted_total += n
                if cursor == 0:
                    break

        if S.cache_materialize and not dry_run:
            con = duckdb_connect()
            try:
                for p in live:
                    con.execute("DELETE FROM response_cache WHERE starts_with(cache_key, ?)", [f"{p}:"])
            finally:
                con.close()

        return {"deleted": deleted_total, "by_prefix": details, "dry_run": dry_run}


redis_client: Optional[Redis] = None
cache_store: Optional[CacheStore] = None


async def init_cache() -> None:
    global redis_client, cache_store

    if not S.cache_enabled:
        logger.info("Response cache disabled (CACHE_ENABLED=false)")
        cache_store = CacheStore(None)
        return

    redis_client = Redis.from_url(S.redis_url, decode_responses=True)
    try:
        await redis_client.ping()
    except Exception as e:
        raise RuntimeError(f"Redis not reachable at {S.redis_url}: {e}") from e

    cache_store = CacheStore(redis_client)
    cache_store.init_materialized_cache()


async def close_cache() -> None:
    global redis_client
    if redis_client is not None:
        await redis_client.aclose()
        redis_client = None


def get_cache_store() -> CacheStore:
    if cache_store is None:
        raise RuntimeError("Cache store not initialized")
    return cache_store
