import os
from dataclasses import dataclass
from typing import List, Optional


@dataclass
class Settings:
    es_url: str
    es_api_key: str
    es_username: str
    es_password: str
    es_verify_certs: bool
    registrations_index: str
    persons_index: str
    request_timeout_seconds: float
    aggregation_timeout_seconds: float

    place_bucket_cap: int
    enrichment_sentinels: List[str]

    redis_url: str
    duckdb_path: str
    duckdb_threads: int
    cache_enabled: bool
    cache_ttl_seconds: int
    cache_clear_token: str
    cache_clear_local_only: bool
    cache_materialize: bool
    materialize_keep_days: int

    cors_origins: List[str]
    cors_origin_regex: Optional[str]
    log_level: str

    @classmethod
    def from_env(cls) -> "Settings":
        def _bool(name: str, default: str) -> bool:
            return os.getenv(name, default).strip().lower() == "true"

        es_url = os.getenv("ES_URL", "http://elasticsearch:9200")
        es_api_key = os.getenv("ES_API_KEY", "").strip()
        es_username = os.getenv("ES_USERNAME", "").strip()
        es_password = os.getenv("ES_PASSWORD", "")
        es_verify_certs = _bool("ES_VERIFY_CERTS", "true")
        registrations_index = os.getenv("ES_REGISTRATIONS_INDEX", "registrations").strip()
        persons_index = os.getenv("ES_PERSONS_INDEX", "persons").strip()
        request_timeout_seconds = float(os.getenv("ES_REQUEST_TIMEOUT_SECONDS", "10"))
        # Composite aggregations over the whole corpus are much slower than page fetches.
        aggregation_timeout_seconds = float(os.getenv("ES_AGGREGATION_TIMEOUT_SECONDS", "60"))

        place_bucket_cap = int(os.getenv("PLACE_BUCKET_CAP", "10000"))
        enrichment_sentinels = [
            s.strip()
            for s in os.getenv("ENRICHMENT_SENTINELS", "noResult").split(",")
            if s.strip()
        ]

        redis_url = os.getenv("REDIS_URL", "redis://redis:6379/0")
        duckdb_path = os.getenv("DUCKDB_DB_PATH", "/data/materialized_cache.duckdb")
        duckdb_threads = int(os.getenv("DUCKDB_THREADS", "4"))
        cache_enabled = _bool("CACHE_ENABLED", "true")
        cache_ttl_seconds = int(os.getenv("CACHE_TTL_SECONDS", "3600"))
        cache_clear_token = os.getenv("CACHE_CLEAR_TOKEN", "").strip()
        cache_clear_local_only = _bool("CACHE_CLEAR_LOCAL_ONLY", "true")
        cache_materialize = _bool("CACHE_MATERIALIZE", "false")
        materialize_keep_days = int(os.getenv("MATERIALIZE_KEEP_DAYS", "7"))

        cors_origins = [
            o.strip()
            for o in os.getenv(
                "CORS_ORIGINS",
                "http://localhost:3000,http://127.0.0.1:3000,http://localhost:8000,http://127.0.0.1:8000",
            ).split(",")
            if o.strip()
        ]
        cors_origin_regex = os.getenv("CORS_ORIGIN_REGEX", "").strip() or None
        log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()

        return cls(
            es_url=es_url,
            es_api_key=es_api_key,
            es_username=es_username,
            es_password=es_password,
            es_verify_certs=es_verify_certs,
            registrations_index=registrations_index,
            persons_index=persons_index,
            request_timeout_seconds=request_timeout_seconds,
            aggregation_timeout_seconds=aggregation_timeout_seconds,
            place_bucket_cap=place_bucket_cap,
            enrichment_sentinels=enrichment_sentinels,
            redis_url=redis_url,
            duckdb_path=duckdb_path,
            duckdb_threads=duckdb_threads,
            cache_enabled=cache_enabled,
            cache_ttl_seconds=cache_ttl_seconds,
            cache_clear_token=cache_clear_token,
            cache_clear_local_only=cache_clear_local_only,
            cache_materialize=cache_materialize,
            materialize_keep_days=materialize_keep_days,
            cors_origins=cors_origins,
            cors_origin_regex=cors_origin_regex,
            log_level=log_level,
        )


S = Settings.from_env()
