"""Backfill a missing nationality from other records of the same person.

The same identity number often appears on several source documents, and only
some of them carry a usable nationality. For one page of rows we issue a single
lookup for the identities that need it and take, per identity, the most
frequent value that is not blank and not a sentinel.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from elasticsearch import AsyncElasticsearch

from registry_api.errors import StoreResponseError
from registry_api.query.builder import keyword
from registry_api.query.nodes import Bool, Exists, Term, to_wire
from registry_api.store.client import response_body

logger = logging.getLogger(__name__)

IDENTITY_FIELD = "identity_number"
NATIONALITY_FIELD = "nationality"
_AGG_NAME = "identities"
_CANDIDATES_AGG = "candidates"
MAX_CANDIDATES = 10


def is_usable(value: Any, sentinels: Iterable[str]) -> bool:
    if value is None:
        return False
    text = str(value).strip()
    if not text:
        return False
    return text.lower() not in {s.lower() for s in sentinels}


def pick_candidate(candidates: Sequence[Any], sentinels: Iterable[str]) -> Optional[str]:
    """First usable value in rank order, or None."""
    sentinels = list(sentinels)
    for c in candidates:
        if is_usable(c, sentinels):
            return str(c).strip()
    return None


def apply_enrichment(
    rows: List[Dict[str, Any]],
    resolved: Mapping[str, str],
    sentinels: Iterable[str],
    *,
    identity_field: str = IDENTITY_FIELD,
    target_field: str = NATIONALITY_FIELD,
) -> int:
    """Fill target_field in place for rows lacking a usable value; returns rows changed."""
    sentinels = list(sentinels)
    changed = 0
    for row in rows:
        if is_usable(row.get(target_field), sentinels):
            continue
        identity = row.get(identity_field)
        if identity is None:
            continue
        value = resolved.get(str(identity))
        if value is not None:
            row[target_field] = value
            changed += 1
    return changed


class IdentityEnrichmentResolver:
    def __init__(
        self,
        client: AsyncElasticsearch,
        index: str,
        *,
        sentinels: Iterable[str],
        identity_field: str = IDENTITY_FIELD,
        target_field: str = NATIONALITY_FIELD,
    ):
        self.client = client
        self.index = index
        self.sentinels = list(sentinels)
        self.identity_field = identity_field
        self.target_field = target_field

    def identities_needing_enrichment(self, rows: Iterable[Mapping[str, Any]]) -> List[str]:
        seen: Dict[str, None] = {}
        for row in rows:
            identity = row.get(self.identity_field)
            if identity is None or not str(identity).strip():
                continue
            if is_usable(row.get(self.target_field), self.sentinels):
                continue
            seen.setdefault(str(identity), None)
        return list(seen)

    def lookup_request(self, identities: List[str]) -> Dict[str, Any]:
        query = Bool(
            must=(
                Bool(should=tuple(Term(self.identity_field, i) for i in identities), minimum_should_match=1),
                Exists(keyword(self.target_field)),
            )
        )
        aggs = {
            _AGG_NAME: {
                "terms": {"field": self.identity_field, "size": len(identities)},
                "aggs": {
                    _CANDIDATES_AGG: {
                        "terms": {
                            "field": keyword(self.target_field),
                            "size": MAX_CANDIDATES,
                            "order": [{"_count": "desc"}, {"_key": "asc"}],
                        }
                    }
                },
            }
        }
        return {"query": to_wire(query), "aggs": aggs}

    def parse_candidates(self, body: Mapping[str, Any]) -> Dict[str, List[str]]:
        try:
            out: Dict[str, List[str]] = {}
            for b in body["aggregations"][_AGG_NAME]["buckets"]:
                out[str(b["key"])] = [c["key"] for c in b[_CANDIDATES_AGG]["buckets"]]
            return out
        except (KeyError, TypeError) as e:
            raise StoreResponseError(f"enrichment aggregation missing or malformed: {e!r}") from e

    async def candidates(self, identities: List[str]) -> Dict[str, List[str]]:
        request = self.lookup_request(identities)
        response = await self.client.search(
            index=self.index,
            query=request["query"],
            aggs=request["aggs"],
            size=0,
            track_total_hits=False,
        )
        return self.parse_candidates(response_body(response))

    async def enrich(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Backfill rows in place with one store round trip at most."""
        identities = self.identities_needing_enrichment(rows)
        if not identities:
            return rows

        ranked = await self.candidates(identities)
        resolved: Dict[str, str] = {}
        for identity, values in ranked.items():
            value = pick_candidate(values, self.sentinels)
            if value is not None:
                resolved[identity] = value

        changed = apply_enrichment(
            rows,
            resolved,
            self.sentinels,
            identity_field=self.identity_field,
            target_field=self.target_field,
        )
        logger.debug("Enriched %s on %d of %d rows", self.target_field, changed, len(rows))
        return rows
