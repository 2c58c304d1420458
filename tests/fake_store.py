"""In-memory stand-in for the async search client, evaluating the query DSL subset the API emits."""

from __future__ import annotations

import fnmatch
import functools
import re
from collections import Counter, defaultdict
from typing import Any, Callable


def _value(doc: dict, path: str) -> Any:
    field = path[: -len(".keyword")] if path.endswith(".keyword") else path
    return doc.get(field)


def _tokens(text: Any) -> list[str]:
    return str(text or "").lower().split()


def matches(doc: dict, query: dict) -> bool:
    (kind, body), = query.items()
    if kind == "match_all":
        return True
    if kind == "bool":
        if any(not matches(doc, q) for q in body.get("must", [])):
            return False
        if any(matches(doc, q) for q in body.get("must_not", [])):
            return False
        should = body.get("should", [])
        if should:
            need = body.get("minimum_should_match", 1 if not body.get("must") else 0)
            if sum(1 for q in should if matches(doc, q)) < need:
                return False
        return True
    if kind == "term":
        (path, spec), = body.items()
        value = _value(doc, path)
        if value is None:
            return False
        if spec.get("case_insensitive"):
            return str(value).lower() == str(spec["value"]).lower()
        return value == spec["value"]
    if kind == "exists":
        return _value(doc, body["field"]) is not None
    if kind == "wildcard":
        (path, spec), = body.items()
        value = _value(doc, path)
        if value is None:
            return False
        pattern = spec["value"].replace("\\*", "*").replace("\\?", "?")
        return fnmatch.fnmatchcase(str(value).lower(), pattern.lower())
    if kind == "regexp":
        (path, spec), = body.items()
        value = _value(doc, path)
        return value is not None and re.fullmatch(spec["value"], str(value)) is not None
    if kind == "match":
        (path, spec), = body.items()
        have = set(_tokens(_value(doc, path)))
        want = _tokens(spec["query"])
        if spec.get("operator") == "and":
            return all(w in have for w in want)
        return any(w in have for w in want)
    if kind == "match_phrase":
        (path, spec), = body.items()
        return " ".join(_tokens(spec["query"])) in " ".join(_tokens(_value(doc, path)))
    raise NotImplementedError(kind)


def _compare(sort: list[dict], a: list[Any], b: list[Any]) -> int:
    for clause, x, y in zip(sort, a, b):
        (_, spec), = clause.items()
        order = spec["order"] if isinstance(spec, dict) else spec
        if x == y:
            continue
        result = -1 if x < y else 1
        return result if order == "asc" else -result
    return 0


class FakeStore:
    """Records every call; serves searches from ``docs`` unless a handler is given."""

    def __init__(self, docs: list[dict] | None = None, handler: Callable[[dict], dict] | None = None):
        self.docs = list(docs or [])
        self.handler = handler
        self.search_calls: list[dict] = []
        self.count_calls: list[dict] = []
        self.options_calls: list[dict] = []

    def options(self, **kwargs: Any) -> "FakeStore":
        self.options_calls.append(kwargs)
        return self

    async def search(self, **kwargs: Any) -> dict:
        self.search_calls.append(kwargs)
        if self.handler is not None:
            return self.handler(kwargs)
        hits = [d for d in self.docs if matches(d, kwargs.get("query") or {"match_all": {}})]
        body: dict = {"hits": {"hits": []}}
        if kwargs.get("track_total_hits"):
            body["hits"]["total"] = {"value": len(hits), "relation": "eq"}
        if kwargs.get("aggs"):
            body["aggregations"] = self._aggregate(hits, kwargs["aggs"])
        size = kwargs.get("size", 10)
        if size:
            body["hits"]["hits"] = self._page(hits, kwargs, size)
        return body

    async def count(self, **kwargs: Any) -> dict:
        self.count_calls.append(kwargs)
        return {"count": sum(1 for d in self.docs if matches(d, kwargs["query"]))}

    def _page(self, hits: list[dict], kwargs: dict, size: int) -> list[dict]:
        sort = kwargs.get("sort") or []
        rows = [
            {"_id": d["record_id"], "_source": dict(d), "sort": [_value(d, next(iter(c))) for c in sort]}
            for d in hits
        ]
        if sort:
            rows.sort(key=functools.cmp_to_key(lambda a, b: _compare(sort, a["sort"], b["sort"])))
        after = kwargs.get("search_after")
        if after is not None:
            rows = [r for r in rows if _compare(sort, r["sort"], after) > 0]
        start = kwargs.get("from_", 0)
        return rows[start : start + size]

    def _aggregate(self, hits: list[dict], aggs: dict) -> dict:
        (name, spec), = aggs.items()
        if "composite" in spec:
            sources = spec["composite"]["sources"]
            counts: Counter = Counter()
            for d in hits:
                key = tuple(
                    (src_name, _value(d, src["terms"]["field"]))
                    for source in sources
                    for src_name, src in source.items()
                )
                counts[key] += 1
            buckets = [{"key": dict(k), "doc_count": n} for k, n in counts.items()]
            limit = spec["composite"]["size"]
            out: dict = {"buckets": buckets[:limit]}
            if buckets:
                out["after_key"] = buckets[: limit][-1]["key"]
            return {name: out}

        # identity terms aggregation with ranked sub-terms
        field = spec["terms"]["field"]
        (sub_name, sub), = spec["aggs"].items()
        sub_field = sub["terms"]["field"]
        grouped: dict[Any, Counter] = defaultdict(Counter)
        for d in hits:
            grouped[_value(d, field)][_value(d, sub_field)] += 1
        buckets = []
        for key, values in grouped.items():
            ranked = sorted(values.items(), key=lambda kv: (-kv[1], str(kv[0])))
            buckets.append(
                {
                    "key": key,
                    "doc_count": sum(values.values()),
                    sub_name: {"buckets": [{"key": v, "doc_count": n} for v, n in ranked if v is not None]},
                }
            )
        return {name: {"buckets": buckets}}
