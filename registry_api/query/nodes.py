"""Typed predicate tree, serialized to the Elasticsearch query DSL at the store boundary."""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union


@dataclass(frozen=True)
class MatchAll:
    pass


@dataclass(frozen=True)
class Term:
    field: str
    value: Any
    case_insensitive: bool = False


@dataclass(frozen=True)
class Match:
    field: str
    query: str
    operator: Optional[str] = None
    fuzziness: Optional[str] = None


@dataclass(frozen=True)
class MatchPhrase:
    field: str
    query: str


@dataclass(frozen=True)
class Wildcard:
    field: str
    pattern: str
    case_insensitive: bool = True


@dataclass(frozen=True)
class Regexp:
    field: str
    pattern: str


@dataclass(frozen=True)
class Range:
    field: str
    gte: Any = None
    gt: Any = None
    lte: Any = None
    lt: Any = None


@dataclass(frozen=True)
class Exists:
    field: str


@dataclass(frozen=True)
class Bool:
    must: Tuple["Node", ...] = ()
    should: Tuple["Node", ...] = ()
    must_not: Tuple["Node", ...] = ()
    minimum_should_match: Optional[int] = None


Node = Union[MatchAll, Term, Match, MatchPhrase, Wildcard, Regexp, Range, Exists, Bool]


_REGEXP_RESERVED = frozenset('.?+*|{}[]()"\\#@&<>~')


def escape_wildcard(text: str) -> str:
    """Escape the wildcard metacharacters of user text."""
    return text.replace("\\", "\\\\").replace("*", "\\*").replace("?", "\\?")


def escape_regexp(text: str) -> str:
    """Escape the reserved characters of the store's regular expression syntax."""
    return "".join("\\" + c if c in _REGEXP_RESERVED else c for c in text)


def to_wire(node: Node) -> Dict[str, Any]:
    if isinstance(node, MatchAll):
        return {"match_all": {}}

    if isinstance(node, Term):
        body: Dict[str, Any] = {"value": node.value}
        if node.case_insensitive:
            body["case_insensitive"] = True
        return {"term": {node.field: body}}

    if isinstance(node, Match):
        body = {"query": node.query}
        if node.operator:
            body["operator"] = node.operator
        if node.fuzziness:
            body["fuzziness"] = node.fuzziness
        return {"match": {node.field: body}}

    if isinstance(node, MatchPhrase):
        return {"match_phrase": {node.field: {"query": node.query}}}

    if isinstance(node, Wildcard):
        return {"wildcard": {node.field: {"value": node.pattern, "case_insensitive": node.case_insensitive}}}

    if isinstance(node, Regexp):
        return {"regexp": {node.field: {"value": node.pattern}}}

    if isinstance(node, Range):
        bounds = {
            op: value
            for op, value in (("gte", node.gte), ("gt", node.gt), ("lte", node.lte), ("lt", node.lt))
            if value is not None
        }
        return {"range": {node.field: bounds}}

    if isinstance(node, Exists):
        return {"exists": {"field": node.field}}

    if isinstance(node, Bool):
        body = {}
        if node.must:
            body["must"] = [to_wire(n) for n in node.must]
        if node.should:
            body["should"] = [to_wire(n) for n in node.should]
        if node.must_not:
            body["must_not"] = [to_wire(n) for n in node.must_not]
        if node.minimum_should_match is not None:
            body["minimum_should_match"] = node.minimum_should_match
        return {"bool": body}

    raise TypeError(f"Unsupported query node: {node!r}")
