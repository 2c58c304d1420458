"""Turn per-request filter parameters into one boolean predicate."""

from dataclasses import dataclass
from typing import List, Optional, Tuple

from registry_api.common.records import APPROVAL_FIELD, APPROVED, RECORD_TYPE_FIELD, MatchMode
from registry_api.query.nodes import (
    Bool,
    Exists,
    Match,
    MatchAll,
    MatchPhrase,
    Node,
    Range,
    Term,
    Wildcard,
    escape_wildcard,
)


def keyword(field: str) -> str:
    """Exact-value sub-field of a free-text field."""
    return f"{field}.keyword"


@dataclass(frozen=True)
class FilterSpec:
    record_type: Optional[str] = None
    search: Optional[str] = None
    match_mode: MatchMode = MatchMode.substring
    search_fields: Tuple[str, ...] = ()
    # (field, value) pairs AND-ed as case-insensitive terms on the keyword sub-field
    equals: Tuple[Tuple[str, str], ...] = ()
    ranges: Tuple[Range, ...] = ()
    # at least one of these fields must be present
    required_any: Tuple[str, ...] = ()
    approved_only: bool = False
    extra: Tuple[Node, ...] = ()


def search_clause(text: str, fields: Tuple[str, ...], mode: MatchMode) -> Optional[Node]:
    text = (text or "").strip()
    if not text or not fields:
        return None

    per_field: List[Node] = []
    for field in fields:
        if mode == MatchMode.sentence:
            per_field.append(MatchPhrase(field, text))
        elif mode == MatchMode.word:
            per_field.append(Match(field, text, operator="and"))
        else:
            per_field.append(Wildcard(keyword(field), f"*{escape_wildcard(text)}*"))
            per_field.append(Match(field, text, fuzziness="AUTO"))

    if len(per_field) == 1:
        return per_field[0]
    return Bool(should=tuple(per_field), minimum_should_match=1)


def build_query(spec: FilterSpec) -> Node:
    must: List[Node] = []

    if spec.record_type:
        must.append(Term(RECORD_TYPE_FIELD, spec.record_type))
    if spec.approved_only:
        must.append(Term(APPROVAL_FIELD, APPROVED))

    for field, value in spec.equals:
        value = (value or "").strip()
        if value:
            must.append(Term(keyword(field), value, case_insensitive=True))

    must.extend(spec.ranges)

    if spec.required_any:
        must.append(
            Bool(should=tuple(Exists(f) for f in spec.required_any), minimum_should_match=1)
        )

    match = search_clause(spec.search or "", spec.search_fields, spec.match_mode)
    if match is not None:
        must.append(match)

    must.extend(spec.extra)

    if not must:
        return MatchAll()
    return Bool(must=tuple(must))


def age_range(age_min: Optional[int], age_max: Optional[int], field: str = "date_of_birth") -> Optional[Range]:
    """Date-of-birth bounds for an inclusive age range, in store date math."""
    if age_min is None and age_max is None:
        return None
    lte = f"now-{int(age_min)}y/d" if age_min is not None else None
    gt = f"now-{int(age_max) + 1}y/d" if age_max is not None else None
    return Range(field, gt=gt, lte=lte)
