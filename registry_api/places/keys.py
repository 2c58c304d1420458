"""Reversible, URL-safe place ids for dimension tuples.

A place id is the canonical (sorted-key, compact) JSON of a dimension tuple,
base64url-encoded without padding. Ids are only meaningful to this service
and may change between releases.
"""

import base64
import binascii
import json
from typing import Dict, List, Mapping, Optional

from registry_api.errors import InvalidPlaceId
from registry_api.places.dimensions import DimensionSet
from registry_api.query.builder import keyword
from registry_api.query.nodes import Bool, Exists, Node, Regexp, escape_regexp

DimensionTuple = Dict[str, Optional[str]]


def encode_place_id(dimensions: Mapping[str, Optional[str]]) -> str:
    raw = json.dumps(dict(dimensions), sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii").rstrip("=")


def decode_place_id(token: str) -> DimensionTuple:
    if not isinstance(token, str) or not token.strip():
        raise InvalidPlaceId("Place id is empty.")
    token = token.strip()
    padded = token + "=" * (-len(token) % 4)
    try:
        raw = base64.b64decode(padded, altchars=b"-_", validate=True)
        data = json.loads(raw.decode("utf-8"))
    except (binascii.Error, ValueError) as e:
        raise InvalidPlaceId("Place id is malformed.") from e

    if not isinstance(data, dict) or not data:
        raise InvalidPlaceId("Place id does not describe a place.")
    for k, v in data.items():
        if v is not None and not isinstance(v, str):
            raise InvalidPlaceId(f"Place id has a non-text value for '{k}'.")
    return data


# Any run of whitespace, including none.
_BLANK = "[ \t\r\n]*"


def _label_value(field: str, value: Optional[str]) -> Node:
    kw = keyword(field)
    text = (value or "").strip()
    if not text:
        return Bool(should=(Bool(must_not=(Exists(kw),)), Regexp(kw, _BLANK)), minimum_should_match=1)
    return Regexp(kw, _BLANK + escape_regexp(text) + _BLANK)


def place_filter(token: str, *dimension_sets: DimensionSet) -> Node:
    """Predicate selecting every record counted under a place id.

    The id must belong to one of the given dimension sets; the first set whose
    fields cover every key of the decoded tuple is used. Matching is by label:
    the type dimension is not constrained, values match with surrounding
    whitespace, and a null or blank value matches a missing or blank field.
    """
    dimensions = decode_place_id(token)
    dimension_set = next((ds for ds in dimension_sets if set(dimensions) <= set(ds.fields)), None)
    if dimension_set is None:
        names = ", ".join(ds.name for ds in dimension_sets)
        raise InvalidPlaceId(f"Place id does not belong to {names} places.")

    must: List[Node] = [
        _label_value(field, dimensions[field]) for field in dimension_set.label_fields if field in dimensions
    ]
    if not any((dimensions.get(f) or "").strip() for f in dimension_set.label_fields):
        raise InvalidPlaceId("Place id has no location values.")
    return Bool(must=tuple(must))
