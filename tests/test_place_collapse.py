from __future__ import annotations

from registry_api.places.aggregator import DimensionBucket
from registry_api.places.collapse import collapse_places, display_label
from registry_api.places.dimensions import BUSINESS_PLACES, PERSON_NIDA_PLACES
from registry_api.places.keys import decode_place_id


def _bucket(count: int, **dims) -> DimensionBucket:
    full = {f: None for f in BUSINESS_PLACES.fields}
    full.update(dims)
    return DimensionBucket(dimensions=full, count=count)


def test_null_and_blank_ward_collapse_into_one_place() -> None:
    places = collapse_places(
        BUSINESS_PLACES,
        [
            _bucket(4, region="Dodoma", district="Dodoma Urban", ward=None),
            _bucket(3, region="Dodoma", district="Dodoma Urban", ward=""),
        ],
    )
    assert len(places) == 1
    assert places[0].label == "Dodoma, Dodoma Urban"
    assert places[0].count == 7


def test_buckets_differing_only_in_type_are_summed_and_first_type_wins() -> None:
    first = _bucket(2, region="Arusha", district="Arusha City", location_type="shop")
    second = _bucket(5, region="Arusha", district="Arusha City", location_type="office")
    places = collapse_places(BUSINESS_PLACES, [first, second])
    assert [(p.label, p.count, p.type) for p in places] == [("Arusha, Arusha City", 7, "shop")]
    assert decode_place_id(places[0].id) == first.dimensions


def test_unlabelled_buckets_are_dropped() -> None:
    places = collapse_places(
        BUSINESS_PLACES,
        [_bucket(9, region="  ", district=""), _bucket(9, location_type="office"), _bucket(1, region="Mwanza")],
    )
    assert [p.label for p in places] == ["Mwanza"]


def test_sorted_by_count_with_stable_ties() -> None:
    places = collapse_places(
        BUSINESS_PLACES,
        [
            _bucket(2, region="Tanga"),
            _bucket(5, region="Mbeya"),
            _bucket(2, region="Iringa"),
            _bucket(2, region="Tanga", district=""),
        ],
    )
    assert [(p.label, p.count) for p in places] == [("Mbeya", 5), ("Tanga", 4), ("Iringa", 2)]


def test_label_follows_dimension_order_and_strips_whitespace() -> None:
    dims = {"nida_ward": "Makole ", "nida_region": " Dodoma", "nida_district": None}
    assert display_label(PERSON_NIDA_PLACES, dims) == "Dodoma, Makole"


def test_place_without_type_dimension_has_no_type() -> None:
    places = collapse_places(
        PERSON_NIDA_PLACES,
        [DimensionBucket({"nida_region": "Dodoma", "nida_district": None, "nida_ward": None}, 3)],
    )
    assert places[0].type is None
    assert places[0].to_dict()["type"] is None
