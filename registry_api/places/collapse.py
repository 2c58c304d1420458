from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from registry_api.places.aggregator import DimensionBucket
from registry_api.places.dimensions import DimensionSet
from registry_api.places.keys import encode_place_id


@dataclass
class PlaceRecord:
    id: str
    label: str
    dimensions: Dict[str, Optional[str]]
    type: Optional[str]
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "dimensions": dict(self.dimensions),
            "type": self.type,
            "count": self.count,
        }


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


def display_label(dimension_set: DimensionSet, dimensions: Dict[str, Optional[str]]) -> str:
    """Non-empty label values joined in dimension order."""
    parts = [_clean(dimensions.get(f)) for f in dimension_set.label_fields]
    return ", ".join(p for p in parts if p)


def collapse_places(dimension_set: DimensionSet, buckets: Iterable[DimensionBucket]) -> List[PlaceRecord]:
    """Merge buckets that render to the same label, largest places first.

    The merged place keeps the id, dimensions and type of the first bucket seen
    for its label; counts are summed. Buckets with no label are dropped. Ties in
    count keep first-seen order.
    """
    by_label: Dict[str, PlaceRecord] = {}
    type_field = dimension_set.type_field

    for bucket in buckets:
        label = display_label(dimension_set, bucket.dimensions)
        if not label:
            continue
        place = by_label.get(label)
        if place is None:
            by_label[label] = PlaceRecord(
                id=encode_place_id(bucket.dimensions),
                label=label,
                dimensions=dict(bucket.dimensions),
                type=bucket.dimensions.get(type_field) if type_field else None,
                count=bucket.count,
            )
        else:
            place.count += bucket.count

    # dicts keep insertion order and sorted() is stable
    return sorted(by_label.values(), key=lambda p: p.count, reverse=True)
