from dataclasses import dataclass
from typing import Optional, Tuple

from registry_api.query.builder import keyword

MAX_DIMENSIONS = 6


@dataclass(frozen=True)
class Dimension:
    field: str
    # Type dimensions are grouped on but never shown in the place label.
    is_type: bool = False

    @property
    def keyword_field(self) -> str:
        return keyword(self.field)


@dataclass(frozen=True)
class DimensionSet:
    name: str
    dimensions: Tuple[Dimension, ...]

    def __post_init__(self) -> None:
        if not 1 <= len(self.dimensions) <= MAX_DIMENSIONS:
            raise ValueError(f"{self.name}: between 1 and {MAX_DIMENSIONS} dimensions required")
        if sum(1 for d in self.dimensions if d.is_type) > 1:
            raise ValueError(f"{self.name}: at most one type dimension")

    @property
    def fields(self) -> Tuple[str, ...]:
        return tuple(d.field for d in self.dimensions)

    @property
    def label_fields(self) -> Tuple[str, ...]:
        return tuple(d.field for d in self.dimensions if not d.is_type)

    @property
    def type_field(self) -> Optional[str]:
        for d in self.dimensions:
            if d.is_type:
                return d.field
        return None


BUSINESS_PLACES = DimensionSet(
    "business",
    (
        Dimension("region"),
        Dimension("district"),
        Dimension("ward"),
        Dimension("street"),
        Dimension("road"),
        Dimension("location_type", is_type=True),
    ),
)

# Location as held by the national identity authority.
PERSON_NIDA_PLACES = DimensionSet(
    "person_nida",
    (
        Dimension("nida_region"),
        Dimension("nida_district"),
        Dimension("nida_ward"),
    ),
)

# Location as self-reported on the registration form.
PERSON_RESIDENCE_PLACES = DimensionSet(
    "person_residence",
    (
        Dimension("residence_region"),
        Dimension("residence_district"),
        Dimension("residence_ward"),
        Dimension("residence_street"),
        Dimension("residence_road"),
        Dimension("residence_type", is_type=True),
    ),
)
