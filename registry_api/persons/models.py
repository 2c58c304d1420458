from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from registry_api.common.records import MatchMode, RecordType, SortOrder, match_mode
from registry_api.paging.offset import DEFAULT_LIMIT, MAX_LIMIT


class PersonSortField(str, Enum):
    full_name = "full_name"  # Default
    date_of_birth = "date_of_birth"
    registration_date = "registration_date"


# Sortable store paths; names sort on their exact-value sub-field.
PERSON_SORT_PATHS = {
    PersonSortField.full_name: "full_name.keyword",
    PersonSortField.date_of_birth: "date_of_birth",
    PersonSortField.registration_date: "registration_date",
}


class PersonsQuery(BaseModel):
    record_type: RecordType = Field(..., description="Registration type the person is attached to.")

    search: Optional[str] = Field(default=None, description="Free text matched against the name fields.")
    whole_word: bool = Field(default=False, description="Match every word of the search exactly.")
    whole_sentence: bool = Field(default=False, description="Match the search as one phrase.")

    gender: Optional[str] = None
    nationality: Optional[str] = None
    role: Optional[str] = Field(default=None, description="e.g. director, shareholder, secretary")

    region: Optional[str] = Field(default=None, description="Self-reported residence region.")
    district: Optional[str] = Field(default=None, description="Self-reported residence district.")
    ward: Optional[str] = Field(default=None, description="Self-reported residence ward.")
    nida_region: Optional[str] = None
    nida_district: Optional[str] = None
    nida_ward: Optional[str] = None
    place_id: Optional[str] = Field(default=None, description="Id of a person place (either source).")

    age_min: Optional[int] = Field(default=None, ge=0, le=150)
    age_max: Optional[int] = Field(default=None, ge=0, le=150)
    approved_only: bool = False

    sort: PersonSortField = PersonSortField.full_name
    order: SortOrder = SortOrder.asc
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=DEFAULT_LIMIT, ge=1, le=MAX_LIMIT)
    cursor: Optional[str] = Field(default=None, description="nextCursor from the previous page.")

    @model_validator(mode="after")
    def _validate_age_range(self) -> "PersonsQuery":
        if self.age_min is not None and self.age_max is not None and self.age_min > self.age_max:
            raise ValueError("age_min must be <= age_max.")
        return self

    @property
    def match_mode(self) -> MatchMode:
        return match_mode(self.whole_word, self.whole_sentence)
