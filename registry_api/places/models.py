from typing import Optional

from pydantic import BaseModel, Field

from registry_api.common.records import RecordType
from registry_api.paging.offset import DEFAULT_LIMIT, MAX_LIMIT


class PlacesQuery(BaseModel):
    record_type: RecordType = Field(..., description="Registration type (company | business_name).")
    search: Optional[str] = Field(default=None, description="Free text matched against the place fields.")
    approved_only: bool = Field(default=False, description="Only count approved registrations.")
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=DEFAULT_LIMIT, ge=1, le=MAX_LIMIT)


class PlaceRegistrationsQuery(BaseModel):
    record_type: RecordType
    approved_only: bool = False
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=DEFAULT_LIMIT, ge=1, le=MAX_LIMIT)
