from pydantic import BaseModel, Field, field_validator
from typing import List, Optional, Union
from uuid import UUID


def _listify(value):
    if value is None:
        return None
    if isinstance(value, str):
        return [value]
    return value


class ProjectFields(BaseModel):
    title: Optional[str] = Field(None, max_length=500)
    address: Optional[str] = None
    city: Optional[str] = None
    category: Optional[str] = None
    type: Optional[List[str]] = None
    unit_types: Optional[List[str]] = None
    min_price: Optional[float] = Field(None, ge=0)
    max_price: Optional[float] = Field(None, ge=0)
    description: Optional[str] = None
    amenities: Optional[List[str]] = None
    images: Optional[List[str]] = None
    location_lat: Optional[float] = Field(None, ge=-90, le=90)
    location_lng: Optional[float] = Field(None, ge=-180, le=180)
    developer_id: Optional[UUID] = None
    status: Optional[str] = None

    @field_validator("type", "unit_types", "amenities", "images", mode="before")
    @classmethod
    def single_value_to_list(cls, v):
        return _listify(v)


class ProjectCreate(ProjectFields):
    """title is checked by the route"""


class ProjectUpdate(ProjectFields):
    """Partial update: only fields present in the request body are written"""


class ProjectFilters(BaseModel):
    """Public listing filters, from the query string (GET) or JSON body (POST)"""
    priority_company_ids: Optional[List[str]] = None
    category: Optional[str] = None
    type: Optional[Union[str, List[str]]] = None
    unit_types: Optional[Union[str, List[str]]] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    city: Optional[str] = None
    search: Optional[str] = None
    developer_id: Optional[str] = None

    @field_validator("type", "unit_types", mode="before")
    @classmethod
    def single_value_to_list(cls, v):
        return _listify(v)

    @field_validator("priority_company_ids", mode="before")
    @classmethod
    def csv_to_list(cls, v):
        # GET passes "id1,id2"
        if isinstance(v, str):
            return [part.strip() for part in v.split(",") if part.strip()]
        return v
