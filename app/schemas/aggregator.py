from pydantic import BaseModel, Field
from typing import Any, Dict, Literal, Optional


class ProxyRequest(BaseModel):
    endpoint: Optional[str] = None
    queryParams: Dict[str, Any] = Field(default_factory=dict)  # camelCase from the browser client


class AggregatorProjectQuery(BaseModel):
    min_price: Optional[float] = Field(None, ge=0)
    max_price: Optional[float] = Field(None, ge=0)
    bedrooms: Optional[str] = None
    property_type: Optional[str] = None
    developer: Optional[str] = None
    emirate: Optional[Literal["Dubai", "Abu Dhabi", "Sharjah"]] = None
    construction_status: Optional[
        Literal["planning", "foundation", "structure", "finishing", "completed"]
    ] = None
    search: Optional[str] = None
    sort: Optional[Literal["price", "units", "progress", "recommended"]] = None
    limit: int = Field(100, ge=1, le=500)
    force_refresh: bool = False


class AnalyzerAnswers(BaseModel):
    goal: Literal["flipping", "appreciation"]
    holding: Literal["short", "mid", "long"]
    returns: Literal["return-short", "return-stable", "return-aggressive"]
    budget: Literal["budget-low", "budget-mid", "budget-high"]
