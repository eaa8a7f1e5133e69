from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, Union

from app.models.lead import LeadStatus, SalesStage
from app.schemas.enquiry import ClientProfileFields


class LeadFields(ClientProfileFields):
    name: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = None
    email: Optional[str] = None
    property_id: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    project_name: Optional[str] = None
    type: Optional[str] = None
    intent: Optional[str] = None
    event: Optional[str] = None
    status: Optional[LeadStatus] = None
    sales_stage: Optional[SalesStage] = None


class LeadCreate(LeadFields):
    """name and phone are checked by the route"""


class LeadUpdate(LeadFields):
    """None means keep the stored value"""


class MoveLeadData(LeadFields):
    """Overrides applied when converting an enquiry; accepts camelCase keys"""
    model_config = ConfigDict(populate_by_name=True)

    project_name: Optional[str] = Field(None, alias="projectName")
    sales_stage: Optional[SalesStage] = Field(None, alias="salesStage")


class MoveToLeadsRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    source_id: Optional[Union[int, str]] = Field(None, alias="sourceId")
    source_type: Optional[str] = Field(None, alias="sourceType")
    lead_data: Optional[MoveLeadData] = Field(None, alias="leadData")

    @field_validator("source_type", mode="before")
    @classmethod
    def lower_source_type(cls, v):
        return v.lower() if isinstance(v, str) else v
