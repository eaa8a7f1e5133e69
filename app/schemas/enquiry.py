from pydantic import BaseModel, Field
from datetime import date
from typing import Optional, Union

from app.models.lead import LeadStatus


class ClientProfileFields(BaseModel):
    job_title: Optional[str] = None
    employer: Optional[str] = None
    property_interests: Optional[str] = None
    notes: Optional[str] = None
    client_folder_link: Optional[str] = None
    nationality: Optional[str] = None
    date_of_birth: Optional[date] = None
    home_address: Optional[str] = None


class PublicEnquiryRequest(ClientProfileFields):
    """Website form submission: contact form or property enquiry"""
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    subject: Optional[str] = None
    event: Optional[str] = None
    message: Optional[str] = None
    property_id: Optional[str] = None
    project_name: Optional[str] = None
    type: Optional[str] = None
    price: Optional[Union[float, str]] = None


class EnquiryFields(ClientProfileFields):
    first_name: Optional[str] = Field(None, max_length=255)
    last_name: Optional[str] = Field(None, max_length=255)
    email: Optional[str] = None
    phone: Optional[str] = None
    subject: Optional[str] = None
    event: Optional[str] = None
    message: Optional[str] = None
    status: Optional[LeadStatus] = None


class EnquiryCreate(EnquiryFields):
    """email and phone are checked by the route"""


class EnquiryUpdate(EnquiryFields):
    """None means keep the stored value"""
