from pydantic import BaseModel, Field
from typing import Optional


class DeveloperFields(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    logo: Optional[str] = None
    description: Optional[str] = None
    website: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class DeveloperCreate(DeveloperFields):
    """name is checked by the route so a blank name gets the 400 message"""


class DeveloperUpdate(DeveloperFields):
    """Partial update: only fields present in the request body are written"""
